"""ID generation, slug and URL utilities."""

from __future__ import annotations

import re
import uuid
from urllib.parse import urlparse


def generate_id() -> str:
    """Generate an opaque unique ID for stored records and jobs."""
    return uuid.uuid4().hex


def slugify(text: str) -> str:
    """Convert text to a URL-safe slug.

    Falls back to "entry" when nothing usable survives normalization.
    """
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[-\s_]+", "-", text)
    return text.strip("-") or "entry"


def extract_domain(url: str | None) -> str | None:
    """Extract bare hostname from a URL, stripping a 'www.' prefix.

    Returns None for empty or unparseable URLs.
    """
    if not url:
        return None
    try:
        parsed = urlparse(url if "://" in url else f"https://{url}")
    except ValueError:
        return None
    host = (parsed.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return host or None

