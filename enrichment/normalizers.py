"""Pure utility functions for website text extraction."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

# Tags to remove entirely before extracting text
_STRIP_TAGS = {
    "script",
    "style",
    "nav",
    "footer",
    "noscript",
    "svg",
    "iframe",
    "form",
}

# Max chars to send to the LLM (roughly 4K chars ≈ 1K tokens)
MAX_CONTENT_CHARS = 4000


def clean_text(text: str) -> str:
    """Collapse whitespace and remove null bytes."""
    text = text.replace("\x00", "")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def extract_main_content(html: bytes | str, max_chars: int = MAX_CONTENT_CHARS) -> str:
    """Extract readable text from a landing page, stripping boilerplate."""
    soup = BeautifulSoup(html, "lxml")

    for tag_name in _STRIP_TAGS:
        for tag in soup.find_all(tag_name):
            tag.decompose()

    main: Tag | None = soup.find("main") or soup.find("body")  # type: ignore[assignment]
    if main is None:
        main = soup  # type: ignore[assignment]

    text = clean_text(main.get_text(separator="\n", strip=True))  # type: ignore[union-attr]
    return text[:max_chars]


def extract_meta(html: bytes | str) -> dict[str, str]:
    """Extract title, meta description and Open Graph tags."""
    soup = BeautifulSoup(html, "lxml")
    meta: dict[str, str] = {}

    title_tag = soup.find("title")
    if title_tag:
        meta["title"] = title_tag.get_text(strip=True)

    desc_tag = soup.find("meta", attrs={"name": "description"})
    if desc_tag and isinstance(desc_tag, Tag):
        content = desc_tag.get("content", "")
        if content:
            meta["description"] = str(content)

    for og_tag in soup.find_all("meta", attrs={"property": re.compile(r"^og:")}):
        if isinstance(og_tag, Tag):
            prop = og_tag.get("property", "")
            content = og_tag.get("content", "")
            if prop and content:
                meta[str(prop)] = str(content)

    return meta
