"""Tier 1: structural pre-validation.

Pure and fast. Runs a fixed, ordered list of detectors against a candidate's
name and website. The first match rejects the candidate before any
classifier call is paid for.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from schemas.assessment import (
    AssessmentSource,
    BusinessCategory,
    ProductType,
    TargetAudience,
    ViabilityAssessment,
)
from schemas.candidate import CandidateRecord

PREVALIDATION_CONFIDENCE = 0.9

# Title patterns that indicate listicles/articles, not products
LISTICLE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^(the\s+)?\d+\s+(best|top|great)",
        r"\bbest\s+[\w\s]+\s+(for|in)\s+\d{4}",
        r"\btop\s+\d+\s",
        r"\d{4}\s+(guide|review|comparison|picks)",
        r"\bpicks?\s+(for\s+)?\d{4}",
        r"\bplatforms?\s+to\s+consider",
        r":\s*my\s+(top\s+)?\d+",
        r"\bsoftware\s+(for|in)\s+\d{4}",
        r"\balternatives?\s+to\s",
        r"\w\s+vs\.?\s+\w",
    )
)

# URL paths that indicate blog/article content
BLOG_URL_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"/blog(/|$)",
        r"/articles?/",
        r"/learn/",
        r"/resources?/",
        r"/guides?/",
        r"/comparisons?/",
        r"/best-",
        r"/top-\d+",
        r"/reviews?/",
        r"/news/",
    )
)

# Names that are too generic to be a product (pricing pages, etc.)
GENERIC_NAME_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^(plans?\s*&?\s*)?pricing$",
        r"^ai\s+(for|in)\s+\w+$",
        r"^(ai|ml)\s+\w+\s+(tool|platform|software)$",
        r"^(home|homepage|about|about us|blog|official site)$",
    )
)


@dataclass(frozen=True)
class Detection:
    """A structural detector match."""

    category: str
    reason: str


def _first_match(patterns: tuple[re.Pattern[str], ...], text: str) -> bool:
    return any(p.search(text) for p in patterns)


def is_listicle_title(title: str) -> bool:
    return _first_match(LISTICLE_PATTERNS, title)


def is_blog_url(url: str | None) -> bool:
    return bool(url) and _first_match(BLOG_URL_PATTERNS, url)  # type: ignore[arg-type]


def is_generic_name(name: str) -> bool:
    return _first_match(GENERIC_NAME_PATTERNS, name.strip())


def detect(name: str, website: str | None) -> Detection | None:
    """Run detectors in order and return the first match."""
    if is_listicle_title(name):
        return Detection("listicle", f'Listicle title: "{name}"')
    if is_blog_url(website):
        return Detection("blog", f"Blog URL: {website}")
    if is_generic_name(name):
        return Detection("generic", f'Generic name: "{name}"')
    return None


def prevalidate(candidate: CandidateRecord) -> ViabilityAssessment | None:
    """Reject structurally invalid candidates.

    Returns a rejection verdict, or None when the candidate passes Tier 1.
    """
    detection = detect(candidate.name, candidate.website)
    if detection is None:
        return None

    return ViabilityAssessment(
        is_commercial_saas=False,
        target_audience=TargetAudience.UNKNOWN,
        product_type=ProductType.OTHER,
        business_category=BusinessCategory.OTHER,
        confidence=PREVALIDATION_CONFIDENCE,
        rejection_reason=detection.reason,
        assessed_by=AssessmentSource.PREVALIDATION,
    )
