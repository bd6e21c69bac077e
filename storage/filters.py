"""Pre-admission filters.

A second, coarser net than the gatekeeper's detectors. Applied before any
classifier call or write, so obviously unfit candidates cost nothing.
"""

from __future__ import annotations

import re

from core.config import Settings
from core.ids import extract_domain
from schemas.candidate import CandidateRecord

EXCLUDED_DOMAINS: frozenset[str] = frozenset(
    {
        # Game platforms
        "itch.io",
        "store.steampowered.com",
        "roblox.com",
        "kongregate.com",
        "newgrounds.com",
        # Code hosting used as a homepage
        "github.com",
        "gitlab.com",
        "bitbucket.org",
        "github.io",
        # Video, blog and social platforms
        "youtube.com",
        "medium.com",
        "substack.com",
        "dev.to",
        "wordpress.com",
        "blogspot.com",
        "reddit.com",
        "linkedin.com",
        "twitter.com",
        "x.com",
        # Review and news sites
        "g2.com",
        "capterra.com",
        "techcrunch.com",
        "forbes.com",
        "wikipedia.org",
        # Educational portals
        "coursera.org",
        "udemy.com",
        "edx.org",
        "khanacademy.org",
        "nptel.ac.in",
    }
)

REJECTION_KEYWORDS: tuple[str, ...] = (
    "exam",
    "exams",
    "quiz",
    "homework",
    "student",
    "students",
    "flashcard",
    "flashcards",
    "test prep",
    "study guide",
    "nptel",
    "jee",
    "neet",
    "game",
    "games",
    "gaming",
    "roguelike",
    "tower defense",
)

_REJECTION_RE = re.compile(
    r"\b(" + "|".join(re.escape(k) for k in REJECTION_KEYWORDS) + r")\b",
    re.IGNORECASE,
)


def is_excluded_domain(url: str | None) -> bool:
    """Match the hostname against the exclusion list (exact or subdomain)."""
    domain = extract_domain(url)
    if not domain:
        return False
    if domain.startswith("blog."):
        return True
    return any(
        domain == excluded or domain.endswith("." + excluded)
        for excluded in EXCLUDED_DOMAINS
    )


def find_rejection_keyword(text: str) -> str | None:
    match = _REJECTION_RE.search(text)
    return match.group(1).lower() if match else None


def below_engagement_floors(candidate: CandidateRecord, settings: Settings) -> bool:
    """True when every engagement signal is under its floor."""
    return (
        candidate.upvotes < settings.min_upvotes
        and candidate.stars < settings.min_stars
        and candidate.comments < settings.min_comments
    )


def precheck(
    candidate: CandidateRecord,
    quality: int,
    settings: Settings,
) -> str | None:
    """Return a rejection reason, or None if the candidate may proceed."""
    if quality < settings.min_quality_score:
        return f"Quality score {quality} below minimum {settings.min_quality_score}"

    if below_engagement_floors(candidate, settings):
        return "Engagement below minimum floors"

    if is_excluded_domain(candidate.website):
        return f"Excluded domain: {extract_domain(candidate.website)}"

    keyword = find_rejection_keyword(candidate.combined_text)
    if keyword:
        return f"Rejection keyword: {keyword}"

    return None
