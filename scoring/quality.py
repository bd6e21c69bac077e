"""Quality scorer: deterministic heuristic over engagement and data richness.

Pure function, no I/O. Each signal awards points from the highest bucket it
reaches; buckets are never summed.
"""

from __future__ import annotations

from schemas.candidate import CandidateRecord

# (threshold, points), strictly decreasing in both columns
UPVOTE_BUCKETS: tuple[tuple[int, int], ...] = (
    (1000, 60),
    (500, 50),
    (100, 30),
    (50, 20),
    (20, 10),
)
STAR_BUCKETS: tuple[tuple[int, int], ...] = (
    (10000, 50),
    (1000, 35),
    (100, 20),
    (50, 10),
)
COMMENT_BUCKETS: tuple[tuple[int, int], ...] = (
    (50, 15),
    (10, 10),
)

DESCRIPTION_MIN_CHARS = 50
DESCRIPTION_RICH_CHARS = 200
DESCRIPTION_BONUS = 10
RICH_DESCRIPTION_BONUS = 5
LOGO_BONUS = 5
WEBSITE_BONUS = 10
NO_WEBSITE_PENALTY = -15


def bucket_points(value: int, buckets: tuple[tuple[int, int], ...]) -> int:
    """Points for the highest threshold reached, 0 below the lowest."""
    for threshold, points in buckets:
        if value >= threshold:
            return points
    return 0


def score(candidate: CandidateRecord) -> int:
    """Compute the quality score of a candidate.

    Monotonically non-decreasing in upvotes, stars and comments.
    """
    total = 0
    total += bucket_points(candidate.upvotes, UPVOTE_BUCKETS)
    total += bucket_points(candidate.stars, STAR_BUCKETS)
    total += bucket_points(candidate.comments, COMMENT_BUCKETS)

    description = candidate.description or ""
    if len(description) > DESCRIPTION_MIN_CHARS:
        total += DESCRIPTION_BONUS
    if len(description) >= DESCRIPTION_RICH_CHARS:
        total += RICH_DESCRIPTION_BONUS

    if candidate.logo:
        total += LOGO_BONUS

    # A website is near-necessary evidence of a real product
    if candidate.homepage:
        total += WEBSITE_BONUS
    else:
        total += NO_WEBSITE_PENALTY

    return total


def rank(candidates: list[CandidateRecord]) -> list[tuple[CandidateRecord, int]]:
    """Score candidates and order them best first.

    Stable: equal scores keep their input order.
    """
    scored = [(c, score(c)) for c in candidates]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored
