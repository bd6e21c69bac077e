"""
Tests for the quality scorer.
"""
import pytest

from conftest import make_candidate
from schemas.candidate import CandidateKind, Source
from scoring.quality import (
    COMMENT_BUCKETS,
    STAR_BUCKETS,
    UPVOTE_BUCKETS,
    bucket_points,
    rank,
    score,
)


class TestBucketPoints:
    """Tests for bucket lookup."""

    @pytest.mark.parametrize(
        "upvotes,expected",
        [(0, 0), (19, 0), (20, 10), (50, 20), (99, 20), (100, 30), (500, 50), (1000, 60), (99999, 60)],
    )
    def test_upvote_buckets(self, upvotes, expected):
        assert bucket_points(upvotes, UPVOTE_BUCKETS) == expected

    @pytest.mark.parametrize(
        "stars,expected",
        [(49, 0), (50, 10), (100, 20), (1000, 35), (10000, 50)],
    )
    def test_star_buckets(self, stars, expected):
        assert bucket_points(stars, STAR_BUCKETS) == expected

    def test_only_highest_bucket_counts(self):
        """Buckets are never summed."""
        assert bucket_points(60, COMMENT_BUCKETS) == 15


class TestScore:
    """Tests for score()."""

    def test_acme_scores_85(self):
        """2000 upvotes + 200-char description + website."""
        candidate = make_candidate(description="x" * 200)
        assert score(candidate) == 60 + 10 + 5 + 10

    def test_missing_website_penalized(self):
        with_site = make_candidate()
        without_site = make_candidate(website=None)
        assert score(with_site) - score(without_site) == 25

    def test_short_description_earns_nothing(self):
        candidate = make_candidate(description="x" * 50, upvotes=0)
        assert score(candidate) == 10

    def test_logo_bonus(self):
        assert score(make_candidate(logo="https://acme.io/logo.png")) == score(make_candidate()) + 5

    def test_open_source_space_counts_as_homepage(self):
        candidate = make_candidate(
            kind=CandidateKind.OPEN_SOURCE,
            website=None,
            space_url="https://huggingface.co/spaces/acme/demo",
            source=Source.HUGGING_FACE,
        )
        assert score(candidate) == score(make_candidate())

    def test_monotonic_in_engagement(self):
        previous = -100
        for value in (0, 10, 20, 50, 100, 500, 1000, 10000):
            current = score(make_candidate(upvotes=value, stars=value, comments=value))
            assert current >= previous
            previous = current


class TestRank:
    """Tests for rank()."""

    def test_best_first(self):
        low = make_candidate(name="Low", upvotes=20)
        high = make_candidate(name="High", upvotes=1000)
        ranked = rank([low, high])
        assert [c.name for c, _ in ranked] == ["High", "Low"]

    def test_stable_for_equal_scores(self):
        first = make_candidate(name="First")
        second = make_candidate(name="Second")
        ranked = rank([first, second])
        assert [c.name for c, _ in ranked] == ["First", "Second"]
