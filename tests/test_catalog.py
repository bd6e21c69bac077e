"""
Tests for pre-admission filters and the capacity-bounded catalog store.
"""
from datetime import timedelta
from unittest.mock import patch

import pytest

from conftest import build_settings, make_candidate
from core.ids import slugify
from schemas.assessment import TargetAudience, ViabilityAssessment
from schemas.base import utcnow
from schemas.candidate import CandidateKind, Source
from schemas.entity import StoredEntity
from schemas.results import AdmissionOutcome
from scoring.quality import score
from storage.base import DuplicateKeyError
from storage.catalog import CatalogStore
from storage.filters import (
    below_engagement_floors,
    find_rejection_keyword,
    is_excluded_domain,
    precheck,
)
from storage.memory import InMemoryEntityStore


def admit(catalog, candidate, assessment=None):
    return catalog.admit(candidate, score(candidate), assessment)


# ── Filters ──────────────────────────────────────────────────


class TestExcludedDomains:
    """Tests for is_excluded_domain()."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/acme/acme",
            "https://www.youtube.com/watch?v=1",
            "https://acme.itch.io",
            "https://blog.acme.io/post",
            "medium.com/@acme",
        ],
    )
    def test_excluded(self, url):
        assert is_excluded_domain(url)

    @pytest.mark.parametrize(
        "url", ["https://acme.io", "https://notgithub.com", "https://news.ycombinator.com/item?id=1", None]
    )
    def test_allowed(self, url):
        assert not is_excluded_domain(url)


class TestPrecheck:
    """Tests for precheck()."""

    def setup_method(self):
        self.settings = build_settings()

    def test_passes(self):
        candidate = make_candidate()
        assert precheck(candidate, score(candidate), self.settings) is None

    def test_quality_checked_first(self):
        candidate = make_candidate(website="https://github.com/acme")
        reason = precheck(candidate, 10, self.settings)
        assert reason.startswith("Quality score 10")

    def test_engagement_floors(self):
        candidate = make_candidate(upvotes=9, stars=49, comments=4)
        assert below_engagement_floors(candidate, self.settings)
        assert precheck(candidate, 50, self.settings) == "Engagement below minimum floors"

    def test_any_single_floor_is_enough(self):
        assert not below_engagement_floors(
            make_candidate(upvotes=0, stars=0, comments=5), self.settings
        )

    def test_excluded_domain(self):
        candidate = make_candidate(website="https://www.github.com/acme")
        assert precheck(candidate, 90, self.settings) == "Excluded domain: github.com"

    def test_rejection_keyword_word_boundary(self):
        assert find_rejection_keyword("flashcards for medicine") == "flashcards"
        assert find_rejection_keyword("examine your pipeline") is None
        candidate = make_candidate(tags=["Quiz"])
        assert precheck(candidate, 90, self.settings) == "Rejection keyword: quiz"

    def test_open_source_space_not_excluded(self):
        candidate = make_candidate(
            kind=CandidateKind.OPEN_SOURCE,
            website=None,
            repo_url="https://github.com/acme/acme",
            source=Source.GITHUB,
        )
        assert precheck(candidate, 90, self.settings) is None


# ── CatalogStore ─────────────────────────────────────────────


class TestCatalogAdmit:
    """Tests for CatalogStore.admit()."""

    def setup_method(self):
        self.entities = InMemoryEntityStore()
        self.catalog = CatalogStore(self.entities, build_settings(max_entities=3))

    def test_acme_created_with_slug(self):
        result = admit(self.catalog, make_candidate())

        assert result.outcome == AdmissionOutcome.CREATED
        assert result.slug == "acme"
        assert self.entities.get_by_slug("acme").upvotes == 2000

    def test_rejected_by_filters_not_stored(self):
        result = admit(self.catalog, make_candidate(website="https://youtube.com/acme"))

        assert result.outcome == AdmissionOutcome.REJECTED
        assert self.entities.count() == 0

    def test_same_source_id_merges(self):
        """Three copies of one product from two feeds become one entity."""
        admit(self.catalog, make_candidate(upvotes=100, tags=["AI"]))
        admit(self.catalog, make_candidate(upvotes=300, logo="https://acme.io/l.png"))
        result = admit(
            self.catalog,
            make_candidate(name="Acme App", upvotes=200, tags=["Sales"], source=Source.PRODUCT_HUNT),
        )

        assert result.outcome == AdmissionOutcome.UPDATED
        assert self.entities.count() == 1
        stored = self.entities.get_by_source_id("hn-1")
        assert stored.upvotes == 300
        assert stored.logo == "https://acme.io/l.png"
        assert stored.tags == ["AI", "Sales"]

    def test_readmission_is_idempotent(self):
        candidate = make_candidate()
        admit(self.catalog, candidate)
        admit(self.catalog, candidate)

        assert self.entities.count() == 1
        assert self.entities.get_by_slug("acme").upvotes == 2000

    def test_matches_by_slug_without_source_id(self):
        admit(self.catalog, make_candidate(source_id=None))
        result = admit(self.catalog, make_candidate(source_id=None, stars=5000))

        assert result.outcome == AdmissionOutcome.UPDATED
        assert self.entities.count() == 1

    def test_slug_collision_gets_suffix(self):
        self.entities.create(
            StoredEntity(slug="acme", name="Acme Original", source=Source.MANUAL, source_id="m-1")
        )
        # Same slug but a different source id still merges by slug
        result = admit(self.catalog, make_candidate())
        assert result.outcome == AdmissionOutcome.UPDATED
        assert self.catalog.unique_slug("acme") == "acme-1"

    def test_unique_slug_sequence(self):
        for slug in ("widget", "widget-1"):
            self.entities.create(StoredEntity(slug=slug, name="Widget", source=Source.MANUAL))
        assert self.catalog.unique_slug("widget") == "widget-2"

    def test_assessment_applied(self):
        verdict = ViabilityAssessment(
            is_commercial_saas=True, target_audience=TargetAudience.B2B, confidence=0.8
        )
        admit(self.catalog, make_candidate(), verdict)
        stored = self.entities.get_by_slug("acme")

        assert stored.is_commercial_saas is True
        assert stored.viability_score == 0.8

    def test_target_roles_tagged(self):
        admit(self.catalog, make_candidate())
        assert self.entities.get_by_slug("acme").target_roles == ["sales", "product", "operations"]

        admit(self.catalog, make_candidate(tags=["Hiring"]))
        assert "hr" in self.entities.get_by_slug("acme").target_roles


class TestCatalogCapacity:
    """Tests for the capacity bound and eviction."""

    def setup_method(self):
        self.entities = InMemoryEntityStore()
        self.catalog = CatalogStore(self.entities, build_settings(max_entities=2))

    def _fill(self, upvotes=(20, 30)):
        for i, votes in enumerate(upvotes):
            admit(
                self.catalog,
                make_candidate(name=f"Filler {i}", source_id=f"f-{i}", upvotes=votes),
            )

    def test_never_exceeds_capacity(self):
        self._fill()
        for i in range(5):
            admit(self.catalog, make_candidate(name=f"New {i}", source_id=f"n-{i}"))
            assert self.entities.count() <= 2

    def test_evicts_lowest_for_clearly_better(self):
        self._fill()
        result = admit(self.catalog, make_candidate(name="Star", source_id="star"))

        assert result.outcome == AdmissionOutcome.CREATED
        assert result.evicted_slug == "filler-0"
        assert self.entities.get_by_slug("filler-0") is None
        assert self.entities.count() == 2

    def test_failed_insert_keeps_evictee(self):
        self._fill()
        with patch.object(
            self.entities, "replace", side_effect=DuplicateKeyError("source_id", "star")
        ):
            with pytest.raises(DuplicateKeyError):
                admit(self.catalog, make_candidate(name="Star", source_id="star"))

        assert self.entities.get_by_slug("filler-0") is not None
        assert self.entities.count() == 2

    def test_skips_when_not_clearly_better(self):
        self._fill(upvotes=(1000, 1000))
        candidate = make_candidate(name="Meh", source_id="meh", upvotes=100)
        result = admit(self.catalog, candidate)

        assert result.outcome == AdmissionOutcome.SKIPPED
        assert self.entities.get_by_slug("meh") is None

    def test_update_at_capacity_allowed(self):
        self._fill()
        result = admit(
            self.catalog, make_candidate(name="Filler 0", source_id="f-0", upvotes=25)
        )
        assert result.outcome == AdmissionOutcome.UPDATED
        assert self.entities.count() == 2

    def test_lowest_quality_ties_break_by_age(self):
        older = StoredEntity(slug="old", name="Old", source=Source.MANUAL, created_at=utcnow() - timedelta(days=2))
        newer = StoredEntity(slug="new", name="New", source=Source.MANUAL)
        self.entities.create(newer)
        self.entities.create(older)
        assert self.entities.find_lowest_quality().slug == "old"


class TestSlugify:
    """Tests for slugify()."""

    @pytest.mark.parametrize(
        "text,expected",
        [("Acme", "acme"), ("Acme  AI -- Pro!", "acme-ai-pro"), ("  --  ", "entry"), ("!!!", "entry")],
    )
    def test_slugify(self, text, expected):
        assert slugify(text) == expected
