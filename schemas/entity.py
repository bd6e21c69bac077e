"""Stored entity schemas: the admitted, persisted form of a candidate."""

from datetime import datetime

from pydantic import Field

from core.ids import generate_id

from .assessment import BusinessCategory, ProductType, TargetAudience, ViabilityAssessment
from .base import BaseSchema, TimestampMixin, utcnow
from .candidate import CandidateKind, CandidateRecord, Source
from .score import ProductScore


class StoredEntity(BaseSchema, TimestampMixin):
    """Full catalog entry."""

    id: str = Field(default_factory=generate_id)
    slug: str = Field(..., max_length=300)
    kind: CandidateKind = CandidateKind.COMMERCIAL

    name: str = Field(..., max_length=255)
    tagline: str | None = None
    description: str | None = None
    website: str | None = None
    logo: str | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    launch_date: datetime | None = None
    source: Source
    source_url: str | None = None
    source_id: str | None = None

    upvotes: int = 0
    stars: int = 0
    comments: int = 0

    repo_url: str | None = None
    space_url: str | None = None
    license: str | None = None
    runtime: str | None = None
    author: str | None = None
    downloads: int = 0

    # Classification (None until the gatekeeping stage has run)
    is_commercial_saas: bool | None = None
    viability_score: float | None = None
    target_audience: TargetAudience | None = None
    product_type: ProductType | None = None
    business_category: BusinessCategory | None = None

    # Enrichment
    extended_description: str | None = None
    key_features: list[str] = Field(default_factory=list)
    use_cases: list[str] = Field(default_factory=list)
    limitations: list[str] = Field(default_factory=list)
    best_for: list[str] = Field(default_factory=list)
    enriched_at: datetime | None = None

    # Scoring
    target_roles: list[str] = Field(default_factory=list)
    score: ProductScore | None = None

    @property
    def is_classified(self) -> bool:
        return self.viability_score is not None

    @property
    def is_scored(self) -> bool:
        return self.score is not None

    @property
    def homepage(self) -> str | None:
        """Website, falling back to the hosted space or repo for open-source entries."""
        if self.website:
            return self.website
        if self.kind == CandidateKind.OPEN_SOURCE:
            return self.space_url or self.repo_url
        return None

    @property
    def engagement(self) -> int:
        """Combined engagement used when comparing against an eviction candidate."""
        return self.upvotes + self.stars

    @classmethod
    def from_candidate(
        cls,
        candidate: CandidateRecord,
        slug: str,
        assessment: ViabilityAssessment | None = None,
    ) -> "StoredEntity":
        """Build a new entity from a candidate and an optional verdict."""
        entity = cls(
            slug=slug,
            kind=candidate.kind,
            name=candidate.name,
            tagline=candidate.tagline,
            description=candidate.description,
            website=candidate.website,
            logo=candidate.logo,
            category=candidate.category,
            tags=list(candidate.tags),
            launch_date=candidate.launch_date,
            source=candidate.source,
            source_url=candidate.source_url,
            source_id=candidate.source_id,
            upvotes=candidate.upvotes,
            stars=candidate.stars,
            comments=candidate.comments,
            repo_url=candidate.repo_url,
            space_url=candidate.space_url,
            license=candidate.license,
            runtime=candidate.runtime,
            author=candidate.author,
            downloads=candidate.downloads,
        )
        if assessment is not None:
            entity.apply_assessment(assessment)
        return entity

    def merge_candidate(self, candidate: CandidateRecord) -> None:
        """Merge a re-discovered candidate into this entity in place.

        Non-null incoming fields win; engagement counters keep their maximum.
        """
        for field in (
            "tagline",
            "description",
            "website",
            "logo",
            "category",
            "source_url",
            "repo_url",
            "space_url",
            "license",
            "runtime",
            "author",
        ):
            value = getattr(candidate, field)
            if value:
                setattr(self, field, value)

        if candidate.tags:
            merged = dict.fromkeys(self.tags)
            merged.update(dict.fromkeys(candidate.tags))
            self.tags = list(merged)
        if self.source_id is None and candidate.source_id:
            self.source_id = candidate.source_id

        self.upvotes = max(self.upvotes, candidate.upvotes)
        self.stars = max(self.stars, candidate.stars)
        self.comments = max(self.comments, candidate.comments)
        self.downloads = max(self.downloads, candidate.downloads)
        self.updated_at = utcnow()

    def apply_assessment(self, assessment: ViabilityAssessment) -> None:
        """Copy classification fields from a verdict."""
        self.is_commercial_saas = assessment.is_commercial_saas
        self.viability_score = assessment.confidence
        self.target_audience = assessment.target_audience
        self.product_type = assessment.product_type
        self.business_category = assessment.business_category
        self.updated_at = utcnow()

    def to_candidate(self) -> CandidateRecord:
        """Rebuild a candidate view of this entity for re-classification."""
        return CandidateRecord(
            kind=self.kind,
            name=self.name,
            tagline=self.tagline,
            description=self.description,
            website=self.website,
            logo=self.logo,
            category=self.category,
            tags=self.tags,
            launch_date=self.launch_date or self.created_at,
            source=self.source,
            source_url=self.source_url,
            source_id=self.source_id,
            upvotes=self.upvotes,
            stars=self.stars,
            comments=self.comments,
            repo_url=self.repo_url,
            space_url=self.space_url,
            license=self.license,
            runtime=self.runtime,
            author=self.author,
            downloads=self.downloads,
        )
