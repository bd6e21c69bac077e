"""Candidate record schemas: one discovered entity before admission."""

from datetime import datetime
from enum import Enum

from pydantic import ConfigDict, Field, field_validator

from .base import BaseSchema, utcnow


class Source(str, Enum):
    """Origin feed of a candidate."""

    PRODUCT_HUNT = "PRODUCT_HUNT"
    GITHUB = "GITHUB"
    HACKER_NEWS = "HACKER_NEWS"
    THERES_AN_AI = "THERES_AN_AI"
    HUGGING_FACE = "HUGGING_FACE"
    REDDIT = "REDDIT"
    MANUAL = "MANUAL"
    TAVILY = "TAVILY"
    TAVILY_LIVE = "TAVILY_LIVE"
    FUTURETOOLS = "FUTURETOOLS"


class CandidateKind(str, Enum):
    """Tag of the candidate variant."""

    COMMERCIAL = "commercial"
    OPEN_SOURCE = "open_source"


class CandidateRecord(BaseSchema):
    """A raw, unvalidated entity discovered from an external feed.

    Immutable. Shared fields apply to every kind; the open-source fields are
    only populated when kind is OPEN_SOURCE.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    kind: CandidateKind = CandidateKind.COMMERCIAL
    name: str = Field(..., min_length=1, max_length=255)
    tagline: str | None = None
    description: str | None = None
    website: str | None = Field(None, max_length=500)
    logo: str | None = None
    category: str | None = None
    tags: tuple[str, ...] = ()
    launch_date: datetime = Field(default_factory=utcnow)
    source: Source
    source_url: str | None = None
    source_id: str | None = None

    # Engagement signals
    upvotes: int = Field(default=0, ge=0)
    stars: int = Field(default=0, ge=0)
    comments: int = Field(default=0, ge=0)

    # Open-source variant
    repo_url: str | None = None
    space_url: str | None = None
    license: str | None = None
    runtime: str | None = None
    author: str | None = None
    downloads: int = Field(default=0, ge=0)

    @field_validator("tags", mode="before")
    @classmethod
    def _ordered_unique_tags(cls, v: object) -> tuple[str, ...]:
        if v is None:
            return ()
        seen: dict[str, None] = {}
        for tag in v:  # type: ignore[union-attr]
            tag = str(tag).strip()
            if tag:
                seen.setdefault(tag, None)
        return tuple(seen)

    @field_validator("upvotes", "stars", "comments", "downloads", mode="before")
    @classmethod
    def _none_is_zero(cls, v: object) -> object:
        return 0 if v is None else v

    @property
    def dedup_key(self) -> str:
        """Key used for per-batch verdict memoization."""
        return self.source_id or self.name

    @property
    def homepage(self) -> str | None:
        """Website, falling back to the hosted space or repo for open-source entries."""
        if self.website:
            return self.website
        if self.is_open_source:
            return self.space_url or self.repo_url
        return None

    @property
    def combined_text(self) -> str:
        """Lowercased name, tagline, description and tags for keyword checks."""
        parts = [
            self.name,
            self.tagline or "",
            self.description or "",
            " ".join(self.tags),
        ]
        return " ".join(parts).lower()

    @property
    def is_open_source(self) -> bool:
        return self.kind == CandidateKind.OPEN_SOURCE
