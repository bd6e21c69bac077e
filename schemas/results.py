"""Result summaries returned by batch entry points.

Every counter is explicit so callers never infer success from silence.
"""

from enum import Enum
from typing import Any

from pydantic import Field, computed_field

from .base import BaseSchema
from .job import JobStatus, JobType


class AdmissionOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    REJECTED = "rejected"


class AdmissionResult(BaseSchema):
    """Decision for one candidate."""

    outcome: AdmissionOutcome
    slug: str | None = None
    reason: str | None = None
    evicted_slug: str | None = None


class AdmissionSummary(BaseSchema):
    created: int = 0
    updated: int = 0
    skipped: int = 0
    rejected: int = 0
    errors: int = 0
    evicted: int = 0

    def record(self, result: AdmissionResult) -> None:
        if result.outcome == AdmissionOutcome.CREATED:
            self.created += 1
        elif result.outcome == AdmissionOutcome.UPDATED:
            self.updated += 1
        elif result.outcome == AdmissionOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.rejected += 1
        if result.evicted_slug:
            self.evicted += 1


class SourceSummary(BaseSchema):
    success: bool
    count: int
    error: str | None = None


class AggregationSummary(BaseSchema):
    scraped: int = 0
    sources: dict[str, SourceSummary] = Field(default_factory=dict)
    admission: AdmissionSummary = Field(default_factory=AdmissionSummary)


class ItemStatus(BaseSchema):
    name: str
    status: str
    reason: str | None = None


class GatekeepingSummary(BaseSchema):
    assessed: int = 0
    rejected: int = 0
    errors: int = 0
    remaining: int = 0
    items: list[ItemStatus] = Field(default_factory=list)


class EnrichmentSummary(BaseSchema):
    enriched: int = 0
    failed: int = 0
    skipped: int = 0
    remaining: int = 0
    items: list[ItemStatus] = Field(default_factory=list)


class ScoringSummary(BaseSchema):
    scored: int = 0
    fallback: int = 0
    errors: int = 0
    remaining: int = 0
    items: list[ItemStatus] = Field(default_factory=list)


class LowQualityEntry(BaseSchema):
    id: str
    slug: str
    name: str
    reason: str


class CleanupSummary(BaseSchema):
    identified: int = 0
    removed: int = 0
    pruned: int = 0
    errors: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_removed(self) -> int:
        return self.removed + self.pruned


class StageOutcome(BaseSchema):
    """Outcome of one tracked stage invocation."""

    job_id: str
    job_type: JobType
    status: JobStatus
    ok: bool
    result: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None


class PipelineOutcome(BaseSchema):
    """Outcome of a composite full-pipeline run."""

    job_id: str
    ok: bool
    failed_stage: str | None = None
    stages: dict[str, StageOutcome] = Field(default_factory=dict)
