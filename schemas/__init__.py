"""
Pydantic schemas for the catalog curator.

Contract-first design: these schemas define the data contracts
between all pipeline components.
"""

from .assessment import (
    AssessmentSource,
    BusinessCategory,
    ProductType,
    TargetAudience,
    Taxonomy,
    ViabilityAssessment,
)
from .candidate import CandidateKind, CandidateRecord, Source
from .entity import StoredEntity
from .job import (
    ACTIVITY_LOG_LIMIT,
    ActivityLevel,
    ActivityLogEntry,
    JobProgress,
    JobStatus,
    JobType,
    PipelineJob,
)
from .results import (
    AdmissionOutcome,
    AdmissionResult,
    AdmissionSummary,
    AggregationSummary,
    CleanupSummary,
    EnrichmentSummary,
    GatekeepingSummary,
    ItemStatus,
    LowQualityEntry,
    PipelineOutcome,
    SourceSummary,
    ScoringSummary,
    StageOutcome,
)
from .score import CATEGORY_WEIGHTS, ProductScore, ScoreSource, composite_score

__all__ = [
    # Core entities
    "CandidateKind",
    "CandidateRecord",
    "Source",
    "StoredEntity",
    "ViabilityAssessment",
    "TargetAudience",
    "ProductType",
    "BusinessCategory",
    "AssessmentSource",
    "Taxonomy",
    # Jobs
    "ACTIVITY_LOG_LIMIT",
    "ActivityLevel",
    "ActivityLogEntry",
    "JobProgress",
    "JobStatus",
    "JobType",
    "PipelineJob",
    # Results
    "AdmissionOutcome",
    "AdmissionResult",
    "AdmissionSummary",
    "AggregationSummary",
    "CleanupSummary",
    "EnrichmentSummary",
    "GatekeepingSummary",
    "ItemStatus",
    "LowQualityEntry",
    "PipelineOutcome",
    "ScoringSummary",
    "SourceSummary",
    "StageOutcome",
    # Scores
    "CATEGORY_WEIGHTS",
    "ProductScore",
    "ScoreSource",
    "composite_score",
]
