"""Pipeline job schemas: the durable ledger of orchestrated work."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from core.ids import generate_id

from .base import BaseSchema, TimestampMixin, utcnow

ACTIVITY_LOG_LIMIT = 20


class JobType(str, Enum):
    """Kind of orchestrated work."""

    SCRAPE = "scrape"
    ASSESS = "assess"
    SCORE = "score"
    ENRICH = "enrich"
    CLEANUP = "cleanup"
    FULL_PIPELINE = "full-pipeline"


class JobStatus(str, Enum):
    """Job state machine: pending -> running -> completed | failed."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class ActivityLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ActivityLogEntry(BaseSchema):
    """A timestamped message in a job's activity log."""

    timestamp: datetime = Field(default_factory=utcnow)
    message: str
    level: ActivityLevel = ActivityLevel.INFO


class JobProgress(BaseSchema):
    """A progress report from a running stage."""

    items_processed: int = Field(default=0, ge=0)
    items_total: int | None = Field(default=None, ge=0)
    current_step: str | None = None
    current_item: str | None = None
    errors: int | None = Field(default=None, ge=0)


class PipelineJob(BaseSchema, TimestampMixin):
    """A unit of orchestrated work tracked across invocations."""

    id: str = Field(default_factory=generate_id)
    type: JobType
    status: JobStatus = JobStatus.PENDING
    progress: float = Field(default=0.0, ge=0.0, le=100.0)
    items_processed: int = 0
    items_total: int | None = None
    current_step: str | None = None
    current_item: str | None = None
    errors: int = 0
    activity_log: list[ActivityLogEntry] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    time_elapsed: int = 0
    error_message: str | None = None

    def log(self, message: str, level: ActivityLevel = ActivityLevel.INFO) -> None:
        """Append an activity entry, keeping only the most recent entries."""
        self.activity_log.append(ActivityLogEntry(message=message, level=level))
        if len(self.activity_log) > ACTIVITY_LOG_LIMIT:
            self.activity_log = self.activity_log[-ACTIVITY_LOG_LIMIT:]

    def touch(self) -> None:
        """Refresh updated_at and the elapsed-seconds counter."""
        now = utcnow()
        self.updated_at = now
        if self.started_at is not None:
            end = self.completed_at or now
            self.time_elapsed = max(0, int((end - self.started_at).total_seconds()))
