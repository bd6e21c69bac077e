"""Pipeline job tracker: a strict state machine over a JobStore."""

from __future__ import annotations

from typing import Any

import structlog

from schemas.base import utcnow
from schemas.job import (
    ActivityLevel,
    JobProgress,
    JobStatus,
    JobType,
    PipelineJob,
)
from storage.base import JobStore

logger = structlog.get_logger(__name__)


class JobNotFoundError(Exception):
    """No job with the given id."""


class InvalidJobTransitionError(Exception):
    """The requested transition is not allowed from the job's current state."""

    def __init__(self, job_id: str, current: JobStatus, action: str):
        super().__init__(f"Cannot {action} job {job_id} in state {current.value}")
        self.job_id = job_id
        self.current = current
        self.action = action


class JobTracker:
    """Lifecycle: pending -> running -> completed | failed.

    Every mutation is persisted immediately, so the job record is readable by
    other invocations while the stage is still running.
    """

    def __init__(self, store: JobStore):
        self.store = store

    def _load(self, job_id: str) -> PipelineJob:
        job = self.store.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def _require(self, job: PipelineJob, status: JobStatus, action: str) -> None:
        if job.status != status:
            raise InvalidJobTransitionError(job.id, job.status, action)

    def _save(self, job: PipelineJob) -> PipelineJob:
        job.touch()
        return self.store.update(job)

    def create(
        self, job_type: JobType, metadata: dict[str, Any] | None = None
    ) -> PipelineJob:
        job = PipelineJob(type=job_type, metadata=dict(metadata or {}))
        self.store.create(job)
        logger.debug("Job created", job_id=job.id, job_type=job_type.value)
        return job

    def start(self, job_id: str) -> PipelineJob:
        job = self._load(job_id)
        self._require(job, JobStatus.PENDING, "start")
        job.status = JobStatus.RUNNING
        job.started_at = utcnow()
        logger.info("Job started", job_id=job.id, job_type=job.type.value)
        return self._save(job)

    def update_progress(self, job_id: str, progress: JobProgress) -> PipelineJob:
        """Record progress of a running job.

        Percentage is recomputed only when items_total is known and positive.
        """
        job = self._load(job_id)
        self._require(job, JobStatus.RUNNING, "update")

        if progress.items_total:
            pct = progress.items_processed / progress.items_total * 100
            job.progress = min(100.0, max(0.0, pct))

        job.items_processed = progress.items_processed
        if progress.items_total is not None:
            job.items_total = progress.items_total
        if progress.current_step:
            job.current_step = progress.current_step
        job.current_item = progress.current_item
        if progress.errors is not None:
            job.errors = progress.errors
        if progress.current_item:
            job.log(f"Processing: {progress.current_item}")
        return self._save(job)

    def add_activity(
        self,
        job_id: str,
        message: str,
        level: ActivityLevel = ActivityLevel.INFO,
    ) -> PipelineJob:
        job = self._load(job_id)
        if job.status.is_terminal:
            raise InvalidJobTransitionError(job.id, job.status, "log activity on")
        job.log(message, level)
        return self._save(job)

    def complete(
        self, job_id: str, metadata: dict[str, Any] | None = None
    ) -> PipelineJob:
        job = self._load(job_id)
        self._require(job, JobStatus.RUNNING, "complete")
        job.status = JobStatus.COMPLETED
        job.progress = 100.0
        job.completed_at = utcnow()
        job.current_item = None
        if metadata:
            job.metadata = {**job.metadata, **metadata}
        logger.info("Job completed", job_id=job.id, job_type=job.type.value)
        return self._save(job)

    def fail(self, job_id: str, error_message: str) -> PipelineJob:
        job = self._load(job_id)
        self._require(job, JobStatus.RUNNING, "fail")
        job.status = JobStatus.FAILED
        job.completed_at = utcnow()
        job.error_message = error_message
        job.current_item = None
        job.log(f"Error: {error_message}", ActivityLevel.ERROR)
        logger.error(
            "Job failed", job_id=job.id, job_type=job.type.value, error=error_message
        )
        return self._save(job)

    def get(self, job_id: str) -> PipelineJob | None:
        return self.store.get(job_id)

    def list_jobs(
        self,
        limit: int = 10,
        job_type: JobType | None = None,
        status: JobStatus | None = None,
    ) -> list[PipelineJob]:
        return self.store.list(limit=limit, job_type=job_type, status=status)
