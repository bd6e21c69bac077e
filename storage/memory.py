"""In-memory stores. Used by tests and one-off runs."""

from __future__ import annotations

from datetime import datetime

from schemas.entity import StoredEntity
from schemas.job import JobStatus, JobType, PipelineJob

from .base import (
    DuplicateKeyError,
    EntityNotFoundError,
    EntityStore,
    JobStore,
    StoreError,
    lowest_quality_key,
)


class InMemoryEntityStore(EntityStore):
    """Dict-backed entity store with unique slug and source_id."""

    def __init__(self) -> None:
        self._entities: dict[str, StoredEntity] = {}

    def _copy(self, entity: StoredEntity | None) -> StoredEntity | None:
        return entity.model_copy(deep=True) if entity is not None else None

    def _check_unique(self, entity: StoredEntity, ignore: str | None = None) -> None:
        for other in self._entities.values():
            if other.id in (entity.id, ignore):
                continue
            if other.slug == entity.slug:
                raise DuplicateKeyError("slug", entity.slug)
            if entity.source_id and other.source_id == entity.source_id:
                raise DuplicateKeyError("source_id", entity.source_id)

    def get(self, entity_id: str) -> StoredEntity | None:
        return self._copy(self._entities.get(entity_id))

    def get_by_slug(self, slug: str) -> StoredEntity | None:
        for entity in self._entities.values():
            if entity.slug == slug:
                return self._copy(entity)
        return None

    def get_by_source_id(self, source_id: str) -> StoredEntity | None:
        for entity in self._entities.values():
            if entity.source_id == source_id:
                return self._copy(entity)
        return None

    def create(self, entity: StoredEntity) -> StoredEntity:
        if entity.id in self._entities:
            raise DuplicateKeyError("id", entity.id)
        self._check_unique(entity)
        self._entities[entity.id] = entity.model_copy(deep=True)
        return entity

    def update(self, entity: StoredEntity) -> StoredEntity:
        if entity.id not in self._entities:
            raise EntityNotFoundError(entity.id)
        self._check_unique(entity)
        self._entities[entity.id] = entity.model_copy(deep=True)
        return entity

    def replace(self, evict_id: str, entity: StoredEntity) -> StoredEntity:
        if evict_id not in self._entities:
            raise EntityNotFoundError(evict_id)
        if entity.id in self._entities:
            raise DuplicateKeyError("id", entity.id)
        self._check_unique(entity, ignore=evict_id)
        del self._entities[evict_id]
        self._entities[entity.id] = entity.model_copy(deep=True)
        return entity

    def delete(self, entity_id: str) -> bool:
        return self._entities.pop(entity_id, None) is not None

    def count(self) -> int:
        return len(self._entities)

    def list_all(self) -> list[StoredEntity]:
        ordered = sorted(self._entities.values(), key=lambda e: e.created_at)
        return [e.model_copy(deep=True) for e in ordered]

    def find_lowest_quality(self) -> StoredEntity | None:
        if not self._entities:
            return None
        return self._copy(min(self._entities.values(), key=lowest_quality_key))

    def _unclassified(self) -> list[StoredEntity]:
        return [e for e in self.list_all() if not e.is_classified]

    def find_unclassified(self, limit: int) -> list[StoredEntity]:
        return self._unclassified()[:limit]

    def count_unclassified(self) -> int:
        return len(self._unclassified())

    def _unenriched(self) -> list[StoredEntity]:
        return [
            e
            for e in self.list_all()
            if e.viability_score is not None and e.homepage and e.enriched_at is None
        ]

    def find_unenriched(self, limit: int) -> list[StoredEntity]:
        ordered = sorted(self._unenriched(), key=lambda e: -e.engagement)
        return ordered[:limit]

    def count_unenriched(self) -> int:
        return len(self._unenriched())

    def _unscored(self) -> list[StoredEntity]:
        return [e for e in self.list_all() if e.is_classified and not e.is_scored]

    def find_unscored(self, limit: int) -> list[StoredEntity]:
        return self._unscored()[:limit]

    def count_unscored(self) -> int:
        return len(self._unscored())

    def find_stale(
        self, cutoff: datetime, min_upvotes: int, min_stars: int
    ) -> list[StoredEntity]:
        return [
            e
            for e in self.list_all()
            if e.created_at < cutoff
            and e.updated_at < cutoff
            and e.upvotes < min_upvotes
            and e.stars < min_stars
        ]


class InMemoryJobStore(JobStore):
    """Dict-backed job store."""

    def __init__(self) -> None:
        self._jobs: dict[str, PipelineJob] = {}

    def create(self, job: PipelineJob) -> PipelineJob:
        if job.id in self._jobs:
            raise DuplicateKeyError("id", job.id)
        self._jobs[job.id] = job.model_copy(deep=True)
        return job

    def get(self, job_id: str) -> PipelineJob | None:
        job = self._jobs.get(job_id)
        return job.model_copy(deep=True) if job is not None else None

    def update(self, job: PipelineJob) -> PipelineJob:
        if job.id not in self._jobs:
            raise StoreError(f"Job not found: {job.id}")
        self._jobs[job.id] = job.model_copy(deep=True)
        return job

    def list(
        self,
        limit: int = 20,
        job_type: JobType | None = None,
        status: JobStatus | None = None,
    ) -> list[PipelineJob]:
        jobs = [
            j
            for j in reversed(self._jobs.values())
            if (job_type is None or j.type == job_type)
            and (status is None or j.status == status)
        ]
        jobs.sort(key=lambda j: j.created_at, reverse=True)
        return [j.model_copy(deep=True) for j in jobs[:limit]]
