"""Repository interfaces for catalog entities and pipeline jobs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from schemas.entity import StoredEntity
from schemas.job import JobStatus, JobType, PipelineJob


class StoreError(Exception):
    """Base class for persistence errors."""


class DuplicateKeyError(StoreError):
    """A unique key (slug or source_id) is already taken."""

    def __init__(self, field: str, value: str):
        super().__init__(f"Duplicate {field}: {value}")
        self.field = field
        self.value = value


class EntityNotFoundError(StoreError):
    """No entity with the given id exists."""


def lowest_quality_key(entity: StoredEntity) -> tuple[int, int, datetime]:
    """Sort key for eviction: least engaged first, oldest breaks ties."""
    return (entity.upvotes, entity.stars, entity.created_at)


class EntityStore(ABC):
    """Transactional CRUD over stored entities.

    Implementations enforce uniqueness of `slug` and `source_id`.
    """

    @abstractmethod
    def get(self, entity_id: str) -> StoredEntity | None:
        """Fetch an entity by id."""

    @abstractmethod
    def get_by_slug(self, slug: str) -> StoredEntity | None:
        """Fetch an entity by slug."""

    @abstractmethod
    def get_by_source_id(self, source_id: str) -> StoredEntity | None:
        """Fetch an entity by external source id."""

    def find_existing(
        self, source_id: str | None, slug: str
    ) -> StoredEntity | None:
        """Match a re-discovered candidate by source_id, then by slug."""
        if source_id:
            entity = self.get_by_source_id(source_id)
            if entity is not None:
                return entity
        return self.get_by_slug(slug)

    def slug_exists(self, slug: str) -> bool:
        return self.get_by_slug(slug) is not None

    @abstractmethod
    def create(self, entity: StoredEntity) -> StoredEntity:
        """Insert a new entity.

        Raises:
            DuplicateKeyError: slug or source_id already taken.
        """

    @abstractmethod
    def update(self, entity: StoredEntity) -> StoredEntity:
        """Replace a stored entity.

        Raises:
            EntityNotFoundError: No entity with this id.
            DuplicateKeyError: The new slug or source_id collides with another entity.
        """

    @abstractmethod
    def replace(self, evict_id: str, entity: StoredEntity) -> StoredEntity:
        """Delete `evict_id` and insert `entity` atomically.

        Neither change is kept if the insert fails.

        Raises:
            EntityNotFoundError: No entity with `evict_id`.
            DuplicateKeyError: slug or source_id already taken.
        """

    @abstractmethod
    def delete(self, entity_id: str) -> bool:
        """Delete an entity. Returns False if it did not exist."""

    def delete_many(self, entity_ids: list[str]) -> int:
        return sum(1 for entity_id in entity_ids if self.delete(entity_id))

    @abstractmethod
    def count(self) -> int:
        """Live collection size."""

    @abstractmethod
    def list_all(self) -> list[StoredEntity]:
        """All entities, oldest first."""

    @abstractmethod
    def find_lowest_quality(self) -> StoredEntity | None:
        """The eviction candidate (see `lowest_quality_key`)."""

    @abstractmethod
    def find_unclassified(self, limit: int) -> list[StoredEntity]:
        """Entities with no viability score yet, oldest first."""

    @abstractmethod
    def count_unclassified(self) -> int:
        pass

    @abstractmethod
    def find_unenriched(self, limit: int) -> list[StoredEntity]:
        """Classified entities with a homepage that were never enriched.

        Most engaged first.
        """

    @abstractmethod
    def count_unenriched(self) -> int:
        pass

    @abstractmethod
    def find_unscored(self, limit: int) -> list[StoredEntity]:
        """Classified entities without a product score, oldest first."""

    @abstractmethod
    def count_unscored(self) -> int:
        """Size of the find_unscored predicate."""

    @abstractmethod
    def find_stale(
        self, cutoff: datetime, min_upvotes: int, min_stars: int
    ) -> list[StoredEntity]:
        """Entities created and last updated before cutoff with low engagement."""


class JobStore(ABC):
    """CRUD over pipeline jobs."""

    @abstractmethod
    def create(self, job: PipelineJob) -> PipelineJob:
        pass

    @abstractmethod
    def get(self, job_id: str) -> PipelineJob | None:
        pass

    @abstractmethod
    def update(self, job: PipelineJob) -> PipelineJob:
        """Replace a stored job.

        Raises:
            StoreError: No job with this id.
        """

    @abstractmethod
    def list(
        self,
        limit: int = 20,
        job_type: JobType | None = None,
        status: JobStatus | None = None,
    ) -> list[PipelineJob]:
        """Most recent jobs first, optionally filtered."""
