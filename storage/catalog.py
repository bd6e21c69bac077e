"""Capacity-bounded upsert store."""

from __future__ import annotations

import structlog

from core.config import Settings
from core.ids import slugify
from schemas.assessment import ViabilityAssessment
from schemas.candidate import CandidateRecord
from schemas.entity import StoredEntity
from schemas.results import AdmissionOutcome, AdmissionResult
from scoring.roles import infer_target_roles

from .base import EntityStore
from .filters import precheck

logger = structlog.get_logger(__name__)


def tag_roles(entity: StoredEntity) -> StoredEntity:
    entity.target_roles = infer_target_roles(
        entity.name, entity.tagline, entity.description, entity.category, entity.tags
    )
    return entity


class CatalogStore:
    """Admits candidates into a catalog that never exceeds `max_entities`.

    Decisions, in order: reject by pre-admission filters, update an existing
    entry matched by source_id or slug, create while below capacity, and at
    capacity evict the least engaged entry only for a clearly better
    candidate.
    """

    def __init__(self, entities: EntityStore, settings: Settings):
        self.entities = entities
        self.settings = settings

    @property
    def capacity(self) -> int:
        return self.settings.max_entities

    def precheck(self, candidate: CandidateRecord, quality: int) -> str | None:
        return precheck(candidate, quality, self.settings)

    def unique_slug(self, base: str) -> str:
        """First free slug among base, base-1, base-2, ..."""
        slug = base
        counter = 1
        while self.entities.slug_exists(slug):
            slug = f"{base}-{counter}"
            counter += 1
        return slug

    def admit(
        self,
        candidate: CandidateRecord,
        quality: int,
        assessment: ViabilityAssessment | None = None,
    ) -> AdmissionResult:
        """Upsert one candidate.

        Raises:
            StoreError: Persistence failed (e.g. a unique-key race).
        """
        reason = self.precheck(candidate, quality)
        if reason:
            return AdmissionResult(outcome=AdmissionOutcome.REJECTED, reason=reason)

        base_slug = slugify(candidate.name)
        existing = self.entities.find_existing(candidate.source_id, base_slug)
        if existing is not None:
            existing.merge_candidate(candidate)
            tag_roles(existing)
            if assessment is not None:
                existing.apply_assessment(assessment)
            self.entities.update(existing)
            logger.debug("Entity updated", slug=existing.slug, quality=quality)
            return AdmissionResult(outcome=AdmissionOutcome.UPDATED, slug=existing.slug)

        evictee = None
        if self.entities.count() >= self.capacity:
            lowest = self.entities.find_lowest_quality()
            if lowest is None:
                return AdmissionResult(
                    outcome=AdmissionOutcome.SKIPPED, reason="At capacity"
                )
            threshold = lowest.engagement + self.settings.eviction_margin
            if quality <= threshold:
                return AdmissionResult(
                    outcome=AdmissionOutcome.SKIPPED,
                    reason=f"At capacity; quality {quality} does not beat {threshold}",
                )
            evictee = lowest

        entity = StoredEntity.from_candidate(
            candidate, self.unique_slug(base_slug), assessment
        )
        tag_roles(entity)
        if evictee is None:
            self.entities.create(entity)
        else:
            self.entities.replace(evictee.id, entity)
            logger.info(
                "Entity evicted",
                evicted=evictee.slug,
                evicted_engagement=evictee.engagement,
                replacement=entity.slug,
                quality=quality,
            )
        logger.debug("Entity created", slug=entity.slug, quality=quality)
        return AdmissionResult(
            outcome=AdmissionOutcome.CREATED,
            slug=entity.slug,
            evicted_slug=evictee.slug if evictee else None,
        )

    def apply_assessment(
        self, entity: StoredEntity, assessment: ViabilityAssessment
    ) -> StoredEntity:
        """Persist classification fields on an existing entity."""
        entity.apply_assessment(assessment)
        return self.entities.update(entity)
