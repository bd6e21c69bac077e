"""Batch entry points.

Every stage returns fully enumerated counters. Stages that work through the
catalog (gatekeeping, scoring, enrichment) claim one bounded slice of "still
unprocessed" entities per call, so repeated calls resume where the last one
stopped.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any

import structlog
from pydantic import BaseModel

from collectors.adapters import build_adapters
from collectors.aggregator import aggregate
from collectors.base import SourceAdapter
from core.context import CurationContext
from enrichment.enricher import WebsiteEnricher, apply_enrichment
from gatekeeper.admission import should_admit
from gatekeeper.gatekeeper import Gatekeeper
from gatekeeper.prevalidation import detect
from jobs.tracker import JobTracker
from schemas.assessment import ViabilityAssessment
from schemas.base import utcnow
from schemas.candidate import CandidateRecord
from schemas.entity import StoredEntity
from schemas.job import ActivityLevel, JobProgress, JobStatus, JobType
from schemas.results import (
    AdmissionOutcome,
    AdmissionResult,
    AdmissionSummary,
    AggregationSummary,
    CleanupSummary,
    EnrichmentSummary,
    GatekeepingSummary,
    ItemStatus,
    LowQualityEntry,
    ScoringSummary,
    StageOutcome,
)
from schemas.score import ScoreSource
from scoring.quality import rank
from storage.filters import (
    below_engagement_floors,
    find_rejection_keyword,
    is_excluded_domain,
)

logger = structlog.get_logger(__name__)


class StageReporter:
    """Forwards stage progress to a tracked job. A no-op without a job."""

    def __init__(self, tracker: JobTracker | None = None, job_id: str | None = None):
        self.tracker = tracker
        self.job_id = job_id

    @property
    def active(self) -> bool:
        return self.tracker is not None and self.job_id is not None

    def progress(
        self,
        processed: int,
        total: int | None = None,
        step: str | None = None,
        item: str | None = None,
        errors: int | None = None,
    ) -> None:
        if not self.active:
            return
        self.tracker.update_progress(  # type: ignore[union-attr]
            self.job_id,  # type: ignore[arg-type]
            JobProgress(
                items_processed=processed,
                items_total=total,
                current_step=step,
                current_item=item,
                errors=errors,
            ),
        )

    def activity(self, message: str, level: ActivityLevel = ActivityLevel.INFO) -> None:
        if self.active:
            self.tracker.add_activity(self.job_id, message, level)  # type: ignore[union-attr, arg-type]


_SILENT = StageReporter()


async def _sleep_ms(ms: int) -> None:
    if ms > 0:
        await asyncio.sleep(ms / 1000)


async def _assess(
    gatekeeper: Gatekeeper,
    candidate: CandidateRecord,
    delay_ms: int,
) -> ViabilityAssessment:
    """Assess one candidate, pacing real classifier calls."""
    if gatekeeper.classifier is None:
        return gatekeeper.assess(candidate)

    calls_before = gatekeeper.classifier_calls
    # Classifier calls block on network I/O
    verdict = await asyncio.to_thread(gatekeeper.assess, candidate)
    if gatekeeper.classifier_calls > calls_before:
        await _sleep_ms(delay_ms)
    return verdict


def _admission_rejection(assessment: ViabilityAssessment) -> str:
    return assessment.rejection_reason or "Developer tool below confidence threshold"


# ── Admission ────────────────────────────────────────────────


async def run_admission(
    ctx: CurationContext,
    candidates: list[CandidateRecord],
    skip_gatekeeper: bool = False,
    reporter: StageReporter = _SILENT,
) -> AdmissionSummary:
    """Score, gate and upsert a batch of candidates, best first."""
    settings = ctx.settings
    catalog = ctx.catalog
    gatekeeper = None if skip_gatekeeper else ctx.gatekeeper()
    summary = AdmissionSummary()

    ranked = rank(candidates)
    total = len(ranked)
    logger.info(
        "Starting admission",
        candidates=total,
        skip_gatekeeper=skip_gatekeeper,
        stored=ctx.entities.count(),
        capacity=settings.max_entities,
    )

    for index, (candidate, quality) in enumerate(ranked):
        reporter.progress(
            index, total, step="Saving candidates", item=candidate.name,
            errors=summary.errors,
        )
        try:
            reason = catalog.precheck(candidate, quality)
            if reason:
                result = AdmissionResult(outcome=AdmissionOutcome.REJECTED, reason=reason)
            else:
                assessment = None
                if gatekeeper is not None:
                    assessment = await _assess(
                        gatekeeper, candidate, settings.classifier_delay_ms
                    )
                if assessment is not None and not should_admit(
                    assessment, settings.developer_confidence_threshold
                ):
                    result = AdmissionResult(
                        outcome=AdmissionOutcome.REJECTED,
                        reason=_admission_rejection(assessment),
                    )
                else:
                    result = catalog.admit(candidate, quality, assessment)
        except Exception as e:
            summary.errors += 1
            logger.warning("Admission failed", candidate=candidate.name, error=str(e))
            continue

        summary.record(result)
        logger.debug(
            "Admission decision",
            candidate=candidate.name,
            quality=quality,
            outcome=result.outcome.value,
            reason=result.reason,
        )

    reporter.progress(total, total, step="Saving candidates", errors=summary.errors)
    logger.info("Admission complete", **summary.model_dump())
    return summary


# ── Aggregation ──────────────────────────────────────────────


async def run_aggregation(
    ctx: CurationContext,
    adapters: list[SourceAdapter] | None = None,
    reporter: StageReporter = _SILENT,
) -> AggregationSummary:
    """Fetch every source and admit the results without classification.

    Classification happens later, in bounded gatekeeping batches.
    """
    reporter.progress(0, step="Fetching sources")
    if adapters is None:
        async with ctx.http_client() as client:
            candidates, sources = await aggregate(build_adapters(ctx.sources, client))
    else:
        candidates, sources = await aggregate(adapters)

    for name, source in sources.items():
        level = ActivityLevel.SUCCESS if source.success else ActivityLevel.WARNING
        reporter.activity(f"{name}: {source.count} candidates", level)

    admission = await run_admission(ctx, candidates, skip_gatekeeper=True, reporter=reporter)
    return AggregationSummary(scraped=len(candidates), sources=sources, admission=admission)


# ── Gatekeeping ──────────────────────────────────────────────


async def run_gatekeeping(
    ctx: CurationContext,
    batch_size: int | None = None,
    reporter: StageReporter = _SILENT,
) -> GatekeepingSummary:
    """Classify one batch of unclassified entities.

    Accepted entities get classification fields; rejected ones are deleted.
    """
    settings = ctx.settings
    batch = ctx.entities.find_unclassified(batch_size or settings.gatekeeper_batch_size)
    gatekeeper = ctx.gatekeeper()
    summary = GatekeepingSummary()
    total = len(batch)

    for index, entity in enumerate(batch):
        reporter.progress(
            index, total, step="Assessing viability", item=entity.name,
            errors=summary.errors,
        )
        try:
            assessment = await _assess(
                gatekeeper, entity.to_candidate(), settings.classifier_delay_ms
            )
            if should_admit(assessment, settings.developer_confidence_threshold):
                ctx.catalog.apply_assessment(entity, assessment)
                summary.assessed += 1
                summary.items.append(ItemStatus(name=entity.name, status="accepted"))
            else:
                ctx.entities.delete(entity.id)
                summary.rejected += 1
                summary.items.append(
                    ItemStatus(
                        name=entity.name,
                        status="rejected",
                        reason=_admission_rejection(assessment),
                    )
                )
        except Exception as e:
            summary.errors += 1
            summary.items.append(ItemStatus(name=entity.name, status="error", reason=str(e)))
            logger.warning("Assessment failed", entity=entity.slug, error=str(e))

    summary.remaining = ctx.entities.count_unclassified()
    reporter.progress(total, total, step="Assessing viability", errors=summary.errors)
    logger.info(
        "Gatekeeping batch complete",
        assessed=summary.assessed,
        rejected=summary.rejected,
        errors=summary.errors,
        remaining=summary.remaining,
    )
    return summary


# ── Product scoring ──────────────────────────────────────────


async def run_scoring(
    ctx: CurationContext,
    batch_size: int | None = None,
    reporter: StageReporter = _SILENT,
) -> ScoringSummary:
    """Score one batch of classified, unscored entities on the six-axis rubric.

    Without a configured model every entity gets the rubric score, so the
    cursor always advances.
    """
    settings = ctx.settings
    batch = ctx.entities.find_unscored(batch_size or settings.score_batch_size)
    scorer = ctx.product_scorer()
    summary = ScoringSummary()
    total = len(batch)

    for index, entity in enumerate(batch):
        reporter.progress(
            index, total, step="Scoring entries", item=entity.name, errors=summary.errors
        )
        calls_before = scorer.model_calls
        try:
            if scorer.scorer is None:
                product_score = scorer.score(entity)
            else:
                # Model calls block on network I/O
                product_score = await asyncio.to_thread(scorer.score, entity)
            entity.score = product_score
            ctx.entities.update(entity)
        except Exception as e:
            summary.errors += 1
            summary.items.append(ItemStatus(name=entity.name, status="error", reason=str(e)))
            logger.warning("Scoring failed", entity=entity.slug, error=str(e))
            continue

        if product_score.scored_by == ScoreSource.LLM:
            summary.scored += 1
            status = "scored"
        else:
            summary.fallback += 1
            status = "fallback"
        summary.items.append(
            ItemStatus(name=entity.name, status=status, reason=f"composite {product_score.composite}")
        )
        if scorer.model_calls > calls_before and index < total - 1:
            await _sleep_ms(settings.score_delay_ms)

    summary.remaining = ctx.entities.count_unscored()
    reporter.progress(total, total, step="Scoring entries", errors=summary.errors)
    logger.info(
        "Scoring batch complete",
        scored=summary.scored,
        fallback=summary.fallback,
        errors=summary.errors,
        remaining=summary.remaining,
    )
    return summary


# ── Enrichment ───────────────────────────────────────────────


async def run_enrichment(
    ctx: CurationContext,
    batch_size: int | None = None,
    reporter: StageReporter = _SILENT,
) -> EnrichmentSummary:
    """Enrich one batch of classified entities from their homepages.

    A failed fetch or extraction still stamps enriched_at with fallback
    content, so the next batch moves on.
    """
    settings = ctx.settings
    batch = ctx.entities.find_unenriched(batch_size or settings.enrich_batch_size)
    summary = EnrichmentSummary()
    total = len(batch)

    if not settings.has_llm:
        summary.skipped = total
        summary.items = [
            ItemStatus(name=e.name, status="skipped", reason="LLM not configured")
            for e in batch
        ]
        summary.remaining = ctx.entities.count_unenriched()
        logger.info("Enrichment skipped, no LLM configured", pending=summary.remaining)
        return summary

    async with ctx.http_client() as client:
        enricher = WebsiteEnricher(
            client, settings.effective_enrichment_model, settings.llm_api_key
        )
        for index, entity in enumerate(batch):
            reporter.progress(index, total, step="Enriching entries", item=entity.name)
            try:
                outcome = await enricher.enrich(entity)
                ctx.entities.update(apply_enrichment(entity, outcome.data))
            except Exception as e:
                summary.failed += 1
                summary.items.append(ItemStatus(name=entity.name, status="error", reason=str(e)))
                logger.warning("Enrichment failed", entity=entity.slug, error=str(e))
                continue

            if outcome.generated:
                summary.enriched += 1
                summary.items.append(ItemStatus(name=entity.name, status="enriched"))
            else:
                summary.failed += 1
                summary.items.append(
                    ItemStatus(name=entity.name, status="fallback", reason=outcome.error)
                )
            if index < total - 1:
                await _sleep_ms(settings.enrich_delay_ms)

    summary.remaining = ctx.entities.count_unenriched()
    reporter.progress(total, total, step="Enriching entries")
    logger.info(
        "Enrichment batch complete",
        enriched=summary.enriched,
        failed=summary.failed,
        remaining=summary.remaining,
    )
    return summary


# ── Cleanup ──────────────────────────────────────────────────


def low_quality_reason(entity: StoredEntity, ctx: CurationContext) -> str | None:
    """Why a stored entity no longer belongs in the catalog, if it doesn't."""
    detection = detect(entity.name, entity.website)
    if detection is not None:
        return detection.reason

    if is_excluded_domain(entity.website):
        return "Excluded domain"

    candidate = entity.to_candidate()
    keyword = find_rejection_keyword(candidate.combined_text)
    if keyword:
        return f"Rejection keyword: {keyword}"

    if not entity.homepage:
        return "No website"

    if below_engagement_floors(candidate, ctx.settings):
        return "Engagement below minimum floors"

    return None


def identify_low_quality(ctx: CurationContext) -> list[LowQualityEntry]:
    """List stored entities that fail the admission-time quality rules."""
    entries = []
    for entity in ctx.entities.list_all():
        reason = low_quality_reason(entity, ctx)
        if reason:
            entries.append(
                LowQualityEntry(id=entity.id, slug=entity.slug, name=entity.name, reason=reason)
            )
    logger.info("Low-quality entries identified", count=len(entries))
    return entries


def prune(
    ctx: CurationContext,
    max_age_days: int | None = None,
    min_upvotes: int | None = None,
    min_stars: int | None = None,
) -> int:
    """Delete old, untouched entities with low engagement. Returns the count."""
    settings = ctx.settings
    days = settings.prune_max_age_days if max_age_days is None else max_age_days
    cutoff = utcnow() - timedelta(days=days)
    stale = ctx.entities.find_stale(
        cutoff,
        settings.prune_min_upvotes if min_upvotes is None else min_upvotes,
        settings.prune_min_stars if min_stars is None else min_stars,
    )
    removed = ctx.entities.delete_many([e.id for e in stale])
    logger.info("Pruned stale entities", removed=removed, cutoff=cutoff.isoformat())
    return removed


def remove_low_quality(
    ctx: CurationContext,
    reporter: StageReporter = _SILENT,
) -> CleanupSummary:
    """Delete identified low-quality entities (bounded), then prune stale ones."""
    entries = identify_low_quality(ctx)
    summary = CleanupSummary(identified=len(entries))
    to_delete = entries[: ctx.settings.cleanup_max_delete]

    for index, entry in enumerate(to_delete):
        reporter.progress(index, len(to_delete), step="Removing low-quality entries", item=entry.name)
        try:
            if ctx.entities.delete(entry.id):
                summary.removed += 1
        except Exception as e:
            summary.errors += 1
            logger.warning("Delete failed", entity=entry.slug, error=str(e))

    summary.pruned = prune(ctx)
    logger.info("Cleanup complete", **summary.model_dump())
    return summary


# ── Tracked execution ────────────────────────────────────────


StageRunner = Callable[[CurationContext, StageReporter], Awaitable[Any]]


def result_payload(result: Any) -> dict[str, Any]:
    """Serialize a stage result into job metadata."""
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json")
    if isinstance(result, list):
        return {
            "count": len(result),
            "items": [
                r.model_dump(mode="json") if isinstance(r, BaseModel) else r for r in result
            ],
        }
    if isinstance(result, int):
        return {"count": result}
    return {"result": result}


async def run_stage(
    ctx: CurationContext,
    job_type: JobType,
    runner: StageRunner,
    metadata: dict[str, Any] | None = None,
) -> StageOutcome:
    """Run a stage inside a tracked job.

    A stage failure moves the job to failed and is returned, not raised.
    """
    tracker = ctx.tracker
    job = tracker.create(job_type, metadata)
    tracker.start(job.id)
    reporter = StageReporter(tracker, job.id)
    reporter.activity(f"Starting {job_type.value} job...")

    try:
        result = await runner(ctx, reporter)
    except Exception as e:
        message = str(e) or type(e).__name__
        logger.exception("Stage failed", job_id=job.id, job_type=job_type.value)
        failed = tracker.fail(job.id, message)
        return StageOutcome(
            job_id=job.id, job_type=job_type, status=failed.status, ok=False, error=message
        )

    payload = result_payload(result)
    reporter.activity(f"{job_type.value} job completed", ActivityLevel.SUCCESS)
    done = tracker.complete(job.id, {"result": payload})
    return StageOutcome(
        job_id=job.id,
        job_type=job_type,
        status=done.status,
        ok=done.status == JobStatus.COMPLETED,
        result=payload,
    )
