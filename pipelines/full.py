"""Full pipeline: scrape -> assess -> score -> enrich -> cleanup as child jobs."""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from core.context import CurationContext
from pipelines.stages import (
    StageReporter,
    StageRunner,
    remove_low_quality,
    run_aggregation,
    run_enrichment,
    run_gatekeeping,
    run_scoring,
    run_stage,
)
from schemas.job import ActivityLevel, JobProgress, JobType
from schemas.results import PipelineOutcome

logger = structlog.get_logger(__name__)


async def scrape(ctx: CurationContext, reporter: StageReporter) -> Any:
    return await run_aggregation(ctx, reporter=reporter)


async def assess(ctx: CurationContext, reporter: StageReporter) -> Any:
    return await run_gatekeeping(ctx, reporter=reporter)


async def score(ctx: CurationContext, reporter: StageReporter) -> Any:
    return await run_scoring(ctx, reporter=reporter)


async def enrich(ctx: CurationContext, reporter: StageReporter) -> Any:
    return await run_enrichment(ctx, reporter=reporter)


async def cleanup(ctx: CurationContext, reporter: StageReporter) -> Any:
    return remove_low_quality(ctx, reporter=reporter)


STEPS: list[tuple[str, JobType, StageRunner]] = [
    ("scrape", JobType.SCRAPE, scrape),
    ("assess", JobType.ASSESS, assess),
    ("score", JobType.SCORE, score),
    ("enrich", JobType.ENRICH, enrich),
    ("cleanup", JobType.CLEANUP, cleanup),
]


async def run_full_pipeline(
    ctx: CurationContext,
    steps: list[tuple[str, JobType, StageRunner]] | None = None,
) -> PipelineOutcome:
    """Run every stage in order, stopping at the first failure.

    Each stage is its own job carrying the parent id. The parent ends failed
    with failed_stage in its metadata when any child fails.
    """
    steps = steps if steps is not None else STEPS
    tracker = ctx.tracker
    parent = tracker.create(JobType.FULL_PIPELINE)
    tracker.start(parent.id)
    tracker.add_activity(parent.id, "Starting full pipeline...")
    logger.info("Starting full pipeline", job_id=parent.id)

    outcome = PipelineOutcome(job_id=parent.id, ok=True)
    total = len(steps)

    for index, (name, job_type, runner) in enumerate(steps):
        tracker.update_progress(
            parent.id,
            JobProgress(items_processed=index, items_total=total, current_step=name),
        )
        child = await run_stage(
            ctx,
            job_type,
            runner,
            metadata={"parent_job_id": parent.id, "stage": name},
        )
        outcome.stages[name] = child

        if not child.ok:
            outcome.ok = False
            outcome.failed_stage = name
            _mark_failed_stage(ctx, parent.id, name)
            tracker.fail(parent.id, f"Stage {name} failed: {child.error}")
            logger.error(
                "Full pipeline failed", job_id=parent.id, stage=name, error=child.error
            )
            return outcome

        tracker.add_activity(parent.id, f"Stage {name} completed", ActivityLevel.SUCCESS)
        if index < total - 1 and ctx.settings.stage_delay_ms > 0:
            await asyncio.sleep(ctx.settings.stage_delay_ms / 1000)

    tracker.complete(
        parent.id,
        {"stages": {name: stage.job_id for name, stage in outcome.stages.items()}},
    )
    logger.info("Full pipeline complete", job_id=parent.id)
    return outcome


def _mark_failed_stage(ctx: CurationContext, job_id: str, stage: str) -> None:
    job = ctx.jobs.get(job_id)
    if job is not None:
        job.metadata = {**job.metadata, "failed_stage": stage}
        ctx.jobs.update(job)
