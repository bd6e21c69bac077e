"""Named actions shared by the CLI and the HTTP surface."""

from __future__ import annotations

import asyncio
from typing import Any

from core.context import CurationContext
from pipelines.full import assess, cleanup, enrich, run_full_pipeline, score, scrape
from pipelines.stages import (
    StageReporter,
    StageRunner,
    identify_low_quality,
    prune,
    run_stage,
)
from schemas.job import JobType


class UnknownActionError(ValueError):
    """Raised for an action name outside ACTIONS."""

    def __init__(self, action: str):
        super().__init__(f"Unknown action: {action}")
        self.action = action


async def _identify(ctx: CurationContext, reporter: StageReporter) -> Any:
    return identify_low_quality(ctx)


async def _prune(ctx: CurationContext, reporter: StageReporter) -> Any:
    return prune(ctx)


STAGE_ACTIONS: dict[str, tuple[JobType, StageRunner]] = {
    "scrape": (JobType.SCRAPE, scrape),
    "assess": (JobType.ASSESS, assess),
    "score": (JobType.SCORE, score),
    "enrich": (JobType.ENRICH, enrich),
    "cleanup-identify": (JobType.CLEANUP, _identify),
    "cleanup-remove": (JobType.CLEANUP, cleanup),
    "cleanup-prune": (JobType.CLEANUP, _prune),
}

ACTIONS = (*STAGE_ACTIONS, "full-pipeline")


async def run_action(ctx: CurationContext, action: str) -> dict[str, Any]:
    """Run one named action as a tracked job and return its outcome as a dict."""
    if action == "full-pipeline":
        outcome = await run_full_pipeline(ctx)
        return outcome.model_dump(mode="json")

    if action not in STAGE_ACTIONS:
        raise UnknownActionError(action)

    job_type, runner = STAGE_ACTIONS[action]
    outcome = await run_stage(ctx, job_type, runner, metadata={"action": action})
    return outcome.model_dump(mode="json")


def run_action_sync(ctx: CurationContext, action: str) -> dict[str, Any]:
    """Synchronous wrapper for run_action."""
    return asyncio.run(run_action(ctx, action))
