"""
Pipeline definitions for the catalog curator.

Stages, each safe to run on its own inside one time-boxed invocation:
1. Scrape - Fetch every source and admit candidates by quality
2. Assess - Classify a batch of unclassified entries, delete rejects
3. Score - Rate a batch of accepted entries on the six-axis rubric
4. Enrich - Fill long-form content for a batch of accepted entries
5. Cleanup - Remove low-quality entries and prune stale ones
"""

from .actions import ACTIONS, UnknownActionError, run_action, run_action_sync
from .full import run_full_pipeline
from .stages import (
    StageReporter,
    identify_low_quality,
    prune,
    remove_low_quality,
    run_admission,
    run_aggregation,
    run_enrichment,
    run_gatekeeping,
    run_scoring,
    run_stage,
)

__all__ = [
    "ACTIONS",
    "StageReporter",
    "UnknownActionError",
    "identify_low_quality",
    "prune",
    "remove_low_quality",
    "run_action",
    "run_action_sync",
    "run_admission",
    "run_aggregation",
    "run_enrichment",
    "run_full_pipeline",
    "run_gatekeeping",
    "run_scoring",
    "run_stage",
]
