"""Candidate aggregator: concurrent fan-out over source adapters."""

from __future__ import annotations

import asyncio

import structlog

from collectors.base import AdapterResult, SourceAdapter
from schemas.candidate import CandidateRecord
from schemas.results import SourceSummary

logger = structlog.get_logger(__name__)


async def _fetch_isolated(adapter: SourceAdapter) -> AdapterResult:
    try:
        return await adapter.fetch()
    except Exception as e:
        logger.warning("Adapter raised", source=adapter.name, error=str(e))
        return AdapterResult(success=False, error=str(e) or type(e).__name__)


async def aggregate(
    adapters: list[SourceAdapter],
) -> tuple[list[CandidateRecord], dict[str, SourceSummary]]:
    """Run every adapter concurrently and collect their candidates.

    A failing adapter is reported in its own summary and never affects the
    others. No filtering happens here.

    Returns:
        Tuple of (all candidates in adapter order, per-source summaries)
    """
    results = await asyncio.gather(*(_fetch_isolated(a) for a in adapters))

    candidates: list[CandidateRecord] = []
    sources: dict[str, SourceSummary] = {}
    for adapter, result in zip(adapters, results):
        candidates.extend(result.products)
        sources[adapter.name] = SourceSummary(
            success=result.success,
            count=len(result.products),
            error=result.error,
        )
        logger.info(
            "Source fetched",
            source=adapter.name,
            success=result.success,
            count=len(result.products),
            error=result.error,
        )

    return candidates, sources
