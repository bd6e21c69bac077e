"""Source adapters and the registry that builds them from sources.yaml."""

from __future__ import annotations

import structlog

from collectors.adapters.hacker_news import HackerNewsAdapter
from collectors.adapters.hugging_face import HuggingFaceAdapter
from collectors.base import SourceAdapter
from collectors.http_client import HttpClient
from core.config import SourcesConfig

logger = structlog.get_logger(__name__)

ADAPTERS: dict[str, type[HackerNewsAdapter] | type[HuggingFaceAdapter]] = {
    "hacker_news": HackerNewsAdapter,
    "hugging_face": HuggingFaceAdapter,
}


def build_adapters(sources: SourcesConfig, client: HttpClient) -> list[SourceAdapter]:
    """Instantiate an adapter for every enabled source with a known type."""
    adapters: list[SourceAdapter] = []
    for source in sources.enabled:
        adapter_cls = ADAPTERS.get(source.source_type)
        if adapter_cls is None:
            logger.warning(
                "Unknown source type",
                source_id=source.source_id,
                source_type=source.source_type,
            )
            continue
        adapters.append(
            adapter_cls(client, source.metadata, name=source.source_id, url=source.url)
        )
    return adapters


__all__ = ["ADAPTERS", "HackerNewsAdapter", "HuggingFaceAdapter", "build_adapters"]
