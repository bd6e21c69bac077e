"""Website enrichment for admitted catalog entries."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from collectors.http_client import HttpClient
from enrichment.llm import EnrichedProductData, extract_product_content
from enrichment.normalizers import extract_main_content, extract_meta
from schemas.base import utcnow
from schemas.entity import StoredEntity

logger = structlog.get_logger(__name__)

LIMITED_INFORMATION = "Limited information available"


@dataclass
class EnrichmentOutcome:
    """Result of enriching one entity."""

    data: EnrichedProductData
    generated: bool
    error: str | None = None


def fallback_content(entity: StoredEntity) -> EnrichedProductData:
    """Content derived only from fields the entity already has."""
    parts = [p for p in (entity.tagline, entity.description) if p]
    description = "\n\n".join(dict.fromkeys(parts)) or entity.name
    return EnrichedProductData(
        extended_description=description,
        key_features=entity.tags[:5],
        use_cases=[],
        limitations=[LIMITED_INFORMATION],
        best_for=[],
    )


def apply_enrichment(entity: StoredEntity, data: EnrichedProductData) -> StoredEntity:
    """Copy enrichment fields onto the entity and stamp enriched_at."""
    entity.extended_description = data.extended_description
    entity.key_features = list(data.key_features)
    entity.use_cases = list(data.use_cases)
    entity.limitations = list(data.limitations)
    entity.best_for = list(data.best_for)
    entity.enriched_at = utcnow()
    entity.updated_at = entity.enriched_at
    return entity


class WebsiteEnricher:
    """Fetches an entry's homepage and asks the LLM for structured content."""

    def __init__(self, client: HttpClient, model: str, api_key: str = ""):
        self.client = client
        self.model = model
        self.api_key = api_key

    async def fetch_content(self, url: str) -> str | None:
        result = await self.client.fetch(
            url, headers={"Accept": "text/html,application/xhtml+xml"}
        )
        if not result.success or not result.content:
            logger.info("Homepage fetch failed", url=url, error=result.error)
            return None

        content_type = (result.content_type or "").lower()
        if content_type and "html" not in content_type:
            return None

        text = extract_main_content(result.content)
        meta = extract_meta(result.content)
        header = "\n".join(
            v for k, v in meta.items() if k in ("title", "description", "og:description")
        )
        return f"{header}\n\n{text}".strip() or None

    async def enrich(self, entity: StoredEntity) -> EnrichmentOutcome:
        """Never raises for fetch or LLM problems; falls back instead."""
        content = None
        if entity.homepage:
            content = await self.fetch_content(entity.homepage)

        # litellm.completion is blocking
        data, log = await asyncio.to_thread(
            extract_product_content,
            entity.id,
            entity.name,
            entity.tagline,
            entity.description,
            content,
            self.model,
            self.api_key,
        )
        if data is not None:
            return EnrichmentOutcome(data=data, generated=True)

        error = "; ".join(log.errors) or "No enrichment data generated"
        return EnrichmentOutcome(data=fallback_content(entity), generated=False, error=error)
