"""Resumable website enrichment of admitted catalog entries."""

from .enricher import (
    EnrichmentOutcome,
    WebsiteEnricher,
    apply_enrichment,
    fallback_content,
)
from .llm import EnrichedProductData, extract_product_content

__all__ = [
    "EnrichedProductData",
    "EnrichmentOutcome",
    "WebsiteEnricher",
    "apply_enrichment",
    "extract_product_content",
    "fallback_content",
]
