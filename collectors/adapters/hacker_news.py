"""Hacker News "Show HN" adapter over the Algolia search API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog
from pydantic import ValidationError

from collectors.base import AdapterResult, SourceAdapter
from collectors.http_client import HttpClient
from schemas.base import utcnow
from schemas.candidate import CandidateRecord, Source

logger = structlog.get_logger(__name__)

DEFAULT_URL = "https://hn.algolia.com/api/v1/search"
ITEM_URL = "https://news.ycombinator.com/item?id={id}"

DEFAULT_TERMS = [
    "Show HN AI",
    "Show HN GPT",
    "Show HN LLM",
    "Show HN machine learning",
    "Show HN chatbot",
]
TITLE_SEPARATORS = (" – ", " - ", ": ", " | ")


def split_title(title: str) -> tuple[str, str | None]:
    """Split "Show HN: Name - tagline" into (name, tagline)."""
    name = title
    if name.startswith("Show HN:"):
        name = name[len("Show HN:"):].strip()
    for sep in TITLE_SEPARATORS:
        if sep in name:
            head, _, tail = name.partition(sep)
            return head.strip(), tail.strip() or None
    return name.strip(), None


def parse_hit(hit: dict[str, Any]) -> CandidateRecord | None:
    """Map one Algolia hit to a candidate. None for unusable hits."""
    object_id = str(hit.get("objectID") or "")
    title = hit.get("title") or ""
    url = hit.get("url")
    story_text = hit.get("story_text")
    if not object_id or not title or not (url or story_text):
        return None

    name, tagline = split_title(title)
    if not name:
        return None

    created_at = hit.get("created_at")
    item_url = ITEM_URL.format(id=object_id)
    return CandidateRecord(
        name=name[:100],
        tagline=tagline,
        description=(story_text or "")[:500] or tagline,
        website=url or item_url,
        category="AI Tools",
        tags=["AI", "Show HN", "Startup"],
        launch_date=datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        if created_at
        else utcnow(),
        source=Source.HACKER_NEWS,
        source_url=item_url,
        source_id=object_id,
        upvotes=hit.get("points") or 0,
        comments=hit.get("num_comments") or 0,
        author=hit.get("author"),
    )


class HackerNewsAdapter(SourceAdapter):
    """Searches Show HN posts for a list of terms and keeps the top hits."""

    source_name = "hacker_news"

    def __init__(
        self,
        client: HttpClient,
        config: dict[str, Any] | None = None,
        name: str | None = None,
        url: str | None = None,
    ):
        super().__init__(config, name)
        self.client = client
        self.url = url or DEFAULT_URL
        self.terms: list[str] = self.config.get("terms", DEFAULT_TERMS)
        self.hits_per_page: int = int(self.config.get("hits_per_page", 20))
        self.limit: int = int(self.config.get("limit", 30))

    async def fetch(self) -> AdapterResult:
        seen: set[str] = set()
        products: list[CandidateRecord] = []
        failures = 0

        for term in self.terms:
            result = await self.client.fetch(
                self.url,
                params={
                    "query": term,
                    "tags": "show_hn",
                    "hitsPerPage": self.hits_per_page,
                },
            )
            if not result.success:
                failures += 1
                continue

            try:
                hits = result.json().get("hits", [])
            except ValueError:
                failures += 1
                continue

            for hit in hits:
                try:
                    candidate = parse_hit(hit)
                except (ValidationError, ValueError) as e:
                    logger.debug("Skipped malformed hit", object_id=hit.get("objectID"), error=str(e))
                    continue
                if candidate is None or candidate.source_id in seen:
                    continue
                seen.add(candidate.source_id)  # type: ignore[arg-type]
                products.append(candidate)

        if failures == len(self.terms) and self.terms:
            return AdapterResult(success=False, error="All Hacker News searches failed")

        products.sort(key=lambda c: c.upvotes, reverse=True)
        return AdapterResult(success=True, products=products[: self.limit])
