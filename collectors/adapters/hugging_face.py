"""Hugging Face Spaces adapter (open-source candidates)."""

from __future__ import annotations

import os
from datetime import datetime
from typing import Any

import structlog
from pydantic import ValidationError

from collectors.base import AdapterResult, SourceAdapter
from collectors.http_client import HttpClient
from schemas.base import utcnow
from schemas.candidate import CandidateKind, CandidateRecord, Source

logger = structlog.get_logger(__name__)

DEFAULT_URL = "https://huggingface.co/api/spaces"
SPACE_URL = "https://huggingface.co/spaces/{id}"


def _parse_date(*values: str | None) -> datetime:
    for value in values:
        if value:
            try:
                return datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                continue
    return utcnow()


def parse_space(space: dict[str, Any]) -> CandidateRecord | None:
    """Map one Spaces API entry to an open-source candidate."""
    space_id = space.get("id")
    if not space_id or space.get("private"):
        return None

    card = space.get("cardData") or {}
    runtime = space.get("runtime") or {}
    space_url = SPACE_URL.format(id=space_id)
    owner = space_id.split("/", 1)[0]

    return CandidateRecord(
        kind=CandidateKind.OPEN_SOURCE,
        name=card.get("title") or space_id,
        tagline=card.get("subtitle"),
        description=card.get("description") or card.get("subtitle"),
        logo=card.get("thumbnail"),
        tags=space.get("tags") or [],
        launch_date=_parse_date(
            space.get("createdAt"), space.get("updatedAt"), space.get("lastModified")
        ),
        source=Source.HUGGING_FACE,
        source_url=space_url,
        source_id=space_id,
        # Likes are the Spaces equivalent of repository stars
        stars=space.get("likes") or 0,
        repo_url=space_url,
        space_url=space_url,
        license=card.get("license"),
        runtime=runtime.get("hardware") or space.get("sdk"),
        author=owner,
        downloads=space.get("downloads") or 0,
    )


class HuggingFaceAdapter(SourceAdapter):
    """Most-liked public Spaces."""

    source_name = "hugging_face"

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
        self.limit: int = int(self.config.get("limit", 100))
        self.token: str = self.config.get("token") or os.environ.get("HF_TOKEN", "")

    async def fetch(self) -> AdapterResult:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        result = await self.client.fetch(
            self.url,
            params={"limit": self.limit, "sort": "likes", "full": 1},
            headers=headers,
        )
        if not result.success:
            return AdapterResult(
                success=False,
                error=result.error or f"Hugging Face API returned {result.status_code}",
            )

        try:
            spaces = result.json()
        except ValueError as e:
            return AdapterResult(success=False, error=f"Invalid JSON: {e}")

        products: list[CandidateRecord] = []
        for space in spaces if isinstance(spaces, list) else []:
            try:
                candidate = parse_space(space)
            except ValidationError as e:
                logger.debug("Skipped malformed space", space_id=space.get("id"), error=str(e))
                continue
            if candidate is not None:
                products.append(candidate)

        return AdapterResult(success=True, products=products)
