"""Source adapter interface and common types."""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from schemas.candidate import CandidateRecord


class AdapterResult(BaseModel):
    """Outcome of one adapter fetch."""

    success: bool = Field(..., description="Whether the feed answered usably")
    products: list[CandidateRecord] = Field(default_factory=list)
    error: str | None = Field(None, description="Failure description if any")


class SourceAdapter(ABC):
    """Abstract base class for candidate feeds.

    Adapters report failure in the returned AdapterResult rather than raising;
    the aggregator still guards against adapters that raise anyway.
    """

    source_name: str = "base"

    def __init__(self, config: dict[str, Any] | None = None, name: str | None = None):
        """Initialize adapter with optional config and a display name."""
        self.config = config or {}
        self.name = name or self.source_name

    @abstractmethod
    async def fetch(self) -> AdapterResult:
        """
        Fetch normalized candidates from this feed.

        Returns:
            AdapterResult with the candidates or an error
        """
        pass
