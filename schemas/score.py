"""Six-axis product score attached to accepted catalog entries."""

from datetime import datetime
from enum import Enum

from pydantic import Field

from .base import BaseSchema, utcnow


class ScoreSource(str, Enum):
    LLM = "llm"
    RULES = "rules"


# Axis -> weight in the composite; weights sum to 1
CATEGORY_WEIGHTS: dict[str, float] = {
    "functional_coverage": 0.20,
    "usability": 0.20,
    "innovation": 0.20,
    "pricing": 0.15,
    "integration": 0.15,
    "security": 0.10,
}
SCORE_CATEGORIES: tuple[str, ...] = tuple(CATEGORY_WEIGHTS)


def composite_score(scores: dict[str, int]) -> int:
    """Weighted 0-100 composite of 0-10 axis scores."""
    weighted = sum(scores[axis] * weight for axis, weight in CATEGORY_WEIGHTS.items())
    return round(weighted * 10)


class ProductScore(BaseSchema):
    """Per-axis scores (0-10), their composite, and the reasoning behind them."""

    functional_coverage: int = Field(..., ge=0, le=10)
    usability: int = Field(..., ge=0, le=10)
    innovation: int = Field(..., ge=0, le=10)
    pricing: int = Field(..., ge=0, le=10)
    integration: int = Field(..., ge=0, le=10)
    security: int = Field(..., ge=0, le=10)

    composite: int = Field(..., ge=0, le=100)
    confidence: float = Field(..., ge=0.0, le=1.0)
    reasoning: dict[str, str] = Field(default_factory=dict)
    scored_by: ScoreSource
    scored_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def build(
        cls,
        scores: dict[str, int],
        confidence: float,
        reasoning: dict[str, str],
        scored_by: ScoreSource,
    ) -> "ProductScore":
        """Assemble a score, computing the composite from the axes."""
        return cls(
            **scores,
            composite=composite_score(scores),
            confidence=confidence,
            reasoning=reasoning,
            scored_by=scored_by,
        )

    def axes(self) -> dict[str, int]:
        return {axis: getattr(self, axis) for axis in SCORE_CATEGORIES}
