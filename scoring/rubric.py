"""Six-axis product rubric: strict decoding of model answers and a keyword fallback."""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from schemas.entity import StoredEntity
from schemas.score import SCORE_CATEGORIES, ProductScore, ScoreSource

DEFAULT_AXIS_SCORE = 5
DEFAULT_CONFIDENCE = 0.5
RULES_CONFIDENCE = 0.3
DEFAULT_REASON = "Score based on available data."

# camelCase keys the model is asked to answer with
WIRE_KEYS: dict[str, str] = {
    "functional_coverage": "functionalCoverage",
    "usability": "usability",
    "innovation": "innovation",
    "pricing": "pricing",
    "integration": "integration",
    "security": "security",
}

RULES_REASONING: dict[str, str] = {
    "functional_coverage": "Estimated based on product description and tags.",
    "usability": "Estimated based on product description and positioning.",
    "innovation": "Estimated based on product claims and technology stack.",
    "pricing": "Estimated based on pricing mentions and open-source status.",
    "integration": "Estimated based on API/SDK mentions in description.",
    "security": "Estimated conservatively due to limited security information.",
}

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class ScorerError(Exception):
    """Raised when the scorer cannot produce a usable score."""


def clamp_axis(value: Any) -> int:
    """Round to an integer in [0, 10]; unusable values become the midpoint."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return DEFAULT_AXIS_SCORE
    if number != number:  # NaN
        return DEFAULT_AXIS_SCORE
    return max(0, min(10, round(number)))


class RawScore(BaseModel):
    """Wire shape of the scorer's JSON answer."""

    model_config = ConfigDict(extra="ignore")

    scores: dict[str, Any] = Field(default_factory=dict)
    reasoning: dict[str, Any] = Field(default_factory=dict)
    confidence: float = DEFAULT_CONFIDENCE

    @field_validator("scores", "reasoning", mode="before")
    @classmethod
    def _mapping(cls, v: Any) -> dict[str, Any]:
        return v if isinstance(v, dict) else {}

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, v: Any) -> float:
        try:
            value = float(v)
        except (TypeError, ValueError):
            return DEFAULT_CONFIDENCE
        if not value:
            return DEFAULT_CONFIDENCE
        return min(1.0, max(0.0, value))


def decode_scores(raw_text: str) -> ProductScore:
    """Decode the scorer's raw text into a validated ProductScore.

    Missing or malformed axes default to the midpoint; missing reasoning gets
    a generic sentence.

    Raises:
        ScorerError: No JSON object in the text, or it is not an object.
    """
    match = _JSON_OBJECT.search(raw_text or "")
    if not match:
        raise ScorerError("No JSON object in scorer response")

    try:
        data = json.loads(match.group(0))
        if not isinstance(data, dict):
            raise ScorerError("Scorer response is not a JSON object")
        raw = RawScore.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise ScorerError(f"Invalid scorer response: {e}") from e

    scores = {axis: clamp_axis(raw.scores.get(WIRE_KEYS[axis])) for axis in SCORE_CATEGORIES}
    reasoning = {
        axis: str(raw.reasoning.get(WIRE_KEYS[axis]) or DEFAULT_REASON)
        for axis in SCORE_CATEGORIES
    }
    return ProductScore.build(scores, raw.confidence, reasoning, ScoreSource.LLM)


def _has(text: str, *needles: str) -> bool:
    return any(n in text for n in needles)


def rule_based_score(entity: StoredEntity) -> ProductScore:
    """Keyword heuristic used when no model answer is available."""
    description = (entity.description or "").lower()
    tags = " ".join(entity.tags).lower()
    text = f"{description} {tags}"

    functional_coverage = 5
    usability = 5
    innovation = 5
    pricing = 6
    integration = 5
    security = 4

    if _has(text, "all-in-one", "platform"):
        functional_coverage += 1
    if _has(text, "api", "sdk"):
        functional_coverage += 1
    if len(entity.tags) > 3:
        functional_coverage += 1

    if _has(text, "easy", "simple"):
        usability += 1
    if _has(text, "no-code", "nocode"):
        usability += 2
    if _has(text, "documentation", "docs"):
        usability += 1

    if _has(text, "first", "novel", "unique"):
        innovation += 1
    if _has(text, "gpt-4", "latest"):
        innovation += 1
    if "breakthrough" in text:
        innovation += 2

    if _has(text, "free", "open source", "open-source"):
        pricing += 2
    if "enterprise" in text:
        pricing -= 1

    if _has(text, "api", "rest"):
        integration += 1
    if _has(text, "integration", "webhook"):
        integration += 1
    if _has(text, "sdk", "library"):
        integration += 1

    if _has(text, "secure", "privacy"):
        security += 1
    if _has(text, "gdpr", "soc2", "hipaa"):
        security += 2
    if "enterprise" in text:
        security += 1

    if entity.upvotes > 1000:
        functional_coverage += 1
        usability += 1
    if entity.stars > 10000:
        functional_coverage += 1
        integration += 1

    scores = {
        "functional_coverage": clamp_axis(functional_coverage),
        "usability": clamp_axis(usability),
        "innovation": clamp_axis(innovation),
        "pricing": clamp_axis(pricing),
        "integration": clamp_axis(integration),
        "security": clamp_axis(security),
    }
    return ProductScore.build(scores, RULES_CONFIDENCE, dict(RULES_REASONING), ScoreSource.RULES)
