"""LLM product scorer using litellm, with the keyword rubric as fallback."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod

import litellm  # type: ignore[import-untyped]
import structlog

from schemas.entity import StoredEntity
from schemas.score import ProductScore
from scoring.rubric import ScorerError, decode_scores, rule_based_score

logger = structlog.get_logger(__name__)

_SYSTEM_PROMPT = """\
You are an expert software evaluator. Score the product on 6 categories,
each on a 0-10 scale:

1. functionalCoverage: breadth of use cases, feature completeness, extensibility
2. usability: interface clarity, documentation, onboarding, learning curve
3. innovation: novel capabilities and differentiation from competitors
4. pricing: free tier, pricing transparency, value for individuals and small teams
5. integration: API, SDKs and connectors, third-party integrations
6. security: privacy policy, certifications, data handling, compliance

Be conservative: 9-10 only with clear evidence of excellence, 5-6 for an
average product, lower when information is limited.

Return ONLY valid JSON. No markdown, no explanation.
{
  "scores": {"functionalCoverage": n, "usability": n, "innovation": n,
             "pricing": n, "integration": n, "security": n},
  "reasoning": {"functionalCoverage": "1-2 sentences", "usability": "...",
                "innovation": "...", "pricing": "...", "integration": "...",
                "security": "..."},
  "confidence": number between 0 and 1 based on data quality
}
"""

_USER_PROMPT = """\
Score this product.

Name: {name}
Tagline: {tagline}
Description: {description}
Category: {category}
Tags: {tags}
Source: {source}
Popularity signals: {popularity}
"""


def build_messages(entity: StoredEntity) -> list[dict[str, str]]:
    popularity = []
    if entity.upvotes:
        popularity.append(f"{entity.upvotes} upvotes")
    if entity.stars:
        popularity.append(f"{entity.stars} stars")

    return [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {
            "role": "user",
            "content": _USER_PROMPT.format(
                name=entity.name,
                tagline=entity.tagline or "Not provided",
                description=(entity.extended_description or entity.description or "Not provided")[:2000],
                category=entity.category or "AI Tool",
                tags=", ".join(entity.tags) or "None",
                source=entity.source.value,
                popularity=", ".join(popularity) or "No popularity data available",
            ),
        },
    ]


class Scorer(ABC):
    """Request/response interface to the external scoring model."""

    @abstractmethod
    def score(self, entity: StoredEntity) -> str:
        """Return the raw response text for one entity.

        Raises:
            ScorerError: The call could not be made or returned nothing.
        """
        pass


class LiteLLMScorer(Scorer):
    """Scorer backed by litellm.completion."""

    def __init__(self, model: str, api_key: str = "", temperature: float = 0.2):
        self.model = model
        self.api_key = api_key
        self.temperature = temperature

    def score(self, entity: StoredEntity) -> str:
        if not self.api_key:
            raise ScorerError("LLM API key not configured")

        start = time.monotonic()
        try:
            response = litellm.completion(
                model=self.model,
                messages=build_messages(entity),
                response_format={"type": "json_object"},
                temperature=self.temperature,
                api_key=self.api_key,
            )
        except Exception as e:
            raise ScorerError(f"LLM call failed: {e}") from e

        raw_text: str = response.choices[0].message.content or ""  # type: ignore[union-attr]
        logger.debug(
            "Scorer response",
            model=self.model,
            entity=entity.slug,
            chars=len(raw_text),
            duration_ms=round((time.monotonic() - start) * 1000, 1),
        )
        if not raw_text:
            raise ScorerError("Empty scorer response")
        return raw_text


class ProductScorer:
    """Scores entities with the model when one is configured, else by rubric.

    Any model failure falls back to the rubric, so a score is always produced.
    """

    def __init__(self, scorer: Scorer | None = None):
        self.scorer = scorer
        self.model_calls = 0

    def score(self, entity: StoredEntity) -> ProductScore:
        if self.scorer is None:
            return rule_based_score(entity)

        self.model_calls += 1
        try:
            return decode_scores(self.scorer.score(entity))
        except ScorerError as e:
            logger.warning("Scorer failed, using rubric", entity=entity.slug, error=str(e))
        except Exception as e:
            logger.warning(
                "Unexpected scorer error, using rubric",
                entity=entity.slug,
                error=str(e),
                error_type=type(e).__name__,
            )
        return rule_based_score(entity)
