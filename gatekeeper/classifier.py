"""Tier 2: LLM classifier using litellm for provider abstraction."""

from __future__ import annotations

import json
import re
import time
from abc import ABC, abstractmethod
from typing import Any

import litellm  # type: ignore[import-untyped]
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from schemas.assessment import (
    AssessmentSource,
    BusinessCategory,
    ProductType,
    TargetAudience,
    Taxonomy,
    ViabilityAssessment,
)
from schemas.candidate import CandidateRecord

logger = structlog.get_logger(__name__)

DEFAULT_CONFIDENCE = 0.5
DEFAULT_REJECTION = "Not commercial B2B SaaS"

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class ClassifierError(Exception):
    """Raised when the classifier cannot produce a usable verdict."""


_SYSTEM_PROMPT = """\
You are an expert B2B SaaS analyst. Decide whether a product is a viable
commercial SaaS product for businesses.

ACCEPT:
- B2B SaaS for marketing, sales, customer service, productivity, developers
- Professional tools businesses pay for, with a clear business use case

REJECT:
- Games, tutorials, exam prep, student tools, educational content
- Open-source libraries and frameworks without a commercial offering
- LLM infrastructure, model wrappers, UI frontends for models
- Articles, listicles, comparison pages, personal or hobby projects

Allowed values:
- targetAudience: {audiences}
- productType: {product_types}
- businessCategory: {business_categories}

Return ONLY valid JSON with these fields. No markdown, no explanation.
{{
  "isCommercialSaaS": boolean,
  "targetAudience": string,
  "productType": string,
  "businessCategory": string,
  "confidence": number between 0 and 1,
  "rejectionReason": string or null
}}
"""

_USER_PROMPT = """\
Classify this product.

Name: {name}
Tagline: {tagline}
Description: {description}
Category: {category}
Tags: {tags}
Source: {source}
Website: {website}
"""


def build_messages(
    candidate: CandidateRecord,
    taxonomy: Taxonomy,
) -> list[dict[str, str]]:
    """Build chat messages for the classification call."""
    return [
        {
            "role": "system",
            "content": _SYSTEM_PROMPT.format(
                audiences=", ".join(taxonomy.audiences),
                product_types=", ".join(taxonomy.product_types),
                business_categories=", ".join(taxonomy.business_categories),
            ),
        },
        {
            "role": "user",
            "content": _USER_PROMPT.format(
                name=candidate.name,
                tagline=candidate.tagline or "none",
                description=(candidate.description or "none")[:1500],
                category=candidate.category or "unknown",
                tags=", ".join(candidate.tags) or "none",
                source=candidate.source.value,
                website=candidate.homepage or "none",
            ),
        },
    ]


class RawVerdict(BaseModel):
    """Wire shape of the classifier's JSON answer."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    is_commercial_saas: bool = Field(False, alias="isCommercialSaaS")
    target_audience: TargetAudience = Field(
        TargetAudience.UNKNOWN, alias="targetAudience"
    )
    product_type: ProductType = Field(ProductType.OTHER, alias="productType")
    business_category: BusinessCategory = Field(
        BusinessCategory.OTHER, alias="businessCategory"
    )
    confidence: float = DEFAULT_CONFIDENCE
    rejection_reason: str | None = Field(None, alias="rejectionReason")

    @field_validator("target_audience", mode="before")
    @classmethod
    def _audience(cls, v: Any) -> TargetAudience:
        return _coerce_enum(TargetAudience, v, TargetAudience.UNKNOWN)

    @field_validator("product_type", mode="before")
    @classmethod
    def _product_type(cls, v: Any) -> ProductType:
        return _coerce_enum(ProductType, v, ProductType.OTHER)

    @field_validator("business_category", mode="before")
    @classmethod
    def _category(cls, v: Any) -> BusinessCategory:
        return _coerce_enum(BusinessCategory, v, BusinessCategory.OTHER)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, v: Any) -> float:
        if v is None:
            return DEFAULT_CONFIDENCE
        try:
            value = float(v)
        except (TypeError, ValueError):
            return DEFAULT_CONFIDENCE
        return min(1.0, max(0.0, value))


def _coerce_enum(enum_cls: Any, value: Any, default: Any) -> Any:
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            return default
    return default


def decode_verdict(raw_text: str) -> ViabilityAssessment:
    """Decode the classifier's raw text into a validated assessment.

    Raises:
        ClassifierError: No JSON object in the text, or it fails validation.
    """
    match = _JSON_OBJECT.search(raw_text or "")
    if not match:
        raise ClassifierError("No JSON object in classifier response")

    try:
        data = json.loads(match.group(0))
        if not isinstance(data, dict):
            raise ClassifierError("Classifier response is not a JSON object")
        verdict = RawVerdict.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise ClassifierError(f"Invalid classifier response: {e}") from e

    reason = None
    if not verdict.is_commercial_saas:
        reason = verdict.rejection_reason or DEFAULT_REJECTION

    return ViabilityAssessment(
        is_commercial_saas=verdict.is_commercial_saas,
        target_audience=verdict.target_audience,
        product_type=verdict.product_type,
        business_category=verdict.business_category,
        confidence=verdict.confidence,
        rejection_reason=reason,
        assessed_by=AssessmentSource.CLASSIFIER,
    )


class Classifier(ABC):
    """Request/response interface to the external AI classifier."""

    @abstractmethod
    def classify(self, candidate: CandidateRecord, taxonomy: Taxonomy) -> str:
        """Return the raw response text for one candidate.

        Raises:
            ClassifierError: The call could not be made or returned nothing.
        """
        pass


class LiteLLMClassifier(Classifier):
    """Classifier backed by litellm.completion."""

    def __init__(self, model: str, api_key: str = "", temperature: float = 0.1):
        self.model = model
        self.api_key = api_key
        self.temperature = temperature

    def classify(self, candidate: CandidateRecord, taxonomy: Taxonomy) -> str:
        if not self.api_key:
            raise ClassifierError("LLM API key not configured")

        start = time.monotonic()
        try:
            response = litellm.completion(
                model=self.model,
                messages=build_messages(candidate, taxonomy),
                response_format={"type": "json_object"},
                temperature=self.temperature,
                api_key=self.api_key,
            )
        except Exception as e:
            raise ClassifierError(f"LLM call failed: {e}") from e

        raw_text: str = response.choices[0].message.content or ""  # type: ignore[union-attr]
        usage = getattr(response, "usage", None)
        logger.debug(
            "Classifier response",
            model=self.model,
            candidate=candidate.name,
            chars=len(raw_text),
            tokens=getattr(usage, "total_tokens", 0) if usage else 0,
            duration_ms=round((time.monotonic() - start) * 1000, 1),
        )
        if not raw_text:
            raise ClassifierError("Empty classifier response")
        return raw_text
