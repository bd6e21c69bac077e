"""LLM extraction of long-form product content using litellm."""

from __future__ import annotations

import json
import re
import time
from enum import Enum

import litellm  # type: ignore[import-untyped]
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = structlog.get_logger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class EnrichmentStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class EnrichedProductData(BaseModel):
    """Structured content generated for one catalog entry."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    extended_description: str = Field("", alias="extendedDescription")
    key_features: list[str] = Field(default_factory=list, alias="keyFeatures")
    use_cases: list[str] = Field(default_factory=list, alias="useCases")
    limitations: list[str] = Field(default_factory=list)
    best_for: list[str] = Field(default_factory=list, alias="bestFor")

    @field_validator("key_features", "use_cases", "limitations", "best_for", mode="before")
    @classmethod
    def _list_of_strings(cls, v: object) -> list[str]:
        if not isinstance(v, list):
            return []
        return [str(item).strip() for item in v if str(item).strip()]

    @field_validator("extended_description", mode="before")
    @classmethod
    def _text(cls, v: object) -> str:
        return str(v).strip() if v else ""


class EnrichmentLog(BaseModel):
    """Per-entry enrichment log."""

    entity_id: str
    status: EnrichmentStatus = EnrichmentStatus.FAILED
    errors: list[str] = Field(default_factory=list)
    duration_ms: float = 0.0
    llm_model: str | None = None
    llm_tokens_used: int = 0


_SYSTEM_PROMPT = """\
You are a product analyst writing informative content for a directory of
business software. Be factual. Do not invent features or capabilities that
are not evident from the data.

Return ONLY valid JSON. No markdown, no explanation.
{
  "extendedDescription": "2-3 paragraphs: what it does, how it works, what is distinctive",
  "keyFeatures": ["5-8 specific features found in the content"],
  "useCases": ["3-5 concrete scenarios: who uses it for which task"],
  "limitations": ["2-4 honest constraints, or 'Limited information available'"],
  "bestFor": ["2-3 specific roles or teams"]
}
If the website content is empty or thin, rely on the name and tagline and say
so in the description.
"""

_USER_PROMPT = """\
Name: {name}
Tagline: {tagline}
Original description: {description}

--- WEBSITE CONTENT ---
{content}
"""


def _build_messages(
    name: str,
    tagline: str | None,
    description: str | None,
    content: str | None,
) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {
            "role": "user",
            "content": _USER_PROMPT.format(
                name=name,
                tagline=tagline or "Not provided",
                description=description or "Not provided",
                content=content or "Website content not available",
            ),
        },
    ]


def extract_product_content(
    entity_id: str,
    name: str,
    tagline: str | None,
    description: str | None,
    content: str | None,
    model: str,
    api_key: str = "",
) -> tuple[EnrichedProductData | None, EnrichmentLog]:
    """Generate enriched content via LLM.

    Returns:
        Tuple of (EnrichedProductData or None, EnrichmentLog with status/metrics)
    """
    start = time.monotonic()
    log = EnrichmentLog(entity_id=entity_id, llm_model=model)

    try:
        response = litellm.completion(
            model=model,
            messages=_build_messages(name, tagline, description, content),
            response_format={"type": "json_object"},
            temperature=0.1,
            api_key=api_key or None,
        )
    except Exception as e:
        log.duration_ms = (time.monotonic() - start) * 1000
        log.errors.append(f"LLM call failed: {e}")
        logger.warning("Enrichment LLM call failed", entity_id=entity_id, error=str(e))
        return None, log

    log.duration_ms = (time.monotonic() - start) * 1000
    usage = getattr(response, "usage", None)
    if usage:
        log.llm_tokens_used = getattr(usage, "total_tokens", 0) or 0

    raw_text: str = response.choices[0].message.content or ""  # type: ignore[union-attr]
    match = _JSON_OBJECT.search(raw_text)
    if not match:
        log.errors.append("No JSON object in response")
        return None, log

    try:
        data = EnrichedProductData.model_validate(json.loads(match.group(0)))
    except (json.JSONDecodeError, ValidationError) as e:
        log.errors.append(f"Validation failed: {e}")
        return None, log

    if not data.extended_description:
        log.errors.append("Empty extended description")
        return None, log

    log.status = EnrichmentStatus.SUCCESS
    logger.debug(
        "Enrichment content extracted",
        entity_id=entity_id,
        features=len(data.key_features),
        tokens=log.llm_tokens_used,
    )
    return data, log
