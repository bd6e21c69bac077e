"""Configuration loading and validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


class SourceConfig(BaseModel):
    """Configuration for a single candidate feed."""

    source_id: str
    source_type: str  # "hacker_news" | "hugging_face"
    url: str | None = None
    enabled: bool = True
    metadata: dict[str, Any] = Field(default_factory=dict)


class SourcesConfig(BaseModel):
    """Collection of source configurations."""

    sources: list[SourceConfig] = Field(default_factory=list)

    @property
    def enabled(self) -> list[SourceConfig]:
        return [s for s in self.sources if s.enabled]


class Settings(BaseSettings):
    """Application settings from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    database_path: str = "./data/catalog.db"
    sources_path: str = "config/sources.yaml"

    # Capacity and admission
    max_entities: int = Field(default=1000, ge=1)
    min_quality_score: int = 30
    eviction_margin: int = 20
    min_upvotes: int = 10
    min_stars: int = 50
    min_comments: int = 5
    developer_confidence_threshold: float = Field(default=0.6, ge=0.0, le=1.0)

    # LLM
    llm_model: str = "gemini/gemini-2.0-flash"
    llm_api_key: str = ""
    enrichment_model: str | None = None

    # Batching (sized to fit one time-boxed invocation)
    gatekeeper_batch_size: int = Field(default=5, ge=1)
    enrich_batch_size: int = Field(default=3, ge=1)
    score_batch_size: int = Field(default=10, ge=1)
    classifier_delay_ms: int = Field(default=200, ge=0)
    enrich_delay_ms: int = Field(default=1000, ge=0)
    score_delay_ms: int = Field(default=4000, ge=0)
    stage_delay_ms: int = Field(default=500, ge=0)

    # Cleanup
    prune_max_age_days: int = 180
    prune_min_upvotes: int = 50
    prune_min_stars: int = 100
    cleanup_max_delete: int = 100

    # HTTP client defaults
    http_timeout: int = 30
    http_rate_limit: float = 1.0

    # Runtime
    cron_secret: str = ""
    log_level: str = "INFO"
    json_logs: bool = False

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v: Any) -> str:
        return str(v).strip().upper() or "INFO"

    @property
    def has_llm(self) -> bool:
        """Check if an LLM API key is configured."""
        return bool(self.llm_api_key)

    @property
    def effective_enrichment_model(self) -> str:
        return self.enrichment_model or self.llm_model


def load_sources_config(path: Path) -> SourcesConfig:
    """Load sources configuration from YAML file."""
    if not path.exists():
        return SourcesConfig()

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigValidationError(
            f"Invalid {path}: expected a mapping, got {type(data).__name__}"
        )

    try:
        return SourcesConfig(**data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid {path}", errors=e.errors()) from e


def load_config(
    sources_path: Path | None = None,
    settings: Settings | None = None,
) -> tuple[Settings, SourcesConfig]:
    """Load all configuration.

    Returns:
        Tuple of (Settings, SourcesConfig)
    """
    settings = settings or Settings()
    sources_path = sources_path or Path(settings.sources_path)
    sources = load_sources_config(sources_path)

    return settings, sources


def snapshot_config(settings: Settings, sources: SourcesConfig) -> dict[str, Any]:
    """Create a serializable snapshot of the current configuration."""
    data = settings.model_dump(mode="json")
    data["llm_api_key"] = "***" if settings.has_llm else ""
    data["cron_secret"] = "***" if settings.cron_secret else ""
    return {
        "settings": data,
        "sources": sources.model_dump(mode="json"),
    }
