"""Core infrastructure: config, logging, and id utilities."""

from core.config import ConfigValidationError, Settings, SourcesConfig, load_config
from core.ids import extract_domain, generate_id, slugify
from core.logging import configure_logging

__all__ = [
    "ConfigValidationError",
    "Settings",
    "SourcesConfig",
    "load_config",
    "configure_logging",
    "extract_domain",
    "generate_id",
    "slugify",
]
