"""
Pytest configuration and fixtures.
"""
import logging

import pytest
import structlog

from core.config import Settings, SourcesConfig
from core.context import CurationContext
from schemas.candidate import CandidateRecord, Source
from storage.sqlite import SQLiteDatabase

ACME_DESCRIPTION = (
    "Acme is a sales automation platform for business teams with CRM sync, "
    "lead scoring and analytics dashboards. "
) * 2


def build_settings(**overrides) -> Settings:
    """Settings isolated from the environment and .env, with no pacing delays."""
    values = dict(
        llm_api_key="",
        cron_secret="",
        classifier_delay_ms=0,
        enrich_delay_ms=0,
        score_delay_ms=0,
        stage_delay_ms=0,
        http_rate_limit=0,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_candidate(**overrides) -> CandidateRecord:
    """A candidate that passes every filter unless overridden."""
    values = dict(
        name="Acme",
        tagline="Sales automation for business teams",
        description=ACME_DESCRIPTION,
        website="https://acme.io",
        source=Source.HACKER_NEWS,
        source_id="hn-1",
        upvotes=2000,
    )
    values.update(overrides)
    return CandidateRecord(**values)


@pytest.fixture
def settings():
    return build_settings()


@pytest.fixture
def ctx(settings):
    """Context over in-memory stores with no classifier configured."""
    return CurationContext.in_memory(settings, SourcesConfig())


@pytest.fixture
def candidate_factory():
    return make_candidate


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "data" / "catalog.db")


@pytest.fixture
def database(db_path):
    db = SQLiteDatabase(db_path)
    db.connect()
    yield db
    db.close()


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo configure_logging() calls made by CLI and API tests."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)
