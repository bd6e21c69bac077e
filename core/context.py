"""Curation context - travels through every stage."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from collectors.http_client import HttpClient
from core.config import Settings, SourcesConfig, load_config
from gatekeeper.classifier import Classifier, LiteLLMClassifier
from gatekeeper.gatekeeper import Gatekeeper
from jobs.tracker import JobTracker
from scoring.scorer import LiteLLMScorer, ProductScorer, Scorer
from storage.base import EntityStore, JobStore
from storage.catalog import CatalogStore
from storage.memory import InMemoryEntityStore, InMemoryJobStore
from storage.sqlite import SQLiteDatabase, SQLiteEntityStore, SQLiteJobStore


class CurationContext(BaseModel):
    """Configuration plus the collaborators each stage needs."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    settings: Settings
    sources: SourcesConfig
    entities: EntityStore
    jobs: JobStore
    classifier: Classifier | None = None
    scorer: Scorer | None = None
    database: SQLiteDatabase | None = None

    @classmethod
    def boot(
        cls,
        settings: Settings | None = None,
        sources: SourcesConfig | None = None,
        sources_path: Path | None = None,
    ) -> CurationContext:
        """Load config and open the SQLite stores."""
        if settings is None or sources is None:
            settings, sources = load_config(sources_path, settings)

        database = SQLiteDatabase(settings.database_path)
        database.connect()
        return cls(
            settings=settings,
            sources=sources,
            entities=SQLiteEntityStore(database),
            jobs=SQLiteJobStore(database),
            classifier=cls.default_classifier(settings),
            scorer=cls.default_scorer(settings),
            database=database,
        )

    @classmethod
    def in_memory(
        cls,
        settings: Settings | None = None,
        sources: SourcesConfig | None = None,
        classifier: Classifier | None = None,
        scorer: Scorer | None = None,
    ) -> CurationContext:
        """Context over in-memory stores (tests, dry runs)."""
        return cls(
            settings=settings or Settings(),
            sources=sources or SourcesConfig(),
            entities=InMemoryEntityStore(),
            jobs=InMemoryJobStore(),
            classifier=classifier,
            scorer=scorer,
        )

    @staticmethod
    def default_classifier(settings: Settings) -> Classifier | None:
        if not settings.has_llm:
            return None
        return LiteLLMClassifier(settings.llm_model, settings.llm_api_key)

    @staticmethod
    def default_scorer(settings: Settings) -> Scorer | None:
        if not settings.has_llm:
            return None
        return LiteLLMScorer(settings.llm_model, settings.llm_api_key)

    @property
    def catalog(self) -> CatalogStore:
        return CatalogStore(self.entities, self.settings)

    @property
    def tracker(self) -> JobTracker:
        return JobTracker(self.jobs)

    def gatekeeper(self) -> Gatekeeper:
        """A fresh gatekeeper; its verdict cache lives for one batch."""
        return Gatekeeper(self.classifier)

    def product_scorer(self) -> ProductScorer:
        return ProductScorer(self.scorer)

    def http_client(self) -> HttpClient:
        return HttpClient(
            timeout=self.settings.http_timeout,
            rate_limit=self.settings.http_rate_limit,
        )

    def close(self) -> None:
        if self.database is not None:
            self.database.close()
