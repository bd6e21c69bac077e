"""Persistence: repositories, pre-admission filters, capacity-bounded catalog."""

from .base import (
    DuplicateKeyError,
    EntityNotFoundError,
    EntityStore,
    JobStore,
    StoreError,
)
from .catalog import CatalogStore
from .filters import precheck
from .memory import InMemoryEntityStore, InMemoryJobStore
from .sqlite import SQLiteDatabase, SQLiteEntityStore, SQLiteJobStore

__all__ = [
    "CatalogStore",
    "DuplicateKeyError",
    "EntityNotFoundError",
    "EntityStore",
    "InMemoryEntityStore",
    "InMemoryJobStore",
    "JobStore",
    "SQLiteDatabase",
    "SQLiteEntityStore",
    "SQLiteJobStore",
    "StoreError",
    "precheck",
]
