"""SQLite-backed stores.

Each row keeps the queryable columns next to the full pydantic document
(`data`), so schema additions never need a migration.
"""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime
from pathlib import Path

from schemas.entity import StoredEntity
from schemas.job import JobStatus, JobType, PipelineJob

from .base import (
    DuplicateKeyError,
    EntityNotFoundError,
    EntityStore,
    JobStore,
    StoreError,
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS entities (
    id TEXT PRIMARY KEY,
    slug TEXT NOT NULL UNIQUE,
    source_id TEXT UNIQUE,
    homepage TEXT,
    upvotes INTEGER NOT NULL DEFAULT 0,
    stars INTEGER NOT NULL DEFAULT 0,
    viability_score REAL,
    enriched_at TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    data TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_entities_quality
    ON entities (upvotes, stars, created_at);

CREATE TABLE IF NOT EXISTS jobs (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    status TEXT NOT NULL,
    created_at TEXT NOT NULL,
    data TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_jobs_created ON jobs (created_at);
"""


def _ts(value: datetime | None) -> str | None:
    return value.isoformat(timespec="microseconds") if value is not None else None


class SQLiteDatabase:
    """Shared connection for the entity and job stores."""

    def __init__(self, path: str):
        self.path = path
        self._conn: sqlite3.Connection | None = None
        self.lock = threading.RLock()

    def connect(self) -> sqlite3.Connection:
        """Open the connection (idempotent) and create tables."""
        if self._conn is None:
            if self.path != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            # FastAPI runs sync endpoints on a worker thread pool
            self._conn = sqlite3.connect(self.path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(SCHEMA)
        return self._conn

    @property
    def conn(self) -> sqlite3.Connection:
        if not self._conn:
            raise RuntimeError("Database not connected")
        return self._conn

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> SQLiteDatabase:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _duplicate_from(error: sqlite3.IntegrityError, entity: StoredEntity) -> DuplicateKeyError:
    message = str(error)
    if "source_id" in message:
        return DuplicateKeyError("source_id", entity.source_id or "")
    if "slug" in message:
        return DuplicateKeyError("slug", entity.slug)
    return DuplicateKeyError("id", entity.id)


class SQLiteEntityStore(EntityStore):
    """Entity store over an `entities` table."""

    def __init__(self, db: SQLiteDatabase):
        self.db = db
        self.db.connect()

    def _row_values(self, entity: StoredEntity) -> tuple:
        return (
            entity.id,
            entity.slug,
            entity.source_id,
            entity.homepage,
            entity.upvotes,
            entity.stars,
            entity.viability_score,
            _ts(entity.enriched_at),
            _ts(entity.created_at),
            _ts(entity.updated_at),
            entity.model_dump_json(),
        )

    def _one(self, sql: str, params: tuple) -> StoredEntity | None:
        with self.db.lock:
            row = self.db.conn.execute(sql, params).fetchone()
        return StoredEntity.model_validate_json(row["data"]) if row else None

    def _many(self, sql: str, params: tuple = ()) -> list[StoredEntity]:
        with self.db.lock:
            rows = self.db.conn.execute(sql, params).fetchall()
        return [StoredEntity.model_validate_json(row["data"]) for row in rows]

    def _scalar(self, sql: str, params: tuple = ()) -> int:
        with self.db.lock:
            row = self.db.conn.execute(sql, params).fetchone()
        return int(row[0])

    def get(self, entity_id: str) -> StoredEntity | None:
        return self._one("SELECT data FROM entities WHERE id = ?", (entity_id,))

    def get_by_slug(self, slug: str) -> StoredEntity | None:
        return self._one("SELECT data FROM entities WHERE slug = ?", (slug,))

    def get_by_source_id(self, source_id: str) -> StoredEntity | None:
        return self._one("SELECT data FROM entities WHERE source_id = ?", (source_id,))

    _INSERT = """
        INSERT INTO entities
            (id, slug, source_id, homepage, upvotes, stars,
             viability_score, enriched_at, created_at, updated_at, data)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    """

    def create(self, entity: StoredEntity) -> StoredEntity:
        try:
            with self.db.lock, self.db.conn:
                self.db.conn.execute(self._INSERT, self._row_values(entity))
        except sqlite3.IntegrityError as e:
            raise _duplicate_from(e, entity) from e
        return entity

    def replace(self, evict_id: str, entity: StoredEntity) -> StoredEntity:
        try:
            with self.db.lock, self.db.conn:
                cursor = self.db.conn.execute(
                    "DELETE FROM entities WHERE id = ?", (evict_id,)
                )
                if cursor.rowcount == 0:
                    raise EntityNotFoundError(evict_id)
                self.db.conn.execute(self._INSERT, self._row_values(entity))
        except sqlite3.IntegrityError as e:
            raise _duplicate_from(e, entity) from e
        return entity

    def update(self, entity: StoredEntity) -> StoredEntity:
        values = self._row_values(entity)
        try:
            with self.db.lock, self.db.conn:
                cursor = self.db.conn.execute(
                    """
                    UPDATE entities SET
                        slug = ?, source_id = ?, homepage = ?, upvotes = ?,
                        stars = ?, viability_score = ?, enriched_at = ?,
                        created_at = ?, updated_at = ?, data = ?
                    WHERE id = ?
                    """,
                    (*values[1:], entity.id),
                )
        except sqlite3.IntegrityError as e:
            raise _duplicate_from(e, entity) from e
        if cursor.rowcount == 0:
            raise EntityNotFoundError(entity.id)
        return entity

    def delete(self, entity_id: str) -> bool:
        with self.db.lock, self.db.conn:
            cursor = self.db.conn.execute(
                "DELETE FROM entities WHERE id = ?", (entity_id,)
            )
        return cursor.rowcount > 0

    def count(self) -> int:
        return self._scalar("SELECT COUNT(*) FROM entities")

    def list_all(self) -> list[StoredEntity]:
        return self._many("SELECT data FROM entities ORDER BY created_at")

    def find_lowest_quality(self) -> StoredEntity | None:
        return self._one(
            "SELECT data FROM entities ORDER BY upvotes, stars, created_at LIMIT 1",
            (),
        )

    def find_unclassified(self, limit: int) -> list[StoredEntity]:
        return self._many(
            """
            SELECT data FROM entities
            WHERE viability_score IS NULL
            ORDER BY created_at
            LIMIT ?
            """,
            (limit,),
        )

    def count_unclassified(self) -> int:
        return self._scalar(
            "SELECT COUNT(*) FROM entities WHERE viability_score IS NULL"
        )

    _UNENRICHED = """
        viability_score IS NOT NULL
        AND homepage IS NOT NULL AND homepage != ''
        AND enriched_at IS NULL
    """

    def find_unenriched(self, limit: int) -> list[StoredEntity]:
        return self._many(
            f"SELECT data FROM entities WHERE {self._UNENRICHED} "
            "ORDER BY upvotes + stars DESC, created_at LIMIT ?",
            (limit,),
        )

    def count_unenriched(self) -> int:
        return self._scalar(f"SELECT COUNT(*) FROM entities WHERE {self._UNENRICHED}")

    # The score lives only in the JSON document
    _UNSCORED = "viability_score IS NOT NULL AND json_extract(data, '$.score') IS NULL"

    def find_unscored(self, limit: int) -> list[StoredEntity]:
        return self._many(
            f"SELECT data FROM entities WHERE {self._UNSCORED} ORDER BY created_at LIMIT ?",
            (limit,),
        )

    def count_unscored(self) -> int:
        return self._scalar(f"SELECT COUNT(*) FROM entities WHERE {self._UNSCORED}")

    def find_stale(
        self, cutoff: datetime, min_upvotes: int, min_stars: int
    ) -> list[StoredEntity]:
        cutoff_ts = _ts(cutoff)
        return self._many(
            """
            SELECT data FROM entities
            WHERE created_at < ? AND updated_at < ?
              AND upvotes < ? AND stars < ?
            ORDER BY created_at
            """,
            (cutoff_ts, cutoff_ts, min_upvotes, min_stars),
        )


class SQLiteJobStore(JobStore):
    """Job store over a `jobs` table."""

    def __init__(self, db: SQLiteDatabase):
        self.db = db
        self.db.connect()

    def create(self, job: PipelineJob) -> PipelineJob:
        try:
            with self.db.lock, self.db.conn:
                self.db.conn.execute(
                    """
                    INSERT INTO jobs (id, type, status, created_at, data)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        job.id,
                        job.type.value,
                        job.status.value,
                        _ts(job.created_at),
                        job.model_dump_json(),
                    ),
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateKeyError("id", job.id) from e
        return job

    def get(self, job_id: str) -> PipelineJob | None:
        with self.db.lock:
            row = self.db.conn.execute(
                "SELECT data FROM jobs WHERE id = ?", (job_id,)
            ).fetchone()
        return PipelineJob.model_validate_json(row["data"]) if row else None

    def update(self, job: PipelineJob) -> PipelineJob:
        with self.db.lock, self.db.conn:
            cursor = self.db.conn.execute(
                "UPDATE jobs SET status = ?, data = ? WHERE id = ?",
                (job.status.value, job.model_dump_json(), job.id),
            )
        if cursor.rowcount == 0:
            raise StoreError(f"Job not found: {job.id}")
        return job

    def list(
        self,
        limit: int = 20,
        job_type: JobType | None = None,
        status: JobStatus | None = None,
    ) -> list[PipelineJob]:
        clauses: list[str] = []
        params: list[object] = []
        if job_type is not None:
            clauses.append("type = ?")
            params.append(job_type.value)
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(limit)
        with self.db.lock:
            rows = self.db.conn.execute(
                f"SELECT data FROM jobs {where} ORDER BY created_at DESC, rowid DESC LIMIT ?",
                params,
            ).fetchall()
        return [PipelineJob.model_validate_json(row["data"]) for row in rows]
