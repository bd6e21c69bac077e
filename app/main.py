"""FastAPI application entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Annotated

import structlog
from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from core.config import Settings
from core.context import CurationContext
from core.logging import configure_logging
from pipelines.actions import ACTIONS, UnknownActionError, run_action
from schemas.job import JobStatus, JobType

logger = structlog.get_logger(__name__)

_context: CurationContext | None = None


def get_context() -> CurationContext:
    """The process-wide context, booted on first use."""
    global _context
    if _context is None:
        settings = Settings()
        configure_logging(settings.log_level, settings.json_logs)
        _context = CurationContext.boot(settings)
    return _context


Context = Annotated[CurationContext, Depends(get_context)]


def require_secret(
    ctx: Context,
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """Bearer auth for /api routes, enforced only when cron_secret is set."""
    secret = ctx.settings.cron_secret
    if secret and authorization != f"Bearer {secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _context
    yield
    if _context is not None:
        _context.close()
        _context = None


app = FastAPI(
    lifespan=lifespan,
    title="Catalog Curator API",
    description="Stage triggers and job inspection for the catalog curator",
    version="0.1.0",
)

# CORS middleware for dashboard
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Catalog Curator API",
        "version": "0.1.0",
        "docs": "/docs",
        "actions": list(ACTIONS),
    }


@app.post("/api/run/{action}", dependencies=[Depends(require_secret)])
async def run(action: str, ctx: Context):
    """Run one stage (or the full pipeline) as a tracked job."""
    try:
        result = await run_action(ctx, action)
    except UnknownActionError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    logger.info("Action finished", action=action, ok=result.get("ok"))
    return result


@app.get("/api/jobs", dependencies=[Depends(require_secret)])
async def list_jobs(
    ctx: Context,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    type: JobType | None = None,
    status: JobStatus | None = None,
):
    jobs = ctx.tracker.list_jobs(limit=limit, job_type=type, status=status)
    return {"jobs": [job.model_dump(mode="json") for job in jobs]}


@app.get("/api/jobs/{job_id}", dependencies=[Depends(require_secret)])
async def get_job(job_id: str, ctx: Context):
    job = ctx.tracker.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job.model_dump(mode="json")
