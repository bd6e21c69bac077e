"""Command line entry point (`curator <action>`)."""

import argparse
import json
import sys
from pathlib import Path

import structlog

from core.config import ConfigValidationError, Settings, snapshot_config
from core.context import CurationContext
from core.logging import configure_logging
from pipelines.actions import ACTIONS, run_action_sync
from schemas.job import JobStatus, JobType

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="curator",
        description="Curate a bounded catalog of commercial software from public feeds.",
    )
    parser.add_argument("action", choices=[*ACTIONS, "jobs"])
    parser.add_argument("--sources", type=Path, default=None, help="Sources YAML path")
    parser.add_argument("--limit", type=int, default=10, help="jobs: max rows")
    parser.add_argument(
        "--type", dest="job_type", choices=[t.value for t in JobType], default=None
    )
    parser.add_argument(
        "--status", choices=[s.value for s in JobStatus], default=None
    )
    return parser


def list_jobs(ctx: CurationContext, args: argparse.Namespace) -> dict:
    jobs = ctx.tracker.list_jobs(
        limit=args.limit,
        job_type=JobType(args.job_type) if args.job_type else None,
        status=JobStatus(args.status) if args.status else None,
    )
    return {"jobs": [job.model_dump(mode="json") for job in jobs]}


def main(argv: list[str] | None = None) -> None:
    """Entry point for the curator CLI."""
    args = build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(settings.log_level, settings.json_logs)

    try:
        ctx = CurationContext.boot(settings, sources_path=args.sources)
    except ConfigValidationError as e:
        logger.error("Configuration error", error=str(e), errors=e.errors)
        sys.exit(1)

    logger.debug("Configuration loaded", **snapshot_config(ctx.settings, ctx.sources))

    try:
        if args.action == "jobs":
            result = list_jobs(ctx, args)
        else:
            result = run_action_sync(ctx, args.action)
    finally:
        ctx.close()

    print(json.dumps(result, indent=2, default=str))
    if result.get("ok") is False:
        sys.exit(1)


if __name__ == "__main__":
    main()
