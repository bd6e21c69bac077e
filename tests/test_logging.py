"""
Tests for structured logging setup.
"""
import io
import logging

import structlog

from core.logging import configure_logging
from jobs.tracker import JobTracker
from schemas.job import JobType
from storage.memory import InMemoryJobStore


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def setup_method(self):
        self.buffer = io.StringIO()

    def _capture(self):
        handler = logging.StreamHandler(self.buffer)
        logging.getLogger().addHandler(handler)
        return handler

    def test_routes_through_stdlib_handlers(self):
        configure_logging("INFO")
        self._capture()

        structlog.get_logger("tests.logging").info("Job started", job_id="j-1")

        output = self.buffer.getvalue()
        assert "Job started" in output
        assert "j-1" in output

    def test_uses_stdlib_logger_factory(self):
        configure_logging("INFO")
        config = structlog.get_config()
        assert isinstance(config["logger_factory"], structlog.stdlib.LoggerFactory)

    def test_level_filters_events(self):
        configure_logging("WARNING")
        self._capture()

        logger = structlog.get_logger("tests.logging")
        logger.info("Quiet event")
        logger.warning("Loud event")

        output = self.buffer.getvalue()
        assert "Quiet event" not in output
        assert "Loud event" in output

    def test_json_logs(self):
        configure_logging("INFO", json_logs=True)
        self._capture()

        structlog.get_logger("tests.logging").info("Job started", job_id="j-1")

        assert '"event": "Job started"' in self.buffer.getvalue()

    def test_closed_boot_stream_does_not_raise(self, monkeypatch):
        boot_stream = io.StringIO()
        monkeypatch.setattr("sys.stderr", boot_stream)
        configure_logging("INFO")
        monkeypatch.undo()
        boot_stream.close()

        structlog.get_logger("tests.logging").info("Job started", job_id="j-1")

    def test_module_events_carry_logger_name(self):
        configure_logging("INFO", json_logs=True)
        self._capture()

        tracker = JobTracker(InMemoryJobStore())
        job = tracker.create(JobType.SCRAPE)
        tracker.start(job.id)

        output = self.buffer.getvalue()
        assert '"event": "Job started"' in output
        assert '"logger": "jobs.tracker"' in output
