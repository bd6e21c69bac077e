"""Pipeline job tracking."""

from .tracker import InvalidJobTransitionError, JobNotFoundError, JobTracker

__all__ = ["InvalidJobTransitionError", "JobNotFoundError", "JobTracker"]
