"""
Candidate collectors.

Each adapter fetches one external feed and returns normalized
CandidateRecord objects; the aggregator fans out over all of them.
"""

from collectors.aggregator import aggregate
from collectors.base import AdapterResult, SourceAdapter

__all__ = [
    "AdapterResult",
    "SourceAdapter",
    "aggregate",
]
