"""Caller-side admission rule applied to gatekeeper verdicts."""

from __future__ import annotations

from schemas.assessment import TargetAudience, ViabilityAssessment

DEFAULT_DEVELOPER_THRESHOLD = 0.6


def should_admit(
    assessment: ViabilityAssessment,
    developer_threshold: float = DEFAULT_DEVELOPER_THRESHOLD,
) -> bool:
    """Commercial SaaS is always admitted; developer tools need confidence."""
    if assessment.is_commercial_saas:
        return True
    return (
        assessment.target_audience == TargetAudience.DEVELOPER
        and assessment.confidence >= developer_threshold
    )
