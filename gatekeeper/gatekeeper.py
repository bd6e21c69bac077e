"""Two-tier viability gatekeeper."""

from __future__ import annotations

import structlog

from gatekeeper.classifier import Classifier, ClassifierError, decode_verdict
from gatekeeper.prevalidation import prevalidate
from gatekeeper.rules import rule_based_assessment
from schemas.assessment import Taxonomy, ViabilityAssessment
from schemas.candidate import CandidateRecord

logger = structlog.get_logger(__name__)


class Gatekeeper:
    """Assesses commercial viability, cheapest check first.

    One instance per batch: verdicts are memoized by `source_id` (or name)
    for the lifetime of the instance, so a candidate seen twice in the same
    batch is classified once.
    """

    def __init__(
        self,
        classifier: Classifier | None = None,
        taxonomy: Taxonomy | None = None,
    ):
        self.classifier = classifier
        self.taxonomy = taxonomy or Taxonomy()
        self._cache: dict[str, ViabilityAssessment] = {}
        self.classifier_calls = 0
        self.fallbacks = 0

    def assess(self, candidate: CandidateRecord) -> ViabilityAssessment:
        """Produce a verdict. Never raises for classifier problems."""
        key = candidate.dedup_key
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Verdict cache hit", key=key)
            return cached

        verdict = prevalidate(candidate)
        if verdict is not None:
            logger.debug(
                "Rejected by prevalidation",
                candidate=candidate.name,
                reason=verdict.rejection_reason,
            )
        else:
            verdict = self._classify(candidate)

        self._cache[key] = verdict
        return verdict

    def _classify(self, candidate: CandidateRecord) -> ViabilityAssessment:
        if self.classifier is None:
            self.fallbacks += 1
            return rule_based_assessment(candidate)

        try:
            self.classifier_calls += 1
            raw = self.classifier.classify(candidate, self.taxonomy)
            return decode_verdict(raw)
        except ClassifierError as e:
            logger.warning(
                "Classifier failed, using rules", candidate=candidate.name, error=str(e)
            )
        except Exception as e:
            logger.warning(
                "Unexpected classifier error, using rules",
                candidate=candidate.name,
                error=str(e),
            )

        self.fallbacks += 1
        return rule_based_assessment(candidate)

    def clear(self) -> None:
        self._cache.clear()
