"""Viability gatekeeper: pre-validation, LLM classification, rule fallback."""

from .admission import should_admit
from .classifier import Classifier, ClassifierError, LiteLLMClassifier, decode_verdict
from .gatekeeper import Gatekeeper
from .prevalidation import prevalidate
from .rules import rule_based_assessment

__all__ = [
    "Classifier",
    "ClassifierError",
    "Gatekeeper",
    "LiteLLMClassifier",
    "decode_verdict",
    "prevalidate",
    "rule_based_assessment",
    "should_admit",
]
