"""Candidate quality scoring, role tagging and the six-axis product rubric."""

from scoring.quality import rank, score
from scoring.roles import infer_target_roles
from scoring.rubric import ScorerError, decode_scores, rule_based_score
from scoring.scorer import LiteLLMScorer, ProductScorer, Scorer

__all__ = [
    "LiteLLMScorer",
    "ProductScorer",
    "Scorer",
    "ScorerError",
    "decode_scores",
    "infer_target_roles",
    "rank",
    "rule_based_score",
    "score",
]
