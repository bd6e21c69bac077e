"""Rule-based viability assessment.

Used when the classifier is unconfigured or fails, so the gatekeeper always
produces a verdict. Independent of the Tier 1 detectors: these patterns look
at what the product is about, not at how the record is shaped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from schemas.assessment import (
    AssessmentSource,
    BusinessCategory,
    ProductType,
    TargetAudience,
    ViabilityAssessment,
)
from schemas.candidate import CandidateRecord, Source

RULE_CONFIDENCE = 0.4
MIN_B2B_SIGNALS = 2


@dataclass(frozen=True)
class RejectRule:
    pattern: re.Pattern[str]
    reason: str
    product_type: ProductType


def _rule(pattern: str, reason: str, product_type: ProductType) -> RejectRule:
    return RejectRule(re.compile(pattern, re.IGNORECASE), reason, product_type)


REJECT_RULES: tuple[RejectRule, ...] = (
    # Games
    _rule(
        r"\b(game|games|gaming|tower defense|arcade|roguelike|platformer|"
        r"strategy game|multiplayer|pvp|mmorpg|idle game|clicker|match-3|"
        r"card game|board game)\b",
        "Appears to be a game",
        ProductType.GAME,
    ),
    _rule(
        r"\b(gameplay|players|enemies|boss fight|dungeon|loot|leaderboard)\b",
        "Appears to be a game",
        ProductType.GAME,
    ),
    # Exam prep and student tools
    _rule(
        r"\b(exam|exams|test prep|quiz|quizzes|study guide|flashcards?|"
        r"certification prep|mock test)\b",
        "Appears to be exam prep tool",
        ProductType.EXAM_PREP,
    ),
    _rule(
        r"\b(student|students|homework|assignments?|coursework|semester|gpa)\b",
        "Appears to be a student tool",
        ProductType.STUDENT_TOOL,
    ),
    _rule(
        r"\b(nptel|jee|neet|gre|gmat|toefl|ielts|upsc|university portal)\b",
        "Appears to be educational/exam platform",
        ProductType.EXAM_PREP,
    ),
    # Tutorials and learning content
    _rule(
        r"\b(tutorials?|courses?|bootcamp|lessons?|lectures?|"
        r"step by step|from scratch|build your own|how to)\b",
        "Appears to be educational content",
        ProductType.TUTORIAL,
    ),
    # Open-source LLM infrastructure and wrappers
    _rule(
        r"\b(llm inference|model serving|inference engine|self[- ]?hosted|"
        r"local ai|local llm)\b",
        "Open-source LLM infrastructure, not commercial product",
        ProductType.LIBRARY,
    ),
    _rule(
        r"(\bollama\b|llama\.cpp|\bvllm\b|\btext-generation\b|\btransformers\b)",
        "LLM framework/library, not commercial product",
        ProductType.LIBRARY,
    ),
    _rule(
        r"\b(webui|web ui|chat ui|frontend for|client for)\b",
        "UI wrapper, not original product",
        ProductType.FRAMEWORK,
    ),
    _rule(
        r"\b(retrieval augmented|vector store|langchain|llamaindex)\b",
        "RAG/LLM framework, not commercial product",
        ProductType.LIBRARY,
    ),
    _rule(
        r"\b(gpt wrapper|chatgpt wrapper|just a wrapper|simple wrapper)\b",
        "Appears to be a generic GPT wrapper",
        ProductType.OTHER,
    ),
    # Non-commercial
    _rule(
        r"\b(awesome-list|curated list|resource list|collection of)\b",
        "Appears to be a resource list",
        ProductType.OTHER,
    ),
    _rule(
        r"\b(weekend project|side project|hobby project|personal project|"
        r"my first|hackathon|proof of concept)\b",
        "Appears to be a hobby/portfolio project",
        ProductType.OTHER,
    ),
    # Crypto / web3
    _rule(
        r"\b(crypto|cryptocurrency|nft|nfts|web3|blockchain|defi)\b",
        "Crypto/Web3 project",
        ProductType.OTHER,
    ),
)

B2B_SIGNALS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"pricing|enterprise|team|business|professional",
        r"saas|platform|solution|software",
        r"sales|marketing|crm|automation|workflow",
        r"analytics|dashboard|reporting|insights",
        r"\bapi\b|integration|webhook|\bsdk\b",
    )
)

DEVELOPER_SIGNALS = re.compile(
    r"\b(developers?|code|coding|programming|ide|cli|terminal|github|npm)\b",
    re.IGNORECASE,
)

# Checked in order; the first family that matches wins
CATEGORY_KEYWORDS: tuple[tuple[BusinessCategory, re.Pattern[str]], ...] = (
    (
        BusinessCategory.MARKETING,
        re.compile(
            r"\b(marketing|seo|content|copywriting|social media|ads|advertising|"
            r"campaigns?|brand|newsletter)\b",
            re.IGNORECASE,
        ),
    ),
    (
        BusinessCategory.SALES,
        re.compile(
            r"\b(sales|crm|leads?|outreach|prospecting|pipeline|deals?|revenue|"
            r"cold email)\b",
            re.IGNORECASE,
        ),
    ),
    (
        BusinessCategory.CUSTOMER_SERVICE,
        re.compile(
            r"\b(support|helpdesk|help desk|tickets?|customer service|"
            r"customer success|contact center|chatbot)\b",
            re.IGNORECASE,
        ),
    ),
    (
        BusinessCategory.PRODUCTIVITY,
        re.compile(
            r"\b(productivity|meetings?|scheduling|tasks?|project management|"
            r"workflow|documents?|notes|calendar)\b",
            re.IGNORECASE,
        ),
    ),
    (
        BusinessCategory.DEVELOPER,
        re.compile(
            r"\b(developers?|code|coding|programming|api|sdk|devops|cli|terminal)\b",
            re.IGNORECASE,
        ),
    ),
)


def classify_category(text: str) -> BusinessCategory:
    """Classify business category by keyword family."""
    for category, pattern in CATEGORY_KEYWORDS:
        if pattern.search(text):
            return category
    return BusinessCategory.OTHER


def count_b2b_signals(text: str) -> int:
    return sum(1 for p in B2B_SIGNALS if p.search(text))


def rule_based_assessment(candidate: CandidateRecord) -> ViabilityAssessment:
    """Assess a candidate with regex detectors only."""
    text = candidate.combined_text

    for rule in REJECT_RULES:
        if rule.pattern.search(text):
            return ViabilityAssessment(
                is_commercial_saas=False,
                target_audience=TargetAudience.UNKNOWN,
                product_type=rule.product_type,
                business_category=BusinessCategory.OTHER,
                confidence=RULE_CONFIDENCE,
                rejection_reason=rule.reason,
                assessed_by=AssessmentSource.RULES,
            )

    if not candidate.homepage:
        return ViabilityAssessment(
            is_commercial_saas=False,
            confidence=RULE_CONFIDENCE,
            rejection_reason="No website provided",
            assessed_by=AssessmentSource.RULES,
        )

    b2b_score = count_b2b_signals(text)
    is_developer_tool = bool(DEVELOPER_SIGNALS.search(text))
    required = 1 if candidate.source == Source.PRODUCT_HUNT else MIN_B2B_SIGNALS
    is_commercial = b2b_score >= required

    if is_developer_tool:
        audience = TargetAudience.DEVELOPER
    elif is_commercial:
        audience = TargetAudience.B2B
    else:
        audience = TargetAudience.UNKNOWN

    return ViabilityAssessment(
        is_commercial_saas=is_commercial,
        target_audience=audience,
        product_type=ProductType.SAAS if is_commercial else ProductType.OTHER,
        business_category=classify_category(text),
        confidence=RULE_CONFIDENCE,
        rejection_reason=None if is_commercial else "Insufficient B2B signals",
        assessed_by=AssessmentSource.RULES,
    )
