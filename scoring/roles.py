"""Target-role tagging for catalog entries.

Models and infrastructure get the single role "llm"; everything else is
tagged with each job function its text mentions, or "general".
"""

from __future__ import annotations

import re

LLM_ROLE = "llm"
GENERAL_ROLE = "general"

_LLM_PATTERN = re.compile(
    r"\b(llm|large language model|gpt|claude|llama|mistral|gemini|anthropic|openai|"
    r"foundation model|transformer|neural network|deep learning|"
    r"machine learning framework|inference|embedding|vector|rag|langchain|hugging\s?face)\b"
)
_INFRA_PATTERN = re.compile(
    r"\b(self.?hosted|local.?ai|inference engine|model serving|gpu|cuda|pytorch|"
    r"tensorflow|training|fine.?tuning|quantization|gguf|ggml|ollama)\b"
)

# Checked in order; an entry may match several roles
ROLE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (role, re.compile(pattern))
    for role, pattern in (
        (
            "marketing",
            r"marketing|seo|content|copywriting|social media|ads|advertising|email|campaign|brand",
        ),
        (
            "sales",
            r"sales|crm|lead|outreach|prospecting|pipeline|deal|revenue|cold email",
        ),
        (
            "product",
            r"product|roadmap|feature|user research|analytics|feedback|\bpm\b|prototype|user testing",
        ),
        (
            "engineering",
            r"code|developer|\bapi\b|\bsdk\b|programming|debug|deploy|devops|backend|"
            r"frontend|full.?stack|github|\bgit\b",
        ),
        (
            "design",
            r"design|\bui\b|\bux\b|figma|sketch|prototype|wireframe|graphic|visual|"
            r"creative|image|video|animation",
        ),
        (
            "operations",
            r"operations|automation|workflow|process|efficiency|productivity|task|"
            r"project management|notion|scheduling",
        ),
        (
            "hr",
            r"\bhr\b|hiring|recruit|talent|employee|onboarding|performance|people|interview",
        ),
    )
)


def _text(*parts: str | None, tags: list[str] | None = None) -> str:
    return " ".join([*(p or "" for p in parts), *(tags or [])]).lower()


def is_llm_or_infrastructure(
    name: str,
    tagline: str | None = None,
    description: str | None = None,
    category: str | None = None,
    tags: list[str] | None = None,
) -> bool:
    text = _text(name, tagline, description, category, tags=tags)
    return bool(_LLM_PATTERN.search(text) or _INFRA_PATTERN.search(text))


def infer_target_roles(
    name: str,
    tagline: str | None = None,
    description: str | None = None,
    category: str | None = None,
    tags: list[str] | None = None,
) -> list[str]:
    """Job functions an entry is aimed at, in ROLE_PATTERNS order."""
    if is_llm_or_infrastructure(name, tagline, description, category, tags):
        return [LLM_ROLE]

    text = _text(name, tagline, description, tags=tags)
    roles = [role for role, pattern in ROLE_PATTERNS if pattern.search(text)]
    return roles or [GENERAL_ROLE]
