"""Viability assessment schemas."""

from enum import Enum

from pydantic import Field, model_validator

from .base import BaseSchema


class TargetAudience(str, Enum):
    """Who the product is built for."""

    B2B = "b2b"
    B2C = "b2c"
    DEVELOPER = "developer"
    UNKNOWN = "unknown"


class ProductType(str, Enum):
    """Kind of thing the candidate is."""

    SAAS = "saas"
    LIBRARY = "library"
    FRAMEWORK = "framework"
    GAME = "game"
    TUTORIAL = "tutorial"
    EXAM_PREP = "exam_prep"
    STUDENT_TOOL = "student_tool"
    OTHER = "other"


class BusinessCategory(str, Enum):
    """Priority business category of a product."""

    MARKETING = "marketing"
    SALES = "sales"
    CUSTOMER_SERVICE = "customer_service"
    PRODUCTIVITY = "productivity"
    DEVELOPER = "developer"
    OTHER = "other"


class AssessmentSource(str, Enum):
    """Which gatekeeper tier produced the verdict."""

    PREVALIDATION = "prevalidation"
    CLASSIFIER = "classifier"
    RULES = "rules"


class ViabilityAssessment(BaseSchema):
    """Commercial viability verdict for one candidate."""

    is_commercial_saas: bool
    target_audience: TargetAudience = TargetAudience.UNKNOWN
    product_type: ProductType = ProductType.OTHER
    business_category: BusinessCategory = BusinessCategory.OTHER
    confidence: float = Field(..., ge=0.0, le=1.0)
    rejection_reason: str | None = None
    assessed_by: AssessmentSource = AssessmentSource.RULES

    @model_validator(mode="after")
    def _reason_only_when_rejected(self) -> "ViabilityAssessment":
        if self.is_commercial_saas:
            self.rejection_reason = None
        return self


class Taxonomy(BaseSchema):
    """Fixed taxonomy handed to the classifier."""

    audiences: list[str] = Field(
        default_factory=lambda: [a.value for a in TargetAudience]
    )
    product_types: list[str] = Field(
        default_factory=lambda: [p.value for p in ProductType]
    )
    business_categories: list[str] = Field(
        default_factory=lambda: [c.value for c in BusinessCategory]
    )
