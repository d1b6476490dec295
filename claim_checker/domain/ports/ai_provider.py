"""Protocol for AI assessment providers."""

from enum import Enum
from typing import Dict, List, Protocol, Sequence, Tuple

from pydantic import BaseModel, Field

from ..errors import AssessmentUnavailable
from ..models.item import Item

__all__ = [
    "AIAssessment",
    "AIBreakdownEntry",
    "AIConfidence",
    "AIDescriptionEnhancement",
    "AIMatchCandidate",
    "AIProvider",
    "AIRiskLevel",
    "AssessmentUnavailable",
]


class AIConfidence(str, Enum):
    """Confidence the AI reports in its own verdict."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AIRiskLevel(str, Enum):
    """Risk tier reported by the AI."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AIBreakdownEntry(BaseModel):
    """One aspect the AI scored."""

    category: str
    points: int
    max_points: int
    insight: str = ""


class AIAssessment(BaseModel):
    """Structured ownership verdict returned by an AI provider."""

    verification_score: int = Field(default=0, ge=0, le=100, description="Ownership likelihood 0-100")
    confidence: AIConfidence = Field(default=AIConfidence.LOW)
    risk_level: AIRiskLevel = Field(default=AIRiskLevel.HIGH)
    reasoning: str = Field(default="Unable to fully assess")
    breakdown: List[AIBreakdownEntry] = Field(default_factory=list)
    overall_assessment: str = Field(default="Manual review recommended")
    red_flags: List[str] = Field(default_factory=list)
    positive_indicators: List[str] = Field(default_factory=list)

    class Config:
        """Pydantic model configuration."""
        frozen = True


class AIMatchCandidate(BaseModel):
    """AI score for one candidate in a batch match."""

    item_id: str
    score: int = Field(..., ge=0, le=100)
    reasoning: str = ""
    matched_attributes: List[str] = Field(default_factory=list)


class AIDescriptionEnhancement(BaseModel):
    """Suggested rewrite of an item report that is easier to match."""

    enhanced_description: str
    suggested_keywords: List[str] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)

    class Config:
        """Pydantic model configuration."""
        frozen = True


class AIProvider(Protocol):
    """Protocol defining the interface for AI providers.

    Every call either returns a parsed result or raises
    ``AssessmentUnavailable``; callers never see transport exceptions.
    """

    async def initialize(self) -> None:
        """Initialize the AI provider."""
        ...

    async def shutdown(self) -> None:
        """Clean up resources."""
        ...

    async def assess_claim(
        self,
        item: Item,
        claim_description: str,
        security_qa: Sequence[Tuple[str, str]],
    ) -> AIAssessment:
        """Assess how likely the claimant owns the item."""
        ...

    async def batch_match(
        self,
        new_item: Item,
        candidates: Sequence[Item],
    ) -> List[AIMatchCandidate]:
        """Score candidates as the counterpart of a new report."""
        ...

    async def enhance_description(
        self,
        name: str,
        category: str,
        description: str,
    ) -> AIDescriptionEnhancement:
        """Suggest a richer description and keywords for an item report."""
        ...

    async def ping(self) -> str:
        """Send a minimal request and return the model that answered."""
        ...

    @property
    def provider_name(self) -> str:
        """Get the provider name."""
        ...

    @property
    def is_available(self) -> bool:
        """Check if the provider is available and ready."""
        ...

    @property
    def capabilities(self) -> Dict[str, bool]:
        """Get the provider's capabilities."""
        ...
