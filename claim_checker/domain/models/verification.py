"""Domain models for claim verification results and related entities."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from ..ports.ai_provider import AIAssessment


class CheckStatus(str, Enum):
    """Outcome of a single legitimacy check."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


class Severity(str, Enum):
    """How much weight a check carries in the decision."""

    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class ClaimDecision(str, Enum):
    """Verdict of the verification pipeline."""

    AUTO_APPROVED = "auto_approved"
    PENDING_REVIEW = "pending_review"
    AUTO_REJECTED = "auto_rejected"


class RiskLevel(str, Enum):
    """Risk tier of a claim."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"  # Only produced by the decision engine


class VerificationCheck(BaseModel):
    """One atomic legitimacy signal."""

    name: str = Field(..., description="Stable check identifier")
    status: CheckStatus = Field(..., description="pass, warn or fail")
    message: str = Field(..., description="Human-readable explanation")
    severity: Severity = Field(..., description="Weight of the check")

    @property
    def failed(self) -> bool:
        return self.status == CheckStatus.FAIL

    @property
    def warned(self) -> bool:
        return self.status == CheckStatus.WARN

    class Config:
        """Pydantic model configuration."""
        frozen = True  # Immutable model
        json_schema_extra = {
            "example": {
                "name": "Duplicate Claim Detection",
                "status": "pass",
                "message": "No previous claims from this email for this item.",
                "severity": "critical",
            }
        }


class ScoreBreakdown(BaseModel):
    """Points awarded for one local scoring signal."""

    category: str
    points: int
    max_points: int
    details: str

    class Config:
        """Pydantic model configuration."""
        frozen = True


class LocalScore(BaseModel):
    """Result of the local heuristic scorer."""

    score: int = Field(..., ge=0, description="Points awarded")
    max_score: int = Field(..., ge=100, description="Points available, floored at 100")
    percentage: int = Field(..., ge=0, le=100, description="score / max_score as a percentage")
    breakdown: List[ScoreBreakdown] = Field(default_factory=list)
    risk_level: RiskLevel = Field(..., description="low, medium or high")

    class Config:
        """Pydantic model configuration."""
        frozen = True


class ClaimVerificationResult(BaseModel):
    """The authoritative verdict for one claim submission."""

    decision: ClaimDecision
    overall_score: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    checks: List[VerificationCheck] = Field(default_factory=list)
    ai_assessment: Optional[AIAssessment] = None
    summary: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    processing_time_ms: int = 0

    # Metadata, not decision inputs
    local_score: Optional[LocalScore] = None
    check_bonus: int = Field(default=100, ge=0, le=100)
    ai_error: Optional[str] = None

    class Config:
        """Pydantic model configuration."""
        frozen = True
        json_schema_extra = {
            "example": {
                "decision": "pending_review",
                "overall_score": 63,
                "risk_level": "medium",
                "checks": [],
                "summary": "Claim requires admin review (63% score). Flagged: Competing Claims.",
                "processing_time_ms": 412,
            }
        }
