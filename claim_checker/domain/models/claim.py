"""Domain models for ownership claims."""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from .item import Item
from .verification import ClaimDecision, ClaimVerificationResult

MAX_PROOF_IMAGES = 3


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class ClaimStatus(str, Enum):
    """Status of a persisted claim."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def from_decision(cls, decision: ClaimDecision) -> "ClaimStatus":
        """Mirror a pipeline decision onto the stored claim status."""
        return {
            ClaimDecision.AUTO_APPROVED: cls.APPROVED,
            ClaimDecision.AUTO_REJECTED: cls.REJECTED,
            ClaimDecision.PENDING_REVIEW: cls.PENDING,
        }[decision]


class ClaimSubmission(BaseModel):
    """An ownership claim as submitted by a claimant."""

    item_id: str = Field(..., min_length=1, description="Identifier of the claimed item")
    item: Optional[Item] = Field(None, description="Snapshot of the claimed item, refreshed from the store before scoring")
    claimer_name: str = Field(..., min_length=1, description="Claimant full name")
    claimer_email: str = Field(..., min_length=3, description="Claimant email")
    claimer_phone: Optional[str] = Field(None, description="Claimant phone number")
    claimer_description: str = Field(default="", description="Claimant's identification description")
    security_answers: Dict[str, str] = Field(
        default_factory=dict,
        description="Security question id to free-text answer",
    )
    proof_images: List[str] = Field(
        default_factory=list,
        max_length=MAX_PROOF_IMAGES,
        description="References to uploaded proof images",
    )
    user_id: Optional[str] = Field(None, description="Authenticated claimant user id")

    @field_validator("claimer_name", "claimer_email")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("claimer_email")
    @classmethod
    def _email_shape(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("must be an email address")
        return value.lower()

    @field_validator("claimer_description", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return value or ""

    @property
    def answered(self) -> List[str]:
        """Non-empty security answers, in submission order."""
        return [answer for answer in self.security_answers.values() if answer.strip()]

    class Config:
        """Pydantic model configuration."""
        frozen = True


class StoredClaim(BaseModel):
    """Read-only projection of a persisted claim used by history checks."""

    item_id: str
    claimer_email: str
    claimed_at: datetime
    status: ClaimStatus

    @field_validator("claimer_email")
    @classmethod
    def _lowercase_email(cls, value: str) -> str:
        return value.strip().lower()

    class Config:
        """Pydantic model configuration."""
        frozen = True


class ClaimRecord(BaseModel):
    """A persisted claim: the submission plus its verification verdict."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    submission: ClaimSubmission
    verification: ClaimVerificationResult
    status: ClaimStatus
    claimed_at: datetime = Field(default_factory=utc_now)
    processed_at: Optional[datetime] = None
    processed_by: Optional[str] = None

    @classmethod
    def from_verification(
        cls,
        submission: ClaimSubmission,
        verification: ClaimVerificationResult,
    ) -> "ClaimRecord":
        """Build the record the caller persists after a pipeline run."""
        return cls(
            submission=submission,
            verification=verification,
            status=ClaimStatus.from_decision(verification.decision),
        )

    def to_stored_claim(self) -> StoredClaim:
        """Project the record onto the fields the history checks read."""
        return StoredClaim(
            item_id=self.submission.item_id,
            claimer_email=self.submission.claimer_email,
            claimed_at=self.claimed_at,
            status=self.status,
        )
