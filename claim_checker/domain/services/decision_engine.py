"""Blends scores, derives risk and applies the claim decision policy."""

import logging
import os
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from ..models.verification import (
    CheckStatus,
    ClaimDecision,
    ClaimVerificationResult,
    LocalScore,
    RiskLevel,
    Severity,
    VerificationCheck,
)
from ..ports.ai_provider import AIAssessment
from .similarity import round_score

logger = logging.getLogger(__name__)


class DecisionPolicy(BaseModel):
    """Blend weights, penalties and the approval threshold."""

    ai_weight: float = Field(default=0.55, ge=0, description="AI score weight when AI is present")
    ai_local_weight: float = Field(default=0.30, ge=0, description="Local score weight when AI is present")
    ai_bonus_weight: float = Field(default=0.15, ge=0, description="Check bonus weight when AI is present")
    local_weight: float = Field(default=0.70, ge=0, description="Local score weight without AI")
    bonus_weight: float = Field(default=0.30, ge=0, description="Check bonus weight without AI")
    approval_threshold: int = Field(default=70, ge=0, le=100, description="Minimum overall score to auto-approve")
    fail_penalties: Dict[Severity, int] = Field(
        default_factory=lambda: {Severity.CRITICAL: 40, Severity.MAJOR: 20, Severity.MINOR: 10}
    )
    warn_penalties: Dict[Severity, int] = Field(
        default_factory=lambda: {Severity.CRITICAL: 20, Severity.MAJOR: 10, Severity.MINOR: 5}
    )

    class Config:
        """Pydantic model configuration."""
        frozen = True

    @classmethod
    def from_env(cls) -> "DecisionPolicy":
        """Create a policy, letting ``DECISION_*`` variables override the defaults."""
        overrides = {}
        for field_name, env_name in (
            ("ai_weight", "DECISION_AI_WEIGHT"),
            ("ai_local_weight", "DECISION_AI_LOCAL_WEIGHT"),
            ("ai_bonus_weight", "DECISION_AI_BONUS_WEIGHT"),
            ("local_weight", "DECISION_LOCAL_WEIGHT"),
            ("bonus_weight", "DECISION_BONUS_WEIGHT"),
            ("approval_threshold", "DECISION_APPROVAL_THRESHOLD"),
        ):
            value = os.getenv(env_name)
            if value:
                overrides[field_name] = value
        if overrides:
            logger.info(f"🔧 Decision policy overrides: {overrides}")
        return cls(**overrides)


class DecisionEngine:
    """Turns checks and scores into a claim verdict.

    The verdict depends only on its inputs; the timestamp and processing
    time on the result are metadata. The engine never touches items.
    """

    def __init__(self, policy: Optional[DecisionPolicy] = None):
        self.policy = policy or DecisionPolicy()

    def check_bonus(self, checks: Sequence[VerificationCheck]) -> int:
        """100 minus the penalties of failing and warning checks, floored at 0."""
        bonus = 100
        for check in checks:
            if check.failed:
                bonus -= self.policy.fail_penalties[check.severity]
            elif check.warned:
                bonus -= self.policy.warn_penalties[check.severity]
        return max(0, bonus)

    def overall_score(self, local_percentage: int, bonus: int, ai_score: Optional[int] = None) -> int:
        """Blend the local percentage, the check bonus and an optional AI score."""
        policy = self.policy
        if ai_score is not None:
            blended = (
                ai_score * policy.ai_weight
                + local_percentage * policy.ai_local_weight
                + bonus * policy.ai_bonus_weight
            )
        else:
            blended = local_percentage * policy.local_weight + bonus * policy.bonus_weight
        return max(0, min(100, round_score(blended)))

    def risk_level(self, checks: Sequence[VerificationCheck]) -> RiskLevel:
        """Derive the risk tier from check outcomes alone."""
        critical_fails, major_fails, warnings = self._partition(checks)
        if critical_fails:
            return RiskLevel.CRITICAL
        if len(major_fails) >= 2:
            return RiskLevel.HIGH
        if major_fails or len(warnings) >= 3:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def decision_for(
        self,
        checks: Sequence[VerificationCheck],
        overall: int,
        risk: RiskLevel,
    ) -> Tuple[ClaimDecision, str]:
        """Apply the decision policy, first matching rule wins.

        Args:
            checks: All verification checks
            overall: Blended overall score
            risk: Risk tier derived from the checks

        Returns:
            Decision and its human-readable summary
        """
        critical_fails, major_fails, warnings = self._partition(checks)

        if critical_fails:
            reasons = " | ".join(check.message for check in critical_fails)
            return ClaimDecision.AUTO_REJECTED, f"Claim rejected: {reasons}"

        if len(major_fails) >= 2:
            names = ", ".join(check.name for check in major_fails)
            return ClaimDecision.AUTO_REJECTED, f"Claim rejected due to multiple major issues: {names}."

        if risk == RiskLevel.LOW and overall >= self.policy.approval_threshold and not major_fails:
            return (
                ClaimDecision.AUTO_APPROVED,
                f"Claim auto-approved with {overall}% confidence. All verification checks passed.",
            )

        issues = ", ".join(check.name for check in major_fails + warnings)
        return (
            ClaimDecision.PENDING_REVIEW,
            f"Claim requires admin review ({overall}% score). Flagged: {issues or 'moderate confidence'}.",
        )

    def decide(
        self,
        checks: Sequence[VerificationCheck],
        local_score: LocalScore,
        ai_score: Optional[int] = None,
        ai_assessment: Optional[AIAssessment] = None,
        ai_error: Optional[str] = None,
        processing_time_ms: int = 0,
    ) -> ClaimVerificationResult:
        """Produce the verification result for a set of checks and scores.

        Args:
            checks: Rule checks, plus AI-derived checks when AI was used
            local_score: Output of the local heuristic scorer
            ai_score: AI verification score, ``None`` when AI was not used
            ai_assessment: Full AI assessment attached to the result
            ai_error: Why AI input is missing although AI is configured
            processing_time_ms: Pipeline duration, metadata only

        Returns:
            Claim verification result
        """
        bonus = self.check_bonus(checks)
        overall = self.overall_score(local_score.percentage, bonus, ai_score)
        risk = self.risk_level(checks)
        decision, summary = self.decision_for(checks, overall, risk)

        logger.info(f"⚖️ Decision {decision.value} (score {overall}, risk {risk.value}, bonus {bonus})")
        return ClaimVerificationResult(
            decision=decision,
            overall_score=overall,
            risk_level=risk,
            checks=list(checks),
            ai_assessment=ai_assessment,
            summary=summary,
            processing_time_ms=processing_time_ms,
            local_score=local_score,
            check_bonus=bonus,
            ai_error=ai_error,
        )

    @staticmethod
    def _partition(
        checks: Sequence[VerificationCheck],
    ) -> Tuple[List[VerificationCheck], List[VerificationCheck], List[VerificationCheck]]:
        critical_fails = [c for c in checks if c.failed and c.severity == Severity.CRITICAL]
        major_fails = [c for c in checks if c.failed and c.severity == Severity.MAJOR]
        warnings = [c for c in checks if c.status == CheckStatus.WARN]
        return critical_fails, major_fails, warnings
