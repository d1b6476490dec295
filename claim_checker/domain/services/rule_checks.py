"""Independent legitimacy checks run against every claim submission."""

import asyncio
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..models.claim import ClaimStatus, ClaimSubmission, utc_now
from ..models.item import Item, ItemStatus
from ..models.verification import CheckStatus, Severity, VerificationCheck
from ..ports.claim_store import ClaimStore

logger = logging.getLogger(__name__)

ITEM_AVAILABILITY = "Item Availability"
DUPLICATE_CLAIM = "Duplicate Claim Detection"
SELF_CLAIM = "Self-Claim Detection"
RATE_LIMIT = "Rate Limit Check"
COMPETING_CLAIMS = "Competing Claims"
USER_HISTORY = "User Claim History"
ANSWER_QUALITY = "Answer Quality"
DESCRIPTION_QUALITY = "Description Quality"
PROOF_OF_OWNERSHIP = "Proof of Ownership"

CHECK_ORDER = (
    ITEM_AVAILABILITY,
    DUPLICATE_CLAIM,
    SELF_CLAIM,
    RATE_LIMIT,
    COMPETING_CLAIMS,
    USER_HISTORY,
    ANSWER_QUALITY,
    DESCRIPTION_QUALITY,
    PROOF_OF_OWNERSHIP,
)

GENERIC_ANSWERS = ("yes", "no", "idk", "none", "na", "n/a", "maybe")


class RuleCheckConfig(BaseModel):
    """Thresholds for the rule check battery."""

    store_timeout: float = Field(default=5.0, gt=0, description="Per-check store query timeout in seconds")
    flood_window_hours: int = Field(default=24, gt=0, description="Trailing window for the rate limit")
    flood_warn_threshold: int = Field(default=3, description="Claims in window that trigger a warning")
    flood_fail_threshold: int = Field(default=5, description="Claims in window that fail the check")
    history_warn_threshold: int = Field(default=1, description="Rejected claims that trigger a warning")
    history_fail_threshold: int = Field(default=3, description="Rejected claims that fail the check")
    min_answers: int = Field(default=2, description="Minimum non-empty security answers")
    generic_answers: Tuple[str, ...] = Field(default=GENERIC_ANSWERS, description="Answers treated as guessing")

    @classmethod
    def from_env(cls) -> "RuleCheckConfig":
        """Create configuration from environment variables."""
        store_timeout = float(os.getenv("STORE_TIMEOUT_SECONDS", "5"))
        logger.info(f"🔧 Rule checks configured with {store_timeout}s store timeout")
        return cls(store_timeout=store_timeout)


def _check(name: str, status: CheckStatus, message: str, severity: Severity) -> VerificationCheck:
    return VerificationCheck(name=name, status=status, message=message, severity=severity)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class RuleCheckBattery:
    """Runs the nine legitimacy checks for a claim.

    The five checks that need the store are issued concurrently and each
    one is bounded by ``config.store_timeout``. A store failure or timeout
    turns that check into a warning with its normal severity; it never
    aborts the battery.
    """

    def __init__(
        self,
        store: ClaimStore,
        config: Optional[RuleCheckConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the battery.

        Args:
            store: Store used for claim history and reporter lookups
            config: Check thresholds
            clock: Source of the current time for the rate limit window
        """
        self._store = store
        self._config = config or RuleCheckConfig()
        self._clock = clock

    async def run(self, submission: ClaimSubmission) -> List[VerificationCheck]:
        """Run every check for a submission.

        Args:
            submission: Claim to check, carrying a fresh item snapshot

        Returns:
            Checks in their fixed reporting order
        """
        duplicate, self_claim, flood, competing, history = await asyncio.gather(
            self._guarded(
                DUPLICATE_CLAIM, Severity.CRITICAL,
                "Could not verify duplicate claims.",
                self.check_duplicate_claim(submission),
            ),
            self._guarded(
                SELF_CLAIM, Severity.CRITICAL,
                "Could not verify self-claim status.",
                self.check_self_claim(submission),
            ),
            self._guarded(
                RATE_LIMIT, Severity.MAJOR,
                "Could not verify claim rate.",
                self.check_claim_flood(submission),
            ),
            self._guarded(
                COMPETING_CLAIMS, Severity.MAJOR,
                "Could not check competing claims.",
                self.check_competing_claims(submission),
            ),
            self._guarded(
                USER_HISTORY, Severity.MAJOR,
                "Could not verify user claim history.",
                self.check_user_history(submission),
            ),
        )

        return [
            self.check_item_availability(submission.item),
            duplicate,
            self_claim,
            flood,
            competing,
            history,
            self.check_answer_quality(submission),
            self.check_description_quality(submission.claimer_description),
            self.check_proof_of_ownership(submission.proof_images),
        ]

    async def _guarded(
        self,
        name: str,
        severity: Severity,
        failure_message: str,
        check: Awaitable[VerificationCheck],
    ) -> VerificationCheck:
        try:
            return await asyncio.wait_for(check, timeout=self._config.store_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"⚠️ {name} timed out after {self._config.store_timeout}s")
        except Exception as e:
            logger.warning(f"⚠️ {name} store query failed: {e}")
        return _check(name, CheckStatus.WARN, failure_message, severity)

    # Store-backed checks

    async def check_duplicate_claim(self, submission: ClaimSubmission) -> VerificationCheck:
        """Fail when this email already claimed this item."""
        existing = await self._store.find_claims(
            item_id=submission.item_id,
            claimer_email=submission.claimer_email.lower(),
        )
        if existing:
            count = len(existing)
            plural = "s" if count > 1 else ""
            return _check(
                DUPLICATE_CLAIM, CheckStatus.FAIL,
                f"This email has already submitted a claim for this item ({count} existing claim{plural}).",
                Severity.CRITICAL,
            )
        return _check(
            DUPLICATE_CLAIM, CheckStatus.PASS,
            "No previous claims from this email for this item.",
            Severity.CRITICAL,
        )

    async def check_claim_flood(self, submission: ClaimSubmission) -> VerificationCheck:
        """Limit how many claims one email submits in the trailing window."""
        claims = await self._store.find_claims(claimer_email=submission.claimer_email.lower())
        hours = self._config.flood_window_hours
        cutoff = self._clock() - timedelta(hours=hours)
        recent = sum(1 for claim in claims if _as_utc(claim.claimed_at) > cutoff)

        if recent >= self._config.flood_fail_threshold:
            return _check(
                RATE_LIMIT, CheckStatus.FAIL,
                f"This user submitted {recent} claims in the last {hours} hours. Possible abuse.",
                Severity.MAJOR,
            )
        if recent >= self._config.flood_warn_threshold:
            return _check(
                RATE_LIMIT, CheckStatus.WARN,
                f"{recent} claims in {hours} hours, above average activity.",
                Severity.MAJOR,
            )
        return _check(
            RATE_LIMIT, CheckStatus.PASS,
            f"{recent} claim(s) in the last {hours} hours, normal activity.",
            Severity.MAJOR,
        )

    async def check_competing_claims(self, submission: ClaimSubmission) -> VerificationCheck:
        """Warn when other claims on the item are still awaiting review."""
        pending = await self._store.find_claims(
            item_id=submission.item_id,
            status=ClaimStatus.PENDING,
        )
        if pending:
            return _check(
                COMPETING_CLAIMS, CheckStatus.WARN,
                f"{len(pending)} other pending claim(s) exist for this item. Requires manual review.",
                Severity.MAJOR,
            )
        return _check(
            COMPETING_CLAIMS, CheckStatus.PASS,
            "No other pending claims for this item.",
            Severity.MAJOR,
        )

    async def check_self_claim(self, submission: ClaimSubmission) -> VerificationCheck:
        """Fail when the claimant reported the item themselves.

        Matches on user id or on reporter email. A claimant who is not
        signed in and uses a different email is not detected.
        """
        item = await self._store.get_item(submission.item_id)
        if item is not None:
            if submission.user_id and item.created_by == submission.user_id:
                return _check(
                    SELF_CLAIM, CheckStatus.FAIL,
                    "The claimer is the same person who reported finding this item.",
                    Severity.CRITICAL,
                )
            if item.created_by_email and item.created_by_email.lower() == submission.claimer_email.lower():
                return _check(
                    SELF_CLAIM, CheckStatus.FAIL,
                    "The claimer email matches the person who reported this item.",
                    Severity.CRITICAL,
                )
        return _check(
            SELF_CLAIM, CheckStatus.PASS,
            "Claimer is not the item reporter.",
            Severity.CRITICAL,
        )

    async def check_user_history(self, submission: ClaimSubmission) -> VerificationCheck:
        """Penalize claimants with previously rejected claims on any item."""
        rejected = await self._store.find_claims(
            claimer_email=submission.claimer_email.lower(),
            status=ClaimStatus.REJECTED,
        )
        count = len(rejected)
        if count >= self._config.history_fail_threshold:
            return _check(
                USER_HISTORY, CheckStatus.FAIL,
                f"This user has {count} previously rejected claims. Repeated fraudulent behavior.",
                Severity.MAJOR,
            )
        if count >= self._config.history_warn_threshold:
            return _check(
                USER_HISTORY, CheckStatus.WARN,
                f"This user has {count} previously rejected claim(s). Exercise caution.",
                Severity.MAJOR,
            )
        return _check(
            USER_HISTORY, CheckStatus.PASS,
            "No previously rejected claims from this user.",
            Severity.MAJOR,
        )

    # Synchronous checks

    def check_item_availability(self, item: Item) -> VerificationCheck:
        """Fail for claimed items and warn while another claim is pending."""
        if item.status == ItemStatus.CLAIMED:
            return _check(
                ITEM_AVAILABILITY, CheckStatus.FAIL,
                "This item has already been claimed by someone else.",
                Severity.CRITICAL,
            )
        if item.status == ItemStatus.PENDING:
            return _check(
                ITEM_AVAILABILITY, CheckStatus.WARN,
                "This item has a pending claim being reviewed.",
                Severity.CRITICAL,
            )
        return _check(
            ITEM_AVAILABILITY, CheckStatus.PASS,
            "Item is available for claiming.",
            Severity.CRITICAL,
        )

    def check_answer_quality(self, submission: ClaimSubmission) -> VerificationCheck:
        """Judge whether the security answers carry real information."""
        answers = submission.answered
        generic = set(self._config.generic_answers)
        suspicious = [
            answer for answer in answers
            if len(answer.strip()) < 3 or answer.strip().lower() in generic
        ]

        if len(answers) < self._config.min_answers:
            return _check(
                ANSWER_QUALITY, CheckStatus.FAIL,
                f"Only {len(answers)} security question(s) answered, insufficient for verification.",
                Severity.MAJOR,
            )
        if len(suspicious) > len(answers) / 2:
            return _check(
                ANSWER_QUALITY, CheckStatus.WARN,
                f"{len(suspicious)} of {len(answers)} answers are very generic or short. Possible guessing.",
                Severity.MAJOR,
            )

        answered_ratio = len(answers) / (len(submission.security_answers) or 1)
        average_length = sum(len(answer) for answer in answers) / len(answers)
        if average_length > 15 and answered_ratio >= 0.6:
            return _check(
                ANSWER_QUALITY, CheckStatus.PASS,
                f"{len(answers)} detailed answers provided (avg {round(average_length)} chars), good specificity.",
                Severity.MAJOR,
            )
        return _check(
            ANSWER_QUALITY, CheckStatus.PASS,
            f"{len(answers)} answers provided with moderate detail.",
            Severity.MAJOR,
        )

    def check_description_quality(self, claimer_description: str) -> VerificationCheck:
        """Warn when the identification description is missing or very short."""
        description = (claimer_description or "").strip()
        if len(description) < 5:
            return _check(
                DESCRIPTION_QUALITY, CheckStatus.WARN,
                "No meaningful identification description provided.",
                Severity.MINOR,
            )
        if len(description) < 20:
            return _check(
                DESCRIPTION_QUALITY, CheckStatus.WARN,
                "Very short description, limited verification value.",
                Severity.MINOR,
            )
        if len(description) >= 50:
            return _check(
                DESCRIPTION_QUALITY, CheckStatus.PASS,
                f"Detailed description provided ({len(description)} chars), strong identification signal.",
                Severity.MINOR,
            )
        return _check(
            DESCRIPTION_QUALITY, CheckStatus.PASS,
            f"Description provided ({len(description)} chars).",
            Severity.MINOR,
        )

    def check_proof_of_ownership(self, proof_images: List[str]) -> VerificationCheck:
        """Warn when no proof images were uploaded."""
        count = len(proof_images)
        if count >= 2:
            return _check(
                PROOF_OF_OWNERSHIP, CheckStatus.PASS,
                f"{count} proof image(s) uploaded, strong evidence.",
                Severity.MINOR,
            )
        if count == 1:
            return _check(
                PROOF_OF_OWNERSHIP, CheckStatus.PASS,
                "1 proof image uploaded.",
                Severity.MINOR,
            )
        return _check(
            PROOF_OF_OWNERSHIP, CheckStatus.WARN,
            "No proof images uploaded. Consider requesting evidence.",
            Severity.MINOR,
        )
