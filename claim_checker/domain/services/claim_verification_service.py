"""Service running the claim verification pipeline and claim submission."""

import asyncio
import logging
import time
from typing import List, Optional, Set, Tuple

from ..errors import AssessmentUnavailable, ItemNotFoundError, StoreUnavailableError
from ..models.claim import ClaimRecord, ClaimSubmission
from ..models.item import Item, ItemStatus
from ..models.security_questions import question_answer_pairs
from ..models.verification import (
    CheckStatus,
    ClaimDecision,
    ClaimVerificationResult,
    Severity,
    VerificationCheck,
)
from ..ports.ai_provider import AIAssessment, AIProvider
from ..ports.claim_store import ClaimStore
from ..ports.notifier import NotificationEvent, NotificationType, Notifier
from .decision_engine import DecisionEngine
from .local_scoring_service import LocalHeuristicScorer
from .rule_checks import RuleCheckBattery

logger = logging.getLogger(__name__)

AI_OWNERSHIP_ANALYSIS = "AI Ownership Analysis"
AI_RED_FLAGS = "AI Red Flags"
AI_PASS_SCORE = 65
AI_WARN_SCORE = 35


def ai_checks(assessment: AIAssessment) -> List[VerificationCheck]:
    """Checks derived from an AI assessment, appended after the rule checks."""
    score = assessment.verification_score
    if score >= AI_PASS_SCORE:
        status = CheckStatus.PASS
    elif score >= AI_WARN_SCORE:
        status = CheckStatus.WARN
    else:
        status = CheckStatus.FAIL

    checks = [VerificationCheck(
        name=AI_OWNERSHIP_ANALYSIS,
        status=status,
        message=assessment.overall_assessment,
        severity=Severity.MAJOR,
    )]
    if assessment.red_flags:
        checks.append(VerificationCheck(
            name=AI_RED_FLAGS,
            status=CheckStatus.WARN,
            message="; ".join(assessment.red_flags),
            severity=Severity.MAJOR,
        ))
    return checks


class ClaimVerificationService:
    """Runs one verification pipeline per claim.

    The target item is read first; that read is the only fatal step.
    The rule checks and the AI assessment then run concurrently, the
    local scorer runs on the fresh item and the decision engine combines
    everything once all of them have resolved.
    """

    def __init__(
        self,
        store: ClaimStore,
        ai_provider: Optional[AIProvider] = None,
        notifier: Optional[Notifier] = None,
        battery: Optional[RuleCheckBattery] = None,
        scorer: Optional[LocalHeuristicScorer] = None,
        engine: Optional[DecisionEngine] = None,
        ai_timeout: float = 20.0,
        store_timeout: float = 5.0,
    ):
        """Initialize the service.

        Args:
            store: Item and claim store
            ai_provider: Optional AI assessment provider
            notifier: Optional sink for claim notifications
            battery: Rule check battery, built on ``store`` when omitted
            scorer: Local heuristic scorer
            engine: Decision engine
            ai_timeout: Upper bound in seconds for one AI assessment
            store_timeout: Upper bound in seconds for the item lookup
        """
        self.store = store
        self.ai = ai_provider
        self.notifier = notifier
        self.battery = battery or RuleCheckBattery(store)
        self.scorer = scorer or LocalHeuristicScorer()
        self.engine = engine or DecisionEngine()
        self.ai_timeout = ai_timeout
        self.store_timeout = store_timeout
        self._pending_notifications: Set[asyncio.Task] = set()
        logger.info(
            f"🔧 ClaimVerificationService initialized "
            f"(store={store.provider_name}, ai={ai_provider.provider_name if ai_provider else 'none'})"
        )

    async def verify_claim(self, submission: ClaimSubmission) -> ClaimVerificationResult:
        """Verify a claim without persisting anything.

        Args:
            submission: The claim to verify

        Returns:
            Verification result

        Raises:
            ItemNotFoundError: If the claimed item does not exist
            StoreUnavailableError: If the item could not be read
        """
        _, result = await self._run(submission)
        return result

    async def submit_claim(self, submission: ClaimSubmission) -> ClaimRecord:
        """Verify a claim, persist it and apply the item status change.

        Nothing is written when verification fails. The notification is
        sent on a background task and never affects the returned record.

        Args:
            submission: The claim to submit

        Returns:
            The persisted claim record
        """
        submission, result = await self._run(submission)
        record = ClaimRecord.from_verification(submission, result)

        try:
            await self.store.insert_claim(record)
        except Exception as e:
            logger.error(f"❌ Failed to persist claim for item {submission.item_id}: {e}")
            raise StoreUnavailableError(f"Could not store claim: {e}") from e
        logger.info(f"✅ Claim {record.id} stored with status {record.status.value}")

        await self._apply_item_status(submission.item, result.decision)
        self._notify(record)
        return record

    async def _run(self, submission: ClaimSubmission) -> Tuple[ClaimSubmission, ClaimVerificationResult]:
        started = time.perf_counter()
        logger.info(f"🔍 Verifying claim on item {submission.item_id} by {submission.claimer_email}")

        item = await self._load_item(submission.item_id)
        submission = submission.model_copy(update={"item": item})

        checks, (assessment, ai_error) = await asyncio.gather(
            self.battery.run(submission),
            self._assess(submission),
        )
        local_score = self.scorer.score(item, submission.security_answers, submission.claimer_description)

        checks = list(checks)
        ai_score = None
        if assessment is not None:
            checks.extend(ai_checks(assessment))
            ai_score = assessment.verification_score

        result = self.engine.decide(
            checks,
            local_score,
            ai_score=ai_score,
            ai_assessment=assessment,
            ai_error=ai_error,
            processing_time_ms=int((time.perf_counter() - started) * 1000),
        )
        return submission, result

    async def _load_item(self, item_id: str) -> Item:
        try:
            item = await asyncio.wait_for(self.store.get_item(item_id), timeout=self.store_timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"❌ Item lookup for {item_id} timed out after {self.store_timeout}s")
            raise StoreUnavailableError(f"Item lookup timed out for '{item_id}'") from e
        except Exception as e:
            logger.error(f"❌ Item lookup for {item_id} failed: {e}")
            raise StoreUnavailableError(f"Item lookup failed for '{item_id}': {e}") from e

        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    async def _assess(self, submission: ClaimSubmission) -> Tuple[Optional[AIAssessment], Optional[str]]:
        if self.ai is None:
            return None, None
        if not self.ai.is_available:
            return None, f"{self.ai.provider_name} provider is not available"

        item = submission.item
        try:
            assessment = await asyncio.wait_for(
                self.ai.assess_claim(
                    item,
                    submission.claimer_description,
                    question_answer_pairs(item.category, submission.security_answers),
                ),
                timeout=self.ai_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"⚠️ AI assessment timed out after {self.ai_timeout}s, using local scoring")
            return None, f"AI assessment timed out after {self.ai_timeout}s"
        except AssessmentUnavailable as e:
            logger.warning(f"⚠️ AI assessment unavailable, using local scoring: {e}")
            return None, str(e)
        except Exception as e:
            logger.warning(f"⚠️ AI assessment failed, using local scoring: {e}")
            return None, str(e)

        logger.info(f"🤖 AI verification score {assessment.verification_score} ({assessment.confidence.value})")
        return assessment, None

    async def _apply_item_status(self, item: Item, decision: ClaimDecision) -> None:
        if decision == ClaimDecision.AUTO_APPROVED:
            target = ItemStatus.CLAIMED
        elif decision == ClaimDecision.PENDING_REVIEW and item.status == ItemStatus.AVAILABLE:
            target = ItemStatus.PENDING
        else:
            # Auto-rejected claims never consume the item
            return

        if not item.can_transition_to(target):
            return
        try:
            await self.store.update_item_status(item.id, target)
            logger.info(f"📦 Item {item.id} moved to {target.value}")
        except Exception as e:
            logger.error(f"❌ Failed to move item {item.id} to {target.value}: {e}")

    def _notify(self, record: ClaimRecord) -> None:
        if self.notifier is None:
            return
        submission = record.submission
        verification = record.verification
        event = NotificationEvent(
            type=NotificationType.CLAIM,
            item_name=submission.item.name,
            item_category=submission.item.category.value,
            item_location=submission.item.location.value,
            user_name=submission.claimer_name,
            user_email=submission.claimer_email,
            user_phone=submission.claimer_phone,
            description=submission.claimer_description,
            decision=verification.decision.value,
            overall_score=verification.overall_score,
            risk_level=verification.risk_level.value,
            summary=verification.summary,
        )
        task = asyncio.create_task(self._deliver(event))
        self._pending_notifications.add(task)
        task.add_done_callback(self._pending_notifications.discard)

    async def _deliver(self, event: NotificationEvent) -> None:
        try:
            delivered = await self.notifier.notify(event)
            if not delivered:
                logger.warning(f"⚠️ Claim notification for '{event.item_name}' was not delivered")
        except Exception as e:
            logger.warning(f"⚠️ Claim notification failed: {e}")

    async def drain_notifications(self) -> None:
        """Wait for notifications still being delivered."""
        if self._pending_notifications:
            await asyncio.gather(*self._pending_notifications, return_exceptions=True)
