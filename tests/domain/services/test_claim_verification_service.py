"""Tests for the claim verification pipeline."""

import asyncio

import pytest

from claim_checker.domain.errors import AssessmentUnavailable, ItemNotFoundError, StoreUnavailableError
from claim_checker.domain.models.claim import ClaimStatus, StoredClaim, utc_now
from claim_checker.domain.models.item import ItemStatus
from claim_checker.domain.models.verification import CheckStatus, ClaimDecision, RiskLevel
from claim_checker.domain.ports.ai_provider import AIAssessment
from claim_checker.domain.ports.notifier import NotificationType
from claim_checker.domain.services.claim_verification_service import (
    AI_OWNERSHIP_ANALYSIS,
    AI_RED_FLAGS,
    ClaimVerificationService,
)
from claim_checker.infrastructure.store.memory_store import InMemoryClaimStore


class BrokenItemStore(InMemoryClaimStore):
    """Store that cannot read items."""

    async def get_item(self, item_id):
        raise RuntimeError("connection reset")


class SlowAIProvider:
    """AI provider that never answers in time."""

    provider_name = "Slow"
    is_available = True
    capabilities = {}

    async def assess_claim(self, item, claim_description, security_qa):
        await asyncio.sleep(1)
        return AIAssessment(verification_score=100)


def _checks(result):
    return {check.name: check for check in result.checks}


@pytest.mark.asyncio
async def test_strong_claim_without_ai_is_approved(store, strong_submission):
    """Test a detailed claim with proof is auto-approved on local scoring."""
    service = ClaimVerificationService(store)

    result = await service.verify_claim(strong_submission)

    assert result.decision == ClaimDecision.AUTO_APPROVED
    assert result.overall_score == 94
    assert result.risk_level == RiskLevel.LOW
    assert result.local_score.percentage == 92
    assert result.check_bonus == 100
    assert result.ai_assessment is None
    assert result.ai_error is None
    assert len(result.checks) == 9


@pytest.mark.asyncio
async def test_weak_claim_goes_to_review(store, weak_submission):
    """Test one generic answer and no proof images need an admin."""
    service = ClaimVerificationService(store)

    result = await service.verify_claim(weak_submission)
    checks = _checks(result)

    assert checks["Answer Quality"].status == CheckStatus.FAIL
    assert checks["Proof of Ownership"].status == CheckStatus.WARN
    assert result.decision == ClaimDecision.PENDING_REVIEW
    assert result.risk_level == RiskLevel.MEDIUM


@pytest.mark.asyncio
async def test_duplicate_claim_is_rejected(store, strong_submission):
    """Test a repeat claim from the same email is rejected outright."""
    store.add_stored_claim(StoredClaim(
        item_id=strong_submission.item_id,
        claimer_email=strong_submission.claimer_email,
        claimed_at=utc_now(),
        status=ClaimStatus.PENDING,
    ))
    service = ClaimVerificationService(store)

    result = await service.verify_claim(strong_submission)

    assert result.decision == ClaimDecision.AUTO_REJECTED
    assert result.risk_level == RiskLevel.CRITICAL
    assert result.summary.startswith("Claim rejected: This email has already submitted a claim")


@pytest.mark.asyncio
async def test_duplicate_claim_ignores_email_case(store, strong_submission):
    """Test a repeat claim is caught when only the email casing differs."""
    store.add_stored_claim(StoredClaim(
        item_id=strong_submission.item_id,
        claimer_email="owner@campus.edu",
        claimed_at=utc_now(),
        status=ClaimStatus.PENDING,
    ))
    service = ClaimVerificationService(store)
    shouted = strong_submission.model_copy(update={"claimer_email": "Owner@Campus.edu"})

    result = await service.verify_claim(shouted)

    assert result.decision == ClaimDecision.AUTO_REJECTED
    assert _checks(result)["Duplicate Claim Detection"].status == CheckStatus.FAIL


@pytest.mark.asyncio
async def test_ai_failure_falls_back_to_local(store, strong_submission, stub_ai):
    """Test an unavailable AI gives the same verdict as no AI."""
    stub_ai.error = AssessmentUnavailable("Groq API error: 503")
    service = ClaimVerificationService(store, ai_provider=stub_ai)

    result = await service.verify_claim(strong_submission)

    assert result.decision == ClaimDecision.AUTO_APPROVED
    assert result.overall_score == 94
    assert result.ai_assessment is None
    assert result.ai_error == "Groq API error: 503"
    assert len(result.checks) == 9


@pytest.mark.asyncio
async def test_ai_timeout_falls_back_to_local(store, strong_submission):
    """Test a slow AI is abandoned after the timeout."""
    service = ClaimVerificationService(store, ai_provider=SlowAIProvider(), ai_timeout=0.01)

    result = await service.verify_claim(strong_submission)

    assert result.decision == ClaimDecision.AUTO_APPROVED
    assert result.overall_score == 94
    assert "timed out" in result.ai_error


@pytest.mark.asyncio
async def test_unavailable_ai_is_reported(store, strong_submission, stub_ai):
    """Test a configured but unready provider is never called."""
    stub_ai.available = False
    service = ClaimVerificationService(store, ai_provider=stub_ai)

    result = await service.verify_claim(strong_submission)

    assert stub_ai.assess_calls == []
    assert "not available" in result.ai_error


@pytest.mark.asyncio
async def test_ai_assessment_is_blended(store, strong_submission, stub_ai):
    """Test a confident AI verdict adds a passing check and its score."""
    stub_ai.assessment = AIAssessment(verification_score=80, overall_assessment="Answers are specific.")
    service = ClaimVerificationService(store, ai_provider=stub_ai)

    result = await service.verify_claim(strong_submission)
    checks = _checks(result)

    assert checks[AI_OWNERSHIP_ANALYSIS].status == CheckStatus.PASS
    assert checks[AI_OWNERSHIP_ANALYSIS].message == "Answers are specific."
    assert AI_RED_FLAGS not in checks
    assert result.overall_score == 87
    assert result.decision == ClaimDecision.AUTO_APPROVED
    assert result.ai_assessment.verification_score == 80


@pytest.mark.asyncio
async def test_ai_red_flags_warn(store, strong_submission, stub_ai):
    """Test red flags become a warning check."""
    stub_ai.assessment = AIAssessment(verification_score=80, red_flags=["Vague color", "Wrong brand"])
    service = ClaimVerificationService(store, ai_provider=stub_ai)

    result = await service.verify_claim(strong_submission)
    red_flags = _checks(result)[AI_RED_FLAGS]

    assert red_flags.status == CheckStatus.WARN
    assert red_flags.message == "Vague color; Wrong brand"
    assert result.check_bonus == 90


@pytest.mark.asyncio
async def test_low_ai_score_blocks_approval(store, strong_submission, stub_ai):
    """Test an AI verdict against ownership sends the claim to review."""
    stub_ai.assessment = AIAssessment(verification_score=20)
    service = ClaimVerificationService(store, ai_provider=stub_ai)

    result = await service.verify_claim(strong_submission)

    assert _checks(result)[AI_OWNERSHIP_ANALYSIS].status == CheckStatus.FAIL
    assert result.decision == ClaimDecision.PENDING_REVIEW


@pytest.mark.asyncio
async def test_ai_receives_category_questions(store, strong_submission, stub_ai):
    """Test every category question is sent, unanswered ones marked."""
    service = ClaimVerificationService(store, ai_provider=stub_ai)

    await service.verify_claim(strong_submission)
    item, description, qa = stub_ai.assess_calls[0]

    assert item.id == strong_submission.item_id
    assert description == strong_submission.claimer_description
    assert qa[0] == ("What is the color of the device?", "black dell laptop with nasa sticker")
    assert qa[-1] == ("Any unique identifying marks or stickers?", "(not answered)")


@pytest.mark.asyncio
async def test_unknown_item_raises(store, strong_submission):
    """Test claims on missing items fail before any check runs."""
    service = ClaimVerificationService(store)

    with pytest.raises(ItemNotFoundError):
        await service.submit_claim(strong_submission.model_copy(update={"item_id": "missing"}))

    assert await store.list_claims() == []


@pytest.mark.asyncio
async def test_item_lookup_failure_is_fatal(laptop, strong_submission):
    """Test a failed item read aborts without storing anything."""
    broken = BrokenItemStore([laptop])
    service = ClaimVerificationService(broken)

    with pytest.raises(StoreUnavailableError):
        await service.submit_claim(strong_submission)

    assert await broken.list_claims() == []


@pytest.mark.asyncio
async def test_fresh_item_status_is_used(store, laptop, strong_submission):
    """Test the stored item wins over the submitted snapshot."""
    store.put_item(laptop.model_copy(update={"status": ItemStatus.PENDING}))
    service = ClaimVerificationService(store)

    result = await service.verify_claim(strong_submission)

    assert result.checks[0].status == CheckStatus.WARN


@pytest.mark.asyncio
async def test_approved_submission_claims_item(store, strong_submission, notifier):
    """Test an auto-approved claim is stored and consumes the item."""
    service = ClaimVerificationService(store, notifier=notifier)

    record = await service.submit_claim(strong_submission)
    await service.drain_notifications()

    assert record.status == ClaimStatus.APPROVED
    assert (await store.get_claim(record.id)).status == ClaimStatus.APPROVED
    assert (await store.get_item(strong_submission.item_id)).status == ItemStatus.CLAIMED
    assert len(notifier.events) == 1
    event = notifier.events[0]
    assert event.type == NotificationType.CLAIM
    assert event.item_name == "Dell laptop"
    assert event.user_email == strong_submission.claimer_email
    assert event.decision == "auto_approved"
    assert event.overall_score == 94


@pytest.mark.asyncio
async def test_review_submission_marks_item_pending(store, weak_submission):
    """Test a claim needing review holds the item."""
    service = ClaimVerificationService(store)

    record = await service.submit_claim(weak_submission)

    assert record.status == ClaimStatus.PENDING
    assert (await store.get_item(weak_submission.item_id)).status == ItemStatus.PENDING


@pytest.mark.asyncio
async def test_rejected_submission_leaves_item(store, strong_submission):
    """Test an auto-rejected claim never changes the item."""
    service = ClaimVerificationService(store)
    self_claim = strong_submission.model_copy(update={"user_id": "finder-1"})

    record = await service.submit_claim(self_claim)

    assert record.status == ClaimStatus.REJECTED
    assert (await store.get_item(self_claim.item_id)).status == ItemStatus.AVAILABLE


@pytest.mark.asyncio
async def test_claimed_item_is_never_modified(store, laptop, strong_submission):
    """Test claims on an already claimed item are rejected and change nothing."""
    store.put_item(laptop.model_copy(update={"status": ItemStatus.CLAIMED}))
    service = ClaimVerificationService(store)

    record = await service.submit_claim(strong_submission)

    assert record.status == ClaimStatus.REJECTED
    assert (await store.get_item(laptop.id)).status == ItemStatus.CLAIMED


@pytest.mark.asyncio
async def test_notifier_failure_does_not_change_result(store, strong_submission, notifier):
    """Test a raising notifier is contained."""
    notifier.error = RuntimeError("telegram down")
    service = ClaimVerificationService(store, notifier=notifier)

    record = await service.submit_claim(strong_submission)
    await service.drain_notifications()

    assert record.status == ClaimStatus.APPROVED
    assert len(notifier.events) == 1
