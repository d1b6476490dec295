"""Claim submission and admin review endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status

from ...domain.errors import (
    ClaimNotFoundError,
    InvalidTransitionError,
    ItemNotFoundError,
    StoreUnavailableError,
)
from ...domain.models.claim import ClaimRecord, ClaimStatus, ClaimSubmission
from ...domain.models.verification import ClaimVerificationResult
from ...domain.services.claim_review_service import ClaimReviewService
from ...domain.services.claim_verification_service import ClaimVerificationService
from ...infrastructure.dependencies import (
    get_admin_emails,
    get_claim_review_service,
    get_claim_verification_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/claims", tags=["claims"])

RETRY_MESSAGE = "Unable to verify claim right now. Please try again."


def require_admin(
    x_user_email: Optional[str] = Header(None),
    admin_emails: List[str] = Depends(get_admin_emails),
) -> str:
    """Resolve the admin email forwarded by the auth layer.

    Raises:
        HTTPException: 401 when no identity was forwarded, 403 for non-admins
    """
    if not x_user_email or not x_user_email.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    email = x_user_email.strip().lower()
    if email not in admin_emails:
        logger.warning(f"🚫 Admin action refused for {email}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return email


@router.post("", response_model=ClaimRecord, status_code=status.HTTP_201_CREATED)
async def submit_claim(
    submission: ClaimSubmission,
    service: ClaimVerificationService = Depends(get_claim_verification_service),
) -> ClaimRecord:
    """Verify and store an ownership claim."""
    try:
        return await service.submit_claim(submission)
    except ItemNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except StoreUnavailableError as e:
        logger.error(f"❌ Claim submission failed: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=RETRY_MESSAGE)


@router.post("/verify", response_model=ClaimVerificationResult)
async def verify_claim(
    submission: ClaimSubmission,
    service: ClaimVerificationService = Depends(get_claim_verification_service),
) -> ClaimVerificationResult:
    """Verify a claim without storing it."""
    try:
        return await service.verify_claim(submission)
    except ItemNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except StoreUnavailableError as e:
        logger.error(f"❌ Claim verification failed: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=RETRY_MESSAGE)


@router.get("", response_model=List[ClaimRecord])
async def list_claims(
    claim_status: Optional[ClaimStatus] = Query(None, alias="status"),
    admin_email: str = Depends(require_admin),
    service: ClaimReviewService = Depends(get_claim_review_service),
) -> List[ClaimRecord]:
    """List claims for review, newest first."""
    return await service.list_claims(claim_status)


@router.post("/{claim_id}/approve", response_model=ClaimRecord)
async def approve_claim(
    claim_id: str,
    admin_email: str = Depends(require_admin),
    service: ClaimReviewService = Depends(get_claim_review_service),
) -> ClaimRecord:
    """Approve a pending claim."""
    try:
        return await service.approve(claim_id, admin_email)
    except ClaimNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/{claim_id}/reject", response_model=ClaimRecord)
async def reject_claim(
    claim_id: str,
    admin_email: str = Depends(require_admin),
    service: ClaimReviewService = Depends(get_claim_review_service),
) -> ClaimRecord:
    """Reject a pending claim."""
    try:
        return await service.reject(claim_id, admin_email)
    except ClaimNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
