"""Service for admin review of claims escalated by the pipeline."""

import logging
from typing import List, Optional

from ..errors import ClaimNotFoundError, InvalidTransitionError
from ..models.claim import ClaimRecord, ClaimStatus
from ..models.item import ItemStatus
from ..ports.claim_store import ClaimStore

logger = logging.getLogger(__name__)


class ClaimReviewService:
    """Approve, reject and list claims on behalf of an administrator."""

    def __init__(self, store: ClaimStore):
        self.store = store
        logger.info("🔧 ClaimReviewService initialized")

    async def list_claims(self, status: Optional[ClaimStatus] = None) -> List[ClaimRecord]:
        """List claims, optionally filtered by status."""
        return await self.store.list_claims(status)

    async def approve(self, claim_id: str, admin_email: str) -> ClaimRecord:
        """Approve a pending claim and mark its item claimed.

        Args:
            claim_id: Claim to approve
            admin_email: Administrator recorded as the processor

        Returns:
            The updated claim record

        Raises:
            ClaimNotFoundError: If the claim does not exist
            InvalidTransitionError: If the claim is not pending or the item is already claimed
        """
        record = await self._pending_claim(claim_id)
        item = await self.store.get_item(record.submission.item_id)
        if item is not None and not item.can_transition_to(ItemStatus.CLAIMED):
            raise InvalidTransitionError(f"Item '{item.id}' is already {item.status.value}")

        await self.store.update_claim_status(claim_id, ClaimStatus.APPROVED, processed_by=admin_email)
        if item is not None:
            await self.store.update_item_status(item.id, ItemStatus.CLAIMED)

        logger.info(f"✅ Claim {claim_id} approved by {admin_email}")
        return await self._reload(claim_id)

    async def reject(self, claim_id: str, admin_email: str) -> ClaimRecord:
        """Reject a pending claim and release its item.

        The item only returns to ``available`` while it is ``pending``;
        an item claimed through another claim keeps its status.
        """
        record = await self._pending_claim(claim_id)
        await self.store.update_claim_status(claim_id, ClaimStatus.REJECTED, processed_by=admin_email)

        item = await self.store.get_item(record.submission.item_id)
        if item is not None and item.status == ItemStatus.PENDING:
            await self.store.update_item_status(item.id, ItemStatus.AVAILABLE)

        logger.info(f"🚫 Claim {claim_id} rejected by {admin_email}")
        return await self._reload(claim_id)

    async def _pending_claim(self, claim_id: str) -> ClaimRecord:
        record = await self.store.get_claim(claim_id)
        if record is None:
            raise ClaimNotFoundError(claim_id)
        if record.status != ClaimStatus.PENDING:
            raise InvalidTransitionError(f"Claim '{claim_id}' is already {record.status.value}")
        return record

    async def _reload(self, claim_id: str) -> ClaimRecord:
        record = await self.store.get_claim(claim_id)
        if record is None:
            raise ClaimNotFoundError(claim_id)
        return record
