"""In-memory implementation of the claim store."""

import logging
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from ...domain.errors import ClaimNotFoundError, ItemNotFoundError
from ...domain.models.claim import ClaimRecord, ClaimStatus, StoredClaim, utc_now
from ...domain.models.item import Item, ItemCategory, ItemStatus, ItemType
from ...domain.ports.claim_store import ClaimStore

logger = logging.getLogger(__name__)


class InMemoryClaimStore(ClaimStore):
    """Dict-backed store for development and tests.

    All access happens on one event loop, so no locking is needed.
    """

    def __init__(self, items: Optional[Iterable[Item]] = None):
        self._items: Dict[str, Item] = {item.id: item for item in items or ()}
        self._records: Dict[str, ClaimRecord] = {}
        self._history: List[StoredClaim] = []
        self._notifications: Dict[str, Dict[str, Any]] = {}
        self._initialized = False

    async def initialize(self) -> None:
        """Mark the store ready."""
        self._initialized = True
        logger.info(f"✅ In-memory store ready with {len(self._items)} items")

    async def shutdown(self) -> None:
        """Mark the store closed."""
        self._initialized = False

    # Seeding helpers

    def put_item(self, item: Item) -> None:
        """Insert or replace an item."""
        self._items[item.id] = item

    def add_stored_claim(self, claim: StoredClaim) -> None:
        """Add a historical claim that has no full record."""
        self._history.append(claim)

    @property
    def notifications(self) -> List[Dict[str, Any]]:
        """Stored notification payloads in insertion order."""
        return list(self._notifications.values())

    # Items

    async def get_item(self, item_id: str) -> Optional[Item]:
        return self._items.get(item_id)

    async def find_items(
        self,
        item_type: ItemType,
        status: Optional[ItemStatus] = None,
        category: Optional[ItemCategory] = None,
    ) -> List[Item]:
        return [
            item for item in self._items.values()
            if item.item_type == item_type
            and (status is None or item.status == status)
            and (category is None or item.category == category)
        ]

    async def update_item_status(self, item_id: str, status: ItemStatus) -> None:
        item = self._items.get(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        self._items[item_id] = item.model_copy(update={"status": status})

    # Claims

    async def find_claims(
        self,
        item_id: Optional[str] = None,
        claimer_email: Optional[str] = None,
        status: Optional[ClaimStatus] = None,
    ) -> List[StoredClaim]:
        claims = self._history + [record.to_stored_claim() for record in self._records.values()]
        return [
            claim for claim in claims
            if (item_id is None or claim.item_id == item_id)
            and (claimer_email is None or claim.claimer_email.lower() == claimer_email.lower())
            and (status is None or claim.status == status)
        ]

    async def insert_claim(self, record: ClaimRecord) -> str:
        self._records[record.id] = record
        return record.id

    async def get_claim(self, claim_id: str) -> Optional[ClaimRecord]:
        return self._records.get(claim_id)

    async def list_claims(self, status: Optional[ClaimStatus] = None) -> List[ClaimRecord]:
        records = [
            record for record in self._records.values()
            if status is None or record.status == status
        ]
        return sorted(records, key=lambda record: record.claimed_at, reverse=True)

    async def update_claim_status(
        self,
        claim_id: str,
        status: ClaimStatus,
        processed_by: Optional[str] = None,
    ) -> None:
        record = self._records.get(claim_id)
        if record is None:
            raise ClaimNotFoundError(claim_id)
        self._records[claim_id] = record.model_copy(update={
            "status": status,
            "processed_at": utc_now(),
            "processed_by": processed_by,
        })

    # Notifications

    async def insert_notification(self, payload: Dict[str, Any]) -> str:
        notification_id = str(uuid4())
        self._notifications[notification_id] = dict(payload)
        return notification_id

    @property
    def provider_name(self) -> str:
        return "memory"

    @property
    def is_available(self) -> bool:
        return self._initialized
