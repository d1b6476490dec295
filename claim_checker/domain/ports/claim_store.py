"""Port interface for the document store holding items, claims and notifications."""

from typing import Any, Dict, List, Optional, Protocol

from ..models.claim import ClaimRecord, ClaimStatus, StoredClaim
from ..models.item import Item, ItemCategory, ItemStatus, ItemType


class ClaimStore(Protocol):
    """Protocol for the persisted item/claim store.

    Implementations raise ordinary exceptions on infrastructure failure;
    the domain services decide whether a failure is fatal or degrades a
    single check.
    """

    async def initialize(self) -> None:
        """Initialize the store client."""
        ...

    async def shutdown(self) -> None:
        """Release the store client."""
        ...

    async def get_item(self, item_id: str) -> Optional[Item]:
        """Get an item by id, ``None`` when it does not exist."""
        ...

    async def find_items(
        self,
        item_type: ItemType,
        status: Optional[ItemStatus] = None,
        category: Optional[ItemCategory] = None,
    ) -> List[Item]:
        """Find items of a report type, optionally narrowed by status and category."""
        ...

    async def update_item_status(self, item_id: str, status: ItemStatus) -> None:
        """Set an item's status."""
        ...

    async def find_claims(
        self,
        item_id: Optional[str] = None,
        claimer_email: Optional[str] = None,
        status: Optional[ClaimStatus] = None,
    ) -> List[StoredClaim]:
        """Find claims matching every given filter."""
        ...

    async def insert_claim(self, record: ClaimRecord) -> str:
        """Persist a claim record and return its id."""
        ...

    async def get_claim(self, claim_id: str) -> Optional[ClaimRecord]:
        """Get a claim record by id."""
        ...

    async def list_claims(self, status: Optional[ClaimStatus] = None) -> List[ClaimRecord]:
        """List claim records, newest first."""
        ...

    async def update_claim_status(
        self,
        claim_id: str,
        status: ClaimStatus,
        processed_by: Optional[str] = None,
    ) -> None:
        """Record an admin decision on a claim."""
        ...

    async def insert_notification(self, payload: Dict[str, Any]) -> str:
        """Store an in-app notification and return its id."""
        ...

    @property
    def provider_name(self) -> str:
        """Get the store name."""
        ...

    @property
    def is_available(self) -> bool:
        """Check if the store is ready."""
        ...
