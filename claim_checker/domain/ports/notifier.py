"""Port interface for outbound notifications."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    """Kinds of events sent to staff channels."""

    CLAIM = "claim"
    NEW_ITEM = "new_item"


class NotificationEvent(BaseModel):
    """An outbound event describing a claim or a new listing."""

    type: NotificationType
    item_name: str
    item_category: str
    item_location: str
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_phone: Optional[str] = None
    description: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Claim verification outcome, set for CLAIM events
    decision: Optional[str] = None
    overall_score: Optional[int] = None
    risk_level: Optional[str] = None
    summary: Optional[str] = None

    class Config:
        """Pydantic model configuration."""
        frozen = True


class Notifier(ABC):
    """Abstract interface for notification sinks.

    ``notify`` reports delivery success as a boolean. Delivery problems
    are logged by the implementation and never raised to the caller.
    """

    @abstractmethod
    async def notify(self, event: NotificationEvent) -> bool:
        """Deliver an event."""
        pass

    @abstractmethod
    async def shutdown(self) -> None:
        """Release transport resources."""
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the notifier name."""
        pass

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Check if the notifier is configured."""
        pass
