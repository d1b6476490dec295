"""Formspree email webhook notifier."""

import logging
import os
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from ...domain.ports.notifier import NotificationEvent, NotificationType, Notifier

logger = logging.getLogger(__name__)


class FormspreeConfig(BaseModel):
    """Configuration for the Formspree notifier."""

    endpoint: Optional[str] = Field(default=None, description="Formspree form URL")
    timeout: float = Field(default=10.0, description="HTTP timeout in seconds")

    @classmethod
    def from_env(cls) -> "FormspreeConfig":
        """Create configuration from environment variables."""
        return cls(endpoint=os.getenv("FORMSPREE_ENDPOINT") or None)


def _or_missing(value: Optional[str]) -> str:
    return value or "Not provided"


def format_subject(event: NotificationEvent) -> str:
    if event.type == NotificationType.CLAIM:
        return f"🔔 Item Claimed: {event.item_name}"
    return f"📦 New Item Listed: {event.item_name}"


def format_message(event: NotificationEvent) -> str:
    """Plain-text email body for an event."""
    timestamp = event.timestamp.isoformat()
    if event.type == NotificationType.CLAIM:
        lines = [
            "Someone has claimed an item on the campus lost-and-found!",
            "",
            "📦 Item Details:",
            f"- Name: {event.item_name}",
            f"- Category: {event.item_category}",
            f"- Location: {event.item_location}",
            "",
            "👤 Claimant Details:",
            f"- Name: {_or_missing(event.user_name)}",
            f"- Email: {_or_missing(event.user_email)}",
            f"- Phone: {_or_missing(event.user_phone)}",
            f"- Description: {_or_missing(event.description)}",
        ]
        if event.decision:
            lines += [
                "",
                "🛡️ Verification:",
                f"- Decision: {event.decision}",
                f"- Score: {event.overall_score}%",
                f"- Risk: {event.risk_level}",
                f"- Summary: {event.summary}",
            ]
        lines += ["", f"⏰ Claimed at: {timestamp}"]
    else:
        lines = [
            "A new item has been listed on the campus lost-and-found!",
            "",
            "📦 Item Details:",
            f"- Name: {event.item_name}",
            f"- Category: {event.item_category}",
            f"- Location: {event.item_location}",
            f"- Description: {_or_missing(event.description)}",
            "",
            "👤 Reporter Details:",
            f"- Email: {_or_missing(event.user_email)}",
            f"- Phone: {_or_missing(event.user_phone)}",
            "",
            f"⏰ Listed at: {timestamp}",
        ]
    return "\n".join(lines)


class FormspreeNotifier(Notifier):
    """Sends events to staff by email through a Formspree form."""

    def __init__(
        self,
        config: Optional[FormspreeConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._config = config or FormspreeConfig()
        self._client = httpx.AsyncClient(timeout=self._config.timeout, transport=transport)

    async def notify(self, event: NotificationEvent) -> bool:
        """Post the event to the form, returning whether it was accepted."""
        if not self.is_available:
            logger.info("ℹ️ Formspree not configured, skipping...")
            return False
        try:
            response = await self._client.post(
                self._config.endpoint,
                headers={"Accept": "application/json"},
                json={
                    "_subject": format_subject(event),
                    "message": format_message(event),
                    "type": event.type.value,
                    "itemName": event.item_name,
                    "itemCategory": event.item_category,
                    "itemLocation": event.item_location,
                    "userEmail": event.user_email,
                    "userPhone": event.user_phone,
                    "userName": event.user_name,
                    "timestamp": event.timestamp.isoformat(),
                },
            )
        except httpx.HTTPError as e:
            logger.warning(f"⚠️ Failed to send Formspree notification: {e}")
            return False

        if response.is_success:
            logger.info(f"📧 Formspree notification sent for '{event.item_name}'")
            return True
        logger.warning(f"⚠️ Formspree rejected notification with status {response.status_code}")
        return False

    async def shutdown(self) -> None:
        await self._client.aclose()

    @property
    def provider_name(self) -> str:
        return "formspree"

    @property
    def is_available(self) -> bool:
        return bool(self._config.endpoint)
