"""Telegram bot notifier."""

import logging
import os
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from ...domain.ports.notifier import NotificationEvent, NotificationType, Notifier

logger = logging.getLogger(__name__)


class TelegramConfig(BaseModel):
    """Configuration for the Telegram notifier."""

    bot_token: Optional[str] = Field(default=None, description="Bot token from @BotFather")
    chat_id: Optional[str] = Field(default=None, description="Chat receiving the notifications")
    api_url: str = Field(default="https://api.telegram.org", description="Bot API root")
    timeout: float = Field(default=10.0, description="HTTP timeout in seconds")

    @classmethod
    def from_env(cls) -> "TelegramConfig":
        """Create configuration from environment variables."""
        return cls(
            bot_token=os.getenv("TELEGRAM_BOT_TOKEN") or None,
            chat_id=os.getenv("TELEGRAM_CHAT_ID") or None,
        )


def format_text(event: NotificationEvent) -> str:
    """Markdown message for an event."""
    claimed = event.type == NotificationType.CLAIM
    emoji = "🔔" if claimed else "📦"
    action = "CLAIMED" if claimed else "LISTED"

    lines = [
        f"{emoji} *Item {action}*",
        "",
        f"*Item:* {event.item_name}",
        f"*Category:* {event.item_category}",
        f"*Location:* {event.item_location}",
        "",
        "*Contact:*",
    ]
    if event.user_name:
        lines.append(f"• Name: {event.user_name}")
    if event.user_email:
        lines.append(f"• Email: {event.user_email}")
    if event.user_phone:
        lines.append(f"• Phone: {event.user_phone}")
    if claimed and event.decision:
        lines += ["", f"*Verification:* {event.decision} ({event.overall_score}%, {event.risk_level} risk)"]
    lines += ["", f"⏰ {event.timestamp.isoformat()}"]
    return "\n".join(lines)


class TelegramNotifier(Notifier):
    """Posts events to a Telegram chat through the Bot API."""

    def __init__(
        self,
        config: Optional[TelegramConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._config = config or TelegramConfig()
        self._client = httpx.AsyncClient(
            base_url=self._config.api_url,
            timeout=self._config.timeout,
            transport=transport,
        )

    async def notify(self, event: NotificationEvent) -> bool:
        """Send the event, returning False when skipped or rejected."""
        if not self.is_available:
            logger.info("ℹ️ Telegram not configured, skipping...")
            return False
        try:
            response = await self._client.post(
                f"/bot{self._config.bot_token}/sendMessage",
                json={
                    "chat_id": self._config.chat_id,
                    "text": format_text(event),
                    "parse_mode": "Markdown",
                },
            )
        except httpx.HTTPError as e:
            logger.warning(f"⚠️ Failed to send Telegram notification: {e}")
            return False

        if response.is_success:
            logger.info(f"📨 Telegram notification sent for '{event.item_name}'")
            return True
        logger.warning(f"⚠️ Telegram rejected notification with status {response.status_code}")
        return False

    async def shutdown(self) -> None:
        await self._client.aclose()

    @property
    def provider_name(self) -> str:
        return "telegram"

    @property
    def is_available(self) -> bool:
        return bool(self._config.bot_token and self._config.chat_id)
