"""Tests for the Telegram, Formspree and composite notifiers."""

import json

import httpx
import pytest

from claim_checker.domain.ports.notifier import NotificationEvent, NotificationType, Notifier
from claim_checker.infrastructure.notifications.composite import CompositeNotifier
from claim_checker.infrastructure.notifications.formspree_adapter import (
    FormspreeConfig,
    FormspreeNotifier,
    format_message,
)
from claim_checker.infrastructure.notifications.telegram_adapter import (
    TelegramConfig,
    TelegramNotifier,
    format_text,
)


class ChannelDouble(Notifier):
    """Channel remembering the events it received."""

    def __init__(self, error=None):
        self.events = []
        self.error = error
        self.closed = False

    async def notify(self, event: NotificationEvent) -> bool:
        self.events.append(event)
        if self.error:
            raise self.error
        return True

    async def shutdown(self) -> None:
        self.closed = True

    @property
    def provider_name(self) -> str:
        return "double"

    @property
    def is_available(self) -> bool:
        return True


@pytest.fixture
def claim_event():
    """A claim event with a verification outcome."""
    return NotificationEvent(
        type=NotificationType.CLAIM,
        item_name="Dell laptop",
        item_category="electronics",
        item_location="library",
        user_name="Alex Owner",
        user_email="owner@campus.edu",
        decision="auto_approved",
        overall_score=94,
        risk_level="low",
        summary="Claim auto-approved",
    )


@pytest.fixture
def listing_event():
    """A new listing event."""
    return NotificationEvent(
        type=NotificationType.NEW_ITEM,
        item_name="Blue backpack",
        item_category="bags",
        item_location="gymnasium",
        user_email="finder@campus.edu",
    )


class Recorder:
    """Transport handler recording requests."""

    def __init__(self, status_code=200):
        self.status_code = status_code
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"ok": self.status_code == 200})


def test_telegram_text(claim_event, listing_event):
    """Test message formatting for both event types."""
    claim_text = format_text(claim_event)
    listing_text = format_text(listing_event)

    assert "*Item CLAIMED*" in claim_text
    assert "auto_approved (94%, low risk)" in claim_text
    assert "*Item LISTED*" in listing_text
    assert "Name:" not in listing_text


@pytest.mark.asyncio
async def test_telegram_unconfigured_skips(claim_event):
    """Test an unconfigured bot sends nothing."""
    recorder = Recorder()
    telegram = TelegramNotifier(TelegramConfig(), transport=httpx.MockTransport(recorder))

    assert not telegram.is_available
    assert await telegram.notify(claim_event) is False
    assert recorder.requests == []
    await telegram.shutdown()


@pytest.mark.asyncio
async def test_telegram_sends_markdown(claim_event):
    """Test the Bot API request."""
    recorder = Recorder()
    telegram = TelegramNotifier(
        TelegramConfig(bot_token="123:abc", chat_id="-100"),
        transport=httpx.MockTransport(recorder),
    )

    assert await telegram.notify(claim_event) is True
    request = recorder.requests[0]
    body = json.loads(request.content)
    assert request.url.path == "/bot123:abc/sendMessage"
    assert body["chat_id"] == "-100"
    assert body["parse_mode"] == "Markdown"
    await telegram.shutdown()


@pytest.mark.asyncio
async def test_telegram_rejection_returns_false(claim_event):
    """Test a failing status is reported, not raised."""
    telegram = TelegramNotifier(
        TelegramConfig(bot_token="123:abc", chat_id="-100"),
        transport=httpx.MockTransport(Recorder(status_code=500)),
    )

    assert await telegram.notify(claim_event) is False
    await telegram.shutdown()


def test_formspree_message(claim_event):
    """Test the email body includes the verification outcome."""
    message = format_message(claim_event)

    assert "- Name: Dell laptop" in message
    assert "- Phone: Not provided" in message
    assert "- Decision: auto_approved" in message


@pytest.mark.asyncio
async def test_formspree_posts_subject(claim_event):
    """Test the form submission."""
    recorder = Recorder()
    formspree = FormspreeNotifier(
        FormspreeConfig(endpoint="https://formspree.io/f/abc"),
        transport=httpx.MockTransport(recorder),
    )

    assert await formspree.notify(claim_event) is True
    body = json.loads(recorder.requests[0].content)
    assert body["_subject"] == "🔔 Item Claimed: Dell laptop"
    assert body["type"] == "claim"
    await formspree.shutdown()


@pytest.mark.asyncio
async def test_formspree_unconfigured_skips(claim_event):
    """Test a missing endpoint sends nothing."""
    formspree = FormspreeNotifier(FormspreeConfig())

    assert await formspree.notify(claim_event) is False
    await formspree.shutdown()


@pytest.mark.asyncio
async def test_composite_routes_claims_to_email(claim_event, listing_event):
    """Test email only receives claim events."""
    chat = ChannelDouble()
    email = ChannelDouble()
    composite = CompositeNotifier(chat=chat, email=email)

    await composite.notify(claim_event)
    await composite.notify(listing_event)

    assert len(chat.events) == 2
    assert [event.type for event in email.events] == [NotificationType.CLAIM]


@pytest.mark.asyncio
async def test_composite_survives_failing_channel(claim_event):
    """Test one raising channel does not hide the other's delivery."""
    composite = CompositeNotifier(
        chat=ChannelDouble(error=RuntimeError("down")),
        email=ChannelDouble(),
    )

    assert await composite.notify(claim_event) is True


@pytest.mark.asyncio
async def test_composite_without_channels(claim_event):
    """Test nothing configured means nothing delivered."""
    composite = CompositeNotifier()

    assert await composite.notify(claim_event) is False
    assert composite.provider_name == "none"
    assert not composite.is_available


@pytest.mark.asyncio
async def test_composite_shutdown_and_name():
    """Test shutdown reaches every channel."""
    chat = ChannelDouble()
    email = ChannelDouble()
    composite = CompositeNotifier(chat=chat, email=email)

    await composite.shutdown()

    assert chat.closed and email.closed
    assert composite.provider_name == "double+double"
