"""Test configuration and common fixtures."""

from typing import Dict, List, Optional

import pytest
import pytest_asyncio

from claim_checker.domain.models.claim import ClaimSubmission
from claim_checker.domain.models.item import CampusLocation, Item, ItemCategory, ItemStatus, ItemType
from claim_checker.domain.ports.ai_provider import AIAssessment, AIDescriptionEnhancement, AIMatchCandidate
from claim_checker.domain.ports.notifier import NotificationEvent, Notifier
from claim_checker.infrastructure.store.memory_store import InMemoryClaimStore


class StubAIProvider:
    """AI provider returning canned results."""

    def __init__(
        self,
        assessment: Optional[AIAssessment] = None,
        matches: Optional[List[AIMatchCandidate]] = None,
        error: Optional[Exception] = None,
        available: bool = True,
    ):
        self.assessment = assessment or AIAssessment()
        self.matches = matches or []
        self.error = error
        self.available = available
        self.enhancement: Optional[AIDescriptionEnhancement] = None
        self.model = "stub-model"
        self.assess_calls = []
        self.match_calls = []
        self.enhance_calls = []

    async def initialize(self) -> None:
        pass

    async def shutdown(self) -> None:
        pass

    async def assess_claim(self, item, claim_description, security_qa) -> AIAssessment:
        self.assess_calls.append((item, claim_description, tuple(security_qa)))
        if self.error:
            raise self.error
        return self.assessment

    async def batch_match(self, new_item, candidates) -> List[AIMatchCandidate]:
        self.match_calls.append((new_item, list(candidates)))
        if self.error:
            raise self.error
        return self.matches

    async def enhance_description(self, name, category, description) -> AIDescriptionEnhancement:
        self.enhance_calls.append((name, category, description))
        if self.error:
            raise self.error
        return self.enhancement or AIDescriptionEnhancement(enhanced_description=description)

    async def ping(self) -> str:
        if self.error:
            raise self.error
        return self.model

    @property
    def provider_name(self) -> str:
        return "Stub"

    @property
    def is_available(self) -> bool:
        return self.available

    @property
    def capabilities(self) -> Dict[str, bool]:
        return {"claim_assessment": True, "batch_matching": True}


class RecordingNotifier(Notifier):
    """Notifier remembering every event it was given."""

    def __init__(self, result: bool = True, error: Optional[Exception] = None):
        self.events: List[NotificationEvent] = []
        self.result = result
        self.error = error
        self.closed = False

    async def notify(self, event: NotificationEvent) -> bool:
        self.events.append(event)
        if self.error:
            raise self.error
        return self.result

    async def shutdown(self) -> None:
        self.closed = True

    @property
    def provider_name(self) -> str:
        return "recording"

    @property
    def is_available(self) -> bool:
        return True


@pytest.fixture
def laptop() -> Item:
    """A found laptop reported by a staff member."""
    return Item(
        id="item-laptop",
        name="Dell laptop",
        category=ItemCategory.ELECTRONICS,
        description="Black Dell laptop with NASA sticker",
        location=CampusLocation.LIBRARY,
        date_found="2024-03-01",
        status=ItemStatus.AVAILABLE,
        item_type=ItemType.FOUND,
        created_by="finder-1",
        created_by_email="finder@campus.edu",
    )


@pytest.fixture
def strong_submission(laptop: Item) -> ClaimSubmission:
    """A detailed claim by the real owner."""
    return ClaimSubmission(
        item_id=laptop.id,
        item=laptop,
        claimer_name="Alex Owner",
        claimer_email="owner@campus.edu",
        claimer_description="Black Dell laptop with NASA sticker",
        security_answers={
            "color": "black dell laptop with nasa sticker",
            "damage": "dell laptop with nasa sticker",
            "caseColor": "no case, bare black shell",
        },
        proof_images=["proof-1.jpg", "proof-2.jpg"],
        user_id="owner-1",
    )


@pytest.fixture
def weak_submission(laptop: Item) -> ClaimSubmission:
    """A claim with a single generic answer and no proof."""
    return ClaimSubmission(
        item_id=laptop.id,
        item=laptop,
        claimer_name="Sam Guess",
        claimer_email="guess@campus.edu",
        claimer_description="I lost my Dell laptop in the library",
        security_answers={"color": "yes"},
    )


@pytest_asyncio.fixture
async def store(laptop: Item) -> InMemoryClaimStore:
    """Initialized in-memory store holding the laptop."""
    memory_store = InMemoryClaimStore([laptop])
    await memory_store.initialize()
    yield memory_store
    await memory_store.shutdown()


@pytest.fixture
def stub_ai() -> StubAIProvider:
    """Available AI provider with a default assessment; tests adjust its fields."""
    return StubAIProvider()


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Notifier that records events and reports success."""
    return RecordingNotifier()
