"""Tests for lost/found matching."""

import pytest

from claim_checker.domain.errors import AssessmentUnavailable, StoreUnavailableError
from claim_checker.domain.models.item import CampusLocation, Item, ItemCategory, ItemStatus, ItemType
from claim_checker.domain.ports.ai_provider import AIMatchCandidate
from claim_checker.domain.ports.notifier import NotificationType
from claim_checker.domain.services.matching_service import MatchingService, local_match_score
from claim_checker.infrastructure.store.memory_store import InMemoryClaimStore


class BrokenPoolStore(InMemoryClaimStore):
    """Store whose candidate queries always fail."""

    async def find_items(self, item_type, status=None, category=None):
        raise RuntimeError("deadline exceeded")


@pytest.fixture
def lost_laptop():
    """A lost report describing the found laptop."""
    return Item(
        id="lost-1",
        name="Dell laptop",
        category=ItemCategory.ELECTRONICS,
        description="Black Dell laptop with NASA sticker",
        location=CampusLocation.LIBRARY,
        item_type=ItemType.LOST,
        created_by="owner-1",
        created_by_email="owner@campus.edu",
    )


@pytest.fixture
def seeded_store(store, lost_laptop):
    """Store with the lost report and some unrelated found items."""
    store.put_item(lost_laptop)
    store.put_item(Item(
        id="found-charger",
        name="Phone charger",
        category=ItemCategory.ELECTRONICS,
        description="White USB cable",
        location=CampusLocation.GYMNASIUM,
        item_type=ItemType.FOUND,
    ))
    store.put_item(Item(
        id="found-claimed",
        name="Dell laptop",
        category=ItemCategory.ELECTRONICS,
        description="Black Dell laptop with NASA sticker",
        location=CampusLocation.LIBRARY,
        status=ItemStatus.CLAIMED,
        item_type=ItemType.FOUND,
    ))
    store.put_item(Item(
        id="found-bag",
        name="Dell laptop bag",
        category=ItemCategory.BAGS,
        description="Black Dell laptop bag",
        location=CampusLocation.LIBRARY,
        item_type=ItemType.FOUND,
    ))
    return store


def test_local_match_score_components(laptop, lost_laptop):
    """Test identical reports score the maximum."""
    score, reasons = local_match_score(lost_laptop, laptop)

    assert score == 100
    assert reasons == ["Same category", "Same location", "Similar name", "Similar description"]


@pytest.mark.asyncio
async def test_local_matching_filters_pool(seeded_store, lost_laptop, laptop):
    """Test local matching keeps available same-category found items above the floor."""
    service = MatchingService(seeded_store)

    matches = await service.find_matches(lost_laptop)

    assert [match.item_id for match in matches] == [laptop.id]
    assert matches[0].match_score == 100
    assert matches[0].ai_powered is False


@pytest.mark.asyncio
async def test_ai_matching_is_preferred(seeded_store, lost_laptop, laptop, stub_ai):
    """Test AI results are used, unknown ids and low scores dropped."""
    stub_ai.matches = [
        AIMatchCandidate(item_id="found-bag", score=40, reasoning="Same brand", matched_attributes=["Dell"]),
        AIMatchCandidate(item_id=laptop.id, score=92, reasoning="Same sticker", matched_attributes=["NASA sticker"]),
        AIMatchCandidate(item_id="invented", score=99),
        AIMatchCandidate(item_id="found-charger", score=10),
    ]
    service = MatchingService(seeded_store, ai_provider=stub_ai)

    matches = await service.find_matches(lost_laptop)

    assert [match.item_id for match in matches] == [laptop.id, "found-bag"]
    assert matches[0].ai_powered is True
    assert matches[0].ai_reasoning == "Same sticker"
    assert matches[0].matched_attributes == ["NASA sticker"]
    candidate_ids = {item.id for item in stub_ai.match_calls[0][1]}
    assert candidate_ids == {laptop.id, "found-charger", "found-bag"}


@pytest.mark.asyncio
async def test_repeated_ai_ids_keep_best_score(seeded_store, lost_laptop, laptop, stub_ai):
    """Test an id the AI returns twice appears once with its highest score."""
    stub_ai.matches = [
        AIMatchCandidate(item_id=laptop.id, score=60, reasoning="Same brand"),
        AIMatchCandidate(item_id="found-bag", score=70),
        AIMatchCandidate(item_id=laptop.id, score=95, reasoning="Same sticker"),
        AIMatchCandidate(item_id="found-bag", score=30),
    ]
    service = MatchingService(seeded_store, ai_provider=stub_ai)

    matches = await service.find_matches(lost_laptop)

    assert [(match.item_id, match.match_score) for match in matches] == [(laptop.id, 95), ("found-bag", 70)]
    assert matches[0].ai_reasoning == "Same sticker"


@pytest.mark.asyncio
async def test_ai_failure_falls_back_to_local(seeded_store, lost_laptop, laptop, stub_ai):
    """Test an AI error uses the local heuristic."""
    stub_ai.error = AssessmentUnavailable("rate limited")
    service = MatchingService(seeded_store, ai_provider=stub_ai)

    matches = await service.find_matches(lost_laptop)

    assert [match.item_id for match in matches] == [laptop.id]
    assert matches[0].ai_powered is False


@pytest.mark.asyncio
async def test_empty_ai_result_falls_back_to_local(seeded_store, lost_laptop, laptop, stub_ai):
    """Test no AI matches still tries the local heuristic."""
    service = MatchingService(seeded_store, ai_provider=stub_ai)

    matches = await service.find_matches(lost_laptop)

    assert [match.item_id for match in matches] == [laptop.id]


@pytest.mark.asyncio
async def test_auto_matching_notifies_reporter(seeded_store, lost_laptop):
    """Test a match notification is stored for the reporter."""
    service = MatchingService(seeded_store)

    matches = await service.run_auto_matching(lost_laptop, reporter_user_id="owner-1")

    assert len(matches) == 1
    [notification] = seeded_store.notifications
    assert notification["type"] == "match"
    assert notification["createdBy"] == "owner-1"
    assert notification["itemId"] == lost_laptop.id
    assert notification["read"] is False
    assert notification["message"].startswith('🎯 We found 1 potential match for your lost "Dell laptop"!')
    assert notification["matches"][0]["id"] == "item-laptop"


@pytest.mark.asyncio
async def test_auto_matching_without_reporter_stores_nothing(seeded_store, lost_laptop):
    """Test anonymous reports are matched without notifications."""
    service = MatchingService(seeded_store)

    await service.run_auto_matching(lost_laptop)

    assert seeded_store.notifications == []


@pytest.mark.asyncio
async def test_announce_item(store, laptop, notifier):
    """Test new listings are announced to staff."""
    service = MatchingService(store, notifier=notifier)

    assert await service.announce_item(laptop, reporter_phone="555-0100") is True
    event = notifier.events[0]
    assert event.type == NotificationType.NEW_ITEM
    assert event.item_category == "electronics"
    assert event.item_location == "library"
    assert event.user_phone == "555-0100"


@pytest.mark.asyncio
async def test_announce_without_notifier(store, laptop):
    """Test announcing is skipped without a notifier."""
    assert await MatchingService(store).announce_item(laptop) is False


@pytest.mark.asyncio
async def test_unreadable_pool_raises_store_error(laptop, lost_laptop):
    """Test a failing candidate query surfaces as a store outage."""
    broken = BrokenPoolStore([laptop, lost_laptop])
    service = MatchingService(broken)

    with pytest.raises(StoreUnavailableError):
        await service.find_matches(lost_laptop)
