"""Lost/found matching endpoints."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from ...domain.errors import StoreUnavailableError
from ...domain.models.item import Item
from ...domain.ports.claim_store import ClaimStore
from ...domain.services.matching_service import MatchingService
from ...infrastructure.dependencies import get_claim_store, get_matching_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/items", tags=["matching"])


class AutoMatchRequest(BaseModel):
    """Request model for matching a freshly reported item."""

    reporter_user_id: Optional[str] = Field(None, description="User notified about the matches")
    reporter_phone: Optional[str] = Field(None, description="Reporter phone for staff notifications")
    announce: bool = Field(default=True, description="Notify staff channels about the new item")


class MatchResponse(BaseModel):
    """Response model for match suggestions."""

    item_id: str = Field(..., description="Item the matches were computed for")
    matches: List[Dict[str, Any]] = Field(..., description="Best matches first")
    announced: bool = Field(default=False, description="Whether staff channels accepted the announcement")


async def _load_item(store: ClaimStore, item_id: str) -> Item:
    try:
        item = await store.get_item(item_id)
    except Exception as e:
        logger.error(f"❌ Item lookup for {item_id} failed: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Item store unavailable")
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Item '{item_id}' not found")
    return item


@router.get("/{item_id}/matches", response_model=MatchResponse)
async def get_matches(
    item_id: str,
    store: ClaimStore = Depends(get_claim_store),
    service: MatchingService = Depends(get_matching_service),
) -> MatchResponse:
    """Suggest counterparts for an item without notifying anyone."""
    item = await _load_item(store, item_id)
    try:
        matches = await service.find_matches(item)
    except StoreUnavailableError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Item store unavailable")
    return MatchResponse(item_id=item.id, matches=[match.to_dict() for match in matches])


@router.post("/{item_id}/auto-match", response_model=MatchResponse)
async def auto_match(
    item_id: str,
    request: Optional[AutoMatchRequest] = None,
    store: ClaimStore = Depends(get_claim_store),
    service: MatchingService = Depends(get_matching_service),
) -> MatchResponse:
    """Match a newly reported item and notify its reporter and staff."""
    request = request or AutoMatchRequest()
    item = await _load_item(store, item_id)

    announced = False
    if request.announce:
        announced = await service.announce_item(item, reporter_phone=request.reporter_phone)

    try:
        matches = await service.run_auto_matching(item, reporter_user_id=request.reporter_user_id or item.created_by)
    except StoreUnavailableError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Item store unavailable")
    return MatchResponse(
        item_id=item.id,
        matches=[match.to_dict() for match in matches],
        announced=announced,
    )
