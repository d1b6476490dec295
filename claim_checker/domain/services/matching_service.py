"""Service suggesting lost/found counterparts for a newly reported item."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from ..errors import AssessmentUnavailable, StoreUnavailableError
from ..models.claim import utc_now
from ..models.item import Item, ItemStatus
from ..models.match_result import MatchResult
from ..ports.ai_provider import AIMatchCandidate, AIProvider
from ..ports.claim_store import ClaimStore
from ..ports.notifier import NotificationEvent, NotificationType, Notifier
from .similarity import round_score, similarity

logger = logging.getLogger(__name__)

MAX_MATCHES = 5
LOCAL_SCORE_FLOOR = 50
AI_SCORE_FLOOR = 25


def local_match_score(new_item: Item, candidate: Item) -> Tuple[int, List[str]]:
    """Score a candidate against a new report with local heuristics.

    Args:
        new_item: The newly reported item
        candidate: An opposite-type item from the same category

    Returns:
        Score between 0 and 100 and the reasons that contributed
    """
    score = 0
    reasons: List[str] = []

    if candidate.category == new_item.category:
        score += 30
        reasons.append("Same category")

    if candidate.location == new_item.location:
        score += 25
        reasons.append("Same location")

    name_similarity = similarity(candidate.name, new_item.name)
    if name_similarity > 0.3:
        score += round_score(name_similarity * 25)
        reasons.append("Similar name")

    description_similarity = similarity(candidate.description, new_item.description)
    if description_similarity > 0.2:
        score += round_score(description_similarity * 20)
        reasons.append("Similar description")

    return min(score, 100), reasons


class MatchingService:
    """Finds likely counterparts of a report in the opposite-type pool.

    An available AI provider is preferred and searches across categories.
    Any AI failure or an empty AI result falls back to the local
    heuristic, which only considers the same category.
    """

    def __init__(
        self,
        store: ClaimStore,
        ai_provider: Optional[AIProvider] = None,
        notifier: Optional[Notifier] = None,
        ai_timeout: float = 20.0,
    ):
        self.store = store
        self.ai = ai_provider
        self.notifier = notifier
        self.ai_timeout = ai_timeout
        logger.info("🔧 MatchingService initialized")

    async def find_matches(self, new_item: Item) -> List[MatchResult]:
        """Find the best candidate matches for a new report.

        Args:
            new_item: The newly reported item

        Returns:
            Up to five matches, best first

        Raises:
            StoreUnavailableError: If the local candidate pool could not be read
        """
        if self.ai is not None and self.ai.is_available:
            try:
                matches = await asyncio.wait_for(self._find_ai_matches(new_item), timeout=self.ai_timeout)
                if matches:
                    logger.info(f"🤖 AI found {len(matches)} matches for '{new_item.name}'")
                    return matches
                logger.info("🤖 AI found no matches, trying local heuristics...")
            except asyncio.TimeoutError:
                logger.warning(f"⚠️ AI matching timed out after {self.ai_timeout}s, falling back to local")
            except AssessmentUnavailable as e:
                logger.warning(f"⚠️ AI matching unavailable, falling back to local: {e}")
            except Exception as e:
                logger.warning(f"⚠️ AI matching failed, falling back to local: {e}")

        return await self._find_local_matches(new_item)

    async def run_auto_matching(
        self,
        new_item: Item,
        reporter_user_id: Optional[str] = None,
    ) -> List[MatchResult]:
        """Find matches and notify the reporter about them.

        Args:
            new_item: The newly reported item
            reporter_user_id: User to notify, if known

        Returns:
            The matches found
        """
        matches = await self.find_matches(new_item)
        if matches:
            await self._notify_matches(new_item, matches, reporter_user_id)
            mode = "🤖 AI" if matches[0].ai_powered else "📋 Local"
            logger.info(f"{mode} found {len(matches)} matches for '{new_item.name}'")
        return matches

    async def announce_item(self, item: Item, reporter_phone: Optional[str] = None) -> bool:
        """Tell staff channels that a new item was listed.

        Delivery problems are logged and reported as False.
        """
        if self.notifier is None:
            return False
        event = NotificationEvent(
            type=NotificationType.NEW_ITEM,
            item_name=item.name,
            item_category=item.category.value,
            item_location=item.location.value,
            user_email=item.created_by_email,
            user_phone=reporter_phone,
            description=item.description,
        )
        try:
            return await self.notifier.notify(event)
        except Exception as e:
            logger.warning(f"⚠️ New item notification failed: {e}")
            return False

    async def _find_local_matches(self, new_item: Item) -> List[MatchResult]:
        try:
            candidates = await self.store.find_items(
                new_item.item_type.opposite,
                status=ItemStatus.AVAILABLE,
                category=new_item.category,
            )
        except Exception as e:
            logger.error(f"❌ Could not load match candidates for '{new_item.name}': {e}")
            raise StoreUnavailableError(f"Could not load match candidates: {e}") from e

        matches = []
        for candidate in candidates:
            if candidate.id == new_item.id:
                continue
            score, reasons = local_match_score(new_item, candidate)
            if score >= LOCAL_SCORE_FLOOR:
                matches.append(MatchResult(
                    item_id=candidate.id,
                    item_name=candidate.name,
                    match_score=score,
                    match_reasons=reasons,
                ))

        matches.sort(key=lambda match: match.match_score, reverse=True)
        return matches[:MAX_MATCHES]

    async def _find_ai_matches(self, new_item: Item) -> List[MatchResult]:
        candidates = [
            candidate for candidate in await self.store.find_items(
                new_item.item_type.opposite,
                status=ItemStatus.AVAILABLE,
            )
            if candidate.id != new_item.id
        ]
        if not candidates:
            return []

        by_id = {candidate.id: candidate for candidate in candidates}
        results = await self.ai.batch_match(new_item, candidates)

        best: Dict[str, AIMatchCandidate] = {}
        for result in results:
            if result.score < AI_SCORE_FLOOR or result.item_id not in by_id:
                continue
            if result.item_id not in best or result.score > best[result.item_id].score:
                best[result.item_id] = result

        matches = [
            MatchResult(
                item_id=result.item_id,
                item_name=by_id[result.item_id].name,
                match_score=result.score,
                match_reasons=list(result.matched_attributes),
                ai_powered=True,
                ai_reasoning=result.reasoning,
                matched_attributes=list(result.matched_attributes),
            )
            for result in best.values()
        ]
        matches.sort(key=lambda match: match.match_score, reverse=True)
        return matches[:MAX_MATCHES]

    async def _notify_matches(
        self,
        new_item: Item,
        matches: List[MatchResult],
        reporter_user_id: Optional[str],
    ) -> None:
        if not reporter_user_id:
            return

        count = len(matches)
        top = matches[0]
        ai_label = " (AI-verified)" if top.ai_powered else ""
        plural = "es" if count > 1 else ""
        payload: Dict[str, Any] = {
            "type": "match",
            "message": (
                f"🎯 We found {count} potential match{plural} for your {new_item.item_type.value} "
                f"\"{new_item.name}\"! Top match: \"{top.item_name}\" ({top.match_score}% match{ai_label})"
            ),
            "itemId": new_item.id,
            "createdBy": reporter_user_id,
            "readBy": [],
            "read": False,
            "createdAt": utc_now().isoformat(),
            "matches": [
                {
                    "id": match.item_id,
                    "name": match.item_name,
                    "score": match.match_score,
                    "aiPowered": match.ai_powered,
                    "reasoning": match.ai_reasoning,
                }
                for match in matches
            ],
        }

        try:
            await self.store.insert_notification(payload)
            logger.info(f"🔔 Created match notification for {count} matches")
        except Exception as e:
            logger.error(f"❌ Error creating match notification: {e}")
