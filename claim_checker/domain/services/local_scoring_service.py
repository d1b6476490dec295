"""Category-aware point scoring of a claim without any external calls."""

import logging
from typing import List, Mapping, Optional, Tuple

from ..models.item import Item
from ..models.security_questions import Signal, signal_aliases
from ..models.verification import LocalScore, RiskLevel, ScoreBreakdown
from .similarity import round_score, similarity

logger = logging.getLogger(__name__)

COLOR_POINTS = 25
DESCRIPTION_POINTS = 30
BRAND_POINTS = 20
FEATURE_POINTS = 25
ENGAGEMENT_POINTS = 20
POINTS_PER_ANSWER = 5
MIN_MAX_SCORE = 100


def _first_present(answers: Mapping[str, str], keys: Tuple[str, ...]) -> Optional[str]:
    for key in keys:
        answer = (answers.get(key) or "").strip()
        if answer:
            return answer
    return None


def _tiered(points: int, high: int, low: int, labels: Tuple[str, str, str]) -> str:
    if points > high:
        return labels[0]
    if points > low:
        return labels[1]
    return labels[2]


def risk_for_percentage(percentage: int) -> RiskLevel:
    """Map a local percentage onto a risk tier."""
    if percentage >= 70:
        return RiskLevel.LOW
    if percentage >= 40:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


class LocalHeuristicScorer:
    """Scores how well a claimant's answers match the item description.

    Signals whose answer is absent add nothing to the available points,
    except engagement which is always evaluated. The available points are
    floored at 100 before computing the percentage.
    """

    def score(
        self,
        item: Item,
        security_answers: Mapping[str, str],
        claimer_description: str,
    ) -> LocalScore:
        """Score a claim against an item.

        Args:
            item: The claimed item
            security_answers: Security question id to answer
            claimer_description: Claimant's identification description

        Returns:
            Local score with per-signal breakdown
        """
        description = item.description
        breakdown: List[ScoreBreakdown] = []

        color = _first_present(security_answers, signal_aliases(item.category, Signal.COLOR))
        if color:
            points = round_score(similarity(description, color) * COLOR_POINTS)
            breakdown.append(ScoreBreakdown(
                category="Color Match",
                points=points,
                max_points=COLOR_POINTS,
                details=_tiered(points, 15, 5, (
                    "Color description matches well",
                    "Partial color match",
                    "Color did not match",
                )),
            ))

        claim_text = (claimer_description or "").strip()
        if claim_text:
            points = round_score(similarity(description, claim_text) * DESCRIPTION_POINTS)
            breakdown.append(ScoreBreakdown(
                category="Description Match",
                points=points,
                max_points=DESCRIPTION_POINTS,
                details=_tiered(points, 20, 10, (
                    "Detailed description matches",
                    "Some details match",
                    "Description differs",
                )),
            ))

        brand = _first_present(security_answers, signal_aliases(item.category, Signal.BRAND))
        if brand:
            brand_lower = brand.lower()
            description_lower = description.lower()
            matched = brand_lower in description_lower or any(
                token in description_lower for token in brand_lower.split()
            )
            breakdown.append(ScoreBreakdown(
                category="Brand Verification",
                points=BRAND_POINTS if matched else 0,
                max_points=BRAND_POINTS,
                details="Brand matches" if matched else "Brand not verified",
            ))

        feature = _first_present(security_answers, signal_aliases(item.category, Signal.FEATURE))
        if feature:
            points = round_score(similarity(description, feature) * FEATURE_POINTS)
            breakdown.append(ScoreBreakdown(
                category="Unique Features",
                points=points,
                max_points=FEATURE_POINTS,
                details=_tiered(points, 15, 5, (
                    "Unique features verified",
                    "Some features match",
                    "Features unclear",
                )),
            ))

        answered = sum(1 for answer in security_answers.values() if (answer or "").strip())
        breakdown.append(ScoreBreakdown(
            category="Verification Effort",
            points=min(answered * POINTS_PER_ANSWER, ENGAGEMENT_POINTS),
            max_points=ENGAGEMENT_POINTS,
            details=f"{answered} security questions answered",
        ))

        total = sum(entry.points for entry in breakdown)
        max_score = max(sum(entry.max_points for entry in breakdown), MIN_MAX_SCORE)
        percentage = max(0, min(100, round_score(total / max_score * 100)))

        logger.debug(f"📊 Local score for item {item.id}: {total}/{max_score} ({percentage}%)")
        return LocalScore(
            score=total,
            max_score=max_score,
            percentage=percentage,
            breakdown=breakdown,
            risk_level=risk_for_percentage(percentage),
        )
