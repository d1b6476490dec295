"""Strict parsing of AI responses into domain models.

AI output is untrusted. Anything that is not a JSON object (or a JSON
array, for batch matching) raises ``AssessmentUnavailable``; every field
that is missing or malformed falls back to a conservative default.
"""

import json
import logging
import math
from typing import Any, List, Optional

from ...domain.errors import AssessmentUnavailable
from ...domain.ports.ai_provider import (
    AIAssessment,
    AIBreakdownEntry,
    AIConfidence,
    AIDescriptionEnhancement,
    AIMatchCandidate,
    AIRiskLevel,
)
from ...domain.services.similarity import round_score

logger = logging.getLogger(__name__)

_BATCH_KEYS = ("matches", "results", "candidates")


def _load_json(content: Optional[str]) -> Any:
    if not content:
        raise AssessmentUnavailable("AI response was empty")
    try:
        return json.loads(content)
    except (TypeError, ValueError) as e:
        raise AssessmentUnavailable(f"AI response was not valid JSON: {e}") from e


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _finite(number: Optional[float]) -> bool:
    return number is not None and math.isfinite(number)


def _score(value: Any) -> int:
    number = _number(value)
    if number is None or not math.isfinite(number):
        return 0
    return round_score(max(0.0, min(100.0, number)))


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [entry.strip() for entry in value if isinstance(entry, str) and entry.strip()]


def _enum(enum_cls, value: Any, default):
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    return default


def _breakdown(value: Any) -> List[AIBreakdownEntry]:
    if not isinstance(value, list):
        return []
    entries = []
    for raw in value:
        if not isinstance(raw, dict):
            continue
        category = raw.get("category")
        points = _number(raw.get("score"))
        max_points = _number(raw.get("maxScore"))
        if not isinstance(category, str) or not _finite(points) or not _finite(max_points):
            logger.debug(f"Dropping malformed breakdown entry: {raw}")
            continue
        entries.append(AIBreakdownEntry(
            category=category,
            points=round_score(points),
            max_points=round_score(max_points),
            insight=_text(raw.get("aiInsight"), ""),
        ))
    return entries


def parse_assessment(content: Optional[str]) -> AIAssessment:
    """Parse a claim assessment response.

    Args:
        content: Raw message content returned by the model

    Returns:
        Parsed assessment with defaults for missing fields

    Raises:
        AssessmentUnavailable: If the content is not a JSON object
    """
    data = _load_json(content)
    if not isinstance(data, dict):
        raise AssessmentUnavailable("AI response was not a JSON object")

    return AIAssessment(
        verification_score=_score(data.get("verificationScore")),
        confidence=_enum(AIConfidence, data.get("confidence"), AIConfidence.LOW),
        risk_level=_enum(AIRiskLevel, data.get("riskLevel"), AIRiskLevel.HIGH),
        reasoning=_text(data.get("reasoning"), "Unable to fully assess"),
        breakdown=_breakdown(data.get("breakdown")),
        overall_assessment=_text(data.get("overallAssessment"), "Manual review recommended"),
        red_flags=_strings(data.get("redFlags")),
        positive_indicators=_strings(data.get("positiveIndicators")),
    )


def parse_batch_match(content: Optional[str]) -> List[AIMatchCandidate]:
    """Parse a batch match response.

    The model may answer with a bare array or wrap it under ``matches``,
    ``results`` or ``candidates``. Entries without an id are dropped.

    Raises:
        AssessmentUnavailable: If the content is not JSON
    """
    data = _load_json(content)
    if isinstance(data, dict):
        data = next((data[key] for key in _BATCH_KEYS if isinstance(data.get(key), list)), [])
    if not isinstance(data, list):
        raise AssessmentUnavailable("AI match response was not a list")

    candidates = []
    for raw in data:
        if not isinstance(raw, dict) or raw.get("id") in (None, ""):
            continue
        candidates.append(AIMatchCandidate(
            item_id=str(raw["id"]),
            score=_score(raw.get("score")),
            reasoning=_text(raw.get("reasoning"), ""),
            matched_attributes=_strings(raw.get("matchedAttributes")),
        ))
    return candidates


def parse_enhancement(content: Optional[str], description: str) -> AIDescriptionEnhancement:
    """Parse a description enhancement response.

    A missing or blank ``enhancedDescription`` keeps the reporter's own
    description.

    Raises:
        AssessmentUnavailable: If the content is not a JSON object
    """
    data = _load_json(content)
    if not isinstance(data, dict):
        raise AssessmentUnavailable("AI enhancement was not a JSON object")

    return AIDescriptionEnhancement(
        enhanced_description=_text(data.get("enhancedDescription"), description),
        suggested_keywords=_strings(data.get("suggestedKeywords")),
        tips=_strings(data.get("tips")),
    )


def parse_ping(content: Optional[str], default_model: str) -> str:
    """Return the model named in a ping reply, or ``default_model``."""
    data = _load_json(content)
    if not isinstance(data, dict):
        raise AssessmentUnavailable("AI ping reply was not a JSON object")
    return _text(data.get("model"), default_model)
