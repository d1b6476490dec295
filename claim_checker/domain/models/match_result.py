"""Domain model for lost/found match suggestions."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class MatchResult:
    """A candidate item that may be the counterpart of a new report."""

    item_id: str
    item_name: str
    match_score: int
    match_reasons: List[str] = field(default_factory=list)
    ai_powered: bool = False
    ai_reasoning: Optional[str] = None
    matched_attributes: Optional[List[str]] = None

    def __post_init__(self):
        """Validate the score."""
        if not 0 <= self.match_score <= 100:
            raise ValueError("Match score must be between 0 and 100")

    def to_dict(self) -> Dict[str, Any]:
        """Convert MatchResult to dictionary format for API responses."""
        return {
            'item_id': self.item_id,
            'item_name': self.item_name,
            'match_score': self.match_score,
            'match_reasons': self.match_reasons,
            'ai_powered': self.ai_powered,
            'ai_reasoning': self.ai_reasoning,
            'matched_attributes': self.matched_attributes,
        }
