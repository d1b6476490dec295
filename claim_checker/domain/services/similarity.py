"""Fuzzy string similarity shared by every scorer."""

import math
import re
from typing import List, Set

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")

WORD_WEIGHT = 0.6
BIGRAM_WEIGHT = 0.4


def round_score(value: float) -> int:
    """Round half up, the rounding used for every integer score."""
    return int(math.floor(value + 0.5))


def _words(text: str) -> List[str]:
    cleaned = _NON_ALNUM.sub("", text.lower())
    return [word for word in cleaned.split() if len(word) > 2]


def _bigrams(text: str) -> Set[str]:
    cleaned = _WHITESPACE.sub("", text)
    return {cleaned[i:i + 2] for i in range(len(cleaned) - 1)}


def _dice(first: Set[str], second: Set[str]) -> float:
    if not first or not second:
        return 0.0
    return 2 * len(first & second) / (len(first) + len(second))


def similarity(a: str, b: str) -> float:
    """Compare two free-text strings.

    Blends a fuzzy word-overlap score (a word matches when either word
    contains the other) with the Dice coefficient of character bigrams.

    Args:
        a: First string
        b: Second string

    Returns:
        Similarity between 0.0 and 1.0
    """
    if not a or not b:
        return 0.0

    words_a = _words(a)
    words_b = _words(b)
    if not words_a or not words_b:
        return 0.0

    matches = sum(
        1 for word in words_a
        if any(word in other or other in word for other in words_b)
    )
    word_score = matches / max(len(words_a), len(words_b))
    bigram_score = _dice(_bigrams(a.lower()), _bigrams(b.lower()))

    score = word_score * WORD_WEIGHT + bigram_score * BIGRAM_WEIGHT
    return max(0.0, min(1.0, score))
