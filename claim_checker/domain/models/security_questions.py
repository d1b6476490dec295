"""Per-category security questions and answer alias tables."""

from enum import Enum
from typing import Dict, Mapping, Tuple

from pydantic import BaseModel

from .item import ItemCategory


class SecurityQuestion(BaseModel):
    """A question a claimant answers to prove ownership."""

    id: str
    question: str
    placeholder: str = ""

    class Config:
        """Pydantic model configuration."""
        frozen = True


class Signal(str, Enum):
    """Local scoring signals that read a specific security answer."""

    COLOR = "color"
    BRAND = "brand"
    FEATURE = "feature"


def _q(id: str, question: str, placeholder: str) -> SecurityQuestion:
    return SecurityQuestion(id=id, question=question, placeholder=placeholder)


CATEGORY_QUESTIONS: Dict[ItemCategory, Tuple[SecurityQuestion, ...]] = {
    ItemCategory.ELECTRONICS: (
        _q("color", "What is the color of the device?", "e.g. Space gray"),
        _q("caseColor", "What is the color/type of the case (if any)?", "e.g. Clear silicone case"),
        _q("damage", "Are there any visible damages or scratches?", "e.g. Cracked bottom-left corner"),
        _q("uniqueFeature", "Any unique identifying marks or stickers?", "e.g. NASA sticker on the lid"),
    ),
    ItemCategory.BOOKS: (
        _q("bookColor", "What is the cover color of the book?", "e.g. Dark blue hardcover"),
        _q("bookMarks", "Any bookmarks or notes inside?", "e.g. Yellow highlights in chapter 3"),
        _q("ownerName", "Is your name written anywhere in the book?", "e.g. Inside the front cover"),
    ),
    ItemCategory.CLOTHING: (
        _q("clothingColor", "What is the primary color?", "e.g. Forest green"),
        _q("clothingBrand", "What is the brand?", "e.g. Patagonia"),
        _q("clothingSize", "What size is it?", "e.g. Medium"),
    ),
    ItemCategory.KEYS: (
        _q("keyCount", "How many keys are on the keychain?", "e.g. Three"),
        _q("keychainDesc", "Describe any keychains or attachments", "e.g. Red bottle opener"),
        _q("keyType", "What types of keys are included?", "e.g. Car key and two door keys"),
    ),
    ItemCategory.ID_CARDS: (
        _q("cardType", "What type of ID card is it?", "e.g. Student ID"),
        _q("cardholderName", "What name is on the card?", "e.g. Jane Doe"),
        _q("cardExpiry", "What is the expiration date or ID number prefix?", "e.g. Expires 05/2026"),
    ),
    ItemCategory.ACCESSORIES: (
        _q("accessoryColor", "What is the primary color?", "e.g. Silver"),
        _q("accessoryBrand", "What is the brand (if known)?", "e.g. Ray-Ban"),
        _q("accessoryFeature", "Any unique features or damage?", "e.g. Scratch on the left lens"),
    ),
    ItemCategory.BAGS: (
        _q("bagColor", "What is the bag color?", "e.g. Black with orange zippers"),
        _q("bagBrand", "What is the brand?", "e.g. JanSport"),
        _q("bagContents", "What items were inside the bag?", "e.g. Calculus textbook and a water bottle"),
    ),
    ItemCategory.OTHER: (
        _q("itemColor", "What is the primary color?", "e.g. Purple"),
        _q("itemFeature", "Any unique identifying features?", "e.g. Initials engraved on the side"),
    ),
}

# Global alias order per signal; the first present answer wins
SIGNAL_ALIASES: Dict[Signal, Tuple[str, ...]] = {
    Signal.COLOR: (
        "color", "caseColor", "clothingColor", "bagColor",
        "accessoryColor", "itemColor", "bookColor",
    ),
    Signal.BRAND: ("clothingBrand", "bagBrand", "accessoryBrand"),
    Signal.FEATURE: ("damage", "uniqueFeature", "accessoryFeature", "itemFeature", "bookMarks"),
}


def questions_for(category: ItemCategory) -> Tuple[SecurityQuestion, ...]:
    """Ordered security questions for a category, ``other`` as fallback."""
    return CATEGORY_QUESTIONS.get(category, CATEGORY_QUESTIONS[ItemCategory.OTHER])


def _build_category_aliases() -> Dict[ItemCategory, Dict[Signal, Tuple[str, ...]]]:
    table: Dict[ItemCategory, Dict[Signal, Tuple[str, ...]]] = {}
    for category, questions in CATEGORY_QUESTIONS.items():
        own_ids = [question.id for question in questions]
        table[category] = {}
        for signal, aliases in SIGNAL_ALIASES.items():
            own = [key for key in own_ids if key in aliases]
            rest = [key for key in aliases if key not in own]
            table[category][signal] = tuple(own + rest)
    return table


CATEGORY_SIGNAL_ALIASES = _build_category_aliases()


def signal_aliases(category: ItemCategory, signal: Signal) -> Tuple[str, ...]:
    """Answer keys that feed ``signal`` for ``category``, category keys first."""
    return CATEGORY_SIGNAL_ALIASES.get(category, CATEGORY_SIGNAL_ALIASES[ItemCategory.OTHER])[signal]


def question_answer_pairs(
    category: ItemCategory,
    answers: Mapping[str, str],
) -> Tuple[Tuple[str, str], ...]:
    """Pair each category question with the claimant's answer."""
    return tuple(
        (question.question, (answers.get(question.id) or "").strip() or "(not answered)")
        for question in questions_for(category)
    )
