"""Domain model for lost and found items."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ItemCategory(str, Enum):
    """Closed set of item categories."""

    ELECTRONICS = "electronics"
    BOOKS = "books"
    CLOTHING = "clothing"
    KEYS = "keys"
    ID_CARDS = "id-cards"
    ACCESSORIES = "accessories"
    BAGS = "bags"
    OTHER = "other"

    @classmethod
    def _missing_(cls, value):
        # Unknown categories read from the store fall back to OTHER
        return cls.OTHER


class CampusLocation(str, Enum):
    """Campus locations an item can be reported at."""

    LIBRARY = "library"
    STUDENT_CENTER = "student-center"
    GYMNASIUM = "gymnasium"
    CAFETERIA = "cafeteria"
    SCIENCE_BUILDING = "science-building"
    ARTS_BUILDING = "arts-building"
    DORMITORY = "dormitory"
    PARKING_LOT = "parking-lot"
    SPORTS_FIELD = "sports-field"
    OTHER = "other"

    @classmethod
    def _missing_(cls, value):
        return cls.OTHER


class ItemStatus(str, Enum):
    """Lifecycle status of a reported item."""

    AVAILABLE = "available"
    PENDING = "pending"
    CLAIMED = "claimed"


class ItemType(str, Enum):
    """Whether the report is for a lost or a found item."""

    LOST = "lost"
    FOUND = "found"

    @property
    def opposite(self) -> "ItemType":
        """The report type a match has to come from."""
        return ItemType.FOUND if self is ItemType.LOST else ItemType.LOST


# Allowed status moves; CLAIMED is terminal
ALLOWED_STATUS_TRANSITIONS = {
    ItemStatus.AVAILABLE: {ItemStatus.PENDING, ItemStatus.CLAIMED},
    ItemStatus.PENDING: {ItemStatus.CLAIMED, ItemStatus.AVAILABLE},
    ItemStatus.CLAIMED: set(),
}


class Item(BaseModel):
    """A lost or found item report."""

    id: str = Field(..., description="Store identifier of the item")
    name: str = Field(..., description="Short item name")
    category: ItemCategory = Field(default=ItemCategory.OTHER, description="Item category")
    description: str = Field(default="", description="Free-text description from the reporter")
    location: CampusLocation = Field(default=CampusLocation.OTHER, description="Where the item was found or lost")
    date_found: str = Field(default="", description="ISO date the item was found")
    image_url: str = Field(default="", description="Reference to the item image")
    status: ItemStatus = Field(default=ItemStatus.AVAILABLE, description="Current lifecycle status")
    item_type: ItemType = Field(default=ItemType.FOUND, description="Lost or found report")
    created_by: Optional[str] = Field(None, description="User id of the reporter")
    created_by_email: Optional[str] = Field(None, description="Email of the reporter")

    @field_validator("description", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return value or ""

    def can_transition_to(self, status: ItemStatus) -> bool:
        """Check whether moving to ``status`` respects the item lifecycle."""
        return status in ALLOWED_STATUS_TRANSITIONS[self.status]

    class Config:
        """Pydantic model configuration."""
        frozen = True
        json_schema_extra = {
            "example": {
                "id": "item-42",
                "name": "MacBook Pro Charger",
                "category": "electronics",
                "description": "White 96W USB-C power adapter with cable",
                "location": "library",
                "date_found": "2024-01-15",
                "status": "available",
                "item_type": "found",
            }
        }
