"""ShoppingList aggregate: the consolidated items to buy for one household week."""
import datetime as dt
from enum import Enum
from typing import List, Optional, Set

from pydantic import BaseModel, PrivateAttr, field_validator, model_validator

from kitchen.domain.Document import Document
from kitchen.logic.catalog.normalize import normalize_name
from kitchen.utilities.dates import get_week_start


class ItemStatus(str, Enum):
    PENDING = "pending"
    PURCHASED = "purchased"


class ShoppingItem(BaseModel):
    ingredient_id: Optional[str] = None
    category_id: Optional[str] = None
    display_name: str
    canonical_name: str = ""
    quantity: Optional[str] = None
    unit: Optional[str] = None
    occurrences: int = 0
    from_dishes: List[str] = []
    status: ItemStatus = ItemStatus.PENDING
    purchased_by: Optional[str] = None
    purchased_at: Optional[dt.datetime] = None
    store_id: Optional[str] = None
    trip_id: Optional[str] = None

    # indices of the plan days this item was built from; not persisted
    _days: Set[int] = PrivateAttr(default_factory=set)

    @field_validator("display_name", "canonical_name", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        return str(v).strip() if v is not None else ""

    @model_validator(mode="after")
    def fill_canonical(self):
        self.canonical_name = self.canonical_name or normalize_name(self.display_name)
        if not self.display_name or not self.canonical_name:
            raise ValueError("Shopping item needs a usable name")
        return self

    @property
    def merge_key(self) -> str:
        '''ingredient_id when known, else the canonical name.'''
        return self.ingredient_id or self.canonical_name

    @property
    def is_purchased(self) -> bool:
        return self.status is ItemStatus.PURCHASED

    def add_day(self, index: int):
        '''Count one contributing plan day (a day already counted is ignored).'''
        if index not in self._days:
            self._days.add(index)
            self.occurrences += 1

    def absorb(self, other: "ShoppingItem"):
        """Fold an item with the same merge key into this one.

        When both items know their plan days, occurrences count the distinct
        days; otherwise they are summed.
        """
        if self._days and other._days:
            for index in sorted(other._days):
                self.add_day(index)
        else:
            self.occurrences += other.occurrences
        for dish_id in other.from_dishes:
            if dish_id not in self.from_dishes:
                self.from_dishes.append(dish_id)
        if not self.category_id and other.category_id:
            self.category_id = other.category_id

    def mark_purchased(self, purchased_by: Optional[str] = None, purchased_at: Optional[dt.datetime] = None,
                       store_id: Optional[str] = None, trip_id: Optional[str] = None):
        self.status = ItemStatus.PURCHASED
        self.purchased_by = purchased_by
        self.purchased_at = purchased_at or dt.datetime.now(dt.timezone.utc)
        self.store_id = store_id
        self.trip_id = trip_id

    def mark_pending(self):
        self.status = ItemStatus.PENDING
        self.purchased_by = None
        self.purchased_at = None
        self.store_id = None
        self.trip_id = None

    def __str__(self) -> str:
        parts = [self.display_name]
        if self.quantity:
            parts.append(f"{self.quantity} {self.unit or ''}".strip())
        parts.append(f"x{self.occurrences}")
        if self.is_purchased:
            parts.append("purchased")
        return " - ".join(parts)


class ShoppingList(Document):
    household_id: str
    week_start: dt.date
    items: List[ShoppingItem] = []

    @field_validator("week_start")
    @classmethod
    def monday(cls, v):
        return get_week_start(v)

    def find_item(self, key: str) -> Optional[ShoppingItem]:
        for item in self.items:
            if item.merge_key == key or item.canonical_name == key:
                return item
        return None

    def __str__(self) -> str:
        items_str = ",\n\t".join(str(item) for item in self.items)
        return f"Shopping List {self.week_start.isoformat()}:\n\t{items_str}"


__all__ = ["ItemStatus", "ShoppingItem", "ShoppingList"]
