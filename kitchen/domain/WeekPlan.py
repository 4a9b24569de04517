"""WeekPlan aggregate: one household's working days with cook/dish assignments."""
import datetime as dt
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from kitchen.domain.Catalog import IngredientRef, normalize_ingredient_list
from kitchen.domain.Document import Document
from kitchen.utilities.config import DEFAULT_COOK_TIMING, DEFAULT_SERVINGS
from kitchen.utilities.dates import get_week_dates, get_week_start


class CookTiming(str, Enum):
    PREVIOUS_DAY = "previous_day"
    SAME_DAY = "same_day"


class OverrideStatus(str, Enum):
    NEED = "need"
    HAVE = "have"
    BOUGHT = "bought"


class IngredientOverride(IngredientRef):
    """Ad-hoc ingredient added to a single day on top of its dishes."""
    status: OverrideStatus = OverrideStatus.NEED


class WeekDay(BaseModel):
    date: dt.date
    cook_user_id: Optional[str] = None
    cook_timing: CookTiming = CookTiming(DEFAULT_COOK_TIMING)
    servings: int = Field(default=DEFAULT_SERVINGS, ge=1)
    main_dish_id: Optional[str] = None
    side_dish_id: Optional[str] = None
    ingredient_overrides: List[IngredientOverride] = []

    @field_validator("ingredient_overrides", mode="before")
    @classmethod
    def normalize_overrides(cls, v):
        return normalize_ingredient_list(v, IngredientOverride)

    def dish_ids(self) -> List[str]:
        '''Assigned dish ids in main, side order.'''
        return [d for d in (self.main_dish_id, self.side_dish_id) if d]

    def assign_from(self, other: "WeekDay"):
        '''Copies the assignment of another day (the date stays the same).'''
        self.cook_user_id = other.cook_user_id
        self.cook_timing = other.cook_timing
        self.servings = other.servings or DEFAULT_SERVINGS
        self.main_dish_id = other.main_dish_id
        self.side_dish_id = other.side_dish_id
        self.ingredient_overrides = [o.model_copy(deep=True) for o in other.ingredient_overrides]

    def clear_assignment(self):
        self.cook_user_id = None
        self.main_dish_id = None
        self.side_dish_id = None
        self.ingredient_overrides = []


class WeekPlan(Document):
    household_id: str
    week_start: dt.date
    days: List[WeekDay] = []

    @field_validator("week_start")
    @classmethod
    def monday(cls, v):
        return get_week_start(v)

    @classmethod
    def new(cls, week_start, household_id: str) -> "WeekPlan":
        '''A plan with the default working days (fixed count, fixed order).'''
        monday = get_week_start(week_start)
        days = [WeekDay(date=d) for d in get_week_dates(monday)]
        return cls(household_id=household_id, week_start=monday, days=days)

    def day_for(self, day_date) -> Optional[WeekDay]:
        for day in self.days:
            if day.date == day_date:
                return day
        return None


__all__ = ["CookTiming", "OverrideStatus", "IngredientOverride", "WeekDay", "WeekPlan"]
