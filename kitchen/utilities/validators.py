"""
Input validation schemas using Pydantic for data handed to the kitchen core.
"""
import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from kitchen.domain.Catalog import IngredientRef, normalize_ingredient_list
from kitchen.domain.ShoppingList import ItemStatus
from kitchen.domain.WeekPlan import CookTiming, IngredientOverride


def _strip(v):
    if isinstance(v, str):
        return v.strip()
    return v


class CategoryInput(BaseModel):
    """Schema for category creation."""
    name: str = Field(..., min_length=1, max_length=100)
    color_bg: Optional[str] = None
    color_text: Optional[str] = None
    order: int = 0

    @field_validator('name', 'color_bg', 'color_text', mode='before')
    @classmethod
    def strip_whitespace(cls, v):
        """Remove leading/trailing whitespace."""
        return _strip(v)


class IngredientInput(BaseModel):
    """Schema for ingredient creation and edits (``active`` is only applied on edits)."""
    name: str = Field(..., min_length=1, max_length=100)
    category_id: str = Field(..., min_length=1)
    canonical_name: Optional[str] = None
    active: Optional[bool] = None

    @field_validator('name', 'category_id', 'canonical_name', mode='before')
    @classmethod
    def strip_whitespace(cls, v):
        return _strip(v)


class DishInput(BaseModel):
    """Schema for dish creation and edits."""
    name: str = Field(..., min_length=1, max_length=200)
    ingredients: List[IngredientRef] = Field(default_factory=list)
    sidedish: bool = False

    @field_validator('name', mode='before')
    @classmethod
    def validate_name(cls, v):
        """Validate dish name."""
        v = _strip(v)
        if not v:
            raise ValueError('Dish name cannot be empty')
        return v

    @field_validator('ingredients', mode='before')
    @classmethod
    def validate_ingredients(cls, v):
        """Drop entries with no usable name."""
        return normalize_ingredient_list(v)


class DayUpdateInput(BaseModel):
    """Schema for a week plan day edit. Unset fields are left untouched."""
    cook_user_id: Optional[str] = None
    cook_timing: Optional[CookTiming] = None
    servings: Optional[int] = Field(None, ge=0, le=50)
    main_dish_id: Optional[str] = None
    side_dish_id: Optional[str] = None
    ingredient_overrides: Optional[List[IngredientOverride]] = None

    @field_validator('cook_user_id', 'main_dish_id', 'side_dish_id', mode='before')
    @classmethod
    def empty_as_none(cls, v):
        v = _strip(v)
        return v or None

    @field_validator('ingredient_overrides', mode='before')
    @classmethod
    def validate_overrides(cls, v):
        if v is None:
            return None
        return normalize_ingredient_list(v, IngredientOverride)


class SwapRequestInput(BaseModel):
    """Schema for asking another member to swap cooking days."""
    week_start: dt.date
    to_user_id: str = Field(..., min_length=1)
    from_date: dt.date
    to_date: dt.date

    @field_validator('to_user_id', mode='before')
    @classmethod
    def strip_whitespace(cls, v):
        return _strip(v)


class ItemStatusInput(BaseModel):
    """Schema for marking a shopping item purchased or pending."""
    key: str = Field(..., min_length=1)
    status: ItemStatus
    purchased_by: Optional[str] = None
    store_id: Optional[str] = None
    trip_id: Optional[str] = None
    display_name: Optional[str] = None

    @field_validator('key', 'display_name', mode='before')
    @classmethod
    def strip_whitespace(cls, v):
        return _strip(v)


__all__ = ['CategoryInput', 'IngredientInput', 'DishInput', 'DayUpdateInput', 'SwapRequestInput', 'ItemStatusInput']
