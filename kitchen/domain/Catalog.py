"""Household-scoped catalog entities: Category, Ingredient, Dish (+ HiddenMaster).

Every catalog entity is exactly one of three tiers, checked at construction:

  master    -> shared by all households; no household_id, no master_id
  override  -> a household's replacement of one master; household_id + master_id
  household -> a household's own entry; household_id, never master_id
"""
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Type

from pydantic import BaseModel, field_validator, model_validator

from kitchen.domain.Document import Document
from kitchen.logic.catalog.normalize import normalize_name, slugify
from kitchen.utilities.config import NEW_CATEGORY_COLOR_BG, NEW_CATEGORY_COLOR_TEXT
from kitchen.utilities.constants import CATEGORIES, DISHES, INGREDIENTS


class Scope(str, Enum):
    MASTER = "master"
    HOUSEHOLD = "household"
    OVERRIDE = "override"


class CatalogKind(str, Enum):
    CATEGORY = "category"
    INGREDIENT = "ingredient"
    DISH = "dish"

    @property
    def collection(self) -> str:
        return {
            CatalogKind.CATEGORY: CATEGORIES,
            CatalogKind.INGREDIENT: INGREDIENTS,
            CatalogKind.DISH: DISHES,
        }[self]

    @property
    def model(self) -> Type["CatalogEntity"]:
        return MODEL_BY_KIND[self]


def _first(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value:
            return value
    return None


class IngredientRef(BaseModel):
    """Loose ingredient reference as stored inside dishes and day overrides."""
    display_name: str
    canonical_name: str = ""
    ingredient_id: Optional[str] = None

    @field_validator("display_name", "canonical_name", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        return str(v).strip() if v is not None else ""

    @model_validator(mode="after")
    def fill_canonical(self):
        self.canonical_name = self.canonical_name or normalize_name(self.display_name)
        if not self.display_name or not self.canonical_name:
            raise ValueError("Ingredient reference needs a usable name")
        return self

    @property
    def merge_key(self) -> str:
        return self.ingredient_id or self.canonical_name

    @classmethod
    def from_loose(cls, item: Any):
        '''
        Accepts a ref, a dict (snake_case or camelCase keys, or "name") or a bare
        string. Returns None when nothing usable remains.
        '''
        if isinstance(item, IngredientRef):
            data = item.model_dump()
        elif isinstance(item, dict):
            data = {
                "display_name": _first(item, "display_name", "displayName", "name"),
                "canonical_name": _first(item, "canonical_name", "canonicalName"),
                "ingredient_id": _first(item, "ingredient_id", "ingredientId"),
            }
            data.update({k: v for k, v in item.items() if k not in data and k in cls.model_fields})
        elif item is None:
            return None
        else:
            data = {"display_name": str(item)}
        display = str(data.get("display_name") or "").strip()
        canonical = str(data.get("canonical_name") or "").strip() or normalize_name(display)
        if not display or not canonical:
            return None
        data["display_name"] = display
        data["canonical_name"] = canonical
        if data.get("ingredient_id") is not None:
            data["ingredient_id"] = str(data["ingredient_id"])
        return cls(**data)


def normalize_ingredient_list(items: Optional[Iterable[Any]], ref_type: Type[IngredientRef] = IngredientRef) -> List[IngredientRef]:
    """Coerce loose entries into refs, silently dropping unusable ones."""
    result = []
    for item in items or []:
        ref = ref_type.from_loose(item)
        if ref is not None:
            result.append(ref)
    return result


class CatalogEntity(Document):
    kind: ClassVar[CatalogKind]

    name: str
    scope: Scope = Scope.HOUSEHOLD
    household_id: Optional[str] = None
    master_id: Optional[str] = None
    is_archived: bool = False

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return str(v).strip() if v is not None else ""

    @model_validator(mode="after")
    def check_scope(self):
        if not self.name:
            raise ValueError(f"{self.kind.value} name cannot be empty")
        if self.scope is Scope.MASTER:
            if self.household_id or self.master_id:
                raise ValueError("master entities carry neither household_id nor master_id")
        elif self.scope is Scope.OVERRIDE:
            if not self.household_id or not self.master_id:
                raise ValueError("override entities need household_id and master_id")
        else:
            if not self.household_id:
                raise ValueError("household entities need household_id")
            if self.master_id:
                raise ValueError("household entities cannot reference a master")
        return self

    @property
    def is_master(self) -> bool:
        return self.scope is Scope.MASTER

    @property
    def is_override(self) -> bool:
        return self.scope is Scope.OVERRIDE

    @property
    def is_custom(self) -> bool:
        return self.scope is Scope.HOUSEHOLD

    @property
    def identity(self) -> str:
        """The master identity this record stands for (its own id unless it is an override)."""
        return self.master_id if self.is_override else self.id

    def content_fields(self) -> Dict[str, Any]:
        '''Kind-specific fields (what an override copies from its master).'''
        base = set(CatalogEntity.model_fields)
        return {k: v for k, v in self.model_dump().items() if k not in base or k == "name"}


class Category(CatalogEntity):
    kind: ClassVar[CatalogKind] = CatalogKind.CATEGORY

    slug: str = ""
    color_bg: str = NEW_CATEGORY_COLOR_BG
    color_text: str = NEW_CATEGORY_COLOR_TEXT
    order: int = 0
    active: bool = True

    @model_validator(mode="after")
    def fill_slug(self):
        self.slug = (self.slug or "").strip() or slugify(self.name)
        if not self.slug:
            raise ValueError("Category name is not valid")
        return self


class Ingredient(CatalogEntity):
    kind: ClassVar[CatalogKind] = CatalogKind.INGREDIENT

    canonical_name: str = ""
    category_id: Optional[str] = None
    active: bool = True

    @model_validator(mode="after")
    def fill_canonical(self):
        self.canonical_name = (self.canonical_name or "").strip() or normalize_name(self.name)
        if not self.canonical_name:
            raise ValueError("Ingredient name is not valid")
        return self


class Dish(CatalogEntity):
    kind: ClassVar[CatalogKind] = CatalogKind.DISH

    ingredients: List[IngredientRef] = []
    sidedish: bool = False
    created_by: Optional[str] = None

    @field_validator("ingredients", mode="before")
    @classmethod
    def normalize_ingredients(cls, v):
        return normalize_ingredient_list(v)


class HiddenMaster(Document):
    household_id: str
    type: CatalogKind
    master_id: str


MODEL_BY_KIND: Dict[CatalogKind, Type[CatalogEntity]] = {
    CatalogKind.CATEGORY: Category,
    CatalogKind.INGREDIENT: Ingredient,
    CatalogKind.DISH: Dish,
}

__all__ = [
    "Scope", "CatalogKind", "IngredientRef", "normalize_ingredient_list", "CatalogEntity",
    "Category", "Ingredient", "Dish", "HiddenMaster", "MODEL_BY_KIND",
]
