"""Ingredient resolution against a household's effective ingredient catalog."""
import logging
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from pydantic import BaseModel

from kitchen.domain.Catalog import CatalogKind, Ingredient
from kitchen.logic.catalog.normalize import normalize_name, strip_accents
from kitchen.logic.catalog.scopes import NOT_ARCHIVED, ScopeResolver
from kitchen.utilities.config import INGREDIENT_SEARCH_LIMIT
from kitchen.utilities.errors import EntityNotFoundError, InvalidNameError, require_household
from kitchen.utilities.validators import IngredientInput

logger = logging.getLogger(__name__)

# Fields the matcher writes, with the camelCase spelling loose callers may use
SYNCED_FIELDS = {
    "ingredient_id": "ingredientId",
    "canonical_name": "canonicalName",
    "category_id": "categoryId",
}


class LooseItem(BaseModel):
    """An item to resolve when the caller hands in a plain mapping: every field is optional."""
    ingredient_id: Optional[str] = None
    canonical_name: Optional[str] = None
    display_name: Optional[str] = None
    category_id: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LooseItem":
        def pick(*keys):
            for key in keys:
                if data.get(key):
                    return str(data[key]).strip() or None
            return None

        return cls(
            ingredient_id=pick("ingredient_id", "ingredientId"),
            canonical_name=pick("canonical_name", "canonicalName"),
            display_name=pick("display_name", "displayName", "name"),
            category_id=pick("category_id", "categoryId"),
        )

    def merge_into(self, original: Mapping[str, Any]) -> Dict[str, Any]:
        '''A copy of ``original`` carrying the synced fields, spelled the way the caller spells them.'''
        result = dict(original)
        camel = any(alias in original for alias in ("displayName", "ingredientId", "canonicalName", "categoryId"))
        for field, alias in SYNCED_FIELDS.items():
            value = getattr(self, field)
            key = alias if alias in original or (camel and field not in original) else field
            if value is not None or key in original:
                result[key] = value
        return result


class MatchResult(NamedTuple):
    changed: bool
    items: List[Any]
    unresolved: Tuple[str, ...] = ()


def build_indices(ingredients: Iterable[Ingredient]) -> Tuple[Dict[str, Ingredient], Dict[str, Ingredient]]:
    '''(by_id, by_canonical). Overrides are reachable through their master id too;
    on a canonical collision the later record wins.'''
    by_id: Dict[str, Ingredient] = {}
    by_canonical: Dict[str, Ingredient] = {}
    for ingredient in ingredients:
        by_id[ingredient.id] = ingredient
        if ingredient.master_id:
            by_id[ingredient.master_id] = ingredient
        canonical = ingredient.canonical_name or normalize_name(ingredient.name)
        if canonical:
            by_canonical[canonical] = ingredient
    return by_id, by_canonical


def _sync(item, by_id: Dict[str, Ingredient], by_canonical: Dict[str, Ingredient]) -> Tuple[bool, Optional[str]]:
    """Match one item in place. Returns (changed, unresolved key or None)."""
    canonical = item.canonical_name or normalize_name(item.display_name or "")
    record = by_id.get(item.ingredient_id) if item.ingredient_id else None
    if record is None and canonical:
        record = by_canonical.get(canonical)
    if record is None:
        return False, canonical or item.ingredient_id

    changed = False
    # the master identity keeps merge keys stable when a household overrides a shared ingredient
    if item.ingredient_id != record.identity:
        item.ingredient_id = record.identity
        changed = True
    record_canonical = record.canonical_name or normalize_name(record.name)
    if item.canonical_name != record_canonical:
        item.canonical_name = record_canonical
        changed = True
    if "category_id" in type(item).model_fields and item.category_id != record.category_id:
        item.category_id = record.category_id
        changed = True
    return changed, None


def match_items(items: Sequence[Any], by_id: Dict[str, Ingredient],
                by_canonical: Dict[str, Ingredient]) -> MatchResult:
    """Synchronize ingredient_id, canonical_name and category_id of each item to
    its catalog record. Items are copied, never mutated in place.

    Models come back as models; mappings (snake_case or camelCase keys) come
    back as dicts.
    """
    changed = False
    resolved: List[Any] = []
    unresolved: List[str] = []
    for item in items:
        if isinstance(item, Mapping):
            loose = LooseItem.from_mapping(item)
            item_changed, missing = _sync(loose, by_id, by_canonical)
            resolved.append(loose.merge_into(item))
        else:
            copy = item.model_copy(deep=True)
            item_changed, missing = _sync(copy, by_id, by_canonical)
            resolved.append(copy)
        changed = changed or item_changed
        if missing:
            unresolved.append(missing)
    return MatchResult(changed, resolved, tuple(unresolved))


def _contains(pattern: str, value: str) -> bool:
    return bool(pattern) and pattern in value


class IngredientMatcher:
    def __init__(self, resolver: ScopeResolver):
        self.resolver = resolver

    async def resolve(self, items: Sequence[Any], household_id: str) -> MatchResult:
        '''Match loose items to household-scoped ingredients (lookup tables are per call).'''
        household_id = require_household(household_id)
        if not items:
            return MatchResult(False, [])
        catalog = await self.resolver.resolve_catalog(CatalogKind.INGREDIENT, household_id)
        by_id, by_canonical = build_indices(catalog)
        return match_items(items, by_id, by_canonical)

    async def search(self, household_id: str, query: str = "", include_inactive: bool = False,
                     limit: Optional[int] = INGREDIENT_SEARCH_LIMIT) -> List[Ingredient]:
        """Ingredients of the household's view whose canonical or display name contains ``query``.

        The canonical match also tries the normalized query minus its last
        letter (for queries longer than four letters) so "tomate" finds
        "tomat". Display names are compared case and accent insensitive.
        Results are sorted by name; ``limit=None`` returns every match.
        """
        filters = {} if include_inactive else {"active": True}
        ingredients = await self.resolver.resolve_catalog(CatalogKind.INGREDIENT, household_id, filters)

        trimmed = (query or "").strip()
        if trimmed:
            normalized = normalize_name(trimmed)
            fallback = normalized[:-1] if len(normalized) > 4 else ""
            name_key = strip_accents(trimmed.lower())

            def hit(ingredient: Ingredient) -> bool:
                canonical = ingredient.canonical_name.lower()
                return (_contains(normalized, canonical) or _contains(fallback, canonical)
                        or _contains(name_key, strip_accents(ingredient.name.lower())))

            ingredients = [i for i in ingredients if hit(i)]

        ingredients.sort(key=lambda i: i.name)
        return ingredients[:limit] if limit else ingredients

    async def _checked_fields(self, household_id: str, data: IngredientInput) -> Dict[str, Any]:
        canonical = normalize_name(data.canonical_name or data.name)
        if not canonical:
            raise InvalidNameError("Ingredient name is not valid")
        category = await self.resolver.find_visible(CatalogKind.CATEGORY, household_id, data.category_id)
        if category is None:
            raise EntityNotFoundError(f"Category {data.category_id} not found for household {household_id}")
        return {"name": data.name, "canonical_name": canonical, "category_id": category.id}

    async def create_ingredient(self, household_id: str, data: IngredientInput) -> Tuple[Ingredient, bool]:
        household_id = require_household(household_id)
        fields = await self._checked_fields(household_id, data)
        canonical = fields["canonical_name"]

        existing = await self.resolver.resolve_catalog(CatalogKind.INGREDIENT, household_id,
                                                       {"canonical_name": canonical})
        if existing:
            logger.debug("Ingredient '%s' already exists for household %s", canonical, household_id)
            return existing[0], False

        ingredient = await self.resolver.create_custom(CatalogKind.INGREDIENT, household_id, fields)
        return ingredient, True

    async def update_ingredient(self, household_id: str, ingredient_id: str, data: IngredientInput) -> Ingredient:
        """Edit an ingredient as seen by one household.

        Shared ingredients are edited through the household's override;
        the household's own records (customs and overrides) are updated in place.
        """
        household_id = require_household(household_id)
        fields = await self._checked_fields(household_id, data)
        if data.active is not None:
            fields["active"] = data.active

        doc = await self.resolver.store.find_one(CatalogKind.INGREDIENT.collection,
                                                 {"_id": ingredient_id, "is_archived": NOT_ARCHIVED})
        if doc is None:
            raise EntityNotFoundError(f"Ingredient {ingredient_id} not found")
        ingredient = Ingredient.from_dict(doc)

        if ingredient.is_master:
            updated, _ = await self.resolver.save_override(CatalogKind.INGREDIENT, household_id, ingredient.id, fields)
            return updated
        if ingredient.household_id != household_id:
            raise EntityNotFoundError(f"Ingredient {ingredient_id} not found")
        updated = await self.resolver.save_entity(Ingredient(**{**ingredient.model_dump(), **fields}))
        logger.info("Updated ingredient %s for household %s", updated.id, household_id)
        return updated


__all__ = ["IngredientMatcher", "LooseItem", "MatchResult", "build_indices", "match_items"]
