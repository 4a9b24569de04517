"""Category service: slug identity, the lazily created default category, and
the read-time fallback for uncategorized shopping items."""
import logging
from typing import Dict, List, Optional, Tuple

from kitchen.domain.Catalog import CatalogKind, Category, Scope
from kitchen.domain.ShoppingList import ShoppingItem
from kitchen.logic.catalog.normalize import normalize_category_key, slugify
from kitchen.logic.catalog.scopes import NOT_ARCHIVED, ScopeResolver
from kitchen.utilities.config import (
    DEFAULT_CATEGORY_COLOR_BG, DEFAULT_CATEGORY_COLOR_TEXT, DEFAULT_CATEGORY_NAME, DEFAULT_CATEGORY_SLUG,
    NEW_CATEGORY_COLOR_BG, NEW_CATEGORY_COLOR_TEXT,
)
from kitchen.utilities.errors import DuplicateKeyError, InvalidNameError, require_household
from kitchen.utilities.validators import CategoryInput

logger = logging.getLogger(__name__)

CATEGORY_SORT = [("order", 1), ("name", 1)]


class CategoryService:
    def __init__(self, resolver: ScopeResolver):
        self.resolver = resolver
        self.store = resolver.store

    async def list_categories(self, household_id: str, include_inactive: bool = False) -> List[Category]:
        filters = {} if include_inactive else {"active": True}
        return await self.resolver.resolve_catalog(CatalogKind.CATEGORY, household_id, filters, sort=CATEGORY_SORT)

    async def ensure_default_category(self, household_id: Optional[str] = None) -> Category:
        """Return the default category, creating it on first need.

        With a household id the category is a household custom; without one it
        is created in master scope. Concurrent callers end up with one record.
        """
        scope = Scope.HOUSEHOLD if household_id else Scope.MASTER
        query = {"slug": DEFAULT_CATEGORY_SLUG, "scope": scope.value, "is_archived": NOT_ARCHIVED}
        if household_id:
            query["household_id"] = household_id

        existing = await self.store.find_one(CatalogKind.CATEGORY.collection, query)
        if existing:
            return Category.from_dict(existing)

        category = Category(
            name=DEFAULT_CATEGORY_NAME,
            slug=DEFAULT_CATEGORY_SLUG,
            color_bg=DEFAULT_CATEGORY_COLOR_BG,
            color_text=DEFAULT_CATEGORY_COLOR_TEXT,
            scope=scope,
            household_id=household_id or None,
        )
        try:
            doc = await self.store.create(CatalogKind.CATEGORY.collection, category.to_dict())
        except DuplicateKeyError:
            logger.debug("Default category created concurrently (household=%s)", household_id)
            doc = await self.store.find_one(CatalogKind.CATEGORY.collection, query)
            if doc is None:
                raise
            return Category.from_dict(doc)
        logger.info("Created default category '%s' (household=%s)", DEFAULT_CATEGORY_NAME, household_id)
        return Category.from_dict(doc)

    async def create_category(self, household_id: str, data: CategoryInput) -> Tuple[Category, bool]:
        '''Returns (category, created). A visible category with the same slug or
        name (case and accent insensitive) is returned instead of a duplicate.'''
        household_id = require_household(household_id)
        slug = slugify(data.name)
        if not slug:
            raise InvalidNameError("Category name is not valid")

        name_key = normalize_category_key(data.name)
        for category in await self.list_categories(household_id, include_inactive=True):
            if category.slug == slug or normalize_category_key(category.name) == name_key:
                return category, False

        fields = {
            "name": data.name,
            "slug": slug,
            "color_bg": data.color_bg or NEW_CATEGORY_COLOR_BG,
            "color_text": data.color_text or NEW_CATEGORY_COLOR_TEXT,
            "order": data.order,
        }
        try:
            category = await self.resolver.create_custom(CatalogKind.CATEGORY, household_id, fields)
        except DuplicateKeyError:
            doc = await self.store.find_one(CatalogKind.CATEGORY.collection, {
                "slug": slug, "scope": Scope.HOUSEHOLD.value, "household_id": household_id,
                "is_archived": NOT_ARCHIVED,
            })
            if doc is None:
                raise
            return Category.from_dict(doc), False
        return category, True

    async def group_items(self, household_id: str, items: List[ShoppingItem]) -> List[Dict]:
        """Group shopping items by category for display.

        Items without a category, or whose category is not visible to the
        household, land in the default category. Groups follow category order.
        """
        categories = await self.list_categories(household_id, include_inactive=True)
        by_id: Dict[str, Category] = {}
        for category in categories:
            by_id[category.id] = category
            if category.master_id:
                by_id[category.master_id] = category

        default: Optional[Category] = None
        groups: Dict[str, Dict] = {}
        for item in items:
            category = by_id.get(item.category_id) if item.category_id else None
            if category is None:
                if default is None:
                    default = await self.ensure_default_category(household_id)
                category = default
            group = groups.setdefault(category.id, {"category": category, "items": []})
            group["items"].append(item)

        # Category order, with the default bucket always last
        position = {c.id: i for i, c in enumerate(categories)}
        return sorted(groups.values(), key=lambda g: (g["category"].slug == DEFAULT_CATEGORY_SLUG,
                                                      position.get(g["category"].id, len(position))))


__all__ = ["CategoryService", "CATEGORY_SORT"]
