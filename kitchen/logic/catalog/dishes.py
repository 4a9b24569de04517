"""Dish catalog: household dishes, edits of shared dishes through overrides,
and the shopping list refresh that follows a dish edit."""
import logging
from typing import Any, Dict, Iterable, List, Optional

from kitchen.domain.Catalog import CatalogKind, Dish, normalize_ingredient_list
from kitchen.logic.catalog.scopes import NOT_ARCHIVED, ScopeResolver
from kitchen.utilities.errors import EntityNotFoundError, require_household
from kitchen.utilities.validators import DishInput

logger = logging.getLogger(__name__)


class DishService:
    def __init__(self, resolver: ScopeResolver, shopping=None):
        self.resolver = resolver
        self.store = resolver.store
        # ShoppingAggregator; None skips the list refresh after edits
        self.shopping = shopping

    async def list_dishes(self, household_id: str, sidedish: Optional[bool] = None) -> List[Dish]:
        if sidedish is None:
            filters = {}
        elif sidedish:
            filters = {"sidedish": True}
        else:
            filters = {"sidedish": {"$ne": True}}
        return await self.resolver.resolve_catalog(CatalogKind.DISH, household_id, filters)

    async def create_dish(self, household_id: str, data: DishInput, created_by: Optional[str] = None) -> Dish:
        dish = await self.resolver.create_custom(CatalogKind.DISH, household_id, {
            "name": data.name,
            "ingredients": [ref.model_dump() for ref in data.ingredients],
            "sidedish": data.sidedish,
            "created_by": created_by,
        })
        return dish

    async def update_dish(self, household_id: str, dish_id: str, name: Optional[str] = None,
                          ingredients: Optional[Iterable[Any]] = None, sidedish: Optional[bool] = None) -> Dish:
        """Edit a dish as seen by one household.

        Only the given fields change. A shared (master) dish is never modified:
        the household gets or updates its own override instead. Future shopping
        lists that use the dish are rebuilt afterwards.
        """
        household_id = require_household(household_id)
        changes: Dict[str, Any] = {}
        if name and name.strip():
            changes["name"] = name.strip()
        if ingredients is not None:
            changes["ingredients"] = [ref.model_dump() for ref in normalize_ingredient_list(ingredients)]
        if sidedish is not None:
            changes["sidedish"] = bool(sidedish)

        doc = await self.store.find_one(CatalogKind.DISH.collection, {"_id": dish_id, "is_archived": NOT_ARCHIVED})
        if doc is None:
            raise EntityNotFoundError(f"Dish {dish_id} not found")
        dish = Dish.from_dict(doc)

        if dish.is_master:
            updated, _ = await self.resolver.save_override(CatalogKind.DISH, household_id, dish.id, changes)
        else:
            if dish.household_id != household_id:
                raise EntityNotFoundError(f"Dish {dish_id} not found")
            updated = await self.resolver.save_entity(Dish(**{**dish.model_dump(), **changes}))
            logger.info("Updated dish %s for household %s", updated.id, household_id)

        if self.shopping is not None:
            await self.shopping.rebuild_future_lists(household_id, {updated.id, updated.identity})
        return updated

    async def delete_dish(self, household_id: str, dish_id: str) -> str:
        return await self.resolver.remove_from_household(CatalogKind.DISH, household_id, dish_id)


__all__ = ["DishService"]
