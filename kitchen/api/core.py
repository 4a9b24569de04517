"""KitchenCore: the single entry point a calling layer (HTTP, CLI, jobs) uses.

It wires one document store and one event bus into the catalog, planning and
shopping services. Callers hand it already authenticated household ids and
parsed values; every operation is async.

    core = KitchenCore.from_file()
    plan, created = await core.get_or_create_week_plan("2025-01-08", household_id)
    shopping = await core.rebuild_shopping_list(plan.week_start, household_id)
"""
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from kitchen.domain.Catalog import CatalogEntity, Category, Dish, Ingredient
from kitchen.domain.ShoppingList import ShoppingList
from kitchen.domain.Swap import KitchenSwap
from kitchen.domain.WeekPlan import WeekPlan
from kitchen.events.Event_Bus import EventBus, GLOBAL_EVENT_BUS
from kitchen.infra.Document_Store import DocumentStore, InMemoryDocumentStore, JsonDocumentStore
from kitchen.logic.catalog import normalize
from kitchen.logic.catalog.categories import CategoryService
from kitchen.logic.catalog.dishes import DishService
from kitchen.logic.catalog.ingredients import IngredientMatcher, MatchResult
from kitchen.logic.catalog.scopes import ScopeResolver
from kitchen.logic.planning.swaps import SwapService
from kitchen.logic.planning.week_plan import WeekPlanGateway
from kitchen.logic.shopping.service import ShoppingAggregator
from kitchen.utilities.config import DATA_FILE, INGREDIENT_SEARCH_LIMIT
from kitchen.utilities.validators import (
    CategoryInput, DayUpdateInput, DishInput, IngredientInput, ItemStatusInput, SwapRequestInput,
)

logger = logging.getLogger(__name__)


class KitchenCore:
    def __init__(self, store: Optional[DocumentStore] = None, bus: Optional[EventBus] = None):
        self.store = store if store is not None else InMemoryDocumentStore()
        self.bus = bus if bus is not None else GLOBAL_EVENT_BUS
        self.scopes = ScopeResolver(self.store, self.bus)
        self.categories = CategoryService(self.scopes)
        self.ingredients = IngredientMatcher(self.scopes)
        self.shopping = ShoppingAggregator(self.store, self.scopes, self.ingredients, self.categories, self.bus)
        self.dishes = DishService(self.scopes, shopping=self.shopping)
        self.week_plans = WeekPlanGateway(self.store, self.scopes, self.bus)
        self.swaps = SwapService(self.store, self.week_plans, self.bus)

    @classmethod
    def from_file(cls, path: Union[str, Path] = DATA_FILE, bus: Optional[EventBus] = None) -> "KitchenCore":
        logger.info("Using JSON document store at %s", path)
        return cls(JsonDocumentStore(path), bus)

    # -------------------- Names --------------------
    @staticmethod
    def normalize_name(raw: str) -> str:
        return normalize.normalize_name(raw)

    @staticmethod
    def slugify(raw: str) -> str:
        return normalize.slugify(raw)

    # -------------------- Catalog --------------------
    async def resolve_catalog(self, kind, household_id: str, filters: Optional[Mapping[str, Any]] = None,
                              sort=None) -> List[CatalogEntity]:
        return await self.scopes.resolve_catalog(kind, household_id, filters, sort)

    async def hide_master(self, household_id: str, kind, master_id: str) -> None:
        await self.scopes.hide_master(household_id, kind, master_id)

    async def unhide_master(self, household_id: str, kind, master_id: str) -> None:
        await self.scopes.unhide_master(household_id, kind, master_id)

    async def create_master(self, kind, data: Mapping[str, Any]) -> CatalogEntity:
        return await self.scopes.create_master(kind, data)

    async def save_override(self, kind, household_id: str, master_id: str,
                            changes: Mapping[str, Any]) -> Tuple[CatalogEntity, bool]:
        return await self.scopes.save_override(kind, household_id, master_id, changes)

    async def remove_from_household(self, kind, household_id: str, entity_id: str) -> str:
        return await self.scopes.remove_from_household(kind, household_id, entity_id)

    async def find_visible(self, kind, household_id: str, entity_id: str) -> Optional[CatalogEntity]:
        return await self.scopes.find_visible(kind, household_id, entity_id)

    async def ensure_default_category(self, household_id: Optional[str] = None) -> Category:
        return await self.categories.ensure_default_category(household_id)

    async def create_category(self, household_id: str, data: Union[CategoryInput, Mapping[str, Any]]) -> Tuple[Category, bool]:
        if not isinstance(data, CategoryInput):
            data = CategoryInput(**data)
        return await self.categories.create_category(household_id, data)

    async def resolve_ingredients(self, items: Sequence[Any], household_id: str) -> MatchResult:
        return await self.ingredients.resolve(items, household_id)

    async def search_ingredients(self, household_id: str, query: str = "", include_inactive: bool = False,
                                 limit: Optional[int] = INGREDIENT_SEARCH_LIMIT) -> List[Ingredient]:
        return await self.ingredients.search(household_id, query, include_inactive, limit)

    async def create_ingredient(self, household_id: str,
                                data: Union[IngredientInput, Mapping[str, Any]]) -> Tuple[Ingredient, bool]:
        if not isinstance(data, IngredientInput):
            data = IngredientInput(**data)
        return await self.ingredients.create_ingredient(household_id, data)

    async def update_ingredient(self, household_id: str, ingredient_id: str,
                                data: Union[IngredientInput, Mapping[str, Any]]) -> Ingredient:
        if not isinstance(data, IngredientInput):
            data = IngredientInput(**data)
        return await self.ingredients.update_ingredient(household_id, ingredient_id, data)

    async def create_dish(self, household_id: str, data: Union[DishInput, Mapping[str, Any]],
                          created_by: Optional[str] = None) -> Dish:
        if not isinstance(data, DishInput):
            data = DishInput(**data)
        return await self.dishes.create_dish(household_id, data, created_by)

    async def update_dish(self, household_id: str, dish_id: str, name: Optional[str] = None,
                          ingredients: Optional[Iterable[Any]] = None, sidedish: Optional[bool] = None) -> Dish:
        return await self.dishes.update_dish(household_id, dish_id, name, ingredients, sidedish)

    # -------------------- Week plans --------------------
    async def get_or_create_week_plan(self, week_start, household_id: str) -> Tuple[WeekPlan, bool]:
        return await self.week_plans.get_or_create(week_start, household_id)

    async def find_week_plan(self, week_start, household_id: str) -> Optional[WeekPlan]:
        return await self.week_plans.find(week_start, household_id)

    async def update_day(self, week_start, household_id: str, day_date,
                         changes: Union[DayUpdateInput, Mapping[str, Any]],
                         acting_user_id: Optional[str] = None) -> WeekPlan:
        if not isinstance(changes, DayUpdateInput):
            changes = DayUpdateInput(**changes)
        return await self.week_plans.update_day(week_start, household_id, day_date, changes, acting_user_id)

    async def copy_week(self, target_week_start, source_week_start, household_id: str) -> WeekPlan:
        return await self.week_plans.copy_week(target_week_start, source_week_start, household_id)

    async def move_day(self, week_start, household_id: str, source_date, target_date) -> WeekPlan:
        return await self.week_plans.move_day(week_start, household_id, source_date, target_date)

    # -------------------- Cook swaps --------------------
    async def request_swap(self, household_id: str, from_user_id: str,
                           data: Union[SwapRequestInput, Mapping[str, Any]]) -> KitchenSwap:
        if not isinstance(data, SwapRequestInput):
            data = SwapRequestInput(**data)
        return await self.swaps.request_swap(household_id, from_user_id, data)

    async def list_swaps(self, household_id: str, user_id: Optional[str] = None) -> List[KitchenSwap]:
        return await self.swaps.list_swaps(household_id, user_id)

    async def accept_swap(self, household_id: str, swap_id: str, acting_user_id: Optional[str],
                          is_admin: bool = False) -> KitchenSwap:
        return await self.swaps.accept_swap(household_id, swap_id, acting_user_id, is_admin)

    async def reject_swap(self, household_id: str, swap_id: str, acting_user_id: Optional[str],
                          is_admin: bool = False) -> KitchenSwap:
        return await self.swaps.reject_swap(household_id, swap_id, acting_user_id, is_admin)

    async def force_swap(self, household_id: str, swap_id: str, acting_user_id: Optional[str] = None) -> KitchenSwap:
        return await self.swaps.force_swap(household_id, swap_id, acting_user_id)

    # -------------------- Shopping --------------------
    async def ensure_shopping_list(self, week_start, household_id: str) -> ShoppingList:
        return await self.shopping.ensure_list(week_start, household_id)

    async def rebuild_shopping_list(self, week_start, household_id: str) -> ShoppingList:
        return await self.shopping.rebuild(week_start, household_id)

    async def set_item_status(self, week_start, household_id: str,
                              change: Union[ItemStatusInput, Mapping[str, Any]]) -> ShoppingList:
        if not isinstance(change, ItemStatusInput):
            change = ItemStatusInput(**change)
        return await self.shopping.set_item_status(
            week_start, household_id, change.key, change.status,
            purchased_by=change.purchased_by, store_id=change.store_id,
            trip_id=change.trip_id, display_name=change.display_name,
        )

    async def categorized_shopping_list(self, week_start, household_id: str) -> List[Dict[str, Any]]:
        return await self.shopping.categorized(week_start, household_id)

    async def repair_shopping_lists(self, household_id: Optional[str] = None) -> Dict[str, int]:
        return await self.shopping.repair_lists(household_id)


__all__ = ["KitchenCore"]
