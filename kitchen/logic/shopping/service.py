"""ShoppingAggregator: derive, persist and maintain household shopping lists."""
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Union

from kitchen.domain.Catalog import CatalogKind
from kitchen.domain.ShoppingList import ItemStatus, ShoppingItem, ShoppingList
from kitchen.domain.WeekPlan import WeekPlan
from kitchen.events.Event_Bus import EventBus, GLOBAL_EVENT_BUS
from kitchen.events.event_helpers import publish_ingredient_unresolved, publish_shopping_rebuilt
from kitchen.infra.Document_Store import DocumentStore
from kitchen.logic.catalog.categories import CategoryService
from kitchen.logic.catalog.ingredients import IngredientMatcher
from kitchen.logic.catalog.normalize import normalize_name
from kitchen.logic.catalog.scopes import ScopeResolver
from kitchen.logic.shopping.list_builder import aggregate_days, collapse_by_key, index_dishes, preserve_status
from kitchen.utilities.constants import SHOPPING_LISTS, WEEK_PLANS
from kitchen.utilities.dates import format_date_iso, get_week_start
from kitchen.utilities.errors import DuplicateKeyError, EntityNotFoundError, require_household

logger = logging.getLogger(__name__)


class ShoppingAggregator:
    def __init__(self, store: DocumentStore, resolver: ScopeResolver, matcher: IngredientMatcher,
                 categories: CategoryService, bus: Optional[EventBus] = None):
        self.store = store
        self.resolver = resolver
        self.matcher = matcher
        self.categories = categories
        self.bus = bus if bus is not None else GLOBAL_EVENT_BUS

    @staticmethod
    def _key(week_start, household_id: str) -> Dict[str, str]:
        return {"household_id": household_id, "week_start": format_date_iso(get_week_start(week_start))}

    async def get_list(self, week_start, household_id: str) -> Optional[ShoppingList]:
        household_id = require_household(household_id)
        doc = await self.store.find_one(SHOPPING_LISTS, self._key(week_start, household_id))
        return ShoppingList.from_dict(doc) if doc else None

    async def ensure_list(self, week_start, household_id: str) -> ShoppingList:
        '''Get-or-create the week's list (empty on creation).'''
        household_id = require_household(household_id)
        key = self._key(week_start, household_id)
        doc = await self.store.find_one(SHOPPING_LISTS, key)
        if doc:
            return ShoppingList.from_dict(doc)
        shopping_list = ShoppingList(household_id=household_id, week_start=get_week_start(week_start))
        try:
            doc = await self.store.create(SHOPPING_LISTS, shopping_list.to_dict())
        except DuplicateKeyError:
            logger.debug("Shopping list %s created concurrently for household %s", key["week_start"], household_id)
            doc = await self.store.find_one(SHOPPING_LISTS, key)
            if doc is None:
                raise
        return ShoppingList.from_dict(doc)

    async def build_items(self, week_start, household_id: str) -> List[ShoppingItem]:
        """Aggregate the week's plan into resolved shopping items (statuses not applied).

        A week without a plan yields no items.
        """
        key = self._key(week_start, household_id)
        plan_doc = await self.store.find_one(WEEK_PLANS, key)
        if plan_doc is None:
            return []
        plan = WeekPlan.from_dict(plan_doc)
        dishes = index_dishes(await self.resolver.resolve_catalog(CatalogKind.DISH, household_id))
        aggregated = aggregate_days(plan.days, dishes)
        match = await self.matcher.resolve(aggregated, household_id)
        if match.unresolved:
            for canonical in match.unresolved:
                logger.warning("ingredient_id unresolved for canonical_name=%r household=%s",
                               canonical, household_id)
            publish_ingredient_unresolved(household_id, key["week_start"], match.unresolved, bus=self.bus)
        return collapse_by_key(match.items)

    async def rebuild(self, week_start, household_id: str) -> ShoppingList:
        """Regenerate the week's list from its plan, keeping purchase state by merge key."""
        household_id = require_household(household_id)
        shopping_list = await self.ensure_list(week_start, household_id)
        items = await self.build_items(week_start, household_id)
        shopping_list.items = preserve_status(items, shopping_list.items)
        doc = await self.store.save(SHOPPING_LISTS, shopping_list.to_dict())
        rebuilt = ShoppingList.from_dict(doc)
        logger.info("Rebuilt shopping list %s (%s) for household %s: %d items",
                    rebuilt.id, rebuilt.week_start.isoformat(), household_id, len(rebuilt.items))
        publish_shopping_rebuilt(household_id, rebuilt.week_start.isoformat(), rebuilt.id, len(rebuilt.items),
                                 bus=self.bus)
        return rebuilt

    async def set_item_status(self, week_start, household_id: str, key: str, status: Union[ItemStatus, str],
                              purchased_by: Optional[str] = None, store_id: Optional[str] = None,
                              trip_id: Optional[str] = None, display_name: Optional[str] = None) -> ShoppingList:
        """Mark one item purchased or pending.

        ``key`` is the item's merge key (ingredient id or canonical name). When
        nothing matches and ``display_name`` is given, a manual item is added.
        """
        status = ItemStatus(status)
        shopping_list = await self.ensure_list(week_start, household_id)
        item = shopping_list.find_item(key) or shopping_list.find_item(normalize_name(key))
        if item is None:
            if not display_name:
                raise EntityNotFoundError(f"Shopping item {key!r} not found")
            item = ShoppingItem(display_name=display_name, canonical_name=normalize_name(display_name))
            shopping_list.items.append(item)
            logger.info("Added manual item %r to shopping list %s", display_name, shopping_list.id)

        if status is ItemStatus.PURCHASED:
            item.mark_purchased(purchased_by, store_id=store_id, trip_id=trip_id)
        else:
            item.mark_pending()
        doc = await self.store.save(SHOPPING_LISTS, shopping_list.to_dict())
        return ShoppingList.from_dict(doc)

    async def rebuild_future_lists(self, household_id: str, dish_id: Union[str, Iterable[str]],
                                   today: Optional[date] = None) -> List[ShoppingList]:
        '''Rebuild the lists of this and later weeks whose plan uses the dish.'''
        household_id = require_household(household_id)
        ids = [dish_id] if isinstance(dish_id, str) else [d for d in dish_id if d]
        if not ids:
            return []
        current = format_date_iso(get_week_start(today or date.today()))
        plans = await self.store.find(WEEK_PLANS, {
            "household_id": household_id,
            "week_start": {"$gte": current},
            "$or": [{"days.main_dish_id": {"$in": ids}}, {"days.side_dish_id": {"$in": ids}}],
        }, sort=[("week_start", 1)])
        rebuilt = []
        for plan in plans:
            rebuilt.append(await self.rebuild(plan["week_start"], household_id))
        if rebuilt:
            logger.info("Rebuilt %d future shopping lists after dish change %s", len(rebuilt), ids)
        return rebuilt

    async def repair_lists(self, household_id: Optional[str] = None) -> Dict[str, int]:
        """Re-run ingredient matching over persisted lists and save the ones that change."""
        query = {"household_id": household_id} if household_id else {}
        docs = await self.store.find(SHOPPING_LISTS, query, sort=[("updated_at", -1)])
        fixed_lists = 0
        fixed_items = 0
        for doc in docs:
            shopping_list = ShoppingList.from_dict(doc)
            before = shopping_list.items
            match = await self.matcher.resolve(before, shopping_list.household_id)
            if not match.changed:
                continue
            fixed_items += sum(
                1 for prev, item in zip(before, match.items)
                if (prev.ingredient_id or "") != (item.ingredient_id or "")
                or (prev.category_id or "") != (item.category_id or "")
            )
            shopping_list.items = list(match.items)
            await self.store.save(SHOPPING_LISTS, shopping_list.to_dict())
            fixed_lists += 1
        summary = {"scanned_lists": len(docs), "fixed_lists": fixed_lists, "fixed_items": fixed_items}
        logger.info("Shopping list repair: %s", summary)
        return summary

    async def categorized(self, week_start, household_id: str) -> List[Dict[str, Any]]:
        '''The week's list grouped by category; uncategorized items use the default category.'''
        shopping_list = await self.ensure_list(week_start, household_id)
        return await self.categories.group_items(shopping_list.household_id, shopping_list.items)


__all__ = ["ShoppingAggregator"]
