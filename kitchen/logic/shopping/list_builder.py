"""Shopping list builder.

Pure helpers that turn a week plan's day assignments into consolidated
shopping items. No I/O here: the async service in
kitchen.logic.shopping.service loads the plan and dishes and persists the
result.
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from kitchen.domain.Catalog import Dish, IngredientRef
from kitchen.domain.ShoppingList import ShoppingItem
from kitchen.domain.WeekPlan import WeekDay


def merge_ingredient_lists(*lists: Optional[Iterable[Any]]) -> List[IngredientRef]:
    """Concatenate ingredient lists keeping the first entry per merge key.

    Entries may be refs, dicts or strings; unusable entries are dropped.
    """
    merged: Dict[str, IngredientRef] = {}
    for items in lists:
        for item in items or []:
            ref = IngredientRef.from_loose(item)
            if ref is None:
                continue
            merged.setdefault(ref.merge_key, ref)
    return list(merged.values())


def combine_day_ingredients(main_dish: Optional[Dish], side_dish: Optional[Dish],
                            overrides: Optional[Iterable[Any]] = None) -> List[IngredientRef]:
    '''Main dish, then side dish, then the day's overrides (first per key wins).'''
    base = []
    for dish in (main_dish, side_dish):
        if dish is not None:
            base.extend(dish.ingredients)
    return merge_ingredient_lists(base, overrides)


def index_dishes(dishes: Iterable[Dish]) -> Dict[str, Dish]:
    '''Dishes by id; overrides are also reachable through the master id they replace.'''
    lookup: Dict[str, Dish] = {}
    for dish in dishes:
        lookup[dish.id] = dish
        if dish.master_id:
            lookup.setdefault(dish.master_id, dish)
    return lookup


def _union(target: List[str], values: Iterable[str]):
    for value in values:
        if value not in target:
            target.append(value)


def aggregate_days(days: Sequence[WeekDay], dishes: Mapping[str, Dish]) -> List[ShoppingItem]:
    """Merge every day's ingredients across the week.

    Each item counts the days it appears in (occurrences) and collects the
    dish ids assigned on those days. The first display name seen wins.
    Dish ids that are not in ``dishes`` contribute nothing.
    """
    merged: Dict[str, ShoppingItem] = {}
    for index, day in enumerate(days):
        main = dishes.get(day.main_dish_id) if day.main_dish_id else None
        side = dishes.get(day.side_dish_id) if day.side_dish_id else None
        day_dish_ids = day.dish_ids()
        for ref in combine_day_ingredients(main, side, day.ingredient_overrides):
            item = merged.get(ref.merge_key)
            if item is None:
                item = ShoppingItem(
                    ingredient_id=ref.ingredient_id,
                    display_name=ref.display_name,
                    canonical_name=ref.canonical_name,
                )
                merged[ref.merge_key] = item
            item.add_day(index)
            _union(item.from_dishes, day_dish_ids)
    return list(merged.values())


def collapse_by_key(items: Iterable[ShoppingItem]) -> List[ShoppingItem]:
    """Fold items sharing a merge key into the first one.

    Dishes are unioned. Items built by aggregate_days count each plan day
    once, so a day that listed the same ingredient under two keys (an id on
    the dish, a bare name in the overrides) still counts one occurrence.
    """
    collapsed: Dict[str, ShoppingItem] = {}
    for item in items:
        current = collapsed.get(item.merge_key)
        if current is None:
            collapsed[item.merge_key] = item.model_copy(deep=True)
            continue
        current.absorb(item)
    return list(collapsed.values())


def preserve_status(items: Iterable[ShoppingItem], previous: Iterable[ShoppingItem]) -> List[ShoppingItem]:
    """Carry purchase state from the previous list onto freshly built items.

    An item whose merge key was purchased stays purchased with its
    purchase metadata; everything else is pending with that metadata cleared.
    """
    previous_by_key: Dict[str, ShoppingItem] = {}
    for item in previous:
        previous_by_key.setdefault(item.merge_key, item)

    result = []
    for item in items:
        fresh = item.model_copy(deep=True)
        before = previous_by_key.get(fresh.merge_key)
        if before is not None and before.is_purchased:
            fresh.mark_purchased(before.purchased_by, before.purchased_at, before.store_id, before.trip_id)
        else:
            fresh.mark_pending()
        result.append(fresh)
    return result


__all__ = [
    "merge_ingredient_lists", "combine_day_ingredients", "index_dishes", "aggregate_days",
    "collapse_by_key", "preserve_status",
]
