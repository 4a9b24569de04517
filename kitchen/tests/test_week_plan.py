import asyncio
from datetime import date

import pytest

from kitchen.api.core import KitchenCore
from kitchen.domain.WeekPlan import CookTiming, WeekPlan
from kitchen.infra.Document_Store import InMemoryDocumentStore
from kitchen.utilities.constants import WEEK_PLANS, WEEKPLAN_CREATED
from kitchen.utilities.errors import DayNotInWeekError, EntityNotFoundError, WeekPlanIndexConflictError

MONDAY = "2025-01-06"


class StaleReadStore(InMemoryDocumentStore):
    """Misses week plans on the first lookup, as a lagging replica would."""

    def __init__(self):
        super().__init__()
        self.misses = 1

    async def find_one(self, collection, filter=None, sort=None):
        if collection == WEEK_PLANS and self.misses:
            self.misses -= 1
            await asyncio.sleep(0)
            return None
        return await super().find_one(collection, filter, sort)


class BlindStore(InMemoryDocumentStore):
    """Never finds week plans although the unique index knows them."""

    async def find_one(self, collection, filter=None, sort=None):
        if collection == WEEK_PLANS:
            await asyncio.sleep(0)
            return None
        return await super().find_one(collection, filter, sort)


@pytest.mark.asyncio
async def test_new_plan_defaults(core, recorded):
    plan, created = await core.get_or_create_week_plan("2025-01-09", "h1")
    assert created
    assert plan.week_start == date(2025, 1, 6)
    assert [d.date for d in plan.days] == [date(2025, 1, 6 + i) for i in range(5)]
    assert all(d.cook_timing is CookTiming.PREVIOUS_DAY and d.servings == 4 for d in plan.days)
    assert [name for name, _ in recorded] == [WEEKPLAN_CREATED]

    again, created = await core.get_or_create_week_plan(MONDAY, "h1")
    assert not created
    assert again.id == plan.id


@pytest.mark.asyncio
async def test_concurrent_get_or_create_yields_one_plan(core):
    results = await asyncio.gather(*(core.get_or_create_week_plan("2025-01-08", "h1") for _ in range(5)))
    assert sum(1 for _, created in results if created) == 1
    assert len({plan.id for plan, _ in results}) == 1
    assert len(await core.store.find(WEEK_PLANS, {"household_id": "h1"})) == 1


@pytest.mark.asyncio
async def test_lost_race_reads_back_the_winner():
    store = StaleReadStore()
    existing = await store.create(WEEK_PLANS, WeekPlan.new(MONDAY, "h1").to_dict())
    core = KitchenCore(store)

    plan, created = await core.get_or_create_week_plan(MONDAY, "h1")
    assert not created
    assert plan.id == existing["_id"]


@pytest.mark.asyncio
async def test_unresolvable_conflict_raises():
    store = BlindStore()
    await store.create(WEEK_PLANS, WeekPlan.new(MONDAY, "h1").to_dict())
    core = KitchenCore(store)

    with pytest.raises(WeekPlanIndexConflictError) as exc:
        await core.get_or_create_week_plan(MONDAY, "h1")
    assert exc.value.code == "WEEK_PLAN_INDEX_CONFLICT"


@pytest.mark.asyncio
async def test_update_day(core):
    main = await core.create_dish("h1", {"name": "Paella"})
    side = await core.create_dish("h1", {"name": "Ensalada", "sidedish": True})

    plan = await core.update_day(MONDAY, "h1", "2025-01-07", {
        "main_dish_id": main.id, "side_dish_id": side.id, "servings": 0, "cook_timing": "same_day",
        "ingredient_overrides": [{"displayName": "Pan"}, "   "],
    }, acting_user_id="u1")
    day = plan.day_for(date(2025, 1, 7))
    assert day.main_dish_id == main.id and day.side_dish_id == side.id
    assert day.servings == 4
    assert day.cook_timing is CookTiming.SAME_DAY
    assert day.cook_user_id == "u1"
    assert [o.canonical_name for o in day.ingredient_overrides] == ["pan"]

    plan = await core.update_day(MONDAY, "h1", "2025-01-07", {"side_dish_id": None, "servings": 6})
    day = plan.day_for(date(2025, 1, 7))
    assert day.side_dish_id is None
    assert day.main_dish_id == main.id
    assert day.servings == 6

    plan = await core.update_day(MONDAY, "h1", "2025-01-07", {"servings": 0})
    assert plan.day_for(date(2025, 1, 7)).servings == 6


@pytest.mark.asyncio
async def test_update_day_validation(core):
    main = await core.create_dish("h1", {"name": "Paella"})
    side = await core.create_dish("h1", {"name": "Ensalada", "sidedish": True})
    foreign = await core.create_dish("h2", {"name": "Sushi"})

    with pytest.raises(EntityNotFoundError):
        await core.update_day(MONDAY, "h1", MONDAY, {"main_dish_id": side.id})
    with pytest.raises(EntityNotFoundError):
        await core.update_day(MONDAY, "h1", MONDAY, {"side_dish_id": main.id})
    with pytest.raises(EntityNotFoundError):
        await core.update_day(MONDAY, "h1", MONDAY, {"main_dish_id": foreign.id})
    with pytest.raises(DayNotInWeekError):
        await core.update_day(MONDAY, "h1", "2025-01-11", {"servings": 2})


@pytest.mark.asyncio
async def test_copy_week_keeps_target_dates(core):
    dish = await core.create_dish("h1", {"name": "Tortilla"})
    await core.update_day(MONDAY, "h1", "2025-01-08", {"main_dish_id": dish.id, "cook_user_id": "u2"})

    target = await core.copy_week("2025-01-13", MONDAY, "h1")
    assert target.week_start == date(2025, 1, 13)
    assert [d.date for d in target.days] == [date(2025, 1, 13 + i) for i in range(5)]
    wednesday = target.day_for(date(2025, 1, 15))
    assert wednesday.main_dish_id == dish.id and wednesday.cook_user_id == "u2"
    assert len(await core.store.find(WEEK_PLANS, {"household_id": "h1"})) == 2


@pytest.mark.asyncio
async def test_move_day(core):
    dish = await core.create_dish("h1", {"name": "Tortilla"})
    await core.update_day(MONDAY, "h1", MONDAY, {"main_dish_id": dish.id, "servings": 2,
                                                 "ingredient_overrides": ["cebolla"]})

    plan = await core.move_day(MONDAY, "h1", MONDAY, "2025-01-10")
    friday = plan.day_for(date(2025, 1, 10))
    monday = plan.day_for(date(2025, 1, 6))
    assert friday.main_dish_id == dish.id and friday.servings == 2
    assert [o.display_name for o in friday.ingredient_overrides] == ["cebolla"]
    assert monday.main_dish_id is None and monday.ingredient_overrides == []
    assert len(plan.days) == 5

    with pytest.raises(DayNotInWeekError):
        await core.move_day(MONDAY, "h1", MONDAY, "2025-01-13")
    with pytest.raises(DayNotInWeekError):
        await core.move_day(MONDAY, "h1", MONDAY, "2025-01-12")
