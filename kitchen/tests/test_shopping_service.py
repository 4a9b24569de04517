from datetime import date, timedelta

import pytest

from kitchen.domain.ShoppingList import ItemStatus
from kitchen.utilities.constants import SHOPPING_INGREDIENT_UNRESOLVED, SHOPPING_LISTS, SHOPPING_REBUILT
from kitchen.utilities.errors import EntityNotFoundError

from kitchen.utilities.dates import get_week_start

MONDAY = "2025-01-06"
TUESDAY = "2025-01-07"
WEDNESDAY = "2025-01-08"


async def _plan_week(core):
    dish = await core.create_dish("h1", {"name": "Arroz con pollo", "ingredients": ["arroz", "pollo", "cebolla"]})
    await core.update_day(MONDAY, "h1", MONDAY, {"main_dish_id": dish.id})
    await core.update_day(MONDAY, "h1", TUESDAY, {"ingredient_overrides": ["tomate"]})
    return dish


@pytest.mark.asyncio
async def test_rebuild_scenario_keeps_purchased_items(core):
    dish = await _plan_week(core)

    shopping = await core.rebuild_shopping_list(MONDAY, "h1")
    assert sorted(i.canonical_name for i in shopping.items) == ["arroz", "cebolla", "pollo", "tomate"]
    assert all(i.occurrences == 1 for i in shopping.items)
    assert all(i.status is ItemStatus.PENDING for i in shopping.items)

    await core.set_item_status(MONDAY, "h1", {"key": "arroz", "status": "purchased", "purchased_by": "u1"})
    paella = await core.create_dish("h1", {"name": "Paella", "ingredients": ["Arroz", "marisco"]})
    await core.update_day(MONDAY, "h1", WEDNESDAY, {"main_dish_id": paella.id})

    rebuilt = await core.rebuild_shopping_list(MONDAY, "h1")
    arroz = rebuilt.find_item("arroz")
    assert rebuilt.id == shopping.id
    assert arroz.status is ItemStatus.PURCHASED
    assert arroz.purchased_by == "u1"
    assert arroz.purchased_at is not None
    assert arroz.occurrences == 2
    assert arroz.from_dishes == [dish.id, paella.id]
    assert rebuilt.find_item("marisco").status is ItemStatus.PENDING


@pytest.mark.asyncio
async def test_rebuild_is_idempotent(core, recorded):
    await _plan_week(core)
    first = await core.rebuild_shopping_list(MONDAY, "h1")
    second = await core.rebuild_shopping_list(MONDAY, "h1")
    assert [i.model_dump() for i in second.items] == [i.model_dump() for i in first.items]
    assert len(await core.store.find(SHOPPING_LISTS, {"household_id": "h1"})) == 1
    assert [name for name, _ in recorded].count(SHOPPING_REBUILT) == 2


@pytest.mark.asyncio
async def test_rebuild_without_plan_is_empty(core):
    shopping = await core.rebuild_shopping_list("2025-03-05", "h1")
    assert shopping.items == []
    assert shopping.week_start == date(2025, 3, 3)


@pytest.mark.asyncio
async def test_unresolved_ingredients_are_reported(core, recorded, caplog):
    await core.create_master("ingredient", {"name": "Pollo"})
    await _plan_week(core)
    with caplog.at_level("WARNING"):
        shopping = await core.rebuild_shopping_list(MONDAY, "h1")

    assert shopping.find_item("pollo").ingredient_id is not None
    unresolved = [p for name, p in recorded if name == SHOPPING_INGREDIENT_UNRESOLVED]
    assert len(unresolved) == 1
    assert sorted(unresolved[0]["canonical_names"]) == ["arroz", "cebolla", "tomate"]
    assert "canonical_name='arroz'" in caplog.text


@pytest.mark.asyncio
async def test_purchase_survives_catalog_resolution(core):
    cat = await core.ensure_default_category("h1")
    ingredient, _ = await core.create_ingredient("h1", {"name": "Tomate", "category_id": cat.id})
    await _plan_week(core)
    await core.rebuild_shopping_list(MONDAY, "h1")

    await core.set_item_status(MONDAY, "h1", {"key": ingredient.id, "status": "purchased", "store_id": "s1"})
    rebuilt = await core.rebuild_shopping_list(MONDAY, "h1")
    tomate = rebuilt.find_item(ingredient.id)
    assert tomate.is_purchased
    assert tomate.store_id == "s1"
    assert tomate.category_id == cat.id


@pytest.mark.asyncio
async def test_purchase_survives_household_edit_of_shared_ingredient(core):
    arroz = await core.create_master("ingredient", {"name": "Arroz"})
    await _plan_week(core)
    await core.rebuild_shopping_list(MONDAY, "h1")
    await core.set_item_status(MONDAY, "h1", {"key": "arroz", "status": "purchased", "purchased_by": "u1"})

    _, created = await core.save_override("ingredient", "h1", arroz.id, {"name": "Arroz bomba", "category_id": "granos"})
    assert created

    rebuilt = await core.rebuild_shopping_list(MONDAY, "h1")
    item = rebuilt.find_item(arroz.id)
    assert item.status is ItemStatus.PURCHASED
    assert item.purchased_by == "u1"
    assert item.category_id == "granos"


@pytest.mark.asyncio
async def test_same_day_ingredient_under_two_keys_counts_once(core):
    arroz = await core.create_master("ingredient", {"name": "Arroz"})
    dish = await core.create_dish("h1", {"name": "Arroz blanco",
                                         "ingredients": [{"display_name": "Arroz", "ingredient_id": arroz.id}]})
    await core.update_day(MONDAY, "h1", MONDAY, {"main_dish_id": dish.id, "ingredient_overrides": ["arroz"]})
    await core.update_day(MONDAY, "h1", TUESDAY, {"ingredient_overrides": ["arroz"]})

    shopping = await core.rebuild_shopping_list(MONDAY, "h1")
    assert [(i.display_name, i.occurrences) for i in shopping.items] == [("Arroz", 2)]
    assert shopping.items[0].from_dishes == [dish.id]


@pytest.mark.asyncio
async def test_set_item_status(core):
    await _plan_week(core)
    await core.rebuild_shopping_list(MONDAY, "h1")

    shopping = await core.set_item_status(MONDAY, "h1", {"key": "Cebollas", "status": "purchased", "trip_id": "t1"})
    cebolla = shopping.find_item("cebolla")
    assert cebolla.is_purchased and cebolla.trip_id == "t1"

    shopping = await core.set_item_status(MONDAY, "h1", {"key": "cebolla", "status": "pending"})
    cebolla = shopping.find_item("cebolla")
    assert not cebolla.is_purchased
    assert cebolla.purchased_at is None and cebolla.trip_id is None

    with pytest.raises(EntityNotFoundError):
        await core.set_item_status(MONDAY, "h1", {"key": "papel", "status": "purchased"})

    shopping = await core.set_item_status(MONDAY, "h1", {"key": "papel", "status": "purchased",
                                                          "display_name": "Papel de cocina"})
    assert shopping.find_item("papel de cocina").is_purchased


@pytest.mark.asyncio
async def test_dish_edit_rebuilds_future_lists(core):
    week = get_week_start(date.today() + timedelta(days=7))
    dish = await core.create_dish("h1", {"name": "Crema", "ingredients": ["calabaza"]})
    await core.update_day(week, "h1", week, {"main_dish_id": dish.id})
    await core.rebuild_shopping_list(week, "h1")

    await core.update_dish("h1", dish.id, ingredients=["calabaza", "puerro"])
    shopping = await core.ensure_shopping_list(week, "h1")
    assert shopping.find_item("puerro") is not None


@pytest.mark.asyncio
async def test_master_dish_edit_goes_through_override(core):
    week = get_week_start(date.today() + timedelta(days=7))
    master = await core.create_master("dish", {"name": "Lentejas", "ingredients": ["lentejas"]})
    await core.update_day(week, "h1", week, {"main_dish_id": master.id})

    edited = await core.update_dish("h1", master.id, ingredients=["lentejas", "chorizo"])
    assert edited.is_override and edited.master_id == master.id
    assert (await core.scopes.get_master("dish", master.id)).ingredients[0].display_name == "lentejas"
    assert len((await core.scopes.get_master("dish", master.id)).ingredients) == 1

    shopping = await core.ensure_shopping_list(week, "h1")
    assert shopping.find_item("chorizo") is not None
    assert shopping.find_item("chorizo").from_dishes == [master.id]


@pytest.mark.asyncio
async def test_past_weeks_are_not_rebuilt(core):
    dish = await core.create_dish("h1", {"name": "Crema", "ingredients": ["calabaza"]})
    await core.update_day(MONDAY, "h1", MONDAY, {"main_dish_id": dish.id})
    await core.rebuild_shopping_list(MONDAY, "h1")

    rebuilt = await core.shopping.rebuild_future_lists("h1", dish.id, today=date(2025, 2, 1))
    assert rebuilt == []
    rebuilt = await core.shopping.rebuild_future_lists("h1", dish.id, today=date(2025, 1, 8))
    assert len(rebuilt) == 1


@pytest.mark.asyncio
async def test_repair_lists(core):
    await _plan_week(core)
    await core.rebuild_shopping_list(MONDAY, "h1")
    cat = await core.ensure_default_category("h1")
    await core.create_ingredient("h1", {"name": "Tomate", "category_id": cat.id})

    summary = await core.repair_shopping_lists()
    assert summary == {"scanned_lists": 1, "fixed_lists": 1, "fixed_items": 1}
    assert (await core.ensure_shopping_list(MONDAY, "h1")).find_item("tomate").category_id == cat.id
    assert await core.repair_shopping_lists("h1") == {"scanned_lists": 1, "fixed_lists": 0, "fixed_items": 0}
    assert await core.repair_shopping_lists("h2") == {"scanned_lists": 0, "fixed_lists": 0, "fixed_items": 0}


@pytest.mark.asyncio
async def test_categorized_view_falls_back_to_default(core):
    verduras, _ = await core.create_category("h1", {"name": "Verduras"})
    await core.create_ingredient("h1", {"name": "Cebolla", "category_id": verduras.id})
    await _plan_week(core)
    await core.rebuild_shopping_list(MONDAY, "h1")

    groups = await core.categorized_shopping_list(MONDAY, "h1")
    assert [g["category"].name for g in groups] == ["Verduras", "Otros"]
    assert [i.canonical_name for i in groups[0]["items"]] == ["cebolla"]
    assert sorted(i.canonical_name for i in groups[1]["items"]) == ["arroz", "pollo", "tomate"]

    again = await core.categorized_shopping_list(MONDAY, "h1")
    assert [g["category"].name for g in again] == ["Verduras", "Otros"]
    assert again[1]["category"].id == groups[1]["category"].id
