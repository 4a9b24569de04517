import asyncio

import pytest

from kitchen.domain.Catalog import Scope
from kitchen.utilities.constants import CATEGORIES
from kitchen.utilities.errors import InvalidNameError


@pytest.mark.asyncio
async def test_default_category_created_once(core):
    results = await asyncio.gather(*(core.ensure_default_category("h1") for _ in range(4)))
    assert len({c.id for c in results}) == 1
    otros = results[0]
    assert otros.name == "Otros"
    assert otros.slug == "otros"
    assert otros.color_bg == "#EEF2FF"
    assert otros.color_text == "#3730A3"
    assert otros.scope is Scope.HOUSEHOLD
    assert len(await core.store.find(CATEGORIES, {"slug": "otros"})) == 1


@pytest.mark.asyncio
async def test_default_category_in_master_scope(core):
    master = await core.ensure_default_category()
    assert master.is_master
    assert (await core.ensure_default_category()).id == master.id
    assert (await core.ensure_default_category("h1")).id != master.id


@pytest.mark.asyncio
async def test_create_category_deduplicates_by_slug_or_name(core):
    frutas, created = await core.create_category("h1", {"name": "Frutas"})
    assert created
    assert frutas.slug == "frutas"
    assert frutas.color_bg == "#eef2ff"

    again, created = await core.create_category("h1", {"name": " frutas "})
    assert not created and again.id == frutas.id
    accented, created = await core.create_category("h1", {"name": "Frutás"})
    assert not created and accented.id == frutas.id

    mine, created = await core.create_category("h2", {"name": "Frutas", "color_bg": "#fff"})
    assert created and mine.id != frutas.id
    assert mine.color_bg == "#fff"


@pytest.mark.asyncio
async def test_create_category_reuses_visible_master(core):
    master = await core.create_master("category", {"name": "Lácteos"})
    found, created = await core.create_category("h1", {"name": "lacteos"})
    assert not created
    assert found.id == master.id


@pytest.mark.asyncio
async def test_create_category_invalid_name(core):
    with pytest.raises(InvalidNameError):
        await core.create_category("h1", {"name": "!!!"})
