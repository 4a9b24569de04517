import unittest
from datetime import date

from pydantic import ValidationError

from kitchen.domain.Catalog import Category, Dish, Scope
from kitchen.domain.ShoppingList import ShoppingItem, ShoppingList
from kitchen.domain.WeekPlan import WeekPlan
from kitchen.utilities.dates import get_week_dates, get_week_start, parse_iso_date


class TestDates(unittest.TestCase):
    def test_week_start_is_monday(self):
        self.assertEqual(get_week_start("2025-01-12"), date(2025, 1, 6))
        self.assertEqual(get_week_start(date(2025, 1, 6)), date(2025, 1, 6))
        self.assertEqual(len(get_week_dates("2025-01-08")), 5)

    def test_parse(self):
        self.assertIsNone(parse_iso_date("not-a-date"))
        self.assertEqual(parse_iso_date("2025-01-06T10:00:00Z"), date(2025, 1, 6))


class TestDocuments(unittest.TestCase):
    def test_week_plan_document_shape(self):
        plan = WeekPlan.new("2025-01-10", "h1")
        doc = plan.to_dict()
        self.assertIn("_id", doc)
        self.assertEqual(doc["week_start"], "2025-01-06")
        self.assertEqual(doc["days"][0]["date"], "2025-01-06")
        self.assertEqual(doc["days"][0]["cook_timing"], "previous_day")
        self.assertEqual(WeekPlan.from_dict(doc).days, plan.days)

    def test_category_slug_and_dish_ingredients(self):
        category = Category(name="Frutas y Verduras", scope=Scope.MASTER)
        self.assertEqual(category.slug, "frutas-y-verduras")
        with self.assertRaises(ValidationError):
            Category(name="???", scope=Scope.MASTER)

        dish = Dish(name="Gazpacho", scope=Scope.MASTER, ingredients=["Tomates", {"name": ""}, "Pepino"])
        self.assertEqual([i.display_name for i in dish.ingredients], ["Tomates", "Pepino"])

    def test_shopping_list_lookup(self):
        shopping = ShoppingList(household_id="h1", week_start="2025-01-07", items=[
            ShoppingItem(display_name="Arroz", ingredient_id="i1"),
            ShoppingItem(display_name="Patatas"),
        ])
        self.assertEqual(shopping.week_start, date(2025, 1, 6))
        self.assertEqual(shopping.find_item("i1").display_name, "Arroz")
        self.assertEqual(shopping.find_item("arroz").display_name, "Arroz")
        self.assertEqual(shopping.find_item("patata").display_name, "Patatas")
        self.assertIsNone(shopping.find_item("ajo"))
