import unittest

from kitchen.domain.Catalog import IngredientRef, normalize_ingredient_list
from kitchen.logic.catalog.normalize import normalize_category_key, normalize_name, slugify


class TestNormalizeName(unittest.TestCase):
    def test_basic_cleanup(self):
        self.assertEqual(normalize_name("  Pollo  "), "pollo")
        self.assertEqual(normalize_name("¡Cebolla!"), "cebolla")
        self.assertEqual(normalize_name("Pimiento   rojo"), "pimiento rojo")

    def test_accents_are_stripped(self):
        self.assertEqual(normalize_name("Plátano"), "platano")
        self.assertEqual(normalize_name("Jamón"), "jamon")

    def test_empty_input(self):
        self.assertEqual(normalize_name(""), "")
        self.assertEqual(normalize_name("   "), "")
        self.assertEqual(normalize_name(None), "")

    def test_plural_collapse(self):
        self.assertEqual(normalize_name("Tomates"), normalize_name("tomates"))
        self.assertEqual(normalize_name("Tomates"), "tomat")
        self.assertEqual(normalize_name("Patatas"), normalize_name("patata"))
        self.assertTrue(normalize_name("Luces").endswith("luz"))

    def test_short_words_untouched(self):
        self.assertEqual(normalize_name("Ajo"), "ajo")
        self.assertEqual(normalize_name("gas"), "gas")

    def test_idempotent(self):
        samples = [
            "Tomates", "Luces", "Patatas", "clases", "Garbanzos cocidos", "pan s", "ÑOQUIS",
            "(Queso)", "  ", "Espinacas frescas!!", "abcss", "Nueces", "a b c", "Crème brûlée",
        ]
        for raw in samples:
            once = normalize_name(raw)
            self.assertEqual(normalize_name(once), once, raw)


class TestSlugify(unittest.TestCase):
    def test_slug(self):
        self.assertEqual(slugify("Frutas y Verduras!"), "frutas-y-verduras")
        self.assertEqual(slugify("  Lácteos  "), "lacteos")
        self.assertEqual(slugify("--Carne -- y  pescado--"), "carne-y-pescado")

    def test_slug_is_ascii(self):
        slug = slugify("Smørrebrød y Ñoquis")
        self.assertTrue(slug.isascii(), slug)
        self.assertEqual(slug, "smrrebrd-y-noquis")
        self.assertEqual(slugify("Łódź"), "odz")

    def test_slug_of_nothing_usable(self):
        self.assertEqual(slugify("!!!"), "")
        self.assertEqual(slugify(""), "")

    def test_category_key(self):
        self.assertEqual(normalize_category_key("  Lácteos & Huevos "), "lacteos huevos")
        self.assertEqual(normalize_category_key("Frutás"), normalize_category_key("frutas"))


class TestIngredientListNormalization(unittest.TestCase):
    def test_mixed_entries(self):
        refs = normalize_ingredient_list([
            "Arroz",
            {"displayName": "Pollo", "ingredientId": "ing-1"},
            {"name": "Cebollas"},
            {"display_name": "   "},
            None,
            "!!",
        ])
        self.assertEqual([r.display_name for r in refs], ["Arroz", "Pollo", "Cebollas"])
        self.assertEqual(refs[1].ingredient_id, "ing-1")
        self.assertEqual(refs[2].canonical_name, "cebolla")

    def test_merge_key(self):
        self.assertEqual(IngredientRef(display_name="Ajo").merge_key, "ajo")
        self.assertEqual(IngredientRef(display_name="Ajo", ingredient_id="x1").merge_key, "x1")

    def test_unusable_ref_rejected(self):
        with self.assertRaises(ValueError):
            IngredientRef(display_name="  ")
