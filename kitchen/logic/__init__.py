"""Core business logic layer.

Subpackages:
- catalog: name normalization, scope resolution, categories, ingredients, dishes
- planning: week plans
- shopping: building and maintaining shopping lists
"""
__all__ = ["catalog", "planning", "shopping"]
