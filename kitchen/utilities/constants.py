from typing import Final

DATE_FORMAT: Final[str] = "%Y-%m-%d"

# Store collections
CATEGORIES: Final[str] = "categories"
INGREDIENTS: Final[str] = "ingredients"
DISHES: Final[str] = "dishes"
HIDDEN_MASTERS: Final[str] = "hidden_masters"
WEEK_PLANS: Final[str] = "week_plans"
SHOPPING_LISTS: Final[str] = "shopping_lists"
SWAPS: Final[str] = "swaps"

# Event names
CATALOG_MASTER_HIDDEN: Final[str] = "catalog.master_hidden"
CATALOG_MASTER_UNHIDDEN: Final[str] = "catalog.master_unhidden"
CATALOG_OVERRIDE_SAVED: Final[str] = "catalog.override_saved"
WEEKPLAN_CREATED: Final[str] = "weekplan.created"
SHOPPING_REBUILT: Final[str] = "shopping.rebuilt"
SHOPPING_INGREDIENT_UNRESOLVED: Final[str] = "shopping.ingredient_unresolved"
SWAP_REQUESTED: Final[str] = "swap.requested"
SWAP_ACCEPTED: Final[str] = "swap.accepted"
SWAP_REJECTED: Final[str] = "swap.rejected"

# Punctuation removed by the name normalizer
NAME_PUNCTUATION: Final[str] = ".,;:!¡¿?()[]{}\"'`´"
