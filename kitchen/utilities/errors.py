"""Error taxonomy of the kitchen core.

Every error carries a stable ``code`` so the calling layer can map it to a
response (validation -> 400, forbidden -> 403, not found -> 404,
conflict -> 409) without matching on messages.
"""


class KitchenError(Exception):
    code = "KITCHEN_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidNameError(KitchenError, ValueError):
    """No usable name remains after normalization."""
    code = "INVALID_NAME"


class HouseholdRequiredError(KitchenError, ValueError):
    code = "HOUSEHOLD_REQUIRED"


class DayNotInWeekError(KitchenError, ValueError):
    code = "DAY_NOT_IN_WEEK"


class EntityNotFoundError(KitchenError, LookupError):
    """Referenced entity is missing or not visible to the household."""
    code = "NOT_FOUND"


class WeekPlanIndexConflictError(KitchenError):
    """Creation hit the (household, week) unique index but no plan could be read back."""
    code = "WEEK_PLAN_INDEX_CONFLICT"


class SwapAlreadyResolvedError(KitchenError, ValueError):
    """The swap was already accepted or rejected."""
    code = "SWAP_ALREADY_RESOLVED"


class SwapForbiddenError(KitchenError, PermissionError):
    code = "FORBIDDEN"


class DuplicateKeyError(KitchenError):
    code = "DUPLICATE_KEY"

    def __init__(self, collection: str, fields, values):
        super().__init__(f"Duplicate key in '{collection}' on {tuple(fields)}: {tuple(values)}")
        self.collection = collection
        self.fields = tuple(fields)
        self.values = tuple(values)


def require_household(household_id) -> str:
    """Return the household id as a string or raise HouseholdRequiredError."""
    if not household_id:
        raise HouseholdRequiredError("An effective household id is required.")
    return str(household_id)


__all__ = [
    "KitchenError", "InvalidNameError", "HouseholdRequiredError", "DayNotInWeekError",
    "EntityNotFoundError", "WeekPlanIndexConflictError", "SwapAlreadyResolvedError", "SwapForbiddenError",
    "DuplicateKeyError", "require_household",
]
