"""WeekPlanGateway: race-safe get-or-create of a household's week plan and
the day-level edits made on it."""
import logging
from typing import Optional, Tuple

from kitchen.domain.Catalog import CatalogKind
from kitchen.domain.WeekPlan import WeekDay, WeekPlan
from kitchen.events.Event_Bus import EventBus, GLOBAL_EVENT_BUS
from kitchen.events.event_helpers import publish_week_plan_created
from kitchen.infra.Document_Store import DocumentStore
from kitchen.logic.catalog.scopes import ScopeResolver
from kitchen.utilities.config import WEEK_PLAN_CREATE_ATTEMPTS
from kitchen.utilities.constants import WEEK_PLANS
from kitchen.utilities.dates import format_date_iso, get_week_start, to_date
from kitchen.utilities.errors import (
    DayNotInWeekError, DuplicateKeyError, EntityNotFoundError, WeekPlanIndexConflictError, require_household
)
from kitchen.utilities.validators import DayUpdateInput

logger = logging.getLogger(__name__)


class WeekPlanGateway:
    def __init__(self, store: DocumentStore, resolver: ScopeResolver, bus: Optional[EventBus] = None,
                 attempts: int = WEEK_PLAN_CREATE_ATTEMPTS):
        self.store = store
        self.resolver = resolver
        self.bus = bus if bus is not None else GLOBAL_EVENT_BUS
        self.attempts = max(1, attempts)

    async def find(self, week_start, household_id: str) -> Optional[WeekPlan]:
        household_id = require_household(household_id)
        doc = await self.store.find_one(WEEK_PLANS, {
            "household_id": household_id,
            "week_start": format_date_iso(get_week_start(week_start)),
        })
        return WeekPlan.from_dict(doc) if doc else None

    async def _try_create(self, plan: WeekPlan) -> Optional[WeekPlan]:
        '''The persisted plan, or None when another caller created it first.'''
        try:
            doc = await self.store.create(WEEK_PLANS, plan.to_dict())
        except DuplicateKeyError:
            logger.warning("Week plan %s for household %s already created by a concurrent call",
                           plan.week_start.isoformat(), plan.household_id)
            return None
        return WeekPlan.from_dict(doc)

    async def get_or_create(self, week_start, household_id: str) -> Tuple[WeekPlan, bool]:
        """Return (plan, created) for the household's week.

        Concurrent callers end with exactly one stored plan; only the caller
        whose insert succeeded sees created=True.
        """
        household_id = require_household(household_id)
        monday = get_week_start(week_start)

        for _ in range(self.attempts):
            existing = await self.find(monday, household_id)
            if existing is not None:
                return existing, False
            created = await self._try_create(WeekPlan.new(monday, household_id))
            if created is not None:
                logger.info("Created week plan %s for household %s", monday.isoformat(), household_id)
                publish_week_plan_created(household_id, monday.isoformat(), created.id, bus=self.bus)
                return created, True

        existing = await self.find(monday, household_id)
        if existing is not None:
            return existing, False
        raise WeekPlanIndexConflictError(
            f"Week plan {monday.isoformat()} for household {household_id} conflicts with the unique index "
            "but could not be read back"
        )

    async def save(self, plan: WeekPlan) -> WeekPlan:
        doc = await self.store.save(WEEK_PLANS, plan.to_dict())
        return WeekPlan.from_dict(doc)

    async def _check_dish(self, household_id: str, dish_id: str, sidedish: bool):
        dish = await self.resolver.find_visible(CatalogKind.DISH, household_id, dish_id)
        if dish is None or bool(dish.sidedish) != sidedish:
            what = "Side dish" if sidedish else "Main dish"
            raise EntityNotFoundError(f"{what} {dish_id} does not belong to household {household_id}")

    async def update_day(self, week_start, household_id: str, day_date, changes: DayUpdateInput,
                         acting_user_id: Optional[str] = None) -> WeekPlan:
        """Apply the fields set on ``changes`` to one day of the week.

        An explicit None clears a field; zero or missing servings leave the
        current value. When a main dish is assigned to a day with no cook and
        no cook is given, ``acting_user_id`` becomes the cook.
        """
        plan, _ = await self.get_or_create(week_start, household_id)
        day = plan.day_for(to_date(day_date))
        if day is None:
            raise DayNotInWeekError(f"{day_date} is not a day of week {plan.week_start.isoformat()}")

        fields = changes.model_fields_set
        if changes.main_dish_id:
            await self._check_dish(plan.household_id, changes.main_dish_id, sidedish=False)
        if changes.side_dish_id:
            await self._check_dish(plan.household_id, changes.side_dish_id, sidedish=True)

        if "cook_user_id" in fields:
            day.cook_user_id = changes.cook_user_id
        elif changes.main_dish_id and not day.cook_user_id and acting_user_id:
            day.cook_user_id = acting_user_id
        if changes.cook_timing is not None:
            day.cook_timing = changes.cook_timing
        if changes.servings:
            day.servings = changes.servings
        if "main_dish_id" in fields:
            day.main_dish_id = changes.main_dish_id
        if "side_dish_id" in fields:
            day.side_dish_id = changes.side_dish_id
        if changes.ingredient_overrides is not None:
            day.ingredient_overrides = changes.ingredient_overrides

        saved = await self.save(plan)
        logger.info("Updated day %s of week %s for household %s", day.date.isoformat(),
                    plan.week_start.isoformat(), plan.household_id)
        return saved

    async def copy_week(self, target_week_start, source_week_start, household_id: str) -> WeekPlan:
        '''Copy every day assignment of the source week onto the target week (dates stay the target's).'''
        source, _ = await self.get_or_create(source_week_start, household_id)
        target, _ = await self.get_or_create(target_week_start, household_id)
        for target_day, source_day in zip(target.days, source.days):
            target_day.assign_from(source_day)
        saved = await self.save(target)
        logger.info("Copied week %s onto %s for household %s", source.week_start.isoformat(),
                    target.week_start.isoformat(), target.household_id)
        return saved

    async def move_day(self, week_start, household_id: str, source_date, target_date) -> WeekPlan:
        monday = get_week_start(week_start)
        source_date, target_date = to_date(source_date), to_date(target_date)
        if get_week_start(source_date) != monday or get_week_start(target_date) != monday:
            raise DayNotInWeekError("Days can only be moved within the same week")

        plan, _ = await self.get_or_create(monday, household_id)
        source_day: Optional[WeekDay] = plan.day_for(source_date)
        target_day: Optional[WeekDay] = plan.day_for(target_date)
        if source_day is None or target_day is None:
            raise DayNotInWeekError(f"{source_date} or {target_date} is not a day of week {monday.isoformat()}")

        target_day.assign_from(source_day)
        if source_day is not target_day:
            source_day.clear_assignment()
        return await self.save(plan)


__all__ = ["WeekPlanGateway"]
