"""Cook swaps: one member asks another to exchange the cooks of two days of a
week. Accepting (or forcing) the swap exchanges ``cook_user_id`` between the
two days of the household's plan."""
import logging
from typing import List, Optional

from kitchen.domain.Swap import KitchenSwap, SwapStatus
from kitchen.events.Event_Bus import EventBus, GLOBAL_EVENT_BUS
from kitchen.events.event_helpers import publish_swap_accepted, publish_swap_rejected, publish_swap_requested
from kitchen.infra.Document_Store import DocumentStore
from kitchen.logic.planning.week_plan import WeekPlanGateway
from kitchen.utilities.constants import SWAPS
from kitchen.utilities.dates import get_week_start
from kitchen.utilities.errors import (
    DayNotInWeekError, EntityNotFoundError, SwapAlreadyResolvedError, SwapForbiddenError, require_household
)
from kitchen.utilities.validators import SwapRequestInput

logger = logging.getLogger(__name__)


class SwapService:
    def __init__(self, store: DocumentStore, week_plans: WeekPlanGateway, bus: Optional[EventBus] = None):
        self.store = store
        self.week_plans = week_plans
        self.bus = bus if bus is not None else GLOBAL_EVENT_BUS

    async def request_swap(self, household_id: str, from_user_id: str, data: SwapRequestInput) -> KitchenSwap:
        household_id = require_household(household_id)
        monday = get_week_start(data.week_start)
        if get_week_start(data.from_date) != monday or get_week_start(data.to_date) != monday:
            raise DayNotInWeekError(f"Both swap days must belong to week {monday.isoformat()}")

        swap = KitchenSwap(
            household_id=household_id,
            week_start=monday,
            from_user_id=from_user_id,
            to_user_id=data.to_user_id,
            from_date=data.from_date,
            to_date=data.to_date,
        )
        doc = await self.store.create(SWAPS, swap.to_dict())
        swap = KitchenSwap.from_dict(doc)
        logger.info("Swap %s requested by %s for week %s", swap.id, from_user_id, monday.isoformat())
        publish_swap_requested(household_id, swap.id, from_user_id, swap.to_user_id, bus=self.bus)
        return swap

    async def list_swaps(self, household_id: str, user_id: Optional[str] = None) -> List[KitchenSwap]:
        '''Newest first. With a user id, only swaps that user asked for or was asked.'''
        query = {"household_id": require_household(household_id)}
        if user_id:
            query["$or"] = [{"from_user_id": user_id}, {"to_user_id": user_id}]
        docs = await self.store.find(SWAPS, query, sort=[("created_at", -1)])
        return [KitchenSwap.from_dict(doc) for doc in docs]

    async def get_swap(self, household_id: str, swap_id: str) -> KitchenSwap:
        doc = await self.store.find_one(SWAPS, {"_id": swap_id, "household_id": require_household(household_id)})
        if doc is None:
            raise EntityNotFoundError(f"Swap {swap_id} not found")
        return KitchenSwap.from_dict(doc)

    async def _pending_for(self, household_id: str, swap_id: str, acting_user_id: Optional[str],
                           is_admin: bool) -> KitchenSwap:
        swap = await self.get_swap(household_id, swap_id)
        if not swap.is_pending:
            raise SwapAlreadyResolvedError(f"Swap {swap_id} is already {swap.status.value}")
        if not is_admin and acting_user_id != swap.to_user_id:
            raise SwapForbiddenError(f"Only the requested member can answer swap {swap_id}")
        return swap

    async def _apply(self, swap: KitchenSwap) -> bool:
        """Exchange the cooks of the two days. False when there is nothing to swap."""
        plan = await self.week_plans.find(swap.week_start, swap.household_id)
        if plan is None:
            logger.warning("Swap %s accepted but week %s has no plan", swap.id, swap.week_start.isoformat())
            return False
        from_day = plan.day_for(swap.from_date)
        to_day = plan.day_for(swap.to_date)
        if from_day is None or to_day is None:
            logger.warning("Swap %s accepted but its days are not in the plan", swap.id)
            return False

        from_day.cook_user_id, to_day.cook_user_id = to_day.cook_user_id, from_day.cook_user_id
        await self.week_plans.save(plan)
        logger.info("Applied swap %s on week %s", swap.id, swap.week_start.isoformat())
        return True

    async def _accept(self, swap: KitchenSwap, acting_user_id: Optional[str], forced: bool) -> KitchenSwap:
        swap.resolve(SwapStatus.ACCEPTED)
        swap = KitchenSwap.from_dict(await self.store.save(SWAPS, swap.to_dict()))
        applied = await self._apply(swap)
        publish_swap_accepted(swap.household_id, swap.id, acting_user_id, forced, applied, bus=self.bus)
        return swap

    async def accept_swap(self, household_id: str, swap_id: str, acting_user_id: Optional[str],
                          is_admin: bool = False) -> KitchenSwap:
        swap = await self._pending_for(household_id, swap_id, acting_user_id, is_admin)
        return await self._accept(swap, acting_user_id, forced=False)

    async def reject_swap(self, household_id: str, swap_id: str, acting_user_id: Optional[str],
                          is_admin: bool = False) -> KitchenSwap:
        swap = await self._pending_for(household_id, swap_id, acting_user_id, is_admin)
        swap.resolve(SwapStatus.REJECTED)
        swap = KitchenSwap.from_dict(await self.store.save(SWAPS, swap.to_dict()))
        logger.info("Swap %s rejected by %s", swap.id, acting_user_id)
        publish_swap_rejected(swap.household_id, swap.id, acting_user_id, bus=self.bus)
        return swap

    async def force_swap(self, household_id: str, swap_id: str, acting_user_id: Optional[str] = None) -> KitchenSwap:
        """Accept and apply a swap whatever its status. Callers restrict this to admins."""
        swap = await self.get_swap(household_id, swap_id)
        return await self._accept(swap, acting_user_id, forced=True)


__all__ = ["SwapService"]
