"""Event helper utilities.

Helper functions that publish kitchen events on a bus with a consistent
payload shape. Services receive the bus they publish on (GLOBAL_EVENT_BUS by
default) so tests can observe events in isolation.

Quick import:
    from kitchen.events.event_helpers import (
        publish_master_hidden, publish_override_saved, publish_shopping_rebuilt
    )
"""
from __future__ import annotations
from typing import Any, Iterable, Optional

from .Event_Bus import (
    EventBus, GLOBAL_EVENT_BUS,
    CATALOG_MASTER_HIDDEN, CATALOG_MASTER_UNHIDDEN, CATALOG_OVERRIDE_SAVED,
    WEEKPLAN_CREATED, SHOPPING_REBUILT, SHOPPING_INGREDIENT_UNRESOLVED,
    SWAP_REQUESTED, SWAP_ACCEPTED, SWAP_REJECTED,
)

__all__ = [
    'publish_master_hidden', 'publish_master_unhidden', 'publish_override_saved',
    'publish_week_plan_created', 'publish_shopping_rebuilt', 'publish_ingredient_unresolved',
    'publish_swap_requested', 'publish_swap_accepted', 'publish_swap_rejected',
]


def _bus(bus: Optional[EventBus]) -> EventBus:
    return bus if bus is not None else GLOBAL_EVENT_BUS


def _kind(kind: Any) -> str:
    return getattr(kind, 'value', kind)


def publish_master_hidden(household_id: str, kind: Any, master_id: str, bus: Optional[EventBus] = None):
    _bus(bus).publish(CATALOG_MASTER_HIDDEN, {
        'household_id': household_id,
        'type': _kind(kind),
        'master_id': master_id,
    })


def publish_master_unhidden(household_id: str, kind: Any, master_id: str, bus: Optional[EventBus] = None):
    _bus(bus).publish(CATALOG_MASTER_UNHIDDEN, {
        'household_id': household_id,
        'type': _kind(kind),
        'master_id': master_id,
    })


def publish_override_saved(household_id: str, kind: Any, master_id: str, entity_id: str, created: bool,
                           bus: Optional[EventBus] = None):
    """Publish a catalog.override_saved event (created=True on first edit of the master)."""
    _bus(bus).publish(CATALOG_OVERRIDE_SAVED, {
        'household_id': household_id,
        'type': _kind(kind),
        'master_id': master_id,
        'entity_id': entity_id,
        'created': created,
    })


def publish_week_plan_created(household_id: str, week_start: str, plan_id: str, bus: Optional[EventBus] = None):
    _bus(bus).publish(WEEKPLAN_CREATED, {
        'household_id': household_id,
        'week_start': week_start,
        'plan_id': plan_id,
    })


def publish_shopping_rebuilt(household_id: str, week_start: str, list_id: str, items: int,
                             bus: Optional[EventBus] = None):
    _bus(bus).publish(SHOPPING_REBUILT, {
        'household_id': household_id,
        'week_start': week_start,
        'list_id': list_id,
        'items': items,
    })


def publish_ingredient_unresolved(household_id: str, week_start: str, canonical_names: Iterable[str],
                                  bus: Optional[EventBus] = None):
    """Publish the canonical names a rebuild could not match to a catalog ingredient.

    Payload structure:
        {'household_id': ..., 'week_start': 'YYYY-MM-DD', 'canonical_names': [...]}
    """
    names = list(canonical_names)
    _bus(bus).publish(SHOPPING_INGREDIENT_UNRESOLVED, {
        'household_id': household_id,
        'week_start': week_start,
        'canonical_names': names,
    })


def publish_swap_requested(household_id: str, swap_id: str, from_user_id: str, to_user_id: str,
                           bus: Optional[EventBus] = None):
    _bus(bus).publish(SWAP_REQUESTED, {
        'household_id': household_id,
        'swap_id': swap_id,
        'from_user_id': from_user_id,
        'to_user_id': to_user_id,
    })


def publish_swap_accepted(household_id: str, swap_id: str, actor_user_id: Optional[str], forced: bool,
                          applied: bool, bus: Optional[EventBus] = None):
    """applied is False when the week had no plan or one of the days was missing."""
    _bus(bus).publish(SWAP_ACCEPTED, {
        'household_id': household_id,
        'swap_id': swap_id,
        'actor_user_id': actor_user_id,
        'forced': forced,
        'applied': applied,
    })


def publish_swap_rejected(household_id: str, swap_id: str, actor_user_id: Optional[str],
                          bus: Optional[EventBus] = None):
    _bus(bus).publish(SWAP_REJECTED, {
        'household_id': household_id,
        'swap_id': swap_id,
        'actor_user_id': actor_user_id,
    })
