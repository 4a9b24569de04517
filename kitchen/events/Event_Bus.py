"""In-process event bus for kitchen state changes.

Event names and payloads:
  catalog.master_hidden -> payload {"household_id", "type", "master_id"}
  catalog.master_unhidden -> payload {"household_id", "type", "master_id"}
  catalog.override_saved -> payload {"household_id", "type", "master_id", "entity_id", "created"}
  weekplan.created -> payload {"household_id", "week_start", "plan_id"}
  shopping.rebuilt -> payload {"household_id", "week_start", "list_id", "items"}
  shopping.ingredient_unresolved -> payload {"household_id", "week_start", "canonical_names"}
  swap.requested -> payload {"household_id", "swap_id", "from_user_id", "to_user_id"}
  swap.accepted -> payload {"household_id", "swap_id", "actor_user_id", "forced", "applied"}
  swap.rejected -> payload {"household_id", "swap_id", "actor_user_id"}

Subscribers are callables taking (event_name, payload).
"""
from __future__ import annotations
import logging
from collections import defaultdict
from typing import Callable, Any, Dict, List

from kitchen.utilities.constants import (
	CATALOG_MASTER_HIDDEN, CATALOG_MASTER_UNHIDDEN, CATALOG_OVERRIDE_SAVED,
	WEEKPLAN_CREATED, SHOPPING_REBUILT, SHOPPING_INGREDIENT_UNRESOLVED,
	SWAP_REQUESTED, SWAP_ACCEPTED, SWAP_REJECTED,
)

logger = logging.getLogger(__name__)

Subscriber = Callable[[str, Any], None]

ALL_EVENTS = (
	CATALOG_MASTER_HIDDEN, CATALOG_MASTER_UNHIDDEN, CATALOG_OVERRIDE_SAVED,
	WEEKPLAN_CREATED, SHOPPING_REBUILT, SHOPPING_INGREDIENT_UNRESOLVED,
	SWAP_REQUESTED, SWAP_ACCEPTED, SWAP_REJECTED,
)


class EventBus:
	"""Synchronous fan-out: publish() calls every subscriber of the event in
	subscription order, on the caller's thread, before returning."""

	def __init__(self):
		self._listeners: Dict[str, List[Subscriber]] = defaultdict(list)

	def subscribe(self, event_name: str, callback: Subscriber):
		listeners = self._listeners[event_name]
		if callback not in listeners:
			listeners.append(callback)

	def unsubscribe(self, event_name: str, callback: Subscriber):
		listeners = self._listeners.get(event_name)
		if listeners and callback in listeners:
			listeners.remove(callback)

	def subscribers(self, event_name: str) -> List[Subscriber]:
		return list(self._listeners.get(event_name, ()))

	def publish(self, event_name: str, payload: Any = None):
		# the state change already happened; a failing listener is logged only
		for callback in self.subscribers(event_name):
			try:
				callback(event_name, payload)
			except Exception:
				logger.exception("Subscriber %r failed on %s", callback, event_name)


# Shared bus for callers that do not wire their own
GLOBAL_EVENT_BUS = EventBus()


__all__ = [
	'EventBus', 'GLOBAL_EVENT_BUS', 'ALL_EVENTS', 'Subscriber',
	'CATALOG_MASTER_HIDDEN', 'CATALOG_MASTER_UNHIDDEN', 'CATALOG_OVERRIDE_SAVED',
	'WEEKPLAN_CREATED', 'SHOPPING_REBUILT', 'SHOPPING_INGREDIENT_UNRESOLVED',
	'SWAP_REQUESTED', 'SWAP_ACCEPTED', 'SWAP_REJECTED',
]
