"""Recent-activity observer for kitchen events.

Subscribes to every kitchen event on a bus and keeps a lightweight in-memory
ring buffer that a calling layer can poll to show recent changes (plans
created, lists rebuilt, masters hidden) without re-reading the store.

Design:
  * Each event is stored with an auto-increment integer id (cursor) so clients
    can request only newer events (since=<last_id_seen>).
  * A Lock guards the buffer; the buffer is per process.
  * MAX_EVENTS caps memory use.
"""
from __future__ import annotations
import logging
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, List, Optional

from kitchen.utilities.config import MAX_EVENTS
from .Event_Bus import ALL_EVENTS, EventBus, GLOBAL_EVENT_BUS

logger = logging.getLogger(__name__)

_lock = Lock()
_events: List[Dict[str, Any]] = []
_next_id = 1
_started_on: List[EventBus] = []


def _record(event_name: str, payload: Any):  # signature expected by EventBus
    global _next_id
    with _lock:
        evt = {
            'id': _next_id,
            'type': event_name,
            'ts': datetime.now(timezone.utc).isoformat(),
        }
        if isinstance(payload, dict):
            for k, v in payload.items():
                evt.setdefault(k, v)
        _events.append(evt)
        _next_id += 1
        if len(_events) > MAX_EVENTS:
            del _events[: len(_events) - MAX_EVENTS]


def start(bus: Optional[EventBus] = None):
    """Idempotent start: subscribe the recorder once per bus."""
    bus = bus if bus is not None else GLOBAL_EVENT_BUS
    if any(b is bus for b in _started_on):
        return
    for name in ALL_EVENTS:
        bus.subscribe(name, _record)
    _started_on.append(bus)
    logger.debug("Activity log subscribed to %d events", len(ALL_EVENTS))


def get_events(since: Optional[int] = None) -> Dict[str, Any]:
    """Return events newer than 'since' (exclusive).

    If since is None, returns the last N (up to MAX_EVENTS) events.
    Response includes next_cursor (largest id) so client can poll with since=next_cursor.
    """
    with _lock:
        if since is None:
            data = list(_events)
        else:
            data = [e for e in _events if e['id'] > since]
        next_cursor = _events[-1]['id'] if _events else since or 0
    return {'events': data, 'next_cursor': next_cursor}


def clear():
    with _lock:
        _events.clear()


__all__ = ['start', 'get_events', 'clear']
