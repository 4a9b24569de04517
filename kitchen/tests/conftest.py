import pytest

from kitchen.api.core import KitchenCore
from kitchen.events.Event_Bus import ALL_EVENTS, EventBus
from kitchen.infra.Document_Store import InMemoryDocumentStore


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def core(bus):
    return KitchenCore(InMemoryDocumentStore(), bus)


@pytest.fixture
def recorded(bus):
    """Every event published on the test bus, as (name, payload) tuples."""
    events = []

    def record(event_name, payload):
        events.append((event_name, payload))

    for name in ALL_EVENTS:
        bus.subscribe(name, record)
    return events
