import pytest

from propdesk.store import seed


@pytest.fixture
def store():
    """Fresh demo portfolio: one property, two units, one loan, two cost bookings."""
    return seed()


@pytest.fixture
def prop(store):
    return store.get("properties", "p1")
