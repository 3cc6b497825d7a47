from datetime import datetime

import pytest

from aquatrack.core.channels import ChannelTag
from aquatrack.core.models import Courier, Manager, Order, Store, Viewer
from aquatrack.core.status import CanonicalStatus
from aquatrack.integrations.memory_backend import InMemoryBackend, seed_demo_data
from aquatrack.security.roles import (
    SUPER_ADMIN,
    CHANNEL_ADMIN,
    DELIVERY_MANAGER,
    PARTNER,
    COURIER,
)


def make_order(order_id=1, status=CanonicalStatus.PENDING, **overrides):
    values = dict(
        id=order_id,
        bottles=10,
        status=status,
        raw_status=status.value.lower(),
        created_at=datetime(2026, 10, 1, 9, 0),
        store_id="S1",
        store_name="Store One",
        city="Bengaluru",
        channel=ChannelTag("BLINKIT"),
    )
    values.update(overrides)
    return Order(**values)


def make_store(store_id="S1", manager_id=None, **overrides):
    values = dict(
        id=store_id,
        name=f"Store {store_id}",
        city="Bengaluru",
        channel=ChannelTag("BLINKIT"),
        manager_id=manager_id,
        manager_name="Manager" if manager_id else "Unassigned",
    )
    values.update(overrides)
    return Store(**values)


def make_courier(courier_id=3, status="active", manager_id=7, name="Sanjay"):
    return Courier(id=courier_id, name=name, status=status, manager_id=manager_id)


def make_manager(manager_id=7, store_ids=(), name="Arjun"):
    return Manager(id=manager_id, name=name, store_ids=tuple(store_ids))


@pytest.fixture
def backend():
    return seed_demo_data(InMemoryBackend(), now=datetime(2026, 10, 18, 12, 0))


@pytest.fixture
def viewers():
    return {
        SUPER_ADMIN: Viewer(role=SUPER_ADMIN, user_id=1, name="Super Admin"),
        CHANNEL_ADMIN: Viewer(role=CHANNEL_ADMIN, user_id=31, channel=ChannelTag("BLINKIT"), name="Blinkit Ops"),
        DELIVERY_MANAGER: Viewer(role=DELIVERY_MANAGER, user_id=7, name="Arjun Rao"),
        PARTNER: Viewer(role=PARTNER, user_id=21, store_ids=("BLK-001",), name="Blinkit Indiranagar POC"),
        COURIER: Viewer(role=COURIER, user_id=3, name="Sanjay Patil"),
    }
