from datetime import datetime

from aquatrack.core.order_builder import (
    UNKNOWN_COURIER,
    UNKNOWN_MANAGER,
    build,
    build_orders,
    build_store,
    coerce_int,
    index_by_id,
    parse_timestamp,
)
from aquatrack.core.models import Manager, Partner, UNASSIGNED, UNKNOWN_CITY, UNKNOWN_PARTNER, UNKNOWN_STORE
from aquatrack.core.status import CanonicalStatus


STORES = index_by_id([
    build_store({"id": "BLK-001", "store_name": "Blinkit Indiranagar", "city": "Bengaluru",
                 "channel": "blinkit", "assigned_manager_id": 7,
                 "assigned_manager": {"id": 7, "full_name": "Arjun Rao"}}),
    build_store({"id": "ZPT-014", "store_name": "Zepto HSR", "city": "Bengaluru", "channel": "ZEPTO"}),
])
PARTNERS = {21: Partner(id=21, name="Blinkit POC")}
MANAGERS = {8: Manager(id=8, name="Meera Nair")}


def test_coerce_int():
    assert coerce_int("20") == 20
    assert coerce_int("12.0") == 12
    assert coerce_int(7.9) == 7
    assert coerce_int(None) == 0
    assert coerce_int("twenty") == 0
    assert coerce_int(True) == 0
    assert coerce_int(float("nan")) == 0


def test_parse_timestamp_handles_z_suffix():
    assert parse_timestamp("2026-10-01T09:30:00Z") == datetime(2026, 10, 1, 9, 30)
    assert parse_timestamp("not a date") is None
    assert parse_timestamp(None) is None


def test_order_joined_with_store_and_inherited_manager():
    order = build(
        {"id": "101", "store_id": "BLK-001", "partner_id": 21, "order_details": "40",
         "status": "accepted", "created_at": "2026-10-01T09:00:00"},
        STORES, PARTNERS, MANAGERS,
    )
    assert order.id == 101
    assert order.bottles == 40
    assert order.status == CanonicalStatus.ACCEPTED
    assert order.store_name == "Blinkit Indiranagar"
    assert order.channel == "BLINKIT"
    assert order.manager_id == 7
    assert order.manager_name == "Arjun Rao"
    assert order.partner_name == "Blinkit POC"
    assert order.courier_name == UNASSIGNED


def test_missing_references_become_sentinels():
    order = build(
        {"id": 5, "store_id": "GONE", "partner_id": 99, "assigned_manager_id": 42,
         "delivery_person_id": 13, "order_details": "abc", "status": "weird"},
        STORES, PARTNERS, MANAGERS,
    )
    assert order.store_name == UNKNOWN_STORE
    assert order.city == UNKNOWN_CITY
    assert order.channel == "GENERAL"
    assert order.partner_name == UNKNOWN_PARTNER
    assert order.manager_name == UNKNOWN_MANAGER
    assert order.courier_name == UNKNOWN_COURIER
    assert order.bottles == 0
    assert order.status == CanonicalStatus.UNKNOWN
    assert not order.store_known


def test_unmanaged_store_leaves_manager_unassigned():
    order = build({"id": 6, "store_id": "ZPT-014", "status": "pending"}, STORES, PARTNERS, MANAGERS)
    assert order.manager_id is None
    assert order.manager_name == UNASSIGNED


def test_order_manager_reference_wins_over_store():
    order = build(
        {"id": 7, "store_id": "BLK-001", "assigned_manager_id": 8, "status": "assigned_to_manager"},
        STORES, PARTNERS, MANAGERS,
    )
    assert order.manager_id == 8
    assert order.manager_name == "Meera Nair"


def test_courier_report_detected():
    reported = build(
        {"id": 8, "store_id": "BLK-001", "status": "delivered_pending_confirmation",
         "bottles_delivered": "30", "empty_bottles_collected": 28},
        STORES, PARTNERS, MANAGERS,
    )
    assert reported.has_courier_report
    assert reported.bottles_delivered == 30
    assert reported.empty_bottles_collected == 28

    fresh = build({"id": 9, "store_id": "BLK-001", "status": "assigned_to_courier"}, STORES, PARTNERS, MANAGERS)
    assert not fresh.has_courier_report


def test_build_orders_newest_first_and_skips_junk():
    orders = build_orders(
        [
            {"id": 1, "created_at": "2026-09-01T00:00:00", "status": "pending"},
            "junk",
            {"id": 2, "created_at": "2026-10-01T00:00:00", "status": "pending"},
            {"id": 3, "status": "pending"},
        ],
        STORES, PARTNERS, MANAGERS,
    )
    assert [o.id for o in orders] == [2, 1, 3]


def test_build_orders_accepts_none():
    assert build_orders(None, STORES, PARTNERS, MANAGERS) == []


def test_store_empty_counts_default_to_record():
    store = build_store({"id": "X", "store_name": "X", "empty_bottles_count": "4"}, {"Y": 9})
    assert store.empty_bottles == 4
    store = build_store({"id": "X", "store_name": "X"}, {"X": 11})
    assert store.empty_bottles == 11
