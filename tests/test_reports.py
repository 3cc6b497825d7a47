from datetime import date, datetime

from aquatrack.core.reports import (
    ReportFilter,
    daily_summary,
    delivery_exceptions,
    delivery_totals,
    exceptions_frame,
    filter_orders,
    store_summary,
)
from aquatrack.core.status import CanonicalStatus as S

from conftest import make_order


ORDERS = [
    make_order(1, S.DELIVERED, bottles=40, created_at=datetime(2026, 10, 1, 9), has_courier_report=True,
               bottles_delivered=40, empty_bottles_collected=30, confirmed_bottles=40, confirmed_empty_bottles=30),
    make_order(2, S.DELIVERED, bottles=25, created_at=datetime(2026, 10, 1, 15), has_courier_report=True,
               bottles_delivered=25, empty_bottles_collected=20, confirmed_bottles=24, confirmed_empty_bottles=20,
               confirmation_remarks="One cracked"),
    make_order(3, S.PENDING, bottles=10, created_at=datetime(2026, 10, 5, 9), store_id="S2",
               store_name="Store Two", channel="ZEPTO", city="Pune"),
]


def test_filter_by_date_range_and_channel():
    in_range = filter_orders(ORDERS, ReportFilter(start=date(2026, 10, 2), end=date(2026, 10, 31)))
    assert [o.id for o in in_range] == [3]
    assert [o.id for o in filter_orders(ORDERS, ReportFilter(channel="blinkit"))] == [1, 2]
    assert [o.id for o in filter_orders(ORDERS, ReportFilter(city="Pune"))] == [3]
    assert len(filter_orders(ORDERS)) == 3


def test_delivery_totals_use_confirmed_counts():
    assert delivery_totals(ORDERS) == {"total_deliveries": 2, "total_cans": 64}


def test_store_summary():
    df = store_summary(ORDERS).set_index("store_id")
    assert df.loc["S1", "orders"] == 2
    assert df.loc["S1", "bottles_delivered"] == 64
    assert df.loc["S2", "delivered_orders"] == 0


def test_store_confirmed_zero_is_not_replaced_by_courier_count():
    all_broken = make_order(4, S.DELIVERED, bottles=20, has_courier_report=True,
                            bottles_delivered=20, confirmed_bottles=0, confirmation_remarks="All cracked")
    assert delivery_totals([all_broken]) == {"total_deliveries": 1, "total_cans": 0}
    assert store_summary([all_broken]).iloc[0]["bottles_delivered"] == 0

    # Legacy delivered record with no counts at all falls back to the ordered quantity
    legacy = make_order(5, S.DELIVERED, bottles=12)
    assert delivery_totals([legacy])["total_cans"] == 12


def test_daily_summary_newest_first():
    df = daily_summary(ORDERS)
    assert list(df["date"]) == [date(2026, 10, 5), date(2026, 10, 1)]
    assert list(df["orders"]) == [1, 2]


def test_empty_summaries_keep_columns():
    assert list(store_summary([]).columns)[0] == "store_id"
    assert daily_summary([]).empty


def test_exceptions_are_confirmed_mismatches():
    assert [o.id for o in delivery_exceptions(ORDERS)] == [2]
    frame = exceptions_frame(ORDERS)
    assert frame.iloc[0]["remarks"] == "One cracked"
    assert frame.iloc[0]["confirmed_delivered"] == 24
