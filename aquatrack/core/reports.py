"""
DELIVERY REPORTS

Purpose:
- Filter orders by date range, channel, store and city
- Store summary, daily summary
- Exceptions: delivered orders whose store-confirmed counts differ
  from the courier report

Requirements:
• Built from the same Order view models as the dashboards
• pandas frames, ready for st.dataframe / CSV export
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

import pandas as pd

from aquatrack.core.models import Order
from aquatrack.core.status import CanonicalStatus


STORE_SUMMARY_COLUMNS = [
    "store_id", "store", "city", "channel",
    "orders", "bottles_ordered", "delivered_orders", "bottles_delivered", "empty_bottles_collected",
]
DAILY_SUMMARY_COLUMNS = ["date", "orders", "delivered_orders", "bottles_ordered", "bottles_delivered"]
EXCEPTION_COLUMNS = [
    "order_id", "store", "channel", "courier",
    "reported_delivered", "confirmed_delivered",
    "reported_empty", "confirmed_empty", "remarks",
]


@dataclass(frozen=True)
class ReportFilter:
    start: Optional[date] = None
    end: Optional[date] = None
    channel: Optional[str] = None
    store_id: Optional[str] = None
    city: Optional[str] = None

    def matches(self, order: Order) -> bool:
        if self.start or self.end:
            if order.created_at is None:
                return False
            day = order.created_at.date()
            if self.start and day < self.start:
                return False
            if self.end and day > self.end:
                return False
        if self.channel and order.channel != self.channel.strip().upper():
            return False
        if self.store_id and order.store_id != self.store_id:
            return False
        if self.city and order.city != self.city:
            return False
        return True


def filter_orders(orders: Iterable[Order], report_filter: Optional[ReportFilter] = None) -> List[Order]:
    report_filter = report_filter or ReportFilter()
    return [o for o in orders if report_filter.matches(o)]


def orders_frame(orders: Iterable[Order]) -> pd.DataFrame:
    rows = [o.to_row() for o in orders]
    return pd.DataFrame(rows)


def delivery_totals(orders: Iterable[Order]) -> Dict[str, int]:
    delivered = [o for o in orders if o.status == CanonicalStatus.DELIVERED]
    return {
        "total_deliveries": len(delivered),
        "total_cans": sum(_delivered_count(o) for o in delivered),
    }


def _delivered_count(order: Order) -> int:
    # Store-confirmed count is the record of truth once it exists, zero included
    if order.status != CanonicalStatus.DELIVERED:
        return 0
    if order.has_courier_report:
        return order.confirmed_bottles
    return order.bottles


def store_summary(orders: Iterable[Order]) -> pd.DataFrame:
    rows = [
        {
            "store_id": o.store_id or "",
            "store": o.store_name,
            "city": o.city,
            "channel": o.channel,
            "orders": 1,
            "bottles_ordered": o.bottles,
            "delivered_orders": int(o.status == CanonicalStatus.DELIVERED),
            "bottles_delivered": _delivered_count(o),
            "empty_bottles_collected": o.empty_bottles_collected,
        }
        for o in orders
    ]
    if not rows:
        return pd.DataFrame(columns=STORE_SUMMARY_COLUMNS)

    return (
        pd.DataFrame(rows)
        .groupby(["store_id", "store", "city", "channel"], as_index=False)
        .sum()
        .sort_values("bottles_delivered", ascending=False)
        .reset_index(drop=True)[STORE_SUMMARY_COLUMNS]
    )


def daily_summary(orders: Iterable[Order]) -> pd.DataFrame:
    rows = [
        {
            "date": o.created_at.date(),
            "orders": 1,
            "delivered_orders": int(o.status == CanonicalStatus.DELIVERED),
            "bottles_ordered": o.bottles,
            "bottles_delivered": _delivered_count(o),
        }
        for o in orders
        if o.created_at is not None
    ]
    if not rows:
        return pd.DataFrame(columns=DAILY_SUMMARY_COLUMNS)

    return (
        pd.DataFrame(rows)
        .groupby("date", as_index=False)
        .sum()
        .sort_values("date", ascending=False)
        .reset_index(drop=True)[DAILY_SUMMARY_COLUMNS]
    )


def delivery_exceptions(orders: Iterable[Order]) -> List[Order]:
    """Delivered orders where the store confirmed different counts than the courier reported."""
    return [
        o for o in orders
        if o.status == CanonicalStatus.DELIVERED
        and o.has_courier_report
        and (
            o.confirmed_bottles != o.bottles_delivered
            or o.confirmed_empty_bottles != o.empty_bottles_collected
        )
    ]


def exceptions_frame(orders: Iterable[Order]) -> pd.DataFrame:
    rows = [
        {
            "order_id": o.id,
            "store": o.store_name,
            "channel": o.channel,
            "courier": o.courier_name,
            "reported_delivered": o.bottles_delivered,
            "confirmed_delivered": o.confirmed_bottles,
            "reported_empty": o.empty_bottles_collected,
            "confirmed_empty": o.confirmed_empty_bottles,
            "remarks": o.confirmation_remarks,
        }
        for o in delivery_exceptions(orders)
    ]
    return pd.DataFrame(rows, columns=EXCEPTION_COLUMNS)
