"""
ORDER ANALYTICS

Purpose:
- Revenue aggregation (Delivered orders only)
- Dashboard KPI counters
- Monthly revenue trend for charts
- Status / channel breakdowns

Requirements:
• Non-delivered orders never contribute revenue
• Read-only over Order view models
• pandas frames returned for plotting
"""

from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from aquatrack.core.models import Order
from aquatrack.core.status import CanonicalStatus, status_label
from aquatrack.security.roles import SUPER_ADMIN


def delivered_orders(orders: Iterable[Order]) -> List[Order]:
    return [o for o in orders if o.status == CanonicalStatus.DELIVERED]


def order_revenue(order: Order, unit_price: int) -> int:
    """bottles x price for a Delivered order, 0 for anything else."""
    if order.status != CanonicalStatus.DELIVERED:
        return 0
    return order.bottles * unit_price


def revenue_total(orders: Iterable[Order], unit_price: int) -> int:
    """
    Total revenue over Delivered orders.

    Examples:
        [100 bottles Delivered, 50 bottles Pending] at 42 → 4200
    """
    return sum(order_revenue(o, unit_price) for o in orders)


# ==================================================
# KPIs
# ==================================================

@dataclass(frozen=True)
class OrderKpis:
    total_orders: int = 0
    pending_orders: int = 0
    delivered_orders: int = 0
    orders_today: int = 0
    delivered_today: int = 0
    delivered_this_month: int = 0
    orders_this_month: int = 0
    revenue: int = 0
    revenue_this_month: int = 0
    bottles_delivered: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def _day(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value is not None else None


def compute_kpis(orders: Iterable[Order], unit_price: int, today: Optional[date] = None) -> OrderKpis:
    today = today or datetime.now().date()
    orders = list(orders)

    delivered = delivered_orders(orders)
    this_month = [
        o for o in orders
        if o.created_at is not None
        and (o.created_at.year, o.created_at.month) == (today.year, today.month)
    ]
    delivered_this_month = [o for o in this_month if o.status == CanonicalStatus.DELIVERED]

    return OrderKpis(
        total_orders=len(orders),
        pending_orders=sum(1 for o in orders if o.status == CanonicalStatus.PENDING),
        delivered_orders=len(delivered),
        orders_today=sum(1 for o in orders if _day(o.created_at) == today),
        delivered_today=sum(
            1 for o in delivered
            if _day(o.updated_at or o.created_at) == today
        ),
        delivered_this_month=len(delivered_this_month),
        orders_this_month=len(this_month),
        revenue=revenue_total(delivered, unit_price),
        revenue_this_month=revenue_total(delivered_this_month, unit_price),
        bottles_delivered=sum(o.bottles for o in delivered),
    )


# ==================================================
# FRAMES FOR CHARTS
# ==================================================

TREND_COLUMNS = ["month", "label", "revenue", "bottles"]


def monthly_revenue_trend(orders: Iterable[Order], unit_price: int, months: int = 6) -> pd.DataFrame:
    """
    Revenue and bottles per order month, Delivered orders only.

    Returns at most `months` rows: the latest months that have deliveries,
    oldest first.
    """
    rows = [
        {"created_at": o.created_at, "bottles": o.bottles}
        for o in delivered_orders(orders)
        if o.created_at is not None
    ]
    if not rows:
        return pd.DataFrame(columns=TREND_COLUMNS)

    df = pd.DataFrame(rows)
    df["month"] = df["created_at"].dt.strftime("%Y-%m")

    trend = (
        df.groupby("month", as_index=False)["bottles"]
        .sum()
        .sort_values("month")
        .tail(months)
        .reset_index(drop=True)
    )
    trend["revenue"] = trend["bottles"] * unit_price
    trend["label"] = pd.to_datetime(trend["month"], format="%Y-%m").dt.strftime("%b %Y")
    return trend[TREND_COLUMNS]


def status_breakdown(orders: Iterable[Order], viewer_role: str = SUPER_ADMIN) -> pd.DataFrame:
    counts: Dict[str, int] = {}
    for order in orders:
        # Same labels as the order tables
        label = status_label(order.raw_status, viewer_role)
        counts[label] = counts.get(label, 0) + 1
    return pd.DataFrame(list(counts.items()), columns=["status", "count"])


def channel_breakdown(orders: Iterable[Order], unit_price: int) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = [
        {
            "channel": o.channel,
            "orders": 1,
            "bottles": o.bottles,
            "revenue": order_revenue(o, unit_price),
        }
        for o in orders
    ]
    if not rows:
        return pd.DataFrame(columns=["channel", "orders", "bottles", "revenue"])
    return (
        pd.DataFrame(rows)
        .groupby("channel", as_index=False)
        .sum()
        .sort_values("orders", ascending=False)
        .reset_index(drop=True)
    )
