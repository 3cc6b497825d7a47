"""
Channel Admin Tab - one channel's stores, orders and complaints
"""
import streamlit as st

from aquatrack.core import analytics
from aquatrack.core.actions import OperationsConsole
from aquatrack.core.inventory import total_empty_bottles
from aquatrack.core.read_model import DashboardSnapshot
from aquatrack.ui.common import render_failed_sources, render_order_table, render_orphan_badge
from aquatrack.ui.complaints import render_complaint_desk
from aquatrack.ui.reports import render_reports, render_revenue_trend, render_status_chart


def render_channel_admin(snapshot: DashboardSnapshot, console: OperationsConsole):
    """Render channel admin dashboard"""
    channel = snapshot.viewer.channel or "—"
    st.markdown(f"## 🏷️ {channel} Channel Dashboard")
    render_failed_sources(snapshot.failed_sources)

    kpis = analytics.compute_kpis(snapshot.orders, console.unit_price)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Orders Today", kpis.orders_today)
    col2.metric("Delivered This Month", kpis.delivered_this_month)
    col3.metric("Revenue This Month", f"₹{kpis.revenue_this_month:,}")
    col4.metric("Empty Bottles at Stores", total_empty_bottles(snapshot.stores))

    # Read only here; the super admin routes these
    render_orphan_badge(len(snapshot.orphaned))
    st.divider()

    orders_tab, stores_tab, complaints_tab, reports_tab = st.tabs(
        ["📋 Orders", "🏬 Stores", "📣 Complaints", "📄 Reports"]
    )

    with orders_tab:
        render_order_table(snapshot.orders, snapshot.viewer.role)
        if snapshot.orphaned:
            st.markdown("#### Orders without a Delivery Manager")
            render_order_table(snapshot.orphaned, snapshot.viewer.role, limit=None)

    with stores_tab:
        render_channel_stores(snapshot)

    with complaints_tab:
        render_complaint_desk(snapshot, console, key_prefix="ca")

    with reports_tab:
        render_revenue_trend(snapshot, console.unit_price)
        render_status_chart(snapshot)
        render_reports(snapshot, console.unit_price, key_prefix="ca_reports")


def render_channel_stores(snapshot: DashboardSnapshot):
    import pandas as pd

    if not snapshot.stores:
        st.info("No stores in this channel")
        return

    partners_by_store = {}
    for partner in snapshot.partners:
        for store_id in partner.store_ids:
            partners_by_store.setdefault(store_id, []).append(partner.name)

    df = pd.DataFrame([
        {
            "outlet_code": s.id,
            "store": s.name,
            "city": s.city,
            "manager": s.manager_name,
            "partners": ", ".join(partners_by_store.get(s.id, [])) or "—",
            "empty_bottles": s.empty_bottles,
        }
        for s in snapshot.stores
    ])
    st.dataframe(df, use_container_width=True, hide_index=True)
