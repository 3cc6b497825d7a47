"""
Delivery Manager Tab - dispatch own orders to own team
"""
import streamlit as st

from aquatrack.core.actions import OperationsConsole
from aquatrack.core.read_model import DashboardSnapshot
from aquatrack.core.status import CanonicalStatus
from aquatrack.ui.common import (
    order_label,
    render_failed_sources,
    render_order_table,
    show_outcome,
)


def render_delivery_manager(snapshot: DashboardSnapshot, console: OperationsConsole):
    """Render delivery manager dashboard"""
    st.markdown("## 🧭 Delivery Manager Dashboard")
    render_failed_sources(snapshot.failed_sources)

    viewer = snapshot.viewer
    team = [c for c in snapshot.couriers if c.manager_id == viewer.user_id]
    buckets = snapshot.buckets

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("My Orders", len(snapshot.orders))
    col2.metric("To Dispatch", len(buckets.ready_for_courier))
    col3.metric("Out for Delivery", len(buckets.in_flight))
    col4.metric("Team Size", len(team))

    st.divider()

    dispatch_tab, orders_tab, team_tab = st.tabs(["🚚 Dispatch", "📋 Orders", "👥 My Team"])

    with dispatch_tab:
        st.markdown("### 🚚 Assign Delivery Partner")
        active = {c.id: c for c in team if c.is_active}

        if not buckets.ready_for_courier:
            st.info("No orders waiting for a Delivery Partner")
        elif not active:
            st.warning("No active Delivery Partners in your team")
        else:
            for order in buckets.ready_for_courier[:20]:
                with st.expander(f"📦 {order_label(order, viewer.role)}"):
                    st.write(f"**Store:** {order.store_name} • {order.city}")
                    st.write(f"**Bottles:** {order.bottles}")
                    courier_id = st.selectbox(
                        "Delivery Partner",
                        list(active),
                        format_func=lambda cid: active[cid].name,
                        key=f"dm_dp_pick_{order.id}",
                    )
                    if st.button("Assign", key=f"dm_dp_assign_{order.id}"):
                        show_outcome(console.assign_courier(order, active.get(courier_id)))

        pending = [o for o in snapshot.orders if o.status == CanonicalStatus.PENDING]
        if pending:
            st.caption(f"{len(pending)} order(s) still pending Super Admin approval")

    with orders_tab:
        render_order_table(snapshot.orders, viewer.role)

    with team_tab:
        if not team:
            st.info("No Delivery Partners linked to you yet")
        for courier in team:
            load = [o for o in snapshot.orders if o.courier_id == courier.id and o.status in (
                CanonicalStatus.ASSIGNED_TO_COURIER, CanonicalStatus.IN_TRANSIT)]
            st.write(f"🛵 **{courier.name}** • {courier.status} • {len(load)} active order(s)")
