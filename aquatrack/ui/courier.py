"""
Delivery Partner Tab - pick up and report deliveries
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
from aquatrack.ui.complaints import render_complaint_form


def render_courier(snapshot: DashboardSnapshot, console: OperationsConsole):
    """Render delivery partner dashboard"""
    st.markdown("## 🛵 Delivery Partner Dashboard")
    render_failed_sources(snapshot.failed_sources)

    role = snapshot.viewer.role
    ready = [o for o in snapshot.orders if o.status == CanonicalStatus.ASSIGNED_TO_COURIER]
    on_road = [o for o in snapshot.orders if o.status == CanonicalStatus.IN_TRANSIT]
    awaiting = snapshot.buckets.awaiting_store_confirmation

    col1, col2, col3 = st.columns(3)
    col1.metric("Ready for Pickup", len(ready))
    col2.metric("On the Road", len(on_road))
    col3.metric("Awaiting Store", len(awaiting))

    st.divider()

    deliveries_tab, history_tab, complaint_tab = st.tabs(
        ["🚚 My Deliveries", "📋 History", "📣 Complaints"]
    )

    with deliveries_tab:
        if not ready and not on_road:
            st.info("No deliveries assigned to you")

        for order in ready + on_road:
            with st.expander(f"📦 {order_label(order, role)}", expanded=True):
                st.write(f"**Store:** {order.store_name} • {order.city}")
                st.write(f"**Bottles:** {order.bottles}")

                if order.status == CanonicalStatus.ASSIGNED_TO_COURIER:
                    if st.button("Start Pickup", key=f"dp_pickup_{order.id}"):
                        show_outcome(console.start_pickup(order))

                col1, col2 = st.columns(2)
                with col1:
                    delivered = st.number_input(
                        "Bottles delivered",
                        min_value=0,
                        value=order.bottles,
                        step=1,
                        key=f"dp_delivered_{order.id}",
                    )
                with col2:
                    empty = st.number_input(
                        "Empty bottles collected",
                        min_value=0,
                        value=0,
                        step=1,
                        key=f"dp_empty_{order.id}",
                    )
                if st.button("Mark Delivered", key=f"dp_report_{order.id}"):
                    show_outcome(console.report_delivery(order, delivered, empty))

    with history_tab:
        render_order_table(snapshot.orders, role)

    with complaint_tab:
        store_ids = {o.store_id for o in snapshot.orders}
        stores = [s for s in snapshot.stores if s.id in store_ids]
        render_complaint_form(snapshot, console, stores, key_prefix="dp")
