"""
Store Partner Tab - place orders and confirm deliveries
"""
import streamlit as st

from aquatrack.core.actions import OperationsConsole
from aquatrack.core.inventory import pending_empty_bottles
from aquatrack.core.read_model import DashboardSnapshot
from aquatrack.core.status import CanonicalStatus
from aquatrack.ui.common import (
    order_label,
    render_failed_sources,
    render_order_table,
    show_outcome,
)
from aquatrack.ui.complaints import render_complaint_form

# Held across reruns until the partner acknowledges or edits the counts
MISMATCH_KEY = "partner_pending_mismatch"


def render_partner(snapshot: DashboardSnapshot, console: OperationsConsole):
    """Render store partner dashboard"""
    st.markdown("## 🏪 Store Partner Dashboard")
    render_failed_sources(snapshot.failed_sources)

    awaiting = snapshot.buckets.awaiting_store_confirmation
    empties = snapshot.partner_empty_bottles or pending_empty_bottles(
        snapshot.stores, snapshot.viewer.store_ids
    )

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("My Stores", len(snapshot.stores))
    col2.metric("My Orders", len(snapshot.orders))
    col3.metric("Awaiting Confirmation", len(awaiting))
    col4.metric("Empty Bottles to Return", empties)

    st.divider()

    order_tab, confirm_tab, history_tab, complaint_tab = st.tabs(
        ["🛒 Place Order", "✅ Confirm Delivery", "📋 My Orders", "📣 Complaints"]
    )

    with order_tab:
        render_order_form(snapshot, console)

    with confirm_tab:
        render_confirmations(snapshot, console)

    with history_tab:
        render_order_table(snapshot.orders, snapshot.viewer.role)

    with complaint_tab:
        render_complaint_form(snapshot, console, snapshot.stores, key_prefix="partner")


def render_order_form(snapshot: DashboardSnapshot, console: OperationsConsole):
    st.markdown("### 🛒 Place Order")

    if not snapshot.stores:
        st.info("No stores linked to your account")
        return

    names = {s.id: f"{s.id} • {s.name}" for s in snapshot.stores}
    with st.form("partner_order_form", clear_on_submit=True):
        store_id = st.selectbox("Store", list(names), format_func=names.get)
        bottles = st.number_input("Bottles", min_value=1, value=10, step=1)
        st.caption(f"₹{console.unit_price} per bottle")
        submitted = st.form_submit_button("Place Order")

    if submitted:
        show_outcome(console.create_order(store_id, bottles))


def render_confirmations(snapshot: DashboardSnapshot, console: OperationsConsole):
    st.markdown("### ✅ Confirm Delivery")

    awaiting = snapshot.buckets.awaiting_store_confirmation
    if not awaiting:
        st.info("No deliveries awaiting your confirmation")
        return

    for order in awaiting:
        with st.expander(f"📦 {order_label(order, snapshot.viewer.role)}", expanded=True):
            st.write(f"**Delivery Partner:** {order.courier_name}")
            st.write(
                f"**Reported:** {order.bottles_delivered} delivered • "
                f"{order.empty_bottles_collected} empties collected"
            )

            col1, col2 = st.columns(2)
            with col1:
                delivered = st.number_input(
                    "Bottles received",
                    min_value=0,
                    value=order.bottles_delivered,
                    step=1,
                    key=f"partner_received_{order.id}",
                )
            with col2:
                empty = st.number_input(
                    "Empty bottles returned",
                    min_value=0,
                    value=order.empty_bottles_collected,
                    step=1,
                    key=f"partner_returned_{order.id}",
                )
            remarks = st.text_input("Remarks", key=f"partner_remarks_{order.id}")

            if st.button("Confirm", key=f"partner_confirm_{order.id}"):
                outcome = console.confirm_delivery(order, delivered, empty, remarks)
                if outcome.requires_acknowledgement:
                    st.session_state[MISMATCH_KEY] = outcome.mismatch
                else:
                    show_outcome(outcome)

            pending = st.session_state.get(MISMATCH_KEY)
            if pending is not None and pending.order_id == order.id:
                if (pending.confirmed_bottles, pending.confirmed_empty_bottles) != (delivered, empty):
                    # Counts were edited since the warning
                    st.session_state.pop(MISMATCH_KEY, None)
                else:
                    st.warning(f"⚠️ {pending.message}")
                    if st.button("Confirm despite mismatch", key=f"partner_ack_{order.id}"):
                        st.session_state.pop(MISMATCH_KEY, None)
                        show_outcome(console.confirm_delivery(
                            order, delivered, empty, remarks, acknowledge_mismatch=True
                        ))

    delivered_orders = [o for o in snapshot.orders if o.status == CanonicalStatus.DELIVERED]
    if delivered_orders:
        st.markdown("#### Recently Confirmed")
        render_order_table(delivered_orders, snapshot.viewer.role, limit=10)
