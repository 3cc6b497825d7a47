"""
Super Admin Tab - full operational control
Orders, routing, dispatch, team, stores, bottles, complaints, reports
"""
import streamlit as st

from aquatrack.core import analytics
from aquatrack.core.actions import OperationsConsole
from aquatrack.core.assignment import split_orphans
from aquatrack.core.channels import channel_choices
from aquatrack.core.read_model import DashboardSnapshot
from aquatrack.ui.common import (
    order_label,
    render_failed_sources,
    render_order_table,
    render_orphan_badge,
    show_outcome,
)
from aquatrack.ui.complaints import render_complaint_desk
from aquatrack.ui.reports import render_reports, render_revenue_trend, render_status_chart


def render_super_admin(snapshot: DashboardSnapshot, console: OperationsConsole):
    """Render super admin dashboard"""
    st.markdown("## 🛡️ Super Admin Dashboard")
    render_failed_sources(snapshot.failed_sources)

    kpis = analytics.compute_kpis(snapshot.orders, console.unit_price)
    col1, col2, col3, col4, col5 = st.columns(5)
    col1.metric("Total Orders", kpis.total_orders)
    col2.metric("Pending Approval", kpis.pending_orders)
    col3.metric("Delivered", kpis.delivered_orders)
    col4.metric("Revenue", f"₹{kpis.revenue:,}")
    col5.metric("Empty Bottles at Stores", snapshot.total_empty_bottles)

    render_orphan_badge(len(snapshot.orphaned))
    st.divider()

    tabs = st.tabs([
        "📋 Orders",
        "🚨 Needs Manager",
        "🚚 Dispatch",
        "👥 Team",
        "🏬 Stores",
        "🍶 Bottles",
        "📣 Complaints",
        "📄 Reports",
        "📈 Analytics",
    ])

    with tabs[0]:
        render_order_queue(snapshot, console)
    with tabs[1]:
        render_manager_assignment(snapshot, console)
    with tabs[2]:
        render_dispatch(snapshot, console)
    with tabs[3]:
        render_team(snapshot, console)
    with tabs[4]:
        render_stores(snapshot, console)
    with tabs[5]:
        render_bottles(snapshot, console)
    with tabs[6]:
        render_complaint_desk(snapshot, console)
    with tabs[7]:
        render_reports(snapshot, console.unit_price, key_prefix="sa_reports")
    with tabs[8]:
        render_revenue_trend(snapshot, console.unit_price)
        render_status_chart(snapshot)
        render_channel_revenue(snapshot, console.unit_price)


# ==================================================
# ORDERS
# ==================================================
def render_order_queue(snapshot: DashboardSnapshot, console: OperationsConsole):
    buckets = snapshot.buckets
    role = snapshot.viewer.role

    st.markdown("### ✅ Approve Orders")
    if buckets.awaiting_approval:
        for order in buckets.awaiting_approval[:20]:
            with st.expander(f"📦 {order_label(order, role)}"):
                col1, col2, col3 = st.columns([3, 1, 1])
                with col1:
                    st.write(f"**Store:** {order.store_name} ({order.store_id or 'N/A'})")
                    st.write(f"**Channel:** {order.channel} • **City:** {order.city}")
                    st.write(f"**Partner:** {order.partner_name}")
                    st.write(f"**Manager:** {order.manager_name}")
                with col2:
                    if st.button("Approve", key=f"sa_approve_{order.id}"):
                        show_outcome(console.approve_order(order))
                with col3:
                    if st.button("Cancel", key=f"sa_cancel_{order.id}"):
                        show_outcome(console.cancel_order(order))
    else:
        st.info("No orders pending approval")

    st.divider()
    st.markdown("### 📋 All Orders")
    render_order_table(snapshot.orders, role)


def render_manager_assignment(snapshot: DashboardSnapshot, console: OperationsConsole):
    """Orphaned orders: store has no delivery manager."""
    st.markdown("### 🚨 Orders Without a Delivery Manager")

    split = split_orphans(snapshot.orders, snapshot.stores)
    if not split.assignable and not split.store_link_needed:
        st.success("Every active order is routed to a Delivery Manager")
        return

    if not snapshot.managers:
        st.warning("No Delivery Managers available")
        return

    manager_names = {m.id: f"{m.name} ({m.city})" for m in snapshot.managers}

    for order in split.assignable:
        with st.expander(f"⚠️ {order_label(order, snapshot.viewer.role)}", expanded=True):
            st.write(f"**Store:** {order.store_name} has no Delivery Manager")
            manager_id = st.selectbox(
                "Delivery Manager",
                list(manager_names),
                format_func=manager_names.get,
                key=f"sa_mgr_pick_{order.id}",
            )
            manual = st.checkbox(
                "Manual assignment (also links this store to the manager)",
                value=True,
                key=f"sa_mgr_manual_{order.id}",
            )
            if st.button("Assign Manager", key=f"sa_mgr_assign_{order.id}"):
                show_outcome(console.assign_manager(
                    order,
                    manager_id,
                    snapshot.managers,
                    snapshot.stores,
                    manual_fallback=manual,
                ))

    # Past routing: only a store link clears these
    for store_id in split.stores_to_link():
        orders = [o for o in split.store_link_needed if o.store_id == store_id]
        with st.expander(f"🔗 {orders[0].store_name}: {len(orders)} order(s) already dispatched", expanded=True):
            st.caption("These orders are past routing, so link the store to a Delivery Manager instead")
            for order in orders:
                st.write(f"- {order_label(order, snapshot.viewer.role)}")
            manager_id = st.selectbox(
                "Delivery Manager",
                list(manager_names),
                format_func=manager_names.get,
                key=f"sa_link_pick_{store_id}",
            )
            if st.button("Link Store", key=f"sa_link_store_{store_id}"):
                show_outcome(console.add_manager_stores(
                    snapshot.managers_by_id[manager_id],
                    [store_id],
                    snapshot.stores,
                ))


def render_dispatch(snapshot: DashboardSnapshot, console: OperationsConsole):
    st.markdown("### 🚚 Assign Delivery Partner")

    ready = snapshot.buckets.ready_for_courier
    active = [c for c in snapshot.couriers if c.is_active]

    if not ready:
        st.info("No orders waiting for a Delivery Partner")
    elif not active:
        st.warning("No active Delivery Partners")
    else:
        couriers = {c.id: c for c in active}
        for order in ready[:20]:
            with st.expander(f"📦 {order_label(order, snapshot.viewer.role)}"):
                st.write(f"**Manager:** {order.manager_name}")
                # Team members first
                ids = sorted(couriers, key=lambda cid: couriers[cid].manager_id != order.manager_id)
                courier_id = st.selectbox(
                    "Delivery Partner",
                    ids,
                    format_func=lambda cid: couriers[cid].name,
                    key=f"sa_dp_pick_{order.id}",
                )
                if st.button("Assign", key=f"sa_dp_assign_{order.id}"):
                    show_outcome(console.assign_courier(order, couriers.get(courier_id)))

    st.divider()
    st.markdown("### 🛣️ In Flight")
    render_order_table(snapshot.buckets.in_flight, snapshot.viewer.role, limit=50)


# ==================================================
# TEAM
# ==================================================
def render_team(snapshot: DashboardSnapshot, console: OperationsConsole):
    couriers_tab, managers_tab, accounts_tab = st.tabs(
        ["Delivery Partners", "Delivery Managers", "Partners & Channel Admins"]
    )
    with couriers_tab:
        render_couriers(snapshot, console)
    with managers_tab:
        render_managers(snapshot, console)
    with accounts_tab:
        render_accounts(snapshot, console)


def render_couriers(snapshot: DashboardSnapshot, console: OperationsConsole):
    managers = {m.id: m.name for m in snapshot.managers}
    options = [0] + list(managers)

    if not snapshot.couriers:
        st.info("No Delivery Partners registered")
        return

    for courier in snapshot.couriers:
        team = managers.get(courier.manager_id, "Unassigned")
        with st.expander(f"🛵 {courier.name} • {courier.status} • {team}"):
            st.write(f"**Email:** {courier.email or '—'}")

            if not courier.is_active:
                if st.button("Approve", key=f"sa_dp_approve_{courier.id}"):
                    show_outcome(console.approve_courier(courier))
                continue

            col1, col2 = st.columns([3, 1])
            with col1:
                target = st.selectbox(
                    "Move to manager",
                    options,
                    format_func=lambda mid: managers.get(mid, "Unassign"),
                    key=f"sa_dp_move_pick_{courier.id}",
                )
            with col2:
                if courier.manager_id is None:
                    if st.button("Link", key=f"sa_dp_link_{courier.id}"):
                        show_outcome(console.link_courier(courier, target, snapshot.managers))
                elif st.button("Move", key=f"sa_dp_move_{courier.id}"):
                    show_outcome(console.move_courier(courier, target, snapshot.managers))

            if st.button("🗑️ Delete", key=f"sa_dp_delete_{courier.id}"):
                show_outcome(console.delete_courier(courier, snapshot.orders))


def render_managers(snapshot: DashboardSnapshot, console: OperationsConsole):
    if not snapshot.managers:
        st.info("No Delivery Managers registered")
        return

    stores = snapshot.stores_by_id
    for manager in snapshot.managers:
        team = [c.name for c in snapshot.couriers if c.manager_id == manager.id]
        with st.expander(f"🧭 {manager.name} • {manager.city} • {len(manager.store_ids)} stores"):
            st.write(f"**Email:** {manager.email or '—'}")
            st.write(f"**Team:** {', '.join(team) or '—'}")
            st.write(f"**Stores:** {', '.join(manager.store_ids) or '—'}")

            available = [s.id for s in snapshot.stores if not s.has_manager]
            to_add = st.multiselect(
                "Add stores",
                available,
                format_func=lambda sid: f"{sid} • {stores[sid].name}",
                key=f"sa_mgr_add_pick_{manager.id}",
            )
            if st.button("Add Stores", key=f"sa_mgr_add_{manager.id}"):
                show_outcome(console.add_manager_stores(manager, to_add, snapshot.stores))

            to_remove = st.multiselect(
                "Remove stores",
                list(manager.store_ids),
                key=f"sa_mgr_remove_pick_{manager.id}",
            )
            if st.button("Remove Stores", key=f"sa_mgr_remove_{manager.id}"):
                show_outcome(console.remove_manager_stores(manager, to_remove))

            if st.button("🗑️ Delete Manager", key=f"sa_mgr_delete_{manager.id}"):
                show_outcome(console.delete_manager(manager, snapshot.couriers))


def render_accounts(snapshot: DashboardSnapshot, console: OperationsConsole):
    st.markdown("#### Store Partners")
    if snapshot.partners:
        for partner in snapshot.partners:
            col1, col2 = st.columns([4, 1])
            col1.write(f"**{partner.name}** • {partner.channel or '—'} • {', '.join(partner.store_ids) or 'no stores'}")
            if col2.button("Delete", key=f"sa_partner_delete_{partner.id}"):
                show_outcome(console.delete_partner(partner.id))
    else:
        st.info("No partners registered")

    st.markdown("#### Channel Admins")
    if snapshot.channel_admins:
        for admin in snapshot.channel_admins:
            col1, col2 = st.columns([4, 1])
            col1.write(f"**{admin.get('full_name', '—')}** • {admin.get('channel', '—')}")
            if col2.button("Delete", key=f"sa_admin_delete_{admin.get('id')}"):
                show_outcome(console.delete_channel_admin(admin.get("id")))
    else:
        st.info("No channel admins registered")


# ==================================================
# STORES
# ==================================================
def render_stores(snapshot: DashboardSnapshot, console: OperationsConsole):
    import pandas as pd

    st.markdown("### 🏬 Stores")

    with st.form("sa_create_store", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            store_id = st.text_input("Outlet Code")
            name = st.text_input("Store Name")
            city = st.text_input("City")
        with col2:
            channel = st.selectbox("Channel", channel_choices(snapshot.channels))
            custom = st.text_input("Custom channel name (when CUSTOM)")
            address = st.text_input("Address")
        submitted = st.form_submit_button("Create Store")

    if submitted:
        show_outcome(console.create_store(store_id, name, city, channel, custom, snapshot.stores, address=address))

    if not snapshot.stores:
        st.info("No stores yet")
        return

    df = pd.DataFrame([
        {
            "outlet_code": s.id,
            "store": s.name,
            "city": s.city,
            "channel": s.channel,
            "manager": s.manager_name,
            "empty_bottles": s.empty_bottles,
        }
        for s in snapshot.stores
    ])
    st.dataframe(df, use_container_width=True, hide_index=True)

    col1, col2 = st.columns([3, 1])
    with col1:
        doomed = st.selectbox("Delete store", [s.id for s in snapshot.stores], key="sa_store_delete_pick")
    with col2:
        if st.button("🗑️ Delete", key="sa_store_delete"):
            show_outcome(console.delete_store(snapshot.stores_by_id[doomed], snapshot.orders))

    render_store_map(snapshot)


def render_store_map(snapshot: DashboardSnapshot):
    """Store locations - LAZY imports"""
    import pandas as pd
    import pydeck as pdk

    located = [s for s in snapshot.stores if s.latitude is not None and s.longitude is not None]
    st.markdown("#### Store Locations")
    if not located:
        st.info("No location data available")
        return

    df = pd.DataFrame([
        {"store": s.name, "lat": float(s.latitude), "lon": float(s.longitude), "empty": s.empty_bottles}
        for s in located
    ])

    st.pydeck_chart(pdk.Deck(
        initial_view_state=pdk.ViewState(
            latitude=df["lat"].mean(),
            longitude=df["lon"].mean(),
            zoom=5,
            pitch=0,
        ),
        layers=[
            pdk.Layer(
                "ScatterplotLayer",
                data=df,
                get_position="[lon, lat]",
                get_radius=1500,
                get_color="[0, 120, 200, 160]",
                pickable=True,
            ),
        ],
        tooltip={"text": "{store}\nEmpty bottles: {empty}"},
    ))


# ==================================================
# BOTTLES
# ==================================================
def render_bottles(snapshot: DashboardSnapshot, console: OperationsConsole):
    st.markdown("### 🍶 Bottle Inventory")

    summary = snapshot.qr_summary
    col1, col2, col3 = st.columns(3)
    col1.metric("Total Bottles", summary.total)
    col2.metric("Assigned", summary.assigned)
    col3.metric("Unassigned", summary.unassigned)

    st.markdown("#### Generate QR Codes")
    col1, col2 = st.columns([3, 1])
    with col1:
        count = st.number_input("How many", min_value=1, value=10, step=1, key="sa_qr_count")
    with col2:
        if st.button("Generate", key="sa_qr_generate"):
            show_outcome(console.generate_qr(count))

    st.markdown("#### Assign Bottles to a Delivery Partner")
    active = {c.id: c for c in snapshot.couriers if c.is_active}
    pool = snapshot.unassigned_bottles
    if not active:
        st.info("No active Delivery Partners")
        return
    if not pool:
        st.info("No unassigned bottles")
        return

    courier_id = st.selectbox(
        "Delivery Partner",
        list(active),
        format_func=lambda cid: active[cid].name,
        key="sa_bottle_courier",
    )
    codes = st.multiselect("QR codes", [b.qr_code for b in pool], key="sa_bottle_codes")
    if st.button("Assign Bottles", key="sa_bottle_assign"):
        show_outcome(console.assign_bottles(codes, active.get(courier_id), pool))


# ==================================================
# ANALYTICS
# ==================================================
def render_channel_revenue(snapshot: DashboardSnapshot, unit_price: int):
    import plotly.express as px

    df = analytics.channel_breakdown(snapshot.orders, unit_price)
    if df.empty:
        return
    fig = px.bar(df, x="channel", y="revenue", title="Delivered revenue by channel")
    st.plotly_chart(fig, use_container_width=True)
