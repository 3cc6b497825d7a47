"""
Reports Tab - delivery reports and revenue trend
Shared by the Super Admin and Channel Admin dashboards
"""
import streamlit as st

from aquatrack.core import analytics, reports
from aquatrack.core.read_model import DashboardSnapshot


def render_reports(snapshot: DashboardSnapshot, unit_price: int, key_prefix: str = "reports"):
    """Filterable delivery reports over the snapshot orders."""
    st.markdown("### 📄 Delivery Reports")

    orders = snapshot.orders
    if not orders:
        st.info("No orders to report on")
        return

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        start = st.date_input("From", value=None, key=f"{key_prefix}_from")
    with col2:
        end = st.date_input("To", value=None, key=f"{key_prefix}_to")
    with col3:
        channels = ["All"] + sorted({o.channel for o in orders})
        channel = st.selectbox("Channel", channels, key=f"{key_prefix}_channel")
    with col4:
        cities = ["All"] + sorted({o.city for o in orders})
        city = st.selectbox("City", cities, key=f"{key_prefix}_city")

    stores = ["All"] + sorted({o.store_id for o in orders if o.store_id})
    store_id = st.selectbox("Outlet Code", stores, key=f"{key_prefix}_store")

    report_filter = reports.ReportFilter(
        start=start,
        end=end,
        channel=None if channel == "All" else channel,
        store_id=None if store_id == "All" else store_id,
        city=None if city == "All" else city,
    )
    filtered = reports.filter_orders(orders, report_filter)

    totals = reports.delivery_totals(filtered)
    col1, col2, col3 = st.columns(3)
    col1.metric("Orders", len(filtered))
    col2.metric("Deliveries", totals["total_deliveries"])
    col3.metric("Cans Delivered", totals["total_cans"])

    orders_tab, store_tab, daily_tab, exceptions_tab = st.tabs(
        ["Orders", "Store Summary", "Daily Summary", "Exceptions"]
    )

    with orders_tab:
        df = reports.orders_frame(filtered)
        st.dataframe(df, use_container_width=True, hide_index=True)
        if not df.empty:
            st.download_button(
                "⬇️ Download CSV",
                df.to_csv(index=False).encode("utf-8"),
                file_name="delivery_report.csv",
                mime="text/csv",
                key=f"{key_prefix}_csv",
            )

    with store_tab:
        st.dataframe(reports.store_summary(filtered), use_container_width=True, hide_index=True)

    with daily_tab:
        st.dataframe(reports.daily_summary(filtered), use_container_width=True, hide_index=True)

    with exceptions_tab:
        exceptions = reports.exceptions_frame(filtered)
        if exceptions.empty:
            st.success("No count mismatches in this range")
        else:
            st.dataframe(exceptions, use_container_width=True, hide_index=True)


def render_revenue_trend(snapshot: DashboardSnapshot, unit_price: int):
    """Monthly revenue chart - LAZY imports"""
    import plotly.express as px

    trend = analytics.monthly_revenue_trend(snapshot.orders, unit_price)
    st.markdown(f"#### Monthly Revenue Trend (Last {len(trend)} Months)")

    if trend.empty:
        st.info("No delivered orders yet")
        return

    fig = px.bar(trend, x="label", y="revenue", hover_data=["bottles"], title="Delivered revenue by month")
    st.plotly_chart(fig, use_container_width=True)


def render_status_chart(snapshot: DashboardSnapshot):
    import plotly.express as px

    df = analytics.status_breakdown(snapshot.orders, snapshot.viewer.role)
    if df.empty:
        return
    fig = px.pie(df, names="status", values="count", title="Orders by status")
    st.plotly_chart(fig, use_container_width=True)
