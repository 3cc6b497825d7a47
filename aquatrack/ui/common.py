"""
Shared dashboard widgets
"""
from typing import Iterable, List, Optional

import streamlit as st

from aquatrack.core.actions import ActionOutcome
from aquatrack.core.models import Order
from aquatrack.core.status import status_label


LOGOUT_FLAG = "logout_requested"
FLASH_KEY = "flash_message"


def show_outcome(outcome: ActionOutcome) -> None:
    """Render an action result; refetch on success, drop the session on 401."""
    if outcome.success:
        # Shown by the entrypoint after the rerun
        st.session_state[FLASH_KEY] = f"✅ {outcome.message}"
        st.rerun()
    elif outcome.logout_required:
        st.error("Session expired. Please login again.")
        st.session_state[LOGOUT_FLAG] = True
        st.rerun()
    elif outcome.requires_acknowledgement:
        st.warning(f"⚠️ {outcome.message}")
    else:
        st.error(f"❌ {outcome.message}")


def render_flash() -> None:
    message = st.session_state.pop(FLASH_KEY, None)
    if message:
        st.success(message)


def render_failed_sources(failed: Iterable[str]) -> None:
    failed = list(failed)
    if failed:
        st.warning(f"Some data could not be loaded: {', '.join(failed)}")


def order_label(order: Order, role: str) -> str:
    return (
        f"#{order.id} • {order.store_name} • {order.bottles} bottles • "
        f"{status_label(order.raw_status, role)}"
    )


def render_order_table(orders: List[Order], role: str, limit: Optional[int] = 200) -> None:
    """Orders as a table with the viewer's status labels."""
    import pandas as pd

    if not orders:
        st.info("No orders to display")
        return

    rows = []
    for order in orders[:limit] if limit else orders:
        row = order.to_row()
        row["status"] = status_label(order.raw_status, role)
        rows.append(row)

    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)


def render_orphan_badge(count: int) -> None:
    if count:
        st.error(f"🚨 {count} order(s) need manual Delivery Manager assignment")
