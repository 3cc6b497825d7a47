"""
AquaTrack Operations Console
Role-scoped dashboards over one delivery backend
"""
import logging

import streamlit as st

# ═══════════════════════════════════════════════════════════════
# PAGE CONFIG (MUST BE FIRST)
# ═══════════════════════════════════════════════════════════════
st.set_page_config(
    page_title="AquaTrack Operations Console",
    layout="wide",
    initial_sidebar_state="expanded"
)

from aquatrack.config import (
    API_TOKEN,
    BOTTLE_PRICE,
    DATA_SOURCE,
    DATA_SOURCE_HTTP,
    configure_logging,
)
from aquatrack.core.actions import OperationsConsole
from aquatrack.core.models import Viewer
from aquatrack.core.read_model import load_snapshot
from aquatrack.integrations import (
    BackendClient,
    InMemoryBackend,
    SessionExpiredError,
    demo_viewers,
    seed_demo_data,
)
from aquatrack.security.roles import (
    CHANNEL_ADMIN,
    COURIER,
    DASHBOARD_ROLES,
    DELIVERY_MANAGER,
    PARTNER,
    ROLE_TITLES,
    SUPER_ADMIN,
)
from aquatrack.ui.common import LOGOUT_FLAG, render_flash

configure_logging()
logger = logging.getLogger("aquatrack.app")

# ═══════════════════════════════════════════════════════════════
# SESSION STATE (MINIMAL)
# ═══════════════════════════════════════════════════════════════
if "initialized" not in st.session_state:
    st.session_state.initialized = True
    st.session_state.viewer = None
    st.session_state.token = API_TOKEN

if st.session_state.pop(LOGOUT_FLAG, False):
    logger.info("Session ended, clearing credentials")
    st.session_state.viewer = None
    st.session_state.token = None

# ═══════════════════════════════════════════════════════════════
# BACKEND (ONCE PER PROCESS)
# ═══════════════════════════════════════════════════════════════
@st.cache_resource
def get_demo_backend():
    """Seeded in-memory backend shared by every demo session."""
    return seed_demo_data(InMemoryBackend())


def backend_for(viewer):
    if DATA_SOURCE == DATA_SOURCE_HTTP:
        return BackendClient(viewer.role, token_provider=lambda: st.session_state.get("token"))
    return get_demo_backend().session(viewer)


# ═══════════════════════════════════════════════════════════════
# SIGN IN (SIDEBAR)
# ═══════════════════════════════════════════════════════════════
def render_sign_in():
    st.sidebar.markdown("### 🔐 Sign In")

    if DATA_SOURCE == DATA_SOURCE_HTTP:
        role = st.sidebar.selectbox("Role", DASHBOARD_ROLES, format_func=ROLE_TITLES.get)
        token = st.sidebar.text_input("Access token", type="password", value=st.session_state.token or "")
        user_id = st.sidebar.number_input("User ID", min_value=0, value=0, step=1)
        channel = st.sidebar.text_input("Channel (channel admins)")
        if st.sidebar.button("Sign In", type="primary"):
            st.session_state.token = token.strip() or None
            st.session_state.viewer = Viewer(
                role=role,
                user_id=int(user_id) or None,
                channel=channel.strip().upper() or None,
            )
            st.rerun()
        return

    viewers = demo_viewers(get_demo_backend())
    role = st.sidebar.selectbox("Role", DASHBOARD_ROLES, format_func=ROLE_TITLES.get)
    choices = viewers.get(role, [])
    if not choices:
        st.sidebar.info("No demo accounts for this role")
        return
    viewer = st.sidebar.selectbox("Account", choices, format_func=lambda v: v.name)
    if st.sidebar.button("Sign In", type="primary"):
        st.session_state.viewer = viewer
        st.rerun()


viewer = st.session_state.viewer

if viewer is not None:
    st.sidebar.markdown(f"**{viewer.name or ROLE_TITLES[viewer.role]}**")
    st.sidebar.caption(ROLE_TITLES[viewer.role])
    if st.sidebar.button("Sign Out"):
        st.session_state[LOGOUT_FLAG] = True
        st.rerun()
else:
    render_sign_in()

# ═══════════════════════════════════════════════════════════════
# HEADER (MINIMAL)
# ═══════════════════════════════════════════════════════════════
st.title("💧 AquaTrack Operations Console")
st.caption("Orders • Dispatch • Store confirmation • Bottle inventory")

if viewer is None:
    st.info("👈 Sign in from the sidebar to open your dashboard")
    st.stop()

# ═══════════════════════════════════════════════════════════════
# DATA LOADING (EVERY RUN, NO CACHE)
# ═══════════════════════════════════════════════════════════════
backend = backend_for(viewer)
try:
    snapshot = load_snapshot(backend, viewer)
except SessionExpiredError as e:
    logger.warning(f"Dashboard load rejected: {e}")
    st.error("Session expired. Please login again.")
    st.session_state.viewer = None
    st.session_state.token = None
    st.stop()

console = OperationsConsole(backend, snapshot.viewer, unit_price=BOTTLE_PRICE)
render_flash()

# ═══════════════════════════════════════════════════════════════
# ROLE DASHBOARD (LAZY)
# ═══════════════════════════════════════════════════════════════
if viewer.role == SUPER_ADMIN:
    from aquatrack.ui.super_admin import render_super_admin
    render_super_admin(snapshot, console)

elif viewer.role == CHANNEL_ADMIN:
    from aquatrack.ui.channel_admin import render_channel_admin
    render_channel_admin(snapshot, console)

elif viewer.role == DELIVERY_MANAGER:
    from aquatrack.ui.delivery_manager import render_delivery_manager
    render_delivery_manager(snapshot, console)

elif viewer.role == PARTNER:
    from aquatrack.ui.partner import render_partner
    render_partner(snapshot, console)

elif viewer.role == COURIER:
    from aquatrack.ui.courier import render_courier
    render_courier(snapshot, console)

else:
    st.error(f"No dashboard for role {viewer.role}")

# ═══════════════════════════════════════════════════════════════
# FOOTER
# ═══════════════════════════════════════════════════════════════
st.divider()
st.caption(f"💧 AquaTrack • Last updated: {snapshot.loaded_at.strftime('%H:%M:%S')}")
