# aquatrack/core/role_guard.py

from typing import Optional

from aquatrack.core.errors import ConsoleError
from aquatrack.core import lifecycle as lc
from aquatrack.core.status import CanonicalStatus as S
from aquatrack.security.roles import (
    SUPER_ADMIN,
    CHANNEL_ADMIN,
    DELIVERY_MANAGER,
    PARTNER,
    COURIER,
    SYSTEM,
)


class AuthorizationError(ConsoleError):
    """Raised when a role attempts an unauthorized action."""
    pass


# ==================================================
# STATE → ROLES ALLOWED TO ACT IN THAT STATE
# ==================================================
STATE_ROLE_AUTHORITY = {
    # Virtual initial state
    lc.NONE: {PARTNER},

    # Admin side
    S.PENDING: {SUPER_ADMIN},
    S.ACCEPTED: {SUPER_ADMIN, DELIVERY_MANAGER, SYSTEM},
    S.ASSIGNED_TO_MANAGER: {SUPER_ADMIN, DELIVERY_MANAGER},

    # Field
    S.ASSIGNED_TO_COURIER: {SUPER_ADMIN, COURIER},
    S.IN_TRANSIT: {SUPER_ADMIN, COURIER},

    # Store side
    S.AWAITING_STORE_CONFIRMATION: {SUPER_ADMIN, PARTNER},

    # Terminal
    S.DELIVERED: set(),
    S.RESOLVED: set(),
    S.CANCELLED: set(),
    S.UNKNOWN: set(),
}


# ==================================================
# EVENT → ROLES ALLOWED TO EMIT THAT EVENT
# ==================================================
EVENT_ROLE_AUTHORITY = {
    lc.ORDER_CREATED: {PARTNER},
    lc.ORDER_APPROVED: {SUPER_ADMIN},
    lc.ORDER_AUTO_ROUTED: {SYSTEM},
    lc.MANAGER_ASSIGNED: {SUPER_ADMIN},
    lc.COURIER_ASSIGNED: {SUPER_ADMIN, DELIVERY_MANAGER},
    lc.PICKUP_STARTED: {COURIER},
    lc.DELIVERY_REPORTED: {COURIER},
    lc.STORE_CONFIRMED: {PARTNER},
    lc.ORDER_CANCELLED: {SUPER_ADMIN},
}


# ==================================================
# ADMINISTRATIVE ACTIONS (NOT ORDER EVENTS)
# ==================================================
APPROVE_COURIER = "APPROVE_COURIER"
MOVE_COURIER = "MOVE_COURIER"
CREATE_STORE = "CREATE_STORE"
DELETE_STORE = "DELETE_STORE"
LINK_STORES = "LINK_STORES"
DELETE_MANAGER = "DELETE_MANAGER"
DELETE_PARTNER = "DELETE_PARTNER"
DELETE_CHANNEL_ADMIN = "DELETE_CHANNEL_ADMIN"
RESOLVE_COMPLAINT = "RESOLVE_COMPLAINT"
SUBMIT_COMPLAINT = "SUBMIT_COMPLAINT"
GENERATE_QR = "GENERATE_QR"
ASSIGN_BOTTLES = "ASSIGN_BOTTLES"

ADMIN_ACTION_AUTHORITY = {
    APPROVE_COURIER: {SUPER_ADMIN},
    MOVE_COURIER: {SUPER_ADMIN},
    CREATE_STORE: {SUPER_ADMIN},
    DELETE_STORE: {SUPER_ADMIN},
    LINK_STORES: {SUPER_ADMIN},
    DELETE_MANAGER: {SUPER_ADMIN},
    DELETE_PARTNER: {SUPER_ADMIN},
    DELETE_CHANNEL_ADMIN: {SUPER_ADMIN},
    RESOLVE_COMPLAINT: {SUPER_ADMIN, CHANNEL_ADMIN},
    SUBMIT_COMPLAINT: {PARTNER, COURIER},
    GENERATE_QR: {SUPER_ADMIN},
    ASSIGN_BOTTLES: {SUPER_ADMIN},
}


def validate_role_authority(
    role: str,
    current_state: Optional[S],
    event_type: str
) -> None:
    """
    Validate whether a role is authorized to emit an event
    given the current lifecycle state.
    """

    # --------------------------------------------------
    # 1. State-level authority
    # --------------------------------------------------
    allowed_roles_for_state = STATE_ROLE_AUTHORITY.get(current_state, set())

    if role not in allowed_roles_for_state:
        state_label = "NONE" if current_state is None else current_state.value
        raise AuthorizationError(
            f"Role '{role}' is not allowed to act in state '{state_label}'"
        )

    # --------------------------------------------------
    # 2. Event-level authority
    # --------------------------------------------------
    allowed_roles_for_event = EVENT_ROLE_AUTHORITY.get(event_type, set())

    if role not in allowed_roles_for_event:
        raise AuthorizationError(
            f"Role '{role}' is not allowed to emit event '{event_type}'"
        )


def validate_admin_authority(role: str, action: str) -> None:
    """Role check for actions that do not move an order through its lifecycle."""
    if role not in ADMIN_ACTION_AUTHORITY.get(action, set()):
        raise AuthorizationError(f"Role '{role}' is not allowed to perform '{action}'")
