"""
STATUS NORMALIZER

Purpose:
- Map the backend's raw order/complaint status vocabulary into one canonical enum
- Interpretation depends on the viewer's position in the workflow
- One display label table replaces per-dashboard string switches

Requirements:
• Pure functions, no side effects
• Never raises, unknown input reads as UNKNOWN
• Per-role lookup tables
"""

from enum import Enum
from typing import Any, Dict

from aquatrack.security.roles import (
    SUPER_ADMIN,
    CHANNEL_ADMIN,
    DELIVERY_MANAGER,
    PARTNER,
    COURIER,
    SYSTEM,
)


class CanonicalStatus(str, Enum):
    """Internal order status."""
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    ASSIGNED_TO_MANAGER = "AssignedToManager"
    ASSIGNED_TO_COURIER = "AssignedToCourier"
    IN_TRANSIT = "InTransit"
    AWAITING_STORE_CONFIRMATION = "AwaitingStoreConfirmation"
    DELIVERED = "Delivered"
    RESOLVED = "Resolved"
    CANCELLED = "Cancelled"
    UNKNOWN = "Unknown"


class ComplaintStatus(str, Enum):
    """Complaint status."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    UNKNOWN = "unknown"


TERMINAL_STATUSES = frozenset({
    CanonicalStatus.DELIVERED,
    CanonicalStatus.RESOLVED,
    CanonicalStatus.CANCELLED,
})


# ==================================================
# RAW → CANONICAL (PER VIEWER ROLE)
# ==================================================

# Full workflow vocabulary. Also what the aggregate builder uses.
_WORKFLOW_TABLE: Dict[str, CanonicalStatus] = {
    "pending": CanonicalStatus.PENDING,
    "accepted": CanonicalStatus.ACCEPTED,
    "assigned_to_manager": CanonicalStatus.ASSIGNED_TO_MANAGER,
    "assigned": CanonicalStatus.ASSIGNED_TO_MANAGER,
    "assigned_to_courier": CanonicalStatus.ASSIGNED_TO_COURIER,
    "assigned_to_delivery_partner": CanonicalStatus.ASSIGNED_TO_COURIER,
    "in_transit": CanonicalStatus.IN_TRANSIT,
    "in_progress": CanonicalStatus.IN_TRANSIT,
    "delivered_pending_confirmation": CanonicalStatus.AWAITING_STORE_CONFIRMATION,
    "delivered": CanonicalStatus.DELIVERED,
    "delivered_confirmed": CanonicalStatus.DELIVERED,
    "cancelled": CanonicalStatus.CANCELLED,
    "canceled": CanonicalStatus.CANCELLED,
}

# Channel admins report confirmed deliveries as resolved.
_CHANNEL_ADMIN_TABLE: Dict[str, CanonicalStatus] = {
    **_WORKFLOW_TABLE,
    "delivered_confirmed": CanonicalStatus.RESOLVED,
    "resolved": CanonicalStatus.RESOLVED,
}

# Managers only see orders once routed to them; from their side a routed
# order is already in the courier's hands.
_DELIVERY_MANAGER_TABLE: Dict[str, CanonicalStatus] = {
    **_WORKFLOW_TABLE,
    "assigned_to_manager": CanonicalStatus.ASSIGNED_TO_COURIER,
    "assigned": CanonicalStatus.ASSIGNED_TO_COURIER,
}

# Store partners see everything between acceptance and drop-off as in transit.
_PARTNER_TABLE: Dict[str, CanonicalStatus] = {
    **_WORKFLOW_TABLE,
    "accepted": CanonicalStatus.IN_TRANSIT,
    "assigned_to_manager": CanonicalStatus.IN_TRANSIT,
    "assigned": CanonicalStatus.IN_TRANSIT,
    "assigned_to_courier": CanonicalStatus.IN_TRANSIT,
    "assigned_to_delivery_partner": CanonicalStatus.IN_TRANSIT,
}

ROLE_STATUS_TABLES: Dict[str, Dict[str, CanonicalStatus]] = {
    SUPER_ADMIN: _WORKFLOW_TABLE,
    SYSTEM: _WORKFLOW_TABLE,
    COURIER: _WORKFLOW_TABLE,
    CHANNEL_ADMIN: _CHANNEL_ADMIN_TABLE,
    DELIVERY_MANAGER: _DELIVERY_MANAGER_TABLE,
    PARTNER: _PARTNER_TABLE,
}


def _clean_raw(raw_status: Any) -> str:
    if not isinstance(raw_status, str):
        return ""
    return raw_status.strip().lower().replace("-", "_").replace(" ", "_")


def normalize(raw_status: Any, viewer_role: str = SUPER_ADMIN) -> CanonicalStatus:
    """
    Map a raw backend status into CanonicalStatus for the given viewer.

    Unknown roles use the workflow table. Unknown or non-string input
    returns CanonicalStatus.UNKNOWN.

    Examples:
        >>> normalize("assigned_to_manager", SUPER_ADMIN)
        <CanonicalStatus.ASSIGNED_TO_MANAGER: 'AssignedToManager'>
        >>> normalize("assigned_to_manager", DELIVERY_MANAGER)
        <CanonicalStatus.ASSIGNED_TO_COURIER: 'AssignedToCourier'>
        >>> normalize("teleported", PARTNER)
        <CanonicalStatus.UNKNOWN: 'Unknown'>
    """
    table = ROLE_STATUS_TABLES.get(viewer_role, _WORKFLOW_TABLE)
    return table.get(_clean_raw(raw_status), CanonicalStatus.UNKNOWN)


def normalize_workflow(raw_status: Any) -> CanonicalStatus:
    """Role-independent interpretation used by the state machine."""
    return _WORKFLOW_TABLE.get(_clean_raw(raw_status), CanonicalStatus.UNKNOWN)


def is_terminal(status: CanonicalStatus) -> bool:
    return status in TERMINAL_STATUSES


# ==================================================
# CANONICAL → DISPLAY LABEL (PER VIEWER ROLE)
# ==================================================

_DEFAULT_LABELS: Dict[CanonicalStatus, str] = {
    CanonicalStatus.PENDING: "Pending",
    CanonicalStatus.ACCEPTED: "Accepted",
    CanonicalStatus.ASSIGNED_TO_MANAGER: "Assigned",
    CanonicalStatus.ASSIGNED_TO_COURIER: "Assigned to DP",
    CanonicalStatus.IN_TRANSIT: "In Transit",
    CanonicalStatus.AWAITING_STORE_CONFIRMATION: "Awaiting Confirmation",
    CanonicalStatus.DELIVERED: "Delivered",
    CanonicalStatus.RESOLVED: "Resolved",
    CanonicalStatus.CANCELLED: "Cancelled",
    CanonicalStatus.UNKNOWN: "Unknown",
}

_ROLE_LABEL_OVERRIDES: Dict[str, Dict[CanonicalStatus, str]] = {
    DELIVERY_MANAGER: {
        CanonicalStatus.PENDING: "Pending Super Admin Approval",
        CanonicalStatus.ACCEPTED: "Accepted & Routing",
        CanonicalStatus.DELIVERED: "Delivered/Resolved",
        CanonicalStatus.RESOLVED: "Delivered/Resolved",
    },
    COURIER: {
        CanonicalStatus.ASSIGNED_TO_COURIER: "Ready for Pickup",
        CanonicalStatus.AWAITING_STORE_CONFIRMATION: "Awaiting Store Confirmation",
    },
}


def role_display_label(status: CanonicalStatus, viewer_role: str) -> str:
    """Human label for a canonical status as shown on the viewer's dashboard."""
    overrides = _ROLE_LABEL_OVERRIDES.get(viewer_role, {})
    if status in overrides:
        return overrides[status]
    return _DEFAULT_LABELS.get(status, "Unknown")


def status_label(raw_status: Any, viewer_role: str) -> str:
    """Convenience: raw backend value straight to the viewer's label."""
    return role_display_label(normalize(raw_status, viewer_role), viewer_role)


# ==================================================
# COMPLAINTS
# ==================================================

_COMPLAINT_TABLE: Dict[str, ComplaintStatus] = {
    "pending": ComplaintStatus.PENDING,
    "new": ComplaintStatus.PENDING,
    "in_progress": ComplaintStatus.IN_PROGRESS,
    "resolved": ComplaintStatus.RESOLVED,
}

COMPLAINT_LABELS: Dict[ComplaintStatus, str] = {
    ComplaintStatus.PENDING: "New",
    ComplaintStatus.IN_PROGRESS: "In Progress",
    ComplaintStatus.RESOLVED: "Resolved",
    ComplaintStatus.UNKNOWN: "Unknown",
}


def normalize_complaint_status(raw_status: Any) -> ComplaintStatus:
    return _COMPLAINT_TABLE.get(_clean_raw(raw_status), ComplaintStatus.UNKNOWN)
