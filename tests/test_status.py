import pytest

from aquatrack.core.status import (
    CanonicalStatus,
    ComplaintStatus,
    is_terminal,
    normalize,
    normalize_complaint_status,
    normalize_workflow,
    role_display_label,
    status_label,
)
from aquatrack.security.roles import (
    SUPER_ADMIN,
    CHANNEL_ADMIN,
    DELIVERY_MANAGER,
    PARTNER,
    COURIER,
)


@pytest.mark.parametrize("raw, expected", [
    ("pending", CanonicalStatus.PENDING),
    ("accepted", CanonicalStatus.ACCEPTED),
    ("in_progress", CanonicalStatus.IN_TRANSIT),
    ("in_transit", CanonicalStatus.IN_TRANSIT),
    ("assigned", CanonicalStatus.ASSIGNED_TO_MANAGER),
    ("delivered_pending_confirmation", CanonicalStatus.AWAITING_STORE_CONFIRMATION),
    ("delivered_confirmed", CanonicalStatus.DELIVERED),
    ("Cancelled", CanonicalStatus.CANCELLED),
])
def test_workflow_vocabulary(raw, expected):
    assert normalize(raw, SUPER_ADMIN) == expected


def test_same_raw_status_reads_differently_per_role():
    assert normalize("assigned_to_manager", SUPER_ADMIN) == CanonicalStatus.ASSIGNED_TO_MANAGER
    assert normalize("assigned_to_manager", DELIVERY_MANAGER) == CanonicalStatus.ASSIGNED_TO_COURIER
    assert normalize("assigned_to_manager", PARTNER) == CanonicalStatus.IN_TRANSIT
    assert normalize("delivered_confirmed", CHANNEL_ADMIN) == CanonicalStatus.RESOLVED


@pytest.mark.parametrize("raw", ["teleported", "", None, 42, {"status": "pending"}])
def test_unknown_input_never_raises(raw):
    for role in (SUPER_ADMIN, CHANNEL_ADMIN, DELIVERY_MANAGER, PARTNER, COURIER, "NOT_A_ROLE"):
        assert normalize(raw, role) == CanonicalStatus.UNKNOWN


def test_unknown_role_uses_workflow_table():
    assert normalize("accepted", "NOT_A_ROLE") == CanonicalStatus.ACCEPTED


def test_normalize_is_deterministic():
    assert normalize(" Delivered-Pending-Confirmation ", COURIER) == normalize(
        "delivered_pending_confirmation", COURIER
    )


def test_workflow_interpretation_ignores_role_tables():
    assert normalize_workflow("assigned_to_manager") == CanonicalStatus.ASSIGNED_TO_MANAGER


def test_display_labels():
    assert role_display_label(CanonicalStatus.ASSIGNED_TO_COURIER, SUPER_ADMIN) == "Assigned to DP"
    assert role_display_label(CanonicalStatus.ASSIGNED_TO_MANAGER, SUPER_ADMIN) == "Assigned"
    assert role_display_label(CanonicalStatus.PENDING, DELIVERY_MANAGER) == "Pending Super Admin Approval"
    assert status_label("assigned_to_manager", DELIVERY_MANAGER) == "Assigned to DP"
    assert status_label("accepted", PARTNER) == "In Transit"


def test_terminal_statuses():
    assert is_terminal(CanonicalStatus.DELIVERED)
    assert is_terminal(CanonicalStatus.CANCELLED)
    assert not is_terminal(CanonicalStatus.AWAITING_STORE_CONFIRMATION)


def test_complaint_status():
    assert normalize_complaint_status("resolved") == ComplaintStatus.RESOLVED
    assert normalize_complaint_status("new") == ComplaintStatus.PENDING
    assert normalize_complaint_status(None) == ComplaintStatus.UNKNOWN
