import pytest

from aquatrack.core import lifecycle as lc
from aquatrack.core.errors import ConflictError
from aquatrack.core.role_guard import (
    AuthorizationError,
    validate_admin_authority,
    validate_role_authority,
    APPROVE_COURIER,
    RESOLVE_COMPLAINT,
    SUBMIT_COMPLAINT,
)
from aquatrack.core.status import CanonicalStatus as S
from aquatrack.security.roles import (
    SUPER_ADMIN,
    CHANNEL_ADMIN,
    DELIVERY_MANAGER,
    PARTNER,
    COURIER,
    SYSTEM,
)


def test_happy_path_walks_every_state():
    state = lc.NONE
    for event in (
        lc.ORDER_CREATED,
        lc.ORDER_APPROVED,
        lc.ORDER_AUTO_ROUTED,
        lc.COURIER_ASSIGNED,
        lc.PICKUP_STARTED,
        lc.DELIVERY_REPORTED,
        lc.STORE_CONFIRMED,
    ):
        state = lc.resolve_event(event, state)
    assert state == S.DELIVERED


def test_courier_may_report_without_pickup():
    assert lc.resolve_event(lc.DELIVERY_REPORTED, S.ASSIGNED_TO_COURIER) == S.AWAITING_STORE_CONFIRMATION


@pytest.mark.parametrize("state", [S.DELIVERED, S.CANCELLED, S.RESOLVED, S.UNKNOWN])
def test_terminal_states_have_no_exits(state):
    for event in lc.EVENT_TRANSITIONS:
        with pytest.raises(lc.LifecycleError):
            lc.resolve_event(event, state)


def test_cannot_skip_store_confirmation():
    with pytest.raises(lc.LifecycleError):
        lc.validate_transition(S.IN_TRANSIT, S.DELIVERED)


def test_unknown_event_is_rejected():
    with pytest.raises(lc.LifecycleError):
        lc.resolve_event("ORDER_TELEPORTED", S.PENDING)


def test_lifecycle_error_is_a_conflict():
    assert issubclass(lc.LifecycleError, ConflictError)


def test_cancel_allowed_until_delivered():
    for state in (S.PENDING, S.ACCEPTED, S.ASSIGNED_TO_MANAGER, S.ASSIGNED_TO_COURIER,
                  S.IN_TRANSIT, S.AWAITING_STORE_CONFIRMATION):
        assert lc.resolve_event(lc.ORDER_CANCELLED, state) == S.CANCELLED


def test_role_authority():
    validate_role_authority(PARTNER, lc.NONE, lc.ORDER_CREATED)
    validate_role_authority(SUPER_ADMIN, S.PENDING, lc.ORDER_APPROVED)
    validate_role_authority(SYSTEM, S.ACCEPTED, lc.ORDER_AUTO_ROUTED)
    validate_role_authority(DELIVERY_MANAGER, S.ASSIGNED_TO_MANAGER, lc.COURIER_ASSIGNED)
    validate_role_authority(COURIER, S.IN_TRANSIT, lc.DELIVERY_REPORTED)
    validate_role_authority(PARTNER, S.AWAITING_STORE_CONFIRMATION, lc.STORE_CONFIRMED)


@pytest.mark.parametrize("role, state, event", [
    (DELIVERY_MANAGER, S.PENDING, lc.ORDER_APPROVED),
    (PARTNER, S.PENDING, lc.ORDER_APPROVED),
    (COURIER, S.ASSIGNED_TO_COURIER, lc.COURIER_ASSIGNED),
    (SUPER_ADMIN, S.AWAITING_STORE_CONFIRMATION, lc.STORE_CONFIRMED),
    (CHANNEL_ADMIN, S.ACCEPTED, lc.MANAGER_ASSIGNED),
    (SUPER_ADMIN, S.DELIVERED, lc.ORDER_CANCELLED),
])
def test_role_authority_refusals(role, state, event):
    with pytest.raises(AuthorizationError):
        validate_role_authority(role, state, event)


def test_admin_authority():
    validate_admin_authority(SUPER_ADMIN, APPROVE_COURIER)
    validate_admin_authority(CHANNEL_ADMIN, RESOLVE_COMPLAINT)
    validate_admin_authority(COURIER, SUBMIT_COMPLAINT)
    with pytest.raises(AuthorizationError):
        validate_admin_authority(DELIVERY_MANAGER, APPROVE_COURIER)
    with pytest.raises(AuthorizationError):
        validate_admin_authority(SUPER_ADMIN, SUBMIT_COMPLAINT)
