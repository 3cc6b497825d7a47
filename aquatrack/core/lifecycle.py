# aquatrack/core/lifecycle.py

from typing import Dict, FrozenSet, Optional, Tuple

from aquatrack.core.errors import ConflictError
from aquatrack.core.status import CanonicalStatus as S


class LifecycleError(ConflictError):
    """Raised when an invalid lifecycle transition is attempted."""
    pass


# Virtual state before an order exists
NONE = None


# ==================================================
# EVENTS
# ==================================================
ORDER_CREATED = "ORDER_CREATED"
ORDER_APPROVED = "ORDER_APPROVED"
ORDER_AUTO_ROUTED = "ORDER_AUTO_ROUTED"
MANAGER_ASSIGNED = "MANAGER_ASSIGNED"
COURIER_ASSIGNED = "COURIER_ASSIGNED"
PICKUP_STARTED = "PICKUP_STARTED"
DELIVERY_REPORTED = "DELIVERY_REPORTED"
STORE_CONFIRMED = "STORE_CONFIRMED"
ORDER_CANCELLED = "ORDER_CANCELLED"


# Single source of truth for lifecycle transitions
LIFECYCLE_TRANSITIONS: Dict[Optional[S], FrozenSet[S]] = {
    NONE: frozenset({S.PENDING}),

    S.PENDING: frozenset({S.ACCEPTED, S.ASSIGNED_TO_MANAGER, S.CANCELLED}),
    S.ACCEPTED: frozenset({S.ASSIGNED_TO_MANAGER, S.ASSIGNED_TO_COURIER, S.CANCELLED}),
    S.ASSIGNED_TO_MANAGER: frozenset({S.ASSIGNED_TO_COURIER, S.CANCELLED}),
    S.ASSIGNED_TO_COURIER: frozenset({S.IN_TRANSIT, S.AWAITING_STORE_CONFIRMATION, S.CANCELLED}),
    S.IN_TRANSIT: frozenset({S.AWAITING_STORE_CONFIRMATION, S.CANCELLED}),
    S.AWAITING_STORE_CONFIRMATION: frozenset({S.DELIVERED, S.CANCELLED}),

    # Terminal states
    S.DELIVERED: frozenset(),
    S.RESOLVED: frozenset(),
    S.CANCELLED: frozenset(),

    # Unrecognized backend values accept nothing until refetched
    S.UNKNOWN: frozenset(),
}


# EVENT → (states it may fire from, resulting state)
EVENT_TRANSITIONS: Dict[str, Tuple[FrozenSet[Optional[S]], S]] = {
    ORDER_CREATED: (frozenset({NONE}), S.PENDING),
    ORDER_APPROVED: (frozenset({S.PENDING}), S.ACCEPTED),
    ORDER_AUTO_ROUTED: (frozenset({S.ACCEPTED}), S.ASSIGNED_TO_MANAGER),
    MANAGER_ASSIGNED: (frozenset({S.PENDING, S.ACCEPTED}), S.ASSIGNED_TO_MANAGER),
    COURIER_ASSIGNED: (frozenset({S.ACCEPTED, S.ASSIGNED_TO_MANAGER}), S.ASSIGNED_TO_COURIER),
    PICKUP_STARTED: (frozenset({S.ASSIGNED_TO_COURIER}), S.IN_TRANSIT),
    DELIVERY_REPORTED: (frozenset({S.ASSIGNED_TO_COURIER, S.IN_TRANSIT}), S.AWAITING_STORE_CONFIRMATION),
    STORE_CONFIRMED: (frozenset({S.AWAITING_STORE_CONFIRMATION}), S.DELIVERED),
    ORDER_CANCELLED: (
        frozenset({
            S.PENDING,
            S.ACCEPTED,
            S.ASSIGNED_TO_MANAGER,
            S.ASSIGNED_TO_COURIER,
            S.IN_TRANSIT,
            S.AWAITING_STORE_CONFIRMATION,
        }),
        S.CANCELLED,
    ),
}


def _label(state: Optional[S]) -> str:
    return "NONE" if state is None else state.value


def validate_transition(current_state: Optional[S], next_state: S) -> None:
    """
    Validate whether a lifecycle transition is allowed.

    Raises LifecycleError if invalid.
    """
    if current_state not in LIFECYCLE_TRANSITIONS:
        raise LifecycleError(f"Unknown current state: {current_state}")

    allowed_next_states = LIFECYCLE_TRANSITIONS[current_state]

    if next_state not in allowed_next_states:
        raise LifecycleError(
            f"Invalid transition: {_label(current_state)} → {_label(next_state)}"
        )


def resolve_event(event_type: str, current_state: Optional[S]) -> S:
    """
    Return the state an event leads to from current_state.

    Raises LifecycleError when the event is unknown or cannot fire from
    current_state.
    """
    if event_type not in EVENT_TRANSITIONS:
        raise LifecycleError(f"Unknown event: {event_type}")

    sources, target = EVENT_TRANSITIONS[event_type]

    if current_state not in sources:
        raise LifecycleError(
            f"{event_type} is not allowed while order is {_label(current_state)}"
        )

    validate_transition(current_state, target)
    return target
