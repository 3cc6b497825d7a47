"""
ACCESS GUARD (VISIBILITY DECISION)

This is the SINGLE ENTRYPOINT for channel/store scoping.

Inputs:
- viewer: Viewer (role + identity)
- order / store / complaint view models

Rules:
- SUPER_ADMIN and SYSTEM see everything (cross-channel)
- CHANNEL_ADMIN sees exactly one channel
- DELIVERY_MANAGER sees orders routed to them or to their stores
- PARTNER sees their own stores
- COURIER sees orders assigned to them
- No mutation
- No side effects

Return:
- bool (can_access_*) or filtered list (scope_*)
"""

from typing import Iterable, List, Optional

from aquatrack.core.models import Complaint, Order, Store, Viewer
from aquatrack.security.roles import (
    ROLE_SCOPE_MAP,
    GLOBAL,
    CHANNEL,
    MANAGED_STORES,
    OWN_STORES,
    ASSIGNED_ORDERS,
)


def _scope(viewer: Optional[Viewer]) -> Optional[str]:
    if viewer is None or not isinstance(viewer.role, str):
        return None
    return ROLE_SCOPE_MAP.get(viewer.role)


def can_access_order(viewer: Viewer, order: Order) -> bool:
    """
    Single entrypoint for order visibility decisions.

    Args:
        viewer: Who is looking
        order: Joined order view model

    Returns:
        True if the viewer may see the order
    """
    scope = _scope(viewer)

    # Unknown role, deny access
    if scope is None:
        return False

    if scope == GLOBAL:
        return True

    if scope == CHANNEL:
        return viewer.channel is not None and order.channel == viewer.channel

    if scope == MANAGED_STORES:
        return viewer.user_id is not None and order.manager_id == viewer.user_id

    if scope == OWN_STORES:
        return order.store_id is not None and order.store_id in viewer.store_ids

    if scope == ASSIGNED_ORDERS:
        return viewer.user_id is not None and order.courier_id == viewer.user_id

    return False


def can_access_store(viewer: Viewer, store: Store) -> bool:
    scope = _scope(viewer)

    if scope is None:
        return False
    if scope in (GLOBAL, ASSIGNED_ORDERS):
        # Couriers need store names and addresses for drop-off
        return True
    if scope == CHANNEL:
        return viewer.channel is not None and store.channel == viewer.channel
    if scope == MANAGED_STORES:
        return viewer.user_id is not None and store.manager_id == viewer.user_id
    if scope == OWN_STORES:
        return store.id in viewer.store_ids
    return False


def can_access_complaint(viewer: Viewer, complaint: Complaint) -> bool:
    scope = _scope(viewer)

    if scope is None:
        return False
    if scope == GLOBAL:
        return True
    if scope == CHANNEL:
        return viewer.channel is not None and complaint.channel == viewer.channel
    if scope in (OWN_STORES, ASSIGNED_ORDERS):
        return viewer.user_id is not None and complaint.created_by_id == viewer.user_id
    if scope == MANAGED_STORES:
        return viewer.user_id is not None and complaint.assignee_id == viewer.user_id
    return False


def scope_orders(viewer: Viewer, orders: Iterable[Order]) -> List[Order]:
    return [o for o in orders if can_access_order(viewer, o)]


def scope_stores(viewer: Viewer, stores: Iterable[Store]) -> List[Store]:
    return [s for s in stores if can_access_store(viewer, s)]


def scope_complaints(viewer: Viewer, complaints: Iterable[Complaint]) -> List[Complaint]:
    return [c for c in complaints if can_access_complaint(viewer, c)]
