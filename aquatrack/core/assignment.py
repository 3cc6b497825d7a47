"""
ASSIGNMENT RESOLVER

Purpose:
- Guard every order mutation by lifecycle state and actor role
- Derive the orphaned-order set (store has no manager, not yet delivered)
- Group orders into per-role action buckets
- Guard administrative changes to managers, couriers and stores

Requirements:
• Pure functions over current orders/stores; nothing cached
• Guards raise, they never mutate
• Manager assignment never implies courier assignment

Author: AquaTrack Operations Console
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from aquatrack.core import lifecycle as lc
from aquatrack.core.channels import resolve_channel_selection
from aquatrack.core.errors import ConflictError, ValidationError
from aquatrack.core.models import Courier, Manager, Order, Store, COURIER_PENDING
from aquatrack.core.reconciliation import parse_count
from aquatrack.core.role_guard import (
    AuthorizationError,
    validate_role_authority,
)
from aquatrack.core.status import CanonicalStatus as S
from aquatrack.security.roles import DELIVERY_MANAGER, COURIER, SUPER_ADMIN


# Orders a courier is still physically responsible for
IN_FLIGHT_STATUSES = frozenset({
    S.ASSIGNED_TO_COURIER,
    S.IN_TRANSIT,
    S.AWAITING_STORE_CONFIRMATION,
})


def _guard_event(order_status: Optional[S], event_type: str, role: str) -> S:
    validate_role_authority(role=role, current_state=order_status, event_type=event_type)
    return lc.resolve_event(event_type, order_status)


# ==================================================
# ORPHAN DETECTION
# ==================================================

def is_orphaned(order: Order, stores_by_id: Mapping[str, Store]) -> bool:
    """
    True when the order's store has no manager and the order is not delivered.

    Evaluated against the store record passed in, not the store snapshot the
    order was built from. Orders whose store is unknown are not orphaned.
    """
    store = stores_by_id.get(order.store_id) if order.store_id else None
    if store is None:
        return False
    return store.manager_id is None and order.status != S.DELIVERED


def orphaned_orders(orders: Iterable[Order], stores: Iterable[Store]) -> List[Order]:
    """Orders needing manual manager assignment, recomputed on every call."""
    stores_by_id = {store.id: store for store in stores}
    return [order for order in orders if is_orphaned(order, stores_by_id)]


# States a manager can still be assigned from
MANAGER_ASSIGNABLE_STATUSES = lc.EVENT_TRANSITIONS[lc.MANAGER_ASSIGNED][0]


@dataclass(frozen=True)
class OrphanSplit:
    """Orphans a manager can take now vs. orphans that only need their store linked."""
    assignable: List[Order] = field(default_factory=list)
    store_link_needed: List[Order] = field(default_factory=list)

    def stores_to_link(self) -> List[str]:
        seen: List[str] = []
        for order in self.store_link_needed:
            if order.store_id not in seen:
                seen.append(order.store_id)
        return seen


def split_orphans(orders: Iterable[Order], stores: Iterable[Store]) -> OrphanSplit:
    """
    Split active orphans by what the admin can still do about them.

    Orders past routing (courier assigned, in transit, awaiting confirmation)
    cannot take a manager assignment; linking their store clears them instead.
    Cancelled orders are left out.
    """
    assignable, link_needed = [], []
    for order in orphaned_orders(orders, stores):
        if order.status == S.CANCELLED:
            continue
        if order.status in MANAGER_ASSIGNABLE_STATUSES:
            assignable.append(order)
        else:
            link_needed.append(order)
    return OrphanSplit(assignable=assignable, store_link_needed=link_needed)


# ==================================================
# ORDER TRANSITION GUARDS
# ==================================================

def validate_approval(order: Order, role: str) -> S:
    return _guard_event(order.status, lc.ORDER_APPROVED, role)


def validate_cancellation(order: Order, role: str) -> S:
    return _guard_event(order.status, lc.ORDER_CANCELLED, role)


def validate_order_creation(role: str, store_id: Any, bottles: Any, unit_price: int) -> Dict[str, Any]:
    """
    Check a new partner order and return the create-order body.

    Quantity must be a positive whole number; total is bottles x unit price.
    """
    if not isinstance(store_id, str) or not store_id.strip():
        raise ValidationError("Store information is missing")

    quantity = parse_count(bottles, "Bottles")
    if quantity <= 0:
        raise ValidationError("Please enter a valid number of bottles")

    _guard_event(lc.NONE, lc.ORDER_CREATED, role)

    return {
        "store_id": store_id.strip(),
        "order_details": str(quantity),
        "total_amount": quantity * unit_price,
    }


def validate_manager_assignment(
    order: Order,
    manager_id: Any,
    managers_by_id: Mapping[int, Manager],
    stores_by_id: Mapping[str, Store],
    role: str,
    manual_fallback: bool = False,
) -> S:
    """
    Guard for assigning a delivery manager to an order.

    The order's store must not already route to a manager, unless this is the
    manual fallback path. Courier assignment is a separate action.
    """
    if manager_id in (None, "", 0):
        raise ValidationError("Please select a Delivery Manager")

    target = _guard_event(order.status, lc.MANAGER_ASSIGNED, role)

    store = stores_by_id.get(order.store_id) if order.store_id else None
    store_manager_id = store.manager_id if store is not None else None

    # A manager on the order itself, as opposed to one inherited from the store
    if order.has_manager and order.manager_id != store_manager_id:
        raise ConflictError(
            f"Order #{order.id} is already assigned to {order.manager_name}"
        )

    if store is not None and store.has_manager and not manual_fallback:
        raise ConflictError(
            f"Store {store.name} already routes to {store.manager_name}; use the manual fallback to override"
        )

    if manager_id not in managers_by_id:
        raise ConflictError(f"Delivery Manager {manager_id} no longer exists")

    return target


def validate_courier_assignment(
    order: Order,
    courier: Optional[Courier],
    role: str,
    actor_id: Optional[int] = None,
) -> S:
    """
    Guard for handing an order to a courier.

    Managers may only dispatch their own orders to their own couriers.
    """
    if courier is None:
        raise ValidationError("Please select a Delivery Partner")

    target = _guard_event(order.status, lc.COURIER_ASSIGNED, role)

    if order.has_courier:
        raise ConflictError(f"Order #{order.id} already has courier {order.courier_name}")

    if not courier.is_active:
        raise ConflictError(f"Delivery Partner {courier.name} is not active")

    if role == DELIVERY_MANAGER:
        if order.manager_id != actor_id:
            raise AuthorizationError(f"Order #{order.id} is not assigned to you")
        if courier.manager_id != actor_id:
            raise AuthorizationError(f"{courier.name} is not in your team")

    return target


def validate_pickup(order: Order, role: str, actor_id: Optional[int]) -> S:
    target = _guard_event(order.status, lc.PICKUP_STARTED, role)
    _require_own_courier_order(order, role, actor_id)
    return target


def validate_delivery_report(
    order: Order,
    role: str,
    actor_id: Optional[int],
    delivered: Any,
    empty_collected: Any,
) -> Dict[str, int]:
    """Courier reports what was dropped off and collected. Returns the report body."""
    report = {
        "bottles_delivered": parse_count(delivered, "Delivered bottles"),
        "empty_bottles_collected": parse_count(empty_collected, "Empty bottles collected"),
    }
    _guard_event(order.status, lc.DELIVERY_REPORTED, role)
    _require_own_courier_order(order, role, actor_id)
    return report


def _require_own_courier_order(order: Order, role: str, actor_id: Optional[int]) -> None:
    if role == COURIER and order.courier_id != actor_id:
        raise AuthorizationError(f"Order #{order.id} is not assigned to you")


# ==================================================
# ADMINISTRATIVE GUARDS
# ==================================================

def validate_courier_approval(courier: Courier) -> None:
    if courier.status != COURIER_PENDING:
        raise ConflictError(f"{courier.name} is already {courier.status}")


def validate_courier_move(courier: Courier, manager_id: int, managers_by_id: Mapping[int, Manager]) -> None:
    """manager_id 0 unassigns the courier."""
    if manager_id != 0 and manager_id not in managers_by_id:
        raise ConflictError(f"Delivery Manager {manager_id} no longer exists")
    if manager_id != 0 and courier.manager_id == manager_id:
        raise ConflictError(f"{courier.name} already reports to this manager")
    if manager_id == 0 and courier.manager_id is None:
        raise ConflictError(f"{courier.name} is not assigned to any manager")


def validate_courier_deletion(courier: Courier, orders: Iterable[Order]) -> None:
    in_flight = [o.id for o in orders if o.courier_id == courier.id and o.status in IN_FLIGHT_STATUSES]
    if in_flight:
        raise ConflictError(
            f"{courier.name} still holds {len(in_flight)} in-flight order(s): "
            + ", ".join(f"#{oid}" for oid in in_flight)
        )


def validate_manager_deletion(manager: Manager, couriers: Iterable[Courier]) -> None:
    team = [c.name for c in couriers if c.manager_id == manager.id]
    if team:
        raise ConflictError(
            f"Cannot delete {manager.name}: {len(team)} delivery partner(s) still assigned"
        )


def validate_store_link(
    manager: Manager,
    store_ids: Sequence[str],
    stores_by_id: Mapping[str, Store],
) -> List[str]:
    """Stores to add under a manager. A store owned by another manager is a conflict."""
    cleaned = [str(s).strip() for s in store_ids if str(s).strip()]
    if not cleaned:
        raise ValidationError("Please select at least one store to assign")

    for store_id in cleaned:
        store = stores_by_id.get(store_id)
        if store is None:
            raise ConflictError(f"Store {store_id} no longer exists")
        if store.manager_id is not None and store.manager_id != manager.id:
            raise ConflictError(f"Store {store.name} is already managed by {store.manager_name}")

    return cleaned


def validate_store_unlink(manager: Manager, store_ids: Sequence[str]) -> List[str]:
    cleaned = [str(s).strip() for s in store_ids if str(s).strip()]
    if not cleaned:
        raise ValidationError("Please select at least one store to remove")
    foreign = [s for s in cleaned if s not in manager.store_ids]
    if foreign:
        raise ConflictError(f"{manager.name} does not manage: {', '.join(foreign)}")
    return cleaned


def validate_store_creation(
    store_id: Any,
    name: Any,
    city: Any,
    channel_selection: Optional[str],
    custom_channel: Optional[str],
    existing_ids: Iterable[str],
    address: str = "",
) -> Dict[str, Any]:
    """Check a new store and return the create-store body."""
    fields = {
        "id": store_id.strip() if isinstance(store_id, str) else "",
        "store_name": name.strip() if isinstance(name, str) else "",
        "city": city.strip() if isinstance(city, str) else "",
    }
    if not all(fields.values()):
        raise ValidationError("Store ID, name and city are required")

    if fields["id"] in set(existing_ids):
        raise ConflictError(f"Store {fields['id']} already exists")

    return {
        **fields,
        "channel": resolve_channel_selection(channel_selection, custom_channel),
        "address": (address or "").strip(),
    }


def validate_store_deletion(store: Store, orders: Iterable[Order]) -> None:
    dependent = sum(1 for o in orders if o.store_id == store.id)
    if dependent:
        raise ConflictError(f"Store {store.name} still has {dependent} order(s)")


# ==================================================
# ACTION BUCKETS
# ==================================================

@dataclass(frozen=True)
class ActionBuckets:
    """Orders grouped by the next action they are waiting on."""
    awaiting_approval: List[Order] = field(default_factory=list)
    orphaned: List[Order] = field(default_factory=list)
    ready_for_courier: List[Order] = field(default_factory=list)
    in_flight: List[Order] = field(default_factory=list)
    awaiting_store_confirmation: List[Order] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        return {
            "awaiting_approval": len(self.awaiting_approval),
            "orphaned": len(self.orphaned),
            "ready_for_courier": len(self.ready_for_courier),
            "in_flight": len(self.in_flight),
            "awaiting_store_confirmation": len(self.awaiting_store_confirmation),
        }


def action_buckets(orders: Sequence[Order], stores: Iterable[Store], role: str = SUPER_ADMIN) -> ActionBuckets:
    stores_by_id = {store.id: store for store in stores}

    orphaned = [o for o in orders if is_orphaned(o, stores_by_id)]

    ready = [
        o for o in orders
        if o.status in (S.ACCEPTED, S.ASSIGNED_TO_MANAGER)
        and not o.has_courier
        and not is_orphaned(o, stores_by_id)
    ]
    if role == DELIVERY_MANAGER:
        ready = [o for o in ready if o.has_manager]

    return ActionBuckets(
        awaiting_approval=[o for o in orders if o.status == S.PENDING],
        orphaned=orphaned,
        ready_for_courier=ready,
        in_flight=[o for o in orders if o.status in (S.ASSIGNED_TO_COURIER, S.IN_TRANSIT)],
        awaiting_store_confirmation=[o for o in orders if o.status == S.AWAITING_STORE_CONFIRMATION],
    )
