"""
IN-MEMORY REFERENCE BACKEND

Purpose:
- Same contract as BackendClient, served from process memory
- Demo mode for the Streamlit console and the test-suite backend
- Enforces lifecycle, role and admin guards server-side

Requirements:
• Thread-safe (single lock around every read and mutation)
• Returns raw backend-shaped dicts, deep-copied
• Rejections surface as BackendRejectedError with an HTTP-like status
• Append-only event journal of every order transition
• Bottle batch assignment is all-or-nothing

Author: AquaTrack Operations Console
Phase: Backend integration
"""

import copy
import itertools
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from aquatrack.core import assignment
from aquatrack.core import lifecycle as lc
from aquatrack.core.complaints import validate_resolution, validate_submission
from aquatrack.core.errors import ConflictError, ValidationError
from aquatrack.core.inventory import BottleInventory
from aquatrack.core.models import Viewer, COURIER_ACTIVE, COURIER_PENDING
from aquatrack.core.order_builder import (
    build,
    build_complaint,
    build_courier,
    build_manager,
    build_partner,
    build_store,
    coerce_int,
)
from aquatrack.core.reconciliation import parse_count
from aquatrack.core.role_guard import AuthorizationError, validate_role_authority
from aquatrack.core.status import CanonicalStatus as S, normalize_workflow
from aquatrack.integrations.backend_client import (
    BackendRejectedError,
    SessionExpiredError,
)
from aquatrack.security.roles import (
    SUPER_ADMIN,
    CHANNEL_ADMIN,
    DELIVERY_MANAGER,
    PARTNER,
    COURIER,
    SYSTEM,
)

logger = logging.getLogger(__name__)


# Canonical status → raw backend vocabulary
RAW_STATUS = {
    S.PENDING: "pending",
    S.ACCEPTED: "accepted",
    S.ASSIGNED_TO_MANAGER: "assigned_to_manager",
    S.ASSIGNED_TO_COURIER: "assigned_to_courier",
    S.IN_TRANSIT: "in_transit",
    S.AWAITING_STORE_CONFIRMATION: "delivered_pending_confirmation",
    S.DELIVERED: "delivered",
    S.CANCELLED: "cancelled",
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require_role(viewer: Viewer, *roles: str) -> None:
    if viewer.role not in roles:
        raise AuthorizationError(f"Role '{viewer.role}' cannot call this endpoint")


@contextmanager
def _rejecting():
    """Turn guard failures into backend rejections."""
    try:
        yield
    except BackendRejectedError:
        raise
    except ValidationError as e:
        raise BackendRejectedError(400, str(e)) from e
    except AuthorizationError as e:
        raise BackendRejectedError(403, str(e)) from e
    except ConflictError as e:
        raise BackendRejectedError(409, str(e)) from e


class InMemoryBackend:
    """
    Shared in-process data store.

    Every public method takes the calling Viewer first; use session(viewer)
    to get an object with the BackendClient method signatures.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._ids = itertools.count(1000)

        self.stores: Dict[str, Dict[str, Any]] = {}
        self.managers: Dict[int, Dict[str, Any]] = {}
        self.couriers: Dict[int, Dict[str, Any]] = {}
        self.partners: Dict[int, Dict[str, Any]] = {}
        self.channel_admins: Dict[int, Dict[str, Any]] = {}
        self.orders: Dict[int, Dict[str, Any]] = {}
        self.complaints: Dict[str, Dict[str, Any]] = {}
        self.inventory = BottleInventory()
        self.events: List[Dict[str, Any]] = []

    def session(self, viewer: Optional[Viewer]) -> "MemoryBackendSession":
        return MemoryBackendSession(self, viewer)

    def next_id(self) -> int:
        return next(self._ids)

    # --------------------------------------------------
    # Internal helpers (caller holds the lock)
    # --------------------------------------------------
    def _get(self, table: Dict[Any, Dict[str, Any]], key: Any, label: str) -> Dict[str, Any]:
        if key not in table:
            raise BackendRejectedError(404, f"{label} {key} not found")
        return table[key]

    def _stores_by_id(self):
        return {sid: build_store(raw) for sid, raw in self.stores.items()}

    def _managers_by_id(self):
        return {mid: build_manager(self._manager_raw(mid)) for mid in self.managers}

    def _couriers_by_id(self):
        return {cid: build_courier(raw) for cid, raw in self.couriers.items()}

    def _partners_by_id(self):
        return {pid: build_partner(raw) for pid, raw in self.partners.items()}

    def _manager_raw(self, manager_id: int) -> Dict[str, Any]:
        raw = dict(self.managers[manager_id])
        raw["stores"] = [
            {"id": sid, "store_name": s["store_name"]}
            for sid, s in self.stores.items()
            if s.get("assigned_manager_id") == manager_id
        ]
        return raw

    def _store_raw(self, store_id: str) -> Dict[str, Any]:
        raw = dict(self.stores[store_id])
        manager_id = raw.get("assigned_manager_id")
        if manager_id in self.managers:
            raw["assigned_manager"] = {
                "id": manager_id,
                "full_name": self.managers[manager_id]["full_name"],
            }
        return raw

    def _order_model(self, order_id: int):
        raw = self._get(self.orders, order_id, "Order")
        return build(
            raw,
            self._stores_by_id(),
            self._partners_by_id(),
            self._managers_by_id(),
            self._couriers_by_id(),
        )

    def _transition(self, order_id: int, event_type: str, role: str, **changes) -> Dict[str, Any]:
        raw = self.orders[order_id]
        current = normalize_workflow(raw["status"])

        validate_role_authority(role=role, current_state=current, event_type=event_type)
        target = lc.resolve_event(event_type, current)

        raw.update(changes)
        raw["status"] = RAW_STATUS[target]
        raw["updated_at"] = _now_iso()

        self.events.append({
            "event_id": len(self.events) + 1,
            "event_type": event_type,
            "order_id": order_id,
            "role": role,
            "previous_state": current.value,
            "new_state": target.value,
            "timestamp": raw["updated_at"],
            "metadata": dict(changes),
        })
        logger.info(f"Order #{order_id}: {current.value} → {target.value} ({event_type} by {role})")
        return raw

    # ==================================================
    # READS
    # ==================================================
    def list_orders(self, viewer: Viewer) -> List[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(list(self.orders.values()))

    def list_stores(self, viewer: Viewer) -> List[Dict[str, Any]]:
        with self._lock:
            store_ids = list(self.stores)
            if viewer.role == PARTNER:
                partner = self.partners.get(viewer.user_id) or {}
                own = {s["id"] for s in partner.get("stores", [])}
                store_ids = [sid for sid in store_ids if sid in own]
            return [copy.deepcopy(self._store_raw(sid)) for sid in store_ids]

    def list_managers(self, viewer: Viewer) -> List[Dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(self._manager_raw(mid)) for mid in self.managers]

    def list_couriers(self, viewer: Viewer) -> List[Dict[str, Any]]:
        with self._lock:
            couriers = list(self.couriers.values())
            if viewer.role == DELIVERY_MANAGER:
                couriers = [c for c in couriers if c.get("assigned_manager_id") == viewer.user_id]
            return copy.deepcopy(couriers)

    def list_partners(self, viewer: Viewer) -> List[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(list(self.partners.values()))

    def list_channel_admins(self, viewer: Viewer) -> List[Dict[str, Any]]:
        with self._lock:
            _require_role_or_reject(viewer, SUPER_ADMIN)
            return copy.deepcopy(list(self.channel_admins.values()))

    def list_complaints(self, viewer: Viewer) -> List[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(list(self.complaints.values()))

    def list_unassigned_bottles(self, viewer: Viewer) -> List[Dict[str, Any]]:
        return [
            {"uuid": unit.uuid, "qr_code": unit.qr_code}
            for unit in self.inventory.unassigned()
        ]

    def bottle_summary(self, viewer: Viewer) -> Dict[str, Any]:
        return self.inventory.summary().to_dict()

    def store_empty_counts(self, viewer: Viewer) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                {"id": sid, "empty_bottles_count": s.get("empty_bottles_count", 0)}
                for sid, s in self.stores.items()
            ]

    def partner_empty_bottles(self, viewer: Viewer) -> int:
        with self._lock:
            partner = self.partners.get(viewer.user_id) or {}
            store_ids = {s["id"] for s in partner.get("stores", [])}
            return sum(
                coerce_int(s.get("empty_bottles_count"))
                for sid, s in self.stores.items()
                if sid in store_ids
            )

    # ==================================================
    # ORDER MUTATIONS
    # ==================================================
    def create_order(self, viewer: Viewer, payload: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock, _rejecting():
            validate_role_authority(viewer.role, lc.NONE, lc.ORDER_CREATED)
            lc.resolve_event(lc.ORDER_CREATED, lc.NONE)

            store_id = str(payload.get("store_id", ""))
            self._get(self.stores, store_id, "Store")
            partner = self._get(self.partners, viewer.user_id, "Partner")
            if store_id not in {s["id"] for s in partner.get("stores", [])}:
                raise AuthorizationError(f"Store {store_id} does not belong to you")

            bottles = parse_count(payload.get("order_details"), "Bottles")
            if bottles <= 0:
                raise ValidationError("Bottles must be a positive number")

            order_id = self.next_id()
            now = _now_iso()
            self.orders[order_id] = {
                "id": order_id,
                "order_details": str(bottles),
                "total_amount": payload.get("total_amount"),
                "status": RAW_STATUS[S.PENDING],
                "created_at": now,
                "updated_at": now,
                "store_id": store_id,
                "partner_id": viewer.user_id,
                "assigned_manager_id": None,
                "delivery_person_id": None,
            }
            self.events.append({
                "event_id": len(self.events) + 1,
                "event_type": lc.ORDER_CREATED,
                "order_id": order_id,
                "role": viewer.role,
                "previous_state": None,
                "new_state": S.PENDING.value,
                "timestamp": now,
                "metadata": {"bottles": bottles},
            })
            logger.info(f"Order #{order_id} created for store {store_id} ({bottles} bottles)")
            return copy.deepcopy(self.orders[order_id])

    def approve_order(self, viewer: Viewer, order_id: int) -> Dict[str, Any]:
        with self._lock, _rejecting():
            order = self._order_model(order_id)
            assignment.validate_approval(order, viewer.role)
            self._transition(order_id, lc.ORDER_APPROVED, viewer.role)

            # Auto-route to the store's manager when there is one
            store = self.stores.get(order.store_id or "")
            manager_id = store.get("assigned_manager_id") if store else None
            if manager_id in self.managers:
                self._transition(order_id, lc.ORDER_AUTO_ROUTED, SYSTEM, assigned_manager_id=manager_id)
            else:
                logger.warning(f"Order #{order_id} approved but store has no manager; needs manual assignment")
            return copy.deepcopy(self.orders[order_id])

    def cancel_order(self, viewer: Viewer, order_id: int) -> Dict[str, Any]:
        with self._lock, _rejecting():
            order = self._order_model(order_id)
            assignment.validate_cancellation(order, viewer.role)
            self._transition(order_id, lc.ORDER_CANCELLED, viewer.role)
            return copy.deepcopy(self.orders[order_id])

    def assign_manager(self, viewer: Viewer, order_id: int, manager_id: int) -> Dict[str, Any]:
        with self._lock, _rejecting():
            order = self._order_model(order_id)
            stores_by_id = self._stores_by_id()
            assignment.validate_manager_assignment(
                order,
                manager_id,
                self._managers_by_id(),
                stores_by_id,
                viewer.role,
                manual_fallback=True,
            )
            self._transition(order_id, lc.MANAGER_ASSIGNED, viewer.role, assigned_manager_id=manager_id)

            # Adopt the manager onto an unmanaged store so later orders auto-route
            store = self.stores.get(order.store_id or "")
            if store is not None and store.get("assigned_manager_id") is None:
                store["assigned_manager_id"] = manager_id
                logger.info(f"Store {order.store_id} adopted by manager {manager_id}")

            return copy.deepcopy(self.orders[order_id])

    def assign_courier(self, viewer: Viewer, order_id: int, courier_id: int) -> Dict[str, Any]:
        with self._lock, _rejecting():
            order = self._order_model(order_id)
            courier_raw = self._get(self.couriers, courier_id, "Delivery partner")
            assignment.validate_courier_assignment(
                order,
                build_courier(courier_raw),
                viewer.role,
                actor_id=viewer.user_id,
            )
            self._transition(order_id, lc.COURIER_ASSIGNED, viewer.role, delivery_person_id=courier_id)
            return copy.deepcopy(self.orders[order_id])

    def start_pickup(self, viewer: Viewer, order_id: int) -> Dict[str, Any]:
        with self._lock, _rejecting():
            order = self._order_model(order_id)
            assignment.validate_pickup(order, viewer.role, viewer.user_id)
            self._transition(order_id, lc.PICKUP_STARTED, viewer.role)
            return copy.deepcopy(self.orders[order_id])

    def report_delivery(self, viewer: Viewer, order_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock, _rejecting():
            order = self._order_model(order_id)
            report = assignment.validate_delivery_report(
                order,
                viewer.role,
                viewer.user_id,
                payload.get("bottles_delivered"),
                payload.get("empty_bottles_collected"),
            )
            self._transition(order_id, lc.DELIVERY_REPORTED, viewer.role, **report)
            return copy.deepcopy(self.orders[order_id])

    def confirm_delivery(self, viewer: Viewer, order_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock, _rejecting():
            _require_role(viewer, PARTNER)
            order = self._order_model(order_id)
            partner = self._get(self.partners, viewer.user_id, "Partner")
            if order.store_id not in {s["id"] for s in partner.get("stores", [])}:
                raise AuthorizationError(f"Order #{order_id} is not for one of your stores")
            if not order.has_courier_report:
                raise ConflictError(f"Order #{order_id} has no courier delivery report yet")

            confirmed = parse_count(payload.get("confirmed_bottles"), "Confirmed bottles")
            confirmed_empty = parse_count(payload.get("confirmed_empty_bottles"), "Confirmed empty bottles")
            remarks = payload.get("confirmation_remarks") or ""

            self._transition(
                order_id,
                lc.STORE_CONFIRMED,
                viewer.role,
                confirmed_bottles=confirmed,
                confirmed_empty_bottles=confirmed_empty,
                confirmation_remarks=remarks,
            )

            # Full bottles left behind become the store's future empties
            store = self.stores.get(order.store_id or "")
            if store is not None:
                store["empty_bottles_count"] = max(
                    coerce_int(store.get("empty_bottles_count")) + confirmed - confirmed_empty, 0
                )
            return copy.deepcopy(self.orders[order_id])

    # ==================================================
    # ADMINISTRATION
    # ==================================================
    def approve_courier(self, viewer: Viewer, courier_id: int) -> Dict[str, Any]:
        with self._lock, _rejecting():
            _require_role(viewer, SUPER_ADMIN)
            raw = self._get(self.couriers, courier_id, "Delivery partner")
            assignment.validate_courier_approval(build_courier(raw))
            raw["status"] = COURIER_ACTIVE
            logger.info(f"Delivery partner {courier_id} approved")
            return copy.deepcopy(raw)

    def link_courier(self, viewer: Viewer, courier_id: int, manager_id: int) -> Dict[str, Any]:
        return self.move_courier(viewer, courier_id, manager_id)

    def move_courier(self, viewer: Viewer, courier_id: int, manager_id: int) -> Dict[str, Any]:
        with self._lock, _rejecting():
            _require_role(viewer, SUPER_ADMIN)
            raw = self._get(self.couriers, courier_id, "Delivery partner")
            assignment.validate_courier_move(build_courier(raw), manager_id, self._managers_by_id())
            raw["assigned_manager_id"] = manager_id or None
            return copy.deepcopy(raw)

    def delete_courier(self, viewer: Viewer, courier_id: int) -> None:
        with self._lock, _rejecting():
            _require_role(viewer, SUPER_ADMIN)
            raw = self._get(self.couriers, courier_id, "Delivery partner")
            orders = [self._order_model(oid) for oid in self.orders]
            assignment.validate_courier_deletion(build_courier(raw), orders)
            del self.couriers[courier_id]

    def add_manager_stores(self, viewer: Viewer, manager_id: int, store_ids: Sequence[str]) -> Dict[str, Any]:
        with self._lock, _rejecting():
            _require_role(viewer, SUPER_ADMIN)
            self._get(self.managers, manager_id, "Manager")
            manager = build_manager(self._manager_raw(manager_id))
            for store_id in assignment.validate_store_link(manager, store_ids, self._stores_by_id()):
                self.stores[store_id]["assigned_manager_id"] = manager_id
            return copy.deepcopy(self._manager_raw(manager_id))

    def remove_manager_stores(self, viewer: Viewer, manager_id: int, store_ids: Sequence[str]) -> Dict[str, Any]:
        with self._lock, _rejecting():
            _require_role(viewer, SUPER_ADMIN)
            self._get(self.managers, manager_id, "Manager")
            manager = build_manager(self._manager_raw(manager_id))
            for store_id in assignment.validate_store_unlink(manager, store_ids):
                self.stores[store_id]["assigned_manager_id"] = None
            return copy.deepcopy(self._manager_raw(manager_id))

    def delete_manager(self, viewer: Viewer, manager_id: int) -> None:
        with self._lock, _rejecting():
            _require_role(viewer, SUPER_ADMIN)
            self._get(self.managers, manager_id, "Manager")
            couriers = [build_courier(c) for c in self.couriers.values()]
            assignment.validate_manager_deletion(build_manager(self._manager_raw(manager_id)), couriers)
            for store in self.stores.values():
                if store.get("assigned_manager_id") == manager_id:
                    store["assigned_manager_id"] = None
            del self.managers[manager_id]

    def delete_partner(self, viewer: Viewer, partner_id: int) -> None:
        with self._lock, _rejecting():
            _require_role(viewer, SUPER_ADMIN)
            self._get(self.partners, partner_id, "Partner")
            del self.partners[partner_id]

    def delete_channel_admin(self, viewer: Viewer, admin_id: int) -> None:
        with self._lock, _rejecting():
            _require_role(viewer, SUPER_ADMIN)
            self._get(self.channel_admins, admin_id, "Channel admin")
            del self.channel_admins[admin_id]

    def create_store(self, viewer: Viewer, payload: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock, _rejecting():
            _require_role(viewer, SUPER_ADMIN)
            body = assignment.validate_store_creation(
                payload.get("id"),
                payload.get("store_name"),
                payload.get("city"),
                payload.get("channel"),
                None,
                self.stores.keys(),
                address=payload.get("address") or "",
            )
            self.stores[body["id"]] = {
                **body,
                "channel": str(body["channel"]),
                "assigned_manager_id": None,
                "empty_bottles_count": 0,
            }
            logger.info(f"Store {body['id']} created in channel {body['channel']}")
            return copy.deepcopy(self.stores[body["id"]])

    def delete_store(self, viewer: Viewer, store_id: str) -> None:
        with self._lock, _rejecting():
            _require_role(viewer, SUPER_ADMIN)
            self._get(self.stores, store_id, "Store")
            orders = [self._order_model(oid) for oid in self.orders]
            assignment.validate_store_deletion(build_store(self.stores[store_id]), orders)
            del self.stores[store_id]

    # ==================================================
    # BOTTLES
    # ==================================================
    def generate_qr(self, viewer: Viewer, count: int) -> Dict[str, Any]:
        with _rejecting():
            _require_role(viewer, SUPER_ADMIN)
            units = self.inventory.generate(count)
            return {"message": f"{len(units)} QR codes generated", "count": len(units)}

    def assign_bottles(self, viewer: Viewer, qr_codes: Sequence[str], courier_id: int) -> Dict[str, Any]:
        # Courier must still exist when the batch lands
        with self._lock, _rejecting():
            _require_role(viewer, SUPER_ADMIN)
            courier = build_courier(self._get(self.couriers, courier_id, "Delivery partner"))
            if not courier.is_active:
                raise ConflictError(f"Delivery partner {courier.name} is not active")
            units = self.inventory.assign(qr_codes, courier_id)
            return {"message": f"{len(units)} bottles assigned", "assigned": len(units)}

    # ==================================================
    # COMPLAINTS
    # ==================================================
    def submit_complaint(self, viewer: Viewer, payload: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock, _rejecting():
            _require_role(viewer, PARTNER, COURIER)
            body = validate_submission(
                payload.get("subject"),
                payload.get("description"),
                payload.get("store_id"),
            )
            store = self._get(self.stores, body["store_id"], "Store")
            complaint_id = str(self.next_id())
            self.complaints[complaint_id] = {
                "id": complaint_id,
                **body,
                "status": "pending",
                "created_at": _now_iso(),
                "solution": None,
                "store": {"id": body["store_id"], "channel": store.get("channel")},
                "created_by": {
                    "id": viewer.user_id,
                    "full_name": viewer.name,
                    "role": "partner" if viewer.role == PARTNER else "delivery_partner",
                },
                "assigned_to_id": store.get("assigned_manager_id"),
            }
            return copy.deepcopy(self.complaints[complaint_id])

    def resolve_complaint(self, viewer: Viewer, complaint_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock, _rejecting():
            _require_role(viewer, SUPER_ADMIN, CHANNEL_ADMIN)
            raw = self._get(self.complaints, str(complaint_id), "Complaint")
            complaint = build_complaint(raw)
            if viewer.role == CHANNEL_ADMIN and complaint.channel != viewer.channel:
                raise AuthorizationError(f"Complaint #{complaint_id} is outside your channel")
            body = validate_resolution(complaint, payload.get("solution"))
            raw.update(body)
            return copy.deepcopy(raw)


def _require_role_or_reject(viewer: Viewer, *roles: str) -> None:
    with _rejecting():
        _require_role(viewer, *roles)


class MemoryBackendSession:
    """
    InMemoryBackend bound to one viewer.

    Exposes the BackendClient methods; a missing viewer behaves like a
    missing credential.
    """

    def __init__(self, backend: InMemoryBackend, viewer: Optional[Viewer]):
        self._backend = backend
        self._viewer = viewer
        self.role = viewer.role if viewer else None

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)
        target = getattr(self._backend, name)
        if not callable(target):
            raise AttributeError(name)

        def call(*args, **kwargs):
            if self._viewer is None:
                raise SessionExpiredError("Authentication failed: please log in again")
            return target(self._viewer, *args, **kwargs)

        return call


# ==================================================
# DEMO DATA
# ==================================================

def seed_demo_data(backend: InMemoryBackend, now: Optional[datetime] = None) -> InMemoryBackend:
    """Populate a backend with a small, realistic data set for demo mode."""
    now = now or datetime.now(timezone.utc)

    def ago(days: int, hours: int = 0) -> str:
        return (now - timedelta(days=days, hours=hours)).isoformat()

    with backend._lock:
        backend.managers.update({
            7: {"id": 7, "full_name": "Arjun Rao", "email": "arjun.rao@aquatrack.in", "city": "Bengaluru"},
            8: {"id": 8, "full_name": "Meera Nair", "email": "meera.nair@aquatrack.in", "city": "Pune"},
        })
        backend.stores.update({
            "BLK-001": {"id": "BLK-001", "store_name": "Blinkit Indiranagar", "city": "Bengaluru",
                        "channel": "BLINKIT", "assigned_manager_id": 7, "empty_bottles_count": 14,
                        "address": "100 Feet Rd, Indiranagar", "latitude": 12.9719, "longitude": 77.6412},
            "ZPT-014": {"id": "ZPT-014", "store_name": "Zepto HSR Layout", "city": "Bengaluru",
                        "channel": "ZEPTO", "assigned_manager_id": None, "empty_bottles_count": 6,
                        "address": "27th Main, HSR Layout", "latitude": 12.9116, "longitude": 77.6474},
            "IBM-002": {"id": "IBM-002", "store_name": "IBM Manyata Pantry", "city": "Bengaluru",
                        "channel": "IBM", "assigned_manager_id": 7, "empty_bottles_count": 0,
                        "address": "Manyata Tech Park, Block D", "latitude": 13.0475, "longitude": 77.6208},
            "GEN-100": {"id": "GEN-100", "store_name": "Corner Mart Baner", "city": "Pune",
                        "channel": "GENERAL", "assigned_manager_id": 8, "empty_bottles_count": 9,
                        "address": "Baner Rd, Pune", "latitude": 18.5590, "longitude": 73.7868},
        })
        backend.couriers.update({
            3: {"id": 3, "full_name": "Sanjay Patil", "email": "sanjay.p@aquatrack.in",
                "status": COURIER_ACTIVE, "assigned_manager_id": 7},
            4: {"id": 4, "full_name": "Imran Shaikh", "email": "imran.s@aquatrack.in",
                "status": COURIER_ACTIVE, "assigned_manager_id": 8},
            5: {"id": 5, "full_name": "Kavya Iyer", "email": "kavya.i@aquatrack.in",
                "status": COURIER_PENDING, "assigned_manager_id": None},
        })
        backend.partners.update({
            21: {"id": 21, "full_name": "Blinkit Indiranagar POC", "email": "poc.blk001@blinkit.com",
                 "channel": "BLINKIT", "stores": [{"id": "BLK-001"}]},
            22: {"id": 22, "full_name": "Zepto HSR POC", "email": "poc.zpt014@zepto.com",
                 "channel": "ZEPTO", "stores": [{"id": "ZPT-014"}]},
            23: {"id": 23, "full_name": "Facilities Desk", "email": "facilities@example.com",
                 "channel": "IBM", "stores": [{"id": "IBM-002"}, {"id": "GEN-100"}]},
        })
        backend.channel_admins.update({
            31: {"id": 31, "full_name": "Blinkit Ops", "email": "ops@blinkit.com", "channel": "BLINKIT"},
            32: {"id": 32, "full_name": "Zepto Ops", "email": "ops@zepto.com", "channel": "ZEPTO"},
        })

        def order(oid, store_id, partner_id, bottles, status, created, **extra):
            backend.orders[oid] = {
                "id": oid,
                "order_details": str(bottles),
                "status": status,
                "created_at": created,
                "updated_at": created,
                "store_id": store_id,
                "partner_id": partner_id,
                "assigned_manager_id": None,
                "delivery_person_id": None,
                **extra,
            }

        order(101, "BLK-001", 21, 40, "delivered", ago(62), assigned_manager_id=7, delivery_person_id=3,
              bottles_delivered=40, empty_bottles_collected=35, confirmed_bottles=40,
              confirmed_empty_bottles=35, confirmation_remarks="")
        order(102, "GEN-100", 23, 25, "delivered", ago(33), assigned_manager_id=8, delivery_person_id=4,
              bottles_delivered=25, empty_bottles_collected=20, confirmed_bottles=24,
              confirmed_empty_bottles=20, confirmation_remarks="One bottle cracked")
        order(103, "BLK-001", 21, 30, "delivered_pending_confirmation", ago(2), assigned_manager_id=7,
              delivery_person_id=3, bottles_delivered=30, empty_bottles_collected=28)
        order(104, "IBM-002", 23, 20, "assigned_to_courier", ago(1), assigned_manager_id=7, delivery_person_id=3)
        order(105, "GEN-100", 23, 15, "assigned_to_manager", ago(1, 4), assigned_manager_id=8)
        order(106, "ZPT-014", 22, 50, "accepted", ago(0, 6))
        order(107, "BLK-001", 21, 12, "pending", ago(0, 2))
        order(108, "ZPT-014", 22, 18, "pending", ago(0, 1))
        order(109, "GEN-100", 23, 10, "cancelled", ago(12))

        backend.complaints.update({
            "501": {"id": "501", "subject": "Leaking cans", "description": "Two cans leaked in the last delivery.",
                    "status": "pending", "created_at": ago(3), "solution": None, "store_id": "BLK-001",
                    "store": {"id": "BLK-001", "channel": "BLINKIT"},
                    "created_by": {"id": 21, "full_name": "Blinkit Indiranagar POC", "role": "partner"},
                    "assigned_to_id": 7},
            "502": {"id": "502", "subject": "Late delivery", "description": "Order arrived after store closing.",
                    "status": "resolved", "created_at": ago(20), "solution": "Slot moved to morning route.",
                    "store_id": "GEN-100", "store": {"id": "GEN-100", "channel": "GENERAL"},
                    "created_by": {"id": 4, "full_name": "Imran Shaikh", "role": "delivery_partner"},
                    "assigned_to_id": 8},
        })

    backend.inventory.generate(24)
    return backend


def demo_viewers(backend: InMemoryBackend) -> Dict[str, List[Viewer]]:
    """Sign-in choices per role for demo mode."""
    with backend._lock:
        return {
            SUPER_ADMIN: [Viewer(role=SUPER_ADMIN, user_id=1, name="Super Admin")],
            CHANNEL_ADMIN: [
                Viewer(role=CHANNEL_ADMIN, user_id=aid, channel=raw["channel"], name=raw["full_name"])
                for aid, raw in backend.channel_admins.items()
            ],
            DELIVERY_MANAGER: [
                Viewer(role=DELIVERY_MANAGER, user_id=mid, name=raw["full_name"])
                for mid, raw in backend.managers.items()
            ],
            PARTNER: [
                Viewer(
                    role=PARTNER,
                    user_id=pid,
                    channel=raw.get("channel"),
                    store_ids=tuple(s["id"] for s in raw.get("stores", [])),
                    name=raw["full_name"],
                )
                for pid, raw in backend.partners.items()
            ],
            COURIER: [
                Viewer(role=COURIER, user_id=cid, name=raw["full_name"])
                for cid, raw in backend.couriers.items()
                if raw.get("status") == COURIER_ACTIVE
            ],
        }
