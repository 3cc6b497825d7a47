# aquatrack/core/read_model.py

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from aquatrack.core.assignment import ActionBuckets, action_buckets, orphaned_orders
from aquatrack.core.errors import ConsoleError
from aquatrack.core.inventory import QrSummary, total_empty_bottles
from aquatrack.core.models import (
    BottleUnit,
    Complaint,
    Courier,
    Manager,
    Order,
    Partner,
    Store,
    Viewer,
)
from aquatrack.core.order_builder import (
    build_bottle,
    build_complaint,
    build_courier,
    build_manager,
    build_orders,
    build_partner,
    build_store,
    coerce_int,
    index_by_id,
)
from aquatrack.integrations.backend_client import SessionExpiredError
from aquatrack.security.access_guard import scope_complaints, scope_orders, scope_stores
from aquatrack.security.roles import (
    SUPER_ADMIN,
    CHANNEL_ADMIN,
    DELIVERY_MANAGER,
    PARTNER,
    COURIER,
)

logger = logging.getLogger(__name__)


# Sources each dashboard reads. Orders and stores are always fetched.
ROLE_SOURCES = {
    SUPER_ADMIN: {
        "managers", "couriers", "partners", "channel_admins", "complaints",
        "unassigned_bottles", "qr_summary", "store_empty_counts",
    },
    CHANNEL_ADMIN: {"partners", "complaints", "store_empty_counts"},
    DELIVERY_MANAGER: {"couriers", "complaints"},
    PARTNER: {"complaints", "partner_empty_bottles"},
    COURIER: {"complaints"},
}


@dataclass(frozen=True)
class DashboardSnapshot:
    """
    Everything one dashboard renders, fetched in one pass.

    Derived sets (orphans, buckets) are properties so they are always computed
    from the orders and stores held here.
    """
    viewer: Viewer
    orders: List[Order] = field(default_factory=list)
    stores: List[Store] = field(default_factory=list)
    managers: List[Manager] = field(default_factory=list)
    couriers: List[Courier] = field(default_factory=list)
    partners: List[Partner] = field(default_factory=list)
    channel_admins: List[Dict[str, Any]] = field(default_factory=list)
    complaints: List[Complaint] = field(default_factory=list)
    unassigned_bottles: List[BottleUnit] = field(default_factory=list)
    qr_summary: QrSummary = field(default_factory=QrSummary)
    partner_empty_bottles: int = 0
    failed_sources: Tuple[str, ...] = ()
    loaded_at: Optional[datetime] = None

    @property
    def stores_by_id(self) -> Dict[str, Store]:
        return index_by_id(self.stores)

    @property
    def managers_by_id(self) -> Dict[int, Manager]:
        return index_by_id(self.managers)

    @property
    def couriers_by_id(self) -> Dict[int, Courier]:
        return index_by_id(self.couriers)

    @property
    def orphaned(self) -> List[Order]:
        return orphaned_orders(self.orders, self.stores)

    @property
    def buckets(self) -> ActionBuckets:
        return action_buckets(self.orders, self.stores, self.viewer.role)

    @property
    def total_empty_bottles(self) -> int:
        return total_empty_bottles(self.stores)

    @property
    def channels(self) -> List[str]:
        seen = []
        for tag in [s.channel for s in self.stores] + [o.channel for o in self.orders]:
            if tag not in seen:
                seen.append(tag)
        return seen

    def order(self, order_id: int) -> Optional[Order]:
        for o in self.orders:
            if o.id == order_id:
                return o
        return None


def _settled(name: str, call: Callable[[], Any], default: Any, failures: List[str]) -> Any:
    """Run one fetch; a failure degrades that source only. 401 aborts the whole load."""
    try:
        return call()
    except SessionExpiredError:
        raise
    except ConsoleError as e:
        logger.warning(f"Dashboard source '{name}' failed: {e}")
        failures.append(name)
        return default


def load_snapshot(backend: Any, viewer: Viewer) -> DashboardSnapshot:
    """
    Re-fetch every source the viewer's dashboard needs and build view models.

    Raises:
        SessionExpiredError: credential missing or rejected; caller logs out
    """
    sources = ROLE_SOURCES.get(viewer.role, set())
    failures: List[str] = []

    def fetch(name: str, call: Callable[[], Any], default: Any) -> Any:
        if name not in sources:
            return default
        return _settled(name, call, default, failures)

    raw_orders = _settled("orders", backend.list_orders, [], failures)
    raw_stores = _settled("stores", backend.list_stores, [], failures)
    raw_empty = fetch("store_empty_counts", backend.store_empty_counts, None)
    raw_managers = fetch("managers", backend.list_managers, [])
    raw_couriers = fetch("couriers", backend.list_couriers, [])
    raw_partners = fetch("partners", backend.list_partners, [])
    raw_admins = fetch("channel_admins", backend.list_channel_admins, [])
    raw_complaints = fetch("complaints", backend.list_complaints, [])
    raw_bottles = fetch("unassigned_bottles", backend.list_unassigned_bottles, [])
    raw_summary = fetch("qr_summary", backend.bottle_summary, {})
    partner_empties = fetch("partner_empty_bottles", backend.partner_empty_bottles, 0)

    # Empty counts merged onto stores; a store missing from the counts reads as 0
    empty_counts = None
    if raw_empty is not None:
        empty_counts = {
            str(row.get("id")): coerce_int(row.get("empty_bottles_count"))
            for row in raw_empty
            if isinstance(row, dict)
        }
        empty_counts = _default_zero(empty_counts, raw_stores)

    stores = [build_store(raw, empty_counts) for raw in raw_stores if isinstance(raw, dict)]
    managers = [build_manager(raw) for raw in raw_managers if isinstance(raw, dict)]
    couriers = [build_courier(raw) for raw in raw_couriers if isinstance(raw, dict)]
    partners = [build_partner(raw) for raw in raw_partners if isinstance(raw, dict)]

    if viewer.role == PARTNER and not viewer.store_ids:
        viewer = dataclasses.replace(viewer, store_ids=tuple(s.id for s in stores))

    orders = build_orders(
        raw_orders,
        index_by_id(stores),
        index_by_id(partners),
        index_by_id(managers),
        index_by_id(couriers),
    )
    complaints = [build_complaint(raw) for raw in raw_complaints if isinstance(raw, dict)]

    snapshot = DashboardSnapshot(
        viewer=viewer,
        orders=scope_orders(viewer, orders),
        stores=scope_stores(viewer, stores),
        managers=managers,
        couriers=couriers,
        partners=partners,
        channel_admins=[a for a in raw_admins if isinstance(a, dict)],
        complaints=scope_complaints(viewer, complaints),
        unassigned_bottles=[build_bottle(raw) for raw in raw_bottles if isinstance(raw, dict)],
        qr_summary=QrSummary.from_dict(raw_summary if isinstance(raw_summary, dict) else {}),
        partner_empty_bottles=coerce_int(partner_empties),
        failed_sources=tuple(failures),
        loaded_at=datetime.now(),
    )

    logger.info(
        f"Loaded {viewer.role} dashboard: {len(snapshot.orders)} orders, "
        f"{len(snapshot.stores)} stores, {len(failures)} failed source(s)"
    )
    return snapshot


def _default_zero(counts: Dict[str, int], raw_stores: List[Dict[str, Any]]) -> Dict[str, int]:
    merged = {str(raw.get("id")): 0 for raw in raw_stores if isinstance(raw, dict)}
    merged.update(counts)
    return merged
