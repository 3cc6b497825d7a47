"""
ORDER AGGREGATE BUILDER

Purpose:
- Join a raw order record with its store, channel, manager, courier and partner
- Eager joins only: presenters never fetch per row
- Missing references become explicit sentinels, never None names
- Numeric fields coerced to int, 0 on parse failure

Also maps the other backend records (stores, managers, couriers,
partners, complaints, bottles) into view models.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from aquatrack.core.channels import channel_or_default
from aquatrack.core.models import (
    BottleUnit,
    Complaint,
    Courier,
    Manager,
    Order,
    Partner,
    Store,
    COURIER_PENDING,
    UNASSIGNED,
    UNKNOWN_CITY,
    UNKNOWN_PARTNER,
    UNKNOWN_STORE,
)
from aquatrack.core.status import (
    CanonicalStatus,
    normalize_complaint_status,
    normalize_workflow,
)

logger = logging.getLogger(__name__)

UNKNOWN_MANAGER = "Unknown Manager"
UNKNOWN_COURIER = "Unknown Courier"

# Statuses that imply the courier already reported counts
_REPORTED_STATUSES = {
    CanonicalStatus.AWAITING_STORE_CONFIRMATION,
    CanonicalStatus.DELIVERED,
    CanonicalStatus.RESOLVED,
}


# ==================================================
# PRIMITIVE COERCION
# ==================================================

def coerce_int(value: Any, default: int = 0) -> int:
    """
    Parse a backend number the lenient way.

    Examples:
        >>> coerce_int("20")
        20
        >>> coerce_int("12.0")
        12
        >>> coerce_int(None)
        0
        >>> coerce_int("twenty")
        0
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default

    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return default
        return int(number) if math.isfinite(number) else default

    return default


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    parsed = coerce_int(value, default=-1)
    # 0 is how the backend spells "no manager" on move/unassign
    return parsed if parsed > 0 else None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    ISO-8601 string (with or without trailing Z) or datetime → naive UTC datetime.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Unparseable timestamp {value!r}")
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _nested(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    return value if isinstance(value, Mapping) else {}


def index_by_id(records: Iterable[Any]) -> Dict[Any, Any]:
    """Index view models (anything with .id) by id."""
    return {record.id: record for record in records}


# ==================================================
# ENTITY MAPPERS
# ==================================================

def build_store(raw: Mapping[str, Any], empty_counts: Optional[Mapping[str, int]] = None) -> Store:
    manager = _nested(raw, "assigned_manager")
    manager_id = _optional_int(raw.get("assigned_manager_id")) or _optional_int(manager.get("id"))
    manager_name = (
        manager.get("full_name")
        or raw.get("assigned_manager_name")
        or (UNKNOWN_MANAGER if manager_id else UNASSIGNED)
    )

    store_id = str(raw.get("id", "")).strip()
    empty = coerce_int(raw.get("empty_bottles_count"))
    if empty_counts is not None:
        empty = coerce_int(empty_counts.get(store_id, empty))

    return Store(
        id=store_id,
        name=raw.get("store_name") or raw.get("name") or UNKNOWN_STORE,
        city=raw.get("city") or UNKNOWN_CITY,
        channel=channel_or_default(raw.get("channel")),
        manager_id=manager_id,
        manager_name=manager_name,
        empty_bottles=empty,
        address=raw.get("address") or "",
        latitude=raw.get("latitude"),
        longitude=raw.get("longitude"),
    )


def build_manager(raw: Mapping[str, Any]) -> Manager:
    stores = raw.get("stores") or []
    store_ids = tuple(
        str(s.get("id")) for s in stores if isinstance(s, Mapping) and s.get("id") is not None
    )
    return Manager(
        id=coerce_int(raw.get("id")),
        name=raw.get("full_name") or UNKNOWN_MANAGER,
        email=raw.get("email") or "",
        city=raw.get("city") or UNKNOWN_CITY,
        store_ids=store_ids,
    )


def build_courier(raw: Mapping[str, Any]) -> Courier:
    return Courier(
        id=coerce_int(raw.get("id")),
        name=raw.get("full_name") or UNKNOWN_COURIER,
        email=raw.get("email") or "",
        status=(raw.get("status") or COURIER_PENDING).strip().lower(),
        manager_id=_optional_int(raw.get("assigned_manager_id", raw.get("manager_id"))),
    )


def build_partner(raw: Mapping[str, Any]) -> Partner:
    stores = raw.get("stores") or []
    store_ids = tuple(
        str(s.get("id")) for s in stores if isinstance(s, Mapping) and s.get("id") is not None
    )
    channel = raw.get("channel")
    return Partner(
        id=coerce_int(raw.get("id")),
        name=raw.get("full_name") or UNKNOWN_PARTNER,
        email=raw.get("email") or "",
        channel=channel_or_default(channel) if channel else None,
        store_ids=store_ids,
    )


def build_bottle(raw: Mapping[str, Any]) -> BottleUnit:
    return BottleUnit(
        uuid=str(raw.get("uuid", "")),
        qr_code=str(raw.get("qr_code", "")),
        courier_id=_optional_int(raw.get("delivery_boy_id", raw.get("assigned_to"))),
    )


def build_complaint(raw: Mapping[str, Any]) -> Complaint:
    store = _nested(raw, "store")
    creator = _nested(raw, "created_by")
    creator_role = (creator.get("role") or "").lower()
    return Complaint(
        id=str(raw.get("id")),
        subject=raw.get("subject") or "",
        description=raw.get("description") or "",
        status=normalize_complaint_status(raw.get("status")),
        channel=channel_or_default(store.get("channel") or raw.get("channel")),
        created_at=parse_timestamp(raw.get("created_at")),
        solution=raw.get("solution"),
        store_id=_optional_str(raw.get("store_id") or store.get("id")),
        created_by_id=_optional_int(creator.get("id") or raw.get("created_by_id")),
        created_by_name=creator.get("full_name") or "—",
        raised_by_role="Partner" if creator_role == "partner" else "Delivery Partner",
        assignee_id=_optional_int(raw.get("assigned_to_id")),
        photo_url=raw.get("photo_url"),
    )


# ==================================================
# ORDER AGGREGATE
# ==================================================

def build(
    raw_order: Mapping[str, Any],
    stores_by_id: Mapping[str, Store],
    partners_by_id: Mapping[int, Partner],
    managers_by_id: Mapping[int, Manager],
    couriers_by_id: Optional[Mapping[int, Courier]] = None,
) -> Order:
    """
    Join one raw order with its references.

    The assigned manager is the order's own manager reference when present,
    otherwise the manager of its store (auto-route). The courier name falls back
    to the embedded delivery_person record when no courier map is supplied.
    """
    couriers_by_id = couriers_by_id or {}
    embedded_store = _nested(raw_order, "store")

    # ---------------- STORE ----------------
    store_id = _optional_str(raw_order.get("store_id") or embedded_store.get("id"))
    store = stores_by_id.get(store_id) if store_id else None

    if store is not None:
        store_name, city, channel = store.name, store.city, store.channel
    else:
        store_name, city = UNKNOWN_STORE, UNKNOWN_CITY
        channel = channel_or_default(raw_order.get("channel") or embedded_store.get("channel"))

    # ---------------- MANAGER ----------------
    manager_id = _optional_int(raw_order.get("assigned_manager_id", raw_order.get("manager_id")))
    if manager_id is None and store is not None:
        manager_id = store.manager_id

    if manager_id is None:
        manager_name = UNASSIGNED
    elif manager_id in managers_by_id:
        manager_name = managers_by_id[manager_id].name
    elif store is not None and store.manager_id == manager_id:
        manager_name = store.manager_name
    else:
        manager_name = UNKNOWN_MANAGER

    # ---------------- COURIER ----------------
    courier_id = _optional_int(raw_order.get("delivery_person_id", raw_order.get("courier_id")))
    if courier_id is None:
        courier_name = UNASSIGNED
    elif courier_id in couriers_by_id:
        courier_name = couriers_by_id[courier_id].name
    else:
        courier_name = _nested(raw_order, "delivery_person").get("full_name") or UNKNOWN_COURIER

    # ---------------- PARTNER ----------------
    partner_id = _optional_int(raw_order.get("partner_id"))
    if partner_id is not None and partner_id in partners_by_id:
        partner_name = partners_by_id[partner_id].name
    else:
        partner_name = UNKNOWN_PARTNER

    # ---------------- STATUS & COUNTS ----------------
    raw_status = raw_order.get("status") or ""
    status = normalize_workflow(raw_status)

    bottles = raw_order.get("order_details", raw_order.get("bottles"))
    has_report = (
        raw_order.get("bottles_delivered") is not None
        or raw_order.get("empty_bottles_collected") is not None
        or status in _REPORTED_STATUSES
    )

    return Order(
        id=coerce_int(raw_order.get("id")),
        bottles=coerce_int(bottles),
        status=status,
        raw_status=str(raw_status),
        created_at=parse_timestamp(raw_order.get("created_at")),
        updated_at=parse_timestamp(raw_order.get("updated_at")),
        store_id=store_id,
        store_name=store_name,
        city=city,
        channel=channel,
        manager_id=manager_id,
        manager_name=manager_name,
        courier_id=courier_id,
        courier_name=courier_name,
        partner_id=partner_id,
        partner_name=partner_name,
        bottles_delivered=coerce_int(raw_order.get("bottles_delivered")),
        empty_bottles_collected=coerce_int(raw_order.get("empty_bottles_collected")),
        confirmed_bottles=coerce_int(raw_order.get("confirmed_bottles")),
        confirmed_empty_bottles=coerce_int(raw_order.get("confirmed_empty_bottles")),
        confirmation_remarks=raw_order.get("confirmation_remarks") or "",
        has_courier_report=has_report,
        store_known=store is not None,
    )


def build_orders(
    raw_orders: Optional[Iterable[Mapping[str, Any]]],
    stores_by_id: Mapping[str, Store],
    partners_by_id: Mapping[int, Partner],
    managers_by_id: Mapping[int, Manager],
    couriers_by_id: Optional[Mapping[int, Courier]] = None,
) -> List[Order]:
    """Build every order, newest first."""
    orders = [
        build(raw, stores_by_id, partners_by_id, managers_by_id, couriers_by_id)
        for raw in (raw_orders or [])
        if isinstance(raw, Mapping)
    ]
    orders.sort(key=lambda o: (o.created_at is not None, o.created_at or datetime.min), reverse=True)
    return orders
