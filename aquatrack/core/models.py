"""
CONSOLE VIEW MODELS

Purpose:
- Immutable, fully joined records handed to presenters
- Every field populated; missing references carry explicit sentinels
- Built from backend records by order_builder.py

Rules:
- No IO
- No business logic beyond trivial derived properties
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from aquatrack.core.channels import ChannelTag
from aquatrack.core.status import CanonicalStatus, ComplaintStatus


# ==================================================
# SENTINELS
# ==================================================
UNKNOWN_STORE = "Unknown Store"
UNKNOWN_CITY = "N/A"
UNASSIGNED = "Unassigned"
UNKNOWN_PARTNER = "Unknown Partner"

COURIER_PENDING = "pending"
COURIER_ACTIVE = "active"


@dataclass(frozen=True)
class Store:
    """A delivery point, identified by an externally assigned outlet code."""
    id: str
    name: str
    city: str
    channel: ChannelTag
    manager_id: Optional[int] = None
    manager_name: str = UNASSIGNED
    empty_bottles: int = 0
    address: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_manager(self) -> bool:
        return self.manager_id is not None


@dataclass(frozen=True)
class Manager:
    """Delivery area manager."""
    id: int
    name: str
    email: str = ""
    city: str = UNKNOWN_CITY
    store_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Courier:
    """Delivery partner working in the field."""
    id: int
    name: str
    email: str = ""
    status: str = COURIER_PENDING
    manager_id: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.status == COURIER_ACTIVE


@dataclass(frozen=True)
class Partner:
    """Store point-of-contact who places orders and confirms deliveries."""
    id: int
    name: str
    email: str = ""
    channel: Optional[ChannelTag] = None
    store_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Order:
    """
    Role-agnostic order view model.

    Attributes:
        bottles: Quantity ordered
        status: Workflow status (see status.normalize_workflow)
        bottles_delivered / empty_bottles_collected: Courier-reported counts
        confirmed_bottles / confirmed_empty_bottles: Store-confirmed counts
        has_courier_report: True once the courier has reported counts
        store_known: False when the store reference could not be resolved
    """
    id: int
    bottles: int
    status: CanonicalStatus
    raw_status: str
    created_at: Optional[datetime]
    store_id: Optional[str]
    store_name: str
    city: str
    channel: ChannelTag
    updated_at: Optional[datetime] = None
    manager_id: Optional[int] = None
    manager_name: str = UNASSIGNED
    courier_id: Optional[int] = None
    courier_name: str = UNASSIGNED
    partner_id: Optional[int] = None
    partner_name: str = UNKNOWN_PARTNER
    bottles_delivered: int = 0
    empty_bottles_collected: int = 0
    confirmed_bottles: int = 0
    confirmed_empty_bottles: int = 0
    confirmation_remarks: str = ""
    has_courier_report: bool = False
    store_known: bool = True

    @property
    def is_partner_order(self) -> bool:
        return self.partner_id is not None

    @property
    def has_manager(self) -> bool:
        return self.manager_id is not None

    @property
    def has_courier(self) -> bool:
        return self.courier_id is not None

    def to_row(self) -> Dict[str, Any]:
        """Flat dict for tables and exports."""
        return {
            "order_id": self.id,
            "store_id": self.store_id,
            "store": self.store_name,
            "city": self.city,
            "channel": self.channel,
            "bottles": self.bottles,
            "status": self.status.value,
            "created_at": self.created_at,
            "manager": self.manager_name,
            "courier": self.courier_name,
            "partner": self.partner_name,
            "bottles_delivered": self.bottles_delivered,
            "empty_bottles_collected": self.empty_bottles_collected,
            "confirmed_bottles": self.confirmed_bottles,
            "confirmed_empty_bottles": self.confirmed_empty_bottles,
            "remarks": self.confirmation_remarks,
        }


@dataclass(frozen=True)
class BottleUnit:
    """A physically tagged bottle, tracked through generation and courier assignment."""
    uuid: str
    qr_code: str
    courier_id: Optional[int] = None

    @property
    def is_assigned(self) -> bool:
        return self.courier_id is not None


@dataclass(frozen=True)
class Complaint:
    id: str
    subject: str
    description: str
    status: ComplaintStatus
    channel: ChannelTag
    created_at: Optional[datetime] = None
    solution: Optional[str] = None
    store_id: Optional[str] = None
    created_by_id: Optional[int] = None
    created_by_name: str = "—"
    raised_by_role: str = ""
    assignee_id: Optional[int] = None
    photo_url: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.status == ComplaintStatus.RESOLVED


@dataclass(frozen=True)
class Viewer:
    """
    Who is looking at the console.

    Only the fields relevant to the role are populated:
    channel for channel admins, user_id for managers/couriers/partners,
    store_ids for partners.
    """
    role: str
    user_id: Optional[int] = None
    channel: Optional[ChannelTag] = None
    store_ids: Tuple[str, ...] = field(default_factory=tuple)
    name: str = ""
