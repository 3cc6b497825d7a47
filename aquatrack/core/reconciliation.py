"""
DELIVERY CONFIRMATION RECONCILER

Purpose:
- Compare store-confirmed bottle counts with courier-reported counts
- Surface a mismatch that the store operator must explicitly acknowledge
- Store-confirmed values become the canonical record

Requirements:
• Pure, no IO; calling twice with the same input gives the same result
• Non-integer or negative counts are rejected outright
• Never silently accepts a mismatch, never silently rejects one
• Remarks are kept verbatim

Author: AquaTrack Operations Console
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Tuple, Union

from aquatrack.core.errors import ConflictError, ValidationError
from aquatrack.core.models import Order
from aquatrack.core.status import CanonicalStatus


# ==================================================
# COUNT PARSING
# ==================================================

def parse_count(value: Any, field_name: str) -> int:
    """
    Parse an operator-entered bottle count.

    Accepts ints, integral floats and strings holding either. Anything else,
    or anything negative, raises ValidationError.

    Examples:
        >>> parse_count("20", "delivered")
        20
        >>> parse_count(8.0, "delivered")
        8
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} is required")

    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValidationError(f"{field_name} must be a whole number")
        number = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValidationError(f"{field_name} is required")
        try:
            number = int(text)
        except ValueError:
            try:
                as_float = float(text)
            except ValueError:
                raise ValidationError(f"{field_name} must be a whole number") from None
            if not math.isfinite(as_float) or not as_float.is_integer():
                raise ValidationError(f"{field_name} must be a whole number")
            number = int(as_float)
    else:
        raise ValidationError(f"{field_name} must be a whole number")

    if number < 0:
        raise ValidationError(f"{field_name} cannot be negative")

    return number


# ==================================================
# RESULTS
# ==================================================

@dataclass(frozen=True)
class ConfirmedOrder:
    """Reconciliation accepted: the order may move to Delivered."""
    order_id: int
    confirmed_bottles: int
    confirmed_empty_bottles: int
    remarks: str
    mismatch_acknowledged: bool = False
    status: CanonicalStatus = CanonicalStatus.DELIVERED

    def to_payload(self) -> Dict[str, Any]:
        """Body for the confirm-delivery call."""
        return {
            "confirmed_bottles": self.confirmed_bottles,
            "confirmed_empty_bottles": self.confirmed_empty_bottles,
            "confirmation_remarks": self.remarks,
        }


@dataclass(frozen=True)
class CountDiscrepancy:
    field: str
    reported: int
    confirmed: int

    @property
    def delta(self) -> int:
        return self.confirmed - self.reported

    def describe(self) -> str:
        return f"{self.field}: courier reported {self.reported}, store confirms {self.confirmed}"


@dataclass(frozen=True)
class MismatchWarning:
    """
    Store counts differ from the courier report.

    Nothing is confirmed until acknowledge() is called. The order stays
    in AwaitingStoreConfirmation meanwhile.
    """
    order_id: int
    confirmed_bottles: int
    confirmed_empty_bottles: int
    remarks: str
    discrepancies: Tuple[CountDiscrepancy, ...]

    requires_acknowledgement = True

    @property
    def message(self) -> str:
        details = "; ".join(d.describe() for d in self.discrepancies)
        return f"Counts do not match the courier report for order #{self.order_id} ({details}). Confirm anyway?"

    def acknowledge(self) -> ConfirmedOrder:
        return ConfirmedOrder(
            order_id=self.order_id,
            confirmed_bottles=self.confirmed_bottles,
            confirmed_empty_bottles=self.confirmed_empty_bottles,
            remarks=self.remarks,
            mismatch_acknowledged=True,
        )


ReconcileResult = Union[ConfirmedOrder, MismatchWarning]


# ==================================================
# RECONCILE
# ==================================================

def reconcile(
    order: Order,
    store_reported_delivered: Any,
    store_reported_empty: Any,
    remarks: str = "",
    acknowledge_mismatch: bool = False,
) -> ReconcileResult:
    """
    Reconcile store-confirmed counts against the courier report.

    Args:
        order: Order awaiting store confirmation
        store_reported_delivered: Bottles the store received
        store_reported_empty: Empty bottles the store handed back
        remarks: Free text, attached verbatim
        acknowledge_mismatch: Operator already accepted the discrepancy

    Returns:
        ConfirmedOrder when counts match or the mismatch is acknowledged,
        otherwise MismatchWarning.

    Raises:
        ValidationError: counts missing, non-integer or negative
        ConflictError: order is not awaiting confirmation or has no courier report
    """
    delivered = parse_count(store_reported_delivered, "Delivered bottles")
    empty = parse_count(store_reported_empty, "Empty bottles")

    if order.status != CanonicalStatus.AWAITING_STORE_CONFIRMATION:
        raise ConflictError(
            f"Order #{order.id} is {order.status.value}, not awaiting store confirmation"
        )

    if not order.has_courier_report:
        raise ConflictError(f"Order #{order.id} has no courier delivery report yet")

    remarks = remarks if isinstance(remarks, str) else ""

    discrepancies = tuple(
        CountDiscrepancy(field=name, reported=reported, confirmed=confirmed)
        for name, reported, confirmed in (
            ("Delivered bottles", order.bottles_delivered, delivered),
            ("Empty bottles", order.empty_bottles_collected, empty),
        )
        if reported != confirmed
    )

    if not discrepancies:
        return ConfirmedOrder(
            order_id=order.id,
            confirmed_bottles=delivered,
            confirmed_empty_bottles=empty,
            remarks=remarks,
        )

    warning = MismatchWarning(
        order_id=order.id,
        confirmed_bottles=delivered,
        confirmed_empty_bottles=empty,
        remarks=remarks,
        discrepancies=discrepancies,
    )

    if acknowledge_mismatch:
        return warning.acknowledge()

    return warning
