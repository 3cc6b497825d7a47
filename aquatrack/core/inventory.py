"""
BOTTLE / QR INVENTORY TRACKER

Purpose:
- Generate QR-tagged bottle units
- Assign batches of units to a courier, all or nothing
- Summarize the pool and derive empty-bottle aggregates

Requirements:
• A batch containing any unavailable code fails entirely
• Units are tracked only up to courier assignment
• Empty bottles are per-store counters, never unit state
• Ledger is thread-safe

Author: AquaTrack Operations Console
"""

import logging
import threading
import uuid
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from aquatrack.config import MAX_QR_BATCH
from aquatrack.core.errors import ConflictError, ValidationError
from aquatrack.core.models import BottleUnit, Courier, Store
from aquatrack.core.order_builder import coerce_int
from aquatrack.core.reconciliation import parse_count

logger = logging.getLogger(__name__)

QR_PREFIX = "BTL-"


# ==================================================
# GENERATION
# ==================================================

def validate_generation_count(count: Any) -> int:
    number = parse_count(count, "Bottle count")
    if number < 1 or number > MAX_QR_BATCH:
        raise ValidationError(f"Bottle count must be between 1 and {MAX_QR_BATCH}")
    return number


def generate_bottle_units(count: Any) -> List[BottleUnit]:
    """
    Create `count` fresh, unassigned bottle units.

    Each unit gets a new UUID and a QR payload derived from it.
    """
    number = validate_generation_count(count)
    units = []
    for _ in range(number):
        unit_id = str(uuid.uuid4())
        units.append(BottleUnit(uuid=unit_id, qr_code=f"{QR_PREFIX}{unit_id}"))
    return units


# ==================================================
# CLIENT-SIDE BATCH ASSEMBLY
# ==================================================

def validate_assignment_batch(
    qr_codes: Sequence[str],
    courier: Optional[Courier],
    unassigned_pool: Iterable[BottleUnit],
) -> List[str]:
    """
    Assemble an assign-bottles batch from the freshly fetched unassigned pool.

    The backend enforces atomicity; this only refuses batches that are already
    known to be bad.
    """
    if courier is None:
        raise ValidationError("Please select a delivery partner")

    if not courier.is_active:
        raise ConflictError(f"Delivery Partner {courier.name} is not active")

    codes = [str(code).strip() for code in (qr_codes or []) if str(code).strip()]
    if not codes:
        raise ValidationError("Please select at least one bottle to assign")

    if len(set(codes)) != len(codes):
        raise ValidationError("The same bottle was selected more than once")

    available = {unit.qr_code for unit in unassigned_pool if not unit.is_assigned}
    missing = [code for code in codes if code not in available]
    if missing:
        raise ConflictError(
            f"{len(missing)} selected bottle(s) are no longer unassigned: {', '.join(missing[:5])}"
        )

    return codes


# ==================================================
# SUMMARIES
# ==================================================

@dataclass(frozen=True)
class QrSummary:
    total: int = 0
    assigned: int = 0
    unassigned: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QrSummary":
        total = coerce_int(data.get("total_bottles", data.get("total")))
        assigned = coerce_int(data.get("assigned_bottles", data.get("assigned")))
        unassigned = coerce_int(
            data.get("unassigned_bottles", data.get("unassigned")),
            default=max(total - assigned, 0),
        )
        return cls(total=total, assigned=assigned, unassigned=unassigned)

    def to_dict(self) -> Dict[str, int]:
        return {
            "total_bottles": self.total,
            "assigned_bottles": self.assigned,
            "unassigned_bottles": self.unassigned,
        }


def summarize_units(units: Iterable[BottleUnit]) -> QrSummary:
    total = assigned = 0
    for unit in units:
        total += 1
        if unit.is_assigned:
            assigned += 1
    return QrSummary(total=total, assigned=assigned, unassigned=total - assigned)


def total_empty_bottles(stores: Iterable[Store]) -> int:
    return sum(store.empty_bottles for store in stores)


def empty_bottles_by_channel(stores: Iterable[Store]) -> Dict[str, int]:
    totals: Dict[str, int] = {}
    for store in stores:
        totals[store.channel] = totals.get(store.channel, 0) + store.empty_bottles
    return totals


def pending_empty_bottles(stores: Iterable[Store], store_ids: Iterable[str]) -> int:
    """Empties waiting at a partner's own stores."""
    wanted = set(store_ids)
    return sum(store.empty_bottles for store in stores if store.id in wanted)


# ==================================================
# LEDGER
# ==================================================

class BottleInventory:
    """
    In-process bottle ledger keyed by QR code.

    Used by the reference backend. assign() checks the whole batch under the
    lock before touching any unit.
    """

    def __init__(self, units: Iterable[BottleUnit] = ()):
        self._lock = threading.Lock()
        self._units: Dict[str, BottleUnit] = {}
        for unit in units:
            self._units[unit.qr_code] = unit

    def generate(self, count: Any) -> List[BottleUnit]:
        units = generate_bottle_units(count)
        with self._lock:
            for unit in units:
                self._units[unit.qr_code] = unit
        logger.info(f"Generated {len(units)} bottle QR codes")
        return units

    def assign(self, qr_codes: Sequence[str], courier_id: int) -> List[BottleUnit]:
        """
        Assign every code in the batch to the courier or none of them.

        Raises:
            ValidationError: empty batch or duplicate codes
            ConflictError: any code unknown or already assigned
        """
        codes = [str(code) for code in (qr_codes or [])]
        if not codes:
            raise ValidationError("No QR codes supplied")
        if len(set(codes)) != len(codes):
            raise ValidationError("Duplicate QR codes in batch")

        with self._lock:
            unavailable = [
                code for code in codes
                if code not in self._units or self._units[code].is_assigned
            ]
            if unavailable:
                raise ConflictError(
                    f"Bottles not available for assignment: {', '.join(unavailable)}"
                )

            assigned = []
            for code in codes:
                unit = replace(self._units[code], courier_id=courier_id)
                self._units[code] = unit
                assigned.append(unit)

        logger.info(f"Assigned {len(assigned)} bottles to courier {courier_id}")
        return assigned

    def unassigned(self) -> List[BottleUnit]:
        with self._lock:
            return [unit for unit in self._units.values() if not unit.is_assigned]

    def assigned_to(self, courier_id: int) -> List[BottleUnit]:
        with self._lock:
            return [unit for unit in self._units.values() if unit.courier_id == courier_id]

    def summary(self) -> QrSummary:
        with self._lock:
            return summarize_units(list(self._units.values()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._units)
