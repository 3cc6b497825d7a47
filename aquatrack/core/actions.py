"""
OPERATIONS CONSOLE ACTIONS

Purpose:
- Every mutating dashboard action in one place
- Local validation before any network call
- Backend call, then a report the UI can render

Requirements:
• Never raises past its boundary: every action returns an ActionOutcome
• No optimistic updates: success only asks the caller to refetch
• 401 / missing credential → logout_required
• Backend reason surfaced verbatim
• Every outcome logged

Author: AquaTrack Operations Console
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Sequence

from aquatrack.config import BOTTLE_PRICE
from aquatrack.core import assignment
from aquatrack.core.complaints import validate_resolution, validate_submission
from aquatrack.core.errors import ConflictError, ConsoleError, ValidationError
from aquatrack.core.inventory import validate_assignment_batch, validate_generation_count
from aquatrack.core.models import (
    BottleUnit,
    Complaint,
    Courier,
    Manager,
    Order,
    Store,
    Viewer,
)
from aquatrack.core.reconciliation import MismatchWarning, reconcile
from aquatrack.core.role_guard import (
    AuthorizationError,
    validate_admin_authority,
    APPROVE_COURIER,
    ASSIGN_BOTTLES,
    CREATE_STORE,
    DELETE_CHANNEL_ADMIN,
    DELETE_MANAGER,
    DELETE_PARTNER,
    DELETE_STORE,
    GENERATE_QR,
    LINK_STORES,
    MOVE_COURIER,
    RESOLVE_COMPLAINT,
    SUBMIT_COMPLAINT,
)
from aquatrack.integrations.backend_client import (
    BackendUnavailableError,
    SessionExpiredError,
)

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Failure classes an operator can see."""
    VALIDATION = "VALIDATION"
    AUTHORIZATION = "AUTHORIZATION"
    CONFLICT = "CONFLICT"
    TRANSIENT = "TRANSIENT"


@dataclass(frozen=True)
class ActionOutcome:
    """
    Result of one mutating action.

    Attributes:
        success: Backend confirmed the change
        action: Human name of the action
        message: Notice to show the operator
        error_kind: Failure class, None on success
        logout_required: Session is invalid; drop credentials
        refetch_required: Caller must reload the dashboard snapshot
        mismatch: Set when store counts need explicit acknowledgement
        result: Raw backend response on success
    """
    success: bool
    action: str
    message: str
    error_kind: Optional[ErrorKind] = None
    logout_required: bool = False
    refetch_required: bool = False
    mismatch: Optional[MismatchWarning] = None
    result: Any = None

    @property
    def requires_acknowledgement(self) -> bool:
        return self.mismatch is not None


class OperationsConsole:
    """
    Role-gated mutating actions for one signed-in viewer.

    Args:
        backend: BackendClient or MemoryBackendSession
        viewer: Who is acting
        unit_price: Bottle price used for order totals
    """

    def __init__(self, backend: Any, viewer: Viewer, unit_price: int = BOTTLE_PRICE):
        self.backend = backend
        self.viewer = viewer
        self.unit_price = unit_price

    # --------------------------------------------------
    # Boundary
    # --------------------------------------------------
    def _run(self, action: str, operation: Callable[[], Any], success_message: str) -> ActionOutcome:
        try:
            result = operation()

        except SessionExpiredError as e:
            return self._failure(action, ErrorKind.AUTHORIZATION, str(e), logout_required=True)

        except ValidationError as e:
            return self._failure(action, ErrorKind.VALIDATION, str(e))

        except BackendUnavailableError as e:
            return self._failure(action, ErrorKind.TRANSIENT, str(e))

        except (ConflictError, AuthorizationError) as e:
            return self._failure(action, ErrorKind.CONFLICT, str(e))

        except ConsoleError as e:
            return self._failure(action, ErrorKind.CONFLICT, str(e))

        except Exception:
            logger.exception(f"{action}: unexpected error")
            return self._failure(action, ErrorKind.TRANSIENT, "Unexpected error, please try again")

        if isinstance(result, MismatchWarning):
            logger.info(f"{action}: awaiting mismatch acknowledgement for order #{result.order_id}")
            return ActionOutcome(
                success=False,
                action=action,
                message=result.message,
                mismatch=result,
            )

        logger.info(f"{action}: {success_message}")
        return ActionOutcome(
            success=True,
            action=action,
            message=success_message,
            refetch_required=True,
            result=result,
        )

    def _failure(
        self,
        action: str,
        kind: ErrorKind,
        reason: str,
        logout_required: bool = False,
    ) -> ActionOutcome:
        if kind in (ErrorKind.AUTHORIZATION, ErrorKind.TRANSIENT):
            logger.error(f"{action} failed ({kind.value}): {reason}")
        else:
            logger.warning(f"{action} failed ({kind.value}): {reason}")
        return ActionOutcome(
            success=False,
            action=action,
            message=f"{action} failed: {reason}",
            error_kind=kind,
            logout_required=logout_required,
        )

    @property
    def role(self) -> str:
        return self.viewer.role

    # ==================================================
    # ORDERS
    # ==================================================
    def create_order(self, store_id: Any, bottles: Any) -> ActionOutcome:
        def op():
            payload = assignment.validate_order_creation(self.role, store_id, bottles, self.unit_price)
            return self.backend.create_order(payload)

        return self._run("Place order", op, "Order placed")

    def approve_order(self, order: Order) -> ActionOutcome:
        def op():
            assignment.validate_approval(order, self.role)
            return self.backend.approve_order(order.id)

        return self._run(f"Approve order #{order.id}", op, "Order approved")

    def cancel_order(self, order: Order) -> ActionOutcome:
        def op():
            assignment.validate_cancellation(order, self.role)
            return self.backend.cancel_order(order.id)

        return self._run(f"Cancel order #{order.id}", op, "Order cancelled")

    def assign_manager(
        self,
        order: Order,
        manager_id: Any,
        managers: Iterable[Manager],
        stores: Iterable[Store],
        manual_fallback: bool = False,
    ) -> ActionOutcome:
        """Assign a delivery manager. Does not assign a courier."""
        def op():
            assignment.validate_manager_assignment(
                order,
                manager_id,
                {m.id: m for m in managers},
                {s.id: s for s in stores},
                self.role,
                manual_fallback=manual_fallback,
            )
            return self.backend.assign_manager(order.id, manager_id)

        return self._run(f"Assign manager to order #{order.id}", op, "Delivery Manager assigned")

    def assign_courier(self, order: Order, courier: Optional[Courier]) -> ActionOutcome:
        def op():
            assignment.validate_courier_assignment(order, courier, self.role, self.viewer.user_id)
            return self.backend.assign_courier(order.id, courier.id)

        return self._run(f"Assign courier to order #{order.id}", op, "Delivery Partner assigned")

    def start_pickup(self, order: Order) -> ActionOutcome:
        def op():
            assignment.validate_pickup(order, self.role, self.viewer.user_id)
            return self.backend.start_pickup(order.id)

        return self._run(f"Pick up order #{order.id}", op, "Order in transit")

    def report_delivery(self, order: Order, delivered: Any, empty_collected: Any) -> ActionOutcome:
        def op():
            report = assignment.validate_delivery_report(
                order, self.role, self.viewer.user_id, delivered, empty_collected
            )
            return self.backend.report_delivery(order.id, report)

        return self._run(f"Report delivery for order #{order.id}", op, "Delivery reported")

    def confirm_delivery(
        self,
        order: Order,
        delivered: Any,
        empty: Any,
        remarks: str = "",
        acknowledge_mismatch: bool = False,
    ) -> ActionOutcome:
        """
        Store confirms received/returned counts.

        A mismatch with the courier report comes back as an outcome with
        `mismatch` set and nothing sent; call again with
        acknowledge_mismatch=True to confirm anyway.
        """
        def op():
            result = reconcile(order, delivered, empty, remarks, acknowledge_mismatch)
            if isinstance(result, MismatchWarning):
                return result
            return self.backend.confirm_delivery(order.id, result.to_payload())

        return self._run(f"Confirm delivery for order #{order.id}", op, "Delivery confirmed")

    # ==================================================
    # COURIERS
    # ==================================================
    def approve_courier(self, courier: Courier) -> ActionOutcome:
        def op():
            validate_admin_authority(self.role, APPROVE_COURIER)
            assignment.validate_courier_approval(courier)
            return self.backend.approve_courier(courier.id)

        return self._run(f"Approve {courier.name}", op, "Delivery Partner approved")

    def link_courier(self, courier: Courier, manager_id: Any, managers: Iterable[Manager]) -> ActionOutcome:
        def op():
            validate_admin_authority(self.role, MOVE_COURIER)
            target = _manager_id(manager_id, allow_zero=False)
            assignment.validate_courier_move(courier, target, {m.id: m for m in managers})
            return self.backend.link_courier(courier.id, target)

        return self._run(f"Link {courier.name}", op, "Delivery Partner linked")

    def move_courier(self, courier: Courier, manager_id: Any, managers: Iterable[Manager]) -> ActionOutcome:
        """manager_id 0 unassigns the courier."""
        def op():
            validate_admin_authority(self.role, MOVE_COURIER)
            target = _manager_id(manager_id, allow_zero=True)
            assignment.validate_courier_move(courier, target, {m.id: m for m in managers})
            return self.backend.move_courier(courier.id, target)

        verb = "unassigned" if manager_id in (0, "0") else "reassigned"
        return self._run(f"Move {courier.name}", op, f"Delivery Partner {verb}")

    def delete_courier(self, courier: Courier, orders: Iterable[Order]) -> ActionOutcome:
        def op():
            validate_admin_authority(self.role, MOVE_COURIER)
            assignment.validate_courier_deletion(courier, orders)
            return self.backend.delete_courier(courier.id)

        return self._run(f"Delete {courier.name}", op, "Delivery Partner deleted")

    # ==================================================
    # MANAGERS, PARTNERS, ADMINS
    # ==================================================
    def add_manager_stores(self, manager: Manager, store_ids: Sequence[str], stores: Iterable[Store]) -> ActionOutcome:
        def op():
            validate_admin_authority(self.role, LINK_STORES)
            cleaned = assignment.validate_store_link(manager, store_ids, {s.id: s for s in stores})
            return self.backend.add_manager_stores(manager.id, cleaned)

        return self._run(f"Add stores to {manager.name}", op, "Stores assigned")

    def remove_manager_stores(self, manager: Manager, store_ids: Sequence[str]) -> ActionOutcome:
        def op():
            validate_admin_authority(self.role, LINK_STORES)
            cleaned = assignment.validate_store_unlink(manager, store_ids)
            return self.backend.remove_manager_stores(manager.id, cleaned)

        return self._run(f"Remove stores from {manager.name}", op, "Stores removed")

    def delete_manager(self, manager: Manager, couriers: Iterable[Courier]) -> ActionOutcome:
        def op():
            validate_admin_authority(self.role, DELETE_MANAGER)
            assignment.validate_manager_deletion(manager, couriers)
            return self.backend.delete_manager(manager.id)

        return self._run(f"Delete manager {manager.name}", op, "Manager deleted")

    def delete_partner(self, partner_id: int) -> ActionOutcome:
        def op():
            validate_admin_authority(self.role, DELETE_PARTNER)
            return self.backend.delete_partner(partner_id)

        return self._run(f"Delete partner {partner_id}", op, "Partner deleted")

    def delete_channel_admin(self, admin_id: int) -> ActionOutcome:
        def op():
            validate_admin_authority(self.role, DELETE_CHANNEL_ADMIN)
            return self.backend.delete_channel_admin(admin_id)

        return self._run(f"Delete channel admin {admin_id}", op, "Channel admin deleted")

    # ==================================================
    # STORES
    # ==================================================
    def create_store(
        self,
        store_id: Any,
        name: Any,
        city: Any,
        channel_selection: Optional[str],
        custom_channel: Optional[str],
        existing_stores: Iterable[Store],
        address: str = "",
    ) -> ActionOutcome:
        def op():
            validate_admin_authority(self.role, CREATE_STORE)
            payload = assignment.validate_store_creation(
                store_id,
                name,
                city,
                channel_selection,
                custom_channel,
                [s.id for s in existing_stores],
                address=address,
            )
            return self.backend.create_store({**payload, "channel": str(payload["channel"])})

        return self._run("Create store", op, "Store created")

    def delete_store(self, store: Store, orders: Iterable[Order]) -> ActionOutcome:
        def op():
            validate_admin_authority(self.role, DELETE_STORE)
            assignment.validate_store_deletion(store, orders)
            return self.backend.delete_store(store.id)

        return self._run(f"Delete store {store.id}", op, "Store deleted")

    # ==================================================
    # BOTTLES
    # ==================================================
    def generate_qr(self, count: Any) -> ActionOutcome:
        def op():
            validate_admin_authority(self.role, GENERATE_QR)
            return self.backend.generate_qr(validate_generation_count(count))

        return self._run("Generate QR codes", op, "QR codes generated")

    def assign_bottles(
        self,
        qr_codes: Sequence[str],
        courier: Optional[Courier],
        unassigned_pool: Iterable[BottleUnit],
    ) -> ActionOutcome:
        def op():
            validate_admin_authority(self.role, ASSIGN_BOTTLES)
            codes = validate_assignment_batch(qr_codes, courier, unassigned_pool)
            return self.backend.assign_bottles(codes, courier.id)

        return self._run("Assign bottles", op, "Bottles assigned")

    # ==================================================
    # COMPLAINTS
    # ==================================================
    def submit_complaint(self, subject: Any, description: Any, store_id: Any) -> ActionOutcome:
        def op():
            validate_admin_authority(self.role, SUBMIT_COMPLAINT)
            return self.backend.submit_complaint(validate_submission(subject, description, store_id))

        return self._run("Raise complaint", op, "Complaint submitted")

    def resolve_complaint(self, complaint: Complaint, solution: Any) -> ActionOutcome:
        def op():
            validate_admin_authority(self.role, RESOLVE_COMPLAINT)
            return self.backend.resolve_complaint(complaint.id, validate_resolution(complaint, solution))

        return self._run(f"Resolve complaint #{complaint.id}", op, "Complaint resolved")


def _manager_id(value: Any, allow_zero: bool) -> int:
    try:
        manager_id = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Please select a Delivery Manager") from None
    if manager_id < 0 or (manager_id == 0 and not allow_zero):
        raise ValidationError("Please select a Delivery Manager")
    return manager_id
