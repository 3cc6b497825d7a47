import threading

from aquatrack.core.actions import ErrorKind, OperationsConsole
from aquatrack.core.assignment import split_orphans
from aquatrack.core.lifecycle import (
    COURIER_ASSIGNED,
    DELIVERY_REPORTED,
    ORDER_APPROVED,
    ORDER_AUTO_ROUTED,
    ORDER_CREATED,
    PICKUP_STARTED,
    STORE_CONFIRMED,
)
from aquatrack.core.models import Viewer
from aquatrack.core.read_model import load_snapshot
from aquatrack.core.status import CanonicalStatus as S
from aquatrack.security.roles import (
    SUPER_ADMIN,
    CHANNEL_ADMIN,
    DELIVERY_MANAGER,
    PARTNER,
    COURIER,
)


def open_console(backend, viewer):
    session = backend.session(viewer)
    return load_snapshot(session, viewer), OperationsConsole(session, viewer, unit_price=42)


def raw_status(backend, order_id):
    return backend.orders[order_id]["status"]


def test_order_travels_the_whole_lifecycle(backend, viewers):
    _, partner = open_console(backend, viewers[PARTNER])
    outcome = partner.create_order("BLK-001", 12)
    assert outcome.success and outcome.refetch_required
    order_id = outcome.result["id"]

    snapshot, admin = open_console(backend, viewers[SUPER_ADMIN])
    assert admin.approve_order(snapshot.order(order_id)).success
    # Store BLK-001 has a manager, so approval routes straight to them
    assert raw_status(backend, order_id) == "assigned_to_manager"

    snapshot, manager = open_console(backend, viewers[DELIVERY_MANAGER])
    courier = snapshot.couriers_by_id[3]
    assert manager.assign_courier(snapshot.order(order_id), courier).success

    snapshot, courier_console = open_console(backend, viewers[COURIER])
    assert courier_console.start_pickup(snapshot.order(order_id)).success
    snapshot, courier_console = open_console(backend, viewers[COURIER])
    assert courier_console.report_delivery(snapshot.order(order_id), 12, 5).success

    snapshot, partner = open_console(backend, viewers[PARTNER])
    order = snapshot.order(order_id)
    assert order.status == S.AWAITING_STORE_CONFIRMATION
    assert partner.confirm_delivery(order, 12, 5, remarks="ok").success

    snapshot, _ = open_console(backend, viewers[SUPER_ADMIN])
    delivered = snapshot.order(order_id)
    assert delivered.status == S.DELIVERED
    assert delivered.confirmed_bottles == 12
    # 14 seeded empties + 12 full bottles left - 5 empties returned
    assert snapshot.stores_by_id["BLK-001"].empty_bottles == 21

    events = [e["event_type"] for e in backend.events if e["order_id"] == order_id]
    assert events == [
        ORDER_CREATED,
        ORDER_APPROVED,
        ORDER_AUTO_ROUTED,
        COURIER_ASSIGNED,
        PICKUP_STARTED,
        DELIVERY_REPORTED,
        STORE_CONFIRMED,
    ]


def test_manual_manager_assignment_clears_orphans(backend, viewers):
    snapshot, admin = open_console(backend, viewers[SUPER_ADMIN])
    assert sorted(o.id for o in snapshot.orphaned) == [106, 108]

    outcome = admin.assign_manager(
        snapshot.order(106), 8, snapshot.managers, snapshot.stores, manual_fallback=True
    )
    assert outcome.success
    assert raw_status(backend, 106) == "assigned_to_manager"
    # Manager assignment never picks a courier
    assert backend.orders[106]["delivery_person_id"] is None

    snapshot, _ = open_console(backend, viewers[SUPER_ADMIN])
    assert snapshot.orphaned == []
    assert snapshot.stores_by_id["ZPT-014"].manager_id == 8


def test_store_mismatch_needs_acknowledgement(backend, viewers):
    snapshot, partner = open_console(backend, viewers[PARTNER])
    order = snapshot.order(103)

    outcome = partner.confirm_delivery(order, 29, 28, remarks="one short")
    assert not outcome.success
    assert outcome.requires_acknowledgement
    assert outcome.error_kind is None
    assert raw_status(backend, 103) == "delivered_pending_confirmation"

    outcome = partner.confirm_delivery(order, 29, 28, remarks="one short", acknowledge_mismatch=True)
    assert outcome.success
    assert raw_status(backend, 103) == "delivered"
    assert backend.orders[103]["confirmed_bottles"] == 29
    assert backend.orders[103]["confirmation_remarks"] == "one short"


def test_invalid_counts_never_reach_the_backend(backend, viewers):
    snapshot, partner = open_console(backend, viewers[PARTNER])
    outcome = partner.confirm_delivery(snapshot.order(103), "2.5", 28)
    assert outcome.error_kind == ErrorKind.VALIDATION
    assert raw_status(backend, 103) == "delivered_pending_confirmation"

    before = len(backend.orders)
    assert partner.create_order("BLK-001", 0).error_kind == ErrorKind.VALIDATION
    assert len(backend.orders) == before


def test_refused_transition_leaves_state_unchanged(backend, viewers):
    snapshot, admin = open_console(backend, viewers[SUPER_ADMIN])
    outcome = admin.approve_order(snapshot.order(106))
    assert outcome.error_kind == ErrorKind.CONFLICT
    assert "Approve order #106 failed" in outcome.message
    assert raw_status(backend, 106) == "accepted"


def test_manager_cannot_dispatch_to_another_team(backend, viewers):
    admin_snapshot, _ = open_console(backend, viewers[SUPER_ADMIN])
    other_courier = admin_snapshot.couriers_by_id[3]

    meera = Viewer(role=DELIVERY_MANAGER, user_id=8, name="Meera Nair")
    snapshot, manager = open_console(backend, meera)
    outcome = manager.assign_courier(snapshot.order(105), other_courier)
    assert outcome.error_kind == ErrorKind.CONFLICT
    assert raw_status(backend, 105) == "assigned_to_manager"


def test_backend_rejection_is_reported_verbatim(backend, viewers):
    # Local checks pass on a stale order; the backend refuses
    snapshot, admin = open_console(backend, viewers[SUPER_ADMIN])
    stale = snapshot.order(107)
    assert admin.approve_order(stale).success

    outcome = admin.approve_order(stale)
    assert outcome.error_kind == ErrorKind.CONFLICT
    assert "not allowed while order is" in outcome.message


def test_bottle_batch_is_all_or_nothing(backend, viewers):
    snapshot, admin = open_console(backend, viewers[SUPER_ADMIN])
    pool = snapshot.unassigned_bottles
    courier = snapshot.couriers_by_id[3]
    codes = [b.qr_code for b in pool[:3]]

    assert admin.assign_bottles(codes[:2], courier, pool).success

    # Stale pool: codes[0] is already taken
    outcome = admin.assign_bottles([codes[2], codes[0]], courier, pool)
    assert outcome.error_kind == ErrorKind.CONFLICT

    snapshot, _ = open_console(backend, viewers[SUPER_ADMIN])
    assert codes[2] in {b.qr_code for b in snapshot.unassigned_bottles}
    assert snapshot.qr_summary.assigned == 2
    assert snapshot.qr_summary.total == 24


def test_generate_qr_grows_inventory(backend, viewers):
    _, admin = open_console(backend, viewers[SUPER_ADMIN])
    assert admin.generate_qr(6).success
    assert len(backend.inventory) == 30
    assert admin.generate_qr(0).error_kind == ErrorKind.VALIDATION


def test_missing_credential_forces_logout(backend, viewers):
    snapshot, _ = open_console(backend, viewers[SUPER_ADMIN])
    console = OperationsConsole(backend.session(None), viewers[SUPER_ADMIN])
    outcome = console.approve_order(snapshot.order(107))
    assert outcome.logout_required
    assert outcome.error_kind == ErrorKind.AUTHORIZATION
    assert raw_status(backend, 107) == "pending"


def test_courier_administration(backend, viewers):
    snapshot, admin = open_console(backend, viewers[SUPER_ADMIN])
    pending = snapshot.couriers_by_id[5]
    assert admin.approve_courier(pending).success
    assert backend.couriers[5]["status"] == "active"

    snapshot, admin = open_console(backend, viewers[SUPER_ADMIN])
    assert admin.link_courier(snapshot.couriers_by_id[5], 8, snapshot.managers).success
    assert backend.couriers[5]["assigned_manager_id"] == 8

    snapshot, admin = open_console(backend, viewers[SUPER_ADMIN])
    assert admin.move_courier(snapshot.couriers_by_id[5], 0, snapshot.managers).success
    assert backend.couriers[5]["assigned_manager_id"] is None

    # Courier 3 still holds order 104
    snapshot, admin = open_console(backend, viewers[SUPER_ADMIN])
    assert admin.delete_courier(snapshot.couriers_by_id[3], snapshot.orders).error_kind == ErrorKind.CONFLICT
    assert admin.delete_courier(snapshot.couriers_by_id[5], snapshot.orders).success
    assert 5 not in backend.couriers


def test_manager_and_store_administration(backend, viewers):
    snapshot, admin = open_console(backend, viewers[SUPER_ADMIN])
    arjun = snapshot.managers_by_id[7]
    assert admin.delete_manager(arjun, snapshot.couriers).error_kind == ErrorKind.CONFLICT

    assert admin.add_manager_stores(arjun, ["ZPT-014"], snapshot.stores).success
    assert backend.stores["ZPT-014"]["assigned_manager_id"] == 7

    snapshot, admin = open_console(backend, viewers[SUPER_ADMIN])
    assert admin.remove_manager_stores(snapshot.managers_by_id[7], ["ZPT-014"]).success
    assert backend.stores["ZPT-014"]["assigned_manager_id"] is None

    outcome = admin.create_store("INS-001", "Instamart Koramangala", "Bengaluru", "CUSTOM", "instamart", snapshot.stores)
    assert outcome.success
    assert backend.stores["INS-001"]["channel"] == "INSTAMART"

    snapshot, admin = open_console(backend, viewers[SUPER_ADMIN])
    assert admin.delete_store(snapshot.stores_by_id["BLK-001"], snapshot.orders).error_kind == ErrorKind.CONFLICT
    assert admin.delete_store(snapshot.stores_by_id["INS-001"], snapshot.orders).success


def test_non_admin_cannot_administer(backend, viewers):
    snapshot, manager = open_console(backend, viewers[DELIVERY_MANAGER])
    outcome = manager.generate_qr(5)
    assert outcome.error_kind == ErrorKind.CONFLICT
    assert len(backend.inventory) == 24


def test_complaints_round_trip(backend, viewers):
    _, partner = open_console(backend, viewers[PARTNER])
    assert partner.submit_complaint("Broken seal", "Seal broken on 3 cans", "BLK-001").success
    assert partner.submit_complaint("", "no subject", "BLK-001").error_kind == ErrorKind.VALIDATION

    snapshot, _ = open_console(backend, viewers[PARTNER])
    assert len(snapshot.complaints) == 2

    zepto = Viewer(role=CHANNEL_ADMIN, user_id=32, channel="ZEPTO", name="Zepto Ops")
    admin_snapshot, _ = open_console(backend, viewers[SUPER_ADMIN])
    complaint = next(c for c in admin_snapshot.complaints if c.id == "501")
    _, zepto_console = open_console(backend, zepto)
    assert zepto_console.resolve_complaint(complaint, "Replaced").error_kind == ErrorKind.CONFLICT

    snapshot, blinkit = open_console(backend, viewers[CHANNEL_ADMIN])
    assert blinkit.resolve_complaint(complaint, "Replaced two cans").success
    assert backend.complaints["501"]["status"] == "resolved"
    assert blinkit.resolve_complaint(complaint, "again").success is False


def test_linking_store_clears_dispatched_orphans(backend, viewers):
    snapshot, admin = open_console(backend, viewers[SUPER_ADMIN])
    assert admin.remove_manager_stores(snapshot.managers_by_id[7], ["BLK-001"]).success

    snapshot, admin = open_console(backend, viewers[SUPER_ADMIN])
    split = split_orphans(snapshot.orders, snapshot.stores)
    assert sorted(o.id for o in split.assignable) == [106, 107, 108]
    # 103 awaits store confirmation; a manager can no longer be assigned to it
    assert [o.id for o in split.store_link_needed] == [103]
    outcome = admin.assign_manager(
        snapshot.order(103), 8, snapshot.managers, snapshot.stores, manual_fallback=True
    )
    assert outcome.error_kind == ErrorKind.CONFLICT

    assert admin.add_manager_stores(snapshot.managers_by_id[8], split.stores_to_link(), snapshot.stores).success
    snapshot, _ = open_console(backend, viewers[SUPER_ADMIN])
    assert sorted(o.id for o in snapshot.orphaned) == [106, 108]
    assert raw_status(backend, 103) == "delivered_pending_confirmation"


def test_courier_cannot_be_deleted_mid_assignment(backend, viewers, monkeypatch):
    admin = viewers[SUPER_ADMIN]
    codes = [u.qr_code for u in list(backend.inventory.unassigned())[:2]]
    original_assign = backend.inventory.assign
    seen = {}

    def assign_while_deleting(qr_codes, courier_id):
        deleter = threading.Thread(target=backend.delete_courier, args=(admin, courier_id))
        deleter.start()
        deleter.join(timeout=0.2)
        seen["blocked"] = deleter.is_alive()
        seen["deleter"] = deleter
        return original_assign(qr_codes, courier_id)

    monkeypatch.setattr(backend.inventory, "assign", assign_while_deleting)
    result = backend.assign_bottles(admin, codes, 4)
    seen["deleter"].join(timeout=5)

    assert seen["blocked"]
    assert result["assigned"] == 2
    assert 4 not in backend.couriers
