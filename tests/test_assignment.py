import pytest

from aquatrack.core import assignment
from aquatrack.core.errors import ConflictError, ValidationError
from aquatrack.core.role_guard import AuthorizationError
from aquatrack.core.status import CanonicalStatus as S
from aquatrack.security.roles import SUPER_ADMIN, DELIVERY_MANAGER, PARTNER, COURIER

from conftest import make_courier, make_manager, make_order, make_store


# --------------------------------------------------
# Orphans
# --------------------------------------------------

def test_order_at_unmanaged_store_is_orphaned():
    stores = [make_store("S1", manager_id=None)]
    for status in (S.PENDING, S.ACCEPTED, S.IN_TRANSIT, S.CANCELLED):
        order = make_order(1, status)
        assert assignment.orphaned_orders([order], stores) == [order]


def test_delivered_order_is_never_orphaned():
    stores = [make_store("S1", manager_id=None)]
    assert assignment.orphaned_orders([make_order(1, S.DELIVERED)], stores) == []


def test_managed_store_or_unknown_store_is_not_orphaned():
    order = make_order(1, S.ACCEPTED)
    assert assignment.orphaned_orders([order], [make_store("S1", manager_id=7)]) == []
    assert assignment.orphaned_orders([order], [make_store("OTHER")]) == []


def test_orphan_set_follows_current_store_record():
    order = make_order(1, S.ACCEPTED)
    assert assignment.orphaned_orders([order], [make_store("S1")]) == [order]
    # Same order, store now managed
    assert assignment.orphaned_orders([order], [make_store("S1", manager_id=7)]) == []


def test_dispatched_orphans_need_a_store_link_not_a_manager():
    stores = [make_store("S1"), make_store("S2", manager_id=7)]
    waiting = make_order(1, S.ACCEPTED)
    dispatched = make_order(2, S.ASSIGNED_TO_COURIER)
    reported = make_order(3, S.AWAITING_STORE_CONFIRMATION)
    cancelled = make_order(4, S.CANCELLED)
    routed = make_order(5, S.ASSIGNED_TO_COURIER, store_id="S2")

    split = assignment.split_orphans([waiting, dispatched, reported, cancelled, routed], stores)
    assert split.assignable == [waiting]
    assert split.store_link_needed == [dispatched, reported]
    assert split.stores_to_link() == ["S1"]

    # The manager-assignment guard refuses exactly the link group
    managers = {7: make_manager(7)}
    with pytest.raises(ConflictError):
        assignment.validate_manager_assignment(
            dispatched, 7, managers, {s.id: s for s in stores}, SUPER_ADMIN, manual_fallback=True
        )


# --------------------------------------------------
# Order guards
# --------------------------------------------------

def test_order_creation_body():
    body = assignment.validate_order_creation(PARTNER, " S1 ", "12", 42)
    assert body == {"store_id": "S1", "order_details": "12", "total_amount": 504}


@pytest.mark.parametrize("bottles", [0, -3, "2.5", "", None, "ten"])
def test_order_creation_rejects_bad_quantity(bottles):
    with pytest.raises(ValidationError):
        assignment.validate_order_creation(PARTNER, "S1", bottles, 42)


def test_only_partners_create_orders():
    with pytest.raises(AuthorizationError):
        assignment.validate_order_creation(SUPER_ADMIN, "S1", 5, 42)


def test_approval_requires_pending_and_super_admin():
    assert assignment.validate_approval(make_order(1, S.PENDING), SUPER_ADMIN) == S.ACCEPTED
    with pytest.raises(ConflictError):
        assignment.validate_approval(make_order(1, S.ACCEPTED), SUPER_ADMIN)
    with pytest.raises(AuthorizationError):
        assignment.validate_approval(make_order(1, S.PENDING), DELIVERY_MANAGER)


def test_manager_assignment_on_orphan():
    order = make_order(1, S.ACCEPTED)
    managers = {7: make_manager(7)}
    stores = {"S1": make_store("S1")}
    target = assignment.validate_manager_assignment(order, 7, managers, stores, SUPER_ADMIN)
    assert target == S.ASSIGNED_TO_MANAGER


def test_manager_assignment_needs_a_selection():
    with pytest.raises(ValidationError):
        assignment.validate_manager_assignment(make_order(1, S.ACCEPTED), None, {}, {}, SUPER_ADMIN)


def test_manager_assignment_refused_when_store_already_routes():
    order = make_order(1, S.ACCEPTED, manager_id=7)
    managers = {7: make_manager(7), 8: make_manager(8)}
    stores = {"S1": make_store("S1", manager_id=7)}
    with pytest.raises(ConflictError):
        assignment.validate_manager_assignment(order, 8, managers, stores, SUPER_ADMIN)
    # Manual fallback overrides
    assert assignment.validate_manager_assignment(
        order, 8, managers, stores, SUPER_ADMIN, manual_fallback=True
    ) == S.ASSIGNED_TO_MANAGER


def test_manager_assignment_refused_when_order_has_own_manager():
    order = make_order(1, S.ACCEPTED, manager_id=8, manager_name="Meera")
    with pytest.raises(ConflictError):
        assignment.validate_manager_assignment(
            order, 7, {7: make_manager(7)}, {"S1": make_store("S1")}, SUPER_ADMIN, manual_fallback=True
        )


def test_manager_assignment_to_missing_manager():
    with pytest.raises(ConflictError):
        assignment.validate_manager_assignment(
            make_order(1, S.ACCEPTED), 99, {7: make_manager(7)}, {"S1": make_store("S1")}, SUPER_ADMIN
        )


def test_courier_assignment():
    order = make_order(1, S.ASSIGNED_TO_MANAGER, manager_id=7)
    assert assignment.validate_courier_assignment(order, make_courier(), SUPER_ADMIN) == S.ASSIGNED_TO_COURIER


def test_courier_assignment_guards():
    order = make_order(1, S.ASSIGNED_TO_MANAGER, manager_id=7)
    with pytest.raises(ValidationError):
        assignment.validate_courier_assignment(order, None, SUPER_ADMIN)
    with pytest.raises(ConflictError):
        assignment.validate_courier_assignment(order, make_courier(status="pending"), SUPER_ADMIN)
    with pytest.raises(ConflictError):
        assignment.validate_courier_assignment(
            make_order(1, S.ASSIGNED_TO_MANAGER, courier_id=4), make_courier(), SUPER_ADMIN
        )
    with pytest.raises(ConflictError):
        assignment.validate_courier_assignment(make_order(1, S.PENDING), make_courier(), SUPER_ADMIN)


def test_manager_dispatches_only_own_orders_to_own_team():
    order = make_order(1, S.ASSIGNED_TO_MANAGER, manager_id=7)
    assignment.validate_courier_assignment(order, make_courier(manager_id=7), DELIVERY_MANAGER, actor_id=7)
    with pytest.raises(AuthorizationError):
        assignment.validate_courier_assignment(order, make_courier(manager_id=8), DELIVERY_MANAGER, actor_id=7)
    with pytest.raises(AuthorizationError):
        assignment.validate_courier_assignment(order, make_courier(manager_id=8), DELIVERY_MANAGER, actor_id=8)


def test_courier_acts_only_on_own_orders():
    order = make_order(1, S.ASSIGNED_TO_COURIER, courier_id=3)
    assert assignment.validate_pickup(order, COURIER, 3) == S.IN_TRANSIT
    with pytest.raises(AuthorizationError):
        assignment.validate_pickup(order, COURIER, 4)


def test_delivery_report_body():
    order = make_order(1, S.IN_TRANSIT, courier_id=3)
    report = assignment.validate_delivery_report(order, COURIER, 3, "20", 18)
    assert report == {"bottles_delivered": 20, "empty_bottles_collected": 18}
    with pytest.raises(ValidationError):
        assignment.validate_delivery_report(order, COURIER, 3, -1, 0)


# --------------------------------------------------
# Administrative guards
# --------------------------------------------------

def test_courier_move_rules():
    managers = {7: make_manager(7), 8: make_manager(8)}
    courier = make_courier(manager_id=7)
    assignment.validate_courier_move(courier, 8, managers)
    assignment.validate_courier_move(courier, 0, managers)
    with pytest.raises(ConflictError):
        assignment.validate_courier_move(courier, 7, managers)
    with pytest.raises(ConflictError):
        assignment.validate_courier_move(courier, 99, managers)
    with pytest.raises(ConflictError):
        assignment.validate_courier_move(make_courier(manager_id=None), 0, managers)


def test_courier_with_in_flight_orders_cannot_be_deleted():
    courier = make_courier(3)
    with pytest.raises(ConflictError):
        assignment.validate_courier_deletion(courier, [make_order(1, S.IN_TRANSIT, courier_id=3)])
    assignment.validate_courier_deletion(courier, [make_order(1, S.DELIVERED, courier_id=3)])


def test_manager_with_team_cannot_be_deleted():
    with pytest.raises(ConflictError):
        assignment.validate_manager_deletion(make_manager(7), [make_courier(manager_id=7)])
    assignment.validate_manager_deletion(make_manager(7), [make_courier(manager_id=8)])


def test_store_link_and_unlink():
    manager = make_manager(7, store_ids=("S1",))
    stores = {"S1": make_store("S1", manager_id=7), "S2": make_store("S2"), "S3": make_store("S3", manager_id=8)}
    assert assignment.validate_store_link(manager, ["S2", " "], stores) == ["S2"]
    with pytest.raises(ValidationError):
        assignment.validate_store_link(manager, [], stores)
    with pytest.raises(ConflictError):
        assignment.validate_store_link(manager, ["S3"], stores)
    with pytest.raises(ConflictError):
        assignment.validate_store_link(manager, ["NOPE"], stores)
    assert assignment.validate_store_unlink(manager, ["S1"]) == ["S1"]
    with pytest.raises(ConflictError):
        assignment.validate_store_unlink(manager, ["S2"])


def test_store_creation():
    body = assignment.validate_store_creation(" NEW-1 ", "New Store", "Pune", "CUSTOM", "instamart", ["S1"])
    assert body == {"id": "NEW-1", "store_name": "New Store", "city": "Pune", "channel": "INSTAMART", "address": ""}
    with pytest.raises(ConflictError):
        assignment.validate_store_creation("S1", "Dup", "Pune", "ZEPTO", None, ["S1"])
    with pytest.raises(ValidationError):
        assignment.validate_store_creation("S9", "", "Pune", "ZEPTO", None, [])


def test_store_with_orders_cannot_be_deleted():
    with pytest.raises(ConflictError):
        assignment.validate_store_deletion(make_store("S1"), [make_order(1, S.DELIVERED)])
    assignment.validate_store_deletion(make_store("S2"), [make_order(1, S.DELIVERED)])


# --------------------------------------------------
# Buckets
# --------------------------------------------------

def test_action_buckets():
    stores = [make_store("S1", manager_id=7), make_store("S2")]
    orders = [
        make_order(1, S.PENDING),
        make_order(2, S.ACCEPTED, store_id="S2"),
        make_order(3, S.ASSIGNED_TO_MANAGER, manager_id=7),
        make_order(4, S.IN_TRANSIT, manager_id=7, courier_id=3),
        make_order(5, S.AWAITING_STORE_CONFIRMATION, manager_id=7, courier_id=3),
        make_order(6, S.ACCEPTED),
    ]
    buckets = assignment.action_buckets(orders, stores)
    assert [o.id for o in buckets.awaiting_approval] == [1]
    assert [o.id for o in buckets.orphaned] == [2]
    assert [o.id for o in buckets.ready_for_courier] == [3, 6]
    assert [o.id for o in buckets.in_flight] == [4]
    assert [o.id for o in buckets.awaiting_store_confirmation] == [5]
    assert buckets.counts()["orphaned"] == 1

    manager_view = assignment.action_buckets(orders, stores, DELIVERY_MANAGER)
    assert [o.id for o in manager_view.ready_for_courier] == [3]
