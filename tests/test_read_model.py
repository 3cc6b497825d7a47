import pytest

from aquatrack.core.read_model import load_snapshot
from aquatrack.core.models import Viewer
from aquatrack.integrations.backend_client import BackendUnavailableError, SessionExpiredError
from aquatrack.security.roles import (
    SUPER_ADMIN,
    CHANNEL_ADMIN,
    DELIVERY_MANAGER,
    PARTNER,
    COURIER,
)


class FlakySession:
    """Delegates to a real session but fails the named sources."""

    def __init__(self, session, failing, error=BackendUnavailableError):
        self._session = session
        self._failing = failing
        self._error = error

    def __getattr__(self, name):
        if name in self._failing:
            def fail(*args, **kwargs):
                raise self._error(f"{name} unavailable")
            return fail
        return getattr(self._session, name)


def test_super_admin_snapshot_is_complete(backend, viewers):
    snapshot = load_snapshot(backend.session(viewers[SUPER_ADMIN]), viewers[SUPER_ADMIN])
    assert len(snapshot.orders) == 9
    assert len(snapshot.stores) == 4
    assert {m.id for m in snapshot.managers} == {7, 8}
    assert len(snapshot.channel_admins) == 2
    assert snapshot.qr_summary.total == 24
    assert len(snapshot.unassigned_bottles) == 24
    assert snapshot.failed_sources == ()
    assert snapshot.total_empty_bottles == 14 + 6 + 0 + 9


def test_failed_source_degrades_only_that_section(backend, viewers):
    viewer = viewers[SUPER_ADMIN]
    session = FlakySession(backend.session(viewer), {"list_complaints", "bottle_summary"})
    snapshot = load_snapshot(session, viewer)
    assert snapshot.failed_sources == ("complaints", "qr_summary")
    assert snapshot.complaints == []
    assert snapshot.qr_summary.total == 0
    assert len(snapshot.orders) == 9


def test_session_expiry_aborts_the_load(backend, viewers):
    viewer = viewers[SUPER_ADMIN]
    with pytest.raises(SessionExpiredError):
        load_snapshot(backend.session(None), viewer)

    session = FlakySession(backend.session(viewer), {"list_managers"}, error=SessionExpiredError)
    with pytest.raises(SessionExpiredError):
        load_snapshot(session, viewer)


def test_missing_empty_counts_read_as_zero(backend, viewers):
    viewer = viewers[SUPER_ADMIN]
    session = backend.session(viewer)

    class PartialCounts(FlakySession):
        def store_empty_counts(self):
            return [{"id": "BLK-001", "empty_bottles_count": "11"}]

    snapshot = load_snapshot(PartialCounts(session, set()), viewer)
    assert snapshot.stores_by_id["BLK-001"].empty_bottles == 11
    assert snapshot.stores_by_id["GEN-100"].empty_bottles == 0


def test_channel_admin_is_scoped_to_channel(backend, viewers):
    snapshot = load_snapshot(backend.session(viewers[CHANNEL_ADMIN]), viewers[CHANNEL_ADMIN])
    assert sorted(o.id for o in snapshot.orders) == [101, 103, 107]
    assert [s.id for s in snapshot.stores] == ["BLK-001"]
    assert [c.id for c in snapshot.complaints] == ["501"]
    assert snapshot.managers == []


def test_manager_sees_routed_orders_and_team(backend, viewers):
    snapshot = load_snapshot(backend.session(viewers[DELIVERY_MANAGER]), viewers[DELIVERY_MANAGER])
    # Pending 107 inherits the store manager
    assert sorted(o.id for o in snapshot.orders) == [101, 103, 104, 107]
    assert [c.id for c in snapshot.couriers] == [3]


def test_partner_store_ids_filled_from_own_stores(backend):
    viewer = Viewer(role=PARTNER, user_id=23, name="Facilities Desk")
    snapshot = load_snapshot(backend.session(viewer), viewer)
    assert set(snapshot.viewer.store_ids) == {"IBM-002", "GEN-100"}
    assert sorted(o.id for o in snapshot.orders) == [102, 104, 105, 109]
    assert snapshot.partner_empty_bottles == 9


def test_courier_sees_assigned_orders(backend, viewers):
    snapshot = load_snapshot(backend.session(viewers[COURIER]), viewers[COURIER])
    assert sorted(o.id for o in snapshot.orders) == [101, 103, 104]
    assert snapshot.couriers == []


def test_derived_sets_follow_store_records(backend, viewers):
    viewer = viewers[SUPER_ADMIN]
    snapshot = load_snapshot(backend.session(viewer), viewer)
    assert sorted(o.id for o in snapshot.orphaned) == [106, 108]

    backend.stores["ZPT-014"]["assigned_manager_id"] = 8
    snapshot = load_snapshot(backend.session(viewer), viewer)
    assert snapshot.orphaned == []
