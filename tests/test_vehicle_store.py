"""
Tests — Canonical Vehicle Store (SQLAlchemy, in-memory SQLite)
"""

from fueltrakr.common.schemas import VEHICLE_ATTRIBUTES, FailureCause, VehicleRecord
from fueltrakr.database.models import VehicleRow
from fueltrakr.services.vehicle_store import VehicleStore
from helpers import HONDA_VIN


def _civic(**overrides) -> VehicleRecord:
    fields = dict(vin=HONDA_VIN, year="2010", make="Honda", model="Civic", trim="EX")
    fields.update(overrides)
    return VehicleRecord(**fields)


def test_put_then_get_round_trips_attributes(db_session, policy, clock):
    store = VehicleStore(db_session, policy=policy, clock=clock)
    store.put(_civic(resolved_at=clock()))

    record = store.get(HONDA_VIN.lower())

    assert record is not None
    assert record.valid is True
    assert (record.make, record.model, record.trim) == ("Honda", "Civic", "EX")
    assert record.resolved_at == clock()


def test_valid_rows_never_expire(db_session, policy, clock):
    store = VehicleStore(db_session, policy=policy, clock=clock)
    store.put(_civic())
    assert db_session.get(VehicleRow, HONDA_VIN).expires_at is None

    clock.advance(days=365)
    assert store.get(HONDA_VIN) is not None


def test_not_found_row_expires_and_is_deleted(db_session, policy, clock):
    store = VehicleStore(db_session, policy=policy, clock=clock)
    store.put(VehicleRecord(vin=HONDA_VIN))

    clock.advance(minutes=14)
    cached = store.get(HONDA_VIN)
    assert cached is not None and cached.failure == FailureCause.NOT_FOUND

    clock.advance(minutes=1)
    assert store.get(HONDA_VIN) is None
    assert db_session.get(VehicleRow, HONDA_VIN) is None


def test_transport_row_uses_shorter_bound(db_session, policy, clock):
    store = VehicleStore(db_session, policy=policy, clock=clock)
    store.put(VehicleRecord.failed(HONDA_VIN, FailureCause.TRANSPORT, "registry down"))

    clock.advance(minutes=5)
    assert store.get(HONDA_VIN) is None


def test_put_overwrites_existing_row(db_session, policy, clock):
    store = VehicleStore(db_session, policy=policy, clock=clock)
    store.put(VehicleRecord(vin=HONDA_VIN))
    store.put(_civic())

    record = store.get(HONDA_VIN)
    assert record.valid is True
    assert record.failure is None
    assert db_session.get(VehicleRow, HONDA_VIN).expires_at is None


def test_list_all_skips_expired_failures(db_session, policy, clock):
    store = VehicleStore(db_session, policy=policy, clock=clock)
    store.put(_civic())
    store.put(VehicleRecord.failed("2FMDK3GC4DBA12345", FailureCause.TRANSPORT, "down"))

    assert len(store.list_all()) == 2
    clock.advance(minutes=6)
    assert [r.vin for r in store.list_all()] == [HONDA_VIN]


def test_every_record_attribute_has_a_column(db_session, policy, clock):
    assert set(VEHICLE_ATTRIBUTES) <= set(VehicleRow.__table__.columns.keys())

    store = VehicleStore(db_session, policy=policy, clock=clock)
    full = VehicleRecord(vin=HONDA_VIN, **{name: f"{name}-value" for name in VEHICLE_ATTRIBUTES})
    store.put(full)

    record = store.get(HONDA_VIN)
    for name in VEHICLE_ATTRIBUTES:
        assert getattr(record, name) == f"{name}-value"
