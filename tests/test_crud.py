from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from assmatpaie import crud
from assmatpaie.calculations import InvalidRangeError, overtime_range
from assmatpaie.models import Base
from assmatpaie.schemas import ContractIn, ReferenceGridRowIn, TimeEntryIn
from assmatpaie.summary import summarize_month


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


def make_contract(db, **overrides):
    payload = {
        "child_name": "Lina",
        "start_date": date(2025, 9, 1),
        "hours_per_day": 8.5,
        "days_per_week": 4,
        "weeks_per_year": 46,
        "planned_absences": [{"start_date": "2025-12-22", "end_date": "2025-12-26"}],
        "maintenance_fee_enabled": True,
        "maintenance_fee_tiers": [
            {"min_hours": 0, "max_hours": 8, "fee": 3.8},
            {"min_hours": 8, "max_hours": 9, "fee": 4.4},
        ],
    }
    payload.update(overrides)
    contract = crud.create_contract(db, ContractIn(**payload))
    db.commit()
    return contract


def test_settings_row_created_once(db):
    first = crud.get_or_create_app_settings(db)
    second = crud.get_or_create_app_settings(db)
    assert first is second
    assert first.net_coefficient == 0.7812
    assert len(first.reference_grid) == 5


def test_create_contract_resolves_rate_from_grid(db):
    contract = make_contract(db)
    assert contract.base_hourly_rate == 4.2
    assert contract.planned_absences[0]["start_date"] == "2025-12-22"


def test_create_contract_keeps_explicit_rate(db):
    contract = make_contract(db, base_hourly_rate=5.1)
    assert contract.base_hourly_rate == 5.1


def test_upsert_time_entry_computes_duration(db):
    contract = make_contract(db)
    entry = crud.upsert_time_entry(
        db,
        contract_id=contract.id,
        payload=TimeEntryIn(date=date(2026, 1, 5), start_time="08:30", end_time="17:00"),
    )
    assert entry.duration_minutes == 510

    updated = crud.upsert_time_entry(
        db,
        contract_id=contract.id,
        payload=TimeEntryIn(date=date(2026, 1, 5), is_unplanned_absence=True),
    )
    db.commit()
    assert updated.id == entry.id
    assert updated.duration_minutes == 0
    assert len(crud.list_time_entries(db, contract.id)) == 1


def test_upsert_time_entry_rejects_reversed_range(db):
    contract = make_contract(db)
    with pytest.raises(InvalidRangeError):
        crud.upsert_time_entry(
            db,
            contract_id=contract.id,
            payload=TimeEntryIn(date=date(2026, 1, 5), start_time="17:00", end_time="08:30"),
        )


def test_list_time_entries_by_range(db):
    contract = make_contract(db)
    for day in (date(2025, 12, 29), date(2026, 1, 5), date(2026, 2, 2)):
        crud.upsert_time_entry(
            db,
            contract_id=contract.id,
            payload=TimeEntryIn(date=day, start_time="08:00", end_time="16:00"),
        )
    db.commit()

    span = overtime_range(2026, 1)
    days = [e.date for e in crud.list_time_entries(db, contract.id, span.start, span.end)]
    assert days == [date(2025, 12, 29), date(2026, 1, 5), date(2026, 2, 2)]

    days = [e.date for e in crud.list_time_entries(db, contract.id, date(2026, 1, 1), date(2026, 1, 31))]
    assert days == [date(2026, 1, 5)]


def test_delete_contract_and_entry(db):
    contract = make_contract(db)
    entry = crud.upsert_time_entry(
        db,
        contract_id=contract.id,
        payload=TimeEntryIn(date=date(2026, 1, 5)),
    )
    db.commit()

    assert crud.delete_time_entry(db, entry.id)
    db.commit()
    assert not crud.delete_time_entry(db, entry.id)
    assert crud.delete_contract(db, contract.id)
    db.commit()
    assert crud.get_contract(db, contract.id) is None


def test_summary_from_stored_rows(db):
    contract = make_contract(db)
    for day, start, end in [
        (date(2026, 1, 5), "08:30", "17:00"),
        (date(2026, 1, 6), "08:30", "17:30"),
    ]:
        crud.upsert_time_entry(
            db,
            contract_id=contract.id,
            payload=TimeEntryIn(date=day, start_time=start, end_time=end, meals_count=1),
        )
    db.commit()

    span = overtime_range(2026, 1)
    entries = crud.list_time_entries(db, contract.id, span.start, span.end)
    summary = summarize_month(contract, entries, 2026, 1)

    assert summary.contract.id == contract.id
    assert summary.expected.cancelled_days_total == 4
    assert summary.hours_done == 17.5
    assert summary.indemnities.maintenance_indemnity == pytest.approx(4.4 + 4.4)
    assert summary.rounded.expected_monthly_hours == round((34 * 46 - 4 * 8.5) / 12, 2)


def test_settings_row_takes_configured_coefficient(db, monkeypatch):
    monkeypatch.setattr(crud.settings, "default_net_coefficient", 0.5)
    app_settings = crud.update_reference_grid(
        db,
        [ReferenceGridRowIn(days_per_week=4, hours_per_day=8.5, base_hourly_rate=4.3)],
    )
    db.commit()
    assert app_settings.net_coefficient == 0.5
    assert crud.get_or_create_app_settings(db).reference_grid[0]["base_hourly_rate"] == 4.3


def test_update_time_entry_rejects_taken_date(db):
    contract = make_contract(db)
    first = crud.upsert_time_entry(
        db,
        contract_id=contract.id,
        payload=TimeEntryIn(date=date(2026, 1, 5), start_time="08:30", end_time="17:00"),
    )
    crud.upsert_time_entry(
        db,
        contract_id=contract.id,
        payload=TimeEntryIn(date=date(2026, 1, 6), start_time="08:30", end_time="17:00"),
    )
    db.commit()

    with pytest.raises(crud.DuplicateEntryDateError):
        crud.update_time_entry(db, first, TimeEntryIn(date=date(2026, 1, 6)))

    moved = crud.update_time_entry(
        db, first, TimeEntryIn(date=date(2026, 1, 7), start_time="08:00", end_time="16:00")
    )
    db.commit()
    assert moved.date == date(2026, 1, 7)
    assert moved.duration_minutes == 480
