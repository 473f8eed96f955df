from datetime import date

import pytest
from pydantic import ValidationError

from assmatpaie.schemas import (ContractIn, MaintenanceFeeTierIn,
                                PlannedAbsenceIn, TimeEntryIn)


def contract_payload(**overrides) -> dict:
    payload = {
        "child_name": "Lina",
        "start_date": "2025-09-01",
        "hours_per_day": 8.5,
        "days_per_week": 4,
        "weeks_per_year": 46,
    }
    payload.update(overrides)
    return payload


def test_time_entry_valid():
    payload = TimeEntryIn(date=date(2026, 1, 5), start_time="08:30", end_time="17:00")
    assert payload.meals_count == 0
    assert not payload.is_planned_absence


def test_time_entry_without_times():
    payload = TimeEntryIn(date=date(2026, 1, 5), is_holiday=True)
    assert payload.start_time is None and payload.end_time is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"start_time": "08:30"},
        {"end_time": "17:00"},
        {"start_time": "8:30", "end_time": "17:00"},
        {"start_time": "08:30", "end_time": "25:00"},
        {"start_time": "08:75", "end_time": "17:00"},
        {"meals_count": 11},
        {"notes": "x" * 501},
    ],
)
def test_time_entry_rejects(overrides):
    with pytest.raises(ValidationError):
        TimeEntryIn(date=date(2026, 1, 5), **overrides)


def test_planned_absence_order():
    with pytest.raises(ValidationError):
        PlannedAbsenceIn(start_date=date(2026, 1, 16), end_date=date(2026, 1, 12))
    same_day = PlannedAbsenceIn(start_date=date(2026, 1, 12), end_date=date(2026, 1, 12))
    assert same_day.start_date == same_day.end_date


def test_maintenance_tier_bounds():
    with pytest.raises(ValidationError):
        MaintenanceFeeTierIn(min_hours=8, max_hours=8, fee=4)


def test_contract_defaults():
    contract = ContractIn(**contract_payload())
    assert contract.contract_type.value == "CDI"
    assert contract.overtime_rate_percent == 25
    assert contract.base_hourly_rate == 0


@pytest.mark.parametrize(
    "overrides",
    [
        {"days_per_week": 6},
        {"weeks_per_year": 54},
        {"weeks_per_year": 0},
        {"overtime_rate_percent": 20},
        {"hours_per_day": 0},
        {"contract_type": "interim"},
        {"child_name": ""},
    ],
)
def test_contract_rejects_out_of_domain_values(overrides):
    with pytest.raises(ValidationError):
        ContractIn(**contract_payload(**overrides))


def test_contract_rejects_overlapping_tiers():
    with pytest.raises(ValidationError):
        ContractIn(
            **contract_payload(
                maintenance_fee_tiers=[
                    {"min_hours": 0, "max_hours": 9, "fee": 3.8},
                    {"min_hours": 8, "max_hours": 10, "fee": 4.4},
                ]
            )
        )


def test_contract_accepts_abutting_tiers_in_any_order():
    contract = ContractIn(
        **contract_payload(
            maintenance_fee_tiers=[
                {"min_hours": 8, "max_hours": 9, "fee": 4.4},
                {"min_hours": 0, "max_hours": 8, "fee": 3.8},
            ]
        )
    )
    assert [t.fee for t in contract.maintenance_fee_tiers] == [4.4, 3.8]


def test_contract_row_values_are_json_ready():
    contract = ContractIn(
        **contract_payload(
            planned_absences=[{"start_date": "2025-12-22", "end_date": "2025-12-26"}]
        )
    )
    values = contract.to_row_values()
    assert values["planned_absences"] == [
        {"start_date": "2025-12-22", "end_date": "2025-12-26"}
    ]
    assert values["start_date"] == date(2025, 9, 1)
