from datetime import date

from assmatpaie import crud
from assmatpaie.calculations import ContractType
from assmatpaie.db import create_schema, session_scope
from assmatpaie.schemas import ContractIn, TimeEntryIn

SAMPLE_CONTRACT = ContractIn(
    child_name="Lina",
    start_date=date(2025, 9, 1),
    contract_type=ContractType.CDI,
    hours_per_day=8.5,
    days_per_week=4,
    weeks_per_year=46,
    planned_absences=[{"start_date": "2025-12-22", "end_date": "2025-12-26"}],
    base_hourly_rate=4.2,
    bill_complementary_hours=True,
    overtime_rate_percent=10,
    meal_fee_enabled=True,
    meal_fee_per_meal=3.5,
    default_meals_per_day=1,
    maintenance_fee_enabled=True,
    maintenance_fee_tiers=[
        {"min_hours": 0, "max_hours": 8, "fee": 3.8},
        {"min_hours": 8, "max_hours": 9, "fee": 4.4},
        {"min_hours": 9, "max_hours": 24, "fee": 5.2},
    ],
)

SAMPLE_DAYS = [
    (date(2026, 1, 5), "08:30", "17:00"),
    (date(2026, 1, 6), "08:30", "17:30"),
    (date(2026, 1, 7), "08:30", "16:30"),
    (date(2026, 1, 8), "08:30", "17:00"),
]

create_schema()

with session_scope() as db:
    crud.get_or_create_app_settings(db)

    if crud.list_contracts(db):
        print("contracts already present, settings row ensured")
    else:
        contract = crud.create_contract(db, SAMPLE_CONTRACT)
        for day, start, end in SAMPLE_DAYS:
            crud.upsert_time_entry(
                db,
                contract_id=contract.id,
                payload=TimeEntryIn(date=day, start_time=start, end_time=end, meals_count=1),
            )
        print("contract_id=", contract.id)
