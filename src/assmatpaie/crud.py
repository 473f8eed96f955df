from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from .calculations import daily_hours
from .config import settings
from .models import SETTINGS_ROW_ID, AppSettings, Contract, TimeEntry
from .rates import DEFAULT_REFERENCE_GRID, grid_from_json, resolve_base_hourly_rate
from .schemas import ContractIn, ReferenceGridRowIn, TimeEntryIn

logger = logging.getLogger(__name__)


class DuplicateEntryDateError(ValueError):
    """Raised when a contract already has an entry on the target date."""


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

def get_or_create_app_settings(
    db: Session,
    *,
    net_coefficient: float | None = None,
) -> AppSettings:
    """
    The singleton settings row. A new row takes `net_coefficient`, else the
    configured default.
    """
    row = db.get(AppSettings, SETTINGS_ROW_ID)
    if row:
        return row

    if net_coefficient is None:
        net_coefficient = settings.default_net_coefficient

    row = AppSettings(
        id=SETTINGS_ROW_ID,
        net_coefficient=net_coefficient,
        reference_grid=[r.to_dict() for r in DEFAULT_REFERENCE_GRID],
    )
    db.add(row)
    db.flush()
    logger.info("created settings row with default reference grid")
    return row


def update_reference_grid(db: Session, rows: list[ReferenceGridRowIn]) -> AppSettings:
    app_settings = get_or_create_app_settings(db)
    app_settings.reference_grid = [row.model_dump() for row in rows]
    logger.info("reference grid updated (%d rows)", len(rows))
    return app_settings


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------

def list_contracts(db: Session) -> list[Contract]:
    stmt = select(Contract).order_by(Contract.created_at.desc(), Contract.id.desc())
    return list(db.scalars(stmt).all())


def get_contract(db: Session, contract_id: int) -> Contract | None:
    return db.get(Contract, contract_id)


def _contract_values(db: Session, payload: ContractIn) -> dict:
    values = payload.to_row_values()
    if payload.base_hourly_rate <= 0:
        grid = grid_from_json(get_or_create_app_settings(db).reference_grid)
        values["base_hourly_rate"] = resolve_base_hourly_rate(
            grid, payload.days_per_week, payload.hours_per_day
        )
    return values


def create_contract(db: Session, payload: ContractIn) -> Contract:
    contract = Contract(**_contract_values(db, payload))
    db.add(contract)
    db.flush()
    logger.info(
        "contract %s created (base rate %.2f)", contract.id, contract.base_hourly_rate
    )
    return contract


def update_contract(db: Session, contract: Contract, payload: ContractIn) -> Contract:
    for key, value in _contract_values(db, payload).items():
        setattr(contract, key, value)
    logger.info("contract %s updated", contract.id)
    return contract


def delete_contract(db: Session, contract_id: int) -> bool:
    contract = get_contract(db, contract_id)
    if not contract:
        return False

    db.delete(contract)
    logger.info("contract %s deleted", contract_id)
    return True


# ---------------------------------------------------------------------------
# Time entries
# ---------------------------------------------------------------------------

def list_time_entries(
    db: Session,
    contract_id: int,
    start: date | None = None,
    end: date | None = None,
) -> list[TimeEntry]:
    stmt = select(TimeEntry).where(TimeEntry.contract_id == contract_id)
    if start is not None:
        stmt = stmt.where(TimeEntry.date >= start)
    if end is not None:
        stmt = stmt.where(TimeEntry.date <= end)
    return list(db.scalars(stmt.order_by(TimeEntry.date.asc())).all())


def get_time_entry(db: Session, entry_id: int) -> TimeEntry | None:
    return db.get(TimeEntry, entry_id)


def duration_minutes(payload: TimeEntryIn) -> int:
    """Raises InvalidRangeError when end_time <= start_time."""
    if payload.start_time and payload.end_time:
        return round(daily_hours(payload.start_time, payload.end_time) * 60)
    return 0


def _apply_entry(entry: TimeEntry, payload: TimeEntryIn, minutes: int) -> None:
    entry.date = payload.date
    entry.start_time = payload.start_time
    entry.end_time = payload.end_time
    entry.duration_minutes = minutes
    entry.meals_count = payload.meals_count
    entry.is_planned_absence = payload.is_planned_absence
    entry.is_unplanned_absence = payload.is_unplanned_absence
    entry.is_holiday = payload.is_holiday
    entry.is_unavailable = payload.is_unavailable
    entry.notes = payload.notes


def upsert_time_entry(db: Session, *, contract_id: int, payload: TimeEntryIn) -> TimeEntry:
    minutes = duration_minutes(payload)

    stmt = select(TimeEntry).where(
        TimeEntry.contract_id == contract_id, TimeEntry.date == payload.date
    )
    existing = db.scalar(stmt)
    if existing:
        _apply_entry(existing, payload, minutes)
        return existing

    entry = TimeEntry(contract_id=contract_id)
    _apply_entry(entry, payload, minutes)
    db.add(entry)
    db.flush()
    return entry


def update_time_entry(db: Session, entry: TimeEntry, payload: TimeEntryIn) -> TimeEntry:
    if payload.date != entry.date:
        stmt = select(TimeEntry.id).where(
            TimeEntry.contract_id == entry.contract_id,
            TimeEntry.date == payload.date,
        )
        if db.scalar(stmt) is not None:
            raise DuplicateEntryDateError(
                f"contract {entry.contract_id} already has an entry on {payload.date}"
            )
    _apply_entry(entry, payload, duration_minutes(payload))
    return entry


def delete_time_entry(db: Session, entry_id: int) -> bool:
    entry = get_time_entry(db, entry_id)
    if not entry:
        return False

    db.delete(entry)
    return True
