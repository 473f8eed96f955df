"""
Glue between stored contracts / time entries and the payroll engine.

Works on any object exposing the model attributes, so it can be exercised
without a database.
"""
from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Iterable

from .calculations import (
    NET_COEFFICIENT,
    WEEKLY_OVERTIME_THRESHOLD,
    ContractParams,
    ContractType,
    MaintenanceFeeTier,
    MonthlySummary,
    PayrollRates,
    Period,
    TimeEntryFacts,
    month_bounds,
    monthly_summary,
)
from .rates import effective_hourly_rate
from .schemas import (
    ContractSummaryOut,
    DayRowOut,
    ExpectedHoursOut,
    GrossNetOut,
    IndemnitiesOut,
    MonthlySummaryOut,
    RoundedTotalsOut,
    TimeEntryOut,
    WeeklyOvertimeOut,
    WeekOvertimeOut,
)

logger = logging.getLogger(__name__)

MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


class InvalidMonthError(ValueError):
    pass


def parse_month_param(value: str | None, today: date | None = None) -> tuple[int, int]:
    """'YYYY-MM' -> (year, month); the current month when empty."""
    if not value:
        today = today or date.today()
        return today.year, today.month
    match = MONTH_PATTERN.match(value)
    if not match:
        raise InvalidMonthError(f"Invalid month {value!r} (expected YYYY-MM)")
    year, month = int(match.group(1)), int(match.group(2))
    if year < date.min.year or not 1 <= month <= 12:
        raise InvalidMonthError(f"Invalid month {value!r}")
    return year, month


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def _as_date(value: Any) -> date:
    return value if isinstance(value, date) else date.fromisoformat(value)


def contract_params(contract: Any) -> ContractParams:
    return ContractParams(
        hours_per_day=contract.hours_per_day,
        days_per_week=contract.days_per_week,
        weeks_per_year=contract.weeks_per_year,
        effective_hourly_rate=effective_hourly_rate(
            contract.base_hourly_rate,
            allow_override=contract.allow_override,
            override_hourly_rate=contract.override_hourly_rate,
        ),
        planned_absences=tuple(
            Period(start=_as_date(p["start_date"]), end=_as_date(p["end_date"]))
            for p in contract.planned_absences or []
        ),
        bill_complementary_hours=contract.bill_complementary_hours,
        overtime_rate_percent=contract.overtime_rate_percent,
        contract_type=ContractType(contract.contract_type),
        apply_precariousness_prime=contract.apply_precariousness_prime,
        meal_fee_enabled=contract.meal_fee_enabled,
        meal_fee_per_meal=contract.meal_fee_per_meal,
        maintenance_fee_enabled=contract.maintenance_fee_enabled,
        maintenance_fee_tiers=tuple(
            MaintenanceFeeTier(
                min_hours=float(t["min_hours"]),
                max_hours=float(t["max_hours"]),
                fee=float(t["fee"]),
            )
            for t in contract.maintenance_fee_tiers or []
        ),
    )


def entry_facts(entry: Any) -> TimeEntryFacts:
    return TimeEntryFacts(
        day=entry.date,
        start_time=entry.start_time,
        end_time=entry.end_time,
        duration_minutes=entry.duration_minutes,
        meals_count=entry.meals_count,
        is_planned_absence=entry.is_planned_absence,
        is_unplanned_absence=entry.is_unplanned_absence,
        is_holiday=entry.is_holiday,
        is_unavailable=entry.is_unavailable,
        notes=entry.notes,
    )


def _entry_out(facts: TimeEntryFacts, stored: Any | None = None) -> TimeEntryOut:
    return TimeEntryOut(
        id=getattr(stored, "id", None),
        contract_id=getattr(stored, "contract_id", None),
        date=facts.day,
        start_time=facts.start_time,
        end_time=facts.end_time,
        duration_minutes=facts.duration_minutes,
        meals_count=facts.meals_count,
        is_planned_absence=facts.is_planned_absence,
        is_unplanned_absence=facts.is_unplanned_absence,
        is_holiday=facts.is_holiday,
        is_unavailable=facts.is_unavailable,
        notes=facts.notes,
    )


def summary_out(
    contract: Any,
    params: ContractParams,
    result: MonthlySummary,
    stored_by_day: dict[date, Any] | None = None,
) -> MonthlySummaryOut:
    stored_by_day = stored_by_day or {}
    bounds = month_bounds(result.year, result.month)
    contract_out = ContractSummaryOut.model_validate(
        {
            **{
                name: getattr(contract, name, None)
                for name in ContractSummaryOut.model_fields
                if name != "effective_hourly_rate"
            },
            "effective_hourly_rate": params.effective_hourly_rate,
        }
    )

    return MonthlySummaryOut(
        month=month_key(result.year, result.month),
        period_start=bounds.start,
        period_end=bounds.end,
        contract=contract_out,
        entries=[_entry_out(e, stored_by_day.get(e.day)) for e in result.month_entries],
        expected=ExpectedHoursOut(**vars(result.expected)),
        hours_done=result.hours_done,
        complementary_hours_month=result.complementary_hours_month,
        weekly=WeeklyOvertimeOut(
            details=[WeekOvertimeOut(**vars(w)) for w in result.weekly.per_week],
            overtime_hours_total=result.weekly.total_overtime_hours,
        ),
        gross=GrossNetOut(**vars(result.gross)),
        indemnities=IndemnitiesOut(**vars(result.indemnities)),
        total_a_payer=result.total_a_payer,
        day_rows=[
            DayRowOut(
                date=row.day,
                entry=_entry_out(row.entry, stored_by_day.get(row.day)) if row.entry else None,
                hours_done=row.hours_done,
                complementary_hours=row.complementary_hours,
            )
            for row in result.day_rows
        ],
        rounded=RoundedTotalsOut(**result.rounded()),
    )


def summarize_month(
    contract: Any,
    entries: Iterable[Any],
    year: int,
    month: int,
    *,
    net_coefficient: float = NET_COEFFICIENT,
    weekly_overtime_threshold: float = WEEKLY_OVERTIME_THRESHOLD,
) -> MonthlySummaryOut:
    """
    Monthly summary of a stored contract.

    `entries` must span `overtime_range(year, month)` so that weeks
    overlapping the month boundaries are counted in full.
    """
    stored = list(entries)
    params = contract_params(contract)
    rates = PayrollRates(
        net_coefficient=net_coefficient,
        weekly_overtime_threshold=weekly_overtime_threshold,
    )
    result = monthly_summary(params, [entry_facts(e) for e in stored], year, month, rates)
    logger.info(
        "summary contract=%s month=%s total_brut=%.2f",
        getattr(contract, "id", None),
        month_key(year, month),
        result.gross.total_brut,
    )
    return summary_out(contract, params, result, {e.date: e for e in stored})
