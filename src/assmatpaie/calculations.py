from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, Iterator, Sequence

logger = logging.getLogger(__name__)

NET_COEFFICIENT = 0.7812
WEEKLY_OVERTIME_THRESHOLD = 45.0
PRECARIOUSNESS_PRIME_RATE = 0.10
MONTHS_PER_YEAR = 12

_CENTS = Decimal("0.01")


class InvalidRangeError(ValueError):
    """Raised when a clock range does not end strictly after it starts."""


class ContractType(str, Enum):
    CDI = "CDI"
    CDD = "CDD"


@dataclass(frozen=True)
class Period:
    start: date  # inclusive
    end: date    # inclusive

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class MaintenanceFeeTier:
    min_hours: float
    max_hours: float
    fee: float


@dataclass(frozen=True)
class PayrollRates:
    net_coefficient: float = NET_COEFFICIENT
    weekly_overtime_threshold: float = WEEKLY_OVERTIME_THRESHOLD


DEFAULT_RATES = PayrollRates()


@dataclass(frozen=True)
class ContractParams:
    hours_per_day: float
    days_per_week: int
    weeks_per_year: int
    effective_hourly_rate: float
    planned_absences: tuple[Period, ...] = ()
    bill_complementary_hours: bool = False
    overtime_rate_percent: int = 25
    contract_type: ContractType = ContractType.CDI
    apply_precariousness_prime: bool = False
    meal_fee_enabled: bool = False
    meal_fee_per_meal: float = 0.0
    maintenance_fee_enabled: bool = False
    maintenance_fee_tiers: tuple[MaintenanceFeeTier, ...] = ()


@dataclass(frozen=True)
class TimeEntryFacts:
    day: date
    duration_minutes: int = 0
    start_time: str | None = None
    end_time: str | None = None
    meals_count: int = 0
    is_planned_absence: bool = False
    is_unplanned_absence: bool = False
    is_holiday: bool = False
    is_unavailable: bool = False
    notes: str | None = None

    @property
    def is_absence(self) -> bool:
        return self.is_planned_absence or self.is_unplanned_absence

    @property
    def hours(self) -> float:
        return self.duration_minutes / 60


def round2(value: float) -> float:
    """Round half-up to 2 decimals, for presentation only."""
    return float(Decimal(repr(value)).quantize(_CENTS, rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Calendar / time primitives
# ---------------------------------------------------------------------------

def parse_clock_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def daily_hours(start_time: str, end_time: str) -> float:
    start = parse_clock_minutes(start_time)
    end = parse_clock_minutes(end_time)
    if end <= start:
        raise InvalidRangeError(
            f"end time must be after start time (got {start_time} -> {end_time})"
        )
    return (end - start) / 60


def is_contractual_weekday(day: date, days_per_week: int) -> bool:
    """Contractual days are always the first N weekdays, starting Monday."""
    return day.isoweekday() <= days_per_week


def iter_days(period: Period) -> Iterator[date]:
    day = period.start
    while day <= period.end:
        yield day
        day += timedelta(days=1)


def week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def month_bounds(year: int, month: int) -> Period:
    last_day = calendar.monthrange(year, month)[1]
    return Period(start=date(year, month, 1), end=date(year, month, last_day))


def month_weeks(year: int, month: int) -> list[Period]:
    """Every Monday-Sunday week overlapping the month."""
    bounds = month_bounds(year, month)
    weeks = []
    cursor = week_start(bounds.start)
    while cursor <= bounds.end:
        weeks.append(Period(start=cursor, end=cursor + timedelta(days=6)))
        cursor += timedelta(days=7)
    return weeks


def overtime_range(year: int, month: int) -> Period:
    """
    Date range of entries needed to compute weekly overtime for a month:
    Monday of the month's first week through Sunday of its last week.
    """
    weeks = month_weeks(year, month)
    return Period(start=weeks[0].start, end=weeks[-1].end)


# ---------------------------------------------------------------------------
# Daily & weekly aggregators
# ---------------------------------------------------------------------------

def complementary_hours_for_month(
    entries: Iterable[TimeEntryFacts],
    hours_per_day: float,
) -> float:
    total = 0.0
    for entry in entries:
        if entry.is_absence:
            continue
        total += max(0.0, entry.hours - hours_per_day)
    return total


@dataclass(frozen=True)
class WeekOvertime:
    week_start: date
    hours_done: float
    overtime_hours: float


@dataclass(frozen=True)
class WeeklyOvertime:
    per_week: tuple[WeekOvertime, ...]
    total_overtime_hours: float


def weekly_overtime(
    entries: Iterable[TimeEntryFacts],
    rates: PayrollRates = DEFAULT_RATES,
) -> WeeklyOvertime:
    """
    Group entries by calendar week (Monday-Sunday) and count hours above
    the weekly threshold.

    Entries are not filtered by month: callers pass every entry of the
    weeks they care about (see `overtime_range`), so that a week spanning
    two months is counted once and in full.
    """
    by_week: dict[date, float] = {}
    for entry in entries:
        key = week_start(entry.day)
        hours = 0.0 if entry.is_absence else entry.hours
        by_week[key] = by_week.get(key, 0.0) + hours

    per_week = tuple(
        WeekOvertime(
            week_start=key,
            hours_done=hours_done,
            overtime_hours=max(0.0, hours_done - rates.weekly_overtime_threshold),
        )
        for key, hours_done in sorted(by_week.items())
    )
    return WeeklyOvertime(
        per_week=per_week,
        total_overtime_hours=sum(w.overtime_hours for w in per_week),
    )


# ---------------------------------------------------------------------------
# Monthly expected hours (mensualisation)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExpectedHours:
    weekly_hours: float
    annual_contract_hours: float
    annual_after_planned_absences: float
    monthly_expected_hours_smoothed: float
    cancelled_days_total: int
    cancelled_days_in_month: int


def monthly_expected_hours(params: ContractParams, year: int, month: int) -> ExpectedHours:
    """
    Smoothed monthly hours:
        (hours_per_day * days_per_week * weeks_per_year
         - cancelled planned-absence days * hours_per_day) / 12

    Planned absences are counted over their whole interval, whatever the
    target month. `cancelled_days_in_month` is informational only.
    """
    weekly_hours = params.hours_per_day * params.days_per_week
    annual_contract_hours = weekly_hours * params.weeks_per_year

    cancelled_days_total = 0
    for absence in params.planned_absences:
        for day in iter_days(absence):
            if is_contractual_weekday(day, params.days_per_week):
                cancelled_days_total += 1

    annual_after = annual_contract_hours - cancelled_days_total * params.hours_per_day

    cancelled_days_in_month = 0
    for day in iter_days(month_bounds(year, month)):
        if not is_contractual_weekday(day, params.days_per_week):
            continue
        if any(day in absence for absence in params.planned_absences):
            cancelled_days_in_month += 1

    logger.debug(
        "expected hours %04d-%02d: annual=%s cancelled=%s",
        year,
        month,
        annual_contract_hours,
        cancelled_days_total,
    )
    return ExpectedHours(
        weekly_hours=weekly_hours,
        annual_contract_hours=annual_contract_hours,
        annual_after_planned_absences=annual_after,
        monthly_expected_hours_smoothed=annual_after / MONTHS_PER_YEAR,
        cancelled_days_total=cancelled_days_total,
        cancelled_days_in_month=cancelled_days_in_month,
    )


# ---------------------------------------------------------------------------
# Gross / net
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GrossNetTotals:
    brut_base: float
    brut_complementary: float
    brut_overtime: float
    prime_annuelle: float
    prime_mensuelle: float
    total_brut: float
    net: float


def gross_net_totals(
    *,
    monthly_expected_hours: float,
    effective_hourly_rate: float,
    complementary_hours_month: float,
    bill_complementary_hours: bool,
    overtime_hours_month: float,
    overtime_rate_percent: int,
    annual_after_planned_absences: float,
    contract_type: ContractType,
    apply_precariousness_prime: bool,
    rates: PayrollRates = DEFAULT_RATES,
) -> GrossNetTotals:
    """
    `overtime_hours_month` is the weekly overtime total over the full
    weeks overlapping the month, not a month-clipped figure.
    """
    rate = effective_hourly_rate
    brut_base = monthly_expected_hours * rate
    brut_complementary = complementary_hours_month * rate if bill_complementary_hours else 0.0
    brut_overtime = overtime_hours_month * rate * (overtime_rate_percent / 100)

    if contract_type == ContractType.CDD and apply_precariousness_prime:
        prime_annuelle = PRECARIOUSNESS_PRIME_RATE * (annual_after_planned_absences * rate)
    else:
        prime_annuelle = 0.0
    prime_mensuelle = prime_annuelle / MONTHS_PER_YEAR

    total_brut = brut_base + brut_complementary + brut_overtime + prime_mensuelle
    return GrossNetTotals(
        brut_base=brut_base,
        brut_complementary=brut_complementary,
        brut_overtime=brut_overtime,
        prime_annuelle=prime_annuelle,
        prime_mensuelle=prime_mensuelle,
        total_brut=total_brut,
        net=total_brut * rates.net_coefficient,
    )


# ---------------------------------------------------------------------------
# Indemnities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Indemnities:
    meals_total_month: int
    meal_indemnity: float
    maintenance_indemnity: float


def find_maintenance_tier(
    tiers: Sequence[MaintenanceFeeTier],
    hours: float,
) -> MaintenanceFeeTier | None:
    """
    First tier with min <= hours < max; failing that, first tier with
    min <= hours <= max, so that the top bound of the last tier matches.
    Overlapping tiers resolve to the first match.
    """
    for tier in tiers:
        if tier.min_hours <= hours < tier.max_hours:
            return tier
    for tier in tiers:
        if tier.min_hours <= hours <= tier.max_hours:
            return tier
    return None


def indemnities(
    entries: Iterable[TimeEntryFacts],
    *,
    meal_fee_enabled: bool,
    meal_fee_per_meal: float,
    maintenance_fee_enabled: bool,
    maintenance_fee_tiers: Sequence[MaintenanceFeeTier],
) -> Indemnities:
    meals_total = 0
    meal_indemnity = 0.0
    maintenance_indemnity = 0.0

    for entry in entries:
        if entry.is_absence:
            continue
        meals_total += entry.meals_count
        if meal_fee_enabled:
            meal_indemnity += entry.meals_count * meal_fee_per_meal
        if maintenance_fee_enabled:
            tier = find_maintenance_tier(maintenance_fee_tiers, entry.hours)
            if tier is not None:
                maintenance_indemnity += tier.fee

    return Indemnities(
        meals_total_month=meals_total,
        meal_indemnity=meal_indemnity,
        maintenance_indemnity=maintenance_indemnity,
    )


# ---------------------------------------------------------------------------
# Monthly summary
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DayRow:
    day: date
    entry: TimeEntryFacts | None
    hours_done: float
    complementary_hours: float


@dataclass(frozen=True)
class MonthlySummary:
    year: int
    month: int
    month_entries: tuple[TimeEntryFacts, ...]
    expected: ExpectedHours
    hours_done: float
    complementary_hours_month: float
    weekly: WeeklyOvertime
    gross: GrossNetTotals
    indemnities: Indemnities
    total_a_payer: float
    day_rows: tuple[DayRow, ...] = ()

    def rounded(self) -> dict[str, float]:
        return {
            "expected_monthly_hours": round2(self.expected.monthly_expected_hours_smoothed),
            "hours_done": round2(self.hours_done),
            "complementary_hours_month": round2(self.complementary_hours_month),
            "overtime_hours_month": round2(self.weekly.total_overtime_hours),
            "brut_base": round2(self.gross.brut_base),
            "brut_complementary": round2(self.gross.brut_complementary),
            "brut_overtime": round2(self.gross.brut_overtime),
            "prime_mensuelle": round2(self.gross.prime_mensuelle),
            "total_brut": round2(self.gross.total_brut),
            "net": round2(self.gross.net),
            "meal_indemnity": round2(self.indemnities.meal_indemnity),
            "maintenance_indemnity": round2(self.indemnities.maintenance_indemnity),
            "total_a_payer": round2(self.total_a_payer),
        }


def month_entries(
    entries: Iterable[TimeEntryFacts],
    year: int,
    month: int,
) -> list[TimeEntryFacts]:
    bounds = month_bounds(year, month)
    return [e for e in entries if e.day in bounds]


def month_day_rows(
    entries: Iterable[TimeEntryFacts],
    year: int,
    month: int,
    hours_per_day: float,
) -> list[DayRow]:
    by_day = {e.day: e for e in entries}
    rows = []
    for day in iter_days(month_bounds(year, month)):
        entry = by_day.get(day)
        hours_done = entry.hours if entry else 0.0
        if entry and not entry.is_absence:
            complementary = max(0.0, hours_done - hours_per_day)
        else:
            complementary = 0.0
        rows.append(
            DayRow(
                day=day,
                entry=entry,
                hours_done=hours_done,
                complementary_hours=complementary,
            )
        )
    return rows


def monthly_summary(
    params: ContractParams,
    entries: Sequence[TimeEntryFacts],
    year: int,
    month: int,
    rates: PayrollRates = DEFAULT_RATES,
) -> MonthlySummary:
    """
    Full monthly report for one contract.

    `entries` must cover `overtime_range(year, month)`; everything except
    weekly overtime is computed on the entries of the calendar month only.
    No rounding happens here, see `MonthlySummary.rounded`.
    """
    in_month = month_entries(entries, year, month)
    expected = monthly_expected_hours(params, year, month)
    hours_done = sum(e.hours for e in in_month if not e.is_absence)
    complementary = complementary_hours_for_month(in_month, params.hours_per_day)
    weekly = weekly_overtime(entries, rates)

    gross = gross_net_totals(
        monthly_expected_hours=expected.monthly_expected_hours_smoothed,
        effective_hourly_rate=params.effective_hourly_rate,
        complementary_hours_month=complementary,
        bill_complementary_hours=params.bill_complementary_hours,
        overtime_hours_month=weekly.total_overtime_hours,
        overtime_rate_percent=params.overtime_rate_percent,
        annual_after_planned_absences=expected.annual_after_planned_absences,
        contract_type=params.contract_type,
        apply_precariousness_prime=params.apply_precariousness_prime,
        rates=rates,
    )
    fees = indemnities(
        in_month,
        meal_fee_enabled=params.meal_fee_enabled,
        meal_fee_per_meal=params.meal_fee_per_meal,
        maintenance_fee_enabled=params.maintenance_fee_enabled,
        maintenance_fee_tiers=params.maintenance_fee_tiers,
    )

    return MonthlySummary(
        year=year,
        month=month,
        month_entries=tuple(in_month),
        expected=expected,
        hours_done=hours_done,
        complementary_hours_month=complementary,
        weekly=weekly,
        gross=gross,
        indemnities=fees,
        total_a_payer=gross.total_brut + fees.meal_indemnity + fees.maintenance_indemnity,
        day_rows=tuple(month_day_rows(in_month, year, month, params.hours_per_day)),
    )
