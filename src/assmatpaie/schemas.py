from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .calculations import ContractType, parse_clock_minutes

CLOCK_PATTERN = r"^\d{2}:\d{2}$"

DaysPerWeek = Literal[2, 3, 4, 5]
OvertimeRatePercent = Literal[10, 15, 25]


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

class PlannedAbsenceIn(BaseModel):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_order(self) -> "PlannedAbsenceIn":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be >= start_date")
        return self


class MaintenanceFeeTierIn(BaseModel):
    min_hours: float = Field(ge=0)
    max_hours: float = Field(gt=0)
    fee: float = Field(ge=0)

    @model_validator(mode="after")
    def check_bounds(self) -> "MaintenanceFeeTierIn":
        if self.max_hours <= self.min_hours:
            raise ValueError("max_hours must be > min_hours")
        return self


class ContractIn(BaseModel):
    child_name: str = Field(min_length=1, max_length=100)
    start_date: date
    end_date: date | None = None
    contract_type: ContractType = ContractType.CDI

    hours_per_day: float = Field(gt=0)
    days_per_week: DaysPerWeek
    weeks_per_year: int = Field(ge=1, le=53)
    planned_absences: list[PlannedAbsenceIn] = Field(default_factory=list)

    # 0 means "look it up in the reference grid"
    base_hourly_rate: float = Field(default=0.0, ge=0)
    allow_override: bool = False
    override_hourly_rate: float | None = Field(default=None, ge=0)

    bill_complementary_hours: bool = False
    overtime_rate_percent: OvertimeRatePercent = 25
    apply_precariousness_prime: bool = False

    meal_fee_enabled: bool = False
    meal_fee_per_meal: float = Field(default=0.0, ge=0)
    default_meals_per_day: int = Field(default=0, ge=0, le=10)
    maintenance_fee_enabled: bool = False
    maintenance_fee_tiers: list[MaintenanceFeeTierIn] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_tiers_disjoint(self) -> "ContractIn":
        """
        Reject tiers whose [min, max) ranges overlap; abutting tiers are fine.
        The engine itself still accepts overlapping tiers and resolves them
        first-match (see `find_maintenance_tier`).
        """
        tiers = sorted(self.maintenance_fee_tiers, key=lambda t: t.min_hours)
        for previous, current in zip(tiers, tiers[1:]):
            if current.min_hours < previous.max_hours:
                raise ValueError(
                    "maintenance_fee_tiers overlap: "
                    f"[{previous.min_hours}, {previous.max_hours}) and "
                    f"[{current.min_hours}, {current.max_hours})"
                )
        return self

    def to_row_values(self) -> dict:
        values = self.model_dump(mode="json")
        values["start_date"] = self.start_date
        values["end_date"] = self.end_date
        values["contract_type"] = self.contract_type
        return values


class TimeEntryIn(BaseModel):
    date: date
    start_time: str | None = Field(default=None, pattern=CLOCK_PATTERN)
    end_time: str | None = Field(default=None, pattern=CLOCK_PATTERN)
    meals_count: int = Field(default=0, ge=0, le=10)
    is_planned_absence: bool = False
    is_unplanned_absence: bool = False
    is_holiday: bool = False
    is_unavailable: bool = False
    notes: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def check_times(self) -> "TimeEntryIn":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must both be set or both be empty")
        if self.start_time is not None:
            hours, minutes = divmod(parse_clock_minutes(self.start_time), 60)
            end_hours, end_minutes = divmod(parse_clock_minutes(self.end_time), 60)
            if max(hours, end_hours) > 23 or max(minutes, end_minutes) > 59:
                raise ValueError("times must be valid HH:MM clock values")
        return self


class ReferenceGridRowIn(BaseModel):
    days_per_week: DaysPerWeek
    hours_per_day: float = Field(gt=0)
    base_hourly_rate: float = Field(ge=0)
    note: str | None = None


class SettingsIn(BaseModel):
    reference_grid: list[ReferenceGridRowIn]


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

class ContractOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    child_name: str
    start_date: date
    end_date: date | None
    contract_type: ContractType
    hours_per_day: float
    days_per_week: int
    weeks_per_year: int
    planned_absences: list[PlannedAbsenceIn]
    base_hourly_rate: float
    allow_override: bool
    override_hourly_rate: float | None
    bill_complementary_hours: bool
    overtime_rate_percent: int
    apply_precariousness_prime: bool
    meal_fee_enabled: bool
    meal_fee_per_meal: float
    default_meals_per_day: int
    maintenance_fee_enabled: bool
    maintenance_fee_tiers: list[MaintenanceFeeTierIn]
    created_at: datetime | None = None


class ContractSummaryOut(ContractOut):
    effective_hourly_rate: float


class TimeEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    contract_id: int | None = None
    date: date
    start_time: str | None
    end_time: str | None
    duration_minutes: int
    meals_count: int
    is_planned_absence: bool
    is_unplanned_absence: bool
    is_holiday: bool
    is_unavailable: bool
    notes: str | None = None


class AppSettingsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    net_coefficient: float
    reference_grid: list[ReferenceGridRowIn]


class ExpectedHoursOut(BaseModel):
    weekly_hours: float
    annual_contract_hours: float
    annual_after_planned_absences: float
    monthly_expected_hours_smoothed: float
    cancelled_days_total: int
    cancelled_days_in_month: int


class WeekOvertimeOut(BaseModel):
    week_start: date
    hours_done: float
    overtime_hours: float


class WeeklyOvertimeOut(BaseModel):
    details: list[WeekOvertimeOut]
    overtime_hours_total: float


class GrossNetOut(BaseModel):
    brut_base: float
    brut_complementary: float
    brut_overtime: float
    prime_annuelle: float
    prime_mensuelle: float
    total_brut: float
    net: float


class IndemnitiesOut(BaseModel):
    meals_total_month: int
    meal_indemnity: float
    maintenance_indemnity: float


class DayRowOut(BaseModel):
    date: date
    entry: TimeEntryOut | None
    hours_done: float
    complementary_hours: float


class RoundedTotalsOut(BaseModel):
    expected_monthly_hours: float
    hours_done: float
    complementary_hours_month: float
    overtime_hours_month: float
    brut_base: float
    brut_complementary: float
    brut_overtime: float
    prime_mensuelle: float
    total_brut: float
    net: float
    meal_indemnity: float
    maintenance_indemnity: float
    total_a_payer: float


class MonthlySummaryOut(BaseModel):
    month: str
    period_start: date
    period_end: date
    contract: ContractSummaryOut
    entries: list[TimeEntryOut]
    expected: ExpectedHoursOut
    hours_done: float
    complementary_hours_month: float
    weekly: WeeklyOvertimeOut
    gross: GrossNetOut
    indemnities: IndemnitiesOut
    total_a_payer: float
    day_rows: list[DayRowOut]
    rounded: RoundedTotalsOut
