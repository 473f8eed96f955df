from datetime import date, datetime

from sqlalchemy import JSON, Boolean, Date, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from .calculations import ContractType

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    pass


SETTINGS_ROW_ID = "singleton"


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class Contract(Base):
    __tablename__ = "contract"

    id: Mapped[int] = mapped_column(primary_key=True)
    child_name: Mapped[str] = mapped_column(String(100), nullable=False)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date)
    contract_type: Mapped[ContractType] = mapped_column(
        SQLEnum(ContractType), nullable=False, default=ContractType.CDI
    )

    hours_per_day: Mapped[float] = mapped_column(Float, nullable=False)
    days_per_week: Mapped[int] = mapped_column(Integer, nullable=False)
    weeks_per_year: Mapped[int] = mapped_column(Integer, nullable=False)
    # [{"start_date": "YYYY-MM-DD", "end_date": "YYYY-MM-DD"}, ...]
    planned_absences: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    base_hourly_rate: Mapped[float] = mapped_column(Float, nullable=False)
    allow_override: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    override_hourly_rate: Mapped[float | None] = mapped_column(Float)

    bill_complementary_hours: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    overtime_rate_percent: Mapped[int] = mapped_column(Integer, default=25, nullable=False)
    apply_precariousness_prime: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    meal_fee_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    meal_fee_per_meal: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    default_meals_per_day: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    maintenance_fee_enabled: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    # [{"min_hours": 0, "max_hours": 8, "fee": 3.8}, ...]
    maintenance_fee_tiers: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

    time_entries: Mapped[list["TimeEntry"]] = relationship(
        back_populates="contract",
        cascade="all, delete-orphan",
    )


class TimeEntry(Base):
    __tablename__ = "time_entry"
    __table_args__ = (
        UniqueConstraint("contract_id", "date", name="uq_time_entry_contract_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    contract_id: Mapped[int] = mapped_column(
        ForeignKey("contract.id"), nullable=False
    )

    date: Mapped[date] = mapped_column(Date, nullable=False)

    # "HH:MM", both set or both empty
    start_time: Mapped[str | None] = mapped_column(String(5))
    end_time: Mapped[str | None] = mapped_column(String(5))
    duration_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    meals_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_planned_absence: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_unplanned_absence: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    is_holiday: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_unavailable: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(String(500))

    contract: Mapped["Contract"] = relationship(back_populates="time_entries")


class AppSettings(Base):
    __tablename__ = "app_settings"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=SETTINGS_ROW_ID)
    net_coefficient: Mapped[float] = mapped_column(Float, nullable=False)
    # [{"days_per_week": 5, "hours_per_day": 8.5, "base_hourly_rate": 4.0, "note": null}]
    reference_grid: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
