from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable, Mapping


@dataclass(frozen=True)
class ReferenceGridRow:
    days_per_week: int
    hours_per_day: float
    base_hourly_rate: float
    note: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


DEFAULT_REFERENCE_GRID: tuple[ReferenceGridRow, ...] = (
    ReferenceGridRow(days_per_week=2, hours_per_day=8.0, base_hourly_rate=4.8),
    ReferenceGridRow(days_per_week=3, hours_per_day=8.0, base_hourly_rate=4.5),
    ReferenceGridRow(days_per_week=4, hours_per_day=8.5, base_hourly_rate=4.2),
    ReferenceGridRow(days_per_week=5, hours_per_day=8.5, base_hourly_rate=4.0),
    ReferenceGridRow(days_per_week=5, hours_per_day=10.0, base_hourly_rate=3.9),
)


def grid_from_json(rows: Iterable[Mapping] | None) -> list[ReferenceGridRow]:
    return [
        ReferenceGridRow(
            days_per_week=int(row["days_per_week"]),
            hours_per_day=float(row["hours_per_day"]),
            base_hourly_rate=float(row["base_hourly_rate"]),
            note=row.get("note"),
        )
        for row in rows or []
    ]


def resolve_base_hourly_rate(
    grid: Iterable[ReferenceGridRow],
    days_per_week: int,
    hours_per_day: float,
) -> float:
    """
    Base hourly rate from the reference grid.

    Exact (days_per_week, hours_per_day) match first; otherwise the row with
    the same days_per_week whose hours_per_day is closest. 0.0 when the
    grid has no row for that number of days.
    """
    candidates = [row for row in grid if row.days_per_week == days_per_week]
    for row in candidates:
        if row.hours_per_day == hours_per_day:
            return row.base_hourly_rate
    if not candidates:
        return 0.0
    closest = min(candidates, key=lambda row: abs(row.hours_per_day - hours_per_day))
    return closest.base_hourly_rate


def effective_hourly_rate(
    base_hourly_rate: float,
    *,
    allow_override: bool,
    override_hourly_rate: float | None,
) -> float:
    if allow_override and override_hourly_rate is not None:
        return override_hourly_rate
    return base_hourly_rate
