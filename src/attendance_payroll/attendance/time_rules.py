"""Late/early/duration arithmetic for attendance.

All comparisons work on minutes since midnight; seconds of the actual clock
time are dropped before comparing against an ``HH:mm`` schedule.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import minutes_since_midnight
from ..common.money import round2
from ..schedules.model import FlexibleTimeRange


@dataclass(frozen=True)
class TimeValidation:
    is_valid: bool
    is_late: bool = False
    is_early_leave: bool = False
    minutes_late: int = 0
    minutes_early: int = 0
    is_within_flexible_range: bool = False
    message: str = "On time"


def late_minutes(actual: datetime, scheduled_start: str, grace_period_minutes: int = 0) -> int:
    late = minutes_since_midnight(actual) - minutes_since_midnight(scheduled_start) - grace_period_minutes
    return max(0, late)


def early_minutes(actual: datetime, scheduled_end: str, grace_period_minutes: int = 0) -> int:
    early = minutes_since_midnight(scheduled_end) - minutes_since_midnight(actual) - grace_period_minutes
    return max(0, early)


def is_within_flexible_range(actual: datetime, flexible_range: FlexibleTimeRange) -> bool:
    minutes = minutes_since_midnight(actual)
    return minutes_since_midnight(flexible_range.earliest) <= minutes <= minutes_since_midnight(flexible_range.latest)


def validate_clock_in_time(
    actual: datetime,
    scheduled_start: str,
    late_threshold_minutes: int,
    grace_period_minutes: int,
    *,
    allow_flexible_time: bool = False,
    flexible_range: Optional[FlexibleTimeRange] = None,
) -> TimeValidation:
    if allow_flexible_time and flexible_range and is_within_flexible_range(actual, flexible_range):
        return TimeValidation(
            is_valid=True,
            is_within_flexible_range=True,
            message="Clock-in within flexible time range",
        )

    minutes = late_minutes(actual, scheduled_start, grace_period_minutes)
    is_late = minutes > 0 and minutes >= late_threshold_minutes
    return TimeValidation(
        is_valid=not is_late,
        is_late=is_late,
        minutes_late=minutes,
        message=f"Late by {minutes} minutes" if is_late else "On time",
    )


def validate_clock_out_time(
    actual: datetime,
    scheduled_end: str,
    early_leave_threshold_minutes: int,
    grace_period_minutes: int,
) -> TimeValidation:
    minutes = early_minutes(actual, scheduled_end, grace_period_minutes)
    is_early = minutes > 0 and minutes >= early_leave_threshold_minutes
    return TimeValidation(
        is_valid=not is_early,
        is_early_leave=is_early,
        minutes_early=minutes,
        message=f"Early leave by {minutes} minutes" if is_early else "On time",
    )


def work_duration_hours(clock_in: datetime, clock_out: datetime, total_break_minutes: int = 0) -> float:
    """Worked hours net of breaks, never below zero."""
    minutes = (clock_out - clock_in).total_seconds() / 60 - total_break_minutes
    return max(0.0, round2(minutes / 60))


def overtime_hours(worked_hours: float, standard_hours_per_day: float, overtime_starts_after_minutes: int = 0) -> float:
    threshold = standard_hours_per_day + overtime_starts_after_minutes / 60
    return round2(max(0.0, worked_hours - threshold))
