from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Sequence

from ..core.constants import (
    DEFAULT_EARLY_LEAVE_THRESHOLD_MINUTES,
    DEFAULT_END_TIME,
    DEFAULT_GRACE_MINUTES,
    DEFAULT_HOURS_PER_DAY,
    DEFAULT_LATE_THRESHOLD_MINUTES,
    DEFAULT_START_TIME,
)


@dataclass(frozen=True)
class FlexibleTimeRange:
    earliest: str
    latest: str


@dataclass(frozen=True)
class Shift:
    """Domain entity: a named shift with HH:mm boundaries."""

    shift_id: str
    name: str
    start_time: str
    end_time: str
    code: str = ""
    break_minutes: int = 0
    work_hours: float = DEFAULT_HOURS_PER_DAY
    grace_period_minutes: int = DEFAULT_GRACE_MINUTES
    late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES
    early_leave_threshold_minutes: int = DEFAULT_EARLY_LEAVE_THRESHOLD_MINUTES
    premium_rate: float = 0.0
    is_active: bool = True


@dataclass(frozen=True)
class ShiftAssignment:
    assignment_id: str
    employee_id: str
    shift_id: str
    start_date: date
    end_date: Optional[date] = None
    # ISO weekdays (1=Monday .. 7=Sunday); empty means every day
    work_days: Sequence[int] = field(default_factory=tuple)
    is_active: bool = True

    def covers(self, work_date: date) -> bool:
        if not self.is_active or work_date < self.start_date:
            return False
        if self.end_date is not None and work_date > self.end_date:
            return False
        return not self.work_days or work_date.isoweekday() in self.work_days


@dataclass(frozen=True)
class WorkSchedulePolicy:
    policy_id: str
    name: str
    standard_start_time: str
    standard_end_time: str
    hours_per_day: float = DEFAULT_HOURS_PER_DAY
    grace_period_minutes: int = DEFAULT_GRACE_MINUTES
    late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES
    early_leave_threshold_minutes: int = DEFAULT_EARLY_LEAVE_THRESHOLD_MINUTES
    allow_flexible_time: bool = False
    flexible_start_range: Optional[FlexibleTimeRange] = None
    flexible_end_range: Optional[FlexibleTimeRange] = None
    overtime_starts_after_minutes: int = 0
    applicable_departments: Sequence[str] = field(default_factory=tuple)
    applicable_positions: Sequence[str] = field(default_factory=tuple)
    applicable_employment_types: Sequence[str] = field(default_factory=tuple)
    effective_date: Optional[date] = None
    expiry_date: Optional[date] = None
    is_active: bool = True

    def in_effect(self, work_date: date) -> bool:
        if not self.is_active:
            return False
        if self.effective_date and work_date < self.effective_date:
            return False
        return not (self.expiry_date and work_date > self.expiry_date)


class ScheduleSource(str, Enum):
    SHIFT = "shift"
    POLICY = "policy"
    DEFAULT = "default"


@dataclass(frozen=True)
class ResolvedSchedule:
    """Schedule values in force for one employee on one day.

    A copy is stored on the attendance record at clock-in so clock-out is
    evaluated against the same values.
    """

    start_time: str = DEFAULT_START_TIME
    end_time: str = DEFAULT_END_TIME
    grace_period_minutes: int = DEFAULT_GRACE_MINUTES
    late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES
    early_leave_threshold_minutes: int = DEFAULT_EARLY_LEAVE_THRESHOLD_MINUTES
    hours_per_day: float = DEFAULT_HOURS_PER_DAY
    allow_flexible_time: bool = False
    flexible_start_range: Optional[FlexibleTimeRange] = None
    flexible_end_range: Optional[FlexibleTimeRange] = None
    overtime_starts_after_minutes: int = 0
    source: ScheduleSource = ScheduleSource.DEFAULT
    source_id: Optional[str] = None
