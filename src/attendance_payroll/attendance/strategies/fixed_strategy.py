from __future__ import annotations

from datetime import datetime

from ...schedules.model import ResolvedSchedule
from ..time_rules import TimeValidation, validate_clock_in_time, validate_clock_out_time
from .base import AttendanceStrategy


class FixedScheduleStrategy(AttendanceStrategy):
    """Grace period and thresholds against fixed start/end times."""

    def decide_clock_in(self, *, now: datetime, schedule: ResolvedSchedule) -> TimeValidation:
        return validate_clock_in_time(
            now,
            schedule.start_time,
            schedule.late_threshold_minutes,
            schedule.grace_period_minutes,
        )

    def decide_clock_out(self, *, now: datetime, schedule: ResolvedSchedule) -> TimeValidation:
        return validate_clock_out_time(
            now,
            schedule.end_time,
            schedule.early_leave_threshold_minutes,
            schedule.grace_period_minutes,
        )
