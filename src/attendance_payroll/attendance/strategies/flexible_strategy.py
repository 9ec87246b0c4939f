from __future__ import annotations

from datetime import datetime

from ...schedules.model import ResolvedSchedule
from ..time_rules import TimeValidation, is_within_flexible_range, validate_clock_in_time
from .fixed_strategy import FixedScheduleStrategy


class FlexibleScheduleStrategy(FixedScheduleStrategy):
    """Flexible bands: a clock time inside the band is never late/early."""

    def decide_clock_in(self, *, now: datetime, schedule: ResolvedSchedule) -> TimeValidation:
        return validate_clock_in_time(
            now,
            schedule.start_time,
            schedule.late_threshold_minutes,
            schedule.grace_period_minutes,
            allow_flexible_time=True,
            flexible_range=schedule.flexible_start_range,
        )

    def decide_clock_out(self, *, now: datetime, schedule: ResolvedSchedule) -> TimeValidation:
        end_range = schedule.flexible_end_range
        if end_range and is_within_flexible_range(now, end_range):
            return TimeValidation(
                is_valid=True,
                is_within_flexible_range=True,
                message="Clock-out within flexible time range",
            )
        return super().decide_clock_out(now=now, schedule=schedule)
