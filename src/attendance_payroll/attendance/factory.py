from __future__ import annotations

from dataclasses import dataclass

from ..schedules.model import ResolvedSchedule
from .strategies.base import AttendanceStrategy
from .strategies.fixed_strategy import FixedScheduleStrategy
from .strategies.flexible_strategy import FlexibleScheduleStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose the time-rule strategy for a schedule."""

    def for_schedule(self, schedule: ResolvedSchedule) -> AttendanceStrategy:
        if schedule.allow_flexible_time and (schedule.flexible_start_range or schedule.flexible_end_range):
            return FlexibleScheduleStrategy()
        return FixedScheduleStrategy()
