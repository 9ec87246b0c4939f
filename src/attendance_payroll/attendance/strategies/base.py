from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from ...schedules.model import ResolvedSchedule
from ..time_rules import TimeValidation


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how a clock time is judged against a schedule."""

    @abstractmethod
    def decide_clock_in(self, *, now: datetime, schedule: ResolvedSchedule) -> TimeValidation:
        raise NotImplementedError

    @abstractmethod
    def decide_clock_out(self, *, now: datetime, schedule: ResolvedSchedule) -> TimeValidation:
        raise NotImplementedError
