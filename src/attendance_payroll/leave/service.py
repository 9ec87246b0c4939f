from __future__ import annotations

from datetime import date

from ..common.datetime_utils import count_weekdays
from .repository import LeaveRepository


class LeaveResolver:
    def __init__(self, leaves: LeaveRepository):
        self._leaves = leaves

    def has_overlapping_leave(self, employee_id: str, start: date, end: date) -> bool:
        return bool(self._leaves.list_approved(employee_id=employee_id, start=start, end=end))

    def leave_days(self, employee_id: str, start: date, end: date) -> float:
        """Leave days inside the range.

        A request fully inside the range counts its own ``total_days`` (which
        may be fractional); one straddling a boundary counts the weekdays that
        fall inside.
        """
        total = 0.0
        for leave in self._leaves.list_approved(employee_id=employee_id, start=start, end=end):
            if leave.start_date >= start and leave.end_date <= end:
                total += leave.total_days
            else:
                total += count_weekdays(max(leave.start_date, start), min(leave.end_date, end))
        return total
