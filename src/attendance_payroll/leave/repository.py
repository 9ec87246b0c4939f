from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .model import LeaveRequest


class LeaveRepository(Protocol):
    def list_approved(self, *, employee_id: str, start: date, end: date) -> Sequence[LeaveRequest]:
        """Approved leave requests overlapping the inclusive range."""

        raise NotImplementedError
