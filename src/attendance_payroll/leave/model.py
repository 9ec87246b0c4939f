from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class LeaveRequest:
    """Approved leave as seen by attendance (the leave workflow lives elsewhere)."""

    leave_id: str
    employee_id: str
    start_date: date
    end_date: date
    total_days: float
    status: str = "approved"
