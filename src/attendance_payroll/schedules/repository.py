from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Shift, ShiftAssignment, WorkSchedulePolicy


class ScheduleRepository(Protocol):
    def list_assignments(self, *, employee_id: str, work_date: date) -> Sequence[ShiftAssignment]:
        """Active shift assignments of the employee that started on or before ``work_date``."""

        raise NotImplementedError

    def get_shift(self, shift_id: str) -> Optional[Shift]:
        raise NotImplementedError

    def list_active_policies(self) -> Sequence[WorkSchedulePolicy]:
        raise NotImplementedError
