from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_open_for_employee(self, employee_id: str) -> Optional[AttendanceRecord]:
        """The latest clocked-in record, whatever its work date."""

        raise NotImplementedError

    def list_for_employee(self, employee_id: str, *, start: date, end: date) -> Sequence[AttendanceRecord]:
        """Records with ``start <= work_date <= end``, oldest first."""

        raise NotImplementedError

    def get_recent_for_employee(self, employee_id: str, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create(self, record: AttendanceRecord) -> str:
        """Persist a new record and return its id (``record.record_id`` is ignored)."""

        raise NotImplementedError

    def save(self, record: AttendanceRecord, *, expected_version: int) -> AttendanceRecord:
        """Compare-and-swap write; raises ConcurrentModificationError on a stale version.

        Returns the record carrying its new version.
        """

        raise NotImplementedError
