from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import PayrollFilters, PayrollRecord


class PayrollRepository(Protocol):
    """Persistence port for payroll records."""

    def get_by_id(self, payroll_id: str) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def get_by_employee_and_period(self, employee_id: str, month: int, year: int) -> Optional[PayrollRecord]:
        """The non-cancelled record for that period, if any."""

        raise NotImplementedError

    def list(self, filters: PayrollFilters) -> Sequence[PayrollRecord]:
        raise NotImplementedError

    def create(self, record: PayrollRecord) -> str:
        raise NotImplementedError

    def save(self, record: PayrollRecord, *, expected_version: int) -> PayrollRecord:
        raise NotImplementedError
