from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Employee


class EmployeeRepository(Protocol):
    """Employee directory port.

    Services depend on this interface, never on a concrete store.
    """

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_user_id(self, user_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def list_active(self, department_id: Optional[str] = None) -> Sequence[Employee]:
        """Active employees, optionally restricted to one department."""

        raise NotImplementedError
