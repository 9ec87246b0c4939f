from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import PaymentFrequency


@dataclass(frozen=True)
class Employee:
    """Read-only view of the employee directory used by the pipeline."""

    employee_id: str
    user_id: Optional[str]
    first_name: str
    last_name: str
    employee_code: str = ""
    department_id: Optional[str] = None
    department_name: Optional[str] = None
    position_id: Optional[str] = None
    position_name: Optional[str] = None
    employment_type: Optional[str] = None
    base_salary: float = 0.0
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    overtime_rate: float = 1.5

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
