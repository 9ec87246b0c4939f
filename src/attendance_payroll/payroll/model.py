from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.money import sum2
from ..core.enums import GenerationOutcome, PaymentFrequency, PayrollStatus


@dataclass(frozen=True)
class Allowances:
    transportation: float = 0.0
    housing: float = 0.0
    meal: float = 0.0
    position: float = 0.0
    other: float = 0.0

    @property
    def total(self) -> float:
        return sum2(getattr(self, f.name) for f in fields(self))


@dataclass(frozen=True)
class Deductions:
    tax: float = 0.0
    social_security: float = 0.0
    provident_fund: float = 0.0
    loan: float = 0.0
    advance: float = 0.0
    late_penalty: float = 0.0
    absence_penalty: float = 0.0
    other: float = 0.0

    @property
    def total(self) -> float:
        return sum2(getattr(self, f.name) for f in fields(self))


@dataclass(frozen=True)
class PayrollCalculationInput:
    """Everything the calculator needs for one employee and one month.

    Rates are percentages (``7`` means 7%). ``None`` selects the statutory
    default for tax and social security, and no provident fund.
    """

    employee_id: str
    month: int
    year: int
    base_salary: float
    actual_work_days: float = 0
    absent_days: float = 0
    late_days: int = 0
    on_leave_days: float = 0
    overtime_hours: float = 0.0
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    overtime_rate: float = 1.5
    bonus: float = 0.0
    allowances: Allowances = field(default_factory=Allowances)
    tax_rate: Optional[float] = None
    social_security_rate: Optional[float] = None
    provident_fund_rate: Optional[float] = None
    loan: float = 0.0
    advance: float = 0.0


@dataclass(frozen=True)
class PayrollCalculationResult:
    base_salary: float
    overtime_pay: float
    bonus: float
    allowances: Allowances
    gross_income: float
    deductions: Deductions
    total_deductions: float
    net_pay: float
    working_days: int
    actual_work_days: float
    absent_days: float
    late_days: int
    on_leave_days: float
    overtime_hours: float


@dataclass(frozen=True)
class PayrollRecord:
    """Domain entity: one employee's payroll for one (month, year)."""

    payroll_id: str
    employee_id: str
    month: int
    year: int
    period_start: date
    period_end: date
    pay_date: date
    base_salary: float
    overtime_pay: float
    bonus: float
    allowances: Allowances
    gross_income: float
    deductions: Deductions
    total_deductions: float
    net_pay: float
    working_days: int
    actual_work_days: float
    absent_days: float
    late_days: int
    on_leave_days: float
    overtime_hours: float
    status: PayrollStatus = PayrollStatus.DRAFT

    employee_name: str = ""
    employee_code: str = ""
    department_id: Optional[str] = None
    department_name: Optional[str] = None
    position_id: Optional[str] = None
    position_name: Optional[str] = None

    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    approval_comments: Optional[str] = None
    paid_by: Optional[str] = None
    paid_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    transaction_ref: Optional[str] = None
    notes: Optional[str] = None
    version: int = 1


@dataclass(frozen=True)
class CreatePayrollInput:
    employee_id: str
    month: int
    year: int
    period_start: date
    period_end: date
    pay_date: date
    notes: Optional[str] = None


@dataclass(frozen=True)
class UpdatePayrollInput:
    """Partial edit; ``None`` leaves a field unchanged.

    ``allowances``/``deductions`` are merged key by key over the stored values.
    """

    base_salary: Optional[float] = None
    overtime_pay: Optional[float] = None
    bonus: Optional[float] = None
    allowances: Optional[dict] = None
    deductions: Optional[dict] = None
    pay_date: Optional[date] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class ApprovePayrollInput:
    approver_id: str
    comments: Optional[str] = None


@dataclass(frozen=True)
class ProcessPaymentInput:
    payment_method: str
    paid_by: str
    transaction_ref: Optional[str] = None


@dataclass(frozen=True)
class GeneratePayrollInput:
    month: int
    year: int
    pay_date: date
    department_id: Optional[str] = None


@dataclass(frozen=True)
class PayrollFilters:
    employee_id: Optional[str] = None
    department_id: Optional[str] = None
    month: Optional[int] = None
    year: Optional[int] = None
    status: Optional[PayrollStatus] = None


@dataclass(frozen=True)
class PayrollSummary:
    total_employees: int
    total_gross_income: float
    total_deductions: float
    total_net_pay: float
    average_net_pay: float
    month: int
    year: int


@dataclass(frozen=True)
class PayrollGenerationDetail:
    employee_id: str
    employee_name: str
    status: GenerationOutcome
    message: str = ""
    payroll_id: Optional[str] = None


@dataclass(frozen=True)
class PayrollGenerationResult:
    """Outcome of a monthly run; one detail per employee considered."""

    month: int
    year: int
    generated: int
    skipped: int
    errors: int
    details: Sequence[PayrollGenerationDetail] = field(default_factory=tuple)
