from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional

import pytest

from attendance_payroll.attendance.model import AttendanceStats
from attendance_payroll.core.enums import GenerationOutcome, PayrollStatus
from attendance_payroll.core.exceptions import (
    ConcurrentModificationError,
    EmployeeNotFoundError,
    ErrorKind,
    InfrastructureError,
    InvalidStatusTransitionError,
    PayrollExistsError,
    PayrollNotFoundError,
    ValidationError,
)
from attendance_payroll.employees.model import Employee
from attendance_payroll.payroll.model import (
    ApprovePayrollInput,
    CreatePayrollInput,
    GeneratePayrollInput,
    PayrollCalculationInput,
    PayrollFilters,
    PayrollRecord,
    ProcessPaymentInput,
    UpdatePayrollInput,
)
from attendance_payroll.payroll.service import PayrollService

NOW = datetime(2025, 10, 1, 10, 0)


class InMemoryPayroll:
    def __init__(self):
        self.records: dict[str, PayrollRecord] = {}
        self._id = 0

    def get_by_id(self, payroll_id: str) -> Optional[PayrollRecord]:
        return self.records.get(payroll_id)

    def get_by_employee_and_period(self, employee_id: str, month: int, year: int) -> Optional[PayrollRecord]:
        return next(
            (
                r
                for r in self.records.values()
                if r.employee_id == employee_id and (r.month, r.year) == (month, year)
                and r.status != PayrollStatus.CANCELLED
            ),
            None,
        )

    def list(self, filters: PayrollFilters):
        return [
            r
            for r in self.records.values()
            if (filters.employee_id is None or r.employee_id == filters.employee_id)
            and (filters.month is None or r.month == filters.month)
            and (filters.year is None or r.year == filters.year)
            and (filters.status is None or r.status == filters.status)
        ]

    def create(self, record: PayrollRecord) -> str:
        self._id += 1
        payroll_id = f"pay-{self._id}"
        self.records[payroll_id] = replace(record, payroll_id=payroll_id)
        return payroll_id

    def save(self, record: PayrollRecord, *, expected_version: int) -> PayrollRecord:
        current = self.records[record.payroll_id]
        if current.version != expected_version:
            raise ConcurrentModificationError("Payroll record was modified concurrently")
        saved = replace(record, version=expected_version + 1)
        self.records[record.payroll_id] = saved
        return saved


@dataclass
class InMemoryEmployees:
    employees: dict = field(default_factory=dict)

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        return self.employees.get(employee_id)

    def get_by_user_id(self, user_id: str) -> Optional[Employee]:
        return next((e for e in self.employees.values() if e.user_id == user_id), None)

    def list_active(self, department_id: Optional[str] = None):
        return [e for e in self.employees.values() if department_id in (None, e.department_id)]


@dataclass
class FixedStats:
    stats: AttendanceStats
    calls: list = field(default_factory=list)

    def calculate_stats(self, employee_id: str, start: date, end: date) -> AttendanceStats:
        self.calls.append((employee_id, start, end))
        return self.stats


@dataclass
class FlakyStats(FixedStats):
    broken: tuple = ()

    def calculate_stats(self, employee_id: str, start: date, end: date) -> AttendanceStats:
        if employee_id in self.broken:
            raise ConnectionError("attendance store unavailable")
        return super().calculate_stats(employee_id, start, end)


class BrokenPayroll(InMemoryPayroll):
    def list(self, filters):
        raise ConnectionError("mysql is down")


ADA = Employee(
    "emp-1",
    "user-1",
    "Ada",
    "Lovelace",
    employee_code="E001",
    department_id="dept-eng",
    department_name="Engineering",
    base_salary=22_000,
)

STATS = AttendanceStats(
    total_days=22,
    present_days=20,
    absent_days=1,
    late_days=2,
    on_leave_days=1,
    total_work_hours=164,
    average_work_hours=8.2,
    overtime_hours=4,
)

SEPTEMBER = CreatePayrollInput(
    employee_id="emp-1",
    month=9,
    year=2025,
    period_start=date(2025, 9, 1),
    period_end=date(2025, 9, 30),
    pay_date=date(2025, 10, 1),
)


def make_service(payroll=None):
    payroll = payroll or InMemoryPayroll()
    attendance = FixedStats(STATS)
    service = PayrollService(payroll, InMemoryEmployees({"emp-1": ADA}), attendance)
    return service, payroll, attendance


def test_create_payroll_uses_attendance_stats():
    service, repo, attendance = make_service()

    record = service.create_payroll(SEPTEMBER)

    assert attendance.calls == [("emp-1", date(2025, 9, 1), date(2025, 9, 30))]
    assert record.payroll_id == "pay-1"
    assert record.status == PayrollStatus.DRAFT
    assert record.employee_name == "Ada Lovelace"
    assert record.department_name == "Engineering"
    assert (record.actual_work_days, record.absent_days, record.late_days) == (20, 1, 2)
    assert record.overtime_pay == 750
    assert record.gross_income == 22_750
    assert record.deductions.absence_penalty == 1_000
    assert record.net_pay == 20_800
    assert repo.get_by_id("pay-1") == record


def test_create_payroll_twice_for_same_period():
    service, _, _ = make_service()
    service.create_payroll(SEPTEMBER)

    with pytest.raises(PayrollExistsError):
        service.create_payroll(SEPTEMBER)


def test_create_payroll_after_cancel_is_allowed():
    service, _, _ = make_service()
    first = service.create_payroll(SEPTEMBER)
    service.cancel_payroll(first.payroll_id)

    assert service.create_payroll(SEPTEMBER).payroll_id == "pay-2"


def test_create_payroll_unknown_employee():
    service, _, _ = make_service()

    with pytest.raises(EmployeeNotFoundError):
        service.create_payroll(replace(SEPTEMBER, employee_id="ghost"))


@pytest.mark.parametrize(
    "overrides",
    [
        {"month": 13},
        {"year": 1999},
        {"period_start": date(2025, 10, 1)},
    ],
)
def test_create_payroll_rejects_bad_period(overrides):
    service, _, _ = make_service()

    with pytest.raises(ValidationError):
        service.create_payroll(replace(SEPTEMBER, **overrides))


def test_calculate_payroll_validates_input():
    service, _, _ = make_service()

    with pytest.raises(ValidationError):
        service.calculate_payroll(PayrollCalculationInput("emp-1", 9, 2025, base_salary=-1))
    with pytest.raises(ValidationError):
        service.calculate_payroll(PayrollCalculationInput("emp-1", 9, 2025, base_salary=1, overtime_rate=6))
    with pytest.raises(ValidationError):
        service.calculate_payroll(PayrollCalculationInput("emp-1", 9, 2025, base_salary=1, tax_rate=120))


def test_update_draft_rederives_totals():
    service, _, _ = make_service()
    record = service.create_payroll(SEPTEMBER)

    updated = service.update_payroll(
        record.payroll_id,
        UpdatePayrollInput(bonus=1_000, allowances={"meal": 500}, deductions={"loan": 300}, notes="adjusted"),
    )

    assert updated.gross_income == 24_250
    assert updated.deductions.loan == 300
    assert updated.total_deductions == 2_250
    assert updated.net_pay == 22_000
    assert updated.notes == "adjusted"
    assert updated.version == record.version + 1


def test_update_rejects_unknown_allowance():
    service, _, _ = make_service()
    record = service.create_payroll(SEPTEMBER)

    with pytest.raises(ValidationError):
        service.update_payroll(record.payroll_id, UpdatePayrollInput(allowances={"yacht": 1}))


def test_only_drafts_can_be_edited():
    service, _, _ = make_service()
    record = service.create_payroll(SEPTEMBER)
    service.submit_payroll(record.payroll_id)

    with pytest.raises(InvalidStatusTransitionError) as exc:
        service.update_payroll(record.payroll_id, UpdatePayrollInput(bonus=1))
    assert exc.value.kind == ErrorKind.STATE_CONFLICT


def test_full_lifecycle():
    service, _, _ = make_service()
    record = service.create_payroll(SEPTEMBER)

    pending = service.submit_payroll(record.payroll_id)
    approved = service.approve_payroll(record.payroll_id, ApprovePayrollInput("mgr-1", "ok"), now=NOW)
    paid = service.process_payment(
        record.payroll_id, ProcessPaymentInput("bank-transfer", "fin-1", transaction_ref="TX-9"), now=NOW
    )

    assert pending.status == PayrollStatus.PENDING
    assert (approved.status, approved.approved_by, approved.approved_at) == (PayrollStatus.APPROVED, "mgr-1", NOW)
    assert approved.approval_comments == "ok"
    assert (paid.status, paid.paid_by, paid.payment_method) == (PayrollStatus.PAID, "fin-1", "bank-transfer")
    assert paid.transaction_ref == "TX-9"


def test_draft_can_be_approved_directly():
    service, _, _ = make_service()
    record = service.create_payroll(SEPTEMBER)

    approved = service.approve_payroll(record.payroll_id, ApprovePayrollInput("mgr-1"), now=NOW)

    assert approved.status == PayrollStatus.APPROVED


def test_cannot_pay_unapproved_payroll():
    service, _, _ = make_service()
    record = service.create_payroll(SEPTEMBER)

    with pytest.raises(InvalidStatusTransitionError):
        service.process_payment(record.payroll_id, ProcessPaymentInput("cash", "fin-1"), now=NOW)


def test_paid_payroll_is_terminal():
    service, _, _ = make_service()
    record = service.create_payroll(SEPTEMBER)
    service.approve_payroll(record.payroll_id, ApprovePayrollInput("mgr-1"), now=NOW)
    service.process_payment(record.payroll_id, ProcessPaymentInput("cash", "fin-1"), now=NOW)

    with pytest.raises(InvalidStatusTransitionError):
        service.cancel_payroll(record.payroll_id)
    with pytest.raises(InvalidStatusTransitionError):
        service.approve_payroll(record.payroll_id, ApprovePayrollInput("mgr-1"), now=NOW)


def test_unknown_payment_method():
    service, _, _ = make_service()
    record = service.create_payroll(SEPTEMBER)
    service.approve_payroll(record.payroll_id, ApprovePayrollInput("mgr-1"), now=NOW)

    with pytest.raises(ValidationError):
        service.process_payment(record.payroll_id, ProcessPaymentInput("crypto", "fin-1"), now=NOW)


def test_approver_is_required():
    service, _, _ = make_service()
    record = service.create_payroll(SEPTEMBER)

    with pytest.raises(ValidationError):
        service.approve_payroll(record.payroll_id, ApprovePayrollInput(" "), now=NOW)


def test_missing_payroll():
    service, _, _ = make_service()

    with pytest.raises(PayrollNotFoundError):
        service.submit_payroll("pay-404")
    assert service.get_payroll("pay-404") is None


def test_summary_for_month():
    service, repo, _ = make_service()
    service.create_payroll(SEPTEMBER)
    repo.create(replace(repo.get_by_id("pay-1"), employee_id="emp-2", gross_income=10_000, total_deductions=500, net_pay=9_500))

    summary = service.get_summary(9, 2025)

    assert summary.total_employees == 2
    assert summary.total_gross_income == 32_750
    assert summary.total_net_pay == 30_300
    assert summary.average_net_pay == 15_150


def test_summary_for_empty_month():
    service, _, _ = make_service()

    summary = service.get_summary(1, 2025)

    assert summary.total_employees == 0
    assert summary.average_net_pay == 0


def test_repository_failure_becomes_infrastructure_error():
    service, _, _ = make_service(BrokenPayroll())

    with pytest.raises(InfrastructureError) as exc:
        service.list_payrolls()
    assert exc.value.message == "Unable to load payroll records"


def test_summary_ignores_cancelled_records():
    service, _, _ = make_service()
    first = service.create_payroll(SEPTEMBER)
    service.cancel_payroll(first.payroll_id)
    service.create_payroll(SEPTEMBER)

    summary = service.get_summary(9, 2025)

    assert summary.total_employees == 1
    assert summary.total_net_pay == 20_800
    assert summary.average_net_pay == 20_800


GRACE = Employee("emp-2", "user-2", "Grace", "Hopper", department_id="dept-eng", base_salary=30_000)
LINUS = Employee("emp-3", "user-3", "Linus", "Torvalds", department_id="dept-ops", base_salary=22_000)


def make_batch_service(broken=()):
    payroll = InMemoryPayroll()
    employees = InMemoryEmployees({"emp-1": ADA, "emp-2": GRACE, "emp-3": LINUS})
    return PayrollService(payroll, employees, FlakyStats(STATS, broken=broken)), payroll


def test_generate_monthly_payroll_reports_each_employee():
    service, repo = make_batch_service(broken=("emp-2",))
    service.create_payroll(SEPTEMBER)

    result = service.generate_monthly_payroll(GeneratePayrollInput(9, 2025, date(2025, 10, 5)))

    assert (result.month, result.year) == (9, 2025)
    assert (result.generated, result.skipped, result.errors) == (1, 1, 1)
    details = {d.employee_id: d for d in result.details}
    assert (details["emp-1"].status, details["emp-1"].message) == (GenerationOutcome.SKIPPED, "Payroll already exists")
    assert details["emp-2"].status == GenerationOutcome.ERROR
    assert details["emp-2"].employee_name == "Grace Hopper"
    assert details["emp-2"].message == "Unable to create payroll record"
    assert details["emp-3"].status == GenerationOutcome.SUCCESS
    created = repo.get_by_id(details["emp-3"].payroll_id)
    assert (created.period_start, created.period_end) == (date(2025, 9, 1), date(2025, 9, 30))
    assert created.pay_date == date(2025, 10, 5)
    assert created.status == PayrollStatus.DRAFT
    assert repo.get_by_employee_and_period("emp-2", 9, 2025) is None


def test_generate_monthly_payroll_for_one_department():
    service, repo = make_batch_service()

    result = service.generate_monthly_payroll(GeneratePayrollInput(9, 2025, date(2025, 10, 1), department_id="dept-ops"))

    assert [d.employee_id for d in result.details] == ["emp-3"]
    assert (result.generated, result.skipped, result.errors) == (1, 0, 0)
    assert len(repo.records) == 1


def test_generate_monthly_payroll_with_no_employees():
    service, _ = make_batch_service()

    result = service.generate_monthly_payroll(GeneratePayrollInput(9, 2025, date(2025, 10, 1), department_id="dept-hr"))

    assert (result.generated, result.skipped, result.errors) == (0, 0, 0)
    assert result.details == ()


def test_generate_monthly_payroll_validates_period():
    service, _ = make_batch_service()

    with pytest.raises(ValidationError):
        service.generate_monthly_payroll(GeneratePayrollInput(13, 2025, date(2025, 10, 1)))
    with pytest.raises(ValidationError):
        service.generate_monthly_payroll(GeneratePayrollInput(9, 2025, None))
