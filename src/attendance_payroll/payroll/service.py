from __future__ import annotations

import logging
from dataclasses import fields, replace
from datetime import datetime
from typing import Optional, Sequence

from ..attendance.service import AttendanceService
from ..common.datetime_utils import month_bounds, now_local
from ..common.money import round2
from ..common.validators import (
    optional_non_negative,
    require_month,
    require_non_empty,
    require_non_negative,
    require_overtime_rate,
    require_percentage,
    require_year,
)
from ..core.constants import PAYMENT_METHODS
from ..core.enums import GenerationOutcome, PayrollStatus
from ..core.exceptions import (
    DomainError,
    EmployeeNotFoundError,
    InvalidStatusTransitionError,
    PayrollExistsError,
    PayrollNotFoundError,
    ValidationError,
    translate_errors,
)
from ..employees.repository import EmployeeRepository
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import (
    Allowances,
    ApprovePayrollInput,
    CreatePayrollInput,
    Deductions,
    GeneratePayrollInput,
    PayrollCalculationInput,
    PayrollCalculationResult,
    PayrollFilters,
    PayrollGenerationDetail,
    PayrollGenerationResult,
    PayrollRecord,
    PayrollSummary,
    ProcessPaymentInput,
    UpdatePayrollInput,
)
from .repository import PayrollRepository

logger = logging.getLogger(__name__)

# Statuses each transition may start from.
_SUBMITTABLE = {PayrollStatus.DRAFT}
_APPROVABLE = {PayrollStatus.DRAFT, PayrollStatus.PENDING}
_PAYABLE = {PayrollStatus.APPROVED}
_CANCELLABLE = {PayrollStatus.DRAFT, PayrollStatus.PENDING, PayrollStatus.APPROVED}


def _merge_amounts(current, patch: Optional[dict], label: str):
    if not patch:
        return current
    known = {f.name for f in fields(current)}
    unknown = set(patch) - known
    if unknown:
        raise ValidationError(f"Unknown {label}: {', '.join(sorted(unknown))}")
    values = {k: round2(require_non_negative(v, f"{label}.{k}")) for k, v in patch.items()}
    return replace(current, **values)


def validate_calculation_input(data: PayrollCalculationInput) -> None:
    require_non_empty(data.employee_id, "employee_id")
    require_month(data.month)
    require_year(data.year)
    require_non_negative(data.base_salary, "base_salary")
    require_non_negative(data.actual_work_days, "actual_work_days")
    require_non_negative(data.absent_days, "absent_days")
    require_non_negative(data.late_days, "late_days")
    require_non_negative(data.on_leave_days, "on_leave_days")
    require_non_negative(data.overtime_hours, "overtime_hours")
    require_overtime_rate(data.overtime_rate)
    require_non_negative(data.bonus, "bonus")
    require_non_negative(data.loan, "loan")
    require_non_negative(data.advance, "advance")
    for f in fields(data.allowances):
        require_non_negative(getattr(data.allowances, f.name), f"allowances.{f.name}")
    require_percentage(data.tax_rate, "tax_rate")
    require_percentage(data.social_security_rate, "social_security_rate")
    require_percentage(data.provident_fund_rate, "provident_fund_rate")


class PayrollService:
    """Payroll records: calculation, draft edits and the approval/payment lifecycle."""

    def __init__(
        self,
        payroll: PayrollRepository,
        employees: EmployeeRepository,
        attendance: AttendanceService,
        *,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self._payroll = payroll
        self._employees = employees
        self._attendance = attendance
        self._calculator = calculator or StandardPayrollCalculator()

    def _load(self, payroll_id: str) -> PayrollRecord:
        record = self._payroll.get_by_id(require_non_empty(payroll_id, "payroll_id"))
        if not record:
            raise PayrollNotFoundError("Payroll record not found")
        return record

    @staticmethod
    def _require_status(record: PayrollRecord, allowed: set, action: str) -> None:
        if record.status not in allowed:
            raise InvalidStatusTransitionError(f"Cannot {action} a payroll record in status '{record.status.value}'")

    @translate_errors("Unable to calculate payroll")
    def calculate_payroll(self, data: PayrollCalculationInput) -> PayrollCalculationResult:
        validate_calculation_input(data)
        return self._calculator.calculate(data)

    @translate_errors("Unable to create payroll record")
    def create_payroll(self, data: CreatePayrollInput) -> PayrollRecord:
        require_month(data.month)
        require_year(data.year)
        if data.period_start > data.period_end:
            raise ValidationError("period_start must not be after period_end")

        employee = self._employees.get_by_id(require_non_empty(data.employee_id, "employee_id"))
        if not employee:
            raise EmployeeNotFoundError("Employee not found")
        if self._payroll.get_by_employee_and_period(employee.employee_id, data.month, data.year):
            raise PayrollExistsError("A payroll record already exists for this period")

        stats = self._attendance.calculate_stats(employee.employee_id, data.period_start, data.period_end)
        calc = self.calculate_payroll(
            PayrollCalculationInput(
                employee_id=employee.employee_id,
                month=data.month,
                year=data.year,
                base_salary=employee.base_salary,
                actual_work_days=stats.present_days,
                absent_days=stats.absent_days,
                late_days=stats.late_days,
                on_leave_days=stats.on_leave_days,
                overtime_hours=stats.overtime_hours,
                payment_frequency=employee.payment_frequency,
                overtime_rate=employee.overtime_rate,
            )
        )

        record = PayrollRecord(
            payroll_id="",
            employee_id=employee.employee_id,
            month=data.month,
            year=data.year,
            period_start=data.period_start,
            period_end=data.period_end,
            pay_date=data.pay_date,
            base_salary=calc.base_salary,
            overtime_pay=calc.overtime_pay,
            bonus=calc.bonus,
            allowances=calc.allowances,
            gross_income=calc.gross_income,
            deductions=calc.deductions,
            total_deductions=calc.total_deductions,
            net_pay=calc.net_pay,
            working_days=calc.working_days,
            actual_work_days=calc.actual_work_days,
            absent_days=calc.absent_days,
            late_days=calc.late_days,
            on_leave_days=calc.on_leave_days,
            overtime_hours=calc.overtime_hours,
            status=PayrollStatus.DRAFT,
            employee_name=employee.display_name,
            employee_code=employee.employee_code,
            department_id=employee.department_id,
            department_name=employee.department_name,
            position_id=employee.position_id,
            position_name=employee.position_name,
            notes=data.notes,
        )
        record = replace(record, payroll_id=self._payroll.create(record))
        logger.info(
            "Created payroll %s for employee %s (%02d/%d), net pay %.2f",
            record.payroll_id,
            record.employee_id,
            record.month,
            record.year,
            record.net_pay,
        )
        return record

    @translate_errors("Unable to generate monthly payroll")
    def generate_monthly_payroll(self, data: GeneratePayrollInput) -> PayrollGenerationResult:
        """Create draft payroll for every active employee for one month.

        Employees that already have a record for the month are skipped. A
        failure for one employee is reported in the result and does not stop
        the run.
        """
        month, year = require_month(data.month), require_year(data.year)
        if data.pay_date is None:
            raise ValidationError("pay_date is required")
        period_start, period_end = month_bounds(month, year)

        employees = self._employees.list_active(data.department_id)
        logger.info(
            "Generating payroll for %02d/%d: %d active employee(s)%s",
            month,
            year,
            len(employees),
            f" in department {data.department_id}" if data.department_id else "",
        )

        details = []
        for employee in employees:
            name = employee.display_name
            if self._payroll.get_by_employee_and_period(employee.employee_id, month, year):
                details.append(
                    PayrollGenerationDetail(employee.employee_id, name, GenerationOutcome.SKIPPED, "Payroll already exists")
                )
                continue
            try:
                record = self.create_payroll(
                    CreatePayrollInput(
                        employee_id=employee.employee_id,
                        month=month,
                        year=year,
                        period_start=period_start,
                        period_end=period_end,
                        pay_date=data.pay_date,
                    )
                )
            except PayrollExistsError as exc:
                details.append(PayrollGenerationDetail(employee.employee_id, name, GenerationOutcome.SKIPPED, exc.message))
            except DomainError as exc:
                logger.error("Payroll generation failed for employee %s: %s", employee.employee_id, exc.message)
                details.append(PayrollGenerationDetail(employee.employee_id, name, GenerationOutcome.ERROR, exc.message))
            else:
                details.append(
                    PayrollGenerationDetail(
                        employee.employee_id,
                        name,
                        GenerationOutcome.SUCCESS,
                        "Payroll created",
                        payroll_id=record.payroll_id,
                    )
                )

        result = PayrollGenerationResult(
            month=month,
            year=year,
            generated=sum(1 for d in details if d.status == GenerationOutcome.SUCCESS),
            skipped=sum(1 for d in details if d.status == GenerationOutcome.SKIPPED),
            errors=sum(1 for d in details if d.status == GenerationOutcome.ERROR),
            details=tuple(details),
        )
        logger.info(
            "Payroll run %02d/%d: %d generated, %d skipped, %d failed",
            month,
            year,
            result.generated,
            result.skipped,
            result.errors,
        )
        return result

    @translate_errors("Unable to update payroll record")
    def update_payroll(self, payroll_id: str, data: UpdatePayrollInput) -> PayrollRecord:
        record = self._load(payroll_id)
        if record.status != PayrollStatus.DRAFT:
            raise InvalidStatusTransitionError("Only draft payroll records can be edited")

        base_salary = record.base_salary if data.base_salary is None else require_non_negative(data.base_salary, "base_salary")
        overtime_pay = optional_non_negative(data.overtime_pay, "overtime_pay")
        bonus = optional_non_negative(data.bonus, "bonus")
        allowances: Allowances = _merge_amounts(record.allowances, data.allowances, "allowances")
        deductions: Deductions = _merge_amounts(record.deductions, data.deductions, "deductions")

        overtime_pay = record.overtime_pay if overtime_pay is None else round2(overtime_pay)
        bonus = record.bonus if bonus is None else round2(bonus)
        gross_income = round2(round2(base_salary) + overtime_pay + bonus + allowances.total)
        total_deductions = deductions.total

        updated = replace(
            record,
            base_salary=round2(base_salary),
            overtime_pay=overtime_pay,
            bonus=bonus,
            allowances=allowances,
            deductions=deductions,
            gross_income=gross_income,
            total_deductions=total_deductions,
            net_pay=round2(gross_income - total_deductions),
            pay_date=data.pay_date or record.pay_date,
            notes=data.notes if data.notes is not None else record.notes,
        )
        if updated.net_pay < 0:
            logger.warning("Payroll %s now has negative net pay: %.2f", record.payroll_id, updated.net_pay)
        return self._payroll.save(updated, expected_version=record.version)

    @translate_errors("Unable to submit payroll record")
    def submit_payroll(self, payroll_id: str) -> PayrollRecord:
        record = self._load(payroll_id)
        self._require_status(record, _SUBMITTABLE, "submit")
        return self._payroll.save(replace(record, status=PayrollStatus.PENDING), expected_version=record.version)

    @translate_errors("Unable to approve payroll record")
    def approve_payroll(
        self, payroll_id: str, data: ApprovePayrollInput, *, now: Optional[datetime] = None
    ) -> PayrollRecord:
        approver = require_non_empty(data.approver_id, "approver_id")
        record = self._load(payroll_id)
        self._require_status(record, _APPROVABLE, "approve")
        approved = replace(
            record,
            status=PayrollStatus.APPROVED,
            approved_by=approver,
            approved_at=now or now_local(),
            approval_comments=data.comments,
        )
        logger.info("Payroll %s approved by %s", record.payroll_id, approver)
        return self._payroll.save(approved, expected_version=record.version)

    @translate_errors("Unable to process payment")
    def process_payment(
        self, payroll_id: str, data: ProcessPaymentInput, *, now: Optional[datetime] = None
    ) -> PayrollRecord:
        paid_by = require_non_empty(data.paid_by, "paid_by")
        if data.payment_method not in PAYMENT_METHODS:
            raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")
        record = self._load(payroll_id)
        self._require_status(record, _PAYABLE, "pay")
        paid = replace(
            record,
            status=PayrollStatus.PAID,
            paid_by=paid_by,
            paid_at=now or now_local(),
            payment_method=data.payment_method,
            transaction_ref=data.transaction_ref,
        )
        logger.info("Payroll %s paid via %s", record.payroll_id, data.payment_method)
        return self._payroll.save(paid, expected_version=record.version)

    @translate_errors("Unable to cancel payroll record")
    def cancel_payroll(self, payroll_id: str) -> PayrollRecord:
        record = self._load(payroll_id)
        self._require_status(record, _CANCELLABLE, "cancel")
        return self._payroll.save(replace(record, status=PayrollStatus.CANCELLED), expected_version=record.version)

    @translate_errors("Unable to load payroll record")
    def get_payroll(self, payroll_id: str) -> Optional[PayrollRecord]:
        return self._payroll.get_by_id(require_non_empty(payroll_id, "payroll_id"))

    @translate_errors("Unable to load payroll record")
    def get_by_employee_and_period(self, employee_id: str, month: int, year: int) -> Optional[PayrollRecord]:
        return self._payroll.get_by_employee_and_period(
            require_non_empty(employee_id, "employee_id"), require_month(month), require_year(year)
        )

    @translate_errors("Unable to load payroll records")
    def list_payrolls(self, filters: Optional[PayrollFilters] = None) -> Sequence[PayrollRecord]:
        return self._payroll.list(filters or PayrollFilters())

    @translate_errors("Unable to build payroll summary")
    def get_summary(self, month: int, year: int) -> PayrollSummary:
        records = [
            r
            for r in self._payroll.list(PayrollFilters(month=require_month(month), year=require_year(year)))
            if r.status != PayrollStatus.CANCELLED
        ]
        count = len(records)
        total_net = sum(r.net_pay for r in records)
        return PayrollSummary(
            total_employees=count,
            total_gross_income=round2(sum(r.gross_income for r in records)),
            total_deductions=round2(sum(r.total_deductions for r in records)),
            total_net_pay=round2(total_net),
            average_net_pay=round2(total_net / count) if count else 0.0,
            month=month,
            year=year,
        )
