from __future__ import annotations

from typing import Any, Dict

from flask import Flask, request

from ..common.http import json_body, ok, required_date, required_int
from ..core.enums import PaymentFrequency, PayrollStatus
from ..core.exceptions import PayrollNotFoundError, ValidationError
from .model import (
    Allowances,
    ApprovePayrollInput,
    CreatePayrollInput,
    GeneratePayrollInput,
    PayrollCalculationInput,
    PayrollFilters,
    ProcessPaymentInput,
    UpdatePayrollInput,
)


def _allowances(value: Any) -> Allowances:
    if not value:
        return Allowances()
    if not isinstance(value, dict):
        raise ValidationError("allowances must be an object")
    try:
        return Allowances(**value)
    except TypeError:
        raise ValidationError("allowances has unknown categories")


def _calculation_input(body: Dict[str, Any]) -> PayrollCalculationInput:
    try:
        frequency = PaymentFrequency(body.get("payment_frequency") or PaymentFrequency.MONTHLY.value)
    except ValueError:
        raise ValidationError("Invalid payment_frequency")
    return PayrollCalculationInput(
        employee_id=body.get("employee_id"),
        month=required_int(body.get("month"), "month"),
        year=required_int(body.get("year"), "year"),
        base_salary=body.get("base_salary"),
        actual_work_days=body.get("actual_work_days", 0),
        absent_days=body.get("absent_days", 0),
        late_days=body.get("late_days", 0),
        on_leave_days=body.get("on_leave_days", 0),
        overtime_hours=body.get("overtime_hours", 0),
        payment_frequency=frequency,
        overtime_rate=body.get("overtime_rate", 1.5),
        bonus=body.get("bonus", 0),
        allowances=_allowances(body.get("allowances")),
        tax_rate=body.get("tax_rate"),
        social_security_rate=body.get("social_security_rate"),
        provident_fund_rate=body.get("provident_fund_rate"),
        loan=body.get("loan", 0),
        advance=body.get("advance", 0),
    )


def register(app: Flask, container) -> None:
    service = container.payroll_service

    @app.route("/api/payroll/calculate", methods=["POST"], endpoint="api_payroll_calculate")
    def api_payroll_calculate():
        return ok(service.calculate_payroll(_calculation_input(json_body())))

    @app.route("/api/payroll", methods=["POST"], endpoint="api_payroll_create")
    def api_payroll_create():
        body = json_body()
        record = service.create_payroll(
            CreatePayrollInput(
                employee_id=body.get("employee_id"),
                month=required_int(body.get("month"), "month"),
                year=required_int(body.get("year"), "year"),
                period_start=required_date(body.get("period_start"), "period_start"),
                period_end=required_date(body.get("period_end"), "period_end"),
                pay_date=required_date(body.get("pay_date"), "pay_date"),
                notes=body.get("notes"),
            )
        )
        return ok(record, 201)

    @app.route("/api/payroll/generate", methods=["POST"], endpoint="api_payroll_generate")
    def api_payroll_generate():
        body = json_body()
        result = service.generate_monthly_payroll(
            GeneratePayrollInput(
                month=required_int(body.get("month"), "month"),
                year=required_int(body.get("year"), "year"),
                pay_date=required_date(body.get("pay_date"), "pay_date"),
                department_id=body.get("department_id") or None,
            )
        )
        return ok(result)

    @app.route("/api/payroll", methods=["GET"], endpoint="api_payroll_list")
    def api_payroll_list():
        args = request.args
        status = args.get("status")
        try:
            status = PayrollStatus(status) if status else None
        except ValueError:
            raise ValidationError("Invalid status")
        filters = PayrollFilters(
            employee_id=args.get("employee_id"),
            department_id=args.get("department_id"),
            month=required_int(args["month"], "month") if args.get("month") else None,
            year=required_int(args["year"], "year") if args.get("year") else None,
            status=status,
        )
        return ok(service.list_payrolls(filters))

    @app.route("/api/payroll/summary", methods=["GET"], endpoint="api_payroll_summary")
    def api_payroll_summary():
        month = required_int(request.args.get("month"), "month")
        year = required_int(request.args.get("year"), "year")
        return ok(service.get_summary(month, year))

    @app.route("/api/payroll/<payroll_id>", methods=["GET"], endpoint="api_payroll_get")
    def api_payroll_get(payroll_id: str):
        record = service.get_payroll(payroll_id)
        if not record:
            raise PayrollNotFoundError("Payroll record not found")
        return ok(record)

    @app.route("/api/payroll/<payroll_id>", methods=["PATCH"], endpoint="api_payroll_update")
    def api_payroll_update(payroll_id: str):
        body = json_body()
        pay_date = body.get("pay_date")
        record = service.update_payroll(
            payroll_id,
            UpdatePayrollInput(
                base_salary=body.get("base_salary"),
                overtime_pay=body.get("overtime_pay"),
                bonus=body.get("bonus"),
                allowances=body.get("allowances"),
                deductions=body.get("deductions"),
                pay_date=required_date(pay_date, "pay_date") if pay_date else None,
                notes=body.get("notes"),
            ),
        )
        return ok(record)

    @app.route("/api/payroll/<payroll_id>/submit", methods=["POST"], endpoint="api_payroll_submit")
    def api_payroll_submit(payroll_id: str):
        return ok(service.submit_payroll(payroll_id))

    @app.route("/api/payroll/<payroll_id>/approve", methods=["POST"], endpoint="api_payroll_approve")
    def api_payroll_approve(payroll_id: str):
        body = json_body()
        data = ApprovePayrollInput(approver_id=body.get("approver_id"), comments=body.get("comments"))
        return ok(service.approve_payroll(payroll_id, data))

    @app.route("/api/payroll/<payroll_id>/pay", methods=["POST"], endpoint="api_payroll_pay")
    def api_payroll_pay(payroll_id: str):
        body = json_body()
        data = ProcessPaymentInput(
            payment_method=body.get("payment_method"),
            paid_by=body.get("paid_by"),
            transaction_ref=body.get("transaction_ref"),
        )
        return ok(service.process_payment(payroll_id, data))

    @app.route("/api/payroll/<payroll_id>/cancel", methods=["POST"], endpoint="api_payroll_cancel")
    def api_payroll_cancel(payroll_id: str):
        return ok(service.cancel_payroll(payroll_id))
