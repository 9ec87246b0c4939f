from __future__ import annotations

import logging
from dataclasses import fields
from typing import Optional

from ...common.money import round2
from ...core.constants import (
    DEFAULT_HOURS_PER_DAY,
    DEFAULT_LATE_PENALTY_PER_DAY,
    PERSONAL_TAX_EXEMPTION,
    SOCIAL_SECURITY_CAP,
    SOCIAL_SECURITY_RATE,
    TAX_BRACKETS,
)
from ..model import Allowances, Deductions, PayrollCalculationInput, PayrollCalculationResult
from ..rates import daily_rate, hourly_rate, working_days_in_month
from .base import PayrollCalculator

logger = logging.getLogger(__name__)


def social_security(gross_income: float, rate: Optional[float] = None) -> float:
    """Explicit rate (%) is uncapped; the statutory default is capped."""
    if rate:
        return gross_income * rate / 100
    return min(gross_income * SOCIAL_SECURITY_RATE, SOCIAL_SECURITY_CAP)


def annual_progressive_tax(taxable_income: float) -> float:
    tax = 0.0
    lower = 0.0
    for upper, rate in TAX_BRACKETS:
        if upper is None or taxable_income <= upper:
            return tax + (taxable_income - lower) * rate
        tax += (upper - lower) * rate
        lower = upper
    return tax


def withholding_tax(gross_income: float, tax_rate: Optional[float] = None) -> float:
    """Monthly tax: flat ``tax_rate`` % when given, else the annualised schedule / 12."""
    if tax_rate is not None:
        return gross_income * tax_rate / 100
    taxable = max(0.0, gross_income * 12 - PERSONAL_TAX_EXEMPTION)
    return annual_progressive_tax(taxable) / 12


def provident_fund(gross_income: float, rate: Optional[float] = None) -> float:
    return gross_income * rate / 100 if rate else 0.0


class StandardPayrollCalculator(PayrollCalculator):
    """Monthly salary less statutory deductions and attendance penalties.

    Components are rounded to 2 dp before they are summed, so
    ``gross = base + overtime + bonus + allowances`` and
    ``net = gross - total_deductions`` hold exactly on the rounded figures.
    """

    def __init__(
        self,
        *,
        hours_per_day: float = DEFAULT_HOURS_PER_DAY,
        late_penalty_per_day: float = DEFAULT_LATE_PENALTY_PER_DAY,
    ):
        self._hours_per_day = hours_per_day
        self._late_penalty_per_day = late_penalty_per_day

    def calculate(self, data: PayrollCalculationInput) -> PayrollCalculationResult:
        working_days = working_days_in_month(data.month, data.year)
        day_rate = daily_rate(data.base_salary, working_days)
        hour_rate = hourly_rate(data.base_salary, working_days, self._hours_per_day)

        base_salary = round2(data.base_salary)
        overtime_pay = round2(data.overtime_hours * hour_rate * data.overtime_rate)
        bonus = round2(data.bonus)
        allowances = Allowances(**{f.name: round2(getattr(data.allowances, f.name)) for f in fields(data.allowances)})
        gross_income = round2(base_salary + overtime_pay + bonus + allowances.total)

        deductions = Deductions(
            tax=round2(withholding_tax(gross_income, data.tax_rate)),
            social_security=round2(social_security(gross_income, data.social_security_rate)),
            provident_fund=round2(provident_fund(gross_income, data.provident_fund_rate)),
            loan=round2(data.loan),
            advance=round2(data.advance),
            late_penalty=round2(data.late_days * self._late_penalty_per_day),
            absence_penalty=round2(data.absent_days * day_rate),
        )
        total_deductions = deductions.total
        net_pay = round2(gross_income - total_deductions)
        if net_pay < 0:
            logger.warning(
                "Net pay for employee %s (%02d/%d) is negative: %.2f",
                data.employee_id,
                data.month,
                data.year,
                net_pay,
            )

        return PayrollCalculationResult(
            base_salary=base_salary,
            overtime_pay=overtime_pay,
            bonus=bonus,
            allowances=allowances,
            gross_income=gross_income,
            deductions=deductions,
            total_deductions=total_deductions,
            net_pay=net_pay,
            working_days=working_days,
            actual_work_days=data.actual_work_days,
            absent_days=data.absent_days,
            late_days=data.late_days,
            on_leave_days=data.on_leave_days,
            overtime_hours=round2(data.overtime_hours),
        )
