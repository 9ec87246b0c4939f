import logging

import pytest

from attendance_payroll.payroll.calculator.standard_calculator import (
    StandardPayrollCalculator,
    annual_progressive_tax,
    social_security,
    withholding_tax,
)
from attendance_payroll.payroll.model import Allowances, PayrollCalculationInput


def september(**overrides) -> PayrollCalculationInput:
    values = dict(employee_id="emp-1", month=9, year=2025, base_salary=30_000, actual_work_days=22)
    values.update(overrides)
    return PayrollCalculationInput(**values)


@pytest.mark.parametrize(
    "taxable,expected",
    [
        (0, 0),
        (150_000, 0),
        (300_000, 7_500),
        (500_000, 27_500),
        (750_000, 65_000),
        (1_000_000, 115_000),
        (2_000_000, 365_000),
        (5_000_000, 1_265_000),
        (6_000_000, 1_615_000),
    ],
)
def test_annual_progressive_tax_bracket_boundaries(taxable, expected):
    assert annual_progressive_tax(taxable) == pytest.approx(expected)


def test_withholding_tax_applies_personal_exemption():
    # 12 * 12500 = 150000, fully exempt
    assert withholding_tax(12_500) == 0
    assert withholding_tax(30_000) == pytest.approx(250)


def test_withholding_tax_flat_rate_overrides_schedule():
    assert withholding_tax(30_000, 10) == pytest.approx(3_000)
    assert withholding_tax(30_000, 0) == 0


def test_default_social_security_is_capped():
    assert social_security(10_000) == 500
    assert social_security(15_000) == 750
    assert social_security(200_000) == 750


def test_explicit_social_security_rate_is_uncapped():
    assert social_security(200_000, 3) == 6_000


def test_salaried_month_without_extras():
    result = StandardPayrollCalculator().calculate(september())

    assert result.working_days == 22
    assert result.gross_income == 30_000
    assert result.deductions.tax == 250
    assert result.deductions.social_security == 750
    assert result.deductions.provident_fund == 0
    assert result.total_deductions == 1_000
    assert result.net_pay == 29_000


def test_overtime_and_attendance_deductions():
    result = StandardPayrollCalculator().calculate(
        september(base_salary=22_000, overtime_hours=4, late_days=2, absent_days=1, actual_work_days=21)
    )

    # hourly rate 22000 / 22 / 8 = 125, daily rate 1000
    assert result.overtime_pay == 750
    assert result.gross_income == 22_750
    assert result.deductions.late_penalty == 200
    assert result.deductions.absence_penalty == 1_000
    assert result.net_pay == 20_800


def test_explicit_rates_and_other_deductions():
    result = StandardPayrollCalculator().calculate(
        september(
            base_salary=50_000,
            tax_rate=10,
            social_security_rate=3,
            provident_fund_rate=5,
            loan=1_000,
            advance=500,
        )
    )

    assert result.deductions.tax == 5_000
    assert result.deductions.social_security == 1_500
    assert result.deductions.provident_fund == 2_500
    assert result.total_deductions == 10_500
    assert result.net_pay == 39_500


def test_totals_are_sums_of_rounded_components():
    allowances = Allowances(transportation=1_000.555, meal=333.333)
    result = StandardPayrollCalculator().calculate(september(bonus=1_234.567, allowances=allowances, overtime_hours=1.3))

    assert (result.allowances.transportation, result.allowances.meal) == (1_000.56, 333.33)
    stored = result.allowances.transportation + result.allowances.meal
    assert result.gross_income == pytest.approx(result.base_salary + result.overtime_pay + result.bonus + stored)
    assert result.net_pay == pytest.approx(result.gross_income - result.total_deductions)


def test_configured_late_penalty_per_day():
    result = StandardPayrollCalculator(late_penalty_per_day=250).calculate(september(late_days=3))

    assert result.deductions.late_penalty == 750


def test_negative_net_pay_is_kept_and_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="attendance_payroll.payroll.calculator.standard_calculator"):
        result = StandardPayrollCalculator().calculate(
            september(base_salary=1_000, absent_days=22, late_days=5, actual_work_days=0)
        )

    assert result.net_pay == -550
    assert "negative" in caplog.text
