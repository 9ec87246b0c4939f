from __future__ import annotations

from typing import Optional

from ..common.money import round2
from ..core.enums import PenaltyCalculationType, ViolationType
from .model import PenaltyCalculationInput, PenaltyCalculationResult, PenaltyPolicy

_MINUTE_BASED = {ViolationType.LATE, ViolationType.EARLY_LEAVE}


def is_applicable(
    policy: PenaltyPolicy,
    employment_type: Optional[str],
    position: Optional[str],
    department: Optional[str],
) -> bool:
    """An empty applicability list means the policy covers everyone."""
    if policy.applicable_employment_types and employment_type not in policy.applicable_employment_types:
        return False
    if policy.applicable_positions and position not in policy.applicable_positions:
        return False
    if policy.applicable_departments and department not in policy.applicable_departments:
        return False
    return True


def _no_penalty(policy: PenaltyPolicy, reason: str, *, within_grace: bool = False) -> PenaltyCalculationResult:
    return PenaltyCalculationResult(
        should_apply=False,
        amount=0.0,
        reason=reason,
        is_within_grace_period=within_grace,
        requires_approval=policy.requires_approval,
    )


def _progressive_amount(policy: PenaltyPolicy, data: PenaltyCalculationInput) -> float:
    rule = next((r for r in policy.progressive_rules if r.matches(data.occurrence_count)), None)
    if rule is None:
        return 0.0
    if rule.amount:
        return rule.amount
    if rule.percentage and data.employee_salary:
        return data.employee_salary * rule.percentage / 100
    return 0.0


def _flat_amount(policy: PenaltyPolicy, data: PenaltyCalculationInput) -> float:
    calc = policy.calculation_type
    if calc == PenaltyCalculationType.FIXED:
        return policy.amount or 0.0
    if calc == PenaltyCalculationType.PERCENTAGE:
        if policy.percentage and data.employee_salary:
            return data.employee_salary * policy.percentage / 100
    elif calc == PenaltyCalculationType.HOURLY_RATE:
        if policy.hourly_rate_multiplier and data.hourly_rate and data.minutes:
            return data.minutes / 60 * data.hourly_rate * policy.hourly_rate_multiplier
    elif calc == PenaltyCalculationType.DAILY_RATE:
        if policy.daily_rate_multiplier and data.daily_rate:
            return data.daily_rate * policy.daily_rate_multiplier
    return 0.0


def calculate_penalty_with_policy(policy: PenaltyPolicy, data: PenaltyCalculationInput) -> PenaltyCalculationResult:
    if policy.violation_type != data.violation_type:
        return _no_penalty(policy, "Policy type does not match violation type")

    if policy.violation_type in _MINUTE_BASED and policy.grace_period_minutes and data.minutes:
        if data.minutes <= policy.grace_period_minutes:
            return _no_penalty(policy, "Within grace period", within_grace=True)

    if policy.threshold.minutes and data.minutes and data.minutes < policy.threshold.minutes:
        return _no_penalty(policy, f"Below threshold ({policy.threshold.minutes} minutes)")

    if policy.is_progressive or policy.calculation_type == PenaltyCalculationType.PROGRESSIVE:
        amount = _progressive_amount(policy, data)
    else:
        amount = _flat_amount(policy, data)

    within_cap = True
    if policy.max_penalty_per_month and amount > policy.max_penalty_per_month:
        within_cap = False
        amount = policy.max_penalty_per_month

    return PenaltyCalculationResult(
        should_apply=amount > 0,
        amount=round2(amount),
        reason=f"Penalty applied: {policy.name}",
        is_within_cap=within_cap,
        requires_approval=policy.requires_approval,
    )
