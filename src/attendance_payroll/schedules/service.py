from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..employees.model import Employee
from .model import ResolvedSchedule, ScheduleSource, Shift, WorkSchedulePolicy
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


def _matches(allowed, value: Optional[str]) -> bool:
    return not allowed or (value is not None and value in allowed)


def policy_applies_to(policy: WorkSchedulePolicy, employee: Employee) -> bool:
    return (
        _matches(policy.applicable_departments, employee.department_id)
        and _matches(policy.applicable_positions, employee.position_id)
        and _matches(policy.applicable_employment_types, employee.employment_type)
    )


def warn_if_threshold_below_grace(schedule: ResolvedSchedule) -> None:
    """Threshold below grace flags every accrued minute; kept, but reported."""
    if schedule.late_threshold_minutes < schedule.grace_period_minutes:
        logger.warning(
            "Late threshold (%s min) is below grace period (%s min) for %s %s",
            schedule.late_threshold_minutes,
            schedule.grace_period_minutes,
            schedule.source.value,
            schedule.source_id,
        )
    if schedule.early_leave_threshold_minutes < schedule.grace_period_minutes:
        logger.warning(
            "Early-leave threshold (%s min) is below grace period (%s min) for %s %s",
            schedule.early_leave_threshold_minutes,
            schedule.grace_period_minutes,
            schedule.source.value,
            schedule.source_id,
        )


class ScheduleResolver:
    """Picks the schedule in force: shift assignment, then policy, then defaults."""

    def __init__(self, schedules: ScheduleRepository):
        self._schedules = schedules

    def _from_shift(self, shift: Shift) -> ResolvedSchedule:
        return ResolvedSchedule(
            start_time=shift.start_time,
            end_time=shift.end_time,
            grace_period_minutes=shift.grace_period_minutes,
            late_threshold_minutes=shift.late_threshold_minutes,
            early_leave_threshold_minutes=shift.early_leave_threshold_minutes,
            hours_per_day=shift.work_hours,
            source=ScheduleSource.SHIFT,
            source_id=shift.shift_id,
        )

    def _from_policy(self, policy: WorkSchedulePolicy) -> ResolvedSchedule:
        return ResolvedSchedule(
            start_time=policy.standard_start_time,
            end_time=policy.standard_end_time,
            grace_period_minutes=policy.grace_period_minutes,
            late_threshold_minutes=policy.late_threshold_minutes,
            early_leave_threshold_minutes=policy.early_leave_threshold_minutes,
            hours_per_day=policy.hours_per_day,
            allow_flexible_time=policy.allow_flexible_time,
            flexible_start_range=policy.flexible_start_range,
            flexible_end_range=policy.flexible_end_range,
            overtime_starts_after_minutes=policy.overtime_starts_after_minutes,
            source=ScheduleSource.POLICY,
            source_id=policy.policy_id,
        )

    def resolve(self, employee: Employee, work_date: date) -> ResolvedSchedule:
        schedule = self._resolve(employee, work_date)
        warn_if_threshold_below_grace(schedule)
        return schedule

    def _resolve(self, employee: Employee, work_date: date) -> ResolvedSchedule:
        for assignment in self._schedules.list_assignments(employee_id=employee.employee_id, work_date=work_date):
            if not assignment.covers(work_date):
                continue
            shift = self._schedules.get_shift(assignment.shift_id)
            if shift and shift.is_active:
                return self._from_shift(shift)

        for policy in self._schedules.list_active_policies():
            if policy.in_effect(work_date) and policy_applies_to(policy, employee):
                return self._from_policy(policy)

        return ResolvedSchedule()
