from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Iterable, List, Optional, Sequence

from ..attendance.model import AttendancePenalty, AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.money import round2, sum2
from ..core.enums import ViolationType
from ..core.exceptions import AttendanceNotFoundError, translate_errors
from ..payroll.rates import daily_rate, hourly_rate, working_days_in_month
from .calculator import calculate_penalty_with_policy, is_applicable
from .model import (
    EmployeeContext,
    PenaltyCalculationInput,
    PenaltyDetail,
    PenaltyPolicy,
    PenaltySummary,
)
from .repository import PenaltyPolicyRepository

logger = logging.getLogger(__name__)


def _violations(record: AttendanceRecord) -> List[tuple[ViolationType, Optional[int]]]:
    """Violations present on a finalized record, with their minute counts."""
    found: List[tuple[ViolationType, Optional[int]]] = []
    if record.is_late and not record.is_excused_late and record.minutes_late > 0:
        found.append((ViolationType.LATE, record.minutes_late))
    if record.is_early_leave and not record.is_approved_early_leave and record.minutes_early > 0:
        found.append((ViolationType.EARLY_LEAVE, record.minutes_early))
    if record.is_missed_clock_out:
        found.append((ViolationType.NO_CLOCK_OUT, None))
    return found


def _has_violation(record: AttendanceRecord, violation: ViolationType) -> bool:
    return any(v == violation for v, _ in _violations(record))


def _describe(violation: ViolationType, minutes: Optional[int], policy: PenaltyPolicy) -> str:
    if violation == ViolationType.LATE:
        return f"Late by {minutes} minutes - {policy.name}"
    if violation == ViolationType.EARLY_LEAVE:
        return f"Left {minutes} minutes early - {policy.name}"
    return f"Missed clock-out - {policy.name}"


def total_penalty(penalties: Iterable[AttendancePenalty]) -> float:
    return sum2(p.amount for p in penalties)


class PenaltyPolicyEngine:
    """Derives penalties from a finalized attendance record.

    Every matching auto-apply policy is evaluated on its own; results are not
    mutually exclusive.
    """

    def __init__(self, policies: PenaltyPolicyRepository, attendance: AttendanceRepository):
        self._policies = policies
        self._attendance = attendance

    def _policies_for(self, context: EmployeeContext, on: date) -> Sequence[PenaltyPolicy]:
        return [
            p
            for p in self._policies.list_active()
            if is_applicable(p, context.employment_type, context.position_id, context.department_id)
            and (p.effective_date is None or p.effective_date <= on)
            and (p.expiry_date is None or p.expiry_date >= on)
        ]

    def _occurrences(self, record: AttendanceRecord, violation: ViolationType) -> int:
        """1-based count of this violation in the record's month, up to its date."""
        month_start = record.work_date.replace(day=1)
        earlier = self._attendance.list_for_employee(record.employee_id, start=month_start, end=record.work_date)
        count = sum(
            1
            for r in earlier
            if r.record_id != record.record_id and r.work_date <= record.work_date and _has_violation(r, violation)
        )
        return count + 1

    def evaluate(self, record: AttendanceRecord, context: EmployeeContext) -> List[AttendancePenalty]:
        """Compute penalties for ``record`` without persisting them."""
        violations = _violations(record)
        if not violations:
            return []

        policies = self._policies_for(context, record.work_date)
        day_rate = hour_rate = None
        if context.base_salary:
            days = working_days_in_month(record.work_date.month, record.work_date.year)
            day_rate = daily_rate(context.base_salary, days)
            hour_rate = hourly_rate(context.base_salary, days, record.schedule.hours_per_day)

        penalties: List[AttendancePenalty] = []
        for violation, minutes in violations:
            candidates = [p for p in policies if p.violation_type == violation and p.auto_apply]
            if not candidates:
                continue
            occurrences = self._occurrences(record, violation)
            for policy in candidates:
                if minutes is not None and policy.threshold.minutes and minutes < policy.threshold.minutes:
                    continue
                result = calculate_penalty_with_policy(
                    policy,
                    PenaltyCalculationInput(
                        policy_id=policy.policy_id,
                        employee_id=context.employee_id,
                        work_date=record.work_date,
                        violation_type=violation,
                        minutes=minutes,
                        occurrence_count=occurrences,
                        employee_salary=context.base_salary,
                        hourly_rate=hour_rate,
                        daily_rate=day_rate,
                    ),
                )
                if result.amount > 0:
                    penalties.append(
                        AttendancePenalty(
                            policy_id=policy.policy_id,
                            violation_type=violation,
                            amount=result.amount,
                            description=_describe(violation, minutes, policy),
                        )
                    )
        return penalties

    @translate_errors("Unable to calculate attendance penalties")
    def calculate_and_apply(
        self, record: AttendanceRecord, context: EmployeeContext
    ) -> tuple[AttendanceRecord, List[AttendancePenalty]]:
        penalties = self.evaluate(record, context)
        if penalties:
            record = self._attendance.save(
                replace(record, penalties_applied=tuple(penalties)),
                expected_version=record.version,
            )
            logger.info(
                "Applied %d penalties (%.2f) to attendance %s",
                len(penalties),
                total_penalty(penalties),
                record.record_id,
            )
        return record, penalties

    def _load(self, record_id: str) -> AttendanceRecord:
        record = self._attendance.get_by_id(record_id)
        if not record:
            raise AttendanceNotFoundError("Attendance record not found")
        return record

    @translate_errors("Unable to add penalty")
    def add_manual_penalty(self, record_id: str, penalty: AttendancePenalty) -> AttendanceRecord:
        record = self._load(record_id)
        return self._attendance.save(
            replace(record, penalties_applied=tuple(record.penalties_applied) + (penalty,)),
            expected_version=record.version,
        )

    @translate_errors("Unable to remove penalty")
    def remove_penalty(self, record_id: str, policy_id: str) -> AttendanceRecord:
        record = self._load(record_id)
        kept = tuple(p for p in record.penalties_applied if p.policy_id != policy_id)
        return self._attendance.save(replace(record, penalties_applied=kept), expected_version=record.version)

    @translate_errors("Unable to build penalty summary")
    def penalty_summary(self, employee_id: str, start: date, end: date) -> PenaltySummary:
        details: List[PenaltyDetail] = []
        for record in self._attendance.list_for_employee(employee_id, start=start, end=end):
            for p in record.penalties_applied:
                details.append(PenaltyDetail(record.work_date, p.violation_type, p.amount, p.description))

        def count(kind: ViolationType) -> int:
            return sum(1 for d in details if d.violation_type == kind)

        return PenaltySummary(
            total_amount=round2(sum(d.amount for d in details)),
            late_count=count(ViolationType.LATE),
            early_leave_count=count(ViolationType.EARLY_LEAVE),
            absence_count=count(ViolationType.ABSENCE),
            no_clock_out_count=count(ViolationType.NO_CLOCK_OUT),
            details=tuple(details),
        )
