from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional

import pytest

from attendance_payroll.attendance.model import AttendancePenalty, AttendanceRecord
from attendance_payroll.core.enums import AttendanceStatus, PenaltyCalculationType, ViolationType
from attendance_payroll.core.exceptions import AttendanceNotFoundError
from attendance_payroll.penalties.model import (
    EmployeeContext,
    PenaltyPolicy,
    PenaltyThreshold,
    ProgressivePenaltyRule,
)
from attendance_payroll.penalties.service import PenaltyPolicyEngine, total_penalty


class InMemoryAttendance:
    def __init__(self):
        self.records: dict[str, AttendanceRecord] = {}
        self._id = 0

    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        return self.records.get(record_id)

    def list_for_employee(self, employee_id: str, *, start: date, end: date):
        items = [r for r in self.records.values() if r.employee_id == employee_id and start <= r.work_date <= end]
        return sorted(items, key=lambda r: r.work_date)

    def add(self, record: AttendanceRecord) -> AttendanceRecord:
        self._id += 1
        record = replace(record, record_id=f"att-{self._id}")
        self.records[record.record_id] = record
        return record

    def save(self, record: AttendanceRecord, *, expected_version: int) -> AttendanceRecord:
        saved = replace(record, version=expected_version + 1)
        self.records[record.record_id] = saved
        return saved


@dataclass
class InMemoryPolicies:
    policies: list = field(default_factory=list)

    def list_active(self):
        return [p for p in self.policies if p.is_active]

    def get_by_id(self, policy_id: str):
        return next((p for p in self.policies if p.policy_id == policy_id), None)


CONTEXT = EmployeeContext("emp-1", department_id="dept-eng", employment_type="full-time", base_salary=22_000)


def closed(day: int, *, minutes_late=0, excused=False, minutes_early=0, approved_early=False) -> AttendanceRecord:
    return AttendanceRecord(
        record_id="",
        employee_id="emp-1",
        work_date=date(2025, 9, day),
        clock_in_time=datetime(2025, 9, day, 9, 0),
        clock_out_time=datetime(2025, 9, day, 18, 0),
        status=AttendanceStatus.CLOCKED_OUT,
        is_late=minutes_late > 0,
        minutes_late=minutes_late,
        is_excused_late=excused,
        is_early_leave=minutes_early > 0,
        minutes_early=minutes_early,
        is_approved_early_leave=approved_early,
    )


def late_policy(**overrides) -> PenaltyPolicy:
    values = dict(
        policy_id="pp-late",
        name="Late",
        code="LATE",
        violation_type=ViolationType.LATE,
        calculation_type=PenaltyCalculationType.FIXED,
        amount=100,
    )
    values.update(overrides)
    return PenaltyPolicy(**values)


EARLY_HOURLY = PenaltyPolicy(
    policy_id="pp-early",
    name="Early leave",
    code="EARLY",
    violation_type=ViolationType.EARLY_LEAVE,
    calculation_type=PenaltyCalculationType.HOURLY_RATE,
    hourly_rate_multiplier=1,
)


def engine(*policies):
    repo = InMemoryAttendance()
    return PenaltyPolicyEngine(InMemoryPolicies(list(policies)), repo), repo


def test_late_and_early_are_evaluated_independently():
    eng, repo = engine(late_policy(), EARLY_HOURLY)
    record = repo.add(closed(15, minutes_late=20, minutes_early=60))

    updated, penalties = eng.calculate_and_apply(record, CONTEXT)

    # Sep 2025 has 22 working days: 22000 / 22 / 8 = 125 per hour
    assert [(p.violation_type, p.amount) for p in penalties] == [
        (ViolationType.LATE, 100.0),
        (ViolationType.EARLY_LEAVE, 125.0),
    ]
    assert penalties[1].description == "Left 60 minutes early - Early leave"
    assert updated.penalties_applied == tuple(penalties)
    assert total_penalty(penalties) == 225.0


def test_excused_late_and_approved_early_are_not_penalised():
    eng, repo = engine(late_policy(), EARLY_HOURLY)
    record = repo.add(closed(15, minutes_late=20, excused=True, minutes_early=60, approved_early=True))

    updated, penalties = eng.calculate_and_apply(record, CONTEXT)

    assert penalties == []
    assert updated is record


def test_threshold_and_auto_apply_filter_policies():
    eng, repo = engine(
        late_policy(policy_id="pp-30", threshold=PenaltyThreshold(minutes=30)),
        late_policy(policy_id="pp-manual", auto_apply=False),
        late_policy(policy_id="pp-ok"),
    )
    record = repo.add(closed(15, minutes_late=20))

    _, penalties = eng.calculate_and_apply(record, CONTEXT)

    assert [p.policy_id for p in penalties] == ["pp-ok"]


def test_policy_for_other_department_is_ignored():
    eng, repo = engine(late_policy(applicable_departments=("dept-sales",)))
    record = repo.add(closed(15, minutes_late=20))

    _, penalties = eng.calculate_and_apply(record, CONTEXT)

    assert penalties == []


def test_policy_not_yet_effective_is_ignored():
    eng, repo = engine(late_policy(effective_date=date(2025, 10, 1)))
    record = repo.add(closed(15, minutes_late=20))

    _, penalties = eng.calculate_and_apply(record, CONTEXT)

    assert penalties == []


def test_progressive_uses_occurrences_this_month():
    rules = (
        ProgressivePenaltyRule(1, 2, amount=50),
        ProgressivePenaltyRule(3, None, amount=300),
    )
    eng, repo = engine(late_policy(is_progressive=True, progressive_rules=rules))
    repo.add(closed(1, minutes_late=20))
    repo.add(closed(2, minutes_late=25))
    repo.add(closed(3))
    third = repo.add(closed(4, minutes_late=20))

    _, penalties = eng.calculate_and_apply(third, CONTEXT)

    assert penalties[0].amount == 300


def test_manual_penalty_and_removal():
    eng, repo = engine()
    record = repo.add(closed(15))

    eng.add_manual_penalty(record.record_id, AttendancePenalty("manual-1", ViolationType.VIOLATION, 75, "Dress code"))
    eng.add_manual_penalty(record.record_id, AttendancePenalty("manual-2", ViolationType.VIOLATION, 25, "Badge"))
    updated = eng.remove_penalty(record.record_id, "manual-1")

    assert [p.policy_id for p in updated.penalties_applied] == ["manual-2"]


def test_manual_penalty_for_unknown_record():
    eng, _ = engine()

    with pytest.raises(AttendanceNotFoundError):
        eng.add_manual_penalty("missing", AttendancePenalty("m", ViolationType.VIOLATION, 1, ""))


def test_penalty_summary_counts_by_type():
    eng, repo = engine(late_policy(), EARLY_HOURLY)
    for record in (closed(15, minutes_late=20), closed(16, minutes_early=60), closed(17, minutes_late=30)):
        eng.calculate_and_apply(repo.add(record), CONTEXT)

    summary = eng.penalty_summary("emp-1", date(2025, 9, 1), date(2025, 9, 30))

    assert summary.late_count == 2
    assert summary.early_leave_count == 1
    assert summary.total_amount == 325.0
    assert [d.work_date.day for d in summary.details] == [15, 16, 17]
