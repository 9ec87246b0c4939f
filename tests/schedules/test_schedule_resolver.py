from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from attendance_payroll.employees.model import Employee
from attendance_payroll.schedules.model import (
    ScheduleSource,
    Shift,
    ShiftAssignment,
    WorkSchedulePolicy,
)
from attendance_payroll.schedules.service import ScheduleResolver

MONDAY = date(2025, 9, 15)
SATURDAY = date(2025, 9, 20)


@dataclass
class InMemorySchedules:
    assignments: list = field(default_factory=list)
    shifts: dict = field(default_factory=dict)
    policies: list = field(default_factory=list)

    def list_assignments(self, *, employee_id: str, work_date: date):
        return [a for a in self.assignments if a.employee_id == employee_id and a.start_date <= work_date]

    def get_shift(self, shift_id: str) -> Optional[Shift]:
        return self.shifts.get(shift_id)

    def list_active_policies(self):
        return [p for p in self.policies if p.is_active]


def employee(department_id: str = "dept-eng") -> Employee:
    return Employee("emp-1", "user-1", "Ada", "Lovelace", department_id=department_id, employment_type="full-time")


NIGHT = Shift("shift-n", "Night", "22:00", "06:00", work_hours=7.5, grace_period_minutes=10)
ENG_POLICY = WorkSchedulePolicy(
    "pol-eng",
    "Engineering",
    "10:00",
    "19:00",
    applicable_departments=("dept-eng",),
)


def test_shift_assignment_wins_over_policy():
    repo = InMemorySchedules(
        assignments=[ShiftAssignment("a-1", "emp-1", "shift-n", start_date=date(2025, 9, 1))],
        shifts={"shift-n": NIGHT},
        policies=[ENG_POLICY],
    )

    schedule = ScheduleResolver(repo).resolve(employee(), MONDAY)

    assert schedule.source == ScheduleSource.SHIFT
    assert schedule.start_time == "22:00"
    assert schedule.grace_period_minutes == 10
    assert schedule.hours_per_day == 7.5


def test_assignment_not_covering_weekday_falls_through_to_policy():
    repo = InMemorySchedules(
        assignments=[ShiftAssignment("a-1", "emp-1", "shift-n", date(2025, 9, 1), work_days=(1, 2, 3, 4, 5))],
        shifts={"shift-n": NIGHT},
        policies=[ENG_POLICY],
    )

    schedule = ScheduleResolver(repo).resolve(employee(), SATURDAY)

    assert schedule.source == ScheduleSource.POLICY
    assert schedule.source_id == "pol-eng"
    assert schedule.start_time == "10:00"


def test_policy_applicability_filters():
    repo = InMemorySchedules(policies=[ENG_POLICY])

    schedule = ScheduleResolver(repo).resolve(employee(department_id="dept-sales"), MONDAY)

    assert schedule.source == ScheduleSource.DEFAULT


def test_expired_policy_is_ignored():
    expired = WorkSchedulePolicy("pol-old", "Old", "07:00", "16:00", expiry_date=date(2025, 1, 1))
    repo = InMemorySchedules(policies=[expired])

    schedule = ScheduleResolver(repo).resolve(employee(), MONDAY)

    assert schedule.source == ScheduleSource.DEFAULT


def test_defaults():
    schedule = ScheduleResolver(InMemorySchedules()).resolve(employee(), MONDAY)

    assert (schedule.start_time, schedule.end_time) == ("09:00", "18:00")
    assert schedule.grace_period_minutes == 5
    assert schedule.late_threshold_minutes == 15
    assert schedule.early_leave_threshold_minutes == 15
    assert schedule.hours_per_day == 8


def test_threshold_below_grace_is_kept_but_warned(caplog):
    loose = WorkSchedulePolicy("pol-x", "Loose", "09:00", "18:00", grace_period_minutes=10, late_threshold_minutes=5)
    repo = InMemorySchedules(policies=[loose])

    with caplog.at_level(logging.WARNING, logger="attendance_payroll.schedules.service"):
        schedule = ScheduleResolver(repo).resolve(employee(), MONDAY)

    assert schedule.late_threshold_minutes == 5
    assert "below grace period" in caplog.text
