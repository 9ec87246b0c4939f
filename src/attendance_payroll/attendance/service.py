from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import count_weekdays, month_bounds, now_local
from ..common.money import round2
from ..common.validators import require_coordinates, require_month, require_non_empty, require_year
from ..core.constants import APPROVAL_REQUIRED_MINUTES, DEFAULT_HISTORY_LIMIT
from ..core.enums import ApprovalStatus, AttendanceStatus, BreakType, PenaltyOutcome
from ..core.exceptions import (
    AlreadyClockedInError,
    AttendanceNotFoundError,
    EmployeeNotFoundError,
    OnLeaveError,
    StateConflictError,
    ValidationError,
    translate_errors,
)
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..geofence.model import LocationSnapshot, ReportedPosition
from ..geofence.service import GeofenceService
from ..leave.service import LeaveResolver
from ..penalties.model import EmployeeContext
from ..penalties.service import PenaltyPolicyEngine
from ..schedules.service import ScheduleResolver
from . import breaks
from .factory import AttendanceStrategyFactory
from .model import (
    AttendanceRecord,
    AttendanceStats,
    BreakRecord,
    ClockInInput,
    ClockOutInput,
    ClockOutResult,
)
from .repository import AttendanceRepository
from .time_rules import TimeValidation, overtime_hours, work_duration_hours

logger = logging.getLogger(__name__)


def employee_context(employee: Employee) -> EmployeeContext:
    return EmployeeContext(
        employee_id=employee.employee_id,
        department_id=employee.department_id,
        position_id=employee.position_id,
        employment_type=employee.employment_type,
        base_salary=employee.base_salary,
    )


class AttendanceService:
    """Clock-in/clock-out state machine for one employee-day record."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        schedules: ScheduleResolver,
        leave: LeaveResolver,
        geofence: GeofenceService,
        penalties: Optional[PenaltyPolicyEngine] = None,
        *,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._schedules = schedules
        self._leave = leave
        self._geofence = geofence
        self._penalties = penalties
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def _get_employee(self, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(require_non_empty(employee_id, "employee_id"))
        if not employee:
            raise EmployeeNotFoundError("Employee not found")
        return employee

    def _validate_position(self, position: Optional[ReportedPosition], *, is_remote_work: bool) -> Optional[LocationSnapshot]:
        if position is None:
            return None
        require_coordinates(position.latitude, position.longitude)
        return self._geofence.validate(position, is_remote_work=is_remote_work)

    def _open_record(self, employee_id: str, today: date) -> AttendanceRecord:
        # A shift that crosses midnight keeps the work date of its clock-in.
        record = self._attendance.get_open_for_employee(employee_id)
        if record:
            return record
        if self._attendance.get_for_employee_and_date(employee_id, today):
            raise StateConflictError("You have already clocked out today")
        raise AttendanceNotFoundError("No open clock-in found")

    def _apply_penalties(self, record: AttendanceRecord, employee: Employee) -> ClockOutResult:
        if self._penalties is None:
            return ClockOutResult(record=record, penalty_outcome=PenaltyOutcome.SKIPPED)
        try:
            record, penalties = self._penalties.calculate_and_apply(record, employee_context(employee))
        except Exception as exc:
            # The clock event is already persisted; report the failure instead of undoing it.
            logger.exception("Penalty evaluation failed for attendance %s", record.record_id)
            return ClockOutResult(record=record, penalty_outcome=PenaltyOutcome.FAILED, penalty_error=str(exc))
        outcome = PenaltyOutcome.APPLIED if penalties else PenaltyOutcome.NONE
        return ClockOutResult(record=record, penalty_outcome=outcome, penalties=tuple(penalties))

    @translate_errors("Unable to clock in")
    def clock_in(self, data: ClockInInput) -> AttendanceRecord:
        now = data.now or now_local()
        today = now.date()
        employee = self._get_employee(data.employee_id)

        if self._attendance.get_for_employee_and_date(employee.employee_id, today):
            raise AlreadyClockedInError("You have already clocked in today")
        if self._leave.has_overlapping_leave(employee.employee_id, today, today):
            raise OnLeaveError("You are on approved leave today")

        schedule = self._schedules.resolve(employee, today)
        decision = self._factory.for_schedule(schedule).decide_clock_in(now=now, schedule=schedule)
        location = self._validate_position(data.position, is_remote_work=data.is_remote_work)

        requires_approval = decision.is_late and decision.minutes_late >= APPROVAL_REQUIRED_MINUTES
        record = AttendanceRecord(
            record_id="",
            employee_id=employee.employee_id,
            work_date=today,
            clock_in_time=now,
            clock_out_time=None,
            status=AttendanceStatus.CLOCKED_IN,
            schedule=schedule,
            user_id=employee.user_id,
            employee_name=employee.display_name,
            department_name=employee.department_name or "",
            is_late=decision.is_late,
            minutes_late=decision.minutes_late,
            clock_in_location=location,
            is_remote_work=data.is_remote_work,
            clock_in_method=data.clock_in_method,
            requires_approval=requires_approval,
            approval_status=ApprovalStatus.PENDING if requires_approval else None,
            notes=data.notes,
        )
        record = replace(record, record_id=self._attendance.create(record))
        logger.info(
            "Employee %s clocked in at %s (%s)",
            employee.employee_id,
            now.isoformat(timespec="minutes"),
            decision.message,
        )
        return record

    @translate_errors("Unable to clock out")
    def clock_out(self, data: ClockOutInput) -> ClockOutResult:
        now = data.now or now_local()
        employee = self._get_employee(data.employee_id)
        record = self._open_record(employee.employee_id, now.date())
        expected_version = record.version

        open_break = breaks.current_break(record)
        if open_break is not None:
            record, _ = breaks.end_break(record, open_break.break_id, now)

        if now.date() > record.work_date:
            # The scheduled end fell on the work date, so this is never an early leave.
            decision = TimeValidation(is_valid=True, message="Clock-out after the work day")
        else:
            decision = self._factory.for_schedule(record.schedule).decide_clock_out(now=now, schedule=record.schedule)
        location = self._validate_position(data.position, is_remote_work=record.is_remote_work)

        duration = work_duration_hours(record.clock_in_time, now, record.total_break_minutes)
        overtime = overtime_hours(duration, record.schedule.hours_per_day, record.schedule.overtime_starts_after_minutes)
        requires_approval = record.requires_approval or (
            decision.is_early_leave and decision.minutes_early >= APPROVAL_REQUIRED_MINUTES
        )
        approval_status = record.approval_status
        if requires_approval and approval_status is None:
            approval_status = ApprovalStatus.PENDING

        record = replace(
            record,
            clock_out_time=now,
            status=AttendanceStatus.CLOCKED_OUT,
            is_early_leave=decision.is_early_leave,
            minutes_early=decision.minutes_early,
            clock_out_location=location,
            clock_out_method=data.clock_out_method,
            duration_hours=duration,
            overtime_hours=overtime,
            requires_approval=requires_approval,
            approval_status=approval_status,
            notes=data.notes if data.notes is not None else record.notes,
        )
        record = self._attendance.save(record, expected_version=expected_version)
        logger.info(
            "Employee %s clocked out at %s after %.2f h (%s)",
            employee.employee_id,
            now.isoformat(timespec="minutes"),
            duration,
            decision.message,
        )
        return self._apply_penalties(record, employee)

    @translate_errors("Unable to flag missed clock-out")
    def flag_missed_clock_out(self, record_id: str, *, now: Optional[datetime] = None) -> ClockOutResult:
        """Close a record left open on a past day and charge the no-clock-out penalty."""
        now = now or now_local()
        record = self._attendance.get_by_id(require_non_empty(record_id, "record_id"))
        if not record:
            raise AttendanceNotFoundError("Attendance record not found")
        if not record.is_open:
            raise StateConflictError("Attendance record is already closed")
        if record.work_date >= now.date():
            raise StateConflictError("The work day has not ended yet")

        employee = self._get_employee(record.employee_id)
        record = self._attendance.save(
            replace(
                record,
                status=AttendanceStatus.CLOCKED_OUT,
                is_missed_clock_out=True,
                requires_approval=True,
                approval_status=record.approval_status or ApprovalStatus.PENDING,
            ),
            expected_version=record.version,
        )
        logger.warning("Attendance %s flagged as missed clock-out", record.record_id)
        return self._apply_penalties(record, employee)

    @translate_errors("Unable to approve attendance")
    def approve_attendance(
        self,
        record_id: str,
        approver_id: str,
        notes: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        """Approve a flagged record.

        Approval excuses the lateness and early leave it was flagged for, so
        later penalty runs and attendance statistics no longer count them.
        """
        approver_id = require_non_empty(approver_id, "approver_id")
        record = self._attendance.get_by_id(require_non_empty(record_id, "record_id"))
        if not record:
            raise AttendanceNotFoundError("Attendance record not found")
        if record.approval_status == ApprovalStatus.APPROVED:
            raise StateConflictError("Attendance record is already approved")
        if not record.requires_approval:
            raise StateConflictError("Attendance record does not require approval")

        record = self._attendance.save(
            replace(
                record,
                requires_approval=False,
                approval_status=ApprovalStatus.APPROVED,
                approved_by=approver_id,
                approval_date=now or now_local(),
                approval_notes=notes,
                is_excused_late=record.is_excused_late or record.is_late,
                is_approved_early_leave=record.is_approved_early_leave or record.is_early_leave,
            ),
            expected_version=record.version,
        )
        logger.info("Attendance %s approved by %s", record.record_id, approver_id)
        return record

    @translate_errors("Unable to start break")
    def start_break(
        self,
        employee_id: str,
        break_type: BreakType,
        *,
        now: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> BreakRecord:
        now = now or now_local()
        record = self._open_record(require_non_empty(employee_id, "employee_id"), now.date())
        updated, new_break = breaks.start_break(record, break_type, now, notes=notes)
        self._attendance.save(updated, expected_version=record.version)
        return new_break

    @translate_errors("Unable to end break")
    def end_break(self, employee_id: str, break_id: str, *, now: Optional[datetime] = None) -> BreakRecord:
        now = now or now_local()
        record = self._open_record(require_non_empty(employee_id, "employee_id"), now.date())
        updated, ended = breaks.end_break(record, break_id, now)
        self._attendance.save(updated, expected_version=record.version)
        return ended

    @translate_errors("Unable to load current break")
    def get_current_break(self, employee_id: str) -> Optional[BreakRecord]:
        record = self._attendance.get_open_for_employee(require_non_empty(employee_id, "employee_id"))
        return breaks.current_break(record) if record else None

    @translate_errors("Unable to load today's attendance")
    def get_today_record(self, employee_id: str, *, now: Optional[datetime] = None) -> Optional[AttendanceRecord]:
        today = (now or now_local()).date()
        return self._attendance.get_for_employee_and_date(require_non_empty(employee_id, "employee_id"), today)

    @translate_errors("Unable to load attendance history")
    def get_history(self, employee_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        return self._attendance.get_recent_for_employee(require_non_empty(employee_id, "employee_id"), limit)

    @translate_errors("Unable to load monthly attendance")
    def get_monthly_attendance(self, employee_id: str, month: int, year: int) -> Sequence[AttendanceRecord]:
        start, end = month_bounds(require_month(month), require_year(year))
        return self._attendance.list_for_employee(require_non_empty(employee_id, "employee_id"), start=start, end=end)

    @translate_errors("Unable to calculate attendance statistics")
    def calculate_stats(self, employee_id: str, start: date, end: date) -> AttendanceStats:
        employee_id = require_non_empty(employee_id, "employee_id")
        if start > end:
            raise ValidationError("start date must not be after end date")

        records = self._attendance.list_for_employee(employee_id, start=start, end=end)
        completed = [r for r in records if r.status == AttendanceStatus.CLOCKED_OUT]

        total_days = count_weekdays(start, end)
        present_days = len(completed)
        on_leave_days = self._leave.leave_days(employee_id, start, end)
        absent_days = max(0, total_days - present_days - on_leave_days)
        late_days = sum(1 for r in records if r.is_late and not r.is_excused_late)

        total_hours = sum(r.duration_hours or 0 for r in completed)
        overtime = sum(r.overtime_hours for r in completed)

        return AttendanceStats(
            total_days=total_days,
            present_days=present_days,
            absent_days=absent_days,
            late_days=late_days,
            on_leave_days=on_leave_days,
            total_work_hours=round2(total_hours),
            average_work_hours=round2(total_hours / present_days) if present_days else 0.0,
            overtime_hours=round2(overtime),
        )
