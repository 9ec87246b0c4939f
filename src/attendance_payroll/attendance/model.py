from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import (
    ApprovalStatus,
    AttendanceStatus,
    BreakType,
    ClockMethod,
    PenaltyOutcome,
    ViolationType,
)
from ..geofence.model import LocationSnapshot, ReportedPosition
from ..schedules.model import ResolvedSchedule


@dataclass(frozen=True)
class BreakRecord:
    """A rest period embedded in an attendance record."""

    break_id: str
    break_type: BreakType
    start_time: datetime
    end_time: Optional[datetime]
    duration_minutes: Optional[int]
    scheduled_duration: int
    is_paid: bool
    notes: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None


@dataclass(frozen=True)
class AttendancePenalty:
    policy_id: str
    violation_type: ViolationType
    amount: float
    description: str


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one calendar day."""

    record_id: str
    employee_id: str
    work_date: date
    clock_in_time: datetime
    clock_out_time: Optional[datetime]
    status: AttendanceStatus
    schedule: ResolvedSchedule = field(default_factory=ResolvedSchedule)
    user_id: Optional[str] = None
    employee_name: str = ""
    department_name: str = ""

    is_late: bool = False
    minutes_late: int = 0
    is_excused_late: bool = False
    late_reason: Optional[str] = None

    is_early_leave: bool = False
    minutes_early: int = 0
    is_approved_early_leave: bool = False
    early_leave_reason: Optional[str] = None

    breaks: Sequence[BreakRecord] = field(default_factory=tuple)
    total_break_minutes: int = 0
    unpaid_break_minutes: int = 0

    clock_in_location: Optional[LocationSnapshot] = None
    clock_out_location: Optional[LocationSnapshot] = None
    is_remote_work: bool = False
    clock_in_method: ClockMethod = ClockMethod.WEB
    clock_out_method: Optional[ClockMethod] = None

    duration_hours: Optional[float] = None
    overtime_hours: float = 0.0

    requires_approval: bool = False
    approval_status: Optional[ApprovalStatus] = None
    approved_by: Optional[str] = None
    approval_date: Optional[datetime] = None
    approval_notes: Optional[str] = None

    penalties_applied: Sequence[AttendancePenalty] = field(default_factory=tuple)
    is_missed_clock_out: bool = False
    notes: Optional[str] = None
    version: int = 1

    @property
    def is_open(self) -> bool:
        return self.status == AttendanceStatus.CLOCKED_IN

    @property
    def scheduled_start_time(self) -> str:
        return self.schedule.start_time

    @property
    def scheduled_end_time(self) -> str:
        return self.schedule.end_time


@dataclass(frozen=True)
class AttendanceStats:
    total_days: int
    present_days: int
    absent_days: float
    late_days: int
    on_leave_days: float
    total_work_hours: float
    average_work_hours: float
    overtime_hours: float


@dataclass(frozen=True)
class ClockInInput:
    employee_id: str
    now: Optional[datetime] = None
    position: Optional[ReportedPosition] = None
    is_remote_work: bool = False
    clock_in_method: ClockMethod = ClockMethod.WEB
    notes: Optional[str] = None


@dataclass(frozen=True)
class ClockOutInput:
    employee_id: str
    now: Optional[datetime] = None
    position: Optional[ReportedPosition] = None
    clock_out_method: ClockMethod = ClockMethod.WEB
    notes: Optional[str] = None


@dataclass(frozen=True)
class ClockOutResult:
    """Closed record plus how the best-effort penalty step went."""

    record: AttendanceRecord
    penalty_outcome: PenaltyOutcome
    penalties: Sequence[AttendancePenalty] = field(default_factory=tuple)
    penalty_error: Optional[str] = None
