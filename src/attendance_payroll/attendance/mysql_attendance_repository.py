from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..core.enums import ApprovalStatus, AttendanceStatus, BreakType, ClockMethod, ViolationType
from ..database.document_store import DocumentStore, Filter, StoredDocument
from ..database.documents import as_date, as_datetime, as_optional_float, encode
from ..geofence.model import LocationSnapshot
from ..schedules.model import FlexibleTimeRange, ResolvedSchedule, ScheduleSource
from .model import AttendancePenalty, AttendanceRecord, BreakRecord
from .repository import AttendanceRepository

ATTENDANCE_COLLECTION = "attendance"


def record_to_document(record: AttendanceRecord) -> Dict[str, Any]:
    body = encode(record)
    body.pop("record_id", None)
    body.pop("version", None)
    return body


def _range(value: Optional[Dict[str, Any]]) -> Optional[FlexibleTimeRange]:
    return FlexibleTimeRange(value["earliest"], value["latest"]) if value else None


def _schedule(d: Optional[Dict[str, Any]]) -> ResolvedSchedule:
    if not d:
        return ResolvedSchedule()
    return ResolvedSchedule(
        start_time=d["start_time"],
        end_time=d["end_time"],
        grace_period_minutes=int(d["grace_period_minutes"]),
        late_threshold_minutes=int(d["late_threshold_minutes"]),
        early_leave_threshold_minutes=int(d["early_leave_threshold_minutes"]),
        hours_per_day=float(d["hours_per_day"]),
        allow_flexible_time=bool(d.get("allow_flexible_time", False)),
        flexible_start_range=_range(d.get("flexible_start_range")),
        flexible_end_range=_range(d.get("flexible_end_range")),
        overtime_starts_after_minutes=int(d.get("overtime_starts_after_minutes") or 0),
        source=ScheduleSource(d.get("source") or ScheduleSource.DEFAULT.value),
        source_id=d.get("source_id"),
    )


def _location(d: Optional[Dict[str, Any]]) -> Optional[LocationSnapshot]:
    if not d:
        return None
    return LocationSnapshot(
        latitude=float(d["latitude"]),
        longitude=float(d["longitude"]),
        accuracy=as_optional_float(d.get("accuracy")),
        timestamp=as_datetime(d.get("timestamp")),
        is_within_geofence=d.get("is_within_geofence"),
        distance_from_office=as_optional_float(d.get("distance_from_office")),
        location_id=d.get("location_id"),
        location_name=d.get("location_name"),
    )


def _break(d: Dict[str, Any]) -> BreakRecord:
    return BreakRecord(
        break_id=str(d["break_id"]),
        break_type=BreakType(d["break_type"]),
        start_time=as_datetime(d["start_time"]),
        end_time=as_datetime(d.get("end_time")),
        duration_minutes=int(d["duration_minutes"]) if d.get("duration_minutes") is not None else None,
        scheduled_duration=int(d["scheduled_duration"]),
        is_paid=bool(d["is_paid"]),
        notes=d.get("notes"),
    )


def _penalty(d: Dict[str, Any]) -> AttendancePenalty:
    return AttendancePenalty(
        policy_id=str(d["policy_id"]),
        violation_type=ViolationType(d["violation_type"]),
        amount=float(d["amount"]),
        description=str(d.get("description") or ""),
    )


def record_from_document(doc: StoredDocument) -> AttendanceRecord:
    d = doc.data
    return AttendanceRecord(
        record_id=doc.doc_id,
        employee_id=str(d["employee_id"]),
        work_date=as_date(d["work_date"]),
        clock_in_time=as_datetime(d["clock_in_time"]),
        clock_out_time=as_datetime(d.get("clock_out_time")),
        status=AttendanceStatus(d["status"]),
        schedule=_schedule(d.get("schedule")),
        user_id=d.get("user_id"),
        employee_name=d.get("employee_name") or "",
        department_name=d.get("department_name") or "",
        is_late=bool(d.get("is_late", False)),
        minutes_late=int(d.get("minutes_late") or 0),
        is_excused_late=bool(d.get("is_excused_late", False)),
        late_reason=d.get("late_reason"),
        is_early_leave=bool(d.get("is_early_leave", False)),
        minutes_early=int(d.get("minutes_early") or 0),
        is_approved_early_leave=bool(d.get("is_approved_early_leave", False)),
        early_leave_reason=d.get("early_leave_reason"),
        breaks=tuple(_break(b) for b in d.get("breaks") or ()),
        total_break_minutes=int(d.get("total_break_minutes") or 0),
        unpaid_break_minutes=int(d.get("unpaid_break_minutes") or 0),
        clock_in_location=_location(d.get("clock_in_location")),
        clock_out_location=_location(d.get("clock_out_location")),
        is_remote_work=bool(d.get("is_remote_work", False)),
        clock_in_method=ClockMethod(d.get("clock_in_method") or ClockMethod.WEB.value),
        clock_out_method=ClockMethod(d["clock_out_method"]) if d.get("clock_out_method") else None,
        duration_hours=as_optional_float(d.get("duration_hours")),
        overtime_hours=float(d.get("overtime_hours") or 0),
        requires_approval=bool(d.get("requires_approval", False)),
        approval_status=ApprovalStatus(d["approval_status"]) if d.get("approval_status") else None,
        approved_by=d.get("approved_by"),
        approval_date=as_datetime(d.get("approval_date")),
        approval_notes=d.get("approval_notes"),
        penalties_applied=tuple(_penalty(p) for p in d.get("penalties_applied") or ()),
        is_missed_clock_out=bool(d.get("is_missed_clock_out", False)),
        notes=d.get("notes"),
        version=doc.version,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        doc = self._store.get(ATTENDANCE_COLLECTION, record_id)
        return record_from_document(doc) if doc else None

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        docs = self._store.query(
            ATTENDANCE_COLLECTION,
            [Filter("employee_id", "==", employee_id), Filter("work_date", "==", work_date.isoformat())],
            limit=1,
        )
        return record_from_document(docs[0]) if docs else None

    def get_open_for_employee(self, employee_id: str) -> Optional[AttendanceRecord]:
        docs = self._store.query(
            ATTENDANCE_COLLECTION,
            [Filter("employee_id", "==", employee_id), Filter("status", "==", AttendanceStatus.CLOCKED_IN.value)],
            order_by="work_date",
            descending=True,
            limit=1,
        )
        return record_from_document(docs[0]) if docs else None

    def list_for_employee(self, employee_id: str, *, start: date, end: date) -> Sequence[AttendanceRecord]:
        docs = self._store.query(
            ATTENDANCE_COLLECTION,
            [
                Filter("employee_id", "==", employee_id),
                Filter("work_date", ">=", start.isoformat()),
                Filter("work_date", "<=", end.isoformat()),
            ],
            order_by="work_date",
        )
        return [record_from_document(d) for d in docs]

    def get_recent_for_employee(self, employee_id: str, limit: int) -> Sequence[AttendanceRecord]:
        docs = self._store.query(
            ATTENDANCE_COLLECTION,
            [Filter("employee_id", "==", employee_id)],
            order_by="work_date",
            descending=True,
            limit=limit,
        )
        return [record_from_document(d) for d in docs]

    def create(self, record: AttendanceRecord) -> str:
        return self._store.create(ATTENDANCE_COLLECTION, record_to_document(record))

    def save(self, record: AttendanceRecord, *, expected_version: int) -> AttendanceRecord:
        version = self._store.update(
            ATTENDANCE_COLLECTION,
            record.record_id,
            record_to_document(record),
            expected_version=expected_version,
        )
        return replace(record, version=version)
