from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..database.document_store import DocumentStore, Filter, StoredDocument
from ..database.documents import as_date
from .model import FlexibleTimeRange, Shift, ShiftAssignment, WorkSchedulePolicy
from .repository import ScheduleRepository

SHIFTS_COLLECTION = "shifts"
ASSIGNMENTS_COLLECTION = "shiftAssignments"
POLICIES_COLLECTION = "workSchedulePolicies"


def _range(value: Optional[Dict[str, Any]]) -> Optional[FlexibleTimeRange]:
    if not value:
        return None
    return FlexibleTimeRange(earliest=str(value["earliest"]), latest=str(value["latest"]))


def shift_from_document(doc: StoredDocument) -> Shift:
    d = doc.data
    return Shift(
        shift_id=doc.doc_id,
        name=str(d.get("name") or ""),
        code=str(d.get("code") or ""),
        start_time=str(d["start_time"]),
        end_time=str(d["end_time"]),
        break_minutes=int(d.get("break_minutes") or 0),
        work_hours=float(d.get("work_hours") or 8),
        grace_period_minutes=int(d.get("grace_period_minutes", 5)),
        late_threshold_minutes=int(d.get("late_threshold_minutes", 15)),
        early_leave_threshold_minutes=int(d.get("early_leave_threshold_minutes", 15)),
        premium_rate=float(d.get("premium_rate") or 0),
        is_active=bool(d.get("is_active", True)),
    )


def assignment_from_document(doc: StoredDocument) -> ShiftAssignment:
    d = doc.data
    return ShiftAssignment(
        assignment_id=doc.doc_id,
        employee_id=str(d["employee_id"]),
        shift_id=str(d["shift_id"]),
        start_date=as_date(d["start_date"]),
        end_date=as_date(d.get("end_date")),
        work_days=tuple(int(x) for x in d.get("work_days") or ()),
        is_active=bool(d.get("is_active", True)),
    )


def policy_from_document(doc: StoredDocument) -> WorkSchedulePolicy:
    d = doc.data
    return WorkSchedulePolicy(
        policy_id=doc.doc_id,
        name=str(d.get("name") or ""),
        standard_start_time=str(d["standard_start_time"]),
        standard_end_time=str(d["standard_end_time"]),
        hours_per_day=float(d.get("hours_per_day") or 8),
        grace_period_minutes=int(d.get("grace_period_minutes", 5)),
        late_threshold_minutes=int(d.get("late_threshold_minutes", 15)),
        early_leave_threshold_minutes=int(d.get("early_leave_threshold_minutes", 15)),
        allow_flexible_time=bool(d.get("allow_flexible_time", False)),
        flexible_start_range=_range(d.get("flexible_start_range")),
        flexible_end_range=_range(d.get("flexible_end_range")),
        overtime_starts_after_minutes=int(d.get("overtime_starts_after_minutes") or 0),
        applicable_departments=tuple(d.get("applicable_departments") or ()),
        applicable_positions=tuple(d.get("applicable_positions") or ()),
        applicable_employment_types=tuple(d.get("applicable_employment_types") or ()),
        effective_date=as_date(d.get("effective_date")),
        expiry_date=as_date(d.get("expiry_date")),
        is_active=bool(d.get("is_active", True)),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def list_assignments(self, *, employee_id: str, work_date: date) -> Sequence[ShiftAssignment]:
        docs = self._store.query(
            ASSIGNMENTS_COLLECTION,
            [
                Filter("employee_id", "==", employee_id),
                Filter("is_active", "==", True),
                Filter("start_date", "<=", work_date.isoformat()),
            ],
            order_by="start_date",
            descending=True,
        )
        return [assignment_from_document(d) for d in docs]

    def get_shift(self, shift_id: str) -> Optional[Shift]:
        doc = self._store.get(SHIFTS_COLLECTION, shift_id)
        return shift_from_document(doc) if doc else None

    def list_active_policies(self) -> Sequence[WorkSchedulePolicy]:
        docs = self._store.query(POLICIES_COLLECTION, [Filter("is_active", "==", True)])
        return [policy_from_document(d) for d in docs]
