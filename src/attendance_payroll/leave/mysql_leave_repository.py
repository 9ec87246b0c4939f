from __future__ import annotations

from datetime import date
from typing import Sequence

from ..database.document_store import DocumentStore, Filter, StoredDocument
from ..database.documents import as_date, as_float
from .model import LeaveRequest
from .repository import LeaveRepository

LEAVE_COLLECTION = "leaveRequests"


def leave_from_document(doc: StoredDocument) -> LeaveRequest:
    d = doc.data
    return LeaveRequest(
        leave_id=doc.doc_id,
        employee_id=str(d["employee_id"]),
        start_date=as_date(d["start_date"]),
        end_date=as_date(d["end_date"]),
        total_days=as_float(d.get("total_days")),
        status=str(d.get("status") or "approved"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def list_approved(self, *, employee_id: str, start: date, end: date) -> Sequence[LeaveRequest]:
        docs = self._store.query(
            LEAVE_COLLECTION,
            [
                Filter("employee_id", "==", employee_id),
                Filter("status", "==", "approved"),
                Filter("start_date", "<=", end.isoformat()),
            ],
        )
        leaves = [leave_from_document(d) for d in docs]
        return [lv for lv in leaves if lv.end_date >= start]
