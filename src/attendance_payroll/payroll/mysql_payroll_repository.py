from __future__ import annotations

from dataclasses import fields, replace
from typing import Any, Dict, List, Optional, Sequence

from ..core.enums import PayrollStatus
from ..database.document_store import DocumentStore, Filter, StoredDocument
from ..database.documents import as_date, as_datetime, encode
from .model import Allowances, Deductions, PayrollFilters, PayrollRecord
from .repository import PayrollRepository

PAYROLL_COLLECTION = "payroll"


def _amounts(cls, d: Optional[Dict[str, Any]]):
    d = d or {}
    return cls(**{f.name: float(d.get(f.name) or 0) for f in fields(cls)})


def payroll_to_document(record: PayrollRecord) -> Dict[str, Any]:
    body = encode(record)
    body.pop("payroll_id", None)
    body.pop("version", None)
    return body


def payroll_from_document(doc: StoredDocument) -> PayrollRecord:
    d = doc.data
    return PayrollRecord(
        payroll_id=doc.doc_id,
        employee_id=str(d["employee_id"]),
        month=int(d["month"]),
        year=int(d["year"]),
        period_start=as_date(d["period_start"]),
        period_end=as_date(d["period_end"]),
        pay_date=as_date(d["pay_date"]),
        base_salary=float(d["base_salary"]),
        overtime_pay=float(d.get("overtime_pay") or 0),
        bonus=float(d.get("bonus") or 0),
        allowances=_amounts(Allowances, d.get("allowances")),
        gross_income=float(d["gross_income"]),
        deductions=_amounts(Deductions, d.get("deductions")),
        total_deductions=float(d["total_deductions"]),
        net_pay=float(d["net_pay"]),
        working_days=int(d.get("working_days") or 0),
        actual_work_days=float(d.get("actual_work_days") or 0),
        absent_days=float(d.get("absent_days") or 0),
        late_days=int(d.get("late_days") or 0),
        on_leave_days=float(d.get("on_leave_days") or 0),
        overtime_hours=float(d.get("overtime_hours") or 0),
        status=PayrollStatus(d["status"]),
        employee_name=d.get("employee_name") or "",
        employee_code=d.get("employee_code") or "",
        department_id=d.get("department_id"),
        department_name=d.get("department_name"),
        position_id=d.get("position_id"),
        position_name=d.get("position_name"),
        approved_by=d.get("approved_by"),
        approved_at=as_datetime(d.get("approved_at")),
        approval_comments=d.get("approval_comments"),
        paid_by=d.get("paid_by"),
        paid_at=as_datetime(d.get("paid_at")),
        payment_method=d.get("payment_method"),
        transaction_ref=d.get("transaction_ref"),
        notes=d.get("notes"),
        version=doc.version,
    )


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def get_by_id(self, payroll_id: str) -> Optional[PayrollRecord]:
        doc = self._store.get(PAYROLL_COLLECTION, payroll_id)
        return payroll_from_document(doc) if doc else None

    def get_by_employee_and_period(self, employee_id: str, month: int, year: int) -> Optional[PayrollRecord]:
        docs = self._store.query(
            PAYROLL_COLLECTION,
            [
                Filter("employee_id", "==", employee_id),
                Filter("month", "==", month),
                Filter("year", "==", year),
                Filter("status", "!=", PayrollStatus.CANCELLED.value),
            ],
            limit=1,
        )
        return payroll_from_document(docs[0]) if docs else None

    def list(self, filters: PayrollFilters) -> Sequence[PayrollRecord]:
        conditions: List[Filter] = []
        if filters.employee_id:
            conditions.append(Filter("employee_id", "==", filters.employee_id))
        if filters.department_id:
            conditions.append(Filter("department_id", "==", filters.department_id))
        if filters.month:
            conditions.append(Filter("month", "==", filters.month))
        if filters.year:
            conditions.append(Filter("year", "==", filters.year))
        if filters.status:
            conditions.append(Filter("status", "==", filters.status.value))
        docs = self._store.query(PAYROLL_COLLECTION, conditions, order_by="period_start", descending=True)
        return [payroll_from_document(d) for d in docs]

    def create(self, record: PayrollRecord) -> str:
        return self._store.create(PAYROLL_COLLECTION, payroll_to_document(record))

    def save(self, record: PayrollRecord, *, expected_version: int) -> PayrollRecord:
        version = self._store.update(
            PAYROLL_COLLECTION,
            record.payroll_id,
            payroll_to_document(record),
            expected_version=expected_version,
        )
        return replace(record, version=version)
