from __future__ import annotations

from typing import List, Optional, Sequence

from ..core.enums import PaymentFrequency
from ..database.document_store import DocumentStore, Filter, StoredDocument
from .model import Employee
from .repository import EmployeeRepository

EMPLOYEES_COLLECTION = "employees"
ACTIVE_STATUS = "active"


def employee_from_document(doc: StoredDocument) -> Employee:
    d = doc.data
    salary = d.get("salary") or {}
    overtime = d.get("overtime") or {}
    return Employee(
        employee_id=doc.doc_id,
        user_id=d.get("user_id"),
        first_name=str(d.get("first_name") or ""),
        last_name=str(d.get("last_name") or ""),
        employee_code=str(d.get("employee_code") or ""),
        department_id=d.get("department_id"),
        department_name=d.get("department_name"),
        position_id=d.get("position_id"),
        position_name=d.get("position_name"),
        employment_type=d.get("employment_type"),
        base_salary=float(salary.get("base_salary") or 0),
        payment_frequency=PaymentFrequency(salary.get("payment_frequency") or PaymentFrequency.MONTHLY.value),
        overtime_rate=float(overtime.get("rate") or 1.5),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        doc = self._store.get(EMPLOYEES_COLLECTION, employee_id)
        return employee_from_document(doc) if doc else None

    def get_by_user_id(self, user_id: str) -> Optional[Employee]:
        docs = self._store.query(EMPLOYEES_COLLECTION, [Filter("user_id", "==", user_id)], limit=1)
        return employee_from_document(docs[0]) if docs else None

    def list_active(self, department_id: Optional[str] = None) -> Sequence[Employee]:
        filters: List[Filter] = [Filter("status", "==", ACTIVE_STATUS)]
        if department_id:
            filters.append(Filter("department_id", "==", department_id))
        docs = self._store.query(EMPLOYEES_COLLECTION, filters, order_by="employee_code")
        return [employee_from_document(d) for d in docs]
