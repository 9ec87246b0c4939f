from __future__ import annotations

from dataclasses import replace
from types import SimpleNamespace
from typing import Optional

import pytest
from flask import Flask

from attendance_payroll.attendance.model import AttendanceStats
from attendance_payroll.common.http import register_error_handlers
from attendance_payroll.core.enums import PayrollStatus
from attendance_payroll.employees.model import Employee
from attendance_payroll.payroll import controller
from attendance_payroll.payroll.model import PayrollRecord
from attendance_payroll.payroll.service import PayrollService


class InMemoryPayroll:
    def __init__(self):
        self.records: dict[str, PayrollRecord] = {}

    def get_by_id(self, payroll_id: str) -> Optional[PayrollRecord]:
        return self.records.get(payroll_id)

    def get_by_employee_and_period(self, employee_id, month, year):
        return next(
            (
                r
                for r in self.records.values()
                if (r.employee_id, r.month, r.year) == (employee_id, month, year) and r.status != PayrollStatus.CANCELLED
            ),
            None,
        )

    def list(self, filters):
        return [r for r in self.records.values() if filters.month in (None, r.month)]

    def create(self, record: PayrollRecord) -> str:
        payroll_id = f"pay-{len(self.records) + 1}"
        self.records[payroll_id] = replace(record, payroll_id=payroll_id)
        return payroll_id

    def save(self, record: PayrollRecord, *, expected_version: int) -> PayrollRecord:
        saved = replace(record, version=expected_version + 1)
        self.records[record.payroll_id] = saved
        return saved


class Employees:
    def get_by_id(self, employee_id):
        if employee_id == "emp-1":
            return Employee("emp-1", "user-1", "Ada", "Lovelace", base_salary=30_000)
        return None

    def list_active(self, department_id=None):
        return [self.get_by_id("emp-1")]


class Stats:
    def calculate_stats(self, employee_id, start, end):
        return AttendanceStats(22, 22, 0, 0, 0, 176, 8, 0)


@pytest.fixture
def client():
    app = Flask(__name__)
    register_error_handlers(app)
    container = SimpleNamespace(payroll_service=PayrollService(InMemoryPayroll(), Employees(), Stats()))
    controller.register(app, container)
    return app.test_client()


CREATE = {
    "employee_id": "emp-1",
    "month": 9,
    "year": 2025,
    "period_start": "2025-09-01",
    "period_end": "2025-09-30",
    "pay_date": "2025-10-01",
}


def test_calculate(client):
    resp = client.post(
        "/api/payroll/calculate",
        json={"employee_id": "emp-1", "month": 9, "year": 2025, "base_salary": 30000},
    )

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["net_pay"] == 29000
    assert data["deductions"]["tax"] == 250


def test_calculate_rejects_invalid_input(client):
    resp = client.post("/api/payroll/calculate", json={"employee_id": "emp-1", "month": 9, "year": 2025})

    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "error": "validation", "message": "base_salary is required"}


def test_create_then_duplicate(client):
    first = client.post("/api/payroll", json=CREATE)
    second = client.post("/api/payroll", json=CREATE)

    assert first.status_code == 201
    assert first.get_json()["data"]["status"] == "draft"
    assert first.get_json()["data"]["period_start"] == "2025-09-01"
    assert second.status_code == 409
    assert second.get_json()["error"] == "state-conflict"


def test_lifecycle_over_http(client):
    payroll_id = client.post("/api/payroll", json=CREATE).get_json()["data"]["payroll_id"]

    early_pay = client.post(f"/api/payroll/{payroll_id}/pay", json={"payment_method": "cash", "paid_by": "fin-1"})
    approved = client.post(f"/api/payroll/{payroll_id}/approve", json={"approver_id": "mgr-1"})
    paid = client.post(f"/api/payroll/{payroll_id}/pay", json={"payment_method": "cash", "paid_by": "fin-1"})

    assert early_pay.status_code == 409
    assert approved.get_json()["data"]["status"] == "approved"
    assert paid.get_json()["data"]["status"] == "paid"


def test_unknown_payroll_is_404(client):
    resp = client.get("/api/payroll/pay-404")

    assert resp.status_code == 404
    assert resp.get_json()["error"] == "not-found"


def test_non_json_body_is_rejected(client):
    resp = client.post("/api/payroll", data="nope", content_type="text/plain")

    assert resp.status_code == 400


def test_summary(client):
    client.post("/api/payroll", json=CREATE)

    resp = client.get("/api/payroll/summary?month=9&year=2025")

    assert resp.get_json()["data"]["total_employees"] == 1
    assert resp.get_json()["data"]["total_net_pay"] == 29000


def test_generate_monthly_payroll(client):
    body = {"month": 9, "year": 2025, "pay_date": "2025-10-01"}

    first = client.post("/api/payroll/generate", json=body)
    second = client.post("/api/payroll/generate", json=body)

    assert first.status_code == 200
    data = first.get_json()["data"]
    assert (data["generated"], data["skipped"], data["errors"]) == (1, 0, 0)
    assert data["details"][0]["status"] == "success"
    assert data["details"][0]["employee_name"] == "Ada Lovelace"
    assert second.get_json()["data"]["details"][0]["message"] == "Payroll already exists"


def test_generate_requires_pay_date(client):
    resp = client.post("/api/payroll/generate", json={"month": 9, "year": 2025})

    assert resp.status_code == 400


def test_summary_after_cancel_and_recreate(client):
    payroll_id = client.post("/api/payroll", json=CREATE).get_json()["data"]["payroll_id"]
    client.post(f"/api/payroll/{payroll_id}/cancel")
    client.post("/api/payroll", json=CREATE)

    resp = client.get("/api/payroll/summary?month=9&year=2025")

    assert resp.get_json()["data"]["total_employees"] == 1
