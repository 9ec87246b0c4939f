from __future__ import annotations

from typing import Any, Dict, Optional

from flask import Flask, request

from ..common.http import json_body, ok, optional_datetime, required_date, required_int
from ..common.validators import require_non_empty, require_non_negative
from ..core.enums import BreakType, ClockMethod, ViolationType
from ..core.exceptions import ValidationError
from ..geofence.model import ReportedPosition
from .model import AttendancePenalty, ClockInInput, ClockOutInput


def _position(body: Dict[str, Any]) -> Optional[ReportedPosition]:
    loc = body.get("location")
    if not loc:
        return None
    if not isinstance(loc, dict):
        raise ValidationError("location must be an object")
    return ReportedPosition(
        latitude=loc.get("latitude"),
        longitude=loc.get("longitude"),
        accuracy=loc.get("accuracy"),
        timestamp=optional_datetime(loc.get("timestamp")),
    )


def _enum(enum_cls, value, default):
    if value in (None, ""):
        return default
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Invalid value {value!r}")


def register(app: Flask, container) -> None:
    service = container.attendance_service
    penalties = container.penalty_engine

    @app.route("/api/attendance/clock-in", methods=["POST"], endpoint="api_clock_in")
    def api_clock_in():
        body = json_body()
        record = service.clock_in(
            ClockInInput(
                employee_id=body.get("employee_id"),
                now=optional_datetime(body.get("now")),
                position=_position(body),
                is_remote_work=bool(body.get("is_remote_work", False)),
                clock_in_method=_enum(ClockMethod, body.get("clock_in_method"), ClockMethod.WEB),
                notes=body.get("notes"),
            )
        )
        return ok(record, 201)

    @app.route("/api/attendance/clock-out", methods=["POST"], endpoint="api_clock_out")
    def api_clock_out():
        body = json_body()
        result = service.clock_out(
            ClockOutInput(
                employee_id=body.get("employee_id"),
                now=optional_datetime(body.get("now")),
                position=_position(body),
                clock_out_method=_enum(ClockMethod, body.get("clock_out_method"), ClockMethod.WEB),
                notes=body.get("notes"),
            )
        )
        return ok(result)

    @app.route(
        "/api/attendance/records/<record_id>/missed-clock-out",
        methods=["POST"],
        endpoint="api_missed_clock_out",
    )
    def api_missed_clock_out(record_id: str):
        return ok(service.flag_missed_clock_out(record_id))

    @app.route("/api/attendance/records/<record_id>/approve", methods=["POST"], endpoint="api_approve_attendance")
    def api_approve_attendance(record_id: str):
        body = json_body()
        return ok(service.approve_attendance(record_id, body.get("approver_id"), body.get("notes")))

    @app.route("/api/attendance/breaks/start", methods=["POST"], endpoint="api_break_start")
    def api_break_start():
        body = json_body()
        new_break = service.start_break(
            body.get("employee_id"),
            _enum(BreakType, body.get("break_type"), BreakType.REST),
            now=optional_datetime(body.get("now")),
            notes=body.get("notes"),
        )
        return ok(new_break, 201)

    @app.route("/api/attendance/breaks/<break_id>/end", methods=["POST"], endpoint="api_break_end")
    def api_break_end(break_id: str):
        body = json_body()
        return ok(service.end_break(body.get("employee_id"), break_id, now=optional_datetime(body.get("now"))))

    @app.route("/api/attendance/<employee_id>/today", methods=["GET"], endpoint="api_attendance_today")
    def api_attendance_today(employee_id: str):
        record = service.get_today_record(employee_id)
        return ok(
            {
                "record": record,
                "current_break": service.get_current_break(employee_id),
            }
        )

    @app.route("/api/attendance/<employee_id>/history", methods=["GET"], endpoint="api_attendance_history")
    def api_attendance_history(employee_id: str):
        limit = request.args.get("limit")
        if limit is None:
            return ok(service.get_history(employee_id))
        return ok(service.get_history(employee_id, required_int(limit, "limit")))

    @app.route("/api/attendance/<employee_id>/monthly", methods=["GET"], endpoint="api_attendance_monthly")
    def api_attendance_monthly(employee_id: str):
        month = required_int(request.args.get("month"), "month")
        year = required_int(request.args.get("year"), "year")
        return ok(service.get_monthly_attendance(employee_id, month, year))

    @app.route("/api/attendance/<employee_id>/stats", methods=["GET"], endpoint="api_attendance_stats")
    def api_attendance_stats(employee_id: str):
        start = required_date(request.args.get("start"), "start")
        end = required_date(request.args.get("end"), "end")
        return ok(service.calculate_stats(employee_id, start, end))

    @app.route("/api/attendance/<employee_id>/penalties", methods=["GET"], endpoint="api_penalty_summary")
    def api_penalty_summary(employee_id: str):
        start = required_date(request.args.get("start"), "start")
        end = required_date(request.args.get("end"), "end")
        return ok(penalties.penalty_summary(employee_id, start, end))

    @app.route(
        "/api/attendance/records/<record_id>/penalties/<policy_id>",
        methods=["DELETE"],
        endpoint="api_remove_penalty",
    )
    def api_remove_penalty(record_id: str, policy_id: str):
        return ok(penalties.remove_penalty(record_id, policy_id))

    @app.route("/api/attendance/records/<record_id>/penalties", methods=["POST"], endpoint="api_add_penalty")
    def api_add_penalty(record_id: str):
        body = json_body()
        penalty = AttendancePenalty(
            policy_id=require_non_empty(body.get("policy_id"), "policy_id"),
            violation_type=_enum(ViolationType, body.get("violation_type"), ViolationType.VIOLATION),
            amount=require_non_negative(body.get("amount"), "amount"),
            description=str(body.get("description") or ""),
        )
        return ok(penalties.add_manual_penalty(record_id, penalty), 201)
