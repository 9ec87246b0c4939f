"""JSON helpers shared by the Flask controllers."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from ..core.exceptions import DomainError, ErrorKind, ValidationError
from ..database.documents import encode
from .datetime_utils import parse_iso_date

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.STATE_CONFLICT: 409,
    ErrorKind.BOUNDARY: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INFRASTRUCTURE: 500,
}


def ok(data: Any = None, status: int = 200):
    return jsonify({"success": True, "data": encode(data)}), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        status = STATUS_BY_KIND.get(exc.kind, 500)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, exc.message)
        return jsonify({"success": False, "error": exc.kind.value, "message": exc.message}), status


def json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def optional_datetime(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid datetime {value!r}")


def required_date(value: Any, field_name: str) -> date:
    if value in (None, ""):
        raise ValidationError(f"{field_name} is required")
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD")


def required_int(value: Any, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
