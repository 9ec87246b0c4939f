"""Break ledger: one open break at a time per attendance record."""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..core.constants import LUNCH_BREAK_MINUTES, SHORT_BREAK_MINUTES
from ..core.enums import BreakType
from ..core.exceptions import BreakAlreadyOpenError, BreakNotFoundError, StateConflictError
from .model import AttendanceRecord, BreakRecord


def default_break_terms(break_type: BreakType) -> tuple[bool, int]:
    """(is_paid, scheduled_minutes) for a break type."""
    if break_type == BreakType.LUNCH:
        return False, LUNCH_BREAK_MINUTES
    return True, SHORT_BREAK_MINUTES


def current_break(record: AttendanceRecord) -> Optional[BreakRecord]:
    return next((b for b in record.breaks if b.is_open), None)


def _with_totals(record: AttendanceRecord, breaks: list[BreakRecord]) -> AttendanceRecord:
    total = sum(b.duration_minutes or 0 for b in breaks)
    unpaid = sum(b.duration_minutes or 0 for b in breaks if not b.is_paid)
    return replace(record, breaks=tuple(breaks), total_break_minutes=total, unpaid_break_minutes=unpaid)


def start_break(
    record: AttendanceRecord,
    break_type: BreakType,
    now: datetime,
    *,
    notes: Optional[str] = None,
    break_id: Optional[str] = None,
) -> tuple[AttendanceRecord, BreakRecord]:
    if not record.is_open:
        raise StateConflictError("Cannot start a break after clocking out")
    if current_break(record) is not None:
        raise BreakAlreadyOpenError("A break is already in progress")

    is_paid, scheduled = default_break_terms(break_type)
    new_break = BreakRecord(
        break_id=break_id or uuid.uuid4().hex,
        break_type=break_type,
        start_time=now,
        end_time=None,
        duration_minutes=None,
        scheduled_duration=scheduled,
        is_paid=is_paid,
        notes=notes,
    )
    return replace(record, breaks=tuple(record.breaks) + (new_break,)), new_break


def end_break(record: AttendanceRecord, break_id: str, now: datetime) -> tuple[AttendanceRecord, BreakRecord]:
    breaks = list(record.breaks)
    for i, b in enumerate(breaks):
        if b.break_id != break_id:
            continue
        if not b.is_open:
            raise StateConflictError("This break has already ended")
        duration = max(0, int((now - b.start_time).total_seconds() // 60))
        breaks[i] = replace(b, end_time=now, duration_minutes=duration)
        return _with_totals(record, breaks), breaks[i]

    raise BreakNotFoundError(f"Break {break_id} was not found on this attendance record")
