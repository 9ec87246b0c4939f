from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Lifecycle of a day's attendance record."""

    CLOCKED_IN = "clocked-in"
    CLOCKED_OUT = "clocked-out"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ClockMethod(str, Enum):
    MOBILE = "mobile"
    WEB = "web"
    BIOMETRIC = "biometric"
    MANUAL = "manual"


class BreakType(str, Enum):
    LUNCH = "lunch"
    REST = "rest"
    PRAYER = "prayer"
    OTHER = "other"


class ViolationType(str, Enum):
    """Attendance violations a penalty policy can target."""

    LATE = "late"
    EARLY_LEAVE = "early-leave"
    ABSENCE = "absence"
    NO_CLOCK_IN = "no-clock-in"
    NO_CLOCK_OUT = "no-clock-out"
    VIOLATION = "violation"


class PenaltyCalculationType(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"
    HOURLY_RATE = "hourly-rate"
    DAILY_RATE = "daily-rate"
    PROGRESSIVE = "progressive"


class PayrollStatus(str, Enum):
    """Payroll record lifecycle; CANCELLED and PAID are terminal."""

    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


class PaymentFrequency(str, Enum):
    MONTHLY = "monthly"
    BI_WEEKLY = "bi-weekly"
    WEEKLY = "weekly"
    HOURLY = "hourly"


class PenaltyOutcome(str, Enum):
    """How the best-effort penalty step after clock-out ended."""

    APPLIED = "applied"
    NONE = "none"
    SKIPPED = "skipped"
    FAILED = "failed"


class GenerationOutcome(str, Enum):
    """Per-employee result of a monthly payroll run."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    ERROR = "error"
