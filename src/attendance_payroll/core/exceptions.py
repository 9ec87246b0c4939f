from __future__ import annotations

import logging
from enum import Enum
from functools import wraps

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Closed set of failure categories surfaced to callers."""

    VALIDATION = "validation"
    STATE_CONFLICT = "state-conflict"
    BOUNDARY = "boundary"
    NOT_FOUND = "not-found"
    INFRASTRUCTURE = "infrastructure"


class DomainError(Exception):
    """Base exception for business rule violations."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = ErrorKind.VALIDATION


class StateConflictError(DomainError):
    """Raised when the requested transition conflicts with current state."""

    kind = ErrorKind.STATE_CONFLICT


class AlreadyClockedInError(StateConflictError):
    pass


class BreakAlreadyOpenError(StateConflictError):
    pass


class PayrollExistsError(StateConflictError):
    pass


class InvalidStatusTransitionError(StateConflictError):
    pass


class ConcurrentModificationError(StateConflictError):
    """The stored document changed between read and write."""


class BoundaryError(DomainError):
    """Blocks a transition without touching existing state."""

    kind = ErrorKind.BOUNDARY


class OutsideGeofenceError(BoundaryError):
    pass


class NoActiveLocationError(BoundaryError):
    pass


class OnLeaveError(BoundaryError):
    pass


class NotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND


class AttendanceNotFoundError(NotFoundError):
    pass


class BreakNotFoundError(NotFoundError):
    pass


class PayrollNotFoundError(NotFoundError):
    pass


class EmployeeNotFoundError(NotFoundError):
    pass


class InfrastructureError(DomainError):
    """Repository or other I/O failure, re-raised with a user-facing message."""

    kind = ErrorKind.INFRASTRUCTURE


def translate_errors(message: str):
    """Let domain errors through; turn anything else into InfrastructureError."""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except DomainError:
                raise
            except Exception as exc:
                logger.exception("%s failed: %s", func.__qualname__, exc)
                raise InfrastructureError(message) from exc

        return wrapper

    return decorator
