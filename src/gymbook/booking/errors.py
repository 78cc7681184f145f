"""Rejection taxonomy for the booking engine.

Every rejection carries a stable machine-readable ``code``, the error ``kind``
and a ``details`` dict naming the offending constraint (remaining minutes,
conflicting booking id, capacity...). Route handlers turn these into HTTP
responses; nothing here knows about HTTP beyond a suggested status code.
"""

import enum
from typing import Any


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    ENTITLEMENT = "entitlement"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    STATE = "state"
    INFRASTRUCTURE = "infrastructure"


class BookingError(Exception):
    kind: ErrorKind = ErrorKind.VALIDATION
    status_code: int = 400
    retryable: bool = False

    def __init__(
        self, code: str, message: str, *, retryable: bool | None = None, **details: Any
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details
        if retryable is not None:
            self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
            **self.details,
        }


class ValidationError(BookingError):
    kind = ErrorKind.VALIDATION
    status_code = 400


class EntitlementError(BookingError):
    kind = ErrorKind.ENTITLEMENT
    status_code = 403


class ConflictError(BookingError):
    kind = ErrorKind.CONFLICT
    status_code = 409
    retryable = True


class NotFoundError(BookingError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class StateError(BookingError):
    kind = ErrorKind.STATE
    status_code = 400


class InfrastructureError(BookingError):
    kind = ErrorKind.INFRASTRUCTURE
    status_code = 503
