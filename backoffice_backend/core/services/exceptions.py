# core/services/exceptions.py

"""
BACK-OFFICE SERVICE ERRORS

Centralized domain errors for the financial consistency engine.

Every error carries:
- code         stable machine-readable identifier (API contract)
- http_status  status the API layer renders it with
- retriable    True only for contention failures the caller may retry as-is

Rules:
- Services raise these; views render them via core.api.errors.
- Database lock failures are converted to LockTimeoutError at the lock site.
- LockTimeoutError is deliberately NOT a VersionConflictError: a version
  conflict means "refetch first", a lock timeout means "retry unchanged".
"""

from __future__ import annotations


class BackofficeError(Exception):
    """Base exception for all back-office service failures."""

    code = "ERROR"
    http_status = 400
    retriable = False

    def __init__(self, message: str = "", *, code: str | None = None, **details):
        super().__init__(message or self.__class__.__doc__ or self.code)
        if code:
            self.code = code
        self.details = details

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""

    def as_dict(self) -> dict:
        body = {"code": self.code, "message": self.message}
        body.update(self.details)
        return body


class VersionConflictError(BackofficeError):
    """The stored version no longer matches the version the client edited."""

    code = "VERSION_CONFLICT"
    http_status = 409

    def __init__(self, message: str = "", *, server_version=None, **details):
        super().__init__(
            message or "Record was modified by another user. Refresh and retry.",
            server_version=server_version,
            **details,
        )
        self.server_version = server_version


class LockTimeoutError(BackofficeError):
    """Another operation holds the row lock; retry shortly."""

    code = "LOCK_TIMEOUT"
    http_status = 409
    retriable = True


class OverpaymentError(BackofficeError):
    """Payment would push the paid amount past the total."""

    code = "PAYMENT_OVERPAYMENT"
    http_status = 400

    def __init__(
        self, message: str = "", *, remaining_balance=None, overpayment=None, **details
    ):
        super().__init__(
            message or "Payment exceeds the remaining balance.",
            remaining_balance=str(remaining_balance) if remaining_balance is not None else None,
            overpayment=str(overpayment) if overpayment is not None else None,
            **details,
        )
        self.remaining_balance = remaining_balance
        self.overpayment = overpayment


class RequestValidationError(BackofficeError):
    """Request is malformed (amount, account, allocations, version token)."""

    code = "VALIDATION_ERROR"
    http_status = 400


class InvalidQuantityError(BackofficeError):
    """Received quantity outside [0, ordered quantity]."""

    code = "INVALID_QUANTITY"
    http_status = 400


class InvalidTransitionError(BackofficeError):
    """State machine refused the requested transition."""

    code = "INVALID_TRANSITION"
    http_status = 400

    def __init__(self, message: str = "", *, from_status=None, to_status=None, **details):
        super().__init__(
            message or f"Cannot transition from '{from_status}' to '{to_status}'",
            from_status=from_status,
            to_status=to_status,
            **details,
        )
        self.from_status = from_status
        self.to_status = to_status


class NotFoundError(BackofficeError):
    """Record does not exist in the caller's tenant."""

    code = "NOT_FOUND"
    http_status = 404


class ImmutableRecordError(BackofficeError):
    """Paid bills cannot be edited or deleted."""

    code = "BILL_PAID_IMMUTABLE"
    http_status = 403


class BusinessRuleError(BackofficeError):
    """A precondition of the operation does not hold."""

    code = "BUSINESS_RULE"
    http_status = 400


class TenantAccessError(BackofficeError):
    """Caller's tenant is not a party to this record."""

    code = "FORBIDDEN"
    http_status = 403
