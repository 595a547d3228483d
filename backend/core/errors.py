"""
Application error taxonomy.

- FetchError: a record-store read failed. Retryable, no partial output.
- WriteError: a record-store write failed. Retryable; callers undo their own
  earlier writes before it propagates.
- DataIntegrityError: stored data violates an invariant (unknown enum value,
  missing foreign key, cross-tenant row). Not retryable.
- ExternalServiceError: a side effect (email send) failed. Persisted invoice
  state is untouched.

Entitlement denial is not an error: see core.entitlements.FeatureGate.
"""
from http import HTTPStatus
from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for errors rendered by the AppError exception handler."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    code: str = "APP_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON error body."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details
            }
        }

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class FetchError(AppError):
    """Raised when a collaborator read fails."""

    status_code = HTTPStatus.SERVICE_UNAVAILABLE
    code = "FETCH_FAILED"

    def __init__(self, table: str, reason: str):
        super().__init__(
            f"Could not load {table}",
            details={"table": table, "reason": reason, "retryable": True}
        )
        self.table = table


class WriteError(AppError):
    """Raised when a record-store write fails."""

    status_code = HTTPStatus.SERVICE_UNAVAILABLE
    code = "WRITE_FAILED"

    def __init__(self, table: str, reason: str):
        super().__init__(
            f"Could not save {table}",
            details={"table": table, "reason": reason, "retryable": True}
        )
        self.table = table


class DataIntegrityError(AppError):
    """Raised when stored records break a data invariant."""

    status_code = HTTPStatus.UNPROCESSABLE_ENTITY
    code = "DATA_INTEGRITY"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details.setdefault("retryable", False)
        super().__init__(message, details)


class ExternalServiceError(AppError):
    """Raised when an external side effect (email delivery) fails."""

    status_code = HTTPStatus.BAD_GATEWAY
    code = "EXTERNAL_SERVICE_FAILED"

    def __init__(self, service: str, reason: str):
        super().__init__(
            f"{service} request failed",
            details={"service": service, "reason": reason}
        )
        self.service = service
