"""Domain exceptions for the Spendbook API.

Each exception carries the HTTP status it maps to; the handlers registered in
``spendbook.main`` turn them into JSON responses.
"""

from typing import List, Optional


class SpendbookError(Exception):
    """Base exception for all Spendbook errors."""

    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str, details: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message, **self.details}


class ValidationError(SpendbookError):
    """Raised when request input is missing or malformed."""

    status_code = 400

    def __init__(
        self,
        message: str,
        required: Optional[List[str]] = None,
        invalid: Optional[List[str]] = None,
        missing: Optional[List[str]] = None,
    ) -> None:
        self.required = required or []
        self.invalid = invalid or []
        self.missing = missing or []
        self.error = "Missing required fields" if self.missing else "Invalid request"
        super().__init__(
            message,
            {"required": self.required, "missing": self.missing, "invalid": self.invalid},
        )


class Unauthorized(SpendbookError):
    """Raised when the caller has no valid identity. Never carries detail."""

    status_code = 401
    error = "Unauthorized"

    def __init__(self) -> None:
        super().__init__("Authentication required for this operation")


class NotFound(SpendbookError):
    """Raised for absent records and for records owned by someone else."""

    status_code = 404
    error = "Not found"


class DuplicateTransaction(SpendbookError):
    status_code = 409
    error = "Duplicate transaction"

    def __init__(self, message: str, duplicate_id: Optional[int] = None) -> None:
        super().__init__(message, {"duplicateId": duplicate_id})
        self.duplicate_id = duplicate_id


class DuplicateCategory(SpendbookError):
    status_code = 409
    error = "Duplicate category"


class InternalError(SpendbookError):
    """Raised when the store fails; the cause is chained for logging."""

    pass
