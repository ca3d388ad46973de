"""Error hierarchy and code mapping for polymux."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    VALIDATION_FAILED = "VALIDATION_FAILED"
    API_ERROR = "API_ERROR"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    RATE_LIMITED = "RATE_LIMITED"
    NO_PREVIOUS_DATA = "NO_PREVIOUS_DATA"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    FLAT_FILES_ERROR = "FLAT_FILES_ERROR"
    S3_AUTH_FAILED = "S3_AUTH_FAILED"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    INTEGRITY_CHECK_FAILED = "INTEGRITY_CHECK_FAILED"


class PolymuxError(Exception):
    """Base typed exception; catching it catches every polymux failure."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.suggestion = suggestion

    def to_error_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }
        if self.suggestion:
            payload["suggestion"] = self.suggestion
        return payload


class ValidationError(PolymuxError):
    """Raw payload did not satisfy a value type's constraints."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.VALIDATION_FAILED, message, details=details)


class ApiError(PolymuxError):
    """Non-2xx or malformed response from the REST API."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        code: ErrorCode = ErrorCode.API_ERROR,
        details: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ) -> None:
        merged = dict(details or {})
        if status is not None:
            merged.setdefault("status_code", status)
        super().__init__(code, message, details=merged, suggestion=suggestion)
        self.status = status


class InvalidCredentialsError(ApiError):
    def __init__(self, message: str, *, status: int | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            status=status,
            code=ErrorCode.INVALID_CREDENTIALS,
            details=details,
            suggestion="Check POLYMUX_API_KEY or pass api_key explicitly.",
        )


class NoPreviousDataFoundError(PolymuxError):
    """The previous-day endpoint answered but had no bar for the contract."""

    def __init__(self, message: str, *, ticker: str | None = None) -> None:
        super().__init__(ErrorCode.NO_PREVIOUS_DATA, message, details={"ticker": ticker} if ticker else None)
        self.ticker = ticker


class FlatFilesError(PolymuxError):
    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode = ErrorCode.FLAT_FILES_ERROR,
        details: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(code, message, details=details, suggestion=suggestion)


class AuthenticationError(FlatFilesError):
    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        resolution_steps: list[str] | None = None,
    ) -> None:
        steps = list(resolution_steps or [])
        super().__init__(
            message,
            code=ErrorCode.S3_AUTH_FAILED,
            details={"error_code": error_code, "resolution_steps": steps},
            suggestion=steps[0] if steps else None,
        )
        self.error_code = error_code
        self.resolution_steps = steps


class FlatFileNotFoundError(FlatFilesError):
    def __init__(
        self,
        message: str,
        *,
        requested_date: str | None = None,
        reason: str | None = None,
        alternative_dates: list[str] | None = None,
        data_availability_through: str | None = None,
    ) -> None:
        alternatives = list(alternative_dates or [])
        super().__init__(
            message,
            code=ErrorCode.FILE_NOT_FOUND,
            details={
                "requested_date": requested_date,
                "reason": reason,
                "alternative_dates": alternatives,
                "data_availability_through": data_availability_through,
            },
        )
        self.requested_date = requested_date
        self.reason = reason
        self.alternative_dates = alternatives
        self.data_availability_through = data_availability_through


class NetworkError(FlatFilesError):
    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code=ErrorCode.NETWORK_ERROR, details=details)


class IntegrityError(FlatFilesError):
    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code=ErrorCode.INTEGRITY_CHECK_FAILED, details=details)
