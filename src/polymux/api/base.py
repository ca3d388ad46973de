"""Shared request and error mapping for REST endpoint handlers."""

from __future__ import annotations

import logging
import re
from typing import Any, NoReturn

from polymux.config import Config
from polymux.exceptions import ApiError, ErrorCode, InvalidCredentialsError
from polymux.transport import Transport, TransportResponse

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def require_str(value: Any, name: str = "Ticker") -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string")
    if not value.strip():
        raise ValueError(f"{name} must not be blank")
    return value


def require_date(value: Any, name: str = "Date") -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string in YYYY-MM-DD format")
    if not DATE_PATTERN.match(value):
        raise ValueError(f"{name} must be in YYYY-MM-DD format, got {value!r}")
    return value


def require_positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be a positive integer")
    if value <= 0:
        raise ValueError(f"{name} must be a positive integer")
    return value


def _extract_error_message(payload: dict[str, Any]) -> str | None:
    for key in ("error", "message", "Message", "error_description"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()

    for value in payload.values():
        if isinstance(value, dict):
            nested = _extract_error_message(value)
            if nested:
                return nested
    return None


class RestHandler:
    """Base for handlers bound to the client's shared transport and config."""

    def __init__(self, transport: Transport, config: Config) -> None:
        self._transport = transport
        self._config = config

    def _get(self, path: str, params: dict[str, Any] | None = None) -> TransportResponse:
        logger.debug("api_request path=%s params=%s", path, sorted((params or {}).keys()))
        return self._transport.request("GET", path, params=params)

    def _decode(self, response: TransportResponse, *, operation: str, path: str) -> Any:
        try:
            return response.decode_json()
        except ValueError as exc:
            raise ApiError(
                f"{operation} failed: expected JSON response",
                status=response.status,
                code=ErrorCode.MALFORMED_RESPONSE,
                details={"operation": operation, "path": path},
            ) from exc

    def _fetch_single(self, path: str, params: dict[str, Any] | None = None, *, operation: str) -> Any:
        response = self._get(path, params)
        if not response.is_success:
            self._raise_http_error(response, operation=operation, path=path)
        return self._decode(response, operation=operation, path=path)

    def _fetch_collection(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        operation: str,
        results_key: str = "results",
        allow_404: bool = False,
    ) -> list[Any]:
        response = self._get(path, params)
        if allow_404 and response.status == 404:
            logger.debug("api_not_found path=%s operation=%s", path, operation)
            return []
        if not response.is_success:
            self._raise_http_error(response, operation=operation, path=path)

        body = self._decode(response, operation=operation, path=path)
        if not isinstance(body, dict):
            return []
        items = body.get(results_key)
        if not isinstance(items, list):
            return []
        return items

    def _raise_http_error(self, response: TransportResponse, *, operation: str, path: str) -> NoReturn:
        status_code = response.status
        raw = response.text.strip()
        try:
            parsed = response.decode_json()
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            raw = _extract_error_message(parsed) or raw

        message = f"{operation} failed: {raw or f'HTTP {status_code}'}"
        details = {"operation": operation, "path": path}
        logger.info("api_error operation=%s path=%s status=%s", operation, path, status_code)
        if status_code in {401, 403}:
            raise InvalidCredentialsError(message, status=status_code, details=details)
        if status_code == 429:
            raise ApiError(
                message,
                status=status_code,
                code=ErrorCode.RATE_LIMITED,
                details=details,
                suggestion="Retry with lower request frequency.",
            )
        raise ApiError(message, status=status_code, details=details)
