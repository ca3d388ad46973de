"""HTTP transport collaborator for the REST handlers."""

from __future__ import annotations

from abc import ABC, abstractmethod
import json
import logging
from typing import Any

import httpx
from pydantic import BaseModel, Field

from polymux.exceptions import ApiError, ErrorCode

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class TransportResponse(BaseModel):
    status: int
    body: bytes = b""
    headers: dict[str, str] = Field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def decode_json(self) -> Any:
        if not self.body:
            return None
        return json.loads(self.body)


class Transport(ABC):
    """Makes one request and returns status, body and headers."""

    @abstractmethod
    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> TransportResponse:
        raise NotImplementedError

    def close(self) -> None:
        return None


def _clean_params(params: dict[str, Any] | None) -> dict[str, Any]:
    if not params:
        return {}
    return {key: value for key, value in params.items() if value is not None}


class HttpxTransport(Transport):
    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        http_transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self._base_url,
            headers=headers,
            timeout=timeout_seconds,
            transport=http_transport,
        )

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> TransportResponse:
        try:
            response = self._client.request(method, path, params=_clean_params(params), headers=headers, content=body)
        except httpx.TimeoutException as exc:
            raise ApiError(
                f"{method} {path} timed out",
                code=ErrorCode.TIMEOUT,
                details={"path": path, "error": str(exc)},
                suggestion="Retry, or raise timeout_seconds in the polymux config.",
            ) from exc
        except httpx.RequestError as exc:
            raise ApiError(
                f"{method} {path} failed: {exc}",
                code=ErrorCode.NETWORK_ERROR,
                details={"path": path, "error_type": type(exc).__name__},
            ) from exc

        logger.debug("http_request method=%s path=%s status=%s", method, path, response.status_code)
        return TransportResponse(
            status=response.status_code,
            body=response.content,
            headers=dict(response.headers),
        )

    def close(self) -> None:
        self._client.close()
