from __future__ import annotations

import json
import os
from collections.abc import Callable, Iterator
from typing import Any

import httpx
import pytest

from polymux import Client, Config

Route = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def clear_polymux_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ.keys()):
        if key.startswith("POLYMUX_"):
            monkeypatch.delenv(key, raising=False)


def json_response(payload: Any, status: int = 200) -> httpx.Response:
    return httpx.Response(status, content=json.dumps(payload).encode("utf-8"), headers={"Content-Type": "application/json"})


class RecordingRouter:
    """Serves canned responses by path and records every request it sees."""

    def __init__(self) -> None:
        self.routes: dict[str, Route | httpx.Response] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, response: Route | httpx.Response | Any, status: int = 200) -> None:
        if not isinstance(response, httpx.Response) and not callable(response):
            response = json_response(response, status)
        self.routes[path] = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return json_response({"status": "NOT_FOUND", "message": f"no route for {request.url.path}"}, 404)
        if isinstance(route, httpx.Response):
            return route
        return route(request)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def router() -> RecordingRouter:
    return RecordingRouter()


@pytest.fixture
def client(router: RecordingRouter) -> Iterator[Client]:
    config = Config(api_key="test-key", s3_access_key_id="access", s3_secret_access_key="secret")
    with Client(config, http_transport=httpx.MockTransport(router)) as instance:
        yield instance
