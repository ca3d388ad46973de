"""Reference exchange listing."""

from __future__ import annotations

from typing import Any

from polymux.api.base import RestHandler
from polymux.models.exchanges import Exchange


class Exchanges(RestHandler):
    def list(self, **params: Any) -> list[Exchange]:
        items = self._fetch_collection("/v3/reference/exchanges", params or None, operation="exchanges.list")
        return [Exchange.from_api(item) for item in items]
