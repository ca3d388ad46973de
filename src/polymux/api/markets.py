"""Market status and holiday calendar endpoints."""

from __future__ import annotations

from polymux.api.base import RestHandler
from polymux.models.markets import Holiday, MarketStatus


class Markets(RestHandler):
    def status(self) -> MarketStatus:
        body = self._fetch_single("/v1/marketstatus/now", operation="markets.status")
        return MarketStatus.from_api(body)

    def holidays(self) -> list[Holiday]:
        # The upcoming calendar is a bare JSON array, not a results envelope.
        body = self._fetch_single("/v1/marketstatus/upcoming", operation="markets.holidays")
        if not isinstance(body, list):
            return []
        return [Holiday.from_api(item) for item in body]
