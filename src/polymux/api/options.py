"""Options endpoints: contracts, snapshots, trades, quotes and daily bars."""

from __future__ import annotations

from typing import Any

from polymux.api.base import RestHandler, require_date, require_str
from polymux.exceptions import ApiError, ErrorCode, NoPreviousDataFoundError
from polymux.models.options import Contract, DailySummary, PreviousDay, Quote, Snapshot, Trade

CONTRACTS_PATH = "/v3/reference/options/contracts"


def _resolve_ticker(contract: Contract | str) -> str:
    if isinstance(contract, Contract):
        return contract.ticker
    if isinstance(contract, str):
        return require_str(contract, "Contract ticker")
    raise TypeError("contract must be an option ticker or a Contract")


class Options(RestHandler):
    def contracts(self, ticker: str | None = None, **params: Any) -> list[Contract]:
        """List option contracts, optionally filtered by underlying ticker.

        A 404 from the reference endpoint means no contracts and yields ``[]``.
        """
        query = dict(params)
        if ticker is not None:
            query["underlying_ticker"] = require_str(ticker, "Underlying ticker")
        items = self._fetch_collection(CONTRACTS_PATH, query, operation="options.contracts", allow_404=True)
        return [Contract.from_api(item) for item in items]

    def for_ticker(self, underlying_ticker: str, **params: Any) -> list[Contract]:
        return self.contracts(underlying_ticker, **params)

    def snapshot(self, contract: Contract, **params: Any) -> Snapshot:
        if not isinstance(contract, Contract):
            raise TypeError("snapshot requires a Contract")
        path = f"/v3/snapshot/options/{contract.underlying_ticker}/{contract.ticker}"
        body = self._fetch_single(path, params or None, operation=f"options.snapshot {contract.ticker}")
        results = body.get("results") if isinstance(body, dict) else None
        if not isinstance(results, dict):
            raise ApiError(
                f"options.snapshot {contract.ticker} returned no results",
                code=ErrorCode.MALFORMED_RESPONSE,
                details={"ticker": contract.ticker},
            )
        return Snapshot.from_api(results)

    def chain(self, underlying_ticker: str, **params: Any) -> list[Snapshot]:
        underlying = require_str(underlying_ticker, "Underlying ticker")
        items = self._fetch_collection(f"/v3/snapshot/options/{underlying}", params or None, operation="options.chain")
        return [Snapshot.from_api(item) for item in items]

    def trades(self, contract: Contract | str, **params: Any) -> list[Trade]:
        ticker = _resolve_ticker(contract)
        items = self._fetch_collection(f"/v3/trades/{ticker}", params or None, operation="options.trades")
        return [Trade.from_api(ticker, item) for item in items]

    def quotes(self, contract: Contract | str, **params: Any) -> list[Quote]:
        ticker = _resolve_ticker(contract)
        items = self._fetch_collection(f"/v3/quotes/{ticker}", params or None, operation="options.quotes")
        return [Quote.from_api(ticker, item) for item in items]

    def daily_summary(self, contract: Contract | str, date: str) -> DailySummary:
        ticker = _resolve_ticker(contract)
        require_date(date)
        body = self._fetch_single(f"/v1/open-close/{ticker}/{date}", operation=f"options.daily_summary {ticker} {date}")
        return DailySummary.from_api(body)

    def previous_day(self, contract: Contract | str) -> PreviousDay:
        ticker = _resolve_ticker(contract)
        body = self._fetch_single(f"/v2/aggs/ticker/{ticker}/prev", operation=f"options.previous_day {ticker}")
        results = body.get("results") if isinstance(body, dict) else None
        if not results:
            raise NoPreviousDataFoundError(f"No previous day data found for {ticker}", ticker=ticker)
        return PreviousDay.from_api(results[0])
