"""Stocks endpoints: reference tickers, snapshots, trades, quotes and aggregates."""

from __future__ import annotations

from typing import Any

from polymux.api.base import RestHandler, require_date, require_positive_int, require_str
from polymux.exceptions import ApiError, ErrorCode
from polymux.models.stocks import (
    Aggregate,
    StockDailySummary,
    StockQuote,
    StockSnapshot,
    StockTrade,
    Ticker,
    TickerDetails,
)

AGGREGATE_TIMESPANS = ("minute", "hour", "day", "week", "month", "quarter", "year")
SNAPSHOT_PATH = "/v2/snapshot/locale/us/markets/stocks/tickers"


def _symbol(ticker: Any) -> str:
    return require_str(ticker).strip().upper()


class Stocks(RestHandler):
    def tickers(self, **params: Any) -> list[Ticker]:
        query = {"active": "true", "limit": 100}
        query.update(params)
        items = self._fetch_collection("/v3/reference/tickers", query, operation="stocks.tickers", allow_404=True)
        return [Ticker.from_api(item) for item in items]

    def ticker_details(self, ticker: str, date: str | None = None) -> TickerDetails:
        symbol = _symbol(ticker)
        params = {"date": require_date(date)} if date is not None else None
        body = self._fetch_single(
            f"/v3/reference/tickers/{symbol}", params, operation=f"stocks.ticker_details {symbol}"
        )
        results = body.get("results") if isinstance(body, dict) else None
        if not isinstance(results, dict):
            raise ApiError(
                f"stocks.ticker_details {symbol} returned no results",
                code=ErrorCode.MALFORMED_RESPONSE,
                details={"ticker": symbol},
            )
        return TickerDetails.from_api(results)

    def snapshot(self, ticker: str) -> StockSnapshot:
        symbol = _symbol(ticker)
        body = self._fetch_single(f"{SNAPSHOT_PATH}/{symbol}", operation=f"stocks.snapshot {symbol}")
        results = body.get("ticker") if isinstance(body, dict) else None
        if not isinstance(results, dict):
            raise ApiError(
                f"stocks.snapshot {symbol} returned no ticker snapshot",
                code=ErrorCode.MALFORMED_RESPONSE,
                details={"ticker": symbol},
            )
        return StockSnapshot.from_api(results)

    def all_snapshots(self, **params: Any) -> list[StockSnapshot]:
        items = self._fetch_collection(
            SNAPSHOT_PATH, params or None, operation="stocks.all_snapshots", results_key="tickers"
        )
        return [StockSnapshot.from_api(item) for item in items]

    def trades(self, ticker: str, **params: Any) -> list[StockTrade]:
        symbol = _symbol(ticker)
        items = self._fetch_collection(f"/v3/trades/{symbol}", params or None, operation="stocks.trades")
        return [StockTrade.from_api(symbol, item) for item in items]

    def quotes(self, ticker: str, **params: Any) -> list[StockQuote]:
        symbol = _symbol(ticker)
        items = self._fetch_collection(f"/v3/quotes/{symbol}", params or None, operation="stocks.quotes")
        return [StockQuote.from_api(symbol, item) for item in items]

    def aggregates(
        self,
        ticker: str,
        multiplier: int,
        timespan: str,
        from_date: str,
        to_date: str,
        **params: Any,
    ) -> list[Aggregate]:
        """Fetch OHLC bars between two dates, oldest first unless ``sort`` is overridden."""
        symbol = _symbol(ticker)
        require_positive_int(multiplier, "Multiplier")
        if timespan not in AGGREGATE_TIMESPANS:
            raise ValueError(f"Timespan must be one of {', '.join(AGGREGATE_TIMESPANS)}")
        require_date(from_date, "From date")
        require_date(to_date, "To date")

        query = {"adjusted": "true", "sort": "asc"}
        query.update(params)
        path = f"/v2/aggs/ticker/{symbol}/range/{multiplier}/{timespan}/{from_date}/{to_date}"
        items = self._fetch_collection(path, query, operation=f"stocks.aggregates {symbol}")
        return [Aggregate.from_api(symbol, item) for item in items]

    def previous_day(self, ticker: str, **params: Any) -> Aggregate:
        symbol = _symbol(ticker)
        query = {"adjusted": "true"}
        query.update(params)
        items = self._fetch_collection(
            f"/v2/aggs/ticker/{symbol}/prev", query, operation=f"stocks.previous_day {symbol}"
        )
        if not items:
            raise ApiError(
                f"No previous day data found for {symbol}",
                details={"ticker": symbol},
                suggestion="Check the ticker symbol or retry after the next market close.",
            )
        return Aggregate.from_api(symbol, items[0])

    def daily_summary(self, ticker: str, date: str, **params: Any) -> StockDailySummary:
        symbol = _symbol(ticker)
        require_date(date)
        body = self._fetch_single(
            f"/v1/open-close/{symbol}/{date}", params or None, operation=f"stocks.daily_summary {symbol} {date}"
        )
        return StockDailySummary.from_api(body)
