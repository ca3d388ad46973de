"""Technical indicator endpoints (SMA, EMA, RSI, MACD).

Values are computed server-side; this handler only validates arguments,
builds the query and wraps the returned series.
"""

from __future__ import annotations

from typing import Any

from polymux.api.base import RestHandler, require_positive_int, require_str
from polymux.models.indicators import EMA, MACD, RSI, SMA

TIMESPANS = ("minute", "hour", "day", "week", "month")
DEFAULT_LIMIT = 5000

# Keyword options accepted by every indicator call, mapped to query names.
OPTION_PARAMS = {
    "timestamp": "timestamp",
    "timestamp_gte": "timestamp.gte",
    "timestamp_gt": "timestamp.gt",
    "timestamp_lte": "timestamp.lte",
    "timestamp_lt": "timestamp.lt",
    "series_type": "series_type",
    "adjusted": "adjusted",
    "limit": "limit",
    "order": "order",
    "expand_underlying": "expand_underlying",
}


def _require_timespan(timespan: Any) -> str:
    if timespan not in TIMESPANS:
        raise ValueError(f"Timespan must be one of {', '.join(TIMESPANS)}, got {timespan!r}")
    return timespan


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def _build_params(timespan: str, windows: dict[str, int], options: dict[str, Any]) -> dict[str, Any]:
    unknown = sorted(set(options) - set(OPTION_PARAMS))
    if unknown:
        raise TypeError(f"Unsupported indicator options: {', '.join(unknown)}")

    params: dict[str, Any] = {
        "timespan": timespan,
        "adjusted": "true",
        "series_type": "close",
        "limit": DEFAULT_LIMIT,
    }
    params.update(windows)
    for key, value in options.items():
        if value is not None:
            params[OPTION_PARAMS[key]] = _query_value(value)
    return params


class TechnicalIndicators(RestHandler):
    def _fetch_indicator(self, name: str, symbol: str, params: dict[str, Any]) -> Any:
        return self._fetch_single(f"/v1/indicators/{name}/{symbol}", params, operation=f"indicators.{name} {symbol}")

    def _single_window(self, name: str, ticker: Any, window: Any, timespan: Any, options: dict[str, Any]):
        symbol = require_str(ticker).strip().upper()
        require_positive_int(window, "Window")
        _require_timespan(timespan)
        params = _build_params(timespan, {"window": window}, options)
        return symbol, self._fetch_indicator(name, symbol, params)

    def sma(self, ticker: str, *, window: int, timespan: str, **options: Any) -> SMA:
        symbol, payload = self._single_window("sma", ticker, window, timespan, options)
        return SMA.from_api(symbol, payload, window=window, timespan=timespan)

    def ema(self, ticker: str, *, window: int, timespan: str, **options: Any) -> EMA:
        symbol, payload = self._single_window("ema", ticker, window, timespan, options)
        return EMA.from_api(symbol, payload, window=window, timespan=timespan)

    def rsi(self, ticker: str, *, window: int, timespan: str, **options: Any) -> RSI:
        symbol, payload = self._single_window("rsi", ticker, window, timespan, options)
        return RSI.from_api(symbol, payload, window=window, timespan=timespan)

    def macd(
        self,
        ticker: str,
        *,
        short_window: int,
        long_window: int,
        signal_window: int,
        timespan: str,
        **options: Any,
    ) -> MACD:
        symbol = require_str(ticker).strip().upper()
        require_positive_int(short_window, "Short window")
        require_positive_int(long_window, "Long window")
        require_positive_int(signal_window, "Signal window")
        if short_window >= long_window:
            raise ValueError("Short window must be less than long window")
        _require_timespan(timespan)

        windows = {"short_window": short_window, "long_window": long_window, "signal_window": signal_window}
        payload = self._fetch_indicator("macd", symbol, _build_params(timespan, windows, options))
        return MACD.from_api(
            symbol,
            payload,
            short_window=short_window,
            long_window=long_window,
            signal_window=signal_window,
            timespan=timespan,
        )
