"""Pure mappings from raw API payloads to model attribute maps."""

from __future__ import annotations

from typing import Any, Callable

from polymux.timestamps import format_timestamp, nanos_to_datetime

Transformer = Callable[..., dict[str, Any]]


def _as_dict(raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict):
        return {str(key): value for key, value in raw.items()}
    return {}


def _rename(data: dict[str, Any], mapping: dict[str, str]) -> dict[str, Any]:
    out = dict(data)
    for source, target in mapping.items():
        if source in out:
            out[target] = out.pop(source)
    return out


def _drop_empty(data: dict[str, Any], keys: tuple[str, ...]) -> dict[str, Any]:
    out = dict(data)
    for key in keys:
        value = out.get(key)
        if isinstance(value, dict) and not value:
            out.pop(key)
    return out


def _with_datetime(data: dict[str, Any]) -> dict[str, Any]:
    stamp = data.get("timestamp")
    if isinstance(stamp, str) and stamp.strip().isdigit():
        stamp = int(stamp.strip())
        data["timestamp"] = stamp
    if isinstance(stamp, int) and not isinstance(stamp, bool):
        data["datetime"] = nanos_to_datetime(stamp)
    return data


def _first_present(data: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def contract(raw: Any) -> dict[str, Any]:
    return _as_dict(raw)


def quote(raw: Any) -> dict[str, Any]:
    data = _rename(_as_dict(raw), {"sip_timestamp": "timestamp", "sequence_number": "sequence"})
    return _with_datetime(data)


def trade(raw: Any) -> dict[str, Any]:
    data = _rename(_as_dict(raw), {"sip_timestamp": "timestamp"})
    return _with_datetime(data)


def market_status(raw: Any) -> dict[str, Any]:
    if not isinstance(raw, dict):
        return {}
    return _rename(
        _as_dict(raw),
        {
            "afterHours": "after_hours",
            "earlyHours": "pre_market",
            "market": "status",
            "indiceGroups": "indices",
            "indicesGroups": "indices",
            "serverTime": "server_time",
        },
    )


def previous_day(raw: Any) -> dict[str, Any]:
    return _rename(
        _as_dict(raw),
        {
            "T": "ticker",
            "c": "close",
            "o": "open",
            "h": "high",
            "l": "low",
            "v": "volume",
            "vw": "vwap",
            "t": "timestamp",
        },
    )


def snapshot(raw: Any) -> dict[str, Any]:
    data = _rename(_as_dict(raw), {"day": "daily_bar"})
    last_quote = data.get("last_quote")
    if isinstance(last_quote, dict):
        data["last_quote"] = _rename(last_quote, {"ask": "ask_price", "bid": "bid_price"})
    return _drop_empty(data, ("last_quote", "last_trade", "daily_bar"))


def daily_summary(raw: Any) -> dict[str, Any]:
    return _rename(_as_dict(raw), {"from": "date", "preMarket": "pre_market", "afterHours": "after_hours"})


def exchange(raw: Any) -> dict[str, Any]:
    return _as_dict(raw)


def holiday(raw: Any) -> dict[str, Any]:
    return _as_dict(raw)


def ticker(raw: Any) -> dict[str, Any]:
    return _as_dict(raw)


def ticker_details(raw: Any) -> dict[str, Any]:
    return _as_dict(raw)


def _stock_timestamp(data: dict[str, Any]) -> str | None:
    stamp = _first_present(data, ("sip_timestamp", "t", "timestamp", "participant_timestamp"))
    data.pop("sip_timestamp", None)
    data.pop("t", None)
    return format_timestamp(stamp)


def stock_trade(raw: Any, ticker: str | None = None) -> dict[str, Any]:
    data = _rename(_as_dict(raw), {"p": "price", "s": "size", "x": "exchange", "c": "conditions", "i": "id", "z": "tape"})
    data["timestamp"] = _stock_timestamp(data)
    if ticker is not None:
        data["ticker"] = ticker
    return data


def stock_quote(raw: Any, ticker: str | None = None) -> dict[str, Any]:
    data = _rename(
        _as_dict(raw),
        {
            "P": "bid_price",
            "p": "ask_price",
            "S": "bid_size",
            "s": "ask_size",
            "x": "bid_exchange",
            "X": "ask_exchange",
            "c": "conditions",
            "i": "indicators",
            "z": "tape",
        },
    )
    data["timestamp"] = _stock_timestamp(data)
    if ticker is not None:
        data["ticker"] = ticker
    return data


def stock_snapshot(raw: Any) -> dict[str, Any]:
    data = _rename(
        _as_dict(raw),
        {
            "day": "daily_bar",
            "prevDay": "prev_daily_bar",
            "lastTrade": "last_trade",
            "lastQuote": "last_quote",
            "min": "minute_bar",
            "todaysChange": "todays_change",
            "todaysChangePerc": "todays_change_percent",
        },
    )
    return _drop_empty(data, ("daily_bar", "prev_daily_bar", "last_trade", "last_quote", "minute_bar", "session"))


def stock_aggregate(raw: Any, ticker: str | None = None) -> dict[str, Any]:
    data = _rename(
        _as_dict(raw),
        {
            "o": "open",
            "h": "high",
            "l": "low",
            "c": "close",
            "v": "volume",
            "vw": "vwap",
            "t": "timestamp",
            "n": "transactions",
        },
    )
    if ticker is not None:
        data["ticker"] = ticker
    return data


def stock_daily_summary(raw: Any) -> dict[str, Any]:
    return _rename(
        _as_dict(raw),
        {
            "from": "from_date",
            "queryCount": "query_count",
            "resultsCount": "result_count",
            "afterHours": "after_hours_close",
            "preMarket": "pre_market_open",
        },
    )


TRANSFORMERS: dict[str, Transformer] = {
    "contract": contract,
    "quote": quote,
    "trade": trade,
    "market_status": market_status,
    "previous_day": previous_day,
    "snapshot": snapshot,
    "daily_summary": daily_summary,
    "exchange": exchange,
    "holiday": holiday,
    "ticker": ticker,
    "ticker_details": ticker_details,
    "stock_trade": stock_trade,
    "stock_quote": stock_quote,
    "stock_snapshot": stock_snapshot,
    "stock_aggregate": stock_aggregate,
    "stock_daily_summary": stock_daily_summary,
}


def transform(kind: str, raw: Any, **context: Any) -> dict[str, Any]:
    try:
        fn = TRANSFORMERS[kind]
    except KeyError as exc:
        raise ValueError(f"unknown transformer kind: {kind}") from exc
    return fn(raw, **context)
