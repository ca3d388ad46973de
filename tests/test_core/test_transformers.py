from __future__ import annotations

from datetime import UTC, datetime

import pytest

from polymux import transformers
from polymux.models import Quote, Trade


def test_quote_renames_sip_timestamp_and_sequence() -> None:
    out = transformers.transform(
        "quote",
        {"sip_timestamp": 1704067200000000000, "sequence_number": 42, "ask_price": 1.2, "bid_price": 1.1},
    )

    assert out["timestamp"] == 1704067200000000000
    assert out["sequence"] == 42
    assert out["datetime"] == datetime(2024, 1, 1, tzinfo=UTC)
    assert "sip_timestamp" not in out
    assert "sequence_number" not in out


def test_numeric_string_timestamp_is_coerced() -> None:
    out = transformers.trade({"sip_timestamp": "1704067200000000000", "price": "3.25", "size": "5"})

    assert out["timestamp"] == 1704067200000000000
    assert out["datetime"] == datetime(2024, 1, 1, tzinfo=UTC)


def test_trade_and_quote_build_from_numeric_strings() -> None:
    trade = Trade.from_api("O:X", {"sip_timestamp": "1704067200000000000", "price": "3.25", "size": "5"})
    quote = Quote.from_api(
        "O:X",
        {
            "sip_timestamp": "1704067200000000000",
            "ask_price": "1.3",
            "bid_price": "1.1",
            "ask_size": "4",
            "bid_size": "2",
            "sequence_number": "7",
        },
    )

    assert trade.datetime == datetime(2024, 1, 1, tzinfo=UTC)
    assert trade.total_price == 16.25
    assert quote.timestamp == 1704067200000000000
    assert quote.sequence == 7


def test_trade_is_idempotent_on_canonical_input() -> None:
    once = transformers.trade({"sip_timestamp": 1704067200000000000, "price": 3.25, "size": 5})
    twice = transformers.trade(once)

    assert once == twice


def test_market_status_renames_camel_case_keys() -> None:
    out = transformers.market_status(
        {"afterHours": True, "earlyHours": False, "market": "extended-hours", "serverTime": "2024-01-02T17:00:00-05:00"}
    )

    assert out == {
        "after_hours": True,
        "pre_market": False,
        "status": "extended-hours",
        "server_time": "2024-01-02T17:00:00-05:00",
    }


def test_market_status_non_object_yields_empty_map() -> None:
    assert transformers.market_status(["open"]) == {}
    assert transformers.market_status(None) == {}


def test_previous_day_expands_short_keys() -> None:
    out = transformers.previous_day(
        {"T": "O:AAPL240119C00150000", "c": 2.1, "o": 1.9, "h": 2.3, "l": 1.8, "v": 120, "vw": 2.05, "t": 1704067200000}
    )

    assert out == {
        "ticker": "O:AAPL240119C00150000",
        "close": 2.1,
        "open": 1.9,
        "high": 2.3,
        "low": 1.8,
        "volume": 120,
        "vwap": 2.05,
        "timestamp": 1704067200000,
    }


def test_snapshot_renames_day_and_quote_sides_and_drops_empty_sections() -> None:
    out = transformers.snapshot(
        {
            "day": {"open": 1.0},
            "last_quote": {"ask": 1.3, "bid": 1.2, "ask_size": 10},
            "last_trade": {},
            "open_interest": 10,
        }
    )

    assert out["daily_bar"] == {"open": 1.0}
    assert out["last_quote"] == {"ask_price": 1.3, "bid_price": 1.2, "ask_size": 10}
    assert "last_trade" not in out
    assert "day" not in out


def test_daily_summary_renames_session_fields() -> None:
    out = transformers.daily_summary({"from": "2024-01-02", "preMarket": 1.5, "afterHours": 1.7, "symbol": "X"})

    assert out == {"date": "2024-01-02", "pre_market": 1.5, "after_hours": 1.7, "symbol": "X"}


def test_stock_trade_uses_sip_timestamp_before_other_stamps() -> None:
    out = transformers.stock_trade(
        {"p": 187.5, "s": 100, "x": 4, "c": [12], "sip_timestamp": 1704067200000000000, "participant_timestamp": 1},
        ticker="AAPL",
    )

    assert out["price"] == 187.5
    assert out["size"] == 100
    assert out["exchange"] == 4
    assert out["conditions"] == [12]
    assert out["timestamp"] == "2024-01-01T00:00:00+00:00"
    assert out["ticker"] == "AAPL"
    assert "sip_timestamp" not in out


def test_stock_quote_maps_both_sides() -> None:
    out = transformers.stock_quote({"P": 187.4, "p": 187.5, "S": 3, "s": 4, "x": 11, "X": 12, "t": 1704067200000})

    assert out["bid_price"] == 187.4
    assert out["ask_price"] == 187.5
    assert out["bid_size"] == 3
    assert out["ask_size"] == 4
    assert out["bid_exchange"] == 11
    assert out["ask_exchange"] == 12
    assert out["timestamp"] == "2024-01-01T00:00:00+00:00"
    assert "ticker" not in out


def test_stock_snapshot_renames_sections_and_drops_empty_ones() -> None:
    out = transformers.stock_snapshot({"ticker": "AAPL", "day": {"c": 1}, "prevDay": {}, "lastTrade": {"p": 2}, "min": {}})

    assert out == {"ticker": "AAPL", "daily_bar": {"c": 1}, "last_trade": {"p": 2}}


def test_stock_aggregate_and_daily_summary_rename_keys() -> None:
    bar = transformers.stock_aggregate({"o": 1, "h": 2, "l": 0.5, "c": 1.5, "v": 10, "vw": 1.4, "t": 5, "n": 3}, ticker="AAPL")
    summary = transformers.stock_daily_summary(
        {"from": "2024-01-02", "afterHours": 185.0, "preMarket": 184.0, "queryCount": 1, "resultsCount": 1}
    )

    assert bar == {
        "open": 1,
        "high": 2,
        "low": 0.5,
        "close": 1.5,
        "volume": 10,
        "vwap": 1.4,
        "timestamp": 5,
        "transactions": 3,
        "ticker": "AAPL",
    }
    assert summary == {
        "from_date": "2024-01-02",
        "after_hours_close": 185.0,
        "pre_market_open": 184.0,
        "query_count": 1,
        "result_count": 1,
    }


def test_pass_through_kinds_copy_keys_as_given() -> None:
    raw = {"name": "NYSE", "asset_class": "stocks"}

    for kind in ("contract", "exchange", "holiday", "ticker", "ticker_details"):
        out = transformers.transform(kind, raw)
        assert out == raw
        assert out is not raw


def test_unknown_kind_is_rejected() -> None:
    with pytest.raises(ValueError, match="unknown transformer kind"):
        transformers.transform("futures", {})
