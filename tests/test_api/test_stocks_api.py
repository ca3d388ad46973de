from __future__ import annotations

import pytest

from polymux import Client
from polymux.exceptions import ApiError, ErrorCode

OPEN_BELL_NS = 1704205800000000000


def test_tickers_default_to_active_listing(client: Client, router) -> None:
    router.add(
        "/v3/reference/tickers",
        {"results": [{"ticker": "AAPL", "type": "CS", "active": True}, {"ticker": "MSFT", "type": "CS", "active": True}]},
    )

    tickers = client.stocks.tickers(search="a")

    assert [item.ticker for item in tickers] == ["AAPL", "MSFT"]
    params = router.last_request.url.params
    assert params["active"] == "true"
    assert params["limit"] == "100"
    assert params["search"] == "a"


def test_tickers_caller_overrides_defaults(client: Client, router) -> None:
    router.add("/v3/reference/tickers", {"results": []})

    client.stocks.tickers(active="false", limit=5)

    assert router.last_request.url.params["active"] == "false"
    assert router.last_request.url.params["limit"] == "5"


def test_ticker_details_upcases_symbol(client: Client, router) -> None:
    router.add("/v3/reference/tickers/AAPL", {"results": {"ticker": "AAPL", "name": "Apple Inc.", "market_cap": 2.9e12}})

    details = client.stocks.ticker_details("aapl", date="2024-01-02")

    assert details.name == "Apple Inc."
    assert details.formatted_market_cap == "$2.9T"
    assert router.last_request.url.params["date"] == "2024-01-02"


def test_ticker_details_without_results_is_malformed(client: Client, router) -> None:
    router.add("/v3/reference/tickers/AAPL", {"status": "OK"})

    with pytest.raises(ApiError) as excinfo:
        client.stocks.ticker_details("AAPL")

    assert excinfo.value.code is ErrorCode.MALFORMED_RESPONSE


def test_snapshot_reads_ticker_envelope(client: Client, router) -> None:
    router.add(
        "/v2/snapshot/locale/us/markets/stocks/tickers/AAPL",
        {
            "status": "OK",
            "ticker": {
                "ticker": "AAPL",
                "todaysChange": 1.5,
                "todaysChangePerc": 0.8,
                "lastTrade": {"p": 187.6, "s": 100, "t": OPEN_BELL_NS},
                "day": {"o": 186.0, "c": 187.5, "v": 1000},
            },
        },
    )

    snapshot = client.stocks.snapshot("AAPL")

    assert snapshot.current_price == 187.6
    assert snapshot.volume == 1000
    assert snapshot.is_up is True


def test_snapshot_without_ticker_is_malformed(client: Client, router) -> None:
    router.add("/v2/snapshot/locale/us/markets/stocks/tickers/AAPL", {"status": "OK"})

    with pytest.raises(ApiError) as excinfo:
        client.stocks.snapshot("AAPL")

    assert excinfo.value.code is ErrorCode.MALFORMED_RESPONSE


def test_all_snapshots_use_tickers_key(client: Client, router) -> None:
    router.add(
        "/v2/snapshot/locale/us/markets/stocks/tickers",
        {"tickers": [{"ticker": "AAPL"}, {"ticker": "MSFT"}], "count": 2},
    )

    snapshots = client.stocks.all_snapshots(tickers="AAPL,MSFT")

    assert [item.ticker for item in snapshots] == ["AAPL", "MSFT"]
    assert router.last_request.url.params["tickers"] == "AAPL,MSFT"


def test_trades_and_quotes_carry_symbol(client: Client, router) -> None:
    router.add("/v3/trades/AAPL", {"results": [{"price": 187.5, "size": 100, "exchange": 4, "sip_timestamp": OPEN_BELL_NS}]})
    router.add("/v3/quotes/AAPL", {"results": [{"bid_price": 187.5, "ask_price": 187.6, "bid_size": 1, "ask_size": 2}]})

    trades = client.stocks.trades("aapl", limit=1)
    quotes = client.stocks.quotes("AAPL")

    assert trades[0].ticker == "AAPL"
    assert trades[0].formatted_timestamp == "2024-01-02 14:30:00"
    assert quotes[0].ticker == "AAPL"
    assert quotes[0].spread == 0.1


def test_aggregates_builds_range_path(client: Client, router) -> None:
    path = "/v2/aggs/ticker/AAPL/range/1/day/2024-01-01/2024-01-31"
    router.add(path, {"results": [{"o": 1.0, "c": 2.0, "t": 1704067200000}, {"o": 2.0, "c": 1.5, "t": 1704153600000}]})

    bars = client.stocks.aggregates("AAPL", 1, "day", "2024-01-01", "2024-01-31", limit=50)

    assert [bar.is_green for bar in bars] == [True, False]
    params = router.last_request.url.params
    assert params["adjusted"] == "true"
    assert params["sort"] == "asc"
    assert params["limit"] == "50"


@pytest.mark.parametrize(
    ("args", "error"),
    [
        ((0, "day", "2024-01-01", "2024-01-31"), ValueError),
        (("1", "day", "2024-01-01", "2024-01-31"), TypeError),
        ((1, "fortnight", "2024-01-01", "2024-01-31"), ValueError),
        ((1, "day", "2024/01/01", "2024-01-31"), ValueError),
    ],
)
def test_aggregates_validates_arguments(client: Client, router, args: tuple, error: type[Exception]) -> None:
    with pytest.raises(error):
        client.stocks.aggregates("AAPL", *args)

    assert router.requests == []


def test_previous_day_returns_first_bar(client: Client, router) -> None:
    router.add("/v2/aggs/ticker/AAPL/prev", {"results": [{"T": "AAPL", "o": 185.0, "c": 187.0, "v": 1000}]})

    bar = client.stocks.previous_day("AAPL")

    assert bar.ticker == "AAPL"
    assert bar.close == 187.0
    assert router.last_request.url.params["adjusted"] == "true"


def test_empty_previous_day_is_an_api_error(client: Client, router) -> None:
    router.add("/v2/aggs/ticker/AAPL/prev", {"results": []})

    with pytest.raises(ApiError) as excinfo:
        client.stocks.previous_day("AAPL")

    assert excinfo.value.details["ticker"] == "AAPL"


def test_daily_summary(client: Client, router) -> None:
    router.add(
        "/v1/open-close/AAPL/2024-01-02",
        {"status": "OK", "from": "2024-01-02", "symbol": "AAPL", "open": 185.0, "close": 187.0, "afterHours": 187.5},
    )

    summary = client.stocks.daily_summary("AAPL", "2024-01-02", adjusted="true")

    assert summary.from_date == "2024-01-02"
    assert summary.effective_close == 187.5
    with pytest.raises(ValueError):
        client.stocks.daily_summary("AAPL", "yesterday")
