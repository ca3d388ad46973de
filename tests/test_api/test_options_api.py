from __future__ import annotations

import httpx
import pytest

from polymux import Client
from polymux.exceptions import ApiError, ErrorCode, InvalidCredentialsError, NoPreviousDataFoundError
from polymux.models import Contract, Moneyness

CALL = "O:AAPL240119C00150000"
PUT = "O:AAPL240119P00145000"
NS_2024 = 1704067200000000000


def _contract(ticker: str, contract_type: str, strike: float) -> dict:
    return {
        "ticker": ticker,
        "underlying_ticker": "AAPL",
        "contract_type": contract_type,
        "strike_price": strike,
        "expiration_date": "2024-01-19",
        "exercise_style": "american",
        "shares_per_contract": 100,
        "cfi": "OCASPS",
        "primary_exchange": "BATO",
    }


def test_contracts_for_underlying(client: Client, router) -> None:
    router.add(
        "/v3/reference/options/contracts",
        {"status": "OK", "results": [_contract(CALL, "call", 150.0), _contract(PUT, "put", 145.0)]},
    )

    contracts = client.options.contracts("AAPL", limit=10)

    assert len(contracts) == 2
    call = next(contract for contract in contracts if contract.is_call)
    assert call.strike_price == 150.0
    assert router.last_request.url.params["underlying_ticker"] == "AAPL"
    assert router.last_request.url.params["limit"] == "10"


def test_contracts_not_found_is_empty(client: Client, router) -> None:
    router.add("/v3/reference/options/contracts", {"status": "NOT_FOUND"}, status=404)

    assert client.options.contracts("ZZZZ") == []


def test_contracts_without_results_key_is_empty(client: Client, router) -> None:
    router.add("/v3/reference/options/contracts", {"status": "OK"})

    assert client.options.for_ticker("AAPL") == []


def test_unauthorized_raises_invalid_credentials(client: Client, router) -> None:
    router.add("/v3/reference/options/contracts", {"status": "ERROR", "error": "Unknown API Key"}, status=401)

    with pytest.raises(InvalidCredentialsError) as excinfo:
        client.options.contracts()

    assert excinfo.value.status == 401
    assert "Unknown API Key" in excinfo.value.message


def test_server_error_uses_body_message(client: Client, router) -> None:
    router.add(f"/v3/trades/{CALL}", {"status": "ERROR", "message": "upstream unavailable"}, status=503)

    with pytest.raises(ApiError) as excinfo:
        client.options.trades(CALL)

    assert excinfo.value.status == 503
    assert excinfo.value.message == "options.trades failed: upstream unavailable"


def test_rate_limit_has_its_own_code(client: Client, router) -> None:
    router.add(f"/v3/quotes/{CALL}", {"status": "ERROR", "error": "too many requests"}, status=429)

    with pytest.raises(ApiError) as excinfo:
        client.options.quotes(CALL)

    assert excinfo.value.code is ErrorCode.RATE_LIMITED


def test_non_json_success_body_is_an_api_error(client: Client, router) -> None:
    router.add("/v3/reference/options/contracts", httpx.Response(200, content=b"<html>maintenance</html>"))

    with pytest.raises(ApiError) as excinfo:
        client.options.contracts()

    assert excinfo.value.code is ErrorCode.MALFORMED_RESPONSE


def test_snapshot_requires_contract_object(client: Client) -> None:
    with pytest.raises(TypeError):
        client.options.snapshot(CALL)


def test_snapshot_for_contract(client: Client, router) -> None:
    contract = Contract.from_api(_contract(CALL, "call", 150.0))
    router.add(
        f"/v3/snapshot/options/AAPL/{CALL}",
        {
            "status": "OK",
            "results": {
                "break_even_price": 152.45,
                "day": {},
                "last_trade": {"price": 3.25, "size": 5, "sip_timestamp": NS_2024},
                "open_interest": 8921,
                "underlying_asset": {"ticker": "AAPL", "price": 152.46, "change_to_break_even": -0.01},
                "greeks": {"delta": 0.5},
            },
        },
    )

    snapshot = client.options.snapshot(contract)

    assert snapshot.open_interest == 8921
    assert snapshot.daily_bar is None
    assert snapshot.last_trade is not None and snapshot.last_trade.total_price == 16.25
    assert snapshot.moneyness is Moneyness.ITM


def test_snapshot_without_results_is_malformed(client: Client, router) -> None:
    contract = Contract.from_api(_contract(CALL, "call", 150.0))
    router.add(f"/v3/snapshot/options/AAPL/{CALL}", {"status": "OK"})

    with pytest.raises(ApiError) as excinfo:
        client.options.snapshot(contract)

    assert excinfo.value.code is ErrorCode.MALFORMED_RESPONSE
    assert excinfo.value.details["ticker"] == CALL


def test_chain_lists_snapshots(client: Client, router) -> None:
    router.add(
        "/v3/snapshot/options/AAPL",
        {
            "results": [
                {"open_interest": 1, "underlying_asset": {"ticker": "AAPL", "change_to_break_even": 1.0}},
                {"open_interest": 2, "underlying_asset": {"ticker": "AAPL", "change_to_break_even": -1.0}},
            ]
        },
    )

    chain = client.options.chain("AAPL")

    assert [item.open_interest for item in chain] == [1, 2]


def test_trades_and_quotes_accept_ticker_or_contract(client: Client, router) -> None:
    contract = Contract.from_api(_contract(CALL, "call", 150.0))
    router.add(f"/v3/trades/{CALL}", {"results": [{"sip_timestamp": NS_2024, "price": 3.25, "size": 5}]})
    router.add(
        f"/v3/quotes/{CALL}",
        {
            "results": [
                {"sip_timestamp": NS_2024, "ask_price": 1.3, "bid_price": 1.1, "ask_size": 4, "bid_size": 2, "sequence_number": 7}
            ]
        },
    )

    trades = client.options.trades(CALL)
    quotes = client.options.quotes(contract)

    assert trades[0].ticker == CALL
    assert trades[0].total_value == 1625.0
    assert quotes[0].ticker == CALL
    assert quotes[0].sequence == 7


def test_trades_rejects_non_ticker_argument(client: Client) -> None:
    with pytest.raises(TypeError):
        client.options.trades(42)
    with pytest.raises(ValueError):
        client.options.trades("  ")


def test_daily_summary_validates_date(client: Client, router) -> None:
    router.add(
        f"/v1/open-close/{CALL}/2024-01-02",
        {"status": "OK", "symbol": CALL, "from": "2024-01-02", "open": 1, "high": 2, "low": 0.5, "close": 1.5, "volume": 10},
    )

    with pytest.raises(ValueError):
        client.options.daily_summary(CALL, "01/02/2024")
    summary = client.options.daily_summary(CALL, "2024-01-02")

    assert summary.symbol == CALL
    assert summary.date == "2024-01-02"


def test_previous_day_returns_first_bar(client: Client, router) -> None:
    router.add(
        f"/v2/aggs/ticker/{CALL}/prev",
        {"results": [{"T": CALL, "c": 1.5, "o": 1.0, "h": 2.0, "l": 0.5, "v": 10, "vw": 1.2, "t": 1704067200000}]},
    )

    previous = client.options.previous_day(CALL)

    assert previous.ticker == CALL
    assert previous.close == 1.5


def test_empty_previous_day_raises_no_previous_data(client: Client, router) -> None:
    router.add(f"/v2/aggs/ticker/{CALL}/prev", {"status": "OK", "resultsCount": 0, "results": []})

    with pytest.raises(NoPreviousDataFoundError) as excinfo:
        client.options.previous_day(CALL)

    assert not isinstance(excinfo.value, ApiError)
    assert excinfo.value.ticker == CALL
