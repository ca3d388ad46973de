"""Stock market-data domain models."""

from __future__ import annotations

import datetime as dt
from typing import Any
from zoneinfo import ZoneInfo

from pydantic import Field

from polymux import transformers
from polymux.models.base import PolymuxModel
from polymux.timestamps import millis_to_datetime

NEW_YORK_TZ = ZoneInfo("America/New_York")
BLOCK_TRADE_SIZE = 10_000
HIGH_VOLUME_SHARES = 1_000_000
EXCHANGE_NAMES: dict[int, str] = {
    1: "NYSE",
    2: "NASDAQ",
    3: "NYSE MKT",
    4: "NYSE Arca",
    5: "BATS",
    6: "IEX",
    11: "NASDAQ OMX BX",
    12: "NASDAQ OMX PSX",
}


def exchange_name(code: Any) -> str:
    try:
        return EXCHANGE_NAMES.get(int(code), f"Unknown ({code})")
    except (TypeError, ValueError):
        return f"Unknown ({code})"


def _parse_iso(value: str | int | None) -> dt.datetime | None:
    if value is None or isinstance(value, int):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return dt.datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def _format_iso(value: str | int | None) -> str:
    if value is None or not str(value).strip():
        return "N/A"
    parsed = _parse_iso(value)
    if parsed is None:
        return str(value)
    return parsed.strftime("%Y-%m-%d %H:%M:%S")


def _format_money_change(amount: float, percent: float) -> str:
    sign = "+" if amount >= 0 else ""
    return f"{sign}${round(amount, 2)} ({sign}{round(percent, 2)}%)"


class Ticker(PolymuxModel):
    ticker: str
    name: str | None = None
    market: str | None = None
    locale: str | None = None
    primary_exchange: str | None = None
    type: str | None = None
    active: bool | None = None
    currency_name: str | None = None
    cusip: str | None = None
    cik: str | None = None
    composite_figi: str | None = None
    share_class_figi: str | None = None
    last_updated_utc: str | None = None

    @property
    def is_common_stock(self) -> bool:
        return self.type == "CS"

    @property
    def is_preferred_stock(self) -> bool:
        return self.type == "PFD"

    @property
    def is_active(self) -> bool:
        return self.active is True

    @property
    def is_otc(self) -> bool:
        return self.market == "otc"

    @classmethod
    def from_api(cls, raw: Any) -> "Ticker":
        return cls.build(transformers.ticker(raw))


class TickerDetails(Ticker):
    description: str | None = None
    homepage_url: str | None = None
    total_employees: int | None = None
    list_date: str | None = None
    icon_url: str | None = None
    share_class_shares_outstanding: float | None = None
    weighted_shares_outstanding: float | None = None
    market_cap: float | None = None
    phone_number: str | None = None
    address: dict[str, Any] | None = None
    sic_code: str | None = None
    sic_description: str | None = None

    @property
    def formatted_market_cap(self) -> str:
        cap = self.market_cap
        if cap is None:
            return "N/A"
        if cap >= 1_000_000_000_000:
            return f"${round(cap / 1_000_000_000_000, 2)}T"
        if cap >= 1_000_000_000:
            return f"${round(cap / 1_000_000_000, 2)}B"
        if cap >= 1_000_000:
            return f"${round(cap / 1_000_000, 2)}M"
        return f"${cap}"

    @property
    def formatted_address(self) -> str | None:
        if not self.address:
            return None
        parts = [self.address[key] for key in ("address1", "city", "state", "postal_code") if self.address.get(key)]
        return ", ".join(str(part) for part in parts) if parts else None

    @classmethod
    def from_api(cls, raw: Any) -> "TickerDetails":
        return cls.build(transformers.ticker_details(raw))


class StockTrade(PolymuxModel):
    ticker: str
    timestamp: str | None = None
    price: float | None = None
    size: int | None = None
    exchange: int | str | None = None
    conditions: list[int] | None = None
    participant_timestamp: int | str | None = None
    id: str | None = None
    tape: str | int | None = None
    trf_id: int | None = None
    trf_timestamp: int | str | None = None

    @property
    def total_value(self) -> float | None:
        if self.price is None or self.size is None:
            return None
        return self.price * self.size

    @property
    def is_block_trade(self) -> bool:
        return self.size is not None and self.size >= BLOCK_TRADE_SIZE

    @property
    def is_regular_hours(self) -> bool:
        parsed = _parse_iso(self.timestamp)
        if parsed is None:
            return False
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=dt.UTC)
        local = parsed.astimezone(NEW_YORK_TZ)
        hhmm = local.hour * 100 + local.minute
        return 930 <= hhmm <= 1600

    @property
    def is_extended_hours(self) -> bool:
        return not self.is_regular_hours

    @property
    def exchange_name(self) -> str:
        return exchange_name(self.exchange)

    @property
    def formatted_timestamp(self) -> str:
        return _format_iso(self.timestamp)

    @classmethod
    def from_api(cls, ticker: str, raw: Any) -> "StockTrade":
        return cls.build(transformers.stock_trade(raw, ticker=ticker))


class StockQuote(PolymuxModel):
    ticker: str
    timestamp: str | None = None
    bid_price: float | None = None
    ask_price: float | None = None
    bid_size: int | None = None
    ask_size: int | None = None
    bid_exchange: int | str | None = None
    ask_exchange: int | str | None = None
    participant_timestamp: int | str | None = None
    conditions: list[int] | None = None
    indicators: list[int] | None = None
    tape: str | int | None = None

    @property
    def spread(self) -> float | None:
        if self.bid_price is None or self.ask_price is None:
            return None
        return round(self.ask_price - self.bid_price, 10)

    @property
    def midpoint(self) -> float | None:
        if self.bid_price is None or self.ask_price is None:
            return None
        return round((self.bid_price + self.ask_price) / 2.0, 10)

    @property
    def spread_percentage(self) -> float | None:
        spread, mid = self.spread, self.midpoint
        if spread is None or mid is None or mid <= 0:
            return None
        return round(spread / mid * 100, 4)

    @property
    def bid_value(self) -> float | None:
        if self.bid_price is None or self.bid_size is None:
            return None
        return self.bid_price * self.bid_size

    @property
    def ask_value(self) -> float | None:
        if self.ask_price is None or self.ask_size is None:
            return None
        return self.ask_price * self.ask_size

    @property
    def is_tight_spread(self) -> bool:
        pct = self.spread_percentage
        return pct is not None and pct < 0.1

    @property
    def is_wide_spread(self) -> bool:
        pct = self.spread_percentage
        return pct is not None and pct > 1.0

    @property
    def is_two_sided(self) -> bool:
        if self.bid_size is None or self.ask_size is None:
            return False
        return self.bid_size > 0 and self.ask_size > 0

    @property
    def bid_exchange_name(self) -> str:
        return exchange_name(self.bid_exchange)

    @property
    def ask_exchange_name(self) -> str:
        return exchange_name(self.ask_exchange)

    @property
    def formatted_timestamp(self) -> str:
        return _format_iso(self.timestamp)

    @classmethod
    def from_api(cls, ticker: str, raw: Any) -> "StockQuote":
        return cls.build(transformers.stock_quote(raw, ticker=ticker))


class SnapshotTrade(PolymuxModel):
    price: float | None = Field(default=None, alias="p")
    size: int | None = Field(default=None, alias="s")
    exchange: int | None = Field(default=None, alias="x")
    timestamp: int | None = Field(default=None, alias="t")
    conditions: list[int] | None = Field(default=None, alias="c")


class SnapshotQuote(PolymuxModel):
    bid_price: float | None = Field(default=None, alias="P")
    ask_price: float | None = Field(default=None, alias="p")
    bid_size: int | None = Field(default=None, alias="S")
    ask_size: int | None = Field(default=None, alias="s")
    timestamp: int | None = Field(default=None, alias="t")


class SnapshotBar(PolymuxModel):
    open: float | None = Field(default=None, alias="o")
    high: float | None = Field(default=None, alias="h")
    low: float | None = Field(default=None, alias="l")
    close: float | None = Field(default=None, alias="c")
    volume: float | None = Field(default=None, alias="v")
    vwap: float | None = Field(default=None, alias="vw")


def _pick(source: dict[str, Any] | None, *keys: str) -> Any:
    if not source:
        return None
    for key in keys:
        value = source.get(key)
        if value is not None:
            return value
    return None


class StockSnapshot(PolymuxModel):
    ticker: str
    market_status: str | None = None
    market: str | None = None
    last_trade: dict[str, Any] | None = None
    last_quote: dict[str, Any] | None = None
    daily_bar: dict[str, Any] | None = None
    prev_daily_bar: dict[str, Any] | None = None
    minute_bar: dict[str, Any] | None = None
    session: dict[str, Any] | None = None
    todays_change: float | None = None
    todays_change_percent: float | None = None
    updated: int | str | None = None

    @property
    def last_trade_info(self) -> SnapshotTrade | None:
        return SnapshotTrade.build(self.last_trade) if self.last_trade else None

    @property
    def last_quote_info(self) -> SnapshotQuote | None:
        return SnapshotQuote.build(self.last_quote) if self.last_quote else None

    @property
    def daily_bar_info(self) -> SnapshotBar | None:
        return SnapshotBar.build(self.daily_bar) if self.daily_bar else None

    @property
    def prev_daily_bar_info(self) -> SnapshotBar | None:
        return SnapshotBar.build(self.prev_daily_bar) if self.prev_daily_bar else None

    @property
    def current_price(self) -> float | None:
        return _pick(self.last_trade, "p", "price")

    @property
    def bid_price(self) -> float | None:
        return _pick(self.last_quote, "P", "bid_price")

    @property
    def ask_price(self) -> float | None:
        return _pick(self.last_quote, "p", "ask_price")

    @property
    def volume(self) -> float | None:
        return _pick(self.daily_bar, "v", "volume")

    @property
    def change_amount(self) -> float | None:
        if self.todays_change is not None:
            return self.todays_change
        return _pick(self.daily_bar, "change")

    @property
    def change_percent(self) -> float | None:
        if self.todays_change_percent is not None:
            return self.todays_change_percent
        return _pick(self.daily_bar, "cp", "change_percent")

    @property
    def daily_open(self) -> float | None:
        return _pick(self.daily_bar, "o", "open")

    @property
    def daily_high(self) -> float | None:
        return _pick(self.daily_bar, "h", "high")

    @property
    def daily_low(self) -> float | None:
        return _pick(self.daily_bar, "l", "low")

    @property
    def daily_close(self) -> float | None:
        return _pick(self.daily_bar, "c", "close")

    @property
    def vwap(self) -> float | None:
        return _pick(self.daily_bar, "vw", "vwap")

    @property
    def is_up(self) -> bool:
        change = self.change_amount
        return change is not None and change > 0

    @property
    def is_down(self) -> bool:
        change = self.change_amount
        return change is not None and change < 0

    @property
    def is_unchanged(self) -> bool:
        return self.change_amount == 0

    @property
    def is_market_open(self) -> bool:
        return self.market_status == "open"

    @property
    def spread(self) -> float | None:
        bid, ask = self.bid_price, self.ask_price
        if bid is None or ask is None:
            return None
        return round(ask - bid, 10)

    @property
    def spread_percentage(self) -> float | None:
        bid, ask, spread = self.bid_price, self.ask_price, self.spread
        if bid is None or ask is None or spread is None:
            return None
        mid = (bid + ask) / 2.0
        if mid <= 0:
            return None
        return round(spread / mid * 100, 4)

    @property
    def formatted_change(self) -> str:
        amount, percent = self.change_amount, self.change_percent
        if amount is None or percent is None:
            return "N/A"
        if amount >= 0:
            return f"+${round(amount, 2)} (+{round(percent, 2)}%)"
        return f"-${round(abs(amount), 2)} ({round(percent, 2)}%)"

    @classmethod
    def from_api(cls, raw: Any) -> "StockSnapshot":
        return cls.build(transformers.stock_snapshot(raw))


class Aggregate(PolymuxModel):
    ticker: str
    open: float | None = None
    high: float | None = None
    low: float | None = None
    close: float | None = None
    volume: float | None = None
    vwap: float | None = None
    timestamp: int | str | None = None
    transactions: int | None = None

    @property
    def is_green(self) -> bool:
        return self.open is not None and self.close is not None and self.close > self.open

    @property
    def is_red(self) -> bool:
        return self.open is not None and self.close is not None and self.close < self.open

    @property
    def is_doji(self) -> bool:
        return self.open is not None and self.close is not None and self.open == self.close

    @property
    def body_size(self) -> float | None:
        if self.open is None or self.close is None:
            return None
        return round(abs(self.close - self.open), 10)

    @property
    def range(self) -> float | None:
        if self.high is None or self.low is None:
            return None
        return round(self.high - self.low, 10)

    @property
    def range_percent(self) -> float | None:
        span = self.range
        if span is None or self.open is None or self.open <= 0:
            return None
        return round(span / self.open * 100, 4)

    @property
    def upper_shadow(self) -> float | None:
        if self.high is None or self.open is None or self.close is None:
            return None
        return round(self.high - max(self.open, self.close), 10)

    @property
    def lower_shadow(self) -> float | None:
        if self.low is None or self.open is None or self.close is None:
            return None
        return round(min(self.open, self.close) - self.low, 10)

    @property
    def change_amount(self) -> float | None:
        if self.open is None or self.close is None:
            return None
        return round(self.close - self.open, 10)

    @property
    def change_percent(self) -> float | None:
        if self.open is None or self.close is None or self.open <= 0:
            return None
        return round((self.close - self.open) / self.open * 100, 4)

    @property
    def is_high_volume(self) -> bool:
        return self.volume is not None and self.volume > HIGH_VOLUME_SHARES

    def turnover_ratio(self, shares_outstanding: float | None) -> float | None:
        if self.volume is None or not shares_outstanding or shares_outstanding <= 0:
            return None
        return round(self.volume / shares_outstanding * 100, 4)

    @property
    def typical_price(self) -> float | None:
        if self.high is None or self.low is None or self.close is None:
            return None
        return (self.high + self.low + self.close) / 3.0

    @property
    def is_vwap_above_close(self) -> bool | None:
        if self.vwap is None or self.close is None:
            return None
        return self.vwap > self.close

    @property
    def is_close_near_high(self) -> bool:
        if self.close is None or self.high is None or self.high <= 0:
            return False
        return round((self.high - self.close) / self.high * 100, 4) <= 2.0

    @property
    def is_close_near_low(self) -> bool:
        if self.close is None or self.low is None or self.low <= 0:
            return False
        return round((self.close - self.low) / self.low * 100, 4) <= 2.0

    def _moment(self) -> dt.datetime | None:
        stamp = self.timestamp
        if isinstance(stamp, str) and stamp.strip().isdigit():
            stamp = int(stamp.strip())
        if isinstance(stamp, int):
            return millis_to_datetime(stamp)
        return None

    @property
    def formatted_timestamp(self) -> str:
        if self.timestamp is None or not str(self.timestamp).strip():
            return "N/A"
        moment = self._moment()
        return moment.strftime("%Y-%m-%d") if moment else str(self.timestamp)

    @property
    def formatted_datetime(self) -> str:
        if self.timestamp is None or not str(self.timestamp).strip():
            return "N/A"
        moment = self._moment()
        return moment.strftime("%Y-%m-%d %H:%M:%S") if moment else str(self.timestamp)

    @property
    def ohlc_string(self) -> str:
        if None in (self.open, self.high, self.low, self.close):
            return "N/A"
        return f"O:{self.open} H:{self.high} L:{self.low} C:{self.close}"

    @classmethod
    def from_api(cls, ticker: str, raw: Any) -> "Aggregate":
        return cls.build(transformers.stock_aggregate(raw, ticker=ticker))


class StockDailySummary(PolymuxModel):
    symbol: str | None = None
    from_date: str | None = None
    open: float | None = None
    high: float | None = None
    low: float | None = None
    close: float | None = None
    volume: float | None = None
    after_hours_close: float | None = None
    pre_market_open: float | None = None
    status: str | None = None
    adjusted: bool | None = None
    query_count: int | None = None
    result_count: int | None = None

    @property
    def intraday_change(self) -> float | None:
        if self.open is None or self.close is None:
            return None
        return self.close - self.open

    @property
    def intraday_change_percent(self) -> float | None:
        change = self.intraday_change
        if change is None or self.open is None or self.open <= 0:
            return None
        return round(change / self.open * 100, 4)

    @property
    def after_hours_change(self) -> float | None:
        if self.close is None or self.after_hours_close is None:
            return None
        return self.after_hours_close - self.close

    @property
    def after_hours_change_percent(self) -> float | None:
        change = self.after_hours_change
        if change is None or self.close is None or self.close <= 0:
            return None
        return round(change / self.close * 100, 4)

    @property
    def pre_market_change(self) -> float | None:
        # Needs the prior session close, which this endpoint does not return.
        return None

    @property
    def is_up_day(self) -> bool:
        change = self.intraday_change
        return change is not None and change > 0

    @property
    def is_down_day(self) -> bool:
        change = self.intraday_change
        return change is not None and change < 0

    @property
    def is_flat_day(self) -> bool:
        return self.intraday_change == 0

    @property
    def is_after_hours_up(self) -> bool:
        change = self.after_hours_change
        return change is not None and change > 0

    @property
    def is_after_hours_down(self) -> bool:
        change = self.after_hours_change
        return change is not None and change < 0

    @property
    def effective_close(self) -> float | None:
        return self.after_hours_close if self.after_hours_close is not None else self.close

    @property
    def formatted_date(self) -> str:
        if not self.from_date:
            return "N/A"
        try:
            return dt.date.fromisoformat(self.from_date).strftime("%B %d, %Y")
        except ValueError:
            return self.from_date

    @property
    def formatted_change(self) -> str:
        change, percent = self.intraday_change, self.intraday_change_percent
        if change is None or percent is None:
            return "N/A"
        return _format_money_change(change, percent)

    @property
    def formatted_after_hours_change(self) -> str:
        change, percent = self.after_hours_change, self.after_hours_change_percent
        if change is None or percent is None:
            return "N/A"
        return _format_money_change(change, percent)

    @property
    def summary_string(self) -> str:
        parts: list[str] = []
        if self.symbol and self.from_date:
            parts.append(f"{self.symbol} {self.formatted_date}")
        if self.open is not None:
            parts.append(f"Open: ${self.open}")
        if self.close is not None:
            parts.append(f"Close: ${self.close}")
        if self.intraday_change is not None:
            parts.append(f"Change: {self.formatted_change}")
        if self.after_hours_close is not None:
            parts.append(f"After Hours: ${self.after_hours_close}")
        if self.after_hours_change is not None:
            parts.append(f"AH Change: {self.formatted_after_hours_change}")
        return " | ".join(parts)

    @classmethod
    def from_api(cls, raw: Any) -> "StockDailySummary":
        return cls.build(transformers.stock_daily_summary(raw))
