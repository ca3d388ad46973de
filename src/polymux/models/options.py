"""Options domain models."""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Literal

from pydantic import Field, field_validator

from polymux import transformers
from polymux.models.base import PolymuxModel
from polymux.timestamps import millis_to_datetime, nanos_to_datetime

ContractType = Literal["call", "put"]
CONTRACT_MULTIPLIER = 100
MONEYNESS_TOLERANCE = 0.01
REALTIME = "REAL-TIME"
DELAYED = "DELAYED"


class Moneyness(str, Enum):
    ATM = "ATM"
    ITM = "ITM"
    OTM = "OTM"


class Contract(PolymuxModel):
    ticker: str
    underlying_ticker: str
    contract_type: ContractType
    strike_price: float = Field(gt=0)
    expiration_date: str
    exercise_style: str
    shares_per_contract: int
    cfi: str | None = None
    primary_exchange: str | None = None

    @field_validator("expiration_date")
    @classmethod
    def _validate_expiration(cls, value: str) -> str:
        dt.date.fromisoformat(value)
        return value

    @property
    def is_call(self) -> bool:
        return self.contract_type == "call"

    @property
    def is_put(self) -> bool:
        return self.contract_type == "put"

    @property
    def expiration(self) -> dt.date:
        return dt.date.fromisoformat(self.expiration_date)

    @classmethod
    def from_api(cls, raw: Any) -> "Contract":
        return cls.build(transformers.contract(raw))


class Trade(PolymuxModel):
    ticker: str
    timestamp: int
    datetime: dt.datetime
    price: float = Field(ge=0)
    size: float = Field(ge=0)

    @property
    def total_price(self) -> float:
        return round(self.price * self.size, 2)

    @property
    def total_value(self) -> float:
        """Notional value across the standard 100-share contract multiplier."""
        return round(self.price * self.size * CONTRACT_MULTIPLIER, 2)

    @classmethod
    def from_api(cls, ticker: str, raw: Any) -> "Trade":
        attrs = transformers.trade(raw)
        attrs["ticker"] = ticker
        return cls.build(attrs)


class Quote(PolymuxModel):
    ticker: str
    timestamp: int
    datetime: dt.datetime
    ask_price: float
    bid_price: float
    ask_size: int
    bid_size: int
    sequence: int

    @property
    def spread(self) -> float:
        return round(self.ask_price - self.bid_price, 4)

    @property
    def midpoint(self) -> float:
        return round((self.bid_price + self.ask_price) / 2.0, 4)

    @property
    def spread_percentage(self) -> float:
        mid = self.midpoint
        if mid == 0:
            return 0.0
        return round(self.spread / mid * 100, 4)

    @property
    def is_crossed(self) -> bool:
        return self.bid_price >= self.ask_price

    @property
    def bid_notional(self) -> float:
        return round(self.bid_price * self.bid_size * CONTRACT_MULTIPLIER, 2)

    @property
    def ask_notional(self) -> float:
        return round(self.ask_price * self.ask_size * CONTRACT_MULTIPLIER, 2)

    @classmethod
    def from_api(cls, ticker: str, raw: Any) -> "Quote":
        attrs = transformers.quote(raw)
        attrs["ticker"] = ticker
        return cls.build(attrs)


class LastQuote(PolymuxModel):
    ask_price: float
    ask_size: float
    bid_price: float
    bid_size: float
    midpoint: float | None = None
    last_updated: int
    timeframe: str | None = None

    @property
    def timestamp(self) -> dt.datetime:
        return nanos_to_datetime(self.last_updated)

    @property
    def is_realtime(self) -> bool:
        return self.timeframe == REALTIME

    @property
    def is_delayed(self) -> bool:
        return self.timeframe == DELAYED

    @property
    def spread(self) -> float:
        return round(self.ask_price - self.bid_price, 4)

    @property
    def midpoint_price(self) -> float:
        if self.midpoint is not None:
            return self.midpoint
        return round((self.bid_price + self.ask_price) / 2.0, 4)

    @property
    def spread_percentage(self) -> float:
        mid = self.midpoint_price
        if mid == 0:
            return 0.0
        return round(self.spread / mid * 100, 4)


class LastTrade(PolymuxModel):
    price: float
    size: int
    sip_timestamp: int
    timeframe: str | None = None
    exchange: int | None = None
    conditions: list[int] | None = None

    @property
    def timestamp(self) -> dt.datetime:
        return nanos_to_datetime(self.sip_timestamp)

    @property
    def is_realtime(self) -> bool:
        return self.timeframe == REALTIME

    @property
    def is_delayed(self) -> bool:
        return self.timeframe == DELAYED

    @property
    def total_price(self) -> float:
        return round(self.price * self.size, 2)

    @property
    def total_value(self) -> float:
        return round(self.price * self.size * CONTRACT_MULTIPLIER, 2)


class Greeks(PolymuxModel):
    delta: float | None = None
    gamma: float | None = None
    theta: float | None = None
    vega: float | None = None

    @property
    def is_high_gamma(self) -> bool:
        return self.gamma is not None and abs(self.gamma) > 0.05

    @property
    def is_high_theta_decay(self) -> bool:
        return self.theta is not None and self.theta < -0.05

    @property
    def is_high_vega(self) -> bool:
        return self.vega is not None and abs(self.vega) > 0.10

    @property
    def is_call_like_delta(self) -> bool:
        return self.delta is not None and self.delta > 0

    @property
    def is_put_like_delta(self) -> bool:
        return self.delta is not None and self.delta < 0

    @property
    def abs_delta(self) -> float | None:
        if self.delta is None:
            return None
        return abs(self.delta)


class DailyBar(PolymuxModel):
    open: float
    high: float
    low: float
    close: float
    volume: float
    vwap: float
    previous_close: float
    change: float
    change_percent: float
    last_updated: int | None = None

    @property
    def range(self) -> float:
        return round(self.high - self.low, 4)

    @property
    def intraday_volatility(self) -> float:
        if self.open == 0:
            return 0.0
        return round(self.range / self.open * 100, 4)

    @property
    def change_direction(self) -> Literal["up", "down", "unchanged"]:
        if self.change == 0:
            return "unchanged"
        return "up" if self.change > 0 else "down"

    @property
    def is_green_day(self) -> bool:
        return self.close > self.open

    @property
    def is_red_day(self) -> bool:
        return self.close < self.open

    @property
    def is_doji(self) -> bool:
        return abs(self.open - self.close) < self.range * 0.1

    @property
    def is_high_volume(self) -> bool:
        return self.volume > 1000

    @property
    def body_size(self) -> float:
        return round(abs(self.close - self.open), 4)

    @property
    def upper_shadow(self) -> float:
        return round(self.high - max(self.open, self.close), 4)

    @property
    def lower_shadow(self) -> float:
        return round(min(self.open, self.close) - self.low, 4)


class UnderlyingAsset(PolymuxModel):
    ticker: str
    price: float | None = None
    value: float | None = None
    last_updated: int | None = None
    timeframe: str | None = None
    change_to_break_even: float

    @property
    def timestamp(self) -> dt.datetime | None:
        if self.last_updated is None:
            return None
        return nanos_to_datetime(self.last_updated)

    @property
    def is_realtime(self) -> bool:
        return self.timeframe == REALTIME

    @property
    def is_delayed(self) -> bool:
        return self.timeframe == DELAYED

    @property
    def break_even_distance(self) -> float:
        return abs(self.change_to_break_even)


class Snapshot(PolymuxModel):
    break_even_price: float | None = None
    daily_bar: DailyBar | None = None
    implied_volatility: float | None = None
    last_quote: LastQuote | None = None
    last_trade: LastTrade | None = None
    open_interest: int
    underlying_asset: UnderlyingAsset
    greeks: Greeks | None = None
    details: dict[str, Any] | None = None

    @property
    def is_actively_traded(self) -> bool:
        return self.last_trade is not None

    @property
    def is_liquid(self) -> bool:
        return self.last_quote is not None

    @property
    def current_price(self) -> float | None:
        if self.last_trade is not None:
            return self.last_trade.price
        if self.last_quote is not None:
            return self.last_quote.midpoint_price
        return None

    @property
    def is_moneyness_known(self) -> bool:
        return self.underlying_asset.price is not None and self.break_even_price is not None

    @property
    def moneyness(self) -> Moneyness:
        """ATM/ITM/OTM from underlying price vs break-even.

        Falls back to ATM when either price is missing; check
        `is_moneyness_known` to tell that case apart.
        """
        price = self.underlying_asset.price
        break_even = self.break_even_price
        if price is None or break_even is None:
            return Moneyness.ATM
        if abs(price - break_even) < MONEYNESS_TOLERANCE:
            return Moneyness.ATM
        return Moneyness.ITM if price > break_even else Moneyness.OTM

    @classmethod
    def from_api(cls, raw: Any) -> "Snapshot":
        return cls.build(transformers.snapshot(raw))


class DailySummary(PolymuxModel):
    symbol: str
    date: str | None = None
    open: float
    high: float
    low: float
    close: float
    volume: int
    pre_market: float | None = None
    after_hours: float | None = None

    @classmethod
    def from_api(cls, raw: Any) -> "DailySummary":
        body = raw.get("results") if isinstance(raw, dict) and isinstance(raw.get("results"), dict) else raw
        return cls.build(transformers.daily_summary(body))


class PreviousDay(PolymuxModel):
    ticker: str
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: int
    vwap: float

    @property
    def datetime(self) -> dt.datetime:
        return millis_to_datetime(self.timestamp)

    @classmethod
    def from_api(cls, raw: Any) -> "PreviousDay":
        return cls.build(transformers.previous_day(raw))
