"""Technical-indicator series and the signal logic layered on top of them.

The remote service computes the indicator values; these models only
classify them. Every analytic reads from the newest value backward and
answers False, None or a neutral label when the series is too short.
"""

from __future__ import annotations

import datetime as dt
import json
import math
from enum import Enum
from typing import Any, ClassVar, Literal, Self

from pydantic import field_validator

from polymux.models.base import PolymuxModel
from polymux.timestamps import millis_to_datetime

Direction = Literal["bullish", "bearish", "neutral"]
Momentum = Literal["rising", "falling", "sideways"]


class IndicatorValue(PolymuxModel):
    timestamp: dt.datetime | None = None
    value: float

    @field_validator("timestamp", mode="before")
    @classmethod
    def _convert_millis(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return millis_to_datetime(value)
        return value


class MACDValue(IndicatorValue):
    signal: float
    histogram: float


def _linear_slope(points: list[float]) -> float | None:
    n = len(points)
    if n < 2:
        return None
    xs = range(n)
    sum_x = sum(xs)
    sum_y = sum(points)
    sum_xy = sum(x * y for x, y in zip(xs, points))
    sum_x2 = sum(x * x for x in xs)
    denominator = n * sum_x2 - sum_x**2
    if denominator == 0:
        return None
    return round((n * sum_xy - sum_x * sum_y) / denominator, 4)


def _pstdev(points: list[float]) -> float:
    mean = sum(points) / len(points)
    variance = sum((p - mean) ** 2 for p in points) / len(points)
    return math.sqrt(variance)


def _normalize_timestamp(timestamp: dt.datetime | int | None) -> dt.datetime | None:
    if isinstance(timestamp, int) and not isinstance(timestamp, bool):
        return millis_to_datetime(timestamp)
    return timestamp


def _extract_values(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, (str, bytes)):
        payload = json.loads(payload)
    if not isinstance(payload, dict):
        return []
    results = payload.get("results") or {}
    if not isinstance(results, dict):
        return []
    raw_values = results.get("values") or []
    return [item for item in raw_values if isinstance(item, dict)]


class IndicatorSeries(PolymuxModel):
    ticker: str
    timespan: str
    values: tuple[IndicatorValue, ...] = ()

    @field_validator("ticker")
    @classmethod
    def _normalize_ticker(cls, value: str) -> str:
        return value.upper().strip()

    @field_validator("values")
    @classmethod
    def _chronological(cls, value: tuple[IndicatorValue, ...]) -> tuple[IndicatorValue, ...]:
        if all(item.timestamp is not None for item in value):
            return tuple(sorted(value, key=lambda item: item.timestamp))
        return value

    @property
    def current_value(self) -> float | None:
        return self.values[-1].value if self.values else None

    @property
    def first_value(self) -> float | None:
        return self.values[0].value if self.values else None

    def _points(self) -> list[float]:
        return [item.value for item in self.values]

    def value_at(self, timestamp: dt.datetime | int) -> float | None:
        target = _normalize_timestamp(timestamp)
        for item in self.values:
            if item.timestamp == target:
                return item.value
        return None

    @property
    def date_range(self) -> dict[str, dt.datetime | None]:
        if not self.values:
            return {}
        return {"start": self.values[0].timestamp, "end": self.values[-1].timestamp}

    def _percent_change(self, periods: int) -> float | None:
        if periods < 1 or len(self.values) < periods + 1:
            return None
        previous = self.values[-periods - 1].value
        if previous == 0:
            return None
        return round((self.values[-1].value - previous) / previous * 100, 4)

    def _crossed(self, other: IndicatorSeries, *, above: bool) -> bool:
        if len(self.values) < 2 or len(other.values) < 2:
            return False
        prev_self, cur_self = self.values[-2].value, self.values[-1].value
        prev_other, cur_other = other.values[-2].value, other.values[-1].value
        if above:
            return prev_self <= prev_other and cur_self > cur_other
        return prev_self >= prev_other and cur_self < cur_other

    @classmethod
    def _series_attrs(cls, ticker: str, payload: Any, timespan: str) -> dict[str, Any]:
        return {"ticker": ticker, "timespan": timespan, "values": _extract_values(payload)}


class SMA(IndicatorSeries):
    window: int

    @property
    def is_trending_up(self) -> bool:
        if len(self.values) < 6:
            return False
        return self.values[-1].value > self.values[-6].value

    @property
    def is_trending_down(self) -> bool:
        if len(self.values) < 6:
            return False
        return self.values[-1].value < self.values[-6].value

    @property
    def is_sideways(self) -> bool:
        return not self.is_trending_up and not self.is_trending_down

    def slope(self, periods: int = 5) -> float | None:
        """Least-squares slope over the last ``periods + 1`` values."""
        if periods < 1 or len(self.values) < periods + 1:
            return None
        return _linear_slope(self._points()[-(periods + 1) :])

    def _slope_ending_at(self, index: int, periods: int) -> float | None:
        end = len(self.values) + index
        start = end - periods
        if start < 0 or end >= len(self.values):
            return None
        return _linear_slope(self._points()[start : end + 1])

    def percent_change(self, periods: int = 5) -> float | None:
        return self._percent_change(periods)

    def crossed_above(self, other: SMA) -> bool:
        return self._crossed(other, above=True)

    def crossed_below(self, other: SMA) -> bool:
        return self._crossed(other, above=False)

    @property
    def volatility(self) -> float:
        if len(self.values) < 2:
            return 0.0
        return round(_pstdev(self._points()), 4)

    @property
    def is_accelerating_up(self) -> bool:
        if len(self.values) < 10:
            return False
        recent = self.slope(3)
        previous = self._slope_ending_at(-4, 3)
        if recent is None or previous is None:
            return False
        return recent > previous and recent > 0

    @property
    def is_decelerating(self) -> bool:
        if len(self.values) < 10:
            return False
        recent = self.slope(3)
        previous = self._slope_ending_at(-4, 3)
        if recent is None or previous is None:
            return False
        return abs(recent) < abs(previous)

    @classmethod
    def from_api(cls, ticker: str, payload: Any, *, window: int, timespan: str) -> Self:
        attrs = cls._series_attrs(ticker, payload, timespan)
        attrs["window"] = window
        return cls.build(attrs)


class EMA(IndicatorSeries):
    window: int

    @property
    def is_trending_up(self) -> bool:
        if len(self.values) < 4:
            return False
        return self.values[-1].value > self.values[-4].value

    @property
    def is_trending_down(self) -> bool:
        if len(self.values) < 4:
            return False
        return self.values[-1].value < self.values[-4].value

    @property
    def is_momentum_increasing(self) -> bool:
        if len(self.values) < 6:
            return False
        recent = self.values[-1].value - self.values[-3].value
        previous = self.values[-3].value - self.values[-6].value
        return recent > previous and recent > 0

    @property
    def is_momentum_decreasing(self) -> bool:
        if len(self.values) < 6:
            return False
        recent = abs(self.values[-1].value - self.values[-3].value)
        previous = abs(self.values[-3].value - self.values[-6].value)
        return recent < previous

    @property
    def smoothing_constant(self) -> float:
        return 2.0 / (self.window + 1)

    def percent_change(self, periods: int = 3) -> float | None:
        return self._percent_change(periods)

    def crossed_above(self, other: EMA) -> bool:
        return self._crossed(other, above=True)

    def crossed_below(self, other: EMA) -> bool:
        return self._crossed(other, above=False)

    @property
    def responsiveness_ratio(self) -> float:
        """Current EMA relative to the plain mean of the last ``window`` values."""
        if len(self.values) < self.window + 1:
            return 1.0
        recent = self._points()[-self.window :]
        mean = sum(recent) / len(recent)
        if mean == 0:
            return 1.0
        return round(self.values[-1].value / mean, 4)

    def _gap_change(self, other: EMA) -> tuple[float, float] | None:
        if len(self.values) < 3 or len(other.values) < 3:
            return None
        current = abs(self.values[-1].value - other.values[-1].value)
        previous = abs(self.values[-2].value - other.values[-2].value)
        return current, previous

    def is_converging_with(self, other: EMA) -> bool:
        gaps = self._gap_change(other)
        return gaps is not None and gaps[0] < gaps[1]

    def is_diverging_from(self, other: EMA) -> bool:
        gaps = self._gap_change(other)
        return gaps is not None and gaps[0] > gaps[1]

    def recent_volatility(self, periods: int = 10) -> float:
        if periods < 1 or len(self.values) < periods + 1:
            return 0.0
        recent = self._points()[-(periods + 1) :]
        changes = [(cur - prev) / prev for prev, cur in zip(recent, recent[1:]) if prev != 0]
        if not changes:
            return 0.0
        return round(_pstdev(changes) * 100, 4)

    def _momentum_sign(self) -> int:
        if self.is_momentum_increasing:
            return 1
        if self.is_momentum_decreasing:
            return -1
        return 0

    @property
    def directional_bias(self) -> Direction:
        if len(self.values) < 5:
            return "neutral"
        trend = self.percent_change(3) or 0.0
        momentum = self._momentum_sign()
        if trend > 1.0 and momentum >= 0:
            return "bullish"
        if trend < -1.0 and momentum <= 0:
            return "bearish"
        return "neutral"

    def _signal_strength(self) -> str:
        factor = {1: 1.2, -1: 0.8}.get(self._momentum_sign(), 1.0)
        score = abs(self.percent_change(3) or 0.0) * factor
        if score <= 0.5:
            return "weak"
        if score <= 1.5:
            return "moderate"
        if score <= 3.0:
            return "strong"
        return "very_strong"

    def _momentum_status(self) -> str:
        return {1: "accelerating", -1: "decelerating"}.get(self._momentum_sign(), "stable")

    def _trend_quality(self) -> str:
        if len(self.values) < 8:
            return "insufficient_data"
        recent = self._points()[-6:]
        steps = [1 if cur > prev else -1 for prev, cur in zip(recent, recent[1:])]
        consistency = abs(sum(steps)) / len(steps)
        if consistency >= 0.8:
            return "strong"
        if consistency >= 0.5:
            return "moderate"
        return "choppy"

    @property
    def signal_analysis(self) -> dict[str, str]:
        return {
            "direction": self.directional_bias,
            "strength": self._signal_strength(),
            "momentum": self._momentum_status(),
            "trend_quality": self._trend_quality(),
        }

    @classmethod
    def from_api(cls, ticker: str, payload: Any, *, window: int, timespan: str) -> Self:
        attrs = cls._series_attrs(ticker, payload, timespan)
        attrs["window"] = window
        return cls.build(attrs)


class RSIBand(str, Enum):
    EXTREMELY_OVERSOLD = "extremely_oversold"
    OVERSOLD = "oversold"
    WEAK = "weak"
    NEUTRAL = "neutral"
    STRONG = "strong"
    OVERBOUGHT = "overbought"
    EXTREMELY_OVERBOUGHT = "extremely_overbought"
    INSUFFICIENT_DATA = "insufficient_data"


RSI_BANDS: tuple[RSIBand, ...] = (
    RSIBand.EXTREMELY_OVERSOLD,
    RSIBand.OVERSOLD,
    RSIBand.WEAK,
    RSIBand.NEUTRAL,
    RSIBand.STRONG,
    RSIBand.OVERBOUGHT,
    RSIBand.EXTREMELY_OVERBOUGHT,
)


class RSI(IndicatorSeries):
    window: int

    OVERSOLD_THRESHOLD: ClassVar[float] = 30.0
    OVERBOUGHT_THRESHOLD: ClassVar[float] = 70.0
    EXTREME_OVERSOLD_THRESHOLD: ClassVar[float] = 20.0
    EXTREME_OVERBOUGHT_THRESHOLD: ClassVar[float] = 80.0
    NEUTRAL_LOWER: ClassVar[float] = 40.0
    NEUTRAL_UPPER: ClassVar[float] = 60.0

    @classmethod
    def classify(cls, value: float) -> RSIBand:
        """Map one RSI reading onto its band; the bands partition the real line."""
        if value < cls.EXTREME_OVERSOLD_THRESHOLD:
            return RSIBand.EXTREMELY_OVERSOLD
        if value < cls.OVERSOLD_THRESHOLD:
            return RSIBand.OVERSOLD
        if value < cls.NEUTRAL_LOWER:
            return RSIBand.WEAK
        if value <= cls.NEUTRAL_UPPER:
            return RSIBand.NEUTRAL
        if value <= cls.OVERBOUGHT_THRESHOLD:
            return RSIBand.STRONG
        if value <= cls.EXTREME_OVERBOUGHT_THRESHOLD:
            return RSIBand.OVERBOUGHT
        return RSIBand.EXTREMELY_OVERBOUGHT

    def is_oversold(self, threshold: float | None = None) -> bool:
        current = self.current_value
        limit = self.OVERSOLD_THRESHOLD if threshold is None else threshold
        return current is not None and current < limit

    def is_overbought(self, threshold: float | None = None) -> bool:
        current = self.current_value
        limit = self.OVERBOUGHT_THRESHOLD if threshold is None else threshold
        return current is not None and current > limit

    @property
    def is_extremely_oversold(self) -> bool:
        return self.is_oversold(self.EXTREME_OVERSOLD_THRESHOLD)

    @property
    def is_extremely_overbought(self) -> bool:
        return self.is_overbought(self.EXTREME_OVERBOUGHT_THRESHOLD)

    @property
    def is_neutral(self) -> bool:
        current = self.current_value
        return current is not None and self.NEUTRAL_LOWER <= current <= self.NEUTRAL_UPPER

    @property
    def is_recovering_from_oversold(self) -> bool:
        if len(self.values) < 3:
            return False
        older, previous, current = (item.value for item in self.values[-3:])
        return (
            older < self.OVERSOLD_THRESHOLD
            and previous < self.OVERSOLD_THRESHOLD
            and current > previous
            and current >= self.OVERSOLD_THRESHOLD
        )

    @property
    def is_failing_from_overbought(self) -> bool:
        if len(self.values) < 3:
            return False
        older, previous, current = (item.value for item in self.values[-3:])
        return (
            older > self.OVERBOUGHT_THRESHOLD
            and previous > self.OVERBOUGHT_THRESHOLD
            and current < previous
            and current <= self.OVERBOUGHT_THRESHOLD
        )

    @property
    def momentum_direction(self) -> Momentum:
        if len(self.values) < 3:
            return "sideways"
        change = self.values[-1].value - self.values[-3].value
        if change > 2.0:
            return "rising"
        if change < -2.0:
            return "falling"
        return "sideways"

    def momentum_strength(self, periods: int = 3) -> float:
        if periods < 1 or len(self.values) < periods + 1:
            return 0.0
        return (self.values[-1].value - self.values[-periods - 1].value) / periods

    def _local_highs(self) -> list[dict[str, Any]]:
        if len(self.values) < 5:
            return []
        highs: list[dict[str, Any]] = []
        for i in range(2, len(self.values) - 2):
            before, current, after = (item.value for item in self.values[i - 1 : i + 2])
            # Only readings above the midline count as meaningful peaks.
            if current > before and current > after and current > 50:
                highs.append({"index": i, "value": current, "timestamp": self.values[i].timestamp})
        return highs

    def _local_lows(self) -> list[dict[str, Any]]:
        if len(self.values) < 5:
            return []
        lows: list[dict[str, Any]] = []
        for i in range(2, len(self.values) - 2):
            before, current, after = (item.value for item in self.values[i - 1 : i + 2])
            if current < before and current < after and current < 50:
                lows.append({"index": i, "value": current, "timestamp": self.values[i].timestamp})
        return lows

    def _last_two_highs(self, price_highs: list[Any]) -> tuple[float, float] | None:
        if len(self.values) < 6 or len(price_highs) < 2:
            return None
        highs = self._local_highs()
        if len(highs) < 2:
            return None
        return highs[-2]["value"], highs[-1]["value"]

    def has_bullish_divergence(self, price_highs: list[Any] | None = None) -> bool:
        """RSI peaks rising while the caller's price highs may be falling."""
        pair = self._last_two_highs(list(price_highs or []))
        return pair is not None and pair[1] > pair[0]

    def has_bearish_divergence(self, price_highs: list[Any] | None = None) -> bool:
        """RSI peaks falling while the caller's price highs may be rising."""
        pair = self._last_two_highs(list(price_highs or []))
        return pair is not None and pair[1] < pair[0]

    @property
    def local_lows(self) -> list[dict[str, Any]]:
        return self._local_lows()

    @property
    def local_highs(self) -> list[dict[str, Any]]:
        return self._local_highs()

    @property
    def signal_classification(self) -> RSIBand:
        current = self.current_value
        if current is None:
            return RSIBand.INSUFFICIENT_DATA
        return self.classify(current)

    @property
    def trading_signal(self) -> dict[str, str]:
        if self.current_value is None:
            return {"type": "none", "strength": "none", "confidence": "low"}
        band = self.signal_classification
        signal = {"type": "hold", "strength": "weak", "confidence": "medium", "reason": band.value}
        if band is RSIBand.EXTREMELY_OVERSOLD:
            signal.update(type="buy", strength="strong", confidence="high")
        elif band is RSIBand.OVERSOLD:
            signal.update(type="buy", strength="moderate", confidence="medium")
        elif band is RSIBand.EXTREMELY_OVERBOUGHT:
            signal.update(type="sell", strength="strong", confidence="high")
        elif band is RSIBand.OVERBOUGHT:
            signal.update(type="sell", strength="moderate", confidence="medium")

        direction = self.momentum_direction
        if direction == "rising" and signal["type"] == "buy":
            signal["confidence"] = "high"
        elif direction == "falling" and signal["type"] == "sell":
            signal["confidence"] = "high"
        return signal

    @property
    def average_value(self) -> float:
        if not self.values:
            return 0.0
        points = self._points()
        return sum(points) / len(points)

    @property
    def range_distribution(self) -> dict[str, int]:
        if not self.values:
            return {}
        distribution = {band.value: 0 for band in RSI_BANDS}
        for item in self.values:
            distribution[self.classify(item.value).value] += 1
        return distribution

    @classmethod
    def from_api(cls, ticker: str, payload: Any, *, window: int, timespan: str) -> Self:
        attrs = cls._series_attrs(ticker, payload, timespan)
        attrs["window"] = window
        return cls.build(attrs)


class MACD(IndicatorSeries):
    short_window: int
    long_window: int
    signal_window: int
    values: tuple[MACDValue, ...] = ()

    @property
    def current(self) -> MACDValue | None:
        return self.values[-1] if self.values else None

    @property
    def current_signal(self) -> float | None:
        return self.values[-1].signal if self.values else None

    @property
    def current_histogram(self) -> float | None:
        return self.values[-1].histogram if self.values else None

    @property
    def is_bullish_crossover(self) -> bool:
        if len(self.values) < 2:
            return False
        previous, current = self.values[-2], self.values[-1]
        return previous.value <= previous.signal and current.value > current.signal

    @property
    def is_bearish_crossover(self) -> bool:
        if len(self.values) < 2:
            return False
        previous, current = self.values[-2], self.values[-1]
        return previous.value >= previous.signal and current.value < current.signal

    @property
    def is_above_zero(self) -> bool:
        current = self.current_value
        return current is not None and current > 0

    @property
    def is_below_zero(self) -> bool:
        current = self.current_value
        return current is not None and current < 0

    @property
    def is_histogram_increasing(self) -> bool:
        if len(self.values) < 3:
            return False
        older, previous, current = (item.histogram for item in self.values[-3:])
        return current > previous > older

    @property
    def is_histogram_decreasing(self) -> bool:
        if len(self.values) < 3:
            return False
        older, previous, current = (item.histogram for item in self.values[-3:])
        return current < previous < older

    @property
    def trend_direction(self) -> Direction:
        current = self.current
        if current is None:
            return "neutral"
        if self.is_above_zero and current.value > current.signal:
            return "bullish"
        if self.is_below_zero and current.value < current.signal:
            return "bearish"
        return "neutral"

    @property
    def signal_strength(self) -> str:
        histogram = self.current_histogram
        if histogram is None:
            return "none"
        score = abs(histogram)
        if self.is_bullish_crossover or self.is_bearish_crossover:
            score *= 2
        if self.is_histogram_increasing:
            score *= 1.5
        if score <= 0.3:
            return "weak"
        if score <= 0.8:
            return "moderate"
        if score <= 1.5:
            return "strong"
        return "very_strong"

    def _line_gaps(self) -> tuple[float, float, float] | None:
        if len(self.values) < 3:
            return None
        older, previous, current = (abs(item.value - item.signal) for item in self.values[-3:])
        return older, previous, current

    @property
    def is_converging(self) -> bool:
        gaps = self._line_gaps()
        return gaps is not None and gaps[2] < gaps[1] < gaps[0]

    @property
    def is_diverging(self) -> bool:
        gaps = self._line_gaps()
        return gaps is not None and gaps[2] > gaps[1] > gaps[0]

    @property
    def trading_signal(self) -> dict[str, Any]:
        current = self.current
        if current is None:
            return {"type": "none", "strength": "none", "confidence": "low"}
        signal: dict[str, Any] = {
            "type": "hold",
            "strength": self.signal_strength,
            "confidence": "medium",
            "components": {
                "macd_line": current.value,
                "signal_line": current.signal,
                "histogram": current.histogram,
            },
        }
        if self.is_bullish_crossover:
            signal.update(type="buy", confidence="high", reason="bullish_crossover")
        elif self.is_bearish_crossover:
            signal.update(type="sell", confidence="high", reason="bearish_crossover")
        else:
            trend = self.trend_direction
            if trend == "bullish":
                if self.is_histogram_increasing:
                    signal.update(type="buy", reason="bullish_momentum_increasing")
                else:
                    signal.update(type="hold", reason="bullish_but_weakening")
            elif trend == "bearish":
                if self.is_histogram_decreasing and current.histogram < 0:
                    signal.update(type="sell", reason="bearish_momentum_increasing")
                else:
                    signal.update(type="hold", reason="bearish_but_weakening")

        if signal["strength"] == "very_strong":
            signal["confidence"] = "high"
        elif signal["strength"] == "weak":
            signal["confidence"] = "low"
        return signal

    @property
    def zero_line_crossings(self) -> list[dict[str, Any]]:
        crossings: list[dict[str, Any]] = []
        for previous, current in zip(self.values, self.values[1:]):
            if previous.value <= 0 < current.value:
                kind = "bullish_zero_cross"
            elif previous.value >= 0 > current.value:
                kind = "bearish_zero_cross"
            else:
                continue
            crossings.append({"timestamp": current.timestamp, "type": kind, "from": previous.value, "to": current.value})
        return crossings

    def value_at(self, timestamp: dt.datetime | int) -> MACDValue | None:  # type: ignore[override]
        target = _normalize_timestamp(timestamp)
        for item in self.values:
            if item.timestamp == target:
                return item
        return None

    @property
    def average_macd(self) -> float:
        if not self.values:
            return 0.0
        return sum(item.value for item in self.values) / len(self.values)

    @property
    def average_histogram(self) -> float:
        if not self.values:
            return 0.0
        return sum(item.histogram for item in self.values) / len(self.values)

    @property
    def histogram_analysis(self) -> dict[str, Any]:
        if len(self.values) < 5:
            return {}
        recent = [item.histogram for item in self.values[-5:]]
        return {
            "current": self.current_histogram,
            "trend": _histogram_trend(recent),
            "strength": _histogram_strength(recent[-1]),
            "consistency": round(_pstdev(recent), 4),
        }

    @classmethod
    def from_api(
        cls,
        ticker: str,
        payload: Any,
        *,
        short_window: int,
        long_window: int,
        signal_window: int,
        timespan: str,
    ) -> Self:
        attrs = cls._series_attrs(ticker, payload, timespan)
        attrs.update(short_window=short_window, long_window=long_window, signal_window=signal_window)
        return cls.build(attrs)


def _histogram_trend(histograms: list[float]) -> str:
    increases = sum(1 for prev, cur in zip(histograms, histograms[1:]) if cur > prev)
    decreases = sum(1 for prev, cur in zip(histograms, histograms[1:]) if cur < prev)
    if increases > decreases:
        return "increasing"
    if decreases > increases:
        return "decreasing"
    return "stable"


def _histogram_strength(histogram: float) -> str:
    magnitude = abs(histogram)
    if magnitude <= 0.2:
        return "weak"
    if magnitude <= 0.5:
        return "moderate"
    if magnitude <= 1.0:
        return "strong"
    return "very_strong"
