"""Typed domain models."""

from polymux.models.exchanges import Exchange
from polymux.models.flat_files import BulkDownloadResult, DownloadFailure, DownloadResult, FileInfo, FileMetadata
from polymux.models.indicators import EMA, MACD, RSI, SMA, IndicatorValue, MACDValue, RSIBand
from polymux.models.markets import Holiday, MarketStatus
from polymux.models.options import (
    Contract,
    DailyBar,
    DailySummary,
    Greeks,
    LastQuote,
    LastTrade,
    Moneyness,
    PreviousDay,
    Quote,
    Snapshot,
    Trade,
    UnderlyingAsset,
)
from polymux.models.stocks import (
    Aggregate,
    StockDailySummary,
    StockQuote,
    StockSnapshot,
    StockTrade,
    Ticker,
    TickerDetails,
)

__all__ = [
    "Aggregate",
    "BulkDownloadResult",
    "Contract",
    "DailyBar",
    "DailySummary",
    "DownloadFailure",
    "DownloadResult",
    "EMA",
    "Exchange",
    "FileInfo",
    "FileMetadata",
    "Greeks",
    "Holiday",
    "IndicatorValue",
    "LastQuote",
    "LastTrade",
    "MACD",
    "MACDValue",
    "MarketStatus",
    "Moneyness",
    "PreviousDay",
    "Quote",
    "RSI",
    "RSIBand",
    "SMA",
    "Snapshot",
    "StockDailySummary",
    "StockQuote",
    "StockSnapshot",
    "StockTrade",
    "Ticker",
    "TickerDetails",
    "Trade",
    "UnderlyingAsset",
]
