"""Endpoint handlers."""

from polymux.api.exchanges import Exchanges
from polymux.api.flat_files import FlatFiles
from polymux.api.markets import Markets
from polymux.api.options import Options
from polymux.api.stocks import Stocks
from polymux.api.technical_indicators import TechnicalIndicators

__all__ = ["Exchanges", "FlatFiles", "Markets", "Options", "Stocks", "TechnicalIndicators"]
