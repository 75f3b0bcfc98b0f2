"""Indicators: Bollinger Bands, VWAP."""

from tradesim.indicators.base import Indicator
from tradesim.indicators.bbands import BollingerBands
from tradesim.indicators.vwap import VWAP, SessionReset

__all__ = ["Indicator", "BollingerBands", "VWAP", "SessionReset"]
