"""Trend Module - Sparkline series with flagged synthetic fallback."""

from .builder import TrendSeries, TrendSeriesBuilder, snapshot_price

__all__ = ["TrendSeries", "TrendSeriesBuilder", "snapshot_price"]
