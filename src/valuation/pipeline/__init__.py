"""Pipeline Module - Batch valuation, JSON export and CLI."""

from .exporter import ValuationExporter, build_summary
from .models import ValuationBundle
from .pipeline import ValuationPipeline, value_portfolio

__all__ = [
    "ValuationBundle",
    "ValuationExporter",
    "ValuationPipeline",
    "build_summary",
    "value_portfolio",
]
