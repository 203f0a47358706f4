"""Calculator Module - Market value, P/L, spread and instant-sell net."""

from .calculator import ValuationCalculator
from .fees import FeeSchedule
from .models import EnrichedValuation, ProviderSummary

__all__ = [
    "EnrichedValuation",
    "FeeSchedule",
    "ProviderSummary",
    "ValuationCalculator",
]
