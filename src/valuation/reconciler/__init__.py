"""Reconciler Module - Lowest-ask / highest-bid selection across providers."""

from .freshness import DataFreshness, determine_freshness
from .models import (
    PriceCandidate,
    PriceConfidence,
    ProviderDataStatus,
    ProviderStatus,
    ReconciledPrice,
)
from .reconciler import PriceReconciler, select_ask, select_bid, validate_mappings

__all__ = [
    "DataFreshness",
    "PriceCandidate",
    "PriceConfidence",
    "PriceReconciler",
    "ProviderDataStatus",
    "ProviderStatus",
    "ReconciledPrice",
    "determine_freshness",
    "select_ask",
    "select_bid",
    "validate_mappings",
]
