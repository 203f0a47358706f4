"""
Valuation Engine: Multi-Provider Price Reconciliation

Modules:
- sizing: Provider size systems to canonical UK sizing and back
- fx: Date-stamped currency conversion with fallback
- snapshots: Latest-snapshot index and per-key history
- reconciler: Best ask / best bid selection across providers
- calculator: Market value, P/L, spread and instant-sell net
- trend: Sparkline series with flagged synthetic fallback
- fetchers: Provider feed fetchers and parallel fan-out
- pipeline: Batch valuation, JSON export and CLI
"""

__version__ = "0.1.0"
