"""
Services layer around the valuation core.

Provides reusable services that can be consumed by the CLI or any other
surrounding application.
"""

from services.providers import (
    PortfolioRepository,
    Quote,
    QuoteProvider,
    QuoteRefreshResult,
    RateProvider,
    apply_quotes,
)
from services.snapshot_service import (
    PortfolioSnapshot,
    SnapshotError,
    load_snapshot,
    parse_snapshot,
)

__all__ = [
    # Providers
    "PortfolioRepository",
    "Quote",
    "QuoteProvider",
    "QuoteRefreshResult",
    "RateProvider",
    "apply_quotes",
    # Snapshot service
    "PortfolioSnapshot",
    "SnapshotError",
    "load_snapshot",
    "parse_snapshot",
]
