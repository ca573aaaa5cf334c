"""
Collaborator interfaces for market and reference data.

The valuation core never fetches data itself. Surrounding applications
plug in implementations of these protocols:
- QuoteProvider: latest price / previous close per symbol
- RateProvider: full exchange rate snapshot, refreshed on its own schedule
- PortfolioRepository: stored instruments, positions and deposits
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Protocol

from models import ExchangeRateTable, FixedDeposit, Instrument, Position


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Quote:
    """Latest quote for one symbol."""
    symbol: str
    price: float
    previous_close: float
    currency: str
    timestamp: datetime | None = None


class QuoteProvider(Protocol):
    """Returns the latest quote for a symbol, or None when unavailable."""

    def get_quote(self, symbol: str) -> Quote | None:
        ...


class RateProvider(Protocol):
    """Returns the current exchange rate snapshot."""

    def get_rates(self) -> ExchangeRateTable:
        ...


class PortfolioRepository(Protocol):
    """Durable storage returning records unchanged."""

    def list_instruments(self) -> list[Instrument]:
        ...

    def list_positions(self) -> list[Position]:
        ...

    def list_deposits(self) -> list[FixedDeposit]:
        ...


@dataclass
class QuoteRefreshResult:
    """
    Result of applying quotes to instruments.

    Instruments without a usable quote are returned unchanged and listed
    in missing.
    """
    instruments: list[Instrument]
    updated: int = 0
    missing: list[str] = field(default_factory=list)
    currency_mismatches: list[str] = field(default_factory=list)


def apply_quotes(instruments: Iterable[Instrument], provider: QuoteProvider) -> QuoteRefreshResult:
    """
    Refresh instrument prices from a quote provider.

    Args:
        instruments: Instruments to refresh.
        provider: Any object implementing QuoteProvider.

    Returns:
        QuoteRefreshResult with refreshed copies; originals are not mutated.
    """
    result = QuoteRefreshResult(instruments=[])

    for instrument in instruments:
        quote = provider.get_quote(instrument.symbol)

        if quote is None or quote.price < 0 or quote.previous_close < 0:
            logger.warning(f"No usable quote for {instrument.symbol}, keeping last price")
            result.missing.append(instrument.symbol)
            result.instruments.append(instrument)
            continue

        if quote.currency != instrument.currency:
            # Provider quotes in another unit (e.g. GBP vs GBp); prices are not comparable
            logger.warning(
                f"Quote currency {quote.currency} for {instrument.symbol} differs from "
                f"instrument currency {instrument.currency}, keeping last price"
            )
            result.currency_mismatches.append(instrument.symbol)
            result.instruments.append(instrument)
            continue

        result.instruments.append(replace(
            instrument,
            current_price=quote.price,
            previous_close=quote.previous_close,
        ))
        result.updated += 1

    logger.info(
        f"Applied {result.updated} quote(s), {len(result.missing)} missing, "
        f"{len(result.currency_mismatches)} currency mismatch(es)"
    )
    return result
