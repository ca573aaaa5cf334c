"""
Domain records for the portfolio valuation core.

Defines all entities the calculators consume:
- Instruments (equities and funds, with price and dividend metadata)
- Positions (holdings with average cost, entry FX rate and purchase lots)
- Fixed deposits (bank and retirement accounts)
- Exchange rate snapshots

Records validate their invariants at construction time and raise
ValueError on violation. Calculators never raise on these records.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from config import config


logger = logging.getLogger(__name__)

MAX_DIVIDEND_DATES = 12
LOT_SHARES_TOLERANCE = 1e-6


class InstrumentCategory(str, Enum):
    """Kind of instrument."""
    EQUITY = "equity"
    FUND = "fund"


class DividendFrequency(str, Enum):
    """Dividend payment frequency."""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUALLY = "semi-annually"
    ANNUALLY = "annually"

    @property
    def factor(self) -> int:
        """Payments per year."""
        return _FREQUENCY_FACTORS[self]

    @classmethod
    def factor_of(cls, frequency: Optional["DividendFrequency"]) -> int:
        """Payments per year, defaulting to 1 when the frequency is unknown."""
        return frequency.factor if frequency is not None else 1


_FREQUENCY_FACTORS = {
    DividendFrequency.MONTHLY: 12,
    DividendFrequency.QUARTERLY: 4,
    DividendFrequency.SEMI_ANNUALLY: 2,
    DividendFrequency.ANNUALLY: 1,
}


class AccountType(str, Enum):
    """Bank account class."""
    SAVINGS = "savings"
    PRIVATE = "private"
    RETIREMENT = "retirement"


class FeeFrequency(str, Enum):
    """How often an account fee is charged."""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"

    @property
    def factor(self) -> int:
        return {"monthly": 12, "quarterly": 4, "annually": 1}[self.value]


@dataclass(frozen=True)
class DividendDate:
    """One announced dividend: ex-date and pay date (either may be unknown)."""
    ex_date: date | None = None
    pay_date: date | None = None


@dataclass(frozen=True)
class Instrument:
    """
    Tradable security (equity or fund) with its latest quote.

    Fund sector/country weights are percentages per label and are not
    required to sum to 100.
    """
    id: str
    symbol: str
    name: str
    currency: str
    current_price: float
    previous_close: float
    category: InstrumentCategory = InstrumentCategory.EQUITY
    isin: str | None = None
    valor: str | None = None
    sector: str | None = None
    country: str | None = None
    sector_weights: Mapping[str, float] | None = None
    country_weights: Mapping[str, float] | None = None

    # Dividend metadata
    dividend_amount: float | None = None  # Per payment, per share
    dividend_yield: float | None = None  # Trailing, percent
    dividend_currency: str | None = None
    dividend_frequency: DividendFrequency | None = None
    dividend_ex_date: date | None = None
    dividend_pay_date: date | None = None
    dividend_dates: tuple[DividendDate, ...] = ()

    # Limits
    target_price: float | None = None
    sell_limit: float | None = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("Instrument id must not be empty")
        if not self.symbol:
            raise ValueError(f"Instrument {self.id}: symbol must not be empty")
        if self.current_price < 0 or self.previous_close < 0:
            raise ValueError(f"Instrument {self.symbol}: prices must be non-negative")
        if len(self.dividend_dates) > MAX_DIVIDEND_DATES:
            raise ValueError(
                f"Instrument {self.symbol}: at most {MAX_DIVIDEND_DATES} dividend dates "
                f"supported, got {len(self.dividend_dates)}"
            )
        # Freeze weight maps so the record stays immutable
        if self.sector_weights is not None:
            object.__setattr__(self, "sector_weights", MappingProxyType(dict(self.sector_weights)))
        if self.country_weights is not None:
            object.__setattr__(self, "country_weights", MappingProxyType(dict(self.country_weights)))

    @property
    def is_fund(self) -> bool:
        return self.category == InstrumentCategory.FUND

    @property
    def payout_currency(self) -> str:
        """Currency dividends are paid in."""
        return self.dividend_currency or self.currency

    def __repr__(self) -> str:
        return f"<Instrument(id={self.id}, symbol={self.symbol}, currency={self.currency})>"


@dataclass(frozen=True)
class PurchaseLot:
    """A single purchase of shares."""
    shares: float
    price: float
    purchase_date: date | None = None
    fx_rate: float | None = None  # Reference units per native unit

    def __post_init__(self):
        if self.shares < 0:
            raise ValueError("Lot shares must be non-negative")
        if self.price < 0:
            raise ValueError("Lot price must be non-negative")
        if self.fx_rate is not None and self.fx_rate <= 0:
            raise ValueError("Lot FX rate must be positive")

    @property
    def cost(self) -> float:
        return self.shares * self.price


@dataclass(frozen=True)
class Position:
    """
    Holding of one instrument.

    entry_fx_rate is expressed as reference-currency units per one unit of
    the instrument's major currency. When lots are tracked, shares must equal
    the sum of lot shares.
    """
    id: str
    instrument_id: str
    shares: float
    avg_entry_price: float
    entry_fx_rate: float | None = None
    lots: tuple[PurchaseLot, ...] = ()
    buy_date: date | None = None

    def __post_init__(self):
        if self.shares < 0:
            raise ValueError(f"Position {self.id}: shares must be non-negative")
        if self.avg_entry_price < 0:
            raise ValueError(f"Position {self.id}: average entry price must be non-negative")
        if self.entry_fx_rate is not None and self.entry_fx_rate <= 0:
            raise ValueError(f"Position {self.id}: entry FX rate must be positive")
        if self.lots:
            lot_shares = sum(lot.shares for lot in self.lots)
            if abs(lot_shares - self.shares) > LOT_SHARES_TOLERANCE:
                raise ValueError(
                    f"Position {self.id}: shares ({self.shares}) differ from "
                    f"lot total ({lot_shares})"
                )

    @property
    def cost_basis_native(self) -> float:
        """Total cost in native currency (lot history when tracked)."""
        if self.lots:
            return sum(lot.cost for lot in self.lots)
        return self.shares * self.avg_entry_price

    @property
    def resolved_entry_fx_rate(self) -> float:
        """
        Entry FX rate to use for valuation.

        Explicit rate first, then the cost-weighted average of lot rates when
        every lot carries one, else 1.0.
        """
        if self.entry_fx_rate is not None:
            return self.entry_fx_rate

        if self.lots and all(lot.fx_rate is not None for lot in self.lots):
            total_cost = sum(lot.cost for lot in self.lots)
            if total_cost > 0:
                return sum(lot.cost * lot.fx_rate for lot in self.lots) / total_cost

        return 1.0

    def __repr__(self) -> str:
        return f"<Position(id={self.id}, instrument_id={self.instrument_id}, shares={self.shares})>"


@dataclass(frozen=True)
class FixedDeposit:
    """Bank deposit or retirement account balance."""
    id: str
    bank_name: str
    amount: float
    currency: str
    interest_rate: float = 0.0  # Percent per year
    account_type: AccountType = AccountType.SAVINGS
    fee: float | None = None
    fee_frequency: FeeFrequency | None = None
    start_date: date | None = None
    maturity_date: date | None = None

    # Retirement account auto-contributions
    auto_contribution: bool = False
    monthly_contribution: float | None = None
    last_contribution_month: str | None = None  # YYYY-MM

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError(f"Deposit {self.id}: amount must be non-negative")
        if self.interest_rate < 0:
            raise ValueError(f"Deposit {self.id}: interest rate must be non-negative")
        if self.fee is not None and self.fee < 0:
            raise ValueError(f"Deposit {self.id}: fee must be non-negative")

    def __repr__(self) -> str:
        return f"<FixedDeposit(id={self.id}, bank={self.bank_name!r}, amount={self.amount})>"


@dataclass(frozen=True)
class ExchangeRateTable:
    """
    Immutable exchange rate snapshot.

    rates maps a currency code to units of that currency per one unit of
    the reference currency. The reference currency always maps to 1.0.
    """
    reference: str
    rates: Mapping[str, float] = field(default_factory=dict)
    as_of: datetime | None = None

    def __post_init__(self):
        if not self.reference:
            raise ValueError("Reference currency must not be empty")
        merged = {}
        for currency, rate in self.rates.items():
            if not math.isfinite(rate):
                logger.warning(f"Dropping non-finite exchange rate {rate} for {currency}")
                continue
            merged[currency] = rate
        merged[self.reference] = 1.0
        object.__setattr__(self, "rates", MappingProxyType(merged))

    @classmethod
    def fallback(cls, reference: str | None = None) -> "ExchangeRateTable":
        """
        Static fallback snapshot from configuration.

        The configured rates are quoted against fallback_base and are rebased
        onto the requested reference. A reference the fallback table does not
        know yields the identity rate only.
        """
        currency_config = config.currency
        reference = reference or currency_config.reference_currency
        fallback_rates = dict(currency_config.fallback_rates)
        fallback_rates.setdefault(currency_config.fallback_base, 1.0)

        base_rate = fallback_rates.get(reference)
        if base_rate is None or base_rate <= 0:
            logger.warning(
                f"No fallback rate for {reference}; only the identity rate will be available"
            )
            return cls(reference=reference)

        return cls(
            reference=reference,
            rates={currency: rate / base_rate for currency, rate in fallback_rates.items()},
        )

    def get(self, currency: str) -> float | None:
        """Rate for a currency, or None when the snapshot lacks it."""
        return self.rates.get(currency)

    def __contains__(self, currency: str) -> bool:
        return currency in self.rates
