"""
Application configuration settings.

Centralizes all configuration parameters for the portfolio valuation core.
Supports environment-based configuration and sensible defaults.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyConfig:
    """Currency conversion configuration."""
    reference_currency: str = "CHF"

    # Minor-unit code -> (major code, minor units per major unit)
    minor_units: dict = field(default_factory=lambda: {"GBp": ("GBP", 100)})

    # Static snapshot (units per 1 fallback_base), only used when a caller asks for it
    fallback_base: str = "CHF"
    fallback_rates: dict = field(default_factory=lambda: {
        "CHF": 1.0,
        "USD": 1.14,
        "EUR": 1.06,
        "GBP": 0.91,
    })

    # Currencies always worth more than one reference unit.
    # Entry FX rates below 1.0 for these are treated as inverted legacy records.
    # The default holds for a CHF reference; with_reference() re-derives it.
    strong_currencies: tuple[str, ...] = ("GBP", "GBp")
    repair_inverted_entry_fx: bool = True

    def major_currency(self, currency: str) -> str:
        """Map a minor-unit code to its major currency (identity otherwise)."""
        minor = self.minor_units.get(currency)
        return minor[0] if minor else currency

    def minor_factor(self, currency: str) -> int:
        """Minor units per major unit (1 for ordinary currencies)."""
        minor = self.minor_units.get(currency)
        return minor[1] if minor else 1

    def with_reference(self, reference: str) -> "CurrencyConfig":
        """
        Copy of this config for another reference currency.

        strong_currencies is re-derived from fallback_rates: a currency stays
        strong only if one unit is worth more than one unit of the new
        reference. References missing from fallback_rates keep no strong
        currencies, which disables the inverted-rate repair.
        """
        if reference == self.reference_currency:
            return self

        reference_rate = self.fallback_rates.get(reference)
        strong = tuple(
            currency
            for currency in self.strong_currencies
            if reference_rate is not None
            and self.fallback_rates.get(self.major_currency(currency), 0) > 0
            and reference_rate / self.fallback_rates[self.major_currency(currency)] > 1.0
        )
        return replace(self, reference_currency=reference, strong_currencies=strong)


@dataclass(frozen=True)
class DividendConfig:
    """Dividend projection configuration."""
    # Days after a pay date before the next period becomes "current"
    period_switch_buffer_days: int = 7


@dataclass(frozen=True)
class RiskConfig:
    """Concentration risk thresholds (all in percent of portfolio value)."""
    single_holding_threshold: float = 15.0
    single_holding_high: float = 25.0
    single_holding_penalty_floor: float = 10.0
    single_holding_penalty_weight: float = 1.5

    sector_threshold: float = 25.0
    sector_high: float = 40.0
    sector_penalty_floor: float = 20.0

    economy_threshold: float = 55.0
    economy_high: float = 70.0
    economy_penalty_floor: float = 60.0
    country_threshold: float = 40.0

    sector_economy_threshold: float = 20.0
    sector_economy_high: float = 35.0
    sector_economy_penalty_floor: float = 15.0

    # Look-through modelling assumption: share of a world fund attributed
    # to the dominant economy. Not derived from data.
    dominant_economy: str = "USA"
    world_economy_share: float = 0.60

    economy_sector: str = "Technology"
    index_fund_symbols: tuple[str, ...] = ("EQQQ.DE",)
    index_fund_pattern: str = "QQQ"

    fund_sector_label: str = "Fund"
    other_sector_label: str = "Other"
    unknown_country_label: str = "Unknown"
    world_country_label: str = "World"


@dataclass(frozen=True)
class DepositConfig:
    """Bank deposit configuration."""
    # Deposit insurance ceiling per bank, in reference currency
    protection_limit: float = 100_000.0


@dataclass(frozen=True)
class ExchangeHours:
    """
    Trading window for a single exchange.

    Times are UTC-equivalent minutes of day; daylight saving is ignored.
    Holidays are fixed (month, day) pairs observed every year.
    """
    code: str
    name: str
    open_minute: int
    close_minute: int
    suffixes: tuple[str, ...] = ()
    currencies: tuple[str, ...] = ()
    holidays: tuple[tuple[int, int], ...] = ()


@dataclass(frozen=True)
class MarketSessionConfig:
    """
    Configuration for the market session estimator.

    Example usage:
        config.market_sessions.by_suffix("SW")     # SIX Swiss Exchange
        config.market_sessions.by_currency("USD")  # US markets
    """
    global_holidays: tuple[tuple[int, int], ...] = ((1, 1), (12, 25))
    exchanges: tuple[ExchangeHours, ...] = field(default_factory=lambda: (
        ExchangeHours(
            code="US",
            name="NYSE / NASDAQ",
            open_minute=14 * 60 + 30,
            close_minute=21 * 60,
            suffixes=(),
            currencies=("USD",),
            holidays=((6, 19), (7, 4)),
        ),
        ExchangeHours(
            code="SIX",
            name="SIX Swiss Exchange",
            open_minute=8 * 60,
            close_minute=16 * 60 + 20,
            suffixes=("SW", "VX"),
            currencies=("CHF",),
            holidays=((1, 2), (8, 1), (12, 24), (12, 26), (12, 31)),
        ),
        ExchangeHours(
            code="XETRA",
            name="Deutsche Boerse XETRA",
            open_minute=8 * 60,
            close_minute=16 * 60 + 30,
            suffixes=("DE", "F"),
            currencies=("EUR",),
            holidays=((5, 1), (12, 24), (12, 26), (12, 31)),
        ),
        ExchangeHours(
            code="LSE",
            name="London Stock Exchange",
            open_minute=8 * 60,
            close_minute=16 * 60 + 30,
            suffixes=("L",),
            currencies=("GBP", "GBp"),
            holidays=((12, 26),),
        ),
        ExchangeHours(
            code="EURONEXT",
            name="Euronext",
            open_minute=8 * 60,
            close_minute=16 * 60 + 30,
            suffixes=("PA", "AS", "BR", "LS"),
            currencies=(),
            holidays=((5, 1), (12, 26)),
        ),
    ))

    def by_suffix(self, suffix: str) -> ExchangeHours | None:
        """Get exchange by symbol suffix (case-insensitive)."""
        suffix = suffix.upper()
        for exchange in self.exchanges:
            if suffix in exchange.suffixes:
                return exchange
        return None

    def by_currency(self, currency: str) -> ExchangeHours | None:
        """Get exchange by quote currency."""
        for exchange in self.exchanges:
            if currency in exchange.currencies:
                return exchange
        return None


@dataclass
class Config:
    """
    Main configuration container.

    Usage:
        from config import config
        ref = config.currency.reference_currency
    """
    currency: CurrencyConfig = field(default_factory=CurrencyConfig)
    dividends: DividendConfig = field(default_factory=DividendConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)
    deposits: DepositConfig = field(default_factory=DepositConfig)
    market_sessions: MarketSessionConfig = field(default_factory=MarketSessionConfig)

    # Base paths
    project_root: ClassVar[Path] = Path(__file__).parent

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create config from environment variables.

        Supports overrides via:
        - PORTFOLIO_REFERENCE_CURRENCY: Reference currency code (default CHF)
        - PORTFOLIO_DEPOSIT_PROTECTION_LIMIT: Deposit insurance ceiling per bank
        """
        reference_env = os.getenv("PORTFOLIO_REFERENCE_CURRENCY")
        currency_config = (
            CurrencyConfig().with_reference(reference_env.strip())
            if reference_env
            else CurrencyConfig()
        )

        limit_env = os.getenv("PORTFOLIO_DEPOSIT_PROTECTION_LIMIT")
        deposit_config = (
            DepositConfig(protection_limit=float(limit_env))
            if limit_env
            else DepositConfig()
        )

        return cls(currency=currency_config, deposits=deposit_config)


# Global config instance
config = Config.from_env()
