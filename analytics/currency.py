"""
Currency conversion module.

Converts amounts between currency codes through the reference currency of
an injected ExchangeRateTable.

- Minor-unit quotations (e.g. GBp, 1/100 GBP) are normalized transparently
- Missing rates fall back to 1.0 and are logged, never raised
"""

import logging
import math

from config import CurrencyConfig, config
from models import ExchangeRateTable


logger = logging.getLogger(__name__)


def _rate(rates: ExchangeRateTable, currency: str) -> float:
    """Look up a rate, treating missing or unusable entries as 1.0."""
    rate = rates.get(currency)
    if rate is None or not math.isfinite(rate) or rate <= 0:
        logger.warning(
            f"No usable exchange rate for {currency} (reference {rates.reference}), using 1.0"
        )
        return 1.0
    return rate


def convert(
    amount: float,
    from_currency: str,
    to_currency: str,
    rates: ExchangeRateTable,
    currency_config: CurrencyConfig | None = None,
) -> float:
    """
    Convert an amount from one currency to another.

    Args:
        amount: Amount in from_currency.
        from_currency: Source currency code (may be a minor-unit code).
        to_currency: Target currency code (may be a minor-unit code).
        rates: Rate snapshot (units per one reference unit).
        currency_config: Optional override of the minor-unit configuration.

    Returns:
        Converted amount. Unknown currencies convert at 1.0.
    """
    if from_currency == to_currency:
        return amount

    currency_config = currency_config or config.currency

    # Leave minor units on the way in
    from_factor = currency_config.minor_factor(from_currency)
    if from_factor != 1:
        amount = amount / from_factor
        from_currency = currency_config.major_currency(from_currency)

    to_factor = currency_config.minor_factor(to_currency)
    to_major = currency_config.major_currency(to_currency)

    if from_currency == to_major:
        result = amount
    else:
        reference = rates.reference
        in_reference = amount if from_currency == reference else amount / _rate(rates, from_currency)
        result = in_reference if to_major == reference else in_reference * _rate(rates, to_major)

    # Enter minor units on the way out
    return result * to_factor


class CurrencyConverter:
    """
    Converter bound to one rate snapshot.

    All portfolio calculators receive a converter instead of looking up
    rates on their own.
    """

    def __init__(self, rates: ExchangeRateTable, currency_config: CurrencyConfig | None = None):
        self.rates = rates
        self.config = currency_config or config.currency

    @property
    def reference(self) -> str:
        return self.rates.reference

    def convert(self, amount: float, from_currency: str, to_currency: str) -> float:
        return convert(amount, from_currency, to_currency, self.rates, self.config)

    def to_reference(self, amount: float, from_currency: str) -> float:
        """Convert an amount into the reference currency."""
        return self.convert(amount, from_currency, self.reference)

    def rate_to_reference(self, currency: str) -> float:
        """Value of one unit of currency, expressed in the reference currency."""
        if currency == self.reference:
            return 1.0
        return self.to_reference(1.0, currency)

    def is_minor_unit(self, currency: str) -> bool:
        return self.config.minor_factor(currency) != 1


def format_money(
    amount: float,
    currency: str,
    rates: ExchangeRateTable | None = None,
    currency_config: CurrencyConfig | None = None,
) -> str:
    """
    Format an amount with its currency code.

    Minor-unit amounts keep three decimals. When a rate snapshot is given and
    the currency differs from the reference, the reference equivalent is
    appended in parentheses, e.g. "1,234.50 USD (1,082.89 CHF)".
    """
    currency_config = currency_config or config.currency

    decimals = 3 if currency_config.minor_factor(currency) != 1 else 2
    formatted = f"{amount:,.{decimals}f} {currency}"

    if rates is not None and currency != rates.reference:
        in_reference = convert(amount, currency, rates.reference, rates, currency_config)
        formatted += f" ({in_reference:,.2f} {rates.reference})"

    return formatted
