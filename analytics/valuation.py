"""
Position valuation module.

Per-position metrics in native and reference currency:
- Current value and cost basis (average price or purchase lots)
- Total and daily gain/loss
- Reference-currency gain split into market impact and FX impact

FX decomposition:
    value_at_entry_fx = current native value at the entry FX rate
    fx_impact         = current_value_ref - value_at_entry_fx
    market_impact     = value_at_entry_fx - cost_basis_ref
    market_impact + fx_impact == gain_loss_ref
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Mapping

from analytics.currency import CurrencyConverter
from config import CurrencyConfig, config
from models import Instrument, Position


logger = logging.getLogger(__name__)


@dataclass
class ValuedPosition:
    """Position joined with its instrument and all computed figures."""
    position: Position
    instrument: Instrument
    shares: float

    # Native currency
    current_value: float
    cost_basis: float
    gain_loss: float
    gain_loss_percent: float

    # Reference currency
    current_fx_rate: float
    entry_fx_rate: float
    entry_fx_rate_repaired: bool
    current_value_ref: float
    cost_basis_ref: float
    gain_loss_ref: float
    gain_loss_ref_percent: float
    value_at_entry_fx: float
    market_impact_ref: float
    fx_impact_ref: float

    # Daily move
    daily_change: float  # Per share, native
    daily_change_percent: float
    daily_value_change: float  # Native
    daily_value_change_ref: float

    @property
    def symbol(self) -> str:
        return self.instrument.symbol

    @property
    def currency(self) -> str:
        return self.instrument.currency


def safe_number(value: float | None) -> float:
    """Return value, or 0.0 for None/NaN/inf/negative inputs."""
    if value is None:
        return 0.0
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def percent_of(part: float, whole: float) -> float:
    """part / whole * 100, defined as 0 when whole is 0."""
    return part / whole * 100 if whole else 0.0


def repair_inverted_entry_fx_rate(
    rate: float,
    currency: str,
    currency_config: CurrencyConfig | None = None,
) -> tuple[float, bool]:
    """
    Repair an entry FX rate stored the wrong way round.

    Legacy records stored some rates as "native units per reference unit".
    For currencies configured as always worth more than one reference unit,
    a rate in (0, 1) cannot be right and is replaced by its reciprocal.
    This is a heuristic; it can be switched off with
    CurrencyConfig.repair_inverted_entry_fx.

    Returns:
        Tuple of (effective rate, whether the repair was applied).
    """
    currency_config = currency_config or config.currency

    if not currency_config.repair_inverted_entry_fx:
        return rate, False

    if currency in currency_config.strong_currencies and 0 < rate < 1.0:
        logger.debug(f"Entry FX rate {rate} for {currency} looks inverted, using {1 / rate}")
        return 1 / rate, True

    return rate, False


class PositionValuator:
    """
    Values positions against the converter's rate snapshot.

    Pure: the same inputs always produce the same ValuedPosition.
    """

    def __init__(self, converter: CurrencyConverter):
        self.converter = converter
        self.config = converter.config

    def valuate(self, position: Position, instrument: Instrument) -> ValuedPosition:
        """
        Compute all valuation figures for one position.

        Args:
            position: The holding.
            instrument: The instrument the position references.

        Returns:
            ValuedPosition with native and reference-currency figures.
        """
        currency = instrument.currency
        shares = safe_number(position.shares)
        current_price = safe_number(instrument.current_price)
        previous_close = safe_number(instrument.previous_close)

        current_value = shares * current_price
        cost_basis = safe_number(position.cost_basis_native)
        gain_loss = current_value - cost_basis

        # Entry FX rates are per major unit; minor-unit amounts are scaled first
        minor_factor = self.config.minor_factor(currency)
        normalized_current_value = current_value / minor_factor
        normalized_cost_basis = cost_basis / minor_factor

        if currency == self.converter.reference:
            current_fx_rate = 1.0
            entry_fx_rate, repaired = 1.0, False
        else:
            current_fx_rate = self.converter.rate_to_reference(currency)
            entry_fx_rate, repaired = repair_inverted_entry_fx_rate(
                position.resolved_entry_fx_rate, currency, self.config
            )

        current_value_ref = current_value * current_fx_rate
        cost_basis_ref = normalized_cost_basis * entry_fx_rate
        gain_loss_ref = current_value_ref - cost_basis_ref

        value_at_entry_fx = normalized_current_value * entry_fx_rate
        fx_impact_ref = current_value_ref - value_at_entry_fx
        market_impact_ref = value_at_entry_fx - cost_basis_ref

        daily_change = current_price - previous_close
        daily_value_change = daily_change * shares

        return ValuedPosition(
            position=position,
            instrument=instrument,
            shares=shares,
            current_value=current_value,
            cost_basis=cost_basis,
            gain_loss=gain_loss,
            gain_loss_percent=percent_of(gain_loss, cost_basis),
            current_fx_rate=current_fx_rate,
            entry_fx_rate=entry_fx_rate,
            entry_fx_rate_repaired=repaired,
            current_value_ref=current_value_ref,
            cost_basis_ref=cost_basis_ref,
            gain_loss_ref=gain_loss_ref,
            gain_loss_ref_percent=percent_of(gain_loss_ref, cost_basis_ref),
            value_at_entry_fx=value_at_entry_fx,
            market_impact_ref=market_impact_ref,
            fx_impact_ref=fx_impact_ref,
            daily_change=daily_change,
            daily_change_percent=percent_of(daily_change, previous_close),
            daily_value_change=daily_value_change,
            daily_value_change_ref=daily_value_change * current_fx_rate,
        )

    def valuate_all(
        self,
        positions: Iterable[Position],
        instruments: Mapping[str, Instrument],
    ) -> list[ValuedPosition]:
        """
        Value every position whose instrument is known.

        Positions referencing a missing instrument are dropped (logged),
        never raised.
        """
        valued = []
        for position in positions:
            instrument = instruments.get(position.instrument_id)
            if instrument is None:
                logger.warning(
                    f"Position {position.id} references unknown instrument "
                    f"{position.instrument_id}, skipping"
                )
                continue
            valued.append(self.valuate(position, instrument))
        return valued


def valuate_position(
    position: Position,
    instrument: Instrument,
    converter: CurrencyConverter,
) -> ValuedPosition:
    """Convenience function for valuing a single position."""
    return PositionValuator(converter).valuate(position, instrument)
