"""Shared fixtures for valuation tests."""
import pytest

from models import ExchangeRateTable, Instrument, InstrumentCategory, Position


@pytest.fixture
def rates():
    """CHF snapshot: 1 USD = 1.25 CHF, 1 EUR = 1.0 CHF, 1 GBP = 1.25 CHF."""
    return ExchangeRateTable(
        reference="CHF",
        rates={"USD": 0.8, "EUR": 1.0, "GBP": 0.8},
    )


@pytest.fixture
def make_instrument():
    """Factory for instruments with sensible defaults."""
    def _make(symbol="TEST", currency="CHF", price=100.0, previous_close=None, **kwargs):
        return Instrument(
            id=kwargs.pop("id", symbol.lower()),
            symbol=symbol,
            name=kwargs.pop("name", symbol),
            currency=currency,
            current_price=price,
            previous_close=price if previous_close is None else previous_close,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_fund(make_instrument):
    """Factory for fund instruments."""
    def _make(symbol="FUND", **kwargs):
        return make_instrument(symbol=symbol, category=InstrumentCategory.FUND, **kwargs)
    return _make


@pytest.fixture
def make_position():
    """Factory for positions referencing an instrument."""
    def _make(instrument, shares=10.0, avg_entry_price=100.0, **kwargs):
        return Position(
            id=kwargs.pop("id", f"pos-{instrument.id}"),
            instrument_id=instrument.id,
            shares=shares,
            avg_entry_price=avg_entry_price,
            **kwargs,
        )
    return _make
