"""
Models package initialization.

Exports commonly used records for convenient imports:
    from models import Instrument, Position, FixedDeposit, etc.
"""

from models.entities import (
    MAX_DIVIDEND_DATES,
    AccountType,
    DividendDate,
    DividendFrequency,
    ExchangeRateTable,
    FeeFrequency,
    FixedDeposit,
    Instrument,
    InstrumentCategory,
    Position,
    PurchaseLot,
)

__all__ = [
    "MAX_DIVIDEND_DATES",
    "AccountType",
    "DividendDate",
    "DividendFrequency",
    "ExchangeRateTable",
    "FeeFrequency",
    "FixedDeposit",
    "Instrument",
    "InstrumentCategory",
    "Position",
    "PurchaseLot",
]
