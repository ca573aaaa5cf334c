"""
Snapshot Service - Loads a portfolio snapshot from a JSON document.

The snapshot is the read-only input of one valuation pass: instruments,
positions, fixed deposits and an exchange rate table. Field names follow
the record attributes in models.entities; dates are ISO strings.

Example document:
    {
      "reference_currency": "CHF",
      "rates": {"USD": 1.14, "EUR": 1.06, "GBP": 0.91},
      "instruments": [{"id": "nesn", "symbol": "NESN.SW", "name": "Nestle",
                       "currency": "CHF", "current_price": 88.0,
                       "previous_close": 87.5}],
      "positions": [{"id": "p1", "instrument_id": "nesn", "shares": 10,
                     "avg_entry_price": 95.0}],
      "deposits": []
    }
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable

from config import config
from models import (
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


logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """Raised when a snapshot document cannot be turned into records."""


@dataclass
class PortfolioSnapshot:
    """Everything one valuation pass needs."""
    rates: ExchangeRateTable
    instruments: list[Instrument] = field(default_factory=list)
    positions: list[Position] = field(default_factory=list)
    deposits: list[FixedDeposit] = field(default_factory=list)

    @property
    def instruments_by_id(self) -> dict[str, Instrument]:
        return {instrument.id: instrument for instrument in self.instruments}


def _date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


def _enum(enum_cls, value: str | None):
    return enum_cls(value) if value else None


def _parse_instrument(raw: dict) -> Instrument:
    return Instrument(
        id=str(raw["id"]),
        symbol=raw["symbol"],
        name=raw.get("name") or raw["symbol"],
        currency=raw["currency"],
        current_price=float(raw.get("current_price", 0.0)),
        previous_close=float(raw.get("previous_close", raw.get("current_price", 0.0))),
        category=InstrumentCategory(raw.get("category", InstrumentCategory.EQUITY.value)),
        isin=raw.get("isin"),
        valor=raw.get("valor"),
        sector=raw.get("sector"),
        country=raw.get("country"),
        sector_weights=raw.get("sector_weights"),
        country_weights=raw.get("country_weights"),
        dividend_amount=raw.get("dividend_amount"),
        dividend_yield=raw.get("dividend_yield"),
        dividend_currency=raw.get("dividend_currency"),
        dividend_frequency=_enum(DividendFrequency, raw.get("dividend_frequency")),
        dividend_ex_date=_date(raw.get("dividend_ex_date")),
        dividend_pay_date=_date(raw.get("dividend_pay_date")),
        dividend_dates=tuple(
            DividendDate(ex_date=_date(d.get("ex_date")), pay_date=_date(d.get("pay_date")))
            for d in raw.get("dividend_dates") or ()
        ),
        target_price=raw.get("target_price"),
        sell_limit=raw.get("sell_limit"),
    )


def _parse_position(raw: dict) -> Position:
    return Position(
        id=str(raw["id"]),
        instrument_id=str(raw["instrument_id"]),
        shares=float(raw["shares"]),
        avg_entry_price=float(raw.get("avg_entry_price", 0.0)),
        entry_fx_rate=raw.get("entry_fx_rate"),
        lots=tuple(
            PurchaseLot(
                shares=float(lot["shares"]),
                price=float(lot["price"]),
                purchase_date=_date(lot.get("purchase_date") or lot.get("date")),
                fx_rate=lot.get("fx_rate"),
            )
            for lot in raw.get("lots") or ()
        ),
        buy_date=_date(raw.get("buy_date")),
    )


def _parse_deposit(raw: dict) -> FixedDeposit:
    return FixedDeposit(
        id=str(raw["id"]),
        bank_name=raw["bank_name"],
        amount=float(raw["amount"]),
        currency=raw.get("currency", config.currency.reference_currency),
        interest_rate=float(raw.get("interest_rate", 0.0)),
        account_type=AccountType(raw.get("account_type", AccountType.SAVINGS.value)),
        fee=raw.get("fee"),
        fee_frequency=_enum(FeeFrequency, raw.get("fee_frequency")),
        start_date=_date(raw.get("start_date")),
        maturity_date=_date(raw.get("maturity_date")),
        auto_contribution=bool(raw.get("auto_contribution", False)),
        monthly_contribution=raw.get("monthly_contribution"),
        last_contribution_month=raw.get("last_contribution_month"),
    )


def _parse_records(kind: str, items: list, parser: Callable[[dict], Any]) -> list:
    records = []
    for index, raw in enumerate(items):
        try:
            records.append(parser(raw))
        except (KeyError, TypeError, ValueError) as e:
            raise SnapshotError(f"Invalid {kind} record #{index}: {e}") from e
    return records


def parse_snapshot(document: dict) -> PortfolioSnapshot:
    """
    Build records from a decoded snapshot document.

    Raises:
        SnapshotError: If any record is malformed or violates an invariant.
    """
    reference = document.get("reference_currency") or config.currency.reference_currency

    raw_rates = document.get("rates")
    if raw_rates:
        try:
            as_of = document.get("rates_as_of")
            rates = ExchangeRateTable(
                reference=reference,
                rates={code: float(rate) for code, rate in raw_rates.items()},
                as_of=datetime.fromisoformat(as_of) if as_of else None,
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise SnapshotError(f"Invalid rate table: {e}") from e
    else:
        logger.warning("Snapshot has no exchange rates, using static fallback rates")
        rates = ExchangeRateTable.fallback(reference)

    snapshot = PortfolioSnapshot(
        rates=rates,
        instruments=_parse_records("instrument", document.get("instruments") or [], _parse_instrument),
        positions=_parse_records("position", document.get("positions") or [], _parse_position),
        deposits=_parse_records("deposit", document.get("deposits") or [], _parse_deposit),
    )

    logger.info(
        f"Loaded snapshot: {len(snapshot.instruments)} instruments, "
        f"{len(snapshot.positions)} positions, {len(snapshot.deposits)} deposits"
    )
    return snapshot


def load_snapshot(path: str | Path) -> PortfolioSnapshot:
    """
    Load a snapshot file.

    Raises:
        SnapshotError: If the file is not valid JSON or holds invalid records.
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            document = json.load(f)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"{path} is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise SnapshotError(f"{path} must contain a JSON object")

    return parse_snapshot(document)
