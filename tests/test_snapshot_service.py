"""Tests for snapshot loading."""
import json
from datetime import date

import pytest

from models import AccountType, DividendFrequency, InstrumentCategory
from services.snapshot_service import SnapshotError, load_snapshot, parse_snapshot


@pytest.fixture
def document():
    return {
        "reference_currency": "CHF",
        "rates": {"USD": 0.8, "EUR": 1.0},
        "rates_as_of": "2026-03-02T06:00:00",
        "instruments": [
            {
                "id": "aapl",
                "symbol": "AAPL",
                "name": "Apple",
                "currency": "USD",
                "current_price": 110.0,
                "previous_close": 100.0,
                "sector": "Technology",
                "country": "USA",
                "dividend_amount": 0.25,
                "dividend_frequency": "quarterly",
                "dividend_dates": [{"ex_date": "2026-05-08", "pay_date": "2026-05-14"}],
            },
            {
                "id": "vwrl",
                "symbol": "VWRL.SW",
                "currency": "CHF",
                "current_price": 100.0,
                "category": "fund",
                "country_weights": {"USA": 60, "Japan": 6},
            },
        ],
        "positions": [
            {
                "id": "p1",
                "instrument_id": "aapl",
                "shares": 10,
                "avg_entry_price": 100.0,
                "lots": [
                    {"shares": 4, "price": 90.0, "date": "2024-01-10", "fx_rate": 0.88},
                    {"shares": 6, "price": 106.67, "date": "2025-02-03", "fx_rate": 0.91},
                ],
            },
            {"id": "p2", "instrument_id": "vwrl", "shares": 5, "avg_entry_price": 80.0},
        ],
        "deposits": [
            {
                "id": "d1",
                "bank_name": "VIAC",
                "amount": 20000,
                "account_type": "retirement",
                "auto_contribution": True,
                "monthly_contribution": 500,
                "last_contribution_month": "2026-02",
            },
        ],
    }


def test_parse_snapshot(document):
    snapshot = parse_snapshot(document)

    assert snapshot.rates.reference == "CHF"
    assert snapshot.rates.get("USD") == 0.8
    assert snapshot.rates.as_of.year == 2026
    assert [i.symbol for i in snapshot.instruments] == ["AAPL", "VWRL.SW"]
    assert len(snapshot.positions) == 2
    assert len(snapshot.deposits) == 1


def test_instrument_fields(document):
    aapl, vwrl = parse_snapshot(document).instruments

    assert aapl.dividend_frequency == DividendFrequency.QUARTERLY
    assert aapl.dividend_dates[0].pay_date == date(2026, 5, 14)
    assert vwrl.category == InstrumentCategory.FUND
    assert vwrl.name == "VWRL.SW"
    assert vwrl.previous_close == 100.0
    assert vwrl.country_weights["USA"] == 60


def test_position_lots(document):
    position = parse_snapshot(document).positions[0]

    assert len(position.lots) == 2
    assert position.lots[0].purchase_date == date(2024, 1, 10)
    assert position.entry_fx_rate is None


def test_deposit_defaults(document):
    deposit = parse_snapshot(document).deposits[0]

    assert deposit.currency == "CHF"
    assert deposit.account_type == AccountType.RETIREMENT
    assert deposit.auto_contribution


def test_instruments_by_id(document):
    snapshot = parse_snapshot(document)

    assert set(snapshot.instruments_by_id) == {"aapl", "vwrl"}


def test_missing_rates_use_fallback(document, caplog):
    del document["rates"]

    snapshot = parse_snapshot(document)

    assert "USD" in snapshot.rates
    assert "fallback" in caplog.text


def test_invalid_record_names_its_index(document):
    document["positions"][1]["shares"] = -5

    with pytest.raises(SnapshotError, match="position record #1"):
        parse_snapshot(document)


def test_missing_required_field(document):
    del document["instruments"][0]["symbol"]

    with pytest.raises(SnapshotError, match="instrument record #0"):
        parse_snapshot(document)


def test_unknown_enum_value(document):
    document["instruments"][0]["dividend_frequency"] = "weekly"

    with pytest.raises(SnapshotError):
        parse_snapshot(document)


def test_lot_mismatch_rejected(document):
    document["positions"][0]["shares"] = 11

    with pytest.raises(SnapshotError, match="lot total"):
        parse_snapshot(document)


def test_load_snapshot(tmp_path, document):
    path = tmp_path / "portfolio.json"
    path.write_text(json.dumps(document), encoding="utf-8")

    snapshot = load_snapshot(path)

    assert len(snapshot.positions) == 2


def test_load_snapshot_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(SnapshotError, match="not valid JSON"):
        load_snapshot(path)


def test_load_snapshot_requires_object(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(SnapshotError, match="JSON object"):
        load_snapshot(path)
