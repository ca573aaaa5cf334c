"""Tests for dividend projection."""
from datetime import date

import pytest

from analytics.currency import CurrencyConverter
from analytics.dividends import (
    DividendProjector,
    DividendStatus,
    add_months,
    project_annual_income,
    roll_forward,
    upcoming_payouts,
)
from analytics.valuation import PositionValuator
from models import DividendDate, DividendFrequency


@pytest.fixture
def converter(rates):
    return CurrencyConverter(rates)


@pytest.fixture
def projector(converter):
    return DividendProjector(converter)


@pytest.fixture
def quarterly_dates():
    return (
        DividendDate(ex_date=date(2026, 3, 2), pay_date=date(2026, 3, 16)),
        DividendDate(ex_date=date(2026, 6, 1), pay_date=date(2026, 6, 15)),
        DividendDate(ex_date=date(2026, 9, 1), pay_date=date(2026, 9, 15)),
        DividendDate(ex_date=date(2026, 12, 1), pay_date=date(2026, 12, 15)),
    )


@pytest.mark.parametrize("frequency,factor", [
    (DividendFrequency.MONTHLY, 12),
    (DividendFrequency.QUARTERLY, 4),
    (DividendFrequency.SEMI_ANNUALLY, 2),
    (DividendFrequency.ANNUALLY, 1),
])
def test_annualization_by_frequency(projector, make_instrument, make_position, frequency, factor):
    """Per-payment amount times payments per year."""
    instrument = make_instrument(
        "DIV", currency="CHF", dividend_amount=0.60, dividend_frequency=frequency
    )
    position = make_position(instrument, shares=1)

    assert projector.annual_income_native(position, instrument) == pytest.approx(0.60 * factor)


def test_quarterly_example(projector, make_instrument, make_position):
    """0.60 per quarter is 2.40 per year."""
    instrument = make_instrument(
        "DIV", currency="CHF", dividend_amount=0.60,
        dividend_frequency=DividendFrequency.QUARTERLY,
    )
    position = make_position(instrument, shares=1)

    assert projector.project_annual_income(position, instrument) == pytest.approx(2.40)


def test_unknown_frequency_counts_as_annual(projector, make_instrument, make_position):
    instrument = make_instrument("DIV", currency="CHF", dividend_amount=3.0)
    position = make_position(instrument, shares=2)

    assert projector.annual_income_native(position, instrument) == pytest.approx(6.0)


def test_yield_fallback(projector, make_instrument, make_position):
    """Without a per-payment amount the trailing yield is applied to market value."""
    instrument = make_instrument("YLD", currency="CHF", price=100.0, dividend_yield=3.0)
    position = make_position(instrument, shares=10)

    assert projector.annual_income_native(position, instrument) == pytest.approx(30.0)


def test_amount_takes_precedence_over_yield(projector, make_instrument, make_position):
    instrument = make_instrument(
        "BOTH", currency="CHF", price=100.0, dividend_amount=1.0, dividend_yield=10.0,
        dividend_frequency=DividendFrequency.ANNUALLY,
    )
    position = make_position(instrument, shares=10)

    assert projector.annual_income_native(position, instrument) == pytest.approx(10.0)


def test_no_dividend_data_is_zero(projector, make_instrument, make_position):
    instrument = make_instrument("NONE", currency="USD")
    position = make_position(instrument)

    assert projector.project_annual_income(position, instrument) == 0.0
    assert projector.upcoming_payouts(position, instrument, date(2026, 1, 1)) == []


def test_income_converted_from_payout_currency(converter, make_instrument, make_position):
    """Dividends paid in USD on a CHF listing convert at the USD rate."""
    instrument = make_instrument(
        "DUAL", currency="CHF", dividend_amount=2.0, dividend_currency="USD",
        dividend_frequency=DividendFrequency.ANNUALLY,
    )
    position = make_position(instrument, shares=10)

    assert project_annual_income(position, instrument, converter) == pytest.approx(25.0)


@pytest.mark.parametrize("currency,price,dividend_yield,dividend_currency,shares,expected_ref", [
    ("GBp", 500.0, 4.0, "GBP", 100, 25.0),
    ("USD", 100.0, 3.0, "EUR", 10, 37.5),
    ("CHF", 100.0, 3.0, "USD", 10, 30.0),
])
def test_yield_income_stays_in_quote_currency(projector, make_instrument, make_position, currency,
                                              price, dividend_yield, dividend_currency, shares,
                                              expected_ref):
    """Yield applies to market value, so the payout currency does not change its unit."""
    instrument = make_instrument(
        "YLD", currency=currency, price=price, dividend_yield=dividend_yield,
        dividend_currency=dividend_currency,
    )
    position = make_position(instrument, shares=shares)

    assert projector.income_currency(instrument) == currency
    assert projector.project_annual_income(position, instrument) == pytest.approx(expected_ref)


def test_yield_payouts_in_minor_unit(projector, make_instrument, make_position):
    """A 4% yield on 100 x 500 GBp pays 500 GBp per quarter."""
    instrument = make_instrument(
        "ULVR.L", currency="GBp", price=500.0, dividend_yield=4.0, dividend_currency="GBP",
        dividend_frequency=DividendFrequency.QUARTERLY, dividend_pay_date=date(2026, 3, 20),
    )
    position = make_position(instrument, shares=100)

    payouts = projector.upcoming_payouts(position, instrument, date(2026, 3, 1))

    assert len(payouts) == 4
    assert payouts[0].currency == "GBp"
    assert payouts[0].amount == pytest.approx(500.0)
    assert payouts[0].amount_ref == pytest.approx(6.25)


def test_upcoming_from_explicit_dates(projector, make_instrument, make_position, quarterly_dates):
    instrument = make_instrument(
        "Q", currency="CHF", dividend_amount=0.5,
        dividend_frequency=DividendFrequency.QUARTERLY, dividend_dates=quarterly_dates,
    )
    position = make_position(instrument, shares=10)

    payouts = projector.upcoming_payouts(position, instrument, date(2026, 7, 1))

    assert [p.date for p in payouts] == [date(2026, 9, 15), date(2026, 12, 15)]
    assert payouts[0].ex_date == date(2026, 9, 1)
    assert all(p.amount == pytest.approx(5.0) for p in payouts)


def test_pay_date_on_as_of_is_upcoming(projector, make_instrument, make_position, quarterly_dates):
    instrument = make_instrument(
        "Q", currency="CHF", dividend_amount=0.5,
        dividend_frequency=DividendFrequency.QUARTERLY, dividend_dates=quarterly_dates,
    )
    position = make_position(instrument, shares=1)

    payouts = projector.upcoming_payouts(position, instrument, date(2026, 12, 15))

    assert [p.date for p in payouts] == [date(2026, 12, 15)]


def test_recurring_quarterly_from_single_date(converter, make_instrument, make_position):
    """One known pay date expands to four quarterly dates rolled past as_of."""
    instrument = make_instrument(
        "REC", currency="USD", dividend_amount=0.5,
        dividend_frequency=DividendFrequency.QUARTERLY,
        dividend_ex_date=date(2025, 4, 25), dividend_pay_date=date(2025, 5, 10),
    )
    position = make_position(instrument, shares=10)

    payouts = upcoming_payouts(position, instrument, date(2026, 1, 15), converter)

    assert [p.date for p in payouts] == [
        date(2026, 2, 10),
        date(2026, 5, 10),
        date(2026, 8, 10),
        date(2026, 11, 10),
    ]
    assert all(p.ex_date is None for p in payouts)
    assert payouts[0].amount == pytest.approx(5.0)
    assert payouts[0].amount_ref == pytest.approx(6.25)
    assert payouts[0].currency == "USD"


def test_recurring_keeps_ex_date_for_base_occurrence(projector, make_instrument, make_position):
    instrument = make_instrument(
        "ANN", currency="CHF", dividend_amount=1.0,
        dividend_frequency=DividendFrequency.ANNUALLY,
        dividend_ex_date=date(2026, 4, 20), dividend_pay_date=date(2026, 4, 25),
    )
    position = make_position(instrument, shares=1)

    payouts = projector.upcoming_payouts(position, instrument, date(2026, 2, 1))

    assert len(payouts) == 1
    assert payouts[0].date == date(2026, 4, 25)
    assert payouts[0].ex_date == date(2026, 4, 20)


def test_portfolio_payouts_within_horizon(converter, make_instrument, make_position):
    instrument = make_instrument(
        "REC", currency="CHF", dividend_amount=0.5,
        dividend_frequency=DividendFrequency.QUARTERLY,
        dividend_pay_date=date(2025, 5, 10),
    )
    position = make_position(instrument, shares=10)
    valued = PositionValuator(converter).valuate_all([position], {instrument.id: instrument})

    payouts = DividendProjector(converter).upcoming_portfolio_payouts(
        valued, date(2026, 1, 15), horizon_days=30
    )

    assert [p.date for p in payouts] == [date(2026, 2, 10)]


def test_current_period_within_buffer_keeps_paid_period(projector, make_instrument, quarterly_dates):
    """A period stays current for a week after its pay date."""
    instrument = make_instrument(
        "Q", currency="CHF", dividend_frequency=DividendFrequency.QUARTERLY,
        dividend_dates=quarterly_dates,
    )

    period = projector.current_period(instrument, date(2026, 3, 20))

    assert period.label == "Q1"
    assert period.status == DividendStatus.PAID
    assert period.pay_date == date(2026, 3, 16)


def test_current_period_switches_after_buffer(projector, make_instrument, quarterly_dates):
    instrument = make_instrument(
        "Q", currency="CHF", dividend_frequency=DividendFrequency.QUARTERLY,
        dividend_dates=quarterly_dates,
    )

    period = projector.current_period(instrument, date(2026, 3, 23))

    assert period.label == "Q2"
    assert period.status == DividendStatus.UPCOMING


def test_current_period_ex_dividend(projector, make_instrument, quarterly_dates):
    instrument = make_instrument(
        "Q", currency="CHF", dividend_frequency=DividendFrequency.QUARTERLY,
        dividend_dates=quarterly_dates,
    )

    period = projector.current_period(instrument, date(2026, 6, 5))

    assert period.label == "Q2"
    assert period.status == DividendStatus.EX_DIVIDEND


def test_current_period_after_last_date(projector, make_instrument, quarterly_dates):
    instrument = make_instrument(
        "Q", currency="CHF", dividend_frequency=DividendFrequency.QUARTERLY,
        dividend_dates=quarterly_dates,
    )

    period = projector.current_period(instrument, date(2027, 1, 10))

    assert period.status == DividendStatus.UPCOMING
    assert period.pay_date is None
    assert period.label == "Q1"


def test_current_period_from_single_dates(projector, make_instrument):
    instrument = make_instrument(
        "S", currency="CHF",
        dividend_ex_date=date(2026, 3, 1), dividend_pay_date=date(2026, 3, 20),
    )

    assert projector.current_period(instrument, date(2026, 2, 1)).status == DividendStatus.UPCOMING
    assert projector.current_period(instrument, date(2026, 3, 5)).status == DividendStatus.EX_DIVIDEND
    assert projector.current_period(instrument, date(2026, 3, 20)).status == DividendStatus.PAID


def test_current_period_without_dates(projector, make_instrument):
    instrument = make_instrument("S", currency="CHF")

    assert projector.current_period(instrument, date(2026, 3, 5)).status == DividendStatus.UNKNOWN


def test_monthly_calendar(converter, make_instrument, make_position, quarterly_dates):
    quarterly = make_instrument(
        "Q", currency="CHF", dividend_amount=1.0,
        dividend_frequency=DividendFrequency.QUARTERLY, dividend_dates=quarterly_dates,
    )
    monthly = make_instrument(
        "M", currency="USD", dividend_amount=0.1,
        dividend_frequency=DividendFrequency.MONTHLY,
    )
    positions = [make_position(quarterly, shares=10), make_position(monthly, shares=8)]
    valued = PositionValuator(converter).valuate_all(
        positions, {quarterly.id: quarterly, monthly.id: monthly}
    )

    calendar = DividendProjector(converter).monthly_calendar(valued)

    assert list(calendar.index) == list(range(1, 13))
    assert calendar[1] == pytest.approx(1.0)
    assert calendar[3] == pytest.approx(11.0)
    assert calendar.sum() == pytest.approx(40.0 + 12.0)


def test_monthly_calendar_uses_month_after_ex_date(converter, make_instrument, make_position):
    """Entries with only an ex-date pay the following month."""
    instrument = make_instrument(
        "EX", currency="CHF", dividend_amount=2.0,
        dividend_frequency=DividendFrequency.ANNUALLY,
        dividend_dates=(DividendDate(ex_date=date(2026, 12, 10)),),
    )
    valued = PositionValuator(converter).valuate_all(
        [make_position(instrument, shares=1)], {instrument.id: instrument}
    )

    calendar = DividendProjector(converter).monthly_calendar(valued)

    assert calendar[1] == pytest.approx(2.0)
    assert calendar.sum() == pytest.approx(2.0)


def test_too_many_dividend_dates_rejected(make_instrument):
    dates = tuple(DividendDate(pay_date=date(2026, 1, day)) for day in range(1, 14))

    with pytest.raises(ValueError, match="at most"):
        make_instrument("MANY", dividend_dates=dates)


def test_add_months_clips_to_month_end():
    assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)


def test_roll_forward():
    assert roll_forward(date(2024, 5, 10), date(2026, 5, 11)) == date(2027, 5, 10)
    assert roll_forward(date(2026, 5, 10), date(2026, 5, 10)) == date(2026, 5, 10)


@pytest.mark.parametrize("pay_date,as_of,expected", [
    (date(2025, 5, 10), date(2026, 1, 15), [date(2026, 5, 10), date(2026, 11, 10)]),
    (date(2026, 3, 31), date(2026, 2, 1), [date(2026, 3, 31), date(2026, 9, 30)]),
    (date(2025, 11, 10), date(2026, 6, 1), [date(2026, 11, 10), date(2027, 5, 10)]),
])
def test_recurring_semi_annual_from_single_date(projector, make_instrument, make_position,
                                                pay_date, as_of, expected):
    """One known pay date implies a second payment six months later."""
    instrument = make_instrument(
        "SEMI", currency="CHF", dividend_amount=1.0,
        dividend_frequency=DividendFrequency.SEMI_ANNUALLY, dividend_pay_date=pay_date,
    )
    position = make_position(instrument, shares=10)

    payouts = projector.upcoming_payouts(position, instrument, as_of)

    assert [p.date for p in payouts] == expected
    assert all(p.amount == pytest.approx(10.0) for p in payouts)
