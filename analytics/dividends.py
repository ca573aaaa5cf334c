"""
Dividend projection module.

Projected income and payout schedules per position:
- Annualized income (per-payment amount x frequency, or trailing yield)
- Upcoming payout events from explicit dates or a single recurring date
- Current dividend period status (upcoming / ex-dividend / paid)
- Twelve-month payout calendar in reference currency

Contract: Instrument.dividend_amount is the amount PER PAYMENT per share,
not per year. Missing data degrades to zero income, never to an error.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Sequence

import pandas as pd

from analytics.currency import CurrencyConverter
from analytics.valuation import ValuedPosition, safe_number
from config import config
from models import DividendFrequency, Instrument, Position


logger = logging.getLogger(__name__)

# Month offsets synthesized from a single recurring pay date
RECURRING_OFFSETS = {
    DividendFrequency.SEMI_ANNUALLY: (0, 6),
    DividendFrequency.QUARTERLY: (0, 3, 6, 9),
}


class DividendStatus(str, Enum):
    """Where the current dividend period stands."""
    UPCOMING = "upcoming"
    EX_DIVIDEND = "ex-dividend"
    PAID = "paid"
    UNKNOWN = "unknown"


@dataclass
class DividendPayout:
    """A single expected dividend payment for a position."""
    symbol: str
    date: date
    amount: float  # In the income currency (payout or quote)
    currency: str
    amount_ref: float
    ex_date: date | None = None


@dataclass
class DividendPeriod:
    """The dividend period currently relevant for display."""
    ex_date: date | None
    pay_date: date | None
    status: DividendStatus
    label: str = ""


def add_months(day: date, months: int) -> date:
    """Calendar month arithmetic, clipping to the end of shorter months."""
    return (pd.Timestamp(day) + pd.DateOffset(months=months)).date()


def roll_forward(day: date, as_of: date) -> date:
    """Move a date forward by whole years until it is on or after as_of."""
    years = 0
    rolled = day
    while rolled < as_of:
        years += 1
        rolled = add_months(day, 12 * years)
    return rolled


def recurring_pay_dates(base: date, frequency: DividendFrequency | None) -> list[date]:
    """Pay dates implied by one known pay date and the frequency."""
    offsets = RECURRING_OFFSETS.get(frequency, (0,))
    return [add_months(base, offset) for offset in offsets]


def _period_label(frequency: DividendFrequency | None, index: int) -> str:
    if frequency == DividendFrequency.QUARTERLY:
        return f"Q{index + 1}"
    if frequency == DividendFrequency.SEMI_ANNUALLY:
        return f"H{index + 1}"
    if frequency == DividendFrequency.ANNUALLY:
        return "FY"
    return ""


def _simple_status(ex_date: date | None, pay_date: date | None, as_of: date) -> DividendStatus:
    if ex_date is None and pay_date is None:
        return DividendStatus.UNKNOWN
    if pay_date is not None and as_of >= pay_date:
        return DividendStatus.PAID
    if ex_date is not None and as_of >= ex_date:
        return DividendStatus.EX_DIVIDEND
    return DividendStatus.UPCOMING


class DividendProjector:
    """
    Projects dividend income for positions.

    Per-payment amounts take precedence over trailing yield when both
    are known.
    """

    def __init__(self, converter: CurrencyConverter):
        self.converter = converter
        self.config = config.dividends

    @staticmethod
    def income_currency(instrument: Instrument) -> str:
        """
        Currency the projected income is expressed in.

        Per-payment amounts are in the payout currency; yield-based income is
        derived from market value and stays in the quote currency.
        """
        if safe_number(instrument.dividend_amount):
            return instrument.payout_currency
        return instrument.currency

    def annual_income_native(self, position: Position, instrument: Instrument) -> float:
        """Annual dividend income in income_currency()."""
        shares = safe_number(position.shares)
        factor = DividendFrequency.factor_of(instrument.dividend_frequency)

        amount = safe_number(instrument.dividend_amount)
        if amount:
            return amount * shares * factor

        dividend_yield = safe_number(instrument.dividend_yield)
        if dividend_yield:
            return shares * safe_number(instrument.current_price) * dividend_yield / 100

        return 0.0

    def payment_amount_native(self, position: Position, instrument: Instrument) -> float:
        """Amount of a single payment in income_currency()."""
        amount = safe_number(instrument.dividend_amount)
        if amount:
            return amount * safe_number(position.shares)

        factor = DividendFrequency.factor_of(instrument.dividend_frequency)
        return self.annual_income_native(position, instrument) / factor

    def project_annual_income(self, position: Position, instrument: Instrument) -> float:
        """Annual dividend income in the reference currency."""
        annual = self.annual_income_native(position, instrument)
        if not annual:
            return 0.0
        return self.converter.to_reference(annual, self.income_currency(instrument))

    def _scheduled_dates(self, instrument: Instrument, as_of: date) -> list[tuple[date, date | None]]:
        """(pay_date, ex_date) pairs on or after as_of."""
        if instrument.dividend_dates:
            return [
                (entry.pay_date, entry.ex_date)
                for entry in instrument.dividend_dates
                if entry.pay_date is not None and entry.pay_date >= as_of
            ]

        if instrument.dividend_pay_date is not None:
            base_ex = instrument.dividend_ex_date
            scheduled = []
            for pay_date in recurring_pay_dates(
                instrument.dividend_pay_date, instrument.dividend_frequency
            ):
                rolled = roll_forward(pay_date, as_of)
                # Ex-date only known for the base occurrence
                ex_date = base_ex if rolled == instrument.dividend_pay_date else None
                scheduled.append((rolled, ex_date))
            return scheduled

        return []

    def upcoming_payouts(
        self,
        position: Position,
        instrument: Instrument,
        as_of: date,
    ) -> list[DividendPayout]:
        """
        Upcoming payouts for one position, sorted by pay date.

        Instruments without any known date produce no events (their income
        is still part of the annual projection).
        """
        amount = self.payment_amount_native(position, instrument)
        if not amount:
            return []

        currency = self.income_currency(instrument)
        amount_ref = self.converter.to_reference(amount, currency)

        payouts = [
            DividendPayout(
                symbol=instrument.symbol,
                date=pay_date,
                amount=amount,
                currency=currency,
                amount_ref=amount_ref,
                ex_date=ex_date,
            )
            for pay_date, ex_date in self._scheduled_dates(instrument, as_of)
        ]
        payouts.sort(key=lambda p: p.date)
        return payouts

    def upcoming_portfolio_payouts(
        self,
        valued: Iterable[ValuedPosition],
        as_of: date,
        horizon_days: int | None = None,
    ) -> list[DividendPayout]:
        """All upcoming payouts across positions, optionally within a horizon."""
        payouts = []
        for vp in valued:
            payouts.extend(self.upcoming_payouts(vp.position, vp.instrument, as_of))

        if horizon_days is not None:
            limit = as_of + timedelta(days=horizon_days)
            payouts = [p for p in payouts if p.date <= limit]

        payouts.sort(key=lambda p: (p.date, p.symbol))
        return payouts

    def current_period(self, instrument: Instrument, as_of: date) -> DividendPeriod:
        """
        Determine the dividend period to display.

        With explicit dates, the next period becomes current only once the
        previous pay date is more than the configured buffer in the past.
        """
        frequency = instrument.dividend_frequency

        if instrument.dividend_dates:
            buffer = timedelta(days=self.config.period_switch_buffer_days)
            indexed = sorted(
                enumerate(instrument.dividend_dates),
                key=lambda item: item[1].pay_date or date.min,
            )

            for index, entry in indexed:
                if entry.pay_date is None:
                    continue
                if as_of < entry.pay_date + buffer:
                    return DividendPeriod(
                        ex_date=entry.ex_date,
                        pay_date=entry.pay_date,
                        status=_simple_status(entry.ex_date, entry.pay_date, as_of),
                        label=_period_label(frequency, index),
                    )

            # Every period is behind us: next cycle, dates not announced yet
            return DividendPeriod(
                ex_date=None,
                pay_date=None,
                status=DividendStatus.UPCOMING,
                label=_period_label(frequency, 0),
            )

        return DividendPeriod(
            ex_date=instrument.dividend_ex_date,
            pay_date=instrument.dividend_pay_date,
            status=_simple_status(instrument.dividend_ex_date, instrument.dividend_pay_date, as_of),
        )

    def _pay_months(self, instrument: Instrument) -> list[int]:
        """Calendar months (1-12) in which the instrument pays."""
        if instrument.dividend_frequency == DividendFrequency.MONTHLY:
            return list(range(1, 13))

        if instrument.dividend_dates:
            months = []
            for entry in instrument.dividend_dates:
                if entry.pay_date is not None:
                    months.append(entry.pay_date.month)
                elif entry.ex_date is not None:
                    months.append(entry.ex_date.month % 12 + 1)
            return months

        if instrument.dividend_pay_date is not None:
            return [
                d.month
                for d in recurring_pay_dates(
                    instrument.dividend_pay_date, instrument.dividend_frequency
                )
            ]

        return []

    def monthly_calendar(self, valued: Sequence[ValuedPosition]) -> pd.Series:
        """
        Expected payouts per calendar month in reference currency.

        Returns:
            Series indexed 1..12 (January..December).
        """
        calendar = pd.Series(0.0, index=pd.RangeIndex(1, 13, name="month"), name="payout")

        for vp in valued:
            months = self._pay_months(vp.instrument)
            if not months:
                continue

            amount = self.payment_amount_native(vp.position, vp.instrument)
            if not amount:
                continue

            amount_ref = self.converter.to_reference(amount, self.income_currency(vp.instrument))
            for month in months:
                calendar.loc[month] += amount_ref

        return calendar


def project_annual_income(
    position: Position,
    instrument: Instrument,
    converter: CurrencyConverter,
) -> float:
    """Convenience function for a single position's annual income."""
    return DividendProjector(converter).project_annual_income(position, instrument)


def upcoming_payouts(
    position: Position,
    instrument: Instrument,
    as_of: date,
    converter: CurrencyConverter,
) -> list[DividendPayout]:
    """Convenience function for a single position's upcoming payouts."""
    return DividendProjector(converter).upcoming_payouts(position, instrument, as_of)
