"""
Fixed deposit analytics.

- Annual interest, fees and net income per account
- Deposit insurance check: bank totals above the protection limit
- Monthly auto-contributions for retirement accounts
"""

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Iterable, Sequence

import pandas as pd

from analytics.currency import CurrencyConverter
from analytics.valuation import safe_number
from config import config
from models import AccountType, FeeFrequency, FixedDeposit


logger = logging.getLogger(__name__)


@dataclass
class BankExposure:
    """Deposits held with one bank, in reference currency."""
    bank_name: str
    total: float
    limit: float

    @property
    def excess(self) -> float:
        return max(self.total - self.limit, 0.0)


def annual_interest(deposit: FixedDeposit) -> float:
    """Gross interest per year in the deposit currency."""
    return safe_number(deposit.amount) * safe_number(deposit.interest_rate) / 100


def annual_fee(deposit: FixedDeposit) -> float:
    """Account fees per year; monthly when the frequency is not set."""
    fee = safe_number(deposit.fee)
    if not fee:
        return 0.0
    frequency = deposit.fee_frequency or FeeFrequency.MONTHLY
    return fee * frequency.factor


def annual_net_income(deposit: FixedDeposit) -> float:
    """Interest minus fees per year (may be negative)."""
    return annual_interest(deposit) - annual_fee(deposit)


def deposit_protection_breaches(
    deposits: Iterable[FixedDeposit],
    converter: CurrencyConverter,
    limit: float | None = None,
) -> list[BankExposure]:
    """
    Banks whose combined deposits exceed the protection limit.

    Returns:
        BankExposure list sorted by total, largest first.
    """
    limit = config.deposits.protection_limit if limit is None else limit

    rows = [
        {
            "bank_name": d.bank_name,
            "value": converter.to_reference(safe_number(d.amount), d.currency),
        }
        for d in deposits
    ]
    if not rows:
        return []

    totals = pd.DataFrame(rows).groupby("bank_name", sort=False)["value"].sum()
    breaches = totals[totals > limit].sort_values(ascending=False)

    return [
        BankExposure(bank_name=bank, total=float(total), limit=limit)
        for bank, total in breaches.items()
    ]


def _month_index(year_month: str) -> int:
    year, month = (int(part) for part in year_month.split("-"))
    return year * 12 + (month - 1)


def apply_monthly_contributions(
    deposits: Sequence[FixedDeposit],
    as_of: date,
) -> list[FixedDeposit]:
    """
    Book pending monthly contributions on retirement accounts.

    For each retirement account with auto-contribution, adds
    monthly_contribution for every month started since
    last_contribution_month. Accounts without a recorded month count from the
    previous month, except in January where nothing is booked yet.

    Returns:
        New list of deposits; inputs are left untouched.
    """
    current_month = f"{as_of.year}-{as_of.month:02d}"
    updated = []

    for deposit in deposits:
        contribution = safe_number(deposit.monthly_contribution)
        if (
            deposit.account_type != AccountType.RETIREMENT
            or not deposit.auto_contribution
            or not contribution
        ):
            updated.append(deposit)
            continue

        last_month = deposit.last_contribution_month
        if last_month == current_month:
            updated.append(deposit)
            continue

        if last_month is None:
            if as_of.month == 1:
                updated.append(deposit)
                continue
            last_month = f"{as_of.year}-{as_of.month - 1:02d}"

        try:
            months = _month_index(current_month) - _month_index(last_month)
        except ValueError:
            logger.warning(
                f"Deposit {deposit.id}: invalid last contribution month {last_month!r}, skipping"
            )
            updated.append(deposit)
            continue

        if months <= 0:
            updated.append(deposit)
            continue

        logger.info(f"Deposit {deposit.id}: booking {months} monthly contribution(s)")
        updated.append(replace(
            deposit,
            amount=deposit.amount + contribution * months,
            last_contribution_month=current_month,
        ))

    return updated
