"""
Portfolio analytics module.

Portfolio-wide totals in the reference currency:
- Current value of positions and deposits (equity / fund split)
- Cost basis and gain/loss, with market and FX impact
- Projected income: dividends and net deposit interest
- Daily gain against previous close
"""

from dataclasses import dataclass
from typing import Iterable, Sequence

import pandas as pd

from analytics.currency import CurrencyConverter
from analytics.deposits import annual_net_income
from analytics.dividends import DividendProjector
from analytics.valuation import PositionValuator, ValuedPosition, percent_of, safe_number
from models import ExchangeRateTable, FixedDeposit, Instrument, Position


@dataclass
class PortfolioTotals:
    """Aggregated portfolio-level figures in the reference currency."""
    currency: str
    total_value: float
    positions_value: float
    equity_value: float
    fund_value: float
    deposits_value: float
    total_cost: float
    gain_loss: float
    gain_loss_percent: float
    market_impact: float
    fx_impact: float
    projected_dividend_income: float
    projected_interest_income: float
    projected_income: float
    daily_gain: float
    daily_gain_percent: float
    position_count: int
    deposit_count: int

    @property
    def projected_monthly_income(self) -> float:
        return self.projected_income / 12


class PortfolioAnalyzer:
    """
    Values positions and aggregates portfolio totals.

    Composes PositionValuator and DividendProjector over one rate snapshot.
    Deposits count with their principal as both value and cost.
    """

    def __init__(self, rates: ExchangeRateTable):
        self.converter = CurrencyConverter(rates)
        self.valuator = PositionValuator(self.converter)
        self.projector = DividendProjector(self.converter)

    @property
    def reference(self) -> str:
        return self.converter.reference

    def valuate(
        self,
        instruments: Iterable[Instrument],
        positions: Iterable[Position],
    ) -> list[ValuedPosition]:
        """Value all positions; positions with unknown instruments are dropped."""
        catalog = {instrument.id: instrument for instrument in instruments}
        return self.valuator.valuate_all(positions, catalog)

    def compute_totals(
        self,
        valued: Sequence[ValuedPosition],
        deposits: Sequence[FixedDeposit] = (),
    ) -> PortfolioTotals:
        """
        Aggregate valued positions and deposits.

        Args:
            valued: Output of valuate().
            deposits: Fixed deposits to include.

        Returns:
            PortfolioTotals in the reference currency.
        """
        equity_value = sum(vp.current_value_ref for vp in valued if not vp.instrument.is_fund)
        fund_value = sum(vp.current_value_ref for vp in valued if vp.instrument.is_fund)
        positions_value = equity_value + fund_value
        positions_cost = sum(vp.cost_basis_ref for vp in valued)

        deposits_value = sum(
            self.converter.to_reference(safe_number(d.amount), d.currency) for d in deposits
        )

        total_value = positions_value + deposits_value
        total_cost = positions_cost + deposits_value
        gain_loss = total_value - total_cost

        dividend_income = sum(
            self.projector.project_annual_income(vp.position, vp.instrument) for vp in valued
        )
        interest_income = sum(
            self.converter.to_reference(annual_net_income(d), d.currency) for d in deposits
        )

        daily_gain = sum(vp.daily_value_change_ref for vp in valued)
        previous_value = positions_value - daily_gain
        daily_gain_percent = daily_gain / previous_value * 100 if previous_value > 0 else 0.0

        return PortfolioTotals(
            currency=self.reference,
            total_value=total_value,
            positions_value=positions_value,
            equity_value=equity_value,
            fund_value=fund_value,
            deposits_value=deposits_value,
            total_cost=total_cost,
            gain_loss=gain_loss,
            gain_loss_percent=percent_of(gain_loss, total_cost),
            market_impact=sum(vp.market_impact_ref for vp in valued),
            fx_impact=sum(vp.fx_impact_ref for vp in valued),
            projected_dividend_income=dividend_income,
            projected_interest_income=interest_income,
            projected_income=dividend_income + interest_income,
            daily_gain=daily_gain,
            daily_gain_percent=daily_gain_percent,
            position_count=len(valued),
            deposit_count=len(deposits),
        )

    def compute_portfolio(
        self,
        instruments: Iterable[Instrument],
        positions: Iterable[Position],
        deposits: Sequence[FixedDeposit] = (),
    ) -> tuple[list[ValuedPosition], PortfolioTotals]:
        """Value positions and aggregate totals in one pass."""
        valued = self.valuate(instruments, positions)
        return valued, self.compute_totals(valued, deposits)

    def to_dataframe(self, valued: Sequence[ValuedPosition]) -> pd.DataFrame:
        """
        Get valued positions as DataFrame for display/analysis.

        Returns:
            DataFrame with one row per position; weights are shares of the
            positions' total reference value.
        """
        columns = [
            "symbol", "name", "category", "currency", "shares", "price",
            "value", "cost", "gain", "gain_pct", "value_ref", "cost_ref",
            "gain_ref", "gain_ref_pct", "market_impact_ref", "fx_impact_ref",
            "daily_change_pct", "daily_gain_ref", "weight",
        ]
        if not valued:
            return pd.DataFrame(columns=columns)

        df = pd.DataFrame([
            {
                "symbol": vp.instrument.symbol,
                "name": vp.instrument.name,
                "category": vp.instrument.category.value,
                "currency": vp.instrument.currency,
                "shares": vp.shares,
                "price": vp.instrument.current_price,
                "value": vp.current_value,
                "cost": vp.cost_basis,
                "gain": vp.gain_loss,
                "gain_pct": vp.gain_loss_percent,
                "value_ref": vp.current_value_ref,
                "cost_ref": vp.cost_basis_ref,
                "gain_ref": vp.gain_loss_ref,
                "gain_ref_pct": vp.gain_loss_ref_percent,
                "market_impact_ref": vp.market_impact_ref,
                "fx_impact_ref": vp.fx_impact_ref,
                "daily_change_pct": vp.daily_change_percent,
                "daily_gain_ref": vp.daily_value_change_ref,
            }
            for vp in valued
        ])

        total = df["value_ref"].sum()
        df["weight"] = df["value_ref"] / total if total else 0.0
        return df[columns]


def top_performers(valued: Iterable[ValuedPosition], limit: int = 5) -> list[ValuedPosition]:
    """Positions with the highest native gain percentage."""
    return sorted(valued, key=lambda vp: vp.gain_loss_percent, reverse=True)[:limit]


def compute_portfolio(
    instruments: Iterable[Instrument],
    positions: Iterable[Position],
    deposits: Sequence[FixedDeposit],
    rates: ExchangeRateTable,
) -> tuple[pd.DataFrame, PortfolioTotals]:
    """
    Convenience function for computing portfolio metrics.

    Returns:
        Tuple of (positions DataFrame, totals).
    """
    analyzer = PortfolioAnalyzer(rates)
    valued, totals = analyzer.compute_portfolio(instruments, positions, deposits)
    return analyzer.to_dataframe(valued), totals
