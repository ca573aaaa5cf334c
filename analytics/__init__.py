"""
Analytics package initialization.

Exports commonly used analytics functions for convenient imports:
    from analytics import PortfolioAnalyzer, RiskAnalyzer, convert, etc.
"""

from analytics.currency import (
    CurrencyConverter,
    convert,
    format_money,
)
from analytics.valuation import (
    PositionValuator,
    ValuedPosition,
    repair_inverted_entry_fx_rate,
    valuate_position,
)
from analytics.dividends import (
    DividendPayout,
    DividendPeriod,
    DividendProjector,
    DividendStatus,
    project_annual_income,
    upcoming_payouts,
)
from analytics.risk import (
    Dominance,
    HoldingShare,
    RiskAnalysisResult,
    RiskAnalyzer,
    RiskCluster,
    Severity,
    analyze_portfolio_risk,
    normalize_country,
)
from analytics.market import (
    MarketSession,
    estimate_market_session,
    is_live,
    resolve_exchange,
)
from analytics.deposits import (
    BankExposure,
    annual_fee,
    annual_interest,
    annual_net_income,
    apply_monthly_contributions,
    deposit_protection_breaches,
)
from analytics.portfolio import (
    PortfolioAnalyzer,
    PortfolioTotals,
    compute_portfolio,
    top_performers,
)

__all__ = [
    # Currency
    "CurrencyConverter",
    "convert",
    "format_money",
    # Valuation
    "PositionValuator",
    "ValuedPosition",
    "repair_inverted_entry_fx_rate",
    "valuate_position",
    # Dividends
    "DividendPayout",
    "DividendPeriod",
    "DividendProjector",
    "DividendStatus",
    "project_annual_income",
    "upcoming_payouts",
    # Risk
    "Dominance",
    "HoldingShare",
    "RiskAnalysisResult",
    "RiskAnalyzer",
    "RiskCluster",
    "Severity",
    "analyze_portfolio_risk",
    "normalize_country",
    # Market sessions
    "MarketSession",
    "estimate_market_session",
    "is_live",
    "resolve_exchange",
    # Deposits
    "BankExposure",
    "annual_fee",
    "annual_interest",
    "annual_net_income",
    "apply_monthly_contributions",
    "deposit_protection_breaches",
    # Portfolio
    "PortfolioAnalyzer",
    "PortfolioTotals",
    "compute_portfolio",
    "top_performers",
]
