"""
Portfolio Valuation - Main Entry Point.

Values a multi-currency portfolio snapshot (positions, fixed deposits,
exchange rates) and prints decision-grade numbers.

Usage:
    # Portfolio totals (value, gain split into market/FX, income)
    python main.py summary portfolio.json

    # Per-position table
    python main.py positions portfolio.json

    # Concentration risk clusters and diversification score
    python main.py risk portfolio.json

    # Upcoming dividends within 90 days
    python main.py dividends portfolio.json --days 90

    # Trading session estimate for a symbol
    python main.py session NESN.SW --currency CHF --at 2026-03-02T09:30:00
"""

import argparse
import logging
import sys
from datetime import date, datetime, timezone

from analytics.currency import format_money
from analytics.deposits import deposit_protection_breaches
from analytics.dividends import DividendProjector
from analytics.market import estimate_market_session, is_live
from analytics.portfolio import PortfolioAnalyzer, top_performers
from analytics.risk import RiskAnalyzer
from services.snapshot_service import SnapshotError, load_snapshot


logger = logging.getLogger(__name__)


def _load(args):
    """Load the snapshot named on the command line, or None on failure."""
    try:
        return load_snapshot(args.snapshot)
    except FileNotFoundError:
        print(f"❌ Snapshot not found: {args.snapshot}")
    except SnapshotError as e:
        print(f"❌ {e}")
    return None


def cmd_summary(args):
    """Show portfolio totals."""
    snapshot = _load(args)
    if snapshot is None:
        return 1

    analyzer = PortfolioAnalyzer(snapshot.rates)
    valued, totals = analyzer.compute_portfolio(
        snapshot.instruments, snapshot.positions, snapshot.deposits
    )
    ref = totals.currency

    print("\n" + "=" * 50)
    print(f"📊 PORTFOLIO SUMMARY ({ref})")
    print("=" * 50)

    print(f"\n💰 Value")
    print(f"   Total:           {totals.total_value:>14,.2f}")
    print(f"   Equities:        {totals.equity_value:>14,.2f}")
    print(f"   Funds:           {totals.fund_value:>14,.2f}")
    print(f"   Deposits:        {totals.deposits_value:>14,.2f}")

    print(f"\n📈 Gain / Loss")
    print(f"   Total:           {totals.gain_loss:>+14,.2f}  ({totals.gain_loss_percent:+.2f}%)")
    print(f"   Market impact:   {totals.market_impact:>+14,.2f}")
    print(f"   FX impact:       {totals.fx_impact:>+14,.2f}")
    print(f"   Today:           {totals.daily_gain:>+14,.2f}  ({totals.daily_gain_percent:+.2f}%)")

    print(f"\n💵 Projected Income (per year)")
    print(f"   Dividends:       {totals.projected_dividend_income:>14,.2f}")
    print(f"   Interest (net):  {totals.projected_interest_income:>14,.2f}")
    print(f"   Total:           {totals.projected_income:>14,.2f}")
    print(f"   Per month:       {totals.projected_monthly_income:>14,.2f}")

    best = top_performers(valued, limit=args.top)
    if best:
        print(f"\n🏆 Top Performers")
        for vp in best:
            print(f"   {vp.symbol:<10} {vp.gain_loss_percent:>+8.2f}%  {vp.gain_loss_ref:>+12,.2f} {ref}")

    breaches = deposit_protection_breaches(snapshot.deposits, analyzer.converter)
    if breaches:
        print(f"\n⚠️ Deposit protection limit exceeded")
        for exposure in breaches:
            print(
                f"   {exposure.bank_name}: {format_money(exposure.total, ref)} "
                f"(limit {format_money(exposure.limit, ref)})"
            )

    print("\n" + "=" * 50)
    return 0


def cmd_positions(args):
    """Show valued positions."""
    snapshot = _load(args)
    if snapshot is None:
        return 1

    analyzer = PortfolioAnalyzer(snapshot.rates)
    valued = analyzer.valuate(snapshot.instruments, snapshot.positions)
    df = analyzer.to_dataframe(valued)

    if df.empty:
        print("No positions in snapshot.")
        return 0

    print(f"\n📍 Positions ({len(df)}, values in {analyzer.reference})")
    print(df[[
        "symbol", "currency", "shares", "price", "value_ref", "gain_ref",
        "gain_ref_pct", "market_impact_ref", "fx_impact_ref", "weight",
    ]].round(2).to_string(index=False))
    return 0


def cmd_risk(args):
    """Show concentration risk."""
    snapshot = _load(args)
    if snapshot is None:
        return 1

    analyzer = PortfolioAnalyzer(snapshot.rates)
    valued = analyzer.valuate(snapshot.instruments, snapshot.positions)
    result = RiskAnalyzer().analyze_valued(valued)

    print(f"\n🛡️ Diversification score: {result.score}/100")

    if result.top_holding:
        print(f"   Top holding:  {result.top_holding.symbol} ({result.top_holding.percent:.1f}%)")
    if result.sector_dominance:
        print(f"   Top sector:   {result.sector_dominance.label} ({result.sector_dominance.percent:.1f}%)")
    if result.country_dominance:
        print(f"   Top country:  {result.country_dominance.label} ({result.country_dominance.percent:.1f}%)")

    clusters = result.to_dataframe()
    if clusters.empty:
        print("\n✅ No concentration clusters")
    else:
        print("\n⚠️ Clusters")
        print(clusters[["name", "severity", "percent"]].to_string(index=False))
    return 0


def cmd_dividends(args):
    """Show upcoming dividend payouts."""
    snapshot = _load(args)
    if snapshot is None:
        return 1

    as_of = date.fromisoformat(args.as_of) if args.as_of else date.today()

    analyzer = PortfolioAnalyzer(snapshot.rates)
    valued = analyzer.valuate(snapshot.instruments, snapshot.positions)
    projector = DividendProjector(analyzer.converter)
    payouts = projector.upcoming_portfolio_payouts(valued, as_of, horizon_days=args.days)

    if not payouts:
        print(f"No dividends expected within {args.days} days.")
        return 0

    print(f"\n📅 Upcoming Dividends (next {args.days} days)")
    print("-" * 60)
    for payout in payouts:
        print(
            f"   {payout.date.isoformat()}  {payout.symbol:<10} "
            f"{format_money(payout.amount, payout.currency, snapshot.rates)}"
        )
    return 0


def cmd_session(args):
    """Estimate the trading session for a symbol."""
    now = datetime.fromisoformat(args.at) if args.at else datetime.now(timezone.utc)
    session = estimate_market_session(args.symbol, args.currency, now)
    marker = "🟢" if is_live(session) else "⚪"
    print(f"{marker} {args.symbol} ({args.currency}) at {now.isoformat()}: {session.value}")
    return 0


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Multi-currency portfolio valuation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # summary command
    summary = subparsers.add_parser("summary", help="Show portfolio totals")
    summary.add_argument("snapshot", help="Path to snapshot JSON file")
    summary.add_argument("--top", type=int, default=5, help="Number of top performers to show")

    # positions command
    positions = subparsers.add_parser("positions", help="Show valued positions")
    positions.add_argument("snapshot", help="Path to snapshot JSON file")

    # risk command
    risk = subparsers.add_parser("risk", help="Show concentration risk analysis")
    risk.add_argument("snapshot", help="Path to snapshot JSON file")

    # dividends command
    dividends = subparsers.add_parser("dividends", help="Show upcoming dividends")
    dividends.add_argument("snapshot", help="Path to snapshot JSON file")
    dividends.add_argument("--days", type=int, default=90, help="Horizon in days")
    dividends.add_argument("--as-of", help="Reference date (YYYY-MM-DD, default: today)")

    # session command
    session = subparsers.add_parser("session", help="Estimate trading session")
    session.add_argument("symbol", help="Instrument symbol (e.g. NESN.SW)")
    session.add_argument("--currency", required=True, help="Quote currency")
    session.add_argument("--at", help="Timestamp (ISO 8601, default: now UTC)")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "summary": cmd_summary,
        "positions": cmd_positions,
        "risk": cmd_risk,
        "dividends": cmd_dividends,
        "session": cmd_session,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main() or 0)
