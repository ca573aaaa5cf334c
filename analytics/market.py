"""
Market session estimator.

Deterministic approximation of an exchange's trading session from the
instrument symbol, its currency and the current time:
- Weekends and global holidays are always CLOSED
- Exchange inferred from the symbol suffix (NESN.SW, SAP.DE), else currency
- Fixed UTC trading windows; daylight saving and ad hoc holidays are ignored

Used to decide whether a quote should be displayed as live.
"""

import logging
from datetime import datetime, timezone
from enum import Enum

from config import ExchangeHours, MarketSessionConfig, config


logger = logging.getLogger(__name__)


class MarketSession(str, Enum):
    """Trading session state."""
    PRE = "PRE"
    REGULAR = "REGULAR"
    POST = "POST"
    CLOSED = "CLOSED"


def _to_utc(now: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def resolve_exchange(
    symbol: str,
    currency: str,
    session_config: MarketSessionConfig | None = None,
) -> ExchangeHours | None:
    """Exchange for a symbol: suffix after the last '.', falling back to currency."""
    session_config = session_config or config.market_sessions

    if "." in symbol:
        suffix = symbol.rsplit(".", 1)[1]
        exchange = session_config.by_suffix(suffix)
        if exchange is not None:
            return exchange

    return session_config.by_currency(currency)


def estimate_market_session(
    symbol: str,
    currency: str,
    now: datetime,
    session_config: MarketSessionConfig | None = None,
) -> MarketSession:
    """
    Estimate the trading session for an instrument.

    Args:
        symbol: Instrument symbol, optionally with an exchange suffix.
        currency: Quote currency code.
        now: Current time (naive values are treated as UTC).
        session_config: Optional exchange table override.

    Returns:
        MarketSession. Unrecognized exchanges are CLOSED.
    """
    session_config = session_config or config.market_sessions
    now = _to_utc(now)

    if now.weekday() >= 5:
        return MarketSession.CLOSED

    month_day = (now.month, now.day)
    if month_day in session_config.global_holidays:
        return MarketSession.CLOSED

    exchange = resolve_exchange(symbol, currency, session_config)
    if exchange is None:
        logger.debug(f"No exchange known for {symbol} ({currency}), assuming CLOSED")
        return MarketSession.CLOSED

    if month_day in exchange.holidays:
        return MarketSession.CLOSED

    minute = now.hour * 60 + now.minute
    if minute < exchange.open_minute:
        return MarketSession.PRE
    if minute < exchange.close_minute:
        return MarketSession.REGULAR
    return MarketSession.POST


def is_live(session: MarketSession) -> bool:
    """Whether quotes in this session should be shown as live."""
    return session == MarketSession.REGULAR
