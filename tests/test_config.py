"""Tests for configuration defaults and environment overrides."""
import pytest

from config import Config, CurrencyConfig, MarketSessionConfig


def test_defaults(monkeypatch):
    monkeypatch.delenv("PORTFOLIO_REFERENCE_CURRENCY", raising=False)
    monkeypatch.delenv("PORTFOLIO_DEPOSIT_PROTECTION_LIMIT", raising=False)

    cfg = Config.from_env()

    assert cfg.currency.reference_currency == "CHF"
    assert cfg.deposits.protection_limit == 100_000.0
    assert cfg.dividends.period_switch_buffer_days == 7
    assert cfg.risk.world_economy_share == 0.60


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PORTFOLIO_REFERENCE_CURRENCY", " EUR ")
    monkeypatch.setenv("PORTFOLIO_DEPOSIT_PROTECTION_LIMIT", "250000")

    cfg = Config.from_env()

    assert cfg.currency.reference_currency == "EUR"
    assert cfg.deposits.protection_limit == 250_000.0


def test_minor_unit_helpers():
    currency_config = CurrencyConfig()

    assert currency_config.major_currency("GBp") == "GBP"
    assert currency_config.minor_factor("GBp") == 100
    assert currency_config.major_currency("USD") == "USD"
    assert currency_config.minor_factor("USD") == 1


@pytest.mark.parametrize("suffix,code", [
    ("SW", "SIX"),
    ("vx", "SIX"),
    ("DE", "XETRA"),
    ("L", "LSE"),
    ("PA", "EURONEXT"),
])
def test_exchange_by_suffix(suffix, code):
    assert MarketSessionConfig().by_suffix(suffix).code == code


def test_exchange_by_currency():
    sessions = MarketSessionConfig()

    assert sessions.by_currency("USD").code == "US"
    assert sessions.by_currency("GBp").code == "LSE"
    assert sessions.by_currency("JPY") is None


@pytest.mark.parametrize("reference,strong", [
    ("USD", ("GBP", "GBp")),
    ("EUR", ("GBP", "GBp")),
    ("GBP", ()),
    ("JPY", ()),
])
def test_with_reference_rederives_strong_currencies(reference, strong):
    """Only currencies worth more than one unit of the new reference stay strong."""
    currency_config = CurrencyConfig().with_reference(reference)

    assert currency_config.reference_currency == reference
    assert currency_config.strong_currencies == strong


def test_with_same_reference_is_unchanged():
    currency_config = CurrencyConfig()

    assert currency_config.with_reference("CHF") is currency_config


def test_environment_reference_rederives_strong_currencies(monkeypatch):
    monkeypatch.setenv("PORTFOLIO_REFERENCE_CURRENCY", "JPY")

    cfg = Config.from_env()

    assert cfg.currency.reference_currency == "JPY"
    assert cfg.currency.strong_currencies == ()
