"""
Concentration risk module.

Portfolio-level concentration analysis:
- Dominant single holding, sector and country
- Look-through ("virtual") exposure to one dominant economy, attributing a
  fixed share of world funds to it
- Sector-within-economy exposure (e.g. US technology incl. Nasdaq trackers)
- Flagged risk clusters with severity and a 0-100 diversification score

All rules are deterministic and explainable; no statistical models.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from analytics.valuation import ValuedPosition, safe_number
from config import RiskConfig, config
from models import Instrument


logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 100

_COUNTRY_ALIASES = {
    "switzerland": "Switzerland",
    "schweiz": "Switzerland",
    "suisse": "Switzerland",
    "ch": "Switzerland",
    "united states": "USA",
    "united states of america": "USA",
    "vereinigte staaten": "USA",
    "usa": "USA",
    "us": "USA",
    "germany": "Germany",
    "deutschland": "Germany",
    "de": "Germany",
    "uk": "United Kingdom",
    "britain": "United Kingdom",
    "great britain": "United Kingdom",
    "united kingdom": "United Kingdom",
    "grossbritannien": "United Kingdom",
    "world": "World",
    "welt": "World",
    "global": "World",
}


class Severity(str, Enum):
    """Risk cluster severity tier."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class RiskCluster:
    """A flagged concentration risk."""
    name: str
    description: str
    value: float
    percent: float
    severity: Severity


@dataclass
class HoldingShare:
    """Largest single position."""
    symbol: str
    name: str
    value: float
    percent: float
    is_fund: bool


@dataclass
class Dominance:
    """Largest bucket of a sector or country breakdown."""
    label: str
    value: float
    percent: float


@dataclass
class RiskAnalysisResult:
    """Outcome of a concentration analysis."""
    total_value: float
    score: int
    top_holding: HoldingShare | None = None
    sector_dominance: Dominance | None = None
    country_dominance: Dominance | None = None
    economy_exposure: Dominance | None = None
    sector_economy_exposure: Dominance | None = None
    clusters: list[RiskCluster] = field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        """Clusters as a DataFrame for display."""
        return pd.DataFrame(
            [
                {
                    "name": c.name,
                    "severity": c.severity.value,
                    "percent": round(c.percent, 1),
                    "value": round(c.value, 2),
                    "description": c.description,
                }
                for c in self.clusters
            ],
            columns=["name", "severity", "percent", "value", "description"],
        )


def normalize_country(country: str | None, risk_config: RiskConfig | None = None) -> str:
    """Map common spellings (English and German) to canonical country labels."""
    risk_config = risk_config or config.risk
    if not country or not country.strip():
        return risk_config.unknown_country_label
    return _COUNTRY_ALIASES.get(country.strip().lower(), country.strip())


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class RiskAnalyzer:
    """
    Computes concentration clusters and the diversification score.

    Each penalty is independent and additive:
        100 - 1.5 * (top - 10)        top holding > 10%, not a fund
            - (sector - 20)           non-generic sector > 20%
            - (sector_economy - 15)   sector-within-economy > 20%
            - (economy - 60)          virtual economy exposure > 60%
    clamped to [0, 100] and rounded.
    """

    def __init__(self, risk_config: RiskConfig | None = None):
        self.config = risk_config or config.risk

    def _exposure_rows(self, instrument: Instrument, value: float) -> tuple[list, list]:
        """(label, value) rows for the sector and country breakdowns."""
        cfg = self.config

        if instrument.is_fund and instrument.sector_weights:
            sectors = [
                (label, value * safe_number(weight) / 100)
                for label, weight in instrument.sector_weights.items()
            ]
        elif instrument.is_fund:
            sectors = [(cfg.fund_sector_label, value)]
        else:
            sectors = [(instrument.sector or cfg.other_sector_label, value)]

        if instrument.is_fund and instrument.country_weights:
            countries = [
                (normalize_country(label, cfg), value * safe_number(weight) / 100)
                for label, weight in instrument.country_weights.items()
            ]
        else:
            countries = [(normalize_country(instrument.country, cfg), value)]

        return sectors, countries

    def _is_index_tracker(self, symbol: str) -> bool:
        symbol = symbol.upper()
        return (
            symbol in self.config.index_fund_symbols
            or self.config.index_fund_pattern in symbol
        )

    def _breakdown(self, rows: list[tuple[str, float]]) -> pd.Series:
        """Sum values per label, keeping first-appearance order."""
        if not rows:
            return pd.Series(dtype=float)
        df = pd.DataFrame(rows, columns=["label", "value"])
        return df.groupby("label", sort=False)["value"].sum()

    @staticmethod
    def _dominant(breakdown: pd.Series, total: float, exclude: Iterable[str] = ()) -> Dominance | None:
        candidates = breakdown.drop(labels=list(exclude), errors="ignore")
        if candidates.empty or candidates.max() <= 0:
            return None
        label = candidates.idxmax()
        value = float(candidates[label])
        return Dominance(label=label, value=value, percent=value / total * 100)

    def analyze(self, holdings: Sequence[tuple[Instrument, float]]) -> RiskAnalysisResult:
        """
        Analyze concentration risk.

        Args:
            holdings: (instrument, value in reference currency) pairs.

        Returns:
            RiskAnalysisResult. Empty or zero-value input yields the neutral
            result (score 100, no clusters).
        """
        cfg = self.config
        holdings = [(instrument, safe_number(value)) for instrument, value in holdings]
        total_value = sum(value for _, value in holdings)

        if total_value <= 0:
            return RiskAnalysisResult(total_value=0.0, score=NEUTRAL_SCORE)

        # 1. Top holding (first wins ties)
        top_instrument, top_value = max(holdings, key=lambda h: h[1])
        top_holding = HoldingShare(
            symbol=top_instrument.symbol,
            name=top_instrument.name,
            value=top_value,
            percent=top_value / total_value * 100,
            is_fund=top_instrument.is_fund,
        )

        # 2. Sector / country breakdowns and sector-within-economy value
        sector_rows, country_rows = [], []
        sector_economy_value = 0.0

        for instrument, value in holdings:
            sectors, countries = self._exposure_rows(instrument, value)
            sector_rows.extend(sectors)
            country_rows.extend(countries)

            in_economy_sector = (
                normalize_country(instrument.country, cfg) == cfg.dominant_economy
                and instrument.sector == cfg.economy_sector
            )
            if in_economy_sector or self._is_index_tracker(instrument.symbol):
                sector_economy_value += value

        sectors = self._breakdown(sector_rows)
        countries = self._breakdown(country_rows)

        sector_dominance = self._dominant(sectors, total_value)
        country_dominance = self._dominant(countries, total_value)
        concentrated_sector = self._dominant(
            sectors, total_value, exclude=(cfg.fund_sector_label, cfg.other_sector_label)
        )
        concentrated_country = self._dominant(
            countries, total_value, exclude=(cfg.world_country_label, cfg.dominant_economy)
        )

        # 3. Virtual exposure to the dominant economy
        economy_value = float(
            countries.get(cfg.dominant_economy, 0.0)
            + cfg.world_economy_share * countries.get(cfg.world_country_label, 0.0)
        )
        economy_percent = economy_value / total_value * 100
        sector_economy_percent = sector_economy_value / total_value * 100

        clusters = self._clusters(
            top_holding,
            concentrated_sector,
            concentrated_country,
            economy_value,
            economy_percent,
            sector_economy_value,
            sector_economy_percent,
        )

        score = self._score(top_holding, concentrated_sector, economy_percent, sector_economy_percent)

        logger.debug(f"Risk analysis: total={total_value:.2f} score={score} clusters={len(clusters)}")

        return RiskAnalysisResult(
            total_value=total_value,
            score=score,
            top_holding=top_holding,
            sector_dominance=sector_dominance,
            country_dominance=country_dominance,
            economy_exposure=Dominance(cfg.dominant_economy, economy_value, economy_percent),
            sector_economy_exposure=Dominance(
                f"{cfg.dominant_economy} {cfg.economy_sector}",
                sector_economy_value,
                sector_economy_percent,
            ),
            clusters=clusters,
        )

    def _clusters(
        self,
        top_holding: HoldingShare,
        sector: Dominance | None,
        country: Dominance | None,
        economy_value: float,
        economy_percent: float,
        sector_economy_value: float,
        sector_economy_percent: float,
    ) -> list[RiskCluster]:
        cfg = self.config
        clusters = []

        # Funds are diversified buckets by themselves
        if top_holding.percent > cfg.single_holding_threshold and not top_holding.is_fund:
            clusters.append(RiskCluster(
                name="Single position concentration",
                description=(
                    f'"{top_holding.name}" makes up {top_holding.percent:.1f}% of the portfolio.'
                ),
                value=top_holding.value,
                percent=top_holding.percent,
                severity=Severity.HIGH if top_holding.percent > cfg.single_holding_high else Severity.MEDIUM,
            ))

        if sector is not None and sector.percent > cfg.sector_threshold:
            clusters.append(RiskCluster(
                name=f"Sector concentration: {sector.label}",
                description=f'{sector.percent:.1f}% is invested in the "{sector.label}" sector.',
                value=sector.value,
                percent=sector.percent,
                severity=Severity.HIGH if sector.percent > cfg.sector_high else Severity.MEDIUM,
            ))

        if economy_percent > cfg.economy_threshold:
            clusters.append(RiskCluster(
                name=f"High {cfg.dominant_economy} exposure",
                description=(
                    f"About {economy_percent:.0f}% of the portfolio depends on the "
                    f"{cfg.dominant_economy} market (incl. ~{cfg.world_economy_share:.0%} "
                    f"of world funds)."
                ),
                value=economy_value,
                percent=economy_percent,
                severity=Severity.HIGH if economy_percent > cfg.economy_high else Severity.MEDIUM,
            ))
        elif country is not None and country.percent > cfg.country_threshold:
            clusters.append(RiskCluster(
                name=f"Country concentration: {country.label}",
                description=f"{country.percent:.1f}% is invested in {country.label}.",
                value=country.value,
                percent=country.percent,
                severity=Severity.MEDIUM,
            ))

        if sector_economy_percent > cfg.sector_economy_threshold:
            clusters.append(RiskCluster(
                name=f"{cfg.dominant_economy} {cfg.economy_sector} cluster",
                description=(
                    f"{sector_economy_percent:.1f}% is invested in {cfg.dominant_economy} "
                    f"{cfg.economy_sector.lower()} stocks or index trackers."
                ),
                value=sector_economy_value,
                percent=sector_economy_percent,
                severity=(
                    Severity.HIGH
                    if sector_economy_percent > cfg.sector_economy_high
                    else Severity.MEDIUM
                ),
            ))

        return clusters

    def _score(
        self,
        top_holding: HoldingShare,
        sector: Dominance | None,
        economy_percent: float,
        sector_economy_percent: float,
    ) -> int:
        cfg = self.config
        score = float(NEUTRAL_SCORE)

        if top_holding.percent > cfg.single_holding_penalty_floor and not top_holding.is_fund:
            score -= cfg.single_holding_penalty_weight * (
                top_holding.percent - cfg.single_holding_penalty_floor
            )
        if sector is not None and sector.percent > cfg.sector_penalty_floor:
            score -= sector.percent - cfg.sector_penalty_floor
        if sector_economy_percent > cfg.sector_economy_threshold:
            score -= sector_economy_percent - cfg.sector_economy_penalty_floor
        if economy_percent > cfg.economy_penalty_floor:
            score -= economy_percent - cfg.economy_penalty_floor

        return _round_half_up(float(np.clip(score, 0, NEUTRAL_SCORE)))

    def analyze_valued(self, valued: Iterable[ValuedPosition]) -> RiskAnalysisResult:
        """Analyze valued positions using their reference-currency values."""
        return self.analyze([(vp.instrument, vp.current_value_ref) for vp in valued])


def analyze_portfolio_risk(holdings: Sequence[tuple[Instrument, float]]) -> RiskAnalysisResult:
    """
    Convenience function for risk analysis.

    Returns:
        RiskAnalysisResult for the holdings.
    """
    analyzer = RiskAnalyzer()
    return analyzer.analyze(holdings)
