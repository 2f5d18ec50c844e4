"""Dataclasses and enums for single-game parlay modeling."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sgplab.data.schemas import MarketBundle


class MarketType(str, Enum):
    DNB = "DNB"
    TOTALS = "TOTALS"
    BTTS = "BTTS"
    DOUBLE_CHANCE = "DOUBLE_CHANCE"


class Side(str, Enum):
    HOME = "HOME"
    AWAY = "AWAY"
    OVER = "OVER"
    UNDER = "UNDER"
    YES = "YES"
    NO = "NO"
    HOME_OR_DRAW = "1X"
    DRAW_OR_AWAY = "X2"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


_FIXED_OUTCOMES: dict[tuple[MarketType, Side], str] = {
    (MarketType.DNB, Side.HOME): "DNB_H",
    (MarketType.DNB, Side.AWAY): "DNB_A",
    (MarketType.BTTS, Side.YES): "BTTS_YES",
    (MarketType.BTTS, Side.NO): "BTTS_NO",
    (MarketType.DOUBLE_CHANCE, Side.HOME_OR_DRAW): "1X",
    (MarketType.DOUBLE_CHANCE, Side.DRAW_OR_AWAY): "X2",
}


def line_key(line: float) -> str:
    """Render a goal line in the upstream underscore notation (2.5 -> ``2_5``)."""

    return f"{line:.1f}".replace(".", "_")


@dataclass(frozen=True)
class Leg:
    market: MarketType
    side: Side
    probability: float
    description: str
    line: float | None = None

    def __post_init__(self) -> None:
        if (self.market is MarketType.TOTALS) != (self.line is not None):
            raise ValueError("A goal line is required for totals legs and only for them")

    @property
    def outcome(self) -> str:
        if self.market is MarketType.TOTALS:
            return f"{self.side.value}_{line_key(self.line)}"
        return _FIXED_OUTCOMES[(self.market, self.side)]

    def excludes(self, other: Leg) -> bool:
        """Return True when both legs cannot win together."""

        if self.market is not other.market:
            return False
        if self.market is MarketType.TOTALS:
            if self.side is other.side:
                return False
            over, under = (self, other) if self.side is Side.OVER else (other, self)
            return over.line >= under.line
        return self.side is not other.side


@dataclass(frozen=True)
class MatchSnapshot:
    match_id: str
    home_team: str
    away_team: str
    league: str
    kickoff: datetime
    markets: MarketBundle


@dataclass
class CandidateParlay:
    """A priced 2- or 3-leg combination drawn from one match."""

    match: MatchSnapshot
    legs: tuple[Leg, ...]
    combined_prob: float
    fair_odds: float
    correlation_penalty: float
    adjusted_prob: float
    implied_odds: float
    edge_pct: float
    confidence: Confidence

    @property
    def match_id(self) -> str:
        return self.match.match_id

    @property
    def outcomes(self) -> list[str]:
        return [leg.outcome for leg in self.legs]

    @property
    def fingerprint(self) -> str:
        return fingerprint(self.outcomes)


def fingerprint(outcomes: list[str] | tuple[str, ...]) -> str:
    """Order-independent identity of a leg set within one match."""

    return "|".join(sorted(outcomes))
