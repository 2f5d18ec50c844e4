"""Single-game parlay construction logic."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from sgplab.config import (
    CORRELATION_PENALTIES,
    HIGH_CONFIDENCE_MIN_PROB,
    MAX_LEGS_PER_MATCH,
    MEDIUM_CONFIDENCE_MIN_PROB,
    SAFE_LEG_THRESHOLD,
    THREE_LEG_MEDIUM_MIN_PROB,
)
from sgplab.data.schemas import MarketBundle
from sgplab.parlays.types import (
    CandidateParlay,
    Confidence,
    Leg,
    MarketType,
    MatchSnapshot,
    Side,
    line_key,
)

logger = logging.getLogger(__name__)

# (side, line) pairs checked on the totals market, in emission order.
TOTALS_LINES: tuple[tuple[Side, float], ...] = (
    (Side.UNDER, 3.5),
    (Side.UNDER, 4.5),
    (Side.OVER, 2.5),
)


@dataclass(frozen=True)
class Pricing:
    combined_prob: float
    fair_odds: float
    correlation_penalty: float
    adjusted_prob: float
    implied_odds: float
    edge_pct: float


def is_safe(probability: float | None) -> bool:
    return probability is not None and probability >= SAFE_LEG_THRESHOLD


def extract_legs(bundle: MarketBundle) -> list[Leg]:
    """Turn one match's market bundle into the legs that clear the safety threshold."""

    legs: list[Leg] = []
    if bundle.dnb is not None:
        if is_safe(bundle.dnb.home):
            legs.append(Leg(MarketType.DNB, Side.HOME, bundle.dnb.home, "Draw No Bet - Home"))
        if is_safe(bundle.dnb.away):
            legs.append(Leg(MarketType.DNB, Side.AWAY, bundle.dnb.away, "Draw No Bet - Away"))

    if bundle.totals is not None:
        for side, line in TOTALS_LINES:
            total = bundle.totals_line(line_key(line))
            if total is None:
                continue
            prob = total.over if side is Side.OVER else total.under
            if is_safe(prob):
                label = "Over" if side is Side.OVER else "Under"
                legs.append(Leg(MarketType.TOTALS, side, prob, f"{label} {line} Goals", line=line))

    if bundle.btts is not None:
        if is_safe(bundle.btts.no):
            legs.append(Leg(MarketType.BTTS, Side.NO, bundle.btts.no, "Both Teams to Score - No"))
        if is_safe(bundle.btts.yes):
            legs.append(Leg(MarketType.BTTS, Side.YES, bundle.btts.yes, "Both Teams to Score - Yes"))

    if bundle.double_chance is not None:
        dc = bundle.double_chance
        if is_safe(dc.home_or_draw):
            legs.append(
                Leg(MarketType.DOUBLE_CHANCE, Side.HOME_OR_DRAW, dc.home_or_draw, "Double Chance 1X")
            )
        if is_safe(dc.draw_or_away):
            legs.append(
                Leg(MarketType.DOUBLE_CHANCE, Side.DRAW_OR_AWAY, dc.draw_or_away, "Double Chance X2")
            )
    return legs


def is_compatible(legs: Iterable[Leg]) -> bool:
    """True when no pair of legs is mutually exclusive."""

    return not any(a.excludes(b) for a, b in itertools.combinations(legs, 2))


def generate_combinations(legs: Iterable[Leg]) -> Iterator[tuple[Leg, ...]]:
    """Yield every valid pair, then every valid triple, from the strongest safe legs."""

    safe = [leg for leg in legs if is_safe(leg.probability)]
    safe.sort(key=lambda leg: leg.probability, reverse=True)
    safe = safe[:MAX_LEGS_PER_MATCH]
    for r in range(2, MAX_LEGS_PER_MATCH + 1):
        for combo in itertools.combinations(safe, r):
            if is_compatible(combo):
                yield combo


def parlay_probability(legs: Iterable[Leg]) -> float:
    prob = 1.0
    for leg in legs:
        prob *= leg.probability
    return prob


def correlation_penalty(leg_count: int) -> float:
    try:
        return CORRELATION_PENALTIES[leg_count]
    except KeyError:
        raise ValueError(f"Unsupported parlay size: {leg_count} legs") from None


def price_parlay(combined_prob: float, leg_count: int) -> Pricing:
    """Derive odds and edge for a composed probability and leg count."""

    penalty = correlation_penalty(leg_count)
    fair_odds = 1 / combined_prob
    adjusted = combined_prob * penalty
    implied_odds = 1 / adjusted
    return Pricing(
        combined_prob=combined_prob,
        fair_odds=fair_odds,
        correlation_penalty=penalty,
        adjusted_prob=adjusted,
        implied_odds=implied_odds,
        edge_pct=(implied_odds - fair_odds) / fair_odds * 100,
    )


def compose(legs: tuple[Leg, ...]) -> Pricing:
    return price_parlay(parlay_probability(legs), len(legs))


def classify_confidence(combined_prob: float, leg_count: int) -> Confidence:
    if leg_count == 3:
        return Confidence.MEDIUM if combined_prob >= THREE_LEG_MEDIUM_MIN_PROB else Confidence.LOW
    if combined_prob >= HIGH_CONFIDENCE_MIN_PROB:
        return Confidence.HIGH
    if combined_prob >= MEDIUM_CONFIDENCE_MIN_PROB:
        return Confidence.MEDIUM
    return Confidence.LOW


def match_parlays(snapshot: MatchSnapshot) -> list[CandidateParlay]:
    parlays: list[CandidateParlay] = []
    for combo in generate_combinations(extract_legs(snapshot.markets)):
        pricing = compose(combo)
        parlays.append(
            CandidateParlay(
                match=snapshot,
                legs=combo,
                combined_prob=pricing.combined_prob,
                fair_odds=pricing.fair_odds,
                correlation_penalty=pricing.correlation_penalty,
                adjusted_prob=pricing.adjusted_prob,
                implied_odds=pricing.implied_odds,
                edge_pct=pricing.edge_pct,
                confidence=classify_confidence(pricing.combined_prob, len(combo)),
            )
        )
    return parlays


def rank_parlays(parlays: Iterable[CandidateParlay]) -> list[CandidateParlay]:
    """Order candidates strongest first; ties keep generation order."""

    return sorted(parlays, key=lambda p: p.combined_prob, reverse=True)


def build_parlays(snapshots: Iterable[MatchSnapshot]) -> list[CandidateParlay]:
    """Generate ranked single-game parlay candidates across every snapshot."""

    parlays: list[CandidateParlay] = []
    matches = 0
    for snapshot in snapshots:
        matches += 1
        parlays.extend(match_parlays(snapshot))
    logger.info("Generated %d parlay candidates from %d matches", len(parlays), matches)
    return rank_parlays(parlays)
