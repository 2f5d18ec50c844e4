"""Quality indicators attached to persisted parlays when they are listed."""

from __future__ import annotations

from sgplab.config import TRADABLE_MIN_EDGE_PCT, TRADABLE_MIN_PROB

CONFIDENCE_WEIGHTS = {"high": 1.0, "medium": 0.7, "low": 0.4}


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def quality_score(edge_pct: float, combined_prob: float, confidence_tier: str | None) -> float:
    """Composite 0-100 score weighting edge, probability and confidence."""

    edge_score = _clamp(edge_pct, 0.0, 50.0)
    prob_score = _clamp(combined_prob * 100, 0.0, 100.0) * 0.3
    weight = CONFIDENCE_WEIGHTS.get((confidence_tier or "").lower(), 0.4)
    return edge_score * 0.4 + prob_score * 0.3 + weight * 30 * 0.3


def quality_tier(score: float) -> str:
    if score >= 70:
        return "excellent"
    if score >= 50:
        return "good"
    if score >= 30:
        return "fair"
    return "poor"


def is_tradable(edge_pct: float, combined_prob: float) -> bool:
    return edge_pct >= TRADABLE_MIN_EDGE_PCT and combined_prob >= TRADABLE_MIN_PROB


def risk_level(combined_prob: float) -> str:
    if combined_prob >= 0.20:
        return "low"
    if combined_prob >= 0.10:
        return "medium"
    if combined_prob >= 0.05:
        return "high"
    return "very_high"


def outcome_label(outcome: str, home_team: str, away_team: str) -> str:
    """Human readable label for a stored leg outcome code."""

    if outcome == "DNB_H":
        return f"{home_team} Draw No Bet"
    if outcome == "DNB_A":
        return f"{away_team} Draw No Bet"
    if outcome == "BTTS_YES":
        return "Both Teams to Score"
    if outcome == "BTTS_NO":
        return "Both Teams NOT to Score"
    if outcome.startswith(("OVER_", "UNDER_")):
        side, _, line = outcome.partition("_")
        return f"{side.title()} {line.replace('_', '.')} Goals"
    if outcome in {"1X", "X2", "12"}:
        return f"Double Chance {outcome}"
    return outcome
