"""Quality indicator tests."""

from __future__ import annotations

import pytest

from sgplab.parlays import quality


def test_tradable_requires_edge_and_probability() -> None:
    assert quality.is_tradable(17.6, 0.39)
    assert quality.is_tradable(5.0, 0.05)
    assert not quality.is_tradable(4.99, 0.39)
    assert not quality.is_tradable(25.0, 0.049)


@pytest.mark.parametrize(
    ("prob", "expected"),
    [(0.45, "low"), (0.20, "low"), (0.15, "medium"), (0.05, "high"), (0.01, "very_high")],
)
def test_risk_level(prob: float, expected: str) -> None:
    assert quality.risk_level(prob) == expected


def test_quality_score_weights_components() -> None:
    score = quality.quality_score(25.0, 0.30, "medium")
    assert score == pytest.approx(25.0 * 0.4 + 30.0 * 0.3 * 0.3 + 0.7 * 30 * 0.3)
    capped = quality.quality_score(500.0, 3.0, "HIGH")
    assert capped == pytest.approx(50 * 0.4 + 100 * 0.3 * 0.3 + 30 * 0.3)
    assert quality.quality_score(10.0, 0.2, None) == quality.quality_score(10.0, 0.2, "low")


def test_quality_tier_boundaries() -> None:
    assert quality.quality_tier(70) == "excellent"
    assert quality.quality_tier(50) == "good"
    assert quality.quality_tier(30) == "fair"
    assert quality.quality_tier(29.9) == "poor"


def test_outcome_labels() -> None:
    assert quality.outcome_label("DNB_A", "Arsenal", "Chelsea") == "Chelsea Draw No Bet"
    assert quality.outcome_label("OVER_2_5", "Arsenal", "Chelsea") == "Over 2.5 Goals"
    assert quality.outcome_label("BTTS_YES", "Arsenal", "Chelsea") == "Both Teams to Score"
    assert quality.outcome_label("X2", "Arsenal", "Chelsea") == "Double Chance X2"
    assert quality.outcome_label("CORNERS_9_5", "Arsenal", "Chelsea") == "CORNERS_9_5"
