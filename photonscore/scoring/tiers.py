"""Score tier ladder mapping a fico-equivalent score to tier, label and color."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TierInfo:
    tier: str
    label: str
    color: str


# Inclusive lower bounds, highest first. First match wins.
TIER_LADDER: list[tuple[int, TierInfo]] = [
    (800, TierInfo(tier="exceptional", label="Exceptional", color="#22C55E")),
    (740, TierInfo(tier="very_good", label="Very Good", color="#84CC16")),
    (670, TierInfo(tier="good", label="Good", color="#06B6D4")),
    (580, TierInfo(tier="fair", label="Fair", color="#F59E0B")),
]

POOR = TierInfo(tier="poor", label="Poor", color="#EF4444")

SCORE_MIN = 300
SCORE_MAX = 850


def classify(fico_score: int) -> TierInfo:
    """Resolve any integer score to a tier. Out-of-range values clamp naturally."""
    for threshold, info in TIER_LADDER:
        if fico_score >= threshold:
            return info
    return POOR


def gauge_percentage(fico_score: int) -> float:
    """Position of the score on the 300-850 gauge as 0-100."""
    pct = (fico_score - SCORE_MIN) / (SCORE_MAX - SCORE_MIN) * 100
    return max(0.0, min(100.0, pct))
