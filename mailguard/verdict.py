import math
from typing import Dict, Tuple

from .models import EngineConfig, ScoreBreakdown, Verdict

# (low, high) confidence per label
CONFIDENCE_RANGES: Dict[str, Tuple[float, float]] = {
    "spam": (60.0, 100.0),
    "suspicious": (45.0, 84.0),
    "clean": (50.0, 95.0),
}
CONFIDENCE_SCALE = 50.0
RISK_MULTIPLIER = 2.5
MAX_FLAGS = 5


def saturate(score: float, scale: float = CONFIDENCE_SCALE) -> float:
    """Map a non-negative score onto [0, 1) with diminishing returns."""
    return 1.0 - math.exp(-max(score, 0.0) / scale)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def classify(breakdown: ScoreBreakdown, config: EngineConfig) -> Tuple[str, str]:
    """Return ``(label, category)`` for a score breakdown."""
    t = config.thresholds
    if breakdown.spam_total >= t.spam_total:
        # ties go to "scam"
        return "spam", ("phishing" if breakdown.phishing > breakdown.spam else "scam")
    if breakdown.combined >= t.combined_suspicious:
        return "suspicious", "promotional"
    return "clean", "legitimate"


def confidence_for(label: str, breakdown: ScoreBreakdown) -> float:
    """Deterministic confidence for ``label``.

    Spam confidence grows with the spam+phishing total and suspicious
    confidence with the combined score. Clean confidence falls as leftover
    suspicion grows.
    """
    lo, hi = CONFIDENCE_RANGES[label]
    if label == "spam":
        value = lo + (hi - lo) * saturate(breakdown.spam_total)
    elif label == "suspicious":
        value = lo + (hi - lo) * saturate(breakdown.combined)
    else:
        value = hi - (hi - lo) * saturate(breakdown.combined)
    return round(min(max(value, lo), hi), 1)


def risk_score(breakdown: ScoreBreakdown) -> int:
    return min(round_half_up(breakdown.combined * RISK_MULTIPLIER), 100)


def resolve(breakdown: ScoreBreakdown, config: EngineConfig) -> Verdict:
    label, category = classify(breakdown, config)
    return Verdict(
        label=label,
        category=category,
        confidence=confidence_for(label, breakdown),
        risk_score=risk_score(breakdown),
        flags=breakdown.flags[:MAX_FLAGS],
    )
