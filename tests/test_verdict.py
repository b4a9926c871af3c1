import pytest

from mailguard.models import EngineConfig, ScoreBreakdown, Thresholds
from mailguard.verdict import CONFIDENCE_RANGES, confidence_for, resolve, risk_score, round_half_up

CONFIG = EngineConfig()


def test_labels_and_categories():
    assert resolve(ScoreBreakdown(spam=40), CONFIG).category == "scam"
    assert resolve(ScoreBreakdown(spam=10, phishing=40), CONFIG).category == "phishing"
    assert resolve(ScoreBreakdown(spam=20, phishing=20), CONFIG).category == "scam"
    assert resolve(ScoreBreakdown(suspicious=16), CONFIG).category == "promotional"
    assert resolve(ScoreBreakdown(suspicious=8), CONFIG).category == "legitimate"


def test_suspicious_counts_spam_scores_too():
    verdict = resolve(ScoreBreakdown(spam=10, suspicious=5), CONFIG)
    assert verdict.label == "suspicious"


def test_custom_thresholds():
    strict = EngineConfig(thresholds=Thresholds(spam_total=10, combined_suspicious=5))
    assert resolve(ScoreBreakdown(spam=10), strict).label == "spam"
    assert resolve(ScoreBreakdown(suspicious=5), strict).label == "suspicious"


@pytest.mark.parametrize("label,field", [("spam", "spam"), ("suspicious", "suspicious")])
def test_confidence_grows_with_score_within_range(label, field):
    lo, hi = CONFIDENCE_RANGES[label]
    values = [confidence_for(label, ScoreBreakdown(**{field: s})) for s in range(0, 400, 5)]
    assert values == sorted(values)
    assert all(lo <= v <= hi for v in values)


def test_clean_confidence_falls_with_leftover_suspicion():
    values = [confidence_for("clean", ScoreBreakdown(suspicious=s)) for s in range(0, 15)]
    assert values == sorted(values, reverse=True)
    assert values[0] == 95.0
    assert all(50.0 <= v <= 95.0 for v in values)


def test_spam_confidence_at_default_threshold():
    assert confidence_for("spam", ScoreBreakdown(spam=35)) == 80.1


def test_risk_score_rounds_half_up_and_caps():
    assert round_half_up(2.5) == 3
    assert risk_score(ScoreBreakdown(suspicious=1)) == 3
    assert risk_score(ScoreBreakdown(spam=15)) == 38
    assert risk_score(ScoreBreakdown(spam=40, phishing=20)) == 100
    assert risk_score(ScoreBreakdown()) == 0


def test_flags_truncated_in_order():
    flags = [f"flag {i}" for i in range(8)]
    verdict = resolve(ScoreBreakdown(spam=50, flags=flags), CONFIG)
    assert verdict.flags == flags[:5]
