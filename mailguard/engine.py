import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from .models import (
    BatchSummary,
    CategoryStat,
    EngineConfig,
    Message,
    Rule,
    ScoreBreakdown,
    Thresholds,
    Verdict,
)
from .normalizer import normalize
from .rules import RuleConfigError, RuleSet, evaluate_rules, load_rules
from .verdict import CONFIDENCE_RANGES, resolve

logger = logging.getLogger(__name__)

MessageLike = Union[Message, Mapping[str, Any], None]

EMPTY_VERDICT = Verdict(
    label="clean",
    category="legitimate",
    confidence=CONFIDENCE_RANGES["clean"][0],
    risk_score=0,
    flags=[],
)


def _coerce(message: MessageLike) -> Optional[Message]:
    if isinstance(message, Message):
        return message
    try:
        return Message.model_validate(message or {})
    except ValidationError as e:
        logger.warning("Malformed message treated as empty (%d validation errors)", e.error_count())
        return None


def analyze(
    message: MessageLike, rule_set: RuleSet, config: Optional[EngineConfig] = None
) -> Tuple[Verdict, ScoreBreakdown]:
    """Classify a message and also return the score breakdown behind it."""
    config = config or EngineConfig()
    msg = _coerce(message)
    if msg is None or msg.is_empty:
        return EMPTY_VERDICT, ScoreBreakdown()
    breakdown = evaluate_rules(normalize(msg), rule_set)
    return resolve(breakdown, config), breakdown


def evaluate(message: MessageLike, rule_set: RuleSet, config: Optional[EngineConfig] = None) -> Verdict:
    """Classify one message. Never raises on message content."""
    return analyze(message, rule_set, config)[0]


def evaluate_batch(
    messages: Iterable[MessageLike], rule_set: RuleSet, config: Optional[EngineConfig] = None
) -> List[Verdict]:
    return [evaluate(m, rule_set, config) for m in messages]


def summarize(verdicts: Sequence[Verdict], messages: Sequence[MessageLike] = ()) -> BatchSummary:
    """Aggregate counts and averages over a batch of verdicts."""
    total = len(verdicts)
    if not total:
        return BatchSummary()
    labels = {"spam": 0, "suspicious": 0, "clean": 0}
    per_category: Dict[str, List[float]] = {}
    for v in verdicts:
        labels[v.label] += 1
        per_category.setdefault(v.category, []).append(v.confidence)
    # without the messages every scan counts as email
    sms = sum(1 for m in messages if (_coerce(m) or Message()).message_type == "sms")
    return BatchSummary(
        total=total,
        **labels,
        email_scans=total - sms,
        sms_scans=sms,
        avg_confidence=round(sum(v.confidence for v in verdicts) / total, 1),
        avg_risk_score=round(sum(v.risk_score for v in verdicts) / total, 1),
        categories=[
            CategoryStat(category=c, count=len(confs), avg_confidence=round(sum(confs) / len(confs), 1))
            for c, confs in per_category.items()
        ],
    )


class ClassificationEngine:
    """A rule set and its thresholds loaded from YAML, reloadable in place.

    The pair is swapped as a single reference, so callers classifying on
    other threads see either the old or the new rules, never a mix.
    """

    def __init__(self, rules_path: str, threshold_overrides: Optional[Dict[str, float]] = None):
        self.rules_path = rules_path
        self.threshold_overrides = dict(threshold_overrides or {})
        self._state: Tuple[RuleSet, EngineConfig] = (RuleSet(), EngineConfig())
        self.load_rules()

    def load_rules(self) -> None:
        rule_set, config = load_rules(self.rules_path)
        if self.threshold_overrides:
            merged = {**config.thresholds.model_dump(), **self.threshold_overrides}
            try:
                config = EngineConfig(thresholds=Thresholds.model_validate(merged))
            except ValidationError as e:
                raise RuleConfigError(f"Invalid threshold overrides {self.threshold_overrides}: {e}") from e
        self._state = (rule_set, config)

    @property
    def rule_set(self) -> RuleSet:
        return self._state[0]

    @property
    def rules(self) -> List[Rule]:
        return list(self._state[0])

    @property
    def config(self) -> EngineConfig:
        return self._state[1]

    def analyze(self, message: MessageLike, thresholds: Optional[Thresholds] = None) -> Tuple[Verdict, ScoreBreakdown]:
        rule_set, config = self._state
        return analyze(message, rule_set, config if thresholds is None else EngineConfig(thresholds=thresholds))

    def evaluate(self, message: MessageLike, thresholds: Optional[Thresholds] = None) -> Verdict:
        return self.analyze(message, thresholds)[0]

    def evaluate_batch(self, messages: Iterable[MessageLike], thresholds: Optional[Thresholds] = None) -> List[Verdict]:
        rule_set, config = self._state
        return evaluate_batch(messages, rule_set, config if thresholds is None else EngineConfig(thresholds=thresholds))
