"""Rule-based spam and phishing classification for message content."""

from .engine import ClassificationEngine, analyze, evaluate, evaluate_batch, summarize
from .models import EngineConfig, Message, Rule, ScoreBreakdown, Thresholds, Verdict
from .rules import RuleConfigError, RuleSet, load_rules

__all__ = [
    "ClassificationEngine",
    "EngineConfig",
    "Message",
    "Rule",
    "RuleConfigError",
    "RuleSet",
    "ScoreBreakdown",
    "Thresholds",
    "Verdict",
    "analyze",
    "evaluate",
    "evaluate_batch",
    "load_rules",
    "summarize",
]
