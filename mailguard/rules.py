import copy
import logging
import re
import yaml
from typing import Dict, Any, List, Tuple, Callable, Iterable, Iterator, Mapping, Union

from pydantic import ValidationError

from .feature_extractors import contains_any, count_links, lookalike_score, regex_match, uppercase_ratio, sender_domain
from .models import Rule, RuleHit, ScoreBreakdown, Thresholds, EngineConfig
from .normalizer import NormalizedMessage

logger = logging.getLogger(__name__)

Evidence = Dict[str, Any]
ConditionHandler = Callable[[NormalizedMessage, Any], Tuple[bool, Evidence]]


class RuleConfigError(ValueError):
    """A rule set or its thresholds could not be built."""


# ---- Condition primitives ----
def _terms_hit(text: str, terms: List[str]) -> Tuple[bool, Evidence]:
    hits = contains_any(text, terms)
    return (bool(hits), {"matched_terms": hits} if hits else {})

def _cond_text_contains_any(msg: NormalizedMessage, terms: List[str]):
    return _terms_hit(msg.text, terms)

def _cond_body_contains_any(msg: NormalizedMessage, terms: List[str]):
    return _terms_hit(msg.body, terms)

def _cond_sender_contains_any(msg: NormalizedMessage, terms: List[str]):
    return _terms_hit(msg.sender, terms)

def _cond_regex(msg: NormalizedMessage, pattern: str):
    ok = regex_match(msg.text, pattern)
    return (ok, {"regex": pattern} if ok else {})

def _cond_uppercase_ratio(msg: NormalizedMessage, params: Dict[str, Any]):
    # Letter case is gone from the normalized form, so read the original body.
    body = msg.message.body
    ratio = uppercase_ratio(body)
    ok = len(body) > int(params.get("min_length", 0)) and ratio > float(params["ratio"])
    return (ok, {"uppercase_ratio": round(ratio, 2)} if ok else {})

def _cond_char_count(msg: NormalizedMessage, params: Dict[str, Any]):
    count = msg.message.body.count(params["char"])
    ok = count > int(params["count"])
    return (ok, {"char": params["char"], "count": count} if ok else {})

def _cond_link_count(msg: NormalizedMessage, params: Dict[str, Any]):
    count = count_links(msg.text)
    ok = count > int(params["count"])
    return (ok, {"link_count": count} if ok else {})

def _cond_sender_lookalike(msg: NormalizedMessage, params: Dict[str, Any]):
    domain = sender_domain(msg.sender)
    threshold = float(params.get("threshold", 0.9))
    for trusted in params["domains"]:
        trusted = trusted.lower()
        if not domain or domain == trusted:
            continue
        score = lookalike_score(domain, trusted)
        if score >= threshold:
            return True, {"sender_domain": domain, "resembles": trusted, "lookalike_score": round(score, 2)}
    return False, {}


CONDITION_HANDLERS: Dict[str, ConditionHandler] = {
    "text.contains_any": _cond_text_contains_any,
    "body.contains_any": _cond_body_contains_any,
    "sender.contains_any": _cond_sender_contains_any,
    "text.regex": _cond_regex,
    "body.uppercase_ratio_gt": _cond_uppercase_ratio,
    "body.char_count_gt": _cond_char_count,
    "text.link_count_gt": _cond_link_count,
    "sender.lookalike": _cond_sender_lookalike,
}


# ---- Construction-time checks ----
def _check_terms(value):
    if not isinstance(value, list) or not value or not all(isinstance(t, str) and t.strip() for t in value):
        raise ValueError("expected a non-empty list of non-empty strings")

def _check_regex(value):
    if not isinstance(value, str):
        raise ValueError("expected a regex string")
    try:
        re.compile(value)
    except re.error as e:
        raise ValueError(f"invalid regex {value!r}: {e}")

def _check_uppercase_ratio(value):
    if not isinstance(value, dict) or "ratio" not in value:
        raise ValueError("expected a mapping with 'ratio' (and optional 'min_length')")
    if not 0 <= float(value["ratio"]) <= 1 or int(value.get("min_length", 0)) < 0:
        raise ValueError("ratio must be within [0, 1] and min_length non-negative")

def _check_char_count(value):
    if not isinstance(value, dict) or not isinstance(value.get("char"), str) or len(value["char"]) != 1:
        raise ValueError("expected a mapping with a single-character 'char'")
    if int(value.get("count", -1)) < 0:
        raise ValueError("'count' must be a non-negative integer")

def _check_count(value):
    if not isinstance(value, dict) or int(value.get("count", -1)) < 0:
        raise ValueError("expected a mapping with a non-negative integer 'count'")

def _check_lookalike(value):
    if not isinstance(value, dict):
        raise ValueError("expected a mapping with 'domains' (and optional 'threshold')")
    _check_terms(value.get("domains"))
    if not 0 < float(value.get("threshold", 0.9)) <= 1:
        raise ValueError("threshold must be within (0, 1]")

_VALUE_CHECKS: Dict[str, Callable[[Any], None]] = {
    "text.contains_any": _check_terms,
    "body.contains_any": _check_terms,
    "sender.contains_any": _check_terms,
    "text.regex": _check_regex,
    "body.uppercase_ratio_gt": _check_uppercase_ratio,
    "body.char_count_gt": _check_char_count,
    "text.link_count_gt": _check_count,
    "sender.lookalike": _check_lookalike,
}


def validate_conditions(conds: Any, where: str = "conditions") -> None:
    if not isinstance(conds, dict) or not conds:
        raise RuleConfigError(f"{where}: expected a non-empty mapping")
    for combinator in ("any", "all"):
        if combinator in conds:
            if len(conds) != 1:
                raise RuleConfigError(f"{where}: '{combinator}' cannot be mixed with other keys")
            children = conds[combinator]
            if not isinstance(children, list) or not children:
                raise RuleConfigError(f"{where}.{combinator}: expected a non-empty list")
            for i, child in enumerate(children):
                validate_conditions(child, f"{where}.{combinator}[{i}]")
            return
    if len(conds) != 1:
        raise RuleConfigError(f"{where}: a condition names exactly one primitive, got {sorted(conds)}")
    (key, value), = conds.items()
    if key not in CONDITION_HANDLERS:
        raise RuleConfigError(f"{where}: unknown condition '{key}'")
    try:
        _VALUE_CHECKS[key](value)
    except (TypeError, ValueError) as e:
        raise RuleConfigError(f"{where}.{key}: {e}") from e


class RuleSet:
    """Ordered, immutable collection of rules, unique by id.

    Declaration order matters: flags are reported in the order rules are
    declared, so higher-severity families go first.
    """

    def __init__(self, rules: Iterable[Union[Rule, Mapping[str, Any]]] = ()):
        built: List[Rule] = []
        seen = set()
        for i, raw in enumerate(rules):
            try:
                rule = raw if isinstance(raw, Rule) else Rule.model_validate(raw)
            except ValidationError as e:
                raise RuleConfigError(f"rule #{i}: {e}") from e
            if rule.id in seen:
                raise RuleConfigError(f"duplicate rule id '{rule.id}'")
            validate_conditions(rule.conditions, f"rule '{rule.id}'")
            seen.add(rule.id)
            # the set owns its conditions; later edits to the caller's dicts do not leak in
            built.append(rule.model_copy(update={"conditions": copy.deepcopy(rule.conditions)}))
        self._rules: Tuple[Rule, ...] = tuple(built)

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    @property
    def ids(self) -> List[str]:
        return [r.id for r in self._rules]

    def with_rule(self, rule: Union[Rule, Mapping[str, Any]]) -> "RuleSet":
        """Return a new set with ``rule`` appended."""
        return RuleSet(list(self._rules) + [rule])

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RuleSet({len(self._rules)} rules)"


def load_rules(rules_path: str) -> Tuple[RuleSet, EngineConfig]:
    """Read a rule set and its default thresholds from a YAML file."""
    try:
        with open(rules_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise RuleConfigError("top level must be a mapping")
        rule_set = RuleSet(data.get("rules") or [])
        config = EngineConfig(thresholds=Thresholds.model_validate(data.get("thresholds") or {}))
    except (OSError, yaml.YAMLError, ValidationError, RuleConfigError) as e:
        raise RuleConfigError(f"Failed to load rules from {rules_path}: {e}") from e
    logger.info("Loaded %d rules from %s", len(rule_set), rules_path)
    return rule_set, config


# ---- Evaluation ----
def eval_conditions(msg: NormalizedMessage, conds: Dict[str, Any]) -> Tuple[bool, Evidence]:
    if "any" in conds:
        for c in conds["any"]:
            ok, ev = eval_conditions(msg, c)
            if ok:
                return True, ev
        return False, {}
    if "all" in conds:
        combined: Evidence = {}
        for c in conds["all"]:
            ok, ev = eval_conditions(msg, c)
            if not ok:
                return False, {}
            for k, v in ev.items():
                if k == "matched_terms":
                    merged = combined.setdefault("matched_terms", [])
                    merged.extend(t for t in v if t not in merged)
                else:
                    combined[k] = v
        return True, combined
    (key, value), = conds.items()
    return CONDITION_HANDLERS[key](msg, value)


def render_flag(template: str, term: str = "") -> str:
    return template.replace("{term}", term) if template else ""


def evaluate_rules(msg: NormalizedMessage, rule_set: RuleSet) -> ScoreBreakdown:
    scores = {"spam": 0.0, "phishing": 0.0, "suspicious": 0.0}
    flags: List[str] = []
    hits: List[RuleHit] = []
    for rule in rule_set:
        ok, ev = eval_conditions(msg, rule.conditions)
        if not ok:
            continue
        terms = ev.get("matched_terms") or []
        if rule.per_match and terms:
            weight = rule.weight * len(terms)
            rendered = [render_flag(rule.flag, t) for t in terms]
        else:
            weight = rule.weight
            rendered = [render_flag(rule.flag, terms[0] if terms else "")]
        scores[rule.category] += weight
        flags.extend(f for f in rendered if f)
        hits.append(RuleHit(rule_id=rule.id, category=rule.category, weight=weight, evidence=ev))
    logger.debug("Rule hits: %s", [h.rule_id for h in hits])
    return ScoreBreakdown(**scores, flags=flags, hits=hits, link_count=count_links(msg.text))
