import logging
from typing import List

from fastapi import FastAPI, HTTPException

from .engine import ClassificationEngine, summarize
from .logging_utils import configure_logging
from .models import (
    BatchRequest,
    BatchResponse,
    EvaluateRequest,
    EvaluateResponse,
    Rule,
    ScoreBreakdown,
    Thresholds,
    Verdict,
)
from .rules import RuleConfigError
from .settings import MAX_BATCH_SIZE, RULES_PATH, THRESHOLD_OVERRIDES

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="MailGuard Classification API", version="1.0.0")

# ------------------------------------------------------------------
#  Suggested follow-up actions per verdict label
# ------------------------------------------------------------------
ACTIONS = {
    "clean": ["allow"],
    "suspicious": ["warn_user", "log"],
    "spam": ["block", "notify_user"],
}

# ------------------------------------------------------------------
#  Core Engine
# ------------------------------------------------------------------
engine = ClassificationEngine(RULES_PATH, THRESHOLD_OVERRIDES)


def describe(verdict: Verdict, breakdown: ScoreBreakdown) -> str:
    return (
        f"Risk {verdict.risk_score} → {verdict.label} ({verdict.category}). "
        f"spam={breakdown.spam:.1f}, phishing={breakdown.phishing:.1f}, suspicious={breakdown.suspicious:.1f}"
    )


# ------------------------------------------------------------------
#  API Routes
# ------------------------------------------------------------------
@app.get("/health")
def health():
    return {"ok": True, "rules_loaded": len(engine.rule_set)}


@app.get("/rules", response_model=List[Rule])
def get_rules():
    return engine.rules


@app.post("/rules/reload")
def reload_rules():
    try:
        engine.load_rules()
    except RuleConfigError as e:
        logger.warning("Rule reload failed, keeping %d loaded rules: %s", len(engine.rule_set), e)
        raise HTTPException(status_code=500, detail=str(e))
    return {"reloaded": True, "count": len(engine.rule_set)}


@app.get("/config", response_model=Thresholds)
def get_config():
    return engine.config.thresholds


@app.post("/evaluate", response_model=EvaluateResponse)
def evaluate(request: EvaluateRequest):
    verdict, breakdown = engine.analyze(request.message, request.thresholds)
    return EvaluateResponse(
        verdict=verdict,
        actions=ACTIONS[verdict.label],
        summary=describe(verdict, breakdown),
        analysis_details=breakdown,
    )


@app.post("/evaluate/batch", response_model=BatchResponse)
def evaluate_batch(request: BatchRequest):
    if len(request.messages) > MAX_BATCH_SIZE:
        raise HTTPException(
            status_code=422,
            detail=f"Batch of {len(request.messages)} exceeds the limit of {MAX_BATCH_SIZE} messages",
        )
    results = engine.evaluate_batch(request.messages, request.thresholds)
    return BatchResponse(results=results, summary=summarize(results, request.messages))
