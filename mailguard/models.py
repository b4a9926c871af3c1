from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any, Literal

Category = Literal["spam", "phishing", "suspicious"]
Label = Literal["clean", "suspicious", "spam"]


class _Frozen(BaseModel):
    # JSON uses camelCase (riskScore, spamTotal); Python code uses snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Message(_Frozen):
    sender: str = ""
    subject: str = ""
    body: str = ""
    message_type: Literal["email", "sms"] = "email"

    @field_validator("sender", "subject", "body", mode="before")
    @classmethod
    def _none_is_empty(cls, v):
        return "" if v is None else v

    @property
    def is_empty(self) -> bool:
        return not (self.sender.strip() or self.subject.strip() or self.body.strip())


class Rule(_Frozen):
    id: str = Field(min_length=1)
    category: Category
    weight: float = Field(ge=0)
    conditions: Dict[str, Any]
    flag: str = ""
    per_match: bool = False


class Thresholds(_Frozen):
    spam_total: float = Field(default=35.0, ge=0)
    combined_suspicious: float = Field(default=15.0, ge=0)


class EngineConfig(_Frozen):
    thresholds: Thresholds = Field(default_factory=Thresholds)


class RuleHit(_Frozen):
    rule_id: str
    category: Category
    weight: float
    evidence: Dict[str, Any] = Field(default_factory=dict)


class ScoreBreakdown(_Frozen):
    spam: float = 0.0
    phishing: float = 0.0
    suspicious: float = 0.0
    flags: List[str] = Field(default_factory=list)
    hits: List[RuleHit] = Field(default_factory=list)
    link_count: int = 0

    @property
    def spam_total(self) -> float:
        return self.spam + self.phishing

    @property
    def combined(self) -> float:
        return self.spam_total + self.suspicious


class Verdict(_Frozen):
    label: Label
    category: str
    confidence: float = Field(ge=0, le=100)
    risk_score: int = Field(ge=0, le=100)
    flags: List[str] = Field(default_factory=list, max_length=5)


# ------------------------------------------------------------------
#  HTTP request / response shapes
# ------------------------------------------------------------------
class EvaluateRequest(_Frozen):
    message: Message
    thresholds: Optional[Thresholds] = None


class EvaluateResponse(_Frozen):
    verdict: Verdict
    actions: List[str]
    summary: str
    analysis_details: ScoreBreakdown


class BatchRequest(_Frozen):
    messages: List[Message]
    thresholds: Optional[Thresholds] = None


class CategoryStat(_Frozen):
    category: str
    count: int
    avg_confidence: float


class BatchSummary(_Frozen):
    total: int = 0
    spam: int = 0
    suspicious: int = 0
    clean: int = 0
    email_scans: int = 0
    sms_scans: int = 0
    avg_confidence: float = 0.0
    avg_risk_score: float = 0.0
    categories: List[CategoryStat] = Field(default_factory=list)


class BatchResponse(_Frozen):
    results: List[Verdict]
    summary: BatchSummary
