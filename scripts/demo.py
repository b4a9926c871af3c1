import json
import sys

from mailguard.engine import analyze
from mailguard.logging_utils import configure_logging
from mailguard.rules import load_rules
from mailguard.settings import RULES_PATH

configure_logging()
rule_set, config = load_rules(RULES_PATH)

sample = {
    "sender": "noreply@prize-center.example",
    "subject": "URGENT: Claim your $1000 prize NOW!",
    "body": "Congratulations winner! Click here to verify account details before it expires today!!!!",
}
if len(sys.argv) > 1:
    # python scripts/demo.py '{"sender": "...", "subject": "...", "body": "..."}'
    sample = json.loads(sys.argv[1])

verdict, breakdown = analyze(sample, rule_set, config)
print("HITS:", [h.rule_id for h in breakdown.hits])
print("SCORES:", {"spam": breakdown.spam, "phishing": breakdown.phishing, "suspicious": breakdown.suspicious})
print("VERDICT:", verdict.model_dump_json(by_alias=True, indent=2))
