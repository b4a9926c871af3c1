import os
from typing import Dict, Mapping

# ------------------------------------------------------------------
#  Configuration
# ------------------------------------------------------------------
RULES_PATH = os.getenv(
    "RULES_PATH",
    os.path.join(os.path.dirname(os.path.dirname(__file__)), "rules", "rules.yaml")
)
MAX_BATCH_SIZE = int(os.getenv("MAX_BATCH_SIZE", "500"))

THRESHOLD_ENV = (
    ("spam_total", "SPAM_TOTAL_THRESHOLD"),
    ("combined_suspicious", "SUSPICIOUS_THRESHOLD"),
)


def threshold_overrides(environ: Mapping[str, str] = os.environ) -> Dict[str, float]:
    """Env values win over the thresholds block of the rules file."""
    return {field: float(environ[var]) for field, var in THRESHOLD_ENV if environ.get(var)}


THRESHOLD_OVERRIDES = threshold_overrides()
