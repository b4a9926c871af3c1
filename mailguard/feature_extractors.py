import re
import textdistance
from typing import Iterable, List

def contains_any(text: str, terms: Iterable[str]) -> List[str]:
    """Return the distinct terms found in ``text``, in the order they were given."""
    t = (text or "").lower()
    found: List[str] = []
    for term in terms:
        term = term.lower()
        if term and term in t and term not in found:
            found.append(term)
    return found

def lookalike_score(a: str, b: str) -> float:
    # Use Jaro-Winkler similarity as a reasonable proxy
    if not a or not b:
        return 0.0
    return float(textdistance.jaro_winkler(a.lower(), b.lower()))

def regex_match(text: str, pattern: str) -> bool:
    if not text:
        return False
    return re.search(pattern, text, re.IGNORECASE) is not None

def uppercase_ratio(text: str) -> float:
    if not text:
        return 0.0
    return sum(1 for ch in text if ch.isupper()) / len(text)

def sender_domain(sender: str) -> str:
    """``"Name <a@b.example>"`` -> ``"b.example"``; bare tokens come back as-is."""
    s = (sender or "").strip().lower().strip("<>")
    if "@" in s:
        s = s.rsplit("@", 1)[1]
    return s.strip()

LINK_RE = re.compile(r"https?://", re.IGNORECASE)

def count_links(text: str) -> int:
    return len(LINK_RE.findall(text or ""))
