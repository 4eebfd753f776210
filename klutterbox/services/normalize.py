"""Text normalization shared by the search index and the query planner."""
import re
import unicodedata
from typing import List, Optional

# Index tokens are maximal runs of letters and digits.
_FIELD_TOKEN = re.compile(r"[^\W_]+")


def strip_punctuation(term: str) -> str:
    """Drop every Unicode punctuation (P*) and symbol (S*) character."""
    return "".join(ch for ch in term if unicodedata.category(ch)[0] not in ("P", "S"))


def query_terms(q: Optional[str]) -> List[str]:
    """Split a free-text query on whitespace and clean each term.

    Terms that are empty once punctuation is removed are discarded, so
    ``"  --  "`` yields no terms at all.
    """
    if not q:
        return []
    terms = []
    for raw in q.split():
        term = strip_punctuation(raw)
        if term:
            terms.append(term)
    return terms


def field_tokens(text: Optional[str]) -> List[str]:
    """Lower-cased tokens of an indexed field, in order of appearance."""
    if not text:
        return []
    return _FIELD_TOKEN.findall(text.lower())
