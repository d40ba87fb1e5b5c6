"""
Clinical Reasoning Engine – Symptom Normalizer
================================================
Canonicalises free-text symptom labels into the knowledge-base key space
and provides the single matching function shared by scoring, red-flag
detection and follow-up selection.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, List

_WHITESPACE = re.compile(r"\s+")
_NON_KEY_CHARS = re.compile(r"[^a-z_]")

# (reported_key, knowledge_key) -> bool
SymptomMatcher = Callable[[str, str], bool]


def normalize(name) -> str:
    """
    Normalise a symptom label: lowercase, whitespace runs to ``_``,
    drop everything outside ``[a-z_]``.

    Never raises; anything that is not a string normalises to ``""``.
    """
    if not isinstance(name, str):
        return ""
    key = _WHITESPACE.sub("_", name.lower())
    return _NON_KEY_CHARS.sub("", key)


def containment_match(reported: str, knowledge_key: str) -> bool:
    """Substring containment in either direction. Empty keys never match."""
    if not reported or not knowledge_key:
        return False
    return knowledge_key in reported or reported in knowledge_key


def matched_keys(
    knowledge_keys: Iterable[str],
    reported_keys: Iterable[str],
    matcher: SymptomMatcher = containment_match,
) -> List[str]:
    """Return the knowledge keys (in table order) matched by any reported key."""
    reported = list(reported_keys)
    return [
        key for key in knowledge_keys
        if any(matcher(r, key) for r in reported)
    ]
