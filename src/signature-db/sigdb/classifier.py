"""
Classify a user query as a text search term or a selector/topic hash.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

_HEX_RE = re.compile(r"^[a-fA-F0-9]+$")

FUNCTION_SELECTOR_DIGITS = 8
EVENT_TOPIC_DIGITS = 64

EMPTY_QUERY_REASON = "Please enter a search query."
INVALID_HEX_REASON = "Invalid hex format. Use only 0-9 and a-f characters."


@dataclass(frozen=True)
class TextQuery:
    term: str
    kind: str = "text"


@dataclass(frozen=True)
class HashQuery:
    selector_type: str  # "function" | "event"
    normalized_hex: str
    kind: str = "hash"


@dataclass(frozen=True)
class InvalidQuery:
    reason: str
    kind: str = "invalid"


ClassifiedQuery = Union[TextQuery, HashQuery, InvalidQuery]


def is_hash_shaped(text: str) -> bool:
    """A query is treated as a hash when 0x-prefixed or exactly eight hex characters."""
    candidate = text.strip()
    if candidate.lower().startswith("0x"):
        return True
    return len(candidate) == FUNCTION_SELECTOR_DIGITS and bool(_HEX_RE.match(candidate))


def classify(text: str) -> ClassifiedQuery:
    candidate = (text or "").strip()
    if not candidate:
        return InvalidQuery(EMPTY_QUERY_REASON)

    if not is_hash_shaped(candidate):
        return TextQuery(candidate)

    normalized = candidate.lower()
    if not normalized.startswith("0x"):
        normalized = f"0x{normalized}"

    digits = normalized[2:]
    if not _HEX_RE.match(digits):
        return InvalidQuery(INVALID_HEX_REASON)

    if len(digits) == FUNCTION_SELECTOR_DIGITS:
        return HashQuery("function", normalized)
    if len(digits) == EVENT_TOPIC_DIGITS:
        return HashQuery("event", normalized)

    return InvalidQuery(
        "Invalid hash length. Expected 8 hex characters (4 bytes) for a function selector "
        f"or 64 hex characters (32 bytes) for an event topic, got {len(digits)} characters."
    )
