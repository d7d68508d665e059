"""
Proper noun extraction for search queries
"""
import re
from typing import Dict, List

# Runs of capitalized words, e.g. "Jain", "Mahavir Swami", "O'Neil"
PROPER_NOUN_PATTERN = re.compile(r"\b[A-Z][\w'-]*(?:\s+[A-Z][\w'-]*)*\b", re.ASCII)

STOP_WORDS = frozenset({
    "I", "We", "Us", "You", "He", "She", "They", "It",
    "A", "An", "The", "And", "Or", "But",
})


def extract_proper_nouns(text: str) -> List[str]:
    """
    Extract capitalized terms and phrases from a query

    Matches are deduplicated case-insensitively, keeping the first casing seen,
    in order of first occurrence. Stop words are only dropped when a match
    consists of the stop word alone.
    """
    if not text:
        return []

    unique: Dict[str, str] = {}
    for match in PROPER_NOUN_PATTERN.findall(text):
        trimmed = match.strip()
        if not trimmed or trimmed in STOP_WORDS:
            continue
        unique.setdefault(trimmed.lower(), trimmed)

    return list(unique.values())
