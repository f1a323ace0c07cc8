"""
app/utils/similarity.py — Case-insensitive title matching
Standalone lookup (/api/similares) and the duplicate gate on suggestions.
Input order is preserved, so callers get the store's order (votes desc).
"""
from __future__ import annotations

from typing import Iterable, Optional

from app.models import Topic


def _normalize_title(title: str) -> str:
    """Casefold and trim for comparison."""
    return title.strip().casefold()


def find_similar(query: Optional[str], topics: Iterable[Topic]) -> list[Topic]:
    """
    Topics whose title contains `query`, ignoring case.
    Empty or missing query → [] (never an error).
    """
    if not query or not query.strip():
        return []
    needle = _normalize_title(query)
    return [t for t in topics if needle in _normalize_title(t.titulo)]


def find_duplicates(title: str, topics: Iterable[Topic]) -> list[Topic]:
    """
    Topics that clash with a candidate title: the existing title contains the
    candidate, or the candidate contains the existing title.
    """
    candidate = _normalize_title(title)
    if not candidate:
        return []
    matches: list[Topic] = []
    for topic in topics:
        existing = _normalize_title(topic.titulo)
        if candidate in existing or (existing and existing in candidate):
            matches.append(topic)
    return matches
