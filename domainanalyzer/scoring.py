"""
Relevance Scoring

Pluggable scoring of intent phrases. The backend normally supplies a
``relevanceScore``; a scorer fills in phrases that arrive without one.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_RELEVANCE_SCORE = 75
SCORE_MIN = 0
SCORE_MAX = 100

_TOKEN_PATTERN = re.compile(r"[a-z0-9]+")


def _clamp_score(value: float) -> int:
    return int(max(SCORE_MIN, min(SCORE_MAX, round(value))))


class RelevanceScorer(ABC):
    """Scores one phrase dict on a 0-100 scale."""

    @abstractmethod
    def score(self, phrase: Mapping[str, Any]) -> int:
        pass


class BackendScorer(RelevanceScorer):
    """Uses the backend's score, falling back to a fixed default."""

    def __init__(self, default: int = DEFAULT_RELEVANCE_SCORE) -> None:
        self.default = default

    def score(self, phrase: Mapping[str, Any]) -> int:
        value = phrase.get('relevanceScore')
        if value is None:
            return self.default
        try:
            return _clamp_score(float(value))
        except (TypeError, ValueError):
            logger.debug(f"Non-numeric relevance score {value!r}, using default")
            return self.default


class KeywordOverlapScorer(RelevanceScorer):
    """
    Scores a phrase by how many of its words occur in the domain's keywords.

    score = base + (SCORE_MAX - base) * matched_words / phrase_words
    """

    def __init__(self, keywords: Iterable[str], base: int = 40) -> None:
        self.base = base
        self.vocabulary = {
            token for keyword in keywords for token in _tokenize(keyword)
        }

    def score(self, phrase: Mapping[str, Any]) -> int:
        tokens = _tokenize(str(phrase.get('phrase') or ''))
        if not tokens:
            return SCORE_MIN
        matched = sum(1 for token in tokens if token in self.vocabulary)
        return _clamp_score(self.base + (SCORE_MAX - self.base) * matched / len(tokens))


def _tokenize(text: str) -> List[str]:
    return _TOKEN_PATTERN.findall(text.lower())


def apply_scores(
    phrases: Iterable[Dict[str, Any]],
    scorer: Optional[RelevanceScorer] = None,
    overwrite: bool = False,
) -> List[Dict[str, Any]]:
    """
    Fill in ``relevanceScore`` on each phrase.

    Args:
        phrases: Phrase dicts (not modified)
        scorer: Scorer for phrases lacking a score (default: BackendScorer)
        overwrite: Rescore phrases that already carry a backend score

    Returns:
        New list of phrase dicts sorted by descending relevance
    """
    scorer = scorer or BackendScorer()
    scored = []
    for phrase in phrases:
        item = dict(phrase)
        if overwrite or item.get('relevanceScore') is None:
            item['relevanceScore'] = scorer.score(item)
        scored.append(item)

    scored.sort(key=lambda p: p.get('relevanceScore') or 0, reverse=True)
    return scored
