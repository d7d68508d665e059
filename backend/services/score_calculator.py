"""
Smart Search Relevance Scoring
"""
import logging
import math
import re
from typing import Dict, Iterable, List, Optional, Sequence

from services.search_types import Candidate, ScoreBreakdown, ScoredResult
from utils import settings

logger = logging.getLogger(__name__)

DEFAULT_WEIGHTS = {
    'vector': 0.45,         # Semantic similarity
    'lexical': 0.25,        # Keyword rank
    'proper_noun': 0.15,    # Named entity overlap
    'field_match': 0.10,    # Substring coverage per field
    'engagement': 0.05      # Reader engagement
}

LEXICAL_FIELD_WEIGHTS = (('title_name', 1.8), ('summary', 1.2), ('authors', 0.8))
FIELD_MATCH_WEIGHTS = (('title_name', 0.5), ('summary', 0.3), ('authors', 0.2))
LEXICAL_SCALE = 1.5
TITLE_PROPER_NOUN_BONUS = 0.1

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


def tokenize(value: Optional[str]) -> List[str]:
    """Lowercase and split on runs of non-alphanumeric characters"""
    if not value:
        return []
    return [token for token in _TOKEN_SPLIT.split(value.lower()) if token]


def unique_tokens(value: Optional[str]) -> List[str]:
    return list(dict.fromkeys(tokenize(value)))


def clamp01(value: float) -> float:
    if value is None or not math.isfinite(value):
        return 0.0
    return min(1.0, max(0.0, value))


def _is_missing(value: Optional[float]) -> bool:
    return value is None or math.isnan(value)


class RelevanceScoreCalculator:
    """
    Blend five per-candidate signals into one relevance score:
    - Vector similarity (45%)
    - Lexical rank (25%)
    - Proper noun boost (15%)
    - Field match bonus (10%)
    - Engagement (5%)
    """

    def __init__(self, weights: Optional[Dict[str, float]] = None):
        self.weights = dict(DEFAULT_WEIGHTS)
        for key, value in (weights or {}).items():
            if key not in self.weights:
                logger.warning(f"Ignoring unknown score weight: {key}")
                continue
            self.weights[key] = value

    def calculate_vector_score(self, candidate: Candidate) -> float:
        value = candidate.cosine_similarity
        if value is None:
            value = candidate.similarity
        if _is_missing(value):
            return 0.0
        clamped = max(-1.0, min(1.0, value))
        return clamped if clamped > 0 else 0.0

    def normalize_rank(self, value: Optional[float]) -> float:
        """Compress a raw rank into [0, 1) with x / (x + 1)"""
        if _is_missing(value):
            return 0.0
        safe = max(0.0, value)
        if math.isinf(safe):
            return 1.0
        return safe / (safe + 1)

    def calculate_lexical_score(self, candidate: Candidate, query_tokens: Sequence[str]) -> float:
        """
        Use the precomputed rank when it is usable, otherwise score term
        overlap per field with a log length penalty
        """
        from_row = self.normalize_rank(candidate.bm25_rank)
        if from_row > 0:
            return from_row

        if not query_tokens:
            return 0.0

        weighted_score = 0.0
        total_weight = 0.0

        for field, weight in LEXICAL_FIELD_WEIGHTS:
            field_tokens = tokenize(getattr(candidate, field))
            if not field_tokens:
                continue

            total_weight += weight

            field_set = set(field_tokens)
            hits = sum(1 for token in query_tokens if token in field_set)
            if hits == 0:
                continue

            saturation = hits / len(query_tokens)
            length_penalty = math.log2(len(field_tokens) + 1)
            weighted_score += weight * (saturation / (length_penalty or 1))

        if total_weight == 0:
            return 0.0

        return clamp01((weighted_score / total_weight) * LEXICAL_SCALE)

    def calculate_proper_noun_score(self, candidate: Candidate, proper_nouns: Sequence[str]) -> float:
        """Share of proper nouns found in the record, plus a title bonus"""
        if candidate.proper_noun_boost is not None:
            return clamp01(candidate.proper_noun_boost)

        if not proper_nouns:
            return 0.0

        haystack = " ".join(
            text for text in (candidate.title_name, candidate.summary, candidate.authors) if text
        ).lower()
        if not haystack:
            return 0.0

        hits = sum(1 for noun in proper_nouns if noun in haystack)
        if hits == 0:
            return 0.0

        base = hits / len(proper_nouns)
        title = (candidate.title_name or "").lower()
        title_hit = bool(title) and any(noun in title for noun in proper_nouns)

        return clamp01(base + (TITLE_PROPER_NOUN_BONUS if title_hit else 0.0))

    def calculate_field_match_score(self, candidate: Candidate, query_tokens: Sequence[str]) -> float:
        """Weighted share of query tokens appearing as substrings of each field"""
        if candidate.field_match_bonus is not None:
            return clamp01(candidate.field_match_bonus)

        if not query_tokens:
            return 0.0

        total = 0.0
        for field, weight in FIELD_MATCH_WEIGHTS:
            text = getattr(candidate, field)
            if not text:
                continue
            lower = text.lower()
            hits = sum(1 for token in query_tokens if token in lower)
            total += weight * (hits / len(query_tokens))

        return clamp01(total)

    def calculate_engagement_score(self, candidate: Candidate) -> float:
        value = candidate.engagement_score
        if _is_missing(value):
            return 0.0
        safe = max(0.0, value)
        if safe > 1:
            # Diminishing returns for raw counts
            return min(1.0, math.tanh(safe / 5))
        return clamp01(safe)

    def score_candidate(
        self,
        candidate: Candidate,
        query_tokens: Sequence[str],
        proper_nouns: Sequence[str]
    ) -> ScoredResult:
        """Compute the breakdown and composite score for one candidate"""
        vector = self.calculate_vector_score(candidate)
        lexical = self.calculate_lexical_score(candidate, query_tokens)
        proper_noun = self.calculate_proper_noun_score(candidate, proper_nouns)
        field_match = self.calculate_field_match_score(candidate, query_tokens)
        engagement = self.calculate_engagement_score(candidate)

        total = (
            self.weights['vector'] * vector +
            self.weights['lexical'] * lexical +
            self.weights['proper_noun'] * proper_noun +
            self.weights['field_match'] * field_match +
            self.weights['engagement'] * engagement
        )

        return ScoredResult(
            id=candidate.id,
            title_name=candidate.title_name or "",
            authors=candidate.authors or "",
            summary=candidate.summary or "",
            pdf_url=candidate.pdf_url or "",
            finalScore=round(clamp01(total), 6),
            breakdown=ScoreBreakdown(
                cosineSimilarity=round(vector, 6),
                bm25Rank=round(lexical, 6),
                properNounBoost=round(proper_noun, 6),
                fieldMatchBonus=round(field_match, 6),
                engagementScore=round(engagement, 6),
            ),
            matchSource=candidate.match_source,
        )

    def combine_scores(
        self,
        candidates: Iterable[Candidate],
        query: str,
        proper_nouns: Sequence[str],
        limit: int = settings.DEFAULT_RESULT_LIMIT
    ) -> List[ScoredResult]:
        """
        Score, rank and truncate candidates

        Ties keep their input order.
        """
        query_tokens = unique_tokens(query)
        lower_nouns = [noun.lower() for noun in proper_nouns]

        results = [
            self.score_candidate(candidate, query_tokens, lower_nouns)
            for candidate in candidates
        ]
        results.sort(key=lambda result: result.finalScore, reverse=True)

        return results[:limit]


def get_score_calculator() -> RelevanceScoreCalculator:
    """Build a calculator with weights from settings"""
    return RelevanceScoreCalculator(weights=settings.SMART_SEARCH_WEIGHTS)
