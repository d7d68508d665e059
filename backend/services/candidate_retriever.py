"""
Smart Search Candidate Retrieval
Runs the retrieval strategies in priority order and merges their rows into one
candidate set keyed by record ID:

1. Hybrid ranking function (short-circuits when it returns rows)
2. Vector-similarity function
3. Vector scan (only when step 2 found nothing)
4. Full-text search, falling back to ILIKE
5. Plain scan (only when nothing else matched)

A failing or timed-out strategy contributes nothing; it never fails the search.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from database.search import RecordSearchDatabase
from services.search_types import Candidate
from utils import settings
from utils.vector_math import cosine_similarity

logger = logging.getLogger(__name__)

Rows = List[Dict[str, Any]]


def candidate_count_for(limit: int) -> int:
    return max(limit * settings.CANDIDATE_MULTIPLIER, settings.MIN_CANDIDATE_COUNT)


class CandidateRetriever:
    """Cascade of retrieval strategies against the record store"""

    def __init__(
        self,
        store: Optional[RecordSearchDatabase] = None,
        timeout: Optional[float] = settings.RETRIEVAL_TIMEOUT
    ):
        self.store = store or RecordSearchDatabase()
        self.timeout = timeout

    async def _attempt(self, name: str, call: Callable[[], Awaitable[Rows]]) -> Optional[Rows]:
        """
        Run one strategy call with a timeout

        Returns None on failure so callers can tell errors from empty results.
        """
        try:
            return await asyncio.wait_for(call(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{name} timed out after {self.timeout}s")
        except Exception as e:
            logger.warning(f"{name} failed: {e}")
        return None

    @staticmethod
    def _merge(candidates: Dict[Any, Candidate], incoming: Candidate):
        existing = candidates.get(incoming.id)
        candidates[incoming.id] = existing.merge(incoming) if existing else incoming

    async def retrieve(
        self,
        query: str,
        embedding: Optional[Sequence[float]],
        proper_nouns: Sequence[str],
        limit: int = settings.DEFAULT_RESULT_LIMIT
    ) -> List[Candidate]:
        """
        Build the candidate set for one search

        Args:
            query: Trimmed query text
            embedding: Query embedding, or None for text-only search
            proper_nouns: Proper nouns extracted from the query
            limit: Requested result count

        Returns:
            Candidates deduplicated by record ID, in first-seen order
        """
        candidate_count = candidate_count_for(limit)
        has_embedding = bool(embedding)

        if has_embedding:
            rpc_candidates = await self._hybrid_candidates(query, embedding, proper_nouns, candidate_count)
            if rpc_candidates:
                logger.info(f"Hybrid ranking returned {len(rpc_candidates)} candidates")
                return rpc_candidates

        candidates: Dict[Any, Candidate] = {}

        if has_embedding:
            for candidate in await self._vector_candidates(embedding, candidate_count, candidates):
                self._merge(candidates, candidate)

            if not candidates:
                for candidate in await self._vector_scan_candidates(embedding, candidate_count):
                    self._merge(candidates, candidate)

        for candidate in await self._text_candidates(query, candidate_count):
            self._merge(candidates, candidate)

        if not candidates:
            fallback_limit = max(limit, settings.MIN_FALLBACK_COUNT)
            for candidate in await self._fallback_candidates(embedding, fallback_limit):
                self._merge(candidates, candidate)

        results = list(candidates.values())
        if has_embedding:
            results = [self._backfill_similarity(candidate, embedding) for candidate in results]

        logger.info(
            f"Retrieved {len(results)} candidates for '{query}' "
            f"(embedding={'yes' if has_embedding else 'no'})"
        )
        return results

    # =========================
    # ===== Strategies ========
    # =========================

    async def _hybrid_candidates(
        self,
        query: str,
        embedding: Sequence[float],
        proper_nouns: Sequence[str],
        candidate_count: int
    ) -> List[Candidate]:
        rows = await self._attempt(
            "smart_search_candidates",
            lambda: self.store.hybrid_search(embedding, query, proper_nouns, candidate_count)
        )
        candidates: Dict[Any, Candidate] = {}
        for row in rows or []:
            self._merge(candidates, Candidate.from_row(row, match_source=row.get("match_source") or "rpc"))
        return list(candidates.values())

    async def _vector_candidates(
        self,
        embedding: Sequence[float],
        candidate_count: int,
        existing: Dict[Any, Candidate]
    ) -> List[Candidate]:
        rows = await self._attempt(
            "match_records",
            lambda: self.store.match_records(embedding, candidate_count)
        )
        candidates = []
        for row in rows or []:
            candidate = Candidate.from_row(row, match_source="vector")
            if candidate.cosine_similarity is None:
                if candidate.similarity is not None:
                    candidate = candidate.model_copy(update={"cosine_similarity": candidate.similarity})
                else:
                    stored = candidate.embedding
                    if stored is None and candidate.id in existing:
                        stored = existing[candidate.id].embedding
                    if stored is not None:
                        candidate = candidate.model_copy(
                            update={"cosine_similarity": cosine_similarity(stored, embedding)}
                        )
            candidates.append(candidate)
        return candidates

    async def _vector_scan_candidates(
        self,
        embedding: Sequence[float],
        candidate_count: int
    ) -> List[Candidate]:
        rows = await self._attempt(
            "vector fallback scan",
            lambda: self.store.records_with_embeddings(candidate_count)
        )
        return [
            self._with_local_similarity(Candidate.from_row(row, match_source="vector-fallback"), embedding)
            for row in rows or []
        ]

    async def _text_candidates(self, query: str, candidate_count: int) -> List[Candidate]:
        rows = await self._attempt(
            "full-text search",
            lambda: self.store.full_text_search(query, candidate_count)
        )
        if rows is None:
            rows = await self._attempt(
                "pattern search",
                lambda: self.store.pattern_search(query, candidate_count)
            )
        return [Candidate.from_row(row, match_source="text") for row in rows or []]

    async def _fallback_candidates(
        self,
        embedding: Optional[Sequence[float]],
        fallback_limit: int
    ) -> List[Candidate]:
        rows = await self._attempt(
            "plain fallback scan",
            lambda: self.store.scan_records(fallback_limit)
        )
        return [
            self._with_local_similarity(Candidate.from_row(row, match_source="fallback"), embedding)
            for row in rows or []
        ]

    # =========================
    # ===== Similarity ========
    # =========================

    @staticmethod
    def _with_local_similarity(candidate: Candidate, embedding: Optional[Sequence[float]]) -> Candidate:
        if candidate.embedding is None or not embedding:
            return candidate
        return candidate.model_copy(
            update={"cosine_similarity": cosine_similarity(candidate.embedding, embedding)}
        )

    @classmethod
    def _backfill_similarity(cls, candidate: Candidate, embedding: Sequence[float]) -> Candidate:
        if candidate.cosine_similarity is not None:
            return candidate
        return cls._with_local_similarity(candidate, embedding)
