"""
Smart Search Service
Coordinates proper noun extraction, query embedding, candidate retrieval and
scoring for one search request
"""
import asyncio
import logging
import time
from typing import List, Optional

from services.candidate_retriever import CandidateRetriever
from services.proper_nouns import extract_proper_nouns
from services.score_calculator import RelevanceScoreCalculator, get_score_calculator
from services.search_types import ScoredResult
from utils import settings
from utils.embedding_provider import EmbeddingProvider, get_embedding_provider

logger = logging.getLogger(__name__)


class SmartSearchService:
    """Hybrid relevance search over records"""

    def __init__(
        self,
        embedding_provider: Optional[EmbeddingProvider] = None,
        retriever: Optional[CandidateRetriever] = None,
        score_calculator: Optional[RelevanceScoreCalculator] = None
    ):
        self.embedding_provider = embedding_provider or get_embedding_provider()
        self.retriever = retriever or CandidateRetriever()
        self.score_calculator = score_calculator or get_score_calculator()

    async def search(self, query: str, limit: int = settings.DEFAULT_RESULT_LIMIT) -> List[ScoredResult]:
        """
        Run the full search pipeline

        Args:
            query: Trimmed, non-empty query text
            limit: Maximum number of results, already clamped by the caller

        Returns:
            Ranked results, at most `limit` long
        """
        start = time.perf_counter()

        embedding, proper_nouns = await asyncio.gather(
            self.embedding_provider.get_query_embedding(query),
            asyncio.to_thread(extract_proper_nouns, query),
        )
        logger.info(f"Proper nouns for '{query}': {proper_nouns}")

        candidates = await self.retriever.retrieve(
            query=query,
            embedding=embedding,
            proper_nouns=proper_nouns,
            limit=limit,
        )

        results = self.score_calculator.combine_scores(
            candidates,
            query=query,
            proper_nouns=proper_nouns,
            limit=limit,
        )

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"Smart search for '{query}' returned {len(results)} of "
            f"{len(candidates)} candidates in {elapsed_ms:.0f}ms"
        )
        return results


_service: Optional[SmartSearchService] = None


def get_smart_search_service() -> SmartSearchService:
    """Shared service instance (FastAPI dependency)"""
    global _service
    if _service is None:
        _service = SmartSearchService()
    return _service
