"""
Record Search Queries
Data-store operations used by smart search: the hybrid and vector-similarity
SQL functions, full-text search with an ILIKE fallback, and bounded scans.
Every method may raise; callers decide how failures degrade.
"""
import logging
from typing import Any, Dict, List, Sequence

from database.connect import get_db_pool
from utils.vector_math import to_pgvector

logger = logging.getLogger(__name__)

RECORD_COLUMNS = "id, title_name, summary, authors, pdf_url, engagement_score, embedding"


def escape_ilike_pattern(value: str) -> str:
    """Escape %, _ and backslash for use inside an ILIKE pattern"""
    return (
        value.replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )


class RecordSearchDatabase:
    """Async record search operations against the shared pool"""

    async def _fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        pool = await get_db_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(sql, *params)
        return [dict(row) for row in rows]

    async def hybrid_search(
        self,
        embedding: Sequence[float],
        query_text: str,
        proper_nouns: Sequence[str],
        match_count: int
    ) -> List[Dict[str, Any]]:
        """Call the server-side hybrid ranking function"""
        return await self._fetch(
            """
            SELECT *
            FROM smart_search_candidates(
                query_embedding => $1::vector,
                query_text => $2,
                proper_nouns => $3::text[],
                match_count => $4
            )
            """,
            to_pgvector(embedding), query_text, list(proper_nouns), match_count
        )

    async def match_records(
        self,
        embedding: Sequence[float],
        match_count: int
    ) -> List[Dict[str, Any]]:
        """Call the vector-similarity function"""
        return await self._fetch(
            """
            SELECT *
            FROM match_records(
                query_embedding => $1::vector,
                match_count => $2
            )
            """,
            to_pgvector(embedding), match_count
        )

    async def records_with_embeddings(self, limit: int) -> List[Dict[str, Any]]:
        """Fetch records that have a stored embedding"""
        return await self._fetch(
            f"""
            SELECT {RECORD_COLUMNS}
            FROM records
            WHERE embedding IS NOT NULL
            LIMIT $1
            """,
            limit
        )

    async def full_text_search(self, query_text: str, limit: int) -> List[Dict[str, Any]]:
        """Web-search style full-text query against the fts column"""
        return await self._fetch(
            f"""
            SELECT {RECORD_COLUMNS}
            FROM records
            WHERE fts @@ websearch_to_tsquery('english', $1)
            LIMIT $2
            """,
            query_text, limit
        )

    async def pattern_search(self, query_text: str, limit: int) -> List[Dict[str, Any]]:
        """Case-insensitive substring match over title, summary and authors"""
        pattern = f"%{escape_ilike_pattern(query_text)}%"
        return await self._fetch(
            f"""
            SELECT {RECORD_COLUMNS}
            FROM records
            WHERE title_name ILIKE $1
               OR summary ILIKE $1
               OR authors ILIKE $1
            LIMIT $2
            """,
            pattern, limit
        )

    async def scan_records(self, limit: int) -> List[Dict[str, Any]]:
        """Fetch an arbitrary bounded set of records"""
        return await self._fetch(
            f"""
            SELECT {RECORD_COLUMNS}
            FROM records
            LIMIT $1
            """,
            limit
        )
