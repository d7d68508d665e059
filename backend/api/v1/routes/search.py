"""
Search-related API routes
"""
import logging
import math
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from ..models.base import MessageResponse
from ..models.search import SmartSearchRequest, SmartSearchResponse
from services.smart_search import SmartSearchService, get_smart_search_service
from utils import settings

logger = logging.getLogger(__name__)

search_router = APIRouter(tags=["search"])


def parse_limit(raw: Optional[str]) -> int:
    """
    Parse the limit query parameter

    Missing, non-numeric, non-finite or non-positive values fall back to the
    default; anything else is truncated and capped at the maximum.
    """
    if raw is None:
        return settings.DEFAULT_RESULT_LIMIT
    try:
        value = float(raw)
    except ValueError:
        return settings.DEFAULT_RESULT_LIMIT
    if not math.isfinite(value) or value <= 0:
        return settings.DEFAULT_RESULT_LIMIT
    return max(1, min(int(value), settings.MAX_RESULT_LIMIT))


@search_router.post(
    "/smart-search",
    response_model=SmartSearchResponse,
    responses={400: {"model": MessageResponse}, 500: {"model": MessageResponse}}
)
async def smart_search(
    request: Optional[SmartSearchRequest] = Body(None),
    limit: Optional[str] = Query(None, description="Maximum number of results (1-50, default 20)"),
    service: SmartSearchService = Depends(get_smart_search_service)
):
    """
    Hybrid relevance search over records

    Blends vector similarity, lexical rank, proper noun matches, field
    matches and engagement into one score per record.
    """
    query = request.query if request else None
    if not isinstance(query, str) or not query.strip():
        raise HTTPException(status_code=400, detail="Query must be a non-empty string")

    trimmed_query = query.strip()
    result_limit = parse_limit(limit)

    try:
        results = await service.search(trimmed_query, result_limit)
    except Exception as e:
        logger.error(f"Smart search failure: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to execute smart search")

    return SmartSearchResponse(results=results, count=len(results), query=trimmed_query)
