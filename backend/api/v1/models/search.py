"""
Search-related models
"""
from typing import Any, List, Optional
from pydantic import BaseModel, Field

from services.search_types import ScoredResult


class SmartSearchRequest(BaseModel):
    """Smart search request body"""
    # Typed loosely so non-string values get the same 400 as blank ones
    query: Optional[Any] = Field(None, description="Free-text search query")


class SmartSearchResponse(BaseModel):
    """Smart search response model"""
    results: List[ScoredResult] = Field(..., description="Ranked search results")
    count: int = Field(..., description="Number of results returned")
    query: str = Field(..., description="Trimmed query text")
