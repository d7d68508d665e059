"""
Smart search data models
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from utils.vector_math import sanitize_embedding


def join_match_sources(existing: Optional[str], incoming: Optional[str]) -> Optional[str]:
    """Concatenate provenance tags with '+', skipping tags already present"""
    if not existing:
        return incoming
    if not incoming:
        return existing

    tags = existing.split("+")
    for tag in incoming.split("+"):
        if tag not in tags:
            tags.append(tag)
    return "+".join(tags)


class Candidate(BaseModel):
    """A retrieved record plus the signal data gathered about it"""
    id: Any = Field(..., description="Record ID")
    title_name: Optional[str] = Field(None, description="Record title")
    authors: Optional[str] = Field(None, description="Author string")
    summary: Optional[str] = Field(None, description="Record summary")
    pdf_url: Optional[str] = Field(None, description="PDF reference")
    embedding: Optional[List[float]] = Field(None, description="Stored embedding")
    cosine_similarity: Optional[float] = Field(None, description="Cosine similarity to the query")
    similarity: Optional[float] = Field(None, description="Legacy similarity field")
    bm25_rank: Optional[float] = Field(None, description="Precomputed lexical rank")
    engagement_score: Optional[float] = Field(None, description="Raw engagement signal")
    field_match_bonus: Optional[float] = Field(None, description="Precomputed field match bonus")
    proper_noun_boost: Optional[float] = Field(None, description="Precomputed proper noun boost")
    match_source: Optional[str] = Field(None, description="Retrieval strategies that produced this record")

    @classmethod
    def from_row(cls, row: Dict[str, Any], **overrides: Any) -> "Candidate":
        """Build a candidate from a data-store row, ignoring unknown columns"""
        values = {name: row.get(name) for name in cls.model_fields if row.get(name) is not None}
        values["embedding"] = sanitize_embedding(row.get("embedding"))
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def merge(self, newer: "Candidate") -> "Candidate":
        """
        Combine with a candidate for the same record from a later strategy

        Non-null values from `newer` win, gaps are filled from `self`, and
        match sources are joined.
        """
        merged = self.model_dump()
        for name, value in newer.model_dump().items():
            if value is not None:
                merged[name] = value
        merged["match_source"] = join_match_sources(self.match_source, newer.match_source)
        return Candidate(**merged)


class ScoreBreakdown(BaseModel):
    """Per-signal contributions, each in [0, 1]"""
    model_config = ConfigDict(frozen=True)

    cosineSimilarity: float = Field(..., description="Vector similarity score")
    bm25Rank: float = Field(..., description="Lexical rank score")
    properNounBoost: float = Field(..., description="Proper noun score")
    fieldMatchBonus: float = Field(..., description="Field match score")
    engagementScore: float = Field(..., description="Engagement score")


class ScoredResult(BaseModel):
    """Smart search result"""
    model_config = ConfigDict(frozen=True)

    id: Any = Field(..., description="Record ID")
    title_name: str = Field("", description="Record title")
    authors: str = Field("", description="Author string")
    summary: str = Field("", description="Record summary")
    pdf_url: str = Field("", description="PDF reference")
    finalScore: float = Field(..., description="Composite relevance score in [0, 1]")
    breakdown: ScoreBreakdown = Field(..., description="Signal breakdown")
    matchSource: Optional[str] = Field(None, description="Retrieval strategies that produced this record")
