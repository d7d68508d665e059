"""
Vector helpers shared by retrieval and scoring
"""
import json
import logging
from numbers import Real
from typing import Any, List, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def sanitize_embedding(value: Any) -> Optional[List[float]]:
    """
    Normalise a stored embedding to a list of floats

    pgvector columns come back either as a sequence of numbers or as their
    text form ("[0.1,0.2,...]"). Anything else is treated as missing.
    """
    if isinstance(value, np.ndarray):
        value = value.tolist()

    if isinstance(value, (list, tuple)):
        if all(_is_number(item) for item in value):
            return [float(item) for item in value]
        return None

    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError as e:
            logger.warning(f"Failed to parse embedding string: {e}")
            return None
        if isinstance(parsed, list) and all(_is_number(item) for item in parsed):
            return [float(item) for item in parsed]

    return None


def cosine_similarity(a: Optional[Sequence[float]], b: Optional[Sequence[float]]) -> float:
    """
    Cosine similarity of two equal-length vectors

    Returns 0.0 for missing, empty, mismatched or zero-norm vectors.
    """
    if a is None or b is None or len(a) == 0 or len(b) == 0 or len(a) != len(b):
        return 0.0

    vec_a = np.asarray(a, dtype=float)
    vec_b = np.asarray(b, dtype=float)
    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)

    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(vec_a, vec_b) / (norm_a * norm_b))


def to_pgvector(embedding: Sequence[float]) -> str:
    """Convert an embedding to PostgreSQL vector text format"""
    return '[' + ','.join(map(str, embedding)) + ']'
