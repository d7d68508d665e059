"""Shared fixtures for smart search tests."""

import pytest
from unittest.mock import AsyncMock

from database.search import RecordSearchDatabase

STORE_METHODS = (
    "hybrid_search",
    "match_records",
    "records_with_embeddings",
    "full_text_search",
    "pattern_search",
    "scan_records",
)


def build_store(**returns):
    """AsyncMock store whose methods return [] unless overridden.

    A value that is an exception instance is raised instead of returned.
    """
    store = AsyncMock(spec=RecordSearchDatabase)
    for name in STORE_METHODS:
        value = returns.get(name, [])
        method = getattr(store, name)
        if isinstance(value, BaseException):
            method.side_effect = value
        else:
            method.return_value = value
    return store


@pytest.fixture
def make_store():
    return build_store
