"""Unit tests for the candidate retrieval cascade."""

import asyncio

import pytest

from services.candidate_retriever import CandidateRetriever, candidate_count_for

QUERY_EMBEDDING = [1.0, 0.0]


def row(record_id, **fields):
    values = {
        "id": record_id,
        "title_name": f"Record {record_id}",
        "summary": None,
        "authors": None,
        "pdf_url": None,
        "engagement_score": None,
        "embedding": None,
    }
    values.update(fields)
    return values


def test_candidate_count():
    assert candidate_count_for(20) == 60
    assert candidate_count_for(5) == 40
    assert candidate_count_for(50) == 150


@pytest.mark.asyncio
class TestCandidateRetriever:
    """Test strategy ordering, merging and failure handling."""

    async def test_hybrid_rows_short_circuit(self, make_store):
        store = make_store(hybrid_search=[row(i, cosine_similarity=0.5) for i in range(5)])
        retriever = CandidateRetriever(store=store)

        candidates = await retriever.retrieve("Jain", QUERY_EMBEDDING, ["Jain"], limit=20)

        assert [c.id for c in candidates] == [0, 1, 2, 3, 4]
        assert all(c.match_source == "rpc" for c in candidates)
        store.hybrid_search.assert_awaited_once_with(QUERY_EMBEDDING, "Jain", ["Jain"], 60)
        store.match_records.assert_not_awaited()
        store.full_text_search.assert_not_awaited()
        store.scan_records.assert_not_awaited()

    async def test_hybrid_rows_are_deduplicated(self, make_store):
        store = make_store(hybrid_search=[
            row(1, cosine_similarity=0.4),
            row(2, cosine_similarity=0.3),
            row(1, cosine_similarity=0.9, summary="Later row"),
        ])
        retriever = CandidateRetriever(store=store)

        candidates = await retriever.retrieve("Jain", QUERY_EMBEDDING, ["Jain"], limit=20)

        assert [c.id for c in candidates] == [1, 2]
        assert candidates[0].cosine_similarity == 0.9
        assert candidates[0].summary == "Later row"
        assert candidates[0].match_source == "rpc"

    async def test_without_embedding_skips_vector_strategies(self, make_store):
        store = make_store(full_text_search=[row(1), row(2)])
        retriever = CandidateRetriever(store=store)

        candidates = await retriever.retrieve("Jain philosophy", None, ["Jain"], limit=20)

        assert [c.match_source for c in candidates] == ["text", "text"]
        assert all(c.cosine_similarity is None for c in candidates)
        store.hybrid_search.assert_not_awaited()
        store.match_records.assert_not_awaited()
        store.records_with_embeddings.assert_not_awaited()
        store.scan_records.assert_not_awaited()

    async def test_empty_hybrid_result_falls_through(self, make_store):
        store = make_store(match_records=[row(1, cosine_similarity=0.9)])
        retriever = CandidateRetriever(store=store)

        candidates = await retriever.retrieve("q", QUERY_EMBEDDING, [], limit=20)

        assert [c.match_source for c in candidates] == ["vector"]
        store.full_text_search.assert_awaited_once()

    async def test_hybrid_error_falls_through(self, make_store):
        store = make_store(
            hybrid_search=RuntimeError("function does not exist"),
            match_records=[row(1, similarity=0.4)],
        )
        retriever = CandidateRetriever(store=store)

        candidates = await retriever.retrieve("q", QUERY_EMBEDDING, [], limit=20)

        assert len(candidates) == 1
        assert candidates[0].cosine_similarity == 0.4

    async def test_vector_and_text_merge(self, make_store):
        store = make_store(
            match_records=[row(1, title_name="Vector title", cosine_similarity=0.7)],
            full_text_search=[row(1, title_name=None, summary="Text summary", pdf_url="a.pdf")],
        )
        retriever = CandidateRetriever(store=store)

        [candidate] = await retriever.retrieve("q", QUERY_EMBEDDING, [], limit=20)

        assert candidate.match_source == "vector+text"
        assert candidate.title_name == "Vector title"
        assert candidate.summary == "Text summary"
        assert candidate.pdf_url == "a.pdf"
        assert candidate.cosine_similarity == 0.7

    async def test_vector_rows_without_similarity_use_stored_embedding(self, make_store):
        store = make_store(match_records=[row(1, embedding="[0.0,1.0]"), row(2, embedding=[1.0, 0.0])])
        retriever = CandidateRetriever(store=store)

        candidates = await retriever.retrieve("q", QUERY_EMBEDDING, [], limit=20)

        similarities = {c.id: c.cosine_similarity for c in candidates}
        assert similarities[1] == pytest.approx(0.0)
        assert similarities[2] == pytest.approx(1.0)

    async def test_vector_scan_when_vector_rpc_is_empty(self, make_store):
        store = make_store(records_with_embeddings=[row(3, embedding=[1.0, 1.0])])
        retriever = CandidateRetriever(store=store)

        [candidate] = await retriever.retrieve("q", QUERY_EMBEDDING, [], limit=10)

        assert candidate.match_source == "vector-fallback"
        assert candidate.cosine_similarity == pytest.approx(2 ** -0.5)
        store.records_with_embeddings.assert_awaited_once_with(40)

    async def test_vector_scan_skipped_when_vector_rpc_has_rows(self, make_store):
        store = make_store(match_records=[row(1, cosine_similarity=0.2)])
        retriever = CandidateRetriever(store=store)

        await retriever.retrieve("q", QUERY_EMBEDDING, [], limit=10)

        store.records_with_embeddings.assert_not_awaited()

    async def test_full_text_error_uses_pattern_search(self, make_store):
        store = make_store(
            full_text_search=RuntimeError("syntax error in tsquery"),
            pattern_search=[row(5)],
        )
        retriever = CandidateRetriever(store=store)

        [candidate] = await retriever.retrieve("50% off", None, [], limit=20)

        assert candidate.match_source == "text"
        store.pattern_search.assert_awaited_once_with("50% off", 60)

    async def test_empty_full_text_does_not_use_pattern_search(self, make_store):
        store = make_store(scan_records=[row(1)])
        retriever = CandidateRetriever(store=store)

        await retriever.retrieve("q", None, [], limit=20)

        store.pattern_search.assert_not_awaited()

    async def test_plain_scan_when_nothing_matched(self, make_store):
        store = make_store(scan_records=[row(1, embedding=[1.0, 0.0]), row(2)])
        retriever = CandidateRetriever(store=store)

        candidates = await retriever.retrieve("q", QUERY_EMBEDDING, [], limit=5)

        assert [c.match_source for c in candidates] == ["fallback", "fallback"]
        assert candidates[0].cosine_similarity == pytest.approx(1.0)
        assert candidates[1].cosine_similarity is None
        store.scan_records.assert_awaited_once_with(10)

    async def test_everything_failing_returns_empty(self, make_store):
        error = RuntimeError("database unavailable")
        store = make_store(
            hybrid_search=error,
            match_records=error,
            records_with_embeddings=error,
            full_text_search=error,
            pattern_search=error,
            scan_records=error,
        )
        retriever = CandidateRetriever(store=store)

        assert await retriever.retrieve("q", QUERY_EMBEDDING, [], limit=20) == []

    async def test_timeout_counts_as_failure(self, make_store):
        async def slow_search(*args):
            await asyncio.sleep(1)
            return [row(1)]

        store = make_store(full_text_search=[row(2)])
        store.hybrid_search.side_effect = slow_search
        retriever = CandidateRetriever(store=store, timeout=0.01)

        candidates = await retriever.retrieve("q", QUERY_EMBEDDING, [], limit=20)

        assert [c.id for c in candidates] == [2]

    async def test_backfills_similarity_for_text_rows(self, make_store):
        store = make_store(full_text_search=[row(1, embedding=[1.0, 0.0])])
        retriever = CandidateRetriever(store=store)

        [candidate] = await retriever.retrieve("q", QUERY_EMBEDDING, [], limit=20)

        assert candidate.cosine_similarity == pytest.approx(1.0)

    async def test_candidates_are_unique(self, make_store):
        store = make_store(
            match_records=[row(1, cosine_similarity=0.3), row(2, cosine_similarity=0.2)],
            full_text_search=[row(2), row(3), row(1)],
        )
        retriever = CandidateRetriever(store=store)

        candidates = await retriever.retrieve("q", QUERY_EMBEDDING, [], limit=20)

        assert [c.id for c in candidates] == [1, 2, 3]
