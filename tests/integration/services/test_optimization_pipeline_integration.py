"""Integration tests for the full seed, retrieve, generate and review pipeline.

These run every real service together over in-memory SQLite and ephemeral
ChromaDB with the mock collaborators. The persistent variant writes to disk
and is marked slow.
"""

from pathlib import Path

import pytest

from sqltune.config import Settings
from sqltune.models.document import Document
from sqltune.models.enums import QueryType, ReviewStatus
from sqltune.services.document_store import DEFAULT_DISTANCE_THRESHOLD
from sqltune.services.factory import Services, create_services, create_test_services

SLOW_QUERIES = {
    1: "SELECT * FROM users WHERE name LIKE '%john%' ORDER BY created_at",
    2: "SELECT c.email, o.total FROM customers c JOIN orders o ON c.id = o.customer_id WHERE c.city = 'Paris'",
    3: "SELECT city, COUNT(*) FROM customers GROUP BY city",
    4: "SELECT SLEEP(2), id FROM customers",
}

SHORT_NOTE = Document(
    title="Covering Indexes",
    category="indexes",
    content="A covering index holds every column a query reads, so the table itself is never touched.",
)


@pytest.fixture
async def services() -> Services:
    services = create_test_services()
    await services.initialize()
    await services.document_store.seed()
    yield services
    await services.close()


class TestRetrieval:
    async def test_exact_passage_is_retrieved_first(self, services: Services) -> None:
        await services.document_store.add_or_update_document(SHORT_NOTE)

        results = await services.document_store.search(SHORT_NOTE.content, top_k=3)

        assert results[0].title == "Covering Indexes"
        assert results[0].distance == pytest.approx(0.0, abs=1e-6)

    async def test_results_respect_threshold_and_order(self, services: Services) -> None:
        results = await services.document_store.search("JOIN optimization performance index", top_k=5)

        distances = [r.distance for r in results]
        assert len(results) <= 5
        assert all(d < DEFAULT_DISTANCE_THRESHOLD for d in distances)
        assert distances == sorted(distances)

    async def test_reseeding_keeps_document_identity(self, services: Services) -> None:
        first = await services.document_store.seed()
        second = await services.document_store.seed()

        assert [d.document_id for d in first] == [d.document_id for d in second]


class TestOptimizationPipeline:
    async def test_every_slow_query_gets_a_pending_suggestion(self, services: Services) -> None:
        results = [await services.engine.optimize_query(qid, sql) for qid, sql in SLOW_QUERIES.items()]

        for result in results:
            assert result.status == ReviewStatus.PENDING
            assert result.optimized_sql
            assert 0.1 <= result.confidence_score <= 1.0
            assert result.original_sql == SLOW_QUERIES[result.slow_query_id]

        pending = await services.engine.list_pending(limit=10)
        scores = [r.confidence_score for r in pending]
        assert len(pending) == len(SLOW_QUERIES)
        assert scores == sorted(scores, reverse=True)

    async def test_pattern_is_stored_with_result(self, services: Services) -> None:
        result = await services.engine.optimize_query(1, SLOW_QUERIES[1])

        stored = await services.engine.get_by_id(result.result_id)

        assert stored.pattern.type == QueryType.PATTERN_SEARCH
        assert "select-star" in stored.pattern.anti_patterns

    async def test_review_lifecycle(self, services: Services) -> None:
        keep = await services.engine.optimize_query(2, SLOW_QUERIES[2])
        drop = await services.engine.optimize_query(4, SLOW_QUERIES[4])

        await services.engine.accept(keep.result_id)
        await services.engine.reject(drop.result_id)

        assert await services.engine.list_pending() == []
        assert (await services.engine.get_by_id(keep.result_id)).status == ReviewStatus.ACCEPTED
        assert (await services.engine.get_by_id(drop.result_id)).status == ReviewStatus.REJECTED


@pytest.mark.slow
async def test_pipeline_with_persistent_storage(tmp_path: Path) -> None:
    settings = Settings(
        db_path=str(tmp_path / "sqltune.db"),
        vector_path=str(tmp_path / "vectors"),
        llm={"embedder": {"dimension": 128}},
    )

    async with create_services(settings) as services:
        await services.document_store.seed()
        await services.document_store.add_or_update_document(SHORT_NOTE)
        result = await services.engine.optimize_query(2, SLOW_QUERIES[2])

    async with create_services(settings) as services:
        hits = await services.document_store.search(SHORT_NOTE.content, top_k=1)
        pending = await services.engine.list_pending()

    assert hits[0].title == "Covering Indexes"
    assert [r.result_id for r in pending] == [result.result_id]
