"""Unit tests for the ResultStore service."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from sqltune.models.enums import QueryType, ReviewStatus
from sqltune.models.pattern import QueryPattern
from sqltune.models.result import OptimizationResult
from sqltune.services.metadata_store import create_async_engine_from_path
from sqltune.services.result_store import ResultStore


def _make_result(
    confidence: float = 0.7,
    created_at: datetime | None = None,
    slow_query_id: int = 1,
) -> OptimizationResult:
    return OptimizationResult(
        slow_query_id=slow_query_id,
        original_sql="SELECT * FROM orders ORDER BY created_at",
        optimized_sql="SELECT id FROM orders ORDER BY created_at LIMIT 100",
        pattern=QueryPattern(type=QueryType.AGGREGATION, tables=["orders"], anti_patterns=["select-star"]),
        rationale="Added LIMIT",
        confidence_score=confidence,
        created_at=created_at or datetime.now(timezone.utc),
    )


@pytest.fixture
async def store() -> ResultStore:
    store = ResultStore(engine=create_async_engine_from_path(":memory:"))
    await store.initialize_schema()
    return store


class TestInsertAndGet:
    """Round trips through SQLite."""

    async def test_insert_and_get_round_trip(self, store: ResultStore) -> None:
        result = _make_result()

        await store.insert(result)
        retrieved = await store.get(result.result_id)

        assert retrieved == result
        assert retrieved is not None
        assert retrieved.created_at.tzinfo is not None
        assert retrieved.pattern.type == QueryType.AGGREGATION

    async def test_get_unknown_returns_none(self, store: ResultStore) -> None:
        assert await store.get(str(uuid4())) is None


class TestListByStatus:
    """Ordering and filtering."""

    async def test_orders_by_confidence_then_newest(self, store: ResultStore) -> None:
        now = datetime.now(timezone.utc)
        low = _make_result(confidence=0.4, created_at=now)
        high_old = _make_result(confidence=0.9, created_at=now - timedelta(minutes=5))
        high_new = _make_result(confidence=0.9, created_at=now)
        for result in (low, high_old, high_new):
            await store.insert(result)

        listed = await store.list_by_status(ReviewStatus.PENDING, limit=10)

        assert [r.result_id for r in listed] == [high_new.result_id, high_old.result_id, low.result_id]

    async def test_limit_is_applied(self, store: ResultStore) -> None:
        for confidence in (0.3, 0.5, 0.7):
            await store.insert(_make_result(confidence=confidence))

        listed = await store.list_by_status(ReviewStatus.PENDING, limit=2)

        assert [r.confidence_score for r in listed] == [0.7, 0.5]

    async def test_filters_by_status(self, store: ResultStore) -> None:
        accepted = _make_result()
        pending = _make_result()
        await store.insert(accepted)
        await store.insert(pending)
        await store.transition(accepted.result_id, ReviewStatus.ACCEPTED, datetime.now(timezone.utc))

        assert [r.result_id for r in await store.list_by_status(ReviewStatus.PENDING, 10)] == [pending.result_id]
        assert [r.result_id for r in await store.list_by_status(ReviewStatus.ACCEPTED, 10)] == [accepted.result_id]


class TestTransition:
    """Guarded status updates."""

    async def test_transition_from_pending(self, store: ResultStore) -> None:
        result = _make_result()
        await store.insert(result)
        reviewed_at = datetime.now(timezone.utc)

        assert await store.transition(result.result_id, ReviewStatus.REJECTED, reviewed_at)

        retrieved = await store.get(result.result_id)
        assert retrieved is not None
        assert retrieved.status == ReviewStatus.REJECTED
        assert retrieved.reviewed_at == reviewed_at

    async def test_second_transition_is_refused(self, store: ResultStore) -> None:
        result = _make_result()
        await store.insert(result)
        first_review = datetime.now(timezone.utc)
        await store.transition(result.result_id, ReviewStatus.ACCEPTED, first_review)

        updated = await store.transition(
            result.result_id, ReviewStatus.REJECTED, first_review + timedelta(minutes=1)
        )

        retrieved = await store.get(result.result_id)
        assert not updated
        assert retrieved is not None
        assert retrieved.status == ReviewStatus.ACCEPTED
        assert retrieved.reviewed_at == first_review

    async def test_transition_unknown_id(self, store: ResultStore) -> None:
        assert not await store.transition(str(uuid4()), ReviewStatus.ACCEPTED, datetime.now(timezone.utc))
