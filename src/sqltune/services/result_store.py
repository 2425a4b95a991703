"""SQLite persistence for optimization results.

Results are inserted once and afterwards only change status. A transition
is a single conditional UPDATE guarded on ``status = 'pending'`` so that a
result can be reviewed exactly once, even under concurrent callers.
"""

from datetime import datetime, timezone

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlmodel import SQLModel

from sqltune.models.enums import ReviewStatus
from sqltune.models.result import OptimizationResult
from sqltune.models.tables import OptimizationRecord


class ResultStore:
    """Stores OptimizationResult records keyed by result id."""

    def __init__(
        self,
        engine: AsyncEngine,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._engine = engine
        self._logger = logger or structlog.get_logger(__name__)

    async def initialize_schema(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        self._logger.info("result_store_initialized")

    async def insert(self, result: OptimizationResult) -> None:
        record = self._result_to_record(result)
        async with AsyncSession(self._engine) as session:
            session.add(record)
            await session.commit()
        self._logger.debug(
            "result_inserted",
            result_id=result.result_id,
            slow_query_id=result.slow_query_id,
        )

    async def get(self, result_id: str) -> OptimizationResult | None:
        async with AsyncSession(self._engine) as session:
            record = await session.get(OptimizationRecord, result_id)
            if record is None:
                return None
            return self._record_to_result(record)

    async def list_by_status(self, status: ReviewStatus, limit: int) -> list[OptimizationResult]:
        """Results in ``status``, highest confidence first, newest first on ties."""
        statement = (
            select(OptimizationRecord)
            .where(OptimizationRecord.status == status.value)
            .order_by(
                OptimizationRecord.confidence_score.desc(),
                OptimizationRecord.created_at.desc(),
            )
            .limit(limit)
        )
        async with AsyncSession(self._engine) as session:
            result = await session.execute(statement)
            return [self._record_to_result(r) for r in result.scalars().all()]

    async def transition(self, result_id: str, status: ReviewStatus, reviewed_at: datetime) -> bool:
        """Move a pending result to ``status``.

        Returns:
            True if a pending row was updated, False if the result is missing
            or was already reviewed.
        """
        statement = (
            update(OptimizationRecord)
            .where(OptimizationRecord.result_id == result_id)
            .where(OptimizationRecord.status == ReviewStatus.PENDING.value)
            .values(status=status.value, reviewed_at=reviewed_at)
        )
        async with AsyncSession(self._engine) as session:
            result = await session.execute(statement)
            await session.commit()
            updated = result.rowcount == 1
        self._logger.debug("result_transitioned", result_id=result_id, status=status.value, updated=updated)
        return updated

    @staticmethod
    def _result_to_record(result: OptimizationResult) -> OptimizationRecord:
        data = result.model_dump()
        data["pattern"] = result.pattern.model_dump_json()
        data["status"] = result.status.value
        return OptimizationRecord.model_validate(data)

    @staticmethod
    def _record_to_result(record: OptimizationRecord) -> OptimizationResult:
        # SQLite drops tzinfo; stored timestamps are always UTC
        data = record.model_dump()
        for field in ("created_at", "reviewed_at"):
            value = data.get(field)
            if value is not None and value.tzinfo is None:
                data[field] = value.replace(tzinfo=timezone.utc)
        return OptimizationResult.model_validate(data)
