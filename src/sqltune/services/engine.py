"""Optimization engine orchestrating analysis, retrieval, generation and review.

Pipeline per call: analyze → build prompt (with retrieval) → generate →
parse → score → persist. Steps run strictly in sequence. Nothing is
persisted unless every step succeeds, and no step is retried here.
"""

import asyncio
from datetime import datetime, timezone
from types import TracebackType

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine

from sqltune.errors import GenerationError, InputError, NotFoundError, RetrievalError
from sqltune.llm.ports import Generator
from sqltune.models.enums import ReviewStatus
from sqltune.models.options import GenerationOptions
from sqltune.models.result import OptimizationResult
from sqltune.services.analyzer import QueryAnalyzer
from sqltune.services.confidence import score_confidence
from sqltune.services.prompt_builder import PromptBuilder
from sqltune.services.response_parser import parse_response
from sqltune.services.result_store import ResultStore

DEFAULT_MAX_TOKENS = 2000
DEFAULT_TEMPERATURE = 0.1
DEFAULT_PENDING_LIMIT = 20


class OptimizationEngine:
    """Produces and manages reviewable rewrite suggestions for slow SQL.

    All dependencies are injected via constructor for testability. The
    engine can be used as an async context manager, which initializes the
    stores on entry and disposes the database engine on exit.
    """

    def __init__(
        self,
        analyzer: QueryAnalyzer,
        prompt_builder: PromptBuilder,
        generator: Generator,
        result_store: ResultStore,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout_seconds: float | None = None,
        db_engine: AsyncEngine | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._analyzer = analyzer
        self._prompt_builder = prompt_builder
        self._generator = generator
        self._result_store = result_store
        self._options = GenerationOptions(max_tokens=max_tokens, temperature=temperature)
        self._timeout_seconds = timeout_seconds
        self._db_engine = db_engine
        self._logger = logger or structlog.get_logger(__name__)

    async def initialize(self) -> None:
        await self._result_store.initialize_schema()

    async def close(self) -> None:
        if self._db_engine is not None:
            await self._db_engine.dispose()

    async def __aenter__(self) -> "OptimizationEngine":
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def optimize_query(
        self,
        slow_query_id: int,
        sql: str,
        timeout: float | None = None,
    ) -> OptimizationResult:
        """Generate, score and store a rewrite suggestion for ``sql``.

        Args:
            slow_query_id: Id of the originating slow query record.
            sql: The slow statement, verbatim.
            timeout: Seconds allowed for each external step (retrieval and
                generation). Defaults to the engine's configured timeout.

        Returns:
            The stored result, status pending.

        Raises:
            InputError: If ``sql`` is blank.
            RetrievalError: If building the prompt or searching fails.
            GenerationError: If the generator fails or times out.
            ParseError: If the completion lacks a PROPOSED_SQL block.
        """
        if not sql.strip():
            raise InputError("sql cannot be empty")
        effective_timeout = self._timeout_seconds if timeout is None else timeout
        log = self._logger.bind(slow_query_id=slow_query_id)

        pattern = self._analyzer.analyze(sql)
        log.info(
            "optimization_started",
            query_type=pattern.type.value,
            complexity=pattern.complexity.value,
            anti_patterns=pattern.anti_patterns,
        )

        try:
            async with asyncio.timeout(effective_timeout):
                prompt = await self._prompt_builder.build(sql, pattern)
        except TimeoutError as e:
            log.error("prompt_build_timed_out", timeout=effective_timeout)
            raise RetrievalError(f"prompt build timed out after {effective_timeout}s") from e
        except Exception as e:
            log.error("prompt_build_failed", error=str(e))
            raise RetrievalError(f"failed to build prompt: {e}") from e

        try:
            async with asyncio.timeout(effective_timeout):
                raw = await self._generator.complete(prompt, self._options)
        except TimeoutError as e:
            log.error("generation_timed_out", timeout=effective_timeout)
            raise GenerationError(f"generation timed out after {effective_timeout}s") from e
        except Exception as e:
            log.error("generation_failed", error=str(e))
            raise GenerationError(f"failed to generate optimization: {e}") from e
        log.debug("generation_completed", response_length=len(raw))

        parsed = parse_response(raw)
        confidence = score_confidence(pattern, parsed)

        result = OptimizationResult(
            slow_query_id=slow_query_id,
            original_sql=sql,
            optimized_sql=parsed.proposed_sql,
            pattern=pattern,
            rationale=parsed.rationale,
            expected_improvement=parsed.expected_plan_change,
            caveats=parsed.caveats,
            confidence_score=confidence,
        )
        await self._result_store.insert(result)

        log.info(
            "optimization_stored",
            result_id=result.result_id,
            confidence_score=round(confidence, 3),
        )
        return result

    async def get_by_id(self, result_id: str) -> OptimizationResult:
        result = await self._result_store.get(result_id)
        if result is None:
            raise NotFoundError(f"optimization {result_id} not found")
        return result

    async def list_pending(self, limit: int = DEFAULT_PENDING_LIMIT) -> list[OptimizationResult]:
        """Pending results, highest confidence first."""
        if limit <= 0:
            raise InputError("limit must be positive")
        return await self._result_store.list_by_status(ReviewStatus.PENDING, limit)

    async def accept(self, result_id: str) -> OptimizationResult:
        return await self._review(result_id, ReviewStatus.ACCEPTED)

    async def reject(self, result_id: str) -> OptimizationResult:
        return await self._review(result_id, ReviewStatus.REJECTED)

    async def _review(self, result_id: str, status: ReviewStatus) -> OptimizationResult:
        reviewed_at = datetime.now(timezone.utc)
        if not await self._result_store.transition(result_id, status, reviewed_at):
            raise NotFoundError(f"optimization {result_id} not found or already reviewed")
        self._logger.info("optimization_reviewed", result_id=result_id, status=status.value)
        return await self.get_by_id(result_id)
