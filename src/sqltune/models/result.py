from datetime import datetime, timezone
from typing import Any, ClassVar
from uuid import uuid4

from pydantic import Field, ValidationInfo, field_validator, model_validator

from sqltune.models.base import (
    RecordModel,
    ensure_aware_datetime,
    ensure_non_empty_text,
    ensure_uuid_str,
)
from sqltune.models.enums import ReviewStatus
from sqltune.models.pattern import QueryPattern

MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0


class OptimizationResult(RecordModel):
    """A ranked rewrite suggestion for one slow query."""

    SCHEMA_VERSION: ClassVar[str] = "optimization_result.v1"

    schema_version: str = Field(default=SCHEMA_VERSION)
    result_id: str = Field(default_factory=lambda: str(uuid4()))
    slow_query_id: int
    original_sql: str
    optimized_sql: str
    pattern: QueryPattern
    rationale: str = ""
    expected_improvement: str = ""
    caveats: str = ""
    confidence_score: float = Field(ge=MIN_CONFIDENCE, le=MAX_CONFIDENCE)
    status: ReviewStatus = ReviewStatus.PENDING
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    reviewed_at: datetime | None = None

    @field_validator("result_id", mode="before")
    @classmethod
    def _normalize_result_id(cls, value: Any) -> str:
        return ensure_uuid_str(value)

    @field_validator("original_sql", "optimized_sql")
    @classmethod
    def _ensure_sql(cls, value: str, info: ValidationInfo) -> str:
        return ensure_non_empty_text(value, info.field_name or "sql")

    @field_validator("pattern", mode="before")
    @classmethod
    def _coerce_pattern(cls, value: Any) -> Any:
        if isinstance(value, (str, bytes)):
            return QueryPattern.model_validate_json(value)
        return value

    @field_validator("created_at", mode="before")
    @classmethod
    def _validate_created_at(cls, value: Any) -> datetime:
        return ensure_aware_datetime(value, "created_at")

    @field_validator("reviewed_at", mode="before")
    @classmethod
    def _validate_reviewed_at(cls, value: Any) -> datetime | None:
        if value is None:
            return None
        return ensure_aware_datetime(value, "reviewed_at")

    @model_validator(mode="after")
    def _validate_review_state(self) -> "OptimizationResult":
        if self.status == ReviewStatus.PENDING and self.reviewed_at is not None:
            raise ValueError("pending results cannot carry reviewed_at")
        if self.status != ReviewStatus.PENDING and self.reviewed_at is None:
            raise ValueError("reviewed results require reviewed_at")
        return self

    @property
    def is_pending(self) -> bool:
        return self.status == ReviewStatus.PENDING


__all__ = ["OptimizationResult", "MIN_CONFIDENCE", "MAX_CONFIDENCE"]
