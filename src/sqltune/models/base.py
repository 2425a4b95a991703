from collections.abc import Mapping
from datetime import datetime
from typing import Any, ClassVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, model_validator


class RecordModel(BaseModel):
    """Immutable stored record tagged with a per-type schema version.

    Subclasses set ``SCHEMA_VERSION``. Input without a ``schema_version``
    key is stamped with it; input carrying any other version is rejected.
    """

    SCHEMA_VERSION: ClassVar[str]
    schema_version: str

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _stamp_schema_version(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and "schema_version" not in data:
            return {**data, "schema_version": cls.SCHEMA_VERSION}
        return data

    @model_validator(mode="after")
    def _check_schema_version(self) -> "RecordModel":
        if self.schema_version != self.SCHEMA_VERSION:
            raise ValueError(
                f"{type(self).__name__} expects schema_version '{self.SCHEMA_VERSION}', got '{self.schema_version}'"
            )
        return self


def ensure_uuid_str(value: Any) -> str:
    """Canonical lowercase UUID string for ids given as UUID or text."""
    if isinstance(value, str):
        return str(UUID(value.strip()))
    if isinstance(value, UUID):
        return str(value)
    raise TypeError(f"identifier must be a UUID or string, got {type(value).__name__}")


def ensure_aware_datetime(value: Any, field_name: str) -> datetime:
    """Accept a datetime or ISO-8601 string; naive values are rejected."""
    parsed = datetime.fromisoformat(value) if isinstance(value, str) else value
    if not isinstance(parsed, datetime):
        raise TypeError(f"{field_name} must be a datetime")
    if parsed.utcoffset() is None:
        raise ValueError(f"{field_name} must be timezone-aware")
    return parsed


def ensure_non_empty_text(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-blank string")
    return value


def ensure_mapping(value: Any, field_name: str = "metadata") -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise TypeError(f"{field_name} must be a mapping")
    return dict(value)
