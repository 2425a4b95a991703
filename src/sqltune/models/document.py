from typing import Any, ClassVar
from uuid import uuid4

from pydantic import Field, ValidationInfo, field_validator

from sqltune.models.base import RecordModel, ensure_non_empty_text, ensure_uuid_str


class Document(RecordModel):
    """A knowledge-base article. The title is the natural key."""

    SCHEMA_VERSION: ClassVar[str] = "document.v1"

    schema_version: str = Field(default=SCHEMA_VERSION)
    document_id: str = Field(default_factory=lambda: str(uuid4()))
    title: str
    content: str
    category: str = ""
    url: str = ""

    @field_validator("document_id", mode="before")
    @classmethod
    def _normalize_document_id(cls, value: Any) -> str:
        return ensure_uuid_str(value)

    @field_validator("title")
    @classmethod
    def _ensure_title(cls, value: str, info: ValidationInfo) -> str:
        return ensure_non_empty_text(value, info.field_name or "title")
