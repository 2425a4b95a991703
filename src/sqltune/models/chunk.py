from typing import Any, ClassVar

from pydantic import Field, ValidationInfo, field_validator, model_validator

from sqltune.models.base import (
    RecordModel,
    ensure_mapping,
    ensure_non_empty_text,
    ensure_uuid_str,
)


class DocumentChunk(RecordModel):
    """One retrieval window of a Document.

    ``char_start``/``char_end`` locate the window in the source content.
    ``embedding`` is empty until the DocumentStore embeds the chunk.
    """

    SCHEMA_VERSION: ClassVar[str] = "document_chunk.v1"

    schema_version: str = Field(default=SCHEMA_VERSION)
    chunk_id: str
    document_id: str
    chunk_index: int = Field(ge=0)
    text: str
    char_start: int = Field(ge=0)
    char_end: int = Field(ge=0)
    embedding: list[float] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("chunk_id", "document_id", mode="before")
    @classmethod
    def _canonical_ids(cls, value: Any) -> str:
        return ensure_uuid_str(value)

    @field_validator("text")
    @classmethod
    def _require_text(cls, value: str, info: ValidationInfo) -> str:
        return ensure_non_empty_text(value, info.field_name or "text")

    @field_validator("metadata", mode="before")
    @classmethod
    def _normalize_metadata(cls, value: Any) -> dict[str, Any]:
        return ensure_mapping(value)

    @model_validator(mode="after")
    def _validate_offsets(self) -> "DocumentChunk":
        if self.char_end < self.char_start:
            raise ValueError("chunk window ends before it starts (char_end < char_start)")
        return self

    @property
    def dimension(self) -> int:
        return len(self.embedding)
