"""SQLModel table definitions for database persistence.

Table classes are kept separate from the frozen Pydantic domain models in
document.py, chunk.py and result.py. SQLModel needs mutable instances for
ORM updates, while the domain models stay immutable and strictly validated.

Field names mirror the domain models so conversion is a model_dump() /
model_validate() pair. A few columns need explicit conversion in the stores:
``chunks.chunk_metadata`` maps to ``DocumentChunk.metadata`` (the name
``metadata`` is reserved on declarative classes),
``optimization_results.pattern`` holds the QueryPattern as a JSON string and
``optimization_results.status`` holds the enum value.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON
from sqlmodel import Field, SQLModel


class DocumentRecord(SQLModel, table=True):
    """Knowledge-base document row. Title is unique."""

    __tablename__ = "documents"

    document_id: str = Field(primary_key=True)
    schema_version: str
    title: str = Field(index=True, unique=True)
    content: str
    category: str = ""
    url: str = ""


class ChunkRecord(SQLModel, table=True):
    """Chunk row owned by a document; removed whenever the document is re-seeded."""

    __tablename__ = "chunks"

    chunk_id: str = Field(primary_key=True)
    schema_version: str
    document_id: str = Field(index=True, foreign_key="documents.document_id")
    chunk_index: int
    text: str
    char_start: int
    char_end: int
    embedding: list[float] = Field(default_factory=list, sa_type=JSON)
    chunk_metadata: dict[str, Any] = Field(default_factory=dict, sa_type=JSON)


class OptimizationRecord(SQLModel, table=True):
    """Persisted optimization result."""

    __tablename__ = "optimization_results"

    result_id: str = Field(primary_key=True)
    schema_version: str
    slow_query_id: int = Field(index=True)
    original_sql: str
    optimized_sql: str
    pattern: str
    rationale: str = ""
    expected_improvement: str = ""
    caveats: str = ""
    confidence_score: float
    status: str = Field(index=True)
    created_at: datetime
    reviewed_at: datetime | None = None
