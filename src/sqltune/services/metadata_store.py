"""Metadata store service for persisting documents and chunks to SQLite.

Uses SQLAlchemy's native async support with aiosqlite for non-blocking
database operations.
"""

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlmodel import SQLModel

from sqltune.models.chunk import DocumentChunk
from sqltune.models.document import Document
from sqltune.models.tables import ChunkRecord, DocumentRecord


class MetadataStore:
    """Persists knowledge-base documents and their chunks via SQLModel.

    Documents are keyed by id and unique by title. Chunks belong to exactly
    one document and are only ever replaced wholesale.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._engine = engine
        self._logger = logger or structlog.get_logger(__name__)

    async def initialize_schema(self) -> None:
        """Create database tables if they don't exist."""
        async with self._engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        self._logger.info("metadata_store_initialized")

    async def save_document(self, document: Document, chunks: list[DocumentChunk]) -> list[str]:
        """Upsert a document row and replace all of its chunks in one transaction.

        Either the document and its new chunks are committed together or
        nothing changes.

        Returns:
            IDs of the chunks the document owned before this call.
        """
        record = DocumentRecord.model_validate(document.model_dump())
        chunk_records = [self._chunk_to_record(chunk) for chunk in chunks]
        async with AsyncSession(self._engine) as session:
            existing = await session.get(DocumentRecord, record.document_id)
            if existing:
                existing.schema_version = record.schema_version
                existing.title = record.title
                existing.content = record.content
                existing.category = record.category
                existing.url = record.url
            else:
                session.add(record)

            result = await session.execute(
                select(ChunkRecord.chunk_id).where(ChunkRecord.document_id == document.document_id)
            )
            removed = list(result.scalars().all())
            await session.execute(delete(ChunkRecord).where(ChunkRecord.document_id == document.document_id))
            session.add_all(chunk_records)
            await session.commit()

        self._logger.debug(
            "document_saved",
            document_id=document.document_id,
            title=document.title,
            removed_chunks=len(removed),
            chunk_count=len(chunk_records),
        )
        return removed
    async def get_document_by_title(self, title: str) -> Document | None:
        async with AsyncSession(self._engine) as session:
            statement = select(DocumentRecord).where(DocumentRecord.title == title)
            result = await session.execute(statement)
            record = result.scalar_one_or_none()
            if record is None:
                return None
            return Document.model_validate(record.model_dump())

    async def get_document_by_id(self, document_id: str) -> Document | None:
        async with AsyncSession(self._engine) as session:
            record = await session.get(DocumentRecord, document_id)
            if record is None:
                return None
            return Document.model_validate(record.model_dump())

    async def list_documents(self) -> list[Document]:
        async with AsyncSession(self._engine) as session:
            result = await session.execute(select(DocumentRecord).order_by(DocumentRecord.title))
            return [Document.model_validate(r.model_dump()) for r in result.scalars().all()]

    async def get_chunks_by_document_id(self, document_id: str) -> list[DocumentChunk]:
        """Retrieve all chunks for a document in chunk order."""
        async with AsyncSession(self._engine) as session:
            statement = (
                select(ChunkRecord).where(ChunkRecord.document_id == document_id).order_by(ChunkRecord.chunk_index)
            )
            result = await session.execute(statement)
            records = result.scalars().all()
            return [self._record_to_chunk(r) for r in records]

    def _chunk_to_record(self, chunk: DocumentChunk) -> ChunkRecord:
        data = chunk.model_dump()
        data["chunk_metadata"] = data.pop("metadata")
        return ChunkRecord.model_validate(data)

    def _record_to_chunk(self, record: ChunkRecord) -> DocumentChunk:
        data = record.model_dump()
        data["metadata"] = data.pop("chunk_metadata")
        return DocumentChunk.model_validate(data)


def create_async_engine_from_path(db_path: str) -> AsyncEngine:
    """Create an async SQLAlchemy engine for the given database path.

    Args:
        db_path: Path to SQLite database file, or ":memory:" for in-memory.
    """
    if db_path == ":memory:":
        url = "sqlite+aiosqlite:///:memory:"
    else:
        url = f"sqlite+aiosqlite:///{db_path}"
    return create_async_engine(url)
