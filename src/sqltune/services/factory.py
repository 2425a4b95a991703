"""Factory functions for creating and wiring the optimization services.

Provides a production factory that persists to disk according to Settings,
and a test factory that uses in-memory stores and the mock collaborators
for fast, isolated testing.
"""

from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from uuid import uuid4

import chromadb
import structlog
from sqlalchemy.ext.asyncio import AsyncEngine

from sqltune.config import Settings
from sqltune.llm.ports import Embedder, Generator
from sqltune.llm.registry import ProviderRegistry
from sqltune.services.analyzer import QueryAnalyzer
from sqltune.services.chunker import Chunker
from sqltune.services.document_store import DEFAULT_DISTANCE_THRESHOLD, DocumentStore
from sqltune.services.engine import OptimizationEngine
from sqltune.services.metadata_store import MetadataStore, create_async_engine_from_path
from sqltune.services.prompt_builder import RETRIEVAL_TOP_K, PromptBuilder
from sqltune.services.result_store import ResultStore
from sqltune.services.vector_store import VectorStore

_TEST_COLLECTION_ID_LENGTH = 8


@dataclass
class Services:
    """The knowledge base and the optimization engine sharing one database."""

    document_store: DocumentStore
    engine: OptimizationEngine

    async def initialize(self) -> None:
        await self.document_store.initialize()
        await self.engine.initialize()

    async def close(self) -> None:
        await self.engine.close()

    async def __aenter__(self) -> "Services":
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


def _wire(
    db_engine: AsyncEngine,
    chroma_client: chromadb.ClientAPI,
    collection_name: str,
    embedder: Embedder,
    generator: Generator,
    chunk_size: int,
    chunk_overlap: int,
    distance_threshold: float,
    top_k: int,
    max_tokens: int,
    temperature: float,
    timeout_seconds: float | None,
    logger: structlog.stdlib.BoundLogger,
) -> Services:
    document_store = DocumentStore(
        metadata_store=MetadataStore(engine=db_engine, logger=logger),
        vector_store=VectorStore(
            client=chroma_client,
            collection_name=collection_name,
            dimension=embedder.dimension,
            logger=logger,
        ),
        embedder=embedder,
        chunker=Chunker(chunk_size=chunk_size, chunk_overlap=chunk_overlap, logger=logger),
        distance_threshold=distance_threshold,
        logger=logger,
    )
    engine = OptimizationEngine(
        analyzer=QueryAnalyzer(logger=logger),
        prompt_builder=PromptBuilder(document_store, top_k=top_k, logger=logger),
        generator=generator,
        result_store=ResultStore(engine=db_engine, logger=logger),
        max_tokens=max_tokens,
        temperature=temperature,
        timeout_seconds=timeout_seconds,
        db_engine=db_engine,
        logger=logger,
    )
    return Services(document_store=document_store, engine=engine)


def create_services(settings: Settings) -> Services:
    """Create production services with persistent storage.

    SQLite holds documents, chunks and optimization results at
    ``settings.db_path``; ChromaDB persists chunk vectors under
    ``settings.vector_path``. Providers are resolved by name through the
    ProviderRegistry.

    Raises:
        ValueError: If a configured provider name is not registered.
    """
    logger = structlog.get_logger(__name__)

    db_path = Path(settings.db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    vector_path = Path(settings.vector_path)
    vector_path.mkdir(parents=True, exist_ok=True)

    embedder_config = settings.llm.embedder
    generator_config = settings.llm.generator
    embedder = ProviderRegistry.create_embedder(
        embedder_config.provider,
        model=embedder_config.model,
        dimension=embedder_config.dimension,
    )
    generator = ProviderRegistry.create_generator(generator_config.provider, model=generator_config.model)

    return _wire(
        db_engine=create_async_engine_from_path(str(db_path)),
        chroma_client=chromadb.PersistentClient(path=str(vector_path)),
        collection_name=settings.collection_name,
        embedder=embedder,
        generator=generator,
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        distance_threshold=settings.distance_threshold,
        top_k=settings.top_k,
        max_tokens=generator_config.max_tokens,
        temperature=generator_config.temperature,
        timeout_seconds=settings.timeout_seconds,
        logger=logger,
    )


def create_test_services(
    embedder: Embedder | None = None,
    generator: Generator | None = None,
    chunk_size: int = 400,
    chunk_overlap: int = 50,
    distance_threshold: float = DEFAULT_DISTANCE_THRESHOLD,
    top_k: int = RETRIEVAL_TOP_K,
    timeout_seconds: float | None = None,
    collection_name: str | None = None,
) -> Services:
    """Create services with in-memory storage for testing.

    Uses in-memory SQLite and ephemeral ChromaDB. Each call creates
    independent storage, so tests don't interfere. Collaborators default to
    the mock embedder (small dimension) and mock generator.
    """
    logger = structlog.get_logger(__name__)

    effective_collection_name = collection_name or f"test_{uuid4().hex[:_TEST_COLLECTION_ID_LENGTH]}"
    return _wire(
        db_engine=create_async_engine_from_path(":memory:"),
        chroma_client=chromadb.EphemeralClient(),
        collection_name=effective_collection_name,
        embedder=embedder or ProviderRegistry.create_embedder("mock", dimension=64),
        generator=generator or ProviderRegistry.create_generator("mock"),
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        distance_threshold=distance_threshold,
        top_k=top_k,
        max_tokens=2000,
        temperature=0.1,
        timeout_seconds=timeout_seconds,
        logger=logger,
    )


__all__ = ["Services", "create_services", "create_test_services"]
