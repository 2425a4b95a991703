"""Vector store service for chunk embeddings backed by ChromaDB.

The collection is created in cosine space, so the distances ChromaDB reports
are cosine distances (``1 - cosine similarity``). ChromaDB's Python client is
synchronous; blocking calls are wrapped with asyncio.to_thread() to keep the
async interface consistent with the other services.
"""

import asyncio

import chromadb
import structlog
from pydantic import BaseModel, Field

from sqltune.errors import InputError

Metadata = dict[str, str | int | float | bool]


class VectorMatch(BaseModel):
    """One nearest-neighbour hit from the collection."""

    id: str
    text: str
    metadata: Metadata = Field(default_factory=dict)
    distance: float

    model_config = {"frozen": True}


class VectorStore:
    """Stores chunk embeddings and answers nearest-neighbour queries.

    Accepts a ChromaDB client via dependency injection to support both
    persistent (PersistentClient) and ephemeral (EphemeralClient) modes.
    When ``dimension`` is given, every write and query vector must match it.
    """

    DEFAULT_COLLECTION_NAME = "knowledge"
    DISTANCE_SPACE = "cosine"

    def __init__(
        self,
        client: chromadb.ClientAPI,
        collection_name: str | None = None,
        dimension: int | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._client = client
        self._collection_name = collection_name or self.DEFAULT_COLLECTION_NAME
        self._dimension = dimension
        self._logger = logger or structlog.get_logger(__name__)
        self._collection: chromadb.Collection | None = None

    @property
    def dimension(self) -> int | None:
        return self._dimension

    async def initialize(self) -> None:
        """Initialize the collection, creating it if it doesn't exist."""
        self._collection = await asyncio.to_thread(
            self._client.get_or_create_collection,
            name=self._collection_name,
            metadata={"hnsw:space": self.DISTANCE_SPACE},
        )
        self._logger.info(
            "vector_store_initialized",
            collection_name=self._collection_name,
            dimension=self._dimension,
        )

    def _require_collection(self) -> chromadb.Collection:
        if self._collection is None:
            raise RuntimeError("VectorStore not initialized. Call initialize() first.")
        return self._collection

    def _check_dimension(self, vector: list[float]) -> None:
        if self._dimension is not None and len(vector) != self._dimension:
            raise InputError(f"embedding dimension {len(vector)} does not match store dimension {self._dimension}")

    async def add_embeddings(
        self,
        ids: list[str],
        embeddings: list[list[float]],
        documents: list[str],
        metadatas: list[Metadata] | None = None,
    ) -> None:
        """Add embeddings to the collection.

        Args:
            ids: Unique identifiers for each embedding (the chunk_id).
            embeddings: Vector embeddings as lists of floats.
            documents: Chunk text for each embedding.
            metadatas: Optional metadata dicts for each embedding.

        Raises:
            InputError: If input lists have mismatched lengths or a vector has
                the wrong dimension.
            RuntimeError: If collection not initialized.
        """
        collection = self._require_collection()

        if not ids:
            return

        if not (len(ids) == len(embeddings) == len(documents)):
            raise InputError(
                f"Mismatched lengths: ids={len(ids)}, embeddings={len(embeddings)}, documents={len(documents)}"
            )
        if metadatas is not None and len(metadatas) != len(ids):
            raise InputError(f"Mismatched lengths: ids={len(ids)}, metadatas={len(metadatas)}")
        for embedding in embeddings:
            self._check_dimension(embedding)

        await asyncio.to_thread(
            collection.upsert,
            ids=ids,
            embeddings=embeddings,
            documents=documents,
            metadatas=metadatas,
        )
        self._logger.debug(
            "embeddings_added",
            collection=self._collection_name,
            count=len(ids),
        )

    async def delete_by_ids(self, ids: list[str]) -> None:
        """Delete embeddings by their IDs.

        Raises:
            RuntimeError: If collection not initialized.
        """
        collection = self._require_collection()

        if not ids:
            return

        await asyncio.to_thread(collection.delete, ids=ids)
        self._logger.debug(
            "embeddings_deleted",
            collection=self._collection_name,
            count=len(ids),
        )

    async def count(self) -> int:
        """Return the number of embeddings in the collection."""
        collection = self._require_collection()
        return await asyncio.to_thread(collection.count)

    async def query(
        self,
        embedding: list[float],
        limit: int,
        max_distance: float | None = None,
    ) -> list[VectorMatch]:
        """Return up to ``limit`` nearest entries ordered by ascending cosine distance.

        Args:
            embedding: Query vector.
            limit: Maximum number of matches.
            max_distance: When set, only matches strictly closer than this
                distance are returned.

        Raises:
            InputError: If ``limit`` is not positive or the vector has the
                wrong dimension.
            RuntimeError: If collection not initialized.
        """
        collection = self._require_collection()
        if limit <= 0:
            raise InputError("limit must be positive")
        self._check_dimension(embedding)

        stored = await self.count()
        if stored == 0:
            return []

        raw = await asyncio.to_thread(
            collection.query,
            query_embeddings=[embedding],
            n_results=min(limit, stored),
            include=["documents", "metadatas", "distances"],
        )

        matches = [
            VectorMatch(id=match_id, text=document or "", metadata=metadata or {}, distance=float(distance))
            for match_id, document, metadata, distance in zip(
                raw["ids"][0],
                raw["documents"][0],
                raw["metadatas"][0],
                raw["distances"][0],
            )
        ]
        if max_distance is not None:
            matches = [match for match in matches if match.distance < max_distance]
        matches.sort(key=lambda match: match.distance)

        self._logger.debug(
            "vector_query_completed",
            collection=self._collection_name,
            requested=limit,
            returned=len(matches),
        )
        return matches
