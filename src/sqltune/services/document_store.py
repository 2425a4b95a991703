"""Document store: chunking, embedding and similarity search over the knowledge base.

Document and chunk rows live in the metadata store; chunk vectors live in the
vector store under the same chunk id. Re-adding a document with a known title
replaces its content and every chunk it previously owned.
"""

import structlog

from sqltune.errors import EmbeddingError, InputError
from sqltune.llm.ports import Embedder
from sqltune.models.chunk import DocumentChunk
from sqltune.models.document import Document
from sqltune.models.hit import SearchResult
from sqltune.services.chunker import Chunker
from sqltune.services.knowledge import curated_documents
from sqltune.services.metadata_store import MetadataStore
from sqltune.services.vector_store import VectorStore

DEFAULT_DISTANCE_THRESHOLD = 0.5


class DocumentStore:
    """Owns the knowledge base used to ground optimization prompts.

    All dependencies are injected via constructor for testability.
    """

    def __init__(
        self,
        metadata_store: MetadataStore,
        vector_store: VectorStore,
        embedder: Embedder,
        chunker: Chunker,
        distance_threshold: float = DEFAULT_DISTANCE_THRESHOLD,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        if vector_store.dimension is not None and vector_store.dimension != embedder.dimension:
            raise InputError(
                f"vector store dimension {vector_store.dimension} does not match embedder "
                f"dimension {embedder.dimension}"
            )
        self._metadata_store = metadata_store
        self._vector_store = vector_store
        self._embedder = embedder
        self._chunker = chunker
        self._distance_threshold = distance_threshold
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def distance_threshold(self) -> float:
        return self._distance_threshold

    async def initialize(self) -> None:
        await self._metadata_store.initialize_schema()
        await self._vector_store.initialize()

    def chunk(self, text: str) -> list[str]:
        """Split text with the store's configured window size and overlap."""
        return self._chunker.split(text)

    async def add_or_update_document(self, document: Document) -> Document:
        """Upsert a document by title and rebuild its chunks and embeddings.

        An existing document with the same title keeps its id; its content,
        category and url are replaced and its previous chunks are deleted.

        New vectors are written first, then the document and chunk rows are
        committed together, and only then are the previous vectors removed.
        A failure before the commit leaves the stored document, its chunks
        and its vectors as they were.

        Returns:
            The stored Document, carrying the id it is persisted under.

        Raises:
            EmbeddingError: If the embedder fails. Nothing is written.
            InputError: If the embedder returns vectors of the wrong count
                or dimension.
        """
        existing = await self._metadata_store.get_document_by_title(document.title)
        if existing is not None:
            document = document.model_copy(update={"document_id": existing.document_id})

        chunks = self._chunker.chunk(document.content, document.document_id)
        chunks = await self._embed_chunks(document, chunks)
        new_ids = [chunk.chunk_id for chunk in chunks]

        await self._vector_store.add_embeddings(
            ids=new_ids,
            embeddings=[chunk.embedding for chunk in chunks],
            documents=[chunk.text for chunk in chunks],
            metadatas=[self._vector_metadata(document, chunk) for chunk in chunks],
        )
        try:
            removed = await self._metadata_store.save_document(document, chunks)
        except Exception:
            self._logger.error("document_save_failed", document_id=document.document_id, title=document.title)
            await self._vector_store.delete_by_ids(new_ids)
            raise

        try:
            await self._vector_store.delete_by_ids(removed)
        except Exception as e:
            self._logger.error(
                "stale_vectors_not_deleted",
                document_id=document.document_id,
                chunk_ids=removed,
                error=str(e),
            )
            raise

        self._logger.info(
            "document_upserted",
            document_id=document.document_id,
            title=document.title,
            updated=existing is not None,
            chunk_count=len(chunks),
            replaced_chunks=len(removed),
        )
        return document

    async def seed(self, documents: list[Document] | None = None) -> list[Document]:
        """Upsert a batch of documents, defaulting to the curated corpus."""
        if documents is None:
            documents = curated_documents()
        return [await self.add_or_update_document(document) for document in documents]

    async def search(self, query: str, top_k: int = 3) -> list[SearchResult]:
        """Return the ``top_k`` passages closest to ``query``.

        Only chunks whose cosine distance is below the configured threshold
        qualify. Results are ordered by ascending distance.

        Raises:
            InputError: If the query is blank or ``top_k`` is not positive.
            EmbeddingError: If embedding the query fails.
        """
        if not query.strip():
            raise InputError("search query cannot be empty")
        if top_k <= 0:
            raise InputError("top_k must be positive")

        vectors = await self._embed([query])
        matches = await self._vector_store.query(
            vectors[0],
            limit=top_k,
            max_distance=self._distance_threshold,
        )
        results = [
            SearchResult.from_distance(
                match.distance,
                chunk_id=match.id,
                document_id=str(match.metadata.get("document_id", "")),
                text=match.text,
                title=str(match.metadata.get("title", "")),
                category=str(match.metadata.get("category", "")),
                url=str(match.metadata.get("url", "")),
                chunk_index=int(match.metadata.get("chunk_index", 0)),
            )
            for match in matches
        ]

        self._logger.info(
            "search_completed",
            query_length=len(query),
            top_k=top_k,
            result_count=len(results),
        )
        return results

    async def _embed(self, texts: list[str]) -> list[list[float]]:
        try:
            vectors = await self._embedder.embed(texts)
        except InputError:
            raise
        except Exception as e:
            self._logger.error("embedding_failed", count=len(texts), error=str(e))
            raise EmbeddingError(f"failed to generate embeddings: {e}") from e

        if len(vectors) != len(texts):
            raise InputError(f"embedder returned {len(vectors)} vectors for {len(texts)} texts")
        for vector in vectors:
            if len(vector) != self._embedder.dimension:
                raise InputError(
                    f"embedding dimension {len(vector)} does not match embedder dimension {self._embedder.dimension}"
                )
        return vectors

    async def _embed_chunks(self, document: Document, chunks: list[DocumentChunk]) -> list[DocumentChunk]:
        if not chunks:
            return []
        vectors = await self._embed([chunk.text for chunk in chunks])
        return [
            chunk.model_copy(
                update={
                    "embedding": [float(value) for value in vector],
                    "metadata": {
                        "doc_title": document.title,
                        "category": document.category,
                        "chunk": chunk.chunk_index,
                    },
                }
            )
            for chunk, vector in zip(chunks, vectors)
        ]

    @staticmethod
    def _vector_metadata(document: Document, chunk: DocumentChunk) -> dict[str, str | int]:
        return {
            "document_id": document.document_id,
            "title": document.title,
            "category": document.category,
            "url": document.url,
            "chunk_index": chunk.chunk_index,
        }
