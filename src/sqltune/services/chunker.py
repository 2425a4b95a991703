"""Chunker service for splitting text into overlapping fixed-size windows."""

from uuid import uuid4

import structlog

from sqltune.errors import InputError
from sqltune.models.chunk import DocumentChunk


def chunk_text(text: str, size: int, overlap: int) -> list[str]:
    """Split ``text`` into windows of ``size`` characters sharing ``overlap`` characters.

    Text no longer than ``size`` comes back as a single chunk. Otherwise each
    window starts ``size - overlap`` characters after the previous one and the
    last window may be shorter. Dropping the first ``overlap`` characters of
    every chunk after the first and concatenating reconstructs ``text``.

    Raises:
        InputError: If ``size`` is not positive or ``overlap`` is outside
            ``[0, size)``.
    """
    if size <= 0:
        raise InputError("chunk size must be positive")
    if overlap < 0:
        raise InputError("chunk overlap cannot be negative")
    if overlap >= size:
        raise InputError("chunk_overlap must be less than chunk_size")

    if len(text) <= size:
        return [text]

    chunks: list[str] = []
    step = size - overlap
    start = 0
    while True:
        end = min(start + size, len(text))
        chunks.append(text[start:end])
        if end >= len(text):
            break
        start += step
    return chunks


class Chunker:
    """Splits document content into overlapping chunks with offset tracking."""

    def __init__(
        self,
        chunk_size: int = 400,
        chunk_overlap: int = 50,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize the chunker.

        Args:
            chunk_size: Window size in characters.
            chunk_overlap: Characters shared by consecutive windows.
            logger: Structured logger instance.
        """
        if chunk_size <= 0:
            raise InputError("chunk size must be positive")
        if chunk_overlap < 0:
            raise InputError("chunk overlap cannot be negative")
        if chunk_overlap >= chunk_size:
            raise InputError("chunk_overlap must be less than chunk_size")

        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def chunk_overlap(self) -> int:
        return self._chunk_overlap

    def split(self, text: str) -> list[str]:
        return chunk_text(text, self._chunk_size, self._chunk_overlap)

    def chunk(self, text: str, document_id: str) -> list[DocumentChunk]:
        """Split text into DocumentChunk models without embeddings.

        Args:
            text: The text content to chunk.
            document_id: The ID of the parent document.

        Returns:
            DocumentChunk instances in window order; empty for blank text.
        """
        if not text.strip():
            return []

        windows = self.split(text)
        step = self._chunk_size - self._chunk_overlap
        chunks: list[DocumentChunk] = []
        for index, window in enumerate(windows):
            if not window.strip():
                continue
            char_start = index * step
            chunks.append(
                DocumentChunk(
                    chunk_id=str(uuid4()),
                    document_id=document_id,
                    chunk_index=len(chunks),
                    text=window,
                    char_start=char_start,
                    char_end=char_start + len(window),
                )
            )

        self._logger.debug(
            "chunking_completed",
            document_id=document_id,
            text_length=len(text),
            chunk_count=len(chunks),
        )
        return chunks
