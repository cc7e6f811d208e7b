"""In-memory vector store for one indexed workspace."""
from dataclasses import dataclass, field
import logging
import time
from typing import Optional, Sequence, Tuple
import numpy as np

logger = logging.getLogger(__name__)

MAX_CHUNKS = 50_000

class StoreCapacityError(ValueError):
    """Raised when a store would hold more chunks than allowed."""
    pass

def chunk_id(file_path: str, chunk_index: int) -> str:
    return f"{file_path}-{chunk_index}"

@dataclass(frozen=True)
class PendingChunk:
    """A chunk produced by extraction that has not been embedded yet."""
    file_path: str
    file_name: str
    content: str
    chunk_index: int
    total_chunks: int
    page_number: Optional[int] = None

    @property
    def id(self) -> str:
        return chunk_id(self.file_path, self.chunk_index)

    def with_embedding(self, embedding: np.ndarray) -> "DocumentChunk":
        return DocumentChunk(
            id=self.id,
            file_path=self.file_path,
            file_name=self.file_name,
            content=self.content,
            embedding=np.asarray(embedding, dtype=np.float32),
            chunk_index=self.chunk_index,
            total_chunks=self.total_chunks,
            page_number=self.page_number
        )

@dataclass(frozen=True, eq=False)
class DocumentChunk:
    """A text chunk with its embedding and provenance.

    Attributes:
        id: ``<file_path>-<chunk_index>``, unique within a store
        file_path: Absolute path of the source document
        file_name: Base name of the source document
        content: The chunk's text
        embedding: The embedding vector for the chunk
        chunk_index: Position within the source document's chunks
        total_chunks: Number of chunks the source document produced
        page_number: Source page, for page-aware formats only
    """
    id: str
    file_path: str
    file_name: str
    content: str
    embedding: np.ndarray = field(repr=False)
    chunk_index: int
    total_chunks: int
    page_number: Optional[int] = None

@dataclass(frozen=True)
class VectorStore:
    """One complete, immutable generation of an indexed workspace."""
    workspace_path: str
    chunks: Tuple[DocumentChunk, ...]
    last_updated: float
    dimension: Optional[int] = None

    @classmethod
    def build(
            cls,
            workspace_path: str,
            chunks: Sequence[DocumentChunk],
            max_chunks: int = MAX_CHUNKS
        ) -> "VectorStore":
        """Validate chunks and freeze them into a store.

        Raises:
            StoreCapacityError: If there are more than ``max_chunks`` chunks
            ValueError: If embedding dimensions differ or a chunk index is out of range
        """
        if len(chunks) > max_chunks:
            raise StoreCapacityError(f"{len(chunks)} chunks exceeds the store limit of {max_chunks}")

        dimension = None
        seen = set()
        for chunk in chunks:
            if chunk.embedding.ndim != 1:
                raise ValueError(f"Embedding for {chunk.id} must be one-dimensional")
            if dimension is None:
                dimension = chunk.embedding.shape[0]
            elif chunk.embedding.shape[0] != dimension:
                raise ValueError(
                    f"Embedding dimension mismatch for {chunk.id}: "
                    f"expected {dimension}, got {chunk.embedding.shape[0]}"
                )
            if not 0 <= chunk.chunk_index < chunk.total_chunks:
                raise ValueError(f"Chunk index {chunk.chunk_index} out of range for {chunk.id}")
            if chunk.id in seen:
                raise ValueError(f"Duplicate chunk id: {chunk.id}")
            seen.add(chunk.id)

        return cls(
            workspace_path=str(workspace_path),
            chunks=tuple(chunks),
            last_updated=time.time(),
            dimension=dimension
        )

    def __len__(self) -> int:
        return len(self.chunks)

class VectorStoreHandle:
    """Owner of the single live VectorStore.

    The store is never edited; ``replace`` and ``clear`` swap the one
    reference, so a reader that grabbed ``current`` keeps a whole generation.
    """

    def __init__(self, max_chunks: int = MAX_CHUNKS):
        self.max_chunks = max_chunks
        self._store: Optional[VectorStore] = None

    @property
    def current(self) -> Optional[VectorStore]:
        return self._store

    @property
    def chunk_count(self) -> int:
        store = self._store
        return len(store) if store is not None else 0

    def replace(self, workspace_path: str, chunks: Sequence[DocumentChunk]) -> VectorStore:
        """Build a new generation and make it live.

        Args:
            workspace_path: Workspace the chunks were indexed from
            chunks: Fully embedded chunks

        Returns:
            The new live store
        """
        store = VectorStore.build(workspace_path, chunks, max_chunks=self.max_chunks)
        self._store = store
        logger.info(f"Vector store replaced: {len(store)} chunks for {store.workspace_path}")
        return store

    def clear(self) -> None:
        self._store = None
        logger.info("Vector store cleared")

    def is_indexed(self, workspace_path: str) -> bool:
        store = self._store
        return store is not None and store.workspace_path == str(workspace_path)
