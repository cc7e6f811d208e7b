"""Ranked retrieval over the live vector store."""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import numpy as np

from .embedders import BaseEmbedder
from .vector_store import DocumentChunk, VectorStoreHandle

logger = logging.getLogger(__name__)

TOP_K = 5
CONTEXT_SEPARATOR = "\n\n---\n\n"

def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine of the angle between two vectors.

    Returns 0.0 when either vector has zero norm. The result is clipped to
    [-1, 1] to absorb floating point error.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    a_sq = np.dot(a, a)
    b_sq = np.dot(b, b)
    if a_sq == 0 or b_sq == 0:
        return 0.0
    score = float(np.dot(a, b) / np.sqrt(a_sq * b_sq))
    return max(-1.0, min(1.0, score))

@dataclass(frozen=True)
class SearchResult:
    """A ranked chunk."""
    content: str
    file_name: str
    file_path: str
    score: float
    chunk_index: int
    total_chunks: int
    page_number: Optional[int] = None

    @classmethod
    def from_chunk(cls, chunk: DocumentChunk, score: float) -> "SearchResult":
        return cls(
            content=chunk.content,
            file_name=chunk.file_name,
            file_path=chunk.file_path,
            score=score,
            chunk_index=chunk.chunk_index,
            total_chunks=chunk.total_chunks,
            page_number=chunk.page_number
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "content": self.content,
            "fileName": self.file_name,
            "filePath": self.file_path,
            "score": self.score,
            "chunkIndex": self.chunk_index,
            "totalChunks": self.total_chunks,
        }
        if self.page_number is not None:
            payload["pageNumber"] = self.page_number
        return payload

@dataclass(frozen=True)
class Source:
    """Citation record shown alongside an answer."""
    file_name: str
    file_path: str
    section: str
    page_number: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {"fileName": self.file_name, "filePath": self.file_path, "section": self.section}
        if self.page_number is not None:
            payload["pageNumber"] = self.page_number
        return payload

@dataclass(frozen=True)
class RAGContext:
    """Numbered context blocks and their parallel citations."""
    text: str
    sources: List[Source]

def section_label(result: SearchResult) -> str:
    if result.page_number is not None:
        return f"Page {result.page_number}"
    if result.total_chunks > 1:
        return f"Section {result.chunk_index + 1}/{result.total_chunks}"
    return "Full Document"

class Retriever:
    """Rank stored chunks against a query and format cited context."""

    def __init__(self, store: VectorStoreHandle, embedder: BaseEmbedder):
        self.store = store
        self.embedder = embedder

    async def search(self, query: str, top_k: int = TOP_K) -> List[SearchResult]:
        """Return the ``top_k`` chunks most similar to ``query``.

        The store generation is captured before the query is embedded, so a
        re-index finishing in the meantime cannot mix generations. Ties keep
        the store's (file, chunk index) order.

        Args:
            query: Natural language query
            top_k: Number of results

        Returns:
            Results sorted by descending score; empty if nothing is indexed
            or the query could not be embedded
        """
        store = self.store.current
        if store is None or not store.chunks:
            return []

        try:
            query_embedding = await self.embedder.embed_one(query)
        except Exception as e:
            logger.error(f"RAG search failed: {e}")
            return []

        scored = [(cosine_similarity(query_embedding, chunk.embedding), chunk) for chunk in store.chunks]
        # sorted() is stable, so equal scores stay in store order
        scored = sorted(scored, key=lambda item: item[0], reverse=True)
        return [SearchResult.from_chunk(chunk, score) for score, chunk in scored[:top_k]]

    async def build_context(self, query: str, top_k: int = TOP_K) -> RAGContext:
        """Search and format the results as numbered, citable blocks.

        Each block reads ``[i] file_name (section)`` followed by the chunk
        content; ``sources`` lists the matching citations in the same order.
        """
        results = await self.search(query, top_k)
        if not results:
            return RAGContext(text="", sources=[])

        blocks = []
        sources = []
        for i, result in enumerate(results, 1):
            label = section_label(result)
            sources.append(Source(
                file_name=result.file_name,
                file_path=result.file_path,
                section=label,
                page_number=result.page_number
            ))
            blocks.append(f"[{i}] {result.file_name} ({label})\n{result.content}")

        return RAGContext(text=CONTEXT_SEPARATOR.join(blocks), sources=sources)
