"""Workspace indexing: discovery, extraction, chunking, batch embedding and store swap."""
import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from .chunkers import FixedSizeChunker, PageAwareChunker
from .config import Config
from .embedders import BaseEmbedder, ConfigurationError
from .extraction.bridge import ExtractionBridge, is_placeholder
from .extraction.files import (
    PAGE_EXTENSIONS,
    WORD_EXTENSIONS,
    extract_word_text,
    find_files,
    read_text_file
)
from .vector_store import DocumentChunk, PendingChunk, VectorStoreHandle

logger = logging.getLogger(__name__)

class IndexingError(Exception):
    """Base exception for indexing run failures."""
    pass

class IndexingInProgressError(IndexingError):
    """Raised when a run is requested while another is active."""
    pass

class IndexingState(str, Enum):
    IDLE = "idle"
    DISCOVERING = "discovering"
    EXTRACTING = "extracting"
    EMBEDDING = "embedding"
    SWAPPING = "swapping"
    FAILED = "failed"

@dataclass(frozen=True)
class IndexProgress:
    current: int
    total: int
    file_name: str
    percentage: int

    @classmethod
    def of(cls, current: int, total: int, file_name: str) -> "IndexProgress":
        return cls(current, total, file_name, round(current / total * 100) if total else 100)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current,
            "total": self.total,
            "fileName": self.file_name,
            "percentage": self.percentage,
        }

@dataclass(frozen=True)
class IndexComplete:
    chunks_indexed: int
    files_indexed: int

    def to_dict(self) -> Dict[str, Any]:
        return {"chunksIndexed": self.chunks_indexed, "filesIndexed": self.files_indexed}

@dataclass(frozen=True)
class IndexResult:
    """Outcome of one indexing run. Partial success is reported as success."""
    success: bool
    chunks_indexed: int = 0
    files_indexed: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {"success": self.success, "chunksIndexed": self.chunks_indexed}
        if self.error is not None:
            payload["error"] = self.error
        return payload

ProgressCallback = Callable[[IndexProgress], Any]
CompleteCallback = Callable[[IndexComplete], Any]

class WorkspaceIndexer:
    """Re-index a workspace wholesale into the vector store, one run at a time."""

    def __init__(
            self,
            config: Config,
            embedder: BaseEmbedder,
            store: VectorStoreHandle,
            bridge: Optional[ExtractionBridge] = None,
            on_progress: Optional[ProgressCallback] = None,
            on_complete: Optional[CompleteCallback] = None
        ):
        """Initialize the indexer.

        Args:
            config: Chunking and indexing settings
            embedder: Provider used for phase 2
            store: Handle swapped on completion
            bridge: Extraction bridge for page-oriented formats; without one
                those files are skipped
            on_progress: Called (or awaited) with IndexProgress events
            on_complete: Called (or awaited) with the IndexComplete summary
        """
        self.config = config
        self.embedder = embedder
        self.store = store
        self.bridge = bridge
        self.on_progress = on_progress
        self.on_complete = on_complete
        self.state = IndexingState.IDLE
        self._indexing = False

        chunking = config.chunking
        self.chunker = FixedSizeChunker(chunking.chunk_size, chunking.overlap)
        self.page_chunker = PageAwareChunker(chunking.chunk_size, chunking.overlap)

    @property
    def is_indexing(self) -> bool:
        return self._indexing

    def ensure_can_start(self) -> None:
        """Check the run-level preconditions.

        Raises:
            IndexingInProgressError: If a run is already active
            ConfigurationError: If the embedder has no credential
        """
        if self._indexing:
            raise IndexingInProgressError("Indexing already in progress")
        self.embedder.ensure_configured()

    async def index(self, workspace_path: Union[str, Path]) -> IndexResult:
        """Index every supported file below ``workspace_path``.

        Args:
            workspace_path: Workspace root

        Returns:
            IndexResult with the number of chunks now live
        """
        try:
            self.ensure_can_start()
        except (IndexingInProgressError, ConfigurationError) as e:
            logger.warning(f"Indexing rejected: {e}")
            return IndexResult(success=False, error=str(e))

        self._indexing = True
        workspace_path = str(workspace_path)
        logger.info(f"Indexing workspace: {workspace_path}")
        try:
            self.state = IndexingState.DISCOVERING
            indexing = self.config.indexing
            files = find_files(
                workspace_path,
                indexing.ignored_patterns,
                list(indexing.text_extensions) + list(indexing.document_extensions)
            )
            if not files:
                logger.info("No indexable files found")
                return IndexResult(success=True)

            self.state = IndexingState.EXTRACTING
            pending = await self._extract_chunks(files)

            if len(pending) > self.store.max_chunks:
                logger.warning(
                    f"Workspace produced {len(pending)} chunks; keeping the first {self.store.max_chunks}"
                )
                pending = pending[:self.store.max_chunks]

            self.state = IndexingState.EMBEDDING
            chunks = await self._embed_chunks(pending)

            self.state = IndexingState.SWAPPING
            self.store.replace(workspace_path, chunks)

            summary = IndexComplete(chunks_indexed=len(chunks), files_indexed=len(files))
            await self._emit(self.on_complete, summary)
            logger.info(f"Indexing complete: {len(chunks)} chunks from {len(files)} files")
            return IndexResult(success=True, chunks_indexed=len(chunks), files_indexed=len(files))
        except Exception as e:
            self.state = IndexingState.FAILED
            logger.exception(f"Indexing failed for {workspace_path}")
            return IndexResult(success=False, error=str(e) or type(e).__name__)
        finally:
            self.state = IndexingState.IDLE
            self._indexing = False

    async def _extract_chunks(self, files: List[Path]) -> List[PendingChunk]:
        """Phase 1: extract and chunk each file in discovery order."""
        logger.info(f"Phase 1: Extracting text from {len(files)} files...")
        pending = []
        for i, path in enumerate(files, 1):
            await self._emit(self.on_progress, IndexProgress.of(i, len(files), f"Extracting: {path.name}"))

            text = await self._extract_file_text(path)
            if text is None or len(text.strip()) < self.config.indexing.min_text_length:
                logger.debug(f"Skipping file without enough text: {path.name}")
                continue

            is_paged = path.suffix.lower() in PAGE_EXTENSIONS
            chunker = self.page_chunker if is_paged else self.chunker
            metadata = chunker.chunk_text(text)
            for j, chunk in enumerate(metadata):
                pending.append(PendingChunk(
                    file_path=str(path),
                    file_name=path.name,
                    content=chunk.text,
                    chunk_index=j,
                    total_chunks=len(metadata),
                    page_number=chunk.page_number
                ))
        return pending

    async def _extract_file_text(self, path: Path) -> Optional[str]:
        """Obtain text for one file; None when the file is skipped."""
        ext = path.suffix.lower()
        try:
            if path.stat().st_size > self.config.indexing.max_file_size:
                logger.info(f"Skipping large file: {path}")
                return None

            if ext in PAGE_EXTENSIONS:
                if self.bridge is None:
                    logger.info(f"No extraction bridge, skipping: {path.name}")
                    return None
                result = await self.bridge.request_text(path)
                if not result.ok or is_placeholder(result.text):
                    logger.info(f"Skipping PDF with placeholder content: {path.name}")
                    return None
                return result.text

            if ext in WORD_EXTENSIONS:
                return extract_word_text(path)

            return read_text_file(path)
        except OSError as e:
            logger.error(f"Failed to read file {path}: {e}")
            return None

    async def _embed_chunks(self, pending: List[PendingChunk]) -> List[DocumentChunk]:
        """Phase 2: embed in batches, dropping any batch that fails."""
        batch_size = self.embedder.batch_size
        total_batches = -(-len(pending) // batch_size)
        logger.info(f"Phase 2: Embedding {len(pending)} chunks in batches of {batch_size}...")

        chunks = []
        for batch_index in range(total_batches):
            batch = pending[batch_index * batch_size:(batch_index + 1) * batch_size]
            await self._emit(self.on_progress, IndexProgress.of(
                batch_index + 1, total_batches, f"Embedding batch {batch_index + 1}/{total_batches}"
            ))

            try:
                embeddings = await self.embedder.embed_batch([chunk.content for chunk in batch])
                chunks.extend(chunk.with_embedding(embedding) for chunk, embedding in zip(batch, embeddings))
            except Exception as e:
                logger.error(f"Failed to embed batch {batch_index + 1}: {e}")

            if batch_index < total_batches - 1 and self.config.indexing.batch_delay:
                await asyncio.sleep(self.config.indexing.batch_delay)

        return chunks

    @staticmethod
    async def _emit(callback: Optional[Callable[[Any], Any]], event: Any) -> None:
        if callback is None:
            return
        result = callback(event)
        if inspect.isawaitable(result):
            await result
