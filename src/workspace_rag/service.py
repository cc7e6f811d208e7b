"""Service facade exposing indexing, search, status and the extraction channel."""
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config import Config, load_config
from .embedders import BaseEmbedder, EmbeddingConfig, OpenAIEmbedder, create_embedder
from .extraction.bridge import ExtractionBridge, ExtractionResponse
from .indexer import CompleteCallback, ProgressCallback, WorkspaceIndexer
from .retrieval import RAGContext, Retriever
from .vector_store import VectorStoreHandle

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def setup_logging(log_dir: Optional[Union[str, Path]] = None, level: str = "INFO") -> None:
    """Configure root logging to the console and, optionally, a log file."""
    handlers = [logging.StreamHandler()]
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / "workspace_rag.log"))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)

def embedding_config(config: Config) -> EmbeddingConfig:
    embedder = config.embedder
    return EmbeddingConfig(
        name=embedder.name,
        type=embedder.type,
        embedding_size=embedder.embedding_size,
        max_length=embedder.max_length,
        api_key=embedder.resolve_api_key(),
        batch_size=embedder.batch_size,
        additional_params=embedder.additional_params
    )

class RAGService:
    """Owns the pipeline for one process: store, bridge, embedder, retriever and indexer."""

    def __init__(
            self,
            config: Optional[Config] = None,
            embedder: Optional[BaseEmbedder] = None,
            on_progress: Optional[ProgressCallback] = None,
            on_complete: Optional[CompleteCallback] = None
        ):
        """Initialize the service.

        Args:
            config: Configuration; defaults are used when omitted
            embedder: Embedder to use instead of one built from the config
            on_progress: Receives indexing progress events
            on_complete: Receives the indexing completion summary
        """
        self.config = config or Config()
        self.embedder = embedder or create_embedder(embedding_config(self.config))
        self.store = VectorStoreHandle(max_chunks=self.config.indexing.max_chunks)
        self.bridge = ExtractionBridge(timeout=self.config.extraction.timeout)
        self.retriever = Retriever(self.store, self.embedder)
        self.indexer = WorkspaceIndexer(
            self.config,
            self.embedder,
            self.store,
            bridge=self.bridge,
            on_progress=on_progress,
            on_complete=on_complete
        )

    @classmethod
    def from_config_file(cls, config_path: str = "config.yaml", **kwargs) -> "RAGService":
        config = load_config(config_path)
        setup_logging(config.log_dir)
        return cls(config, **kwargs)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.embedder.aclose()

    async def index_workspace(self, workspace_path: Union[str, Path]) -> Dict[str, Any]:
        """Index a workspace; returns ``{success, chunksIndexed, error?}``."""
        result = await self.indexer.index(workspace_path)
        return result.to_dict()

    async def search(self, query: str, top_k: Optional[int] = None) -> Dict[str, Any]:
        """Search the live store; returns ``{chunks: [...]}``."""
        results = await self.retriever.search(query, top_k or self.config.top_k)
        return {"chunks": [result.to_dict() for result in results]}

    async def get_context(self, query: str, top_k: Optional[int] = None) -> RAGContext:
        return await self.retriever.build_context(query, top_k or self.config.top_k)

    def get_status(self) -> Dict[str, Any]:
        return {"isIndexing": self.indexer.is_indexing, "chunksCount": self.store.chunk_count}

    def clear(self) -> None:
        self.store.clear()

    def is_workspace_indexed(self, workspace_path: Union[str, Path]) -> bool:
        return self.store.is_indexed(str(workspace_path))

    def set_extraction_ready(self, ready: bool = True) -> None:
        self.bridge.mark_ready(ready)

    def handle_extraction_response(self, message: Union[ExtractionResponse, Dict[str, Any]]) -> bool:
        return self.bridge.handle_response(message)

    def reset_embedder(self, api_key: Optional[str] = None) -> None:
        """Pick up a changed API key on the next provider call."""
        if isinstance(self.embedder, OpenAIEmbedder):
            self.embedder.reset_client(api_key)
