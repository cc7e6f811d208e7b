"""Retrieval-augmented search over a workspace of documents."""
from .chunkers import ChunkMetadata, FixedSizeChunker, PageAwareChunker, chunk_text, chunk_pages
from .config import Config, load_config
from .indexer import IndexResult, IndexProgress, IndexComplete, IndexingInProgressError, WorkspaceIndexer
from .retrieval import Retriever, SearchResult, Source, RAGContext, cosine_similarity
from .service import RAGService, setup_logging
from .vector_store import DocumentChunk, VectorStore, VectorStoreHandle

__version__ = "0.1.0"

__all__ = [
    'ChunkMetadata',
    'FixedSizeChunker',
    'PageAwareChunker',
    'chunk_text',
    'chunk_pages',
    'Config',
    'load_config',
    'IndexResult',
    'IndexProgress',
    'IndexComplete',
    'IndexingInProgressError',
    'WorkspaceIndexer',
    'Retriever',
    'SearchResult',
    'Source',
    'RAGContext',
    'cosine_similarity',
    'RAGService',
    'setup_logging',
    'DocumentChunk',
    'VectorStore',
    'VectorStoreHandle'
]
