"""Base embedder module providing abstract base classes and common functionality."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Dict, Any, Sequence
import numpy as np
import logging

logger = logging.getLogger(__name__)

MAX_INPUT_CHARS = 8000
EMBEDDING_BATCH_SIZE = 100

@dataclass
class EmbeddingConfig:
    """Configuration for embedding models.

    Attributes:
        name: Name or path of the embedding model
        type: Type of embedder (e.g., 'huggingface', 'openai')
        embedding_size: Size of the output embeddings
        max_length: Maximum characters sent per input
        api_key: Optional API key for cloud services
        batch_size: Maximum inputs per provider call
        additional_params: Optional additional parameters
    """
    name: str
    type: str
    embedding_size: int
    max_length: int = MAX_INPUT_CHARS
    api_key: Optional[str] = None
    batch_size: int = EMBEDDING_BATCH_SIZE
    additional_params: Optional[Dict[str, Any]] = None

class EmbeddingError(Exception):
    """Base exception for embedding-related errors."""
    pass

class ConfigurationError(EmbeddingError):
    """Raised when the provider is missing its credential or settings."""
    pass

class ModelLoadError(EmbeddingError):
    """Raised when model loading fails."""
    pass

class EmbeddingProcessError(EmbeddingError):
    """Raised when embedding process fails."""
    pass

class BaseEmbedder(ABC):
    """Abstract base class for all embedders."""

    requires_credential = False

    def __init__(self, config: EmbeddingConfig):
        """Initialize the embedder with configuration.

        Args:
            config: EmbeddingConfig instance containing model settings
        """
        self.config = config
        self.name = config.name
        self.batch_size = config.batch_size
        self.dimension: Optional[int] = None
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def has_credential(self) -> bool:
        return not self.requires_credential or bool(self.config.api_key)

    def ensure_configured(self) -> None:
        """Fail fast, before any I/O, when the provider cannot be used.

        Raises:
            ConfigurationError: If a required credential is missing
        """
        if not self.has_credential:
            raise ConfigurationError(f"{self.config.type} API key not configured")

    @abstractmethod
    async def embed_batch(self, texts: Sequence[str]) -> List[np.ndarray]:
        """Embed a batch of texts asynchronously.

        Args:
            texts: Texts to embed, at most ``batch_size`` of them

        Returns:
            One embedding per input, in input order

        Raises:
            ConfigurationError: If the provider is not configured
            EmbeddingProcessError: If embedding process fails
        """
        pass

    async def embed_one(self, text: str) -> np.ndarray:
        """Embed a single text, typically a query.

        Args:
            text: Text to embed

        Returns:
            Embedding as numpy array
        """
        embeddings = await self.embed_batch([text])
        return embeddings[0]

    def _truncate(self, text: str) -> str:
        return text[:self.config.max_length]

    def _validate_batch(self, texts: Sequence[str]) -> None:
        """Validate a batch before submitting it.

        Args:
            texts: Batch to validate

        Raises:
            ValueError: If the batch exceeds the provider ceiling
        """
        if len(texts) > self.batch_size:
            raise ValueError(f"Batch of {len(texts)} exceeds the limit of {self.batch_size} inputs")
        if any(not isinstance(text, str) for text in texts):
            raise ValueError("All inputs must be strings")

    def _record_dimension(self, embeddings: Sequence[np.ndarray]) -> None:
        if embeddings and self.dimension is None:
            self.dimension = int(embeddings[0].shape[-1])

    def _normalize_embeddings(self, embeddings: np.ndarray) -> np.ndarray:
        """L2 normalize embeddings.

        Args:
            embeddings: Input embeddings array

        Returns:
            numpy.ndarray: Normalized embeddings
        """
        norms = np.linalg.norm(embeddings, axis=1, keepdims=True)
        return embeddings / np.clip(norms, 1e-12, None)

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()

    def __enter__(self):
        """Context manager entry."""
        raise TypeError("Use 'async with' instead")

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        raise TypeError("Use 'async with' instead")

    async def aclose(self):
        """Release resources. Override in subclasses if needed."""
        pass
