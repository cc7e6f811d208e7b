"""OpenAI-based embedder implementation."""
import openai
import numpy as np
from typing import List, Optional, Sequence
import os
import logging

from .base import (
    BaseEmbedder,
    EmbeddingConfig,
    EmbeddingProcessError
)

logger = logging.getLogger(__name__)

class OpenAIEmbedder(BaseEmbedder):
    """Embedder implementation using the OpenAI embeddings API."""

    requires_credential = True

    def __init__(self, config: EmbeddingConfig):
        """Initialize OpenAI embedder.

        Args:
            config: Configuration for the embedder. Without ``api_key`` the
                ``OPENAI_API_KEY`` environment variable is used.
        """
        super().__init__(config)
        self.model_name = config.name
        if not config.api_key:
            config.api_key = os.environ.get("OPENAI_API_KEY") or None
        self._client: Optional[openai.AsyncOpenAI] = None

    @property
    def api_key(self) -> Optional[str]:
        return self.config.api_key

    def reset_client(self, api_key: Optional[str] = None) -> None:
        """Drop the cached client, e.g. after the API key changed."""
        self._client = None
        self.config.api_key = api_key or os.environ.get("OPENAI_API_KEY") or None

    def _get_client(self) -> openai.AsyncOpenAI:
        self.ensure_configured()
        if self._client is None:
            self._client = openai.AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def embed_one(self, text: str) -> np.ndarray:
        """Embed a single (query) text.

        Args:
            text: Text to embed; truncated to ``max_length`` characters

        Returns:
            Embedding as numpy array
        """
        client = self._get_client()
        try:
            response = await client.embeddings.create(
                model=self.model_name,
                input=self._truncate(text)
            )
        except Exception as e:
            raise EmbeddingProcessError(f"Failed to get embedding from OpenAI: {str(e)}") from e

        embedding = np.asarray(response.data[0].embedding, dtype=np.float32)
        self._record_dimension([embedding])
        return embedding

    async def embed_batch(self, texts: Sequence[str]) -> List[np.ndarray]:
        """Embed up to ``batch_size`` texts in one API call.

        Args:
            texts: Texts to embed; each truncated to ``max_length`` characters

        Returns:
            Embeddings aligned with ``texts``
        """
        client = self._get_client()
        if not texts:
            return []
        self._validate_batch(texts)

        try:
            response = await client.embeddings.create(
                model=self.model_name,
                input=[self._truncate(text) for text in texts]
            )
        except Exception as e:
            raise EmbeddingProcessError(f"Failed to get embeddings from OpenAI: {str(e)}") from e

        # The API tags each item with its input position; order is not guaranteed
        data = sorted(response.data, key=lambda item: item.index)
        if len(data) != len(texts):
            raise EmbeddingProcessError(
                f"OpenAI returned {len(data)} embeddings for {len(texts)} inputs"
            )

        embeddings = [np.asarray(item.embedding, dtype=np.float32) for item in data]
        self._record_dimension(embeddings)
        return embeddings

    async def aclose(self):
        if self._client is not None:
            await self._client.close()
            self._client = None
