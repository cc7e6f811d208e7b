"""HuggingFace-based embedder implementation."""
import torch
from transformers import AutoTokenizer, AutoModel
import numpy as np
from typing import List, Sequence
import logging

from .base import (
    BaseEmbedder,
    EmbeddingConfig,
    ModelLoadError,
    EmbeddingProcessError
)

logger = logging.getLogger(__name__)

class HuggingFaceEmbedder(BaseEmbedder):
    """Embedder implementation using a local HuggingFace model.

    Runs without a credential, so it can index a workspace offline.
    """

    def __init__(self, config: EmbeddingConfig):
        """Initialize HuggingFace embedder.

        Args:
            config: EmbeddingConfig instance. ``additional_params`` may set
                ``max_tokens`` (default 512) and ``model_batch_size`` (default 32).
        """
        super().__init__(config)
        params = config.additional_params or {}
        self.max_tokens = params.get('max_tokens', 512)
        self.model_batch_size = params.get('model_batch_size', 32)
        self.tokenizer = None
        self.model = None
        self.device = None
        self._initialize_model()

    def _initialize_model(self):
        """Initialize the model and tokenizer."""
        try:
            self.tokenizer = AutoTokenizer.from_pretrained(
                self.config.name,
                trust_remote_code=True
            )
            self.model = AutoModel.from_pretrained(
                self.config.name,
                trust_remote_code=True
            )
            self.device = 'cuda' if torch.cuda.is_available() else 'cpu'
            self.model.to(self.device)
            self.model.eval()
            logger.info(f"Model loaded successfully on {self.device}")
        except Exception as e:
            raise ModelLoadError(f"Failed to load model: {str(e)}") from e

    def _mean_pool(self, texts: List[str]) -> np.ndarray:
        inputs = self.tokenizer(
            texts,
            padding=True,
            truncation=True,
            max_length=self.max_tokens,
            return_tensors="pt"
        )
        inputs = {key: value.to(self.device) for key, value in inputs.items()}

        with torch.no_grad():
            outputs = self.model(**inputs)
            attention_mask = inputs["attention_mask"]
            token_embeddings = outputs.last_hidden_state
            input_mask_expanded = attention_mask.unsqueeze(-1).expand(token_embeddings.size()).float()
            embeddings_sum = torch.sum(token_embeddings * input_mask_expanded, 1)
            mask_sum = torch.clamp(input_mask_expanded.sum(1), min=1e-9)
            embeddings = (embeddings_sum / mask_sum).cpu().numpy()

        return self._normalize_embeddings(embeddings).astype(np.float32)

    async def embed_batch(self, texts: Sequence[str]) -> List[np.ndarray]:
        """Embed texts with mean pooling, in sub-batches of ``model_batch_size``.

        Args:
            texts: Texts to embed

        Returns:
            L2-normalised embeddings aligned with ``texts``

        Raises:
            EmbeddingProcessError: If embedding fails
        """
        if not texts:
            return []
        self._validate_batch(texts)

        try:
            embeddings = []
            truncated = [self._truncate(text) for text in texts]
            for i in range(0, len(truncated), self.model_batch_size):
                embeddings.extend(self._mean_pool(truncated[i:i + self.model_batch_size]))
        except Exception as e:
            raise EmbeddingProcessError(f"Failed to embed chunks: {str(e)}") from e

        self._record_dimension(embeddings)
        return embeddings

    async def aclose(self):
        """Move the model off the GPU."""
        if self.model is not None:
            self.model.cpu()
            if torch.cuda.is_available():
                torch.cuda.empty_cache()
            logger.info("Model resources cleaned up")
