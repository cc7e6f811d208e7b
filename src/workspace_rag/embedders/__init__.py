"""Base embedder interface and common utilities."""
from .base import (
    BaseEmbedder,
    EmbeddingConfig,
    EmbeddingError,
    ConfigurationError,
    ModelLoadError,
    EmbeddingProcessError
)
from .huggingface import HuggingFaceEmbedder
from .openai import OpenAIEmbedder

EMBEDDERS = {
    'openai': OpenAIEmbedder,
    'huggingface': HuggingFaceEmbedder
}

def create_embedder(config: EmbeddingConfig) -> BaseEmbedder:
    """Instantiate the embedder named by ``config.type``.

    Raises:
        ConfigurationError: If the type is unknown
    """
    try:
        embedder_cls = EMBEDDERS[config.type]
    except KeyError:
        raise ConfigurationError(f"Unknown embedder type: {config.type}") from None
    return embedder_cls(config)

__all__ = [
    'BaseEmbedder',
    'EmbeddingConfig',
    'EmbeddingError',
    'ConfigurationError',
    'ModelLoadError',
    'EmbeddingProcessError',
    'HuggingFaceEmbedder',
    'OpenAIEmbedder',
    'create_embedder'
]
