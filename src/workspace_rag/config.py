"""Configuration management using Pydantic."""
import os
from pydantic import BaseModel, Field, model_validator
from typing import Optional, Dict, Any, List
from pathlib import Path
from dotenv import load_dotenv
import yaml

from .extraction.files import TEXT_EXTENSIONS, DOCUMENT_EXTENSIONS, IGNORED_PATTERNS

class EmbedderConfig(BaseModel):
    """Configuration for the embedding provider."""
    name: str = Field("text-embedding-3-small", description="Name or path of the embedding model")
    type: str = Field("openai", description="Type of embedder (openai or huggingface)")
    embedding_size: int = Field(1536, description="Size of output embeddings")
    max_length: int = Field(8000, description="Maximum characters sent to the provider per input")
    batch_size: int = Field(100, description="Maximum inputs per provider call")
    api_key: Optional[str] = Field(None, description="API key; falls back to OPENAI_API_KEY")
    additional_params: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Additional model parameters"
    )

    def resolve_api_key(self) -> Optional[str]:
        """Return the configured key, or the one from the environment."""
        return self.api_key or os.environ.get("OPENAI_API_KEY") or None

class ChunkingConfig(BaseModel):
    """Configuration for text chunking."""
    chunk_size: int = Field(1000, gt=0, description="Characters per chunk")
    overlap: int = Field(200, ge=0, description="Characters shared by consecutive chunks")

    @model_validator(mode="after")
    def _check_overlap(self) -> "ChunkingConfig":
        if self.overlap >= self.chunk_size:
            raise ValueError("overlap must be smaller than chunk_size")
        return self

class ExtractionConfig(BaseModel):
    """Configuration for the PDF extraction round trip."""
    timeout: float = Field(30.0, gt=0, description="Seconds to wait for a collaborator response")
    max_workers: int = Field(1, ge=1, description="Worker processes used by the collaborator")

class IndexingConfig(BaseModel):
    """Configuration for workspace indexing."""
    min_text_length: int = Field(50, description="Files with less stripped text are skipped")
    max_file_size: int = Field(50 * 1024 * 1024, description="Files larger than this are skipped (bytes)")
    batch_delay: float = Field(0.2, ge=0, description="Pause between embedding batches (seconds)")
    max_chunks: int = Field(50_000, gt=0, description="Upper bound on chunks held in memory")
    ignored_patterns: List[str] = Field(
        default_factory=lambda: list(IGNORED_PATTERNS),
        description="File and directory names skipped during discovery"
    )
    text_extensions: List[str] = Field(
        default_factory=lambda: list(TEXT_EXTENSIONS),
        description="Extensions read directly as text"
    )
    document_extensions: List[str] = Field(
        default_factory=lambda: list(DOCUMENT_EXTENSIONS),
        description="Extensions that need a document extractor"
    )

class Config(BaseModel):
    """Main configuration for workspace indexing and retrieval."""
    embedder: EmbedderConfig = Field(default_factory=EmbedderConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    indexing: IndexingConfig = Field(default_factory=IndexingConfig)
    top_k: int = Field(5, gt=0, description="Default number of search results")
    log_dir: Optional[Path] = Field(
        default=None,
        description="Directory for log files"
    )

def load_config(config_path: str = "config.yaml") -> Config:
    """Load configuration from YAML file.

    Environment variables from a ``.env`` file are loaded first so the
    embedding credential can live outside the YAML.

    Args:
        config_path: Path to config file

    Returns:
        Config: Configuration object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    load_dotenv()
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        config_dict = yaml.safe_load(f) or {}

    return Config(**config_dict)
