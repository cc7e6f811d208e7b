"""Shared fixtures: a deterministic embedder and workspace helpers."""
import asyncio
from typing import List, Sequence

import numpy as np
import pytest

from workspace_rag.config import Config, IndexingConfig
from workspace_rag.embedders import BaseEmbedder, EmbeddingConfig, EmbeddingProcessError

class KeywordEmbedder(BaseEmbedder):
    """Embeds text as [1, count(keyword_1), count(keyword_2), ...].

    Texts mentioning a keyword point further along that keyword's axis, so
    a query for the keyword ranks them first.
    """

    requires_credential = True

    def __init__(self, keywords=("zebra",), batch_size=100, api_key="test-key", fail_batches=()):
        super().__init__(EmbeddingConfig(
            name="keyword",
            type="test",
            embedding_size=len(keywords) + 1,
            api_key=api_key,
            batch_size=batch_size
        ))
        self.keywords = keywords
        self.fail_batches = set(fail_batches)
        self.batches: List[List[str]] = []
        self.queries: List[str] = []
        self.gate = None

    def _vector(self, text: str) -> np.ndarray:
        return np.asarray([1.0] + [text.count(k) for k in self.keywords], dtype=np.float32)

    async def embed_batch(self, texts: Sequence[str]) -> List[np.ndarray]:
        self.ensure_configured()
        self._validate_batch(texts)
        self.batches.append(list(texts))
        if self.gate is not None:
            await self.gate.wait()
        if len(self.batches) in self.fail_batches:
            raise EmbeddingProcessError(f"batch {len(self.batches)} rejected")
        return [self._vector(text) for text in texts]

    async def embed_one(self, text: str) -> np.ndarray:
        self.ensure_configured()
        self.queries.append(text)
        return self._vector(text)

@pytest.fixture
def keyword_embedder():
    """Factory for KeywordEmbedder instances."""
    return KeywordEmbedder

@pytest.fixture
def config():
    """Default configuration without batch pacing."""
    return Config(indexing=IndexingConfig(batch_delay=0))

@pytest.fixture
def workspace(tmp_path):
    """Empty workspace directory."""
    path = tmp_path / "workspace"
    path.mkdir()
    return path

@pytest.fixture
def document_text():
    """2500 characters where 'zebra crossing' only appears in the third chunk."""
    filler = ("maintenance log entry " * 200)
    text = filler[:1900] + "zebra crossing" + filler
    return text[:2500]

def responding_dispatch(bridge, text):
    """Dispatch that answers every request with ``text``."""
    def dispatch(request):
        asyncio.get_running_loop().call_soon(
            bridge.handle_response, {"requestId": request.request_id, "text": text}
        )
    return dispatch

@pytest.fixture
def make_dispatch():
    """Factory for dispatchers that answer every request with fixed text."""
    return responding_dispatch
