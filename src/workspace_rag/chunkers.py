"""Text chunking strategies for document splitting."""
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Tuple, Optional

CHUNK_SIZE = 1000
CHUNK_OVERLAP = 200

# Marker written by the PDF collaborator ahead of each page's text
PAGE_MARKER = re.compile(r"--- Page (\d+) ---")

@dataclass
class ChunkMetadata:
    """Metadata for a text chunk."""
    text: str
    char_span: Tuple[int, int]  # Character offsets in the (page) text
    page_number: Optional[int] = None

class Chunker(ABC):
    """Base class for text chunking strategies."""

    @abstractmethod
    def chunk_text(self, text: str) -> List[ChunkMetadata]:
        """Split text into chunks.

        Args:
            text: Input text to split

        Returns:
            List of ChunkMetadata objects
        """
        pass

class FixedSizeChunker(Chunker):
    """Split text into fixed-size character windows with overlap."""

    def __init__(self, chunk_size: int = CHUNK_SIZE, overlap: int = CHUNK_OVERLAP):
        """Initialize the chunker.

        Args:
            chunk_size: Number of characters per chunk (default: 1000)
            overlap: Number of characters shared by consecutive chunks (default: 200)

        Raises:
            ValueError: If the window parameters cannot make progress
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError(f"overlap must be in [0, {chunk_size}), got {overlap}")
        self.chunk_size = chunk_size
        self.overlap = overlap

    @property
    def step(self) -> int:
        return self.chunk_size - self.overlap

    def _windows(self, text: str) -> List[Tuple[int, int]]:
        if len(text) <= self.chunk_size:
            return [(0, len(text))]
        spans = []
        start = 0
        while start < len(text):
            end = min(start + self.chunk_size, len(text))
            spans.append((start, end))
            start += self.step
        return spans

    def chunk_text(self, text: str) -> List[ChunkMetadata]:
        """Split text into fixed-size chunks with overlap.

        Every character of ``text`` lands in at least one chunk, and each
        chunk after the first starts ``overlap`` characters before the
        previous one ends. The last chunk may be shorter.

        Args:
            text: Text to split into chunks

        Returns:
            List of ChunkMetadata objects containing chunks and their spans
        """
        if not text.strip():
            return []

        return [
            ChunkMetadata(text=text[start:end], char_span=(start, end))
            for start, end in self._windows(text)
        ]

class PageAwareChunker(FixedSizeChunker):
    """Chunk each page independently so chunks never cross a page boundary."""

    @staticmethod
    def split_pages(text: str) -> List[Tuple[int, str]]:
        """Split extracted text on ``--- Page N ---`` markers.

        Args:
            text: Text produced by the PDF collaborator

        Returns:
            Ordered (page_number, page_text) pairs. Text without markers is
            returned as page 1.
        """
        matches = list(PAGE_MARKER.finditer(text))
        if not matches:
            return [(1, text)]

        pages = []
        for i, match in enumerate(matches):
            end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
            pages.append((int(match.group(1)), text[match.end():end]))
        return pages

    def chunk_text(self, text: str) -> List[ChunkMetadata]:
        """Split paged text into chunks tagged with their page number.

        Args:
            text: Text to split, optionally containing page markers

        Returns:
            List of ChunkMetadata objects; spans are relative to the stripped page text
        """
        chunks = []
        for page_number, page_text in self.split_pages(text):
            page_text = page_text.strip()
            if not page_text:
                continue
            for start, end in self._windows(page_text):
                chunks.append(ChunkMetadata(
                    text=page_text[start:end],
                    char_span=(start, end),
                    page_number=page_number
                ))
        return chunks

def chunk_text(text: str, chunk_size: int = CHUNK_SIZE, overlap: int = CHUNK_OVERLAP) -> List[str]:
    """Split text into overlapping chunks and return their contents."""
    return [chunk.text for chunk in FixedSizeChunker(chunk_size, overlap).chunk_text(text)]

def chunk_pages(
        text: str,
        chunk_size: int = CHUNK_SIZE,
        overlap: int = CHUNK_OVERLAP
    ) -> List[Tuple[str, int]]:
    """Split paged text and return (content, page_number) pairs."""
    return [
        (chunk.text, chunk.page_number)
        for chunk in PageAwareChunker(chunk_size, overlap).chunk_text(text)
    ]
