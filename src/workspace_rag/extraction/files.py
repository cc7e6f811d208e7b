"""File discovery and in-process text extraction."""
import logging
from pathlib import Path
from typing import Iterable, List, Union

import docx

logger = logging.getLogger(__name__)

IGNORED_PATTERNS = [
    "node_modules",
    ".git",
    "dist",
    "build",
    ".next",
    ".nuxt",
    ".cache",
    "coverage",
    "__pycache__",
    ".DS_Store",
    "Thumbs.db",
]

TEXT_EXTENSIONS = [
    ".txt", ".md", ".markdown", ".rst", ".csv", ".log",
    ".json", ".yaml", ".yml", ".xml", ".html", ".htm", ".css",
    ".py", ".js", ".jsx", ".ts", ".tsx", ".sql", ".sh",
    ".ini", ".cfg", ".toml",
]

DOCUMENT_EXTENSIONS = [".pdf", ".doc", ".docx"]

# Formats whose text carries page markers and goes through the collaborator
PAGE_EXTENSIONS = [".pdf"]

WORD_EXTENSIONS = [".doc", ".docx"]

PathLike = Union[str, Path]

def find_files(root: PathLike, ignored: Iterable[str], extensions: Iterable[str]) -> List[Path]:
    """Recursively find indexable files below ``root``.

    Entries are visited in name order so discovery order is stable between
    runs. Directories that cannot be read are logged and skipped.

    Args:
        root: Directory to walk
        ignored: File or directory names to skip
        extensions: Lower-case extensions (with dot) to keep

    Returns:
        List of file paths in discovery order
    """
    ignored = set(ignored)
    extensions = {ext.lower() for ext in extensions}
    files = []

    try:
        entries = sorted(Path(root).iterdir(), key=lambda p: p.name)
    except OSError as e:
        logger.error(f"Failed to read directory {root}: {e}")
        return files

    for entry in entries:
        if entry.name in ignored:
            continue
        if entry.is_symlink() and entry.is_dir():
            logger.debug(f"Skipping symlinked directory: {entry}")
            continue
        if entry.is_dir():
            files.extend(find_files(entry, ignored, extensions))
        elif entry.is_file() and entry.suffix.lower() in extensions:
            files.append(entry)

    return files

def read_text_file(path: PathLike) -> str:
    """Read a text file as UTF-8, replacing undecodable bytes."""
    return Path(path).read_text(encoding="utf-8", errors="replace")

def extract_word_text(path: PathLike) -> str:
    """Extract paragraph text from a Word document.

    Only ``.docx`` is readable; legacy ``.doc`` files yield an empty string.
    """
    path = Path(path)
    if path.suffix.lower() != ".docx":
        logger.info(f"Unsupported Word format, skipping: {path.name}")
        return ""
    try:
        document = docx.Document(str(path))
    except Exception as e:
        logger.error(f"Failed to extract Word text from {path}: {e}")
        return ""
    return "\n".join(p.text for p in document.paragraphs if p.text)
