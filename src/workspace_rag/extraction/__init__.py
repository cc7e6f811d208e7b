"""Text extraction: collaborator bridge, reference collaborator and direct readers."""
from .bridge import (
    ExtractionBridge,
    ExtractionRequest,
    ExtractionResponse,
    ExtractionResult,
    ExtractionStatus,
    DegradedReason,
    is_placeholder
)
from .collaborator import ProcessExtractionCollaborator, render_pdf_text
from .files import find_files, read_text_file, extract_word_text

__all__ = [
    'ExtractionBridge',
    'ExtractionRequest',
    'ExtractionResponse',
    'ExtractionResult',
    'ExtractionStatus',
    'DegradedReason',
    'is_placeholder',
    'ProcessExtractionCollaborator',
    'render_pdf_text',
    'find_files',
    'read_text_file',
    'extract_word_text'
]
