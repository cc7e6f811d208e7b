"""Correlation of extraction requests with responses from a collaborator process.

Some documents (PDFs) can only be rendered to text by a collaborator that
lives outside this process. The bridge sends it ``{requestId, filePath}``
messages and matches each ``{requestId, text, error?}`` reply to the
coroutine waiting on it. Every wait is bounded by a timeout, and failures
degrade to placeholder text instead of raising, so one bad document cannot
abort an indexing run.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

EXTRACTION_TIMEOUT = 30.0

NOT_READY_MESSAGE = "PDF will be indexed when the app is fully loaded."
TIMEOUT_MESSAGE = "PDF extraction timed out."
FAILURE_MESSAGE = "Failed to extract text"

def not_ready_placeholder(file_name: str) -> str:
    return f"[PDF Document: {file_name}]\n{NOT_READY_MESSAGE}"

def timeout_placeholder(file_name: str) -> str:
    return f"[PDF Document: {file_name}]\n{TIMEOUT_MESSAGE}"

def failure_placeholder(file_name: str, error: str) -> str:
    return f"[PDF Document: {file_name}]\n{FAILURE_MESSAGE}: {error}"

def is_placeholder(text: str) -> bool:
    """Check whether text is one of the bridge's degraded placeholders."""
    return any(marker in text for marker in (NOT_READY_MESSAGE, TIMEOUT_MESSAGE, FAILURE_MESSAGE))

class ExtractionRequest(BaseModel):
    """Message sent to the collaborator."""
    model_config = ConfigDict(populate_by_name=True)

    request_id: str = Field(..., alias="requestId")
    file_path: str = Field(..., alias="filePath")

    def to_message(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

class ExtractionResponse(BaseModel):
    """Message received from the collaborator."""
    model_config = ConfigDict(populate_by_name=True)

    request_id: str = Field(..., alias="requestId")
    text: str = ""
    error: Optional[str] = None

    def to_message(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

class ExtractionStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"

class DegradedReason(str, Enum):
    NOT_READY = "not_ready"
    TIMEOUT = "timeout"
    ERROR = "error"

@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of one extraction.

    Attributes:
        text: Extracted text, or a placeholder when degraded
        status: Whether the text is real document content
        reason: Why the extraction degraded, if it did
    """
    text: str
    status: ExtractionStatus
    reason: Optional[DegradedReason] = None

    @classmethod
    def success(cls, text: str) -> "ExtractionResult":
        return cls(text=text, status=ExtractionStatus.OK)

    @classmethod
    def degraded(cls, text: str, reason: DegradedReason) -> "ExtractionResult":
        return cls(text=text, status=ExtractionStatus.DEGRADED, reason=reason)

    @property
    def ok(self) -> bool:
        return self.status is ExtractionStatus.OK

@dataclass
class PendingExtraction:
    """An outstanding request awaiting its response or timeout."""
    request_id: str
    file_name: str
    future: asyncio.Future
    timeout_handle: asyncio.TimerHandle

Dispatch = Callable[[ExtractionRequest], Any]

class ExtractionBridge:
    """Send extraction requests to a collaborator and await correlated responses."""

    def __init__(self, dispatch: Optional[Dispatch] = None, timeout: float = EXTRACTION_TIMEOUT):
        """Initialize the bridge.

        Args:
            dispatch: Callable delivering a request to the collaborator. May be
                attached later by the collaborator itself.
            timeout: Seconds to wait for each response
        """
        self.dispatch = dispatch
        self.timeout = timeout
        self._ready = False
        self._pending: Dict[str, PendingExtraction] = {}

    @property
    def is_ready(self) -> bool:
        return self._ready and self.dispatch is not None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def mark_ready(self, ready: bool = True) -> None:
        """Record the collaborator's readiness signal."""
        self._ready = ready
        logger.info(f"PDF extraction ready: {ready}")

    async def extract(self, file_path: Union[str, Path]) -> str:
        """Return text for ``file_path``, or a placeholder if extraction degraded."""
        result = await self.request_text(file_path)
        return result.text

    async def request_text(self, file_path: Union[str, Path]) -> ExtractionResult:
        """Ask the collaborator for the text of one file.

        Args:
            file_path: Document to extract

        Returns:
            ExtractionResult; degraded when the collaborator is not ready,
            reports an error or does not answer within the timeout
        """
        file_path = str(file_path)
        file_name = Path(file_path).name

        if not self.is_ready:
            logger.info(f"PDF extraction not ready, skipping: {file_name}")
            return ExtractionResult.degraded(not_ready_placeholder(file_name), DegradedReason.NOT_READY)

        loop = asyncio.get_running_loop()
        request = ExtractionRequest(request_id=uuid.uuid4().hex, file_path=file_path)
        future = loop.create_future()
        handle = loop.call_later(self.timeout, self._expire, request.request_id)
        self._pending[request.request_id] = PendingExtraction(
            request_id=request.request_id,
            file_name=file_name,
            future=future,
            timeout_handle=handle
        )

        logger.info(f"Requesting PDF extraction: {file_name}")
        try:
            self.dispatch(request)
        except Exception as e:
            self._discard(request.request_id)
            logger.error(f"Failed to dispatch extraction request for {file_name}: {e}")
            return ExtractionResult.degraded(failure_placeholder(file_name, str(e)), DegradedReason.ERROR)

        try:
            return await future
        finally:
            # No-op unless the waiting task was cancelled
            self._discard(request.request_id)

    def handle_response(self, message: Union[ExtractionResponse, Dict[str, Any]]) -> bool:
        """Resolve the pending request a collaborator response belongs to.

        Args:
            message: ExtractionResponse or its wire-format dict

        Returns:
            True if the response matched an outstanding request
        """
        response = message if isinstance(message, ExtractionResponse) else ExtractionResponse.model_validate(message)
        pending = self._discard(response.request_id)
        if pending is None:
            logger.debug(f"Ignoring response for unknown request {response.request_id}")
            return False
        if pending.future.done():
            return False

        if response.error:
            logger.error(f"PDF extraction error for {pending.file_name}: {response.error}")
            pending.future.set_result(ExtractionResult.degraded(
                failure_placeholder(pending.file_name, response.error),
                DegradedReason.ERROR
            ))
        else:
            logger.info(f"PDF extracted successfully: {pending.file_name} ({len(response.text)} chars)")
            pending.future.set_result(ExtractionResult.success(response.text))
        return True

    def _expire(self, request_id: str) -> None:
        pending = self._pending.pop(request_id, None)
        if pending is None or pending.future.done():
            return
        logger.warning(f"PDF extraction timed out: {pending.file_name}")
        pending.future.set_result(ExtractionResult.degraded(
            timeout_placeholder(pending.file_name),
            DegradedReason.TIMEOUT
        ))

    def _discard(self, request_id: str) -> Optional[PendingExtraction]:
        pending = self._pending.pop(request_id, None)
        if pending is not None:
            pending.timeout_handle.cancel()
        return pending
