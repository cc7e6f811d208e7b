"""Reference PDF collaborator that renders documents in a worker process."""
import asyncio
import functools
import logging
from concurrent.futures import Executor, ProcessPoolExecutor
from typing import Callable, Optional

from pypdf import PdfReader

from .bridge import ExtractionBridge, ExtractionRequest, ExtractionResponse

logger = logging.getLogger(__name__)

def render_pdf_text(path: str) -> str:
    """Extract the text of every page, prefixed with ``--- Page N ---`` markers.

    Pages without text are left out. A document with no text at all yields
    an empty string.
    """
    reader = PdfReader(path)
    parts = []
    for number, page in enumerate(reader.pages, 1):
        page_text = page.extract_text() or ""
        if page_text.strip():
            parts.append(f"--- Page {number} ---\n{page_text}")
    return "\n\n".join(parts)

class ProcessExtractionCollaborator:
    """Answer bridge requests by rendering PDFs in an executor.

    Entering the context attaches ``dispatch`` to the bridge and sends the
    readiness signal; leaving it withdraws readiness and stops the workers.
    """

    def __init__(
            self,
            bridge: ExtractionBridge,
            max_workers: int = 1,
            render: Callable[[str], str] = render_pdf_text,
            executor: Optional[Executor] = None
        ):
        """Initialize the collaborator.

        Args:
            bridge: Bridge whose requests this collaborator answers
            max_workers: Worker processes for the default process pool
            render: Picklable function turning a file path into text
            executor: Optional executor to use instead of a process pool
        """
        self.bridge = bridge
        self.max_workers = max_workers
        self.render = render
        self._executor = executor
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        if self._executor is None:
            self._executor = ProcessPoolExecutor(max_workers=self.max_workers)
        self.bridge.dispatch = self.dispatch
        self.bridge.mark_ready(True)
        logger.info("PDF extraction collaborator started")

    def close(self) -> None:
        self.bridge.mark_ready(False)
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
        logger.info("PDF extraction collaborator stopped")

    def dispatch(self, request: ExtractionRequest) -> None:
        """Schedule rendering; the response is posted back to the bridge when done."""
        if self._executor is None or self._loop is None:
            raise RuntimeError("Collaborator is not running")
        logger.debug(f"Received extraction request for: {request.file_path}")
        future = self._loop.run_in_executor(self._executor, self.render, request.file_path)
        future.add_done_callback(functools.partial(self._respond, request.request_id))

    def _respond(self, request_id: str, future: asyncio.Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            response = ExtractionResponse(request_id=request_id, error=str(error) or type(error).__name__)
        else:
            response = ExtractionResponse(request_id=request_id, text=future.result())
        self.bridge.handle_response(response.to_message())
