"""Tests for the extraction bridge, the reference collaborator and file readers."""
import asyncio
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock, patch

import pytest

from workspace_rag.extraction import (
    ExtractionBridge,
    ExtractionRequest,
    ExtractionResponse,
    ExtractionStatus,
    DegradedReason,
    ProcessExtractionCollaborator,
    is_placeholder,
    render_pdf_text,
    find_files,
    extract_word_text
)

def responding_dispatch(bridge, reply):
    """Dispatch that answers each request on the next loop iteration."""
    def dispatch(request):
        loop = asyncio.get_running_loop()
        loop.call_soon(bridge.handle_response, reply(request))
    return Mock(side_effect=dispatch)

@pytest.mark.asyncio
async def test_not_ready_short_circuits():
    """Test that nothing is sent before the readiness signal."""
    dispatch = Mock()
    bridge = ExtractionBridge(dispatch)

    result = await bridge.request_text("/docs/manual.pdf")

    assert result.status is ExtractionStatus.DEGRADED
    assert result.reason is DegradedReason.NOT_READY
    assert "manual.pdf" in result.text
    assert is_placeholder(result.text)
    dispatch.assert_not_called()
    assert bridge.pending_count == 0

@pytest.mark.asyncio
async def test_ready_without_dispatch_is_not_ready():
    """Test that a readiness signal alone is not enough to send requests."""
    bridge = ExtractionBridge()
    bridge.mark_ready()
    assert not bridge.is_ready
    result = await bridge.request_text("/docs/manual.pdf")
    assert result.reason is DegradedReason.NOT_READY

@pytest.mark.asyncio
async def test_successful_extraction():
    """Test that a correlated response resolves with the text verbatim."""
    bridge = ExtractionBridge()
    bridge.dispatch = responding_dispatch(
        bridge, lambda req: {"requestId": req.request_id, "text": "--- Page 1 ---\nHello"}
    )
    bridge.mark_ready()

    result = await bridge.request_text("/docs/manual.pdf")

    assert result.ok
    assert result.text == "--- Page 1 ---\nHello"
    assert bridge.dispatch.call_count == 1
    request = bridge.dispatch.call_args[0][0]
    assert isinstance(request, ExtractionRequest)
    assert request.file_path == "/docs/manual.pdf"
    assert bridge.pending_count == 0

@pytest.mark.asyncio
async def test_extract_returns_text():
    """Test the plain-text convenience wrapper."""
    bridge = ExtractionBridge()
    bridge.dispatch = responding_dispatch(bridge, lambda req: {"requestId": req.request_id, "text": "body"})
    bridge.mark_ready()
    assert await bridge.extract("/docs/a.pdf") == "body"

@pytest.mark.asyncio
async def test_collaborator_error_degrades():
    """Test that a reported error becomes a placeholder, not an exception."""
    bridge = ExtractionBridge()
    bridge.dispatch = responding_dispatch(
        bridge, lambda req: {"requestId": req.request_id, "text": "", "error": "corrupt xref table"}
    )
    bridge.mark_ready()

    result = await bridge.request_text("/docs/broken.pdf")

    assert result.reason is DegradedReason.ERROR
    assert "corrupt xref table" in result.text
    assert "broken.pdf" in result.text
    assert is_placeholder(result.text)
    assert bridge.pending_count == 0

@pytest.mark.asyncio
async def test_timeout_degrades():
    """Test that an unanswered request resolves with a timeout placeholder."""
    bridge = ExtractionBridge(Mock(), timeout=0.05)
    bridge.mark_ready()

    result = await bridge.request_text("/docs/slow.pdf")

    assert result.reason is DegradedReason.TIMEOUT
    assert result.text == "[PDF Document: slow.pdf]\nPDF extraction timed out."
    assert bridge.pending_count == 0

@pytest.mark.asyncio
async def test_late_response_is_ignored():
    """Test that a response arriving after the timeout is dropped."""
    dispatch = Mock()
    bridge = ExtractionBridge(dispatch, timeout=0.01)
    bridge.mark_ready()

    result = await bridge.request_text("/docs/slow.pdf")
    request = dispatch.call_args[0][0]

    assert result.reason is DegradedReason.TIMEOUT
    assert bridge.handle_response({"requestId": request.request_id, "text": "too late"}) is False

def test_unknown_response_is_ignored():
    """Test that responses with unknown request ids are ignored."""
    bridge = ExtractionBridge(Mock())
    assert bridge.handle_response(ExtractionResponse(request_id="nope", text="x")) is False

@pytest.mark.asyncio
async def test_dispatch_failure_degrades():
    """Test that a failing dispatch leaves no pending entry behind."""
    bridge = ExtractionBridge(Mock(side_effect=ConnectionError("window closed")))
    bridge.mark_ready()

    result = await bridge.request_text("/docs/a.pdf")

    assert result.reason is DegradedReason.ERROR
    assert "window closed" in result.text
    assert bridge.pending_count == 0

@pytest.mark.asyncio
async def test_out_of_order_responses_are_correlated():
    """Test that concurrent requests receive their own responses."""
    requests = []
    bridge = ExtractionBridge(Mock(side_effect=requests.append))
    bridge.mark_ready()

    tasks = [asyncio.create_task(bridge.request_text(f"/docs/{name}.pdf")) for name in ("a", "b", "c")]
    await asyncio.sleep(0)
    assert bridge.pending_count == 3

    for request in reversed(requests):
        bridge.handle_response({"requestId": request.request_id, "text": f"text of {request.file_path}"})

    results = await asyncio.gather(*tasks)
    assert [r.text for r in results] == [f"text of /docs/{name}.pdf" for name in ("a", "b", "c")]
    assert len({r.request_id for r in requests}) == 3
    assert bridge.pending_count == 0

@pytest.mark.asyncio
async def test_cancelled_wait_removes_pending():
    """Test that cancelling the waiting task cleans up its entry."""
    bridge = ExtractionBridge(Mock())
    bridge.mark_ready()

    task = asyncio.create_task(bridge.request_text("/docs/a.pdf"))
    await asyncio.sleep(0)
    assert bridge.pending_count == 1

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert bridge.pending_count == 0

def test_message_wire_format():
    """Test camelCase wire format in both directions."""
    request = ExtractionRequest(request_id="r1", file_path="/docs/a.pdf")
    assert request.to_message() == {"requestId": "r1", "filePath": "/docs/a.pdf"}

    response = ExtractionResponse.model_validate({"requestId": "r1", "text": "t", "error": "e"})
    assert response.request_id == "r1"
    assert response.error == "e"
    assert ExtractionResponse(request_id="r1", text="t").to_message() == {"requestId": "r1", "text": "t"}

def test_is_placeholder():
    """Test placeholder detection against real document text."""
    assert not is_placeholder("Section 4.2: Maintenance intervals")
    assert is_placeholder("[PDF Document: x.pdf]\nPDF will be indexed when the app is fully loaded.")

def fake_render(path):
    return f"--- Page 1 ---\nRendered {path}"

def failing_render(path):
    raise ValueError("not a PDF")

@pytest.mark.asyncio
async def test_collaborator_round_trip():
    """Test the reference collaborator answering through the bridge."""
    bridge = ExtractionBridge(timeout=5)
    executor = ThreadPoolExecutor(max_workers=1)

    async with ProcessExtractionCollaborator(bridge, render=fake_render, executor=executor):
        assert bridge.is_ready
        result = await bridge.request_text("/docs/a.pdf")

    assert result.ok
    assert result.text == "--- Page 1 ---\nRendered /docs/a.pdf"
    assert not bridge.is_ready

@pytest.mark.asyncio
async def test_collaborator_reports_errors():
    """Test that render failures come back as error responses."""
    bridge = ExtractionBridge(timeout=5)

    async with ProcessExtractionCollaborator(bridge, render=failing_render, executor=ThreadPoolExecutor(1)):
        result = await bridge.request_text("/docs/a.pdf")

    assert result.reason is DegradedReason.ERROR
    assert "not a PDF" in result.text

def test_render_pdf_text_marks_pages():
    """Test page markers and skipping of empty pages."""
    pages = [Mock(), Mock(), Mock()]
    pages[0].extract_text.return_value = "First page"
    pages[1].extract_text.return_value = "  "
    pages[2].extract_text.return_value = "Third page"

    with patch("workspace_rag.extraction.collaborator.PdfReader") as mock_reader:
        mock_reader.return_value.pages = pages
        text = render_pdf_text("/docs/a.pdf")

    assert text == "--- Page 1 ---\nFirst page\n\n--- Page 3 ---\nThird page"

def test_find_files(tmp_path):
    """Test discovery order, extension filter and ignore patterns."""
    (tmp_path / "b.txt").write_text("b")
    (tmp_path / "a.md").write_text("a")
    (tmp_path / "image.png").write_bytes(b"\x89PNG")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "c.pdf").write_bytes(b"%PDF")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "d.txt").write_text("d")

    files = find_files(tmp_path, ["node_modules"], [".txt", ".md", ".pdf"])

    assert [f.relative_to(tmp_path).as_posix() for f in files] == ["a.md", "b.txt", "sub/c.pdf"]

def test_find_files_skips_symlinked_directories(tmp_path):
    """Test that a directory link back to the root is not walked."""
    (tmp_path / "a.txt").write_text("a")
    (tmp_path / "loop").symlink_to(tmp_path, target_is_directory=True)

    files = find_files(tmp_path, [], [".txt"])

    assert files == [tmp_path / "a.txt"]

def test_find_files_missing_directory(tmp_path):
    """Test that an unreadable root yields no files instead of raising."""
    assert find_files(tmp_path / "missing", [], [".txt"]) == []

def test_extract_word_text(tmp_path):
    """Test paragraph extraction from .docx and skipping of legacy .doc."""
    import docx

    document = docx.Document()
    document.add_paragraph("Torque spec: 45 Nm")
    document.add_paragraph("Inspect seals monthly")
    path = tmp_path / "procedure.docx"
    document.save(str(path))

    assert extract_word_text(path) == "Torque spec: 45 Nm\nInspect seals monthly"

    legacy = tmp_path / "old.doc"
    legacy.write_bytes(b"\xd0\xcf\x11\xe0")
    assert extract_word_text(legacy) == ""
