from __future__ import annotations

from pathlib import Path
from typing import List

import httpx
import pytest

from linear_mcp.errors import FileAccessError, ToolExecutionError, ValidationError
from linear_mcp.handlers.attachments import CACHE_CONTROL, AttachmentHandler

UPLOAD_URL = "https://uploads.linear.test/signed/abc"
ASSET_URL = "https://uploads.linear.test/assets/abc.png"


@pytest.fixture
def screenshot(tmp_path) -> Path:
    path = tmp_path / "screenshot.png"
    path.write_bytes(b"\x89PNG fake image bytes")
    return path


@pytest.fixture
def uploads() -> List[httpx.Request]:
    return []


def _storage(uploads: List[httpx.Request], status_code: int = 200) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        uploads.append(request)
        return httpx.Response(status_code, text="" if status_code < 400 else "denied")

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _prime(mock_client, description="Existing text") -> None:
    mock_client.file_upload.return_value = {
        "fileUpload": {
            "success": True,
            "uploadFile": {
                "uploadUrl": UPLOAD_URL,
                "assetUrl": ASSET_URL,
                "headers": [{"key": "x-goog-meta-id", "value": "42"}],
            },
        }
    }
    mock_client.get_issue.return_value = {"issue": {"id": "ISS-1", "description": description}}
    mock_client.update_issue.return_value = {"issueUpdate": {"success": True, "issue": {"id": "ISS-1"}}}


@pytest.mark.asyncio
async def test_attachment_happy_path(auth, mock_client, screenshot, uploads) -> None:
    _prime(mock_client)
    handler = AttachmentHandler(auth, mock_client, _storage(uploads))

    response = await handler.handle_add_attachment(
        {"issueId": "ISS-1", "filePath": str(screenshot), "contentType": "image/png", "title": "Crash"}
    )

    mock_client.file_upload.assert_awaited_once_with("image/png", "screenshot.png", screenshot.stat().st_size)
    assert len(uploads) == 1
    put = uploads[0]
    assert put.method == "PUT"
    assert str(put.url) == UPLOAD_URL
    assert put.content == screenshot.read_bytes()
    assert put.headers["Content-Type"] == "image/png"
    assert put.headers["Cache-Control"] == CACHE_CONTROL
    assert put.headers["x-goog-meta-id"] == "42"
    assert "Authorization" not in put.headers

    mock_client.update_issue.assert_awaited_once_with(
        "ISS-1", {"description": f"Existing text\n\n![Crash]({ASSET_URL})\n"}
    )
    assert response.text == (
        f"Attachment uploaded and linked successfully to issue ISS-1. Asset URL: {ASSET_URL}"
    )


@pytest.mark.asyncio
async def test_attachment_title_defaults_to_file_name(auth, mock_client, screenshot, uploads) -> None:
    _prime(mock_client, description=None)
    handler = AttachmentHandler(auth, mock_client, _storage(uploads))

    await handler.handle_add_attachment(
        {"issueId": "ISS-1", "filePath": str(screenshot), "contentType": "image/png", "fileName": "bug.png"}
    )

    mock_client.file_upload.assert_awaited_once_with("image/png", "bug.png", screenshot.stat().st_size)
    mock_client.update_issue.assert_awaited_once_with(
        "ISS-1", {"description": f"\n\n![bug.png]({ASSET_URL})\n"}
    )


@pytest.mark.asyncio
async def test_missing_file_stops_before_upload(auth, mock_client, tmp_path, uploads) -> None:
    handler = AttachmentHandler(auth, mock_client, _storage(uploads))
    missing = tmp_path / "nope.png"

    with pytest.raises(ValidationError, match="File not found"):
        await handler.handle_add_attachment(
            {"issueId": "ISS-1", "filePath": str(missing), "contentType": "image/png"}
        )

    mock_client.file_upload.assert_not_awaited()
    assert uploads == []


@pytest.mark.asyncio
async def test_unreadable_file(auth, mock_client, screenshot, uploads, monkeypatch) -> None:
    def deny(self):
        raise PermissionError("denied")

    monkeypatch.setattr(Path, "read_bytes", deny)
    handler = AttachmentHandler(auth, mock_client, _storage(uploads))

    with pytest.raises(FileAccessError):
        await handler.handle_add_attachment(
            {"issueId": "ISS-1", "filePath": str(screenshot), "contentType": "image/png"}
        )

    mock_client.file_upload.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_upload_url_names_negotiation(auth, mock_client, screenshot, uploads) -> None:
    mock_client.file_upload.return_value = {"fileUpload": {"success": True, "uploadFile": {"uploadUrl": UPLOAD_URL}}}
    handler = AttachmentHandler(auth, mock_client, _storage(uploads))

    with pytest.raises(ToolExecutionError, match="^Failed to request upload URL: "):
        await handler.handle_add_attachment(
            {"issueId": "ISS-1", "filePath": str(screenshot), "contentType": "image/png"}
        )

    assert uploads == []


@pytest.mark.asyncio
async def test_upload_rejection_aborts_before_description(auth, mock_client, screenshot, uploads) -> None:
    _prime(mock_client)
    handler = AttachmentHandler(auth, mock_client, _storage(uploads, status_code=500))

    with pytest.raises(ToolExecutionError) as excinfo:
        await handler.handle_add_attachment(
            {"issueId": "ISS-1", "filePath": str(screenshot), "contentType": "image/png"}
        )

    assert "upload file" in str(excinfo.value)
    assert "500" in str(excinfo.value)
    mock_client.get_issue.assert_not_awaited()
    mock_client.update_issue.assert_not_awaited()


@pytest.mark.asyncio
async def test_description_update_failure_keeps_upload(auth, mock_client, screenshot, uploads) -> None:
    _prime(mock_client)
    mock_client.update_issue.return_value = {"issueUpdate": {"success": False}}
    handler = AttachmentHandler(auth, mock_client, _storage(uploads))

    with pytest.raises(ToolExecutionError, match="^Failed to update description for issue ISS-1: "):
        await handler.handle_add_attachment(
            {"issueId": "ISS-1", "filePath": str(screenshot), "contentType": "image/png"}
        )

    assert len(uploads) == 1


@pytest.mark.asyncio
async def test_attachment_requires_issue_id(auth, mock_client, screenshot) -> None:
    handler = AttachmentHandler(auth, mock_client)

    with pytest.raises(ValidationError, match="issueId"):
        await handler.handle_add_attachment({"filePath": str(screenshot), "contentType": "image/png"})
