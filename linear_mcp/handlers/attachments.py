"""
Attach a local file to a Linear issue.

The upload runs as a fixed sequence of stages over one `UploadTransaction`:

    READ -> NEGOTIATE -> UPLOAD -> FETCH_DESCRIPTION -> UPDATE_DESCRIPTION

A failure at any stage aborts the call with an error naming that stage.
Completed stages are never compensated: a file that was uploaded stays on
Linear's storage even if the description update fails afterwards.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from ..auth import LinearAuth
from ..errors import FileAccessError, OperationError, ValidationError
from ..graphql.client import LinearGraphQLClient
from .base import BaseHandler, ToolResponse

logger = logging.getLogger("linear_mcp.handlers.attachments")

CACHE_CONTROL = "public, max-age=31536000"


class UploadStage(enum.Enum):
    READ = "read"
    NEGOTIATE = "negotiate"
    UPLOAD = "upload"
    FETCH_DESCRIPTION = "fetch_description"
    UPDATE_DESCRIPTION = "update_description"

    def describe(self, txn: "UploadTransaction") -> str:
        match self:
            case UploadStage.READ:
                return f"read file {txn.file_path}"
            case UploadStage.NEGOTIATE:
                return "request upload URL"
            case UploadStage.UPLOAD:
                return "upload file"
            case UploadStage.FETCH_DESCRIPTION:
                return f"fetch description for issue {txn.issue_id}"
            case UploadStage.UPDATE_DESCRIPTION:
                return f"update description for issue {txn.issue_id}"


@dataclass
class UploadTransaction:
    issue_id: str
    file_path: str
    content_type: str
    file_name: Optional[str] = None
    title: Optional[str] = None
    stage: UploadStage = UploadStage.READ
    content: bytes = b""
    upload_url: Optional[str] = None
    upload_headers: Dict[str, str] = field(default_factory=dict)
    asset_url: Optional[str] = None
    previous_description: str = ""
    new_description: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


class AttachmentHandler(BaseHandler):
    def __init__(
        self,
        auth: LinearAuth,
        client: Optional[LinearGraphQLClient] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(auth, client)
        # Used only for the unauthenticated PUT to the pre-signed upload URL
        self.http_client = http_client

    async def handle_add_attachment(self, args: Dict[str, Any]) -> ToolResponse:
        client = self.verify_auth()
        self.validate_required_params(args, ["issueId", "filePath", "contentType"])

        txn = UploadTransaction(
            issue_id=args["issueId"],
            file_path=args["filePath"],
            content_type=args["contentType"],
            file_name=args.get("fileName"),
            title=args.get("title"),
        )

        for stage in UploadStage:
            txn.stage = stage
            try:
                await self._run_stage(client, txn)
            except Exception as exc:
                logger.error(f"Attachment stage {stage.value} failed for issue {txn.issue_id}: {exc}")
                self.handle_error(exc, stage.describe(txn))

        logger.info(f"Attachment linked to issue {txn.issue_id}: {txn.asset_url}")
        return self.create_response(
            f"Attachment uploaded and linked successfully to issue {txn.issue_id}. "
            f"Asset URL: {txn.asset_url}"
        )

    async def _run_stage(self, client: LinearGraphQLClient, txn: UploadTransaction) -> None:
        match txn.stage:
            case UploadStage.READ:
                await self._read_file(txn)
            case UploadStage.NEGOTIATE:
                await self._request_upload_url(client, txn)
            case UploadStage.UPLOAD:
                await self._upload(txn)
            case UploadStage.FETCH_DESCRIPTION:
                await self._fetch_description(client, txn)
            case UploadStage.UPDATE_DESCRIPTION:
                await self._append_link(client, txn)

    async def _read_file(self, txn: UploadTransaction) -> None:
        path = Path(txn.file_path)
        try:
            txn.content = await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            raise ValidationError(f"File not found: {txn.file_path}")
        except PermissionError:
            raise FileAccessError(f"Permission denied reading file: {txn.file_path}")
        txn.file_name = txn.file_name or path.name
        logger.debug(f"Read {txn.size} bytes from {txn.file_name}")

    async def _request_upload_url(self, client: LinearGraphQLClient, txn: UploadTransaction) -> None:
        result = await client.file_upload(txn.content_type, txn.file_name, txn.size)
        payload = result.get("fileUpload") or {}
        upload_file = payload.get("uploadFile") or {}
        if not payload.get("success") or not upload_file.get("uploadUrl") or not upload_file.get("assetUrl"):
            raise OperationError("Linear did not return an upload URL")

        txn.upload_url = upload_file["uploadUrl"]
        txn.asset_url = upload_file["assetUrl"]
        for header in upload_file.get("headers") or []:
            if header and header.get("key") and header.get("value"):
                txn.upload_headers[header["key"]] = header["value"]

    async def _upload(self, txn: UploadTransaction) -> None:
        headers = {"Content-Type": txn.content_type, "Cache-Control": CACHE_CONTROL}
        headers.update(txn.upload_headers)

        if self.http_client is not None:
            response = await self.http_client.put(txn.upload_url, content=txn.content, headers=headers)
        else:
            async with httpx.AsyncClient() as http_client:
                response = await http_client.put(txn.upload_url, content=txn.content, headers=headers)

        if not response.is_success:
            logger.error(f"Upload failed: {response.status_code} {response.text[:500]}")
            raise OperationError(f"Upload failed: {response.status_code}")

    async def _fetch_description(self, client: LinearGraphQLClient, txn: UploadTransaction) -> None:
        result = await client.get_issue(txn.issue_id)
        txn.previous_description = (result.get("issue") or {}).get("description") or ""

    async def _append_link(self, client: LinearGraphQLClient, txn: UploadTransaction) -> None:
        title = txn.title or txn.file_name
        txn.new_description = f"{txn.previous_description}\n\n![{title}]({txn.asset_url})\n"

        result = await client.update_issue(txn.issue_id, {"description": txn.new_description})
        if not (result.get("issueUpdate") or {}).get("success"):
            raise OperationError("Issue description update failed after successful file upload")
