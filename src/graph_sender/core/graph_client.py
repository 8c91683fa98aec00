"""Microsoft Graph mail client: draft creation, attachments, upload sessions and send."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, Protocol
from urllib.parse import quote

import aiohttp
from azure.core.credentials import TokenCredential

from graph_sender.core.exceptions import RemoteCallError
from graph_sender.core.models import (
    ChunkResponse,
    Recipient,
    RemoteMessage,
    UploadSession,
)

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"


class GraphMailApi(Protocol):
    """Mailbox-scoped operations the sender needs from Graph."""

    async def create_message(self, mailbox: str, message: RemoteMessage) -> str: ...

    async def add_attachment(
        self,
        mailbox: str,
        message_id: str,
        filename: str,
        content_type: str,
        content: bytes,
    ) -> None: ...

    async def create_upload_session(
        self, mailbox: str, message_id: str, filename: str, size: int
    ) -> UploadSession: ...

    async def upload_chunk(
        self, upload_url: str, chunk: bytes, start: int, total: int
    ) -> ChunkResponse: ...

    async def send_message(self, mailbox: str, message_id: str) -> None: ...


def _recipient_json(recipient: Recipient) -> dict[str, Any]:
    email_address: dict[str, Any] = {"address": recipient.email_address.address}
    if recipient.email_address.name is not None:
        email_address["name"] = recipient.email_address.name
    return {"emailAddress": email_address}


def message_to_json(message: RemoteMessage) -> dict[str, Any]:
    """Serialize a RemoteMessage into the Graph ``message`` JSON body."""
    return {
        "subject": message.subject,
        "body": {
            "contentType": message.body.content_type.value,
            "content": message.body.content,
        },
        "from": _recipient_json(message.sender),
        "replyTo": [_recipient_json(r) for r in message.reply_to],
        "toRecipients": [_recipient_json(r) for r in message.to_recipients],
        "ccRecipients": [_recipient_json(r) for r in message.cc_recipients],
        "bccRecipients": [_recipient_json(r) for r in message.bcc_recipients],
        "importance": message.importance.value,
    }


def _error_detail(body: Any) -> str:
    """Pull ``error.code: error.message`` out of a Graph error body when present."""
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        error = body["error"]
        code = error.get("code", "")
        message = error.get("message", "")
        return f"{code}: {message}" if code else message
    return str(body or "").strip()


class GraphClient:
    """Thin async wrapper around the Graph REST endpoints used for sending mail.

    Each request opens its own aiohttp session. Requests are single attempts;
    any HTTP status >= 400 or transport error raises RemoteCallError.
    """

    def __init__(
        self,
        credential: TokenCredential,
        *,
        base_url: str = GRAPH_BASE_URL,
        scope: str = GRAPH_SCOPE,
    ) -> None:
        self._credential = credential
        self._base_url = base_url.rstrip("/")
        self._scope = scope

    def _messages_url(self, mailbox: str) -> str:
        return f"{self._base_url}/users/{quote(mailbox, safe='@')}/messages"

    async def _access_token(self) -> str:
        # azure-identity credentials are synchronous; keep them off the event loop.
        token = await asyncio.to_thread(self._credential.get_token, self._scope)
        return token.token

    async def _request(
        self,
        method: str,
        url: str,
        context: str,
        *,
        json: Any = None,
        data: bytes | None = None,
        headers: dict[str, str] | None = None,
        authenticated: bool = True,
    ) -> tuple[int, Any]:
        """Issue one request and return ``(status, parsed body)``.

        Args:
            method: HTTP method.
            url: Absolute request URL.
            context: Description for error and log messages (e.g. "create message").
            json: JSON body, if any.
            data: Raw body, if any.
            headers: Extra request headers.
            authenticated: Attach a bearer token. Upload URLs are pre-authenticated
                and must not carry one.

        Raises:
            RemoteCallError: On HTTP status >= 400 or a transport failure.
        """
        request_headers = dict(headers or {})
        if authenticated:
            request_headers["Authorization"] = f"Bearer {await self._access_token()}"

        logger.debug("%s %s (%s)", method, url, context)
        try:
            async with aiohttp.ClientSession() as session:
                async with session.request(
                    method, url, json=json, data=data, headers=request_headers
                ) as response:
                    if response.content_type == "application/json":
                        body = await response.json()
                    else:
                        body = await response.text()
                    if response.status >= 400:
                        raise RemoteCallError(
                            f"Failed to {context}: HTTP {response.status} {_error_detail(body)}".rstrip(),
                            status_code=response.status,
                        )
                    return response.status, body
        except aiohttp.ClientError as e:
            raise RemoteCallError(f"Failed to {context}: {e}") from e

    async def create_message(self, mailbox: str, message: RemoteMessage) -> str:
        """Create a draft message in the mailbox and return its id."""
        _, body = await self._request(
            "POST",
            self._messages_url(mailbox),
            "create message",
            json=message_to_json(message),
        )
        if not isinstance(body, dict) or not body.get("id"):
            raise RemoteCallError("Failed to create message: response carried no message id")
        return body["id"]

    async def add_attachment(
        self,
        mailbox: str,
        message_id: str,
        filename: str,
        content_type: str,
        content: bytes,
    ) -> None:
        """Attach a file inline, embedding its bytes in a single request."""
        await self._request(
            "POST",
            f"{self._messages_url(mailbox)}/{message_id}/attachments",
            "add attachment",
            json={
                "@odata.type": "#microsoft.graph.fileAttachment",
                "name": filename,
                "contentType": content_type,
                "contentBytes": base64.b64encode(content).decode("ascii"),
            },
        )

    async def create_upload_session(
        self, mailbox: str, message_id: str, filename: str, size: int
    ) -> UploadSession:
        """Open a resumable upload session for one large file attachment."""
        _, body = await self._request(
            "POST",
            f"{self._messages_url(mailbox)}/{message_id}/attachments/createUploadSession",
            "create upload session",
            json={
                "AttachmentItem": {
                    "attachmentType": "file",
                    "name": filename,
                    "size": size,
                }
            },
        )
        if not isinstance(body, dict) or not body.get("uploadUrl"):
            raise RemoteCallError(
                "Failed to create upload session: response carried no uploadUrl"
            )
        return UploadSession(
            upload_url=body["uploadUrl"],
            expiration=body.get("expirationDateTime"),
            next_expected_ranges=tuple(body.get("nextExpectedRanges") or ()),
        )

    async def upload_chunk(
        self, upload_url: str, chunk: bytes, start: int, total: int
    ) -> ChunkResponse:
        """PUT one byte range of the payload to an upload session."""
        end = start + len(chunk) - 1
        status, body = await self._request(
            "PUT",
            upload_url,
            "upload attachment chunk",
            data=chunk,
            headers={
                "Content-Length": str(len(chunk)),
                "Content-Range": f"bytes {start}-{end}/{total}",
                "Content-Type": "application/octet-stream",
            },
            authenticated=False,
        )
        ranges: tuple[str, ...] = ()
        if isinstance(body, dict):
            ranges = tuple(body.get("nextExpectedRanges") or ())
        return ChunkResponse(status_code=status, next_expected_ranges=ranges)

    async def send_message(self, mailbox: str, message_id: str) -> None:
        """Send a draft message. The draft moves to Sent Items and becomes immutable."""
        await self._request(
            "POST",
            f"{self._messages_url(mailbox)}/{message_id}/send",
            "send message",
        )
