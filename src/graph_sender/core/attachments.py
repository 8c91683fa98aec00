"""Attachment delivery: inline for small files, resumable upload sessions for large ones."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from graph_sender.core.graph_client import GraphMailApi
from graph_sender.core.models import Attachment, DeliveryStrategy, UploadResult

logger = logging.getLogger(__name__)

# Graph rejects inline attachment payloads at or above 3 MiB.
LARGE_ATTACHMENT_THRESHOLD = 3 * 1024 * 1024

DEFAULT_CHUNK_SIZE = 5 * 1024 * 1024

# Called before every remote request; raises to stop the delivery.
CancelCheck = Callable[[], None]


def _no_cancel() -> None:
    return None


class AttachmentDelivery(Protocol):
    """One way of getting an attachment's bytes onto a draft message."""

    async def deliver(
        self,
        client: GraphMailApi,
        mailbox: str,
        message_id: str,
        attachment: Attachment,
        payload: bytes,
        check_cancelled: CancelCheck | None = None,
    ) -> UploadResult: ...


class InlineDelivery:
    """Embed the whole payload in a single add-attachment request."""

    async def deliver(
        self,
        client: GraphMailApi,
        mailbox: str,
        message_id: str,
        attachment: Attachment,
        payload: bytes,
        check_cancelled: CancelCheck | None = None,
    ) -> UploadResult:
        (check_cancelled or _no_cancel)()
        await client.add_attachment(
            mailbox,
            message_id,
            attachment.filename,
            attachment.content_type,
            payload,
        )
        return UploadResult(
            filename=attachment.filename,
            strategy=DeliveryStrategy.INLINE,
            size=len(payload),
            uploaded_bytes=len(payload),
            succeeded=True,
        )


class ChunkedDelivery:
    """Stream the payload through a resumable upload session.

    Each slice starts where the server says it expects the next bytes, so
    progress is tracked server-side. A single pass is made: if the server stops
    advancing, the result reports ``succeeded=False`` instead of retrying.
    ``check_cancelled`` runs before the session request and before every chunk.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._chunk_size = chunk_size

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    async def deliver(
        self,
        client: GraphMailApi,
        mailbox: str,
        message_id: str,
        attachment: Attachment,
        payload: bytes,
        check_cancelled: CancelCheck | None = None,
    ) -> UploadResult:
        check = check_cancelled or _no_cancel
        total = len(payload)
        check()
        session = await client.create_upload_session(
            mailbox, message_id, attachment.filename, total
        )

        offset = 0
        succeeded = False
        chunks = 0
        while offset < total:
            check()
            chunk = payload[offset : offset + self._chunk_size]
            response = await client.upload_chunk(session.upload_url, chunk, offset, total)
            chunks += 1

            if response.completed:
                offset = total
                succeeded = True
                break

            next_offset = response.next_offset()
            if next_offset is None or next_offset <= offset:
                logger.warning(
                    "Upload session for %s stopped advancing at byte %d of %d",
                    attachment.filename, offset, total,
                )
                break
            offset = min(next_offset, total)

        logger.debug(
            "Chunked upload of %s: %d chunks, %d/%d bytes, succeeded=%s",
            attachment.filename, chunks, offset, total, succeeded,
        )
        return UploadResult(
            filename=attachment.filename,
            strategy=DeliveryStrategy.CHUNKED,
            size=total,
            uploaded_bytes=offset,
            succeeded=succeeded,
        )


def read_attachment(attachment: Attachment) -> bytes:
    """Read the attachment stream fully into one buffer."""
    return attachment.data.read()


def select_delivery(
    size: int, chunked: ChunkedDelivery | None = None
) -> AttachmentDelivery:
    """Pick inline delivery below the threshold, chunked delivery at or above it."""
    if size < LARGE_ATTACHMENT_THRESHOLD:
        return InlineDelivery()
    return chunked or ChunkedDelivery()


async def deliver_attachment(
    client: GraphMailApi,
    mailbox: str,
    message_id: str,
    attachment: Attachment,
    *,
    chunked: ChunkedDelivery | None = None,
    check_cancelled: CancelCheck | None = None,
) -> UploadResult:
    """Read one attachment and deliver it to the draft with the size-appropriate strategy.

    Args:
        client: Graph mail capability.
        mailbox: Sender mailbox owning the draft.
        message_id: Id of the draft message.
        attachment: Attachment to deliver.
        chunked: Chunked strategy to use for large payloads (default chunk size if None).
        check_cancelled: Called before each remote request; may raise to abort.

    Returns:
        UploadResult describing how the attachment was delivered.
    """
    payload = read_attachment(attachment)
    strategy = select_delivery(len(payload), chunked)
    logger.debug(
        "Delivering %s (%d bytes) via %s",
        attachment.filename, len(payload), type(strategy).__name__,
    )
    return await strategy.deliver(
        client, mailbox, message_id, attachment, payload, check_cancelled
    )
