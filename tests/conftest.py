"""Shared fixtures for Graph sender tests."""

from __future__ import annotations

import io
from typing import Any

import pytest

from graph_sender.core.models import (
    Address,
    Attachment,
    ChunkResponse,
    OutboundEmail,
    Priority,
    RemoteMessage,
    UploadSession,
)

SMALL_SIZE = 500 * 1024
LARGE_SIZE = 5 * 1024 * 1024
UPLOAD_URL = "https://outlook.office.com/api/v2.0/upload/session-1"


class FakeGraphApi:
    """In-memory GraphMailApi that records every call in order.

    ``failures`` maps an operation name to the exception it should raise.
    Upload sessions acknowledge each chunk by asking for the next byte, and
    answer 201 once the last byte arrives; with ``stall_uploads`` they keep
    asking for byte 0.
    """

    def __init__(
        self,
        *,
        message_id: str = "AAMkAD-draft-1",
        failures: dict[str, Exception] | None = None,
        stall_uploads: bool = False,
    ) -> None:
        self.message_id = message_id
        self.failures = failures or {}
        self.stall_uploads = stall_uploads
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def count(self, name: str) -> int:
        return self.names().count(name)

    def _record(self, name: str, **kwargs: Any) -> None:
        self.calls.append((name, kwargs))
        if name in self.failures:
            raise self.failures[name]

    async def create_message(self, mailbox: str, message: RemoteMessage) -> str:
        self._record("create_message", mailbox=mailbox, message=message)
        return self.message_id

    async def add_attachment(
        self,
        mailbox: str,
        message_id: str,
        filename: str,
        content_type: str,
        content: bytes,
    ) -> None:
        self._record(
            "add_attachment",
            mailbox=mailbox,
            message_id=message_id,
            filename=filename,
            content_type=content_type,
            size=len(content),
        )

    async def create_upload_session(
        self, mailbox: str, message_id: str, filename: str, size: int
    ) -> UploadSession:
        self._record(
            "create_upload_session",
            mailbox=mailbox,
            message_id=message_id,
            filename=filename,
            size=size,
        )
        return UploadSession(upload_url=UPLOAD_URL, next_expected_ranges=("0-",))

    async def upload_chunk(
        self, upload_url: str, chunk: bytes, start: int, total: int
    ) -> ChunkResponse:
        self._record("upload_chunk", upload_url=upload_url, start=start, length=len(chunk), total=total)
        if self.stall_uploads:
            return ChunkResponse(status_code=200, next_expected_ranges=("0-",))
        end = start + len(chunk)
        if end >= total:
            return ChunkResponse(status_code=201)
        return ChunkResponse(status_code=200, next_expected_ranges=(f"{end}-",))

    async def send_message(self, mailbox: str, message_id: str) -> None:
        self._record("send_message", mailbox=mailbox, message_id=message_id)


def make_attachment(size: int, filename: str = "report.pdf") -> Attachment:
    return Attachment(
        filename=filename,
        content_type="application/pdf",
        data=io.BytesIO(b"x" * size),
    )


@pytest.fixture
def fake_api() -> FakeGraphApi:
    """A recording fake of the Graph mail API."""
    return FakeGraphApi()


@pytest.fixture
def sender_address() -> Address:
    return Address(email_address="noreply@contoso.com", name="Contoso Notifications")


@pytest.fixture
def sample_email(sender_address: Address) -> OutboundEmail:
    """A plain-text email with one recipient of each kind and no attachments."""
    return OutboundEmail(
        subject="Quarterly report",
        body="Please find the figures below.",
        from_address=sender_address,
        to_addresses=(Address(email_address="alice@example.com", name="Alice"),),
        cc_addresses=(Address(email_address="bob@example.com"),),
        bcc_addresses=(Address(email_address="audit@example.com", name="Audit"),),
        reply_to_addresses=(Address(email_address="support@contoso.com"),),
        priority=Priority.HIGH,
    )
