"""Frozen dataclasses for the outbound email, the Graph message resource and send results."""

from __future__ import annotations

import io
import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO

# ---------------------------------------------------------------------------
# Outbound email (input side)
# ---------------------------------------------------------------------------


class Priority(Enum):
    """Priority of an outbound email."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


@dataclass(frozen=True)
class Address:
    """A display name and email address pair."""

    email_address: str
    name: str | None = None


@dataclass(frozen=True)
class Attachment:
    """A file to attach. ``data`` is read once, from its current position, at delivery time."""

    filename: str
    content_type: str
    data: BinaryIO

    @classmethod
    def from_path(cls, path: Path, content_type: str | None = None) -> Attachment:
        """Load a file from disk into an in-memory attachment.

        Args:
            path: File to attach; its name becomes the attachment filename.
            content_type: MIME type. Guessed from the extension when omitted.

        Returns:
            Attachment backed by a ``BytesIO`` of the file contents.
        """
        if content_type is None:
            guessed, _ = mimetypes.guess_type(path.name)
            content_type = guessed or "application/octet-stream"
        return cls(
            filename=path.name,
            content_type=content_type,
            data=io.BytesIO(path.read_bytes()),
        )


@dataclass(frozen=True)
class OutboundEmail:
    """Complete email to be sent. Address lists may be empty or None."""

    subject: str
    body: str
    from_address: Address | None
    is_html: bool = False
    to_addresses: tuple[Address, ...] | None = ()
    cc_addresses: tuple[Address, ...] | None = ()
    bcc_addresses: tuple[Address, ...] | None = ()
    reply_to_addresses: tuple[Address, ...] | None = ()
    priority: Priority | None = None
    attachments: tuple[Attachment, ...] | None = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Graph message resource
# ---------------------------------------------------------------------------


class BodyType(Enum):
    """Graph ``itemBody.contentType`` values."""

    TEXT = "text"
    HTML = "html"


class Importance(Enum):
    """Graph ``message.importance`` values."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


@dataclass(frozen=True)
class EmailAddress:
    """Graph ``emailAddress``: address plus optional display name."""

    address: str
    name: str | None = None


@dataclass(frozen=True)
class Recipient:
    """Graph ``recipient`` wrapping one email address."""

    email_address: EmailAddress


@dataclass(frozen=True)
class ItemBody:
    """Graph ``itemBody``: message content and its type."""

    content: str
    content_type: BodyType


@dataclass(frozen=True)
class RemoteMessage:
    """Shape of a Graph ``message`` resource as created in draft state."""

    subject: str
    body: ItemBody
    sender: Recipient
    importance: Importance
    reply_to: tuple[Recipient, ...] = ()
    to_recipients: tuple[Recipient, ...] = ()
    cc_recipients: tuple[Recipient, ...] = ()
    bcc_recipients: tuple[Recipient, ...] = ()


# ---------------------------------------------------------------------------
# Attachment delivery
# ---------------------------------------------------------------------------


class DeliveryStrategy(Enum):
    INLINE = "inline"
    CHUNKED = "chunked"


@dataclass(frozen=True)
class UploadSession:
    """Resumable upload context returned by ``createUploadSession``."""

    upload_url: str
    expiration: str | None = None
    next_expected_ranges: tuple[str, ...] = ()


@dataclass(frozen=True)
class ChunkResponse:
    """What the upload URL reported after receiving one chunk."""

    status_code: int
    next_expected_ranges: tuple[str, ...] = ()

    @property
    def completed(self) -> bool:
        """Graph answers 201 on the final chunk; a 200 with nothing left to send also counts."""
        if self.status_code == 201:
            return True
        return self.status_code == 200 and not self.next_expected_ranges

    def next_offset(self) -> int | None:
        """Start of the first range the server still expects, e.g. ``"5242880-"`` -> 5242880."""
        if not self.next_expected_ranges:
            return None
        start, _, _ = self.next_expected_ranges[0].partition("-")
        try:
            return int(start)
        except ValueError:
            return None


@dataclass(frozen=True)
class UploadResult:
    """Outcome of delivering one attachment."""

    filename: str
    strategy: DeliveryStrategy
    size: int
    uploaded_bytes: int
    succeeded: bool


# ---------------------------------------------------------------------------
# Send result
# ---------------------------------------------------------------------------


class ErrorKind(Enum):
    """Pipeline stage a send failed in."""

    MAPPING = "mapping"
    REMOTE_CALL = "remote_call"
    UPLOAD = "upload"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SendFailure:
    """One failure: the stage it happened in and its message."""

    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class SendResult:
    """Either the sent message's id or the failures that stopped it, never both."""

    message_id: str | None = None
    failures: tuple[SendFailure, ...] = ()

    def __post_init__(self) -> None:
        if bool(self.message_id) == bool(self.failures):
            raise ValueError("SendResult needs exactly one of message_id or failures")

    @classmethod
    def sent(cls, message_id: str) -> SendResult:
        """Successful result for the sent draft."""
        return cls(message_id=message_id)

    @classmethod
    def failed(cls, kind: ErrorKind, message: str) -> SendResult:
        """Failed result holding a single failure."""
        return cls(failures=(SendFailure(kind=kind, message=message),))

    @property
    def successful(self) -> bool:
        return not self.failures

    @property
    def errors(self) -> list[str] | None:
        """Flat list of error messages, or None when the send succeeded."""
        if not self.failures:
            return None
        return [failure.message for failure in self.failures]
