"""Graph Sender - Send emails with attachments through the Microsoft Graph mail API."""

from graph_sender.core.models import (
    Address,
    Attachment,
    ErrorKind,
    OutboundEmail,
    Priority,
    SendFailure,
    SendResult,
)
from graph_sender.pipeline.sender import GraphSender

__all__ = [
    "Address",
    "Attachment",
    "ErrorKind",
    "GraphSender",
    "OutboundEmail",
    "Priority",
    "SendFailure",
    "SendResult",
]
