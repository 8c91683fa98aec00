"""Translate an OutboundEmail into the Graph message resource shape."""

from __future__ import annotations

from collections.abc import Sequence

from graph_sender.core.exceptions import AddressMappingError
from graph_sender.core.models import (
    Address,
    BodyType,
    EmailAddress,
    Importance,
    ItemBody,
    OutboundEmail,
    Priority,
    Recipient,
    RemoteMessage,
)

_IMPORTANCE_BY_PRIORITY = {
    Priority.LOW: Importance.LOW,
    Priority.NORMAL: Importance.NORMAL,
    Priority.HIGH: Importance.HIGH,
}


def map_to_remote_message(email: OutboundEmail) -> RemoteMessage:
    """Build the draft message resource for an outbound email.

    Args:
        email: The email to translate.

    Returns:
        RemoteMessage with every recipient list present (possibly empty).

    Raises:
        AddressMappingError: If the from address or any list entry is None.
    """
    return RemoteMessage(
        subject=email.subject,
        body=ItemBody(
            content=email.body,
            content_type=BodyType.HTML if email.is_html else BodyType.TEXT,
        ),
        sender=to_recipient(email.from_address, "from"),
        importance=map_priority(email.priority),
        reply_to=to_recipient_list(email.reply_to_addresses, "reply_to"),
        to_recipients=to_recipient_list(email.to_addresses, "to"),
        cc_recipients=to_recipient_list(email.cc_addresses, "cc"),
        bcc_recipients=to_recipient_list(email.bcc_addresses, "bcc"),
    )


def map_priority(priority: Priority | None) -> Importance:
    """Exact match onto Graph importance; anything unrecognised is Normal."""
    if not isinstance(priority, Priority):
        return Importance.NORMAL
    return _IMPORTANCE_BY_PRIORITY.get(priority, Importance.NORMAL)


def to_recipient_list(
    addresses: Sequence[Address | None] | None, field_name: str
) -> tuple[Recipient, ...]:
    if not addresses:
        return ()
    recipients = []
    for position, address in enumerate(addresses):
        if address is None:
            raise AddressMappingError(
                f"Missing address in '{field_name}' list at position {position}"
            )
        recipients.append(to_recipient(address, field_name))
    return tuple(recipients)


def to_recipient(address: Address | None, field_name: str) -> Recipient:
    if address is None:
        raise AddressMappingError(f"Missing address for '{field_name}'")
    return Recipient(
        email_address=EmailAddress(address=address.email_address, name=address.name)
    )
