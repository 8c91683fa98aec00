"""Send orchestrator: map → create draft → deliver attachments → send."""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Protocol

from graph_sender.config.settings import GraphSenderSettings
from graph_sender.core.attachments import DEFAULT_CHUNK_SIZE, ChunkedDelivery, deliver_attachment
from graph_sender.core.auth import build_credential
from graph_sender.core.exceptions import GraphSenderError, SendCancelledError, UploadError
from graph_sender.core.graph_client import GraphClient, GraphMailApi
from graph_sender.core.mapper import map_to_remote_message
from graph_sender.core.models import ErrorKind, OutboundEmail, SendResult

logger = logging.getLogger(__name__)


class CancellationSignal(Protocol):
    """Anything with ``is_set()``, e.g. threading.Event or asyncio.Event."""

    def is_set(self) -> bool: ...


class GraphSender:
    """Sends outbound emails through Graph's draft-then-send flow.

    Stage 1 - Map:     OutboundEmail → RemoteMessage (no I/O)
    Stage 2 - Create:  POST the draft to the sender's mailbox, keep its id
    Stage 3 - Attach:  Deliver each attachment in order, inline or chunked by size
    Stage 4 - Send:    Issue the send action on the draft

    Any exception stops the remaining stages and is returned as a failed
    SendResult; nothing is retried and the draft is not rolled back.
    """

    def __init__(
        self,
        client: GraphMailApi,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        strict_uploads: bool = False,
        honor_cancellation: bool = False,
    ) -> None:
        self._client = client
        self._chunked = ChunkedDelivery(chunk_size)
        self._strict_uploads = strict_uploads
        self._honor_cancellation = honor_cancellation

    @classmethod
    def from_settings(cls, settings: GraphSenderSettings | None = None) -> GraphSender:
        """Build the credential and Graph client once from settings.

        Raises:
            AuthenticationError: If credential settings are missing.
        """
        settings = settings or GraphSenderSettings()
        credential = build_credential(
            settings.tenant_id, settings.client_id, settings.client_secret
        )
        client = GraphClient(credential, base_url=settings.base_url, scope=settings.scope)
        return cls(
            client,
            chunk_size=settings.upload_chunk_size,
            strict_uploads=settings.strict_uploads,
            honor_cancellation=settings.honor_cancellation,
        )

    def send(self, email: OutboundEmail, cancel: CancellationSignal | None = None) -> SendResult:
        """Blocking form of send_async.

        Raises:
            GraphSenderError: If called while an event loop is running in this thread.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.send_async(email, cancel))
        raise GraphSenderError(
            "GraphSender.send cannot be called from a running event loop; await send_async instead"
        )

    async def send_async(
        self, email: OutboundEmail, cancel: CancellationSignal | None = None
    ) -> SendResult:
        """Run the full send sequence for one email.

        Args:
            email: The email to send.
            cancel: Optional cancellation signal. Only checked (before each
                remote call) when the sender was built with honor_cancellation.

        Returns:
            SendResult with the message id, or a single failure naming the
            stage that failed.
        """
        kind = ErrorKind.MAPPING
        try:
            message = map_to_remote_message(email)
            mailbox = message.sender.email_address.address
            attachments = email.attachments or ()

            kind = ErrorKind.REMOTE_CALL
            self._check_cancelled(cancel)
            message_id = await self._client.create_message(mailbox, message)
            logger.debug("Created draft %s in %s", message_id, mailbox)

            kind = ErrorKind.UPLOAD
            for attachment in attachments:
                result = await deliver_attachment(
                    self._client,
                    mailbox,
                    message_id,
                    attachment,
                    chunked=self._chunked,
                    check_cancelled=partial(self._check_cancelled, cancel),
                )
                if not result.succeeded:
                    if self._strict_uploads:
                        raise UploadError(
                            f"Upload of {result.filename} did not complete "
                            f"({result.uploaded_bytes}/{result.size} bytes)"
                        )
                    logger.warning(
                        "Upload of %s did not report completion (%d/%d bytes); sending anyway",
                        result.filename, result.uploaded_bytes, result.size,
                    )

            kind = ErrorKind.REMOTE_CALL
            self._check_cancelled(cancel)
            await self._client.send_message(mailbox, message_id)
        except SendCancelledError as e:
            logger.info("Send cancelled: %s", e)
            return SendResult.failed(ErrorKind.CANCELLED, str(e))
        except Exception as e:
            logger.warning("Send failed during %s: %s", kind.value, e)
            return SendResult.failed(kind, str(e) or type(e).__name__)

        logger.info(
            "Sent message %s from %s with %d attachment(s)",
            message_id, mailbox, len(attachments),
        )
        return SendResult.sent(message_id)

    def _check_cancelled(self, cancel: CancellationSignal | None) -> None:
        if self._honor_cancellation and cancel is not None and cancel.is_set():
            raise SendCancelledError("Send cancelled before the next remote call")
