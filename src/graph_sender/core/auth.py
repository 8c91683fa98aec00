"""Client-secret credential construction for Microsoft Graph."""

from __future__ import annotations

import logging

from azure.identity import ClientSecretCredential

from graph_sender.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


def build_credential(tenant_id: str, client_id: str, client_secret: str) -> ClientSecretCredential:
    """Build the app-only credential used to obtain Graph tokens.

    Token acquisition and refresh are handled by azure-identity.

    Args:
        tenant_id: Directory (tenant) ID of the app registration.
        client_id: Application (client) ID.
        client_secret: Client secret value.

    Returns:
        A ClientSecretCredential.

    Raises:
        AuthenticationError: If any of the three values is blank.
    """
    missing = [
        name
        for name, value in (
            ("tenant_id", tenant_id),
            ("client_id", client_id),
            ("client_secret", client_secret),
        )
        if not value
    ]
    if missing:
        raise AuthenticationError(
            f"Missing Graph credential settings: {', '.join(missing)}. "
            "Set GRAPH_TENANT_ID, GRAPH_CLIENT_ID and GRAPH_CLIENT_SECRET."
        )

    logger.debug("Building client secret credential for tenant %s", tenant_id)
    return ClientSecretCredential(tenant_id, client_id, client_secret)
