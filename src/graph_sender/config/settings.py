"""Configuration via pydantic-settings with .env support."""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Graph rejects upload slices that are not a multiple of 320 KiB.
UPLOAD_SLICE_UNIT = 320 * 1024


class GraphSenderSettings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="GRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App registration credentials
    tenant_id: str = ""
    client_id: str = ""
    client_secret: str = ""

    # Graph API settings
    base_url: str = "https://graph.microsoft.com/v1.0"
    scope: str = "https://graph.microsoft.com/.default"

    # Attachment delivery
    upload_chunk_size: int = 16 * UPLOAD_SLICE_UNIT
    strict_uploads: bool = False

    # Cancellation is accepted but ignored unless enabled
    honor_cancellation: bool = False

    # Logging
    log_level: str = "INFO"

    @field_validator("upload_chunk_size")
    @classmethod
    def _check_chunk_size(cls, value: int) -> int:
        if value <= 0 or value % UPLOAD_SLICE_UNIT:
            raise ValueError(
                f"upload_chunk_size must be a positive multiple of {UPLOAD_SLICE_UNIT} bytes"
            )
        return value
