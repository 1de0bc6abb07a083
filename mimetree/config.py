"""Library settings loaded from environment variables.

Uses pydantic-settings so deployments can point the type registry at a
different table or change log output without code changes.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class MimeSettings(BaseSettings):
    """Settings for parsing, serialization and type lookups."""

    model_config = {"env_prefix": "MIME_"}

    types_path: str | None = Field(
        default=None,
        description="Path to a JSON type table overriding the bundled one",
    )
    multipart_subtype: str = Field(
        default="alternative",
        description="Subtype used when serializing a multipart body without a Content-Type",
    )
    log_level: str = Field(default="INFO", description="Root log level name")
    log_json: bool = Field(default=True, description="Emit JSON log lines")


@lru_cache(maxsize=1)
def get_settings() -> MimeSettings:
    return MimeSettings()
