"""Environment-backed settings.

Server settings use the ``WORDPRESS_MCP_`` prefix, e.g. ``WORDPRESS_MCP_PORT=8080``.
Backend credentials use the ``WORDPRESS_`` prefix the tools document:
``WORDPRESS_SITE_URL``, ``WORDPRESS_USERNAME`` and ``WORDPRESS_PASSWORD``.
"""

from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """Settings for serving the tool server."""

    model_config = SettingsConfigDict(
        env_prefix="WORDPRESS_MCP_",
        env_file=".env",
        extra="ignore",
    )

    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # HTTP settings
    host: str = "127.0.0.1"
    port: int = 3000
    sse_path: str = "/sse"
    message_path: str = "/message"


class WordPressSettings(BaseSettings):
    """Default WordPress site and credentials.

    Every value may be overridden per tool call, so all of them are optional
    here; the tools report a configuration error if one is still missing.
    """

    model_config = SettingsConfigDict(
        env_prefix="WORDPRESS_",
        env_file=".env",
        extra="ignore",
    )

    site_url: str | None = None
    username: str | None = None
    password: SecretStr | None = None
