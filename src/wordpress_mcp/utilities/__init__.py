"""Shared helpers."""

from wordpress_mcp.utilities.httpx_utils import HttpClientFactory, create_http_client
from wordpress_mcp.utilities.logging import configure_logging, get_logger, redact_sensitive_data

__all__ = ["HttpClientFactory", "configure_logging", "create_http_client", "get_logger", "redact_sensitive_data"]
