"""Custom exceptions for the WordPress MCP server."""

from typing import Any

from wordpress_mcp.types import INTERNAL_ERROR, ErrorData


class WordPressMCPError(Exception):
    """Base error for the WordPress MCP server."""


class TransportError(WordPressMCPError):
    """Error in the transport layer. Fatal to the owning connection only."""


class TransportClosedError(TransportError):
    """Raised when sending on a transport whose connection has gone away."""


class SessionNotFoundError(TransportError):
    """No live streaming session is registered under the given id."""

    def __init__(self, session_id: str | None):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class DuplicateSessionError(TransportError):
    """A streaming session with the same id is already registered."""

    def __init__(self, session_id: str):
        super().__init__(f"Session already registered: {session_id}")
        self.session_id = session_id


class ProtocolError(WordPressMCPError):
    """Raised by method handlers to answer with a JSON-RPC error instead of a result."""

    error: ErrorData

    def __init__(self, message: str, code: int = INTERNAL_ERROR, data: Any | None = None):
        super().__init__(message)
        self.error = ErrorData(code=code, message=message, data=data)


class ToolError(WordPressMCPError):
    """Error in tool operations."""


class ConfigurationError(ToolError):
    """Backend settings (site URL, credentials) are missing or unusable."""


class BackendError(ToolError):
    """The WordPress REST API answered with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidArgumentsError(ToolError):
    """Tool arguments do not satisfy the tool's schema."""

    def __init__(self, tool_name: str, detail: str):
        super().__init__(f"Invalid arguments for tool {tool_name}: {detail}")
        self.tool_name = tool_name
        self.detail = detail
