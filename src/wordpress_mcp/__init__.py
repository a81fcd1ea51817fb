"""Expose WordPress content operations as tools over MCP-style JSON-RPC.

Example - serve over stdio:

```python
import anyio

from wordpress_mcp import ServerRunner, create_server
from wordpress_mcp.transport.stdio import stdio_transport


async def main():
    async with stdio_transport() as transport:
        async with ServerRunner(create_server()).run() as running:
            await running.serve(transport)


anyio.run(main)
```
"""

from collections.abc import Callable

from .exceptions import (
    BackendError,
    ConfigurationError,
    DuplicateSessionError,
    InvalidArgumentsError,
    ProtocolError,
    SessionNotFoundError,
    ToolError,
    TransportClosedError,
    TransportError,
    WordPressMCPError,
)
from .runner import RunningServer, ServerRunner
from .server import ToolServer
from .settings import ServerSettings, WordPressSettings
from .tools import Tool, ToolRegistry
from .wordpress import WordPressClient, register_wordpress_tools

__version__ = "1.0.0"

SERVER_NAME = "wordpress-mcp-server"


def create_server(
    *,
    client_factory: Callable[[str, str, str], WordPressClient] = WordPressClient,
    settings_factory: Callable[[], WordPressSettings] = WordPressSettings,
) -> ToolServer:
    """Build the tool server with the WordPress tools registered."""
    registry = ToolRegistry()
    register_wordpress_tools(registry, client_factory=client_factory, settings_factory=settings_factory)
    return ToolServer(name=SERVER_NAME, version=__version__, tools=registry)


__all__ = [
    "BackendError",
    "ConfigurationError",
    "DuplicateSessionError",
    "InvalidArgumentsError",
    "ProtocolError",
    "RunningServer",
    "SERVER_NAME",
    "ServerRunner",
    "ServerSettings",
    "SessionNotFoundError",
    "Tool",
    "ToolError",
    "ToolRegistry",
    "ToolServer",
    "TransportClosedError",
    "TransportError",
    "WordPressClient",
    "WordPressMCPError",
    "WordPressSettings",
    "__version__",
    "create_server",
]
