"""Command line entry point: ``wordpress-mcp server`` and ``wordpress-mcp client``."""

from __future__ import annotations

import anyio
import click

from wordpress_mcp import create_server
from wordpress_mcp.client import ClientSession, sse_client
from wordpress_mcp.runner import ServerRunner
from wordpress_mcp.server import ToolServer
from wordpress_mcp.settings import ServerSettings
from wordpress_mcp.transport.starlette import create_sse_app
from wordpress_mcp.transport.stdio import stdio_transport
from wordpress_mcp.utilities.logging import configure_logging, get_logger

logger = get_logger(__name__)

DEFAULT_CLIENT_URL = "http://localhost:3000/sse"


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Log level (defaults to WORDPRESS_MCP_LOG_LEVEL or INFO)",
)
@click.pass_context
def main(ctx: click.Context, log_level: str | None) -> None:
    """WordPress tools over MCP-style JSON-RPC."""
    settings = ServerSettings()
    if log_level:
        settings.log_level = log_level.upper()  # type: ignore[assignment]
    configure_logging(settings.log_level)
    ctx.obj = settings


@main.command()
@click.argument("port", type=int, required=False)
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse"]),
    default=None,
    help="Transport type (sse when PORT is given, stdio otherwise)",
)
@click.option("--host", default=None, help="Host to bind the SSE server to")
@click.pass_obj
def server(settings: ServerSettings, port: int | None, transport: str | None, host: str | None) -> None:
    """Serve the WordPress tools over SSE on PORT, or over stdio without one."""
    tool_server = create_server()
    if transport is None:
        transport = "sse" if port is not None else "stdio"

    if transport == "sse":
        import uvicorn

        app = create_sse_app(
            tool_server,
            sse_path=settings.sse_path,
            message_path=settings.message_path,
            debug=settings.debug,
        )
        bind_host = host or settings.host
        bind_port = port if port is not None else settings.port
        logger.info("WordPress MCP server listening on http://%s:%s%s", bind_host, bind_port, settings.sse_path)
        uvicorn.run(app, host=bind_host, port=bind_port, log_level=settings.log_level.lower())
    else:
        logger.info("WordPress MCP server running on stdio")
        anyio.run(serve_stdio, tool_server)


async def serve_stdio(tool_server: ToolServer) -> None:
    async with stdio_transport() as transport:
        async with ServerRunner(tool_server).run() as running:
            await running.serve(transport)


@main.command()
@click.argument("url", default=DEFAULT_CLIENT_URL)
def client(url: str) -> None:
    """Connect to a running SSE server, list its tools and stay connected."""
    try:
        anyio.run(run_client, url)
    except KeyboardInterrupt:
        click.echo("Disconnected")


async def run_client(url: str) -> None:
    async with sse_client(url) as (read_stream, write_stream):
        async with ClientSession(read_stream, write_stream) as session:
            result = await session.initialize()
            click.echo(f"Connected to {result.server_info.name} {result.server_info.version}")

            listing = await session.list_tools()
            click.echo("Available tools:")
            for tool in listing.tools:
                click.echo(f"- {tool.name}: {tool.description}")

            click.echo("Press Ctrl+C to disconnect")
            await anyio.sleep_forever()


if __name__ == "__main__":
    main()
