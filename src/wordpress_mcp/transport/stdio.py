"""Stdio Server Transport Module

Newline-delimited JSON-RPC frames over the process' standard input/output.
There is a single implicit session for the lifetime of the process.

Example:
    ```python
    async def run_server():
        async with stdio_transport() as transport:
            async with ServerRunner(server).run() as running:
                await running.serve(transport)

    anyio.run(run_server)
    ```
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from io import TextIOWrapper
from typing import Any, BinaryIO

import anyio
from pydantic import ValidationError as PydanticValidationError

from wordpress_mcp import types
from wordpress_mcp.exceptions import TransportClosedError
from wordpress_mcp.transport.base import MessageCallback

logger = logging.getLogger(__name__)


class _NonClosingTextIOWrapper(TextIOWrapper):
    """Text wrapper that never closes the underlying binary stream.

    The transport should not close the process' real stdin/stdout handles when
    its background task winds down.
    """

    def close(self) -> None:
        if self.closed:
            return

        if self.writable():
            self.flush()


def _wrap_process_stdio(binary_stream: BinaryIO) -> anyio.AsyncFile[str]:
    return anyio.wrap_file(_NonClosingTextIOWrapper(binary_stream, encoding="utf-8"))


class StdioTransport:
    """Transport over a pair of text streams.

    End of input means the peer can send nothing more; stdout stays writable
    so requests still in flight can answer until close() is called.
    """

    def __init__(self, stdin: anyio.AsyncFile[str], stdout: anyio.AsyncFile[str]) -> None:
        self._stdin = stdin
        self._stdout = stdout
        self._callback: MessageCallback | None = None
        self._ready = anyio.Event()
        self._input_done = anyio.Event()
        self._closed = False
        self._write_lock = anyio.Lock()

    def on_message(self, callback: MessageCallback) -> None:
        self._callback = callback
        self._ready.set()

    async def send(self, message: types.JSONRPCMessage) -> None:
        if self._closed:
            raise TransportClosedError("stdio transport is closed")
        # One frame per line; concurrent writers must not interleave.
        async with self._write_lock:
            await self._stdout.write(types.dump_message(message) + "\n")
            await self._stdout.flush()

    async def close(self) -> None:
        self._closed = True
        self._input_done.set()

    async def wait_closed(self) -> None:
        await self._input_done.wait()

    async def read_loop(self) -> None:
        """Decode one frame per input line and hand it to the message callback."""
        await self._ready.wait()
        assert self._callback is not None
        try:
            async for raw_line in self._stdin:
                line = raw_line.strip()
                if not line:
                    continue
                try:
                    payload = json.loads(line)
                except json.JSONDecodeError as exc:
                    logger.warning("Could not parse message from stdin: %s", exc)
                    await self._reply_error(None, types.PARSE_ERROR, "Parse error")
                    continue
                try:
                    message = types.JSONRPCMessageAdapter.validate_python(payload)
                except PydanticValidationError as exc:
                    logger.warning("Invalid JSON-RPC frame from stdin: %s", exc)
                    await self._reply_error(_request_id_of(payload), types.INVALID_REQUEST, "Invalid Request")
                    continue
                await self._callback(message)
        finally:
            self._input_done.set()

    async def _reply_error(self, request_id: types.RequestId | None, code: int, message: str) -> None:
        await self.send(types.JSONRPCErrorResponse(id=request_id, error=types.ErrorData(code=code, message=message)))


def _request_id_of(payload: Any) -> types.RequestId | None:
    """Recover a usable id from a frame that failed validation, if it has one."""
    if not isinstance(payload, dict):
        return None
    request_id = payload.get("id")
    if isinstance(request_id, str) or (isinstance(request_id, int) and not isinstance(request_id, bool)):
        return request_id
    return None


@asynccontextmanager
async def stdio_transport(
    stdin: anyio.AsyncFile[str] | None = None,
    stdout: anyio.AsyncFile[str] | None = None,
) -> AsyncIterator[StdioTransport]:
    """Server transport for stdio: reads frames from stdin and writes frames to stdout."""
    # Encoding of stdin/stdout as text streams on python is platform-dependent,
    # so we re-wrap the underlying binary stream to ensure UTF-8.
    if not stdin:
        stdin = _wrap_process_stdio(sys.stdin.buffer)
    if not stdout:
        stdout = _wrap_process_stdio(sys.stdout.buffer)

    transport = StdioTransport(stdin, stdout)
    async with anyio.create_task_group() as tg:
        tg.start_soon(transport.read_loop)
        try:
            yield transport
        finally:
            await transport.close()
            tg.cancel_scope.cancel()
