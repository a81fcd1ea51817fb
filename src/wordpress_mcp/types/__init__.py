"""Protocol types for the tool-invocation server."""

from wordpress_mcp.types.base import (
    LATEST_PROTOCOL_VERSION,
    SUPPORTED_PROTOCOL_VERSIONS,
    EmptyResult,
    MCPModel,
    Meta,
    RequestParams,
    Result,
)
from wordpress_mcp.types.common import ClientCapabilities, Implementation, ServerCapabilities
from wordpress_mcp.types.content import ContentBlock, ImageContent, TextContent
from wordpress_mcp.types.initialize import InitializeRequestParams, InitializeResult
from wordpress_mcp.types.json_rpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSONRPC_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    ErrorData,
    JSONRPCErrorResponse,
    JSONRPCMessage,
    JSONRPCMessageAdapter,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCResultResponse,
    RequestId,
    dump_message,
)
from wordpress_mcp.types.tools import (
    CallToolRequestParams,
    CallToolResult,
    ListToolsResult,
    Tool,
)

__all__ = [
    "LATEST_PROTOCOL_VERSION",
    "SUPPORTED_PROTOCOL_VERSIONS",
    "JSONRPC_VERSION",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "CallToolRequestParams",
    "CallToolResult",
    "ClientCapabilities",
    "ContentBlock",
    "EmptyResult",
    "ErrorData",
    "ImageContent",
    "Implementation",
    "InitializeRequestParams",
    "InitializeResult",
    "JSONRPCErrorResponse",
    "JSONRPCMessage",
    "JSONRPCMessageAdapter",
    "JSONRPCNotification",
    "JSONRPCRequest",
    "JSONRPCResponse",
    "JSONRPCResultResponse",
    "ListToolsResult",
    "MCPModel",
    "Meta",
    "RequestId",
    "RequestParams",
    "Result",
    "ServerCapabilities",
    "TextContent",
    "Tool",
    "dump_message",
]
