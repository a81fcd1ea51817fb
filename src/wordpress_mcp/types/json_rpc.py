"""Minimum amount of base models to represent the JSON-RPC 2.0 frames carried by the server."""

import json
from typing import Annotated, Any, Final, Generic, Literal, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter, model_validator

JSONRPC_VERSION: Final[str] = "2.0"

PARSE_ERROR: Final[int] = -32700
INVALID_REQUEST: Final[int] = -32600
METHOD_NOT_FOUND: Final[int] = -32601
INVALID_PARAMS: Final[int] = -32602
INTERNAL_ERROR: Final[int] = -32603


def _integral_float_to_int(value: Any) -> Any:
    # Some clients serialise integer ids as 1.0.
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


RequestId = Annotated[Annotated[int, Field(strict=True)] | str, BeforeValidator(_integral_float_to_int)]


class JSONRPCBase(BaseModel):
    """Base class for all JSON-RPC messages."""

    model_config = ConfigDict(extra="allow")

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION


MethodT = TypeVar("MethodT", bound=str)
ParamsT = TypeVar("ParamsT", bound=BaseModel | dict[str, Any] | None)


class RequestBase(JSONRPCBase, Generic[MethodT, ParamsT]):
    """A request that expects a response."""

    id: RequestId
    method: MethodT
    params: ParamsT


class JSONRPCRequest(RequestBase[str, dict[str, Any] | None]):
    """A request that expects a response."""

    params: dict[str, Any] | None = None


class NotificationBase(JSONRPCBase, Generic[MethodT, ParamsT]):
    """A notification which does not expect a response."""

    method: MethodT
    params: ParamsT


class JSONRPCNotification(NotificationBase[str, dict[str, Any] | None]):
    """A notification which does not expect a response."""

    params: dict[str, Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _reject_id(cls, data: Any) -> Any:
        # A frame with an id is a request even when the id itself is malformed.
        if isinstance(data, dict) and "id" in data:
            raise ValueError("notifications do not carry an id")
        return data


class ErrorData(BaseModel):
    """Error information in a JSON-RPC error response."""

    model_config = ConfigDict(extra="allow")

    code: int
    message: str
    data: Any | None = None


class JSONRPCResultResponse(JSONRPCBase):
    """A successful (non-error) response to a request."""

    id: RequestId
    result: dict[str, Any]


class JSONRPCErrorResponse(JSONRPCBase):
    """A response to a request that indicates an error occurred.

    The id is None only when the offending frame could not be decoded far
    enough to recover one.
    """

    id: RequestId | None = None
    error: ErrorData


JSONRPCResponse = JSONRPCResultResponse | JSONRPCErrorResponse
JSONRPCMessage = JSONRPCRequest | JSONRPCNotification | JSONRPCResponse

JSONRPCMessageAdapter: TypeAdapter[JSONRPCMessage] = TypeAdapter(JSONRPCMessage)


def dump_message(message: JSONRPCMessage) -> str:
    """Serialize a frame the way it goes out on the wire."""
    if isinstance(message, JSONRPCErrorResponse) and message.id is None:
        # An error for an undecodable frame carries an explicit null id.
        data = message.model_dump(by_alias=True, mode="json", exclude_none=True)
        return json.dumps({"jsonrpc": data["jsonrpc"], "id": None, "error": data["error"]}, separators=(",", ":"))
    return message.model_dump_json(by_alias=True, exclude_none=True)
