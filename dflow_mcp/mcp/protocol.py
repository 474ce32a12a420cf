"""JSON-RPC 2.0 wire types shared by the router."""

from __future__ import annotations

from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

JSONRPC_VERSION = "2.0"

# Error taxonomy
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
TRANSPORT_NOT_SUPPORTED = -32000

NOTIFICATION_PREFIX = "notifications/"

RequestId = Union[str, int, float, None]


class Dialect(str, Enum):
    """Request envelope families accepted on the POST transport."""

    CLAUDE_DESKTOP = "claude_desktop_rpc"
    STANDARD = "standard_jsonrpc"


def is_notification(method: str) -> bool:
    return method.startswith(NOTIFICATION_PREFIX)


class CanonicalRequest(BaseModel):
    """One normalized inbound call, whatever envelope it arrived in."""

    model_config = ConfigDict(frozen=True)

    id: RequestId = None
    method: str = Field(min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)
    dialect: Dialect = Dialect.STANDARD

    @property
    def is_notification(self) -> bool:
        return is_notification(self.method)


class RPCError(BaseModel):
    code: int
    message: str
    data: Any = None


class RPCSuccess(BaseModel):
    id: RequestId = None
    result: Any = None

    def to_wire(self) -> dict[str, Any]:
        return {"jsonrpc": JSONRPC_VERSION, "id": self.id, "result": self.result}


class RPCFailure(BaseModel):
    id: RequestId = None
    error: RPCError

    def to_wire(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.error.code, "message": self.error.message}
        if self.error.data is not None:
            error["data"] = self.error.data
        return {"jsonrpc": JSONRPC_VERSION, "id": self.id, "error": error}


RPCResponse = Union[RPCSuccess, RPCFailure]


def success(request_id: RequestId, result: Any) -> RPCSuccess:
    return RPCSuccess(id=request_id, result=result)


def failure(request_id: RequestId, code: int, message: str, data: Any = None) -> RPCFailure:
    return RPCFailure(id=request_id, error=RPCError(code=code, message=message, data=data))


def parse_response(payload: dict[str, Any]) -> RPCResponse:
    """Decode a wire response back into its typed form.

    Raises:
        ValueError: the payload does not carry exactly one of result/error.
    """
    has_result = "result" in payload
    has_error = "error" in payload
    if has_result == has_error:
        raise ValueError("JSON-RPC response must contain exactly one of result/error")
    if payload.get("jsonrpc") != JSONRPC_VERSION:
        raise ValueError(f"Unsupported jsonrpc version: {payload.get('jsonrpc')!r}")
    if has_error:
        return RPCFailure(id=payload.get("id"), error=RPCError(**payload["error"]))
    return RPCSuccess(id=payload.get("id"), result=payload["result"])
