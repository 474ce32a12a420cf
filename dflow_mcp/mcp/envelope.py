"""Envelope normalizer.

Two client populations POST structurally different envelopes that both carry
a ``method`` field:

* Claude-Desktop: ``{"type": "rpc", "method": ..., "args": [...], "id": ...}``
* JSON-RPC 2.0:   ``{"jsonrpc": "2.0", "method": ..., "params": {...}, "id": ...}``

The dialect is decided by the ``type``/``args`` vs ``jsonrpc`` discriminators,
never by the method name. :func:`normalize` is pure: it returns either a
:class:`CanonicalRequest` or a :class:`ParseFailure` and never raises.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping

from .protocol import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSONRPC_VERSION,
    PARSE_ERROR,
    CanonicalRequest,
    Dialect,
    RequestId,
    RPCFailure,
    failure,
    is_notification,
)

EXPECTED_FORMATS = [Dialect.CLAUDE_DESKTOP.value, Dialect.STANDARD.value]

# Claude-Desktop sends positional args; name them per method.
POSITIONAL_PARAMS: dict[str, tuple[str, ...]] = {
    "connectMCPServer": ("server_url", "options"),
}


@dataclass(frozen=True)
class ParseFailure:
    """Body could not be turned into a canonical request."""

    code: int
    message: str
    data: Any = None
    request_id: RequestId = None
    http_status: int = 200

    def to_response(self) -> RPCFailure:
        return failure(self.request_id, self.code, self.message, self.data)


def _valid_id(value: Any) -> bool:
    return value is None or (isinstance(value, (str, int, float)) and not isinstance(value, bool))


def _invalid_format(body: Any, request_id: RequestId = None) -> ParseFailure:
    return ParseFailure(
        code=INVALID_REQUEST,
        message="Invalid request format",
        data={"expected_formats": EXPECTED_FORMATS, "received_request": body},
        request_id=request_id,
    )


def _positional_params(method: str, args: list[Any]) -> dict[str, Any]:
    names = POSITIONAL_PARAMS.get(method, ())
    return {name: value for name, value in zip(names, args)}


def normalize(
    raw_body: str | bytes,
    defaults: Mapping[str, Any] | None = None,
) -> CanonicalRequest | ParseFailure:
    """Parse and classify one POST body.

    Args:
        raw_body: Request body as received.
        defaults: Envelope fields implied by the URL alias. They are merged
            underneath the body only when the body names neither ``method``
            nor ``type``.
    """
    try:
        if isinstance(raw_body, bytes):
            raw_body = raw_body.decode("utf-8")
        body = json.loads(raw_body)
    except (UnicodeDecodeError, ValueError) as e:
        return ParseFailure(code=PARSE_ERROR, message="Parse error", data=str(e), http_status=400)

    if not isinstance(body, dict):
        return _invalid_format(body)

    if defaults and "method" not in body and "type" not in body:
        body = {**defaults, **body}

    method = body.get("method")
    if isinstance(method, str) and is_notification(method):
        # Fire-and-forget: the id and params shape are never reported back.
        if body.get("type") == "rpc" and isinstance(body.get("args"), list):
            return CanonicalRequest(
                id=None,
                method=method,
                params=_positional_params(method, body["args"]),
                dialect=Dialect.CLAUDE_DESKTOP,
            )
        params = body.get("params")
        return CanonicalRequest(
            id=None,
            method=method,
            params=params if isinstance(params, dict) else {},
            dialect=Dialect.STANDARD,
        )

    request_id = body.get("id")
    if not _valid_id(request_id):
        return _invalid_format(body)

    if not isinstance(method, str) or not method:
        return _invalid_format(body, request_id)

    if body.get("type") == "rpc" and isinstance(body.get("args"), list):
        return CanonicalRequest(
            id=request_id,
            method=method,
            params=_positional_params(method, body["args"]),
            dialect=Dialect.CLAUDE_DESKTOP,
        )

    if body.get("jsonrpc") == JSONRPC_VERSION and "type" not in body:
        params = body.get("params")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            return ParseFailure(
                code=INVALID_PARAMS,
                message="Invalid params: params must be an object",
                data={"received_params": params},
                request_id=request_id,
            )
        return CanonicalRequest(
            id=request_id,
            method=method,
            params=params,
            dialect=Dialect.STANDARD,
        )

    return _invalid_format(body, request_id)
