"""Async REST client for the DFlow prediction market metadata API.

Every tool call issues at most one backend request. Failures are never retried:
arbitrary query parameters carry no idempotency guarantee, so a non-2xx answer
or a transport error is raised to the caller as :class:`ApiError` right away.
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping

import aiohttp

from dflow_mcp.config import get_settings
from dflow_mcp.utils import get_logger


class ApiError(Exception):
    """Backend call failed.

    ``status`` is the HTTP status for non-2xx responses and ``None`` for
    transport failures (connection refused, timeout, invalid JSON body).
    """

    def __init__(self, message: str, status: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status = status
        self.body = body


def encode_query(params: Mapping[str, Any] | None) -> dict[str, str]:
    """Flatten tool arguments into query-string values."""
    out: dict[str, str] = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            out[key] = "true" if value else "false"
        elif isinstance(value, (list, tuple)):
            out[key] = ",".join(str(v) for v in value)
        else:
            out[key] = str(value)
    return out


class DFlowRestClient:
    """Async client implementing ``api_request(method, path, params)``."""

    def __init__(self, base_url: str | None = None):
        self.settings = get_settings()
        self.base_url = (base_url or self.settings.dflow_api_url).rstrip("/")
        self.logger = get_logger("dflow.rest")
        self._session: aiohttp.ClientSession | None = None
        self.api_key: str | None = (self.settings.dflow_api_key or "").strip() or None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.settings.dflow_request_timeout_sec)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close the session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    async def api_request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        """Call the backend and return its decoded JSON body.

        GET requests send ``params`` as the query string, POST requests send
        them as a JSON body.
        """
        method = method.upper()
        if method not in ("GET", "POST"):
            raise ValueError(f"Unsupported method: {method}")

        url = f"{self.base_url}{path}"
        query = encode_query(params) if method == "GET" else None
        body = dict(params) if method == "POST" and params else None

        return await self._fetch_json(method, url, query=query, body=body, label=path)

    async def fetch_json(self, url: str) -> Any:
        """GET an absolute URL (used for the remote tool catalog)."""
        return await self._fetch_json("GET", url, label=url)

    async def _fetch_json(
        self,
        method: str,
        url: str,
        *,
        query: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
        label: str,
    ) -> Any:
        session = await self._get_session()
        try:
            async with session.request(
                method, url, params=query, json=body, headers=self._headers()
            ) as response:
                if response.status >= 400:
                    text = await response.text()
                    self.logger.error(
                        "request_failed",
                        endpoint=label,
                        status=response.status,
                        params=query,
                        body=text[:2000],
                    )
                    raise ApiError(f"HTTP {response.status}: {text[:2000]}", status=response.status, body=text)

                return await response.json(content_type=None)

        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            # ValueError covers a 2xx response whose body is not JSON
            self.logger.warning("request_error", endpoint=label, error=str(e) or type(e).__name__)
            raise ApiError(f"Request to {label} failed: {str(e) or type(e).__name__}") from e
