# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Invocation of capability handlers.

A handler reference is either a remote URL or an in-process callable. Remote
handlers receive the call arguments as a JSON object in a POST body and
answer with a JSON document. The raw result is one of:

- ``str`` for JSON strings
- ``dict``/``list``/number/bool/``None`` for other JSON values
- ``bytes`` when the endpoint answers with a binary content type

In-process handlers receive the arguments as a single mapping when they take a
positional parameter, as keyword arguments when they only take keywords, and
nothing when they take no parameters.

Each invocation is a single attempt. Timeouts and retries belong to the
:class:`InvocationTransport`.

Example:
    >>> invoker = HandlerInvoker(HttpxInvocationTransport(timeout=10.0))
    >>> await invoker.invoke("https://handlers.example.com/echo", {"msg": "hi"})
    'hi'
"""

from __future__ import annotations

import inspect
import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol, Union, runtime_checkable

import httpx

from .config import HandlerRef
from .exceptions import HandlerMalformedResponseError, HandlerUnavailableError, RemoteMCPError
from .utils import get_logger

_logger = get_logger("remote_mcp.invoker")

RawResult = Union[str, bytes, dict[str, Any], list[Any], int, float, bool, None]

_TEXTUAL_TYPES = ("application/json", "text/")

_POSITIONAL_KINDS = {
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
    inspect.Parameter.VAR_POSITIONAL,
}


@dataclass(slots=True, frozen=True)
class TransportResponse:
    """Raw response from an invocation transport.

    Attributes:
        status: HTTP status code
        reason: Status text
        content: Raw body bytes
        content_type: Value of the Content-Type header, if any
    """

    status: int
    reason: str = ""
    content: bytes = b""
    content_type: str | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    @property
    def is_binary(self) -> bool:
        """True when the response declares a non-JSON, non-text media type."""
        if not self.content_type:
            return False
        media_type = self.content_type.split(";", 1)[0].strip().lower()
        if media_type.endswith("+json"):
            return False
        return not any(media_type.startswith(prefix) for prefix in _TEXTUAL_TYPES)


@runtime_checkable
class InvocationTransport(Protocol):
    """Performs one request against a handler endpoint."""

    async def call(self, address: str, body: bytes) -> TransportResponse:
        """POST *body* to *address*.

        Raises:
            Exception: Any transport-level fault. The invoker wraps it.
        """
        ...


class HttpxInvocationTransport:
    """Invocation transport backed by ``httpx.AsyncClient``.

    Args:
        timeout: Seconds before a hung handler call is abandoned
        headers: Extra headers sent with every call
        client: Optional shared client; when omitted a client is created per call
    """

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        headers: Mapping[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout
        self._headers = {"Content-Type": "application/json", **(headers or {})}
        self._client = client

    async def call(self, address: str, body: bytes) -> TransportResponse:
        if self._client is not None:
            response = await self._client.post(address, content=body, headers=self._headers, timeout=self._timeout)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(address, content=body, headers=self._headers)

        return TransportResponse(
            status=response.status_code,
            reason=response.reason_phrase,
            content=response.content,
            content_type=response.headers.get("content-type"),
        )


class HandlerInvoker:
    """Calls handler references and normalizes their failures."""

    def __init__(self, transport: InvocationTransport | None = None) -> None:
        self._transport = transport or HttpxInvocationTransport()

    @property
    def transport(self) -> InvocationTransport:
        return self._transport

    async def invoke(self, handler: HandlerRef, arguments: Mapping[str, Any] | None = None) -> RawResult:
        """Run *handler* with *arguments* and return its raw result.

        Raises:
            HandlerUnavailableError: Endpoint unreachable, non-success status, or
                the in-process function raised.
            HandlerMalformedResponseError: Body could not be parsed as JSON.
        """
        if callable(handler):
            return await self._invoke_local(handler, arguments)
        return await self._invoke_remote(handler, arguments)

    async def _invoke_remote(self, address: str, arguments: Mapping[str, Any] | None) -> RawResult:
        try:
            body = json.dumps(dict(arguments or {})).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise HandlerUnavailableError(f"Remote handler error: arguments are not JSON serializable: {exc}") from exc

        try:
            response = await self._transport.call(address, body)
        except Exception as exc:
            _logger.warning(
                "handler transport fault",
                extra={"event": "handler.invoke.error", "handler": address, "error": str(exc)},
            )
            raise HandlerUnavailableError(f"Remote handler error: {exc}") from exc

        if not response.ok:
            _logger.error(
                "Handler failed with status: %s %s",
                response.status,
                response.reason,
                extra={"event": "handler.invoke.status", "handler": address, "status": response.status},
            )
            raise HandlerUnavailableError(f"Remote handler error: Handler failed: {response.reason or response.status}")

        if response.is_binary:
            return response.content

        raw_text = response.text
        try:
            return json.loads(raw_text)
        except ValueError as exc:
            _logger.warning(
                "handler returned malformed JSON",
                extra={"event": "handler.invoke.malformed", "handler": address, "error": str(exc)},
            )
            raise HandlerMalformedResponseError(f"Remote handler error: malformed response: {exc}") from exc

    async def _invoke_local(self, fn: Any, arguments: Mapping[str, Any] | None) -> RawResult:
        name = getattr(fn, "__name__", repr(fn))
        try:
            result = _call_local(fn, dict(arguments or {}))
            if inspect.isawaitable(result):
                result = await result
        except RemoteMCPError:
            raise
        except Exception as exc:
            _logger.warning(
                "in-process handler raised",
                extra={"event": "handler.invoke.error", "handler": name, "error": str(exc)},
            )
            raise HandlerUnavailableError(f"Local handler error: {exc}") from exc
        return result


def _call_local(fn: Any, arguments: dict[str, Any]) -> Any:
    """Call *fn* with the argument mapping as one positional value, as keywords, or not at all."""
    try:
        kinds = {parameter.kind for parameter in inspect.signature(fn).parameters.values()}
    except (TypeError, ValueError):
        return fn(arguments)
    if kinds & _POSITIONAL_KINDS:
        return fn(arguments)
    if kinds:
        return fn(**arguments)
    return fn()


__all__ = [
    "HandlerInvoker",
    "HttpxInvocationTransport",
    "InvocationTransport",
    "RawResult",
    "TransportResponse",
]
