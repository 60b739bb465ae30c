# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Shared fakes for the test suite."""

from __future__ import annotations

import json
from itertools import count
from typing import Any

from anyio.lowlevel import checkpoint
from mcp.server.lowlevel.server import request_ctx
from mcp.shared.context import RequestContext

from remote_mcp import CapabilityConfig, HandlerInvoker, RemoteMCPServer, ServerSettings, StaticConfigSource
from remote_mcp.invoker import TransportResponse

_request_counter = count(1)


def json_response(value: Any, status: int = 200, reason: str = "OK") -> TransportResponse:
    return TransportResponse(
        status=status,
        reason=reason,
        content=json.dumps(value).encode("utf-8"),
        content_type="application/json",
    )


class RecordingTransport:
    """Invocation transport answering from a route table.

    A route maps an address to a :class:`TransportResponse`, an exception to
    raise, or a callable receiving the decoded arguments.
    """

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, Any]] = []

    async def call(self, address: str, body: bytes) -> TransportResponse:
        arguments = json.loads(body)
        self.calls.append((address, arguments))
        if address not in self.routes:
            raise ConnectionError(f"no route to {address}")
        outcome = self.routes[address]
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            outcome = outcome(arguments)
        return outcome


class SequenceSource:
    """Config source returning its outcomes in order, repeating the last one."""

    def __init__(self, *outcomes: Any) -> None:
        self._outcomes = list(outcomes)
        self.fetches = 0

    async def fetch(self) -> CapabilityConfig:
        outcome = self._outcomes[min(self.fetches, len(self._outcomes) - 1)]
        self.fetches += 1
        await checkpoint()
        if isinstance(outcome, BaseException):
            raise outcome
        return CapabilityConfig.from_document(outcome)


class DummySession:
    def __init__(self, name: str = "session") -> None:
        self.name = name
        self.notifications: list[str] = []
        self.log_messages: list[tuple[str, Any, str | None]] = []

    async def send_tool_list_changed(self) -> None:
        self.notifications.append("tools")

    async def send_resource_list_changed(self) -> None:
        self.notifications.append("resources")

    async def send_prompt_list_changed(self) -> None:
        self.notifications.append("prompts")

    async def send_log_message(self, level: str, data: Any, logger: str | None = None, **_: Any) -> None:
        self.log_messages.append((level, data, logger))


class FailingSession(DummySession):
    async def send_tool_list_changed(self) -> None:
        raise RuntimeError("session closed")


async def run_with_context(session: Any, func: Any, *args: Any) -> Any:
    ctx = RequestContext(
        request_id=next(_request_counter),
        meta=None,
        session=session,
        lifespan_context={},
    )
    token = request_ctx.set(ctx)
    try:
        return await func(*args)
    finally:
        request_ctx.reset(token)


async def make_server(
    document: dict[str, Any],
    transport: RecordingTransport | None = None,
    **settings: Any,
) -> RemoteMCPServer:
    """Build a server over a static document and perform the initial load."""
    server = RemoteMCPServer(
        StaticConfigSource(document),
        settings=ServerSettings(**settings),
        invoker=HandlerInvoker(transport or RecordingTransport()),
    )
    await server.load()
    return server
