# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Configuration-driven MCP server.

:class:`RemoteMCPServer` extends the reference SDK's lowlevel ``Server``. Its
request handlers are installed once and never re-registered: each one asks the
:class:`ProtocolAdapter` to answer from the registry's current config. A
configuration change is therefore a registry swap, followed by
``notifications/*/list_changed`` to the sessions that listed the affected
capability kind.

Lifecycle::

    server = RemoteMCPServer(HttpConfigSource("https://control.example.com/mcp.json"))
    await server.serve_stdio()

``serve_stdio`` performs the initial fetch (fatal if it fails), starts the
refresh loop, runs the transport and stops the loop on exit.
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable, Mapping
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import anyio
from mcp import types
from mcp.server.lowlevel.server import NotificationOptions, Server, request_ctx
from mcp.server.lowlevel.server import lifespan as default_lifespan
from mcp.server.models import InitializationOptions
from mcp.shared.exceptions import McpError

from .adapter import ProtocolAdapter
from .client_logging import LOG_LEVELS, ClientLoggingService
from .config import CapabilityConfig, changed_sections
from .exceptions import RemoteMCPError
from .invoker import HandlerInvoker, HttpxInvocationTransport
from .refresh import RefreshLoop
from .registry import CapabilityRegistry
from .settings import ServerSettings
from .sources import ConfigSource, create_config_source_from_env
from .utils import get_logger

T = TypeVar("T")


class RemoteMCPServer(Server[Any, Any]):
    """MCP server whose tools, resources and prompts come from a config source.

    Args:
        source: Where capability configurations are fetched from
        settings: Tunables; defaults to :class:`ServerSettings`
        invoker: Handler invoker; defaults to an httpx transport using
            ``settings.handler_timeout``
        registry: Registry to populate; a fresh one by default
        lifespan: Forwarded to the lowlevel server
    """

    def __init__(
        self,
        source: ConfigSource,
        *,
        settings: ServerSettings | None = None,
        invoker: HandlerInvoker | None = None,
        registry: CapabilityRegistry | None = None,
        lifespan: Callable[[Server[Any, Any]], Any] = default_lifespan,
    ) -> None:
        self.settings = settings or ServerSettings()
        super().__init__(
            self.settings.name,
            version=self.settings.version,
            instructions=self.settings.instructions,
            lifespan=lifespan,
        )
        self._logger = get_logger(f"remote_mcp.server.{self.settings.name}")
        self.source = source
        self.registry = registry or CapabilityRegistry()
        self.invoker = invoker or HandlerInvoker(HttpxInvocationTransport(timeout=self.settings.handler_timeout))
        self.adapter = ProtocolAdapter(self.registry, self.invoker)
        self.refresh_loop = RefreshLoop(
            self.registry,
            source,
            interval=self.settings.refresh_interval,
            on_change=self._on_config_change,
        )
        self._observers: dict[str, weakref.WeakSet[Any]] = {
            "tools": weakref.WeakSet(),
            "resources": weakref.WeakSet(),
            "prompts": weakref.WeakSet(),
        }
        self.logging_service = ClientLoggingService()
        self._install_handlers()

    @classmethod
    def from_env(cls, location: str | None = None, **overrides: Any) -> RemoteMCPServer:
        """Build a server from ``MCP_CONTROL_PLANE_URL`` and ``REMOTE_MCP_*`` variables.

        Args:
            location: Control plane URL or file path; overrides the environment
            **overrides: Explicit :class:`ServerSettings` fields
        """
        settings = ServerSettings.from_env(**overrides)
        source = create_config_source_from_env(location, timeout=settings.config_timeout)
        return cls(source, settings=settings)

    # ------------------------------------------------------------------
    # Request handlers
    # ------------------------------------------------------------------

    def _install_handlers(self) -> None:
        async def _list_tools(request: types.ListToolsRequest) -> types.ServerResult:
            page, next_cursor = self._paginate(self._guard(self.adapter.list_tools), _cursor(request))
            self._remember_observer("tools")
            return types.ServerResult(types.ListToolsResult(tools=page, nextCursor=next_cursor))

        async def _call_tool(request: types.CallToolRequest) -> types.ServerResult:
            return types.ServerResult(await self._execute_tool(request.params.name, request.params.arguments))

        async def _list_resources(request: types.ListResourcesRequest) -> types.ServerResult:
            page, next_cursor = self._paginate(self._guard(self.adapter.list_resources), _cursor(request))
            self._remember_observer("resources")
            return types.ServerResult(types.ListResourcesResult(resources=page, nextCursor=next_cursor))

        async def _read_resource(request: types.ReadResourceRequest) -> types.ServerResult:
            return types.ServerResult(await self.invoke_resource(str(request.params.uri)))

        async def _list_prompts(request: types.ListPromptsRequest) -> types.ServerResult:
            page, next_cursor = self._paginate(self._guard(self.adapter.list_prompts), _cursor(request))
            self._remember_observer("prompts")
            return types.ServerResult(types.ListPromptsResult(prompts=page, nextCursor=next_cursor))

        async def _get_prompt(request: types.GetPromptRequest) -> types.ServerResult:
            return types.ServerResult(
                await self.invoke_prompt(request.params.name, arguments=request.params.arguments)
            )

        async def _set_level(request: types.SetLevelRequest) -> types.ServerResult:
            self.set_log_level(request.params.level)
            return types.ServerResult(types.EmptyResult())

        self.request_handlers[types.ListToolsRequest] = _list_tools
        self.request_handlers[types.CallToolRequest] = _call_tool
        self.request_handlers[types.ListResourcesRequest] = _list_resources
        self.request_handlers[types.ReadResourceRequest] = _read_resource
        self.request_handlers[types.ListPromptsRequest] = _list_prompts
        self.request_handlers[types.GetPromptRequest] = _get_prompt
        self.request_handlers[types.SetLevelRequest] = _set_level

    async def _execute_tool(self, name: str, arguments: Mapping[str, Any] | None) -> types.CallToolResult:
        # Tool failures are reported in-band so the model can see them.
        try:
            return await self.adapter.call_tool(name, arguments)
        except RemoteMCPError as exc:
            self._logger.warning(
                "tool call failed: %s",
                exc.message,
                extra={"event": "tool.call.error", "tool": name, "code": exc.code.value},
            )
            return types.CallToolResult(
                content=[types.TextContent(type="text", text=exc.message)],
                isError=True,
            )
        finally:
            await self.logging_service.flush()

    def _guard(self, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except RemoteMCPError as exc:
            raise McpError(exc.to_error_data()) from exc

    async def _guard_async(self, fn: Callable[..., Awaitable[T]], *args: Any) -> T:
        try:
            return await fn(*args)
        except RemoteMCPError as exc:
            self._logger.warning("%s", exc.message, extra={"event": "request.error", "code": exc.code.value})
            raise McpError(exc.to_error_data()) from exc
        finally:
            await self.logging_service.flush()

    def _paginate(self, items: list[T], cursor: str | None) -> tuple[list[T], str | None]:
        limit = self.settings.pagination_limit
        start = 0
        if cursor:
            try:
                start = max(0, int(cursor))
            except ValueError:
                raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message="Invalid cursor provided"))

        end = start + limit
        page = items[start:end]
        next_cursor = str(end) if end < len(items) else None
        return page, next_cursor

    def set_log_level(self, level: str) -> None:
        """Apply an MCP ``logging/setLevel`` value.

        The server loggers take the new level. When called while handling a
        request, the requesting session also starts receiving log records at
        or above it as ``notifications/message``.
        """
        mapped = LOG_LEVELS.get(str(level).lower())
        if mapped is None:
            raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=f"Unknown logging level: {level}"))
        logging.getLogger("remote_mcp").setLevel(mapped)
        self._logger.setLevel(mapped)

        try:
            context = request_ctx.get()
        except LookupError:
            return
        self.logging_service.set_level(context.session, mapped)
        # Records must reach the forwarder for the most verbose session.
        logging.getLogger("remote_mcp").setLevel(self.logging_service.lowest_level)
        self._logger.setLevel(self.logging_service.lowest_level)

    async def log_message(self, level: types.LoggingLevel, data: Any, *, logger: str | None = None) -> None:
        """Send a log message to every session whose level admits *level*."""
        await self.logging_service.log_message(level, data, logger=logger)

    # ------------------------------------------------------------------
    # Capability negotiation
    # ------------------------------------------------------------------

    def create_initialization_options(
        self,
        notification_options: NotificationOptions | None = None,
        experimental_capabilities: dict[str, dict[str, Any]] | None = None,
    ) -> InitializationOptions:
        """Build ``initialize`` options advertising list-change notifications.

        The capability set can change at every refresh, so all three
        ``listChanged`` flags are on by default.
        """
        return super().create_initialization_options(
            notification_options=notification_options
            or NotificationOptions(prompts_changed=True, resources_changed=True, tools_changed=True),
            experimental_capabilities=experimental_capabilities or {},
        )

    # ------------------------------------------------------------------
    # List-change notifications
    # ------------------------------------------------------------------

    def _remember_observer(self, kind: str) -> None:
        try:
            context = request_ctx.get()
        except LookupError:
            return
        self._observers[kind].add(context.session)

    async def _on_config_change(self, old: CapabilityConfig | None, new: CapabilityConfig) -> None:
        for kind in sorted(changed_sections(old, new)):
            await self.notify_list_changed(kind)

    async def notify_list_changed(self, kind: str) -> None:
        """Send ``notifications/<kind>/list_changed`` to sessions that listed *kind*."""
        sessions = list(self._observers[kind])
        if not sessions:
            return

        stale: list[Any] = []
        for session in sessions:
            try:
                if kind == "tools":
                    await session.send_tool_list_changed()
                elif kind == "resources":
                    await session.send_resource_list_changed()
                else:
                    await session.send_prompt_list_changed()
            except Exception as exc:
                self._logger.warning(
                    "Failed to notify session of %s change: %s",
                    kind,
                    exc,
                    extra={"event": "notify.list_changed.error", "kind": kind},
                )
                stale.append(session)

        for session in stale:
            self._observers[kind].discard(session)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def load(self) -> CapabilityConfig:
        """Fetch and install the initial configuration.

        Raises:
            ConfigUnavailableError: The source failed. The server cannot start.
        """
        config = await self.source.fetch()
        self.registry.load(config)
        self._logger.info(
            "Remote MCP Server initialized and ready",
            extra={"event": "server.ready", "source": repr(self.source)},
        )
        return config

    async def refresh_now(self) -> bool:
        """Run one refresh tick immediately."""
        try:
            return await self.refresh_loop.tick()
        finally:
            await self.logging_service.flush()

    @asynccontextmanager
    async def running(self) -> AsyncIterator[RemoteMCPServer]:
        """Load the config if needed and keep the background tasks running in scope.

        The refresh loop and the client log pump run until the block exits.
        """
        if not self.registry.loaded:
            await self.load()

        async with anyio.create_task_group() as tg:
            await tg.start(self.logging_service.pump)
            await self.refresh_loop.start(tg)
            try:
                yield self
            finally:
                self.refresh_loop.stop()
                tg.cancel_scope.cancel()
                self.logging_service.close()

    # ------------------------------------------------------------------
    # Helpers for tests / embedding
    # ------------------------------------------------------------------

    @property
    def tool_names(self) -> list[str]:
        """Names of the currently configured tools, in config order."""
        if not self.registry.loaded:
            return []
        return [tool.name for tool in self.registry.current().tools]

    async def invoke_tool(self, name: str, **arguments: Any) -> types.CallToolResult:
        """Call a tool directly, bypassing JSON-RPC plumbing."""
        return await self._execute_tool(name, arguments)

    async def invoke_resource(self, uri: str) -> types.ReadResourceResult:
        """Read a resource directly. Failures raise ``McpError``."""
        return await self._guard_async(self.adapter.read_resource, uri)

    async def invoke_prompt(self, name: str, *, arguments: dict[str, str] | None = None) -> types.GetPromptResult:
        """Render a prompt directly. Failures raise ``McpError``."""
        return await self._guard_async(self.adapter.get_prompt, name, arguments)

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------

    async def serve_stdio(self, *, raise_exceptions: bool = False) -> None:
        """Run the server over STDIO."""
        from mcp.server.stdio import stdio_server

        async with self.running():
            init_options = self.create_initialization_options()
            async with stdio_server() as (read_stream, write_stream):
                self._logger.info("Transport connected", extra={"event": "server.transport", "transport": "stdio"})
                await self.run(read_stream, write_stream, init_options, raise_exceptions=raise_exceptions)

    async def serve(self, *, transport: str = "stdio", **kwargs: Any) -> None:
        """Dispatch to a transport-specific serve helper."""
        selected = transport.lower()
        if selected == "stdio":
            return await self.serve_stdio(**kwargs)
        if selected in {"http", "shttp", "streamable-http", "streamable_http"}:
            return await self.serve_streamable_http(**kwargs)

        raise ValueError(f"Unsupported transport '{transport}'.")

    async def serve_streamable_http(
        self,
        *,
        host: str = "127.0.0.1",
        port: int = 3000,
        json_response: bool = False,
        stateless: bool = False,
        allow_origins: Iterable[str] | None = ("*",),
        uvicorn_kwargs: dict[str, Any] | None = None,
    ) -> None:
        """Serve over the Streamable HTTP transport at ``/mcp``."""
        import uvicorn
        from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
        from starlette.applications import Starlette
        from starlette.middleware.cors import CORSMiddleware
        from starlette.routing import Mount
        from starlette.types import Receive, Scope, Send

        session_manager = StreamableHTTPSessionManager(
            app=self,
            event_store=None,
            json_response=json_response,
            stateless=stateless,
        )

        async def handle(scope: Scope, receive: Receive, send: Send) -> None:
            await session_manager.handle_request(scope, receive, send)

        @asynccontextmanager
        async def lifespan(app: Starlette) -> AsyncIterator[None]:
            async with self.running(), session_manager.run():
                self._logger.info("Streamable HTTP transport running on http://%s:%s/mcp", host, port)
                yield

        app: Any = Starlette(debug=False, routes=[Mount("/mcp", handle)], lifespan=lifespan)

        if allow_origins:
            app = CORSMiddleware(
                app,
                allow_origins=list(allow_origins),
                allow_methods=["GET", "POST", "DELETE"],
                expose_headers=["Mcp-Session-Id"],
            )

        config = uvicorn.Config(app=app, host=host, port=port, log_level="info", **(uvicorn_kwargs or {}))
        await uvicorn.Server(config).serve()


def _cursor(request: Any) -> str | None:
    params = getattr(request, "params", None)
    return params.cursor if params is not None else None


__all__ = ["RemoteMCPServer"]
