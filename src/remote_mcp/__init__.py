# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Configuration-driven MCP server primitives.

The server's tools, resources and prompts are described by a declarative
document fetched from a control plane. Each capability delegates to a handler
endpoint, and the document is re-fetched periodically so capabilities can be
added, removed or changed without restarting the process.

- ``remote_mcp.config`` - the configuration document model
- ``remote_mcp.sources`` - where configurations come from
- ``remote_mcp.invoker`` - handler invocation and transports
- ``remote_mcp.server`` - the MCP server and its lifecycle
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .adapter import ProtocolAdapter
from .client_logging import ClientLoggingService
from .config import (
    CapabilityConfig,
    PromptArgumentDescriptor,
    PromptDescriptor,
    ResourceDescriptor,
    ToolDescriptor,
)
from .exceptions import (
    CapabilityNotFoundError,
    ConfigUnavailableError,
    ErrorCode,
    HandlerMalformedResponseError,
    HandlerUnavailableError,
    PromptExecutionError,
    RemoteMCPError,
    ResourceReadError,
    ToolExecutionError,
)
from .invoker import HandlerInvoker, HttpxInvocationTransport, InvocationTransport, TransportResponse
from .refresh import RefreshLoop, RefreshState
from .registry import CapabilityRegistry
from .server import RemoteMCPServer
from .settings import ServerSettings
from .sources import (
    ConfigSource,
    FileConfigSource,
    HttpConfigSource,
    StaticConfigSource,
    create_config_source_from_env,
)
from .utils import configure_logging, get_logger

try:
    __version__ = version("remote-mcp")
except PackageNotFoundError:
    __version__ = "0.0.0+local"


__all__ = [
    "CapabilityConfig",
    "CapabilityNotFoundError",
    "CapabilityRegistry",
    "ClientLoggingService",
    "ConfigSource",
    "ConfigUnavailableError",
    "ErrorCode",
    "FileConfigSource",
    "HandlerInvoker",
    "HandlerMalformedResponseError",
    "HandlerUnavailableError",
    "HttpConfigSource",
    "HttpxInvocationTransport",
    "InvocationTransport",
    "PromptArgumentDescriptor",
    "PromptDescriptor",
    "PromptExecutionError",
    "ProtocolAdapter",
    "RefreshLoop",
    "RefreshState",
    "RemoteMCPError",
    "RemoteMCPServer",
    "ResourceDescriptor",
    "ResourceReadError",
    "ServerSettings",
    "StaticConfigSource",
    "ToolDescriptor",
    "ToolExecutionError",
    "TransportResponse",
    "__version__",
    "configure_logging",
    "create_config_source_from_env",
    "get_logger",
]
