# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Error taxonomy for the remote capability server.

Failures come from three places: configuration retrieval, capability lookup
and remote invocation. Each is normalized into a :class:`RemoteMCPError`
subclass so the protocol binding can turn it into an MCP error without
leaking transport details.

    ConfigUnavailableError          control plane unreachable or bad document
    CapabilityNotFoundError         name/uri absent from the active config
    HandlerUnavailableError         endpoint unreachable or non-success status
    HandlerMalformedResponseError   response body is not valid JSON
    ToolExecutionError              tools/call failed
    ResourceReadError               resources/read failed
    PromptExecutionError            prompts/get failed
"""

from __future__ import annotations

from enum import Enum

from mcp import types

# MCP reserves -32002 for "resource not found".
RESOURCE_NOT_FOUND = -32002


class ErrorCode(str, Enum):
    """Stable error codes, one per failure kind."""

    CONFIG_UNAVAILABLE = "CONFIG_UNAVAILABLE"
    NOT_FOUND = "NOT_FOUND"
    HANDLER_UNAVAILABLE = "HANDLER_UNAVAILABLE"
    HANDLER_MALFORMED_RESPONSE = "HANDLER_MALFORMED_RESPONSE"
    TOOL_EXECUTION_FAILED = "TOOL_EXECUTION_FAILED"
    RESOURCE_READ_FAILED = "RESOURCE_READ_FAILED"
    PROMPT_EXECUTION_FAILED = "PROMPT_EXECUTION_FAILED"


class RemoteMCPError(Exception):
    """Base class for every error raised by remote_mcp."""

    code: ErrorCode = ErrorCode.TOOL_EXECUTION_FAILED
    rpc_code: int = types.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_error_data(self) -> types.ErrorData:
        """Convert to the JSON-RPC error payload sent to the client."""
        return types.ErrorData(code=self.rpc_code, message=self.message, data={"code": self.code.value})


class ConfigUnavailableError(RemoteMCPError):
    code = ErrorCode.CONFIG_UNAVAILABLE


class RegistryNotLoadedError(RemoteMCPError):
    """Raised by ``CapabilityRegistry.current()`` before the first load."""

    code = ErrorCode.CONFIG_UNAVAILABLE

    def __init__(self, message: str = "No capability configuration has been loaded") -> None:
        super().__init__(message)


class CapabilityNotFoundError(RemoteMCPError):
    """Requested tool, resource or prompt is not in the active config.

    An unknown resource maps to -32002 and an unknown prompt to
    ``INVALID_PARAMS``. The server reports an unknown tool inside a
    ``CallToolResult`` with ``isError`` set, so a tool lookup failure is never
    sent as a JSON-RPC error.

    Attributes:
        kind: ``"tool"``, ``"resource"`` or ``"prompt"``
        key: The requested name or uri
    """

    code = ErrorCode.NOT_FOUND
    rpc_code = types.INVALID_PARAMS

    def __init__(self, kind: str, key: str) -> None:
        super().__init__(f"{kind.capitalize()} not found: {key}")
        self.kind = kind
        self.key = key
        if kind == "resource":
            self.rpc_code = RESOURCE_NOT_FOUND


class HandlerUnavailableError(RemoteMCPError):
    code = ErrorCode.HANDLER_UNAVAILABLE


class HandlerMalformedResponseError(RemoteMCPError):
    code = ErrorCode.HANDLER_MALFORMED_RESPONSE


class _ExecutionError(RemoteMCPError):
    prefix = ""

    def __init__(self, cause: BaseException | str) -> None:
        detail = cause if isinstance(cause, str) else str(cause)
        super().__init__(f"{self.prefix}: {detail}")
        self.cause = cause if isinstance(cause, BaseException) else None


class ToolExecutionError(_ExecutionError):
    code = ErrorCode.TOOL_EXECUTION_FAILED
    prefix = "Tool execution failed"


class ResourceReadError(_ExecutionError):
    code = ErrorCode.RESOURCE_READ_FAILED
    prefix = "Resource read failed"


class PromptExecutionError(_ExecutionError):
    code = ErrorCode.PROMPT_EXECUTION_FAILED
    prefix = "Prompt execution failed"


__all__ = [
    "RESOURCE_NOT_FOUND",
    "CapabilityNotFoundError",
    "ConfigUnavailableError",
    "ErrorCode",
    "HandlerMalformedResponseError",
    "HandlerUnavailableError",
    "PromptExecutionError",
    "RegistryNotLoadedError",
    "RemoteMCPError",
    "ResourceReadError",
    "ToolExecutionError",
]
