# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Translation between MCP requests and configured handlers.

:class:`ProtocolAdapter` is stateless apart from its collaborators: every
operation reads ``registry.current()`` exactly once and works from that
snapshot. A refresh swap is therefore seen by the next request and never
half-way through one.

Result shaping rules:

* ``tools/call``: strings are used verbatim, anything else becomes
  pretty-printed JSON in a single text block.
* ``resources/read``: ``bytes`` become a base64 ``blob``, everything else a
  ``text`` entry. ``mimeType`` is the configured value or ``text/plain``.
* ``prompts/get``: a list of messages is used as-is, a single message is
  wrapped, a plain string becomes one user text message.
"""

from __future__ import annotations

import base64
import json
from collections.abc import Mapping
from typing import Any

from mcp import types
from pydantic import ValidationError

from .exceptions import (
    CapabilityNotFoundError,
    PromptExecutionError,
    RemoteMCPError,
    ResourceReadError,
    ToolExecutionError,
)
from .invoker import HandlerInvoker, RawResult
from .registry import CapabilityRegistry
from .utils import get_logger

_logger = get_logger("remote_mcp.adapter")

DEFAULT_MIME_TYPE = "text/plain"


class ProtocolAdapter:
    """Binds registry lookups and handler calls to the MCP request kinds."""

    def __init__(self, registry: CapabilityRegistry, invoker: HandlerInvoker) -> None:
        self.registry = registry
        self.invoker = invoker

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def list_tools(self) -> list[types.Tool]:
        return [
            types.Tool(name=tool.name, description=tool.description, inputSchema=tool.input_schema)
            for tool in self.registry.current().tools
        ]

    async def call_tool(self, name: str, arguments: Mapping[str, Any] | None = None) -> types.CallToolResult:
        """Invoke the tool called *name*.

        Raises:
            CapabilityNotFoundError: No such tool in the active config.
            ToolExecutionError: The handler failed or its result could not be shaped.
        """
        tool = self.registry.current().tool(name)
        if tool is None:
            raise CapabilityNotFoundError("tool", name)

        try:
            result = await self.invoker.invoke(tool.handler, arguments or {})
            text = to_text(result)
        except RemoteMCPError as exc:
            raise ToolExecutionError(exc) from exc
        except (TypeError, ValueError) as exc:
            raise ToolExecutionError(exc) from exc

        return types.CallToolResult(content=[types.TextContent(type="text", text=text)], isError=False)

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def list_resources(self) -> list[types.Resource]:
        return [
            types.Resource(
                uri=resource.uri,
                name=resource.name,
                description=resource.description,
                mimeType=resource.mime_type,
            )
            for resource in self.registry.current().resources
        ]

    async def read_resource(self, uri: str) -> types.ReadResourceResult:
        """Read the resource at *uri* through its zero-argument handler.

        Raises:
            CapabilityNotFoundError: No such resource in the active config.
            ResourceReadError: The handler failed or its result could not be shaped.
        """
        uri = str(uri)
        resource = self.registry.current().resource(uri)
        if resource is None:
            raise CapabilityNotFoundError("resource", uri)

        mime_type = resource.mime_type or DEFAULT_MIME_TYPE
        try:
            data = await self.invoker.invoke(resource.handler)
            contents = to_resource_contents(uri, mime_type, data)
        except RemoteMCPError as exc:
            raise ResourceReadError(exc) from exc
        except (TypeError, ValueError) as exc:
            raise ResourceReadError(exc) from exc

        return types.ReadResourceResult(contents=[contents])

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    def list_prompts(self) -> list[types.Prompt]:
        return [
            types.Prompt(
                name=prompt.name,
                description=prompt.description,
                arguments=(
                    [
                        types.PromptArgument(name=arg.name, description=arg.description, required=arg.required)
                        for arg in prompt.arguments
                    ]
                    if prompt.arguments is not None
                    else None
                ),
            )
            for prompt in self.registry.current().prompts
        ]

    async def get_prompt(self, name: str, arguments: Mapping[str, Any] | None = None) -> types.GetPromptResult:
        """Render the prompt called *name*.

        Raises:
            CapabilityNotFoundError: No such prompt in the active config.
            PromptExecutionError: The handler failed or returned an unusable shape.
        """
        prompt = self.registry.current().prompt(name)
        if prompt is None:
            raise CapabilityNotFoundError("prompt", name)

        try:
            result = await self.invoker.invoke(prompt.handler, arguments or {})
            messages = to_prompt_messages(result)
        except RemoteMCPError as exc:
            raise PromptExecutionError(exc) from exc
        except (TypeError, ValueError) as exc:
            raise PromptExecutionError(exc) from exc

        return types.GetPromptResult(description=prompt.description or None, messages=messages)


# ----------------------------------------------------------------------
# Result shaping
# ----------------------------------------------------------------------


def to_text(result: RawResult) -> str:
    """Render a raw handler result as tool text."""
    if isinstance(result, str):
        return result
    if isinstance(result, bytes):
        return result.decode("utf-8", errors="replace")
    return json.dumps(result, indent=2, ensure_ascii=False)


def to_resource_contents(
    uri: str,
    mime_type: str,
    data: RawResult,
) -> types.TextResourceContents | types.BlobResourceContents:
    if isinstance(data, (bytes, bytearray)):
        return types.BlobResourceContents(
            uri=uri,
            mimeType=mime_type,
            blob=base64.b64encode(bytes(data)).decode("ascii"),
        )
    return types.TextResourceContents(uri=uri, mimeType=mime_type, text=to_text(data))


def to_prompt_messages(result: RawResult) -> list[types.PromptMessage]:
    if isinstance(result, str):
        return [types.PromptMessage(role="user", content=types.TextContent(type="text", text=result))]

    if isinstance(result, Mapping):
        if "messages" in result and "role" not in result:
            return to_prompt_messages(result["messages"])
        return [_to_prompt_message(result)]

    if isinstance(result, list):
        return [_to_prompt_message(item) for item in result]

    raise TypeError(f"Unsupported prompt result type: {type(result).__name__}")


def _to_prompt_message(item: Any) -> types.PromptMessage:
    if isinstance(item, types.PromptMessage):
        return item
    if not isinstance(item, Mapping) or "role" not in item or "content" not in item:
        raise TypeError("Prompt message requires 'role' and 'content'")

    content = item["content"]
    if isinstance(content, str):
        content = {"type": "text", "text": content}
    try:
        return types.PromptMessage.model_validate({"role": item["role"], "content": content})
    except ValidationError as exc:
        _logger.debug("invalid prompt message", extra={"event": "adapter.prompt.invalid", "error": str(exc)})
        raise ValueError(f"Invalid prompt message: {exc}") from exc


__all__ = [
    "DEFAULT_MIME_TYPE",
    "ProtocolAdapter",
    "to_prompt_messages",
    "to_resource_contents",
    "to_text",
]
