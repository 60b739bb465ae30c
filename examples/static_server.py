# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Declarative server with in-process handlers.

The configuration is a Python value instead of a control plane document, and
each handler is a local function. Everything else (listing, invocation,
result shaping, refresh) is the same as for remote handlers.

Usage:
    python examples/static_server.py
    npx @modelcontextprotocol/inspector python examples/static_server.py
"""

from __future__ import annotations

import platform
from typing import Any

import anyio

from remote_mcp import RemoteMCPServer, ServerSettings, StaticConfigSource, configure_logging


def echo(arguments: dict[str, Any]) -> str:
    return str(arguments.get("message", ""))


async def system_info(arguments: dict[str, Any]) -> dict[str, str]:
    return {"python": platform.python_version(), "platform": platform.platform()}


def readme() -> str:
    return "# Static server\n\nServed from an in-process handler."


def review(arguments: dict[str, Any]) -> list[dict[str, Any]]:
    return [
        {"role": "assistant", "content": "You are a careful code reviewer."},
        {"role": "user", "content": f"Review this change:\n\n{arguments.get('diff', '')}"},
    ]


CONFIG = {
    "tools": [
        {
            "name": "echo",
            "description": "Echo a message back",
            "inputSchema": {
                "type": "object",
                "properties": {"message": {"type": "string"}},
                "required": ["message"],
            },
            "handler": echo,
        },
        {"name": "system_info", "description": "Report interpreter details", "handler": system_info},
    ],
    "resources": [
        {"uri": "docs://readme", "name": "readme", "mimeType": "text/markdown", "handler": readme},
    ],
    "prompts": [
        {
            "name": "review",
            "description": "Ask for a code review",
            "arguments": [{"name": "diff", "description": "Unified diff", "required": True}],
            "handler": review,
        },
    ],
}


async def main() -> None:
    configure_logging("INFO")
    server = RemoteMCPServer(StaticConfigSource(CONFIG), settings=ServerSettings(name="static-example"))
    await server.serve_stdio()


if __name__ == "__main__":
    anyio.run(main)
