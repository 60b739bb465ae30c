# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Server driven by a control plane document.

Usage:
    MCP_CONTROL_PLANE_URL=https://control.example.com/mcp.json python examples/remote_server.py
    python examples/remote_server.py examples/control_plane.json
"""

from __future__ import annotations

import sys

import anyio

from remote_mcp import ConfigUnavailableError, RemoteMCPServer, configure_logging


async def main(location: str | None) -> int:
    configure_logging("INFO")
    try:
        server = RemoteMCPServer.from_env(location)
        await server.serve_stdio()
    except ConfigUnavailableError as exc:
        print(exc.message, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(anyio.run(main, sys.argv[1] if len(sys.argv) > 1 else None))
