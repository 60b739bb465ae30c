# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Server settings dataclasses."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class ServerSettings:
    """Tunable parameters for RemoteMCPServer.

    All fields have sane defaults. Override only what you need.

    Example:
        >>> from remote_mcp.settings import ServerSettings
        >>> settings = ServerSettings(refresh_interval=15.0, handler_timeout=10.0)
    """

    name: str = "remote-mcp-server"
    """Server name reported during initialization."""

    version: str = "0.1.0"
    """Server version reported during initialization."""

    instructions: str | None = None
    """Optional instructions forwarded to clients."""

    refresh_interval: float = 60.0
    """Seconds between configuration refresh ticks."""

    handler_timeout: float = 30.0
    """Timeout in seconds for one remote handler call."""

    config_timeout: float = 30.0
    """Timeout in seconds for one control plane fetch."""

    pagination_limit: int = 50
    """Page size for list operations (tools, resources, prompts)."""

    @classmethod
    def from_env(cls, **overrides: object) -> ServerSettings:
        """Build settings from ``REMOTE_MCP_*`` environment variables.

        Explicit keyword overrides win over the environment.
        """
        values: dict[str, object] = {}
        for env_name, field_name in (
            ("REMOTE_MCP_REFRESH_INTERVAL", "refresh_interval"),
            ("REMOTE_MCP_HANDLER_TIMEOUT", "handler_timeout"),
            ("REMOTE_MCP_CONFIG_TIMEOUT", "config_timeout"),
        ):
            raw = os.getenv(env_name)
            if raw:
                try:
                    values[field_name] = float(raw)
                except ValueError as exc:
                    raise ValueError(f"{env_name} must be a number, got {raw!r}") from exc
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]


__all__ = ["ServerSettings"]
