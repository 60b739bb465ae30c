# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Configuration sources.

A source produces a validated :class:`CapabilityConfig` or raises
:class:`ConfigUnavailableError`. Three implementations are provided:

- :class:`HttpConfigSource`: GET a JSON document from a control plane URL.
- :class:`FileConfigSource`: read a JSON document from disk.
- :class:`StaticConfigSource`: a fixed value, typically with in-process handlers.

Use :func:`create_config_source_from_env` to pick one from the environment.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable
from urllib.parse import unquote, urlparse

import anyio
import httpx

from .config import CapabilityConfig
from .exceptions import ConfigUnavailableError
from .utils import get_logger

_logger = get_logger("remote_mcp.sources")

CONTROL_PLANE_ENV = "MCP_CONTROL_PLANE_URL"


@runtime_checkable
class ConfigSource(Protocol):
    """Protocol for configuration sources."""

    async def fetch(self) -> CapabilityConfig:
        """Return the current configuration.

        Raises:
            ConfigUnavailableError: Source unreachable or document malformed.
        """
        ...


class HttpConfigSource:
    """Fetch the configuration from a control plane over HTTP.

    Args:
        url: Control plane URL serving the JSON document
        timeout: Request timeout in seconds
        headers: Extra request headers
        client: Optional shared ``httpx.AsyncClient``
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 30.0,
        headers: Mapping[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self._timeout = timeout
        self._headers = dict(headers or {})
        self._client = client

    async def fetch(self) -> CapabilityConfig:
        try:
            if self._client is not None:
                response = await self._client.get(self.url, headers=self._headers, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(self.url, headers=self._headers)
        except httpx.HTTPError as exc:
            raise ConfigUnavailableError(f"Control plane error: {exc}") from exc

        if not response.is_success:
            raise ConfigUnavailableError(
                f"Control plane error: Failed to fetch config: {response.reason_phrase or response.status_code}"
            )

        try:
            document = response.json()
        except ValueError as exc:
            raise ConfigUnavailableError(f"Control plane error: malformed JSON: {exc}") from exc

        return CapabilityConfig.from_document(document)

    def __repr__(self) -> str:
        return f"HttpConfigSource({self.url!r})"


class FileConfigSource:
    """Read the configuration from a JSON file on every fetch."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    async def fetch(self) -> CapabilityConfig:
        try:
            raw = await anyio.Path(self.path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigUnavailableError(f"Config file error: {exc}") from exc

        try:
            document = json.loads(raw)
        except ValueError as exc:
            raise ConfigUnavailableError(f"Config file error: malformed JSON in {self.path}: {exc}") from exc

        return CapabilityConfig.from_document(document)

    def __repr__(self) -> str:
        return f"FileConfigSource({str(self.path)!r})"


class StaticConfigSource:
    """Serve a fixed configuration.

    Accepts a :class:`CapabilityConfig` or a mapping in document shape;
    mappings are validated once at construction.

    Example:
        >>> def greet(args: dict) -> str:
        ...     return f"Hello, {args.get('who', 'world')}"
        >>> source = StaticConfigSource({
        ...     "prompts": [{"name": "greet", "description": "Say hi", "handler": greet}],
        ... })
    """

    def __init__(self, config: CapabilityConfig | Mapping[str, Any]) -> None:
        self._config = CapabilityConfig.from_document(config)

    async def fetch(self) -> CapabilityConfig:
        return self._config


def create_config_source_from_env(
    location: str | None = None,
    *,
    timeout: float = 30.0,
) -> ConfigSource:
    """Build a config source from *location* or ``MCP_CONTROL_PLANE_URL``.

    ``http(s)://`` locations yield an :class:`HttpConfigSource`; ``file://``
    URLs and plain paths yield a :class:`FileConfigSource`.

    Raises:
        ConfigUnavailableError: No location given and the variable is unset.
    """
    location = location or os.getenv(CONTROL_PLANE_ENV)
    if not location:
        raise ConfigUnavailableError(
            f"Please provide control plane URL as argument or set {CONTROL_PLANE_ENV}"
        )

    parsed = urlparse(location)
    if parsed.scheme in {"http", "https"}:
        return HttpConfigSource(location, timeout=timeout)
    if parsed.scheme == "file":
        return FileConfigSource(unquote(parsed.path))

    _logger.debug("treating control plane location as a file path", extra={"event": "sources.file", "path": location})
    return FileConfigSource(location)


__all__ = [
    "CONTROL_PLANE_ENV",
    "ConfigSource",
    "FileConfigSource",
    "HttpConfigSource",
    "StaticConfigSource",
    "create_config_source_from_env",
]
