# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Holder of the active capability configuration.

The registry owns exactly one :class:`CapabilityConfig` at a time. It is
replaced wholesale, never merged. Readers call :meth:`current` once per
request and work from that snapshot, so a concurrent swap is observed either
entirely or not at all.

Everything runs on one event loop and no ``await`` sits between the
comparison and the assignment in :meth:`swap_if_changed`, so plain attribute
reassignment is atomic with respect to every reader.
"""

from __future__ import annotations

from .config import CapabilityConfig
from .exceptions import RegistryNotLoadedError
from .utils import get_logger

_logger = get_logger("remote_mcp.registry")


class CapabilityRegistry:
    """Single-value store for the active config."""

    def __init__(self) -> None:
        self._active: CapabilityConfig | None = None
        self._generation = 0

    @property
    def loaded(self) -> bool:
        return self._active is not None

    @property
    def generation(self) -> int:
        """Number of times the active config has been replaced."""
        return self._generation

    def load(self, config: CapabilityConfig) -> None:
        """Replace the active config unconditionally."""
        self._active = config
        self._generation += 1
        _logger.info(
            "capability config loaded",
            extra={
                "event": "registry.load",
                "generation": self._generation,
                "tools": len(config.tools),
                "resources": len(config.resources),
                "prompts": len(config.prompts),
            },
        )

    def current(self) -> CapabilityConfig:
        """Return the active config.

        Raises:
            RegistryNotLoadedError: If nothing has been loaded yet.
        """
        active = self._active
        if active is None:
            raise RegistryNotLoadedError()
        return active

    def swap_if_changed(self, candidate: CapabilityConfig) -> bool:
        """Install *candidate* if it differs structurally from the active config.

        Returns:
            True if the active config was replaced.
        """
        if self._active is not None and candidate == self._active:
            return False
        self.load(candidate)
        return True


__all__ = ["CapabilityRegistry"]
