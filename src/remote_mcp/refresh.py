# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Periodic configuration refresh.

The loop has two states. It sits in ``IDLE`` between ticks; a tick moves it
to ``REFRESHING`` for the fetch, the comparison and the possible swap, and
back to ``IDLE`` whatever the outcome. Ticks fire at a fixed rate. A tick that
fires while the previous one is still running is a no-op.

A failed fetch is logged and leaves the active config in force. The loop
keeps running until it is stopped.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import Enum

import anyio
from anyio.abc import TaskGroup, TaskStatus

from .config import CapabilityConfig
from .exceptions import ConfigUnavailableError
from .registry import CapabilityRegistry
from .sources import ConfigSource
from .utils import get_logger

_logger = get_logger("remote_mcp.refresh")

ChangeCallback = Callable[[CapabilityConfig | None, CapabilityConfig], Awaitable[None]]


class RefreshState(str, Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


class RefreshLoop:
    """Re-fetches the configuration and swaps it into the registry on change.

    Args:
        registry: Registry whose active config is refreshed
        source: Where configurations come from
        interval: Seconds between ticks
        on_change: Awaited with ``(old, new)`` after every swap
    """

    def __init__(
        self,
        registry: CapabilityRegistry,
        source: ConfigSource,
        *,
        interval: float = 60.0,
        on_change: ChangeCallback | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.registry = registry
        self.source = source
        self.interval = interval
        self._on_change = on_change
        self._state = RefreshState.IDLE
        self._cancel_scope: anyio.CancelScope | None = None
        self.ticks = 0
        self.failures = 0

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def running(self) -> bool:
        return self._cancel_scope is not None

    async def tick(self) -> bool:
        """Run one refresh.

        Returns:
            True if the active config was replaced. False if nothing changed,
            the fetch failed, or another tick was already in progress.
        """
        if self._state is RefreshState.REFRESHING:
            _logger.debug("refresh already in progress; skipping tick", extra={"event": "config.refresh.skipped"})
            return False

        self._state = RefreshState.REFRESHING
        self.ticks += 1
        try:
            try:
                candidate = await self.source.fetch()
            except ConfigUnavailableError as exc:
                self.failures += 1
                _logger.warning(
                    "Failed to refresh configuration: %s",
                    exc,
                    extra={"event": "config.refresh.failed", "error": str(exc)},
                )
                return False
            except Exception as exc:
                self.failures += 1
                _logger.exception(
                    "unexpected error while refreshing configuration",
                    extra={"event": "config.refresh.error", "error": str(exc)},
                )
                return False

            previous = self.registry.current() if self.registry.loaded else None
            if not self.registry.swap_if_changed(candidate):
                return False

            _logger.info("capability configuration changed", extra={"event": "config.refresh.swapped"})
            if self._on_change is not None:
                try:
                    await self._on_change(previous, candidate)
                except Exception as exc:
                    _logger.exception(
                        "configuration change callback failed",
                        extra={"event": "config.refresh.callback_error", "error": str(exc)},
                    )
            return True
        finally:
            self._state = RefreshState.IDLE

    async def run(self, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
        """Tick every ``interval`` seconds until cancelled or stopped."""
        with anyio.CancelScope() as scope:
            self._cancel_scope = scope
            try:
                async with anyio.create_task_group() as tg:
                    task_status.started()
                    while True:
                        await anyio.sleep(self.interval)
                        # Fixed rate: a slow fetch does not delay the next tick.
                        tg.start_soon(self.tick)
            finally:
                self._cancel_scope = None

    async def start(self, task_group: TaskGroup) -> None:
        """Start :meth:`run` in *task_group* and return once it is scheduled."""
        if self.running:
            raise RuntimeError("refresh loop is already running")
        await task_group.start(self.run)

    def stop(self) -> None:
        """Cancel the loop, including any tick in flight."""
        if self._cancel_scope is not None:
            self._cancel_scope.cancel()


__all__ = ["ChangeCallback", "RefreshLoop", "RefreshState"]
