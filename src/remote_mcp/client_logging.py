# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Forwarding of server log records to MCP clients.

A client opts in with ``logging/setLevel``. From then on every record on the
``remote_mcp`` logger at or above that session's level is delivered to it as
``notifications/message``. Records are queued by a :class:`logging.Handler`
and sent by :meth:`ClientLoggingService.flush`, which the server awaits at the
end of each request and which :meth:`ClientLoggingService.pump` runs in the
background while the server is up.
"""

from __future__ import annotations

import logging
import weakref
from collections import deque
from typing import Any

import anyio
from anyio.abc import TaskStatus
from mcp import types

from .utils import get_logger

_logger = get_logger("remote_mcp.client_logging")

_NAMESPACE = "remote_mcp"

LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "notice": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "alert": logging.CRITICAL,
    "emergency": logging.CRITICAL,
}
"""MCP logging levels and the Python levels they correspond to."""


def to_mcp_level(levelno: int) -> types.LoggingLevel:
    """Map a Python logging level onto the closest MCP level."""
    if levelno >= logging.CRITICAL:
        return "critical"
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warning"
    if levelno >= logging.INFO:
        return "info"
    return "debug"


class _ForwardingHandler(logging.Handler):
    def __init__(self, service: ClientLoggingService) -> None:
        super().__init__(logging.NOTSET)
        self.service = service

    def emit(self, record: logging.LogRecord) -> None:
        # Delivery diagnostics must not feed back into the queue.
        if record.name == _logger.name:
            return
        self.service.enqueue(record)


class ClientLoggingService:
    """Per-session log levels and the queue of records awaiting delivery.

    Args:
        max_pending: Records held between flushes; the oldest are dropped first
    """

    def __init__(self, *, max_pending: int = 1000) -> None:
        self._session_levels: weakref.WeakKeyDictionary[Any, int] = weakref.WeakKeyDictionary()
        self._pending: deque[logging.LogRecord] = deque(maxlen=max_pending)
        self._handler = _ForwardingHandler(self)
        self._wakeup: anyio.Event | None = None

    @property
    def attached(self) -> bool:
        return self._handler in logging.getLogger(_NAMESPACE).handlers

    @property
    def lowest_level(self) -> int:
        """The most verbose level any session asked for, or ``logging.NOTSET``."""
        return min(self._session_levels.values(), default=logging.NOTSET)

    def set_level(self, session: Any, level: int) -> None:
        """Record *session*'s threshold and start forwarding records."""
        self._session_levels[session] = level
        if not self.attached:
            logging.getLogger(_NAMESPACE).addHandler(self._handler)

    def close(self) -> None:
        """Stop forwarding and discard queued records."""
        logging.getLogger(_NAMESPACE).removeHandler(self._handler)
        self._pending.clear()

    def enqueue(self, record: logging.LogRecord) -> None:
        if not self._session_levels or record.levelno < self.lowest_level:
            return
        self._pending.append(record)
        if self._wakeup is not None:
            self._wakeup.set()

    async def flush(self) -> None:
        """Deliver every queued record."""
        while self._pending:
            await self.handle_log_record(self._pending.popleft())

    async def handle_log_record(self, record: logging.LogRecord) -> None:
        data: dict[str, Any] = {"message": record.getMessage()}
        event = getattr(record, "event", None)
        if event is not None:
            data["event"] = event
        await self._deliver(record.levelno, to_mcp_level(record.levelno), data, record.name)

    async def log_message(self, level: types.LoggingLevel, data: Any, *, logger: str | None = None) -> None:
        """Send *data* to every session whose level admits *level*."""
        await self._deliver(LOG_LEVELS[level], level, data, logger)

    async def _deliver(self, levelno: int, level: types.LoggingLevel, data: Any, logger: str | None) -> None:
        for session, threshold in list(self._session_levels.items()):
            if levelno < threshold:
                continue
            try:
                await session.send_log_message(level=level, data=data, logger=logger)
            except Exception as exc:
                _logger.debug(
                    "dropping session after failed log delivery: %s",
                    exc,
                    extra={"event": "client_logging.delivery_failed"},
                )
                self._session_levels.pop(session, None)

    async def pump(self, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
        """Deliver records as they are queued until cancelled."""
        self._wakeup = anyio.Event()
        task_status.started()
        try:
            while True:
                if not self._pending:
                    await self._wakeup.wait()
                self._wakeup = anyio.Event()
                await self.flush()
        finally:
            self._wakeup = None


__all__ = ["LOG_LEVELS", "ClientLoggingService", "to_mcp_level"]
