# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Logging helpers.

Library code only configures the ``remote_mcp`` namespace logger, never the
root logger. Handlers write to stderr because stdout carries the stdio
transport.
"""

from __future__ import annotations

import logging
import sys
from typing import Literal

_NAMESPACE = "remote_mcp"


def get_logger(name: str) -> logging.Logger:
    """Return a logger nested under the ``remote_mcp`` namespace."""
    if name != _NAMESPACE and not name.startswith(f"{_NAMESPACE}."):
        name = f"{_NAMESPACE}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] | int = "INFO",
) -> logging.Logger:
    """Attach a stderr handler to the namespace logger and set its level.

    Repeated calls only adjust the level.
    """
    logger = logging.getLogger(_NAMESPACE)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)

    return logger
