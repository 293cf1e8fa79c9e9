"""Centralized logging configuration for the ``digital_twin`` package.

- ``configure_logging(...)`` attaches a single ``StreamHandler`` to the package
  root logger. Entry points (the Streamlit app, scripts) call it once.
- ``get_logger(name)`` returns a logger under the package root and makes sure a
  ``NullHandler`` is present when nothing has been configured.

Library modules never attach their own handlers.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "digital_twin"
_DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        level = level.strip().upper()
        if level.isdigit():
            return int(level)
        numeric = getattr(logging, level, None)
        if isinstance(numeric, int):
            return numeric
        return logging.INFO
    env_val = os.getenv("DIGITAL_TWIN_LOG_LEVEL")
    if env_val:
        return _parse_level(env_val)
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the package root logger exactly once.

    Subsequent calls only adjust the level, so Streamlit reruns do not stack
    handlers.
    """

    global _CONFIGURED

    root = logging.getLogger(_PKG_LOGGER_NAME)
    root.setLevel(_parse_level(level))
    if _CONFIGURED:
        return

    for handler in list(root.handlers):
        if isinstance(handler, logging.NullHandler):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))
    root.addHandler(handler)
    root.propagate = False
    _CONFIGURED = True


def get_logger(name: str | None = None) -> logging.Logger:
    root = logging.getLogger(_PKG_LOGGER_NAME)
    if not root.handlers:
        root.addHandler(logging.NullHandler())
    if not name or name == _PKG_LOGGER_NAME:
        return root
    if not name.startswith(_PKG_LOGGER_NAME + "."):
        name = f"{_PKG_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
