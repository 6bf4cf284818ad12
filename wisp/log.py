"""Bridge the ``logger(level, payload)`` callable to the standard logging module."""
from __future__ import annotations

from typing import Callable, Optional
import json
import logging

_LEVELS = {
    "debug": logging.DEBUG,
    "metric": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def stdlib_logger(logger: Optional[logging.Logger] = None) -> Callable[[str, object], None]:
    """Return a ``(level, payload)`` callable that writes to ``logger``; dict payloads become JSON."""
    target = logger or logging.getLogger("wisp")

    def _log(level: str, payload: object) -> None:
        lvl = _LEVELS.get(str(level).lower(), logging.INFO)
        if not target.isEnabledFor(lvl):
            return
        if isinstance(payload, dict):
            payload = json.dumps(payload, default=str, sort_keys=True)
        target.log(lvl, "%s", payload)

    return _log
