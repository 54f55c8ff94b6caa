from __future__ import annotations

from copy import copy, deepcopy
from typing import Any
from urllib.parse import unquote

from uvicorn.config import LOGGING_CONFIG
from uvicorn.logging import AccessFormatter

__all__ = [
    "Utf8AccessFormatter",
    "build_uvicorn_log_config",
    "debug_log",
    "set_debug_logging",
]

_DEBUG_LOG = False
_ACCESS_ARG_COUNT = 5


def set_debug_logging(enabled: bool) -> None:
    global _DEBUG_LOG
    _DEBUG_LOG = enabled


def debug_log(message: str) -> None:
    if _DEBUG_LOG:
        print(f"[shiritori debug] {message}", flush=True)


class Utf8AccessFormatter(AccessFormatter):
    """Access log formatter that prints the percent-decoded query (``/?c=しりとり``)."""

    def formatMessage(self, record):  # type: ignore[override]
        args = record.args
        if not isinstance(args, tuple) or len(args) != _ACCESS_ARG_COUNT:
            return super().formatMessage(record)
        client_addr, method, full_path, http_version, status_code = args
        if isinstance(full_path, str):
            full_path = unquote(full_path, encoding="utf-8", errors="replace")
        decoded = copy(record)
        decoded.args = (client_addr, method, full_path, http_version, status_code)
        return super().formatMessage(decoded)


def build_uvicorn_log_config(debug: bool = False) -> dict[str, Any]:
    """uvicorn's default logging config with the UTF-8 access formatter swapped in."""
    config = deepcopy(LOGGING_CONFIG)
    access = config.get("formatters", {}).get("access")
    if isinstance(access, dict):
        access["()"] = f"{__name__}.Utf8AccessFormatter"
    if debug:
        for logger in config.get("loggers", {}).values():
            if isinstance(logger, dict):
                logger["level"] = "DEBUG"
    return config
