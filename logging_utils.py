"""Tagged console logging shared by every beatpulse module.

Records render as ``[LEVEL][Tag] message | key=value``; the tag travels in
the record's ``extra`` so handlers and tests can filter on it.
"""
from __future__ import annotations

import logging
from typing import Any, Union

LOGGER_NAME = "beatpulse"
DEFAULT_TAG = "Engine"

_LEVEL_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}

_logger = logging.getLogger(LOGGER_NAME)
if not _logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s][%(tag)s] %(message)s"))
    _logger.addHandler(handler)
    _logger.setLevel(logging.INFO)


class _TagAdapter(logging.LoggerAdapter):
    def process(self, msg: Any, kwargs: dict[str, Any]):
        kwargs.setdefault("extra", {})["tag"] = kwargs.pop("tag", DEFAULT_TAG)
        return msg, kwargs


_tagged = _TagAdapter(_logger, {})


def level_value(level: Union[str, int, None]) -> int:
    """Numeric logging level for a name or number; unknown values mean INFO."""
    if isinstance(level, bool):
        return logging.INFO
    if isinstance(level, int):
        return level if level > 0 else logging.INFO
    if not isinstance(level, str) or not level.strip():
        return logging.INFO
    name = level.strip().upper()
    name = _LEVEL_ALIASES.get(name, name)
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def log_event(level: Union[str, int], tag: str, message: str, **fields: Any) -> None:
    """Log *message* under *tag*; keyword fields are appended as key=value."""
    if fields:
        message = message + " | " + " ".join(f"{k}={v}" for k, v in fields.items())
    _tagged.log(level_value(level), message, tag=tag)


def set_log_level(level: Union[str, int, None]) -> None:
    _logger.setLevel(level_value(level))


def get_log_level() -> str:
    return logging.getLevelName(_logger.level)
