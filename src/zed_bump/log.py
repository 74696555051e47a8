"""Structured terminal logging for zed-bump runs.

Every level writes to stderr: stdout is reserved for the URL (or the
``--dry-run`` JSON) that the release step produces.
"""

from __future__ import annotations

import os
import sys
from enum import IntEnum

from rich.console import Console
from rich.text import Text


class LogLevel(IntEnum):
    TRACE = 10
    DEBUG = 20
    INFO = 30
    SUCCESS = 35
    WARNING = 40
    ERROR = 50


_LEVEL_BY_NAME = {
    "trace": LogLevel.TRACE,
    "debug": LogLevel.DEBUG,
    "info": LogLevel.INFO,
    "success": LogLevel.SUCCESS,
    "warning": LogLevel.WARNING,
    "warn": LogLevel.WARNING,
    "error": LogLevel.ERROR,
}
LOG_LEVEL_NAMES: tuple[str, ...] = tuple(_LEVEL_BY_NAME)
_DEFAULT_LEVEL = LogLevel.INFO
_configured_level: LogLevel | None = None
_no_color: bool | None = None


def _normalize_level(value: str | None) -> LogLevel:
    if value is None:
        return _DEFAULT_LEVEL
    normalized = value.strip().lower()
    if not normalized:
        return _DEFAULT_LEVEL
    return _LEVEL_BY_NAME.get(normalized, _DEFAULT_LEVEL)


def _level_from_environment() -> LogLevel:
    explicit = os.environ.get("ZED_BUMP_LOG_LEVEL")
    if explicit and explicit.strip():
        return _normalize_level(explicit)
    # GitHub sets RUNNER_DEBUG=1 when a workflow is re-run with debug logging.
    if os.environ.get("RUNNER_DEBUG") == "1":
        return LogLevel.DEBUG
    return _DEFAULT_LEVEL


def configured_level() -> LogLevel:
    global _configured_level
    if _configured_level is None:
        _configured_level = _level_from_environment()
    return _configured_level


def set_level(value: str | None) -> None:
    """Set the active log level."""
    global _configured_level
    _configured_level = _normalize_level(value)


def set_no_color(value: bool) -> None:
    """Force color output off (``True``) or defer to the environment (``False``)."""
    global _no_color
    _no_color = True if value else None


def reset() -> None:
    """Drop cached settings so the environment is consulted again."""
    global _configured_level, _no_color
    _configured_level = None
    _no_color = None


def is_enabled(level: LogLevel) -> bool:
    return level >= configured_level()


def _color_disabled() -> bool:
    if _no_color is not None:
        return _no_color
    return bool(os.environ.get("NO_COLOR") or os.environ.get("ZED_BUMP_NO_COLOR"))


def _console() -> Console:
    return Console(
        file=sys.stderr,
        soft_wrap=True,
        highlight=False,
        no_color=_color_disabled(),
    )


def _default_style(level: LogLevel) -> str:
    if level is LogLevel.TRACE:
        return "dim"
    if level is LogLevel.DEBUG:
        return "cyan"
    if level is LogLevel.SUCCESS:
        return "green"
    if level is LogLevel.WARNING:
        return "yellow"
    if level is LogLevel.ERROR:
        return "bold red"
    return ""


def emit(level: LogLevel, message: str, *, style: str | None = None) -> None:
    if not is_enabled(level):
        return
    text = Text(message, style=style or _default_style(level))
    _console().print(text)


def trace(message: str, *, style: str | None = None) -> None:
    emit(LogLevel.TRACE, message, style=style)


def debug(message: str, *, style: str | None = None) -> None:
    emit(LogLevel.DEBUG, message, style=style)


def info(message: str, *, style: str | None = None) -> None:
    emit(LogLevel.INFO, message, style=style)


def success(message: str, *, style: str | None = None) -> None:
    emit(LogLevel.SUCCESS, message, style=style)


def warning(message: str, *, style: str | None = None) -> None:
    emit(LogLevel.WARNING, message, style=style)


def error(message: str, *, style: str | None = None) -> None:
    emit(LogLevel.ERROR, message, style=style)
