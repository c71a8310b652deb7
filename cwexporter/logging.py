"""Structured key/value logger that writes logfmt or JSON lines to stderr."""

from __future__ import annotations

import json
import sys
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator

_MISSING_VALUE = "(MISSING)"
_WRITE_LOCK = threading.Lock()


def _pairs(keyvals: Iterable[Any]) -> Iterator[tuple[str, Any]]:
    """Group a flat key/value sequence into pairs, marking a dangling key."""
    items = list(keyvals)
    if len(items) % 2:
        items.append(_MISSING_VALUE)
    it = iter(items)
    for key, value in zip(it, it):
        yield str(key), value


def _caller() -> str:
    """Return ``file:line`` of the first frame outside this module."""
    frame = sys._getframe(1)
    while frame is not None and frame.f_code.co_filename == __file__:
        frame = frame.f_back
    if frame is None:
        return "???"
    filename = frame.f_code.co_filename.replace("\\", "/").rsplit("/", 1)[-1]
    return f"{filename}:{frame.f_lineno}"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, BaseException):
        return str(value)
    return str(value)


def _logfmt_value(value: Any) -> str:
    text = _text(value)
    if text is None:
        return "null"
    if any(ch <= " " or ch in '="' or not ch.isprintable() for ch in text):
        return json.dumps(text, ensure_ascii=False)
    return text


def _json_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


@dataclass(frozen=True)
class Logger:
    """Levelled logger carrying a fixed set of context key/value pairs."""

    fmt: str = "logfmt"
    debug_enabled: bool = False
    context: tuple = ()
    enabled: bool = True

    def debug(self, message, *args) -> None:
        if self.debug_enabled:
            self._log("debug", ("msg", message, *args))

    def info(self, message, *args) -> None:
        self._log("info", ("msg", message, *args))

    def error(self, err, message, *args) -> None:
        self._log("error", ("msg", message, "err", err, *args))

    def warn(self, message, *args) -> None:
        self._log("warn", ("msg", message, *args))

    def with_(self, *args) -> "Logger":
        return replace(self, context=self.context + tuple(args))

    def is_debug_enabled(self) -> bool:
        return self.debug_enabled

    def _log(self, level: str, keyvals: tuple) -> None:
        if not self.enabled:
            return
        pairs = [("level", level), ("ts", _timestamp()), ("caller", _caller())]
        pairs.extend(_pairs(self.context))
        pairs.extend(_pairs(keyvals))
        if self.fmt == "json":
            record = {key: _json_value(value) for key, value in pairs}
            line = json.dumps(record, sort_keys=True, ensure_ascii=False)
        else:
            line = " ".join(f"{key}={_logfmt_value(value)}" for key, value in pairs)
        with _WRITE_LOCK:
            sys.stderr.write(line + "\n")
            sys.stderr.flush()


def new_logger(format, debug_enabled, *args) -> Logger:
    """Create a logger writing ``json`` or logfmt lines with the given context."""
    fmt = "json" if format == "json" else "logfmt"
    return Logger(fmt=fmt, debug_enabled=bool(debug_enabled), context=tuple(args))


def new_nop_logger() -> Logger:
    """Create a logger that discards everything."""
    return Logger(enabled=False)