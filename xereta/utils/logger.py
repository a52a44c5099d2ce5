"""
Console logger used by every xereta module.

Lines look like ``[12:00:01.123] ℹ [Tracker] message key=value`` and go
to stderr in colour.  Each line is also kept, without ANSI codes, in a
per-analysis buffer, and appended to ``.logs/`` when
``XERETA_WRITE_TO_FILE=true``.

The buffer, the running timers and the open log file belong to the
current ``contextvars`` context.  Starting a log file or clearing the
buffer installs a fresh state object for that context, so an analysis
running as its own task never writes to or clears another's.
"""

from __future__ import annotations

import asyncio
import contextvars
import dataclasses
import os
import pathlib
import re
import sys
import time
from datetime import UTC, datetime
from typing import TextIO

_ANSI_RE = re.compile(r"\033\[[0-9;]*m")

RESET = "\033[0m"
BOLD = "\033[1m"
DIM = "\033[2m"
RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
MAGENTA = "\033[35m"
CYAN = "\033[36m"
GRAY = "\033[90m"

# level -> (colour, symbol)
_LEVELS = {
    "info": (CYAN, "ℹ"),
    "success": (GREEN, "✓"),
    "warn": (YELLOW, "⚠"),
    "error": (RED, "✗"),
    "debug": (GRAY, "•"),
    "timing": (MAGENTA, "⏱"),
}

_MAX_STRING = 200


@dataclasses.dataclass
class _AnalysisLog:
    lines: list[str] = dataclasses.field(default_factory=list)
    timers: dict[str, tuple[float, str]] = dataclasses.field(default_factory=dict)
    stream: TextIO | None = None
    # task that opened the stream; only it may close or drop the file
    owner: object | None = None


_current: contextvars.ContextVar[_AnalysisLog] = contextvars.ContextVar("xereta_analysis_log")


def _state() -> _AnalysisLog:
    state = _current.get(None)
    if state is None:
        state = _AnalysisLog()
        _current.set(state)
    return state


def _task() -> object | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


def get_log_buffer() -> list[str]:
    """Lines logged so far in this context, ANSI codes removed."""
    return list(_state().lines)


def clear_log_buffer() -> None:
    """Start an empty buffer and timer set for this context.

    A log file opened by the calling task stays open; one inherited
    from a parent task is left to that task.
    """
    state = _state()
    if state.owner is _task():
        _current.set(_AnalysisLog(stream=state.stream, owner=state.owner))
    else:
        _current.set(_AnalysisLog())


# ============================================================================
# Log files
# ============================================================================


def start_log_file(label: str) -> str | None:
    """Open ``.logs/<label>_<UTC timestamp>.log`` for this context.

    Args:
        label: Usually the analysed host; ``www.`` is dropped and
            unsafe characters become ``_``.

    Returns:
        The path, or ``None`` when file output is off or the file
        could not be opened.
    """
    if os.environ.get("XERETA_WRITE_TO_FILE", "").lower() != "true":
        return None
    end_log_file()
    state = _state()

    started = datetime.now(UTC)
    stem = re.sub(r"[^A-Za-z0-9.-]", "_", label.removeprefix("www."))[:50]
    directory = pathlib.Path.cwd() / ".logs"
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{stem}_{started:%Y-%m-%d_%H-%M-%S}.log"

    try:
        stream = path.open("a", encoding="utf-8")
    except OSError as exc:
        sys.stderr.write(f"{RED}✗ [Logger] Cannot open {path}: {exc}{RESET}\n")
        return None

    rule = "=" * 80
    stream.write(f"\n{rule}\n  Xereta analysis - {label}\n  Started: {started.isoformat()}\n{rule}\n")
    _current.set(_AnalysisLog(lines=list(state.lines), timers=dict(state.timers), stream=stream, owner=_task()))
    return str(path)


def end_log_file() -> None:
    """Close the file this task opened with :func:`start_log_file`, if any."""
    state = _state()
    stream = state.stream
    if stream is None or state.owner is not _task():
        return
    _current.set(dataclasses.replace(state, stream=None, owner=None))
    try:
        stream.close()
    except OSError as exc:
        sys.stderr.write(f"{YELLOW}⚠ [Logger] Cannot close log file: {exc}{RESET}\n")


# ============================================================================
# Rendering
# ============================================================================


def _clock() -> str:
    now = datetime.now(UTC)
    return f"{now:%H:%M:%S}.{now.microsecond // 1000:03d}"


def _format_duration(ms: float) -> str:
    if ms >= 60000:
        minutes, rest = divmod(ms, 60000)
        return f"{int(minutes)}m {rest / 1000:.1f}s"
    if ms >= 1000:
        return f"{ms / 1000:.2f}s"
    return f"{int(ms)}ms"


def _render(value: object) -> str:
    """Colour *value* by type.  Containers show their size only."""
    if value is None:
        return f"{DIM}None{RESET}"
    if isinstance(value, bool):
        return f"{GREEN if value else RED}{value}{RESET}"
    if isinstance(value, (int, float)):
        return f"{YELLOW}{value}{RESET}"
    if isinstance(value, str):
        text = value if len(value) <= _MAX_STRING else value[: _MAX_STRING - 3] + "..."
        return f'{GREEN}"{text}"{RESET}'
    if isinstance(value, dict):
        return f"{CYAN}{{{len(value)} keys}}{RESET}"
    if isinstance(value, (list, tuple, set, frozenset)):
        return f"{CYAN}[{len(value)} items]{RESET}"
    return str(value)


def _write(line: str) -> None:
    sys.stderr.write(line + "\n")
    plain = _ANSI_RE.sub("", line)
    state = _state()
    state.lines.append(plain)
    if state.stream is not None:
        state.stream.write(plain + "\n")
        state.stream.flush()


# ============================================================================
# Logger
# ============================================================================


class Logger:
    """Writes lines tagged with a fixed context such as ``"Tracker"``."""

    def __init__(self, context: str = "Xereta") -> None:
        self._context = context

    @property
    def context(self) -> str:
        return self._context

    def _log(self, level: str, message: str, data: dict[str, object] | None = None) -> None:
        colour, symbol = _LEVELS.get(level, _LEVELS["info"])
        parts = [f"{GRAY}[{_clock()}]{RESET}", f"{colour}{symbol}{RESET}", f"{BOLD}[{self._context}]{RESET}", message]
        if data:
            parts.extend(f"{DIM}{key}={RESET}{_render(value)}" for key, value in data.items())
        _write(" ".join(parts))

    def info(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("info", message, data)

    def success(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("success", message, data)

    def warn(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("warn", message, data)

    def error(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("error", message, data)

    def debug(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("debug", message, data)

    def start_timer(self, label: str) -> None:
        """Start timing *label*; stop with :meth:`end_timer`."""
        _state().timers[f"{self._context}:{label}"] = (time.monotonic(), _clock())
        self._log("timing", f"Starting: {label}")

    def end_timer(self, label: str, message: str | None = None) -> float:
        """Stop timing *label*, log it, and return the elapsed milliseconds."""
        started = _state().timers.pop(f"{self._context}:{label}", None)
        if started is None:
            self.warn(f'Timer "{label}" was not started')
            return 0.0
        started_at, started_clock = started
        elapsed = (time.monotonic() - started_at) * 1000
        text = message or f"Completed: {label}"
        self._log(
            "timing",
            f"{text} {DIM}took{RESET} {MAGENTA}{_format_duration(elapsed)}{RESET} {DIM}(started {started_clock}){RESET}",
        )
        return elapsed

    def section(self, title: str) -> None:
        """Divider between the phases of one analysis."""
        rule = f"{BLUE}{'─' * 60}{RESET}"
        for line in ("", rule, f"{BLUE}{BOLD}  {title}{RESET}", rule, ""):
            _write(line)


def create_logger(context: str) -> Logger:
    return Logger(context)
