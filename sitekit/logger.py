"""Coloured, filtered log output."""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Iterable

from .util import pad_left_to

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

ERR_RED = 196
WARN_YELLOW = 214
INFO_GREEN = 77
DBG_BLUE = 26
TRACE_VIOLET = 98
GRAY = 241

_OWN_TARGET = __name__.split(".")[0]
_WORD_WIDTH = 12


def paint(color: int, text: str) -> str:
    """Wrap ``text`` in a 256-colour foreground escape sequence."""
    return f"\x1b[38;5;{color}m{text}\x1b[0m"


def level_color(level: int) -> int:
    if level >= logging.ERROR:
        return ERR_RED
    if level >= logging.WARNING:
        return WARN_YELLOW
    if level >= logging.INFO:
        return INFO_GREEN
    if level >= logging.DEBUG:
        return DBG_BLUE
    return TRACE_VIOLET


class LogSelect(enum.Enum):
    """Extra log sources that can be switched on."""

    WASM = 0b01
    SERVER = 0b10


class LogFlag:
    """The set of selected extra log sources."""

    def __init__(self, logs: Iterable[LogSelect] = ()) -> None:
        bits = 0
        for log in logs:
            bits |= log.value
        self.bits = bits

    def __repr__(self) -> str:
        return f"LogFlag(bits={self.bits:#04b})"

    def is_set(self, log: LogSelect) -> bool:
        return bool(log.value & self.bits)

    def matches(self, target: str) -> bool:
        return self.do_server_log(target) or self.do_wasm_log(target)

    def do_server_log(self, target: str) -> bool:
        return self.is_set(LogSelect.SERVER) and target.startswith(("hyper", "axum"))

    def do_wasm_log(self, target: str) -> bool:
        return self.is_set(LogSelect.WASM) and target.startswith(("wasm", "walrus"))


class LogFilter(logging.Filter):
    """Pass errors, own records and selected dependency records."""

    def __init__(self, flag: LogFlag | None = None) -> None:
        super().__init__()
        self.flag = flag

    def filter(self, record: logging.LogRecord) -> bool:
        target = record.name
        return (
            record.levelno >= logging.ERROR
            or target.startswith(_OWN_TARGET)
            or (self.flag is not None and self.flag.matches(target))
        )


def split_first_word(message: str) -> tuple[str, str]:
    """Split at the first space; without one the word is empty."""
    word, sep, rest = message.partition(" ")
    return (word, rest) if sep else ("", message)


def dependency(target: str) -> str | None:
    """The top-level name of a foreign logger, or None for our own."""
    if target.startswith(_OWN_TARGET):
        return None
    head, sep, _ = target.partition(".")
    return head if sep else None


class LogFormatter(logging.Formatter):
    """Right-aligned coloured first word followed by the message."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        color = level_color(record.levelno)
        dep = dependency(record.name)
        if dep is not None:
            label = pad_left_to(f"[{dep}]", _WORD_WIDTH)
            return f"{paint(color, label)} {message}"
        word, rest = split_first_word(message)
        return f"{paint(color, pad_left_to(word, _WORD_WIDTH))} {rest}"


_setup_lock = threading.Lock()
_active_flag: LogFlag | None = None


def setup(verbose: int, logs: Iterable[LogSelect]) -> LogFlag:
    """Install the log handler once; later calls return the first flag."""
    global _active_flag
    with _setup_lock:
        if _active_flag is None:
            if verbose == 0:
                level = logging.INFO
            elif verbose == 1:
                level = logging.DEBUG
            else:
                level = TRACE
            flag = LogFlag(logs)
            handler = logging.StreamHandler()
            handler.addFilter(LogFilter(flag))
            handler.setFormatter(LogFormatter())
            root = logging.getLogger()
            root.addHandler(handler)
            root.setLevel(level)
            _active_flag = flag
        return _active_flag