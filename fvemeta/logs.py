"""Levelled, timestamped log output to stdout or a file."""

from __future__ import annotations

import os
import sys
import time
from enum import IntEnum
from typing import IO


class LogLevel(IntEnum):
    QUIET = -1
    CRITICAL = 0
    ERROR = 1
    WARNING = 2
    INFO = 3
    DEBUG = 4


_LOG_MODE = "a"


class _LogState:
    def __init__(self) -> None:
        self.verbosity: LogLevel = LogLevel.QUIET
        self.stream: IO[str] | None = None
        self.owned = False


_state = _LogState()


def configure(level: int, path: str | os.PathLike[str] | None = None) -> None:
    """Set the verbosity and where messages go (stdout when path is None).

    A level outside the known ones means DEBUG. If the file cannot be opened,
    messages fall back to stdout.
    """
    close()

    stream: IO[str] | None = sys.stdout
    owned = False
    if path is not None:
        try:
            stream = open(path, _LOG_MODE, encoding="utf-8")
            owned = True
        except OSError as exc:
            print(f"Error opening log file (falling back to stdout): {exc}", file=sys.stderr)

    try:
        verbosity = LogLevel(level)
    except ValueError:
        verbosity = LogLevel.DEBUG

    if verbosity is LogLevel.QUIET:
        if owned and stream is not None:
            stream.close()
        stream = None
        owned = False

    _state.verbosity = verbosity
    _state.stream = stream
    _state.owned = owned

    target = "stdout" if path is None else os.fspath(path)
    log(
        LogLevel.DEBUG,
        f"Verbosity level to {verbosity.name} ({int(verbosity)}) into '{target}'\n",
    )


def log(level: int, message: str) -> int:
    """Write a message if the verbosity allows it; return its length, else 0."""
    level = int(level)
    verbosity = _state.verbosity
    if verbosity < level or verbosity <= LogLevel.QUIET or level < LogLevel.CRITICAL:
        return 0
    if level > LogLevel.DEBUG:
        level = LogLevel.DEBUG
    stream = _state.stream
    if stream is None:
        return 0
    stream.write(f"{time.ctime()} [{LogLevel(level).name}] ")
    stream.write(message)
    stream.flush()
    return len(message)


def close() -> None:
    """Close the log file if one is open and silence further output."""
    if _state.owned and _state.stream is not None:
        _state.stream.close()
    _state.stream = None
    _state.owned = False
    _state.verbosity = LogLevel.QUIET


def chomp(text: str) -> str:
    """Drop a trailing '\\n', '\\r' or '\\r\\n'."""
    length = len(text)
    if length == 0:
        return text
    if length >= 2 and text[length - 2] == "\r":
        return text[: length - 2]
    if text[-1] in "\n\r":
        return text[:-1]
    return text