"""File logging of errors and a tracing stream on standard error."""

from __future__ import annotations

import inspect
import os
import sys
import threading
from datetime import date, datetime
from typing import TextIO

from .util import WORKDIR_ENV

_STAMP = "%Y/%m/%d %H:%M:%S"


def _caller(depth: int = 3) -> tuple[str, int]:
    """File and line of the frame ``depth`` levels above this function."""
    frame = inspect.currentframe()
    for _ in range(depth):
        if frame is None:
            break
        frame = frame.f_back
    if frame is None:
        return "???", 0
    return frame.f_code.co_filename, frame.f_lineno


class FileLog:
    """Appends labelled messages, with the caller's location, to a daily log file."""

    def __init__(self, is_open: bool = False, file_path: str | None = None) -> None:
        self.is_open = is_open
        self.file_path = file_path
        self._lock = threading.Lock()

    def open(self) -> None:
        """Enable output."""
        self.is_open = True

    def close(self) -> None:
        """Disable output."""
        self.is_open = False

    def _log(self, label: str, message: str) -> None:
        if not self.is_open or self.file_path is None:
            return
        file, line = _caller()
        stamp = datetime.now().strftime(_STAMP)
        with self._lock, open(self.file_path, "a", encoding="utf-8") as handle:
            handle.write(f"{stamp} {file}:{line}: {label} {message}\n")

    def log_error(self, message: str) -> None:
        self._log("[ERROR]", message)

    def log_info(self, message: str) -> None:
        self._log("[INFO]", message)


class Strace:
    """Writes time-stamped trace lines to a stream, standard error by default."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.is_open = True
        self.stream = stream

    def open(self) -> None:
        """Enable output."""
        self.is_open = True

    def close(self) -> None:
        """Disable output."""
        self.is_open = False

    def println(self, message: str) -> None:
        if not self.is_open:
            return
        out = self.stream if self.stream is not None else sys.stderr
        out.write(f"{datetime.now().strftime(_STAMP)} {message}\n")
        out.flush()


class _State:
    def __init__(self) -> None:
        self.filelog: FileLog | None = None
        self.strace: Strace | None = None


_state = _State()


def _new_filelog(folder: str) -> FileLog:
    today = date.today()
    filename = f"log.{today.year}-{today.month}-{today.day}"
    os.makedirs(folder, mode=0o755, exist_ok=True)
    path = os.path.join(folder, filename)
    with open(path, "a", encoding="utf-8"):
        pass
    return FileLog(True, path)


def init_filelog(is_open: bool, path: str = "") -> FileLog:
    """Create the shared file log; with no path it goes under ``<workdir>/log``."""
    if not is_open:
        _state.filelog = FileLog(False)
        return _state.filelog
    if not path:
        workdir = os.environ.get(WORKDIR_ENV, "")
        if not workdir:
            workdir = os.path.dirname(os.path.abspath(sys.argv[0] if sys.argv else ""))
        path = os.path.join(workdir, "log")
    _state.filelog = _new_filelog(path)
    return _state.filelog


def log_inst() -> FileLog:
    """Return the shared file log, creating a closed one if none exists."""
    if _state.filelog is None:
        init_filelog(False, "")
    assert _state.filelog is not None
    return _state.filelog


def strace_inst() -> Strace:
    """Return the shared trace writer."""
    if _state.strace is None:
        _state.strace = Strace()
    return _state.strace