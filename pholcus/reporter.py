"""Log output that is also forwarded to the master node when running distributed."""

from __future__ import annotations

import logging
from typing import Any

from . import runtime
from .runtime import RunMode, Status

_LOGGER = logging.getLogger("pholcus")


class Reporter:
    """Writes progress messages to the log and, outside offline mode, to the peer node.

    A new reporter starts stopped; call :meth:`run` before use.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or _LOGGER
        self.status = Status.STOP

    def _send(self, text: str) -> None:
        if runtime.TASK.run_mode != RunMode.OFFLINE:
            runtime.push_net_data(text)

    def printf(self, fmt: str, *args: Any) -> None:
        """Log a %-formatted message and forward it."""
        if self.status == Status.STOP:
            return
        text = fmt % args if args else fmt
        self.logger.info("%s", text.rstrip("\n"))
        self._send(text)

    def println(self, *args: Any) -> None:
        """Log the arguments joined by spaces and forward them with a newline."""
        if self.status == Status.STOP:
            return
        text = " ".join(str(arg) for arg in args)
        self.logger.info("%s", text)
        self._send(text + "\n")

    def fatal(self, *args: Any) -> None:
        """Forward and log the message, then end the program with status 1."""
        if self.status == Status.STOP:
            return
        text = " ".join(str(arg) for arg in args)
        self._send(text + "\n")
        self.logger.critical("%s", text)
        raise SystemExit(1)

    def stop(self) -> None:
        self.status = Status.STOP

    def run(self) -> None:
        self.status = Status.RUN


LOG = Reporter()