"""Adaptive revisit periods for RSS sources."""

from __future__ import annotations

import math
import time
from typing import Callable, Mapping, Sequence

from .reporter import LOG


class RSS:
    """Tracks how often each source should be revisited.

    ``level`` holds the allowed periods in minutes, ascending. A source whose
    feed changed (see :meth:`update`) is revisited sooner; one that did not
    is revisited later.
    """

    def __init__(
        self,
        src: Mapping[str, str],
        level: Sequence[int],
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not level:
            raise ValueError("level must not be empty")
        self.level = list(level)
        self.sources = dict(src)
        self.periods: dict[str, int] = {key: self.level[0] for key in src}
        self.flags: dict[str, bool] = {}
        self._sleep = sleep

    def wait(self, src: str) -> None:
        """Sleep for the source's current period, then adjust the period."""
        current = self.periods.get(src, 0)
        for index, value in enumerate(self.level):
            if value > current:
                minutes = self.level[max(index, 1) - 1]
                LOG.printf(" *     RSS <%s> update period: %s minutes", src, minutes)
                self._sleep(minutes * 60)
                break
        if self.flags.get(src, False):
            period = max(math.floor(current / 1.2), self.level[0])
        else:
            period = min(math.floor(current * 1.2), self.level[-1])
        self.periods[src] = period
        self.flags[src] = False

    def update(self, src: str) -> None:
        """Mark the source as changed since the last wait."""
        self.flags[src] = True