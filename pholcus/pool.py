"""A fixed-capacity FIFO queue that can be resized between uses."""

from __future__ import annotations

import threading
from collections import deque
from typing import Any, Iterable


class BoundedQueue:
    """FIFO queue of at most ``size`` items; pushes beyond that are refused."""

    def __init__(self, size: int) -> None:
        self.size = size
        self._items: deque[Any] = deque()
        self._cond = threading.Condition()

    def push(self, item: Any) -> bool:
        """Add an item; return False if the queue is full."""
        with self._cond:
            if len(self._items) >= self.size:
                return False
            self._items.append(item)
            self._cond.notify()
            return True

    def push_all(self, items: Iterable[Any]) -> None:
        for item in items:
            self.push(item)

    def pull(self) -> Any:
        """Remove and return the oldest item, waiting until one is there."""
        with self._cond:
            while not self._items:
                self._cond.wait()
            return self._items.popleft()

    def exchange(self, num: int) -> int:
        """Make room for ``num`` items and return how many must be added to reach it."""
        with self._cond:
            last = len(self._items)
            if last >= num:
                return 0
            if self.size < num:
                self.size = num
            return num - last

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)