"""Per-spider request queues with priorities, and the shared scheduler."""

from __future__ import annotations

import threading
from collections import deque

from .dedup import Deduplicator
from .request import Request
from .runtime import Status

# Highest priority a request may have; larger values are lowered to it.
MAX_PRIORITY = 5


class SourceManager:
    """Request queues keyed by spider id, one FIFO per priority level.

    Every request handed out by :meth:`use` takes one of ``capacity`` slots,
    which :meth:`free` gives back.
    """

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self._in_use = 0
        self._cond = threading.Condition()
        self._queues: dict[int, list[deque[Request]]] = {}

    def push(self, req: Request) -> None:
        """Queue a request under its spider id; requests without one are dropped."""
        spider_id = req.spider_id
        if spider_id is None:
            return
        priority = min(req.priority, MAX_PRIORITY)
        with self._cond:
            levels = self._queues.setdefault(spider_id, [])
            while len(levels) <= priority:
                levels.append(deque())
            levels[priority].append(req)

    def use(self, spider_id: int) -> Request | None:
        """Take the oldest request of the highest priority for a spider.

        Waits for a free slot once a request is taken; returns None when the
        spider has nothing queued.
        """
        with self._cond:
            for level in reversed(self._queues.get(spider_id, [])):
                if level:
                    req = level.popleft()
                    while self._in_use >= self.capacity:
                        self._cond.wait()
                    self._in_use += 1
                    return req
        return None

    def free(self) -> None:
        """Give back one slot, waiting until one is taken."""
        with self._cond:
            while self._in_use == 0:
                self._cond.wait()
            self._in_use -= 1
            self._cond.notify_all()

    def is_empty(self, spider_id: int) -> bool:
        """True when the spider has no queued request."""
        with self._cond:
            return not any(self._queues.get(spider_id, []))

    def is_all_empty(self) -> bool:
        """True when no slot is taken and no spider has a queued request."""
        with self._cond:
            if self._in_use > 0:
                return False
            return not any(
                level for levels in self._queues.values() for level in levels
            )

    def clear_all(self) -> None:
        """Drop every queued request and release every slot."""
        with self._cond:
            self._in_use = 0
            self._queues = {}
            self._cond.notify_all()


class Scheduler(SourceManager):
    """Source manager that drops repeated requests and can be stopped."""

    def __init__(self, capacity: int) -> None:
        super().__init__(capacity)
        self._seen = Deduplicator()
        self._push_lock = threading.Lock()
        self.status = Status.RUN

    def push(self, req: Request) -> None:
        """Queue a request unless stopped or its URL and method were seen before."""
        with self._push_lock:
            if self.status == Status.STOP:
                return
            if self.compare(req.url + req.method):
                return
            super().push(req)

    def compare(self, url: str) -> bool:
        """Return True if the key was seen before; otherwise record it."""
        return self._seen.compare(url)

    def use(self, spider_id: int) -> Request | None:
        if self.status == Status.STOP:
            return None
        return super().use(spider_id)

    def stop(self) -> None:
        """Stop handing out requests and clear all queues."""
        self.status = Status.STOP
        self.clear_all()

    def is_stopped(self) -> bool:
        return self.status == Status.STOP


class _Holder:
    def __init__(self) -> None:
        self.scheduler: Scheduler | None = None


_holder = _Holder()


def init_scheduler(capacity: int) -> Scheduler:
    """Replace the shared scheduler with a fresh one and return it."""
    _holder.scheduler = Scheduler(capacity)
    return _holder.scheduler


def current() -> Scheduler:
    """The shared scheduler."""
    if _holder.scheduler is None:
        raise RuntimeError("scheduler has not been initialised")
    return _holder.scheduler