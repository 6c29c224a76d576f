"""A reusable pool of crawlers."""

from __future__ import annotations

import threading
from typing import Any, Callable

from .crawler import Crawler
from .runtime import CRAWLS_CAP, Status


class CrawlPool:
    """Hands out idle crawlers, creating them as needed up to a cap."""

    def __init__(
        self,
        crawler_factory: Callable[[int], Any] | None = None,
        wait: float = 0.5,
    ) -> None:
        self._factory = crawler_factory or Crawler
        self.wait = wait
        self.cap = 0
        self._src: list[Any] = []
        self._using: dict[int, bool] = {}
        self._cond = threading.Condition()
        self.status = Status.RUN

    def reset(self, spider_num: int) -> int:
        """Size the pool for a number of spiders; return how many may run at once."""
        num = min(spider_num, CRAWLS_CAP)
        with self._cond:
            self.cap = max(num, len(self._src))
            self._using = {}
            self.status = Status.RUN
            self._cond.notify_all()
        return num

    def use(self) -> Any:
        """Take an idle crawler, waiting for one; None once the pool is stopped."""
        with self._cond:
            while True:
                if self.status == Status.STOP:
                    return None
                for index, crawler in enumerate(self._src):
                    if not self._using.get(index, False):
                        self._using[index] = True
                        return crawler
                if not self._auto_add():
                    self._cond.wait(self.wait)

    def free(self, crawler_id: int) -> None:
        """Return a crawler to the pool."""
        with self._cond:
            self._using[crawler_id] = False
            self._cond.notify_all()

    def stop(self) -> None:
        """Stop handing out crawlers and drop all of them."""
        with self._cond:
            self.status = Status.STOP
            self._src = []
            self._using = {}
            self._cond.notify_all()

    def _auto_add(self) -> bool:
        count = len(self._src)
        if count >= self.cap:
            return False
        self._src.append(self._factory(count))
        self._using[count] = False
        return True