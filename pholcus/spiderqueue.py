"""The queue of spiders to run in the current task."""

from __future__ import annotations

from typing import Iterable, Iterator

from .spider import CAN_ADD, Spider


class SpiderQueue:
    """Ordered spiders; each one's ``id`` is its position."""

    def __init__(self) -> None:
        self._spiders: list[Spider] = []

    def reset(self) -> None:
        self._spiders = []

    def add(self, spider: Spider) -> None:
        spider.id = len(self._spiders)
        self._spiders.append(spider)

    def add_all(self, spiders: Iterable[Spider]) -> None:
        for spider in spiders:
            self.add(spider)

    def add_keywords(self, keywords: str) -> None:
        """Expand keyword-accepting spiders into one copy per ``|``-separated keyword.

        Spiders whose keyword was set explicitly are kept once, after the copies.
        """
        if keywords == "":
            raise ValueError("keywords must not be empty")
        fixed = [sp for sp in self._spiders if sp.keyword != CAN_ADD]
        open_ = [sp for sp in self._spiders if sp.keyword == CAN_ADD]
        if not open_:
            raise ValueError("no spider in the queue accepts keywords")

        self.reset()
        for keyword in keywords.split("|"):
            keyword = keyword.strip(" ")
            if not keyword:
                continue
            for spider in open_:
                spider.keyword = keyword
                self.add(spider.copy())
        if not self._spiders:
            self.add_all(fixed + open_)
        self.add_all(fixed)

    def get_by_index(self, index: int) -> Spider:
        return self._spiders[index]

    def get_by_name(self, name: str) -> Spider | None:
        return next((sp for sp in self._spiders if sp.name == name), None)

    def __len__(self) -> int:
        return len(self._spiders)

    def __iter__(self) -> Iterator[Spider]:
        return iter(list(self._spiders))