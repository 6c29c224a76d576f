"""The per-crawler data pipeline: collection, batching and URL de-duplication."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

from .collector import Collector, new_data_cell
from .dedup import Deduplicator

if TYPE_CHECKING:
    from .spider import Spider


class Pipeline:
    """Feeds parsed records to a collector running in the background."""

    def __init__(self, collector: Collector | None = None) -> None:
        self.collector = collector if collector is not None else Collector()
        self.deduplicator = Deduplicator()
        self.thread: threading.Thread | None = None

    def start(self) -> threading.Thread:
        """Start the collector's output loop in a background thread."""
        self.thread = threading.Thread(target=self.collector.manage, daemon=True)
        self.thread.start()
        return self.thread

    def ctrl_receive(self) -> None:
        """Tell the collector that no more data will arrive."""
        self.collector.ctrl_receive()

    def ctrl_send(self) -> None:
        self.collector.ctrl_send()

    def collect(
        self,
        rule_name: str,
        data: dict[str, Any],
        url: str,
        parent_url: str,
        download_time: str,
    ) -> None:
        """Hand one record to the collector."""
        self.collector.collect(
            new_data_cell(rule_name, data, url, parent_url, download_time)
        )

    def deduplicate(self, text: str) -> bool:
        """True if the text was seen before; otherwise remember it."""
        return self.deduplicator.compare(text)

    def reset(self, spider: "Spider") -> None:
        self.collector.reset(spider)