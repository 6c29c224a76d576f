"""Collects data cells from a spider and writes them out in batches."""

from __future__ import annotations

import logging
import queue
import threading
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from . import runtime
from .output import output_csv, output_excel, output_mongo
from .reporter import LOG

if TYPE_CHECKING:
    from .spider import Spider

_LOGGER = logging.getLogger("pholcus")

DataCell = dict[str, Any]


def new_data_cell(
    rule_name: str,
    data: dict[str, Any],
    url: str,
    parent_url: str,
    download_time: str,
) -> DataCell:
    """One collected record with its origin."""
    return {
        "RuleName": rule_name,
        "Data": data,
        "Url": url,
        "ParentUrl": parent_url,
        "DownloadTime": download_time,
    }


class DockerQueue:
    """A growing set of batches ("dockers"), at most ``cap`` of them, one current."""

    def __init__(self, queue_cap: int | None = None) -> None:
        cap = runtime.TASK.docker_queue_cap if queue_cap is None else queue_cap
        self.cap = max(cap, 2)
        self.curr = 0
        self.using: dict[int, bool] = {0: True}
        self.dockers: list[list[DataCell]] = [[]]
        self._cond = threading.Condition(threading.RLock())

    def change(self) -> None:
        """Make a free docker current, waiting for one if all are in use."""
        with self._cond:
            while True:
                free = next((k for k, v in self.using.items() if not v), None)
                if free is not None:
                    self.curr = free
                    self.using[free] = True
                    return
                if not self.auto_add():
                    self._cond.wait(0.5)

    def recover(self, index: int) -> None:
        """Empty a docker and mark it free."""
        with self._cond:
            self.dockers[index] = []
            self.using[index] = False
            self._cond.notify_all()

    def auto_add(self) -> bool:
        """Add a free docker if the cap allows; return whether one was added."""
        with self._cond:
            count = len(self.dockers)
            if count >= self.cap:
                return False
            self.dockers.append([])
            self.using[count] = False
            self._cond.notify_all()
            return True


class Collector:
    """Buffers a spider's data cells and writes full batches in the background."""

    def __init__(
        self,
        base_dir: str | Path = "data",
        report_queue: "queue.Queue[runtime.Report] | None" = None,
    ) -> None:
        self.base_dir = base_dir
        self.report_queue = (
            report_queue if report_queue is not None else runtime.REPORT_QUEUE
        )
        self._out_cond = threading.Condition()
        self._sum_lock = threading.Lock()
        self.reset(None)

    def reset(self, spider: "Spider | None") -> None:
        """Prepare for a new spider run."""
        self.spider = spider
        self.out_type = runtime.TASK.out_type
        self.docker_cap = runtime.TASK.docker_cap
        self.data: "queue.Queue[DataCell]" = queue.Queue(maxsize=runtime.DATA_CAP)
        self.docker_queue = DockerQueue()
        self._ctrl: "queue.Queue[bool]" = queue.Queue(maxsize=1)
        self.sum_range: tuple[int, int] = (0, 0)
        self.out_count = [0, 0]

    @property
    def total(self) -> int:
        """Number of cells written so far."""
        return self.sum_range[1]

    def _set_sum(self, add: int) -> tuple[int, int]:
        with self._sum_lock:
            self.sum_range = (self.sum_range[1], self.sum_range[1] + add)
            return self.sum_range

    def collect(self, cell: DataCell) -> None:
        self.data.put(cell)

    def ctrl_send(self) -> None:
        """Signal that collection is running."""
        self._ctrl.put(True)

    def ctrl_receive(self) -> None:
        """Signal that no more cells will arrive."""
        self._ctrl.get()

    def manage(self) -> None:
        """Store cells until told to finish, write the rest, then report."""
        self.ctrl_send()
        while not (self._ctrl.empty() and self.data.empty()):
            try:
                cell = self.data.get(timeout=0.01)
            except queue.Empty:
                continue
            self._docker_one(cell)
        self._go_output(self.docker_queue.curr)
        with self._out_cond:
            self._out_cond.wait_for(lambda: self.out_count[0] <= self.out_count[1])
        self.report()

    def _docker_one(self, cell: DataCell) -> None:
        dq = self.docker_queue
        dq.dockers[dq.curr].append(cell)
        if len(dq.dockers[dq.curr]) >= self.docker_cap:
            self._go_output(dq.curr)
            dq.change()

    def _go_output(self, index: int) -> None:
        with self._out_cond:
            self.out_count[0] += 1

        def work() -> None:
            try:
                self.output(index)
            finally:
                with self._out_cond:
                    self.out_count[1] += 1
                    self._out_cond.notify_all()

        threading.Thread(target=work, daemon=True).start()

    def _write(self, cells: list[DataCell], sum_range: tuple[int, int]) -> None:
        if self.spider is None:
            raise ValueError("collector has no spider")
        start = runtime.start_time
        if self.out_type == "csv":
            output_csv(self.spider, cells, sum_range, start, self.base_dir)
        elif self.out_type == "mongoDB":
            output_mongo(cells)
        elif self.out_type == "HBase":
            raise ValueError("HBase output is not available")
        else:
            output_excel(self.spider, cells, sum_range, start, self.base_dir)

    def output(self, index: int) -> bool:
        """Write one docker and free it; return False if writing failed."""
        cells = list(self.docker_queue.dockers[index])
        if cells:
            try:
                sum_range = self._set_sum(len(cells))
                self._write(cells, sum_range)
            except Exception as exc:  # a failed batch must not stop the run
                _LOGGER.error("output failed: %s", exc)
                return False
            assert self.spider is not None
            LOG.printf(
                " *     [spider: %s | keyword: %s | batch: %s]   "
                "output %s items, took %.5f minutes",
                self.spider.name,
                self.spider.keyword,
                self.out_count[1] + 1,
                len(cells),
                _elapsed_minutes(),
            )
        self.docker_queue.recover(index)
        return True

    def report(self) -> None:
        """Send the end-of-run summary."""
        self.report_queue.put(
            runtime.Report(
                spider_name=self.spider.name if self.spider else "",
                keyword=self.spider.keyword if self.spider else "",
                num=str(self.total),
                time=f"{_elapsed_minutes():.5f}",
            )
        )


def _elapsed_minutes() -> float:
    return (datetime.now() - runtime.start_time).total_seconds() / 60