"""Runtime state shared by a crawl: modes, task settings, counters and channels."""

from __future__ import annotations

import enum
import queue
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any

APP_NAME = "Pholcus data collector v0.4.8"

# Upper bound of crawlers kept in the crawl pool.
CRAWLS_CAP = 50

# Capacity of a collector's data channel.
DATA_CAP = 2 << 14

DB_URL = "127.0.0.1:27017"
DB_NAME = "temp-collection-tentinet"
DB_COLLECTION = "news"


class RunMode(enum.IntEnum):
    """Role of this node."""

    OFFLINE = 0
    SERVER = 1
    CLIENT = 2


class Header(enum.IntEnum):
    """Kinds of data exchanged between nodes."""

    REQTASK = 1
    TASK = 2
    LOG = 3


class Status(enum.IntEnum):
    """Running state of a component."""

    STOP = 0
    RUN = 1


@dataclass
class TaskConf:
    """Settings shared by every part of a running task."""

    run_mode: int = RunMode.OFFLINE
    port: int = 2015
    master: str = "127.0.0.1"
    thread_num: int = 20
    base_sleeptime: int = 1000
    random_sleep_period: int = 3000
    out_type: str = "csv"
    docker_cap: int = 10000
    docker_queue_cap: int = 0
    max_page: int = 100

    def auto_docker_queue_cap(self) -> None:
        """Choose the output pool size from the docker capacity."""
        cap = self.docker_cap
        if cap <= 10:
            self.docker_queue_cap = 500
        elif cap <= 500:
            self.docker_queue_cap = 200
        elif cap <= 1000:
            self.docker_queue_cap = 100
        elif cap <= 10000:
            self.docker_queue_cap = 50
        elif cap <= 100000:
            self.docker_queue_cap = 10
        else:
            self.docker_queue_cap = 4


@dataclass
class Report:
    """Summary sent when one spider finishes."""

    spider_name: str
    keyword: str
    num: str
    time: str


class PageCounter:
    """Thread-safe count of downloaded and failed pages."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total = 0
        self._failed = 0

    def reset(self) -> None:
        with self._lock:
            self._total = 0
            self._failed = 0

    def count(self) -> None:
        with self._lock:
            self._total += 1

    def count_fail(self) -> None:
        with self._lock:
            self._failed += 1

    def get(self, which: int = 0) -> int:
        """Total pages for 0, successes for a positive value, failures for a negative one."""
        with self._lock:
            if which > 0:
                return self._total - self._failed
            if which < 0:
                return self._failed
            return self._total


@dataclass
class NetData:
    """A message passed between nodes."""

    type: int = 0
    body: Any = None
    sender: str = ""
    receiver: str = ""


TASK = TaskConf()
TASK.auto_docker_queue_cap()

PAGES = PageCounter()

# Reports of finished spiders.
REPORT_QUEUE: "queue.Queue[Report]" = queue.Queue()

# Messages waiting to be sent to the master node.
SEND_QUEUE: "queue.Queue[Any]" = queue.Queue(maxsize=1024)

start_time: datetime = datetime.now()
crawl_status: int = Status.STOP


def push_net_data(body: Any) -> None:
    """Queue a message for sending to the other node."""
    SEND_QUEUE.put(body)