"""The node: task store, spider queue and crawl pool, plus the message handlers."""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from collections.abc import Mapping
from typing import Any, Callable, Protocol

from . import runtime
from .crawlpool import CrawlPool
from .runtime import NetData, RunMode, Status
from .spiderqueue import SpiderQueue
from .task import Task, TaskJar

_LOGGER = logging.getLogger("pholcus")

# Spiders per task handed to clients.
SPIDERS_PER_TASK = 10

_POLL = 0.05


class Transport(Protocol):
    """Connection to other nodes."""

    def count_nodes(self) -> int: ...

    def request(self, body: Any, operation: str) -> None: ...


class Node:
    """State of this node, built from the shared task settings."""

    def __init__(self, transport: Transport | None = None) -> None:
        self.run_mode = runtime.TASK.run_mode
        self.port = f":{runtime.TASK.port}"
        self.master = runtime.TASK.master
        self.transport = transport
        self.task_jar = TaskJar()
        self.spiders = SpiderQueue()
        self.crawls = CrawlPool()
        self.status = Status.RUN

    def count_nodes(self) -> int:
        """Number of connected peer nodes."""
        return self.transport.count_nodes() if self.transport is not None else 0

    def attach(self, transport: Transport) -> None:
        """Connect a transport and, outside offline mode, forward queued logs."""
        self.transport = transport
        if self.run_mode != RunMode.OFFLINE:
            threading.Thread(target=self._forward_logs, daemon=True).start()

    def _forward_logs(self) -> None:
        while self.transport is not None:
            self.transport.request(runtime.SEND_QUEUE.get(), "log")

    def add_new_task(self) -> tuple[int, int]:
        """Split the spider queue into tasks for clients; return (tasks, spiders)."""
        conf = runtime.TASK
        length = len(self.spiders)
        task = Task(
            thread_num=conf.thread_num,
            base_sleeptime=conf.base_sleeptime,
            random_sleep_period=conf.random_sleep_period,
            out_type=conf.out_type,
            docker_cap=conf.docker_cap,
            docker_queue_cap=conf.docker_queue_cap,
            max_page=conf.max_page,
        )
        tasks_num = 0
        spiders_num = 0
        for index, spider in enumerate(self.spiders):
            task.spiders.append({"name": spider.name, "keyword": spider.keyword})
            spiders_num += 1
            if index > 0 and index % SPIDERS_PER_TASK == 0 and length > SPIDERS_PER_TASK:
                self.task_jar.push(dataclasses.replace(task, spiders=list(task.spiders)))
                tasks_num += 1
                task.spiders = []
        if task.spiders:
            self.task_jar.push(dataclasses.replace(task, spiders=list(task.spiders)))
            tasks_num += 1
        return tasks_num, spiders_num

    def get_task_always(self) -> None:
        """Ask the master for a task."""
        if self.transport is not None:
            self.transport.request(None, "task")

    def down_task(self, timeout: float | None = None) -> Task:
        """Wait for a task, asking the master once per connection."""
        deadline = None if timeout is None else time.monotonic() + timeout
        requested = False
        while True:
            if len(self.task_jar):
                return self.task_jar.pull()
            if self.count_nodes() > 0:
                if not requested:
                    self.get_task_always()
                    requested = True
            else:
                requested = False
            if deadline is not None and time.monotonic() >= deadline:
                raise TimeoutError("no task received")
            time.sleep(_POLL)

    def check_port(self) -> bool:
        if runtime.TASK.port == 0:
            _LOGGER.warning(" *     -- the distributed port must not be empty")
            return False
        return True

    def check_all(self) -> bool:
        if runtime.TASK.master == "" or not self.check_port():
            _LOGGER.warning(" *     -- the master address must not be empty")
            return False
        return True


_task_lock = threading.Lock()


def handle_client_task(node: Node, body: Any) -> None:
    """Store a task received from the master."""
    if not isinstance(body, Mapping):
        _LOGGER.error("cannot decode task: %r", body)
        return None
    try:
        task = Task.from_dict(body)
    except (TypeError, ValueError, AttributeError):
        _LOGGER.error("cannot decode task: %r", body)
        return None
    node.task_jar.into(task)
    return None


def handle_server_task(node: Node) -> dict[str, Any]:
    """Hand the next task to a client, in wire form."""
    with _task_lock:
        return node.task_jar.out(node.count_nodes()).to_dict()


def handle_log(sender: str, body: Any) -> None:
    """Print a report received from another node."""
    _LOGGER.info(" * ")
    _LOGGER.info(" *     [ %s ]    %s", sender, body)
    _LOGGER.info(" * ")
    return None


Handler = Callable[[Node, NetData], Any]

CLIENT_API: dict[str, Handler] = {
    "task": lambda node, data: handle_client_task(node, data.body),
    "log": lambda node, data: handle_log(data.sender, data.body),
}

SERVER_API: dict[str, Handler] = {
    "task": lambda node, data: handle_server_task(node),
    "log": lambda node, data: handle_log(data.sender, data.body),
}


class _Holder:
    def __init__(self) -> None:
        self.node: Node | None = None


_holder = _Holder()


def start_node() -> Node:
    """Create the shared node once, check its settings and return it."""
    if _holder.node is not None:
        return _holder.node
    node = Node()
    _holder.node = node
    if node.run_mode == RunMode.SERVER:
        if node.check_port():
            _LOGGER.info(" *     running mode: [ server ]")
    elif node.run_mode == RunMode.CLIENT:
        if node.check_all():
            _LOGGER.info(" *     running mode: [ client ]")
    else:
        _LOGGER.info(" *     running mode: [ offline ]")
    return node