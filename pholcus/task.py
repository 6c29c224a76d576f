"""Tasks handed from the master node to clients, and the store that holds them."""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Mapping

_WIRE_NAMES = (
    ("id", "Id"),
    ("spiders", "Spiders"),
    ("out_type", "OutType"),
    ("max_page", "MaxPage"),
    ("thread_num", "ThreadNum"),
    ("base_sleeptime", "BaseSleeptime"),
    ("random_sleep_period", "RandomSleepPeriod"),
    ("docker_cap", "DockerCap"),
    ("docker_queue_cap", "DockerQueueCap"),
)


@dataclass
class Task:
    """Settings plus spiders (``{"name": ..., "keyword": ...}``) for one client run."""

    id: int = 0
    spiders: list[dict[str, str]] = field(default_factory=list)
    out_type: str = ""
    max_page: int = 0
    thread_num: int = 0
    base_sleeptime: int = 0
    random_sleep_period: int = 0
    docker_cap: int = 0
    docker_queue_cap: int = 0

    def to_dict(self) -> dict[str, Any]:
        """The task in its wire form."""
        data = {wire: getattr(self, attr) for attr, wire in _WIRE_NAMES}
        data["Spiders"] = [dict(sp) for sp in self.spiders]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Task":
        """Build a task from its wire form; key case is ignored."""
        lowered = {str(key).lower(): value for key, value in data.items()}
        task = cls()
        for attr, wire in _WIRE_NAMES:
            if wire.lower() in lowered:
                setattr(task, attr, lowered[wire.lower()])
        task.spiders = [
            {str(k): str(v) for k, v in sp.items()} for sp in (task.spiders or [])
        ]
        return task


class TaskJar:
    """FIFO store of tasks."""

    def __init__(self, capacity: int = 1024) -> None:
        self._tasks: "queue.Queue[Task]" = queue.Queue(maxsize=capacity)
        self._lock = threading.Lock()

    def push(self, task: Task) -> None:
        """Number the task by the current store size and add it."""
        with self._lock:
            task.id = self._tasks.qsize()
            self._tasks.put(task)

    def out(self, client_num: int) -> Task:
        """Take the next task and hand out a copy of it."""
        return replace(self._tasks.get())

    def into(self, task: Task) -> None:
        """Add a task received from the master."""
        self._tasks.put(task)

    def pull(self, timeout: float | None = None) -> Task:
        """Take the next task, waiting up to ``timeout`` seconds."""
        try:
            return self._tasks.get(timeout=timeout)
        except queue.Empty:
            raise TimeoutError("no task available") from None

    def __len__(self) -> int:
        return self._tasks.qsize()