"""Remembers what has been seen before."""

from __future__ import annotations

import threading
from typing import Any

from .util import make_unique


class Deduplicator:
    """Samples objects by fingerprint and reports repeats."""

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self._lock = threading.Lock()

    def compare(self, obj: Any) -> bool:
        """Return True if an equal object was seen before; otherwise record it."""
        key = make_unique(obj)
        with self._lock:
            if key in self._seen:
                return True
            self._seen.add(key)
            return False