import threading
import time
from types import SimpleNamespace

from pholcus.crawlpool import CrawlPool
from pholcus.runtime import CRAWLS_CAP


def _pool():
    return CrawlPool(crawler_factory=lambda i: SimpleNamespace(id=i), wait=0.01)


def test_reset_caps_number():
    pool = _pool()
    assert pool.reset(3) == 3
    assert pool.reset(CRAWLS_CAP + 30) == CRAWLS_CAP


def test_use_creates_distinct_crawlers():
    pool = _pool()
    pool.reset(3)
    ids = [pool.use().id for _ in range(3)]
    assert ids == [0, 1, 2]


def test_free_makes_crawler_reusable():
    pool = _pool()
    pool.reset(2)
    first = pool.use()
    second = pool.use()
    pool.free(second.id)
    assert pool.use() is second
    assert first.id != second.id


def test_use_waits_for_free():
    pool = _pool()
    pool.reset(1)
    first = pool.use()
    result = []
    worker = threading.Thread(target=lambda: result.append(pool.use()))
    worker.start()
    time.sleep(0.05)
    assert result == []
    pool.free(first.id)
    worker.join(2)
    assert result == [first]


def test_stop_returns_none():
    pool = _pool()
    pool.reset(2)
    pool.use()
    pool.stop()
    assert pool.use() is None
    pool.reset(1)
    assert pool.use().id == 0