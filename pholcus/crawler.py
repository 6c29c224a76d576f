"""A crawler runs one spider: it downloads queued requests and parses them."""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime
from typing import Callable

from . import runtime, scheduler
from .downloader import Downloader, HttpDownloader
from .pipeline import Pipeline
from .request import Request
from .spider import Spider

_LOGGER = logging.getLogger("pholcus")


def _http_downloader(spider: Spider) -> Downloader:
    base, random = spider.pausetime
    return HttpDownloader(pause_time=((base + random) // 2) / 1000, proxy=spider.proxy)


class Crawler:
    """Works through the shared scheduler's requests for one spider."""

    def __init__(
        self,
        crawler_id: int = 0,
        pipeline: Pipeline | None = None,
        downloader_factory: Callable[[Spider], Downloader] | None = None,
        idle_wait: float = 0.5,
    ) -> None:
        self.id = crawler_id
        self.pipeline = pipeline if pipeline is not None else Pipeline()
        self._downloader_factory = downloader_factory or _http_downloader
        self.downloader: Downloader = HttpDownloader()
        self.idle_wait = idle_wait
        self.spider: Spider | None = None
        self._lock = threading.Lock()
        self._requests_in = 0
        self._requests_out = 0

    def _require_spider(self) -> Spider:
        if self.spider is None:
            raise RuntimeError("crawler has no spider; call reset() first")
        return self.spider

    def reset(self, spider: Spider) -> "Crawler":
        """Prepare to run a spider."""
        self.pipeline.reset(spider)
        self.spider = spider
        self.downloader = self._downloader_factory(spider)
        with self._lock:
            self._requests_in = 0
            self._requests_out = 0
        return self

    def start(self) -> None:
        """Run the spider to the end and let the pipeline flush its data."""
        spider = self._require_spider()
        self.pipeline.start()
        spider.start()
        self.run()
        self.pipeline.ctrl_receive()

    def run(self) -> None:
        """Take requests until none remain, processing each in its own thread."""
        spider = self._require_spider()
        sched = scheduler.current()
        while True:
            req = sched.use(spider.id)
            if req is None:
                if self.can_stop():
                    break
                time.sleep(self.idle_wait)
                continue
            with self._lock:
                self._requests_in += 1
            runtime.PAGES.count()
            threading.Thread(
                target=self._work, args=(req, sched), daemon=True
            ).start()

    def _work(self, req: Request, sched: scheduler.Scheduler) -> None:
        try:
            _LOGGER.info(" *     start crawl : %s", req.url)
            self.process(req)
        finally:
            sched.free()
            with self._lock:
                self._requests_out += 1

    def process(self, req: Request) -> None:
        """Download a request, parse it and pass its records to the pipeline."""
        try:
            spider = self._require_spider()
            resp = self.downloader.download(req)
            if not resp.success:
                _LOGGER.warning("%s", resp.error_message)
                runtime.PAGES.count_fail()
                return
            spider.go_rule(resp)
            stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            for item in resp.items:
                self.pipeline.collect(
                    resp.rule_name, item, resp.url, resp.referer, stamp
                )
        except Exception as exc:  # one bad page must not stop the crawl
            _LOGGER.error(" *     Process error: %s", exc)

    def can_stop(self) -> bool:
        """True when all own requests are done and none are queued, or on stop."""
        spider = self._require_spider()
        sched = scheduler.current()
        with self._lock:
            idle = self._requests_in == self._requests_out
        return (idle and sched.is_empty(spider.id)) or sched.is_stopped()