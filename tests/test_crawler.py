import queue

import pytest

from pholcus import runtime, scheduler
from pholcus.collector import Collector
from pholcus.crawler import Crawler
from pholcus.downloader import Downloader, HttpDownloader
from pholcus.pipeline import Pipeline
from pholcus.response import Response
from pholcus.spider import Rule, RuleTree, Spider


class FakeDownloader(Downloader):
    def __init__(self, ok=True):
        self.ok = ok
        self.seen = []

    def download(self, req):
        self.seen.append(req.url)
        resp = Response(
            req,
            content=b"<html><head><title>Hi</title></head></html>",
            headers={"Content-Type": "text/html; charset=utf-8"},
        )
        resp.set_status(self.ok, "" if self.ok else "boom")
        return resp


def _spider():
    def root(sp):
        sp.add_queue({"url": "http://example.com/", "rule": "page"})

    def parse(sp, resp):
        resp.add_item({"title": resp.dom.title.string})

    return Spider(
        name="demo",
        keyword="kw",
        rule_tree=RuleTree(
            root=root, nodes={"page": Rule(out_field=["title"], parse_func=parse)}
        ),
    )


@pytest.fixture
def setup(tmp_path, monkeypatch):
    monkeypatch.setattr(runtime.TASK, "out_type", "csv")
    scheduler.init_scheduler(5)
    runtime.PAGES.reset()
    reports = queue.Queue()
    pipeline = Pipeline(Collector(base_dir=tmp_path, report_queue=reports))
    return pipeline, reports


def test_start_crawls_and_outputs(setup, tmp_path):
    pipeline, reports = setup
    fake = FakeDownloader()
    crawler = Crawler(0, pipeline, downloader_factory=lambda sp: fake, idle_wait=0.01)
    crawler.reset(_spider())
    crawler.start()
    report = reports.get(timeout=10)
    assert report.num == "1"
    assert fake.seen == ["http://example.com/"]
    assert runtime.PAGES.get(0) == 1
    assert runtime.PAGES.get(-1) == 0
    files = list(tmp_path.rglob("*.csv"))
    assert "Hi" in files[0].read_text(encoding="utf-8")


def test_failed_download_is_counted(setup):
    pipeline, _ = setup
    crawler = Crawler(0, pipeline, downloader_factory=lambda sp: FakeDownloader(False))
    spider = _spider()
    crawler.reset(spider)
    req = spider.new_request({"url": "http://example.com/x", "rule": "page"})
    crawler.process(req)
    assert runtime.PAGES.get(-1) == 1
    assert pipeline.collector.data.empty()


def test_can_stop_follows_scheduler(setup):
    pipeline, _ = setup
    crawler = Crawler(0, pipeline, downloader_factory=lambda sp: FakeDownloader())
    spider = _spider()
    crawler.reset(spider)
    assert crawler.can_stop() is True
    spider.add_queue({"url": "http://example.com/q", "rule": "page"})
    assert crawler.can_stop() is False
    scheduler.current().stop()
    assert crawler.can_stop() is True


def test_reset_uses_factory_and_default_downloader(setup):
    pipeline, _ = setup
    calls = []
    crawler = Crawler(3, pipeline, downloader_factory=lambda sp: calls.append(sp) or FakeDownloader())
    spider = _spider()
    assert crawler.reset(spider) is crawler
    assert calls == [spider]
    assert crawler.id == 3

    plain = Crawler()
    spider.set_pausetime(1000, 3000)
    spider.proxy = "localhost:80"
    plain.reset(spider)
    assert isinstance(plain.downloader, HttpDownloader)
    assert plain.downloader.pause_time == 2.0
    assert plain.downloader.proxy == "localhost:80"


def test_run_without_spider_raises():
    with pytest.raises(RuntimeError):
        Crawler().run()