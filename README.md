# pholcus

A crawler library built around *spiders*: named sets of parsing rules that
turn downloaded pages into records. Requests go through a per-spider priority
scheduler with URL/method de-duplication, are fetched concurrently over HTTP,
and the records they yield are gathered in batches and written out as CSV,
Excel (`.xlsx`) or MongoDB documents.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## A minimal crawl

```python
from pholcus import runtime, scheduler
from pholcus.crawler import Crawler
from pholcus.spider import Rule, RuleTree, Spider


def root(spider):
    spider.add_queue({"url": "http://example.com/", "rule": "page"})


def parse(spider, resp):
    title = resp.dom.title.get_text() if resp.dom.title else ""
    resp.add_item({"title": title})


spider = Spider(
    name="demo",
    rule_tree=RuleTree(
        root=root,
        nodes={"page": Rule(out_field=["title"], parse_func=parse)},
    ),
)

scheduler.init_scheduler(runtime.TASK.thread_num)
Crawler().reset(spider).start()
report = runtime.REPORT_QUEUE.get()   # summary once the output is written
print(report.num, "records")
```

## Modules

- `pholcus.runtime`: shared state. `TASK` (a `TaskConf`: run mode, port,
  master, thread count, pause times, output type, batch size, page limit),
  the page counter `PAGES`, `REPORT_QUEUE`, `SEND_QUEUE` and the enums
  `RunMode`, `Header` and `Status`.
- `pholcus.spider`: `Spider`, `RuleTree`, `Rule` and the catalogue `Menu`
  (shared instance `MENU`). A spider's root seeds the first requests; each
  rule has a parse function, an optional helper (`aid_func`) and the output
  fields it produces. `CAN_ADD` marks a spider that accepts keywords.
- `pholcus.request` / `pholcus.response`: `Request` (built with
  `Request.from_params`, headers optionally read from a JSON file) and
  `Response`, whose `text` is decoded from BOM, declared charset, meta tag or
  UTF-8 check and whose `dom` is a BeautifulSoup tree.
- `pholcus.scheduler`: `Scheduler` keeps requests per spider and priority
  (0–5, highest first), drops URL/method pairs it has already seen and limits
  the requests in flight. `init_scheduler()` and `current()` manage the
  shared instance.
- `pholcus.downloader`: the `Downloader` interface and `HttpDownloader`,
  which uses `requests` with retries, proxies, cookies and GET, POST and
  multipart (`POST-M`) bodies.
- `pholcus.crawler` / `pholcus.crawlpool`: `Crawler` runs one spider to
  completion; `CrawlPool` hands out idle crawlers, up to 50.
- `pholcus.pipeline` / `pholcus.collector` / `pholcus.output`: the pipeline
  feeds records to a `Collector`, which batches them and writes each full
  batch in the background with `output_csv`, `output_excel` or
  `output_mongo`, chosen by `TASK.out_type` (`"csv"`, `"mongoDB"`; any other
  value writes Excel).
- `pholcus.spiderqueue`: `SpiderQueue`, the spiders chosen for a run.
  `add_keywords("a | b")` copies every keyword-accepting spider once per
  keyword.
- `pholcus.task` / `pholcus.node`: `Task` and `TaskJar`; `Node` packs the
  spider queue into tasks of up to ten spiders (`add_new_task`), waits for
  tasks as a client (`down_task`) and works with any object that follows the
  `Transport` protocol. `CLIENT_API` and `SERVER_API` map operation names to
  message handlers.
- `pholcus.form`: `Form` fills in an HTML form from a page and queues its
  submission as a new request.
- `pholcus.rss`: `RSS` adapts the revisit period of each feed.
- `pholcus.reporter`, `pholcus.mlog`: progress logging (forwarded to the peer
  outside offline mode), a daily error log file and a trace stream.
- `pholcus.conffile`, `pholcus.dedup`, `pholcus.pool`, `pholcus.util`,
  `pholcus.textutil`: configuration files, de-duplication, a bounded queue,
  hashing and text helpers.

## Output

Each run writes into `data/<start date> <H>时<M>分<S>秒/`, one file (or one
sheet) per rule that declares output fields. Every row holds the rule's
fields followed by the current URL, the parent URL and the download time.

## Utilities

```python
from pholcus.conffile import Config
from pholcus.dedup import Deduplicator
from pholcus.textutil import clean_html
from pholcus.util import jsonp_to_json

seen = Deduplicator()
seen.compare("http://example.com/")   # False: first sighting
seen.compare("http://example.com/")   # True: already seen

cfg = Config()
cfg.load_string("name = demo\n[db]\nport = 27017\n")
cfg.global_get("name")                # "demo"
cfg.section_get_int("db", "port")     # 27017

clean_html("<P>Hi</P>", 1)            # "<p>Hi</p>"
jsonp_to_json('cb({a:"1",b:2})')      # '{"a":"1","b":2}'
```

## What the package does not do

- It is a library only: there is no command to run and no graphical or
  terminal interface. A crawl is started from Python code as shown above.
- It ships no ready-made spiders; define your own `Spider` objects and add
  them to `MENU` if you want a catalogue.
- There is no single object that drives a whole multi-spider run; combine
  `SpiderQueue`, `CrawlPool`, `Crawler` and `REPORT_QUEUE` yourself.
- It opens no network connections between nodes. `Node` only needs a
  `Transport` (`count_nodes()` and `request(body, operation)`); supplying one
  is up to you.
- HBase output is not available; setting `out_type` to `"HBase"` makes each
  batch fail with an error in the log.