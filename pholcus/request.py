"""A request waiting to be crawled."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

SPIDER_ID_KEY = "__SPIDER_ID__"

_LOGGER = logging.getLogger("pholcus")


def _required(params: Mapping[str, Any], key: str) -> str:
    if key not in params:
        raise KeyError(key)
    value = params[key]
    if not isinstance(value, str):
        raise TypeError(f"request parameter {key!r} must be a string")
    return value


def read_header_file(path: str) -> dict[str, list[str]] | None:
    """Build headers from a JSON file with User-Agent, Referer and Cookie keys."""
    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        _LOGGER.warning("%s", exc)
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}

    def text(key: str) -> str:
        value = data.get(key)
        return value if isinstance(value, str) else ""

    return {
        "User-Agent": [text("User-Agent")],
        "Referer": [text("Referer")],
        "Cookie": [text("Cookie")],
        "Cache-Control": ["max-age=0"],
        "Connection": ["keep-alive"],
    }


@dataclass
class Request:
    """A URL to fetch plus the rule and spider that will handle the result.

    ``method`` is one of GET, POST, POST-M or HEAD and is kept upper-case.
    """

    url: str
    rule: str
    spider: str
    referer: str = ""
    method: str = "GET"
    header: dict[str, Any] | None = None
    cookies: list[Any] | None = None
    post_data: dict[str, Any] | None = None
    outsource: bool = False
    check_redirect: Callable[..., Any] | None = None
    temp: dict[str, Any] = field(default_factory=dict)
    priority: int = 0

    def __post_init__(self) -> None:
        self.method = self.method.upper()

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "Request":
        """Build a request from a parameter map; url, rule and spider are required."""
        url = _required(params, "url")
        rule = _required(params, "rule")
        spider = _required(params, "spider")

        referer = params.get("referer")
        method = params.get("method")
        cookies = params.get("cookies")
        post_data = params.get("postData")
        outsource = params.get("outsource")
        check_redirect = params.get("checkRedirect")
        temp = params.get("temp")
        priority = params.get("priority")
        header = params.get("header")

        if isinstance(header, str):
            header = read_header_file(header) if os.path.exists(header) else None
        elif isinstance(header, Mapping):
            header = dict(header)
        else:
            header = None

        return cls(
            url=url,
            rule=rule,
            spider=spider,
            referer=referer if isinstance(referer, str) else "",
            method=method if isinstance(method, str) else "GET",
            header=header,
            cookies=list(cookies) if isinstance(cookies, list) else None,
            post_data=dict(post_data) if isinstance(post_data, Mapping) else None,
            outsource=outsource if isinstance(outsource, bool) else False,
            check_redirect=check_redirect if callable(check_redirect) else None,
            temp=temp if isinstance(temp, dict) else {},
            priority=(
                priority
                if isinstance(priority, int)
                and not isinstance(priority, bool)
                and priority >= 0
                else 0
            ),
        )

    def add_header_file(self, path: str) -> "Request":
        """Replace the headers with those read from a file, if it exists."""
        if os.path.exists(path):
            self.header = read_header_file(path)
        return self

    def get_temp(self, key: str) -> Any:
        return self.temp.get(key)

    def set_temp(self, key: str, value: Any) -> None:
        self.temp[key] = value

    @property
    def spider_id(self) -> int | None:
        """Index of the owning spider in the run queue, if set."""
        return self.temp.get(SPIDER_ID_KEY)

    @spider_id.setter
    def spider_id(self, value: int) -> None:
        self.temp[SPIDER_ID_KEY] = value