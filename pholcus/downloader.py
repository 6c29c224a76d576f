"""Fetching requests over HTTP."""

from __future__ import annotations

import abc
import time
from typing import Any

import requests
from requests.structures import CaseInsensitiveDict

from .request import Request
from .response import Response


class Downloader(abc.ABC):
    """Turns a request into a response."""

    @abc.abstractmethod
    def download(self, req: Request) -> Response:
        """Fetch the request; failures are recorded in the response status."""


def _values(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _cookie_pair(cookie: Any) -> tuple[str, str]:
    if isinstance(cookie, tuple):
        name, value = cookie
        return str(name), str(value)
    return str(cookie.name), str(cookie.value)


class HttpDownloader(Downloader):
    """Downloads with ``requests``, retrying failed attempts.

    ``pause_time`` is the pause in seconds before each retry.
    """

    def __init__(
        self,
        pause_time: float = 0.0,
        proxy: str = "",
        retries: int = 3,
        timeout: float = 60.0,
        session: Any = None,
    ) -> None:
        self.pause_time = pause_time
        self.proxy = proxy
        self.retries = retries
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def _request_kwargs(self, req: Request) -> dict[str, Any]:
        headers = {
            key: ", ".join(str(v) for v in _values(value))
            for key, value in (req.header or {}).items()
        }
        if req.referer:
            headers.setdefault("Referer", req.referer)
        kwargs: dict[str, Any] = {"headers": headers, "timeout": self.timeout}
        if req.cookies:
            kwargs["cookies"] = dict(_cookie_pair(c) for c in req.cookies)
        pairs = [
            (key, value)
            for key, values in (req.post_data or {}).items()
            for value in _values(values)
        ]
        if req.method == "POST-M":
            kwargs["files"] = [(key, (None, value)) for key, value in pairs]
        elif req.method == "POST":
            kwargs["data"] = pairs
        if self.proxy:
            proxy = self.proxy if "://" in self.proxy else "http://" + self.proxy
            kwargs["proxies"] = {"http": proxy, "https": proxy}
        return kwargs

    def download(self, req: Request) -> Response:
        resp = Response(req)
        method = "POST" if req.method == "POST-M" else req.method
        kwargs = self._request_kwargs(req)
        error: Exception | None = None
        for attempt in range(max(1, self.retries)):
            if attempt and self.pause_time > 0:
                time.sleep(self.pause_time)
            try:
                raw = self.session.request(method, req.url, **kwargs)
            except requests.RequestException as exc:
                error = exc
                continue
            resp.content = raw.content
            resp.headers = CaseInsensitiveDict(dict(raw.headers))
            resp.set_status(True, "")
            return resp
        resp.set_status(False, str(error))
        return resp