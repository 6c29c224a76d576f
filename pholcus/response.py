"""The result of a download, with lazily decoded text and parsed DOM."""

from __future__ import annotations

import codecs
import io
import re
from pathlib import Path
from typing import Any, Mapping

from bs4 import BeautifulSoup
from requests.structures import CaseInsensitiveDict

from .reporter import LOG
from .request import Request

_BOMS = (
    (b"\xef\xbb\xbf", "utf-8-sig"),
    (b"\xfe\xff", "utf-16"),
    (b"\xff\xfe", "utf-16"),
)
_TYPE_CHARSET = re.compile(r"""charset\s*=\s*["']?([^"';\s]+)""", re.IGNORECASE)
_META_CHARSET = re.compile(
    rb"""<meta[^>]*?charset\s*=\s*["']?\s*([A-Za-z0-9_:.\-]+)""", re.IGNORECASE
)
_ALIASES = {
    "gb2312": "gbk",
    "x-gbk": "gbk",
    "iso-8859-1": "cp1252",
    "latin1": "cp1252",
    "latin-1": "cp1252",
    "us-ascii": "cp1252",
    "ascii": "cp1252",
    "windows-1252": "cp1252",
}


def _lookup(label: str) -> str | None:
    name = label.strip().lower()
    name = _ALIASES.get(name, name)
    try:
        return codecs.lookup(name).name
    except LookupError:
        return None


def _detect_encoding(content: bytes, content_type: str) -> str:
    head = content[:1024]
    for bom, name in _BOMS:
        if head.startswith(bom):
            return name
    match = _TYPE_CHARSET.search(content_type or "")
    if match:
        name = _lookup(match.group(1))
        if name:
            return name
    match = _META_CHARSET.search(head)
    if match:
        name = _lookup(match.group(1).decode("ascii", "replace"))
        if name:
            return name
    try:
        codecs.getincrementaldecoder("utf-8")().decode(head, final=False)
    except UnicodeDecodeError:
        return "cp1252"
    return "utf-8"


def decode_body(content: bytes, content_type: str = "") -> str:
    """Decode a body to text using BOM, declared charset, meta tag or UTF-8 check."""
    return content.decode(_detect_encoding(content, content_type), errors="replace")


class Response:
    """A downloaded page together with the request that produced it."""

    def __init__(
        self,
        request: Request | None = None,
        content: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.request = request
        self.content = content
        self.headers: CaseInsensitiveDict = CaseInsensitiveDict(headers or {})
        self.items: list[dict[str, Any]] = []
        self.success = False
        self.error_message = ""
        self._text: str | None = None
        self._dom: BeautifulSoup | None = None

    def set_status(self, success: bool, message: str) -> None:
        self.success = success
        self.error_message = message

    def add_item(self, data: dict[str, Any]) -> None:
        """Store one parsed record for the pipeline."""
        self.items.append(data)

    @property
    def text(self) -> str:
        """The body decoded to text."""
        if self._text is None:
            if self.content is None:
                self._text = ""
            else:
                self._text = decode_body(
                    self.content, self.headers.get("Content-Type", "")
                )
        return self._text

    @property
    def dom(self) -> BeautifulSoup:
        """The body parsed as HTML."""
        if self._dom is None:
            self._dom = BeautifulSoup(self.text, "html.parser")
        return self._dom

    @property
    def rule_name(self) -> str:
        return self.request.rule if self.request is not None else ""

    @rule_name.setter
    def rule_name(self, value: str) -> None:
        if self.request is None:
            raise AttributeError("response has no request")
        self.request.rule = value

    @property
    def url(self) -> str:
        return self.request.url if self.request is not None else ""

    @property
    def referer(self) -> str:
        return self.request.referer if self.request is not None else ""

    @property
    def temps(self) -> dict[str, Any]:
        return self.request.temp if self.request is not None else {}

    def get_temp(self, key: str) -> Any:
        """Temporary value carried by the request."""
        return self.temps.get(key)

    def load_img(self, file_path: str, base_dir: str = "data/images") -> Path:
        """Save the body under ``base_dir`` and return the written path."""
        target = Path(base_dir) / file_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.content or b"")
        LOG.printf(" *     image saved: %s", target)
        return target

    def read_img(self) -> io.BytesIO:
        """The raw body as a readable stream."""
        return io.BytesIO(self.content or b"")