"""Text helpers for spiders: HTML cleanup, cookies, charsets and URLs."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

_TAG = re.compile(r"<[\s\S]+?>")
_STYLE = re.compile(r"<style[\s\S]+?</style>")
_SCRIPT = re.compile(r"<script[\s\S]+?</script>")
_SPACES = re.compile(r"[\t\n\f\r ]{2,}")
_ATOI = re.compile(r"[+-]?[0-9]+")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def clean_html(text: str, depth: int) -> str:
    """Clean HTML in stages; each higher depth adds a step.

    1 lower-cases tags, 2 drops styles, 3 drops scripts, 4 turns every tag
    into a newline, 5 collapses whitespace runs into one newline.
    """
    if depth > 0:
        text = _TAG.sub(lambda m: m.group(0).lower(), text)
    if depth > 1:
        text = _STYLE.sub("", text)
    if depth > 2:
        text = _SCRIPT.sub("", text)
    if depth > 3:
        text = _TAG.sub("\n", text)
    if depth > 4:
        text = _SPACES.sub("\n", text)
    return text


def split_cookies(cookie_str: str) -> list[tuple[str, str]]:
    """Parse ``"a=1; b=2;"`` into name/value pairs; malformed parts are skipped."""
    cookies = []
    for part in cookie_str.split(";"):
        pieces = part.split("=")
        if len(pieces) == 2:
            cookies.append((pieces[0].strip(" "), pieces[1].strip(" ")))
    return cookies


def decode_string(src: bytes | str, charset: str) -> str:
    """Decode bytes in ``charset``; text is taken as its UTF-8 bytes."""
    data = src.encode("utf-8") if isinstance(src, str) else src
    return data.decode(charset, errors="replace")


def encode_string(src: str, charset: str) -> bytes:
    """Encode text in ``charset``, replacing what it cannot hold."""
    return src.encode(charset, errors="replace")


def convert_to_string(src: bytes | str, src_code: str, tag_code: str) -> str:
    """Decode with ``src_code``, then decode that text's UTF-8 bytes with ``tag_code``."""
    intermediate = decode_string(src, src_code)
    return decode_string(intermediate.encode("utf-8"), tag_code)


def gbk_to_utf8(src: str) -> str:
    """Repair GBK text that was wrongly decoded as ISO-8859-1."""
    return decode_string(encode_string(src, "ISO-8859-1"), "GBK")


def _code_point(number: int) -> str:
    if 0 <= number <= 0x10FFFF and not 0xD800 <= number <= 0xDFFF:
        return chr(number)
    return "\ufffd"


def unicode_to_utf8(text: str) -> str:
    """Turn ``"&#21654;&#21857;"`` style numeric references into characters."""
    text = text.lstrip("&#").rstrip(";")
    return "".join(
        _code_point(int(part)) if _ATOI.fullmatch(part) else part
        for part in text.split(";&#")
    )


def _parses(url: str) -> bool:
    if any(ord(ch) < 0x20 or ch == "\x7f" for ch in url):
        return False
    if _BAD_ESCAPE.search(url):
        return False
    try:
        urlsplit(url)
    except ValueError:
        return False
    return True


def make_url(path: str, scheme_and_host: str | None = None) -> tuple[str, bool]:
    """Make an absolute URL from a path and ``scheme://host``.

    Returns the URL and whether it is a usable absolute URL.
    """
    if not path:
        raise ValueError("path must not be empty")
    if path[0] != "/" and path[0].lower() != "h":
        path = "/" + path
    url = path
    if "://" not in path:
        if not scheme_and_host:
            return url, False
        url = scheme_and_host + url
    return url, _parses(url)