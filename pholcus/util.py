"""Small helpers: JSONP cleanup, file checks, hashing and fingerprints."""

from __future__ import annotations

import hashlib
import json
import os
import re
import zlib
from typing import Any
from xml.parsers import expat

WORKDIR_ENV = "PHOLCUS_HOME"

_JSONP_KEY = re.compile(r'([^\s:{,\d"]+|[a-z][a-z\d]*)\s*:')
_NUMBER = re.compile(r"[0-9]+")

_FNV64_OFFSET = 14695981039346656037
_FNV64_PRIME = 1099511628211
_MASK64 = (1 << 64) - 1


def jsonp_to_json(text: str) -> str:
    """Strip a JSONP wrapper and quote bare keys, e.g. ``f({a:1})`` -> ``{"a":1}``."""
    start = text.find("{")
    end = text.rfind("}")
    start_list = text.find("[")
    if start_list > 0 and start > start_list:
        start = start_list
        end = text.rfind("]")
    if end > start and end != -1 and start != -1:
        text = text[start : end + 1]
    text = text.replace("\\'", "")
    return _JSONP_KEY.sub(r'"\1":', text)


def get_wd_path() -> str:
    """Return the working directory named by the environment."""
    wd = os.environ.get(WORKDIR_ENV, "")
    if not wd:
        raise RuntimeError(f"{WORKDIR_ENV} is not set in the environment")
    return wd


def is_dir_exists(path: str) -> bool:
    return os.path.isdir(path)


def is_file_exists(path: str) -> bool:
    return os.path.exists(path) and not os.path.isdir(path)


def is_num(text: str) -> bool:
    """True when the text is made only of ASCII digits."""
    return _NUMBER.fullmatch(text) is not None


def xml_to_map(xmldoc: str) -> dict[str, str]:
    """Map each element's local name to the last text run seen after it."""
    result: dict[str, str] = {}
    key = ""
    buffer: list[str] = []

    def flush() -> None:
        if buffer:
            result[key] = "".join(buffer)
            buffer.clear()

    def on_start(name: str, _attrs: Any) -> None:
        nonlocal key
        flush()
        key = name.rsplit(":", 1)[-1]

    def on_other(*_args: Any) -> None:
        flush()

    parser = expat.ParserCreate()
    parser.StartElementHandler = on_start
    parser.EndElementHandler = on_other
    parser.CommentHandler = on_other
    parser.ProcessingInstructionHandler = on_other
    parser.CharacterDataHandler = buffer.append
    try:
        parser.Parse(xmldoc, True)
    except expat.ExpatError:
        buffer.clear()
        return result
    flush()
    return result


def make_hash(text: str) -> str:
    """CRC-32 (IEEE) of the text as lower-case hex without padding."""
    return format(zlib.crc32(text.encode("utf-8")), "x")


def hash_string(text: str) -> int:
    """64-bit FNV-1 hash of the text."""
    value = _FNV64_OFFSET
    for byte in text.encode("utf-8"):
        value = (value * _FNV64_PRIME) & _MASK64
        value ^= byte
    return value


def _marshal(obj: Any) -> str:
    try:
        text = json.dumps(
            obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False
        )
    except (TypeError, ValueError):
        return ""
    return (
        text.replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


def make_unique(obj: Any) -> str:
    """Decimal FNV fingerprint of the object's JSON form."""
    return str(hash_string(_marshal(obj)))


def make_md5(obj: Any, length: int) -> str:
    """Hex MD5 of the object's JSON form, cut to at most 32 characters."""
    if length < 0:
        raise ValueError("length must not be negative")
    length = min(length, 32)
    digest = hashlib.md5(_marshal(obj).encode("utf-8")).hexdigest()
    return digest[:length]