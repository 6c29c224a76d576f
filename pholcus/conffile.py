"""Parser for simple ``key=value`` configuration files with ``[sections]``."""

from __future__ import annotations

import os
import re
from datetime import datetime, timedelta

from .util import get_wd_path, is_file_exists

_BLANKS = " \r\t\v"
_INT = re.compile(r"[+-]?[0-9]+")


class ConfigSyntaxError(ValueError):
    """A line is neither a comment, a section header nor a key=value pair."""


def _atoi(value: str) -> int:
    if _INT.fullmatch(value) is None:
        return 0
    return int(value)


def _split(value: str, separator: str) -> list[str]:
    if not value:
        return []
    parts = list(value) if separator == "" else value.split(separator)
    return [part.strip(_BLANKS) for part in parts]


class Config:
    """Global keys plus named sections of keys, all holding strings."""

    def __init__(self) -> None:
        self._global: dict[str, str] = {}
        self._sections: dict[str, dict[str, str]] = {}
        self._section_order: list[str] = []

    def load(self, path: str) -> "Config":
        """Read and parse a file; returns self."""
        with open(path, encoding="utf-8") as handle:
            self.load_string(handle.read())
        return self

    def save(self, path: str) -> None:
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(str(self))

    def clear(self) -> None:
        self._global = {}
        self._sections = {}
        self._section_order = []

    def load_string(self, text: str) -> None:
        """Parse configuration text into this object."""
        section = ""
        for raw in text.split("\n"):
            line = raw.strip(_BLANKS)
            if not line or line.startswith("#"):
                continue
            if line.startswith("[") and line.endswith("]") and len(line) > 1:
                section = line[1:-1]
                if section not in self._section_order:
                    self._section_order.append(section)
                continue
            pair = line.split("=", 1)
            if len(pair) != 2:
                raise ConfigSyntaxError("bad config file syntax")
            key = pair[0].strip(_BLANKS)
            value = pair[1].strip(_BLANKS)
            if section == "":
                self._global[key] = value
            else:
                self._sections.setdefault(section, {})[key] = value

    def __str__(self) -> str:
        lines = [f"{key}={value}\n" for key, value in self._global.items()]
        for section, content in self._sections.items():
            lines.append(f"[{section}]\n")
            lines.extend(f"{key}={value}\n" for key, value in content.items())
        return "".join(lines)

    def string_with_meta(self) -> str:
        return "__sections__=" + ",".join(self._section_order) + "\n" + str(self)

    def global_has(self, key: str) -> bool:
        return key in self._global

    def global_get(self, key: str) -> str:
        return self._global.get(key, "")

    def global_set(self, key: str, value: str) -> None:
        self._global[key] = value

    def global_get_int(self, key: str) -> int:
        return _atoi(self.global_get(key))

    def global_get_duration(self, key: str) -> timedelta:
        return timedelta(seconds=self.global_get_int(key))

    def global_get_deadline(self, key: str) -> datetime:
        return datetime.now() + self.global_get_duration(key)

    def global_get_list(self, key: str, separator: str) -> list[str]:
        return _split(self.global_get(key), separator)

    def global_get_int_list(self, key: str, separator: str) -> list[int]:
        return [
            int(part)
            for part in self.global_get_list(key, separator)
            if _INT.fullmatch(part)
        ]

    def has_section(self, section: str) -> bool:
        return section in self._sections

    def section_has(self, section: str, key: str) -> bool:
        return key in self._sections.get(section, {})

    def section_get(self, section: str, key: str) -> str:
        return self._sections.get(section, {}).get(key, "")

    def section_set(self, section: str, key: str, value: str) -> None:
        self._sections.setdefault(section, {})[key] = value

    def section_get_int(self, section: str, key: str) -> int:
        return _atoi(self.section_get(section, key))

    def section_get_duration(self, section: str, key: str) -> timedelta:
        return timedelta(seconds=self.section_get_int(section, key))

    def section_get_list(self, section: str, key: str, separator: str) -> list[str]:
        return _split(self.section_get(section, key), separator)

    def section_content(self, section: str) -> dict[str, str]:
        return dict(self._sections.get(section, {}))


class _ConfState:
    def __init__(self) -> None:
        self.config: Config | None = None
        self.path = ""


_state = _ConfState()


def _default_path() -> str:
    folder = os.path.join(get_wd_path(), "etc")
    os.makedirs(folder, mode=0o755, exist_ok=True)
    return os.path.join(folder, "main.conf")


def start_conf(path: str) -> Config:
    """Set the configuration file to use and return the shared Config."""
    if path and not is_file_exists(path):
        raise ValueError(f"config path is not valid: {path}")
    _state.path = path
    return conf()


def conf() -> Config:
    """Return the shared Config, loading it on first use."""
    if _state.config is None:
        if not _state.path:
            _state.path = _default_path()
        _state.config = Config().load(_state.path)
    return _state.config