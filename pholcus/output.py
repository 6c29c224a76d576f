"""Writers that store collected data cells as Excel, CSV or MongoDB records."""

from __future__ import annotations

import csv
import json
import logging
import re
import zipfile
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any
from xml.sax.saxutils import escape, quoteattr

import pymongo

from . import runtime

if TYPE_CHECKING:
    from .spider import Rule, Spider

_LOGGER = logging.getLogger("pholcus")

# Columns appended after a rule's own output fields.
EXTRA_COLUMNS = ("当前链接", "上级链接", "下载时间")

_ILLEGAL_XML = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

_MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
_REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
_PKG_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
_CT_NS = "http://schemas.openxmlformats.org/package/2006/content-types"
_XML_HEAD = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'


def output_folder(start_time: datetime, base_dir: str | Path = "data") -> Path:
    """Folder for the output of a run started at ``start_time``."""
    return Path(base_dir) / start_time.strftime("%Y-%m-%d %H时%M分%S秒")


def cell_value(value: Any) -> str:
    """Text for one output cell: strings as is, nothing as empty, else JSON."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    try:
        return json.dumps(
            value, separators=(",", ":"), ensure_ascii=False, sort_keys=True
        )
    except (TypeError, ValueError):
        return ""


def _rule_rows(
    rule_name: str, rule: "Rule", cells: Iterable[Mapping[str, Any]]
) -> list[list[str]]:
    rows = [list(rule.out_field) + list(EXTRA_COLUMNS)]
    for cell in cells:
        if cell["RuleName"] != rule_name:
            continue
        data = cell["Data"] or {}
        row = [cell_value(data.get(title)) for title in rule.out_field]
        row.extend([cell["Url"], cell["ParentUrl"], cell["DownloadTime"]])
        rows.append(row)
    return rows


def _base_name(spider: "Spider", sum_range: Sequence[int]) -> str:
    return f"{spider.name}_{spider.keyword} {sum_range[0]}-{sum_range[1]}"


def _column(index: int) -> str:
    letters = ""
    number = index + 1
    while number:
        number, rem = divmod(number - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def _text(value: str) -> str:
    return escape(_ILLEGAL_XML.sub("", value))


def _sheet_xml(rows: Iterable[Sequence[Any]]) -> str:
    parts = [_XML_HEAD, f'<worksheet xmlns="{_MAIN_NS}"><sheetData>']
    for r, row in enumerate(rows, start=1):
        parts.append(f'<row r="{r}">')
        for c, value in enumerate(row):
            text = value if isinstance(value, str) else cell_value(value)
            parts.append(
                f'<c r="{_column(c)}{r}" t="inlineStr"><is>'
                f'<t xml:space="preserve">{_text(text)}</t></is></c>'
            )
        parts.append("</row>")
    parts.append("</sheetData></worksheet>")
    return "".join(parts)


def write_xlsx(
    path: str | Path,
    sheets: Mapping[str, Iterable[Sequence[Any]]]
    | Iterable[tuple[str, Iterable[Sequence[Any]]]],
) -> Path:
    """Write named sheets of rows to an .xlsx workbook."""
    items = list(sheets.items() if isinstance(sheets, Mapping) else sheets)
    if not items:
        items = [("Sheet1", [])]
    target = Path(path)

    content_types = [
        _XML_HEAD,
        f'<Types xmlns="{_CT_NS}">',
        '<Default Extension="rels" '
        'ContentType="application/vnd.openxmlformats-package.relationships+xml"/>',
        '<Default Extension="xml" ContentType="application/xml"/>',
        '<Override PartName="/xl/workbook.xml" ContentType="application/'
        'vnd.openxmlformats-officedocument.spreadsheetml.sheet.main+xml"/>',
    ]
    workbook = [
        _XML_HEAD,
        f'<workbook xmlns="{_MAIN_NS}" xmlns:r="{_REL_NS}"><sheets>',
    ]
    workbook_rels = [_XML_HEAD, f'<Relationships xmlns="{_PKG_REL_NS}">']

    with zipfile.ZipFile(target, "w", zipfile.ZIP_DEFLATED) as archive:
        for number, (name, rows) in enumerate(items, start=1):
            content_types.append(
                f'<Override PartName="/xl/worksheets/sheet{number}.xml" '
                'ContentType="application/'
                'vnd.openxmlformats-officedocument.spreadsheetml.worksheet+xml"/>'
            )
            workbook.append(
                f"<sheet name={quoteattr(_ILLEGAL_XML.sub('', name))} "
                f'sheetId="{number}" r:id="rId{number}"/>'
            )
            workbook_rels.append(
                f'<Relationship Id="rId{number}" Type="{_REL_NS}/worksheet" '
                f'Target="worksheets/sheet{number}.xml"/>'
            )
            archive.writestr(f"xl/worksheets/sheet{number}.xml", _sheet_xml(rows))
        content_types.append("</Types>")
        workbook.append("</sheets></workbook>")
        workbook_rels.append("</Relationships>")
        archive.writestr("[Content_Types].xml", "".join(content_types))
        archive.writestr(
            "_rels/.rels",
            _XML_HEAD
            + f'<Relationships xmlns="{_PKG_REL_NS}">'
            + f'<Relationship Id="rId1" Type="{_REL_NS}/officeDocument" '
            'Target="xl/workbook.xml"/></Relationships>',
        )
        archive.writestr("xl/workbook.xml", "".join(workbook))
        archive.writestr("xl/_rels/workbook.xml.rels", "".join(workbook_rels))
    return target


def output_excel(
    spider: "Spider",
    cells: Sequence[Mapping[str, Any]],
    sum_range: Sequence[int],
    start_time: datetime | None = None,
    base_dir: str | Path = "data",
) -> Path:
    """Write one workbook with a sheet per outputting rule; return its path."""
    folder = output_folder(start_time or runtime.start_time, base_dir)
    sheets = [
        (name, _rule_rows(name, rule, cells))
        for name, rule in spider.rules.items()
        if rule.out_field
    ]
    folder.mkdir(parents=True, exist_ok=True)
    return write_xlsx(folder / f"{_base_name(spider, sum_range)}.xlsx", sheets)


def output_csv(
    spider: "Spider",
    cells: Sequence[Mapping[str, Any]],
    sum_range: Sequence[int],
    start_time: datetime | None = None,
    base_dir: str | Path = "data",
) -> list[Path]:
    """Write one UTF-8 CSV file per outputting rule; return the paths written."""
    folder = output_folder(start_time or runtime.start_time, base_dir)
    folder.mkdir(parents=True, exist_ok=True)
    base = _base_name(spider, sum_range)
    written = []
    for name, rule in spider.rules.items():
        if not rule.out_field:
            continue
        path = folder / f"{base} ({name}).csv"
        try:
            with open(path, "w", encoding="utf-8", newline="") as handle:
                handle.write("\ufeff")
                writer = csv.writer(handle, lineterminator="\n")
                writer.writerows(_rule_rows(name, rule, cells))
        except OSError as exc:
            _LOGGER.error("%s", exc)
            continue
        written.append(path)
    return written


def output_mongo(
    cells: Iterable[Mapping[str, Any]],
    url: str = runtime.DB_URL,
    database: str = runtime.DB_NAME,
    collection: str = runtime.DB_COLLECTION,
) -> int:
    """Insert every cell into a MongoDB collection; return how many were stored."""
    client = pymongo.MongoClient(url)
    count = 0
    try:
        target = client[database][collection]
        for cell in cells:
            target.insert_one(dict(cell))
            count += 1
    finally:
        client.close()
    return count