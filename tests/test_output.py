import csv
import xml.etree.ElementTree as ET
import zipfile
from datetime import datetime
from unittest import mock

import pytest

from pholcus.collector import new_data_cell
from pholcus.output import (
    EXTRA_COLUMNS,
    cell_value,
    output_csv,
    output_excel,
    output_folder,
    output_mongo,
    write_xlsx,
)
from pholcus.spider import Rule, RuleTree, Spider

NS = "{http://schemas.openxmlformats.org/spreadsheetml/2006/main}"
START = datetime(2015, 6, 1, 12, 30, 45)


def read_sheets(path):
    with zipfile.ZipFile(path) as zf:
        workbook = ET.fromstring(zf.read("xl/workbook.xml"))
        names = [s.get("name") for s in workbook.iter(f"{NS}sheet")]
        result = {}
        for number, name in enumerate(names, start=1):
            root = ET.fromstring(zf.read(f"xl/worksheets/sheet{number}.xml"))
            result[name] = [
                [t.text or "" for t in row.iter(f"{NS}t")]
                for row in root.iter(f"{NS}row")
            ]
    return names, result


@pytest.fixture
def spider():
    return Spider(
        name="shop",
        keyword="kw",
        rule_tree=RuleTree(
            nodes={"r1": Rule(out_field=["a", "b"]), "r2": Rule()}
        ),
    )


@pytest.fixture
def cells():
    return [
        new_data_cell("r1", {"a": "x", "b": [1, 2]}, "u1", "p1", "t1"),
        new_data_cell("r2", {"z": "ignored"}, "u2", "p2", "t2"),
        new_data_cell("r1", {"a": None}, "u3", "p3", "t3"),
    ]


def test_output_folder_format(tmp_path):
    assert output_folder(START, tmp_path) == tmp_path / "2015-06-01 12时30分45秒"


def test_cell_value_strings_and_none():
    assert cell_value("plain") == "plain"
    assert cell_value(None) == ""


def test_cell_value_json_round_trip():
    import json

    value = {"k": [1, "two"], "n": 3}
    assert json.loads(cell_value(value)) == value


def test_write_xlsx_round_trip(tmp_path):
    rows = [["h1", "h2"], ["<a&b>", ""], ["x", "y"]]
    path = write_xlsx(tmp_path / "book.xlsx", {"first": rows, "second": [["z"]]})
    names, sheets = read_sheets(path)
    assert names == ["first", "second"]
    assert sheets["first"] == rows
    assert sheets["second"] == [["z"]]


def test_write_xlsx_without_sheets_is_still_a_workbook(tmp_path):
    path = write_xlsx(tmp_path / "empty.xlsx", [])
    names, sheets = read_sheets(path)
    assert len(names) == 1
    assert sheets[names[0]] == []


def test_output_csv(tmp_path, spider, cells):
    paths = output_csv(spider, cells, (0, 3), START, tmp_path)
    assert len(paths) == 1
    assert paths[0].name == "shop_kw 0-3 (r1).csv"
    raw = paths[0].read_bytes()
    assert raw.startswith(b"\xef\xbb\xbf")
    with open(paths[0], encoding="utf-8-sig", newline="") as handle:
        rows = list(csv.reader(handle))
    assert rows[0] == ["a", "b"] + list(EXTRA_COLUMNS)
    assert rows[1] == ["x", "[1,2]", "u1", "p1", "t1"]
    assert rows[2] == ["", "", "u3", "p3", "t3"]
    assert len(rows) == 3


def test_output_excel(tmp_path, spider, cells):
    path = output_excel(spider, cells, (0, 3), START, tmp_path)
    assert path.parent == output_folder(START, tmp_path)
    names, sheets = read_sheets(path)
    assert names == ["r1"]
    assert sheets["r1"][0] == ["a", "b"] + list(EXTRA_COLUMNS)
    assert [row[2] for row in sheets["r1"][1:]] == ["u1", "u3"]


def test_output_mongo_inserts_every_cell(cells):
    with mock.patch("pymongo.MongoClient") as client_cls:
        count = output_mongo(cells, "localhost:27017", "db", "coll")
    assert count == len(cells)
    client = client_cls.return_value
    target = client.__getitem__.return_value.__getitem__.return_value
    assert target.insert_one.call_count == len(cells)
    client.close.assert_called_once()