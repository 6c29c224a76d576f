import json

import pytest

from pholcus import util


def test_jsonp_to_json_documented_example():
    assert util.jsonp_to_json('forbar({a:"1",b:2})') == '{"a":"1","b":2}'


def test_jsonp_to_json_array_payload():
    result = util.jsonp_to_json("cb([{a:1}])")
    assert json.loads(result) == [{"a": 1}]


def test_jsonp_to_json_result_parses():
    result = util.jsonp_to_json("callback({name:\"x\",count:3})")
    assert json.loads(result) == {"name": "x", "count": 3}


def test_get_wd_path(monkeypatch, tmp_path):
    monkeypatch.setenv(util.WORKDIR_ENV, str(tmp_path))
    assert util.get_wd_path() == str(tmp_path)
    monkeypatch.delenv(util.WORKDIR_ENV)
    with pytest.raises(RuntimeError):
        util.get_wd_path()


def test_dir_and_file_checks(tmp_path):
    file_path = tmp_path / "a.txt"
    file_path.write_text("x")
    assert util.is_dir_exists(str(tmp_path))
    assert not util.is_dir_exists(str(file_path))
    assert util.is_file_exists(str(file_path))
    assert not util.is_file_exists(str(tmp_path))
    assert not util.is_file_exists(str(tmp_path / "missing"))
    assert not util.is_dir_exists(str(tmp_path / "missing"))


@pytest.mark.parametrize(
    "text, expected",
    [("123", True), ("0", True), ("12a", False), ("", False), ("12\n", False), ("-1", False)],
)
def test_is_num(text, expected):
    assert util.is_num(text) is expected


def test_xml_to_map_simple():
    doc = "<root><name>pholcus</name><id>7</id></root>"
    assert util.xml_to_map(doc) == {"name": "pholcus", "id": "7"}


def test_xml_to_map_bad_document_keeps_earlier_values():
    result = util.xml_to_map("<root><name>x</name><broken")
    assert result["name"] == "x"


def test_make_hash_check_values():
    assert util.make_hash("123456789") == "cbf43926"
    assert util.make_hash("") == "0"


def test_hash_string_offset_basis():
    assert util.hash_string("") == 14695981039346656037


def test_hash_string_range_and_stability():
    value = util.hash_string("pholcus")
    assert 0 <= value < 2**64
    assert value == util.hash_string("pholcus")
    assert value != util.hash_string("pholcuz")


def test_make_unique_ignores_key_order():
    first = util.make_unique({"a": 1, "b": [1, 2]})
    second = util.make_unique({"b": [1, 2], "a": 1})
    assert first == second
    assert first.isdigit()
    assert first != util.make_unique({"a": 2, "b": [1, 2]})


def test_make_md5_lengths():
    full = util.make_md5({"k": "v"}, 100)
    assert len(full) == 32
    assert all(c in "0123456789abcdef" for c in full)
    assert util.make_md5({"k": "v"}, 8) == full[:8]


def test_make_md5_negative_length():
    with pytest.raises(ValueError):
        util.make_md5("x", -1)