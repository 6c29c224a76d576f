from datetime import datetime, timedelta

import pytest

from pholcus import conffile, util
from pholcus.conffile import Config, ConfigSyntaxError

SAMPLE = """
# comment line
name = pholcus
threads=8
  tags = a , b ,c
[db]
host = localhost
port = 27017
[empty]
[db]
user=admin
"""


@pytest.fixture
def cfg():
    config = Config()
    config.load_string(SAMPLE)
    return config


@pytest.fixture
def fresh_state(monkeypatch):
    monkeypatch.setattr(conffile, "_state", conffile._ConfState())


def test_global_values(cfg):
    assert cfg.global_get("name") == "pholcus"
    assert cfg.global_has("threads")
    assert not cfg.global_has("missing")
    assert cfg.global_get("missing") == ""
    assert cfg.global_get_int("threads") == 8


def test_sections(cfg):
    assert cfg.section_get("db", "host") == "localhost"
    assert cfg.section_get_int("db", "port") == 27017
    assert cfg.section_get("db", "user") == "admin"
    assert cfg.section_has("db", "host")
    assert not cfg.section_has("db", "name")
    assert not cfg.has_section("empty")
    assert cfg.section_get("nope", "host") == ""
    assert cfg.section_content("nope") == {}


def test_meta_lists_sections_once(cfg):
    first_line = cfg.string_with_meta().split("\n", 1)[0]
    assert first_line == "__sections__=db,empty"


def test_lists_are_trimmed(cfg):
    assert cfg.global_get_list("tags", ",") == ["a", "b", "c"]
    assert cfg.global_get_list("missing", ",") == []


def test_int_list_skips_bad_parts():
    config = Config()
    config.load_string("nums = 1, x, 3")
    assert config.global_get_int_list("nums", ",") == [1, 3]


def test_bad_int_is_zero():
    config = Config()
    config.load_string("a=abc\nb=")
    assert config.global_get_int("a") == 0
    assert config.global_get_int("b") == 0


def test_durations(cfg):
    assert cfg.global_get_duration("threads") == timedelta(seconds=8)
    assert cfg.section_get_duration("db", "port") == timedelta(seconds=27017)
    before = datetime.now()
    deadline = cfg.global_get_deadline("threads")
    assert before + timedelta(seconds=8) <= deadline <= datetime.now() + timedelta(seconds=8)


def test_bad_syntax_raises():
    config = Config()
    with pytest.raises(ConfigSyntaxError):
        config.load_string("just text")


def test_string_round_trip(cfg):
    other = Config()
    other.load_string(str(cfg))
    assert other.section_content("db") == cfg.section_content("db")
    assert other.global_get_list("tags", ",") == cfg.global_get_list("tags", ",")


def test_set_and_clear():
    config = Config()
    config.global_set("k", "v")
    config.section_set("s", "k2", "v2")
    assert config.global_get("k") == "v"
    assert config.section_content("s") == {"k2": "v2"}
    config.clear()
    assert not config.global_has("k")
    assert not config.has_section("s")
    assert str(config) == ""


def test_save_and_load(tmp_path, cfg):
    path = tmp_path / "main.conf"
    cfg.save(str(path))
    loaded = Config().load(str(path))
    assert loaded.global_get("name") == "pholcus"
    assert loaded.section_get("db", "user") == "admin"


def test_load_missing_file(tmp_path):
    with pytest.raises(OSError):
        Config().load(str(tmp_path / "absent.conf"))


def test_start_conf_rejects_missing_path(fresh_state, tmp_path):
    with pytest.raises(ValueError):
        conffile.start_conf(str(tmp_path / "absent.conf"))


def test_start_conf_loads_and_caches(fresh_state, tmp_path):
    path = tmp_path / "custom.conf"
    path.write_text("key=value\n")
    loaded = conffile.start_conf(str(path))
    assert loaded.global_get("key") == "value"
    assert conffile.conf() is loaded


def test_conf_uses_default_path(fresh_state, tmp_path, monkeypatch):
    monkeypatch.setenv(util.WORKDIR_ENV, str(tmp_path))
    (tmp_path / "etc").mkdir()
    (tmp_path / "etc" / "main.conf").write_text("[s]\nk=v\n")
    assert conffile.conf().section_get("s", "k") == "v"