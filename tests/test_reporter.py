import logging
import queue

import pytest

from pholcus import runtime
from pholcus.reporter import Reporter
from pholcus.runtime import RunMode, Status


def _drain():
    items = []
    while True:
        try:
            items.append(runtime.SEND_QUEUE.get_nowait())
        except queue.Empty:
            return items


@pytest.fixture(autouse=True)
def clean_queue():
    _drain()
    yield
    _drain()


def test_new_reporter_is_stopped_and_silent(caplog, monkeypatch):
    caplog.set_level(logging.INFO, logger="pholcus")
    monkeypatch.setattr(runtime.TASK, "run_mode", RunMode.SERVER)
    rep = Reporter()
    rep.printf("hello %s", "world")
    rep.println("hello")
    assert rep.status == Status.STOP
    assert caplog.messages == []
    assert _drain() == []


def test_printf_forwards_formatted_text(caplog, monkeypatch):
    caplog.set_level(logging.INFO, logger="pholcus")
    monkeypatch.setattr(runtime.TASK, "run_mode", RunMode.SERVER)
    rep = Reporter()
    rep.run()
    rep.printf("%s-%d", "x", 3)
    assert _drain() == ["x-3"]
    assert "x-3" in caplog.messages


def test_println_joins_with_spaces_and_newline(monkeypatch):
    monkeypatch.setattr(runtime.TASK, "run_mode", RunMode.CLIENT)
    rep = Reporter()
    rep.run()
    rep.println("a", "b")
    assert _drain() == ["a b\n"]


def test_offline_mode_only_logs(caplog, monkeypatch):
    caplog.set_level(logging.INFO, logger="pholcus")
    monkeypatch.setattr(runtime.TASK, "run_mode", RunMode.OFFLINE)
    rep = Reporter()
    rep.run()
    rep.println("local")
    assert _drain() == []
    assert "local" in caplog.messages


def test_stop_silences_after_run(caplog, monkeypatch):
    caplog.set_level(logging.INFO, logger="pholcus")
    monkeypatch.setattr(runtime.TASK, "run_mode", RunMode.SERVER)
    rep = Reporter()
    rep.run()
    rep.stop()
    rep.println("gone")
    assert _drain() == []
    assert "gone" not in caplog.messages


def test_fatal_sends_then_exits(monkeypatch):
    monkeypatch.setattr(runtime.TASK, "run_mode", RunMode.SERVER)
    rep = Reporter()
    rep.run()
    with pytest.raises(SystemExit) as info:
        rep.fatal("broken", 1)
    assert info.value.code == 1
    assert _drain() == ["broken 1\n"]


def test_fatal_when_stopped_does_nothing(monkeypatch):
    monkeypatch.setattr(runtime.TASK, "run_mode", RunMode.SERVER)
    rep = Reporter()
    rep.fatal("ignored")
    assert _drain() == []