from datetime import timedelta

import pytest

from pholcus.rss import RSS

LEVEL = [20, 60, 180, 360, 720, 1400]


def make(sleeps):
    return RSS({"a": "http://example.com/a"}, LEVEL, sleep=sleeps.append)


def test_initial_period_is_lowest_level():
    rss = RSS({"a": "x", "b": "y"}, LEVEL, sleep=lambda s: None)
    assert rss.periods == {"a": LEVEL[0], "b": LEVEL[0]}


def test_empty_level_rejected():
    with pytest.raises(ValueError):
        RSS({"a": "x"}, [])


def test_first_wait_sleeps_lowest_level():
    sleeps = []
    rss = make(sleeps)
    rss.wait("a")
    assert sleeps == [timedelta(minutes=LEVEL[0]).total_seconds()]


def test_period_grows_without_updates_and_stays_bounded():
    sleeps = []
    rss = make(sleeps)
    previous = rss.periods["a"]
    for _ in range(40):
        rss.wait("a")
        assert previous <= rss.periods["a"] <= LEVEL[-1]
        previous = rss.periods["a"]
    assert rss.periods["a"] == LEVEL[-1]
    assert rss.periods["a"] > LEVEL[0]


def test_updates_shrink_period_to_lowest_level():
    sleeps = []
    rss = make(sleeps)
    for _ in range(10):
        rss.wait("a")
    grown = rss.periods["a"]
    for _ in range(40):
        rss.update("a")
        rss.wait("a")
        assert LEVEL[0] <= rss.periods["a"] <= grown
    assert rss.periods["a"] == LEVEL[0]


def test_flag_cleared_after_wait():
    rss = make([])
    rss.update("a")
    assert rss.flags["a"] is True
    rss.wait("a")
    assert rss.flags["a"] is False


def test_unknown_source_sleeps_lowest_level():
    sleeps = []
    rss = make(sleeps)
    rss.wait("unknown")
    assert sleeps == [timedelta(minutes=LEVEL[0]).total_seconds()]
    assert rss.periods["unknown"] == LEVEL[0]