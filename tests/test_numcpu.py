import pytest

from sysmetrics import numcpu
from sysmetrics.numcpu import get_cpu, num_cpu, parse_cpu_list


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0-23", 24),
        ("0-1", 2),
        ("0-63", 64),
        ("0", 1),
        ("0-1,3", 3),
        ("2,4-31,32-63", 61),
    ],
)
def test_cpu_parse(raw, expected):
    assert parse_cpu_list(raw) == expected


def test_cpu_parse_with_trailing_newline():
    assert parse_cpu_list("0-7\n") == 8


def test_cpu_parse_bad_range():
    with pytest.raises(ValueError):
        parse_cpu_list("a-b")


def test_get_cpu_positive_when_available():
    count = get_cpu()
    assert count is None or count > 0


def test_num_cpu():
    count = num_cpu()
    assert count != -1
    assert count >= 1


def test_get_cpu_unknown_platform(monkeypatch):
    monkeypatch.setattr(numcpu.sys, "platform", "plan9")
    assert get_cpu() is None
    assert num_cpu() >= 1