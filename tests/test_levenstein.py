import pytest

from ftpclient.ui.levenstein import _levenstein, get_suggestion


@pytest.mark.parametrize("a, b, distance", [
    ("", "", 0),
    ("LIST", "LIST", 0),
    ("LSIT", "LIST", 2),
    ("RETRR", "RETR", 1),
    ("", "PWD", 3),
    ("kitten", "sitting", 3),
])
def test_distance(a, b, distance):
    assert _levenstein(a, b) == distance


@pytest.mark.parametrize("typed, expected", [
    ("lst", "LIST"),
    ("retrr", "RETR"),
    ("pwdd", "PWD"),
    ("renam", "RENAME"),
])
def test_suggestion(typed, expected):
    assert get_suggestion(typed) == expected


def test_no_suggestion_for_unrelated_words():
    assert get_suggestion("supercalifragilistic") == ""
