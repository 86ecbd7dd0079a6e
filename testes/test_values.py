import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from crosspost.fields.values import is_empty, maybe_unserialize, row_count, to_list


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("[1, 2]", [1, 2]),
        ('{"url": "x"}', {"url": "x"}),
        ('a:2:{i:0;s:2:"12";i:1;i:7;}', ["12", 7]),
        ("a:0:{}", []),
        ("[not json", "[not json"),
        ("plain", "plain"),
        (5, 5),
        (None, None),
    ],
)
def test_maybe_unserialize(raw, expected):
    assert maybe_unserialize(raw) == expected


def test_php_array_with_wrong_count_is_left_alone():
    raw = 'a:3:{i:0;s:2:"12";}'
    assert maybe_unserialize(raw) == raw


@pytest.mark.parametrize("value", ["", "0", 0, 0.0, None, False, [], {}])
def test_is_empty(value):
    assert is_empty(value)


@pytest.mark.parametrize("value", ["a", "00", 1, [0], {"a": None}, True])
def test_is_not_empty(value):
    assert not is_empty(value)


def test_to_list():
    assert to_list("7") == (["7"], True)
    assert to_list("") == ([], True)
    assert to_list("[3, 0, 4]") == ([3, 4], False)
    assert to_list({"a": 1, "b": ""}) == ([1], False)


def test_row_count():
    assert row_count("3") == (3, [])
    assert row_count(2) == (2, [])
    assert row_count("") == (0, [])
    assert row_count(None) == (0, [])
    assert row_count(True) == (0, [])
    assert row_count('a:2:{i:0;s:4:"text";i:1;s:5:"quote";}') == (2, ["text", "quote"])
    assert row_count(["text"]) == (1, ["text"])


def test_php_associative_array_keeps_keys():
    raw = 'a:2:{s:5:"title";s:5:"Café";s:3:"url";s:12:"https://a.b/";}'
    assert maybe_unserialize(raw) == {"title": "Café", "url": "https://a.b/"}


def test_php_strings_are_read_by_byte_length():
    raw = 'a:2:{i:0;s:9:"say "hi";";i:1;d:1.5;}'
    assert maybe_unserialize(raw) == ['say "hi";', 1.5]


def test_php_nested_array_and_mixed_keys():
    raw = 'a:2:{i:0;a:1:{i:0;N;}s:1:"k";b:1;}'
    assert maybe_unserialize(raw) == {"0": [None], "k": True}


def test_php_trailing_garbage_is_left_alone():
    raw = 'a:1:{i:0;i:5;}extra'
    assert maybe_unserialize(raw) == raw
