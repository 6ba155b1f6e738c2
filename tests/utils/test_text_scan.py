"""Tests for scanner primitives and value-model predicates."""

import math

import pytest

from json_cleanroom.utils.text_scan import (
    StringTracker,
    canonical_json,
    contains_json,
    is_empty_value,
    is_identifier_char,
    is_identifier_start,
    is_integer,
    is_number,
    json_equal,
    kind_of,
    next_significant,
    prev_significant,
    types_match,
)


def _literal_mask(text):
    tracker = StringTracker()
    return [tracker.step(ch) for ch in text]


def test_string_tracker_marks_literal_including_quotes():
    mask = _literal_mask('{"a":1}')
    assert mask == [False, True, True, True, False, False, False]


def test_string_tracker_handles_escaped_quote():
    text = r'"a\"b" x'
    mask = _literal_mask(text)
    # the escaped quote does not close the literal
    assert mask[:6] == [True] * 6
    assert mask[6:] == [False, False]


def test_string_tracker_handles_escaped_backslash_before_quote():
    text = r'"a\\" ,'
    tracker = StringTracker()
    for ch in text[:5]:
        tracker.step(ch)
    assert tracker.in_string is False


def test_string_tracker_unterminated_leaves_in_string():
    tracker = StringTracker()
    for ch in '{"abc':
        tracker.step(ch)
    assert tracker.in_string is True


def test_next_and_prev_significant():
    text = "a  \n\t b"
    assert next_significant(text, 1) == ("b", 6)
    assert prev_significant(text, 5) == ("a", 0)
    assert next_significant("x   ", 1) == (None, 4)
    assert prev_significant("   x", 2) == (None, -1)


def test_identifier_predicates_accept_unicode_letters():
    assert is_identifier_start("é")
    assert is_identifier_start("_")
    assert not is_identifier_start("1")
    assert is_identifier_char("1")
    assert not is_identifier_char("-")


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, True),
        ("", True),
        ("   ", True),
        ([], True),
        ({}, True),
        (0, False),
        (False, False),
        ("x", False),
        ([None], False),
    ],
)
def test_is_empty_value(value, expected):
    assert is_empty_value(value) is expected


def test_numbers_exclude_booleans():
    assert is_number(1)
    assert is_number(1.5)
    assert not is_number(True)
    assert is_integer(3)
    assert is_integer(3.0)
    assert not is_integer(3.5)
    assert not is_integer(False)
    assert not is_integer(math.inf)


def test_kind_of():
    assert kind_of(None) == "null"
    assert kind_of(True) == "boolean"
    assert kind_of(1) == "integer"
    assert kind_of(1.5) == "number"
    assert kind_of("s") == "string"
    assert kind_of([]) == "array"
    assert kind_of({}) == "object"


def test_types_match_single_and_list():
    assert types_match(2, "number")
    assert types_match(2.0, "integer")
    assert not types_match(True, "integer")
    assert types_match(None, ["string", "null"])
    assert not types_match("x", ["integer", "null"])
    assert not types_match("x", "unknown-type")


def test_json_equal_keeps_booleans_apart():
    assert json_equal(1, 1.0)
    assert not json_equal(1, True)
    assert not json_equal(0, False)
    assert json_equal({"a": [1, 2]}, {"a": [1.0, 2]})
    assert not json_equal([1, 2], [2, 1])
    assert not json_equal("1", 1)


def test_canonical_json_sorts_keys():
    assert canonical_json({"b": 1, "a": 2.0}) == '{"a":2,"b":1}'


def test_contains_json():
    assert contains_json(["a", 1, None], None)
    assert not contains_json([1, 2], True)
