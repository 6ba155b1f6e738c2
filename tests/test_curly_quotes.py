import json

from json_cleanroom.curly_quotes import (
    contains_curly_quotes,
    normalize_curly_quotes_in_data,
    sanitize_curly_quotes,
)


def test_plain_text_is_returned_unchanged() -> None:
    text = '{"a": "b"}'
    assert sanitize_curly_quotes(text) is text
    assert not contains_curly_quotes(text)


def test_curly_delimiters_become_ascii() -> None:
    text = "{“name”: “Alice”}"
    assert json.loads(sanitize_curly_quotes(text)) == {"name": "Alice"}


def test_curly_quote_inside_straight_string_is_escaped() -> None:
    text = '{"quote": "he said “hi”"}'
    out = sanitize_curly_quotes(text)
    assert json.loads(out) == {"quote": 'he said "hi"'}


def test_curly_quote_inside_curly_string_is_content_unless_followed_by_delimiter() -> None:
    text = "{“title”: “The “Best” Book”}"
    out = sanitize_curly_quotes(text)
    assert json.loads(out) == {"title": 'The "Best" Book'}


def test_smart_single_quotes_become_apostrophes() -> None:
    text = '{"note": "it’s fine"}'
    assert json.loads(sanitize_curly_quotes(text)) == {"note": "it's fine"}


def test_escaped_character_inside_string_is_kept() -> None:
    text = '{"a": "x\\"y", "b": “z”}'
    assert json.loads(sanitize_curly_quotes(text)) == {"a": 'x"y', "b": "z"}


def test_normalize_data_rewrites_string_leaves_only() -> None:
    data = {"“key”": ["‘a’", {"b": "“c”"}], "n": 1}
    normalized, changed = normalize_curly_quotes_in_data(data)
    assert changed is True
    assert normalized == {"“key”": ["'a'", {"b": '"c"'}], "n": 1}
    # the input is not mutated
    assert data["“key”"][0] == "‘a’"


def test_normalize_data_reports_no_change() -> None:
    data = {"a": ["b", 1, None]}
    normalized, changed = normalize_curly_quotes_in_data(data)
    assert changed is False
    assert normalized == data


def test_normalize_scalar_string() -> None:
    assert normalize_curly_quotes_in_data("“x”") == ('"x"', True)
    assert normalize_curly_quotes_in_data(5) == (5, False)


def test_normalize_handles_deep_nesting() -> None:
    data = current = []
    for _ in range(5000):
        child = []
        current.append(child)
        current = child
    current.append("‘deep’")
    normalized, changed = normalize_curly_quotes_in_data(data)
    assert changed is True
