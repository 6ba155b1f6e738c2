import json

import pytest

from json_cleanroom.repair import (
    REPAIR_PASSES,
    attempt_safe_repair,
    convert_single_quoted_strings,
    escape_inner_quotes_and_controls,
    quote_unquoted_keys,
    remove_trailing_commas,
    remove_trailing_commas_with_count,
    replace_constants,
    strip_js_comments,
)
from json_cleanroom.schemas import ValidateOptions
from tests.helpers.payloads import (
    INNER_QUOTES,
    JS_COMMENTED,
    PYTHON_DICT,
    PYTHON_LITERALS,
    RAW_NEWLINE_IN_STRING,
    TRAILING_COMMAS,
    TRUNCATED_ARRAY,
)


# ============================================================================
# Individual passes
# ============================================================================

def test_escape_inner_quotes() -> None:
    text, changes, counts = escape_inner_quotes_and_controls(INNER_QUOTES)
    assert json.loads(text) == {"quote": 'She said "hi" to me', "n": 1}
    assert changes == 2
    assert counts["escaped_inner_quotes"] == 2


def test_escape_raw_control_characters() -> None:
    text, changes, counts = escape_inner_quotes_and_controls(RAW_NEWLINE_IN_STRING)
    assert json.loads(text) == {"text": "line one\nline two"}
    assert counts["escaped_newlines"] == 1
    assert changes == 1


def test_escape_other_control_characters() -> None:
    text, _, counts = escape_inner_quotes_and_controls('{"a": "x\x01y"}')
    assert json.loads(text) == {"a": "x\x01y"}
    assert counts["escaped_other_controls"] == 1


def test_escape_pass_leaves_valid_json_alone() -> None:
    original = '{"a": "b", "c": ["d"]}'
    assert escape_inner_quotes_and_controls(original)[1] == 0


def test_single_quotes_converted_after_structural_characters() -> None:
    text, changes, converted = convert_single_quoted_strings("{'a': 'x', 'b': ['y', 'z']}")
    assert json.loads(text) == {"a": "x", "b": ["y", "z"]}
    assert converted == 5
    assert changes == 10


def test_single_quotes_escape_embedded_double_quotes() -> None:
    text, _, _ = convert_single_quoted_strings("{'say': 'he said \"hi\"'}")
    assert json.loads(text) == {"say": 'he said "hi"'}


def test_single_quotes_unescape_backslash_apostrophe() -> None:
    text, _, _ = convert_single_quoted_strings(r"{'msg': 'don\'t'}")
    assert json.loads(text) == {"msg": "don't"}


def test_apostrophe_in_prose_is_not_a_delimiter() -> None:
    original = '{"msg": "it\'s"}'
    text, changes, _ = convert_single_quoted_strings(original)
    assert text == original
    assert changes == 0


def test_strip_js_comments() -> None:
    text, changes, counts = strip_js_comments(JS_COMMENTED)
    assert json.loads(text) == {"id": 7, "name": "x"}
    assert counts == {"line": 1, "block": 1}
    assert changes == 2


def test_comment_markers_inside_strings_are_kept() -> None:
    original = '{"url": "http://example.com/*x*/"}'
    text, changes, _ = strip_js_comments(original)
    assert text == original
    assert changes == 0


def test_quote_unquoted_keys() -> None:
    text, changes, quoted = quote_unquoted_keys('{name: "A", nested: {ünïcode_key: 1}}')
    assert json.loads(text) == {"name": "A", "nested": {"ünïcode_key": 1}}
    assert quoted == 3
    assert changes == 6


def test_bare_values_are_not_quoted_as_keys() -> None:
    original = '{"a": true, "b": null}'
    assert quote_unquoted_keys(original)[0] == original


def test_remove_trailing_commas() -> None:
    text, removed = remove_trailing_commas_with_count(TRAILING_COMMAS)
    assert json.loads(text) == {"a": [1, 2, 3], "b": {"c": 1}}
    assert removed == 3
    assert remove_trailing_commas('["a,]"]') == '["a,]"]'


def test_replace_constants() -> None:
    text, changes, counts = replace_constants(PYTHON_LITERALS)
    assert json.loads(text) == {"ok": True, "missing": None, "flag": False}
    assert counts["true_false_none"] == 3
    assert changes == 3


def test_replace_non_finite_numbers() -> None:
    text, _, counts = replace_constants("[NaN, Infinity, -Infinity, 1]")
    assert json.loads(text) == [None, None, None, 1]
    assert counts["nans_infinities"] == 3

    kept, changes, _ = replace_constants("[NaN]", replace_non_finite=False)
    assert kept == "[NaN]"
    assert changes == 0


def test_constants_inside_strings_are_kept() -> None:
    original = '{"a": "True story"}'
    assert replace_constants(original)[0] == original


def test_pass_order() -> None:
    assert [p.name for p in REPAIR_PASSES] == [
        "escape_inner_quotes_and_controls",
        "single_quoted_to_double_quoted",
        "strip_js_comments",
        "quote_unquoted_keys",
        "remove_trailing_commas",
        "replace_constants",
    ]


# ============================================================================
# Chain
# ============================================================================

def test_attempt_repairs_python_style_dict() -> None:
    repaired, trace = attempt_safe_repair(PYTHON_DICT, ValidateOptions())
    assert json.loads(repaired) == {"name": "Alice", "age": 30}
    assert trace.applied == ["single_quoted_to_double_quoted", "quote_unquoted_keys"]
    assert trace.skipped is None


def test_attempt_stops_at_first_success() -> None:
    repaired, trace = attempt_safe_repair(PYTHON_LITERALS, ValidateOptions())
    assert json.loads(repaired)["ok"] is True
    assert trace.applied == ["replace_constants"]


def test_attempt_skips_truncated_payload() -> None:
    repaired, trace = attempt_safe_repair(TRUNCATED_ARRAY, ValidateOptions())
    assert repaired is None
    assert trace.skipped["reason"] == "likely_truncated"
    assert trace.applied == []


def test_budget_exceeded_abandons_repair() -> None:
    payload = "{" + ", ".join(f"'k{i}': 'v{i}'" for i in range(20)) + "}"
    options = ValidateOptions(max_total_repairs=5)
    repaired, trace = attempt_safe_repair(payload, options)
    assert repaired is None
    assert trace.skipped == {
        "reason": "too_many_modifications",
        "threshold": 5,
        "after_pass": "single_quoted_to_double_quoted",
    }


def test_budget_increase_turns_failure_into_success() -> None:
    payload = "{" + ", ".join(f"'k{i}': 'v{i}'" for i in range(20)) + "}"
    small, _ = attempt_safe_repair(payload, ValidateOptions(max_total_repairs=5))
    large, _ = attempt_safe_repair(payload, ValidateOptions(max_total_repairs=200, min_repair_budget=100))
    assert small is None
    assert json.loads(large)["k19"] == "v19"


def test_disabled_json5_passes() -> None:
    repaired, trace = attempt_safe_repair(PYTHON_DICT, ValidateOptions(allow_json5_like=False))
    assert repaired is None
    assert "single_quoted_to_double_quoted" not in trace.applied


def test_custom_hook_runs_after_builtin_passes() -> None:
    def swap_semicolons(text, options):
        return text.replace(";", ","), text.count(";"), {"semicolons": text.count(";")}

    options = ValidateOptions(custom_repair_hooks=(swap_semicolons,))
    repaired, trace = attempt_safe_repair('{"a": 1; "b": 2}', options)
    assert json.loads(repaired) == {"a": 1, "b": 2}
    assert trace.applied == ["custom_hook:swap_semicolons"]
    assert trace.counts["custom_hook:swap_semicolons"] == {"semicolons": 1}


def test_failing_hook_is_recorded_and_skipped() -> None:
    def broken(text, options):
        raise RuntimeError("boom")

    def bad_shape(text, options):
        return text

    options = ValidateOptions(custom_repair_hooks=(broken, bad_shape))
    repaired, trace = attempt_safe_repair('{"a": 1; "b": 2}', options)
    assert repaired is None
    assert [entry["hook"] for entry in trace.hook_errors] == ["broken", "bad_shape"]
    assert trace.hook_errors[0]["error"] == "boom"


@pytest.mark.parametrize("payload", ["{'a': 1}", "{a: 1,}", '{"a": True}'])
def test_repaired_output_is_stable(payload: str) -> None:
    repaired, _ = attempt_safe_repair(payload, ValidateOptions())
    _, trace = attempt_safe_repair(json.dumps(json.loads(repaired)), ValidateOptions())
    # already valid: nothing to apply
    assert trace.applied == []
