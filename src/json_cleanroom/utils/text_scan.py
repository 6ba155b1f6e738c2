"""Scanner primitives and value-model predicates.

Every component that rewrites or inspects payload text walks it one code point
at a time through a ``StringTracker`` so that brackets, quotes and comment
markers inside double-quoted literals are never mistaken for syntax.
"""

from __future__ import annotations

import json
import math
from typing import Any, List, Optional, Tuple, Union

WHITESPACE = frozenset(" \t\r\n")
STRUCTURAL_DELIMITERS = frozenset(",}]:")


class StringTracker:
    """Replays double-quoted string state left to right.

    Call :meth:`step` once per character. After the call, ``in_string`` tells
    whether the cursor is inside a literal and ``escaped`` whether the next
    character is backslash-escaped.
    """

    __slots__ = ("in_string", "escaped")

    def __init__(self) -> None:
        self.in_string = False
        self.escaped = False

    def step(self, ch: str) -> bool:
        """Advance over ``ch``; return True when it belongs to a string literal, quotes included."""
        if self.in_string:
            if self.escaped:
                self.escaped = False
            elif ch == "\\":
                self.escaped = True
            elif ch == '"':
                self.in_string = False
            return True
        if ch == '"':
            self.in_string = True
            return True
        return False


def next_significant(text: str, index: int) -> Tuple[Optional[str], int]:
    """Return the first non-whitespace character at or after ``index`` and its position."""
    length = len(text)
    i = index
    while i < length and text[i] in WHITESPACE:
        i += 1
    return (text[i] if i < length else None), i


def prev_significant(text: str, index: int) -> Tuple[Optional[str], int]:
    """Return the last non-whitespace character at or before ``index`` and its position."""
    i = index
    while i >= 0 and text[i] in WHITESPACE:
        i -= 1
    return (text[i] if i >= 0 else None), i


def is_identifier_start(ch: str) -> bool:
    return ch == "_" or ch.isalpha()


def is_identifier_char(ch: str) -> bool:
    return ch == "_" or ch.isalnum()


# ----------------------------- Value model -----------------------------


def is_mapping(value: Any) -> bool:
    return isinstance(value, dict)


def is_list(value: Any) -> bool:
    return isinstance(value, list)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value) and value.is_integer()


def is_empty_value(value: Any) -> bool:
    """None, a blank string, or a zero-length list/dict."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return False


def kind_of(value: Any) -> str:
    """Return the JSON type name of a Python value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def types_match(value: Any, expected: Union[str, List[str]]) -> bool:
    if isinstance(expected, (list, tuple)):
        return any(types_match(value, item) for item in expected)
    name = str(expected).lower()
    if name == "integer":
        return is_integer(value)
    if name == "number":
        return is_number(value)
    if name == "boolean":
        return isinstance(value, bool)
    if name == "object":
        return is_mapping(value)
    if name == "array":
        return is_list(value)
    if name == "string":
        return isinstance(value, str)
    if name == "null":
        return value is None
    return False


def _integral_floats_as_ints(value: Any) -> Any:
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    if isinstance(value, list):
        return [_integral_floats_as_ints(item) for item in value]
    if isinstance(value, dict):
        return {key: _integral_floats_as_ints(item) for key, item in value.items()}
    return value


def canonical_json(value: Any) -> str:
    """Stable text form used for equality and uniqueness checks.

    Keys are sorted and ``1.0`` is written as ``1``, so two values are
    JSON-equal exactly when their canonical forms match.
    """
    try:
        return json.dumps(
            _integral_floats_as_ints(value),
            sort_keys=True,
            ensure_ascii=False,
            separators=(",", ":"),
        )
    except (TypeError, ValueError, RecursionError):
        return repr(value)


def json_equal(left: Any, right: Any) -> bool:
    """Equality that keeps booleans apart from numbers and compares containers structurally."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if is_number(left) and is_number(right):
        return left == right
    if type(left) is not type(right):
        return False
    if isinstance(left, (list, dict)):
        return canonical_json(left) == canonical_json(right)
    return left == right


def contains_json(candidates: List[Any], value: Any) -> bool:
    return any(json_equal(candidate, value) for candidate in candidates)


__all__ = [
    "WHITESPACE",
    "STRUCTURAL_DELIMITERS",
    "StringTracker",
    "next_significant",
    "prev_significant",
    "is_identifier_start",
    "is_identifier_char",
    "is_mapping",
    "is_list",
    "is_number",
    "is_integer",
    "is_empty_value",
    "kind_of",
    "types_match",
    "canonical_json",
    "json_equal",
    "contains_json",
]
