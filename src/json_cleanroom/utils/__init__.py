"""Utility modules for json_cleanroom."""

from .text_scan import (
    STRUCTURAL_DELIMITERS,
    WHITESPACE,
    StringTracker,
    canonical_json,
    contains_json,
    is_empty_value,
    is_integer,
    is_list,
    is_mapping,
    is_number,
    json_equal,
    kind_of,
    next_significant,
    prev_significant,
    types_match,
)

__all__ = [
    "STRUCTURAL_DELIMITERS",
    "WHITESPACE",
    "StringTracker",
    "canonical_json",
    "contains_json",
    "is_empty_value",
    "is_integer",
    "is_list",
    "is_mapping",
    "is_number",
    "json_equal",
    "kind_of",
    "next_significant",
    "prev_significant",
    "types_match",
]
