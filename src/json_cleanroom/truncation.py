"""Truncation detection.

Distinguishes text that was cut off mid-document (typically by an output
token limit) from text that is merely malformed. A truncated payload is never
repaired; the caller should retry with a larger limit instead.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Tuple

from .utils.text_scan import StringTracker

SUSPICIOUS_TRAILING_CHARACTERS = frozenset(",:{[\\")
_PAIRS = {"}": "{", "]": "["}


class TruncationReason(str, Enum):
    MISMATCHED_BRACKETS = "mismatched_brackets"
    UNCLOSED_STRING = "unclosed_string"
    UNCLOSED_BRACES_OR_BRACKETS = "unclosed_braces_or_brackets"
    SUSPICIOUS_TRAILING_CHARACTER = "suspicious_trailing_character"
    ELLIPSIS = "ellipsis_or_continuation_marker"


def detect_truncation(text: str) -> Tuple[bool, List[str]]:
    """Return ``(likely_truncated, reasons)`` for ``text``.

    Closers with no open bracket are ignored; a closer that does not match the
    innermost opener is reported once per occurrence.
    """
    reasons: List[str] = []
    if not text:
        return False, reasons

    tracker = StringTracker()
    stack: List[str] = []
    for ch in text:
        if tracker.step(ch):
            continue
        if ch in "{[":
            stack.append(ch)
        elif ch in "}]" and stack:
            if stack.pop() != _PAIRS[ch]:
                reasons.append(TruncationReason.MISMATCHED_BRACKETS.value)

    if tracker.in_string:
        reasons.append(TruncationReason.UNCLOSED_STRING.value)
    if stack:
        reasons.append(TruncationReason.UNCLOSED_BRACES_OR_BRACKETS.value)

    stripped = text.rstrip()
    if stripped and stripped[-1] in SUSPICIOUS_TRAILING_CHARACTERS:
        reasons.append(TruncationReason.SUSPICIOUS_TRAILING_CHARACTER.value)
    if stripped.endswith("...") or stripped.endswith("…"):
        reasons.append(TruncationReason.ELLIPSIS.value)

    return bool(reasons), reasons
