"""Typographic ("smart") quote normalization.

Models often emit “this” or ‘this’ instead of ASCII quotes, either as string
delimiters or as content. ``sanitize_curly_quotes`` rewrites raw text before it
is parsed; ``normalize_curly_quotes_in_data`` rewrites the string leaves of an
already-parsed value.
"""

from __future__ import annotations

from typing import Any, List, Tuple

from .utils.text_scan import STRUCTURAL_DELIMITERS, next_significant

DOUBLE_CURLY_QUOTES = frozenset("“”„‟«»″")
SINGLE_CURLY_QUOTES = frozenset("‘’‚‛′‹›")

_OUTSIDE = 0
_IN_STRAIGHT = 1
_IN_CURLY = 2


def contains_curly_quotes(text: str) -> bool:
    return any(ch in DOUBLE_CURLY_QUOTES or ch in SINGLE_CURLY_QUOTES for ch in text)


def sanitize_curly_quotes(text: str) -> str:
    """Rewrite smart quotes in raw JSON-like text.

    A smart double quote outside any string opens a string that is written with
    an ASCII quote. Inside a string opened by a straight quote it is content and
    gets escaped. Inside a string opened by a smart quote, a smart quote closes
    the string only when the next significant character is ``,``, ``}``, ``]``,
    ``:`` or end of text; otherwise it is escaped as content. The lookahead is a
    single token, so several consecutive embedded quotes can still be split in
    the wrong place. Smart single quotes always become ``'``.
    """
    if not contains_curly_quotes(text):
        return text

    out: List[str] = []
    state = _OUTSIDE
    escaped = False

    for i, ch in enumerate(text):
        if state == _OUTSIDE:
            if ch == '"':
                state = _IN_STRAIGHT
                out.append('"')
            elif ch in DOUBLE_CURLY_QUOTES:
                state = _IN_CURLY
                out.append('"')
            elif ch in SINGLE_CURLY_QUOTES:
                out.append("'")
            else:
                out.append(ch)
            continue

        if escaped:
            out.append(ch)
            escaped = False
            continue
        if ch == "\\":
            out.append(ch)
            escaped = True
            continue
        if ch in SINGLE_CURLY_QUOTES:
            out.append("'")
            continue

        if ch == '"':
            if state == _IN_STRAIGHT:
                out.append('"')
                state = _OUTSIDE
            else:
                out.append('\\"')
            continue

        if ch in DOUBLE_CURLY_QUOTES:
            if state == _IN_CURLY:
                following, _ = next_significant(text, i + 1)
                if following is None or following in STRUCTURAL_DELIMITERS:
                    out.append('"')
                    state = _OUTSIDE
                    continue
            out.append('\\"')
            continue

        out.append(ch)

    return "".join(out)


def _normalize_string(value: str) -> str:
    if not contains_curly_quotes(value):
        return value
    return "".join(
        '"' if ch in DOUBLE_CURLY_QUOTES else "'" if ch in SINGLE_CURLY_QUOTES else ch
        for ch in value
    )


def normalize_curly_quotes_in_data(value: Any) -> Tuple[Any, bool]:
    """Return a copy of ``value`` with smart quotes in string leaves made ASCII.

    Mapping keys are left untouched. The walk uses an explicit stack, so
    deeply nested input cannot exhaust the interpreter's recursion limit.
    The second element reports whether any string changed.
    """
    if isinstance(value, str):
        normalized = _normalize_string(value)
        return normalized, normalized != value
    if not isinstance(value, (dict, list)):
        return value, False

    root = dict(value) if isinstance(value, dict) else list(value)
    changed = False
    stack = [root]
    while stack:
        node = stack.pop()
        entries = list(node.items()) if isinstance(node, dict) else list(enumerate(node))
        for key, item in entries:
            if isinstance(item, str):
                normalized = _normalize_string(item)
                if normalized != item:
                    node[key] = normalized
                    changed = True
            elif isinstance(item, dict):
                copied = dict(item)
                node[key] = copied
                stack.append(copied)
            elif isinstance(item, list):
                copied = list(item)
                node[key] = copied
                stack.append(copied)
    return root, changed
