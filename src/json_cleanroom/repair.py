"""Conservative, budgeted repair of near-JSON text.

The passes run in a fixed order and each one can be switched off through
``ValidateOptions``. After every pass that changed something the candidate is
re-parsed and the first parseable candidate wins. All passes draw on a single
edit budget; once the running total goes over it the whole attempt is
abandoned and no partially repaired text is returned.

Each pass function takes the text and returns ``(new_text, edit_count, counts)``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .exceptions import RepairBudgetExceeded
from .json_engine import loads_ok
from .schemas import RepairTrace, ValidateOptions
from .truncation import detect_truncation
from .utils.text_scan import (
    STRUCTURAL_DELIMITERS,
    StringTracker,
    is_identifier_char,
    is_identifier_start,
    next_significant,
    prev_significant,
)

logger = logging.getLogger(__name__)

_CONTROL_ESCAPES = {"\n": "\\n", "\t": "\\t", "\r": "\\r"}
_CONTROL_COUNT_KEYS = {
    "\n": "escaped_newlines",
    "\t": "escaped_tabs",
    "\r": "escaped_carriage_returns",
}
_CONSTANTS = {"True": "true", "False": "false", "None": "null"}
_NON_FINITE = frozenset(["NaN", "Infinity", "-Infinity"])
_SINGLE_QUOTE_OPENERS = frozenset("{[,:")


def _escape_control(ch: str) -> str:
    return _CONTROL_ESCAPES.get(ch) or "\\u%04x" % ord(ch)


# --------------------------------------------------------------------------
# Passes
# --------------------------------------------------------------------------


def escape_inner_quotes_and_controls(text: str) -> Tuple[str, int, Dict[str, int]]:
    """Escape unescaped quotes and raw control characters inside string literals.

    A ``"`` inside a literal closes it only when the next significant character
    is a structural delimiter or end of text; otherwise it is content.
    """
    out: List[str] = []
    counts = {
        "escaped_inner_quotes": 0,
        "escaped_newlines": 0,
        "escaped_tabs": 0,
        "escaped_carriage_returns": 0,
        "escaped_other_controls": 0,
    }
    in_string = False
    escaped = False

    for i, ch in enumerate(text):
        if not in_string:
            if ch == '"':
                in_string = True
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
        if ch == '"':
            following, _ = next_significant(text, i + 1)
            if following is not None and following not in STRUCTURAL_DELIMITERS:
                out.append('\\"')
                counts["escaped_inner_quotes"] += 1
                continue
            out.append(ch)
            in_string = False
            continue
        if ord(ch) < 0x20:
            out.append(_escape_control(ch))
            counts[_CONTROL_COUNT_KEYS.get(ch, "escaped_other_controls")] += 1
            continue
        out.append(ch)

    return "".join(out), sum(counts.values()), counts


def convert_single_quoted_strings(text: str) -> Tuple[str, int, int]:
    """Rewrite ``'...'`` literals as double-quoted strings.

    A single quote opens a literal only at the start of the text or right after
    ``{``, ``[``, ``,`` or ``:`` (ignoring whitespace), so apostrophes inside
    prose are left alone. Returns ``(text, edits, literals_converted)``.
    """
    out: List[str] = []
    tracker = StringTracker()
    length = len(text)
    changes = 0
    converted = 0
    unterminated_tail = False
    i = 0

    while i < length:
        ch = text[i]
        if tracker.step(ch):
            out.append(ch)
            i += 1
            continue

        if ch == "'" and not unterminated_tail:
            prev, _ = prev_significant(text, i - 1)
            if prev is None or prev in _SINGLE_QUOTE_OPENERS:
                buf: List[str] = []
                controls = 0
                j = i + 1
                closed = False
                while j < length:
                    cj = text[j]
                    if cj == "\\" and j + 1 < length:
                        nxt = text[j + 1]
                        # \' has no meaning inside a double-quoted literal
                        buf.append("'" if nxt == "'" else cj + nxt)
                        j += 2
                        continue
                    if cj == "'":
                        closed = True
                        break
                    if cj == '"':
                        buf.append('\\"')
                    elif ord(cj) < 0x20:
                        buf.append(_escape_control(cj))
                        controls += 1
                    else:
                        buf.append(cj)
                    j += 1

                if closed:
                    out.append('"')
                    out.extend(buf)
                    out.append('"')
                    changes += 2 + controls
                    converted += 1
                    i = j + 1
                    continue
                # nothing later can close either
                unterminated_tail = True

        out.append(ch)
        i += 1

    return "".join(out), changes, converted


def strip_js_comments(text: str) -> Tuple[str, int, Dict[str, int]]:
    """Drop ``// line`` and ``/* block */`` comments found outside string literals."""
    out: List[str] = []
    tracker = StringTracker()
    counts = {"line": 0, "block": 0}
    length = len(text)
    i = 0

    while i < length:
        ch = text[i]
        if tracker.step(ch):
            out.append(ch)
            i += 1
            continue
        if ch == "/" and i + 1 < length:
            nxt = text[i + 1]
            if nxt == "/":
                i += 2
                while i < length and text[i] not in "\r\n":
                    i += 1
                counts["line"] += 1
                continue
            if nxt == "*":
                end = text.find("*/", i + 2)
                i = length if end == -1 else end + 2
                counts["block"] += 1
                continue
        out.append(ch)
        i += 1

    return "".join(out), counts["line"] + counts["block"], counts


def quote_unquoted_keys(text: str) -> Tuple[str, int, int]:
    """Wrap bareword object keys in double quotes.

    An identifier (Unicode letters, digits and ``_``, not starting with a digit)
    is a key when it follows ``{`` or ``,`` and precedes ``:``.
    Returns ``(text, edits, keys_quoted)``.
    """
    out: List[str] = []
    tracker = StringTracker()
    length = len(text)
    changes = 0
    quoted = 0
    i = 0

    while i < length:
        ch = text[i]
        if tracker.step(ch):
            out.append(ch)
            i += 1
            continue
        if is_identifier_start(ch):
            j = i + 1
            while j < length and is_identifier_char(text[j]):
                j += 1
            token = text[i:j]
            following, _ = next_significant(text, j)
            if following == ":":
                prev, _ = prev_significant(text, i - 1)
                if prev in ("{", ","):
                    out.append(f'"{token}"')
                    changes += 2
                    quoted += 1
                    i = j
                    continue
            out.append(token)
            i = j
            continue
        out.append(ch)
        i += 1

    return "".join(out), changes, quoted


def remove_trailing_commas(text: str) -> str:
    """Remove commas whose next significant character is ``}`` or ``]``."""
    return remove_trailing_commas_with_count(text)[0]


def remove_trailing_commas_with_count(text: str) -> Tuple[str, int]:
    out: List[str] = []
    tracker = StringTracker()
    removed = 0

    for i, ch in enumerate(text):
        if not tracker.step(ch) and ch == ",":
            following, _ = next_significant(text, i + 1)
            if following in ("}", "]"):
                removed += 1
                continue
        out.append(ch)

    return "".join(out), removed


def replace_constants(text: str, replace_non_finite: bool = True) -> Tuple[str, int, Dict[str, int]]:
    """Turn Python/JS literals into JSON: ``True``/``False``/``None`` and, optionally,
    ``NaN``/``Infinity``/``-Infinity`` (which become ``null``)."""
    out: List[str] = []
    tracker = StringTracker()
    counts = {"true_false_none": 0, "nans_infinities": 0}
    length = len(text)
    i = 0

    while i < length:
        ch = text[i]
        if tracker.step(ch):
            out.append(ch)
            i += 1
            continue
        if ch == "-" or ch.isalpha():
            j = i + 1
            while j < length and (is_identifier_char(text[j]) or text[j] == "-"):
                j += 1
            token = text[i:j]
            if token in _CONSTANTS:
                out.append(_CONSTANTS[token])
                counts["true_false_none"] += 1
            elif replace_non_finite and token in _NON_FINITE:
                out.append("null")
                counts["nans_infinities"] += 1
            else:
                out.append(token)
            i = j
            continue
        out.append(ch)
        i += 1

    return "".join(out), counts["true_false_none"] + counts["nans_infinities"], counts


# --------------------------------------------------------------------------
# Pass chain
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class RepairPass:
    name: str
    enabled: Callable[[ValidateOptions], bool]
    run: Callable[[str, ValidateOptions], Tuple[str, int, Any]]


def _json5_enabled(flag: str) -> Callable[[ValidateOptions], bool]:
    return lambda options: options.allow_json5_like and getattr(options, flag)


def _run_trailing_commas(text: str, options: ValidateOptions) -> Tuple[str, int, Any]:
    repaired, removed = remove_trailing_commas_with_count(text)
    return repaired, removed, removed


REPAIR_PASSES: Tuple[RepairPass, ...] = (
    RepairPass(
        "escape_inner_quotes_and_controls",
        lambda options: options.escape_inner_quotes,
        lambda text, options: escape_inner_quotes_and_controls(text),
    ),
    RepairPass(
        "single_quoted_to_double_quoted",
        _json5_enabled("fix_single_quotes"),
        lambda text, options: convert_single_quoted_strings(text),
    ),
    RepairPass(
        "strip_js_comments",
        _json5_enabled("strip_js_comments"),
        lambda text, options: strip_js_comments(text),
    ),
    RepairPass(
        "quote_unquoted_keys",
        _json5_enabled("quote_unquoted_keys"),
        lambda text, options: quote_unquoted_keys(text),
    ),
    RepairPass(
        "remove_trailing_commas",
        lambda options: options.tolerate_trailing_commas,
        _run_trailing_commas,
    ),
    RepairPass(
        "replace_constants",
        lambda options: options.replace_constants,
        lambda text, options: replace_constants(text, options.replace_nans_infinities),
    ),
)


def _hook_name(hook: Any) -> str:
    return getattr(hook, "__name__", None) or type(hook).__name__


def _run_hook(hook: Any, text: str, options: ValidateOptions) -> Tuple[str, int, Dict[str, Any]]:
    result = hook(text, options)
    if not isinstance(result, tuple) or len(result) != 3:
        raise TypeError("repair hook must return a (text, edit_count, metadata) tuple")
    repaired, changes, meta = result
    if not isinstance(repaired, str) or not isinstance(changes, int) or isinstance(changes, bool):
        raise TypeError("repair hook returned a non-str text or non-int edit count")
    return repaired, changes, dict(meta or {})


class _Budget:
    def __init__(self, threshold: int) -> None:
        self.threshold = threshold
        self.spent = 0

    def charge(self, changes: int, after_pass: str) -> None:
        self.spent += changes
        if self.spent > self.threshold:
            raise RepairBudgetExceeded(self.threshold, after_pass)


def attempt_safe_repair(payload: str, options: ValidateOptions) -> Tuple[Optional[str], RepairTrace]:
    """Try to turn ``payload`` into parseable JSON.

    Returns ``(repaired_text, trace)`` on success and ``(None, trace)`` when the
    payload looks truncated, the budget was exceeded, or no pass chain made it
    parse.
    """
    trace = RepairTrace()
    truncated, reasons = detect_truncation(payload)
    if truncated:
        trace.skipped = {"reason": "likely_truncated", "reasons": reasons}
        return None, trace

    budget = _Budget(options.repair_budget(len(payload)))
    candidate = payload

    try:
        for repair_pass in REPAIR_PASSES:
            if not repair_pass.enabled(options):
                continue
            repaired, changes, counts = repair_pass.run(candidate, options)
            if not changes:
                continue
            budget.charge(changes, repair_pass.name)
            candidate = repaired
            trace.record(repair_pass.name, counts)
            logger.debug("Repair pass %s applied %d edits", repair_pass.name, changes)
            if loads_ok(candidate, options):
                return candidate, trace

        for hook in options.custom_repair_hooks:
            name = _hook_name(hook)
            try:
                repaired, changes, meta = _run_hook(hook, candidate, options)
            except Exception as exc:
                logger.warning("Repair hook %s failed: %s", name, exc)
                trace.hook_errors.append({"hook": name, "error": str(exc)})
                continue
            if not changes:
                continue
            tag = f"custom_hook:{name}"
            budget.charge(changes, tag)
            candidate = repaired
            trace.record(tag, meta)
            if loads_ok(candidate, options):
                return candidate, trace
    except RepairBudgetExceeded as exc:
        logger.debug("Repair abandoned: %s", exc)
        trace.skipped = {
            "reason": "too_many_modifications",
            "threshold": exc.threshold,
            "after_pass": exc.after_pass,
        }
        return None, trace

    if candidate != payload and loads_ok(candidate, options):
        return candidate, trace
    return None, trace
