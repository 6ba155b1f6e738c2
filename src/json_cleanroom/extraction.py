"""Payload extraction from free-form model output."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional, Tuple

from .json_engine import loads_ok
from .repair import remove_trailing_commas
from .schemas import ValidateOptions
from .utils.text_scan import StringTracker

logger = logging.getLogger(__name__)

CODE_FENCE_PATTERN = re.compile(r"```([\w+-]+)?[ \t]*\r?\n?([\s\S]*?)```")

SOURCE_RAW = "raw"
SOURCE_CODE_FENCE = "code_fence"
SOURCE_BALANCED_BLOCK = "balanced_block"
SOURCE_OBJECT = "object"


def try_parseable_as_is(text: str, options: ValidateOptions) -> Tuple[str, bool]:
    """Return ``(text, True)`` if ``text`` parses, optionally after dropping trailing commas."""
    if loads_ok(text, options):
        return text, True
    if options.tolerate_trailing_commas:
        normalized = remove_trailing_commas(text)
        if normalized != text and loads_ok(normalized, options):
            return normalized, True
    return text, False


def extract_first_balanced_block(text: str) -> Tuple[Optional[str], Tuple[int, int], bool]:
    """Locate the first ``{...}`` or ``[...]`` block.

    Only brackets of the opening type are counted, and brackets inside string
    literals are ignored. Returns ``(block, (start, end), truncated_at_end)``;
    when the block never closes the tail from the opener onward is returned
    with ``truncated_at_end=True``.
    """
    starts = [pos for pos in (text.find("{"), text.find("[")) if pos != -1]
    if not starts:
        return None, (0, 0), False

    start = min(starts)
    opening = text[start]
    closing = "}" if opening == "{" else "]"
    depth = 1
    tracker = StringTracker()

    for i in range(start + 1, len(text)):
        ch = text[i]
        if tracker.step(ch):
            continue
        if ch == opening:
            depth += 1
        elif ch == closing:
            depth -= 1
            if depth == 0:
                return text[start:i + 1], (start, i + 1), False

    return text[start:], (start, len(text)), True


def _iter_fences(text: str):
    for match in CODE_FENCE_PATTERN.finditer(text):
        body = (match.group(2) or "").strip()
        if body:
            yield (match.group(1) or "").lower(), body, match.span()


def extract_json_payload(text: str, options: Optional[ValidateOptions] = None) -> Tuple[Optional[str], Dict[str, Any]]:
    """Find the most plausible JSON payload inside ``text``.

    Tried in order: the whole trimmed text, fenced code blocks (``json``-tagged
    first, then any), then the first balanced bracketed block. The balanced
    block is returned even when it does not parse so the caller can attempt a
    repair. Returns ``(None, info)`` only when no candidate exists at all.
    """
    options = options or ValidateOptions()
    info: Dict[str, Any] = {"source": None, "extraction": {}}

    direct = text.strip()
    if direct:
        payload, ok = try_parseable_as_is(direct, options)
        if ok:
            info["source"] = SOURCE_RAW
            return payload, info

    if not options.extract_json:
        info["source"] = SOURCE_RAW
        info["extraction"] = {"extract_json": False}
        return (direct or None), info

    if options.allow_json_in_code_fences:
        fences = list(_iter_fences(text))
        tagged = [fence for fence in fences if fence[0] == "json"]
        for lang, body, span in tagged + fences:
            payload, ok = try_parseable_as_is(body, options)
            if ok:
                logger.debug("Extracted payload from %s code fence at %s", lang or "untagged", span)
                info["source"] = SOURCE_CODE_FENCE
                info["extraction"] = {"lang": lang, "span": list(span)}
                return payload, info

    block, span, truncated = extract_first_balanced_block(text)
    if block is not None:
        payload, ok = try_parseable_as_is(block, options)
        info["source"] = SOURCE_BALANCED_BLOCK
        info["extraction"] = {"span": list(span), "truncated_at_end": truncated}
        logger.debug("Using balanced block at %s (parses=%s, truncated=%s)", span, ok, truncated)
        return payload, info

    info["extraction"] = {"reason": "no_json_found"}
    return None, info
