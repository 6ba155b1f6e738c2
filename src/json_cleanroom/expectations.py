"""Path-scoped expectations.

An expectation names a path (``users[*].email``, ``$.meta.*``, ``items[0]``)
and the constraints every value found there must satisfy. Wildcards fan out to
all children, so one expectation can raise several issues, one per failing
match.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .json_engine import validate_model
from .schema_validator import compile_pattern
from .schemas import ErrorKind, Expectation, Issue, ValidateOptions
from .utils.text_scan import (
    canonical_json,
    contains_json,
    is_empty_value,
    is_list,
    is_mapping,
    is_number,
    json_equal,
    kind_of,
    types_match,
)

logger = logging.getLogger(__name__)

ExpectationLike = Union[Expectation, Dict[str, Any]]


def split_path(path: str) -> List[str]:
    """Split ``path`` into key segments and bracketed segments.

    ``$.users[*].email`` becomes ``["users", "[*]", "email"]``. A leading ``$``
    is dropped; an unclosed bracket swallows the rest of the path.
    """
    if path in ("", "$"):
        return []

    segments: List[str] = []
    buf: List[str] = []
    i = 0
    length = len(path)
    while i < length:
        ch = path[i]
        if ch == ".":
            if buf:
                segments.append("".join(buf))
                buf = []
        elif ch == "[":
            if buf:
                segments.append("".join(buf))
                buf = []
            end = path.find("]", i)
            if end == -1:
                segments.append(path[i:])
                break
            segments.append(path[i:end + 1])
            i = end
        else:
            buf.append(ch)
        i += 1
    if buf:
        segments.append("".join(buf))

    if segments and segments[0] == "$":
        segments = segments[1:]
    return [seg for seg in segments if seg]


def _children(node: Any) -> List[Tuple[Any, str]]:
    if is_mapping(node):
        return [(value, f".{key}") for key, value in node.items()]
    if is_list(node):
        return [(value, f"[{idx}]") for idx, value in enumerate(node)]
    return []


def iterate_nodes(node: Any, segment: str) -> List[Tuple[Any, str]]:
    """Return ``(child, path_suffix)`` pairs selected from ``node`` by one segment."""
    if segment == "*":
        return _children(node)
    if segment.startswith("[") and segment.endswith("]"):
        inner = segment[1:-1].strip()
        if not is_list(node):
            return []
        if inner == "*":
            return _children(node)
        if inner.isdigit():
            idx = int(inner)
            if idx < len(node):
                return [(node[idx], f"[{idx}]")]
        return []
    if is_mapping(node) and segment in node:
        return [(node[segment], f".{segment}")]
    return []


def format_segment(segment: str) -> str:
    if not segment or segment.startswith("["):
        return segment
    return f".{segment}"


def resolve_path_nodes(root: Any, path: str) -> Tuple[List[Tuple[Any, str]], List[str]]:
    """Resolve ``path`` against ``root``.

    Returns ``(matches, missing)``: ``matches`` holds ``(node, suffix)`` pairs
    where ``"$" + suffix`` is the concrete path of the node; ``missing`` holds
    the partial paths at which some branch of the walk found nothing.
    """
    segments = split_path(path)
    frontier: List[Tuple[Any, str]] = [(root, "")]
    missing: List[str] = []

    for segment in segments:
        next_frontier: List[Tuple[Any, str]] = []
        for node, suffix in frontier:
            produced = iterate_nodes(node, segment)
            if not produced:
                missing.append("$" + suffix + format_segment(segment))
            next_frontier.extend((child, suffix + child_suffix) for child, child_suffix in produced)
        frontier = next_frontier
        if not frontier:
            break

    return frontier, missing


def _display_path(path: str) -> str:
    return path if path.startswith("$") else f"$.{path}"


def _coerce(expectation: ExpectationLike) -> Tuple[Optional[Expectation], Optional[Issue]]:
    if isinstance(expectation, Expectation):
        return expectation, None
    parsed, issue = validate_model("expectation", expectation)
    if issue is not None:
        path = expectation.get("path", "$") if isinstance(expectation, dict) else "$"
        return None, Issue(
            code=ErrorKind.EXPECTATION_FAILED,
            path=_display_path(str(path)),
            message="Invalid expectation definition.",
            detail=issue.detail,
        )
    return parsed, None


def check_node(node: Any, full_path: str, exp: Expectation) -> Optional[Issue]:
    """Return the first constraint of ``exp`` that ``node`` violates, or None."""
    if exp.type is not None and not types_match(node, exp.type):
        prefix = "one of types" if isinstance(exp.type, list) else "type"
        label = canonical_json(exp.type) if isinstance(exp.type, list) else exp.type
        return Issue(
            code=ErrorKind.TYPE_MISMATCH,
            path=full_path,
            message=f"Expected {prefix} {label}, got {kind_of(node)}.",
            detail={"expected": exp.type, "actual": kind_of(node)},
        )

    if exp.allow_empty is False and is_empty_value(node):
        return Issue(code=ErrorKind.NOT_ALLOWED_EMPTY, path=full_path, message="Value is empty but allow_empty is False.")

    if exp.has_equals and not json_equal(node, exp.equals):
        return Issue(
            code=ErrorKind.EXPECTATION_FAILED,
            path=full_path,
            message=f"Expected value == {canonical_json(exp.equals)}, got {canonical_json(node)}.",
            detail={"expected": exp.equals},
        )

    if exp.in_ is not None and not contains_json(exp.in_, node):
        return Issue(
            code=ErrorKind.ENUM_MISMATCH,
            path=full_path,
            message=f"Value {canonical_json(node)} not in allowed set.",
            detail={"allowed": exp.in_},
        )

    if exp.pattern is not None and isinstance(node, str):
        try:
            matched = compile_pattern(exp.pattern).search(node) is not None
            detail: Dict[str, Any] = {"pattern": exp.pattern}
        except re.error as exc:
            matched = False
            detail = {"pattern": exp.pattern, "error": str(exc)}
        if not matched:
            return Issue(
                code=ErrorKind.PATTERN_MISMATCH,
                path=full_path,
                message=f"String does not match pattern {exp.pattern}.",
                detail=detail,
            )

    if isinstance(node, str):
        if exp.min_length is not None and len(node) < exp.min_length:
            return Issue(
                code=ErrorKind.MIN_LENGTH,
                path=full_path,
                message=f"String length {len(node)} < min_length {exp.min_length}.",
            )
        if exp.max_length is not None and len(node) > exp.max_length:
            return Issue(
                code=ErrorKind.MAX_LENGTH,
                path=full_path,
                message=f"String length {len(node)} > max_length {exp.max_length}.",
            )

    if is_list(node):
        if exp.min_items is not None and len(node) < exp.min_items:
            return Issue(
                code=ErrorKind.MIN_ITEMS,
                path=full_path,
                message=f"Array has {len(node)} items < min_items {exp.min_items}.",
            )
        if exp.max_items is not None and len(node) > exp.max_items:
            return Issue(
                code=ErrorKind.MAX_ITEMS,
                path=full_path,
                message=f"Array has {len(node)} items > max_items {exp.max_items}.",
            )

    if is_number(node):
        if exp.minimum is not None and node < exp.minimum:
            return Issue(code=ErrorKind.MINIMUM, path=full_path, message=f"Number {node} < minimum {exp.minimum}.")
        if exp.maximum is not None and node > exp.maximum:
            return Issue(code=ErrorKind.MAXIMUM, path=full_path, message=f"Number {node} > maximum {exp.maximum}.")

    return None


def validate_expectations(
    data: Any,
    expectations: Iterable[ExpectationLike],
    options: Optional[ValidateOptions] = None,
) -> List[Issue]:
    """Check every expectation against ``data`` and return the issues found.

    Each match is checked against the constraints in a fixed order and the
    first failing constraint yields that match's issue. Missing branches of a
    required path are reported as ``path_not_found`` at the partial path where
    the walk stopped.
    """
    stop_on_first = bool(options and options.stops_on_first_error)
    errors: List[Issue] = []

    def record(issue: Issue) -> bool:
        errors.append(issue)
        return stop_on_first

    for raw in expectations:
        exp, invalid = _coerce(raw)
        if invalid is not None:
            if record(invalid):
                return errors
            continue

        matches, missing = resolve_path_nodes(data, exp.path)
        if exp.required:
            if not matches and not missing:
                missing = [_display_path(exp.path)]
            for missing_path in missing:
                if record(Issue(
                    code=ErrorKind.PATH_NOT_FOUND,
                    path=missing_path,
                    message=f"Path '{missing_path}' not found (required=True).",
                    detail={"expectation_path": exp.path},
                )):
                    return errors
        if not matches:
            continue

        for node, suffix in matches:
            issue = check_node(node, "$" + suffix, exp)
            if issue is not None and record(issue):
                return errors

    logger.debug("Expectations produced %d issue(s)", len(errors))
    return errors
