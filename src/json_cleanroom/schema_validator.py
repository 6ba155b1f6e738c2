"""Schema validation of parsed values against JSON-Schema-like shape trees.

This module implements the subset of JSON Schema the cleanroom supports:
types (with ``nullable``), ``enum``/``const``, object properties, pattern
properties and additional properties, positional and uniform array items,
string length and pattern, numeric bounds and the ``anyOf``/``allOf``/``oneOf``
combinators. Multi-word keywords are accepted in camelCase or snake_case.
"""

import math
import re
from fractions import Fraction
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional

from .schemas import ErrorKind, Issue, ValidateOptions
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

KEYWORD_ALIASES: Dict[str, str] = {
    "minLength": "min_length",
    "maxLength": "max_length",
    "minItems": "min_items",
    "maxItems": "max_items",
    "exclusiveMinimum": "exclusive_minimum",
    "exclusiveMaximum": "exclusive_maximum",
    "additionalProperties": "additional_properties",
    "patternProperties": "pattern_properties",
    "uniqueItems": "unique_items",
    "allowEmpty": "allow_empty",
    "additionalItems": "additional_items",
    "multipleOf": "multiple_of",
    "anyOf": "any_of",
    "allOf": "all_of",
    "oneOf": "one_of",
}


def schema_kw(schema: Dict[str, Any], *names: str, default: Any = None) -> Any:
    """Return the first keyword present in ``schema`` among ``names`` and their snake_case aliases."""
    for name in names:
        if name in schema:
            return schema[name]
    for name in names:
        alias = KEYWORD_ALIASES.get(name)
        if alias is not None and alias in schema:
            return schema[alias]
    return default


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> "re.Pattern[str]":
    """Compile ``pattern`` once; raises ``re.error`` for invalid expressions."""
    return re.compile(pattern)


def is_multiple_of(num: Any, multiple_of: Any) -> bool:
    """Check ``multipleOf`` with float tolerance, exactly when floats overflow."""
    for number in (num, multiple_of):
        if isinstance(number, float) and not math.isfinite(number):
            return False
    if isinstance(num, int) and isinstance(multiple_of, int):
        return num % multiple_of == 0
    try:
        ratio = num / multiple_of
        return abs(ratio - round(ratio)) <= 1e-12
    except OverflowError:
        return (Fraction(num) / Fraction(multiple_of)).denominator == 1


def _describe(value: Any) -> str:
    return canonical_json(value)


def _type_label(type_spec: Any) -> str:
    if isinstance(type_spec, (list, tuple)):
        return canonical_json(list(type_spec))
    return str(type_spec)


class SchemaValidator:
    """Validate a value against a schema tree and collect ``Issue`` records.

    A validator is cheap to build and holds no state between calls to
    :meth:`validate`. With ``strict`` or ``stop_on_first_error`` set, traversal
    halts after the first recorded issue.

    Example:
        >>> validator = SchemaValidator()
        >>> issues = validator.validate({"name": 1}, {"properties": {"name": {"type": "string"}}})
        >>> issues[0].path
        '$.name'
    """

    def __init__(self, options: Optional[ValidateOptions] = None):
        self.options = options or ValidateOptions()
        self.stop_on_first_error = self.options.stops_on_first_error
        self.max_depth = self.options.max_depth
        self.errors: List[Issue] = []

    def validate(self, data: Any, schema: Dict[str, Any], path: str = "$") -> List[Issue]:
        """Validate data against schema.

        Args:
            data: Parsed JSON value.
            schema: Schema node (a dict).
            path: Root-relative path used to tag issues.

        Returns:
            List of issues, empty when the value conforms.
        """
        self.errors = []
        self._validate_node(data, schema, path, 0)
        return list(self.errors)

    # ------------------------------------------------------------------ helpers

    def _err(self, code: ErrorKind, path: str, message: str, detail: Optional[Dict[str, Any]] = None) -> None:
        self.errors.append(Issue(code=code, path=path, message=message, detail=detail or {}))

    def _halted(self) -> bool:
        return self.stop_on_first_error and bool(self.errors)

    def _sub_errors(self, value: Any, schema: Any, path: str, depth: int) -> List[Issue]:
        if not isinstance(schema, dict):
            return []
        child = SchemaValidator(self.options)
        child._validate_node(value, schema, path, depth + 1)
        return child.errors

    def _lift_depth_issues(self, branch_errors: Iterable[Issue]) -> None:
        # Branches cut off by max_depth were never checked.
        for issue in branch_errors:
            if issue.code == ErrorKind.NESTING_TOO_DEEP and issue not in self.errors:
                self.errors.append(issue)

    # ------------------------------------------------------------------ nodes

    def _validate_node(self, value: Any, schema: Dict[str, Any], path: str, depth: int) -> None:
        if self._halted():
            return
        if depth > self.max_depth:
            self._err(
                ErrorKind.NESTING_TOO_DEEP,
                path,
                f"Nesting deeper than max_depth {self.max_depth}; not validated further.",
                {"max_depth": self.max_depth},
            )
            return

        any_of = schema_kw(schema, "anyOf")
        if isinstance(any_of, list):
            self._validate_any_of(value, any_of, path, depth)
        one_of = schema_kw(schema, "oneOf")
        if isinstance(one_of, list):
            self._validate_one_of(value, one_of, path, depth)
        all_of = schema_kw(schema, "allOf")
        if isinstance(all_of, list):
            self._validate_all_of(value, all_of, path, depth)
        if self._halted():
            return

        type_spec = schema.get("type")
        if type_spec is not None:
            nullable = bool(schema.get("nullable"))
            if value is None:
                if not nullable and not types_match(None, type_spec):
                    self._err(
                        ErrorKind.TYPE_MISMATCH,
                        path,
                        f"Expected type {_type_label(type_spec)}, got null.",
                        {"expected": type_spec, "actual": "null"},
                    )
                    return
            elif not types_match(value, type_spec):
                prefix = "one of types" if isinstance(type_spec, list) else "type"
                self._err(
                    ErrorKind.TYPE_MISMATCH,
                    path,
                    f"Expected {prefix} {_type_label(type_spec)}, got {kind_of(value)}.",
                    {"expected": type_spec, "actual": kind_of(value)},
                )
                return

        if schema_kw(schema, "allowEmpty", default=True) is False and is_empty_value(value):
            self._err(ErrorKind.NOT_ALLOWED_EMPTY, path, "Value is empty but allow_empty is False.")
            if self.stop_on_first_error:
                return

        enum = schema.get("enum")
        if isinstance(enum, list) and not contains_json(enum, value):
            self._err(ErrorKind.ENUM_MISMATCH, path, f"Value {_describe(value)} not in enum.", {"enum": enum})
        if "const" in schema and not json_equal(value, schema["const"]):
            self._err(
                ErrorKind.CONST_MISMATCH,
                path,
                f"Value {_describe(value)} != const {_describe(schema['const'])}.",
            )

        if self._halted():
            return

        if is_mapping(value):
            self._validate_object(value, schema, path, depth)
        elif is_list(value):
            self._validate_array(value, schema, path, depth)
        elif isinstance(value, str):
            self._validate_string(value, schema, path)
        elif is_number(value):
            self._validate_number(value, schema, path)

    def _validate_object(self, obj: Dict[str, Any], schema: Dict[str, Any], path: str, depth: int) -> None:
        required = schema.get("required")
        if isinstance(required, list):
            for key in required:
                if key not in obj:
                    self._err(ErrorKind.MISSING_REQUIRED, f"{path}.{key}", f"Required property '{key}' is missing.")
                    if self._halted():
                        return

        properties = schema.get("properties")
        if not isinstance(properties, dict):
            properties = {}
        pattern_props = schema_kw(schema, "patternProperties", default={})
        additional = schema_kw(schema, "additionalProperties", default=True)

        matched = set()
        for key, subschema in properties.items():
            if key in obj and isinstance(subschema, dict):
                matched.add(key)
                self._validate_node(obj[key], subschema, f"{path}.{key}", depth + 1)
                if self._halted():
                    return

        compiled = []
        if isinstance(pattern_props, dict):
            for pattern, subschema in pattern_props.items():
                try:
                    compiled.append((compile_pattern(str(pattern)), subschema))
                except re.error as exc:
                    self._err(
                        ErrorKind.PATTERN_MISMATCH,
                        path,
                        f"Invalid regex in patternProperties: {pattern}",
                        {"pattern": pattern, "error": str(exc)},
                    )

        for key, item in obj.items():
            if key in matched:
                continue
            by_pattern = False
            for regex, subschema in compiled:
                if regex.search(key):
                    by_pattern = True
                    if isinstance(subschema, dict):
                        self._validate_node(item, subschema, f"{path}.{key}", depth + 1)
            if not by_pattern:
                if additional is False:
                    self._err(ErrorKind.ADDITIONAL_PROPERTY, f"{path}.{key}", f"Additional property '{key}' not allowed.")
                elif isinstance(additional, dict):
                    self._validate_node(item, additional, f"{path}.{key}", depth + 1)
            if self._halted():
                return

    def _validate_array(self, arr: List[Any], schema: Dict[str, Any], path: str, depth: int) -> None:
        min_items = schema_kw(schema, "minItems")
        if min_items is not None and len(arr) < int(min_items):
            self._err(ErrorKind.MIN_ITEMS, path, f"Array has {len(arr)} items < minItems {min_items}.")
        max_items = schema_kw(schema, "maxItems")
        if max_items is not None and len(arr) > int(max_items):
            self._err(ErrorKind.MAX_ITEMS, path, f"Array has {len(arr)} items > maxItems {max_items}.")

        if schema_kw(schema, "uniqueItems", default=False):
            seen = set()
            for item in arr:
                marker = canonical_json(item)
                if marker in seen:
                    self._err(ErrorKind.UNIQUE_ITEMS, path, "Array items are not unique (uniqueItems=True).")
                    break
                seen.add(marker)
        if self._halted():
            return

        items = schema.get("items")
        additional = schema_kw(schema, "additionalItems", default=True)

        if isinstance(items, list):
            for idx, item_schema in enumerate(items[: len(arr)]):
                if isinstance(item_schema, dict):
                    self._validate_node(arr[idx], item_schema, f"{path}[{idx}]", depth + 1)
                    if self._halted():
                        return
            if len(arr) > len(items):
                if additional is False:
                    self._err(
                        ErrorKind.ADDITIONAL_ITEMS,
                        path,
                        "Additional array items not allowed.",
                        {"allowed": len(items), "actual": len(arr)},
                    )
                elif isinstance(additional, dict):
                    self._validate_items(arr, additional, path, depth, start=len(items))
        elif isinstance(items, dict):
            self._validate_items(arr, items, path, depth)

    def _validate_items(self, arr: List[Any], schema: Dict[str, Any], path: str, depth: int, start: int = 0) -> None:
        for idx in range(start, len(arr)):
            self._validate_node(arr[idx], schema, f"{path}[{idx}]", depth + 1)
            if self._halted():
                return

    def _validate_string(self, value: str, schema: Dict[str, Any], path: str) -> None:
        length = len(value)
        min_length = schema_kw(schema, "minLength")
        if min_length is not None and length < int(min_length):
            self._err(ErrorKind.MIN_LENGTH, path, f"String length {length} < minLength {min_length}.")
        max_length = schema_kw(schema, "maxLength")
        if max_length is not None and length > int(max_length):
            self._err(ErrorKind.MAX_LENGTH, path, f"String length {length} > maxLength {max_length}.")

        pattern = schema.get("pattern")
        if pattern is not None:
            try:
                regex = compile_pattern(str(pattern))
            except re.error as exc:
                self._err(
                    ErrorKind.PATTERN_MISMATCH,
                    path,
                    f"Invalid regex in pattern: {pattern}.",
                    {"pattern": pattern, "error": str(exc)},
                )
            else:
                if not regex.search(value):
                    self._err(ErrorKind.PATTERN_MISMATCH, path, f"String does not match pattern {pattern}.")

    def _validate_number(self, num: Any, schema: Dict[str, Any], path: str) -> None:
        minimum = schema_kw(schema, "minimum", "min")
        if is_number(minimum) and num < minimum:
            self._err(ErrorKind.MINIMUM, path, f"Number {num} < minimum {minimum}.")
        maximum = schema_kw(schema, "maximum", "max")
        if is_number(maximum) and num > maximum:
            self._err(ErrorKind.MAXIMUM, path, f"Number {num} > maximum {maximum}.")
        ex_min = schema_kw(schema, "exclusiveMinimum")
        if is_number(ex_min) and num <= ex_min:
            self._err(ErrorKind.EXCLUSIVE_MINIMUM, path, f"Number {num} <= exclusiveMinimum {ex_min}.")
        ex_max = schema_kw(schema, "exclusiveMaximum")
        if is_number(ex_max) and num >= ex_max:
            self._err(ErrorKind.EXCLUSIVE_MAXIMUM, path, f"Number {num} >= exclusiveMaximum {ex_max}.")

        multiple_of = schema_kw(schema, "multipleOf")
        if is_number(multiple_of) and multiple_of != 0:
            if not is_multiple_of(num, multiple_of):
                self._err(ErrorKind.MULTIPLE_OF, path, f"Number {num} is not a multipleOf {multiple_of}.")

    # ------------------------------------------------------------------ combinators

    def _validate_any_of(self, value: Any, subschemas: Iterable[Any], path: str, depth: int) -> None:
        counts = []
        branch_errors: List[Issue] = []
        for sub in subschemas:
            errors = self._sub_errors(value, sub, path, depth)
            if not errors:
                return
            counts.append(len(errors))
            branch_errors.extend(errors)
        self._lift_depth_issues(branch_errors)
        self._err(
            ErrorKind.ANY_OF_FAILED,
            path,
            f"Value does not match anyOf {len(counts)} subschemas.",
            {"subschema_errors_counts": counts},
        )

    def _validate_all_of(self, value: Any, subschemas: Iterable[Any], path: str, depth: int) -> None:
        merged: List[Issue] = []
        for sub in subschemas:
            errors = self._sub_errors(value, sub, path, depth)
            if errors:
                merged.extend(errors)
                if self.stop_on_first_error:
                    break
        if merged:
            self._lift_depth_issues(merged)
            self._err(
                ErrorKind.ALL_OF_FAILED,
                path,
                "Value does not satisfy allOf subschemas.",
                {"errors_count": len(merged), "errors": [issue.to_dict() for issue in merged]},
            )

    def _validate_one_of(self, value: Any, subschemas: Iterable[Any], path: str, depth: int) -> None:
        matches = 0
        branch_errors: List[Issue] = []
        for sub in subschemas:
            errors = self._sub_errors(value, sub, path, depth)
            if errors:
                branch_errors.extend(errors)
            else:
                matches += 1
        if matches != 1:
            self._lift_depth_issues(branch_errors)
            self._err(
                ErrorKind.ONE_OF_FAILED,
                path,
                f"Value matches {matches} subschemas; expected exactly 1.",
                {"matches": matches},
            )


def validate_schema(data: Any, schema: Dict[str, Any], options: Optional[ValidateOptions] = None) -> List[Issue]:
    """Convenience wrapper: validate ``data`` against ``schema`` from the root path."""
    return SchemaValidator(options).validate(data, schema)
