"""JSON codec wrapper and registry-backed model validation.

All functions are stateless; the codec is the standard-library ``json``
module, reported as backend ``"json"``.
"""

from __future__ import annotations

import json
import math
from typing import Any, Optional, Tuple

from pydantic import ValidationError

from .curly_quotes import sanitize_curly_quotes
from .schemas import SCHEMA_REGISTRY, CurlyQuoteMode, ErrorKind, Issue, ValidateOptions

BACKEND = "json"

# Raised by decode(); RecursionError covers pathologically deep nesting.
DECODE_ERRORS = (ValueError, RecursionError)


def _reject_constant(value: str):
    raise ValueError(f"Invalid constant '{value}' in JSON input")


def _parse_finite_float(value: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Number '{value}' is out of range for a float")
    return number


def decode(text: str, *, sanitize_curly: bool = False) -> Any:
    """Parse strict JSON text.

    NaN and Infinity literals are rejected, as are numbers too large for a float.
    """
    if sanitize_curly:
        text = sanitize_curly_quotes(text)
    return json.loads(text, parse_float=_parse_finite_float, parse_constant=_reject_constant)


def decode_with_backend(text: str, *, sanitize_curly: bool = False) -> Tuple[Any, str]:
    return decode(text, sanitize_curly=sanitize_curly), BACKEND


def encode(
    value: Any,
    *,
    sort_keys: bool = False,
    ensure_ascii: bool = False,
    indent: Optional[int] = None,
) -> str:
    return json.dumps(
        value,
        sort_keys=sort_keys,
        ensure_ascii=ensure_ascii,
        indent=indent,
        allow_nan=False,
    )


def encode_with_backend(value: Any, **kwargs: Any) -> Tuple[str, str]:
    return encode(value, **kwargs), BACKEND


def parse_with_options(text: str, options: ValidateOptions) -> Tuple[Any, str, bool]:
    """Decode ``text`` honoring the curly-quote mode.

    Returns ``(value, backend, curly_quotes_sanitized)``. Raises one of
    ``DECODE_ERRORS`` when the text does not parse.
    """
    mode = options.normalize_curly_quotes
    if mode == CurlyQuoteMode.NEVER:
        return decode(text), BACKEND, False
    if mode == CurlyQuoteMode.AUTO:
        try:
            return decode(text), BACKEND, False
        except DECODE_ERRORS:
            return decode(text, sanitize_curly=True), BACKEND, True
    return decode(text, sanitize_curly=True), BACKEND, True


def loads_ok(text: str, options: ValidateOptions) -> bool:
    try:
        parse_with_options(text, options)
        return True
    except DECODE_ERRORS:
        return False


def validate_model(schema_name: str, payload: Any) -> Tuple[Any | None, Issue | None]:
    """Validate payload against a registered schema.

    Returns (validated_object, None) on success, (None, Issue) on failure.
    """
    model = SCHEMA_REGISTRY.get(schema_name)
    if model is None:
        return None, Issue(code=ErrorKind.UNKNOWN, message=f"Unknown schema '{schema_name}'")
    try:
        return model.model_validate(payload), None
    except ValidationError as exc:
        return None, Issue(
            code=ErrorKind.PARSE_ERROR,
            message=f"Validation failed for {schema_name}",
            detail={"errors": exc.errors(include_url=False, include_context=False)},
        )
