"""Public entry point: extraction, repair, truncation checks and validation in one call."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel

from .curly_quotes import normalize_curly_quotes_in_data
from .expectations import ExpectationLike, validate_expectations
from .extraction import SOURCE_OBJECT, extract_json_payload
from .json_engine import DECODE_ERRORS, parse_with_options
from .repair import attempt_safe_repair
from .schema_validator import SchemaValidator
from .schemas import CurlyQuoteMode, ErrorKind, Issue, ValidateOptions, ValidationResult
from .truncation import detect_truncation
from .utils.text_scan import is_list, is_mapping

logger = logging.getLogger(__name__)

PRE_PARSED_BACKEND = "python"

InputData = Union[str, bytes, bytearray, Dict[str, Any], List[Any], BaseModel]


def _parse_error(message: str, detail: Optional[Dict[str, Any]] = None) -> Issue:
    return Issue(code=ErrorKind.PARSE_ERROR, path="$", message=message, detail=detail or {})


def _failure(errors: List[Issue], warnings: List[Issue], info: Dict[str, Any], likely_truncated: bool = False) -> ValidationResult:
    return ValidationResult(
        valid=False,
        likely_truncated=likely_truncated,
        errors=errors,
        warnings=warnings,
        data=None,
        info=info,
    )


def _coerce_input(input_data: Any) -> Tuple[Optional[str], Any, Optional[Issue]]:
    """Split input into ``(raw_text, pre_parsed_value, error)``."""
    if isinstance(input_data, str):
        return input_data, None, None
    if isinstance(input_data, (bytes, bytearray)):
        return bytes(input_data).decode("utf-8", errors="replace"), None, None
    if isinstance(input_data, BaseModel):
        return None, input_data.model_dump(mode="json"), None
    if isinstance(input_data, (dict, list)):
        return None, input_data, None
    return None, None, _parse_error(
        f"Unsupported input_data type: {type(input_data).__name__}. Provide str, bytes, dict or list."
    )


def _parse_text(
    raw: str,
    options: ValidateOptions,
    info: Dict[str, Any],
    warnings: List[Issue],
) -> Tuple[Any, Optional[Issue], bool]:
    """Extract and parse ``raw``; returns ``(value, error, likely_truncated)``."""
    payload, extraction_info = extract_json_payload(raw, options)
    info.update(extraction_info)
    if payload is None:
        truncated, reasons = detect_truncation(raw)
        return None, _parse_error("No JSON payload found in input.", {"truncation_reasons": reasons}), truncated

    try:
        value, backend, used_cq = parse_with_options(payload, options)
    except DECODE_ERRORS as exc:
        parse_exc = exc
    else:
        info["parse_backend"] = backend
        info["curly_quotes_normalization_used"] = used_cq
        return value, None, False

    truncated, reasons = detect_truncation(payload)
    if truncated or not options.enable_safe_repairs:
        if truncated:
            info["repair_skipped"] = "truncation_detected"
            logger.debug("Candidate payload looks truncated (%s); repair skipped", ", ".join(reasons))
        return None, _parse_error(
            f"JSON parse error: {parse_exc}",
            {"truncation_reasons": reasons, "repair_enabled": options.enable_safe_repairs},
        ), truncated

    repaired, trace = attempt_safe_repair(payload, options)
    trace_dump = trace.model_dump()
    if repaired is None:
        return None, _parse_error(f"JSON parse error: {parse_exc}", {"repair_attempt": trace_dump}), False

    try:
        value, backend, used_cq = parse_with_options(repaired, options)
    except DECODE_ERRORS as exc:
        return None, _parse_error(f"JSON parse error: {exc}", {"repair_attempt": trace_dump}), False

    info["parse_backend"] = backend
    info["curly_quotes_normalization_used"] = used_cq
    info["repair"] = trace_dump
    warnings.append(Issue(
        code=ErrorKind.REPAIRED,
        path="$",
        message="Input JSON was repaired by conservative heuristics.",
        detail={"applied": list(trace.applied), "counts": dict(trace.counts)},
    ))
    logger.debug("Payload repaired with passes: %s", ", ".join(trace.applied))
    return value, None, False


def _validate(
    input_data: Any,
    schema: Optional[Dict[str, Any]],
    expectations: Optional[Sequence[ExpectationLike]],
    options: ValidateOptions,
) -> ValidationResult:
    errors: List[Issue] = []
    warnings: List[Issue] = []
    info: Dict[str, Any] = {}
    likely_truncated = False

    raw, parsed, input_error = _coerce_input(input_data)
    if input_error is not None:
        return _failure([input_error], warnings, info)

    if raw is None:
        info["source"] = SOURCE_OBJECT
        info["parse_backend"] = PRE_PARSED_BACKEND
        info["curly_quotes_normalization_used"] = False
    else:
        parsed, parse_issue, likely_truncated = _parse_text(raw, options, info, warnings)
        if parse_issue is not None:
            return _failure([parse_issue], warnings, info, likely_truncated)
        logger.debug("Parsed payload from source %s", info.get("source"))

    if not options.allow_bare_top_level_scalars and not (is_mapping(parsed) or is_list(parsed)):
        errors.append(_parse_error("Top-level value is not object/array (allow_bare_top_level_scalars=False)."))
        return _failure(errors, warnings, info, likely_truncated)

    if options.normalize_curly_quotes != CurlyQuoteMode.NEVER:
        parsed, changed = normalize_curly_quotes_in_data(parsed)
        if changed:
            info["curly_quotes_normalization_used"] = True

    if schema is not None:
        errors.extend(SchemaValidator(options).validate(parsed, schema, "$"))
    if not errors and expectations is not None:
        errors.extend(validate_expectations(parsed, expectations, options))

    if raw is not None:
        raw_truncated, raw_reasons = detect_truncation(raw)
        if raw_truncated:
            likely_truncated = True
            if not errors:
                warnings.append(Issue(
                    code=ErrorKind.TRUNCATED,
                    path="$",
                    message="Original text looks truncated/suspicious, but extracted/repaired JSON parsed.",
                    detail={"truncation_reasons": raw_reasons},
                ))

    valid = not errors
    return ValidationResult(
        valid=valid,
        likely_truncated=likely_truncated,
        errors=errors,
        warnings=warnings,
        data=parsed if valid else None,
        info=info,
    )


def validate_ai_json(
    input_data: InputData,
    schema: Optional[Dict[str, Any]] = None,
    expectations: Optional[Sequence[ExpectationLike]] = None,
    options: Optional[ValidateOptions] = None,
) -> ValidationResult:
    """Validate model output and return a structured result.

    ``input_data`` may be raw text (``str`` or UTF-8 ``bytes``) or an
    already-parsed value (``dict``, ``list`` or a pydantic model). Raw text goes
    through extraction, truncation detection and, when allowed, repair. Never
    raises on malformed input: every failure is reported in ``result.errors``.
    """
    options = options or ValidateOptions()
    try:
        return _validate(input_data, schema, expectations, options)
    except Exception as exc:
        logger.debug("Unexpected error during validation", exc_info=True)
        return _failure(
            [Issue(
                code=ErrorKind.UNKNOWN,
                path="$",
                message=f"Unexpected error: {exc}",
                detail={"exception": type(exc).__name__},
            )],
            [],
            {},
        )


class Cleanroom:
    """Validator bound to one set of options, and optionally a schema and expectations.

    Build it once and call :meth:`validate` for every model response that must
    match the same shape.
    """

    def __init__(
        self,
        options: Optional[ValidateOptions] = None,
        schema: Optional[Dict[str, Any]] = None,
        expectations: Optional[Sequence[ExpectationLike]] = None,
    ):
        self.options = options or ValidateOptions()
        self.schema = schema
        self.expectations = list(expectations) if expectations is not None else None

    @classmethod
    def from_files(
        cls,
        options_path: Optional[Union[str, Path]] = None,
        schema_path: Optional[Union[str, Path]] = None,
        expectations_path: Optional[Union[str, Path]] = None,
    ) -> "Cleanroom":
        """Load options, schema and expectations from YAML or JSON documents.

        Raises:
            DocumentLoadError: If a document is missing, malformed or invalid.
        """
        from .config_loader import load_expectations, load_options, load_schema

        return cls(
            options=load_options(options_path) if options_path else None,
            schema=load_schema(schema_path) if schema_path else None,
            expectations=load_expectations(expectations_path) if expectations_path else None,
        )

    def with_options(self, **updates: Any) -> "Cleanroom":
        """Return a copy whose options have ``updates`` applied."""
        options = self.options.model_validate({**self.options.model_dump(), **updates})
        if self.options.custom_repair_hooks and "custom_repair_hooks" not in updates:
            options = options.model_copy(update={"custom_repair_hooks": self.options.custom_repair_hooks})
        return Cleanroom(options=options, schema=self.schema, expectations=self.expectations)

    def validate(
        self,
        input_data: InputData,
        schema: Optional[Dict[str, Any]] = None,
        expectations: Optional[Sequence[ExpectationLike]] = None,
    ) -> ValidationResult:
        return validate_ai_json(
            input_data,
            schema=schema if schema is not None else self.schema,
            expectations=expectations if expectations is not None else self.expectations,
            options=self.options,
        )
