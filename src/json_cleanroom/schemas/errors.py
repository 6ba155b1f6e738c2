"""Issue codes and the issue record shared by every validator."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from pydantic import Field

from .base import SchemaBase


class ErrorKind(str, Enum):
    PARSE_ERROR = "parse_error"
    TRUNCATED = "truncated"
    MISSING_REQUIRED = "missing_required"
    TYPE_MISMATCH = "type_mismatch"
    ENUM_MISMATCH = "enum_mismatch"
    CONST_MISMATCH = "const_mismatch"
    NOT_ALLOWED_EMPTY = "not_allowed_empty"
    ADDITIONAL_PROPERTY = "additional_property"
    ADDITIONAL_ITEMS = "additional_items"
    PATTERN_MISMATCH = "pattern_mismatch"
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    MIN_ITEMS = "min_items"
    MAX_ITEMS = "max_items"
    UNIQUE_ITEMS = "unique_items"
    MINIMUM = "minimum"
    MAXIMUM = "maximum"
    EXCLUSIVE_MINIMUM = "exclusive_minimum"
    EXCLUSIVE_MAXIMUM = "exclusive_maximum"
    MULTIPLE_OF = "multiple_of"
    ANY_OF_FAILED = "any_of_failed"
    ALL_OF_FAILED = "all_of_failed"
    ONE_OF_FAILED = "one_of_failed"
    PATH_NOT_FOUND = "path_not_found"
    EXPECTATION_FAILED = "expectation_failed"
    NESTING_TOO_DEEP = "nesting_too_deep"
    UNKNOWN = "unknown"
    REPAIRED = "repaired"  # warning only


class Issue(SchemaBase):
    """One error or warning, tagged with a root-relative path such as ``$.users[1].email``."""

    code: ErrorKind
    path: str = "$"
    message: str
    detail: Dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "path": self.path,
            "message": self.message,
            "detail": self.detail,
        }
