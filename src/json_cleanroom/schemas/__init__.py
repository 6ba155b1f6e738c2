"""Schema exports."""

from .base import SchemaBase
from .errors import ErrorKind, Issue
from .expectation import Expectation
from .options import CurlyQuoteMode, RepairHook, ValidateOptions
from .registry import SCHEMA_REGISTRY, get_schema_json
from .result import RepairTrace, ValidationResult

__all__ = [
    "SchemaBase",
    "ErrorKind",
    "Issue",
    "Expectation",
    "CurlyQuoteMode",
    "RepairHook",
    "ValidateOptions",
    "RepairTrace",
    "ValidationResult",
    "SCHEMA_REGISTRY",
    "get_schema_json",
]
