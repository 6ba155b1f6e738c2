"""Result records returned by the public entry point."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import Field

from .base import SchemaBase
from .errors import Issue


class RepairTrace(SchemaBase):
    applied: List[str] = Field(default_factory=list)
    counts: Dict[str, Any] = Field(default_factory=dict)
    skipped: Optional[Dict[str, Any]] = Field(default=None)
    hook_errors: List[Dict[str, str]] = Field(default_factory=list)

    def record(self, name: str, counts: Any) -> None:
        self.applied.append(name)
        self.counts[name] = counts


class ValidationResult(SchemaBase):
    """Outcome of one validation call.

    ``data`` is only populated when ``valid`` is true, and ``errors`` is
    non-empty exactly when ``valid`` is false.
    """

    valid: bool
    likely_truncated: bool = False
    errors: List[Issue] = Field(default_factory=list)
    warnings: List[Issue] = Field(default_factory=list)
    data: Any = None
    info: Dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "likely_truncated": self.likely_truncated,
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
            "data": self.data,
            "info": self.info,
        }
