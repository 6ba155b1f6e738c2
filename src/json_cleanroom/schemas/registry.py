"""Schema registry and JSON Schema export."""

from __future__ import annotations

from typing import Dict, Type

from .errors import Issue
from .expectation import Expectation
from .options import ValidateOptions
from .result import RepairTrace, ValidationResult

SchemaType = Type


SCHEMA_REGISTRY: Dict[str, SchemaType] = {
    "validate_options": ValidateOptions,
    "expectation": Expectation,
    "issue": Issue,
    "repair_trace": RepairTrace,
    "validation_result": ValidationResult,
}


def get_schema_json(name: str) -> Dict:
    """Return JSON Schema for a registered schema name."""
    if name not in SCHEMA_REGISTRY:
        raise KeyError(f"Schema '{name}' is not registered")
    model = SCHEMA_REGISTRY[name]
    return model.model_json_schema()
