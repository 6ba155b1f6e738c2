"""Loaders for options, schema and expectations documents (YAML or JSON)."""

import json
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from .exceptions import DocumentLoadError
from .json_engine import validate_model
from .schemas import Expectation, Issue, ValidateOptions

YAML_SUFFIXES = {".yaml", ".yml"}

PathLike = Union[str, Path]


def _describe_issue(issue: Issue) -> str:
    errors = issue.detail.get("errors") or []
    parts = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or issue.message


def load_document(path: PathLike) -> Any:
    """Load a YAML or JSON document, chosen by file suffix.

    Raises:
        DocumentLoadError: If the file is missing, empty or does not parse.
    """
    path = Path(path)
    if not path.exists():
        raise DocumentLoadError(path.name, "File not found")
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except yaml.YAMLError as e:
        raise DocumentLoadError(path.name, f"Invalid YAML: {e}")
    except json.JSONDecodeError as e:
        raise DocumentLoadError(path.name, f"Invalid JSON: {e}")
    except OSError as e:
        raise DocumentLoadError(path.name, str(e))
    if data is None:
        raise DocumentLoadError(path.name, "Empty file")
    return data


def load_options(path: PathLike) -> ValidateOptions:
    """Load a ``ValidateOptions`` document; unknown keys are rejected."""
    path = Path(path)
    data = load_document(path)
    options, issue = validate_model("validate_options", data)
    if issue is not None:
        raise DocumentLoadError(path.name, _describe_issue(issue))
    return options


def load_schema(path: PathLike) -> Dict[str, Any]:
    """Load a schema document. The root must be a mapping."""
    path = Path(path)
    data = load_document(path)
    if not isinstance(data, dict):
        raise DocumentLoadError(path.name, "Schema root must be a mapping")
    return data


def load_expectations(path: PathLike) -> List[Expectation]:
    """Load expectations from a list, or from a mapping with an ``expectations`` list."""
    path = Path(path)
    data = load_document(path)
    if isinstance(data, dict) and "expectations" in data:
        data = data["expectations"]
    if not isinstance(data, list):
        raise DocumentLoadError(path.name, "Expectations must be a list")

    expectations = []
    for i, item in enumerate(data):
        expectation, issue = validate_model("expectation", item)
        if issue is not None:
            raise DocumentLoadError(path.name, f"expectations[{i}]: {_describe_issue(issue)}")
        expectations.append(expectation)
    return expectations
