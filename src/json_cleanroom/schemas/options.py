"""Validation options.

``ValidateOptions`` is immutable: build a new instance (or use
``model_copy(update=...)``) to change a setting. Unknown fields are rejected so a
misspelled option in a config file fails loudly instead of being ignored.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Tuple

from pydantic import ConfigDict, Field
from pydantic.json_schema import SkipJsonSchema

from .base import SchemaBase

# (text, options) -> (new_text, edit_count, metadata)
RepairHook = Callable[[str, Any], Tuple[str, int, Dict[str, Any]]]


class CurlyQuoteMode(str, Enum):
    ALWAYS = "always"  # normalize before every parse
    AUTO = "auto"  # only after a plain parse fails
    NEVER = "never"


class ValidateOptions(SchemaBase):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    strict: bool = False
    stop_on_first_error: bool = False

    # Extraction
    extract_json: bool = True
    allow_json_in_code_fences: bool = True
    tolerate_trailing_commas: bool = True
    allow_bare_top_level_scalars: bool = False

    # Repair passes
    enable_safe_repairs: bool = True
    escape_inner_quotes: bool = True
    allow_json5_like: bool = True
    fix_single_quotes: bool = True
    strip_js_comments: bool = True
    quote_unquoted_keys: bool = True
    replace_constants: bool = True
    replace_nans_infinities: bool = True

    # Repair budget
    max_total_repairs: int = Field(default=200, ge=0)
    max_repairs_percent: float = Field(default=0.02, ge=0.0)
    min_repair_budget: int = Field(default=25, ge=0)

    normalize_curly_quotes: CurlyQuoteMode = CurlyQuoteMode.ALWAYS
    custom_repair_hooks: SkipJsonSchema[Tuple[RepairHook, ...]] = Field(default=(), exclude=True)

    max_depth: int = Field(default=200, ge=1)

    @property
    def stops_on_first_error(self) -> bool:
        return self.strict or self.stop_on_first_error

    def repair_budget(self, payload_length: int) -> int:
        """Return the total edit count allowed for a payload of ``payload_length`` characters."""
        percent_cap = int(payload_length * self.max_repairs_percent)
        return max(1, min(self.max_total_repairs, max(percent_cap, self.min_repair_budget)))
