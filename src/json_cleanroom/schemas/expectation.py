"""Path-scoped expectation rules."""

from __future__ import annotations

from typing import Any, List, Optional, Union

from pydantic import AliasChoices, ConfigDict, Field

from .base import SchemaBase


class Expectation(SchemaBase):
    """A path plus the constraints every value resolved at that path must meet.

    ``path`` uses dotted keys and bracketed indices, with ``*`` / ``[*]``
    wildcards (``users[*].email``, ``$.meta.*``). Only constraints that were
    supplied are checked; ``equals`` counts as supplied even when it is ``None``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    path: str = "$"
    required: bool = True
    type: Optional[Union[str, List[str]]] = None
    allow_empty: Optional[bool] = Field(default=None, validation_alias=AliasChoices("allow_empty", "allowEmpty"))
    equals: Any = None
    in_: Optional[List[Any]] = Field(default=None, validation_alias=AliasChoices("in", "enum", "in_"))
    pattern: Optional[str] = None
    min_length: Optional[int] = Field(default=None, validation_alias=AliasChoices("min_length", "minLength"))
    max_length: Optional[int] = Field(default=None, validation_alias=AliasChoices("max_length", "maxLength"))
    min_items: Optional[int] = Field(default=None, validation_alias=AliasChoices("min_items", "minItems"))
    max_items: Optional[int] = Field(default=None, validation_alias=AliasChoices("max_items", "maxItems"))
    minimum: Optional[float] = None
    maximum: Optional[float] = None

    @property
    def has_equals(self) -> bool:
        return "equals" in self.model_fields_set
