"""JSON Cleanroom package root.

The public API surface is ``validate`` (an alias of ``validate_ai_json``), the
``Cleanroom`` façade and the schema types exposed in ``json_cleanroom.schemas``.
Applications should import from this package rather than from the individual
pipeline modules.
"""

__version__ = "0.1.0"

from json_cleanroom.engine import Cleanroom, validate_ai_json  # noqa: F401
from json_cleanroom.schemas import *  # noqa: F401,F403
from json_cleanroom.schemas import __all__ as SCHEMA_EXPORTS

validate = validate_ai_json

__all__ = ["__version__", "Cleanroom", "validate", "validate_ai_json"] + SCHEMA_EXPORTS
