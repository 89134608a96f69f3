"""Schema handling for completion results.

This module provides:
- Provider-specific adaptation of the completion tool's ``result`` schema
- Casting and constraint validation of tool arguments via pydantic
- JSON Schema loading from files and URLs, resolved into expected results
"""

from .adapters import RELAXED_RESULT_SCHEMA, adapt_result_schema
from .manager import SchemaManager, expected_from_json_schema
from .validators import CastResult, ExpectedResult, TypeCaster

__all__ = [
    # Adapters
    "RELAXED_RESULT_SCHEMA",
    "adapt_result_schema",
    # Manager
    "SchemaManager",
    "expected_from_json_schema",
    # Validators
    "CastResult",
    "ExpectedResult",
    "TypeCaster",
]
