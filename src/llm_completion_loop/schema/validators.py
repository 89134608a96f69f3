"""Casting and constraint validation of completion results."""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field, TypeAdapter, ValidationError

from llm_completion_loop.exceptions import (
    ConfigurationException,
    SchemaValidationException,
)

# Constraint name -> pydantic ``Field`` keyword.
FIELD_CONSTRAINTS: dict[str, str] = {
    "min": "ge",
    "max": "le",
    "greater_than": "gt",
    "less_than": "lt",
    "min_length": "min_length",
    "max_length": "max_length",
    "match": "pattern",
}

SUPPORTED_CONSTRAINTS = frozenset(FIELD_CONSTRAINTS) | {"one_of"}


@dataclass(frozen=True)
class ExpectedResult:
    """The type a completion result must cast to, plus its constraints.

    Args:
        type: Python type, typing annotation or pydantic model class.
        constraints: Constraint name to value, e.g. ``{"min": 0}``. Supported
            names are ``min``, ``max``, ``greater_than``, ``less_than``,
            ``min_length``, ``max_length``, ``match`` and ``one_of``.

    Raises:
        ConfigurationException: If an unsupported constraint is given.
    """

    type: Any
    constraints: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        unknown = set(self.constraints) - SUPPORTED_CONSTRAINTS
        if unknown:
            raise ConfigurationException(
                f"Unsupported constraints: {sorted(unknown)}",
                config_key="constraints",
                config_value=", ".join(sorted(unknown)),
            )

    def field_constraints(self) -> dict[str, Any]:
        """Constraints translated to pydantic ``Field`` keywords."""
        kwargs: dict[str, Any] = {}
        for name, value in self.constraints.items():
            if name not in FIELD_CONSTRAINTS:
                continue
            if name == "match" and isinstance(value, re.Pattern):
                value = value.pattern
            kwargs[FIELD_CONSTRAINTS[name]] = value
        return kwargs

    def constrained_type(self) -> Any:
        """The expected type annotated with its ``Field`` constraints."""
        kwargs = self.field_constraints()
        if not kwargs:
            return self.type
        return Annotated[self.type, Field(**kwargs)]

    def json_schema(self) -> dict[str, Any]:
        """Generate the JSON schema the model is asked to produce.

        Object schemas get ``additionalProperties: false`` at every level so
        they are accepted by strict tool definitions.
        """
        schema = TypeAdapter(self.constrained_type()).json_schema()
        if "one_of" in self.constraints:
            schema["enum"] = list(self.constraints["one_of"])
        _ensure_no_additional_properties(schema)
        return schema


class CastResult:
    """Result of a cast or constraint step with detailed information."""

    def __init__(
        self,
        success: bool,
        value: Any = None,
        error: Exception | None = None,
        error_category: str | None = None,
    ) -> None:
        """Initialize cast result.

        Args:
            success: Whether the step succeeded
            value: The cast or validated value
            error: Error raised by the step if it failed
            error_category: Category of the error
        """
        self.success = success
        self.value = value
        self.error = error
        self.error_category = error_category

    def __repr__(self) -> str:
        if self.success:
            return f"CastResult(success=True, value={self.value!r})"
        return (
            f"CastResult(success=False, error_category={self.error_category!r}, "
            f"error={self.error!r})"
        )


class TypeCaster:
    """Casts raw tool arguments to an expected type and applies constraints."""

    def cast(self, expected: ExpectedResult, raw_value: Any) -> CastResult:
        """Cast a raw JSON value to the expected type, ignoring constraints.

        Args:
            expected: Expected type and constraints
            raw_value: Value decoded from the tool-call arguments

        Returns:
            Cast result holding the cast value on success
        """
        try:
            value = TypeAdapter(without_bool_coercion(expected.type)).validate_python(
                raw_value
            )
        except ValidationError as e:
            return CastResult(
                success=False,
                error=e,
                error_category=self._categorize_validation_error(e),
            )
        except Exception as e:
            return CastResult(success=False, error=e, error_category="unknown_error")

        return CastResult(success=True, value=value)

    def apply_constraints(self, expected: ExpectedResult, value: Any) -> CastResult:
        """Check an already cast value against the expected constraints.

        Args:
            expected: Expected type and constraints
            value: Output of a successful ``cast``

        Returns:
            Cast result holding the constrained value on success
        """
        try:
            if expected.field_constraints():
                candidate = value.model_dump() if isinstance(value, BaseModel) else value
                value = TypeAdapter(expected.constrained_type()).validate_python(
                    candidate
                )

            allowed = expected.constraints.get("one_of")
            if allowed is not None and value not in allowed:
                raise SchemaValidationException(
                    f"Value {value!r} is not one of {list(allowed)!r}",
                    value=value,
                    validation_errors=["one_of"],
                )
        except ValidationError as e:
            return CastResult(
                success=False,
                error=e,
                error_category=self._categorize_validation_error(e),
            )
        except SchemaValidationException as e:
            return CastResult(
                success=False,
                error=e,
                error_category="constraint_error",
            )
        except Exception as e:
            # pydantic refuses constraints that do not fit the type, e.g.
            # ``match`` on an integer.
            return CastResult(
                success=False,
                error=e,
                error_category="unknown_error",
            )

        return CastResult(
            success=True,
            value=value,
        )

    def _categorize_validation_error(self, error: ValidationError) -> str:
        """Categorize a pydantic validation error.

        Args:
            error: Pydantic validation error

        Returns:
            Error category string
        """
        error_details = error.errors()

        if not error_details:
            return "unknown_error"

        error_type = error_details[0].get("type", "unknown")

        if error_type == "missing":
            return "missing_field"
        elif error_type.endswith(("_type", "_parsing")):
            return "type_error"
        elif error_type in (
            "greater_than",
            "greater_than_equal",
            "less_than",
            "less_than_equal",
            "too_short",
            "too_long",
            "string_too_short",
            "string_too_long",
            "string_pattern_mismatch",
        ):
            return "constraint_error"
        else:
            return "validation_error"


def _reject_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("Input should be a number, not a boolean")
    return value


def without_bool_coercion(python_type: Any) -> Any:
    """Keep lax casting for ``int``/``float`` but refuse JSON booleans.

    pydantic's lax mode turns ``true`` into ``1``; strings such as ``"7"``
    are still accepted.
    """
    if python_type in (int, float):
        return Annotated[python_type, BeforeValidator(_reject_bool)]
    return python_type


def _ensure_no_additional_properties(schema_dict: Any) -> None:
    """Recursively set ``additionalProperties: false`` on object schemas."""
    if isinstance(schema_dict, dict):
        if (
            schema_dict.get("type") == "object"
            and "additionalProperties" not in schema_dict
        ):
            schema_dict["additionalProperties"] = False

        for key, value in schema_dict.items():
            if key in ("properties", "$defs") and isinstance(value, dict):
                for nested in value.values():
                    _ensure_no_additional_properties(nested)
            elif key in ("items", "allOf", "oneOf", "anyOf"):
                if isinstance(value, dict):
                    _ensure_no_additional_properties(value)
                elif isinstance(value, list):
                    for item in value:
                        _ensure_no_additional_properties(item)
