"""Unit tests for ExpectedResult and TypeCaster."""

import pytest
from pydantic import BaseModel, ValidationError

from llm_completion_loop.exceptions import (
    ConfigurationException,
    SchemaValidationException,
)
from llm_completion_loop.schema.validators import (
    CastResult,
    ExpectedResult,
    TypeCaster,
)


class Person(BaseModel):
    """Sample model for casting tests."""

    name: str
    age: int


@pytest.mark.unit
class TestExpectedResult:
    """Test cases for the ExpectedResult descriptor."""

    def test_unsupported_constraint_rejected(self) -> None:
        """Test unknown constraint names fail fast."""
        with pytest.raises(ConfigurationException, match="Unsupported constraints"):
            ExpectedResult(type=int, constraints={"minimum": 0})

    def test_field_constraints_mapping(self) -> None:
        """Test constraint names translate to pydantic Field keywords."""
        expected = ExpectedResult(
            type=int, constraints={"min": 0, "max": 10, "one_of": [1, 2]}
        )

        assert expected.field_constraints() == {"ge": 0, "le": 10}

    def test_json_schema_for_constrained_integer(self) -> None:
        """Test the generated schema carries numeric constraints."""
        schema = ExpectedResult(type=int, constraints={"min": 0}).json_schema()

        assert schema == {"type": "integer", "minimum": 0}

    def test_json_schema_for_one_of(self) -> None:
        """Test one_of is rendered as an enum."""
        schema = ExpectedResult(
            type=str, constraints={"one_of": ["red", "green"]}
        ).json_schema()

        assert schema["type"] == "string"
        assert schema["enum"] == ["red", "green"]

    def test_json_schema_for_model_forbids_additional_properties(self) -> None:
        """Test object schemas are closed for strict tool definitions."""
        schema = ExpectedResult(type=Person).json_schema()

        assert schema["type"] == "object"
        assert schema["additionalProperties"] is False
        assert set(schema["properties"]) == {"name", "age"}


@pytest.mark.unit
class TestTypeCaster:
    """Test cases for casting and constraint application."""

    def test_cast_success(self) -> None:
        """Test a value of the right type casts unchanged."""
        result = TypeCaster().cast(ExpectedResult(type=int), 7)

        assert isinstance(result, CastResult)
        assert result.success is True
        assert result.value == 7
        assert result.error is None

    def test_cast_is_lax(self) -> None:
        """Test numeric strings are cast to integers."""
        result = TypeCaster().cast(ExpectedResult(type=int), "7")

        assert result.success is True
        assert result.value == 7

    @pytest.mark.parametrize("expected_type", [int, float])
    def test_cast_rejects_booleans_for_numbers(self, expected_type: type) -> None:
        """Test JSON booleans are not cast to numbers."""
        result = TypeCaster().cast(ExpectedResult(type=expected_type), True)

        assert result.success is False
        assert isinstance(result.error, ValidationError)

    def test_cast_keeps_booleans_for_bool(self) -> None:
        """Test booleans still cast when a boolean is expected."""
        result = TypeCaster().cast(ExpectedResult(type=bool), True)

        assert result.success is True
        assert result.value is True

    def test_cast_ignores_constraints(self) -> None:
        """Test constraints are not applied while casting."""
        expected = ExpectedResult(type=int, constraints={"min": 0})

        result = TypeCaster().cast(expected, -5)

        assert result.success is True
        assert result.value == -5

    def test_cast_type_error(self) -> None:
        """Test an uncastable value reports a type error."""
        result = TypeCaster().cast(ExpectedResult(type=int), "seven")

        assert result.success is False
        assert isinstance(result.error, ValidationError)
        assert result.error_category == "type_error"

    def test_cast_model(self) -> None:
        """Test dicts cast to pydantic models."""
        result = TypeCaster().cast(
            ExpectedResult(type=Person), {"name": "Ada", "age": 36}
        )

        assert result.success is True
        assert result.value == Person(name="Ada", age=36)

    def test_cast_model_missing_field(self) -> None:
        """Test a missing required field is categorized."""
        result = TypeCaster().cast(ExpectedResult(type=Person), {"name": "Ada"})

        assert result.success is False
        assert result.error_category == "missing_field"

    def test_apply_constraints_minimum(self) -> None:
        """Test the min constraint rejects negative values."""
        expected = ExpectedResult(type=int, constraints={"min": 0})
        caster = TypeCaster()

        failed = caster.apply_constraints(expected, -5)
        passed = caster.apply_constraints(expected, 7)

        assert failed.success is False
        assert failed.error_category == "constraint_error"
        assert passed.success is True
        assert passed.value == 7

    def test_apply_constraints_without_constraints(self) -> None:
        """Test values pass through when nothing is constrained."""
        result = TypeCaster().apply_constraints(ExpectedResult(type=str), "any")

        assert result.success is True
        assert result.value == "any"

    def test_apply_constraints_match(self) -> None:
        """Test the match constraint checks strings against a pattern."""
        expected = ExpectedResult(type=str, constraints={"match": r"^\d+$"})
        caster = TypeCaster()

        assert caster.apply_constraints(expected, "123").success is True
        failed = caster.apply_constraints(expected, "abc")
        assert failed.success is False
        assert failed.error_category == "constraint_error"

    def test_apply_constraints_length(self) -> None:
        """Test length constraints on lists."""
        expected = ExpectedResult(type=list[int], constraints={"max_length": 2})

        result = TypeCaster().apply_constraints(expected, [1, 2, 3])

        assert result.success is False
        assert result.error_category == "constraint_error"

    def test_apply_constraints_one_of(self) -> None:
        """Test one_of rejects values outside the allowed set."""
        expected = ExpectedResult(type=str, constraints={"one_of": ["a", "b"]})
        caster = TypeCaster()

        assert caster.apply_constraints(expected, "a").success is True
        failed = caster.apply_constraints(expected, "c")
        assert failed.success is False
        assert isinstance(failed.error, SchemaValidationException)
        assert failed.error_category == "constraint_error"

    def test_cast_result_repr(self) -> None:
        """Test the repr shows the value or the error category."""
        assert "value=1" in repr(CastResult(success=True, value=1))
        assert "type_error" in repr(
            CastResult(success=False, error_category="type_error")
        )

    def test_cast_result_fields(self) -> None:
        """Test a cast result only carries outcome, value and error."""
        result = CastResult(success=True, value=1)

        assert vars(result) == {
            "success": True,
            "value": 1,
            "error": None,
            "error_category": None,
        }
