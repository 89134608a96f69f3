"""Schema loading, caching, and conversion to expected-result descriptors."""

import json
from pathlib import Path
from typing import Annotated, Any, Literal

import requests
from pydantic import BaseModel, ConfigDict, Field, create_model

from llm_completion_loop.exceptions import SchemaLoadError, SchemaNotFoundError
from llm_completion_loop.schema.validators import ExpectedResult, without_bool_coercion

SchemaInput = str | dict[str, Any] | type[BaseModel] | ExpectedResult

_JSON_TYPES: dict[str, Any] = {
    "string": str,
    "integer": int,
    "number": float,
    "boolean": bool,
    "array": list,
    "object": dict,
    "null": type(None),
}

# JSON schema keyword -> ExpectedResult constraint name.
_SCHEMA_CONSTRAINTS: dict[str, str] = {
    "minimum": "min",
    "maximum": "max",
    "exclusiveMinimum": "greater_than",
    "exclusiveMaximum": "less_than",
    "minLength": "min_length",
    "maxLength": "max_length",
    "minItems": "min_length",
    "maxItems": "max_length",
    "pattern": "match",
}


class SchemaManager:
    """Manages JSON schemas and turns them into ``ExpectedResult`` descriptors.

    Supports loading schemas from:
    - Local files in configured directories
    - URLs with caching
    - Runtime registration
    """

    def __init__(self, schema_directories: list[str] | None = None) -> None:
        """Initialize SchemaManager.

        Args:
            schema_directories: Directories to search for schema files.
                               Defaults to ['schemas/'] if None.
        """
        self.schema_directories = schema_directories or ["schemas/"]
        self._schema_cache: dict[str, dict[str, Any]] = {}
        self._url_cache: dict[str, dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> dict[str, Any]:
        """Load a JSON schema by name.

        Args:
            schema_name: Name of the schema (without .json extension)

        Returns:
            JSON schema as dictionary

        Raises:
            SchemaNotFoundError: If schema cannot be found
            SchemaLoadError: If the schema file is not a valid schema
        """
        if schema_name in self._schema_cache:
            return self._schema_cache[schema_name]

        for directory in self.schema_directories:
            schema_path = Path(directory) / f"{schema_name}.json"
            if schema_path.exists():
                try:
                    with open(schema_path, encoding="utf-8") as f:
                        schema_dict = json.load(f)
                except json.JSONDecodeError as e:
                    raise SchemaLoadError(
                        f"Invalid schema file {schema_path}: {e}"
                    ) from e

                self._validate_schema(schema_dict)
                self._schema_cache[schema_name] = schema_dict
                return schema_dict

        raise SchemaNotFoundError(
            f"Schema '{schema_name}' not found in directories: {self.schema_directories}"
        )

    def load_schema_from_url(self, url: str) -> dict[str, Any]:
        """Load a JSON schema from a URL.

        Raises:
            SchemaLoadError: If URL fetch or schema validation fails
        """
        if url in self._url_cache:
            return self._url_cache[url]

        try:
            response = requests.get(url, timeout=30)
            response.raise_for_status()
            schema_dict = response.json()
        except requests.RequestException as e:
            raise SchemaLoadError(f"Failed to fetch schema from {url}: {e}") from e
        except json.JSONDecodeError as e:
            raise SchemaLoadError(f"Invalid JSON schema from {url}: {e}") from e

        self._validate_schema(schema_dict)
        self._url_cache[url] = schema_dict
        return schema_dict

    def register_schema(self, name: str, schema_dict: dict[str, Any]) -> None:
        """Register a schema at runtime.

        Raises:
            SchemaLoadError: If schema is invalid
        """
        self._validate_schema(schema_dict)
        self._schema_cache[name] = schema_dict

    def list_available_schemas(self) -> list[str]:
        """List the names of file-based and registered schemas."""
        schema_names = set()

        for directory in self.schema_directories:
            dir_path = Path(directory)
            if dir_path.exists():
                for schema_file in dir_path.glob("*.json"):
                    schema_names.add(schema_file.stem)

        schema_names.update(self._schema_cache.keys())

        return sorted(schema_names)

    def resolve_expected(
        self, schema_input: SchemaInput
    ) -> tuple[ExpectedResult, dict[str, Any]]:
        """Resolve a schema input into an expected result and its JSON schema.

        Args:
            schema_input: ``ExpectedResult``, pydantic model class, JSON schema
                dict, ``http(s)://`` URL or registered/file schema name

        Returns:
            Tuple of (expected_result, json_schema). A JSON schema given by
            the caller is returned unchanged.
        """
        if isinstance(schema_input, ExpectedResult):
            return schema_input, schema_input.json_schema()

        if isinstance(schema_input, type) and issubclass(schema_input, BaseModel):
            expected = ExpectedResult(type=schema_input)
            return expected, expected.json_schema()

        if isinstance(schema_input, dict):
            self._validate_schema(schema_input)
            schema_dict = schema_input
            name = str(schema_dict.get("title", "Result"))
        elif schema_input.startswith(("http://", "https://")):
            schema_dict = self.load_schema_from_url(schema_input)
            name = str(schema_dict.get("title", "Result"))
        else:
            schema_dict = self.load_schema(schema_input)
            name = schema_input

        return expected_from_json_schema(schema_dict, name), schema_dict

    def _validate_schema(self, schema_dict: Any) -> None:
        """Validate that a value looks like a usable JSON schema.

        Raises:
            SchemaLoadError: If schema is invalid
        """
        if not isinstance(schema_dict, dict):
            raise SchemaLoadError("Schema must be a dictionary")

        if "type" not in schema_dict and "enum" not in schema_dict:
            raise SchemaLoadError("Schema must have 'type' or 'enum' field")


def expected_from_json_schema(
    schema_dict: dict[str, Any], model_name: str = "Result"
) -> ExpectedResult:
    """Build an ``ExpectedResult`` from a JSON schema.

    Top-level numeric, string, array and enum keywords become constraints;
    object schemas become generated pydantic models.
    """
    constraints: dict[str, Any] = {}
    for keyword, constraint in _SCHEMA_CONSTRAINTS.items():
        if keyword in schema_dict:
            constraints[constraint] = schema_dict[keyword]
    if "enum" in schema_dict:
        constraints["one_of"] = list(schema_dict["enum"])

    return ExpectedResult(
        type=_json_type_to_python_type(schema_dict, model_name),
        constraints=constraints,
    )


def _json_type_to_python_type(field_schema: dict[str, Any], name: str) -> Any:
    json_type = field_schema.get("type")

    if isinstance(json_type, list):
        # e.g. ["string", "null"]
        options = [
            _json_type_to_python_type({**field_schema, "type": t}, name)
            for t in json_type
        ]
        python_type = options[0]
        for option in options[1:]:
            python_type = python_type | option
        return python_type

    if json_type == "object" and "properties" in field_schema:
        return _generate_model_from_schema(field_schema, name)

    if json_type == "array" and isinstance(field_schema.get("items"), dict):
        item_type = _json_type_to_python_type(field_schema["items"], f"{name}Item")
        return list[without_bool_coercion(item_type)]  # type: ignore[misc]

    if json_type is None:
        return Any

    return _JSON_TYPES.get(json_type, Any)


def _generate_model_from_schema(
    schema_dict: dict[str, Any], model_name: str
) -> type[BaseModel]:
    """Generate a pydantic model from an object JSON schema.

    Property ``enum`` values become ``Literal`` types; numeric properties
    refuse booleans.
    """
    properties = schema_dict.get("properties", {})
    required_fields = schema_dict.get("required", [])

    field_definitions: dict[str, Any] = {}

    for field_name, field_schema in properties.items():
        if _literal_enum(field_schema):
            field_type = Literal[tuple(field_schema["enum"])]  # type: ignore[misc]
        else:
            field_type = without_bool_coercion(
                _json_type_to_python_type(
                    field_schema, f"{model_name}{field_name.title().replace('_', '')}"
                )
            )
        field_kwargs = {
            _FIELD_KEYWORDS[keyword]: value
            for keyword, value in field_schema.items()
            if keyword in _FIELD_KEYWORDS
        }
        if field_kwargs:
            field_type = Annotated[field_type, Field(**field_kwargs)]

        if field_name in required_fields:
            field_definitions[field_name] = (field_type, ...)
        else:
            field_definitions[field_name] = (field_type | None, None)

    extra = "forbid" if schema_dict.get("additionalProperties") is False else "ignore"
    return create_model(  # type: ignore[call-overload,no-any-return]
        model_name, __config__=ConfigDict(extra=extra), **field_definitions
    )


# JSON schema keyword -> pydantic ``Field`` keyword, for object properties.
_FIELD_KEYWORDS: dict[str, str] = {
    "minimum": "ge",
    "maximum": "le",
    "exclusiveMinimum": "gt",
    "exclusiveMaximum": "lt",
    "minLength": "min_length",
    "maxLength": "max_length",
    "minItems": "min_length",
    "maxItems": "max_length",
    "pattern": "pattern",
}


def _literal_enum(field_schema: dict[str, Any]) -> bool:
    """Whether a property's ``enum`` can be expressed as a ``Literal``."""
    values = field_schema.get("enum")
    return bool(values) and all(
        value is None or isinstance(value, (str, int, bool)) for value in values
    )
