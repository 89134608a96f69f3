"""Unit tests for provider classification, profiles and tool sanitization."""

from dataclasses import FrozenInstanceError

import pytest

from llm_completion_loop.providers.registry import (
    ModelConfiguration,
    ProviderFamily,
    classify_provider,
    get_profile,
)
from llm_completion_loop.providers.sanitize import sanitize_tools
from llm_completion_loop.tools.tool import Tool


@pytest.mark.unit
class TestClassifyProvider:
    """Test cases for model name classification."""

    @pytest.mark.parametrize(
        ("model", "family"),
        [
            ("gpt-4o-mini", ProviderFamily.OPENAI),
            ("o3-mini", ProviderFamily.OPENAI),
            ("openai/my-finetune", ProviderFamily.OPENAI),
            ("claude-3-5-sonnet-20241022", ProviderFamily.ANTHROPIC),
            ("anthropic/claude-3-haiku-20240307", ProviderFamily.ANTHROPIC),
            ("gemini/gemini-1.5-pro", ProviderFamily.GOOGLE),
            ("vertex_ai/gemini-1.5-flash", ProviderFamily.GOOGLE),
            ("gemini-2.0-flash", ProviderFamily.GOOGLE),
            ("ollama/llama3", ProviderFamily.META),
            ("mistral-large", ProviderFamily.UNKNOWN),
        ],
    )
    def test_classification(self, model: str, family: ProviderFamily) -> None:
        """Test each model name maps to the expected family."""
        assert classify_provider(model) is family

    def test_route_prefix_wins_over_model_name(self) -> None:
        """Test an explicit LiteLLM route beats name heuristics."""
        assert classify_provider("ollama/gpt-oss") is ProviderFamily.META


@pytest.mark.unit
class TestProviderProfiles:
    """Test cases for capability profiles."""

    def test_only_google_requires_relaxed_schema(self) -> None:
        """Test the relaxed-schema flag is set for the Google family only."""
        relaxed = {
            family
            for family in ProviderFamily
            if get_profile(family).requires_relaxed_schema
        }
        assert relaxed == {ProviderFamily.GOOGLE}

    def test_tool_choice_support(self) -> None:
        """Test which families can be forced to call a tool."""
        assert get_profile(ProviderFamily.OPENAI).supports_tool_choice
        assert get_profile(ProviderFamily.ANTHROPIC).supports_tool_choice
        assert not get_profile(ProviderFamily.GOOGLE).supports_tool_choice
        assert not get_profile(ProviderFamily.UNKNOWN).supports_tool_choice

    def test_strict_tool_support(self) -> None:
        """Test only OpenAI accepts strict tool definitions."""
        strict = {
            family
            for family in ProviderFamily
            if get_profile(family).supports_strict_tools
        }
        assert strict == {ProviderFamily.OPENAI}


@pytest.mark.unit
class TestModelConfiguration:
    """Test cases for ModelConfiguration."""

    def test_provider_resolved_at_construction(self) -> None:
        """Test provider and tool-choice support come from the model name."""
        config = ModelConfiguration(model="claude-3-5-haiku-latest")

        assert config.provider is ProviderFamily.ANTHROPIC
        assert config.supports_tool_choice is True
        assert config.tool_choice is None

    def test_explicit_capability_overrides_profile(self) -> None:
        """Test an explicit supports_tool_choice is kept."""
        config = ModelConfiguration(model="gpt-4o", supports_tool_choice=False)

        assert config.supports_tool_choice is False

    def test_model_is_required(self) -> None:
        """Test an empty model name is rejected."""
        with pytest.raises(ValueError, match="Model is required"):
            ModelConfiguration(model="")

    def test_with_tool_choice_returns_copy(self) -> None:
        """Test forcing a tool produces a new configuration."""
        config = ModelConfiguration(model="gpt-4o", api_key="key")

        forced = config.with_tool_choice("complete_request")

        assert forced is not config
        assert config.tool_choice is None
        assert forced.tool_choice == {
            "type": "function",
            "function": {"name": "complete_request"},
        }
        assert forced.api_key == "key"

    def test_configuration_is_frozen(self) -> None:
        """Test the configuration cannot be mutated in place."""
        config = ModelConfiguration(model="gpt-4o")

        with pytest.raises(FrozenInstanceError):
            config.tool_choice = {"type": "auto"}  # type: ignore[misc]

    def test_api_key_not_in_repr(self) -> None:
        """Test the API key is not exposed in repr."""
        config = ModelConfiguration(model="gpt-4o", api_key="secret-key")

        assert "secret-key" not in repr(config)


def _strict_tool() -> Tool:
    return Tool(
        name="complete_request",
        description="Complete",
        parameters={
            "type": "object",
            "properties": {
                "result": {
                    "type": "object",
                    "properties": {"x": {"type": "integer"}},
                    "additionalProperties": False,
                }
            },
            "required": ["result"],
            "additionalProperties": False,
        },
        handler=lambda args: None,
        strict=True,
    )


@pytest.mark.unit
class TestSanitizeTools:
    """Test cases for provider-specific tool sanitization."""

    def test_openai_tools_untouched(self, openai_config: ModelConfiguration) -> None:
        """Test strict tools pass through for providers that support them."""
        tool = _strict_tool()

        sanitized = sanitize_tools([tool], openai_config)

        assert sanitized == [tool]

    def test_anthropic_drops_strict(self) -> None:
        """Test strict is removed for providers without strict tool support."""
        config = ModelConfiguration(model="claude-3-5-haiku-latest")

        (sanitized,) = sanitize_tools([_strict_tool()], config)

        assert sanitized.strict is False
        assert sanitized.parameters["additionalProperties"] is False

    def test_gemini_strips_additional_properties(
        self, gemini_config: ModelConfiguration
    ) -> None:
        """Test additionalProperties is stripped recursively for Gemini."""
        tool = _strict_tool()

        (sanitized,) = sanitize_tools([tool], gemini_config)

        assert sanitized.strict is False
        assert "additionalProperties" not in sanitized.parameters
        assert (
            "additionalProperties"
            not in sanitized.parameters["properties"]["result"]
        )
        # the original tool is left untouched
        assert tool.parameters["additionalProperties"] is False
        assert tool.strict is True

    def test_order_preserved(self, gemini_config: ModelConfiguration) -> None:
        """Test the roster order is kept."""
        other = Tool("lookup", "Look up", {"type": "object"}, lambda args: "ok")

        sanitized = sanitize_tools([_strict_tool(), other], gemini_config)

        assert [tool.name for tool in sanitized] == ["complete_request", "lookup"]
