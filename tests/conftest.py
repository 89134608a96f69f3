"""Shared pytest configuration and fixtures for the test suite."""

import json
import os
from collections.abc import Callable
from typing import Any
from unittest.mock import Mock

import pytest

from llm_completion_loop.providers.registry import ModelConfiguration


def _tool_call(name: str, arguments: Any, call_id: str = "call_1") -> Mock:
    call = Mock()
    call.id = call_id
    call.type = "function"
    call.function.name = name
    call.function.arguments = (
        arguments if isinstance(arguments, str) else json.dumps(arguments)
    )
    return call


def _response(content: str | None = None, tool_calls: list[Mock] | None = None) -> Mock:
    response = Mock()
    response.choices = [Mock()]
    response.choices[0].message.content = content
    response.choices[0].message.tool_calls = tool_calls
    response.usage = None
    return response


@pytest.fixture
def make_tool_call() -> Callable[..., Mock]:
    """Factory for LiteLLM-style tool calls with JSON-encoded arguments."""
    return _tool_call


@pytest.fixture
def make_response() -> Callable[..., Mock]:
    """Factory for LiteLLM-style completion responses without usage data."""
    return _response


@pytest.fixture
def openai_config() -> ModelConfiguration:
    """Configuration for a provider that supports forced tool choice."""
    return ModelConfiguration(model="gpt-4o-mini", api_key="test-api-key-12345")


@pytest.fixture
def gemini_config() -> ModelConfiguration:
    """Configuration for the relaxed-schema provider family."""
    return ModelConfiguration(
        model="gemini/gemini-1.5-pro", api_key="test-api-key-12345"
    )


@pytest.fixture
def no_env_file(monkeypatch: Any) -> None:
    """Keep a developer's .env file out of configuration tests."""
    monkeypatch.setattr("llm_completion_loop.utils.config.load_dotenv", lambda: None)


class SecureTestConfig:
    """Test configuration that doesn't expose API keys in repr."""

    def __init__(
        self, openai_key: str | None, anthropic_key: str | None
    ) -> None:
        self._openai_key = openai_key
        self._anthropic_key = anthropic_key

    def __getitem__(self, key: str) -> Any:
        if key == "openai_api_key":
            return self._openai_key
        elif key == "anthropic_api_key":
            return self._anthropic_key
        else:
            raise KeyError(key)

    def __repr__(self) -> str:
        return "SecureTestConfig(keys_available=True)"


@pytest.fixture
def integration_test_setup() -> SecureTestConfig:
    """Setup fixture for integration tests - skips without real API keys."""
    openai_key = os.getenv("OPENAI_API_KEY")
    anthropic_key = os.getenv("ANTHROPIC_API_KEY")

    if not openai_key and not anthropic_key:
        pytest.skip(
            "Integration tests require real API keys. Set OPENAI_API_KEY or "
            "ANTHROPIC_API_KEY environment variables."
        )

    return SecureTestConfig(openai_key=openai_key, anthropic_key=anthropic_key)


# Pytest configuration
pytest_plugins: list[str] = []
