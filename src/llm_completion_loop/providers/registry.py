"""Provider families, their capabilities, and the model configuration."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class ProviderFamily(Enum):
    """Closed set of provider families the completion loop knows about."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    META = "meta"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ProviderProfile:
    """Capability flags attached to one provider family.

    Args:
        family: The provider family this profile describes.
        supports_tool_choice: Whether the provider can be forced to call a
            specific tool via ``tool_choice``.
        supports_strict_tools: Whether tool definitions may carry ``strict``.
        requires_relaxed_schema: Whether the provider rejects strict nested
            object schemas, so the ``result`` schema must be a placeholder.
    """

    family: ProviderFamily
    supports_tool_choice: bool = False
    supports_strict_tools: bool = False
    requires_relaxed_schema: bool = False


# Gemini returns MALFORMED_FUNCTION_CALL for overly strict schemas.
PROVIDER_PROFILES: dict[ProviderFamily, ProviderProfile] = {
    ProviderFamily.OPENAI: ProviderProfile(
        ProviderFamily.OPENAI,
        supports_tool_choice=True,
        supports_strict_tools=True,
    ),
    ProviderFamily.ANTHROPIC: ProviderProfile(
        ProviderFamily.ANTHROPIC,
        supports_tool_choice=True,
    ),
    ProviderFamily.GOOGLE: ProviderProfile(
        ProviderFamily.GOOGLE,
        requires_relaxed_schema=True,
    ),
    ProviderFamily.META: ProviderProfile(ProviderFamily.META),
    ProviderFamily.UNKNOWN: ProviderProfile(ProviderFamily.UNKNOWN),
}


_ROUTE_PREFIXES: dict[str, ProviderFamily] = {
    "openai": ProviderFamily.OPENAI,
    "azure": ProviderFamily.OPENAI,
    "anthropic": ProviderFamily.ANTHROPIC,
    "gemini": ProviderFamily.GOOGLE,
    "vertex_ai": ProviderFamily.GOOGLE,
    "ollama": ProviderFamily.META,
}


def classify_provider(model: str) -> ProviderFamily:
    """Determine the provider family from a LiteLLM model name.

    Explicit LiteLLM routes (``"gemini/gemini-1.5-pro"``) win over model-name
    heuristics.

    Args:
        model: The model name

    Returns:
        The matching provider family, ``ProviderFamily.UNKNOWN`` otherwise
    """
    model_lower = model.lower()

    route, sep, _ = model_lower.partition("/")
    if sep and route in _ROUTE_PREFIXES:
        return _ROUTE_PREFIXES[route]

    if model_lower.startswith(("o1", "o3", "o4")) or any(
        prefix in model_lower for prefix in ["gpt", "davinci", "curie", "babbage"]
    ):
        return ProviderFamily.OPENAI
    elif any(prefix in model_lower for prefix in ["claude"]):
        return ProviderFamily.ANTHROPIC
    elif any(prefix in model_lower for prefix in ["gemini", "palm", "bison"]):
        return ProviderFamily.GOOGLE
    elif any(prefix in model_lower for prefix in ["llama", "code-llama"]):
        return ProviderFamily.META
    else:
        return ProviderFamily.UNKNOWN


def get_profile(family: ProviderFamily) -> ProviderProfile:
    """Return the capability profile for a provider family."""
    return PROVIDER_PROFILES.get(family, PROVIDER_PROFILES[ProviderFamily.UNKNOWN])


@dataclass(frozen=True)
class ModelConfiguration:
    """Immutable description of the model a conversation runs against.

    The provider family and its tool-choice capability are resolved once, at
    construction, from the model name unless given explicitly. Forcing a tool
    produces a derived copy through ``with_tool_choice``.

    Args:
        model: LiteLLM model name (e.g. ``"gpt-4o"``, ``"gemini/gemini-1.5-pro"``)
        provider: Provider family; classified from ``model`` when omitted
        supports_tool_choice: Whether ``tool_choice`` may be pinned; taken
            from the provider profile when omitted
        tool_choice: Tool choice forwarded to LiteLLM, ``None`` for "auto"
        api_key: API key forwarded to LiteLLM
        api_base: Optional custom endpoint
        temperature: Optional sampling temperature
        max_tokens: Maximum tokens per model turn
    """

    model: str
    provider: ProviderFamily | None = None
    supports_tool_choice: bool | None = None
    tool_choice: dict[str, Any] | None = None
    api_key: str | None = field(default=None, repr=False)
    api_base: str | None = None
    temperature: float | None = None
    max_tokens: int = 1000

    def __post_init__(self) -> None:
        if not self.model:
            raise ValueError("Model is required")
        if self.provider is None:
            object.__setattr__(self, "provider", classify_provider(self.model))
        if self.supports_tool_choice is None:
            object.__setattr__(
                self,
                "supports_tool_choice",
                get_profile(self.family).supports_tool_choice,
            )

    @property
    def family(self) -> ProviderFamily:
        """Provider family, never ``None`` after construction."""
        return self.provider or ProviderFamily.UNKNOWN

    @property
    def profile(self) -> ProviderProfile:
        """Capability profile of this configuration's provider."""
        return get_profile(self.family)

    def with_tool_choice(self, tool_name: str) -> "ModelConfiguration":
        """Return a copy pinned to call ``tool_name`` on the next turn."""
        return replace(
            self,
            tool_choice={"type": "function", "function": {"name": tool_name}},
        )
