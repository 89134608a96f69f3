"""Provider-specific adaptation of the completion tool's ``result`` schema."""

from typing import Any

from llm_completion_loop.providers.registry import (
    ModelConfiguration,
    ProviderFamily,
    ProviderProfile,
    get_profile,
)

RELAXED_RESULT_SCHEMA: dict[str, Any] = {"type": "object"}


def _resolve_profile(
    provider: ProviderFamily | ProviderProfile | ModelConfiguration,
) -> ProviderProfile:
    if isinstance(provider, ProviderProfile):
        return provider
    if isinstance(provider, ModelConfiguration):
        return provider.profile
    return get_profile(provider)


def adapt_result_schema(
    provider: ProviderFamily | ProviderProfile | ModelConfiguration,
    desired_schema: dict[str, Any],
) -> tuple[dict[str, Any], list[str]]:
    """Pick the ``result`` property schema and required list for a provider.

    Providers that reject strict nested schemas receive an unconstrained
    object and no required fields; shape checks then happen only when the
    tool arguments are cast.

    Args:
        provider: Provider family, its profile, or a model configuration
        desired_schema: JSON schema of the expected result

    Returns:
        Tuple of (result_schema, required_fields)
    """
    if _resolve_profile(provider).requires_relaxed_schema:
        return dict(RELAXED_RESULT_SCHEMA), []
    return desired_schema, ["result"]
