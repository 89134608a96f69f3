"""Provider families, capability profiles and tool sanitization."""

from .registry import (
    PROVIDER_PROFILES,
    ModelConfiguration,
    ProviderFamily,
    ProviderProfile,
    classify_provider,
    get_profile,
)
from .sanitize import sanitize_tools

__all__ = [
    "PROVIDER_PROFILES",
    "ModelConfiguration",
    "ProviderFamily",
    "ProviderProfile",
    "classify_provider",
    "get_profile",
    "sanitize_tools",
]
