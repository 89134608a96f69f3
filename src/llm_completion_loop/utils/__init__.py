"""Configuration helpers."""

from .config import (
    create_model_configuration,
    get_available_providers,
    get_default_models,
    get_max_runs,
    load_environment,
)

__all__ = [
    "load_environment",
    "get_max_runs",
    "create_model_configuration",
    "get_available_providers",
    "get_default_models",
]
