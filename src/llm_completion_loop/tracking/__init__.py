"""Usage tracking for completion loops."""

from .usage_metrics import UsageMetrics

__all__ = ["UsageMetrics"]
