"""Unit tests for UsageMetrics data class."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from llm_completion_loop.tracking.usage_metrics import UsageMetrics


@pytest.mark.unit
class TestUsageMetrics:
    """Test cases for the UsageMetrics data class."""

    def test_basic_usage_metrics_creation(self) -> None:
        """Test creating UsageMetrics with required fields only."""
        metrics = UsageMetrics(provider="openai", model="gpt-4o")

        assert metrics.input_tokens == 0
        assert metrics.output_tokens == 0
        assert metrics.turns == 0
        assert metrics.cached_tokens is None
        assert metrics.estimated_cost_usd is None
        assert isinstance(metrics.timestamp, datetime)

    def test_total_tokens(self) -> None:
        """Test total token calculation including cached tokens."""
        metrics = UsageMetrics(
            input_tokens=100,
            output_tokens=50,
            cached_tokens=25,
            provider="openai",
            model="gpt-4o",
        )

        assert metrics.total_tokens == 175

    def test_negative_tokens_rejected(self) -> None:
        """Test that negative token counts fail validation."""
        with pytest.raises(ValidationError):
            UsageMetrics(input_tokens=-1, provider="openai", model="gpt-4o")

    def test_add_turn_accumulates(self) -> None:
        """Test add_turn returns a new instance with summed values."""
        first = UsageMetrics(provider="anthropic", model="claude-3-5-haiku-latest")

        second = first.add_turn(input_tokens=10, output_tokens=4, cost_usd=0.01)
        third = second.add_turn(
            input_tokens=5, output_tokens=1, cached_tokens=3, cost_usd=0.02
        )

        assert first.turns == 0
        assert second.turns == 1
        assert third.input_tokens == 15
        assert third.output_tokens == 5
        assert third.cached_tokens == 3
        assert third.estimated_cost_usd == pytest.approx(0.03)
        assert third.turns == 2

    def test_add_turn_keeps_unknown_cost(self) -> None:
        """Test turns without a cost keep the previous estimate."""
        metrics = UsageMetrics(provider="google", model="gemini/gemini-1.5-flash")

        updated = metrics.add_turn(input_tokens=1, output_tokens=1)

        assert updated.estimated_cost_usd is None
        assert updated.cached_tokens is None
