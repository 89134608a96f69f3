"""Usage metrics accumulated across the turns of one completion loop."""

from datetime import datetime

from pydantic import BaseModel, Field


class UsageMetrics(BaseModel):
    """Token consumption and estimated cost of one completion loop.

    Attributes:
        input_tokens: Number of input tokens consumed over all turns
        output_tokens: Number of output tokens generated over all turns
        cached_tokens: Number of cached tokens (OpenAI feature)
        estimated_cost_usd: Estimated cost from LiteLLM's model price map in USD
        turns: Number of model turns that reported usage
        provider: LLM provider (e.g., 'openai', 'anthropic')
        model: Specific model used (e.g., 'gpt-4o', 'claude-3-5-sonnet')
        timestamp: When the last turn finished
    """

    input_tokens: int = Field(default=0, ge=0, description="Input tokens consumed")
    output_tokens: int = Field(default=0, ge=0, description="Output tokens generated")
    cached_tokens: int | None = Field(
        default=None, ge=0, description="Number of cached tokens (OpenAI feature)"
    )
    estimated_cost_usd: float | None = Field(
        default=None, ge=0, description="Estimated cost from LiteLLM price map in USD"
    )
    turns: int = Field(default=0, ge=0, description="Model turns with usage data")
    provider: str = Field(description="LLM provider (e.g., 'openai', 'anthropic')")
    model: str = Field(description="Specific model used")
    timestamp: datetime = Field(default_factory=datetime.now)

    @property
    def total_tokens(self) -> int:
        """Calculate total tokens including cached tokens."""
        total = self.input_tokens + self.output_tokens
        if self.cached_tokens is not None:
            total += self.cached_tokens
        return total

    def add_turn(
        self,
        input_tokens: int,
        output_tokens: int,
        cached_tokens: int | None = None,
        cost_usd: float | None = None,
    ) -> "UsageMetrics":
        """Return new metrics with one more turn's usage added."""
        if cached_tokens is not None:
            cached_tokens += self.cached_tokens or 0
        else:
            cached_tokens = self.cached_tokens

        if cost_usd is not None:
            cost_usd += self.estimated_cost_usd or 0.0
        else:
            cost_usd = self.estimated_cost_usd

        return self.model_copy(
            update={
                "input_tokens": self.input_tokens + input_tokens,
                "output_tokens": self.output_tokens + output_tokens,
                "cached_tokens": cached_tokens,
                "estimated_cost_usd": cost_usd,
                "turns": self.turns + 1,
                "timestamp": datetime.now(),
            }
        )
