"""Loop outcomes and their normalization into a single invocation result.

The chat session may report its run in several shapes. ``decode_outcome``
turns whatever it returned into exactly one ``LoopOutcome`` variant, and
``normalize`` maps every variant, or any stray value, onto an
``InvocationResult`` without raising.
"""

from dataclasses import dataclass
from typing import Any

from llm_completion_loop.exceptions import UnexpectedResponseError
from llm_completion_loop.session.chat_session import RunResult
from llm_completion_loop.tracking.usage_metrics import UsageMetrics


@dataclass(frozen=True)
class Completed:
    """The completion tool fired and its value validated."""

    value: Any
    usage: UsageMetrics | None = None


@dataclass(frozen=True)
class WrappedError:
    """A run reported as successful that nevertheless carries an error."""

    error: Any
    usage: UsageMetrics | None = None


@dataclass(frozen=True)
class Failed:
    """An explicit error from the session, passed through unchanged."""

    error: Any
    usage: UsageMetrics | None = None


@dataclass(frozen=True)
class Unrecognized:
    """Anything the session returned that matches no known shape."""

    raw: Any


LoopOutcome = Completed | WrappedError | Failed | Unrecognized


@dataclass(frozen=True)
class InvocationResult:
    """Outcome of one completion loop invocation.

    Exactly one of ``value`` (when ``ok``) or ``error`` (when not) is
    meaningful.

    Attributes:
        ok: Whether the loop produced a validated value
        value: The validated value
        error: Error describing why no value was produced
        usage: Token usage accumulated by the session, when it reported any
    """

    ok: bool
    value: Any = None
    error: Any = None
    usage: UsageMetrics | None = None

    @classmethod
    def success(
        cls, value: Any, usage: UsageMetrics | None = None
    ) -> "InvocationResult":
        return cls(ok=True, value=value, usage=usage)

    @classmethod
    def failure(
        cls, error: Any, usage: UsageMetrics | None = None
    ) -> "InvocationResult":
        return cls(ok=False, error=error, usage=usage)


def decode_outcome(raw: Any) -> LoopOutcome:
    """Classify a chat session's raw return value."""
    if isinstance(raw, RunResult):
        if raw.status == "ok" and raw.error is None:
            return Completed(raw.processed_content, usage=raw.usage)
        if raw.status == "ok":
            return WrappedError(raw.error, usage=raw.usage)
        if raw.status == "error":
            return Failed(raw.error, usage=raw.usage)
    return Unrecognized(raw)


def normalize(outcome: Any) -> InvocationResult:
    """Map a loop outcome to an ``InvocationResult``.

    Total over its input: values that are not a ``LoopOutcome`` are treated
    like ``Unrecognized``.
    """
    if isinstance(outcome, Completed):
        return InvocationResult.success(outcome.value, usage=outcome.usage)
    if isinstance(outcome, WrappedError):
        return InvocationResult.failure(outcome.error, usage=outcome.usage)
    if isinstance(outcome, Failed):
        return InvocationResult.failure(outcome.error, usage=outcome.usage)
    raw = outcome.raw if isinstance(outcome, Unrecognized) else outcome
    return InvocationResult.failure(UnexpectedResponseError(original=raw))
