"""The completion loop adapter and its result types."""

from .completion_loop import (
    RequestContext,
    complete_request,
    decide_forcing,
    flatten_context,
    run_completion_loop,
)
from .outcomes import (
    Completed,
    Failed,
    InvocationResult,
    LoopOutcome,
    Unrecognized,
    WrappedError,
    decode_outcome,
    normalize,
)

__all__ = [
    "RequestContext",
    "complete_request",
    "decide_forcing",
    "flatten_context",
    "run_completion_loop",
    "Completed",
    "Failed",
    "InvocationResult",
    "LoopOutcome",
    "Unrecognized",
    "WrappedError",
    "decode_outcome",
    "normalize",
]
