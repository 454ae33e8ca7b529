"""Services: response parsing and the fixed-point engine."""

from converge_app.services.engine import (
    Engine,
    Invariant,
    InvariantResult,
    RunResult,
    StreamingCallback,
)
from converge_app.services.parsing import ResponseParser, strip_list_marker

__all__ = [
    "Engine",
    "Invariant",
    "InvariantResult",
    "RunResult",
    "StreamingCallback",
    "ResponseParser",
    "strip_list_marker",
]
