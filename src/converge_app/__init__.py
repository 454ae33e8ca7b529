"""Converge application.

Distribution layer for a multi-agent convergence pipeline: domain packs,
model-backed analysis agents, a fixed-point engine and a fixture-driven
eval harness.
"""

__version__ = "0.1.0"

from converge_app.domain import Context, ContextKey, Fact
from converge_app.services.engine import Engine, RunResult

__all__ = [
    "Context",
    "ContextKey",
    "Engine",
    "Fact",
    "RunResult",
]
