"""Domain layer for the converge application.

Re-exports all public domain types so that consumers can write::

    from converge_app.domain import Context, ContextKey, Fact
"""

# -- Enumerations -------------------------------------------------------------
from .enums import ContextKey, FinishReason, InvariantClass

# -- Value Objects ------------------------------------------------------------
from .values import AgentEffect, Fact

# -- Aggregates ---------------------------------------------------------------
from .aggregates import Context

# -- Exceptions ---------------------------------------------------------------
from .exceptions import (
    AgentExecutionError,
    ContextError,
    ConvergeError,
    FixtureError,
    InvariantViolationError,
    UnknownPackError,
)

__all__ = [
    # Enums
    "ContextKey",
    "FinishReason",
    "InvariantClass",
    # Values
    "AgentEffect",
    "Fact",
    # Aggregates
    "Context",
    # Exceptions
    "ConvergeError",
    "ContextError",
    "InvariantViolationError",
    "AgentExecutionError",
    "UnknownPackError",
    "FixtureError",
]
