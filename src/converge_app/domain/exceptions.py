"""Domain exceptions for the converge application.

All domain-specific exceptions inherit from ``ConvergeError`` so callers
can catch the full family with a single ``except`` clause when needed.
Model-provider failures live in their own family
(:class:`converge_app.infrastructure.llm.LLMError`) because agents recover
from them locally instead of propagating them.
"""

from __future__ import annotations

from typing import Any


class ConvergeError(Exception):
    """Base exception for all converge domain errors."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class ContextError(ConvergeError):
    """Raised when a fact cannot be added to the context.

    Examples: an empty id, a key that is not a ``ContextKey``, or an id
    reused within a key with different content.
    """

    def __init__(
        self,
        message: str = "Invalid fact",
        fact_id: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.fact_id = fact_id


class InvariantViolationError(ConvergeError):
    """Raised by the engine when a registered invariant fails.

    A violation halts the run; the harness reports it as a failed fixture.
    """

    def __init__(
        self,
        message: str = "Invariant violated",
        invariant: str = "",
        reason: str = "",
        cycle: int = 0,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.invariant = invariant
        self.reason = reason
        self.cycle = cycle


class AgentExecutionError(ConvergeError):
    """Raised when an agent's ``execute`` raises instead of degrading."""

    def __init__(
        self,
        message: str = "Agent execution failed",
        agent: str = "",
        cycle: int = 0,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.agent = agent
        self.cycle = cycle


class UnknownPackError(ConvergeError):
    """Raised when a pack name is not in the catalogue or has no agents."""

    def __init__(
        self,
        message: str = "Unknown pack",
        pack: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.pack = pack


class FixtureError(ConvergeError):
    """Raised when an eval fixture file cannot be read or parsed."""

    def __init__(
        self,
        message: str = "Invalid fixture",
        path: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.path = path
