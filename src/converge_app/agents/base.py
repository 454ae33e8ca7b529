"""Base agent abstraction for the converge application.

Defines ``BaseAgent``, the contract every pipeline participant fulfils so
the engine can treat deterministic rule agents and model-backed agents
uniformly.  The engine only ever sees this interface and never inspects
concrete agent types.

Contract
--------
``name``
    Stable identifier for logging and diagnostics.
``dependencies``
    Context keys that must be non-empty before the agent is considered.
    The engine uses them for gating; the agent does not enforce them.
``accepts(context)``
    Idempotency gate.  ``True`` only while the agent's preconditions hold
    **and** its own output key is still empty, so every agent runs at
    most once per pipeline run no matter how often it is asked.
``execute(context)``
    Performs the work and returns an :class:`AgentEffect`.  Only called
    right after ``accepts`` returned ``True`` for the same context.
    Recoverable failures must degrade to a diagnostic fact, never raise.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from converge_app.domain.aggregates import Context
from converge_app.domain.enums import ContextKey
from converge_app.domain.values import AgentEffect

logger = logging.getLogger(__name__)


class BaseAgent(ABC):
    """Abstract base class for all pipeline agents.

    Subclasses **must** implement :attr:`name`, :attr:`dependencies`,
    :meth:`accepts` and :meth:`execute`.  At most one ``execute`` call per
    instance is in flight at any time.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable identifier for this agent."""
        ...

    @property
    @abstractmethod
    def dependencies(self) -> frozenset[ContextKey]:
        """Context keys that must be populated before this agent is considered."""
        ...

    @abstractmethod
    def accepts(self, context: Context) -> bool:
        """Return ``True`` if the agent has something to contribute to *context*."""
        ...

    @abstractmethod
    def execute(self, context: Context) -> AgentEffect:
        """Read *context* and propose new facts."""
        ...

    async def execute_async(self, context: Context) -> AgentEffect:
        """Run :meth:`execute` on a worker thread and await its effect.

        Model-backed agents block for a full network round trip; awaiting
        this from an event loop keeps other scheduled work running.
        """
        return await asyncio.to_thread(self.execute, context)

    def dependencies_met(self, context: Context) -> bool:
        """Return ``True`` if every dependency key holds at least one fact."""
        return all(context.has(key) for key in self.dependencies)

    def __repr__(self) -> str:
        deps = ", ".join(sorted(key.value for key in self.dependencies))
        return f"{type(self).__name__}(name={self.name!r}, dependencies=[{deps}])"
