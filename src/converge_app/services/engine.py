"""Fixed-point engine that drives agents over a shared :class:`Context`.

The engine repeatedly selects every registered agent whose dependencies
are populated and whose ``accepts`` gate is open, executes them against
the same context, and merges their effects.  A cycle in which no agent is
eligible is the fixed point: the run has converged.

Classes
-------
Invariant
    Pipeline-wide rule checked at a point determined by its
    :class:`InvariantClass`.
InvariantResult
    Outcome of one invariant check.
StreamingCallback
    Optional observer of cycles and merged facts.
RunResult
    Outcome of :meth:`Engine.run`.
Engine
    The cycle driver.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from converge_app.agents.base import BaseAgent
from converge_app.domain.aggregates import Context
from converge_app.domain.enums import InvariantClass
from converge_app.domain.exceptions import (
    AgentExecutionError,
    ContextError,
    InvariantViolationError,
)
from converge_app.domain.values import AgentEffect, Fact

logger = logging.getLogger(__name__)


# ===================================================================== #
#  Invariants                                                            #
# ===================================================================== #


@dataclass(frozen=True)
class InvariantResult:
    """Outcome of checking one invariant.

    Attributes
    ----------
    ok:
        ``True`` when the invariant holds.
    reason:
        Human-readable explanation of a violation; empty when ``ok``.
    """

    ok: bool
    reason: str = ""

    @classmethod
    def holds(cls) -> InvariantResult:
        return cls(ok=True)

    @classmethod
    def violated(cls, reason: str) -> InvariantResult:
        return cls(ok=False, reason=reason)


class Invariant(ABC):
    """A rule the context must satisfy.

    ``STRUCTURAL`` invariants are checked after every merged effect,
    ``SEMANTIC`` ones at the end of every cycle and ``ACCEPTANCE`` ones
    once, when the run reaches its fixed point.
    """

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def invariant_class(self) -> InvariantClass: ...

    @abstractmethod
    def check(self, context: Context) -> InvariantResult: ...


# ===================================================================== #
#  Streaming                                                             #
# ===================================================================== #


class StreamingCallback(ABC):
    """Observer notified as the engine progresses.

    All hooks default to no-ops so subclasses override only what they need.
    Callbacks observe; they never influence scheduling.
    """

    def on_cycle_start(self, cycle: int) -> None:
        pass

    def on_fact(self, cycle: int, fact: Fact) -> None:
        pass

    def on_cycle_end(self, cycle: int, facts_added: int) -> None:
        pass


# ===================================================================== #
#  Run Result                                                            #
# ===================================================================== #


@dataclass
class RunResult:
    """Outcome of one engine run.

    Attributes
    ----------
    context:
        The final context, including seeds.
    converged:
        ``True`` if the fixed point was reached within the cycle budget.
    cycles:
        Number of cycles executed, including the final fixed-point cycle.
    elapsed_seconds:
        Wall-clock duration of the run.
    """

    context: Context
    converged: bool
    cycles: int
    elapsed_seconds: float = 0.0


# ===================================================================== #
#  Engine                                                                #
# ===================================================================== #


class Engine:
    """Cycle driver for a set of agents and invariants.

    Parameters
    ----------
    max_cycles:
        Cycle budget.  A run that has not converged after this many cycles
        stops with ``converged=False``.
    parallel:
        Execute the eligible agents of a cycle on a thread pool.  Effects
        are still merged one at a time in registration order.
    max_workers:
        Thread pool size when ``parallel`` is set.
    """

    def __init__(
        self,
        max_cycles: int = 50,
        parallel: bool = False,
        max_workers: int | None = None,
    ) -> None:
        if max_cycles < 1:
            raise ValueError(f"max_cycles must be >= 1, got {max_cycles}")
        self._max_cycles = max_cycles
        self._parallel = parallel
        self._max_workers = max_workers
        self._agents: list[BaseAgent] = []
        self._invariants: list[Invariant] = []
        self._streaming: StreamingCallback | None = None

    # -- registration ---------------------------------------------------------

    def register(self, agent: BaseAgent) -> None:
        """Add *agent* to the schedule.  Registration order is execution order."""
        self._agents.append(agent)
        logger.debug("Engine: registered agent %s", agent.name)

    def register_invariant(self, invariant: Invariant) -> None:
        self._invariants.append(invariant)
        logger.debug(
            "Engine: registered %s invariant %s",
            invariant.invariant_class.value,
            invariant.name,
        )

    def set_streaming(self, callback: StreamingCallback | None) -> None:
        self._streaming = callback

    @property
    def agents(self) -> list[BaseAgent]:
        return list(self._agents)

    @property
    def invariants(self) -> list[Invariant]:
        return list(self._invariants)

    @property
    def max_cycles(self) -> int:
        return self._max_cycles

    # -- execution ------------------------------------------------------------

    def run(self, context: Context) -> RunResult:
        """Drive *context* to its fixed point or until the budget runs out.

        Raises
        ------
        InvariantViolationError
            If any registered invariant fails.
        AgentExecutionError
            If an agent raises or proposes a fact the context rejects.
        """
        start = time.monotonic()
        logger.info(
            "Engine run starting: %d agent(s), %d invariant(s), max_cycles=%d",
            len(self._agents),
            len(self._invariants),
            self._max_cycles,
        )

        for cycle in range(1, self._max_cycles + 1):
            self._notify_cycle_start(cycle)
            eligible = [
                agent for agent in self._agents
                if agent.dependencies_met(context) and agent.accepts(context)
            ]

            if not eligible:
                self._notify_cycle_end(cycle, 0)
                self._check_invariants(context, InvariantClass.ACCEPTANCE, cycle)
                elapsed = time.monotonic() - start
                logger.info("Engine converged after %d cycle(s), %d fact(s)", cycle, context.fact_count)
                return RunResult(context=context, converged=True, cycles=cycle, elapsed_seconds=elapsed)

            logger.debug("Cycle %d: running %s", cycle, [agent.name for agent in eligible])
            effects = self._execute(eligible, context, cycle)

            added = 0
            for agent, effect in zip(eligible, effects):
                added += self._merge(agent, effect, context, cycle)
                self._check_invariants(context, InvariantClass.STRUCTURAL, cycle)

            self._check_invariants(context, InvariantClass.SEMANTIC, cycle)
            self._notify_cycle_end(cycle, added)

        elapsed = time.monotonic() - start
        logger.warning(
            "Engine stopped after %d cycle(s) without converging", self._max_cycles,
        )
        return RunResult(
            context=context, converged=False, cycles=self._max_cycles, elapsed_seconds=elapsed,
        )

    async def run_async(self, context: Context) -> RunResult:
        """Run the engine on a worker thread so an event loop stays responsive."""
        return await asyncio.to_thread(self.run, context)

    # -- internals ------------------------------------------------------------

    def _execute(
        self, agents: list[BaseAgent], context: Context, cycle: int
    ) -> list[AgentEffect]:
        if self._parallel and len(agents) > 1:
            with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
                futures = [pool.submit(self._execute_one, agent, context, cycle) for agent in agents]
                return [future.result() for future in futures]
        return [self._execute_one(agent, context, cycle) for agent in agents]

    @staticmethod
    def _execute_one(agent: BaseAgent, context: Context, cycle: int) -> AgentEffect:
        try:
            return agent.execute(context)
        except Exception as exc:
            raise AgentExecutionError(
                f"Agent {agent.name} failed in cycle {cycle}: {exc}",
                agent=agent.name,
                cycle=cycle,
            ) from exc

    def _merge(self, agent: BaseAgent, effect: AgentEffect, context: Context, cycle: int) -> int:
        added = 0
        for fact in effect.facts:
            try:
                is_new = context.add_fact(fact)
            except ContextError as exc:
                raise AgentExecutionError(
                    f"Agent {agent.name} proposed an invalid fact: {exc}",
                    agent=agent.name,
                    cycle=cycle,
                    details={"fact_id": exc.fact_id},
                ) from exc
            if is_new:
                added += 1
                if self._streaming is not None:
                    self._streaming.on_fact(cycle, fact)
        return added

    def _check_invariants(self, context: Context, klass: InvariantClass, cycle: int) -> None:
        for invariant in self._invariants:
            if invariant.invariant_class is not klass:
                continue
            result = invariant.check(context)
            if not result.ok:
                logger.warning(
                    "Invariant %s violated in cycle %d: %s", invariant.name, cycle, result.reason,
                )
                raise InvariantViolationError(
                    f"{klass.value} invariant '{invariant.name}' violated: {result.reason}",
                    invariant=invariant.name,
                    reason=result.reason,
                    cycle=cycle,
                )

    def _notify_cycle_start(self, cycle: int) -> None:
        if self._streaming is not None:
            self._streaming.on_cycle_start(cycle)

    def _notify_cycle_end(self, cycle: int, facts_added: int) -> None:
        if self._streaming is not None:
            self._streaming.on_cycle_end(cycle, facts_added)

    def __repr__(self) -> str:
        return (
            f"Engine(agents={len(self._agents)}, invariants={len(self._invariants)}, "
            f"max_cycles={self._max_cycles})"
        )
