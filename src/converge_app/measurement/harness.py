"""Eval harness: run fixtures through the engine and check the outcome.

Each run builds its own :class:`Context` and :class:`Engine`; fixtures
share nothing, so :func:`run_evals` may run them on a thread pool.  Within
a run both model-backed agents share one provider instance.

A run that cannot complete (bad seed, unknown pack, engine failure)
produces a failed :class:`EvalResult` carrying an ``error`` and no checks.
Otherwise one :class:`EvalCheck` is produced per populated expectation
field and the result passes iff every check passes.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from converge_app.domain.aggregates import Context
from converge_app.domain.enums import ContextKey
from converge_app.domain.exceptions import ContextError, ConvergeError
from converge_app.domain.values import Fact
from converge_app.infrastructure.config import ProviderConfig
from converge_app.infrastructure.llm import LLMProvider
from converge_app.infrastructure.llm.factory import create_llm_provider
from converge_app.measurement.fixtures import EvalExpectation, EvalFixture
from converge_app.packs import register_pack_agents
from converge_app.services.engine import Engine, RunResult

logger = logging.getLogger(__name__)


# ===================================================================== #
#  Results                                                               #
# ===================================================================== #


@dataclass(frozen=True)
class EvalCheck:
    """One named assertion with string renderings of both sides."""

    name: str
    passed: bool
    expected: str
    actual: str


@dataclass
class EvalResult:
    """Outcome of running one fixture.

    Attributes
    ----------
    eval_id:
        Fixture identifier.
    run_id:
        Fresh identifier for this run, for tracing.
    passed:
        ``True`` iff the run completed and every check passed.
    checks:
        Individual checks in evaluation order; empty when ``error`` is set.
    cycles, fact_count, converged:
        Run metrics (zero / ``False`` when ``error`` is set).
    duration:
        Wall-clock seconds.
    error:
        Why the run could not complete, or ``None``.
    """

    eval_id: str
    run_id: uuid.UUID
    passed: bool
    checks: list[EvalCheck] = field(default_factory=list)
    cycles: int = 0
    fact_count: int = 0
    converged: bool = False
    duration: float = 0.0
    error: str | None = None

    @classmethod
    def from_error(
        cls, eval_id: str, run_id: uuid.UUID, error: str, duration: float
    ) -> EvalResult:
        return cls(eval_id=eval_id, run_id=run_id, passed=False, duration=duration, error=error)

    @property
    def duration_ms(self) -> int:
        return int(self.duration * 1000)

    @property
    def failed_checks(self) -> list[EvalCheck]:
        return [check for check in self.checks if not check.passed]

    def to_dict(self) -> dict[str, Any]:
        return {
            "eval_id": self.eval_id,
            "run_id": str(self.run_id),
            "passed": self.passed,
            "cycles": self.cycles,
            "fact_count": self.fact_count,
            "converged": self.converged,
            "duration_ms": self.duration_ms,
            "error": self.error,
            "checks": [
                {
                    "name": check.name,
                    "passed": check.passed,
                    "expected": check.expected,
                    "actual": check.actual,
                }
                for check in self.checks
            ],
        }


@dataclass(frozen=True)
class EvalSummary:
    total: int
    passed: int
    failed: int

    @property
    def all_passed(self) -> bool:
        return self.failed == 0


# ===================================================================== #
#  Checks                                                                #
# ===================================================================== #


def _has_prefix(facts: Sequence[Fact], prefix: str) -> bool:
    return any(fact.id.startswith(prefix) for fact in facts)


def evaluate_expectations(
    expected: EvalExpectation, result: RunResult, duration: float
) -> list[EvalCheck]:
    """Produce one check per populated field of *expected*."""
    context = result.context
    all_facts = context.all_facts()
    fact_count = len(all_facts)
    strategy_count = len(context.get(ContextKey.STRATEGIES))
    evaluation_count = len(context.get(ContextKey.EVALUATIONS))
    checks: list[EvalCheck] = []

    if expected.converged is not None:
        checks.append(EvalCheck(
            name="converged",
            passed=result.converged == expected.converged,
            expected=str(expected.converged).lower(),
            actual=str(result.converged).lower(),
        ))

    if expected.max_cycles is not None:
        checks.append(EvalCheck(
            name="max_cycles",
            passed=result.cycles <= expected.max_cycles,
            expected=f"<= {expected.max_cycles}",
            actual=str(result.cycles),
        ))

    for name, minimum, actual in (
        ("min_facts", expected.min_facts, fact_count),
        ("min_strategies", expected.min_strategies, strategy_count),
        ("min_evaluations", expected.min_evaluations, evaluation_count),
    ):
        if minimum is not None:
            checks.append(EvalCheck(
                name=name,
                passed=actual >= minimum,
                expected=f">= {minimum}",
                actual=str(actual),
            ))

    if expected.max_latency_ms is not None:
        actual_ms = int(duration * 1000)
        checks.append(EvalCheck(
            name="max_latency_ms",
            passed=actual_ms <= expected.max_latency_ms,
            expected=f"<= {expected.max_latency_ms}ms",
            actual=f"{actual_ms}ms",
        ))

    for prefix in expected.must_contain_facts:
        found = _has_prefix(all_facts, prefix)
        checks.append(EvalCheck(
            name=f"contains:{prefix}",
            passed=found,
            expected=f"fact with prefix '{prefix}'",
            actual="found" if found else "not found",
        ))

    for prefix in expected.must_not_contain_facts:
        found = _has_prefix(all_facts, prefix)
        checks.append(EvalCheck(
            name=f"excludes:{prefix}",
            passed=not found,
            expected=f"no fact with prefix '{prefix}'",
            actual="found (unexpected)" if found else "not found (good)",
        ))

    for key_name in expected.required_context_keys:
        try:
            key = ContextKey.from_name(key_name)
        except ValueError:
            checks.append(EvalCheck(
                name=f"has_key:{key_name}",
                passed=False,
                expected=f"{key_name} has facts",
                actual="unknown key",
            ))
            continue
        has_facts = context.has(key)
        checks.append(EvalCheck(
            name=f"has_key:{key_name}",
            passed=has_facts,
            expected=f"{key_name} has facts",
            actual="has facts" if has_facts else "empty",
        ))

    return checks


# ===================================================================== #
#  Runners                                                               #
# ===================================================================== #


def run_eval(
    fixture: EvalFixture,
    provider: LLMProvider | None = None,
    max_cycles: int = 50,
    provider_config: ProviderConfig | None = None,
) -> EvalResult:
    """Run one fixture end to end and check its expectations.

    Parameters
    ----------
    fixture:
        The scenario to run.
    provider:
        Provider shared by the model-backed agents.  When ``None`` one is
        chosen from ``fixture.use_mock_llm``: the deterministic stand-in,
        or the best live provider available from the environment.
    max_cycles:
        Engine cycle budget.
    provider_config:
        Preferences used when selecting a live provider.
    """
    run_id = uuid.uuid4()
    start = time.perf_counter()
    logger.info(
        "Starting eval run %s (run_id=%s, pack=%s)", fixture.eval_id, run_id, fixture.pack,
    )

    def failed(message: str) -> EvalResult:
        logger.warning("Eval %s failed to run: %s", fixture.eval_id, message)
        return EvalResult.from_error(fixture.eval_id, run_id, message, time.perf_counter() - start)

    context = Context()
    for seed in fixture.seeds:
        try:
            context.add_fact(Fact(key=ContextKey.SEEDS, id=seed.id, content=seed.content))
        except ContextError as exc:
            return failed(f"Failed to add seed: {exc}")

    engine = Engine(max_cycles=max_cycles)
    if provider is None:
        provider = create_llm_provider(fixture.use_mock_llm, provider_config)
    try:
        register_pack_agents(engine, fixture.pack, provider)
    except ConvergeError as exc:
        return failed(f"Failed to register agents: {exc}")

    try:
        result = engine.run(context)
    except ConvergeError as exc:
        return failed(f"Engine run failed: {exc}")
    except Exception as exc:
        logger.exception("Eval %s: unexpected engine error", fixture.eval_id)
        return failed(f"Engine run failed: {exc}")

    duration = time.perf_counter() - start
    checks = evaluate_expectations(fixture.expected, result, duration)
    passed = all(check.passed for check in checks)
    fact_count = result.context.fact_count

    logger.info(
        "Eval run completed %s (run_id=%s): passed=%s cycles=%d facts=%d duration_ms=%d",
        fixture.eval_id,
        run_id,
        passed,
        result.cycles,
        fact_count,
        int(duration * 1000),
    )

    return EvalResult(
        eval_id=fixture.eval_id,
        run_id=run_id,
        passed=passed,
        checks=checks,
        cycles=result.cycles,
        fact_count=fact_count,
        converged=result.converged,
        duration=duration,
    )


def run_evals(
    fixtures: Sequence[EvalFixture],
    max_workers: int | None = None,
    provider_config: ProviderConfig | None = None,
) -> list[EvalResult]:
    """Run every fixture; results follow the order of *fixtures*.

    Runs sequentially unless ``max_workers`` is greater than one.
    """
    if max_workers is not None and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return list(pool.map(lambda f: run_eval(f, provider_config=provider_config), fixtures))
    return [run_eval(fixture, provider_config=provider_config) for fixture in fixtures]


def summarize(results: Sequence[EvalResult]) -> EvalSummary:
    passed = sum(1 for result in results if result.passed)
    return EvalSummary(total=len(results), passed=passed, failed=len(results) - passed)
