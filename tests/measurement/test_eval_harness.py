"""Tests for run_eval, run_evals and the expectation checks."""

from __future__ import annotations

import pytest

from converge_app.domain.aggregates import Context
from converge_app.domain.enums import ContextKey
from converge_app.domain.exceptions import InvariantViolationError
from converge_app.domain.values import Fact
from converge_app.measurement.fixtures import EvalExpectation, EvalFixture, SeedFact
from converge_app.measurement.harness import (
    EvalCheck,
    EvalResult,
    evaluate_expectations,
    run_eval,
    run_evals,
    summarize,
)
from converge_app.services.engine import Engine, RunResult
from converge_app.testing.mock_llm import FailingLLMProvider, MockLLMProvider


def _with(fixture: EvalFixture, **expected: object) -> EvalFixture:
    return fixture.model_copy(update={"expected": EvalExpectation(**expected)})


def _checks_by_name(result: EvalResult) -> dict[str, EvalCheck]:
    return {check.name: check for check in result.checks}


# ===================================================================== #
#  Expectation checks                                                    #
# ===================================================================== #


class TestEvaluateExpectations:

    def _run(self, cycles: int = 3, converged: bool = True) -> RunResult:
        ctx = Context([
            Fact(ContextKey.SEEDS, "seed", "x"),
            Fact(ContextKey.STRATEGIES, "strategy:a", "a"),
            Fact(ContextKey.STRATEGIES, "strategy:b", "b"),
            Fact(ContextKey.EVALUATIONS, "eval:a", "Rationale: a"),
        ])
        return RunResult(context=ctx, converged=converged, cycles=cycles)

    def test_converged_and_max_cycles_pass(self) -> None:
        checks = evaluate_expectations(EvalExpectation(converged=True, max_cycles=10), self._run(), 0.0)
        assert [(c.name, c.passed) for c in checks] == [("converged", True), ("max_cycles", True)]
        assert checks[0].expected == "true"
        assert checks[1].expected == "<= 10"
        assert checks[1].actual == "3"

    def test_no_fields_no_checks(self) -> None:
        assert evaluate_expectations(EvalExpectation(), self._run(), 0.0) == []

    def test_counts(self) -> None:
        checks = evaluate_expectations(
            EvalExpectation(min_facts=5, min_strategies=2, min_evaluations=2),
            self._run(),
            0.0,
        )
        by_name = {c.name: c for c in checks}
        assert not by_name["min_facts"].passed
        assert by_name["min_facts"].expected == ">= 5"
        assert by_name["min_facts"].actual == "4"
        assert by_name["min_strategies"].passed
        assert not by_name["min_evaluations"].passed

    def test_latency(self) -> None:
        checks = evaluate_expectations(EvalExpectation(max_latency_ms=100), self._run(), 0.25)
        assert checks[0].expected == "<= 100ms"
        assert checks[0].actual == "250ms"
        assert not checks[0].passed

    def test_prefix_checks(self) -> None:
        checks = evaluate_expectations(
            EvalExpectation(must_contain_facts=["strategy:", "risk:"], must_not_contain_facts=["eval:", "insight:"]),
            self._run(),
            0.0,
        )
        assert [(c.name, c.passed, c.actual) for c in checks] == [
            ("contains:strategy:", True, "found"),
            ("contains:risk:", False, "not found"),
            ("excludes:eval:", False, "found (unexpected)"),
            ("excludes:insight:", True, "not found (good)"),
        ]
        assert checks[0].expected == "fact with prefix 'strategy:'"
        assert checks[2].expected == "no fact with prefix 'eval:'"

    def test_required_keys(self) -> None:
        checks = evaluate_expectations(
            EvalExpectation(required_context_keys=["Strategies", "Hypotheses", "Bogus"]),
            self._run(),
            0.0,
        )
        assert [(c.name, c.passed, c.actual) for c in checks] == [
            ("has_key:Strategies", True, "has facts"),
            ("has_key:Hypotheses", False, "empty"),
            ("has_key:Bogus", False, "unknown key"),
        ]
        assert checks[0].expected == "Strategies has facts"


# ===================================================================== #
#  run_eval                                                              #
# ===================================================================== #


class TestRunEval:

    def test_passing_run(self, growth_fixture: EvalFixture) -> None:
        result = run_eval(growth_fixture)
        assert result.error is None
        assert result.passed is True
        assert result.converged is True
        assert result.cycles == 5
        checks = _checks_by_name(result)
        assert set(checks) == {"converged", "max_cycles"}
        assert all(c.passed for c in checks.values())

    def test_deterministic_with_mock(self, growth_fixture: EvalFixture) -> None:
        first = run_eval(growth_fixture)
        second = run_eval(growth_fixture)
        assert (first.fact_count, first.cycles, first.converged) == (
            second.fact_count,
            second.cycles,
            second.converged,
        )
        assert first.run_id != second.run_id

    def test_failed_check_fails_result(self, growth_fixture: EvalFixture) -> None:
        result = run_eval(_with(growth_fixture, converged=True, max_cycles=2))
        checks = _checks_by_name(result)
        assert checks["converged"].passed
        assert not checks["max_cycles"].passed
        assert result.passed is False
        assert result.failed_checks == [checks["max_cycles"]]

    def test_zero_checks_passes(self, growth_fixture: EvalFixture) -> None:
        result = run_eval(_with(growth_fixture))
        assert result.checks == []
        assert result.passed is True

    def test_full_expectations(self, growth_fixture: EvalFixture) -> None:
        result = run_eval(_with(
            growth_fixture,
            min_facts=10,
            min_strategies=2,
            min_evaluations=2,
            must_contain_facts=["insight:", "risk:"],
            must_not_contain_facts=["insight:error"],
            required_context_keys=["Hypotheses", "Constraints"],
        ))
        assert result.passed, result.failed_checks

    def test_provider_failure_degrades(self, growth_fixture: EvalFixture) -> None:
        fixture = _with(growth_fixture, converged=True, must_contain_facts=["insight:error", "risk:error"])
        result = run_eval(fixture, provider=FailingLLMProvider())
        assert result.error is None
        assert result.passed

    def test_shared_provider(self, growth_fixture: EvalFixture) -> None:
        provider = MockLLMProvider.default_insights()
        run_eval(growth_fixture, provider=provider)
        assert provider.call_count == 2

    def test_unknown_pack(self, growth_fixture: EvalFixture) -> None:
        result = run_eval(growth_fixture.model_copy(update={"pack": "mystery"}))
        assert result.passed is False
        assert result.checks == []
        assert result.error is not None
        assert result.error.startswith("Failed to register agents: ")

    def test_bad_seed(self, growth_fixture: EvalFixture) -> None:
        fixture = growth_fixture.model_copy(update={
            "seeds": [SeedFact(id="dup", content="one"), SeedFact(id="dup", content="two")],
        })
        result = run_eval(fixture)
        assert result.error is not None
        assert result.error.startswith("Failed to add seed: ")
        assert result.cycles == 0
        assert result.fact_count == 0

    def test_budget_exhausted_is_not_an_error(self, growth_fixture: EvalFixture) -> None:
        result = run_eval(growth_fixture, max_cycles=2)
        assert result.error is None
        assert result.converged is False
        assert result.cycles == 2
        assert not _checks_by_name(result)["converged"].passed

    def test_engine_failure(self, growth_fixture: EvalFixture, monkeypatch: pytest.MonkeyPatch) -> None:
        def halt(self: Engine, context: Context) -> RunResult:
            raise InvariantViolationError("acceptance invariant 'X' violated: nope", invariant="X")

        monkeypatch.setattr(Engine, "run", halt)
        result = run_eval(growth_fixture)
        assert result.passed is False
        assert result.checks == []
        assert result.error == "Engine run failed: acceptance invariant 'X' violated: nope"

    def test_to_dict(self, growth_fixture: EvalFixture) -> None:
        data = run_eval(growth_fixture).to_dict()
        assert data["eval_id"] == "growth_smb"
        assert data["passed"] is True
        assert [c["name"] for c in data["checks"]] == ["converged", "max_cycles"]


class TestRunEvals:

    def test_order_preserved(self, growth_fixture: EvalFixture) -> None:
        fixtures = [growth_fixture.model_copy(update={"eval_id": name}) for name in ("c", "a", "b")]
        assert [r.eval_id for r in run_evals(fixtures)] == ["c", "a", "b"]
        assert [r.eval_id for r in run_evals(fixtures, max_workers=3)] == ["c", "a", "b"]

    def test_one_failure_does_not_stop_others(self, growth_fixture: EvalFixture) -> None:
        fixtures = [
            growth_fixture.model_copy(update={"eval_id": "bad", "pack": "mystery"}),
            growth_fixture,
        ]
        results = run_evals(fixtures)
        assert [r.passed for r in results] == [False, True]
        summary = summarize(results)
        assert (summary.total, summary.passed, summary.failed) == (2, 1, 1)
        assert not summary.all_passed
