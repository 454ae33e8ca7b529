"""Eval fixtures and the harness that runs them."""

from converge_app.measurement.fixtures import (
    EvalExpectation,
    EvalFixture,
    SeedFact,
    load_fixture,
    load_fixtures_from_dir,
)
from converge_app.measurement.harness import (
    EvalCheck,
    EvalResult,
    EvalSummary,
    evaluate_expectations,
    run_eval,
    run_evals,
    summarize,
)

__all__ = [
    "EvalCheck",
    "EvalExpectation",
    "EvalFixture",
    "EvalResult",
    "EvalSummary",
    "SeedFact",
    "evaluate_expectations",
    "load_fixture",
    "load_fixtures_from_dir",
    "run_eval",
    "run_evals",
    "summarize",
]
