#!/usr/bin/env python3
"""Example 02: Verify pack behaviour with eval fixtures.

Demonstrates:
- Building an EvalFixture in code
- Running it with run_eval and a failing provider
- Printing the report with ConsoleDashboard

Run:
    PYTHONPATH=src python examples/02_eval_harness.py
"""

from __future__ import annotations

from converge_app.measurement import EvalExpectation, EvalFixture, SeedFact, run_eval
from converge_app.presentation import ConsoleDashboard
from converge_app.testing import FailingLLMProvider


def main() -> None:
    fixture = EvalFixture(
        eval_id="degraded_provider",
        description="Model provider is down; agents should degrade, not fail",
        pack="growth-strategy",
        seeds=[SeedFact(id="company", content="Regional logistics startup")],
        expected=EvalExpectation(
            converged=True,
            max_cycles=10,
            must_contain_facts=["insight:error", "risk:error"],
            must_not_contain_facts=["insight:1"],
        ),
        use_mock_llm=True,
    )

    healthy = run_eval(fixture.model_copy(update={"eval_id": "healthy_provider"}))
    degraded = run_eval(fixture, provider=FailingLLMProvider("connection refused"))

    ConsoleDashboard().print_eval_results([healthy, degraded])


if __name__ == "__main__":
    main()
