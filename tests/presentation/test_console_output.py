"""Tests for the rich console dashboard."""

from __future__ import annotations

import io
import uuid

from converge_app.domain.aggregates import Context
from converge_app.domain.enums import ContextKey
from converge_app.domain.values import Fact
from converge_app.measurement.harness import EvalCheck, EvalResult
from converge_app.packs import pack_info
from converge_app.presentation.console import ConsoleDashboard
from converge_app.services.engine import RunResult


def _dashboard() -> tuple[ConsoleDashboard, io.StringIO]:
    buf = io.StringIO()
    return ConsoleDashboard(file=buf, width=200), buf


class TestEvalReport:

    def test_lines(self) -> None:
        dashboard, buf = _dashboard()
        results = [
            EvalResult(
                eval_id="ok_case",
                run_id=uuid.uuid4(),
                passed=True,
                checks=[EvalCheck("converged", True, "true", "true")],
                cycles=5,
                fact_count=17,
                converged=True,
                duration=0.012,
            ),
            EvalResult(
                eval_id="bad_case",
                run_id=uuid.uuid4(),
                passed=False,
                checks=[
                    EvalCheck("converged", True, "true", "true"),
                    EvalCheck("max_cycles", False, "<= 2", "5"),
                ],
                cycles=5,
                fact_count=17,
                converged=True,
                duration=0.003,
            ),
            EvalResult.from_error("broken", uuid.uuid4(), "Failed to register agents: Unknown pack: x", 0.0),
        ]
        dashboard.print_eval_results(results)
        out = buf.getvalue()
        assert "=== Eval Results ===" in out
        assert "[PASS] ok_case (12ms, 5 cycles, 17 facts)" in out
        assert "[FAIL] bad_case (3ms, 5 cycles, 17 facts)" in out
        assert "      FAIL: max_cycles - expected <= 2, got 5" in out
        assert "FAIL: converged" not in out
        assert "      Error: Failed to register agents: Unknown pack: x" in out
        assert "Total: 3 | Passed: 1 | Failed: 2" in out


class TestRunResult:

    def test_summary_and_facts(self) -> None:
        dashboard, buf = _dashboard()
        ctx = Context([
            Fact(ContextKey.SEEDS, "company", "Acme [beta]"),
            Fact(ContextKey.HYPOTHESES, "insight:1", "Lean into LinkedIn"),
        ])
        dashboard.print_run_result(RunResult(ctx, converged=True, cycles=3), "run_1", "cor_1")
        out = buf.getvalue()
        assert "=== Convergence Result ===" in out
        assert "Run ID: run_1" in out
        assert "Correlation ID: cor_1" in out
        assert "Converged: true" in out
        assert "Total Cycles: 3" in out
        assert "Total Facts: 2" in out
        assert "Acme [beta]" in out
        assert "insight:1" in out
        assert "Signals" not in out


class TestPacks:

    def test_list(self) -> None:
        dashboard, buf = _dashboard()
        dashboard.print_packs([pack_info("growth-strategy")])
        out = buf.getvalue()
        assert "Available domain packs:" in out
        assert "growth-strategy - Multi-agent growth strategy analysis" in out

    def test_info(self) -> None:
        dashboard, buf = _dashboard()
        dashboard.print_pack_info(pack_info("growth-strategy"))
        out = buf.getvalue()
        assert "Pack: growth-strategy" in out
        assert "Version: 1.0.0" in out
        assert "  - BrandSafetyInvariant" in out
