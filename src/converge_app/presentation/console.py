"""Rich-based console rendering for runs, evals and packs.

:class:`ConsoleDashboard` writes through a :class:`rich.console.Console`.
Report lines are built as :class:`rich.text.Text` so fact content and ids
are never interpreted as markup.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text

from converge_app.domain.enums import ContextKey
from converge_app.measurement.fixtures import EvalFixture
from converge_app.measurement.harness import EvalResult, summarize
from converge_app.packs.catalog import PackInfo
from converge_app.services.engine import RunResult


class ConsoleDashboard:
    """Console presentation layer.

    Parameters
    ----------
    file:
        Output stream.  Defaults to ``sys.stdout``.
    width:
        Fixed console width; ``None`` lets rich detect it.
    """

    def __init__(self, file: Any = None, width: int | None = None) -> None:
        self._file = file or sys.stdout
        self._console = Console(file=self._file, width=width, highlight=False)

    @property
    def console(self) -> Console:
        return self._console

    def _line(self, *parts: str | tuple[str, str]) -> None:
        self._console.print(Text.assemble(*parts), soft_wrap=True)

    # -- evals ---------------------------------------------------------------

    def print_eval_results(self, results: Sequence[EvalResult]) -> None:
        """One line per fixture, its failing checks, then the totals."""
        self._console.print()
        self._line(("=== Eval Results ===", "bold"))
        self._console.print()

        for result in results:
            status = ("[PASS]", "green") if result.passed else ("[FAIL]", "red")
            self._line(
                status,
                f" {result.eval_id} ({result.duration_ms}ms, "
                f"{result.cycles} cycles, {result.fact_count} facts)",
            )
            if result.error is not None:
                self._line(("      Error: ", "red"), result.error)
            for check in result.failed_checks:
                self._line(
                    ("      FAIL: ", "red"),
                    f"{check.name} - expected {check.expected}, got {check.actual}",
                )

        summary = summarize(results)
        self._console.print()
        self._line(
            f"Total: {summary.total} | ",
            (f"Passed: {summary.passed}", "green"),
            " | ",
            (f"Failed: {summary.failed}", "red" if summary.failed else "green"),
        )

    def print_fixtures(self, fixtures: Sequence[EvalFixture]) -> None:
        self._console.print()
        self._line(("Available eval fixtures:", "bold"))
        self._console.print()
        for fixture in fixtures:
            self._line(("  " + fixture.eval_id, "bold"), f" - {fixture.description}")
            self._line(f"    Pack: {fixture.pack}")
            self._line(f"    Seeds: {len(fixture.seeds)}")
            self._line(f"    Mock LLM: {str(fixture.use_mock_llm).lower()}")
            self._console.print()

    # -- runs ----------------------------------------------------------------

    def print_run_result(self, result: RunResult, run_id: str, correlation_id: str) -> None:
        """Summary header followed by one table of facts per populated key."""
        context = result.context
        self._console.print()
        self._line(("=== Convergence Result ===", "bold"))
        self._line(f"Run ID: {run_id}")
        self._line(f"Correlation ID: {correlation_id}")
        self._line(
            "Converged: ",
            ("true", "green") if result.converged else ("false", "yellow"),
        )
        self._line(f"Total Cycles: {result.cycles}")
        self._line(f"Total Facts: {context.fact_count}")
        self._console.print()

        for key in ContextKey:
            facts = context.get(key)
            if not facts:
                continue
            table = Table(title=key.value, show_header=True, header_style="bold cyan", title_justify="left")
            table.add_column("Id", style="bold", no_wrap=True)
            table.add_column("Content")
            for fact in facts:
                table.add_row(Text(fact.id), Text(fact.content))
            self._console.print(table)
            self._console.print()

    # -- packs ---------------------------------------------------------------

    def print_packs(self, infos: Sequence[PackInfo]) -> None:
        self._line(("Available domain packs:", "bold"))
        self._console.print()
        for info in infos:
            self._line(("  " + info.name, "bold"), f" - {info.description}")

    def print_pack_info(self, info: PackInfo) -> None:
        self._line(f"Pack: {info.name}")
        self._line(f"Description: {info.description}")
        self._line(f"Version: {info.version}")
        self._console.print()
        self._line(("Templates:", "bold"))
        for template in info.templates:
            self._line(f"  - {template}")
        self._console.print()
        self._line(("Invariants:", "bold"))
        for invariant in info.invariants:
            self._line(f"  - {invariant}")
