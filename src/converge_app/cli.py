"""Command-line interface for the converge application.

Entry point
-----------
The ``main()`` function is registered as a console script in
``pyproject.toml``::

    [project.scripts]
    converge = "converge_app.cli:main"

Usage examples::

    converge run --template growth-strategy --seeds '[{"id": "company", "content": "B2B SaaS"}]'
    converge run --template growth-strategy --seeds @seeds.json --mock --json
    converge eval run --dir evals --mock
    converge eval list
    converge packs list
    converge packs info growth-strategy

Exit codes for ``run --quiet``: 0 converged, 2 cycle budget exhausted,
1 halted by an invariant, 3 any other failure.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from converge_app.domain import Context, ContextKey, Fact
from converge_app.domain.exceptions import ConvergeError, InvariantViolationError
from converge_app.infrastructure.config import AppConfig, load_config
from converge_app.infrastructure.llm.factory import create_llm_provider
from converge_app.measurement import load_fixtures_from_dir, run_evals, summarize
from converge_app.measurement.fixtures import SeedFact
from converge_app.packs import available_packs, find_template, pack_info, register_pack_agents
from converge_app.presentation import (
    ConsoleDashboard,
    OutputFormat,
    StreamingHandler,
    build_run_output,
    new_correlation_id,
    new_run_id,
)
from converge_app.services.engine import Engine

logger = logging.getLogger(__name__)

EXIT_CONVERGED = 0
EXIT_INVARIANT = 1
EXIT_BUDGET = 2
EXIT_ERROR = 3

_SEEDS_ADAPTER = TypeAdapter(list[SeedFact])


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="converge",
        description="Converge -- run domain packs to a fixed point and verify them with eval fixtures.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        default=False,
        help="Show version and exit.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a JSON configuration file.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level. (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available subcommands")

    # -- run ---------------------------------------------------------------
    run_parser = subparsers.add_parser(
        "run",
        help="Run a template to its fixed point.",
        description="Seed a context and run the agents of a template until convergence.",
    )
    run_parser.add_argument(
        "--template",
        type=str,
        default="growth-strategy",
        help="Template to run. (default: growth-strategy)",
    )
    run_parser.add_argument(
        "--seeds",
        type=str,
        default=None,
        help="Seed facts as a JSON list of {id, content}, or @path to read them from a file.",
    )
    run_parser.add_argument(
        "--max-cycles",
        type=int,
        default=None,
        help="Cycle budget.  Defaults to the configured engine budget.",
    )
    run_parser.add_argument("--run-id", type=str, default=None, help="Run identifier.")
    run_parser.add_argument("--correlation-id", type=str, default=None, help="Correlation identifier.")
    run_parser.add_argument(
        "--mock",
        action="store_true",
        default=False,
        help="Use the deterministic stand-in provider instead of a live model.",
    )
    run_parser.add_argument("--json", action="store_true", default=False, help="Emit JSON output.")
    run_parser.add_argument(
        "--stream",
        action="store_true",
        default=False,
        help="Stream facts as they are produced.",
    )
    run_parser.add_argument(
        "--quiet",
        action="store_true",
        default=False,
        help="No output; report the outcome through the exit code only.",
    )

    # -- eval --------------------------------------------------------------
    eval_parser = subparsers.add_parser("eval", help="Run or list eval fixtures.")
    eval_sub = eval_parser.add_subparsers(dest="eval_command")

    eval_run = eval_sub.add_parser("run", help="Run eval fixtures.")
    eval_run.add_argument("eval_id", nargs="?", default=None, help="Run only this fixture.")
    eval_run.add_argument("--dir", type=str, default="evals", help="Fixture directory. (default: evals)")
    eval_run.add_argument(
        "--mock",
        action="store_true",
        default=False,
        help="Force the deterministic stand-in provider for every fixture.",
    )
    eval_run.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Run fixtures on this many worker threads.",
    )

    eval_list = eval_sub.add_parser("list", help="List eval fixtures.")
    eval_list.add_argument("--dir", type=str, default="evals", help="Fixture directory. (default: evals)")

    # -- packs -------------------------------------------------------------
    packs_parser = subparsers.add_parser("packs", help="Inspect domain packs.")
    packs_sub = packs_parser.add_subparsers(dest="packs_command")
    packs_sub.add_parser("list", help="List available domain packs.")
    packs_info = packs_sub.add_parser("info", help="Show details of a pack.")
    packs_info.add_argument("name", type=str, help="Pack name.")

    return parser


# =========================================================================
# Helpers
# =========================================================================

def _read_seeds(raw: str | None) -> list[SeedFact]:
    if raw is None:
        return []
    if raw.startswith("@"):
        path = Path(raw[1:])
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ValueError(f"Failed to read seed file '{path}': {exc}") from exc
    try:
        return _SEEDS_ADAPTER.validate_json(raw)
    except ValidationError as exc:
        raise ValueError(f"Failed to parse seeds JSON: {exc}") from exc


# =========================================================================
# Subcommand handlers
# =========================================================================

def _cmd_run(args: argparse.Namespace, config: AppConfig) -> int:
    """Execute the ``run`` subcommand."""
    run_id = args.run_id or new_run_id()
    correlation_id = args.correlation_id or new_correlation_id()
    announce = not (args.json or args.stream or args.quiet)

    if announce:
        logger.info(
            "Running job from CLI (template=%s, run_id=%s, correlation_id=%s)",
            args.template,
            run_id,
            correlation_id,
        )

    pack = find_template(args.template, available_packs(config))
    if pack is None:
        raise ValueError(f"Template '{args.template}' not found in any enabled pack")

    context = Context()
    for seed in _read_seeds(args.seeds):
        context.add_fact(Fact(key=ContextKey.SEEDS, id=seed.id, content=seed.content))
    if announce:
        logger.info("Context initialized with %d seed fact(s)", context.fact_count)

    engine = Engine(
        max_cycles=args.max_cycles or config.engine.max_cycles,
        parallel=config.engine.parallel,
        max_workers=config.engine.max_workers,
    )
    register_pack_agents(engine, pack, create_llm_provider(args.mock, config.providers))

    handler: StreamingHandler | None = None
    if args.stream:
        handler = StreamingHandler(OutputFormat.JSON if args.json else OutputFormat.HUMAN)
        engine.set_streaming(handler)

    if args.quiet:
        try:
            result = engine.run(context)
        except InvariantViolationError:
            return EXIT_INVARIANT
        except Exception:
            return EXIT_ERROR
        return EXIT_CONVERGED if result.converged else EXIT_BUDGET

    result = engine.run(context)

    if not args.stream:
        if result.converged:
            logger.info("Job reached fixed point after %d cycle(s)", result.cycles)
        else:
            logger.warning(
                "Job halted without reaching fixed point after %d cycle(s) (budget exhausted)",
                result.cycles,
            )

    if handler is not None:
        handler.emit_final_status(result.converged, result.cycles)
    elif args.json:
        print(json.dumps(build_run_output(result, run_id, correlation_id), indent=2))
    else:
        ConsoleDashboard().print_run_result(result, run_id, correlation_id)
    return 0


def _cmd_eval(args: argparse.Namespace, config: AppConfig) -> int:
    """Execute the ``eval run`` / ``eval list`` subcommands."""
    dashboard = ConsoleDashboard()
    fixtures = load_fixtures_from_dir(args.dir)

    if args.eval_command == "list":
        if not fixtures:
            print(f"No eval fixtures found in '{args.dir}'")
            return 0
        dashboard.print_fixtures(fixtures)
        return 0

    if args.eval_command != "run":
        print("Usage: converge eval {run,list}", file=sys.stderr)
        return 1

    if not fixtures:
        print(f"No eval fixtures found in '{args.dir}'")
        print("Create JSON fixture files in the evals/ directory.")
        return 0

    if args.eval_id is not None:
        fixtures = [fixture for fixture in fixtures if fixture.eval_id == args.eval_id]
        if not fixtures:
            print(f"Eval '{args.eval_id}' not found in '{args.dir}'")
            return 0

    if args.mock:
        fixtures = [fixture.model_copy(update={"use_mock_llm": True}) for fixture in fixtures]

    logger.info("Running %d eval fixture(s)", len(fixtures))
    results = run_evals(fixtures, max_workers=args.workers, provider_config=config.providers)
    dashboard.print_eval_results(results)
    return 0 if summarize(results).all_passed else 1


def _cmd_packs(args: argparse.Namespace, config: AppConfig) -> int:
    """Execute the ``packs list`` / ``packs info`` subcommands."""
    dashboard = ConsoleDashboard()
    if args.packs_command == "info":
        dashboard.print_pack_info(pack_info(args.name))
        return 0
    if args.packs_command == "list":
        dashboard.print_packs([pack_info(name) for name in available_packs()])
        return 0
    print("Usage: converge packs {list,info}", file=sys.stderr)
    return 1


# =========================================================================
# Main entry point
# =========================================================================

def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  Defaults to ``sys.argv[1:]``.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from converge_app import __version__
        print(f"converge {__version__}")
        sys.exit(0)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    quiet = args.command == "run" and args.quiet
    logging.basicConfig(
        level=logging.WARNING if quiet else getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    handlers: dict[str, Any] = {
        "run": _cmd_run,
        "eval": _cmd_eval,
        "packs": _cmd_packs,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        config = load_config(args.config)
        exit_code = handler(args, config)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        exit_code = 130
    except (ConvergeError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = EXIT_INVARIANT if isinstance(exc, InvariantViolationError) else EXIT_ERROR
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
