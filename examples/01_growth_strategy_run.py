#!/usr/bin/env python3
"""Example 01: Run the growth-strategy pack to its fixed point.

Demonstrates:
- Seeding a Context
- Registering a pack's agents and invariants on an Engine
- Streaming facts as they are merged
- Inspecting the RunResult

Run:
    PYTHONPATH=src python examples/01_growth_strategy_run.py
"""

from __future__ import annotations

from converge_app.domain import Context, ContextKey, Fact
from converge_app.packs import register_pack_agents
from converge_app.presentation import StreamingHandler
from converge_app.services.engine import Engine
from converge_app.testing import MockLLMProvider


def main() -> None:
    # -- Seeds ----------------------------------------------------------------
    context = Context([
        Fact(ContextKey.SEEDS, "company", "B2B SaaS company selling workflow automation to SMBs"),
        Fact(ContextKey.SEEDS, "goal", "Double qualified pipeline within two quarters"),
    ])

    # -- Engine ---------------------------------------------------------------
    engine = Engine(max_cycles=10)
    provider = MockLLMProvider.default_insights()
    register_pack_agents(engine, "growth-strategy", provider)

    stream = StreamingHandler.human()
    engine.set_streaming(stream)

    # -- Run ------------------------------------------------------------------
    result = engine.run(context)
    stream.emit_final_status(result.converged, result.cycles)

    print()
    print(f"Provider calls: {provider.call_count}")
    for fact in result.context.get(ContextKey.CONSTRAINTS):
        print(f"  {fact.id}: {fact.content[:70]}...")


if __name__ == "__main__":
    main()
