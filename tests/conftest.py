"""Shared fixtures for the converge test suite."""

from __future__ import annotations

import pytest

from converge_app.domain.aggregates import Context
from converge_app.domain.enums import ContextKey
from converge_app.domain.values import Fact
from converge_app.measurement.fixtures import EvalExpectation, EvalFixture, SeedFact
from converge_app.testing.mock_llm import MockLLMProvider

# ---------------------------------------------------------------------------
# Context fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def seed_facts() -> list[Fact]:
    return [
        Fact(ContextKey.SEEDS, "company", "B2B SaaS company selling workflow automation to SMBs"),
        Fact(ContextKey.SEEDS, "goal", "Double qualified pipeline within two quarters"),
    ]


@pytest.fixture
def seeded_context(seed_facts: list[Fact]) -> Context:
    return Context(seed_facts)


@pytest.fixture
def evaluated_context(seeded_context: Context) -> Context:
    """Context populated up to and including evaluations."""
    ctx = seeded_context
    ctx.add_fact(Fact(ContextKey.SIGNALS, "signal:linkedin", "LinkedIn works for B2B"))
    ctx.add_fact(Fact(ContextKey.COMPETITORS, "competitor:acme", "Acme undercuts on price"))
    ctx.add_fact(Fact(ContextKey.STRATEGIES, "strategy:linkedin", "Run a LinkedIn campaign"))
    ctx.add_fact(Fact(ContextKey.STRATEGIES, "strategy:demo", "Ship a self-service demo"))
    ctx.add_fact(Fact(ContextKey.EVALUATIONS, "eval:linkedin", "Score: 80/100 | Rationale: strong fit"))
    return ctx


# ---------------------------------------------------------------------------
# Provider fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_provider() -> MockLLMProvider:
    return MockLLMProvider.default_insights()


# ---------------------------------------------------------------------------
# Fixture-document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def growth_fixture() -> EvalFixture:
    return EvalFixture(
        eval_id="growth_smb",
        description="SMB growth scenario",
        pack="growth-strategy",
        seeds=[
            SeedFact(id="company", content="B2B SaaS company selling workflow automation to SMBs"),
        ],
        expected=EvalExpectation(converged=True, max_cycles=10),
        use_mock_llm=True,
    )
