"""Tests for the growth-strategy pack: deterministic agents, invariants, full run."""

from __future__ import annotations

import pytest

from converge_app.domain.aggregates import Context
from converge_app.domain.enums import ContextKey, InvariantClass
from converge_app.domain.exceptions import InvariantViolationError
from converge_app.domain.values import AgentEffect, Fact
from converge_app.packs import register_pack_agents
from converge_app.packs.growth_strategy import (
    BrandSafetyInvariant,
    CompetitorAgent,
    EvaluationAgent,
    MarketSignalAgent,
    RequireEvaluationRationale,
    RequireMultipleStrategies,
    RequireStrategyEvaluations,
    StrategyAgent,
)
from converge_app.services.engine import Engine
from converge_app.testing.mock_llm import FailingLLMProvider, MockLLMProvider


class TestDeterministicAgents:

    def test_market_signals_include_seeds(self, seeded_context: Context) -> None:
        agent = MarketSignalAgent()
        assert agent.accepts(seeded_context)
        ids = [f.id for f in agent.execute(seeded_context).facts]
        assert "signal:linkedin-b2b" in ids
        assert "signal:seed:company" in ids
        assert "signal:seed:goal" in ids

    def test_market_signals_without_seeds(self) -> None:
        agent = MarketSignalAgent()
        assert agent.accepts(Context())
        assert len(agent.execute(Context()).facts) == 2

    def test_competitor_default_landscape(self, seeded_context: Context) -> None:
        facts = CompetitorAgent().execute(seeded_context).facts
        assert [f.id for f in facts] == ["competitor:landscape"]

    def test_competitor_from_seeds(self) -> None:
        ctx = Context([Fact(ContextKey.SEEDS, "rival", "Main competitor cut prices")])
        facts = CompetitorAgent().execute(ctx).facts
        assert [f.id for f in facts] == ["competitor:rival"]

    def test_seed_ids_differing_only_in_case_or_punctuation(self) -> None:
        ctx = Context([
            Fact(ContextKey.SEEDS, "company", "Competitor A leads on price"),
            Fact(ContextKey.SEEDS, "Company", "Competitor B leads on reach"),
            Fact(ContextKey.SEEDS, "a b", "Series A funded"),
            Fact(ContextKey.SEEDS, "a-b", "Team of twelve"),
        ])
        signal_ids = [f.id for f in MarketSignalAgent().execute(ctx).facts]
        competitor_ids = [f.id for f in CompetitorAgent().execute(ctx).facts]
        assert len(set(signal_ids)) == len(signal_ids) == 6
        assert competitor_ids == ["competitor:company", "competitor:Company"]

    def test_strategy_requires_signals_and_competitors(self, seeded_context: Context) -> None:
        agent = StrategyAgent()
        assert not agent.dependencies_met(seeded_context)
        seeded_context.add_fact(Fact(ContextKey.SIGNALS, "signal:x", "LinkedIn is strong"))
        seeded_context.add_fact(Fact(ContextKey.COMPETITORS, "competitor:y", "Landscape unclear"))
        assert agent.dependencies_met(seeded_context)
        facts = agent.execute(seeded_context).facts
        assert len(facts) >= 2
        assert all(f.id.startswith("strategy:") for f in facts)

    def test_evaluation_per_strategy(self) -> None:
        ctx = Context([
            Fact(ContextKey.SIGNALS, "signal:a", "LinkedIn shows strong engagement"),
            Fact(ContextKey.STRATEGIES, "strategy:linkedin-b2b-campaign", "LinkedIn campaign"),
            Fact(ContextKey.STRATEGIES, "strategy:thought-leadership", "Publish content"),
        ])
        facts = EvaluationAgent().execute(ctx).facts
        assert [f.id for f in facts] == ["eval:linkedin-b2b-campaign", "eval:thought-leadership"]
        assert facts[0].content == "Score: 75/100 | Rationale: supported by 1 market signal(s)"
        assert facts[1].content == "Score: 60/100 | Rationale: no direct market signal support"


class TestInvariants:

    def test_brand_safety(self) -> None:
        invariant = BrandSafetyInvariant(forbidden_terms=["Spam"])
        assert invariant.invariant_class is InvariantClass.STRUCTURAL
        ok = Context([Fact(ContextKey.STRATEGIES, "strategy:a", "Helpful webinars")])
        bad = Context([Fact(ContextKey.STRATEGIES, "strategy:b", "SPAM every inbox")])
        assert invariant.check(ok).ok
        result = invariant.check(bad)
        assert not result.ok
        assert "strategy:b" in result.reason

    def test_rationale_required(self) -> None:
        invariant = RequireEvaluationRationale()
        assert invariant.invariant_class is InvariantClass.SEMANTIC
        ctx = Context([Fact(ContextKey.EVALUATIONS, "eval:a", "Score: 10/100")])
        assert not invariant.check(ctx).ok

    def test_multiple_strategies(self) -> None:
        invariant = RequireMultipleStrategies()
        ctx = Context([Fact(ContextKey.STRATEGIES, "strategy:a", "one")])
        assert not invariant.check(ctx).ok
        ctx.add_fact(Fact(ContextKey.STRATEGIES, "strategy:b", "two"))
        assert invariant.check(ctx).ok

    def test_strategy_evaluations(self) -> None:
        invariant = RequireStrategyEvaluations()
        ctx = Context([
            Fact(ContextKey.STRATEGIES, "strategy:a", "one"),
            Fact(ContextKey.STRATEGIES, "strategy:b", "two"),
            Fact(ContextKey.EVALUATIONS, "eval:a", "Rationale: x"),
        ])
        result = invariant.check(ctx)
        assert not result.ok
        assert "strategy:b" in result.reason


class TestGrowthPackRun:

    @pytest.fixture
    def engine(self, mock_provider: MockLLMProvider) -> Engine:
        engine = Engine(max_cycles=10)
        register_pack_agents(engine, "growth-strategy", mock_provider)
        return engine

    def test_registration(self, engine: Engine) -> None:
        assert [a.name for a in engine.agents] == [
            "MarketSignalAgent",
            "CompetitorAgent",
            "StrategyAgent",
            "EvaluationAgent",
            "StrategicInsightAgent",
            "RiskAssessmentAgent",
        ]
        assert len(engine.invariants) == 4

    def test_full_run_with_mock(
        self, engine: Engine, seeded_context: Context, mock_provider: MockLLMProvider
    ) -> None:
        result = engine.run(seeded_context)
        assert result.converged is True
        assert result.cycles == 5
        ctx = result.context
        for key in ContextKey:
            assert ctx.has(key), key
        assert [f.id for f in ctx.get(ContextKey.HYPOTHESES)] == ["insight:1", "insight:2", "insight:3"]
        assert [f.id for f in ctx.get(ContextKey.CONSTRAINTS)] == ["risk:1", "risk:2", "risk:3"]
        # both model-backed agents share the one provider
        assert mock_provider.call_count == 2

    def test_run_with_case_variant_seed_ids(self, engine: Engine) -> None:
        ctx = Context([
            Fact(ContextKey.SEEDS, "company", "B2B SaaS company"),
            Fact(ContextKey.SEEDS, "Company", "Competitor undercuts on price"),
        ])
        result = engine.run(ctx)
        assert result.converged is True
        signal_ids = {f.id for f in result.context.get(ContextKey.SIGNALS)}
        assert {"signal:seed:company", "signal:seed:Company"} <= signal_ids

    def test_run_with_failing_provider_degrades(self, seeded_context: Context) -> None:
        engine = Engine(max_cycles=10)
        provider = FailingLLMProvider()
        register_pack_agents(engine, "growth-strategy", provider)
        result = engine.run(seeded_context)
        assert result.converged is True
        assert [f.id for f in result.context.get(ContextKey.HYPOTHESES)] == ["insight:error"]
        assert [f.id for f in result.context.get(ContextKey.CONSTRAINTS)] == ["risk:error"]
        assert provider.call_count == 2

    def test_parallel_run_with_failing_provider(self, seeded_context: Context) -> None:
        engine = Engine(max_cycles=10, parallel=True, max_workers=4)
        provider = FailingLLMProvider()
        register_pack_agents(engine, "growth-strategy", provider)
        result = engine.run(seeded_context)
        assert result.converged is True
        assert provider.call_count == 2

    def test_brand_safety_halts_run(self, mock_provider: MockLLMProvider) -> None:
        engine = Engine(max_cycles=10)
        register_pack_agents(engine, "growth-strategy", mock_provider)
        engine.register(_SpamStrategyAgent())
        with pytest.raises(InvariantViolationError) as excinfo:
            engine.run(Context())
        assert excinfo.value.invariant == "BrandSafetyInvariant"


class _SpamStrategyAgent(StrategyAgent):
    agent_name = "SpamStrategyAgent"
    required_keys = frozenset()

    def accepts(self, context: Context) -> bool:
        return not any(f.id == "strategy:blast" for f in context.get(ContextKey.STRATEGIES))

    def execute(self, context: Context) -> AgentEffect:
        return AgentEffect.with_facts([self._fact("strategy:blast", "Spam every inbox we can buy")])
