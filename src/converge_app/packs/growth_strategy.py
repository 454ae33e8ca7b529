"""Growth-strategy domain pack.

Four deterministic agents build the analysis stage by stage:

* ``MarketSignalAgent``  -- Seeds (optional) -> Signals
* ``CompetitorAgent``    -- Seeds (optional) -> Competitors
* ``StrategyAgent``      -- Signals + Competitors -> Strategies
* ``EvaluationAgent``    -- Strategies -> Evaluations

The model-backed :class:`StrategicInsightAgent` and
:class:`RiskAssessmentAgent` then synthesize hypotheses and constraints
from the evaluated strategies.  Four invariants guard the run.
"""

from __future__ import annotations

from collections.abc import Iterable

from converge_app.agents.base import BaseAgent
from converge_app.domain.aggregates import Context
from converge_app.domain.enums import ContextKey, InvariantClass
from converge_app.domain.values import AgentEffect, Fact
from converge_app.services.engine import Invariant, InvariantResult


def _mentions(facts: Iterable[Fact], *terms: str) -> bool:
    lowered = [fact.content.lower() for fact in facts]
    return any(term in content for content in lowered for term in terms)


# ===================================================================== #
#  Agents                                                                #
# ===================================================================== #


class _StageAgent(BaseAgent):
    """Deterministic agent that fills one key exactly once."""

    agent_name = ""
    required_keys: frozenset[ContextKey] = frozenset()
    output_key: ContextKey

    @property
    def name(self) -> str:
        return self.agent_name

    @property
    def dependencies(self) -> frozenset[ContextKey]:
        return self.required_keys

    def accepts(self, context: Context) -> bool:
        return self.dependencies_met(context) and not context.has(self.output_key)

    def _fact(self, fact_id: str, content: str) -> Fact:
        return Fact(key=self.output_key, id=fact_id, content=content)


class MarketSignalAgent(_StageAgent):
    """Emits baseline channel signals plus one signal per seed."""

    agent_name = "MarketSignalAgent"
    output_key = ContextKey.SIGNALS

    BASELINE = (
        ("linkedin-b2b", "LinkedIn shows the strongest engagement for B2B decision makers among paid channels"),
        ("self-service", "Buyers increasingly prefer self-service product evaluation before talking to sales"),
    )

    def execute(self, context: Context) -> AgentEffect:
        facts = [self._fact(f"signal:{slug}", content) for slug, content in self.BASELINE]
        for seed in context.get(ContextKey.SEEDS):
            facts.append(self._fact(f"signal:seed:{seed.id}", f"Company context: {seed.content}"))
        return AgentEffect.with_facts(facts)


class CompetitorAgent(_StageAgent):
    """Summarizes the competitive landscape implied by the seeds."""

    agent_name = "CompetitorAgent"
    output_key = ContextKey.COMPETITORS

    def execute(self, context: Context) -> AgentEffect:
        seeds = context.get(ContextKey.SEEDS)
        named = [seed for seed in seeds if "compet" in seed.content.lower()]
        if not named:
            return AgentEffect.with_facts([
                self._fact(
                    "competitor:landscape",
                    "Competitive landscape unclear: no dominant player identified in the target segment",
                )
            ])
        return AgentEffect.with_facts(
            self._fact(f"competitor:{seed.id}", f"Competitor context: {seed.content}")
            for seed in named
        )


class StrategyAgent(_StageAgent):
    """Proposes at least two strategies grounded in signals and competitors."""

    agent_name = "StrategyAgent"
    required_keys = frozenset({ContextKey.SIGNALS, ContextKey.COMPETITORS})
    output_key = ContextKey.STRATEGIES

    def execute(self, context: Context) -> AgentEffect:
        signals = context.get(ContextKey.SIGNALS)
        competitors = context.get(ContextKey.COMPETITORS)
        facts: list[Fact] = []

        if _mentions(signals, "linkedin"):
            facts.append(self._fact(
                "strategy:linkedin-b2b-campaign",
                "Run a targeted LinkedIn B2B campaign aimed at decision makers",
            ))
        if _mentions(signals, "self-service"):
            facts.append(self._fact(
                "strategy:self-service-demo",
                "Build a self-service demo experience for inbound prospects",
            ))
        if _mentions(competitors, "unclear") or len(facts) < 2:
            facts.append(self._fact(
                "strategy:thought-leadership",
                "Publish thought-leadership content that defines the category before competitors do",
            ))
        return AgentEffect.with_facts(facts)


class EvaluationAgent(_StageAgent):
    """Scores every strategy against the signals that support it."""

    agent_name = "EvaluationAgent"
    required_keys = frozenset({ContextKey.STRATEGIES})
    output_key = ContextKey.EVALUATIONS

    def execute(self, context: Context) -> AgentEffect:
        signals = context.get(ContextKey.SIGNALS)
        facts = []
        for strategy in context.get(ContextKey.STRATEGIES):
            slug = strategy.id.split(":", 1)[-1]
            words = {word for word in slug.split("-") if len(word) > 3}
            support = [s for s in signals if any(word in s.content.lower() for word in words)]
            score = min(95, 60 + 15 * len(support))
            rationale = (
                f"supported by {len(support)} market signal(s)"
                if support
                else "no direct market signal support"
            )
            facts.append(self._fact(
                f"eval:{slug}",
                f"Score: {score}/100 | Rationale: {rationale}",
            ))
        return AgentEffect.with_facts(facts)


# ===================================================================== #
#  Invariants                                                            #
# ===================================================================== #


class BrandSafetyInvariant(Invariant):
    """Rejects strategies that mention any forbidden term."""

    DEFAULT_TERMS = ("spam", "guaranteed results", "clickbait", "deceptive")

    def __init__(self, forbidden_terms: Iterable[str] = DEFAULT_TERMS) -> None:
        self._terms = tuple(term.lower() for term in forbidden_terms)

    @property
    def name(self) -> str:
        return "BrandSafetyInvariant"

    @property
    def invariant_class(self) -> InvariantClass:
        return InvariantClass.STRUCTURAL

    def check(self, context: Context) -> InvariantResult:
        for fact in context.get(ContextKey.STRATEGIES):
            content = fact.content.lower()
            for term in self._terms:
                if term in content:
                    return InvariantResult.violated(f"strategy '{fact.id}' contains forbidden term '{term}'")
        return InvariantResult.holds()


class RequireEvaluationRationale(Invariant):
    """Every evaluation must explain its score."""

    @property
    def name(self) -> str:
        return "RequireEvaluationRationale"

    @property
    def invariant_class(self) -> InvariantClass:
        return InvariantClass.SEMANTIC

    def check(self, context: Context) -> InvariantResult:
        for fact in context.get(ContextKey.EVALUATIONS):
            if "Rationale:" not in fact.content:
                return InvariantResult.violated(f"evaluation '{fact.id}' has no rationale")
        return InvariantResult.holds()


class RequireMultipleStrategies(Invariant):

    def __init__(self, minimum: int = 2) -> None:
        self._minimum = minimum

    @property
    def name(self) -> str:
        return "RequireMultipleStrategies"

    @property
    def invariant_class(self) -> InvariantClass:
        return InvariantClass.ACCEPTANCE

    def check(self, context: Context) -> InvariantResult:
        count = len(context.get(ContextKey.STRATEGIES))
        if count < self._minimum:
            return InvariantResult.violated(f"need at least {self._minimum} strategies, found {count}")
        return InvariantResult.holds()


class RequireStrategyEvaluations(Invariant):
    """Each ``strategy:<slug>`` needs a matching ``eval:<slug>``."""

    @property
    def name(self) -> str:
        return "RequireStrategyEvaluations"

    @property
    def invariant_class(self) -> InvariantClass:
        return InvariantClass.ACCEPTANCE

    def check(self, context: Context) -> InvariantResult:
        evaluated = {fact.id.split(":", 1)[-1] for fact in context.get(ContextKey.EVALUATIONS)}
        missing = [
            fact.id for fact in context.get(ContextKey.STRATEGIES)
            if fact.id.split(":", 1)[-1] not in evaluated
        ]
        if missing:
            return InvariantResult.violated(f"strategies without evaluation: {', '.join(missing)}")
        return InvariantResult.holds()


def default_agents() -> list[BaseAgent]:
    """The deterministic agents in registration order."""
    return [MarketSignalAgent(), CompetitorAgent(), StrategyAgent(), EvaluationAgent()]


def default_invariants() -> list[Invariant]:
    return [
        BrandSafetyInvariant(),
        RequireMultipleStrategies(),
        RequireStrategyEvaluations(),
        RequireEvaluationRationale(),
    ]
