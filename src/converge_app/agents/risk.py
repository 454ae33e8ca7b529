"""Risk assessment of proposed strategies."""

from __future__ import annotations

from converge_app.agents.llm import LLMAgent, render_bullets
from converge_app.domain.aggregates import Context
from converge_app.domain.enums import ContextKey

RISK_SYSTEM_PROMPT = """\
You are a risk analyst evaluating business strategies.

Given the proposed strategies and their evaluations, identify 2-3 key risks or challenges
that could impact successful execution.

For each risk:
1. Name the risk clearly
2. Explain what could go wrong
3. Suggest a mitigation approach

Format your response as a numbered list, one risk per item.
Keep each risk assessment concise (2-3 sentences)."""


class RiskAssessmentAgent(LLMAgent):
    """Identifies execution risks and mitigations for proposed strategies.

    Runs once strategies and evaluations exist and no constraints have been
    recorded.  Emits ``risk:<n>`` facts under ``Constraints``.
    """

    agent_name = "RiskAssessmentAgent"
    required_keys = frozenset({ContextKey.STRATEGIES, ContextKey.EVALUATIONS})
    output_key = ContextKey.CONSTRAINTS
    id_prefix = "risk"
    min_content_length = 20
    fallback_id = "risk:none-identified"
    fallback_content = "No significant risks identified. Recommend manual review of assumptions."
    error_id = "risk:error"
    error_template = "Risk assessment failed: {error}. Manual review recommended."
    default_system_prompt = RISK_SYSTEM_PROMPT

    def build_prompt(self, context: Context) -> str:
        return (
            "## Company Context\n"
            + render_bullets(context.get(ContextKey.SEEDS))
            + "\n## Market Signals\n"
            + render_bullets(context.get(ContextKey.SIGNALS))
            + "\n## Competitive Landscape\n"
            + render_bullets(context.get(ContextKey.COMPETITORS))
            + "\n## Proposed Strategies\n"
            + render_bullets(context.get(ContextKey.STRATEGIES), with_ids=True)
            + "\n## Strategy Evaluations\n"
            + render_bullets(context.get(ContextKey.EVALUATIONS))
            + "\n## Task\nIdentify 2-3 key risks or challenges for these strategies "
            "and suggest mitigations."
        )
