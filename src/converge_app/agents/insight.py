"""Strategic insight synthesis over a completed strategy evaluation."""

from __future__ import annotations

from converge_app.agents.llm import LLMAgent, render_bullets
from converge_app.domain.aggregates import Context
from converge_app.domain.enums import ContextKey

INSIGHT_SYSTEM_PROMPT = """\
You are a strategic advisor analyzing growth strategies for a business.

Given the context of market signals, competitor analysis, proposed strategies, and their evaluations,
synthesize 2-3 key strategic insights that the business should consider.

Each insight should:
1. Be actionable and specific
2. Reference the data in the context
3. Provide a clear recommendation

Format your response as a numbered list of insights, one per line.
Keep each insight concise (1-2 sentences)."""


class StrategicInsightAgent(LLMAgent):
    """Turns signals, competitors, strategies and evaluations into insights.

    Runs once evaluations exist and no hypotheses have been recorded.
    Emits ``insight:<n>`` facts under ``Hypotheses``.
    """

    agent_name = "StrategicInsightAgent"
    required_keys = frozenset({ContextKey.EVALUATIONS})
    output_key = ContextKey.HYPOTHESES
    id_prefix = "insight"
    min_content_length = 10
    fallback_id = "insight:fallback"
    fallback_content = (
        "LLM analysis completed but no structured insights extracted. "
        "Review raw evaluation data."
    )
    error_id = "insight:error"
    error_template = "LLM call failed: {error}. Manual review recommended."
    default_system_prompt = INSIGHT_SYSTEM_PROMPT

    def build_prompt(self, context: Context) -> str:
        return (
            "## Market Signals\n"
            + render_bullets(context.get(ContextKey.SIGNALS))
            + "\n## Competitor Analysis\n"
            + render_bullets(context.get(ContextKey.COMPETITORS))
            + "\n## Proposed Strategies\n"
            + render_bullets(context.get(ContextKey.STRATEGIES), with_ids=True)
            + "\n## Evaluations\n"
            + render_bullets(context.get(ContextKey.EVALUATIONS))
            + "\n## Task\nProvide 2-3 strategic insights based on this analysis."
        )
