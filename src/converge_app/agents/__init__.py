"""Pipeline agents.

``BaseAgent`` is the contract the engine schedules against.  The two
model-backed agents share the :class:`LLMAgent` template.
"""

from converge_app.agents.base import BaseAgent
from converge_app.agents.insight import INSIGHT_SYSTEM_PROMPT, StrategicInsightAgent
from converge_app.agents.llm import LLMAgent
from converge_app.agents.risk import RISK_SYSTEM_PROMPT, RiskAssessmentAgent

__all__ = [
    "BaseAgent",
    "LLMAgent",
    "StrategicInsightAgent",
    "RiskAssessmentAgent",
    "INSIGHT_SYSTEM_PROMPT",
    "RISK_SYSTEM_PROMPT",
]
