"""Pack catalogue and the bridge from pack names to engine registrations.

A pack is a named bundle of agents and invariants selected together.  The
catalogue is closed: only packs listed here can be enabled or run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from converge_app.agents.insight import StrategicInsightAgent
from converge_app.agents.risk import RiskAssessmentAgent
from converge_app.domain.exceptions import UnknownPackError
from converge_app.packs import growth_strategy

if TYPE_CHECKING:
    from converge_app.infrastructure.config import AppConfig
    from converge_app.infrastructure.llm import LLMProvider
    from converge_app.services.engine import Engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PackInfo:
    """Descriptive metadata for one pack."""

    name: str
    description: str
    version: str
    templates: tuple[str, ...] = field(default_factory=tuple)
    invariants: tuple[str, ...] = field(default_factory=tuple)
    implemented: bool = False


_CATALOG: dict[str, PackInfo] = {
    "growth-strategy": PackInfo(
        name="growth-strategy",
        description=(
            "Multi-agent growth strategy analysis with market signals, "
            "competitor analysis, strategy synthesis, and evaluation."
        ),
        version="1.0.0",
        templates=("growth-strategy",),
        invariants=(
            "BrandSafetyInvariant",
            "RequireMultipleStrategies",
            "RequireStrategyEvaluations",
            "RequireEvaluationRationale",
        ),
        implemented=True,
    ),
    "sdr-pipeline": PackInfo(
        name="sdr-pipeline",
        description=(
            "SDR/sales funnel automation with lead qualification, "
            "outreach sequencing, and meeting scheduling."
        ),
        version="0.1.0",
        templates=("sdr-qualify", "sdr-outreach"),
        invariants=("LeadQualificationInvariant", "OutreachComplianceInvariant"),
    ),
}


def available_packs(config: AppConfig | None = None) -> list[str]:
    """Return the sorted names of catalogued packs.

    When *config* is given, only packs it enables are returned; names it
    enables that are not catalogued are logged and ignored.
    """
    if config is None:
        return sorted(_CATALOG)
    for name in config.enabled_packs:
        if name not in _CATALOG:
            logger.warning("Unknown pack %r in enabled_packs; ignoring", name)
    return sorted(name for name in set(config.enabled_packs) if name in _CATALOG)


def default_packs() -> list[str]:
    return ["growth-strategy"]


def pack_info(name: str) -> PackInfo:
    """Return catalogue metadata for *name*, or an ``Unknown pack`` placeholder."""
    info = _CATALOG.get(name)
    if info is None:
        return PackInfo(name=name, description="Unknown pack", version="0.0.0")
    return info


def find_template(template: str, packs: list[str]) -> str | None:
    """Return the pack among *packs* that provides *template*, if any."""
    for name in packs:
        info = _CATALOG.get(name)
        if info is not None and template in info.templates:
            return name
    return None


def register_pack_agents(engine: Engine, pack_name: str, provider: LLMProvider) -> None:
    """Register the agents and invariants of *pack_name* on *engine*.

    Both model-backed agents receive the same *provider* instance.

    Raises
    ------
    UnknownPackError
        If the pack is not catalogued or has no agent registration.
    """
    info = _CATALOG.get(pack_name)
    if info is None:
        raise UnknownPackError(f"Unknown pack: {pack_name}", pack=pack_name)
    if not info.implemented:
        raise UnknownPackError(
            f"Pack '{pack_name}' is catalogued but has no agent registration", pack=pack_name,
        )

    logger.info("Registering %s agents and invariants (provider=%s)", pack_name, provider.name)
    for agent in growth_strategy.default_agents():
        engine.register(agent)
    engine.register(StrategicInsightAgent(provider))
    engine.register(RiskAssessmentAgent(provider))
    for invariant in growth_strategy.default_invariants():
        engine.register_invariant(invariant)
