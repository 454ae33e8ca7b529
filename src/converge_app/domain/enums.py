"""Domain enumerations for the converge application.

These enums capture the fixed vocabularies used across the domain layer:
the context categories that partition the fact store, the classes of
invariant checked by the engine, and the finish reasons reported by
model providers.
"""

from __future__ import annotations

from enum import Enum


class ContextKey(Enum):
    """Pipeline stage a fact belongs to.

    Declaration order is significant: it is the order in which facts are
    enumerated for reports, exports, and aggregate counts.
    """

    SEEDS = "Seeds"
    SIGNALS = "Signals"
    COMPETITORS = "Competitors"
    STRATEGIES = "Strategies"
    EVALUATIONS = "Evaluations"
    HYPOTHESES = "Hypotheses"
    CONSTRAINTS = "Constraints"

    @classmethod
    def from_name(cls, name: str) -> ContextKey:
        """Resolve a category from its display name (case-insensitive).

        Raises
        ------
        ValueError
            If *name* does not match any category.
        """
        wanted = name.strip().lower()
        for key in cls:
            if key.value.lower() == wanted or key.name.lower() == wanted:
                return key
        raise ValueError(
            f"Unknown context key {name!r}. "
            f"Valid keys: {[k.value for k in cls]}"
        )


class InvariantClass(Enum):
    """When the engine evaluates an invariant."""

    STRUCTURAL = "structural"  # after every merged effect
    SEMANTIC = "semantic"  # at the end of every cycle
    ACCEPTANCE = "acceptance"  # once, when the fixed point is reached


class FinishReason(Enum):
    """Why a model provider stopped generating."""

    STOP = "stop"
    MAX_TOKENS = "max_tokens"
    CONTENT_FILTER = "content_filter"
    OTHER = "other"

    @classmethod
    def from_raw(cls, raw: str | None) -> FinishReason:
        """Map a provider-specific stop reason onto the closed vocabulary."""
        value = (raw or "").strip().lower()
        if value in ("stop", "end_turn", "stop_sequence"):
            return cls.STOP
        if value in ("length", "max_tokens"):
            return cls.MAX_TOKENS
        if value in ("content_filter", "refusal"):
            return cls.CONTENT_FILTER
        return cls.OTHER
