"""Value objects for the converge application.

All types here are frozen dataclasses, immutable and compared by value.
A :class:`Fact` is the unit of information in the shared context; an
:class:`AgentEffect` is the batch of facts one agent proposes for merging.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from .enums import ContextKey


# ---------------------------------------------------------------------------
# Fact
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Fact:
    """An immutable ``(key, id, content)`` triple.

    ``id`` is expected to be unique within its key and is what eval
    fixtures match prefixes against (``"insight:"``, ``"risk:error"``...).
    """

    key: ContextKey
    id: str
    content: str

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key.value, "id": self.id, "content": self.content}


# ---------------------------------------------------------------------------
# AgentEffect
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AgentEffect:
    """Ordered facts proposed by a single ``execute`` call.

    Agents never write to the context themselves; the engine merges the
    effect after the agent returns.
    """

    facts: tuple[Fact, ...] = field(default_factory=tuple)

    @classmethod
    def with_facts(cls, facts: Iterable[Fact]) -> AgentEffect:
        return cls(facts=tuple(facts))

    @classmethod
    def empty(cls) -> AgentEffect:
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.facts

    def __len__(self) -> int:
        return len(self.facts)
