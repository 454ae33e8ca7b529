"""Aggregate roots for the converge application.

* ``Context`` -- the shared, append-only fact store partitioned by
  :class:`ContextKey`.

External code should only add facts through :meth:`Context.add_fact`.
Agents borrow a context for the duration of ``accepts`` / ``execute`` and
never mutate it; the engine is the only writer.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from typing import Any

from .enums import ContextKey
from .exceptions import ContextError
from .values import Fact

# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------

class Context:
    """Append-only, category-keyed fact store.

    Facts are kept per key in insertion order.  Adding a fact whose
    ``(key, id, content)`` already exists is a no-op; reusing an id within
    a key with *different* content is rejected.
    """

    def __init__(self, facts: Iterable[Fact] = ()) -> None:
        self._facts: dict[ContextKey, list[Fact]] = {key: [] for key in ContextKey}
        self._index: dict[tuple[ContextKey, str], Fact] = {}
        self._version = 0
        self._lock = threading.Lock()
        for fact in facts:
            self.add_fact(fact)

    # -- properties -----------------------------------------------------------

    @property
    def version(self) -> int:
        """Number of facts added so far; increases on every successful add."""
        return self._version

    @property
    def fact_count(self) -> int:
        """Total number of facts across all keys."""
        with self._lock:
            return sum(len(facts) for facts in self._facts.values())

    # -- mutations ------------------------------------------------------------

    def add_fact(self, fact: Fact) -> bool:
        """Append *fact* to its key.

        Returns ``True`` if the fact was added and ``False`` if an identical
        fact was already present.

        Raises
        ------
        ContextError
            If the fact is malformed or conflicts with an existing fact.
        """
        if not isinstance(fact, Fact):
            raise ContextError(f"Expected a Fact, got {type(fact).__name__}")
        if not isinstance(fact.key, ContextKey):
            raise ContextError(
                f"Fact {fact.id!r} has invalid key {fact.key!r}",
                fact_id=str(fact.id),
            )
        if not isinstance(fact.id, str) or not fact.id.strip():
            raise ContextError("Fact id must be a non-empty string", fact_id=str(fact.id))
        if not isinstance(fact.content, str):
            raise ContextError(
                f"Fact {fact.id!r} content must be a string",
                fact_id=fact.id,
            )

        with self._lock:
            existing = self._index.get((fact.key, fact.id))
            if existing is not None:
                if existing.content == fact.content:
                    return False
                raise ContextError(
                    f"Conflicting fact {fact.id!r} in {fact.key.value}: "
                    f"id already holds different content",
                    fact_id=fact.id,
                    details={"existing": existing.content, "proposed": fact.content},
                )
            self._facts[fact.key].append(fact)
            self._index[(fact.key, fact.id)] = fact
            self._version += 1
            return True

    # -- queries --------------------------------------------------------------

    def has(self, key: ContextKey) -> bool:
        """Return ``True`` if *key* holds at least one fact."""
        with self._lock:
            return bool(self._facts[key])

    def get(self, key: ContextKey) -> tuple[Fact, ...]:
        """Return the facts under *key* in insertion order (empty if none)."""
        with self._lock:
            return tuple(self._facts[key])

    def all_facts(self) -> list[Fact]:
        """Return every fact, grouped by key in ``ContextKey`` order."""
        with self._lock:
            return [fact for key in ContextKey for fact in self._facts[key]]

    def populated_keys(self) -> list[ContextKey]:
        """Return the keys that hold at least one fact."""
        with self._lock:
            return [key for key in ContextKey if self._facts[key]]

    def copy(self) -> Context:
        """Return an independent context holding the same facts."""
        return Context(self.all_facts())

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{key name: [{id, content}, ...]}`` for populated keys."""
        with self._lock:
            return {
                key.value: [{"id": f.id, "content": f.content} for f in facts]
                for key, facts in self._facts.items()
                if facts
            }

    # -- dunder helpers -------------------------------------------------------

    def __iter__(self) -> Iterator[Fact]:
        return iter(self.all_facts())

    def __len__(self) -> int:
        return self.fact_count

    def __repr__(self) -> str:
        counts = ", ".join(
            f"{key.value}={len(self.get(key))}" for key in self.populated_keys()
        )
        return f"Context({counts})"
