"""Tests for the Context fact store and domain value objects."""

from __future__ import annotations

import pytest

from converge_app.domain.aggregates import Context
from converge_app.domain.enums import ContextKey, FinishReason
from converge_app.domain.exceptions import ContextError
from converge_app.domain.values import AgentEffect, Fact

# ===================================================================== #
#  Context                                                               #
# ===================================================================== #


class TestContext:
    """Tests for Context: add, duplicates, conflicts, ordering."""

    def test_empty(self) -> None:
        ctx = Context()
        assert ctx.fact_count == 0
        assert len(ctx) == 0
        assert not ctx.has(ContextKey.SEEDS)
        assert ctx.get(ContextKey.SEEDS) == ()

    def test_add_and_get_preserves_order(self) -> None:
        ctx = Context()
        first = Fact(ContextKey.SIGNALS, "signal:b", "second letter first")
        second = Fact(ContextKey.SIGNALS, "signal:a", "first letter second")
        assert ctx.add_fact(first) is True
        assert ctx.add_fact(second) is True
        assert ctx.get(ContextKey.SIGNALS) == (first, second)
        assert ctx.has(ContextKey.SIGNALS)
        assert ctx.version == 2

    def test_identical_duplicate_is_noop(self) -> None:
        fact = Fact(ContextKey.SEEDS, "company", "Acme")
        ctx = Context([fact])
        assert ctx.add_fact(fact) is False
        assert ctx.fact_count == 1
        assert ctx.version == 1

    def test_conflicting_id_raises(self) -> None:
        ctx = Context([Fact(ContextKey.SEEDS, "company", "Acme")])
        with pytest.raises(ContextError, match="Conflicting") as excinfo:
            ctx.add_fact(Fact(ContextKey.SEEDS, "company", "Globex"))
        assert excinfo.value.fact_id == "company"

    def test_same_id_different_key_allowed(self) -> None:
        ctx = Context()
        ctx.add_fact(Fact(ContextKey.SEEDS, "x", "one"))
        assert ctx.add_fact(Fact(ContextKey.SIGNALS, "x", "two")) is True

    def test_empty_id_rejected(self) -> None:
        with pytest.raises(ContextError, match="non-empty"):
            Context().add_fact(Fact(ContextKey.SEEDS, "  ", "content"))

    def test_invalid_key_rejected(self) -> None:
        with pytest.raises(ContextError, match="invalid key"):
            Context().add_fact(Fact("Seeds", "id", "content"))  # type: ignore[arg-type]

    def test_all_facts_in_key_order(self) -> None:
        ctx = Context()
        ctx.add_fact(Fact(ContextKey.CONSTRAINTS, "risk:1", "late"))
        ctx.add_fact(Fact(ContextKey.SEEDS, "seed", "early"))
        assert [f.key for f in ctx.all_facts()] == [ContextKey.SEEDS, ContextKey.CONSTRAINTS]
        assert ctx.populated_keys() == [ContextKey.SEEDS, ContextKey.CONSTRAINTS]

    def test_copy_is_independent(self) -> None:
        ctx = Context([Fact(ContextKey.SEEDS, "a", "alpha")])
        clone = ctx.copy()
        clone.add_fact(Fact(ContextKey.SEEDS, "b", "beta"))
        assert ctx.fact_count == 1
        assert clone.fact_count == 2

    def test_to_dict(self) -> None:
        ctx = Context([Fact(ContextKey.SEEDS, "a", "alpha")])
        assert ctx.to_dict() == {"Seeds": [{"id": "a", "content": "alpha"}]}


# ===================================================================== #
#  Value objects and enums                                               #
# ===================================================================== #


class TestValues:

    def test_fact_is_frozen(self) -> None:
        fact = Fact(ContextKey.SEEDS, "a", "alpha")
        with pytest.raises(AttributeError):
            fact.id = "b"  # type: ignore[misc]

    def test_effect_helpers(self) -> None:
        assert AgentEffect.empty().is_empty
        effect = AgentEffect.with_facts(Fact(ContextKey.SEEDS, str(i), "x") for i in range(3))
        assert len(effect) == 3
        assert not effect.is_empty

    @pytest.mark.parametrize("name", ["Strategies", "strategies", "STRATEGIES"])
    def test_context_key_from_name(self, name: str) -> None:
        assert ContextKey.from_name(name) is ContextKey.STRATEGIES

    def test_context_key_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown context key"):
            ContextKey.from_name("Bogus")

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("end_turn", FinishReason.STOP),
            ("length", FinishReason.MAX_TOKENS),
            ("refusal", FinishReason.CONTENT_FILTER),
            ("tool_use", FinishReason.OTHER),
        ],
    )
    def test_finish_reason_from_raw(self, raw: str, expected: FinishReason) -> None:
        assert FinishReason.from_raw(raw) is expected
