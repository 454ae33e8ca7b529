"""Deterministic text-to-fact parsing for model-backed agents.

:class:`ResponseParser` turns free-form model output (typically a numbered
list) into an ordered, never-empty list of :class:`Fact` objects:

1. Text is split on line feeds only; each line is trimmed (dropping any
   carriage return) and blank lines are skipped.
2. A leading run of digits, ``.``, ``)`` and spaces is stripped, which
   removes list markers such as ``"1. "`` or ``"2) "``.
3. Lines whose remaining content is not strictly longer than
   ``min_content_length`` are discarded.
4. Survivors become facts ``<id_prefix>:<n>``, numbered 1.. over the
   facts actually emitted.
5. If nothing survives, a single fallback fact is returned instead.

The parser is pure: the same text and configuration always yield the
same facts.
"""

from __future__ import annotations

from dataclasses import dataclass

from converge_app.domain.enums import ContextKey
from converge_app.domain.values import Fact

_MARKER_CHARS = frozenset(".) ")


def strip_list_marker(line: str) -> str:
    """Remove a leading numbered-list marker and surrounding whitespace."""
    content = line.strip()
    index = 0
    while index < len(content) and (content[index].isnumeric() or content[index] in _MARKER_CHARS):
        index += 1
    return content[index:].strip()


@dataclass(frozen=True)
class ResponseParser:
    """Configuration plus the parsing algorithm for one agent's output.

    Attributes
    ----------
    key:
        Context key every produced fact is tagged with.
    id_prefix:
        Fact ids are ``f"{id_prefix}:{n}"``.
    min_content_length:
        Content must be strictly longer than this many characters.
    fallback_id:
        Id of the single fact emitted when no line survives.
    fallback_content:
        Content of that fallback fact.
    """

    key: ContextKey
    id_prefix: str
    min_content_length: int
    fallback_id: str
    fallback_content: str

    def parse(self, text: str) -> list[Fact]:
        """Parse *text* into at least one fact."""
        facts: list[Fact] = []
        for raw_line in (text or "").split("\n"):
            if not raw_line.strip():
                continue
            content = strip_list_marker(raw_line)
            if len(content) <= self.min_content_length:
                continue
            facts.append(
                Fact(
                    key=self.key,
                    id=f"{self.id_prefix}:{len(facts) + 1}",
                    content=content,
                )
            )

        if not facts:
            facts.append(Fact(key=self.key, id=self.fallback_id, content=self.fallback_content))

        return facts
