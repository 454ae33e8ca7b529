"""Shared machinery for agents that delegate reasoning to a text provider.

``LLMAgent`` is a template: subclasses declare what they read, where they
write, how their output is parsed and how their prompt is rendered.  The
request/parse/degrade flow lives here once.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import ClassVar

from converge_app.agents.base import BaseAgent
from converge_app.domain.aggregates import Context
from converge_app.domain.enums import ContextKey
from converge_app.domain.values import AgentEffect, Fact
from converge_app.infrastructure.llm import LLMProvider, LLMRequest
from converge_app.services.parsing import ResponseParser

logger = logging.getLogger(__name__)


def render_bullets(facts: tuple[Fact, ...], with_ids: bool = False) -> str:
    """Render facts as ``- content`` (or ``- id: content``) lines."""
    if with_ids:
        return "".join(f"- {fact.id}: {fact.content}\n" for fact in facts)
    return "".join(f"- {fact.content}\n" for fact in facts)


class LLMAgent(BaseAgent):
    """Base class for agents backed by an :class:`LLMProvider`.

    Subclasses set the class attributes below and implement
    :meth:`build_prompt`.

    Attributes
    ----------
    agent_name:
        Value reported by :attr:`name`.
    required_keys:
        Keys that must be populated before the agent is considered.
    output_key:
        Key all emitted facts are tagged with.  The agent stops accepting
        once this key is non-empty.
    id_prefix:
        Prefix for ``<prefix>:<n>`` fact ids.
    min_content_length:
        Parsed lines must be strictly longer than this.
    fallback_id, fallback_content:
        The fact emitted when the response yields nothing usable.
    error_id, error_template:
        The fact emitted when the provider call fails; the template is
        formatted with the error text.
    default_system_prompt:
        System instruction used unless one is passed to the constructor.
    """

    agent_name: ClassVar[str] = ""
    required_keys: ClassVar[frozenset[ContextKey]] = frozenset()
    output_key: ClassVar[ContextKey]
    id_prefix: ClassVar[str] = ""
    min_content_length: ClassVar[int] = 10
    fallback_id: ClassVar[str] = ""
    fallback_content: ClassVar[str] = ""
    error_id: ClassVar[str] = ""
    error_template: ClassVar[str] = "{error}"
    default_system_prompt: ClassVar[str] = ""

    def __init__(self, provider: LLMProvider, system_prompt: str | None = None) -> None:
        self._provider = provider
        self._system_prompt = self.default_system_prompt if system_prompt is None else system_prompt
        self._parser = ResponseParser(
            key=self.output_key,
            id_prefix=self.id_prefix,
            min_content_length=self.min_content_length,
            fallback_id=self.fallback_id,
            fallback_content=self.fallback_content,
        )

    @classmethod
    def with_prompt(cls, provider: LLMProvider, system_prompt: str) -> LLMAgent:
        """Create an agent that uses *system_prompt* instead of the default."""
        return cls(provider, system_prompt=system_prompt)

    # -- properties -----------------------------------------------------------

    @property
    def name(self) -> str:
        return self.agent_name

    @property
    def dependencies(self) -> frozenset[ContextKey]:
        return self.required_keys

    @property
    def provider(self) -> LLMProvider:
        return self._provider

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    @property
    def parser(self) -> ResponseParser:
        return self._parser

    # -- contract -------------------------------------------------------------

    @abstractmethod
    def build_prompt(self, context: Context) -> str:
        """Render the user prompt from the facts in *context*."""
        ...

    def accepts(self, context: Context) -> bool:
        return self.dependencies_met(context) and not context.has(self.output_key)

    def execute(self, context: Context) -> AgentEffect:
        """Send one request to the provider and parse its reply into facts.

        A provider failure of any kind yields a single diagnostic fact under
        :attr:`output_key`; it never propagates to the engine.
        """
        request = LLMRequest(prompt=self.build_prompt(context)).with_system(self._system_prompt)

        try:
            response = self._provider.complete(request)
        except Exception as exc:
            logger.warning("%s: provider %s failed: %s", self.name, self._provider.name, exc)
            return AgentEffect.with_facts(
                [
                    Fact(
                        key=self.output_key,
                        id=self.error_id,
                        content=self.error_template.format(error=exc),
                    )
                ]
            )

        facts = self._parser.parse(response.text)
        logger.debug(
            "%s: parsed %d fact(s) from %d chars (model=%s)",
            self.name,
            len(facts),
            len(response.text),
            response.model or self._provider.model,
        )
        return AgentEffect.with_facts(facts)
