"""Model-provider boundary for the converge application.

This sub-package provides a **provider-agnostic** abstraction over
text-completion backends.  Model-backed agents depend only on
:class:`LLMProvider`; live backends (LangChain chat models) and the
deterministic stand-ins in :mod:`converge_app.testing` both implement it.

Public API
----------
LLMProvider
    Abstract base class that every concrete provider must implement.
LLMRequest
    System instruction plus user prompt for a single completion.
LLMResponse
    Structured response returned by all providers.
TokenUsage
    Prompt / completion / total token counters.
LLMError
    Base exception for all provider failures.
"""

from __future__ import annotations

import dataclasses
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from converge_app.domain.enums import FinishReason

logger = logging.getLogger(__name__)


# =========================================================================== #
#  Exceptions                                                                  #
# =========================================================================== #

class LLMError(Exception):
    """Base exception for LLM provider errors."""


class LLMConnectionError(LLMError):
    """Raised when the provider cannot be reached."""


class LLMRateLimitError(LLMError):
    """Raised when the provider returns a rate-limit / quota error."""


class LLMResponseError(LLMError):
    """Raised when the provider returns an unparseable or invalid response."""


# =========================================================================== #
#  Data structures                                                             #
# =========================================================================== #

@dataclass(frozen=True)
class LLMRequest:
    """A single synchronous completion request.

    Attributes
    ----------
    prompt:
        The user prompt.
    system:
        System instruction describing the analytical role and output format.
    model:
        Optional model override; empty means the provider's default.
    temperature:
        Sampling temperature.
    max_tokens:
        Maximum number of tokens in the response.
    """

    prompt: str
    system: str = ""
    model: str = ""
    temperature: float = 0.7
    max_tokens: int = 1024

    def with_system(self, system: str) -> LLMRequest:
        return dataclasses.replace(self, system=system)

    def validate(self) -> None:
        if not (0.0 <= self.temperature <= 2.0):
            raise ValueError(
                f"temperature must be in [0, 2], got {self.temperature}"
            )
        if self.max_tokens < 1:
            raise ValueError(
                f"max_tokens must be >= 1, got {self.max_tokens}"
            )


@dataclass(frozen=True)
class TokenUsage:
    """Token counters reported for one (or an accumulation of) completions."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


@dataclass(frozen=True)
class LLMResponse:
    """Structured response from an LLM provider.

    Attributes
    ----------
    text:
        The generated text content.
    model:
        The model that actually produced the response.
    usage:
        Token usage for this call.
    finish_reason:
        Why generation stopped.
    """

    text: str
    model: str = ""
    usage: TokenUsage = field(default_factory=TokenUsage)
    finish_reason: FinishReason = FinishReason.STOP


# =========================================================================== #
#  Abstract provider                                                           #
# =========================================================================== #

class LLMProvider(ABC):
    """Abstract base class for text-completion backends.

    Implementations must be safe to share between the model-backed agents
    of one run; the engine may call them from worker threads.

    Usage::

        provider = LLMProviderFactory().create("anthropic")
        response = provider.complete(LLMRequest(prompt="...", system="..."))
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider identifier (e.g. ``"anthropic"``)."""
        ...

    @property
    @abstractmethod
    def model(self) -> str:
        """Default model identifier used by this provider."""
        ...

    @abstractmethod
    def complete(self, request: LLMRequest) -> LLMResponse:
        """Synchronously generate a response.

        Blocks for the duration of one round trip; no timeout is enforced
        here beyond what the concrete backend applies.

        Raises
        ------
        LLMError
            On any provider-level failure.
        """
        ...


# =========================================================================== #
#  Public API                                                                  #
# =========================================================================== #

__all__ = [
    # Exceptions
    "LLMError",
    "LLMConnectionError",
    "LLMRateLimitError",
    "LLMResponseError",
    # Data
    "LLMRequest",
    "LLMResponse",
    "TokenUsage",
    "FinishReason",
    # Abstract provider
    "LLMProvider",
]


def __getattr__(name: str):  # noqa: N807
    """Lazy-load concrete providers on attribute access.

    Keeps ``import converge_app.infrastructure.llm`` free of LangChain
    imports until a live provider is actually requested.
    """
    _lazy_map = {
        "ChatModelProvider": "converge_app.infrastructure.llm.chat_model",
        "LLMProviderFactory": "converge_app.infrastructure.llm.factory",
    }

    if name in _lazy_map:
        import importlib
        module = importlib.import_module(_lazy_map[name])
        return getattr(module, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
