"""LLM provider factory for the converge application.

Registry-based factory pattern.  Creates concrete :class:`LLMProvider`
instances by name and, via :meth:`LLMProviderFactory.from_env`, picks the
first preferred live provider whose API key is present, falling back to
the deterministic stand-in when none is.

Usage::

    factory = LLMProviderFactory()
    provider = factory.create("anthropic", model="claude-sonnet-4-20250514")
    provider = factory.create("mock")
    provider = factory.from_env(ProviderConfig(prefer=("openai",)))
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any, Callable

from converge_app.infrastructure.config import ProviderConfig, ProviderOverride
from converge_app.infrastructure.llm import LLMProvider

logger = logging.getLogger(__name__)


# Type for provider constructor functions
ProviderConstructor = Callable[..., LLMProvider]

DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai": "gpt-4o",
}

API_KEY_ENV: dict[str, str] = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}


class LLMProviderFactory:
    """Registry-based factory for creating LLM provider instances.

    Maintains a registry mapping provider names to constructor functions.
    Constructors for the built-in providers (``anthropic``, ``openai``,
    ``mock``) are pre-registered.  Custom providers can be registered via
    :meth:`register`.

    Parameters
    ----------
    auto_discover:
        If ``True`` (default), pre-register all built-in providers.
    """

    def __init__(self, auto_discover: bool = True) -> None:
        self._registry: dict[str, ProviderConstructor] = {}

        if auto_discover:
            self._discover_builtin_providers()

    # -- registration ---------------------------------------------------------

    def register(
        self,
        name: str,
        constructor: ProviderConstructor,
        overwrite: bool = False,
    ) -> None:
        """Register a provider constructor under the given *name*.

        Raises
        ------
        ValueError
            If the name is already registered and ``overwrite`` is ``False``.
        """
        if name in self._registry and not overwrite:
            raise ValueError(
                f"Provider {name!r} is already registered. "
                f"Use overwrite=True to replace it."
            )
        self._registry[name] = constructor
        logger.debug("LLMProviderFactory: registered provider %r", name)

    # -- creation -------------------------------------------------------------

    def create(self, provider_name: str, **kwargs: Any) -> LLMProvider:
        """Create an LLM provider instance by name.

        Raises
        ------
        ValueError
            If the provider name is not registered.
        """
        constructor = self._registry.get(provider_name)
        if constructor is None:
            available = ", ".join(sorted(self._registry.keys()))
            raise ValueError(
                f"Unknown provider {provider_name!r}. "
                f"Available providers: {available}"
            )

        logger.info(
            "LLMProviderFactory: creating provider %r with kwargs %s",
            provider_name,
            list(kwargs.keys()),
        )

        return constructor(**kwargs)

    def from_env(
        self,
        config: ProviderConfig | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> LLMProvider:
        """Build the first available live provider, or the stand-in.

        Providers are tried in ``config.prefer`` order, skipping any in
        ``config.exclude`` and any whose API key variable is unset.  A
        provider that fails to construct is logged and skipped.
        """
        cfg = config or ProviderConfig()
        env = os.environ if environ is None else environ

        for name in cfg.prefer:
            if name in cfg.exclude or name not in API_KEY_ENV:
                continue
            api_key = env.get(API_KEY_ENV[name])
            if not api_key:
                continue
            override = cfg.override_for(name)
            try:
                provider = self.create(name, api_key=api_key, **self._override_kwargs(override))
            except Exception as exc:
                logger.warning("Could not create %s provider: %s", name, exc)
                continue
            logger.info("Using %s provider (model=%s)", name, provider.model)
            return provider

        logger.warning(
            "No LLM API keys found (%s). Using mock provider.",
            " or ".join(API_KEY_ENV[n] for n in cfg.prefer if n in API_KEY_ENV),
        )
        return self.create("mock")

    # -- query ----------------------------------------------------------------

    @property
    def registered_providers(self) -> list[str]:
        """Return a sorted list of registered provider names."""
        return sorted(self._registry.keys())

    def is_registered(self, name: str) -> bool:
        return name in self._registry

    # -- auto-discovery -------------------------------------------------------

    def _discover_builtin_providers(self) -> None:
        """Register lazy constructors for all built-in providers.

        LangChain integrations are imported only when a live provider is
        actually constructed.
        """
        self._registry["anthropic"] = self._create_anthropic
        self._registry["openai"] = self._create_openai
        self._registry["mock"] = self._create_mock

    @staticmethod
    def _override_kwargs(override: ProviderOverride) -> dict[str, Any]:
        kwargs: dict[str, Any] = {}
        if override.model:
            kwargs["model"] = override.model
        if override.timeout_ms is not None:
            kwargs["timeout"] = override.timeout_ms / 1000.0
        if override.rate_limit is not None:
            kwargs["requests_per_minute"] = override.rate_limit
        return kwargs

    @staticmethod
    def _rate_limiter(requests_per_minute: int | None) -> Any:
        if requests_per_minute is None:
            return None
        from langchain_core.rate_limiters import InMemoryRateLimiter

        return InMemoryRateLimiter(requests_per_second=requests_per_minute / 60.0)

    @staticmethod
    def _create_anthropic(
        api_key: str | None = None,
        model: str = DEFAULT_MODELS["anthropic"],
        timeout: float = 60.0,
        max_tokens: int = 1024,
        max_retries: int = 3,
        requests_per_minute: int | None = None,
    ) -> LLMProvider:
        """Lazy constructor for an Anthropic-backed provider."""
        from langchain_anthropic import ChatAnthropic

        from converge_app.infrastructure.llm.chat_model import ChatModelProvider

        kwargs: dict[str, Any] = {
            "model": model,
            "timeout": timeout,
            "max_tokens": max_tokens,
            "max_retries": max_retries,
        }
        if api_key is not None:
            kwargs["api_key"] = api_key
        limiter = LLMProviderFactory._rate_limiter(requests_per_minute)
        if limiter is not None:
            kwargs["rate_limiter"] = limiter
        return ChatModelProvider(ChatAnthropic(**kwargs), provider_name="anthropic", model_name=model)

    @staticmethod
    def _create_openai(
        api_key: str | None = None,
        model: str = DEFAULT_MODELS["openai"],
        timeout: float = 60.0,
        max_tokens: int = 1024,
        max_retries: int = 3,
        requests_per_minute: int | None = None,
    ) -> LLMProvider:
        """Lazy constructor for an OpenAI-backed provider."""
        from langchain_openai import ChatOpenAI

        from converge_app.infrastructure.llm.chat_model import ChatModelProvider

        kwargs: dict[str, Any] = {
            "model": model,
            "timeout": timeout,
            "max_tokens": max_tokens,
            "max_retries": max_retries,
        }
        if api_key is not None:
            kwargs["api_key"] = api_key
        limiter = LLMProviderFactory._rate_limiter(requests_per_minute)
        if limiter is not None:
            kwargs["rate_limiter"] = limiter
        return ChatModelProvider(ChatOpenAI(**kwargs), provider_name="openai", model_name=model)

    @staticmethod
    def _create_mock(response: str | None = None) -> LLMProvider:
        """Constructor for the deterministic stand-in."""
        from converge_app.testing.mock_llm import MockLLMProvider

        if response is None:
            return MockLLMProvider.default_insights()
        return MockLLMProvider(response)

    # -- dunder helpers -------------------------------------------------------

    def __repr__(self) -> str:
        return f"LLMProviderFactory(providers={sorted(self._registry.keys())})"

    def __contains__(self, name: str) -> bool:
        return name in self._registry


def create_llm_provider(use_mock: bool, config: ProviderConfig | None = None) -> LLMProvider:
    """Return the provider for one run: the stand-in, or the best live one."""
    factory = LLMProviderFactory()
    if use_mock:
        return factory.create("mock")
    return factory.from_env(config)
