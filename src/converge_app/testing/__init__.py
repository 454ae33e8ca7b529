"""Public testing utilities for the converge application.

Provides deterministic stand-in providers for writing self-contained
fixtures and tests without requiring API keys.
"""

from converge_app.testing.mock_llm import (
    DEFAULT_INSIGHTS,
    DEFAULT_RISKS,
    FailingLLMProvider,
    MockLLMProvider,
)

__all__ = [
    "MockLLMProvider",
    "FailingLLMProvider",
    "DEFAULT_INSIGHTS",
    "DEFAULT_RISKS",
]
