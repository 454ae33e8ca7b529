"""LangChain chat-model adapter for the converge provider boundary.

``ChatModelProvider`` wraps any ``langchain_core`` ``BaseChatModel``
(``ChatAnthropic``, ``ChatOpenAI``, a fake model in tests...) so that it
satisfies :class:`LLMProvider`.  Token usage is accumulated across calls,
which makes the counters shared by every agent holding the same instance.

Example
-------
::

    from langchain_anthropic import ChatAnthropic
    from converge_app.infrastructure.llm.chat_model import ChatModelProvider

    provider = ChatModelProvider(
        ChatAnthropic(model="claude-sonnet-4-20250514"),
        provider_name="anthropic",
        model_name="claude-sonnet-4-20250514",
    )
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from converge_app.domain.enums import FinishReason
from converge_app.infrastructure.llm import (
    LLMConnectionError,
    LLMError,
    LLMProvider,
    LLMRateLimitError,
    LLMRequest,
    LLMResponse,
    LLMResponseError,
    TokenUsage,
)

logger = logging.getLogger(__name__)


class ChatModelProvider(LLMProvider):
    """Exposes a LangChain chat model through ``complete(request)``.

    Parameters
    ----------
    chat_model:
        The LangChain chat model to invoke.
    provider_name:
        Identifier reported by :attr:`name`.  Defaults to the model's
        ``_llm_type``.
    model_name:
        Identifier reported by :attr:`model` and used when the backend
        does not echo a model name.
    """

    def __init__(
        self,
        chat_model: BaseChatModel,
        provider_name: str = "",
        model_name: str = "",
    ) -> None:
        self._chat_model = chat_model
        self._provider_name = provider_name or getattr(chat_model, "_llm_type", "chat-model")
        self._model_name = model_name
        self._usage = TokenUsage()
        self._call_count = 0
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._provider_name

    @property
    def model(self) -> str:
        return self._model_name

    @property
    def total_usage(self) -> TokenUsage:
        """Token usage accumulated over every call made through this instance."""
        with self._lock:
            return self._usage

    @property
    def call_count(self) -> int:
        with self._lock:
            return self._call_count

    def complete(self, request: LLMRequest) -> LLMResponse:
        """Invoke the chat model with the request's system and user messages.

        Raises
        ------
        LLMRateLimitError
            If the backend reports a rate-limit / quota failure.
        LLMConnectionError
            On network or connection failures.
        LLMResponseError
            If the response carries no usable text.
        LLMError
            On any other backend failure.
        """
        request.validate()

        messages: list[BaseMessage] = []
        if request.system:
            messages.append(SystemMessage(content=request.system))
        messages.append(HumanMessage(content=request.prompt))

        try:
            message = self._chat_model.invoke(messages)
        except Exception as exc:
            raise self._translate_error(exc) from exc

        if not isinstance(message, AIMessage):
            raise LLMResponseError(
                f"{self._provider_name}: expected AIMessage, got {type(message).__name__}"
            )

        response = LLMResponse(
            text=self._extract_text(message),
            model=self._extract_model(message),
            usage=self._extract_usage(message),
            finish_reason=self._extract_finish_reason(message),
        )

        with self._lock:
            self._usage = self._usage + response.usage
            self._call_count += 1

        logger.debug(
            "ChatModelProvider %s: completion finished (%s, %d tokens)",
            self._provider_name,
            response.finish_reason.value,
            response.usage.total_tokens,
        )
        return response

    # -- internal helpers -----------------------------------------------------

    def _translate_error(self, exc: Exception) -> LLMError:
        """Map a backend exception onto the ``LLMError`` family."""
        if isinstance(exc, LLMError):
            return exc
        type_name = type(exc).__name__
        if "RateLimit" in type_name:
            return LLMRateLimitError(f"{self._provider_name} rate limit exceeded: {exc}")
        if "Connection" in type_name or "Timeout" in type_name or isinstance(exc, (ConnectionError, TimeoutError)):
            return LLMConnectionError(f"{self._provider_name} connection failed: {exc}")
        return LLMError(f"Unexpected error calling {self._provider_name}: {exc}")

    def _extract_text(self, message: AIMessage) -> str:
        content: Any = message.content
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts: list[str] = []
            for block in content:
                if isinstance(block, str):
                    parts.append(block)
                elif isinstance(block, dict) and block.get("type") == "text":
                    parts.append(str(block.get("text", "")))
            return "".join(parts)
        raise LLMResponseError(
            f"{self._provider_name}: unsupported message content {type(content).__name__}"
        )

    def _extract_model(self, message: AIMessage) -> str:
        metadata = message.response_metadata or {}
        return str(metadata.get("model_name") or metadata.get("model") or self._model_name)

    def _extract_usage(self, message: AIMessage) -> TokenUsage:
        usage = message.usage_metadata
        if not usage:
            return TokenUsage()
        prompt_tokens = int(usage.get("input_tokens", 0))
        completion_tokens = int(usage.get("output_tokens", 0))
        return TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=int(usage.get("total_tokens", prompt_tokens + completion_tokens)),
        )

    def _extract_finish_reason(self, message: AIMessage) -> FinishReason:
        metadata = message.response_metadata or {}
        raw = metadata.get("stop_reason") or metadata.get("finish_reason")
        # Backends that do not report a reason returned a complete message.
        if raw is None:
            return FinishReason.STOP
        return FinishReason.from_raw(str(raw))

    def __repr__(self) -> str:
        return (
            f"ChatModelProvider("
            f"name={self._provider_name!r}, "
            f"model={self._model_name!r})"
        )
