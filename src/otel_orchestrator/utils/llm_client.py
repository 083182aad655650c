"""Async text-completion client shared by all workers."""

import logging
import os
from typing import Any, Literal

from anthropic import AsyncAnthropic
import openai
from pydantic import BaseModel, ConfigDict

from otel_orchestrator.agents.exceptions import AgentError, LLMClientError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_MAX_TOKENS = 4000


class LLMResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    input_tokens: int = 0
    output_tokens: int = 0
    provider: str = "anthropic"


class LLMClient:
    """Completion client with optional fallback between Anthropic and OpenAI.

    Constructed once per run and passed to every worker.
    """

    def __init__(
        self,
        api_key: str | None = None,
        openai_api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        llm_provider: str = "auto",
        llm_fallback_provider: str | None = None,
        allow_fallback: bool = False,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Anthropic API key. Falls back to ANTHROPIC_API_KEY or
                CLAUDE_CODE_OAUTH_TOKEN.
            openai_api_key: OpenAI API key. Falls back to OPENAI_API_KEY.
            model: Model ID for completions.
            llm_provider: "auto", "anthropic" or "openai".
            llm_fallback_provider: Provider to try when the primary fails.
            allow_fallback: Whether the fallback provider may be used.

        Raises:
            AgentError: If no API key is found for any provider.
            LLMClientError: If the requested provider has no key.
        """
        self.model = model
        self.api_key: str | None = (
            api_key
            or os.getenv("ANTHROPIC_API_KEY")
            or os.getenv("CLAUDE_CODE_OAUTH_TOKEN")
        )
        self.openai_api_key: str | None = openai_api_key or os.getenv("OPENAI_API_KEY")
        self._anthropic_client: AsyncAnthropic | None = None
        self._openai_client: openai.AsyncOpenAI | None = None

        if self.api_key:
            self._anthropic_client = AsyncAnthropic(api_key=self.api_key)
        if self.openai_api_key:
            self._openai_client = openai.AsyncOpenAI(api_key=self.openai_api_key)

        if not (self._anthropic_client or self._openai_client):
            raise AgentError(
                "No Anthropic or OpenAI API key found. "
                "Provide via parameters, ANTHROPIC_API_KEY, CLAUDE_CODE_OAUTH_TOKEN, "
                "or OPENAI_API_KEY env vars."
            )

        self.llm_provider = self._normalize_provider(llm_provider)
        self.llm_fallback_provider = (
            self._normalize_provider(llm_fallback_provider)
            if llm_fallback_provider
            else None
        )
        self.allow_fallback = bool(allow_fallback)

        if self.llm_provider == "anthropic" and self._anthropic_client is None:
            raise LLMClientError("No Anthropic API key found for --llm-provider=anthropic.")
        if self.llm_provider == "openai" and self._openai_client is None:
            raise LLMClientError("No OpenAI API key found for --llm-provider=openai.")
        if self.allow_fallback and self.llm_fallback_provider:
            if self.llm_fallback_provider == "anthropic" and self._anthropic_client is None:
                raise LLMClientError(
                    "Fallback provider requested as anthropic but ANTHROPIC_API_KEY is not set."
                )
            if self.llm_fallback_provider == "openai" and self._openai_client is None:
                raise LLMClientError(
                    "Fallback provider requested as openai but OPENAI_API_KEY is not set."
                )

    def _normalize_provider(self, value: str) -> Literal["anthropic", "openai", "auto"]:
        if value not in {"auto", "anthropic", "openai"}:
            raise LLMClientError(f"Unsupported provider: {value}")
        return value

    def _primary_provider(self) -> Literal["anthropic", "openai"]:
        if self.llm_provider == "auto":
            if self._anthropic_client is not None:
                return "anthropic"
            return "openai"
        return self.llm_provider

    def _resolve_model(self, provider: str) -> str:
        if provider == "openai" and self.model.startswith("claude-"):
            return DEFAULT_OPENAI_MODEL
        return self.model

    def provider_chain(self) -> list[str]:
        chain: list[str] = [self._primary_provider()]
        if self.allow_fallback and self.llm_fallback_provider:
            if self.llm_fallback_provider != chain[0]:
                chain.append(self.llm_fallback_provider)
        return chain

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> LLMResponse:
        """Run one completion, trying the fallback provider if allowed.

        Args:
            system_prompt: System instructions.
            user_prompt: User message.
            max_tokens: Response token budget.

        Returns:
            LLMResponse with the joined text content.

        Raises:
            LLMClientError: If every provider in the chain fails.
        """
        last_error: Exception | None = None
        for provider in self.provider_chain():
            try:
                if provider == "anthropic":
                    return await self._complete_anthropic(system_prompt, user_prompt, max_tokens)
                return await self._complete_openai(system_prompt, user_prompt, max_tokens)
            except Exception as error:
                last_error = error
                logger.warning("Completion via %s failed: %s", provider, error)

        raise LLMClientError(f"LLM API error: {last_error}") from last_error

    async def _complete_anthropic(
        self, system_prompt: str, user_prompt: str, max_tokens: int
    ) -> LLMResponse:
        if self._anthropic_client is None:
            raise LLMClientError("Anthropic client unavailable")
        response = await self._anthropic_client.messages.create(
            model=self._resolve_model("anthropic"),
            max_tokens=max_tokens,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        text = "\n".join(
            block.text for block in response.content if block.type == "text"
        )
        usage: Any = getattr(response, "usage", None)
        return LLMResponse(
            content=text,
            input_tokens=getattr(usage, "input_tokens", 0) or 0,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
            provider="anthropic",
        )

    async def _complete_openai(
        self, system_prompt: str, user_prompt: str, max_tokens: int
    ) -> LLMResponse:
        if self._openai_client is None:
            raise LLMClientError("OpenAI client unavailable")
        response = await self._openai_client.chat.completions.create(
            model=self._resolve_model("openai"),
            max_tokens=max_tokens,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )
        usage: Any = getattr(response, "usage", None)
        return LLMResponse(
            content=response.choices[0].message.content or "",
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            provider="openai",
        )
