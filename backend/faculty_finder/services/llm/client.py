from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, Tuple

from faculty_finder.config import Settings
from faculty_finder.services.llm.providers.anthropic_provider import AnthropicProvider
from faculty_finder.services.llm.providers.gemini_provider import GeminiProvider
from faculty_finder.services.llm.providers.openai_provider import OpenAIProvider
from faculty_finder.services.llm.types import CompletionRequest, LLMProviderError

logger = logging.getLogger(__name__)


class CompletionClient:
    """Routes a completion request to the configured provider and bounds it by a timeout."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._providers: Dict[str, object] = {}

    def _provider(self, name: str):
        key = str(name or "").strip().lower()
        if key in self._providers:
            return self._providers[key]
        if key == "openai":
            instance = OpenAIProvider(
                self._settings.openai_api_key,
                base_url=self._settings.openai_base_url_or_none(),
            )
        elif key == "anthropic":
            instance = AnthropicProvider(self._settings.anthropic_api_key)
        elif key == "gemini":
            instance = GeminiProvider(self._settings.gemini_api_key)
        else:
            raise LLMProviderError(f"Unsupported LLM provider: {name}", retryable=False)
        self._providers[key] = instance
        return instance

    def _route(self) -> Tuple[str, str]:
        return self._settings.completion_route()

    async def complete(self, request: CompletionRequest) -> str:
        provider_name, model = self._route()
        provider = self._provider(provider_name)
        timeout = max(1.0, float(request.timeout_seconds))
        t0 = time.perf_counter()
        try:
            text = await asyncio.wait_for(
                provider.generate(
                    model=model,
                    system_prompt=request.system_prompt,
                    prompt=request.user_prompt,
                    timeout_seconds=timeout,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            raise LLMProviderError(
                f"{provider_name}:{model} timed out after {timeout:.0f}s",
                retryable=False,
            ) from exc
        logger.debug(
            "Completion %s:%s returned %d chars in %dms",
            provider_name,
            model,
            len(text),
            int((time.perf_counter() - t0) * 1000),
        )
        return text
