from __future__ import annotations

from anthropic import APIStatusError, AsyncAnthropic

from faculty_finder.services.llm.types import LLMProviderError, classify_provider_error


class AnthropicProvider:
    name = "anthropic"

    def __init__(self, api_key: str) -> None:
        if not api_key:
            raise LLMProviderError("ANTHROPIC_API_KEY not configured", retryable=False)
        self._client = AsyncAnthropic(api_key=api_key)

    async def generate(
        self,
        *,
        model: str,
        system_prompt: str,
        prompt: str,
        timeout_seconds: float,
    ) -> str:
        try:
            response = await self._client.messages.create(
                model=model,
                max_tokens=8000,
                system=system_prompt,
                messages=[{"role": "user", "content": prompt}],
                timeout=timeout_seconds,
            )
        except APIStatusError as exc:
            raise classify_provider_error(exc, status_code=exc.status_code) from exc
        except Exception as exc:
            raise classify_provider_error(exc) from exc
        text_parts = []
        for block in getattr(response, "content", []) or []:
            value = getattr(block, "text", None)
            if value:
                text_parts.append(str(value))
        return "\n".join(text_parts).strip()
