from __future__ import annotations

from typing import Optional

from openai import APIStatusError, AsyncOpenAI

from faculty_finder.services.llm.types import LLMProviderError, classify_provider_error


class OpenAIProvider:
    """Chat-completions provider; also serves OpenAI-compatible gateways via `base_url`."""

    name = "openai"

    def __init__(self, api_key: str, base_url: Optional[str] = None) -> None:
        if not api_key:
            raise LLMProviderError("OPENAI_API_KEY not configured", retryable=False)
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def generate(
        self,
        *,
        model: str,
        system_prompt: str,
        prompt: str,
        timeout_seconds: float,
    ) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
                timeout=timeout_seconds,
            )
        except APIStatusError as exc:
            raise classify_provider_error(
                exc,
                status_code=exc.status_code,
                error_code=getattr(exc, "code", None),
            ) from exc
        except Exception as exc:
            raise classify_provider_error(exc) from exc
        content = response.choices[0].message.content if response.choices else ""
        return str(content or "").strip()
