from __future__ import annotations

from google import genai
from google.genai import errors, types

from faculty_finder.services.llm.types import LLMProviderError, classify_provider_error


class GeminiProvider:
    name = "gemini"

    def __init__(self, api_key: str) -> None:
        if not api_key:
            raise LLMProviderError("GEMINI_API_KEY not configured", retryable=False)
        self._client = genai.Client(api_key=api_key)

    async def generate(
        self,
        *,
        model: str,
        system_prompt: str,
        prompt: str,
        timeout_seconds: float,
    ) -> str:
        # Per-call timeout is enforced by the caller with asyncio.wait_for.
        del timeout_seconds
        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=prompt,
                config=types.GenerateContentConfig(system_instruction=system_prompt),
            )
        except errors.APIError as exc:
            raise classify_provider_error(
                exc,
                status_code=getattr(exc, "code", None),
                error_code=getattr(exc, "status", None),
            ) from exc
        except Exception as exc:
            raise classify_provider_error(exc) from exc
        return str(response.text or "").strip()
