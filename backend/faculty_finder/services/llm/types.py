from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class CompletionRequest:
    system_prompt: str
    user_prompt: str
    timeout_seconds: float = 30.0
    metadata: Dict[str, Any] = field(default_factory=dict)


class LLMProviderError(RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        retryable: bool = False,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.retryable = retryable
        self.status_code = status_code


class RateLimitedError(LLMProviderError):
    def __init__(self, message: str = "rate limited", *, status_code: Optional[int] = 429) -> None:
        super().__init__(message, retryable=True, status_code=status_code)


class QuotaExhaustedError(LLMProviderError):
    def __init__(self, message: str = "quota exhausted", *, status_code: Optional[int] = 402) -> None:
        super().__init__(message, retryable=False, status_code=status_code)


class RateLimitExhaustedError(RuntimeError):
    def __init__(self, message: str, *, attempts: int = 0) -> None:
        super().__init__(message)
        self.attempts = attempts


QUOTA_MESSAGE_MARKERS = ("insufficient_quota", "credit balance is too low", "exceeded your current quota")


def _mentions_quota(exc: Exception) -> bool:
    text = str(exc).lower()
    return any(marker in text for marker in QUOTA_MESSAGE_MARKERS)


def classify_provider_error(
    exc: Exception,
    *,
    status_code: Optional[int] = None,
    error_code: Optional[str] = None,
) -> LLMProviderError:
    """Map an SDK/transport failure onto the completion error taxonomy."""
    code = str(error_code or "").lower()
    if status_code == 402 or code == "insufficient_quota" or _mentions_quota(exc):
        return QuotaExhaustedError(str(exc), status_code=status_code)
    if status_code == 429:
        return RateLimitedError(str(exc), status_code=status_code)
    if status_code is None and classify_rate_limited(exc):
        return RateLimitedError(str(exc), status_code=None)
    return LLMProviderError(str(exc), retryable=False, status_code=status_code)


def classify_rate_limited(exc: Exception) -> bool:
    if isinstance(exc, QuotaExhaustedError):
        return False
    if isinstance(exc, RateLimitedError):
        return True
    if isinstance(exc, LLMProviderError) and exc.status_code is not None:
        return exc.status_code == 429
    text = str(exc).lower()
    if _mentions_quota(exc):
        return False
    if "rate limit" in text or "429" in text or "resource_exhausted" in text:
        return True
    return False
