import asyncio

import pytest

from faculty_finder.config import Settings
from faculty_finder.services.llm.client import CompletionClient
from faculty_finder.services.llm.types import (
    CompletionRequest,
    LLMProviderError,
    QuotaExhaustedError,
    RateLimitedError,
    classify_provider_error,
    classify_rate_limited,
)


class _FakeProvider:
    def __init__(self, response="[]", delay=0.0):
        self._response = response
        self._delay = delay
        self.calls = []

    async def generate(self, *, model: str, system_prompt: str, prompt: str, timeout_seconds: float):
        self.calls.append({"model": model, "system_prompt": system_prompt, "prompt": prompt})
        if self._delay:
            await asyncio.sleep(self._delay)
        if isinstance(self._response, Exception):
            raise self._response
        return self._response


def _settings(**overrides):
    return Settings(_env_file=None, **overrides)


def test_client_routes_to_configured_provider(monkeypatch):
    client = CompletionClient(_settings(llm_completion_model="anthropic:claude-sonnet-4-5"))
    provider = _FakeProvider('[{"name": "Ada Lovelace"}]')
    requested = []

    def _provider(name):
        requested.append(name)
        return provider

    monkeypatch.setattr(client, "_provider", _provider)

    text = asyncio.run(client.complete(CompletionRequest(system_prompt="sys", user_prompt="Return JSON.")))

    assert text == '[{"name": "Ada Lovelace"}]'
    assert requested == ["anthropic"]
    assert provider.calls == [{"model": "claude-sonnet-4-5", "system_prompt": "sys", "prompt": "Return JSON."}]


def test_client_timeout_is_not_retryable(monkeypatch):
    client = CompletionClient(_settings())
    monkeypatch.setattr(client, "_provider", lambda _name: _FakeProvider(delay=5))

    with pytest.raises(LLMProviderError) as excinfo:
        asyncio.run(client.complete(CompletionRequest(system_prompt="s", user_prompt="p", timeout_seconds=1)))
    assert excinfo.value.retryable is False
    assert "timed out" in str(excinfo.value)


def test_client_propagates_provider_errors(monkeypatch):
    client = CompletionClient(_settings())
    monkeypatch.setattr(client, "_provider", lambda _name: _FakeProvider(RateLimitedError()))
    with pytest.raises(RateLimitedError):
        asyncio.run(client.complete(CompletionRequest(system_prompt="s", user_prompt="p")))


def test_unsupported_provider_is_rejected():
    client = CompletionClient(_settings())
    with pytest.raises(LLMProviderError):
        client._provider("mystery")


def test_classify_provider_error_maps_status_and_codes():
    assert isinstance(classify_provider_error(Exception("pay up"), status_code=402), QuotaExhaustedError)
    assert isinstance(
        classify_provider_error(Exception("quota"), status_code=429, error_code="insufficient_quota"),
        QuotaExhaustedError,
    )
    assert isinstance(classify_provider_error(Exception("slow down"), status_code=429), RateLimitedError)
    assert isinstance(classify_provider_error(Exception("RESOURCE_EXHAUSTED")), RateLimitedError)
    other = classify_provider_error(Exception("bad request"), status_code=400)
    assert type(other) is LLMProviderError
    assert other.retryable is False


def test_classify_rate_limited_ignores_quota_messages():
    assert classify_rate_limited(Exception("Rate limit reached for requests")) is True
    assert classify_rate_limited(Exception("429 insufficient_quota")) is False
    assert classify_rate_limited(QuotaExhaustedError()) is False
    assert classify_rate_limited(LLMProviderError("server error", status_code=500)) is False


def test_out_of_credit_messages_are_quota_errors():
    anthropic_credit = Exception("Your credit balance is too low to access the Anthropic API.")
    assert isinstance(classify_provider_error(anthropic_credit, status_code=400), QuotaExhaustedError)
    assert classify_rate_limited(anthropic_credit) is False
    openai_quota = Exception("You exceeded your current quota, please check your plan and billing details.")
    assert isinstance(classify_provider_error(openai_quota, status_code=429), QuotaExhaustedError)
