from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List, Optional, Tuple


class Settings(BaseSettings):
    # Scraping service (Firecrawl)
    firecrawl_api_key: str = ""
    firecrawl_base_url: str = "https://api.firecrawl.dev/v1"

    # Completion service credentials
    openai_api_key: str = ""
    openai_base_url: str = ""  # empty = vendor default; point at an OpenAI-compatible gateway to override
    anthropic_api_key: str = ""
    gemini_api_key: str = ""

    # LLM model routing (provider:model, first valid pair wins)
    llm_completion_model: str = "openai:gpt-4.1-mini"

    # Scrape / map behaviour
    scrape_wait_ms: int = 5000
    scrape_timeout_ms: int = 30000
    scrape_http_timeout_seconds: float = 45.0
    map_result_limit: int = 5000
    map_include_subdomains: bool = True

    # Extraction bounds
    min_page_text_chars: int = 200
    page_text_char_cap: int = 50000
    page_link_cap: int = 300
    profile_batch_size: int = 100
    listing_pages_to_scrape: int = 10
    extraction_concurrency: int = 3

    # Completion timeout and retry policy
    completion_timeout_seconds: float = 30.0
    completion_max_attempts: int = 5
    completion_backoff_base_seconds: float = 1.0
    completion_backoff_cap_seconds: float = 30.0
    completion_backoff_jitter_seconds: float = 1.0

    # App
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    log_level: str = "INFO"
    debug: bool = False

    @staticmethod
    def _parse_provider_models(value: str) -> List[Tuple[str, str]]:
        pairs: List[Tuple[str, str]] = []
        for raw in str(value or "").split(","):
            token = raw.strip()
            if not token or ":" not in token:
                continue
            provider, model = token.split(":", 1)
            provider = provider.strip().lower()
            model = model.strip()
            if provider and model:
                pairs.append((provider, model))
        return pairs

    def completion_route(self) -> Tuple[str, str]:
        routes = self._parse_provider_models(self.llm_completion_model)
        return routes[0] if routes else ("openai", "gpt-4.1-mini")

    def provider_api_key(self, provider: str) -> str:
        mapping = {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "gemini": self.gemini_api_key,
        }
        return mapping.get(str(provider or "").strip().lower(), "")

    def missing_credentials(self) -> List[str]:
        """Names of credentials required by the pipeline that are not configured."""
        missing: List[str] = []
        if not self.firecrawl_api_key:
            missing.append("FIRECRAWL_API_KEY")
        provider, _model = self.completion_route()
        if not self.provider_api_key(provider):
            missing.append(f"{provider.upper()}_API_KEY")
        return missing

    def openai_base_url_or_none(self) -> Optional[str]:
        value = str(self.openai_base_url or "").strip()
        return value or None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
