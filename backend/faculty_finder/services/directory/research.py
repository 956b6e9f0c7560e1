"""Summarize one person's research interests from their profile page."""

import logging
from typing import Any, List, Optional

from faculty_finder.services.llm.types import (
    CompletionRequest,
    LLMProviderError,
    QuotaExhaustedError,
    RateLimitExhaustedError,
)

from .extractor import RecordExtractor, clean_email, extract_json_object
from .fetcher import ContentFetcher
from .models import ResearchProfile

logger = logging.getLogger(__name__)

RESEARCH_SYSTEM_PROMPT = (
    "You are an expert at understanding academic research and summarizing it in "
    "accessible terms. Always respond with valid JSON only."
)

PROFILE_TEXT_CHAR_CAP = 10000
PROFILE_WAIT_MS = 2000
MAX_PUBLICATIONS = 5


class ResearchAnalysisError(RuntimeError):
    pass


def _publications(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    titles = [str(item).strip() for item in value if isinstance(item, str) and item.strip()]
    return titles[:MAX_PUBLICATIONS]


def parse_research_profile(response_text: str) -> ResearchProfile:
    profile = ResearchProfile()
    data = extract_json_object(response_text)
    if data is None:
        logger.warning("No JSON object in research analysis output")
        return profile
    interests = data.get("researchInterests")
    if isinstance(interests, str) and interests.strip():
        profile.research_interests = interests.strip()
    profile.email = clean_email(data.get("email"))
    profile.publications = _publications(data.get("publications"))
    summary = data.get("summary")
    if isinstance(summary, str):
        profile.summary = summary.strip()
    return profile


class ResearchAnalyzer:
    def __init__(self, fetcher: ContentFetcher, extractor: RecordExtractor):
        self.fetcher = fetcher
        self.extractor = extractor

    def build_prompt(self, professor_name: Optional[str], text: str) -> str:
        return f"""You are analyzing a university professor's profile page. Identify their research interests and summarize them in EXTREMELY BROAD terms that a high school student could understand and express interest in.

Professor: {professor_name or 'Unknown'}
Profile content:
{text[:PROFILE_TEXT_CHAR_CAP]}

INSTRUCTIONS:
1. Identify the main research areas from stated interests, publications, lab/group descriptions and courses.
2. Summarize them into ONE OR TWO extremely broad phrases, e.g. "machine learning and artificial intelligence", "cancer biology and treatment", "climate science".
3. Extract their email if visible on the page.

Respond with JSON only:
{{"researchInterests": "one or two broad phrases", "email": "email@university.edu or null", "publications": ["3-5 recent publication titles if visible"], "summary": "2-3 sentence summary of their research focus"}}"""

    async def analyze(self, profile_url: str, professor_name: Optional[str] = None) -> ResearchProfile:
        """
        Fetch the profile page and ask the completion service for a broad summary.

        Rate-limit exhaustion and quota errors propagate to the caller; an
        unreadable page or any other completion failure raises
        ResearchAnalysisError.
        """
        page = await self.fetcher.fetch(profile_url, include_links=False, wait_ms=PROFILE_WAIT_MS)
        if page.is_empty:
            raise ResearchAnalysisError("Failed to scrape professor profile")
        request = CompletionRequest(
            system_prompt=RESEARCH_SYSTEM_PROMPT,
            user_prompt=self.build_prompt(professor_name, page.text),
            timeout_seconds=self.extractor.settings.completion_timeout_seconds,
            metadata={"profile_url": profile_url},
        )
        try:
            response = await self.extractor.complete_with_retry(request, f"research {profile_url}")
        except (QuotaExhaustedError, RateLimitExhaustedError):
            raise
        except LLMProviderError as exc:
            raise ResearchAnalysisError("Failed to analyze research interests") from exc
        logger.info("Research analysis complete for %s", professor_name or profile_url)
        return parse_research_profile(response)
