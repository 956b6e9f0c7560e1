"""Faculty API routes - directory scraping and research analysis."""
import logging
from typing import AsyncIterator, List, Optional
from urllib.parse import urlparse

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field

from faculty_finder.config import Settings, get_settings
from faculty_finder.services.directory import (
    ContentFetcher,
    FacultyPipeline,
    RecordExtractor,
    ResearchAnalysisError,
    ResearchAnalyzer,
)
from faculty_finder.services.llm.client import CompletionClient
from faculty_finder.services.llm.types import QuotaExhaustedError, RateLimitExhaustedError
from faculty_finder.services.retrieval.firecrawl import FirecrawlClient

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_MESSAGE = "Rate limit exceeded after retries. Please try again later."
QUOTA_MESSAGE = "AI credits exhausted. Please add credits to continue."


# ============================================================================
# Pydantic Schemas
# ============================================================================

class ScrapeFacultyRequest(BaseModel):
    faculty_url: Optional[str] = Field(default=None, alias="facultyUrl")
    group_label: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("groupLabel", "department", "group_label"),
    )

    class Config:
        populate_by_name = True


class RecordResponse(BaseModel):
    full_name: str = Field(alias="fullName")
    last_name: str = Field(alias="lastName")
    email: Optional[str] = None
    profile_url: str = Field(default="", alias="profileUrl")
    title: Optional[str] = None
    group_label: Optional[str] = Field(default=None, alias="groupLabel")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    is_research_active: bool = Field(default=True, alias="isResearchActive")

    class Config:
        populate_by_name = True


class ScrapeFacultyResponse(BaseModel):
    success: bool = True
    records: List[RecordResponse] = Field(default_factory=list)
    total: int = 0
    research_active: int = Field(default=0, alias="researchActive")
    pages_scraped: int = Field(default=0, alias="pagesScraped")
    profile_urls_found: int = Field(default=0, alias="profileUrlsFound")

    class Config:
        populate_by_name = True


class AnalyzeResearchRequest(BaseModel):
    profile_url: Optional[str] = Field(default=None, alias="profileUrl")
    professor_name: Optional[str] = Field(default=None, alias="professorName")

    class Config:
        populate_by_name = True


class AnalyzeResearchResponse(BaseModel):
    success: bool = True
    research_interests: str = Field(alias="researchInterests")
    email: Optional[str] = None
    publications: List[str] = Field(default_factory=list)
    summary: str = ""

    class Config:
        populate_by_name = True


# ============================================================================
# Dependencies
# ============================================================================

async def get_scrape_client(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[FirecrawlClient]:
    async with httpx.AsyncClient(timeout=settings.scrape_http_timeout_seconds) as client:
        yield FirecrawlClient(client, settings.firecrawl_api_key, settings.firecrawl_base_url)


def get_completion_client(settings: Settings = Depends(get_settings)) -> CompletionClient:
    return CompletionClient(settings)


# ============================================================================
# Helpers
# ============================================================================

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _absolute_url(raw_url: Optional[str]) -> Optional[str]:
    normalized = str(raw_url or "").strip()
    if not normalized:
        return None
    if not normalized.startswith(("http://", "https://")):
        normalized = f"https://{normalized}"
    parsed = urlparse(normalized)
    if not parsed.netloc or "." not in parsed.netloc:
        return None
    return normalized


def _credentials_error(settings: Settings) -> Optional[JSONResponse]:
    missing = settings.missing_credentials()
    if missing:
        return _error(500, f"{', '.join(missing)} not configured")
    return None


# ============================================================================
# Routes
# ============================================================================

@router.post("/scrape-faculty", response_model=ScrapeFacultyResponse)
async def scrape_faculty(
    payload: ScrapeFacultyRequest,
    settings: Settings = Depends(get_settings),
    scraper: FirecrawlClient = Depends(get_scrape_client),
    completions: CompletionClient = Depends(get_completion_client),
):
    """Discover and extract faculty records starting from a directory URL."""
    if not str(payload.faculty_url or "").strip():
        return _error(400, "Faculty URL is required")
    seed_url = _absolute_url(payload.faculty_url)
    if seed_url is None:
        return _error(400, "Faculty URL must be an absolute URL")
    config_error = _credentials_error(settings)
    if config_error is not None:
        return config_error

    pipeline = FacultyPipeline(settings, scraper, completions)
    try:
        result = await pipeline.run(seed_url, payload.group_label)
    except RateLimitExhaustedError:
        return _error(429, RATE_LIMIT_MESSAGE)
    except QuotaExhaustedError:
        return _error(402, QUOTA_MESSAGE)
    except Exception as exc:
        logger.exception("Error scraping faculty: %s", seed_url)
        return _error(500, str(exc) or "Failed to scrape faculty")

    return ScrapeFacultyResponse(
        success=True,
        records=[RecordResponse(**record.to_dict()) for record in result.records],
        total=result.total,
        research_active=result.research_active,
        pages_scraped=result.pages_scraped,
        profile_urls_found=result.profile_urls_found,
    )


@router.post("/analyze-research", response_model=AnalyzeResearchResponse)
async def analyze_research(
    payload: AnalyzeResearchRequest,
    settings: Settings = Depends(get_settings),
    scraper: FirecrawlClient = Depends(get_scrape_client),
    completions: CompletionClient = Depends(get_completion_client),
):
    """Summarize a person's research interests from their profile page."""
    profile_url = _absolute_url(payload.profile_url)
    if profile_url is None:
        return _error(400, "Profile URL is required")
    config_error = _credentials_error(settings)
    if config_error is not None:
        return config_error

    fetcher = ContentFetcher(scraper, timeout_ms=settings.scrape_timeout_ms)
    analyzer = ResearchAnalyzer(fetcher, RecordExtractor(completions, settings))
    try:
        profile = await analyzer.analyze(profile_url, payload.professor_name)
    except RateLimitExhaustedError:
        return _error(429, RATE_LIMIT_MESSAGE)
    except QuotaExhaustedError:
        return _error(402, QUOTA_MESSAGE)
    except ResearchAnalysisError as exc:
        return _error(500, str(exc))
    except Exception as exc:
        logger.exception("Error analyzing research: %s", profile_url)
        return _error(500, str(exc) or "Failed to analyze research")

    return AnalyzeResearchResponse(
        success=True,
        research_interests=profile.research_interests,
        email=profile.email,
        publications=profile.publications,
        summary=profile.summary,
    )
