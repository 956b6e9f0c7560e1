"""Faculty directory discovery-and-extraction pipeline."""

from .models import (
    Record,
    CandidateURL,
    PageContent,
    PageTextTask,
    URLListTask,
    ResearchProfile,
    PipelineResult,
)
from .pipeline import FacultyPipeline, assemble_result
from .fetcher import ContentFetcher
from .site_mapper import SiteMapper
from .classifier import classify_url, find_profile_urls, find_secondary_listing_pages
from .extractor import RecordExtractor
from .merge import merge_records, normalize_name
from .research import ResearchAnalyzer, ResearchAnalysisError

__all__ = [
    # Main entry points
    "FacultyPipeline",
    "ResearchAnalyzer",

    # Phase components
    "ContentFetcher",
    "SiteMapper",
    "RecordExtractor",
    "classify_url",
    "find_profile_urls",
    "find_secondary_listing_pages",
    "merge_records",
    "normalize_name",
    "assemble_result",

    # Data models
    "Record",
    "CandidateURL",
    "PageContent",
    "PageTextTask",
    "URLListTask",
    "ResearchProfile",
    "PipelineResult",

    # Errors
    "ResearchAnalysisError",
]
