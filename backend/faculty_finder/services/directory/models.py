"""Data models for the faculty directory pipeline."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union


@dataclass
class Record:
    """One person found in a faculty directory."""
    full_name: str
    last_name: str
    email: Optional[str] = None
    profile_url: str = ""
    title: Optional[str] = None
    group_label: Optional[str] = None  # opaque passthrough, e.g. department
    image_url: Optional[str] = None  # never populated
    is_research_active: bool = True

    def to_dict(self) -> Dict[str, object]:
        return {
            "fullName": self.full_name,
            "lastName": self.last_name,
            "email": self.email,
            "profileUrl": self.profile_url,
            "title": self.title,
            "groupLabel": self.group_label,
            "imageUrl": self.image_url,
            "isResearchActive": self.is_research_active,
        }


@dataclass(frozen=True)
class CandidateURL:
    """A discovered absolute URL and its relation to the seed."""
    url: str
    same_host: bool
    classification: str  # profile, secondary_listing, ignored


@dataclass
class PageContent:
    """Scraped main-content text and outbound links of one page."""
    url: str
    text: str = ""
    links: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.text


@dataclass(frozen=True)
class PageTextTask:
    """Extract records from a scraped page."""
    url: str
    text: str
    links: Tuple[str, ...] = ()
    kind: str = "from_page_text"


@dataclass(frozen=True)
class URLListTask:
    """Infer records from a batch of profile URLs."""
    urls: Tuple[str, ...]
    kind: str = "from_url_list"


ExtractionTask = Union[PageTextTask, URLListTask]


@dataclass
class ResearchProfile:
    """Broad research summary for one person's profile page."""
    research_interests: str = "their research area"
    email: Optional[str] = None
    publications: List[str] = field(default_factory=list)
    summary: str = ""


@dataclass
class PipelineResult:
    """Final, merged outcome of one pipeline run."""
    records: List[Record] = field(default_factory=list)
    total: int = 0
    research_active: int = 0
    pages_scraped: int = 0
    profile_urls_found: int = 0
    listing_pages_found: int = 0
