"""Faculty pipeline - orchestrates discovery, classification, extraction and merge."""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence, TypeVar

from faculty_finder.config import Settings
from faculty_finder.services.retrieval.firecrawl import FirecrawlClient

from .classifier import find_profile_urls, find_secondary_listing_pages
from .constants import MAX_PROFILE_URLS_IN_PROMPT
from .extractor import RecordExtractor
from .fetcher import ContentFetcher
from .merge import merge_records
from .models import PageContent, PageTextTask, PipelineResult, Record, URLListTask
from .site_mapper import SiteMapper

logger = logging.getLogger(__name__)

T = TypeVar("T")

PIPELINE_STATES = ("idle", "mapping", "classifying", "extracting", "merging", "done")


def assemble_result(
    records: List[Record],
    *,
    pages_scraped: int = 0,
    profile_urls_found: int = 0,
    listing_pages_found: int = 0,
) -> PipelineResult:
    return PipelineResult(
        records=list(records),
        total=len(records),
        research_active=sum(1 for record in records if record.is_research_active),
        pages_scraped=pages_scraped,
        profile_urls_found=profile_urls_found,
        listing_pages_found=listing_pages_found,
    )


def chunked(items: Sequence[T], size: int) -> List[List[T]]:
    step = max(1, int(size))
    return [list(items[i:i + step]) for i in range(0, len(items), step)]


def ordered_union(*groups: Iterable[str]) -> List[str]:
    seen = set()
    merged: List[str] = []
    for group in groups:
        for link in group:
            if link and link not in seen:
                seen.add(link)
                merged.append(link)
    return merged


class FacultyPipeline:
    """
    One forward pass per request:

    1. Mapping - site map queries and the seed scrape, concurrently
    2. Classifying - profile URLs and secondary listing pages
    3. Extracting - seed text (A), profile URL batches (B), listing pages (C)
    4. Merging - dedupe by normalized name
    5. Done - totals
    """

    def __init__(
        self,
        settings: Settings,
        scraper: FirecrawlClient,
        completions,
        progress_callback: Optional[Callable[[str], None]] = None,
    ):
        self.settings = settings
        self.progress_callback = progress_callback
        self.fetcher = ContentFetcher(
            scraper,
            wait_ms=settings.scrape_wait_ms,
            timeout_ms=settings.scrape_timeout_ms,
            progress_callback=progress_callback,
        )
        self.mapper = SiteMapper(
            scraper,
            limit=settings.map_result_limit,
            include_subdomains=settings.map_include_subdomains,
            progress_callback=progress_callback,
        )
        self.extractor = RecordExtractor(completions, settings, progress_callback=progress_callback)
        self.state = "idle"

    def _log(self, message: str) -> None:
        logger.info(message)
        if self.progress_callback:
            self.progress_callback(message)

    def _enter(self, state: str) -> None:
        if PIPELINE_STATES.index(state) <= PIPELINE_STATES.index(self.state):
            raise RuntimeError(f"Pipeline cannot move from {self.state} to {state}")
        self.state = state

    def _has_text(self, page: PageContent) -> bool:
        return len(page.text) > self.settings.min_page_text_chars

    async def _run_batched(
        self,
        items: Sequence[T],
        worker: Callable[[T], Awaitable[List[Record]]],
    ) -> List[Record]:
        """Run `worker` over `items` in concurrent batches, one batch at a time."""
        records: List[Record] = []
        for batch in chunked(items, self.settings.extraction_concurrency):
            results = await asyncio.gather(*(worker(item) for item in batch), return_exceptions=True)
            failure: Optional[BaseException] = None
            for result in results:
                if isinstance(result, BaseException):
                    failure = failure or result
                else:
                    records.extend(result)
            if failure is not None:
                raise failure
        return records

    async def _extract_seed(self, seed_page: PageContent, group_label: Optional[str]) -> List[Record]:
        if not self._has_text(seed_page):
            self._log("Strategy A: seed page text too short, skipped")
            return []
        records = await self.extractor.extract_from_text(
            seed_page.text,
            seed_page.links,
            seed_page.url,
            group_label,
            surface_rate_limit=True,
        )
        self._log(f"Strategy A: found {len(records)} records on the seed page")
        return records

    async def _extract_profiles(self, profile_urls: List[str], group_label: Optional[str]) -> List[Record]:
        tasks = [
            URLListTask(urls=tuple(batch))
            for batch in chunked(profile_urls, min(self.settings.profile_batch_size, MAX_PROFILE_URLS_IN_PROMPT))
        ]
        records = await self._run_batched(tasks, lambda task: self.extractor.run_task(task, group_label))
        self._log(f"Strategy B: found {len(records)} records from {len(profile_urls)} profile URLs")
        return records

    async def _extract_listing_page(self, url: str, group_label: Optional[str]) -> List[Record]:
        page = await self.fetcher.fetch(url)
        if not self._has_text(page):
            return []
        task = PageTextTask(url=page.url, text=page.text, links=tuple(page.links))
        records = await self.extractor.run_task(task, group_label)
        self._log(f"Strategy C: found {len(records)} records on {url}")
        return records

    async def _extract_listings(self, listing_pages: List[str], group_label: Optional[str]) -> List[Record]:
        return await self._run_batched(
            listing_pages,
            lambda url: self._extract_listing_page(url, group_label),
        )

    async def run(self, seed_url: str, group_label: Optional[str] = None) -> PipelineResult:
        self._enter("mapping")
        self._log(f"Scraping faculty page: {seed_url}")
        seed_page, mapped = await asyncio.gather(
            self.fetcher.fetch(seed_url),
            self.mapper.map(seed_url),
        )
        self._log(
            f"Seed page: {len(seed_page.text)} chars, {len(seed_page.links)} links. "
            f"Map: {len(mapped)} URLs."
        )

        self._enter("classifying")
        links = ordered_union(seed_page.links, sorted(mapped))
        profile_urls = find_profile_urls(seed_url, links)
        listing_pages = find_secondary_listing_pages(seed_url, links)
        self._log(f"Found {len(profile_urls)} profile URLs and {len(listing_pages)} listing pages")

        self._enter("extracting")
        records: List[Record] = []
        records.extend(await self._extract_seed(seed_page, group_label))
        if profile_urls:
            records.extend(await self._extract_profiles(profile_urls, group_label))
        pages_to_scrape = listing_pages[: max(0, self.settings.listing_pages_to_scrape)]
        if pages_to_scrape:
            records.extend(await self._extract_listings(pages_to_scrape, group_label))

        self._enter("merging")
        merged = merge_records(records)

        self._enter("done")
        result = assemble_result(
            merged,
            pages_scraped=1 + len(pages_to_scrape),
            profile_urls_found=len(profile_urls),
            listing_pages_found=len(listing_pages),
        )
        self._log(
            f"Found {result.total} unique records ({result.research_active} research-active) "
            f"from {len(records)} extracted"
        )
        return result
