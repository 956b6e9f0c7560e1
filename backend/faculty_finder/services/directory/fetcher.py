"""ContentFetcher: scrape one page into main-content text and links."""

import logging
from typing import Callable, Optional

from faculty_finder.services.retrieval.firecrawl import FirecrawlClient

from .models import PageContent

logger = logging.getLogger(__name__)


class ContentFetcher:
    """Never raises for collaborator failures; empty text means nothing to extract."""

    def __init__(
        self,
        scraper: FirecrawlClient,
        wait_ms: int = 5000,
        timeout_ms: int = 30000,
        progress_callback: Optional[Callable[[str], None]] = None,
    ):
        self.scraper = scraper
        self.wait_ms = wait_ms
        self.timeout_ms = timeout_ms
        self.progress_callback = progress_callback

    def _log(self, message: str) -> None:
        logger.info(message)
        if self.progress_callback:
            self.progress_callback(message)

    async def fetch(self, url: str, *, include_links: bool = True, wait_ms: Optional[int] = None) -> PageContent:
        try:
            data = await self.scraper.scrape(
                url,
                only_main_content=True,
                include_links=include_links,
                wait_ms=self.wait_ms if wait_ms is None else wait_ms,
                timeout_ms=self.timeout_ms,
            )
        except Exception as exc:
            logger.warning("Scrape failed for %s: %s", url, exc)
            return PageContent(url=url)
        page = PageContent(url=url, text=data["markdown"], links=list(data["links"]))
        self._log(f"Scraped {url}: {len(page.text)} chars, {len(page.links)} links")
        return page
