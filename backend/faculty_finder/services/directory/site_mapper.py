"""SiteMapper: union of several topical site-map queries."""

import asyncio
import logging
from typing import Callable, Optional, Sequence, Set

from faculty_finder.services.retrieval.firecrawl import FirecrawlClient

from .constants import MAP_QUERIES

logger = logging.getLogger(__name__)


class SiteMapper:
    """Runs map queries in parallel; failed queries are dropped, never retried."""

    def __init__(
        self,
        scraper: FirecrawlClient,
        queries: Sequence[str] = tuple(MAP_QUERIES),
        limit: int = 5000,
        include_subdomains: bool = True,
        progress_callback: Optional[Callable[[str], None]] = None,
    ):
        self.scraper = scraper
        self.queries = list(queries)
        self.limit = limit
        self.include_subdomains = include_subdomains
        self.progress_callback = progress_callback

    def _log(self, message: str) -> None:
        logger.info(message)
        if self.progress_callback:
            self.progress_callback(message)

    async def _run_query(self, seed_url: str, query: str) -> Set[str]:
        try:
            links = await self.scraper.map(
                seed_url,
                search=query or None,
                limit=self.limit,
                include_subdomains=self.include_subdomains,
            )
        except Exception as exc:
            logger.warning("Map query %r failed for %s: %s", query, seed_url, exc)
            return set()
        return set(links)

    async def map(self, seed_url: str) -> Set[str]:
        results = await asyncio.gather(
            *(self._run_query(seed_url, query) for query in self.queries)
        )
        urls: Set[str] = set()
        for links in results:
            urls.update(links)
        self._log(f"Map: {len(urls)} URLs from {len(self.queries)} queries")
        return urls
