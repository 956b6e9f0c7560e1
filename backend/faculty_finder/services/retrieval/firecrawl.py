from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx


class ScrapeServiceError(RuntimeError):
    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FirecrawlClient:
    """Thin async client for the Firecrawl scrape and map endpoints."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        base_url: str = "https://api.firecrawl.dev/v1",
    ) -> None:
        self.client = client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self.client.post(f"{self.base_url}{path}", headers=self._headers(), json=payload)
        try:
            data = resp.json()
        except ValueError as exc:
            raise ScrapeServiceError(
                f"{path}: malformed payload (HTTP {resp.status_code})",
                status_code=resp.status_code,
            ) from exc
        if resp.status_code != 200 or not isinstance(data, dict) or not data.get("success", False):
            detail = data.get("error") if isinstance(data, dict) else None
            raise ScrapeServiceError(
                f"{path}: HTTP {resp.status_code} {detail or ''}".strip(),
                status_code=resp.status_code,
            )
        return data

    async def scrape(
        self,
        url: str,
        *,
        only_main_content: bool = True,
        include_links: bool = True,
        wait_ms: int = 5000,
        timeout_ms: int = 30000,
    ) -> Dict[str, Any]:
        """Render `url` and return `{"markdown": str, "links": [str]}`."""
        formats = ["markdown", "links"] if include_links else ["markdown"]
        payload = {
            "url": url,
            "formats": formats,
            "onlyMainContent": only_main_content,
            "waitFor": wait_ms,
            "timeout": timeout_ms,
        }
        data = await self._post("/scrape", payload)
        body = data.get("data") if isinstance(data.get("data"), dict) else data
        markdown = body.get("markdown") or ""
        links = body.get("links") or []
        if not isinstance(markdown, str) or not isinstance(links, list):
            raise ScrapeServiceError("/scrape: malformed payload")
        return {"markdown": markdown, "links": [str(link) for link in links if link]}

    async def map(
        self,
        url: str,
        *,
        search: Optional[str] = None,
        limit: int = 5000,
        include_subdomains: bool = True,
    ) -> List[str]:
        """Enumerate site URLs, optionally ranked by a search phrase."""
        payload: Dict[str, Any] = {
            "url": url,
            "limit": limit,
            "includeSubdomains": include_subdomains,
        }
        if search:
            payload["search"] = search
        data = await self._post("/map", payload)
        links = data.get("links") or []
        if not isinstance(links, list):
            raise ScrapeServiceError("/map: malformed payload")
        result: List[str] = []
        for item in links:
            # Newer API versions return objects rather than bare strings.
            if isinstance(item, dict):
                item = item.get("url")
            if item:
                result.append(str(item))
        return result
