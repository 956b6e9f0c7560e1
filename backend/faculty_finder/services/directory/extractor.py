"""LLM-backed record extraction from page text and from profile URL slugs."""

import json
import logging
from typing import Any, Callable, List, Optional, Sequence
from urllib.parse import urljoin

from faculty_finder.config import Settings
from faculty_finder.services.llm.retry import retry_with_backoff
from faculty_finder.services.llm.types import (
    CompletionRequest,
    LLMProviderError,
    QuotaExhaustedError,
    RateLimitExhaustedError,
    classify_rate_limited,
)

from .constants import MAX_PROFILE_URLS_IN_PROMPT, NON_RESEARCH_TITLE_MARKERS
from .models import ExtractionTask, PageTextTask, Record, URLListTask

logger = logging.getLogger(__name__)

PAGE_SYSTEM_PROMPT = (
    "You extract structured data from university faculty web pages. "
    "Always respond with valid JSON only. Extract EVERY faculty member."
)

URL_LIST_SYSTEM_PROMPT = (
    "You extract structured data from URLs. Always respond with valid JSON only."
)


def _scan_balanced(text: str, start: int, open_char: str, close_char: str) -> Optional[str]:
    """Return the balanced substring starting at `start`, honoring JSON strings."""
    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == open_char:
            depth += 1
        elif ch == close_char:
            depth -= 1
            if depth == 0:
                return text[start:idx + 1]
    return None


def _first_json(text: str, open_char: str, close_char: str, expected: type) -> Optional[Any]:
    source = str(text or "")
    idx = source.find(open_char)
    while idx != -1:
        candidate = _scan_balanced(source, idx, open_char, close_char)
        if candidate is not None:
            try:
                value = json.loads(candidate)
            except json.JSONDecodeError:
                value = None
            if isinstance(value, expected):
                return value
        idx = source.find(open_char, idx + 1)
    return None


def extract_json_array(text: str) -> Optional[List[Any]]:
    """First well-formed JSON array embedded in free-form model output."""
    return _first_json(text, "[", "]", list)


def extract_json_object(text: str) -> Optional[dict]:
    """First well-formed JSON object embedded in free-form model output."""
    return _first_json(text, "{", "}", dict)


def _clean_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    if not text or text.lower() in {"null", "none", "n/a"}:
        return None
    return text


def clean_email(value: Any) -> Optional[str]:
    text = _clean_str(value)
    if not text:
        return None
    if text.lower().startswith("mailto:"):
        text = text[len("mailto:"):]
    return text if "@" in text else None


def _coerce_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def title_suggests_inactive(title: Optional[str]) -> bool:
    lowered = str(title or "").lower()
    return any(marker in lowered for marker in NON_RESEARCH_TITLE_MARKERS)


def coerce_record(
    item: Any,
    group_label: Optional[str],
    base_url: str = "",
) -> Optional[Record]:
    """Validate one model-produced object against the Record schema, or None."""
    if not isinstance(item, dict):
        return None
    full_name = _clean_str(item.get("name") or item.get("fullName") or item.get("full_name"))
    if not full_name:
        return None
    full_name = " ".join(full_name.split())
    title = _clean_str(item.get("title"))
    profile_url = _clean_str(item.get("profileUrl") or item.get("profile_url")) or ""
    if profile_url and base_url:
        profile_url = urljoin(base_url, profile_url)
    research_active = _coerce_bool(item.get("isResearchActive"))
    if research_active is None:
        research_active = not title_suggests_inactive(title)
    return Record(
        full_name=full_name,
        last_name=full_name.split()[-1],
        email=clean_email(item.get("email")),
        profile_url=profile_url,
        title=title,
        group_label=group_label,
        image_url=None,
        is_research_active=research_active,
    )


def parse_records(
    response_text: str,
    group_label: Optional[str],
    base_url: str = "",
) -> List[Record]:
    items = extract_json_array(response_text)
    if items is None:
        logger.warning("No JSON array in completion output (%d chars)", len(response_text or ""))
        return []
    records: List[Record] = []
    for item in items:
        record = coerce_record(item, group_label, base_url)
        if record is not None:
            records.append(record)
    return records


class RecordExtractor:
    """Turns scraped text or bare profile URLs into Records via the completion service."""

    def __init__(
        self,
        completions,
        settings: Settings,
        progress_callback: Optional[Callable[[str], None]] = None,
    ):
        self.completions = completions
        self.settings = settings
        self.progress_callback = progress_callback

    def _log(self, message: str) -> None:
        logger.info(message)
        if self.progress_callback:
            self.progress_callback(message)

    async def complete_with_retry(self, request: CompletionRequest, label: str) -> str:
        """
        One completion call under the shared rate-limit retry policy.

        Raises RateLimitExhaustedError when every attempt was rate limited;
        quota and other provider errors propagate unchanged.
        """
        settings = self.settings
        try:
            return await retry_with_backoff(
                lambda: self.completions.complete(request),
                max_attempts=settings.completion_max_attempts,
                base_delay=settings.completion_backoff_base_seconds,
                max_delay=settings.completion_backoff_cap_seconds,
                jitter=settings.completion_backoff_jitter_seconds,
                is_retryable=classify_rate_limited,
                label=label,
            )
        except LLMProviderError as exc:
            if isinstance(exc, QuotaExhaustedError) or not classify_rate_limited(exc):
                raise
            raise RateLimitExhaustedError(
                f"Rate limit exceeded after {settings.completion_max_attempts} attempts ({label})",
                attempts=settings.completion_max_attempts,
            ) from exc

    async def _complete_or_none(
        self,
        request: CompletionRequest,
        label: str,
        surface_rate_limit: bool,
    ) -> Optional[str]:
        try:
            return await self.complete_with_retry(request, label)
        except QuotaExhaustedError:
            raise
        except RateLimitExhaustedError as exc:
            self._log(f"All retries exhausted for {label}")
            if surface_rate_limit:
                raise
            logger.debug("Dropping %s after rate limit exhaustion: %s", label, exc)
            return None
        except LLMProviderError as exc:
            logger.warning("Completion failed for %s: %s", label, exc)
            return None

    def build_page_prompt(self, text: str, links: Sequence[str], page_url: str) -> str:
        content = str(text or "")[: max(0, self.settings.page_text_char_cap)]
        sample = list(links or [])[: max(0, self.settings.page_link_cap)]
        return f"""You are analyzing a university faculty directory page. Extract ALL professors/faculty members.

For each person found, extract:
1. Full name
2. Email address (if visible)
3. Profile page URL (match by name against the links provided)
4. Title/position
5. Whether they appear research-active. Emeritus, visiting, adjunct and "Professor of Practice" titles are NOT research-active; lecturers only if research-focused.

Page URL: {page_url}

Content:
{content}

Available links:
{json.dumps(sample)}

Respond with a JSON array of objects:
{{"name": "Full Name", "email": "email@university.edu or null", "profileUrl": "URL or null", "title": "Academic title or null", "isResearchActive": true}}

Include ALL faculty members. Do not skip anyone."""

    def build_url_list_prompt(self, urls: Sequence[str]) -> str:
        numbered = "\n".join(f"{i + 1}. {url}" for i, url in enumerate(urls))
        return f"""You are analyzing a list of university faculty profile page URLs. Infer each person's information from the URL itself.

For each URL, determine:
1. The person's full name from the URL slug (e.g. /john-smith/ -> "John Smith")
2. Whether they are likely research-active (assume yes unless the URL suggests emeritus/adjunct/visiting/lecturer)

Profile URLs:
{numbered}

Respond with a JSON array of objects:
{{"name": "Full Name", "profileUrl": "the URL", "title": null, "isResearchActive": true}}

Skip URLs that clearly do not name a person. Include everyone else."""

    async def extract_from_text(
        self,
        text: str,
        links: Sequence[str],
        page_url: str,
        group_label: Optional[str],
        *,
        surface_rate_limit: bool = False,
    ) -> List[Record]:
        request = CompletionRequest(
            system_prompt=PAGE_SYSTEM_PROMPT,
            user_prompt=self.build_page_prompt(text, links, page_url),
            timeout_seconds=self.settings.completion_timeout_seconds,
            metadata={"page_url": page_url},
        )
        response = await self._complete_or_none(request, f"page {page_url}", surface_rate_limit)
        if response is None:
            return []
        return parse_records(response, group_label, base_url=page_url)

    async def extract_from_url_list(
        self,
        urls: Sequence[str],
        group_label: Optional[str],
    ) -> List[Record]:
        batch = list(urls)[:MAX_PROFILE_URLS_IN_PROMPT]
        if not batch:
            return []
        request = CompletionRequest(
            system_prompt=URL_LIST_SYSTEM_PROMPT,
            user_prompt=self.build_url_list_prompt(batch),
            timeout_seconds=self.settings.completion_timeout_seconds,
            metadata={"url_count": len(batch)},
        )
        response = await self._complete_or_none(request, f"{len(batch)} profile URLs", False)
        if response is None:
            return []
        records = parse_records(response, group_label)
        # Slugs carry names only; anything else the model offers is a guess.
        for record in records:
            record.email = None
            record.title = None
        return records

    async def run_task(self, task: ExtractionTask, group_label: Optional[str]) -> List[Record]:
        if isinstance(task, PageTextTask):
            return await self.extract_from_text(task.text, task.links, task.url, group_label)
        if isinstance(task, URLListTask):
            return await self.extract_from_url_list(task.urls, group_label)
        raise TypeError(f"Unsupported extraction task: {task!r}")
