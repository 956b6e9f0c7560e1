"""URL classification: profile pages vs. secondary listing pages."""

import re
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple
from urllib.parse import urljoin, urlparse

from .constants import (
    ASSET_PATTERNS,
    LISTING_KEYWORDS,
    MAX_LISTING_PAGES,
    MAX_LISTING_PATH_DEPTH,
    PAGINATION_PATTERNS,
    PROFILE_EXCLUDE_PATTERNS,
    PROFILE_PATTERNS,
)
from .models import CandidateURL

PROFILE = "profile"
SECONDARY_LISTING = "secondary_listing"
IGNORED = "ignored"


def _compile(patterns: Sequence[Tuple[str, str]]) -> List[Tuple[Pattern, str]]:
    return [(re.compile(pattern, re.IGNORECASE), purpose) for pattern, purpose in patterns]


_PROFILE_RULES = _compile(PROFILE_PATTERNS)
_PROFILE_EXCLUDE_RULES = _compile(
    list(PROFILE_EXCLUDE_PATTERNS)
    + [(r"/(" + "|".join(LISTING_KEYWORDS) + r"|departments)/?$", "listing segment")]
)
_PAGINATION_RULES = _compile(PAGINATION_PATTERNS)
_ASSET_RULES = _compile(ASSET_PATTERNS)


def first_match(rules: Sequence[Tuple[Pattern, str]], value: str) -> Optional[str]:
    """Return the purpose of the first rule matching `value`, or None."""
    for pattern, purpose in rules:
        if pattern.search(value):
            return purpose
    return None


def normalize_url(url: str) -> str:
    """origin + path (trailing slash stripped) + search; fragment dropped."""
    parsed = urlparse(url)
    path = (parsed.path or "").rstrip("/")
    query = f"?{parsed.query}" if parsed.query else ""
    return f"{parsed.scheme}://{parsed.netloc}{path}{query}"


def _listing_path(path: str) -> str:
    path = (path or "").rstrip("/")
    path = re.sub(r"/index\.html?$", "", path, flags=re.IGNORECASE)
    return path


def _path_depth(path: str) -> int:
    return len([segment for segment in path.split("/") if segment])


def _resolve(seed_url: str, link: str) -> Optional[str]:
    href = str(link or "").strip()
    if not href or href.startswith(("#", "javascript:", "mailto:", "tel:", "data:")):
        return None
    absolute = urljoin(seed_url, href)
    parsed = urlparse(absolute)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return absolute


def same_host(seed_url: str, url: str) -> bool:
    seed_host = (urlparse(seed_url).hostname or "").lower()
    host = (urlparse(url).hostname or "").lower()
    return bool(seed_host) and host == seed_host


def _is_seed(seed_url: str, url: str) -> bool:
    seed = urlparse(seed_url)
    parsed = urlparse(url)
    return (
        _listing_path(parsed.path) == _listing_path(seed.path)
        and (parsed.query or "") == (seed.query or "")
    )


def is_profile_url(seed_url: str, url: str) -> bool:
    if not same_host(seed_url, url) or _is_seed(seed_url, url):
        return False
    parsed = urlparse(url)
    path = parsed.path or ""
    query = f"?{parsed.query}" if parsed.query else ""
    if first_match(_PROFILE_RULES, path) is None and (
        not query or first_match(_PROFILE_RULES, query) is None
    ):
        return False
    return first_match(_PROFILE_EXCLUDE_RULES, path) is None


def is_secondary_listing_url(seed_url: str, url: str) -> bool:
    if not same_host(seed_url, url) or _is_seed(seed_url, url):
        return False
    if is_profile_url(seed_url, url):
        return False
    link_path = _listing_path(urlparse(url).path)
    if first_match(_ASSET_RULES, link_path) is not None:
        return False
    if _path_depth(link_path) > MAX_LISTING_PATH_DEPTH:
        return False
    if first_match(_PAGINATION_RULES, url) is not None:
        return True
    lowered = link_path.lower()
    return any(keyword in lowered for keyword in LISTING_KEYWORDS)


def classify_url(seed_url: str, url: str) -> CandidateURL:
    """Classify one URL relative to the seed; a pure function of both strings."""
    absolute = _resolve(seed_url, url) or url
    host_match = same_host(seed_url, absolute)
    if is_profile_url(seed_url, absolute):
        classification = PROFILE
    elif is_secondary_listing_url(seed_url, absolute):
        classification = SECONDARY_LISTING
    else:
        classification = IGNORED
    return CandidateURL(url=absolute, same_host=host_match, classification=classification)


def find_profile_urls(seed_url: str, links: Iterable[str]) -> List[str]:
    """Same-host profile URLs, deduplicated by normalized form, in input order."""
    seen = set()
    profiles: List[str] = []
    for link in links:
        absolute = _resolve(seed_url, link)
        if not absolute or not is_profile_url(seed_url, absolute):
            continue
        normalized = normalize_url(absolute)
        if normalized in seen:
            continue
        seen.add(normalized)
        profiles.append(normalized)
    return profiles


def find_secondary_listing_pages(
    seed_url: str,
    links: Iterable[str],
    max_pages: int = MAX_LISTING_PAGES,
) -> List[str]:
    """Same-host pagination or listing-keyword pages other than the seed, capped."""
    seen = {normalize_url(seed_url)}
    listings: List[str] = []
    for link in links:
        absolute = _resolve(seed_url, link)
        if not absolute or not is_secondary_listing_url(seed_url, absolute):
            continue
        normalized = normalize_url(absolute)
        if normalized in seen:
            continue
        seen.add(normalized)
        listings.append(absolute.split("#", 1)[0])
        if len(listings) >= max_pages:
            break
    return listings
