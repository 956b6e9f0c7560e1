"""Constants for faculty directory discovery and extraction."""

# Topical phrases for site map queries; the empty phrase returns the unfiltered map
MAP_QUERIES = [
    "faculty directory professors people",
    "faculty members staff department",
    "professor profile bio research",
    "",
]

# Profile patterns: (regex, purpose). Matched against the path and the query string separately.
PROFILE_PATTERNS = [
    (r"/faculty/[^/?]+/?$", "faculty slug"),
    (r"/people/[^/?]+/?$", "people slug"),
    (r"/profile/[^/?]+/?$", "profile slug"),
    (r"/profiles/[^/?]+/?$", "profiles slug"),
    (r"/faculty-research/faculty-directory/[^/?]+/?$", "faculty directory slug"),
    (r"/directory/[^/?]+/?$", "directory slug"),
    (r"/bio/[^/?]+/?$", "bio slug"),
    (r"/staff/[^/?]+/?$", "staff slug"),
    (r"/members/[^/?]+/?$", "members slug"),
    (r"[?&]profile=", "profile query parameter"),
    (r"[?&]id=", "id query parameter"),
]

# Binary and document assets: never a person or a listing
ASSET_PATTERNS = [
    (r"\.(pdf|doc|docx|ppt|pptx|xls|xlsx|jpg|jpeg|png|gif|svg|webp|css|js|xml|json|zip|mp4)$", "asset file"),
]

# Profile exclusions: (regex, purpose). Matched against the path only.
PROFILE_EXCLUDE_PATTERNS = ASSET_PATTERNS + [
    (r"/(news|events|blog|research|publications|courses|programs|admissions|about|contact)/", "non-person section"),
    (r"index\.html?$", "index page"),
    (r"/faculty-research/faculty-directory/?$", "directory root"),
]

# Pagination patterns: (regex, purpose). Matched against the full URL.
PAGINATION_PATTERNS = [
    (r"[?&]page=\d+", "page query parameter"),
    (r"/page/\d+", "page path segment"),
    (r"[?&]p=\d+", "short page parameter"),
    (r"[?&]offset=\d+", "offset parameter"),
    (r"[?&]start=\d+", "start parameter"),
]

# Path keywords that suggest a secondary listing page
LISTING_KEYWORDS = [
    "faculty", "people", "staff", "directory", "professors", "members", "department",
]

# Max limits
MAX_LISTING_PATH_DEPTH = 5
MAX_LISTING_PAGES = 30
MAX_PROFILE_URLS_IN_PROMPT = 100

# Records whose normalized name equals this are placeholders and never merged
UNKNOWN_NAME = "unknown"

# Titles that disqualify a person from being counted as research-active
NON_RESEARCH_TITLE_MARKERS = [
    "emeritus", "emerita", "visiting", "adjunct", "professor of practice",
]
