import json

import httpx
from fastapi.testclient import TestClient

from faculty_finder.api.faculty import (
    QUOTA_MESSAGE,
    RATE_LIMIT_MESSAGE,
    get_completion_client,
    get_scrape_client,
)
from faculty_finder.config import Settings, get_settings
from faculty_finder.main import app
from faculty_finder.services.directory.extractor import PAGE_SYSTEM_PROMPT
from faculty_finder.services.directory.research import RESEARCH_SYSTEM_PROMPT
from faculty_finder.services.llm.types import LLMProviderError, QuotaExhaustedError, RateLimitedError
from faculty_finder.services.retrieval.firecrawl import FirecrawlClient

SEED = "https://cis.example.edu/people/faculty/"
SEED_TEXT = "Jane Doe, Professor, jane@example.edu" + " Faculty of Computer Science." * 10


class _FakeCompletions:
    def __init__(self, answers):
        self._answers = answers
        self.requests = []

    async def complete(self, request):
        self.requests.append(request)
        answer = self._answers.get(request.system_prompt, "[]")
        if isinstance(answer, Exception):
            raise answer
        return answer


def _client(settings, completions, pages=None, calls=None):
    pages = pages if pages is not None else {}

    def handler(request):
        payload = json.loads(request.content)
        if calls is not None:
            calls.append(payload)
        if request.url.path.endswith("/map"):
            return httpx.Response(200, json={"success": True, "links": []})
        text, links = pages.get(payload["url"], ("", []))
        return httpx.Response(200, json={"success": True, "data": {"markdown": text, "links": links}})

    async def _scrape_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            yield FirecrawlClient(client, settings.firecrawl_api_key)

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_scrape_client] = _scrape_client
    app.dependency_overrides[get_completion_client] = lambda: completions
    return TestClient(app)


def _settings(**overrides):
    values = dict(
        firecrawl_api_key="fc-test",
        openai_api_key="sk-test",
        completion_backoff_base_seconds=0,
        completion_backoff_jitter_seconds=0,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


def teardown_function():
    app.dependency_overrides.clear()


def test_scrape_faculty_returns_records_and_totals():
    completions = _FakeCompletions(
        {
            PAGE_SYSTEM_PROMPT: '[{"name": "Jane Doe", "email": "jane@example.edu", "title": "Professor",'
            ' "isResearchActive": true}, {"name": "Old Timer", "title": "Professor Emeritus",'
            ' "isResearchActive": false}]'
        }
    )
    client = _client(_settings(), completions, pages={SEED: (SEED_TEXT, [])})

    resp = client.post("/scrape-faculty", json={"facultyUrl": SEED, "groupLabel": "CIS"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["total"] == 2
    assert body["researchActive"] == 1
    assert body["pagesScraped"] == 1
    assert body["profileUrlsFound"] == 0
    jane = body["records"][0]
    assert jane == {
        "fullName": "Jane Doe",
        "lastName": "Doe",
        "email": "jane@example.edu",
        "profileUrl": "",
        "title": "Professor",
        "groupLabel": "CIS",
        "imageUrl": None,
        "isResearchActive": True,
    }


def test_scrape_faculty_accepts_department_alias():
    completions = _FakeCompletions({PAGE_SYSTEM_PROMPT: '[{"name": "Jane Doe"}]'})
    client = _client(_settings(), completions, pages={SEED: (SEED_TEXT, [])})
    resp = client.post("/scrape-faculty", json={"facultyUrl": SEED, "department": "Physics"})
    assert resp.json()["records"][0]["groupLabel"] == "Physics"


def test_missing_faculty_url_is_client_error_without_collaborator_calls():
    calls = []
    completions = _FakeCompletions({})
    client = _client(_settings(), completions, calls=calls)

    resp = client.post("/scrape-faculty", json={"groupLabel": "CIS"})

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Faculty URL is required"}
    assert calls == []
    assert completions.requests == []


def test_missing_credentials_is_server_error():
    calls = []
    completions = _FakeCompletions({})
    client = _client(_settings(firecrawl_api_key=""), completions, calls=calls)

    resp = client.post("/scrape-faculty", json={"facultyUrl": SEED})

    assert resp.status_code == 500
    assert resp.json()["success"] is False
    assert "FIRECRAWL_API_KEY" in resp.json()["error"]
    assert calls == []


def test_seed_rate_limit_exhaustion_returns_429():
    completions = _FakeCompletions({PAGE_SYSTEM_PROMPT: RateLimitedError()})
    client = _client(_settings(), completions, pages={SEED: (SEED_TEXT, [])})

    resp = client.post("/scrape-faculty", json={"facultyUrl": SEED})

    assert resp.status_code == 429
    assert resp.json() == {"success": False, "error": RATE_LIMIT_MESSAGE}
    assert len(completions.requests) == 5


def test_quota_exhaustion_returns_402():
    completions = _FakeCompletions({PAGE_SYSTEM_PROMPT: QuotaExhaustedError()})
    client = _client(_settings(), completions, pages={SEED: (SEED_TEXT, [])})
    resp = client.post("/scrape-faculty", json={"facultyUrl": SEED})
    assert resp.status_code == 402
    assert resp.json() == {"success": False, "error": QUOTA_MESSAGE}


def test_analyze_research_returns_broad_summary():
    profile_url = "https://cis.example.edu/people/jane-doe"
    completions = _FakeCompletions(
        {
            RESEARCH_SYSTEM_PROMPT: '{"researchInterests": "machine learning", "email": "jane@example.edu",'
            ' "publications": ["Paper A", "Paper B"], "summary": "Studies learning systems."}'
        }
    )
    client = _client(_settings(), completions, pages={profile_url: ("Jane Doe works on ML." * 20, [])})

    resp = client.post("/analyze-research", json={"profileUrl": profile_url, "professorName": "Jane Doe"})

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "researchInterests": "machine learning",
        "email": "jane@example.edu",
        "publications": ["Paper A", "Paper B"],
        "summary": "Studies learning systems.",
    }
    assert "Professor: Jane Doe" in completions.requests[0].user_prompt


def test_analyze_research_errors():
    completions = _FakeCompletions({RESEARCH_SYSTEM_PROMPT: LLMProviderError("bad request", status_code=400)})
    profile_url = "https://cis.example.edu/people/jane-doe"
    client = _client(_settings(), completions, pages={profile_url: ("Jane Doe works on ML." * 20, [])})

    assert client.post("/analyze-research", json={}).status_code == 400
    failed = client.post("/analyze-research", json={"profileUrl": profile_url})
    assert failed.status_code == 500
    assert failed.json() == {"success": False, "error": "Failed to analyze research interests"}
    unreadable = client.post("/analyze-research", json={"profileUrl": "https://cis.example.edu/people/nobody"})
    assert unreadable.json() == {"success": False, "error": "Failed to scrape professor profile"}


def test_health_and_root():
    client = TestClient(app)
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").json()["message"] == "Faculty Finder API"


def test_malformed_bodies_use_error_envelope_without_collaborator_calls():
    calls = []
    completions = _FakeCompletions({})
    client = _client(_settings(), completions, calls=calls)

    missing = client.post("/scrape-faculty")
    wrong_type = client.post("/scrape-faculty", json={"facultyUrl": 123})
    not_json = client.post(
        "/scrape-faculty", content="not json", headers={"Content-Type": "application/json"}
    )
    research = client.post("/analyze-research")

    for resp in (missing, wrong_type, not_json, research):
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"].startswith("Invalid request body")
    assert "facultyUrl" in wrong_type.json()["error"]
    assert calls == []
    assert completions.requests == []


def test_app_debug_follows_settings():
    assert app.debug is get_settings().debug
