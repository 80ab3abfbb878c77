# tests/test_github_client.py
import asyncio

import httpx

from jstrack.api.client import GitHubClient, commit_url, resolve_repo_slug
from jstrack.config import Settings


def _client(handler, user="me", token="secret"):
    settings = Settings(github_user=user, github_token=token)
    transport = httpx.MockTransport(handler)
    return GitHubClient(settings, client=httpx.AsyncClient(transport=transport))


def _run(handler, call, **kwargs):
    async def go():
        async with _client(handler, **kwargs) as github:
            return await call(github)
    return asyncio.run(go())


def test_project_exists_under_default_user():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"full_name": "me/demo"})

    result = _run(handler, lambda gh: gh.validate_project_exists("demo"))

    assert result.exists and not result.skip_check
    assert result.full_name == "me/demo"
    assert seen[0].url.path == "/repos/me/demo"
    assert seen[0].headers["Authorization"] == "Bearer secret"


def test_project_with_explicit_owner():
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return httpx.Response(200, json={})

    _run(handler, lambda gh: gh.validate_project_exists("acme/tool"))
    assert seen == ["/repos/acme/tool"]


def test_missing_project():
    result = _run(lambda request: httpx.Response(404), lambda gh: gh.validate_project_exists("ghost"))
    assert not result.exists
    assert not result.skip_check


def test_network_failure_skips_check():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = _run(handler, lambda gh: gh.validate_project_exists("demo"))
    assert result.skip_check
    assert result.exists


def test_rate_limit_skips_check():
    def handler(request):
        return httpx.Response(403, headers={"x-ratelimit-remaining": "0"})

    project = _run(handler, lambda gh: gh.validate_project_exists("demo"))
    commit = _run(handler, lambda gh: gh.validate_commit_exists("demo", "abc1234"))

    assert project.skip_check
    assert commit.skip_check


def test_no_token_sends_no_authorization():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={})

    _run(handler, lambda gh: gh.validate_project_exists("demo"), token=None)
    assert "Authorization" not in seen[0].headers


def test_commit_found_returns_metadata():
    def handler(request):
        assert request.url.path == "/repos/me/demo/commits/abc1234"
        return httpx.Response(200, json={
            "sha": "abc1234",
            "commit": {
                "message": "Add keyboard shortcuts\n\nDetails",
                "author": {"name": "Ione", "date": "2024-01-01T10:00:00Z"},
            },
        })

    result = _run(handler, lambda gh: gh.validate_commit_exists("demo", "abc1234"))

    assert result.exists
    assert result.message.startswith("Add keyboard shortcuts")
    assert result.author == "Ione"
    assert result.date == "2024-01-01T10:00:00Z"


def test_unknown_commit():
    result = _run(lambda request: httpx.Response(422), lambda gh: gh.validate_commit_exists("demo", "zzz"))
    assert not result.exists
    assert result.error == "Commit not found"


def test_server_error_on_commit_is_reported():
    result = _run(lambda request: httpx.Response(500), lambda gh: gh.validate_commit_exists("demo", "abc1234"))
    assert not result.exists
    assert not result.skip_check
    assert "500" in result.error


def test_slug_and_commit_url_helpers():
    assert resolve_repo_slug("demo", "me") == ("me", "demo")
    assert resolve_repo_slug("acme/tool", "me") == ("acme", "tool")
    assert commit_url("demo", "abc", "me") == "https://github.com/me/demo/commit/abc"
    assert commit_url("demo", "abc", None) is None
