from __future__ import annotations

import dataclasses

import pytest
import requests

from config.settings import get_settings
from fakes import FakeClock, FakeResponse, FakeSession, stargazer
from services.github_client import STAR_MEDIA_TYPE, GitHubApiError, GitHubClient


def _client(responses, clock=None, **overrides):
    clock = clock or FakeClock()
    settings = dataclasses.replace(get_settings(), **overrides) if overrides else get_settings()
    session = FakeSession(responses)
    client = GitHubClient("tkn", settings, session=session, clock=clock, sleep=clock.sleep)
    return client, session, clock


def _quota(remaining, reset):
    return {"X-RateLimit-Remaining": str(remaining), "X-RateLimit-Reset": str(int(reset))}


def test_pacing_without_quota_info_uses_min_delay():
    client, _, _ = _client([])
    assert client.rate_limit_remaining is None
    assert client.pacing_delay() == pytest.approx(0.1)


def test_pacing_fast_mode_above_threshold():
    clock = FakeClock()
    client, _, _ = _client([FakeResponse(200, {}, _quota(501, clock.now + 3600))], clock=clock)
    client.request("/rate_limit")
    assert client.pacing_delay() == pytest.approx(0.1)


def test_pacing_spreads_remaining_quota_until_reset():
    clock = FakeClock()
    client, _, _ = _client([FakeResponse(200, {}, _quota(120, clock.now + 1000))], clock=clock)
    client.request("/rate_limit")
    # ~1000 s left over (120 - 20) usable calls
    assert client.pacing_delay() == pytest.approx(10.0, abs=0.01)


def test_pacing_is_capped_at_max_delay():
    clock = FakeClock()
    client, _, _ = _client([FakeResponse(200, {}, _quota(21, clock.now + 3600))], clock=clock)
    client.request("/rate_limit")
    assert client.pacing_delay() == pytest.approx(60.0)


def test_pacing_after_reset_passed_returns_min_delay():
    clock = FakeClock()
    client, _, _ = _client([FakeResponse(200, {}, _quota(5, clock.now + 10))], clock=clock)
    client.request("/rate_limit")
    clock.now += 11
    assert client.pacing_delay() == pytest.approx(0.1)


def test_paced_requests_keep_reserve_until_reset():
    # The server starts the window with `start + 1` calls and reports one fewer
    # on every response; pacing must leave the reserve untouched until reset.
    clock = FakeClock()
    reset = clock.now + 3600
    start = 500
    sent_at = []

    class TimedSession(FakeSession):
        def get(self, url, headers=None, params=None, timeout=None):
            sent_at.append(clock.now)
            return super().get(url, headers=headers, params=params, timeout=timeout)

    session = TimedSession([FakeResponse(200, {}, _quota(r, reset)) for r in range(start, 0, -1)])
    client = GitHubClient("tkn", get_settings(), session=session, clock=clock, sleep=clock.sleep)
    while clock.now < reset:
        client.request("/rate_limit")

    before_reset = [t for t in sent_at if t < reset - 1e-6]
    assert len(before_reset) <= (start + 1) - client.reserve
    assert all(delay <= client.max_delay for delay in clock.sleeps)


def test_request_sends_auth_and_version_headers():
    client, session, _ = _client([FakeResponse(200, {"ok": True})])
    assert client.request("/users/octocat") == {"ok": True}
    call = session.calls[0]
    assert call["url"] == "https://api.github.com/users/octocat"
    assert call["headers"]["Authorization"] == "Bearer tkn"
    assert call["headers"]["X-GitHub-Api-Version"] == "2022-11-28"
    assert client.request_count == 1


def test_exhausted_quota_waits_for_reset_and_retries():
    clock = FakeClock()
    reset = clock.now + 30
    client, session, _ = _client(
        [
            FakeResponse(403, {"message": "rate limited"}, _quota(0, reset)),
            FakeResponse(200, [{"id": 1}], _quota(4999, reset + 3600)),
        ],
        clock=clock,
    )
    assert client.request("/users/octocat/repos") == [{"id": 1}]
    assert len(session.calls) == 2
    # Slept at least until reset plus the 1 s buffer
    assert any(s >= 30.0 for s in clock.sleeps)
    assert clock.now >= reset + 1.0


def test_forbidden_with_quota_left_raises():
    clock = FakeClock()
    client, session, _ = _client([FakeResponse(403, {}, _quota(10, clock.now + 60), reason="Forbidden")], clock=clock)
    with pytest.raises(GitHubApiError) as exc:
        client.request("/users/secret")
    assert exc.value.status_code == 403
    assert exc.value.endpoint == "/users/secret"
    assert len(session.calls) == 1


def test_not_found_raises_with_status():
    client, _, _ = _client([FakeResponse(404, {}, reason="Not Found")])
    with pytest.raises(GitHubApiError, match="404"):
        client.request("/users/ghost")


def test_transport_error_is_wrapped():
    client, _, _ = _client([requests.exceptions.ConnectionError("boom")])
    with pytest.raises(GitHubApiError) as exc:
        client.request("/users/octocat")
    assert exc.value.status_code is None


def test_paginate_stops_on_short_page():
    pages = [
        FakeResponse(200, [stargazer(i) for i in range(1, 101)]),
        FakeResponse(200, [stargazer(i) for i in range(101, 201)]),
        FakeResponse(200, [stargazer(i) for i in range(201, 211)]),
    ]
    client, session, _ = _client(pages)
    result = client.get_all_stargazers("acme", "widgets")
    assert [s.user.id for s in result] == list(range(1, 211))
    assert len(session.calls) == 3
    assert [c["params"]["page"] for c in session.calls] == [1, 2, 3]
    assert all(c["params"]["per_page"] == 100 for c in session.calls)
    assert session.calls[0]["headers"]["Accept"] == STAR_MEDIA_TYPE


def test_paginate_stops_on_empty_page():
    pages = [
        FakeResponse(200, [stargazer(i) for i in range(1, 101)]),
        FakeResponse(200, []),
    ]
    client, session, _ = _client(pages)
    assert len(client.get_all_stargazers("acme", "widgets")) == 100
    assert len(session.calls) == 2


def test_derived_lookups_parse_models():
    client, session, _ = _client(
        [
            FakeResponse(200, {"id": 7, "login": "octocat", "email": None, "hireable": True}),
            FakeResponse(200, [{"id": 1, "name": "hello", "owner": {"login": "octocat"}, "fork": False}]),
            FakeResponse(200, [{"sha": "abc", "commit": {"author": {"email": "o@example.com"}, "committer": None}}]),
            FakeResponse(200, [{"provider": "linkedin", "url": "https://linkedin.com/in/octo"}]),
        ]
    )
    prof = client.get_user_profile("octocat")
    assert prof.login == "octocat" and prof.email is None
    repos = client.get_user_repos("octocat")
    assert repos[0].owner.login == "octocat"
    assert session.calls[1]["params"] == {"sort": "updated", "per_page": 10}
    commits = client.get_repo_commits("octocat", "hello", "octocat")
    assert commits[0].commit.author.email == "o@example.com"
    assert session.calls[2]["params"] == {"author": "octocat", "per_page": 30}
    socials = client.get_user_social_accounts("octocat")
    assert socials[0].provider == "linkedin"
    assert client.get_api_usage()["api_calls_made"] == 4
