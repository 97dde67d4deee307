"""
GitHub REST API client with adaptive, quota-aware request pacing.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from config.settings import Settings, get_settings
from models.github import (
    GitHubCommit,
    GitHubRepo,
    GitHubStargazer,
    GitHubUserProfile,
    SocialAccount,
)


logger = logging.getLogger(__name__)

STAR_MEDIA_TYPE = "application/vnd.github.star+json"
API_VERSION = "2022-11-28"
RESET_BUFFER_SECONDS = 1.0
USER_REPOS_LIMIT = 10
COMMITS_LIMIT = 30


class GitHubApiError(RuntimeError):
    """Non-2xx answer (other than quota exhaustion) or transport failure."""

    def __init__(self, status_code: Optional[int], reason: str, endpoint: str):
        self.status_code = status_code
        self.reason = reason
        self.endpoint = endpoint
        status = status_code if status_code is not None else "transport"
        super().__init__(f"GitHub API error: {status} {reason} ({endpoint})")


def _header_int(headers: Any, name: str) -> Optional[int]:
    value = headers.get(name) if headers is not None else None
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class GitHubClient:
    """Issues GitHub API requests one at a time, spreading the remaining quota
    evenly over the time left until the quota window resets.

    All quota state lives on the instance; a fresh client re-learns the real
    quota from its first response.
    """

    def __init__(
        self,
        token: str,
        settings: Optional[Settings] = None,
        *,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings or get_settings()
        self.token = token
        self.base_url = self.settings.github_api_url
        self.timeout = self.settings.http_timeout_seconds
        self.page_size = self.settings.github_page_size
        self.min_delay = self.settings.rate_limit_min_delay_ms / 1000.0
        self.max_delay = self.settings.rate_limit_max_delay_ms / 1000.0
        self.threshold = self.settings.rate_limit_threshold
        self.reserve = self.settings.rate_limit_reserve

        self.session = session or requests.Session()
        self._clock = clock
        self._sleep = sleep

        self._rate_limit_remaining: Optional[int] = None
        self._rate_limit_reset: float = 0.0
        self._request_count = 0
        self._last_logged_remaining: Optional[int] = None

    # --- Quota bookkeeping ---
    @property
    def rate_limit_remaining(self) -> Optional[int]:
        return self._rate_limit_remaining

    @property
    def rate_limit_reset(self) -> float:
        return self._rate_limit_reset

    @property
    def request_count(self) -> int:
        return self._request_count

    def pacing_delay(self) -> float:
        """Seconds to wait before the next request."""
        time_until_reset = max(0.0, self._rate_limit_reset - self._clock())

        # No quota info yet, or the window already rolled over
        if self._rate_limit_remaining is None or self._rate_limit_reset <= 0 or time_until_reset <= 0:
            return self.min_delay

        if self._rate_limit_remaining > self.threshold:
            return self.min_delay

        available = max(1, self._rate_limit_remaining - self.reserve)
        delay = time_until_reset / available
        return min(self.max_delay, max(self.min_delay, delay))

    def _adaptive_wait(self) -> None:
        delay = self.pacing_delay()
        if delay > self.min_delay:
            logger.info(
                f"Rate limiting: {self._rate_limit_remaining} calls left, "
                f"{int(self._rate_limit_reset - self._clock())}s until reset, waiting {delay:.1f}s",
                extra={"step": "github_pacing"},
            )
        self._sleep(delay)

    def _update_rate_limit(self, headers: Any) -> None:
        self._rate_limit_remaining = _header_int(headers, "X-RateLimit-Remaining")
        self._rate_limit_reset = float(_header_int(headers, "X-RateLimit-Reset") or 0)
        self._request_count += 1

        remaining = self._rate_limit_remaining
        dropped = (
            remaining is not None
            and self._last_logged_remaining is not None
            and remaining < self._last_logged_remaining - 500
        )
        if self._request_count == 1 or self._request_count % 100 == 0 or dropped:
            self._log_rate_limit_status()
            self._last_logged_remaining = remaining

    def _log_rate_limit_status(self) -> None:
        time_until_reset = max(0, int(self._rate_limit_reset - self._clock()))
        minutes, seconds = divmod(time_until_reset, 60)
        logger.info(
            f"[Rate Limit] {self._rate_limit_remaining} remaining, resets in {minutes}m {seconds}s "
            f"({self._request_count} requests made)"
        )

    def _is_quota_exhausted(self, response: requests.Response) -> bool:
        return response.status_code in (403, 429) and self._rate_limit_remaining == 0

    # --- Requests ---
    def request(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """GET an endpoint and return its decoded JSON body.

        Quota exhaustion is waited out and the same request retried; every
        other non-2xx answer raises GitHubApiError.
        """
        request_headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }
        if headers:
            request_headers.update(headers)
        url = f"{self.base_url}{endpoint}"

        while True:
            self._adaptive_wait()
            try:
                response = self.session.get(url, headers=request_headers, params=params, timeout=self.timeout)
            except requests.exceptions.RequestException as e:
                raise GitHubApiError(None, str(e), endpoint) from e

            self._update_rate_limit(response.headers)

            if response.ok:
                return response.json()

            if self._is_quota_exhausted(response):
                wait = max(0.0, self._rate_limit_reset - self._clock()) + RESET_BUFFER_SECONDS
                logger.warning(
                    f"Rate limited! Waiting {int(wait)}s until reset...",
                    extra={"step": "github_pacing", "status": "exhausted"},
                )
                self._sleep(wait)
                continue

            raise GitHubApiError(response.status_code, response.reason or "", endpoint)

    def paginate(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        label: str = "items",
    ) -> List[Any]:
        """Fetch every page of a list endpoint, in order."""
        items: List[Any] = []
        page = 1
        while True:
            logger.info(f"Fetching {label} page {page}...")
            page_params = dict(params or {})
            page_params.update({"page": page, "per_page": self.page_size})
            batch = self.request(endpoint, headers=headers, params=page_params) or []
            if not batch:
                break
            items.extend(batch)
            if len(batch) < self.page_size:
                break
            page += 1
        return items

    # --- Derived operations ---
    def get_all_stargazers(self, owner: str, repo: str) -> List[GitHubStargazer]:
        raw = self.paginate(
            f"/repos/{owner}/{repo}/stargazers",
            headers={"Accept": STAR_MEDIA_TYPE},
            label="stargazers",
        )
        return [GitHubStargazer.model_validate(item) for item in raw]

    def get_user_profile(self, username: str) -> GitHubUserProfile:
        return GitHubUserProfile.model_validate(self.request(f"/users/{username}"))

    def get_user_repos(self, username: str) -> List[GitHubRepo]:
        data = self.request(
            f"/users/{username}/repos",
            params={"sort": "updated", "per_page": USER_REPOS_LIMIT},
        )
        return [GitHubRepo.model_validate(item) for item in data or []]

    def get_repo_commits(self, owner: str, repo: str, author: str) -> List[GitHubCommit]:
        data = self.request(
            f"/repos/{owner}/{repo}/commits",
            params={"author": author, "per_page": COMMITS_LIMIT},
        )
        return [GitHubCommit.model_validate(item) for item in data or []]

    def get_user_social_accounts(self, username: str) -> List[SocialAccount]:
        data = self.request(f"/users/{username}/social_accounts")
        return [SocialAccount.model_validate(item) for item in data or []]

    def get_api_usage(self) -> Dict[str, Any]:
        """Return API usage statistics."""
        return {
            "api_calls_made": self._request_count,
            "rate_limit_remaining": self._rate_limit_remaining,
        }
