from __future__ import annotations

import logging
import math
import sqlite3
import time
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Optional, Tuple, TypeVar

from db.repos.profiles_repo import ProfilesRepo
from db.repos.stargazers_repo import StargazersRepo
from models.enriched_profile_record import EnrichedProfileRecord
from models.github import SocialAccount
from pipelines.runner import RunContext
from ports.extractor import ProfileExtractorPort
from ports.github import GitHubPort
from ports.repos import ProfilesRepoPort, StargazersRepoPort
from services.country import standardize_country
from services.field_resolver import distinct_emails


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class LookupResult(Generic[T]):
    """Outcome of an auxiliary lookup: a usable value plus the error, if any."""

    value: T
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def compute_batch_size(
    pending_count: int,
    limit: Optional[int] = None,
    sample: Optional[float] = None,
    default: int = 500,
) -> int:
    """How many pending records one enrich run processes.

    A sample fraction wins over an explicit limit and always yields at least one.
    """
    if sample is not None:
        if not (0 < sample <= 1):
            raise ValueError(f"sample must be in (0, 1], got {sample}")
        return max(1, int(math.floor(pending_count * sample + 0.5)))
    if limit is not None:
        return limit
    return default


def discover_candidate_emails(github: GitHubPort, username: str) -> LookupResult[List[str]]:
    """Collect commit emails from the user's most recently updated owned repo."""
    try:
        repos = github.get_user_repos(username)
        owned = next(
            (r for r in repos if r.owner.login.casefold() == username.casefold() and not r.fork),
            None,
        )
        if owned is None:
            return LookupResult(value=[])
        commits = github.get_repo_commits(owned.owner.login, owned.name, username)
    except Exception as e:
        return LookupResult(value=[], error=str(e))

    candidates = []
    for c in commits:
        for identity in (c.commit.author, c.commit.committer):
            candidates.append(identity.email if identity else None)
    return LookupResult(value=distinct_emails(candidates))


def fetch_social_accounts(github: GitHubPort, username: str) -> LookupResult[List[SocialAccount]]:
    try:
        return LookupResult(value=list(github.get_user_social_accounts(username)))
    except Exception as e:
        return LookupResult(value=[], error=str(e))


class LoadPendingStargazers:
    def __init__(
        self,
        conn: sqlite3.Connection,
        limit: Optional[int] = None,
        sample: Optional[float] = None,
        default_batch_size: int = 500,
    ) -> None:
        self.conn = conn
        self.limit = limit
        self.sample = sample
        self.default_batch_size = default_batch_size

    def run(self, ctx: RunContext) -> RunContext:
        repo: StargazersRepoPort = StargazersRepo(self.conn)
        total_pending = repo.count_pending()
        batch_size = compute_batch_size(total_pending, self.limit, self.sample, self.default_batch_size)
        if self.sample is not None:
            logger.info(
                f"Sampling {self.sample * 100:.1f}% of {total_pending} pending profiles ({batch_size} profiles)",
                extra={"step": "load_pending"},
            )
        rows: List[Tuple[int, str]] = repo.select_pending(batch_size, randomize=self.sample is not None)
        ctx.pending = rows
        ctx.meta["pending_total"] = total_pending
        logger.info(
            f"Found {total_pending} pending profiles, processing {len(rows)}",
            extra={"step": "load_pending", "status": "ok"},
        )
        return ctx


@dataclass
class _Tally:
    enriched: int = 0
    failed: int = 0
    failures: List[str] = field(default_factory=list)


class EnrichAndPersistStargazers:
    """Enrich each loaded pending stargazer in turn.

    A record's failure marks only that record failed; the batch continues.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        github: GitHubPort,
        extractor: ProfileExtractorPort,
        on_progress: Optional[Callable[[int, int, str], None]] = None,
    ) -> None:
        self.conn = conn
        self.github = github
        self.extractor = extractor
        self.on_progress = on_progress

    def _enrich_one(self, stargazer_id: int, username: str) -> EnrichedProfileRecord:
        profile = self.github.get_user_profile(username)

        candidate_emails: List[str] = []
        if not profile.email:
            emails = discover_candidate_emails(self.github, username)
            if not emails.ok:
                logger.warning(
                    f"Could not fetch commit emails for {username}",
                    extra={"step": "candidate_emails", "status": "skipped", "username": username, "error": emails.error},
                )
            candidate_emails = emails.value

        socials = fetch_social_accounts(self.github, username)
        if not socials.ok:
            logger.warning(
                f"Could not fetch social accounts for {username}",
                extra={"step": "social_accounts", "status": "skipped", "username": username, "error": socials.error},
            )

        extracted = self.extractor.extract(profile, candidate_emails or None)

        return EnrichedProfileRecord(
            github_id=stargazer_id,
            name=profile.name,
            bio=profile.bio,
            location=profile.location,
            company=profile.company,
            country=standardize_country(extracted.country),
            employers=extracted.employers,
            linkedin_url=extracted.linkedin_url,
            website_url=extracted.website_url,
            university=extracted.university,
            email=extracted.email,
            twitter_username=profile.twitter_username,
            social_accounts=socials.value,
            raw_github_profile=profile.model_dump_json(),
        )

    def run(self, ctx: RunContext) -> RunContext:
        stargazers_repo: StargazersRepoPort = StargazersRepo(self.conn)
        profiles_repo: ProfilesRepoPort = ProfilesRepo(self.conn)
        pending = ctx.pending or []
        total = len(pending)
        tally = _Tally()

        for idx, (stargazer_id, username) in enumerate(pending, start=1):
            if self.on_progress:
                self.on_progress(idx, total, username)
            t0 = time.time()
            try:
                record = self._enrich_one(stargazer_id, username)
                profiles_repo.save_enriched_profile(record)
            except Exception as e:
                logger.error(
                    f"Failed to enrich {username}: {e}",
                    extra={
                        "step": "enrich_profile",
                        "status": "failed",
                        "username": username,
                        "duration_ms": int((time.time() - t0) * 1000),
                        "error": type(e).__name__,
                    },
                )
                stargazers_repo.mark_failed(stargazer_id)
                tally.failed += 1
                tally.failures.append(username)
                continue
            tally.enriched += 1
            logger.info(
                f"Enriched profile: {username}",
                extra={
                    "step": "enrich_profile",
                    "status": "completed",
                    "username": username,
                    "duration_ms": int((time.time() - t0) * 1000),
                },
            )

        ctx.meta["enriched"] = tally.enriched
        ctx.meta["failed"] = tally.failed
        ctx.meta["failed_usernames"] = tally.failures
        return ctx
