from __future__ import annotations

import logging
import sqlite3
from typing import Callable, List, Optional

from db.repos.stargazers_repo import StargazersRepo
from models.github import GitHubStargazer
from pipelines.runner import RunContext
from ports.github import GitHubPort
from ports.repos import StargazersRepoPort


logger = logging.getLogger(__name__)


class FetchStargazers:
    """Pull the full stargazer list; with a limit keep only the most recent N."""

    def __init__(self, github: GitHubPort, limit: Optional[int] = None) -> None:
        self.github = github
        self.limit = limit

    def run(self, ctx: RunContext) -> RunContext:
        logger.info(f"Fetching stargazers for {ctx.owner}/{ctx.repo}...", extra={"step": "fetch_stargazers"})
        stargazers: List[GitHubStargazer] = self.github.get_all_stargazers(ctx.owner, ctx.repo)
        if self.limit and self.limit > 0 and len(stargazers) > self.limit:
            # The API lists oldest stars first
            logger.info(f"Limiting to last {self.limit} stargazers", extra={"step": "fetch_stargazers"})
            stargazers = stargazers[-self.limit :]
        ctx.stargazers = stargazers
        ctx.meta["stargazers_total"] = len(stargazers)
        logger.info(f"Found {len(stargazers)} stargazers", extra={"step": "fetch_stargazers", "status": "ok"})
        return ctx


class PersistNewStargazers:
    def __init__(self, conn: sqlite3.Connection, on_processed: Optional[Callable[[int], None]] = None) -> None:
        self.conn = conn
        self.on_processed = on_processed

    def run(self, ctx: RunContext) -> RunContext:
        repo: StargazersRepoPort = StargazersRepo(self.conn)
        known = repo.existing_ids()
        new_count = 0
        for sg in ctx.stargazers or []:
            if sg.user.id in known:
                continue
            # Errors propagate; rows inserted so far stay committed
            if repo.insert_stargazer(sg.user.id, sg.user.login, sg.starred_at):
                new_count += 1
                known.add(sg.user.id)
                if self.on_processed:
                    self.on_processed(new_count)
        ctx.meta["stargazers_new"] = new_count
        logger.info(f"Inserted {new_count} new stargazers", extra={"step": "persist_stargazers", "status": "ok"})
        return ctx
