from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Callable, Optional

from pipelines.runner import Pipeline, RunContext
from pipelines.steps.fetch_stargazers import FetchStargazers, PersistNewStargazers
from ports.github import GitHubPort


@dataclass(frozen=True)
class IngestReport:
    total: int
    new: int


def run_fetch(
    conn: sqlite3.Connection,
    github: GitHubPort,
    owner: str,
    repo: str,
    limit: Optional[int] = None,
    on_processed: Optional[Callable[[int], None]] = None,
) -> IngestReport:
    """Store every stargazer not seen before as pending.

    Re-running against an unchanged upstream list inserts nothing.
    """
    pipeline = Pipeline([
        FetchStargazers(github, limit=limit),
        PersistNewStargazers(conn, on_processed=on_processed),
    ])
    ctx = pipeline.run(RunContext(owner=owner, repo=repo))
    return IngestReport(
        total=int(ctx.meta.get("stargazers_total", 0)),
        new=int(ctx.meta.get("stargazers_new", 0)),
    )
