from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import Callable, Optional

from pipelines.runner import Pipeline, RunContext
from pipelines.steps.enrich_stargazers import EnrichAndPersistStargazers, LoadPendingStargazers
from ports.extractor import ProfileExtractorPort
from ports.github import GitHubPort


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnrichReport:
    enriched: int
    failed: int
    # Still pending after this run
    pending: int


def run_enrich(
    conn: sqlite3.Connection,
    github: GitHubPort,
    extractor: ProfileExtractorPort,
    limit: Optional[int] = None,
    sample: Optional[float] = None,
    default_batch_size: int = 500,
    on_progress: Optional[Callable[[int, int, str], None]] = None,
) -> EnrichReport:
    pipeline = Pipeline([
        LoadPendingStargazers(conn, limit=limit, sample=sample, default_batch_size=default_batch_size),
        EnrichAndPersistStargazers(conn, github, extractor, on_progress=on_progress),
    ])
    ctx = pipeline.run(RunContext())
    enriched = int(ctx.meta.get("enriched", 0))
    failed = int(ctx.meta.get("failed", 0))
    remaining = int(ctx.meta.get("pending_total", 0)) - enriched - failed
    logger.info(
        f"Enrichment completed: {enriched} enriched, {failed} failed, {remaining} remaining",
        extra={"step": "enrich", "status": "ok"},
    )
    return EnrichReport(enriched=enriched, failed=failed, pending=remaining)
