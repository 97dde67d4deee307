from __future__ import annotations

import logging
import sqlite3
import time
from typing import Callable, Optional, Tuple

from pipelines.enrich_stargazers import EnrichReport, run_enrich
from pipelines.ingest_stargazers import IngestReport, run_fetch
from ports.extractor import ProfileExtractorPort
from ports.github import GitHubPort


logger = logging.getLogger(__name__)

CycleFn = Callable[[], Tuple[IngestReport, EnrichReport]]


def run_cycle(
    conn: sqlite3.Connection,
    github: GitHubPort,
    extractor: ProfileExtractorPort,
    owner: str,
    repo: str,
    default_batch_size: int = 500,
) -> Tuple[IngestReport, EnrichReport]:
    """One worker pass: pick up new stargazers, then enrich a default batch."""
    ingest = run_fetch(conn, github, owner, repo)
    enrich = run_enrich(conn, github, extractor, default_batch_size=default_batch_size)
    return ingest, enrich


def run_forever(
    cycle: CycleFn,
    interval_seconds: float,
    *,
    sleep: Callable[[float], None] = time.sleep,
    max_cycles: Optional[int] = None,
) -> int:
    """Run `cycle` now and then every `interval_seconds`.

    The first cycle's failure propagates (misconfiguration surfaces at
    startup); later failures are logged and the loop keeps going. Returns the
    number of completed cycles when `max_cycles` stops the loop.
    """
    completed = 0
    while True:
        started = time.time()
        try:
            ingest, enrich = cycle()
        except Exception as e:
            if completed == 0:
                raise
            logger.error(
                f"Worker cycle failed: {e}",
                extra={"step": "worker", "status": "failed", "error": type(e).__name__},
            )
        else:
            logger.info(
                f"Cycle done: {ingest.new} new stargazers, {enrich.enriched} enriched, "
                f"{enrich.failed} failed, {enrich.pending} pending",
                extra={"step": "worker", "status": "ok", "duration_ms": int((time.time() - started) * 1000)},
            )
        completed += 1
        if max_cycles is not None and completed >= max_cycles:
            return completed
        logger.info(f"Next cycle in {int(interval_seconds)}s", extra={"step": "worker"})
        sleep(interval_seconds)
