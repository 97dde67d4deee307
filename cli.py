import argparse
import logging
import os
import re
import sqlite3
import sys
import uuid as _uuid
from pathlib import Path
from typing import Optional, Tuple

from config.settings import (
    ConfigurationError,
    Settings,
    get_settings,
    require_github_token,
    require_llm_credentials,
)
from db import schema
from db.connection import get_connection
from db.repos.profiles_repo import ProfilesRepo
from pipelines.enrich_stargazers import run_enrich
from pipelines.ingest_stargazers import run_fetch
from pipelines.worker import run_cycle, run_forever
from ports.extractor import ProfileExtractorPort
from services.csv_export import write_export
from services.extraction_eval import load_fixtures, print_eval_report, run_eval
from services.github_client import GitHubClient
from services.profile_extractor import ProfileExtractor, StubProfileExtractor
from services.reporting import print_enrich_summary, print_fetch_summary
from utils.logging_setup import init_logging


logger = logging.getLogger("cli")

DB_FILENAME = "stargazers.db"
EXPORT_FILENAME = "export.csv"
DEFAULT_FIXTURES = Path(__file__).resolve().parent / "fixtures" / "extraction_eval.json"

_REPO_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


def _repo_arg(value: str) -> Tuple[str, str]:
    if not _REPO_RE.match(value or ""):
        raise argparse.ArgumentTypeError(f"expected owner/repo, got {value!r}")
    owner, name = value.split("/", 1)
    return owner, name


def _fraction(value: str) -> float:
    try:
        f = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if not (0 < f <= 1):
        raise argparse.ArgumentTypeError("sample must be in (0, 1]")
    return f


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if n <= 0:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return n


def get_repo_data_dir(repo: Tuple[str, str], base: str) -> Path:
    owner, name = repo
    return Path(base) / f"{owner}-{name}"


def _open_db(args) -> Tuple[sqlite3.Connection, Path]:
    data_dir = get_repo_data_dir(args.repo, args.data_dir)
    conn = get_connection(str(data_dir / DB_FILENAME))
    schema.bootstrap(conn)
    return conn, data_dir


def build_github_client(settings: Settings) -> GitHubClient:
    return GitHubClient(require_github_token(settings), settings)


def build_extractor(settings: Settings) -> ProfileExtractorPort:
    if require_llm_credentials(settings) == "stub":
        # Stub provider allowed only in test environment
        return StubProfileExtractor()
    return ProfileExtractor()


def cmd_fetch(args):
    settings = get_settings()
    github = build_github_client(settings)
    conn, _ = _open_db(args)
    try:
        report = run_fetch(conn, github, args.repo[0], args.repo[1], limit=args.limit)
    finally:
        conn.close()
    print_fetch_summary("/".join(args.repo), report, github.get_api_usage())


def cmd_enrich(args):
    settings = get_settings()
    github = build_github_client(settings)
    extractor = build_extractor(settings)

    def _progress(cur, total, username):
        print(f"[{cur}/{total}] Enriching username={username}")

    conn, _ = _open_db(args)
    try:
        report = run_enrich(
            conn,
            github,
            extractor,
            limit=args.limit,
            sample=args.sample,
            default_batch_size=settings.enrich_batch_size,
            on_progress=_progress if args.progress else None,
        )
    finally:
        conn.close()
    print_enrich_summary("/".join(args.repo), report, github.get_api_usage())


def cmd_dump(args):
    conn, data_dir = _open_db(args)
    try:
        rows = ProfilesRepo(conn).export_rows()
    finally:
        conn.close()
    output = args.output or str(data_dir / EXPORT_FILENAME)
    count = write_export(rows, output)
    if output != "-":
        logger.info(f"Exported {count} rows to {output}", extra={"step": "dump", "status": "ok"})


def cmd_worker(args):
    settings = get_settings()
    if not (settings.github_repo_owner and settings.github_repo_name):
        raise ConfigurationError("GITHUB_REPO_OWNER and GITHUB_REPO_NAME environment variables are required")
    owner, name = settings.github_repo_owner, settings.github_repo_name
    github = build_github_client(settings)
    extractor = build_extractor(settings)
    interval = args.interval if args.interval is not None else settings.worker_interval_seconds

    args.repo = (owner, name)
    conn, _ = _open_db(args)
    logger.info(f"Worker started for {owner}/{name}, interval {interval}s", extra={"step": "worker"})
    try:
        run_forever(
            lambda: run_cycle(conn, github, extractor, owner, name, settings.enrich_batch_size),
            interval,
            max_cycles=1 if args.once else None,
        )
    except KeyboardInterrupt:
        logger.info("Worker stopped", extra={"step": "worker", "status": "stopped"})
    finally:
        conn.close()


def cmd_eval(args):
    settings = get_settings()
    extractor = build_extractor(settings)
    fixtures = load_fixtures(args.fixtures)
    results = run_eval(extractor, fixtures)
    print_eval_report(results)
    if any(not r.passed for r in results):
        sys.exit(1)


def main(argv: Optional[list] = None):
    settings = get_settings()
    init_logging(settings.log_level)
    if not os.getenv("RUN_ID"):
        os.environ["RUN_ID"] = _uuid.uuid4().hex

    parser = argparse.ArgumentParser(description="GitHub stargazer enrichment CLI")
    parser.add_argument("--data-dir", default=settings.data_dir, help="Base data directory (default from settings)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_fetch = sub.add_parser("fetch", help="Fetch stargazers and store new ones as pending")
    p_fetch.add_argument("repo", type=_repo_arg, help="Repository as owner/repo")
    p_fetch.add_argument("--limit", "-l", type=_positive_int, default=None, help="Keep only the last N stargazers")
    p_fetch.set_defaults(func=cmd_fetch)

    p_enr = sub.add_parser("enrich", help="Enrich pending stargazers (provider from LLM_PROFILE_PROVIDER or AI_PROVIDER)")
    p_enr.add_argument("repo", type=_repo_arg, help="Repository as owner/repo")
    size = p_enr.add_mutually_exclusive_group(required=False)
    size.add_argument("--limit", "-l", type=_positive_int, default=None, help="Max profiles to enrich in this run")
    size.add_argument("--sample", "-s", type=_fraction, default=None, help="Random fraction of pending profiles, in (0, 1]")
    p_enr.add_argument("--progress", action="store_true", help="Print progress for each profile")
    p_enr.set_defaults(func=cmd_enrich)

    p_dump = sub.add_parser("dump", help="Export stargazers and profiles as CSV")
    p_dump.add_argument("repo", type=_repo_arg, help="Repository as owner/repo")
    p_dump.add_argument("--output", "-o", default=None, help="Output path, '-' for stdout (default: <data-dir>/<owner>-<repo>/export.csv)")
    p_dump.set_defaults(func=cmd_dump)

    p_work = sub.add_parser("worker", help="Fetch and enrich GITHUB_REPO_OWNER/GITHUB_REPO_NAME on an interval")
    p_work.add_argument("--interval", type=_positive_int, default=None, help="Seconds between cycles (default from settings)")
    p_work.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    p_work.set_defaults(func=cmd_worker)

    p_eval = sub.add_parser("eval", help="Evaluate profile extraction against labelled fixtures")
    p_eval.add_argument("--fixtures", default=str(DEFAULT_FIXTURES), help="Path to fixture JSON")
    p_eval.set_defaults(func=cmd_eval)

    args = parser.parse_args(argv)
    try:
        args.func(args)
    except ConfigurationError as e:
        logger.error(str(e), extra={"step": args.cmd, "status": "config_error"})
        sys.exit(1)
    except Exception as e:
        logger.exception(f"{args.cmd} failed: {e}", extra={"step": args.cmd, "status": "error", "error": type(e).__name__})
        sys.exit(1)


if __name__ == "__main__":
    main()
