from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)


def _llm_usage_for_run(run_id: str) -> Dict[str, Dict[str, int]]:
    """Aggregate LLM usage from the JSONL trace for the given run_id.

    Returns dict like { 'openrouter': {'calls': N, 'tokens': T, 'errors': E} }
    """
    from config.settings import get_settings

    result: Dict[str, Dict[str, int]] = {}
    log_path = Path(get_settings().llm_log_path)
    if not log_path.exists():
        return result
    with log_path.open("r", encoding="utf-8") as f:
        for line in f:
            try:
                rec = json.loads(line)
            except ValueError:
                # Partially written line
                continue
            if not isinstance(rec, dict) or rec.get("run_id") != run_id:
                continue
            provider = rec.get("provider") or "unknown"
            usage = rec.get("usage") or {}
            bucket = result.setdefault(provider, {"calls": 0, "tokens": 0, "errors": 0})
            bucket["calls"] += 1
            if rec.get("status") == "error":
                bucket["errors"] += 1
            total_tokens = usage.get("total_tokens")
            if isinstance(total_tokens, int):
                bucket["tokens"] += total_tokens
    return result


def _print_llm_usage() -> None:
    from config.settings import get_settings

    run_id = os.getenv("RUN_ID")
    if not (run_id and get_settings().llm_trace):
        return
    try:
        usage = _llm_usage_for_run(run_id)
    except OSError as e:
        logger.warning(f"Could not read LLM trace: {e}", extra={"step": "reporting", "error": type(e).__name__})
        return
    if usage:
        print("LLM Usage:")
        for provider, stats in usage.items():
            print(f"  {provider}: calls={stats['calls']}, tokens={stats['tokens']}, errors={stats['errors']}")


def print_fetch_summary(repo: str, report: Any, api_usage: Optional[Dict[str, Any]] = None) -> None:
    print("\n" + "=" * 60)
    print("STARGAZER FETCH - SUMMARY")
    print("=" * 60)
    print(f"Repository: {repo}")
    print(f"Stargazers Fetched: {report.total}")
    print(f"New Stargazers: {report.new}")
    if api_usage:
        print(f"API Calls Made: {api_usage.get('api_calls_made', 0)}")
        print(f"Rate Limit Remaining: {api_usage.get('rate_limit_remaining', 'N/A')}")
    print("=" * 60)


def print_enrich_summary(repo: str, report: Any, api_usage: Optional[Dict[str, Any]] = None) -> None:
    print("\n" + "=" * 60)
    print("STARGAZER ENRICHMENT - SUMMARY")
    print("=" * 60)
    print(f"Repository: {repo}")
    print(f"Enriched: {report.enriched}")
    print(f"Failed: {report.failed}")
    print(f"Still Pending: {report.pending}")
    if api_usage:
        print(f"API Calls Made: {api_usage.get('api_calls_made', 0)}")
        print(f"Rate Limit Remaining: {api_usage.get('rate_limit_remaining', 'N/A')}")
    _print_llm_usage()
    print("=" * 60)
