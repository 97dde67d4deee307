from __future__ import annotations

import json
import sqlite3

import pytest

from db import schema
from db.repos.profiles_repo import ProfilesRepo, StatusTransitionError
from db.repos.stargazers_repo import StargazersRepo
from models.enriched_profile_record import EnrichedProfileRecord
from models.extracted_profile import Employer
from models.github import SocialAccount


def test_bootstrap_is_idempotent(conn):
    schema.bootstrap(conn)
    schema.bootstrap(conn)
    tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    assert {"stargazers", "enriched_profiles"} <= tables


def test_bootstrap_backfills_social_accounts_column(tmp_path):
    conn = sqlite3.connect(str(tmp_path / "old.db"))
    conn.execute("CREATE TABLE enriched_profiles (github_id INTEGER PRIMARY KEY, name TEXT)")
    schema.bootstrap(conn)
    cols = {r[1] for r in conn.execute("PRAGMA table_info(enriched_profiles)")}
    assert "social_accounts_json" in cols
    conn.close()


def test_insert_is_keyed_by_id(conn):
    repo = StargazersRepo(conn)
    assert repo.insert_stargazer(1, "octo", "2024-01-01T00:00:00Z") is True
    assert repo.insert_stargazer(1, "octo", "2024-01-01T00:00:00Z") is False
    assert repo.existing_ids() == {1}
    assert repo.count_by_status() == {"pending": 1}


def test_select_pending_in_insertion_order(conn):
    repo = StargazersRepo(conn)
    # Ids deliberately out of order; one run shares the same created_at second
    for sid, name in [(30, "first"), (10, "second"), (20, "third")]:
        repo.insert_stargazer(sid, name, None)
    assert repo.select_pending(3) == [(30, "first"), (10, "second"), (20, "third")]
    assert repo.select_pending(2) == [(30, "first"), (10, "second")]
    assert sorted(repo.select_pending(10, randomize=True)) == [(10, "second"), (20, "third"), (30, "first")]


def test_bootstrap_backfills_ingest_seq_column(tmp_path):
    conn = sqlite3.connect(str(tmp_path / "old.db"))
    conn.execute(
        "CREATE TABLE stargazers (id INTEGER PRIMARY KEY, username TEXT NOT NULL UNIQUE, starred_at TEXT, "
        "created_at TEXT NOT NULL DEFAULT (datetime('now')), enriched_at TEXT, "
        "enrichment_status TEXT NOT NULL DEFAULT 'pending')"
    )
    conn.execute("INSERT INTO stargazers (id, username) VALUES (5, 'legacy')")
    conn.commit()
    schema.bootstrap(conn)
    cols = {r[1] for r in conn.execute("PRAGMA table_info(stargazers)")}
    assert "ingest_seq" in cols
    repo = StargazersRepo(conn)
    assert repo.insert_stargazer(2, "fresh", None) is True
    assert {u for _, u in repo.select_pending(10)} == {"legacy", "fresh"}
    conn.close()


def test_failed_is_terminal(conn):
    repo = StargazersRepo(conn)
    repo.insert_stargazer(1, "octo", None)
    assert repo.mark_failed(1) is True
    assert repo.mark_failed(1) is False
    assert repo.get_status(1) == "failed"
    assert repo.count_pending() == 0
    with pytest.raises(StatusTransitionError):
        ProfilesRepo(conn).save_enriched_profile(EnrichedProfileRecord(github_id=1))
    assert ProfilesRepo(conn).count_profiles() == 0


def test_save_profile_completes_stargazer(conn):
    stargazers = StargazersRepo(conn)
    profiles = ProfilesRepo(conn)
    stargazers.insert_stargazer(7, "octo", "2024-02-01T00:00:00Z")
    profiles.save_enriched_profile(
        EnrichedProfileRecord(
            github_id=7,
            name="Octo Cat",
            country="US",
            employers=[Employer(name="GitHub", current=True)],
            social_accounts=[SocialAccount(provider="mastodon", url="https://m.example/@octo")],
            raw_github_profile='{"login": "octo"}',
        )
    )
    assert stargazers.get_status(7) == "completed"
    record = stargazers.get_stargazer(7)
    assert record.enriched_at is not None
    assert record.starred_at == "2024-02-01T00:00:00Z"
    # Completed is terminal too
    assert stargazers.mark_failed(7) is False

    (row,) = profiles.export_rows()
    assert row["username"] == "octo"
    assert json.loads(row["employers_json"]) == [{"name": "GitHub", "current": True}]
    assert json.loads(row["social_accounts_json"]) == [{"provider": "mastodon", "url": "https://m.example/@octo"}]


def test_profile_insert_failure_leaves_stargazer_pending(conn):
    stargazers = StargazersRepo(conn)
    profiles = ProfilesRepo(conn)
    stargazers.insert_stargazer(7, "octo", None)
    # A pre-existing profile row makes the insert fail after the status update
    conn.execute("INSERT INTO enriched_profiles (github_id) VALUES (7)")
    conn.commit()
    with pytest.raises(sqlite3.IntegrityError):
        profiles.save_enriched_profile(EnrichedProfileRecord(github_id=7))
    assert stargazers.get_status(7) == "pending"


def test_export_rows_newest_star_first(conn):
    repo = StargazersRepo(conn)
    repo.insert_stargazer(1, "old", "2023-01-01T00:00:00Z")
    repo.insert_stargazer(2, "new", "2024-06-01T00:00:00Z")
    repo.insert_stargazer(3, "mid", "2023-09-01T00:00:00Z")
    assert [r["username"] for r in ProfilesRepo(conn).export_rows()] == ["new", "mid", "old"]
