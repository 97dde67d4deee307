from __future__ import annotations

import sqlite3


def bootstrap(conn: sqlite3.Connection) -> None:
    """Create tables and indexes (idempotent)."""
    cur = conn.cursor()

    # Stargazers: one row per GitHub user id, status only ever leaves 'pending'
    cur.execute(
        (
            "CREATE TABLE IF NOT EXISTS stargazers (\n"
            "  id INTEGER PRIMARY KEY,\n"
            "  username TEXT NOT NULL UNIQUE,\n"
            "  starred_at TEXT,\n"
            "  ingest_seq INTEGER,\n"
            "  created_at TEXT NOT NULL DEFAULT (datetime('now')),\n"
            "  enriched_at TEXT,\n"
            "  enrichment_status TEXT NOT NULL DEFAULT 'pending'\n"
            "    CHECK (enrichment_status IN ('pending', 'completed', 'failed'))\n"
            ")"
        )
    )
    # Backfill insertion sequence for databases created before it was tracked
    cols = {row[1] for row in cur.execute("PRAGMA table_info(stargazers);").fetchall()}
    if "ingest_seq" not in cols:
        cur.execute("ALTER TABLE stargazers ADD COLUMN ingest_seq INTEGER;")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_stargazers_status ON stargazers(enrichment_status);")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_stargazers_starred_at ON stargazers(starred_at);")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_stargazers_ingest_seq ON stargazers(ingest_seq);")

    # Enriched profiles: created once, on successful enrichment only
    cur.execute(
        (
            "CREATE TABLE IF NOT EXISTS enriched_profiles (\n"
            "  github_id INTEGER PRIMARY KEY,\n"
            "  name TEXT,\n"
            "  bio TEXT,\n"
            "  location TEXT,\n"
            "  company TEXT,\n"
            "  country TEXT,\n"
            "  employers_json TEXT,\n"
            "  linkedin_url TEXT,\n"
            "  website_url TEXT,\n"
            "  university TEXT,\n"
            "  email TEXT,\n"
            "  twitter_username TEXT,\n"
            "  social_accounts_json TEXT,\n"
            "  raw_github_profile TEXT,\n"
            "  created_at TEXT NOT NULL DEFAULT (datetime('now')),\n"
            "  FOREIGN KEY(github_id) REFERENCES stargazers(id)\n"
            ")"
        )
    )
    # Backfill column for databases created before social accounts were captured
    cols = {row[1] for row in cur.execute("PRAGMA table_info(enriched_profiles);").fetchall()}
    if "social_accounts_json" not in cols:
        cur.execute("ALTER TABLE enriched_profiles ADD COLUMN social_accounts_json TEXT;")

    conn.commit()
