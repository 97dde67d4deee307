from __future__ import annotations

import json
import sqlite3
from typing import Any, Dict, List

from models.enriched_profile_record import EnrichedProfileRecord


class StatusTransitionError(RuntimeError):
    """The stargazer was not pending when its enrichment was saved."""


EXPORT_COLUMNS: List[str] = [
    "username",
    "starred_at",
    "name",
    "email",
    "country",
    "employers_json",
    "linkedin_url",
    "website_url",
    "university",
    "twitter_username",
    "social_accounts_json",
]


class ProfilesRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def save_enriched_profile(self, record: EnrichedProfileRecord) -> None:
        """Insert the profile row and mark its stargazer completed, atomically.

        Either both writes land or neither does, so a profile row exists
        exactly when the stargazer is completed.
        """
        employers_json = json.dumps([e.model_dump() for e in record.employers], ensure_ascii=False)
        socials_json = json.dumps([s.model_dump() for s in record.social_accounts], ensure_ascii=False)
        with self.conn:
            cur = self.conn.cursor()
            cur.execute(
                "UPDATE stargazers SET enrichment_status = 'completed', enriched_at = datetime('now') "
                "WHERE id = ? AND enrichment_status = 'pending'",
                (record.github_id,),
            )
            if cur.rowcount != 1:
                raise StatusTransitionError(f"Stargazer {record.github_id} is not pending")
            cur.execute(
                (
                    "INSERT INTO enriched_profiles (github_id, name, bio, location, company, country, employers_json, "
                    "linkedin_url, website_url, university, email, twitter_username, social_accounts_json, raw_github_profile) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"
                ),
                (
                    record.github_id,
                    record.name,
                    record.bio,
                    record.location,
                    record.company,
                    record.country,
                    employers_json,
                    record.linkedin_url,
                    record.website_url,
                    record.university,
                    record.email,
                    record.twitter_username,
                    socials_json,
                    record.raw_github_profile,
                ),
            )

    def count_profiles(self) -> int:
        cur = self.conn.cursor()
        cur.execute("SELECT COUNT(*) FROM enriched_profiles")
        return int(cur.fetchone()[0])

    def export_rows(self) -> List[Dict[str, Any]]:
        """Every stargazer left-joined with its profile, most recent star first."""
        sql = (
            "SELECT s.username, s.starred_at, e.name, e.email, e.country, e.employers_json, "
            "       e.linkedin_url, e.website_url, e.university, e.twitter_username, e.social_accounts_json "
            "FROM stargazers s LEFT JOIN enriched_profiles e ON s.id = e.github_id "
            "ORDER BY s.starred_at DESC"
        )
        cur = self.conn.cursor()
        cur.execute(sql)
        return [dict(zip(EXPORT_COLUMNS, row)) for row in cur.fetchall()]
