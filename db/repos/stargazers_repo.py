from __future__ import annotations

import sqlite3
from typing import List, Optional, Set, Tuple

from models.stargazer_record import STATUS_PENDING, StargazerRecord


class StargazersRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def existing_ids(self) -> Set[int]:
        cur = self.conn.cursor()
        cur.execute("SELECT id FROM stargazers")
        return {int(row[0]) for row in cur.fetchall()}

    def insert_stargazer(self, stargazer_id: int, username: str, starred_at: Optional[str]) -> bool:
        """Insert a new pending stargazer keyed by GitHub id.

        Returns False when the id is already stored; the existing row (and its
        enrichment status) is left untouched.
        """
        cur = self.conn.cursor()
        cur.execute(
            (
                "INSERT INTO stargazers (id, username, starred_at, ingest_seq) "
                "VALUES (?, ?, ?, (SELECT COALESCE(MAX(ingest_seq), 0) + 1 FROM stargazers)) "
                "ON CONFLICT(id) DO NOTHING"
            ),
            (stargazer_id, username, starred_at),
        )
        self.conn.commit()
        return cur.rowcount == 1

    def count_pending(self) -> int:
        return self.count_by_status().get(STATUS_PENDING, 0)

    def count_by_status(self) -> dict[str, int]:
        cur = self.conn.cursor()
        cur.execute("SELECT enrichment_status, COUNT(*) FROM stargazers GROUP BY enrichment_status")
        return {str(status): int(n) for status, n in cur.fetchall()}

    def select_pending(self, limit: int, randomize: bool = False) -> List[Tuple[int, str]]:
        """Return (id, username) of pending stargazers.

        Insertion order, or random order. Rows ingested before the sequence
        column existed carry no sequence and fall back to ingestion time and id.
        """
        order = "RANDOM()" if randomize else "created_at, ingest_seq, id"
        cur = self.conn.cursor()
        cur.execute(
            f"SELECT id, username FROM stargazers WHERE enrichment_status = 'pending' ORDER BY {order} LIMIT ?",
            (limit,),
        )
        return [(int(r[0]), str(r[1])) for r in cur.fetchall()]

    def get_stargazer(self, stargazer_id: int) -> Optional[StargazerRecord]:
        cur = self.conn.cursor()
        cur.execute(
            "SELECT id, username, starred_at, created_at, enriched_at, enrichment_status FROM stargazers WHERE id = ?",
            (stargazer_id,),
        )
        row = cur.fetchone()
        if not row:
            return None
        keys = ["id", "username", "starred_at", "created_at", "enriched_at", "enrichment_status"]
        return StargazerRecord.model_validate(dict(zip(keys, row)))

    def get_status(self, stargazer_id: int) -> Optional[str]:
        record = self.get_stargazer(stargazer_id)
        return record.enrichment_status if record else None

    def mark_failed(self, stargazer_id: int) -> bool:
        """pending -> failed. Terminal rows are never touched."""
        cur = self.conn.cursor()
        cur.execute(
            "UPDATE stargazers SET enrichment_status = 'failed' WHERE id = ? AND enrichment_status = 'pending'",
            (stargazer_id,),
        )
        self.conn.commit()
        return cur.rowcount == 1
