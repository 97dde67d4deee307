from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict


EnrichmentStatus = Literal["pending", "completed", "failed"]

STATUS_PENDING: EnrichmentStatus = "pending"
STATUS_COMPLETED: EnrichmentStatus = "completed"
STATUS_FAILED: EnrichmentStatus = "failed"


class StargazerRecord(BaseModel):
    """App/DB record shape: one row of the stargazers table."""

    id: int
    username: str
    starred_at: str | None = None
    created_at: str | None = None
    enriched_at: str | None = None
    enrichment_status: EnrichmentStatus = STATUS_PENDING

    model_config = ConfigDict(extra="ignore")
