from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Employer(BaseModel):
    name: str
    current: bool

    model_config = ConfigDict(extra="forbid")


class ExtractedProfile(BaseModel):
    """LLM structured output: strict shape expected from profile extraction.

    Every key is required (nullable where noted); a payload missing one is a
    failed extraction, not a partially enriched record.
    """

    country: str | None
    employers: list[Employer]
    linkedin_url: str | None
    website_url: str | None
    university: str | None
    email: str | None

    model_config = ConfigDict(extra="forbid")
