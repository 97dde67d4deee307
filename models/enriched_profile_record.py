from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from models.extracted_profile import Employer
from models.github import SocialAccount


class EnrichedProfileRecord(BaseModel):
    """App/DB record shape: what gets written to enriched_profiles."""

    github_id: int
    # Raw profile fields, verbatim
    name: str | None = None
    bio: str | None = None
    location: str | None = None
    company: str | None = None
    # LLM-derived (country already canonical)
    country: str | None = None
    employers: list[Employer] = Field(default_factory=list)
    linkedin_url: str | None = None
    website_url: str | None = None
    university: str | None = None
    email: str | None = None
    # Captured independently of the LLM
    twitter_username: str | None = None
    social_accounts: list[SocialAccount] = Field(default_factory=list)
    raw_github_profile: str | None = None

    model_config = ConfigDict(extra="ignore")
