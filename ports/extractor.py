from __future__ import annotations

from typing import Optional, Protocol, Sequence

from models.extracted_profile import ExtractedProfile
from models.github import GitHubUserProfile


class ProfileExtractorPort(Protocol):
    def extract(
        self,
        profile: GitHubUserProfile,
        candidate_emails: Optional[Sequence[str]] = None,
    ) -> ExtractedProfile:
        ...
