from .github import (
    GitHubCommit,
    GitHubRepo,
    GitHubStargazer,
    GitHubUserProfile,
    SocialAccount,
)
from .extracted_profile import Employer, ExtractedProfile
from .stargazer_record import StargazerRecord
from .enriched_profile_record import EnrichedProfileRecord

__all__ = [
    "GitHubCommit",
    "GitHubRepo",
    "GitHubStargazer",
    "GitHubUserProfile",
    "SocialAccount",
    "Employer",
    "ExtractedProfile",
    "StargazerRecord",
    "EnrichedProfileRecord",
]
