from .llm import LLMClientPort
from .extractor import ProfileExtractorPort
from .github import GitHubPort
from .repos import StargazersRepoPort, ProfilesRepoPort

__all__ = [
    "LLMClientPort",
    "ProfileExtractorPort",
    "GitHubPort",
    "StargazersRepoPort",
    "ProfilesRepoPort",
]
