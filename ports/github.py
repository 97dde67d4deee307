from __future__ import annotations

from typing import List, Protocol

from models.github import (
    GitHubCommit,
    GitHubRepo,
    GitHubStargazer,
    GitHubUserProfile,
    SocialAccount,
)


class GitHubPort(Protocol):
    def get_all_stargazers(self, owner: str, repo: str) -> List[GitHubStargazer]:
        ...

    def get_user_profile(self, username: str) -> GitHubUserProfile:
        ...

    def get_user_repos(self, username: str) -> List[GitHubRepo]:
        ...

    def get_repo_commits(self, owner: str, repo: str, author: str) -> List[GitHubCommit]:
        ...

    def get_user_social_accounts(self, username: str) -> List[SocialAccount]:
        ...
