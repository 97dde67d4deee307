from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class GitHubUserRef(BaseModel):
    id: int
    login: str

    model_config = ConfigDict(extra="ignore")


class GitHubStargazer(BaseModel):
    """One entry of the star+json stargazers listing."""

    starred_at: str | None = None
    user: GitHubUserRef

    model_config = ConfigDict(extra="ignore")


class GitHubUserProfile(BaseModel):
    """Public profile as returned by /users/{username}.

    Unknown keys are kept so the raw snapshot stored for audit is complete.
    """

    id: int
    login: str
    name: str | None = None
    bio: str | None = None
    location: str | None = None
    company: str | None = None
    blog: str | None = None
    twitter_username: str | None = None
    email: str | None = None
    public_repos: int | None = None
    followers: int | None = None
    following: int | None = None
    created_at: str | None = None
    updated_at: str | None = None

    model_config = ConfigDict(extra="allow")


class GitHubRepoOwner(BaseModel):
    login: str

    model_config = ConfigDict(extra="ignore")


class GitHubRepo(BaseModel):
    id: int
    name: str
    full_name: str | None = None
    owner: GitHubRepoOwner
    updated_at: str | None = None
    fork: bool = False

    model_config = ConfigDict(extra="ignore")


class GitHubCommitIdentity(BaseModel):
    name: str | None = None
    email: str | None = None

    model_config = ConfigDict(extra="ignore")


class GitHubCommitDetail(BaseModel):
    author: GitHubCommitIdentity | None = None
    committer: GitHubCommitIdentity | None = None

    model_config = ConfigDict(extra="ignore")


class GitHubCommit(BaseModel):
    sha: str
    commit: GitHubCommitDetail

    model_config = ConfigDict(extra="ignore")


class SocialAccount(BaseModel):
    provider: str
    url: str

    model_config = ConfigDict(extra="ignore")
