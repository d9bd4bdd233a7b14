"""GitHub REST response schemas, limited to the fields the bot reads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class GitHubBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class GitObject(GitHubBaseModel):
    sha: str


class GitReference(GitHubBaseModel):
    ref: str
    target: GitObject = Field(alias="object")


class GitCommit(GitHubBaseModel):
    sha: str
    tree: GitObject


class PullRequestPayload(GitHubBaseModel):
    number: int
    html_url: str | None = None
