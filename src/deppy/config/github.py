"""GitHub API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig

GITHUB_API_BASE_URL = "https://api.github.com/"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class GitHubConfig:
    """Holds GitHub API configuration values."""

    token: str
    owner: str
    repo: str
    resilience: ResilienceConfig

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


def split_repository(full_name: str) -> tuple[str, str]:
    owner, _, repo = full_name.strip().partition("/")
    if not owner or not repo or "/" in repo:
        raise ConfigurationError(f"Repository must look like 'owner/name', got {full_name!r}")
    return owner, repo


def get_github_config(*, resilience: ResilienceConfig | None = None) -> GitHubConfig:
    values = require_env_vars(("GITHUB_TOKEN", "DEPPY_REPOSITORY"))
    owner, repo = split_repository(values["DEPPY_REPOSITORY"])
    token = values["GITHUB_TOKEN"]
    return GitHubConfig(
        token=token,
        owner=owner,
        repo=repo,
        resilience=resilience
        or ResilienceConfig(
            name="github",
            base_url=GITHUB_API_BASE_URL,
            timeout_seconds=GITHUB_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            cache=None,
            default_headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {token}",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
        ),
    )
