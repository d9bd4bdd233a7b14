"""Target repository settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .env import optional_env, require_env_vars
from .github import split_repository
from .storage import StorageConfig, get_storage_config

DEFAULT_MAIN_BRANCH = "master"
DEFAULT_UPDATES_BRANCH = "dependencies-update"


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    """Which repository is kept up to date, and where it is checked out."""

    repository: str
    clone_url: str
    main_branch: str
    updates_branch: str
    workspace_dir: Path


def get_project_config(*, storage: StorageConfig | None = None) -> ProjectConfig:
    repository = require_env_vars(("DEPPY_REPOSITORY",))["DEPPY_REPOSITORY"]
    split_repository(repository)
    workspace_env = os.getenv("DEPPY_WORKSPACE_DIR")
    workspace_dir = (
        Path(workspace_env).expanduser().resolve()
        if workspace_env
        else (storage or get_storage_config()).workspace_dir()
    )
    return ProjectConfig(
        repository=repository,
        clone_url=optional_env("DEPPY_CLONE_URL", f"https://github.com/{repository}.git"),
        main_branch=optional_env("DEPPY_MAIN_BRANCH", DEFAULT_MAIN_BRANCH),
        updates_branch=optional_env("DEPPY_UPDATES_BRANCH", DEFAULT_UPDATES_BRANCH),
        workspace_dir=workspace_dir,
    )
