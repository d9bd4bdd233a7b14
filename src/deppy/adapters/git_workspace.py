"""Shallow GitPython checkouts serving as the engines' working tree."""

from __future__ import annotations

import asyncio
import shutil
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import quote, urlsplit, urlunsplit

import git

from deppy.domain.ports.workspace import WorkspaceError

if TYPE_CHECKING:
    from collections.abc import Sequence

log = getLogger(__name__)


def authenticated_clone_url(clone_url: str, token: str | None) -> str:
    """Embed ``token`` into an https URL that carries no credentials yet."""

    parts = urlsplit(clone_url)
    if not token or parts.scheme != "https" or "@" in parts.netloc:
        return clone_url
    netloc = f"x-access-token:{quote(token, safe='')}@{parts.netloc}"
    return urlunsplit(parts._replace(netloc=netloc))


class GitWorkingTree:
    def __init__(self, repo: git.Repo) -> None:
        if repo.working_tree_dir is None:
            raise WorkspaceError("Bare repositories have no working tree")
        self._repo = repo
        self._root = Path(repo.working_tree_dir).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def read_text(self, path: str) -> str:
        with self._resolve(path).open(encoding="utf-8", newline="") as handle:
            return handle.read()

    def write_text(self, path: str, content: str) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("w", encoding="utf-8", newline="") as handle:
            handle.write(content)

    def changed_files(self) -> Sequence[str]:
        modified = {
            diff.a_path
            for diff in self._repo.index.diff(None)
            if not diff.deleted_file and diff.a_path is not None
        }
        return sorted(modified.union(self._repo.untracked_files))

    def _resolve(self, path: str) -> Path:
        candidate = (self._root / path).resolve()
        if not candidate.is_relative_to(self._root):
            raise WorkspaceError(f"{path} is outside the working tree")
        return candidate


class GitWorkspace:
    """Replaces ``directory`` with a fresh depth-1 clone of ``branch`` on every run."""

    def __init__(self, *, clone_url: str, branch: str, directory: Path) -> None:
        self._clone_url = clone_url
        self._branch = branch
        self._directory = directory

    async def materialize(self) -> GitWorkingTree:
        return await asyncio.to_thread(self._clone)

    def _clone(self) -> GitWorkingTree:
        if self._directory.exists():
            log.info("Removing previous checkout at %s", self._directory)
            shutil.rmtree(self._directory)
        self._directory.parent.mkdir(parents=True, exist_ok=True)

        log.info("Cloning branch %s into %s", self._branch, self._directory)
        try:
            repo = git.Repo.clone_from(
                self._clone_url,
                self._directory,
                branch=self._branch,
                depth=1,
                single_branch=True,
            )
        except git.exc.GitCommandError as exc:
            # the command line may contain the token, only report the status
            raise WorkspaceError(
                f"Cloning branch {self._branch} failed with exit status {exc.status}"
            ) from None
        log.info("Checked out %s", repo.head.commit.hexsha)
        return GitWorkingTree(repo)
