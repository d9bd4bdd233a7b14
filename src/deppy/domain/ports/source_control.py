"""Port for the hosted repository: refs, trees, commits and pull requests."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence


class FileMode(StrEnum):
    REGULAR = "100644"
    EXECUTABLE = "100755"


@dataclass(frozen=True, slots=True)
class RemoteBranch:
    name: str
    head: str


@dataclass(frozen=True, slots=True)
class TreeEntry:
    path: str
    content: str
    mode: FileMode = FileMode.REGULAR


@dataclass(frozen=True, slots=True)
class PullRequest:
    number: int
    url: str | None = None


class SourceControlError(RuntimeError):
    """Raised when the source-control host rejects or fails a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@runtime_checkable
class SourceControl(Protocol):
    async def find_branch(self, name: str) -> RemoteBranch | None: ...

    async def get_commit_tree(self, commit_id: str) -> str: ...

    async def create_tree(self, base_tree: str, entries: Sequence[TreeEntry]) -> str: ...

    async def create_commit(self, *, message: str, tree: str, parent: str) -> str: ...

    async def upsert_branch(self, name: str, commit_id: str) -> None: ...

    async def find_open_pull_request(self, *, head: str, base: str) -> PullRequest | None: ...

    async def create_pull_request(
        self, *, title: str, head: str, base: str, body: str
    ) -> PullRequest: ...

    async def update_pull_request_body(self, number: int, body: str) -> None: ...


__all__ = [
    "FileMode",
    "PullRequest",
    "RemoteBranch",
    "SourceControl",
    "SourceControlError",
    "TreeEntry",
]
