"""Ports for the local checkout and the external tools run inside it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path


class WorkspaceError(RuntimeError):
    """Raised when the working tree cannot be prepared or a path escapes it."""


class CommandError(RuntimeError):
    """Raised when an external command exits unsuccessfully."""

    def __init__(self, message: str, *, returncode: int | None = None, output: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.output = output


@runtime_checkable
class WorkingTree(Protocol):
    """UTF-8 file access scoped to one checkout; paths are tree-relative with ``/``."""

    @property
    def root(self) -> Path: ...

    def exists(self, path: str) -> bool: ...

    def read_text(self, path: str) -> str: ...

    def write_text(self, path: str, content: str) -> None: ...

    def changed_files(self) -> Sequence[str]:
        """Added or modified paths; deletions are not reported."""
        ...


@runtime_checkable
class Workspace(Protocol):
    async def materialize(self) -> WorkingTree: ...


@dataclass(frozen=True, slots=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@runtime_checkable
class CommandRunner(Protocol):
    async def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult: ...


@runtime_checkable
class UpdateProposer(Protocol):
    """Rewrites a manifest to its newest versions, returning ``name -> new version``."""

    async def propose_and_apply(self, manifest_path: Path) -> Mapping[str, str]: ...


__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "UpdateProposer",
    "WorkingTree",
    "Workspace",
    "WorkspaceError",
]
