"""Domain port definitions for adapters."""

from __future__ import annotations

from .registries import (
    DependencyRegistry,
    DistributionRegistry,
    DistributionRelease,
    PluginRegistry,
    RegistryError,
)
from .source_control import (
    FileMode,
    PullRequest,
    RemoteBranch,
    SourceControl,
    SourceControlError,
    TreeEntry,
)
from .storage import SettingsStore
from .workspace import (
    CommandError,
    CommandResult,
    CommandRunner,
    UpdateProposer,
    WorkingTree,
    Workspace,
    WorkspaceError,
)

__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "DependencyRegistry",
    "DistributionRegistry",
    "DistributionRelease",
    "FileMode",
    "PluginRegistry",
    "PullRequest",
    "RegistryError",
    "RemoteBranch",
    "SettingsStore",
    "SourceControl",
    "SourceControlError",
    "TreeEntry",
    "UpdateProposer",
    "WorkingTree",
    "Workspace",
    "WorkspaceError",
]
