"""Ports for looking up published versions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence


@dataclass(frozen=True, slots=True)
class DistributionRelease:
    """One published build-tool distribution.

    ``timestamp`` is the registry's raw build time; parsing is left to the caller
    because registries disagree on formats and some entries carry none.
    """

    version: str
    timestamp: str | None
    is_prerelease: bool


@runtime_checkable
class DependencyRegistry(Protocol):
    """Versions of a library artifact, newest first; empty on miss."""

    async def versions(self, group: str, artifact: str) -> Sequence[str]: ...


@runtime_checkable
class PluginRegistry(Protocol):
    """Versions of a build plugin, newest first; empty on miss."""

    async def versions(self, plugin_id: str) -> Sequence[str]: ...


@runtime_checkable
class DistributionRegistry(Protocol):
    """Every known distribution of the build tool."""

    async def releases(self) -> Sequence[DistributionRelease]: ...


class RegistryError(RuntimeError):
    """Raised by registry adapters when a response cannot be interpreted."""


__all__ = [
    "DependencyRegistry",
    "DistributionRegistry",
    "DistributionRelease",
    "PluginRegistry",
    "RegistryError",
]
