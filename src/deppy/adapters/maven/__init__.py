"""Maven repository adapters for library and plugin versions."""

from __future__ import annotations

from .client import GradlePluginPortalRegistry, MavenCentralRegistry
from .schema import has_documents

__all__ = ["GradlePluginPortalRegistry", "MavenCentralRegistry", "has_documents"]
