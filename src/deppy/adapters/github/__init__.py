"""GitHub source-control adapter."""

from __future__ import annotations

from .client import GitHubSourceControl

__all__ = ["GitHubSourceControl"]
