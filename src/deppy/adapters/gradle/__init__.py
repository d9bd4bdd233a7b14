"""Gradle distribution adapter."""

from __future__ import annotations

from .client import GradleServicesRegistry

__all__ = ["GradleServicesRegistry"]
