"""Version catalog resolution."""

from __future__ import annotations

from .engine import CATALOG_TITLE, CatalogResolutionEngine, CatalogTarget
from .syntax import (
    CatalogSyntax,
    KotlinConstantsSyntax,
    TomlCatalogSyntax,
    group_references,
)

__all__ = [
    "CATALOG_TITLE",
    "CatalogResolutionEngine",
    "CatalogSyntax",
    "CatalogTarget",
    "KotlinConstantsSyntax",
    "TomlCatalogSyntax",
    "group_references",
]
