"""Parsers turning catalog and build-script text into definitions and references.

Parsing happens in two passes: one over the catalog text collecting
:class:`VersionDefinition` objects, one over every descriptor text collecting
:class:`ArtifactReference` objects. Nothing here knows about registries.
"""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, Protocol, cast

from deppy.domain.model import (
    ArtifactReference,
    DependencyCoordinates,
    PluginCoordinates,
    VersionDefinition,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

log = getLogger(__name__)


class CatalogSyntax(Protocol):
    name: str

    def version_definitions(self, text: str) -> list[VersionDefinition]: ...

    def dependency_references(self, text: str) -> list[ArtifactReference]: ...

    def plugin_references(self, text: str) -> list[ArtifactReference]: ...


def _unique_definitions(
    candidates: Iterable[VersionDefinition], *, syntax: str
) -> list[VersionDefinition]:
    definitions: dict[str, VersionDefinition] = {}
    for definition in candidates:
        if definition.key in definitions:
            log.warning("%s: duplicate version key %s ignored", syntax, definition.key)
            continue
        definitions[definition.key] = definition
    return list(definitions.values())


@dataclass(slots=True)
class KotlinConstantsSyntax:
    """``buildSrc`` style: ``val kotlin = "1.9.0"`` cited as ``${Versions.kotlin}``.

    Plugins are recognised as ``id("org.foo") version Versions.key`` and
    ``kotlin("jvm") version Versions.key``.
    """

    holder: str = "Versions"
    name: str = "kotlin"
    _definition_re: re.Pattern[str] = field(init=False, repr=False)
    _dependency_re: re.Pattern[str] = field(init=False, repr=False)
    _plugin_re: re.Pattern[str] = field(init=False, repr=False)
    _kotlin_plugin_re: re.Pattern[str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        holder = re.escape(self.holder)
        self._definition_re = re.compile(
            r'\bval\s+(?P<key>\w+)\s*(?::\s*String\s*)?=\s*"(?P<value>[^"\n]+)"'
        )
        self._dependency_re = re.compile(
            r'"(?P<group>[^":\s]+):(?P<artifact>[^":\s]+):\$\{' + holder + r'\.(?P<key>\w+)\}"'
        )
        self._plugin_re = re.compile(
            r'\bid\b[^"\n]*"(?P<plugin>[^"\n]+)"[^\n]*?\b' + holder + r'\.(?P<key>\w+)'
        )
        self._kotlin_plugin_re = re.compile(
            r'\bkotlin\(\s*"(?P<plugin>[^"\n]+)"\s*\)\s*version\s+' + holder + r'\.(?P<key>\w+)'
        )

    def version_definitions(self, text: str) -> list[VersionDefinition]:
        return _unique_definitions(
            (
                VersionDefinition(
                    key=match.group("key"),
                    current_value=match.group("value"),
                    raw_text=match.group(0),
                    value_offset=match.start("value") - match.start(),
                    start=match.start(),
                )
                for match in self._definition_re.finditer(text)
            ),
            syntax=self.name,
        )

    def dependency_references(self, text: str) -> list[ArtifactReference]:
        return [
            ArtifactReference(
                coordinates=DependencyCoordinates(
                    group=match.group("group"), artifact=match.group("artifact")
                ),
                key=match.group("key"),
            )
            for match in self._dependency_re.finditer(text)
        ]

    def plugin_references(self, text: str) -> list[ArtifactReference]:
        references = [
            ArtifactReference(
                coordinates=PluginCoordinates(plugin_id=match.group("plugin")),
                key=match.group("key"),
            )
            for match in self._plugin_re.finditer(text)
        ]
        references.extend(
            ArtifactReference(
                coordinates=PluginCoordinates(
                    plugin_id=f"org.jetbrains.kotlin.{match.group('plugin')}"
                ),
                key=match.group("key"),
            )
            for match in self._kotlin_plugin_re.finditer(text)
        )
        return references


_TOML_TABLE_HEADER = re.compile(r"^[ \t]*\[", re.MULTILINE)
_TOML_VERSIONS_HEADER = re.compile(r"^[ \t]*\[versions\][ \t]*(?:#.*)?$", re.MULTILINE)
_TOML_VERSION_ENTRY = re.compile(
    r'^[ \t]*(?P<key>[A-Za-z0-9_.-]+|"[^"\n]+")[ \t]*=[ \t]*"(?P<value>[^"\n]+)"',
    re.MULTILINE,
)


@dataclass(slots=True)
class TomlCatalogSyntax:
    """Gradle version catalogs (``gradle/libs.versions.toml``).

    Only plain string versions in ``[versions]`` are definitions; rich versions
    (``{ strictly = ... }``) are left alone. Libraries and plugins cite them via
    ``version.ref``.
    """

    name: str = "toml"

    def version_definitions(self, text: str) -> list[VersionDefinition]:
        header = _TOML_VERSIONS_HEADER.search(text)
        if header is None:
            return []
        next_table = _TOML_TABLE_HEADER.search(text, header.end())
        end = next_table.start() if next_table else len(text)
        return _unique_definitions(
            (
                VersionDefinition(
                    key=match.group("key").strip('"'),
                    current_value=match.group("value"),
                    raw_text=match.group(0),
                    value_offset=match.start("value") - match.start(),
                    start=match.start(),
                )
                for match in _TOML_VERSION_ENTRY.finditer(text, header.end(), end)
            ),
            syntax=self.name,
        )

    def dependency_references(self, text: str) -> list[ArtifactReference]:
        references: list[ArtifactReference] = []
        for alias, entry in _table(tomllib.loads(text), "libraries").items():
            key = _version_ref(entry)
            coordinates = _library_coordinates(entry)
            if key is None or coordinates is None:
                log.debug("Library %s does not cite a version key", alias)
                continue
            references.append(ArtifactReference(coordinates=coordinates, key=key))
        return references

    def plugin_references(self, text: str) -> list[ArtifactReference]:
        references: list[ArtifactReference] = []
        for alias, entry in _table(tomllib.loads(text), "plugins").items():
            key = _version_ref(entry)
            plugin_id = entry.get("id") if isinstance(entry, dict) else None
            if key is None or not isinstance(plugin_id, str):
                log.debug("Plugin %s does not cite a version key", alias)
                continue
            references.append(
                ArtifactReference(coordinates=PluginCoordinates(plugin_id=plugin_id), key=key)
            )
        return references


def _table(document: dict[str, Any], name: str) -> dict[str, Any]:
    table = document.get(name, {})
    return cast(dict[str, Any], table) if isinstance(table, dict) else {}


def _version_ref(entry: object) -> str | None:
    if not isinstance(entry, dict):
        return None
    version = cast(dict[str, Any], entry).get("version")
    if isinstance(version, dict):
        ref = cast(dict[str, Any], version).get("ref")
        return ref if isinstance(ref, str) else None
    return None


def _library_coordinates(entry: object) -> DependencyCoordinates | None:
    if not isinstance(entry, dict):
        return None
    values = cast(dict[str, Any], entry)
    module = values.get("module")
    if isinstance(module, str) and module.count(":") == 1:
        group, artifact = module.split(":")
        return DependencyCoordinates(group=group, artifact=artifact)
    group = values.get("group")
    artifact = values.get("name")
    if isinstance(group, str) and isinstance(artifact, str):
        return DependencyCoordinates(group=group, artifact=artifact)
    return None


def group_references(
    syntax: CatalogSyntax, texts: Iterable[str]
) -> dict[str, list[ArtifactReference]]:
    """Merge references from ``texts`` into an ordered ``key -> references`` mapping.

    Dependency references of every text precede plugin references; within each
    kind, discovery order is kept. Identical references are listed once.
    """

    materialized = list(texts)
    grouped: dict[str, list[ArtifactReference]] = {}
    for extract in (syntax.dependency_references, syntax.plugin_references):
        for text in materialized:
            for reference in extract(text):
                bucket = grouped.setdefault(reference.key, [])
                if reference not in bucket:
                    bucket.append(reference)
    return grouped
