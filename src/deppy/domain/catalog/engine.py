"""Resolve version keys of a catalog against registries and rewrite them in place."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from deppy.domain.model import (
    ChangeLog,
    ChangeRecord,
    DependencyCoordinates,
    EngineResult,
    PluginCoordinates,
)

from .syntax import KotlinConstantsSyntax, group_references

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from deppy.domain.exclusions import ExclusionStrategy
    from deppy.domain.model import ArtifactReference, VersionDefinition
    from deppy.domain.ports.registries import DependencyRegistry, PluginRegistry
    from deppy.domain.ports.workspace import WorkingTree

    from .syntax import CatalogSyntax

log = getLogger(__name__)

CATALOG_TITLE = "Gradle dependencies"


@dataclass(frozen=True, slots=True)
class CatalogTarget:
    """A catalog file and the build scripts whose references resolve against it."""

    catalog_path: str
    descriptor_paths: tuple[str, ...]
    syntax: CatalogSyntax = field(default_factory=KotlinConstantsSyntax)


@dataclass(slots=True)
class CatalogResolutionEngine:
    targets: Sequence[CatalogTarget]
    dependencies: DependencyRegistry
    plugins: PluginRegistry
    title: str = CATALOG_TITLE

    async def execute(
        self, tree: WorkingTree, exclusions: ExclusionStrategy
    ) -> EngineResult | None:
        log.info("Checking for catalog updates in %d catalog(s)", len(self.targets))
        changes = ChangeLog()
        writes: dict[str, str] = {}
        for target in self.targets:
            try:
                await self._update_target(tree, target, exclusions, changes, writes)
            except Exception:
                log.exception("Update of catalog %s failed", target.catalog_path)

        log.info("Catalog updates found: %d", len(changes))
        if not changes:
            return None
        return EngineResult(title=self.title, records=tuple(changes), writes=writes)

    async def _update_target(
        self,
        tree: WorkingTree,
        target: CatalogTarget,
        exclusions: ExclusionStrategy,
        changes: ChangeLog,
        writes: dict[str, str],
    ) -> None:
        if target.catalog_path not in writes and not tree.exists(target.catalog_path):
            log.info("Catalog %s not present, skipping", target.catalog_path)
            return

        original = writes.get(target.catalog_path) or tree.read_text(target.catalog_path)
        descriptor_texts: list[str] = []
        for path in target.descriptor_paths:
            if path == target.catalog_path:
                descriptor_texts.append(original)
            elif tree.exists(path):
                descriptor_texts.append(tree.read_text(path))
            else:
                log.warning("Build script %s not present, skipping it", path)

        log.info("Processing version definitions in %s", target.catalog_path)
        target_changes = ChangeLog()
        updated = await self.resolve(
            original,
            descriptor_texts,
            syntax=target.syntax,
            exclusions=exclusions,
            changes=target_changes,
        )
        # records of a failed target are dropped together with its rewrite
        changes.extend(target_changes)
        if updated != original:
            log.info("New versions found, %s will be rewritten", target.catalog_path)
            writes[target.catalog_path] = updated

    async def resolve(
        self,
        catalog_text: str,
        descriptor_texts: Sequence[str],
        *,
        syntax: CatalogSyntax,
        exclusions: ExclusionStrategy,
        changes: ChangeLog,
    ) -> str:
        """Return ``catalog_text`` with every resolvable key moved to its newest allowed value."""

        references_by_key: Mapping[str, list[ArtifactReference]] = group_references(
            syntax, descriptor_texts
        )
        edits: list[tuple[VersionDefinition, str]] = []
        for definition in syntax.version_definitions(catalog_text):
            log.info("Found %s at version %s", definition.key, definition.current_value)
            references = references_by_key.get(definition.key)
            if not references:
                log.info("No artifacts cite %s", definition.key)
                continue

            selected = await self._resolve_key(definition, references, exclusions)
            if selected is None:
                continue

            edits.append((definition, selected))
            # the same key is often declared for buildSrc and for the project itself
            changes.add(
                ChangeRecord(
                    title=self.title,
                    description=(
                        f"Updated `{definition.key}` from `{definition.current_value}` "
                        f"to `{selected}`"
                    ),
                )
            )
            log.info("Updated %s to %s", definition.key, selected)

        # back to front, so earlier offsets stay valid
        text = catalog_text
        for definition, selected in sorted(edits, key=lambda edit: edit[0].start, reverse=True):
            text = definition.splice(text, selected)
        return text

    async def _resolve_key(
        self,
        definition: VersionDefinition,
        references: Sequence[ArtifactReference],
        exclusions: ExclusionStrategy,
    ) -> str | None:
        for reference in references:
            log.info("%s is used by %s", definition.key, reference.coordinates)
            candidates = await self._candidates(reference)
            if not candidates:
                log.info("No versions known for %s, trying next artifact", reference.coordinates)
                continue
            # one artifact with versions decides the key; its siblings share the release train
            return _select_candidate(definition, candidates, exclusions)
        return None

    async def _candidates(self, reference: ArtifactReference) -> Sequence[str]:
        coordinates = reference.coordinates
        try:
            if isinstance(coordinates, DependencyCoordinates):
                return await self.dependencies.versions(coordinates.group, coordinates.artifact)
            if isinstance(coordinates, PluginCoordinates):
                return await self.plugins.versions(coordinates.plugin_id)
        except Exception as exc:  # noqa: BLE001
            log.warning("Failed to retrieve versions for %s: %s", coordinates, exc)
        return ()


def _select_candidate(
    definition: VersionDefinition,
    candidates: Sequence[str],
    exclusions: ExclusionStrategy,
) -> str | None:
    for candidate in candidates:
        if candidate == definition.current_value:
            log.info("%s is already on the newest allowed version", definition.key)
            return None
        if exclusions.is_excluded(definition.key, candidate):
            log.info("Skipping %s %s as it is excluded", definition.key, candidate)
            continue
        return candidate
    return None
