"""npm manifest updates with exclusion-aware reversion and lockfile regeneration."""

from __future__ import annotations

import json
import posixpath
import re
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from deppy.domain.model import ChangeRecord, EngineResult
from deppy.domain.ports.workspace import CommandError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from deppy.domain.exclusions import ExclusionStrategy
    from deppy.domain.ports.workspace import CommandRunner, UpdateProposer, WorkingTree

log = getLogger(__name__)

MANIFEST_TITLE = "Frontend dependencies"
LOCKFILE_DRIFT_DESCRIPTION = "Updated transitive dependencies"
DEPENDENCY_SECTIONS = (
    "dependencies",
    "devDependencies",
    "optionalDependencies",
    "peerDependencies",
)
DEFAULT_LOCK_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("npm", "install", "--package-lock-only"),
    ("npm", "audit", "fix", "--package-lock-only"),
)


def declared_versions(manifest_text: str) -> dict[str, str]:
    """Map every declared package to its version spec; earlier sections win."""

    document = json.loads(manifest_text)
    versions: dict[str, str] = {}
    if not isinstance(document, dict):
        return versions
    for section in DEPENDENCY_SECTIONS:
        entries = cast(dict[str, Any], document).get(section)
        if not isinstance(entries, dict):
            continue
        for name, version in cast(dict[str, Any], entries).items():
            if isinstance(version, str):
                versions.setdefault(name, version)
    return versions


def revert_proposal(manifest_text: str, name: str, proposed: str, previous: str) -> str:
    """Put ``previous`` back wherever ``"name": "proposed"`` occurs."""

    pattern = re.compile(rf'("{re.escape(name)}"\s*:\s*)"{re.escape(proposed)}"')
    return pattern.sub(lambda match: f'{match.group(1)}"{previous}"', manifest_text)


@dataclass(slots=True)
class ManifestUpdateEngine:
    proposer: UpdateProposer
    runner: CommandRunner
    directory: str = "frontend"
    manifest_name: str = "package.json"
    lockfile_name: str = "package-lock.json"
    lock_commands: Sequence[Sequence[str]] = DEFAULT_LOCK_COMMANDS
    title: str = MANIFEST_TITLE

    @property
    def manifest_path(self) -> str:
        return posixpath.join(self.directory, self.manifest_name)

    @property
    def lockfile_path(self) -> str:
        return posixpath.join(self.directory, self.lockfile_name)

    async def execute(
        self, tree: WorkingTree, exclusions: ExclusionStrategy
    ) -> EngineResult | None:
        log.info("Will check for updates in %s", self.manifest_path)
        if not tree.exists(self.manifest_path):
            log.info("No manifest at %s, skipping", self.manifest_path)
            return None

        manifest_before = tree.read_text(self.manifest_path)
        lock_before = (
            tree.read_text(self.lockfile_path) if tree.exists(self.lockfile_path) else None
        )
        try:
            records = await self._update(tree, exclusions, manifest_before, lock_before)
        except Exception:
            log.exception("Update of frontend dependencies failed")
            self._restore(tree, manifest_before, lock_before)
            return None

        log.info("Manifest update check finished with %d change(s)", len(records))
        if not records:
            return None
        # the proposer and the lock step already wrote their files
        return EngineResult(title=self.title, records=tuple(records))

    async def _update(
        self,
        tree: WorkingTree,
        exclusions: ExclusionStrategy,
        manifest_before: str,
        lock_before: str | None,
    ) -> list[ChangeRecord]:
        previous = declared_versions(manifest_before) if exclusions.has_exclusions() else {}

        proposals = await self.proposer.propose_and_apply(tree.root / self.manifest_path)
        log.info("Proposed updates: %s", dict(proposals))

        applied = tree.read_text(self.manifest_path)
        records, reverted = self._apply_exclusions(applied, proposals, previous, exclusions)
        if reverted != applied:
            log.info("Rewriting %s to keep excluded versions", self.manifest_path)
            tree.write_text(self.manifest_path, reverted)

        await self._regenerate_lockfile(tree)

        if not records:
            lock_after = (
                tree.read_text(self.lockfile_path) if tree.exists(self.lockfile_path) else None
            )
            if lock_after != lock_before:
                log.info("Lockfile changed without direct updates")
                records.append(
                    ChangeRecord(title=self.title, description=LOCKFILE_DRIFT_DESCRIPTION)
                )
        return records

    def _apply_exclusions(
        self,
        manifest_text: str,
        proposals: Mapping[str, str],
        previous: Mapping[str, str],
        exclusions: ExclusionStrategy,
    ) -> tuple[list[ChangeRecord], str]:
        records: list[ChangeRecord] = []
        text = manifest_text
        for name, version in proposals.items():
            if exclusions.is_excluded(name, version):
                prior = previous.get(name)
                if prior is not None:
                    log.info("Update to %s:%s is excluded, keeping %s", name, version, prior)
                    text = revert_proposal(text, name, version, prior)
                    continue
                log.warning("Update to %s:%s is excluded, no prior version known", name, version)
            records.append(
                ChangeRecord(title=self.title, description=f"`{name}` updated to `{version}`")
            )
        return records, text

    async def _regenerate_lockfile(self, tree: WorkingTree) -> None:
        cwd = tree.root / self.directory
        for command in self.lock_commands:
            log.info("Running %s", " ".join(command))
            result = await self.runner.run(command, cwd=cwd)
            log.info("%s finished:\n%s\n%s", command[0], result.stdout, result.stderr)
            if not result.ok:
                raise CommandError(
                    f"{' '.join(command)} exited with {result.returncode}",
                    returncode=result.returncode,
                    output=result.stderr,
                )

    def _restore(self, tree: WorkingTree, manifest: str, lockfile: str | None) -> None:
        try:
            tree.write_text(self.manifest_path, manifest)
            if lockfile is not None:
                tree.write_text(self.lockfile_path, lockfile)
        except OSError:
            log.exception("Could not restore %s after a failed update", self.manifest_path)
