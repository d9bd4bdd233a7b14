"""Value types shared by the update engines, the scheduler and the reconciler."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

type BranchHead = str


@dataclass(frozen=True, slots=True)
class VersionDefinition:
    """One declared version inside a catalog text.

    ``raw_text`` is the exact source substring of the declaration, ``start`` its
    position in the catalog text and ``value_offset`` the position of
    ``current_value`` inside it, so a rewrite touches the version and nothing else.
    """

    key: str
    current_value: str
    raw_text: str
    value_offset: int
    start: int = 0

    def with_value(self, new_value: str) -> str:
        end = self.value_offset + len(self.current_value)
        return f"{self.raw_text[: self.value_offset]}{new_value}{self.raw_text[end:]}"

    def splice(self, text: str, new_value: str) -> str:
        """Rewrite this declaration inside ``text`` at its recorded position."""
        end = self.start + len(self.raw_text)
        if text[self.start : end] != self.raw_text:
            msg = f"Declaration of {self.key} is not at offset {self.start}"
            raise ValueError(msg)
        return f"{text[: self.start]}{self.with_value(new_value)}{text[end:]}"


@dataclass(frozen=True, slots=True)
class DependencyCoordinates:
    group: str
    artifact: str

    def __str__(self) -> str:
        return f"{self.group}:{self.artifact}"


@dataclass(frozen=True, slots=True)
class PluginCoordinates:
    plugin_id: str

    def __str__(self) -> str:
        return self.plugin_id


type ArtifactCoordinates = DependencyCoordinates | PluginCoordinates


@dataclass(frozen=True, slots=True)
class ArtifactReference:
    """A dependency or plugin declaration citing a version key."""

    coordinates: ArtifactCoordinates
    key: str


@dataclass(frozen=True, slots=True)
class ExclusionEntry:
    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}:{self.version}"


@dataclass(frozen=True, slots=True)
class ExclusionPattern:
    name_pattern: str
    version_pattern: str

    def __str__(self) -> str:
        return f"{self.name_pattern}:{self.version_pattern}"


@dataclass(frozen=True, slots=True)
class ExclusionLists:
    """Exact and pattern exclusions, each an insertion-ordered set."""

    exact: tuple[ExclusionEntry, ...] = ()
    patterns: tuple[ExclusionPattern, ...] = ()

    def is_empty(self) -> bool:
        return not self.exact and not self.patterns

    def with_exact(self, entries: Iterable[ExclusionEntry]) -> ExclusionLists:
        return ExclusionLists(exact=_append_unique(self.exact, entries), patterns=self.patterns)

    def without_exact(self, entries: Iterable[ExclusionEntry]) -> ExclusionLists:
        removed = set(entries)
        return ExclusionLists(
            exact=tuple(entry for entry in self.exact if entry not in removed),
            patterns=self.patterns,
        )

    def with_patterns(self, patterns: Iterable[ExclusionPattern]) -> ExclusionLists:
        return ExclusionLists(exact=self.exact, patterns=_append_unique(self.patterns, patterns))

    def without_patterns(self, patterns: Iterable[ExclusionPattern]) -> ExclusionLists:
        removed = set(patterns)
        return ExclusionLists(
            exact=self.exact,
            patterns=tuple(pattern for pattern in self.patterns if pattern not in removed),
        )


def _append_unique[T](existing: tuple[T, ...], additions: Iterable[T]) -> tuple[T, ...]:
    result = list(existing)
    for item in additions:
        if item not in result:
            result.append(item)
    return tuple(result)


@dataclass(frozen=True, slots=True)
class ChangeRecord:
    title: str
    description: str


@dataclass(slots=True)
class ChangeLog:
    """Run-wide list of change records; identical records are kept once."""

    _records: list[ChangeRecord] = field(default_factory=list)

    def add(self, record: ChangeRecord) -> bool:
        if record in self._records:
            return False
        self._records.append(record)
        return True

    def extend(self, records: Iterable[ChangeRecord]) -> None:
        for record in records:
            self.add(record)

    def __iter__(self) -> Iterator[ChangeRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

    def titles(self) -> list[str]:
        seen: list[str] = []
        for record in self._records:
            if record.title not in seen:
                seen.append(record.title)
        return seen

    def describe(self) -> str:
        """Render the markdown used for commit messages and pull request bodies."""

        lines = ["The following dependencies have been updated:", ""]
        for title in self.titles():
            lines.append(f"### {title}")
            lines.extend(
                f"* {record.description}" for record in self._records if record.title == title
            )
            lines.append("")
        return "\n".join(lines) + "\n"


@dataclass(frozen=True, slots=True)
class EngineResult:
    """What an engine changed: its records and the file contents still to be written."""

    title: str
    records: tuple[ChangeRecord, ...]
    writes: Mapping[str, str] = field(default_factory=dict)


class RunState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    RUNNING_WITH_PENDING_RERUN = "running-with-pending-rerun"


class ReconcileStatus(StrEnum):
    DRIFT_ABORTED = "drift-aborted"
    NO_CHANGES = "no-changes"
    LANDED = "landed"


@dataclass(frozen=True, slots=True)
class ReconcileOutcome:
    status: ReconcileStatus
    commit_id: BranchHead | None = None
    pull_request_number: int | None = None
    description: str | None = None
