"""Exclusion lists: which name/version pairs must never be proposed."""

from __future__ import annotations

import re
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from deppy.domain.model import ExclusionEntry, ExclusionLists, ExclusionPattern

if TYPE_CHECKING:
    from collections.abc import Iterable

    from deppy.domain.ports.storage import SettingsStore

log = getLogger(__name__)

_LIST_SEPARATOR = re.compile(r"[\s,]+")


@dataclass(frozen=True, slots=True)
class ExclusionStrategy:
    """Frozen snapshot of the exclusion lists taken at the start of a run.

    Patterns are matched with ``re.search``: they are not anchored, so ``1\\.4``
    also excludes ``11.4.0``. Authors who want whole-string matches write ``^...$``.
    """

    exact: frozenset[ExclusionEntry]
    patterns: tuple[tuple[re.Pattern[str], re.Pattern[str]], ...]

    @classmethod
    def from_lists(cls, lists: ExclusionLists) -> ExclusionStrategy:
        compiled: list[tuple[re.Pattern[str], re.Pattern[str]]] = []
        for pattern in lists.patterns:
            try:
                compiled.append(
                    (re.compile(pattern.name_pattern), re.compile(pattern.version_pattern))
                )
            except re.error as exc:
                log.warning("Ignoring invalid exclusion pattern %s: %s", pattern, exc)
        return cls(exact=frozenset(lists.exact), patterns=tuple(compiled))

    @classmethod
    def from_store(cls, store: SettingsStore) -> ExclusionStrategy:
        strategy = cls.from_lists(store.get_exclusions())
        log.info(
            "Loaded exclusions: %d exact, %d patterns",
            len(strategy.exact),
            len(strategy.patterns),
        )
        return strategy

    @classmethod
    def empty(cls) -> ExclusionStrategy:
        return cls(exact=frozenset(), patterns=())

    def has_exclusions(self) -> bool:
        return bool(self.exact or self.patterns)

    def is_excluded(self, name: str, version: str) -> bool:
        if ExclusionEntry(name=name, version=version) in self.exact:
            return True
        return any(
            name_re.search(name) is not None and version_re.search(version) is not None
            for name_re, version_re in self.patterns
        )


def parse_dependency_list(raw: str) -> list[ExclusionEntry]:
    """Parse ``"a:1.0, group:b:2.0"`` style lists.

    Tokens are separated by whitespace and/or commas and split at their last
    colon, so the name may itself contain colons. Tokens lacking a name or a
    version are dropped.
    """

    entries: list[ExclusionEntry] = []
    for token in _LIST_SEPARATOR.split(raw.strip()):
        name, separator, version = token.rpartition(":")
        if not separator or not name or not version:
            continue
        entries.append(ExclusionEntry(name=name, version=version))
    return entries


def exclude_dependencies(
    store: SettingsStore,
    entries: Iterable[ExclusionEntry],
    *,
    patterns: bool = False,
) -> ExclusionLists:
    current = store.get_exclusions()
    if patterns:
        updated = current.with_patterns(_as_patterns(entries))
    else:
        updated = current.with_exact(entries)
    store.set_exclusions(updated)
    log.info("Exclusions updated: %s", _describe(updated))
    return updated


def include_dependencies(
    store: SettingsStore,
    entries: Iterable[ExclusionEntry],
    *,
    patterns: bool = False,
) -> ExclusionLists:
    current = store.get_exclusions()
    if patterns:
        updated = current.without_patterns(_as_patterns(entries))
    else:
        updated = current.without_exact(entries)
    store.set_exclusions(updated)
    log.info("Exclusions updated: %s", _describe(updated))
    return updated


def _as_patterns(entries: Iterable[ExclusionEntry]) -> list[ExclusionPattern]:
    return [
        ExclusionPattern(name_pattern=entry.name, version_pattern=entry.version)
        for entry in entries
    ]


def _describe(lists: ExclusionLists) -> str:
    exact = ", ".join(str(entry) for entry in lists.exact) or "-"
    pattern_list = ", ".join(str(pattern) for pattern in lists.patterns) or "-"
    return f"exact=[{exact}] patterns=[{pattern_list}]"
