"""SQLAlchemy-backed settings store and adapter lifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, delete, insert, select

from deppy.config.storage import get_database_config
from deppy.domain.model import ExclusionEntry, ExclusionLists, ExclusionPattern

from .mappings import (
    BRANCH_HEAD_KEY,
    ExclusionKind,
    create_all_tables,
    excluded_dependency_table,
    setting_table,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

    from deppy.domain.model import BranchHead

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the settings store is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine and create missing tables."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(database_uri or get_database_config().uri)
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class SqlAlchemySettingsStore:
    """Exclusion lists and the integration branch baseline in two small tables."""

    def __init__(self, engine: Engine | None = None) -> None:
        resolved = engine or _STATE.engine
        if resolved is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call deppy.adapters.sqlalchemy."
                "startup() before creating a settings store."
            )
        self._engine = resolved

    def get_exclusions(self) -> ExclusionLists:
        statement = select(
            excluded_dependency_table.c.kind,
            excluded_dependency_table.c.name,
            excluded_dependency_table.c.version,
        ).order_by(excluded_dependency_table.c.position)
        exact: list[ExclusionEntry] = []
        patterns: list[ExclusionPattern] = []
        with self._engine.connect() as connection:
            for kind, name, version in connection.execute(statement):
                if kind == ExclusionKind.PATTERN:
                    patterns.append(ExclusionPattern(name_pattern=name, version_pattern=version))
                else:
                    exact.append(ExclusionEntry(name=name, version=version))
        return ExclusionLists(exact=tuple(exact), patterns=tuple(patterns))

    def set_exclusions(self, exclusions: ExclusionLists) -> None:
        rows: list[dict[str, object]] = [
            {"kind": ExclusionKind.EXACT, "name": entry.name, "version": entry.version}
            for entry in exclusions.exact
        ]
        rows.extend(
            {
                "kind": ExclusionKind.PATTERN,
                "name": pattern.name_pattern,
                "version": pattern.version_pattern,
            }
            for pattern in exclusions.patterns
        )
        for position, row in enumerate(rows):
            row["position"] = position

        with self._engine.begin() as connection:
            connection.execute(delete(excluded_dependency_table))
            if rows:
                connection.execute(insert(excluded_dependency_table), rows)
        log.info(
            "Stored %d exact and %d pattern exclusion(s)",
            len(exclusions.exact),
            len(exclusions.patterns),
        )

    def get_branch_head(self) -> BranchHead | None:
        statement = select(setting_table.c.value).where(setting_table.c.key == BRANCH_HEAD_KEY)
        with self._engine.connect() as connection:
            return connection.execute(statement).scalar_one_or_none()

    def set_branch_head(self, commit_id: BranchHead) -> None:
        with self._engine.begin() as connection:
            _put_setting(connection, BRANCH_HEAD_KEY, commit_id)


def _put_setting(connection: Connection, key: str, value: str) -> None:
    connection.execute(delete(setting_table).where(setting_table.c.key == key))
    connection.execute(insert(setting_table).values(key=key, value=value))
