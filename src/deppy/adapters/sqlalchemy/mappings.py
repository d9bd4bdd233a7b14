"""SQLAlchemy table metadata for exclusions and settings."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from sqlalchemy import Column, Enum, Integer, MetaData, String, Table, UniqueConstraint

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

BRANCH_HEAD_KEY: Final[str] = "updates_branch_head"

metadata = MetaData()


class ExclusionKind(StrEnum):
    EXACT = "exact"
    PATTERN = "pattern"


excluded_dependency_table = Table(
    "excluded_dependency",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("kind", Enum(ExclusionKind, native_enum=False, length=16), nullable=False),
    Column("name", String, nullable=False),
    Column("version", String, nullable=False),
    Column("position", Integer, nullable=False),
    UniqueConstraint("kind", "name", "version", name="uq_excluded_dependency_entry"),
)

setting_table = Table(
    "setting",
    metadata,
    Column("key", String(64), primary_key=True),
    Column("value", String, nullable=False),
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the settings metadata."""

    log.info("Creating all tables")
    metadata.create_all(engine)
