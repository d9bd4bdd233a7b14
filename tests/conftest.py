from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from deppy.adapters.sqlalchemy import SqlAlchemySettingsStore, shutdown, startup

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "data"
    monkeypatch.setenv("DEPPY_DATA_DIR", str(data_dir))
    return data_dir


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def settings_store(sqlite_engine: Engine) -> Iterator[SqlAlchemySettingsStore]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield SqlAlchemySettingsStore()
    finally:
        shutdown()
