from __future__ import annotations

import asyncio
from pathlib import Path

import httpx

from deppy import app
from deppy.adapters.sqlalchemy import configured_engine, shutdown
from deppy.config import ProjectConfig, SchedulerConfig
from deppy.domain.catalog import CatalogResolutionEngine
from deppy.domain.manifest import ManifestUpdateEngine
from deppy.domain.model import ExclusionEntry, ReconcileStatus
from deppy.domain.reconciler import RepositoryReconciler
from deppy.domain.wrapper import WRAPPER_PROPERTIES_PATH, WrapperVersionEngine
from tests.helpers.http import make_client_factory
from tests.helpers.registries import FakeDistributionRegistry, stable
from tests.helpers.source_control import FakeSourceControl
from tests.helpers.storage import FakeSettingsStore
from tests.helpers.workspace import FakeCommandRunner, FakeWorkspace, InMemoryWorkingTree

PROPERTIES = (
    "distributionUrl=https\\://services.gradle.org/distributions/gradle-{version}-bin.zip\n"
)

PROJECT = ProjectConfig(
    repository="acme/shop",
    clone_url="https://github.com/acme/shop.git",
    main_branch="main",
    updates_branch="deps",
    workspace_dir=Path("/virtual/checkout"),
)


def _reconciler(
    store: FakeSettingsStore, remote: FakeSourceControl, workspace: FakeWorkspace
) -> RepositoryReconciler:
    engine = WrapperVersionEngine(
        registry=FakeDistributionRegistry(
            [stable("8.1", "20230412000000+0000"), stable("8.2.1", "20230710123456+0000")]
        )
    )
    return app.build_reconciler(
        project=PROJECT,
        store=store,
        source_control=remote,
        workspace=workspace,
        engines=[engine],
    )


def test_build_engines_in_reporting_order() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError(request)

    engines = app.build_engines(
        client_factory=make_client_factory(handler),
        runner=FakeCommandRunner(),
    )

    assert [type(engine) for engine in engines] == [
        CatalogResolutionEngine,
        WrapperVersionEngine,
        ManifestUpdateEngine,
    ]


def test_build_reconciler_uses_project_branches() -> None:
    reconciler = _reconciler(
        FakeSettingsStore(), FakeSourceControl(), FakeWorkspace(InMemoryWorkingTree())
    )

    assert (reconciler.main_branch, reconciler.updates_branch) == ("main", "deps")


def test_run_update_once_lands_a_pull_request() -> None:
    store = FakeSettingsStore()
    remote = FakeSourceControl(branches={"main": "main-head"})
    workspace = FakeWorkspace(
        InMemoryWorkingTree({WRAPPER_PROPERTIES_PATH: PROPERTIES.format(version="8.1")})
    )

    outcome = app.run_update_once(reconciler=_reconciler(store, remote, workspace))

    assert outcome.status is ReconcileStatus.LANDED
    assert remote.branches["deps"] == store.branch_head == outcome.commit_id
    assert workspace.tree.files[WRAPPER_PROPERTIES_PATH] == PROPERTIES.format(version="8.2.1")


def test_update_service_coalesces_pushes_into_one_run() -> None:
    remote = FakeSourceControl(branches={"main": "main-head"})
    workspace = FakeWorkspace(InMemoryWorkingTree())
    service = app.build_update_service(
        reconciler=_reconciler(FakeSettingsStore(), remote, workspace),
        scheduler_config=SchedulerConfig(push_debounce_seconds=0.01),
    )

    async def scenario() -> None:
        for _ in range(3):
            service.triggers.on_push("refs/heads/main")
        await service.triggers.drain()

    asyncio.run(scenario())

    assert workspace.materialized == 1
    assert service.last_outcome is not None
    assert service.last_outcome.status is ReconcileStatus.NO_CHANGES


def test_serve_runs_until_cancelled() -> None:
    workspace = FakeWorkspace(InMemoryWorkingTree())
    service = app.UpdateService(
        _reconciler(FakeSettingsStore(), FakeSourceControl(), workspace), debounce_seconds=0
    )

    async def scenario() -> None:
        task = asyncio.create_task(
            app.serve(service, scheduler_config=SchedulerConfig(update_interval_seconds=0.01))
        )
        await asyncio.sleep(0.05)
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    asyncio.run(scenario())

    assert workspace.materialized >= 2


def test_exclude_include_and_status() -> None:
    store = FakeSettingsStore(branch_head="abc123")

    excluded = app.exclude("left-pad:1.4.0, io.ktor:ktor-server-core:2.3.1", store=store)
    app.exclude("vue:3\\..*", patterns=True, store=store)
    included = app.include("left-pad:1.4.0", store=store)
    report = app.status(store=store)

    assert excluded.exact == (
        ExclusionEntry("left-pad", "1.4.0"),
        ExclusionEntry("io.ktor:ktor-server-core", "2.3.1"),
    )
    assert included.exact == (ExclusionEntry("io.ktor:ktor-server-core", "2.3.1"),)
    assert [str(pattern) for pattern in report.exclusions.patterns] == [r"vue:3\..*"]
    assert report.branch_head == "abc123"


def test_settings_store_starts_storage_on_demand() -> None:
    shutdown()
    try:
        store = app.build_settings_store()
        store.set_branch_head("abc123")
        assert configured_engine() is not None
        assert store.get_branch_head() == "abc123"
    finally:
        shutdown()


def test_push_notification_while_serving_triggers_an_extra_run() -> None:
    workspace = FakeWorkspace(InMemoryWorkingTree())
    service = app.UpdateService(
        _reconciler(FakeSettingsStore(), FakeSourceControl(), workspace), debounce_seconds=0
    )
    relevant: list[bool] = []

    async def scenario() -> None:
        task = asyncio.create_task(
            app.serve(service, scheduler_config=SchedulerConfig(update_interval_seconds=3600))
        )
        await asyncio.sleep(0.05)
        relevant.append(service.notify_push("refs/heads/feature"))
        relevant.append(service.notify_push("refs/heads/main"))
        await asyncio.sleep(0.05)
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    asyncio.run(scenario())

    assert relevant == [False, True]
    assert workspace.materialized == 2
