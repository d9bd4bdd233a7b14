"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from deppy.adapters.git_workspace import GitWorkspace, authenticated_clone_url
from deppy.adapters.github import GitHubSourceControl
from deppy.adapters.gradle import GradleServicesRegistry
from deppy.adapters.maven import GradlePluginPortalRegistry, MavenCentralRegistry, has_documents
from deppy.adapters.npm import AsyncCommandRunner, NpmCheckUpdates
from deppy.adapters.sqlalchemy import SqlAlchemySettingsStore, configured_engine, startup
from deppy.config import (
    get_github_config,
    get_gradle_services_config,
    get_maven_central_config,
    get_plugin_portal_config,
    get_project_config,
    get_scheduler_config,
)
from deppy.domain.catalog import CatalogResolutionEngine, CatalogTarget, TomlCatalogSyntax
from deppy.domain.exclusions import (
    exclude_dependencies,
    include_dependencies,
    parse_dependency_list,
)
from deppy.domain.manifest import ManifestUpdateEngine
from deppy.domain.reconciler import RepositoryReconciler
from deppy.domain.scheduler import UpdateScheduler, UpdateTriggers
from deppy.domain.wrapper import WrapperVersionEngine

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from deppy.adapters.http_resilience import ResilientClient
    from deppy.config import ProjectConfig, SchedulerConfig
    from deppy.config.http_resilience import ResilienceConfig
    from deppy.domain.model import BranchHead, ExclusionLists, ReconcileOutcome
    from deppy.domain.ports import CommandRunner, SettingsStore, SourceControl, Workspace
    from deppy.domain.reconciler import UpdateEngine

type ClientFactory = Callable[[ResilienceConfig], ResilientClient]

log = getLogger(__name__)

DEFAULT_CATALOG_TARGETS: tuple[CatalogTarget, ...] = (
    CatalogTarget(
        catalog_path="buildSrc/build.gradle.kts",
        descriptor_paths=("buildSrc/build.gradle.kts",),
    ),
    CatalogTarget(
        catalog_path="buildSrc/src/main/kotlin/Dependencies.kt",
        descriptor_paths=(
            "build.gradle.kts",
            "frontend/build.gradle.kts",
            "backend/build.gradle.kts",
        ),
    ),
    CatalogTarget(
        catalog_path="gradle/libs.versions.toml",
        descriptor_paths=("gradle/libs.versions.toml",),
        syntax=TomlCatalogSyntax(),
    ),
)


@dataclass(frozen=True, slots=True)
class StatusReport:
    exclusions: ExclusionLists
    branch_head: BranchHead | None


class UpdateService:
    """A reconciler behind a single-flight scheduler and its triggers."""

    def __init__(self, reconciler: RepositoryReconciler, *, debounce_seconds: float) -> None:
        self.reconciler = reconciler
        self.last_outcome: ReconcileOutcome | None = None
        self.scheduler = UpdateScheduler(self.run_once)
        self.triggers = UpdateTriggers(
            scheduler=self.scheduler,
            main_branch=reconciler.main_branch,
            debounce_seconds=debounce_seconds,
        )

    def notify_push(self, ref: str) -> bool:
        """Entry point for push notifications, such as a webhook receiver.

        Must be called on the event loop that runs :func:`serve`. A push to the
        main branch schedules a debounced run next to the recurring ones;
        returns whether ``ref`` was relevant.
        """

        return self.triggers.on_push(ref)

    async def run_once(self) -> ReconcileOutcome:
        outcome = await self.reconciler.reconcile()
        self.last_outcome = outcome
        log.info("Update run finished: %s", outcome.status)
        return outcome


def ensure_storage() -> None:
    if configured_engine() is None:
        startup()


def build_settings_store() -> SqlAlchemySettingsStore:
    ensure_storage()
    return SqlAlchemySettingsStore()


def build_engines(
    *,
    client_factory: ClientFactory | None = None,
    runner: CommandRunner | None = None,
    catalog_targets: Sequence[CatalogTarget] = DEFAULT_CATALOG_TARGETS,
) -> list[UpdateEngine]:
    """Catalogs, wrapper and manifest, in the order their records are listed."""

    effective_runner = runner or AsyncCommandRunner()
    return [
        CatalogResolutionEngine(
            targets=catalog_targets,
            dependencies=MavenCentralRegistry(
                config=get_maven_central_config(cache_predicate=has_documents),
                client_factory=client_factory,
            ),
            plugins=GradlePluginPortalRegistry(
                config=get_plugin_portal_config(), client_factory=client_factory
            ),
        ),
        WrapperVersionEngine(
            registry=GradleServicesRegistry(
                config=get_gradle_services_config(), client_factory=client_factory
            ),
        ),
        ManifestUpdateEngine(
            proposer=NpmCheckUpdates(runner=effective_runner),
            runner=effective_runner,
        ),
    ]


def build_reconciler(
    *,
    project: ProjectConfig | None = None,
    store: SettingsStore | None = None,
    source_control: SourceControl | None = None,
    workspace: Workspace | None = None,
    engines: Sequence[UpdateEngine] | None = None,
) -> RepositoryReconciler:
    effective_project = project or get_project_config()
    if source_control is None or workspace is None:
        github = get_github_config()
        source_control = source_control or GitHubSourceControl(config=github)
        workspace = workspace or GitWorkspace(
            clone_url=authenticated_clone_url(effective_project.clone_url, github.token),
            branch=effective_project.main_branch,
            directory=effective_project.workspace_dir,
        )
    return RepositoryReconciler(
        store=store or build_settings_store(),
        source_control=source_control,
        workspace=workspace,
        engines=engines if engines is not None else build_engines(),
        main_branch=effective_project.main_branch,
        updates_branch=effective_project.updates_branch,
    )


def build_update_service(
    *,
    reconciler: RepositoryReconciler | None = None,
    scheduler_config: SchedulerConfig | None = None,
) -> UpdateService:
    timing = scheduler_config or get_scheduler_config()
    return UpdateService(
        reconciler or build_reconciler(), debounce_seconds=timing.push_debounce_seconds
    )


def run_update_once(*, reconciler: RepositoryReconciler | None = None) -> ReconcileOutcome:
    """Run a single update immediately; errors propagate to the caller."""

    effective_reconciler = reconciler or build_reconciler()
    log.info(
        "Starting update of %s into %s",
        effective_reconciler.main_branch,
        effective_reconciler.updates_branch,
    )
    return asyncio.run(effective_reconciler.reconcile())


async def serve(
    service: UpdateService | None = None,
    *,
    scheduler_config: SchedulerConfig | None = None,
) -> None:
    """Run updates on the recurring schedule until cancelled.

    Push notifications reach the same scheduler through
    :meth:`UpdateService.notify_push`.
    """

    timing = scheduler_config or get_scheduler_config()
    effective_service = service or build_update_service(scheduler_config=timing)
    log.info(
        "Serving updates every %.1f hours",
        timing.update_interval_seconds / 3600,
    )
    try:
        await effective_service.triggers.run_periodically(timing.update_interval_seconds)
    finally:
        await effective_service.triggers.drain()


def exclude(
    raw: str, *, patterns: bool = False, store: SettingsStore | None = None
) -> ExclusionLists:
    entries = parse_dependency_list(raw)
    return exclude_dependencies(store or build_settings_store(), entries, patterns=patterns)


def include(
    raw: str, *, patterns: bool = False, store: SettingsStore | None = None
) -> ExclusionLists:
    entries = parse_dependency_list(raw)
    return include_dependencies(store or build_settings_store(), entries, patterns=patterns)


def status(*, store: SettingsStore | None = None) -> StatusReport:
    effective_store = store or build_settings_store()
    return StatusReport(
        exclusions=effective_store.get_exclusions(),
        branch_head=effective_store.get_branch_head(),
    )
