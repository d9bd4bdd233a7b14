"""Land the engines' changes on the integration branch without clobbering human edits."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from deppy.domain.exclusions import ExclusionStrategy
from deppy.domain.model import ChangeLog, ReconcileOutcome, ReconcileStatus
from deppy.domain.ports.source_control import FileMode, SourceControlError, TreeEntry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from deppy.domain.model import EngineResult
    from deppy.domain.ports.source_control import PullRequest, SourceControl
    from deppy.domain.ports.storage import SettingsStore
    from deppy.domain.ports.workspace import WorkingTree, Workspace

log = getLogger(__name__)

PULL_REQUEST_TITLE = "Dependencies update"


class UpdateEngine(Protocol):
    async def execute(
        self, tree: WorkingTree, exclusions: ExclusionStrategy
    ) -> EngineResult | None: ...


def file_mode(path: str) -> FileMode:
    return FileMode.EXECUTABLE if path.endswith(".sh") else FileMode.REGULAR


async def run_engines(
    engines: Sequence[UpdateEngine],
    tree: WorkingTree,
    exclusions: ExclusionStrategy,
) -> ChangeLog:
    """Run every engine, then apply their pending writes; returns the combined log."""

    changes = ChangeLog()
    writes: dict[str, str] = {}
    for engine in engines:
        name = type(engine).__name__
        try:
            result = await engine.execute(tree, exclusions)
        except Exception:
            log.exception("%s failed, continuing with the remaining engines", name)
            continue
        if result is None:
            log.info("%s found no updates", name)
            continue
        log.info("%s found %d update(s)", name, len(result.records))
        changes.extend(result.records)
        writes.update(result.writes)

    for path, content in writes.items():
        log.info("Writing %s", path)
        tree.write_text(path, content)
    return changes


@dataclass(slots=True)
class RepositoryReconciler:
    store: SettingsStore
    source_control: SourceControl
    workspace: Workspace
    engines: Sequence[UpdateEngine]
    main_branch: str
    updates_branch: str
    pull_request_title: str = PULL_REQUEST_TITLE

    async def reconcile(self) -> ReconcileOutcome:
        if await self.has_unmanaged_updates_branch():
            return ReconcileOutcome(status=ReconcileStatus.DRIFT_ABORTED)

        tree = await self.workspace.materialize()
        exclusions = ExclusionStrategy.from_store(self.store)
        changes = await run_engines(self.engines, tree, exclusions)
        if not changes:
            log.info("No updates found, nothing to commit")
            return ReconcileOutcome(status=ReconcileStatus.NO_CHANGES)

        description = changes.describe()
        log.info("Updates found, committing:\n%s", description)
        commit_id = await self._commit_dirty_files(tree, description)
        if commit_id is None:
            return ReconcileOutcome(status=ReconcileStatus.NO_CHANGES, description=description)

        await self.source_control.upsert_branch(self.updates_branch, commit_id)
        log.info("%s now points to %s", self.updates_branch, commit_id)

        self.store.set_branch_head(commit_id)
        log.info("Stored %s as the expected head of %s", commit_id, self.updates_branch)

        pull_request = await self._upsert_pull_request(description)
        return ReconcileOutcome(
            status=ReconcileStatus.LANDED,
            commit_id=commit_id,
            pull_request_number=pull_request.number,
            description=description,
        )

    async def has_unmanaged_updates_branch(self) -> bool:
        branch = await self.source_control.find_branch(self.updates_branch)
        expected = self.store.get_branch_head()
        if branch is not None and branch.head != expected:
            log.warning(
                "%s is at %s but the last automated commit was %s. "
                "Stopping update, the branch has to be handled manually.",
                self.updates_branch,
                branch.head,
                expected,
            )
            return True
        return False

    async def _commit_dirty_files(self, tree: WorkingTree, message: str) -> str | None:
        changed = tree.changed_files()
        log.info("Modified files: %s", list(changed))
        if not changed:
            log.warning("Updates were reported but no file changed, nothing to commit")
            return None

        main = await self.source_control.find_branch(self.main_branch)
        if main is None:
            raise SourceControlError(f"Main branch {self.main_branch} does not exist")

        entries = [
            TreeEntry(path=path, content=tree.read_text(path), mode=file_mode(path))
            for path in changed
        ]
        base_tree = await self.source_control.get_commit_tree(main.head)
        log.info("Main branch %s is at %s with tree %s", self.main_branch, main.head, base_tree)
        tree_id = await self.source_control.create_tree(base_tree, entries)
        log.info("Created remote tree %s", tree_id)
        commit_id = await self.source_control.create_commit(
            message=message, tree=tree_id, parent=main.head
        )
        log.info("Created remote commit %s", commit_id)
        return commit_id

    async def _upsert_pull_request(self, body: str) -> PullRequest:
        existing = await self.source_control.find_open_pull_request(
            head=self.updates_branch, base=self.main_branch
        )
        if existing is not None:
            await self.source_control.update_pull_request_body(existing.number, body)
            log.info("Updated description of pull request #%d", existing.number)
            return existing
        created = await self.source_control.create_pull_request(
            title=self.pull_request_title,
            head=self.updates_branch,
            base=self.main_branch,
            body=body,
        )
        log.info("Opened pull request #%d", created.number)
        return created
