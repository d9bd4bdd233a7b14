"""Port for the state kept between runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from deppy.domain.model import BranchHead, ExclusionLists


@runtime_checkable
class SettingsStore(Protocol):
    """Persistence contract for exclusion lists and the integration branch baseline."""

    def get_exclusions(self) -> ExclusionLists: ...

    def set_exclusions(self, exclusions: ExclusionLists) -> None: ...

    def get_branch_head(self) -> BranchHead | None: ...

    def set_branch_head(self, commit_id: BranchHead) -> None: ...


__all__ = ["SettingsStore"]
