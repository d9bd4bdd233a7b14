"""Keep the Gradle wrapper on the newest stable distribution."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING

from deppy.domain.model import ChangeRecord, EngineResult

if TYPE_CHECKING:
    from collections.abc import Iterable

    from deppy.domain.exclusions import ExclusionStrategy
    from deppy.domain.ports.registries import DistributionRegistry, DistributionRelease
    from deppy.domain.ports.workspace import WorkingTree

log = getLogger(__name__)

WRAPPER_PROPERTIES_PATH = "gradle/wrapper/gradle-wrapper.properties"
WRAPPER_TITLE = "Build System"
DISTRIBUTION_NAME = "gradle"

DISTRIBUTION_URL_RE = re.compile(
    r"(?P<prefix>distributionUrl\s*=\s*)\S*?-(?P<version>[\d.]+)-(?:bin|all)\.zip"
)
_BUILD_TIME_FORMAT = "%Y%m%d%H%M%S%z"


def parse_build_time(value: str | None) -> datetime | None:
    """Parse ``20240223083325+0000``; anything else yields ``None``."""

    if not value:
        return None
    try:
        return datetime.strptime(value, _BUILD_TIME_FORMAT)
    except ValueError:
        return None


def rank_releases(
    releases: Iterable[DistributionRelease], exclusions: ExclusionStrategy
) -> list[str]:
    """Stable, non-excluded versions, newest build first.

    Releases without a parsable timestamp go last, in registry order.
    """

    dated: list[tuple[datetime, str]] = []
    undated: list[str] = []
    for release in releases:
        if release.is_prerelease:
            continue
        if exclusions.is_excluded(DISTRIBUTION_NAME, release.version):
            continue
        built_at = parse_build_time(release.timestamp)
        if built_at is None:
            undated.append(release.version)
        else:
            dated.append((built_at, release.version))
    dated.sort(key=lambda item: item[0], reverse=True)
    return [version for _, version in dated] + undated


@dataclass(slots=True)
class WrapperVersionEngine:
    registry: DistributionRegistry
    properties_path: str = WRAPPER_PROPERTIES_PATH
    title: str = WRAPPER_TITLE

    async def execute(
        self, tree: WorkingTree, exclusions: ExclusionStrategy
    ) -> EngineResult | None:
        log.info("Checking for Gradle updates in %s", self.properties_path)
        try:
            return await self._execute(tree, exclusions)
        except Exception:
            log.exception("Failed to check the Gradle wrapper version")
            return None

    async def _execute(
        self, tree: WorkingTree, exclusions: ExclusionStrategy
    ) -> EngineResult | None:
        if not tree.exists(self.properties_path):
            log.info("No wrapper properties at %s, skipping", self.properties_path)
            return None

        content = tree.read_text(self.properties_path)
        match = DISTRIBUTION_URL_RE.search(content)
        if match is None:
            log.warning("Could not find a distribution version in %s", self.properties_path)
            return None

        current = match.group("version")
        log.info("Current version is %s, requesting available releases", current)
        ranked = rank_releases(await self.registry.releases(), exclusions)
        log.debug("Acceptable versions, newest first: %s", ranked)

        if current not in ranked:
            log.warning("Current version %s is not an acceptable release, cannot decide", current)
            return None
        if ranked[0] == current:
            log.info("Already on the latest acceptable version")
            return None

        newest = ranked[0]
        start, end = match.span("version")
        updated = f"{content[:start]}{newest}{content[end:]}"
        log.info("Updating Gradle from %s to %s", current, newest)
        return EngineResult(
            title=self.title,
            records=(
                ChangeRecord(
                    title=self.title,
                    description=f"Gradle updated from `{current}` to `{newest}`",
                ),
            ),
            writes={self.properties_path: updated},
        )
