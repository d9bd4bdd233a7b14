"""Gradle distribution listing client."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from deppy.adapters.http_resilience import ResilientClient
from deppy.domain.ports.registries import DistributionRelease, RegistryError

from .schema import GRADLE_VERSIONS

if TYPE_CHECKING:
    from collections.abc import Callable

    from deppy.config.http_resilience import ResilienceConfig
    from deppy.config.registries import RegistryConfig

log = getLogger(__name__)

VERSIONS_PATH = "versions/all"


class GradleServicesRegistry:
    def __init__(
        self,
        *,
        config: RegistryConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    async def releases(self) -> list[DistributionRelease]:
        async with self._client_factory(self._resilience) as client:
            try:
                response = await client.get(VERSIONS_PATH)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise RegistryError("Listing Gradle versions failed") from exc

        try:
            versions = GRADLE_VERSIONS.validate_json(response.content)
        except ValidationError as exc:
            raise RegistryError("Unexpected Gradle versions payload") from exc

        log.debug("Gradle services listed %d versions", len(versions))
        return [
            DistributionRelease(
                version=entry.version,
                timestamp=entry.build_time,
                # a broken release is never an upgrade target
                is_prerelease=entry.is_prerelease or entry.broken,
            )
            for entry in versions
        ]
