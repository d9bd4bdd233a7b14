"""Maven Central search and Gradle Plugin Portal metadata clients."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING
from xml.etree import ElementTree

import httpx
from pydantic import ValidationError

from deppy.adapters.http_resilience import ResilientClient
from deppy.domain.ports.registries import RegistryError

from .schema import MavenSearchResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from deppy.config.http_resilience import ResilienceConfig
    from deppy.config.registries import RegistryConfig

log = getLogger(__name__)

SEARCH_PATH = "solrsearch/select"
SEARCH_ROWS = 50


def plugin_metadata_path(plugin_id: str) -> str:
    """Repository path of a plugin marker's metadata; every dot of the id becomes a slash."""

    return f"{plugin_id.replace('.', '/')}/{plugin_id}.gradle.plugin/maven-metadata.xml"


def parse_metadata_versions(xml_text: str) -> list[str]:
    """Versions listed in ``maven-metadata.xml``, newest first."""

    try:
        root = ElementTree.fromstring(xml_text)  # noqa: S314
    except ElementTree.ParseError as exc:
        raise RegistryError(f"Invalid maven-metadata.xml: {exc}") from exc
    versions = [
        element.text.strip()
        for element in root.iterfind("./versioning/versions/version")
        if element.text and element.text.strip()
    ]
    versions.reverse()
    return versions


class MavenCentralRegistry:
    """Library versions from the Maven Central search API, newest first."""

    def __init__(
        self,
        *,
        config: RegistryConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    async def versions(self, group: str, artifact: str) -> list[str]:
        params = {
            "q": f'g:"{group}" AND a:"{artifact}"',
            "core": "gav",
            "rows": str(SEARCH_ROWS),
            "wt": "json",
        }
        async with self._client_factory(self._resilience) as client:
            try:
                response = await client.get(SEARCH_PATH, params=params)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise RegistryError(f"Maven Central lookup of {group}:{artifact} failed") from exc

        try:
            search = MavenSearchResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise RegistryError(f"Unexpected Maven Central payload for {group}:{artifact}") from exc

        versions = search.versions()
        if not versions:
            log.warning("Maven Central knows no versions of %s:%s", group, artifact)
        return versions


class GradlePluginPortalRegistry:
    """Plugin versions from the portal's Maven metadata, newest first."""

    def __init__(
        self,
        *,
        config: RegistryConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    async def versions(self, plugin_id: str) -> list[str]:
        async with self._client_factory(self._resilience) as client:
            try:
                response = await client.get(plugin_metadata_path(plugin_id))
            except httpx.HTTPError as exc:
                raise RegistryError(f"Plugin portal lookup of {plugin_id} failed") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            log.warning("Plugin portal does not know %s", plugin_id)
            return []
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RegistryError(f"Plugin portal lookup of {plugin_id} failed") from exc
        return parse_metadata_versions(response.text)
