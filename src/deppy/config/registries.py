"""Registry endpoints and client settings."""

from __future__ import annotations

from dataclasses import dataclass

from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, ShouldCacheHook

MAVEN_CENTRAL_BASE_URL = "https://search.maven.org/"
GRADLE_PLUGIN_PORTAL_BASE_URL = "https://plugins.gradle.org/m2/"
GRADLE_SERVICES_BASE_URL = "https://services.gradle.org/"

REGISTRY_TIMEOUT_SECONDS = 20.0
REGISTRY_CACHE_TTL_SECONDS = 60.0 * 60.0


@dataclass(frozen=True, slots=True)
class RegistryConfig:
    """Connection settings for one version registry."""

    base_url: str
    resilience: ResilienceConfig


def _registry_resilience(
    name: str,
    base_url: str,
    *,
    ratelimit: RateLimit | None = None,
    cache_predicate: ShouldCacheHook | None = None,
) -> ResilienceConfig:
    return ResilienceConfig(
        name=name,
        base_url=base_url,
        timeout_seconds=REGISTRY_TIMEOUT_SECONDS,
        ratelimit=ratelimit,
        cache=CacheConfig(
            default_ttl_seconds=REGISTRY_CACHE_TTL_SECONDS,
            should_cache=cache_predicate,
        ),
    )


def get_maven_central_config(
    *,
    resilience: ResilienceConfig | None = None,
    cache_predicate: ShouldCacheHook | None = None,
) -> RegistryConfig:
    return RegistryConfig(
        base_url=MAVEN_CENTRAL_BASE_URL,
        resilience=resilience
        or _registry_resilience(
            "maven-central",
            MAVEN_CENTRAL_BASE_URL,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
            cache_predicate=cache_predicate,
        ),
    )


def get_plugin_portal_config(*, resilience: ResilienceConfig | None = None) -> RegistryConfig:
    return RegistryConfig(
        base_url=GRADLE_PLUGIN_PORTAL_BASE_URL,
        resilience=resilience
        or _registry_resilience("gradle-plugin-portal", GRADLE_PLUGIN_PORTAL_BASE_URL),
    )


def get_gradle_services_config(*, resilience: ResilienceConfig | None = None) -> RegistryConfig:
    return RegistryConfig(
        base_url=GRADLE_SERVICES_BASE_URL,
        resilience=resilience or _registry_resilience("gradle-services", GRADLE_SERVICES_BASE_URL),
    )
