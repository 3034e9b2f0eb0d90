"""Dependency Intelligence — vulnerabilities and staleness of declared dependencies."""

import logging
from typing import Any, Mapping

from git_assure.analysis.manifest import parse_manifests
from git_assure.analysis.staleness import RegistryClient, find_outdated
from git_assure.analysis.vulnerabilities import (
    GitHubAdvisoryProvider,
    OsvProvider,
    VulnerabilityProvider,
    lookup_vulnerabilities,
)
from git_assure.config import Settings
from git_assure.fetcher import GitHubFetcher, ResourceGateway
from git_assure.models import DependencyAnalysis, RepositoryIdentity

logger = logging.getLogger(__name__)


async def build_dependency_analysis(
    fetcher: GitHubFetcher,
    services: ResourceGateway,
    identity: RepositoryIdentity,
    payloads: Mapping[str, Any],
    has_manifest: bool,
    settings: Settings,
) -> DependencyAnalysis:
    """Parse the manifest, then look up vulnerabilities and latest versions."""
    parsed = parse_manifests(payloads)
    analysis = DependencyAnalysis(
        has_manifest=has_manifest,
        total_declared=parsed.total,
        dependencies=parsed.dependencies,
    )

    # Alert status is only visible to authenticated callers.
    if fetcher.is_authenticated:
        analysis.alerts_enabled = await fetcher.vulnerability_alerts_enabled(
            identity.owner, identity.name
        )

    providers: list[VulnerabilityProvider] = []
    if analysis.alerts_enabled:
        providers.append(GitHubAdvisoryProvider(fetcher, identity))
    if analysis.dependencies:
        providers.append(
            OsvProvider(
                services,
                url=settings.osv_url,
                batch_size=settings.vulnerability_batch_size,
                pause=settings.batch_pause,
            )
        )
    analysis.vulnerabilities, analysis.vulnerability_source = await lookup_vulnerabilities(
        providers, analysis.dependencies
    )

    if analysis.dependencies:
        registry = RegistryClient(
            services, npm_url=settings.npm_registry_url, pypi_url=settings.pypi_url
        )
        analysis.outdated = await find_outdated(
            registry,
            analysis.dependencies,
            batch_size=settings.registry_batch_size,
            pause=settings.batch_pause,
        )

    logger.info(
        "%s: %d dependencies, %d vulnerabilities, %d outdated",
        identity.slug,
        len(analysis.dependencies),
        len(analysis.vulnerabilities),
        len(analysis.outdated),
    )
    return analysis
