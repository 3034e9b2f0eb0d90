"""Compare declared dependency versions against the latest registry release."""

import logging
import re
from typing import Optional, Sequence
from urllib.parse import quote

import semver

from git_assure.analysis.batching import run_in_batches
from git_assure.fetcher import Found, ResourceGateway
from git_assure.models import (
    DependencyDescriptor,
    Ecosystem,
    OutdatedDependencyRecord,
    VersionDelta,
)

logger = logging.getLogger(__name__)

_NON_VERSION_CHARS = re.compile(r"[^0-9.]")
_COERCE_PATTERN = re.compile(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def clean_version(raw: str) -> str:
    return _NON_VERSION_CHARS.sub("", raw or "")


def coerce_version(raw: str) -> Optional[semver.Version]:
    """Loose ``1``/``1.2``/``1.2.3`` coercion into a full semantic version."""
    match = _COERCE_PATTERN.search(raw or "")
    if not match:
        return None
    major, minor, patch = (int(part or 0) for part in match.groups())
    return semver.Version(major, minor, patch)


def classify_staleness(
    name: str, current: str, latest: str
) -> Optional[OutdatedDependencyRecord]:
    """Build an outdated record when ``latest`` is ahead of ``current``.

    Exactly one bucket applies, the most significant differing component.
    """
    current_clean, latest_clean = clean_version(current), clean_version(latest)
    cur, new = coerce_version(current_clean), coerce_version(latest_clean)
    if cur is None or new is None:
        return None

    if new.major > cur.major:
        urgency = "high"
        delta = VersionDelta(major=new.major - cur.major)
    elif new.major == cur.major and new.minor > cur.minor:
        urgency = "medium"
        delta = VersionDelta(minor=new.minor - cur.minor)
    elif (new.major, new.minor) == (cur.major, cur.minor) and new.patch > cur.patch:
        urgency = "low"
        delta = VersionDelta(patch=new.patch - cur.patch)
    else:
        return None

    return OutdatedDependencyRecord(
        name=name,
        current_version=current_clean,
        latest_version=latest_clean,
        behind_by=delta,
        urgency=urgency,
    )


class RegistryClient:
    """Latest-version lookups against the npm and PyPI registries."""

    def __init__(
        self,
        gateway: ResourceGateway,
        npm_url: str = "https://registry.npmjs.org",
        pypi_url: str = "https://pypi.org/pypi",
    ) -> None:
        self._gateway = gateway
        self._npm_url = npm_url.rstrip("/")
        self._pypi_url = pypi_url.rstrip("/")

    async def latest_version(self, dependency: DependencyDescriptor) -> Optional[str]:
        name = quote(dependency.name, safe="")
        if dependency.ecosystem == Ecosystem.npm:
            result = await self._gateway.fetch(f"{self._npm_url}/{name}/latest")
            if isinstance(result, Found) and isinstance(result.payload, dict):
                return result.payload.get("version")
        elif dependency.ecosystem == Ecosystem.pypi:
            result = await self._gateway.fetch(f"{self._pypi_url}/{name}/json")
            if isinstance(result, Found) and isinstance(result.payload, dict):
                return (result.payload.get("info") or {}).get("version")
        return None


async def find_outdated(
    registry: RegistryClient,
    dependencies: Sequence[DependencyDescriptor],
    batch_size: int = 5,
    pause: float = 0.5,
) -> list[OutdatedDependencyRecord]:
    """Check every dependency against its registry; failed lookups are omitted."""

    async def _check(dep: DependencyDescriptor) -> Optional[OutdatedDependencyRecord]:
        if not dep.declared_version:
            return None
        try:
            latest = await registry.latest_version(dep)
            if not latest:
                return None
            return classify_staleness(dep.name, dep.declared_version, latest)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Error checking latest version for %s: %s", dep.name, exc)
            return None

    results = await run_in_batches(dependencies, _check, batch_size, pause)
    return [r for r in results if r is not None]
