"""Vulnerability lookup through a ranked list of providers.

Providers are tried in order; the first one that reports any records
supplies the whole result and the rest are never queried.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional, Sequence

from git_assure.analysis.batching import run_in_batches
from git_assure.fetcher import Found, GitHubFetcher, ResourceGateway
from git_assure.models import (
    DependencyDescriptor,
    Ecosystem,
    RepositoryIdentity,
    Severity,
    VulnerabilityRecord,
)

logger = logging.getLogger(__name__)

_LABEL_ALIASES = {"MODERATE": "MEDIUM"}


def severity_from_cvss(score: float) -> Severity:
    if score >= 9.0:
        return Severity.critical
    if score >= 7.0:
        return Severity.high
    if score >= 4.0:
        return Severity.medium
    return Severity.low


def _coerce_label(label: Any) -> Optional[Severity]:
    if not isinstance(label, str):
        return None
    text = _LABEL_ALIASES.get(label.strip().upper(), label.strip().upper())
    try:
        return Severity(text)
    except ValueError:
        return None


def resolve_severity(labels: Sequence[Any] = (), cvss_score: Any = None) -> Severity:
    """Explicit label first, then the CVSS score, then MEDIUM."""
    for label in labels:
        severity = _coerce_label(label)
        if severity is not None:
            return severity
    if isinstance(cvss_score, (int, float)):
        return severity_from_cvss(float(cvss_score))
    return Severity.medium


def distinct_records(records: Iterable[VulnerabilityRecord]) -> list[VulnerabilityRecord]:
    """Drop repeats of the same advisory for the same package, keeping order.

    A package listed twice in a manifest is queried twice and gets the same
    advisories back. Records without an id cannot be matched and are all kept.
    """
    seen: set[tuple[str, str]] = set()
    unique: list[VulnerabilityRecord] = []
    for record in records:
        if record.id is not None:
            key = (record.package_name, record.id)
            if key in seen:
                continue
            seen.add(key)
        unique.append(record)
    return unique


class VulnerabilityProvider(ABC):
    """A source of vulnerability records for declared dependencies."""

    source = ""
    batch_size = 10
    pause = 0.0

    @abstractmethod
    async def lookup_vulnerabilities(
        self, dependency: DependencyDescriptor
    ) -> list[VulnerabilityRecord]:
        """Records affecting one dependency."""

    async def scan(
        self, dependencies: Sequence[DependencyDescriptor]
    ) -> list[VulnerabilityRecord]:
        """Look up every dependency; a failed lookup contributes nothing."""

        async def _safe(dep: DependencyDescriptor) -> list[VulnerabilityRecord]:
            try:
                return await self.lookup_vulnerabilities(dep)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "Error checking vulnerabilities for %s@%s: %s",
                    dep.name, dep.declared_version, exc,
                )
                return []

        batches = await run_in_batches(dependencies, _safe, self.batch_size, self.pause)
        return distinct_records(record for records in batches for record in records)


class GitHubAdvisoryProvider(VulnerabilityProvider):
    """Open Dependabot alerts of the repository itself.

    The alerts are repository-wide, so they are fetched once per run and
    ``scan`` returns all of them regardless of the parsed dependency list.
    """

    source = "GH-Advisory"

    def __init__(self, fetcher: GitHubFetcher, identity: RepositoryIdentity) -> None:
        self._fetcher = fetcher
        self._identity = identity
        self._alerts: Optional[list[VulnerabilityRecord]] = None

    async def _load(self) -> list[VulnerabilityRecord]:
        if self._alerts is None:
            result = await self._fetcher.fetch_dependabot_alerts(
                self._identity.owner, self._identity.name
            )
            alerts = result.payload if isinstance(result, Found) else None
            if not isinstance(alerts, list):
                logger.info("No Dependabot alerts available for %s", self._identity.slug)
                alerts = []
            self._alerts = [r for r in map(self._record_from_alert, alerts) if r]
        return self._alerts

    @classmethod
    def _record_from_alert(cls, alert: dict) -> Optional[VulnerabilityRecord]:
        vuln = alert.get("security_vulnerability") or {}
        advisory = alert.get("security_advisory") or {}
        package = (vuln.get("package") or {}).get("name") or (
            ((alert.get("dependency") or {}).get("package") or {}).get("name")
        )
        if not package:
            return None
        patched = (vuln.get("first_patched_version") or {}).get("identifier")
        return VulnerabilityRecord(
            package_name=package,
            severity=resolve_severity(
                [vuln.get("severity"), advisory.get("severity")],
                (advisory.get("cvss") or {}).get("score"),
            ),
            fixed_versions=[patched] if patched else [],
            id=advisory.get("ghsa_id"),
            detail=advisory.get("summary"),
            source="GH-Advisory",
        )

    async def lookup_vulnerabilities(
        self, dependency: DependencyDescriptor
    ) -> list[VulnerabilityRecord]:
        return [r for r in await self._load() if r.package_name == dependency.name]

    async def scan(
        self, dependencies: Sequence[DependencyDescriptor]
    ) -> list[VulnerabilityRecord]:
        return list(await self._load())


class OsvProvider(VulnerabilityProvider):
    """Community vulnerability index at osv.dev."""

    source = "OSV"

    def __init__(
        self,
        gateway: ResourceGateway,
        url: str = "https://api.osv.dev/v1/query",
        batch_size: int = 10,
        pause: float = 0.5,
    ) -> None:
        self._gateway = gateway
        self._url = url
        self.batch_size = batch_size
        self.pause = pause

    async def lookup_vulnerabilities(
        self, dependency: DependencyDescriptor
    ) -> list[VulnerabilityRecord]:
        if dependency.ecosystem == Ecosystem.unknown or not dependency.declared_version:
            return []
        result = await self._gateway.post(
            self._url,
            json={
                "package": {
                    "name": dependency.name,
                    "ecosystem": dependency.ecosystem.value,
                },
                "version": dependency.declared_version,
            },
        )
        if not isinstance(result, Found):
            logger.warning("OSV lookup for %s failed: %s", dependency.name, result)
            return []
        vulns = (result.payload or {}).get("vulns") or []
        return [
            VulnerabilityRecord(
                package_name=dependency.name,
                severity=self.determine_severity(vuln),
                fixed_versions=self.extract_fixed_versions(vuln),
                id=vuln.get("id"),
                detail=vuln.get("summary") or "No summary provided",
                source="OSV",
            )
            for vuln in vulns
        ]

    @staticmethod
    def determine_severity(vuln: dict) -> Severity:
        db = vuln.get("database_specific") or {}
        labels = [db.get("severity")]
        labels += [entry.get("type") for entry in vuln.get("severity") or []]
        cvss = db.get("cvss")
        score = cvss.get("score") if isinstance(cvss, dict) else cvss
        return resolve_severity(labels, score)

    @staticmethod
    def extract_fixed_versions(vuln: dict) -> list[str]:
        fixed: list[str] = []
        for affected in vuln.get("affected") or []:
            for rng in affected.get("ranges") or []:
                if rng.get("type") not in ("SEMVER", "ECOSYSTEM"):
                    continue
                for event in rng.get("events") or []:
                    if event.get("fixed") and event["fixed"] not in fixed:
                        fixed.append(event["fixed"])
        return fixed


async def lookup_vulnerabilities(
    providers: Sequence[VulnerabilityProvider],
    dependencies: Sequence[DependencyDescriptor],
) -> tuple[list[VulnerabilityRecord], Optional[str]]:
    """Return the records of the first provider that finds anything, and its source."""
    for provider in providers:
        try:
            records = distinct_records(await provider.scan(dependencies))
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s vulnerability lookup failed: %s", provider.source, exc)
            continue
        if records:
            logger.info("%d vulnerabilities reported by %s", len(records), provider.source)
            return records, provider.source
    return [], None
