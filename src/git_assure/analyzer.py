"""Repository risk analysis engine.

Orchestrates the primary metadata fetch, the existence probes, metric
collection and dependency intelligence, then scores and renders the
result. Once the primary fetch succeeds the engine always returns a
completed :class:`AnalysisResult`.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, TypeVar, Union

from git_assure.analysis.dependencies import build_dependency_analysis
from git_assure.analysis.metrics import MetricCollector, parse_timestamp
from git_assure.analysis.probes import ProbeOutcome, run_existence_probes
from git_assure.analysis.scoring import score_repository
from git_assure.config import Settings
from git_assure.fetcher import FetchError, Found, GitHubFetcher, ResourceGateway
from git_assure.identity import IdentityError, parse_repository
from git_assure.models import (
    AnalysisResult,
    DependencyAnalysis,
    RepositoryFacts,
    RepositoryIdentity,
    RepositoryMetrics,
    RepositorySnapshot,
)
from git_assure.report import readme_from_payload, render_error, render_report

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Status messages emitted by a run that reaches the score.
STATUS_STEPS = 5


def snapshot_from_payload(info: dict) -> RepositorySnapshot:
    """Map the ``GET /repos/{owner}/{repo}`` payload onto a snapshot."""
    now = datetime.now(timezone.utc)
    license_info = info.get("license") or {}
    return RepositorySnapshot(
        created_at=parse_timestamp(info.get("created_at")) or now,
        updated_at=parse_timestamp(info.get("updated_at")) or now,
        star_count=info.get("stargazers_count") or 0,
        fork_count=info.get("forks_count") or 0,
        watcher_count=info.get("subscribers_count") or 0,
        open_issue_count=info.get("open_issues_count") or 0,
        size_kb=info.get("size") or 0,
        license=license_info.get("name") or None,
    )


class Analyzer:
    """End-to-end risk analysis of one GitHub repository."""

    def __init__(
        self,
        token: Optional[str] = None,
        settings: Optional[Settings] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.token = token
        self._on_status = on_status or (lambda _: None)
        self._fetcher = GitHubFetcher(
            token=token,
            base_url=self.settings.api_url,
            timeout=self.settings.request_timeout,
        )
        self._services = ResourceGateway(timeout=self.settings.request_timeout)

    # ── Status helper ─────────────────────────────────────────────────────

    def _status(self, msg: str) -> None:
        logger.info(msg)
        self._on_status(msg)

    async def close(self) -> None:
        """Tear down resources."""
        await self._fetcher.close()
        await self._services.close()

    # ── Full analysis ─────────────────────────────────────────────────────

    async def analyze(self, repository: Union[str, RepositoryIdentity]) -> AnalysisResult:
        """Run the entire analysis pipeline."""
        if isinstance(repository, RepositoryIdentity):
            identity = repository
        else:
            try:
                identity = parse_repository(repository)
            except IdentityError:
                return AnalysisResult(markdown=render_error("Invalid GitHub repository URL."))

        self._status(f"Fetching repository information for {identity.slug} …")
        primary = await self._fetcher.fetch_repo_info(identity.owner, identity.name)
        if not isinstance(primary, Found) or not isinstance(primary.payload, dict):
            if isinstance(primary, FetchError):
                status, reason = primary.status, primary.message
            else:
                status, reason = 404, "Not Found"
            return AnalysisResult(
                markdown=render_error(
                    f"Error fetching repository information (status {status}): {reason}"
                )
            )

        snapshot = snapshot_from_payload(primary.payload)
        facts = RepositoryFacts(identity=identity, snapshot=snapshot)

        self._status("Probing repository files …")
        probes = await self._guard(
            run_existence_probes(self._fetcher, identity),
            ProbeOutcome(flags={}, payloads={}),
            "existence probes",
        )
        facts.flags = probes.existence_flags()
        facts.readme = readme_from_payload(probes.payloads.get("README.md"))

        self._status("Collecting repository metrics and dependency data …")
        facts.metrics, facts.dependencies = await asyncio.gather(
            self._guard(
                MetricCollector(self._fetcher, identity).collect(snapshot),
                RepositoryMetrics(),
                "metric collection",
            ),
            self._guard(
                build_dependency_analysis(
                    self._fetcher,
                    self._services,
                    identity,
                    probes.payloads,
                    facts.flags.has_dependency_manifest,
                    self.settings,
                ),
                DependencyAnalysis(has_manifest=facts.flags.has_dependency_manifest),
                "dependency analysis",
            ),
        )

        self._status("Scoring …")
        assessment = score_repository(facts)
        self._status(f"Done! Risk score {assessment.score} ({assessment.rating})")
        return AnalysisResult(
            markdown=render_report(facts, assessment),
            score=assessment.score,
            rating=assessment.rating,
            risk_factors=assessment.factors,
        )

    async def _guard(self, work: Awaitable[T], fallback: T, stage: str) -> T:
        try:
            return await work
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s failed, continuing without it: %s", stage, exc)
            return fallback


async def analyze(
    repository: Union[str, RepositoryIdentity],
    token: Optional[str] = None,
    settings: Optional[Settings] = None,
    on_status: Optional[Callable[[str], None]] = None,
) -> AnalysisResult:
    """Analyze ``repository`` (URL, ``owner/name`` or identity) and return the result."""
    analyzer = Analyzer(token=token, settings=settings, on_status=on_status)
    try:
        return await analyzer.analyze(repository)
    finally:
        await analyzer.close()
