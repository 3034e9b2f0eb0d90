"""Metric Collector — repository-level counters from auxiliary API calls."""

import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Any, Awaitable, Optional

from git_assure.fetcher import FetchResult, Found, GitHubFetcher
from git_assure.models import (
    ContributorProfile,
    ReleaseInfo,
    RepositoryIdentity,
    RepositoryMetrics,
    RepositorySnapshot,
    ResponseTimeSample,
)

logger = logging.getLogger(__name__)

MAX_PROFILED_CONTRIBUTORS = 10
MAX_RESPONSE_SAMPLE = 10
LONG_LIVED_PULL_DAYS = 90
LONG_LIVED_ISSUE_DAYS = 180
SEMVER_TAG = re.compile(r"^v?\d+\.\d+\.\d+(-.*)?$")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a GitHub ISO-8601 timestamp; None when missing or malformed."""
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def days_since(then: datetime, now: datetime) -> int:
    return (now - then).days


def _as_list(result: FetchResult, what: str, identity: RepositoryIdentity) -> Optional[list]:
    if isinstance(result, Found) and isinstance(result.payload, list):
        return result.payload
    if isinstance(result, Found) and result.payload is None:
        return []
    logger.warning("Could not fetch %s for %s: %s", what, identity.slug, result)
    return None


# ── Pure summaries ────────────────────────────────────────────────────────

def average_account_age(profiles: list[ContributorProfile], now: datetime) -> Optional[int]:
    ages = [
        days_since(p.account_created_at, now)
        for p in profiles
        if p.account_created_at is not None
    ]
    return sum(ages) // len(ages) if ages else None


def count_long_lived(
    items: list[dict], threshold_days: int, now: datetime, exclude_pulls: bool = False
) -> int:
    """Items created more than ``threshold_days`` ago."""
    count = 0
    for item in items:
        if exclude_pulls and item.get("pull_request"):
            continue
        created = parse_timestamp(item.get("created_at"))
        if created and days_since(created, now) > threshold_days:
            count += 1
    return count


def summarize_releases(releases: list[dict], now: datetime) -> ReleaseInfo:
    info = ReleaseInfo(count=len(releases))
    if releases:
        latest = releases[0]
        info.latest_date = parse_timestamp(latest.get("published_at"))
        if info.latest_date:
            info.days_since_latest = days_since(info.latest_date, now)
        info.uses_semver = bool(SEMVER_TAG.match(latest.get("tag_name") or ""))
    return info


# ── Collector ─────────────────────────────────────────────────────────────

class MetricCollector:
    """Gathers the repository counters, degrading each one independently."""

    def __init__(
        self,
        fetcher: GitHubFetcher,
        identity: RepositoryIdentity,
        now: Optional[datetime] = None,
    ) -> None:
        self._fetcher = fetcher
        self._identity = identity
        self._now = now or datetime.now(timezone.utc)

    async def collect(self, snapshot: RepositorySnapshot) -> RepositoryMetrics:
        metrics = RepositoryMetrics(age_days=days_since(snapshot.created_at, self._now))
        await asyncio.gather(
            self._isolated(self._collect_contributors(metrics), "contributors"),
            self._isolated(self._collect_commits(metrics), "commits"),
            self._isolated(self._collect_releases(metrics), "releases"),
            self._isolated(self._collect_long_lived(metrics), "long-lived items"),
            self._isolated(self._collect_response_time(metrics), "response time"),
        )
        return metrics

    async def _isolated(self, part: Awaitable[None], what: str) -> None:
        try:
            await part
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not collect %s for %s: %s", what, self._identity.slug, exc)

    async def _collect_contributors(self, metrics: RepositoryMetrics) -> None:
        owner, repo = self._identity.owner, self._identity.name
        contributors = _as_list(
            await self._fetcher.fetch_contributors(owner, repo), "contributors", self._identity
        )
        if contributors is None:
            return
        metrics.contributor_count = len(contributors)
        sample = [c for c in contributors[:MAX_PROFILED_CONTRIBUTORS] if c.get("login")]
        metrics.contributors = list(
            await asyncio.gather(*(self._profile(c["login"]) for c in sample))
        )
        metrics.average_contributor_age_days = average_account_age(
            metrics.contributors, self._now
        )

    async def _profile(self, login: str) -> ContributorProfile:
        result = await self._fetcher.fetch_user(login)
        created = None
        if isinstance(result, Found) and isinstance(result.payload, dict):
            created = parse_timestamp(result.payload.get("created_at"))
        else:
            logger.warning("Could not fetch details for contributor: %s", login)
        return ContributorProfile(login=login, account_created_at=created)

    async def _collect_commits(self, metrics: RepositoryMetrics) -> None:
        owner, repo = self._identity.owner, self._identity.name
        commits = _as_list(
            await self._fetcher.fetch_commits(owner, repo), "commits", self._identity
        )
        if not commits:
            return
        metrics.recent_commit_count = len(commits)
        author = ((commits[0].get("commit") or {}).get("author") or {})
        metrics.last_commit_date = parse_timestamp(author.get("date"))
        if metrics.last_commit_date:
            metrics.days_since_last_commit = days_since(metrics.last_commit_date, self._now)

    async def _collect_releases(self, metrics: RepositoryMetrics) -> None:
        owner, repo = self._identity.owner, self._identity.name
        releases = _as_list(
            await self._fetcher.fetch_releases(owner, repo), "releases", self._identity
        )
        if releases:
            metrics.releases = summarize_releases(releases, self._now)

    async def _collect_long_lived(self, metrics: RepositoryMetrics) -> None:
        owner, repo = self._identity.owner, self._identity.name
        pulls_result, issues_result = await asyncio.gather(
            self._fetcher.fetch_open_pulls(owner, repo),
            self._fetcher.fetch_issues(owner, repo, state="open", sort="created", direction="asc"),
        )
        pulls = _as_list(pulls_result, "open pull requests", self._identity) or []
        issues = _as_list(issues_result, "open issues", self._identity) or []
        metrics.long_lived_pulls = count_long_lived(pulls, LONG_LIVED_PULL_DAYS, self._now)
        metrics.long_lived_issues = count_long_lived(
            issues, LONG_LIVED_ISSUE_DAYS, self._now, exclude_pulls=True
        )

    async def _collect_response_time(self, metrics: RepositoryMetrics) -> None:
        owner, repo = self._identity.owner, self._identity.name
        closed = _as_list(
            await self._fetcher.fetch_issues(
                owner, repo, state="closed", sort="updated", direction="desc", per_page=30
            ),
            "closed issues",
            self._identity,
        )
        if not closed:
            return
        sample = [i for i in closed[:MAX_RESPONSE_SAMPLE] if not i.get("pull_request")]
        hours = [
            h for h in await asyncio.gather(*(self._first_response_hours(i) for i in sample))
            if h is not None
        ]
        if hours:
            metrics.response_time = ResponseTimeSample(
                average_hours=sum(hours) // len(hours), sample_size=len(hours)
            )

    async def _first_response_hours(self, issue: dict) -> Optional[int]:
        created = parse_timestamp(issue.get("created_at"))
        url = issue.get("comments_url")
        if not created or not url:
            return None
        result = await self._fetcher.fetch(url)
        if not isinstance(result, Found) or not isinstance(result.payload, list):
            logger.warning("Could not fetch comments for issue #%s", issue.get("number"))
            return None
        if not result.payload:
            return None
        first = parse_timestamp(result.payload[0].get("created_at"))
        if not first:
            return None
        return int((first - created).total_seconds() // 3600)
