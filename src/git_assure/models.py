"""Data models for git-assure."""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


NOT_APPLICABLE = "N/A"


# ── Repository identity & snapshot ────────────────────────────────────────

class RepositoryIdentity(BaseModel):
    """Owner/name pair of a GitHub repository."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(min_length=1)
    name: str = Field(min_length=1)

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"


class RepositorySnapshot(BaseModel):
    """Repository metadata as returned by the primary fetch."""

    model_config = ConfigDict(frozen=True)

    created_at: datetime
    updated_at: datetime
    star_count: int = 0
    fork_count: int = 0
    watcher_count: int = 0
    open_issue_count: int = 0
    size_kb: int = 0
    license: Optional[str] = None


class ContributorProfile(BaseModel):
    """A contributor and, when the user lookup succeeded, their account age."""

    login: str
    account_created_at: Optional[datetime] = None


# ── Dependencies ──────────────────────────────────────────────────────────

class Ecosystem(str, Enum):
    """Dependency-management universe a package belongs to."""

    npm = "npm"
    pypi = "PyPI"
    maven = "Maven"
    unknown = "unknown"


class DependencyDescriptor(BaseModel):
    """A single declared dependency."""

    name: str
    declared_version: str = ""
    ecosystem: Ecosystem = Ecosystem.unknown


class Severity(str, Enum):
    """Vulnerability severity."""

    low = "LOW"
    medium = "MEDIUM"
    high = "HIGH"
    critical = "CRITICAL"


class VulnerabilityRecord(BaseModel):
    """One known vulnerability affecting a dependency."""

    package_name: str
    severity: Severity = Severity.medium
    fixed_versions: list[str] = Field(default_factory=list)
    id: Optional[str] = None
    detail: Optional[str] = None
    source: Literal["GH-Advisory", "OSV"] = "OSV"

    @property
    def fixed_in(self) -> str:
        return ", ".join(self.fixed_versions) if self.fixed_versions else "unknown"


class VersionDelta(BaseModel):
    """How far a dependency lags behind, per version component."""

    major: int = 0
    minor: int = 0
    patch: int = 0


class OutdatedDependencyRecord(BaseModel):
    """A dependency whose declared version lags the latest release."""

    name: str
    current_version: str
    latest_version: str
    behind_by: VersionDelta = Field(default_factory=VersionDelta)
    urgency: Literal["high", "medium", "low"] = "low"


class DependencyAnalysis(BaseModel):
    """Everything learned about the declared dependencies."""

    has_manifest: bool = False
    total_declared: int = 0
    dependencies: list[DependencyDescriptor] = Field(default_factory=list)
    alerts_enabled: bool = False
    vulnerabilities: list[VulnerabilityRecord] = Field(default_factory=list)
    vulnerability_source: Optional[str] = None
    outdated: list[OutdatedDependencyRecord] = Field(default_factory=list)

    def severity_count(self, *severities: Severity) -> int:
        return sum(1 for v in self.vulnerabilities if v.severity in severities)

    @property
    def major_outdated_count(self) -> int:
        return sum(1 for d in self.outdated if d.urgency == "high")

    @property
    def minor_outdated_count(self) -> int:
        return sum(1 for d in self.outdated if d.urgency == "medium")


# ── Existence flags & metrics ─────────────────────────────────────────────

class ExistenceFlags(BaseModel):
    """Capability indicators derived from path probes."""

    has_tests: bool = False
    has_ci: bool = False
    has_docs: bool = False
    has_lint_config: bool = False
    has_contributing: bool = False
    has_security_policy: bool = False
    has_readme: bool = False
    has_dependency_manifest: bool = False


class ResponseTimeSample(BaseModel):
    """Average hours until the first comment on recently closed issues."""

    average_hours: int
    sample_size: int


class ReleaseInfo(BaseModel):
    """Release cadence of the repository."""

    count: int = 0
    latest_date: Optional[datetime] = None
    days_since_latest: Optional[int] = None
    uses_semver: bool = False

    @property
    def has_releases(self) -> bool:
        return self.count > 0


class RepositoryMetrics(BaseModel):
    """Repository-level counters gathered by the metric collector."""

    age_days: int = 0
    contributor_count: Optional[int] = None
    contributors: list[ContributorProfile] = Field(default_factory=list)
    average_contributor_age_days: Optional[int] = None
    recent_commit_count: int = 0
    last_commit_date: Optional[datetime] = None
    days_since_last_commit: Optional[int] = None
    long_lived_pulls: int = 0
    long_lived_issues: int = 0
    releases: ReleaseInfo = Field(default_factory=ReleaseInfo)
    response_time: Optional[ResponseTimeSample] = None


class ReadmeExcerpt(BaseModel):
    """Short description paragraph lifted from the README."""

    text: str
    url: Optional[str] = None


class RepositoryFacts(BaseModel):
    """All collected facts the scoring engine and renderer work from."""

    identity: RepositoryIdentity
    snapshot: RepositorySnapshot
    flags: ExistenceFlags = Field(default_factory=ExistenceFlags)
    metrics: RepositoryMetrics = Field(default_factory=RepositoryMetrics)
    dependencies: DependencyAnalysis = Field(default_factory=DependencyAnalysis)
    readme: Optional[ReadmeExcerpt] = None


# ── Scoring & result ──────────────────────────────────────────────────────

class RiskFactor(BaseModel):
    """A weighted, human-readable contributor to the risk score."""

    model_config = ConfigDict(frozen=True)

    weight: int = Field(gt=0)
    message: str


Rating = Literal["Low", "Medium", "High", "N/A"]


class RiskAssessment(BaseModel):
    """Score, rating and the ordered factors that produced them."""

    model_config = ConfigDict(frozen=True)

    score: int
    rating: Rating
    factors: tuple[RiskFactor, ...] = ()


class AnalysisResult(BaseModel):
    """Terminal outcome of one analysis run."""

    model_config = ConfigDict(frozen=True)

    markdown: str
    score: Union[int, Literal["N/A"]] = NOT_APPLICABLE
    rating: Rating = NOT_APPLICABLE
    risk_factors: tuple[RiskFactor, ...] = ()

    @property
    def failed(self) -> bool:
        return self.score == NOT_APPLICABLE
