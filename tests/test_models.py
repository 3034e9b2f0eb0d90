"""Tests for data models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from git_assure.models import (
    AnalysisResult,
    DependencyAnalysis,
    OutdatedDependencyRecord,
    ReleaseInfo,
    RepositoryIdentity,
    RiskFactor,
    Severity,
    VulnerabilityRecord,
)


class TestRepositoryIdentity:
    def test_slug(self):
        assert RepositoryIdentity(owner="octo", name="widget").slug == "octo/widget"

    def test_empty_parts_rejected(self):
        with pytest.raises(ValidationError):
            RepositoryIdentity(owner="", name="widget")

    def test_hashable(self):
        assert len({RepositoryIdentity(owner="a", name="b"), RepositoryIdentity(owner="a", name="b")}) == 1


class TestRiskFactor:
    def test_weight_must_be_positive(self):
        with pytest.raises(ValidationError):
            RiskFactor(weight=0, message="nothing")

    def test_frozen(self):
        factor = RiskFactor(weight=1, message="x")
        with pytest.raises(ValidationError):
            factor.weight = 2


class TestAnalysisResult:
    def test_defaults_to_not_applicable(self):
        result = AnalysisResult(markdown="Error: nope")
        assert result.score == "N/A"
        assert result.rating == "N/A"
        assert result.risk_factors == ()
        assert result.failed

    def test_completed(self):
        result = AnalysisResult(markdown="ok", score=0, rating="Low")
        assert not result.failed


class TestDependencyAnalysis:
    def test_counts(self):
        analysis = DependencyAnalysis(
            vulnerabilities=[
                VulnerabilityRecord(package_name="a", severity=Severity.critical),
                VulnerabilityRecord(package_name="b", severity=Severity.high),
                VulnerabilityRecord(package_name="c", severity=Severity.low),
            ],
            outdated=[
                OutdatedDependencyRecord(name="x", current_version="1", latest_version="2", urgency="high"),
                OutdatedDependencyRecord(name="y", current_version="1.0", latest_version="1.1", urgency="medium"),
                OutdatedDependencyRecord(name="z", current_version="1.0.0", latest_version="1.0.1", urgency="low"),
            ],
        )
        assert analysis.severity_count(Severity.high, Severity.critical) == 2
        assert analysis.severity_count(Severity.medium) == 0
        assert analysis.major_outdated_count == 1
        assert analysis.minor_outdated_count == 1

    def test_fixed_in(self):
        assert VulnerabilityRecord(package_name="a").fixed_in == "unknown"
        assert VulnerabilityRecord(package_name="a", fixed_versions=["1.0", "2.0"]).fixed_in == "1.0, 2.0"


class TestReleaseInfo:
    def test_has_releases(self):
        assert not ReleaseInfo().has_releases
        assert ReleaseInfo(count=1, latest_date=datetime(2025, 1, 1, tzinfo=timezone.utc)).has_releases
