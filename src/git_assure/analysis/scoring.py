"""Risk Scoring Engine — deterministic weighted score over collected facts.

Every applicable rule appends exactly one :class:`RiskFactor`; the score is
the sum of their weights. Rules never short-circuit one another, and the
order of evaluation only fixes the order of the factor list.
"""

from typing import Optional

from git_assure.models import (
    RepositoryFacts,
    RiskAssessment,
    RiskFactor,
    Severity,
)

PERMISSIVE_LICENSES = ("MIT", "Apache", "BSD", "ISC", "CC0")
COPYLEFT_LICENSES = ("GPL", "AGPL", "LGPL", "MPL")

HIGH_RATING_ABOVE = 15
MEDIUM_RATING_ABOVE = 10


def classify_license(license_name: Optional[str]) -> str:
    """``Low`` for permissive, ``High`` for proprietary, ``Medium`` otherwise."""
    if not license_name:
        return "Medium"
    if any(token in license_name for token in PERMISSIVE_LICENSES):
        return "Low"
    if "Proprietary" in license_name or license_name == "UNLICENSED":
        return "High"
    return "Medium"


def describe_complexity(size_kb: int) -> str:
    """Size-based complexity guess; source code is never parsed."""
    if not size_kb:
        return "Difficult to assess via API."
    if size_kb < 500:
        return "Likely low complexity (based on size)."
    if size_kb < 5000:
        return "Potentially moderate complexity (based on size)."
    return "Likely high complexity (based on size)."


def rate(score: int) -> str:
    if score > HIGH_RATING_ABOVE:
        return "High"
    if score > MEDIUM_RATING_ABOVE:
        return "Medium"
    return "Low"


def score_repository(facts: RepositoryFacts) -> RiskAssessment:
    """Evaluate every rule against ``facts``."""
    factors: list[RiskFactor] = []

    def add(weight: int, message: str) -> None:
        factors.append(RiskFactor(weight=weight, message=message))

    snapshot, flags, metrics, deps = facts.snapshot, facts.flags, facts.metrics, facts.dependencies

    # Sustainability
    if metrics.contributor_count is not None:
        if metrics.contributor_count < 2:
            add(3, "Low number of contributors.")
        elif metrics.contributor_count < 5:
            add(1, "Relatively low number of contributors.")

    if metrics.average_contributor_age_days is not None:
        if metrics.average_contributor_age_days < 180:
            add(2, "Contributors have relatively new GitHub accounts (< 6 months).")
        elif metrics.average_contributor_age_days < 365:
            add(1, "Contributors have moderately new GitHub accounts (< 1 year).")

    if metrics.age_days < 365:
        add(1, "Relatively young project.")

    if metrics.days_since_last_commit is None or metrics.days_since_last_commit > 90:
        add(2, "Infrequent recent contributions.")
    elif metrics.days_since_last_commit > 30:
        add(1, "Potentially infrequent recent contributions.")

    # License
    license_risk = classify_license(snapshot.license)
    if not snapshot.license:
        add(3, "No license found.")
    elif license_risk == "High":
        add(2, "Restrictive license may limit usage.")
    elif license_risk == "Medium":
        add(1, "License has some usage restrictions.")

    # Development practices
    if not flags.has_dependency_manifest:
        add(1, "No dependency management file found.")
    if not flags.has_tests:
        add(2, "No test directory found.")
    if not flags.has_ci:
        add(1, "No CI/CD configuration found.")
    if not flags.has_readme:
        add(2, "No README file found.")
    if not flags.has_docs and not flags.has_readme:
        add(1, "Limited documentation.")

    releases = metrics.releases
    if not releases.has_releases:
        add(1, "No formal releases found.")
    elif releases.days_since_latest is not None and releases.days_since_latest > 365:
        add(2, "No releases in over a year.")
    elif not releases.uses_semver:
        add(1, "Not using semantic versioning.")

    # Community
    if snapshot.star_count < 10:
        add(1, "Low community interest (few stars).")

    if metrics.response_time is not None:
        if metrics.response_time.average_hours > 168:
            add(2, "Slow response time to issues (>1 week).")
        elif metrics.response_time.average_hours > 72:
            add(1, "Moderate response time to issues (>3 days).")

    if not flags.has_lint_config:
        add(1, "No code quality tools found.")
    if not flags.has_contributing:
        add(1, "No contributing guidelines found.")

    if metrics.long_lived_pulls > 5:
        add(2, f"Many long-lived open pull requests ({metrics.long_lived_pulls}).")
    elif metrics.long_lived_pulls > 0:
        add(1, f"Some long-lived open pull requests ({metrics.long_lived_pulls}).")

    if metrics.long_lived_issues > 10:
        add(3, f"Many long-lived open issues ({metrics.long_lived_issues}).")
    elif metrics.long_lived_issues > 5:
        add(2, f"Several long-lived open issues ({metrics.long_lived_issues}).")
    elif metrics.long_lived_issues > 0:
        add(1, f"Some long-lived open issues ({metrics.long_lived_issues}).")

    # Security
    if not flags.has_security_policy:
        add(2, "No explicit security policy found.")

    if describe_complexity(snapshot.size_kb).startswith("Likely high"):
        add(1, "Potentially high code complexity.")

    high = deps.severity_count(Severity.high, Severity.critical)
    medium = deps.severity_count(Severity.medium)
    low = deps.severity_count(Severity.low)
    if high:
        add(3 * high, f"{high} high severity vulnerabilities found.")
    if medium:
        add(2 * medium, f"{medium} medium severity vulnerabilities found.")
    if low:
        add(low, f"{low} low severity vulnerabilities found.")

    if deps.has_manifest and not deps.alerts_enabled:
        add(1, "Repository has dependencies but vulnerability alerts are not enabled.")

    major, minor = deps.major_outdated_count, deps.minor_outdated_count
    if major > 5:
        add(3, f"Many dependencies are severely outdated ({major} major versions behind).")
    elif major > 0:
        add(2, f"Some dependencies are severely outdated ({major} major versions behind).")
    if minor > 10:
        add(1, f"Many dependencies need minor version updates ({minor} minor versions behind).")

    score = sum(f.weight for f in factors)
    return RiskAssessment(score=score, rating=rate(score), factors=tuple(factors))
