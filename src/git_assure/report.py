"""Report Renderer — markdown document over the collected facts and score."""

import base64
import binascii
import logging
import re
from datetime import datetime
from typing import Any, Optional

from git_assure.analysis.scoring import classify_license, describe_complexity
from git_assure.models import (
    NOT_APPLICABLE,
    ReadmeExcerpt,
    RepositoryFacts,
    RiskAssessment,
    Severity,
)

logger = logging.getLogger(__name__)

EXCERPT_LIMIT = 500
MAX_README_BYTES = 100_000

_URGENCY_LABELS = {"high": "🔴 High", "medium": "🟠 Medium", "low": "🟡 Low"}

NOTES = """\
### Notes

- Code complexity assessment is based on repository size only
- Security assessment is limited by the public GitHub API
- Test coverage is based on directory presence, not actual coverage metrics
- Dependency vulnerability detection requires a GitHub token with appropriate permissions
- This analysis provides a snapshot and should not be considered a definitive security audit
"""


# ── README excerpt ────────────────────────────────────────────────────────

def _is_skippable(paragraph: str) -> bool:
    if paragraph.startswith("#") or len(paragraph) <= 20 or re.match(r"^[-*]", paragraph):
        return True
    if re.search(r"!\[.*?\]\(.*?(badge|shield).*?\)", paragraph, re.IGNORECASE):
        return True
    if re.search(r"\[!\[.*?\]\(.*?\)\]\(.*?\)", paragraph):
        return True
    images = paragraph.count("![")
    return images > 1 or (images > 0 and images / len(paragraph) > 0.1)


def extract_readme_excerpt(markdown: str) -> Optional[str]:
    """First descriptive paragraph of a README, stripped of code and markup."""
    text = re.sub(r"```[\s\S]*?```", "", markdown)
    text = re.sub(r"~~~[\s\S]*?~~~", "", text)
    text = re.sub(r"`[^`]+`", "", text)
    paragraphs = [p.strip() for p in text.split("\n\n")]

    excerpt = next((p for p in paragraphs if not _is_skippable(p)), "")
    if not excerpt:
        excerpt = next((p for p in paragraphs if len(p) > 20 and not p.startswith("#")), "")
    if not excerpt:
        return None

    if len(excerpt) > EXCERPT_LIMIT:
        excerpt = excerpt[:EXCERPT_LIMIT] + "..."
    excerpt = re.sub(r"\[([^\]]+)\]\([^)]+\)", r"\1", excerpt)
    excerpt = re.sub(r"\*\*([^*]+)\*\*", r"\1", excerpt)
    excerpt = re.sub(r"\*([^*]+)\*", r"\1", excerpt)
    excerpt = re.sub(r"_{2,}", "", excerpt)
    excerpt = re.sub(r"\n+", " ", excerpt)
    return excerpt.strip() or None


def readme_from_payload(payload: Any) -> Optional[ReadmeExcerpt]:
    """Build the excerpt from a contents-API README payload."""
    if not isinstance(payload, dict) or not payload.get("content"):
        return None
    if payload.get("size", 0) >= MAX_README_BYTES:
        return None
    try:
        text = base64.b64decode(payload["content"]).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        logger.warning("Could not parse README: %s", exc)
        return None
    excerpt = extract_readme_excerpt(text)
    if excerpt is None:
        return None
    return ReadmeExcerpt(text=excerpt, url=payload.get("html_url"))


# ── Rendering ─────────────────────────────────────────────────────────────

def _check(flag: bool, yes: str = "✅ Present", no: str = "❌ Missing") -> str:
    return yes if flag else no


def _date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else NOT_APPLICABLE


def _table(rows: list[tuple[str, Any]]) -> str:
    lines = ["| Metric | Value |", "|--------|-------|"]
    lines += [f"| {label} | {value} |" for label, value in rows]
    return "\n".join(lines)


def _or_na(value: Any) -> Any:
    return NOT_APPLICABLE if value is None else value


def render_error(message: str) -> str:
    return f"Error: {message}"


def render_report(facts: RepositoryFacts, assessment: RiskAssessment) -> str:
    """Render the fixed markdown layout."""
    snap, flags, m, deps = facts.snapshot, facts.flags, facts.metrics, facts.dependencies
    parts = [f"## GitHub Repository Analysis: {facts.identity.slug}"]

    if facts.readme:
        description = f"### Project Description\n{facts.readme.text}"
        if facts.readme.url:
            description += f"\n\n[View Full README]({facts.readme.url})"
        parts.append(description)

    avg_age = m.average_contributor_age_days
    last_activity = (
        f"{m.days_since_last_commit} days ago ({_date(m.last_commit_date)})"
        if m.days_since_last_commit is not None
        else NOT_APPLICABLE
    )
    parts.append("### Sustainability Assessment\n\n" + _table([
        ("Number of Contributors", _or_na(m.contributor_count)),
        ("Avg. Contributor Account Age",
         f"{avg_age / 365:.1f} years" if avg_age is not None else NOT_APPLICABLE),
        ("Project Age", f"{m.age_days} days (Created on {_date(snap.created_at)})"),
        ("Recent Commits", f"{m.recent_commit_count} commits found in the last 100"),
        ("Last Activity", last_activity),
        ("Contributing Guidelines", _check(flags.has_contributing)),
        ("Long-Lived PRs (>90 days)", m.long_lived_pulls),
        ("Long-Lived Issues (>180 days)", m.long_lived_issues),
    ]))

    parts.append("### Security Assessment\n\n" + _table([
        ("Security Policy", _check(flags.has_security_policy)),
        ("Code Complexity", describe_complexity(snap.size_kb)),
        ("Last Update", _date(snap.updated_at)),
    ]))

    parts.append("### License Information\n\n" + _table([
        ("License", snap.license or "Unknown"),
        ("License Risk", classify_license(snap.license)),
    ]))

    parts.append(_render_dependencies(facts))

    documentation = (
        ("✅ Extensive" if flags.has_docs else "✅ Basic") if flags.has_readme else "❌ Missing"
    )
    parts.append("### Development Quality\n\n" + _table([
        ("Dependency Management", _check(flags.has_dependency_manifest)),
        ("Test Coverage", _check(flags.has_tests, "✅ Tests Found", "❌ No Tests Found")),
        ("CI/CD Setup", _check(flags.has_ci)),
        ("Code Quality Tools", _check(flags.has_lint_config)),
        ("Documentation", documentation),
    ]))

    response = m.response_time
    parts.append("### Community Health\n\n" + _table([
        ("Stars", snap.star_count),
        ("Forks", snap.fork_count),
        ("Watchers", snap.watcher_count),
        ("Open Issues", snap.open_issue_count),
        ("Average Response Time",
         f"{response.average_hours} hours (Sample: {response.sample_size})"
         if response else NOT_APPLICABLE),
    ]))

    rel = m.releases
    parts.append("### Release Practices\n\n" + _table([
        ("Formal Releases",
         f"✅ ({rel.count} found)" if rel.has_releases else "❌ None found"),
        ("Latest Release",
         f"{rel.days_since_latest} days ago ({_date(rel.latest_date)})"
         if rel.days_since_latest is not None else NOT_APPLICABLE),
        ("Semantic Versioning", _check(rel.uses_semver, "✅ Used", "❌ Not used")),
    ]))

    factors = (
        "\n".join(f"- {f.message}" for f in assessment.factors)
        or "None significant found based on available data."
    )
    parts.append(
        "### Risk Summary\n\n"
        f"**Risk Score:** {assessment.score} ({assessment.rating})\n\n"
        f"#### Risk Factors Identified\n{factors}"
    )
    parts.append(NOTES)
    return "\n\n".join(parts)


def _render_dependencies(facts: RepositoryFacts) -> str:
    deps = facts.dependencies
    parsed = bool(deps.dependencies)
    checked = deps.alerts_enabled or parsed

    def outdated(count: int, icon: str) -> str:
        if count:
            return f"{icon} {count}"
        return "✅ 0" if parsed else NOT_APPLICABLE

    def severity(*levels: Severity) -> Any:
        return deps.severity_count(*levels) if checked else NOT_APPLICABLE

    section = "### Dependency Analysis\n\n" + _table([
        ("Dependency Files", _check(deps.has_manifest, "✅ Found", "❌ Not Found")),
        ("Total Dependencies", deps.total_declared or NOT_APPLICABLE),
        ("Major Version Outdated", outdated(deps.major_outdated_count, "⚠️")),
        ("Minor Version Outdated", outdated(deps.minor_outdated_count, "ℹ️")),
        ("Vulnerability Alerts",
         _check(deps.alerts_enabled, "✅ Enabled", "❌ Disabled/Not Available")),
        ("High Severity Vulnerabilities", severity(Severity.high, Severity.critical)),
        ("Medium Severity Vulnerabilities", severity(Severity.medium)),
        ("Low Severity Vulnerabilities", severity(Severity.low)),
        ("Vulnerability Source", deps.vulnerability_source or NOT_APPLICABLE),
    ])

    if deps.vulnerabilities:
        rows = "\n".join(
            f"| {v.package_name} | {v.severity.value} | {v.fixed_in} | {v.id or NOT_APPLICABLE} |"
            for v in deps.vulnerabilities
        )
        details = "\n\n".join(
            f"**{v.package_name}**: {v.detail}" for v in deps.vulnerabilities if v.detail
        )
        section += (
            "\n\n#### Vulnerable Dependencies\n\n"
            "| Package | Severity | Fixed In | ID |\n"
            "|---------|----------|----------|----|\n"
            f"{rows}"
        )
        if details:
            section += f"\n\n{details}"

    if deps.outdated:
        rows = "\n".join(
            f"| {d.name} | {d.current_version} | {d.latest_version} | {_URGENCY_LABELS[d.urgency]} |"
            for d in deps.outdated
        )
        section += (
            "\n\n#### Outdated Dependencies\n\n"
            "| Package | Current Version | Latest Version | Update Urgency |\n"
            "|---------|-----------------|----------------|----------------|\n"
            f"{rows}"
        )

    if deps.dependencies:
        rows = "\n".join(
            f"| {d.name} | {d.declared_version or NOT_APPLICABLE} |"
            for d in deps.dependencies[:20]
        )
        section += (
            "\n\n#### Top Dependencies\n\n"
            "| Package | Version |\n"
            "|---------|---------|\n"
            f"{rows}"
        )
    return section
