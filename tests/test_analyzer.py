"""End-to-end tests for the analysis engine."""

import json
import re

import httpx
import pytest
import respx

from conftest import ago, contents_payload, package_json_payload
from git_assure.analyzer import Analyzer, analyze, snapshot_from_payload
from git_assure.models import NOT_APPLICABLE, RepositoryIdentity

API = "https://api.github.com"
REPO = f"{API}/repos/owner/repo"
OSV_URL = "https://api.osv.dev/v1/query"


def repo_info(**overrides) -> dict:
    info = {
        "full_name": "owner/repo",
        "created_at": ago(days=2000),
        "updated_at": ago(days=1),
        "stargazers_count": 500,
        "forks_count": 40,
        "subscribers_count": 25,
        "open_issues_count": 3,
        "size": 200,
        "license": {"name": "MIT License"},
    }
    info.update(overrides)
    return info


def install_github(
    router,
    info: dict,
    files: dict,
    contributors: int = 12,
    alerts_enabled: bool = True,
    releases=None,
):
    """Route every GitHub resource the engine touches."""
    router.get(REPO).mock(return_value=httpx.Response(200, json=info))
    for path, payload in files.items():
        router.get(f"{REPO}/contents/{path}").mock(return_value=httpx.Response(200, json=payload))
    router.get(url__regex=rf"{re.escape(REPO)}/contents/.+").mock(
        return_value=httpx.Response(404, json={"message": "Not Found"})
    )
    router.get(f"{REPO}/contributors").mock(
        return_value=httpx.Response(200, json=[{"login": f"dev{i}"} for i in range(contributors)])
    )
    router.get(url__regex=rf"{re.escape(API)}/users/.+").mock(
        return_value=httpx.Response(200, json={"created_at": ago(days=2000)})
    )
    router.get(f"{REPO}/commits").mock(
        return_value=httpx.Response(200, json=[{"commit": {"author": {"date": ago(days=2)}}}])
    )
    router.get(f"{REPO}/releases").mock(
        return_value=httpx.Response(
            200,
            json=releases if releases is not None else [{"tag_name": "v1.2.3", "published_at": ago(days=10)}],
        )
    )
    router.get(f"{REPO}/pulls").mock(return_value=httpx.Response(200, json=[]))
    router.get(f"{REPO}/issues").mock(return_value=httpx.Response(200, json=[]))
    router.get(f"{REPO}/vulnerability-alerts").mock(
        return_value=httpx.Response(204 if alerts_enabled else 404)
    )
    router.get(f"{REPO}/dependabot/alerts").mock(return_value=httpx.Response(200, json=[]))


HEALTHY_FILES = {
    "README.md": contents_payload(
        "A library that makes widgets easy to build and test.",
        html_url="https://github.com/owner/repo/blob/main/README.md",
    ),
    "tests": [{"name": "test_widget.py"}],
    ".github/workflows": [{"name": "ci.yml"}],
    "docs": [{"name": "index.md"}],
    ".eslintrc.json": contents_payload("{}"),
    "CONTRIBUTING.md": contents_payload("Be nice."),
    "SECURITY.md": contents_payload("Report privately."),
    "package.json": package_json_payload({"lodash": "^4.17.21"}),
}


class TestAnalyze:
    @pytest.mark.asyncio
    async def test_invalid_reference_makes_no_calls(self, settings):
        with respx.mock(assert_all_called=False) as router:
            result = await analyze("not a repository", settings=settings)

        assert result.markdown == "Error: Invalid GitHub repository URL."
        assert result.score == NOT_APPLICABLE
        assert result.rating == NOT_APPLICABLE
        assert result.risk_factors == ()
        assert result.failed
        assert len(router.calls) == 0

    @pytest.mark.asyncio
    async def test_primary_failure_stops_pipeline(self, settings):
        with respx.mock(assert_all_called=False) as router:
            router.get(REPO).mock(return_value=httpx.Response(500))
            result = await analyze("https://github.com/owner/repo", settings=settings)

        assert result.failed
        assert result.markdown == (
            "Error: Error fetching repository information (status 500): Internal Server Error"
        )
        assert len(router.calls) == 1

    @pytest.mark.asyncio
    async def test_missing_repository(self, settings):
        with respx.mock(assert_all_called=False) as router:
            router.get(REPO).mock(return_value=httpx.Response(404))
            result = await analyze("owner/repo", settings=settings)

        assert result.failed
        assert "(status 404)" in result.markdown

    @pytest.mark.asyncio
    async def test_healthy_repository_is_low_risk(self, settings):
        with respx.mock(assert_all_called=False) as router:
            install_github(router, repo_info(), HEALTHY_FILES)
            osv = router.post(OSV_URL).mock(return_value=httpx.Response(200, json={}))
            router.get("https://registry.npmjs.org/lodash/latest").mock(
                return_value=httpx.Response(200, json={"version": "4.17.21"})
            )
            statuses = []
            result = await analyze(
                RepositoryIdentity(owner="owner", name="repo"),
                token="secret",
                settings=settings,
                on_status=statuses.append,
            )

        assert not result.failed
        assert result.score == 0
        assert result.rating == "Low"
        assert result.risk_factors == ()
        assert "### Project Description\nA library that makes widgets easy to build and test." in result.markdown
        assert "| Vulnerability Alerts | ✅ Enabled |" in result.markdown
        assert osv.called
        assert router.calls[0].request.headers["Authorization"] == "Bearer secret"
        assert statuses[-1] == "Done! Risk score 0 (Low)"

    @pytest.mark.asyncio
    async def test_abandoned_repository_is_medium_risk(self, settings):
        files = {
            "SECURITY.md": contents_payload("Report privately."),
            "CONTRIBUTING.md": contents_payload("Be nice."),
            ".eslintrc": contents_payload("{}"),
            "requirements.txt": contents_payload("-e .\n"),
        }
        with respx.mock(assert_all_called=False) as router:
            install_github(
                router,
                repo_info(stargazers_count=0, license=None),
                files,
                contributors=1,
            )
            result = await analyze("owner/repo", token="secret", settings=settings)

        assert result.score == 13
        assert result.rating == "Medium"
        assert [f.message for f in result.risk_factors] == [
            "Low number of contributors.",
            "No license found.",
            "No test directory found.",
            "No CI/CD configuration found.",
            "No README file found.",
            "Limited documentation.",
            "Low community interest (few stars).",
        ]

    @pytest.mark.asyncio
    async def test_auxiliary_failures_degrade_to_defaults(self, settings):
        with respx.mock(assert_all_called=False) as router:
            router.get(REPO).mock(return_value=httpx.Response(200, json=repo_info()))
            router.get(url__regex=r".*").mock(return_value=httpx.Response(502))
            result = await analyze("owner/repo", settings=settings)

        assert not result.failed
        assert isinstance(result.score, int)
        messages = [f.message for f in result.risk_factors]
        assert "Infrequent recent contributions." in messages
        assert "Low number of contributors." not in messages
        assert "| Number of Contributors | N/A |" in result.markdown

    @pytest.mark.asyncio
    async def test_non_object_dependencies_keep_alert_status(self, settings):
        files = dict(HEALTHY_FILES)
        files["package.json"] = contents_payload(json.dumps({"dependencies": 5}))
        with respx.mock(assert_all_called=False) as router:
            install_github(router, repo_info(), files)
            osv = router.post(OSV_URL).mock(return_value=httpx.Response(200, json={}))
            result = await analyze("owner/repo", token="secret", settings=settings)

        assert not result.failed
        assert result.risk_factors == ()
        assert "| Vulnerability Alerts | ✅ Enabled |" in result.markdown
        assert not osv.called

    @pytest.mark.asyncio
    async def test_requirement_listed_twice_scores_advisory_once(self, settings):
        files = dict(HEALTHY_FILES)
        del files["package.json"]
        files["requirements.txt"] = contents_payload(
            'foo==1.0; python_version<"3.8"\nfoo==1.1; python_version>="3.8"\n'
        )
        with respx.mock(assert_all_called=False) as router:
            install_github(router, repo_info(), files)
            osv = router.post(OSV_URL).mock(
                return_value=httpx.Response(
                    200,
                    json={"vulns": [{"id": "GHSA-1", "database_specific": {"severity": "HIGH"}}]},
                )
            )
            router.get(url__regex=r"https://pypi\.org/pypi/.*").mock(return_value=httpx.Response(404))
            result = await analyze("owner/repo", token="secret", settings=settings)

        assert osv.call_count == 2
        assert [(f.weight, f.message) for f in result.risk_factors] == [
            (3, "1 high severity vulnerabilities found.")
        ]

    @pytest.mark.asyncio
    async def test_unauthenticated_run_skips_alert_probe(self, settings):
        with respx.mock(assert_all_called=False) as router:
            install_github(router, repo_info(), HEALTHY_FILES)
            router.post(OSV_URL).mock(return_value=httpx.Response(200, json={}))
            router.get(url__regex=r"https://registry\.npmjs\.org/.*").mock(
                return_value=httpx.Response(200, json={"version": "4.17.21"})
            )
            result = await analyze("owner/repo", settings=settings)

        assert not any("vulnerability-alerts" in str(call.request.url) for call in router.calls)
        assert [f.message for f in result.risk_factors] == [
            "Repository has dependencies but vulnerability alerts are not enabled."
        ]


class TestAnalyzer:
    @pytest.mark.asyncio
    async def test_close_is_safe_without_requests(self, settings):
        analyzer = Analyzer(settings=settings)
        await analyzer.close()

    def test_snapshot_from_payload(self):
        snapshot = snapshot_from_payload(repo_info(license=None, size=None))
        assert snapshot.license is None
        assert snapshot.size_kb == 0
        assert snapshot.star_count == 500
        assert snapshot.watcher_count == 25
